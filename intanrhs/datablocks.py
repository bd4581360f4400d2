"""Demultiplexing of RHS data blocks.

Each data block holds `num_samples_per_data_block` samples of every signal
group present in the header, stored group by group in this order:

    timestamps          int32, one per sample
    amplifier           uint16, [channel][sample]
    dc_amplifier        uint16, [channel][sample]   (if saved)
    stim                uint16, [channel][sample]
    board_adc           uint16, [channel][sample]
    board_dac           uint16, [channel][sample]
    board_dig_in        uint16, one packed word per sample
    board_dig_out       uint16, one packed word per sample
"""
import logging
from collections import namedtuple

import numpy as np

from . import constants as const
from .bits import unpack_stim_words, unpack_digital_words
from .errors import CorruptBlock

logger = logging.getLogger(__name__)

RawDataBlock = namedtuple('RawDataBlock', [
    'timestamps',
    'signals',
    'compliance_limit',
    'charge_recovery',
    'amp_settle'])
RawDataBlock.__doc__ = """Raw samples of one file.

timestamps: int32 sample indices as recorded.
signals: dict mapping each group in the header's `groups` to a 2-d array
    [channel][sample]; stim holds signed step counts and digital groups
    hold 0/1 per channel.
compliance_limit, charge_recovery, amp_settle: boolean arrays aligned with
    stim, or None when the file has no stim data.
"""


def group_words_per_sample(header, group):
    """Number of 16-bit words `group` occupies per sample."""
    if group not in header.groups:
        return 0
    if group in const.DIGITAL_GROUPS:
        # all digital channels are packed into a single word
        return 1
    return header.num_channels(group)


def get_bytes_per_sample(header):
    """Calculates the number of bytes one sample of every group takes."""
    bytes_per_sample = const.TIMESTAMP_DTYPE.itemsize
    for group in const.BLOCK_GROUP_ORDER:
        bytes_per_sample += (group_words_per_sample(header, group) *
                             const.GROUP_DTYPES[group].itemsize)
    return bytes_per_sample


def get_bytes_per_data_block(header):
    """Calculates the number of bytes in each data block."""
    return header.num_samples_per_data_block * get_bytes_per_sample(header)


def block_dtype(header, num_samples):
    """Creates a structured dtype for one data block of `num_samples`."""
    fields = [('timestamps', const.TIMESTAMP_DTYPE, (num_samples,))]
    for group in const.BLOCK_GROUP_ORDER:
        if group not in header.groups:
            continue
        if group in const.DIGITAL_GROUPS:
            shape = (num_samples,)
        else:
            shape = (header.num_channels(group), num_samples)
        fields.append((group, const.GROUP_DTYPES[group], shape))
    return np.dtype(fields)


def _join_blocks(blocks, name):
    """Joins a field of consecutive blocks along the sample axis."""
    values = blocks[name]
    if values.ndim == 2:
        # (block, sample) -> (sample,)
        return values.reshape(-1)
    # (block, channel, sample) -> (channel, sample)
    num_channels = values.shape[1]
    return values.transpose(1, 0, 2).reshape(num_channels, -1)


def read_data_blocks(cursor, header):
    """Reads every data block left in `cursor`.

    The data may end with a partial block holding fewer samples than a full
    block, laid out the same way, as long as it ends on a sample boundary.

    Args:
        cursor (ByteCursor): positioned immediately after the header
        header (Header): decoded header of the same file

    Returns:
        RawDataBlock

    Raises:
        CorruptBlock: if the data ends partway through a sample
    """
    bytes_per_block = get_bytes_per_data_block(header)
    bytes_per_sample = get_bytes_per_sample(header)
    num_blocks, tail_bytes = divmod(cursor.remaining, bytes_per_block)
    if tail_bytes % bytes_per_sample:
        raise CorruptBlock(cursor.tell() + num_blocks * bytes_per_block,
                           tail_bytes, bytes_per_sample)
    tail_samples = tail_bytes // bytes_per_sample
    num_samples = (num_blocks * header.num_samples_per_data_block +
                   tail_samples)
    log_record_time_summary(num_samples, header.sample_rate)

    full_dtype = block_dtype(header, header.num_samples_per_data_block)
    chunks = [cursor.read_array(full_dtype, num_blocks)]
    if tail_samples:
        chunks.append(cursor.read_array(block_dtype(header, tail_samples), 1))

    def join(name):
        parts = [_join_blocks(chunk, name) for chunk in chunks]
        return np.concatenate(parts, axis=-1)

    timestamps = join('timestamps')
    signals = {}
    flags = dict(compliance_limit=None, charge_recovery=None,
                 amp_settle=None)
    for group in const.BLOCK_GROUP_ORDER:
        if group not in header.groups:
            continue
        values = join(group)
        if group == const.STIM:
            stim = unpack_stim_words(values)
            values = stim.steps
            flags = dict(compliance_limit=stim.compliance_limit,
                         charge_recovery=stim.charge_recovery,
                         amp_settle=stim.amp_settle)
        elif group in const.DIGITAL_GROUPS:
            native_orders = [c.native_order for c in header.channels(group)]
            values = unpack_digital_words(values, native_orders)
        signals[group] = values

    num_gaps = count_timestamp_gaps(timestamps)
    if num_gaps:
        logger.warning('%d gaps in timestamp data found. '
                       'Time scale will not be uniform!', num_gaps)
    return RawDataBlock(timestamps=timestamps, signals=signals, **flags)


def count_timestamp_gaps(timestamps):
    """Counts places where consecutive timestamps differ by other than 1."""
    return int(np.sum(np.diff(timestamps.astype(np.int64)) != 1))


def log_record_time_summary(num_samples, sample_rate):
    if num_samples:
        logger.info('File contains %0.3f seconds of data. '
                    'Amplifiers were sampled at %0.2f kS/s.',
                    num_samples / sample_rate, sample_rate / 1000)
    else:
        logger.info('Header file contains no data. '
                    'Amplifiers were sampled at %0.2f kS/s.',
                    sample_rate / 1000)
