import logging
import pytest
import numpy as np
from intanrhs import constants as const
from intanrhs.cursor import ByteCursor
from intanrhs.errors import CorruptBlock, Truncated
from intanrhs.header import read_header
from intanrhs.datablocks import (read_data_blocks, get_bytes_per_sample,
                                 get_bytes_per_data_block,
                                 count_timestamp_gaps)

from synthetic import header_bytes, data_bytes

NUM_SAMPLES = 200


def full_header(**kwargs):
    return header_bytes(amplifier=['A-000', 'A-001'], dc_saved=True,
                        adc=['ANALOG-IN-1'], dig_in=['DIN-00', 'DIN-01'],
                        dig_out=['DOUT-00'], **kwargs)


def full_data(num_samples=NUM_SAMPLES, timestamps=None):
    rng = np.random.RandomState(42)
    if timestamps is None:
        timestamps = np.arange(num_samples)
    arrays = dict(
        amplifier=rng.randint(0, 2**16, size=(2, num_samples)),
        dc_amplifier=rng.randint(0, 1024, size=(2, num_samples)),
        stim=rng.randint(0, 256, size=(2, num_samples)),
        adc=rng.randint(0, 2**16, size=(1, num_samples)),
        dig_in=rng.randint(0, 4, size=num_samples),
        dig_out=rng.randint(0, 2, size=num_samples))
    return arrays, data_bytes(timestamps, **arrays)


def decode(data):
    cursor = ByteCursor(data)
    header = read_header(cursor)
    return header, read_data_blocks(cursor, header)


def test_bytes_per_block():
    header = read_header(ByteCursor(full_header()))
    # timestamp + 2 amp + 2 dc + 2 stim + 1 adc + dig in + dig out
    assert get_bytes_per_sample(header) == 4 + 2 * (2 + 2 + 2 + 1 + 1 + 1)
    assert get_bytes_per_data_block(header) == 128 * 22


def test_bytes_per_block_amplifier_only():
    header = read_header(ByteCursor(header_bytes(amplifier=['A-000'])))
    # amplifier data always comes with stim data
    assert get_bytes_per_data_block(header) == 128 * (4 + 2 + 2)


def test_demultiplex_blocks():
    arrays, data = full_data()
    header, raw = decode(full_header() + data)
    assert np.array_equal(raw.timestamps, np.arange(NUM_SAMPLES))
    signals = raw.signals
    assert set(signals) == header.groups
    assert np.array_equal(signals[const.AMPLIFIER], arrays['amplifier'])
    assert np.array_equal(signals[const.DC_AMPLIFIER],
                          arrays['dc_amplifier'])
    assert np.array_equal(signals[const.BOARD_ADC], arrays['adc'])
    # stim words below 256 are positive step counts with no flags set
    assert np.array_equal(signals[const.STIM], arrays['stim'])
    assert not raw.compliance_limit.any()
    assert np.array_equal(signals[const.BOARD_DIG_IN][0],
                          arrays['dig_in'] & 1)
    assert np.array_equal(signals[const.BOARD_DIG_IN][1],
                          (arrays['dig_in'] >> 1) & 1)
    assert np.array_equal(signals[const.BOARD_DIG_OUT][0], arrays['dig_out'])


def test_every_group_has_every_sample():
    _, raw = decode(full_header() + full_data()[1])
    for values in raw.signals.values():
        assert values.shape[-1] == len(raw.timestamps)
    for flags in (raw.compliance_limit, raw.charge_recovery,
                  raw.amp_settle):
        assert flags.shape == raw.signals[const.STIM].shape


def test_exact_number_of_blocks():
    _, raw = decode(full_header() + full_data(256)[1])
    assert len(raw.timestamps) == 256


def test_no_stim_flags_without_amplifier():
    header = header_bytes(amplifier=[], adc=['ANALOG-IN-1'])
    data = data_bytes(np.arange(5), adc=np.full((1, 5), 32768))
    _, raw = decode(header + data)
    assert raw.compliance_limit is None
    assert const.STIM not in raw.signals
    assert raw.signals[const.BOARD_ADC].tolist() == [[32768] * 5]


def test_cut_mid_sample():
    header = full_header()
    data = full_data()[1]
    with pytest.raises(CorruptBlock) as excinfo:
        decode(header + data[:-1])
    assert isinstance(excinfo.value, Truncated)
    assert excinfo.value.offset == len(header) + 128 * 22
    assert excinfo.value.bytes_per_sample == 22


def test_timestamp_gaps_are_logged(caplog):
    timestamps = np.concatenate([np.arange(10), np.arange(20, 30)])
    data = full_data(20, timestamps)[1]
    with caplog.at_level(logging.WARNING, logger='intanrhs.datablocks'):
        _, raw = decode(full_header() + data)
    assert np.array_equal(raw.timestamps, timestamps)
    assert '1 gaps in timestamp data found' in caplog.text


def test_count_timestamp_gaps():
    assert count_timestamp_gaps(np.array([0, 1, 2, 3])) == 0
    assert count_timestamp_gaps(np.array([0, 1, 5, 6, 6])) == 2
    assert count_timestamp_gaps(np.array([], dtype=np.int32)) == 0
