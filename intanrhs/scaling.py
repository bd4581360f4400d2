import logging
import math
from collections import namedtuple

import numpy as np
from scipy.signal import lfilter, lfiltic

from . import constants as const

logger = logging.getLogger(__name__)

RhsData = namedtuple('RhsData', [
    'timestamps',
    'amplifier_data',
    'dc_amplifier_data',
    'stim_data',
    'compliance_limit_data',
    'charge_recovery_data',
    'amp_settle_data',
    'board_adc_data',
    'board_dac_data',
    'board_dig_in_data',
    'board_dig_out_data'])
RhsData.__doc__ = """Recorded signals in physical units.

timestamps are in seconds; amplifier_data in microvolts; dc_amplifier_data
in millivolts; stim_data in microamps; board ADC/DAC data in volts; digital
and stim flag arrays are boolean. Every array is [channel][sample] with as
many samples as there are timestamps. Groups absent from the file are None.
"""

_EMPTY_DATA = RhsData(*([None] * len(RhsData._fields)))


def scale_affine(raw, scale, offset):
    """Maps raw unsigned codes to `scale * (raw - offset)` as float64."""
    return scale * (raw.astype(np.int32) - offset).astype(np.float64)


def scale_timestamps(timestamps, sample_rate):
    """Converts integer sample indices to seconds."""
    return timestamps.astype(np.float64) / sample_rate


def scale_stim(steps, stim_step_size):
    """Converts signed stimulation step counts to microamps."""
    return steps.astype(np.float64) * (stim_step_size / const.STIM_UNIT_AMPS)


def should_apply_notch(header):
    """Whether the recording's notch filter still has to be applied.

    RHX 3.0 and later save amplifier data already notch filtered, so the
    filter is applied only to older files recorded with the notch on.
    """
    return (header.notch_filter_frequency != const.NOTCH_OFF and
            header.version.major < const.NOTCH_PREFILTERED_MAJOR_VERSION)


def notch_coefficients(f_sample, f_notch, bandwidth):
    """Returns (b, a) of Intan's second-order IIR notch filter.

    Args:
        f_sample (float): sample rate in Hz
        f_notch (float): notch frequency in Hz
        bandwidth (float): notch 3-dB bandwidth in Hz
    """
    t_step = 1.0 / f_sample
    f_c = f_notch * t_step
    d = math.exp(-2.0 * math.pi * (bandwidth / 2.0) * t_step)
    b = (1.0 + d * d) * math.cos(2.0 * math.pi * f_c)
    a = (1.0 + d * d) / 2.0
    numerator = a * np.array([1.0, -2.0 * math.cos(2.0 * math.pi * f_c), 1.0])
    denominator = np.array([1.0, -b, d * d])
    return numerator, denominator


def notch_filter(signal_in, f_sample, f_notch,
                 bandwidth=const.DEFAULT_NOTCH_BANDWIDTH):
    """Runs a notch filter (e.g., for 50 or 60 Hz) over `signal_in`.

    The first two output samples equal the input; the filter runs causally
    from the third sample on. A bandwidth of 10 Hz is recommended for 50 or
    60 Hz notch filters; narrower bandwidths ring longer after transients.

    Example: data sampled at 30 kSamples/sec with a 60 Hz notch:

        out = notch_filter(signal_in, 30000, 60, 10)
    """
    signal_in = np.asarray(signal_in, dtype=np.float64)
    signal_out = signal_in.copy()
    if len(signal_in) < 3:
        return signal_out
    b, a = notch_coefficients(f_sample, f_notch, bandwidth)
    history = signal_in[1::-1]
    zi = lfiltic(b, a, y=history, x=history)
    signal_out[2:], _ = lfilter(b, a, signal_in[2:], zi=zi)
    return signal_out


def apply_notch_filter(header, amplifier_data,
                       bandwidth=const.DEFAULT_NOTCH_BANDWIDTH):
    """Notch filters every amplifier channel if the header calls for it.

    Returns:
        numpy array: a filtered copy, or `amplifier_data` itself when the
            filter does not apply
    """
    if not should_apply_notch(header):
        return amplifier_data
    logger.info('Applying %d Hz notch filter...',
                header.notch_filter_frequency)
    filtered = np.empty_like(amplifier_data)
    for i, channel in enumerate(amplifier_data):
        filtered[i] = notch_filter(channel, header.sample_rate,
                                   header.notch_filter_frequency, bandwidth)
    return filtered


def scale_data(header, raw, notch_bandwidth=const.DEFAULT_NOTCH_BANDWIDTH,
               apply_notch=True):
    """Converts a RawDataBlock into physical units.

    Args:
        header (Header): header of the file `raw` was read from
        raw (RawDataBlock): demultiplexed samples
        notch_bandwidth (float): 3-dB bandwidth of the notch filter in Hz
        apply_notch (bool): if False, never notch filter; if True, filter
            only where `should_apply_notch` holds

    Returns:
        RhsData
    """
    fields = {'timestamps': scale_timestamps(raw.timestamps,
                                             header.sample_rate)}
    signals = raw.signals
    groups = header.groups

    if const.AMPLIFIER in groups:
        amp = scale_affine(signals[const.AMPLIFIER],
                           const.AMPLIFIER_BIT_MICROVOLTS,
                           const.AMPLIFIER_OFFSET)
        if apply_notch:
            amp = apply_notch_filter(header, amp, notch_bandwidth)
        fields['amplifier_data'] = amp

    if const.DC_AMPLIFIER in groups:
        fields['dc_amplifier_data'] = scale_affine(
            signals[const.DC_AMPLIFIER],
            const.DC_AMPLIFIER_BIT_MILLIVOLTS,
            const.DC_AMPLIFIER_OFFSET)

    if const.STIM in groups:
        fields['stim_data'] = scale_stim(signals[const.STIM],
                                         header.stim_step_size)
        fields['compliance_limit_data'] = raw.compliance_limit
        fields['charge_recovery_data'] = raw.charge_recovery
        fields['amp_settle_data'] = raw.amp_settle

    for group in (const.BOARD_ADC, const.BOARD_DAC):
        if group in groups:
            fields[group + '_data'] = scale_affine(signals[group],
                                                   const.ADC_DAC_BIT_VOLTS,
                                                   const.ADC_DAC_OFFSET)

    for group in const.DIGITAL_GROUPS:
        if group in groups:
            fields[group + '_data'] = signals[group].astype(bool)

    return _EMPTY_DATA._replace(**fields)
