# Header layout of Intan Technologies RHS2000 data files.
#
# Note that this file contains many unannotated byte counts and struct
# formats. They mirror the positional layout of the file and are only
# relevant here.

import logging
import struct
from collections import namedtuple

from . import constants as const
from .cursor import ByteCursor
from .errors import (BadMagic, UnsupportedVersion, InvalidNotchSetting,
                     UnknownChannelType, InvalidSampleRate,
                     InvalidDigitalChannel)

logger = logging.getLogger(__name__)

Version = namedtuple('Version', ['major', 'minor'])

Notes = namedtuple('Notes', ['note1', 'note2', 'note3'])

FrequencyParameters = namedtuple('FrequencyParameters', [
    'amplifier_sample_rate',
    'board_adc_sample_rate',
    'board_dig_in_sample_rate',
    'dsp_enabled',
    'actual_dsp_cutoff_frequency',
    'actual_lower_bandwidth',
    'actual_lower_settle_bandwidth',
    'actual_upper_bandwidth',
    'desired_dsp_cutoff_frequency',
    'desired_lower_bandwidth',
    'desired_lower_settle_bandwidth',
    'desired_upper_bandwidth',
    'notch_filter_frequency',
    'desired_impedance_test_frequency',
    'actual_impedance_test_frequency'])

StimParameters = namedtuple('StimParameters', [
    'stim_step_size',
    'charge_recovery_current_limit',
    'charge_recovery_target_voltage',
    'amp_settle_mode',
    'charge_recovery_mode'])

SpikeTrigger = namedtuple('SpikeTrigger', [
    'voltage_trigger_mode',
    'voltage_threshold',
    'digital_trigger_channel',
    'digital_edge_polarity'])

ChannelInfo = namedtuple('ChannelInfo', [
    'group',
    'port_name',
    'port_prefix',
    'port_number',
    'native_channel_name',
    'custom_channel_name',
    'native_order',
    'custom_order',
    'signal_type',
    'enabled',
    'chip_channel',
    'command_stream',
    'board_stream',
    'spike_trigger',
    'electrode_impedance_magnitude',
    'electrode_impedance_phase',
    'units',
    'scale',
    'offset'])

SignalGroup = namedtuple('SignalGroup', [
    'name',
    'prefix',
    'number',
    'enabled',
    'num_channels',
    'num_amp_channels',
    'channels'])

_CHANNEL_LISTS = {const.AMPLIFIER: 'amplifier_channels',
                  const.DC_AMPLIFIER: 'amplifier_channels',
                  const.STIM: 'amplifier_channels',
                  const.BOARD_ADC: 'board_adc_channels',
                  const.BOARD_DAC: 'board_dac_channels',
                  const.BOARD_DIG_IN: 'board_dig_in_channels',
                  const.BOARD_DIG_OUT: 'board_dig_out_channels'}


class Header(namedtuple('Header', [
        'version',
        'sample_rate',
        'num_samples_per_data_block',
        'frequency_parameters',
        'notch_filter_frequency',
        'amp_settle_mode',
        'charge_recovery_mode',
        'stim_step_size',
        'recovery_current_limit',
        'recovery_target_voltage',
        'notes',
        'dc_amplifier_data_saved',
        'eval_board_mode',
        'reference_channel',
        'signal_groups',
        'amplifier_channels',
        'spike_triggers',
        'board_adc_channels',
        'board_dac_channels',
        'board_dig_in_channels',
        'board_dig_out_channels',
        'groups',
        'stim_parameters',
        'size'])):
    """Decoded RHS file header.

    `groups` is the set of signal groups present in every data block; see
    `intanrhs.constants.BLOCK_GROUP_ORDER`. Channel lists hold enabled
    channels only, in file order. `signal_groups` keeps every record as
    stored, including disabled channels.
    """
    __slots__ = ()

    def channels(self, group):
        """Returns the channels whose data make up the rows of `group`."""
        return getattr(self, _CHANNEL_LISTS[group])

    def num_channels(self, group):
        return len(self.channels(group)) if group in self.groups else 0


def read_header(cursor):
    """Reads the RHS header from a cursor positioned at offset 0.

    Args:
        cursor (ByteCursor): source; left positioned at the first data block

    Returns:
        Header

    Raises:
        BadMagic, UnsupportedVersion, InvalidSampleRate, InvalidNotchSetting,
        UnknownChannelType, InvalidDigitalChannel, Truncated
    """
    # Check 'magic number' at beginning of file to make sure this is an Intan
    # Technologies RHS2000 data file.
    magic_number = cursor.read_uint32()
    if magic_number != const.RHS_MAGIC_NUMBER:
        raise BadMagic(magic_number)

    version = Version(*cursor.unpack('hh'))
    if not (const.FIRST_SUPPORTED_MAJOR_VERSION <= version.major
            <= const.LAST_TESTED_MAJOR_VERSION):
        raise UnsupportedVersion(version.major, version.minor)
    logger.info('Reading Intan Technologies RHS2000 data file, version %d.%d',
                version.major, version.minor)

    # Read information of sampling rate and amplifier frequency settings.
    sample_rate_offset = cursor.tell()
    sample_rate, = cursor.unpack('f')
    if not sample_rate > 0:
        raise InvalidSampleRate(sample_rate, sample_rate_offset)
    (dsp_enabled,
     actual_dsp_cutoff_frequency,
     actual_lower_bandwidth,
     actual_lower_settle_bandwidth,
     actual_upper_bandwidth,
     desired_dsp_cutoff_frequency,
     desired_lower_bandwidth,
     desired_lower_settle_bandwidth,
     desired_upper_bandwidth) = cursor.unpack('hffffffff')

    # This tells us if a software 50/60 Hz notch filter was enabled during the
    # data acquisition.
    notch_filter_mode, = cursor.unpack('h')
    if notch_filter_mode not in const.NOTCH_FILTER_MODES:
        raise InvalidNotchSetting(notch_filter_mode)
    notch_filter_frequency = const.NOTCH_FILTER_MODES[notch_filter_mode]

    (desired_impedance_test_frequency,
     actual_impedance_test_frequency) = cursor.unpack('ff')

    amp_settle_mode, charge_recovery_mode = cursor.unpack('hh')
    (stim_step_size,
     recovery_current_limit,
     recovery_target_voltage) = cursor.unpack('fff')

    # Text notes written by experimenter during data collection.
    notes = Notes(cursor.read_qstring(),
                  cursor.read_qstring(),
                  cursor.read_qstring())

    dc_amplifier_data_saved, eval_board_mode = cursor.unpack('hh')
    reference_channel = cursor.read_qstring()

    freq = FrequencyParameters(
        amplifier_sample_rate=sample_rate,
        board_adc_sample_rate=sample_rate,
        board_dig_in_sample_rate=sample_rate,
        dsp_enabled=dsp_enabled,
        actual_dsp_cutoff_frequency=actual_dsp_cutoff_frequency,
        actual_lower_bandwidth=actual_lower_bandwidth,
        actual_lower_settle_bandwidth=actual_lower_settle_bandwidth,
        actual_upper_bandwidth=actual_upper_bandwidth,
        desired_dsp_cutoff_frequency=desired_dsp_cutoff_frequency,
        desired_lower_bandwidth=desired_lower_bandwidth,
        desired_lower_settle_bandwidth=desired_lower_settle_bandwidth,
        desired_upper_bandwidth=desired_upper_bandwidth,
        notch_filter_frequency=notch_filter_frequency,
        desired_impedance_test_frequency=desired_impedance_test_frequency,
        actual_impedance_test_frequency=actual_impedance_test_frequency)

    signal_groups = read_signal_summary(cursor)

    # Sort enabled channels into typed lists.
    typed = {name: [] for name in set(_CHANNEL_LISTS.values())}
    spike_triggers = []
    for signal_group in signal_groups:
        for channel in signal_group.channels:
            if not channel.enabled:
                continue
            typed[_CHANNEL_LISTS[channel.group]].append(channel)
            if channel.group == const.AMPLIFIER:
                spike_triggers.append(channel.spike_trigger)

    num_amplifier_channels = len(typed['amplifier_channels'])
    groups = set()
    if num_amplifier_channels:
        # Every RHS amplifier channel sits on a stimulation-capable
        # headstage, so stim words are always saved with amplifier data.
        groups.update([const.AMPLIFIER, const.STIM])
        if dc_amplifier_data_saved:
            groups.add(const.DC_AMPLIFIER)
    for group in (const.BOARD_ADC, const.BOARD_DAC,
                  const.BOARD_DIG_IN, const.BOARD_DIG_OUT):
        if typed[_CHANNEL_LISTS[group]]:
            groups.add(group)

    if num_amplifier_channels:
        stim_parameters = StimParameters(
            stim_step_size=stim_step_size,
            charge_recovery_current_limit=recovery_current_limit,
            charge_recovery_target_voltage=recovery_target_voltage,
            amp_settle_mode=amp_settle_mode,
            charge_recovery_mode=charge_recovery_mode)
    else:
        stim_parameters = None

    header = Header(
        version=version,
        sample_rate=sample_rate,
        num_samples_per_data_block=const.SAMPLES_PER_DATA_BLOCK,
        frequency_parameters=freq,
        notch_filter_frequency=notch_filter_frequency,
        amp_settle_mode=amp_settle_mode,
        charge_recovery_mode=charge_recovery_mode,
        stim_step_size=stim_step_size,
        recovery_current_limit=recovery_current_limit,
        recovery_target_voltage=recovery_target_voltage,
        notes=notes,
        dc_amplifier_data_saved=bool(dc_amplifier_data_saved),
        eval_board_mode=eval_board_mode,
        reference_channel=reference_channel,
        signal_groups=tuple(signal_groups),
        amplifier_channels=tuple(typed['amplifier_channels']),
        spike_triggers=tuple(spike_triggers),
        board_adc_channels=tuple(typed['board_adc_channels']),
        board_dac_channels=tuple(typed['board_dac_channels']),
        board_dig_in_channels=tuple(typed['board_dig_in_channels']),
        board_dig_out_channels=tuple(typed['board_dig_out_channels']),
        groups=frozenset(groups),
        stim_parameters=stim_parameters,
        size=cursor.tell())
    log_header_summary(header)
    return header


def read_signal_summary(cursor):
    """Reads every signal group and its channel records."""
    number_of_signal_groups, = cursor.unpack('h')
    signal_groups = []
    for number in range(1, number_of_signal_groups + 1):
        name = cursor.read_qstring()
        prefix = cursor.read_qstring()
        enabled, num_channels, num_amp_channels = cursor.unpack('hhh')
        channels = []
        if num_channels > 0 and enabled > 0:
            for _ in range(num_channels):
                channels.append(read_channel(cursor, name, prefix, number))
        signal_groups.append(SignalGroup(name, prefix, number, enabled,
                                         num_channels, num_amp_channels,
                                         tuple(channels)))
    return signal_groups


def read_channel(cursor, port_name, port_prefix, port_number):
    """Reads one channel record."""
    start = cursor.tell()
    native_channel_name = cursor.read_qstring()
    custom_channel_name = cursor.read_qstring()
    (native_order,
     custom_order,
     signal_type,
     channel_enabled,
     chip_channel,
     command_stream,
     board_stream) = cursor.unpack('hhhhhHh')
    spike_trigger = SpikeTrigger(*cursor.unpack('hhhh'))
    impedance_magnitude, impedance_phase = cursor.unpack('ff')

    # Disabled channels are never sorted into a group, whatever their type.
    if signal_type in const.SIGNAL_TYPES:
        group = const.SIGNAL_TYPES[signal_type]
        units, scale, offset = const.GROUP_SCALING[group]
    elif channel_enabled:
        raise UnknownChannelType(signal_type, start)
    else:
        group = units = scale = offset = None
    if (channel_enabled and group in const.DIGITAL_GROUPS and
            not 0 <= native_order < const.DIGITAL_WORD_BITS):
        raise InvalidDigitalChannel(native_order, start)
    return ChannelInfo(group=group,
                       port_name=port_name,
                       port_prefix=port_prefix,
                       port_number=port_number,
                       native_channel_name=native_channel_name,
                       custom_channel_name=custom_channel_name,
                       native_order=native_order,
                       custom_order=custom_order,
                       signal_type=signal_type,
                       enabled=channel_enabled,
                       chip_channel=chip_channel,
                       command_stream=command_stream,
                       board_stream=board_stream,
                       spike_trigger=spike_trigger,
                       electrode_impedance_magnitude=impedance_magnitude,
                       electrode_impedance_phase=impedance_phase,
                       units=units,
                       scale=scale,
                       offset=offset)


def read_header_file(path):
    """Reads only the header of the RHS file at `path`."""
    return read_header(ByteCursor.from_file(path))


def plural(number_of_items):
    if number_of_items == 1:
        return ''
    return 's'


def log_header_summary(header):
    num_amp = len(header.amplifier_channels)
    logger.info('Found %d amplifier channel%s.', num_amp, plural(num_amp))
    if const.DC_AMPLIFIER in header.groups:
        logger.info('Found %d DC amplifier channel%s.', num_amp,
                    plural(num_amp))
    for label, channels in (('board ADC', header.board_adc_channels),
                            ('board DAC', header.board_dac_channels),
                            ('board digital input',
                             header.board_dig_in_channels),
                            ('board digital output',
                             header.board_dig_out_channels)):
        logger.info('Found %d %s channel%s.', len(channels), label,
                    plural(len(channels)))


def find_channel(header, name):
    """Finds a channel by custom or native name.

    Custom names take precedence over native names.

    Args:
        header (Header): decoded header
        name (str): channel name, e.g. 'A-005'

    Returns:
        tuple(str, int): the signal group and the row of that channel in
            the group's data array

    Raises:
        KeyError: if no enabled channel has that name
    """
    groups = [g for g in const.BLOCK_GROUP_ORDER
              if g not in (const.DC_AMPLIFIER, const.STIM)]
    for key in ('custom_channel_name', 'native_channel_name'):
        for group in groups:
            for index, channel in enumerate(header.channels(group)):
                if getattr(channel, key) == name:
                    return group, index
    raise KeyError('channel {} not found'.format(name))


def pack_qstring(text):
    if text is None:
        return struct.pack('<I', const.NULL_QSTRING_LENGTH)
    raw = text.encode('utf-16-le', errors='surrogatepass')
    return struct.pack('<I', len(raw)) + raw


def encode_header(header):
    """Writes `header` back into the RHS binary layout.

    Every field read by `read_header` is written in the same position.
    None strings are written as null QStrings, so a decoded header encodes
    back to the same bytes.

    Returns:
        bytes
    """
    freq = header.frequency_parameters
    notch_modes = {hz: mode for mode, hz in const.NOTCH_FILTER_MODES.items()}
    parts = [
        struct.pack('<Ihh', const.RHS_MAGIC_NUMBER, header.version.major,
                    header.version.minor),
        struct.pack('<f', header.sample_rate),
        struct.pack('<hffffffff',
                    freq.dsp_enabled,
                    freq.actual_dsp_cutoff_frequency,
                    freq.actual_lower_bandwidth,
                    freq.actual_lower_settle_bandwidth,
                    freq.actual_upper_bandwidth,
                    freq.desired_dsp_cutoff_frequency,
                    freq.desired_lower_bandwidth,
                    freq.desired_lower_settle_bandwidth,
                    freq.desired_upper_bandwidth),
        struct.pack('<h', notch_modes[header.notch_filter_frequency]),
        struct.pack('<ff', freq.desired_impedance_test_frequency,
                    freq.actual_impedance_test_frequency),
        struct.pack('<hh', header.amp_settle_mode,
                    header.charge_recovery_mode),
        struct.pack('<fff', header.stim_step_size,
                    header.recovery_current_limit,
                    header.recovery_target_voltage),
    ]
    parts.extend(pack_qstring(note) for note in header.notes)
    parts.append(struct.pack('<hh', int(header.dc_amplifier_data_saved),
                             header.eval_board_mode))
    parts.append(pack_qstring(header.reference_channel))
    parts.append(struct.pack('<h', len(header.signal_groups)))
    for signal_group in header.signal_groups:
        parts.append(pack_qstring(signal_group.name))
        parts.append(pack_qstring(signal_group.prefix))
        parts.append(struct.pack('<hhh', signal_group.enabled,
                                 signal_group.num_channels,
                                 signal_group.num_amp_channels))
        for channel in signal_group.channels:
            parts.append(pack_qstring(channel.native_channel_name))
            parts.append(pack_qstring(channel.custom_channel_name))
            parts.append(struct.pack('<hhhhhHh',
                                     channel.native_order,
                                     channel.custom_order,
                                     channel.signal_type,
                                     channel.enabled,
                                     channel.chip_channel,
                                     channel.command_stream,
                                     channel.board_stream))
            parts.append(struct.pack('<hhhh', *channel.spike_trigger))
            parts.append(struct.pack('<ff',
                                     channel.electrode_impedance_magnitude,
                                     channel.electrode_impedance_phase))
    return b''.join(parts)
