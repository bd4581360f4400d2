"""Exceptions raised while decoding Intan RHS files.

Every decoding failure is a `FormatError`, so callers can catch the whole
family at once. Subclasses carry the context (byte offset, file name,
header field) needed to act on the failure.
"""


class FormatError(ValueError):
    """Base class for all RHS decoding errors."""


class BadMagic(FormatError):
    """The file does not start with the RHS magic number."""

    def __init__(self, magic_number):
        self.magic_number = magic_number
        super().__init__('Unrecognized file type: magic number 0x{:08x}'
                         .format(magic_number))


class UnsupportedVersion(FormatError):
    """The file was written by an unsupported major version."""

    def __init__(self, major, minor):
        self.major = major
        self.minor = minor
        super().__init__('Intan RHS file version {}.{} unsupported.'
                         .format(major, minor))


class InvalidNotchSetting(FormatError):
    def __init__(self, mode):
        self.mode = mode
        super().__init__('Invalid notch filter mode {}.'.format(mode))


class UnknownChannelType(FormatError):
    def __init__(self, signal_type, offset):
        self.signal_type = signal_type
        self.offset = offset
        super().__init__('Unknown channel type {} at byte {}.'
                         .format(signal_type, offset))


class InvalidSampleRate(FormatError):
    def __init__(self, sample_rate, offset):
        self.sample_rate = sample_rate
        self.offset = offset
        super().__init__('Invalid sample rate {} at byte {}.'
                         .format(sample_rate, offset))


class InvalidDigitalChannel(FormatError):
    """A digital channel's bit position lies outside its 16-bit word."""

    def __init__(self, native_order, offset):
        self.native_order = native_order
        self.offset = offset
        super().__init__('Digital channel at byte {} has bit position {}, '
                         'not 0-15.'.format(offset, native_order))


class Truncated(FormatError):
    """Data ended before a complete field could be read."""

    def __init__(self, offset, msg=None):
        self.offset = offset
        if msg is None:
            msg = 'Unexpected end of data at byte {}.'.format(offset)
        super().__init__(msg)


class CorruptBlock(Truncated):
    """The final data block does not end on a sample boundary."""

    def __init__(self, offset, num_bytes, bytes_per_sample):
        self.num_bytes = num_bytes
        self.bytes_per_sample = bytes_per_sample
        super().__init__(
            offset,
            'Partial data block at byte {} holds {} bytes, not a whole '
            'number of {}-byte samples.'.format(offset, num_bytes,
                                                bytes_per_sample))


class IncompatibleSession(FormatError):
    """A file in a session does not match the first file's header."""

    def __init__(self, file, field, expected=None, found=None):
        self.file = file
        self.field = field
        self.expected = expected
        self.found = found
        super().__init__('{} differs from the first file in {}: {!r} != {!r}'
                         .format(file, field, found, expected))


class EmptySession(FormatError):
    def __init__(self, path):
        self.path = path
        super().__init__('No RHS files found in {}'.format(path))


class InvalidInput(FormatError):
    def __init__(self, path):
        self.path = path
        super().__init__('{} is neither a file nor a directory'.format(path))


class ReadFailure(FormatError):
    """Reading the underlying file failed; the OSError is the __cause__."""

    def __init__(self, path, error):
        self.path = path
        self.error = error
        super().__init__('Could not read {}: {}'.format(path, error))
