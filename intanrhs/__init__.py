# -*- coding: utf-8 -*-
# -*- mode: python -*-
__version__ = version = "0.1"

__doc__ = """
This is intanrhs, a python library for decoding Intan Technologies RHS2000
recordings (.rhs files, or directories of them) into arrays in physical
units.

Library versions:
 intanrhs: %s
""" % (version)

from .errors import (FormatError, BadMagic, UnsupportedVersion,
                     InvalidNotchSetting, UnknownChannelType, Truncated,
                     CorruptBlock, InvalidSampleRate, InvalidDigitalChannel,
                     IncompatibleSession, EmptySession,
                     InvalidInput, ReadFailure)
from .cursor import ByteCursor
from .header import (Header, ChannelInfo, StimParameters, SpikeTrigger,
                     SignalGroup, Version, Notes, FrequencyParameters,
                     read_header, read_header_file, encode_header,
                     find_channel)
from .datablocks import RawDataBlock, read_data_blocks
from .scaling import RhsData, scale_data, notch_filter
from .rhsfile import RhsFile, read_file
from .session import read_session, combine_files
from .config import read_config
from .recording import load
