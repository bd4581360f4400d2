import logging
import os.path
import re
import time
from collections import namedtuple

import arrow
from dateutil import tz

from .config import make_options
from .cursor import ByteCursor
from .datablocks import read_data_blocks
from .header import read_header
from .scaling import scale_data

logger = logging.getLogger(__name__)

# RHX appends the acquisition start time to every file name,
# e.g. 'rat7_231220_160314.rhs'
FILENAME_TIMESTAMP = re.compile(r'_(\d{6}_\d{6})$')
FILENAME_TIMESTAMP_FORMAT = 'YYMMDD_HHmmss'


class RhsFile(namedtuple('RhsFile', ['header', 'data', 'source_files',
                                     'start_time'])):
    """A decoded recording.

    Attributes:
        header (Header): file header (the first file's, for a session)
        data (RhsData or None): None if the file holds a header only
        source_files (tuple of str or None): files merged into this
            recording, in order; None for a single file
        start_time (datetime.datetime or None): acquisition start parsed
            from the (first) file name
    """
    __slots__ = ()

    @property
    def data_present(self):
        return self.data is not None

    @property
    def num_samples(self):
        if self.data is None:
            return 0
        return len(self.data.timestamps)

    @property
    def duration(self):
        """Recording length in seconds."""
        return self.num_samples / self.header.sample_rate


def filename_to_timestamp(path, timezone=None):
    """Parses the acquisition start time from an RHX file name.

    Args:
        path (str): file name or path ending in '_YYMMDD_HHMMSS.rhs'
        timezone (str or None): tz database name; None uses the local zone

    Returns:
        datetime.datetime or None: timezone-aware start time, or None if the
            name carries no valid timestamp
    """
    stem = os.path.splitext(os.path.basename(path))[0]
    match = FILENAME_TIMESTAMP.search(stem)
    if not match:
        return None
    if timezone is None:
        tzinfo = tz.tzlocal()
    else:
        tzinfo = tz.gettz(timezone)
        if tzinfo is None:
            raise ValueError('unknown timezone {}'.format(timezone))
    try:
        stamp = arrow.get(match.group(1), FILENAME_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return stamp.replace(tzinfo=tzinfo).datetime


def read_file(path, options=None):
    """Decodes a single RHS file.

    Args:
        path (str): path to the file
        options (Options): loader options; defaults if None

    Returns:
        RhsFile: with `source_files` set to None

    Raises:
        FormatError: if the file cannot be read or decoded
    """
    if options is None:
        options = make_options()
    tic = time.time()
    logger.info('Reading %s', path)
    cursor = ByteCursor.from_file(path)
    header = read_header(cursor)
    if cursor.at_end():
        data = None
        logger.info('Header file contains no data. '
                    'Amplifiers were sampled at %0.2f kS/s.',
                    header.sample_rate / 1000)
    else:
        raw = read_data_blocks(cursor, header)
        data = scale_data(header, raw,
                          notch_bandwidth=options.notch_bandwidth,
                          apply_notch=options.apply_notch)
    logger.info('Done! Elapsed time: %0.1f seconds', time.time() - tic)
    return RhsFile(header=header,
                   data=data,
                   source_files=None,
                   start_time=filename_to_timestamp(path, options.timezone))
