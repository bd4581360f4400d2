"""Combining the files of one recording session.

RHX splits long recordings into consecutive files in one directory, each
named with its start time. A session is decoded file by file, checked for
compatibility against the first file and concatenated in filename order.
"""
import functools as ft
import logging
import os
import os.path
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from . import constants as const
from .config import make_options
from .errors import EmptySession, IncompatibleSession
from .rhsfile import RhsFile, read_file
from .scaling import RhsData, should_apply_notch

logger = logging.getLogger(__name__)

_CHANNEL_FIELDS = ('custom_channel_name', 'native_order', 'units', 'scale',
                   'offset')

_CHANNEL_LISTS = ('amplifier_channels', 'board_adc_channels',
                  'board_dac_channels', 'board_dig_in_channels',
                  'board_dig_out_channels')


def list_session_files(directory, extension='.rhs'):
    """Lists the RHS files in `directory`, sorted by file name.

    Args:
        directory (str): session directory (not searched recursively)
        extension (str): file extension to match, case-insensitively

    Returns:
        list of str: full paths
    """
    extension = extension.lower()
    names = sorted(name for name in os.listdir(directory)
                   if name.lower().endswith(extension))
    paths = [os.path.join(directory, name) for name in names]
    return [path for path in paths if os.path.isfile(path)]


def compatibility_key(header):
    """Summarizes everything two files of a session must share.

    Files must also agree on the notch setting and on whether it is applied
    in software, so all merged amplifier data is filtered alike. Channel
    counts come before per-channel details, so a count mismatch is
    reported as such.

    Returns:
        tuple of (field name, value) pairs
    """
    key = [('sample_rate', header.sample_rate),
           ('notch_filter_frequency', header.notch_filter_frequency),
           ('notch_applied', should_apply_notch(header)),
           ('groups', tuple(g for g in const.BLOCK_GROUP_ORDER
                            if g in header.groups))]
    if header.stim_parameters is not None:
        key.append(('stim_step_size', header.stim_step_size))
    for name in _CHANNEL_LISTS:
        key.append(('{}.count'.format(name), len(getattr(header, name))))
    for name in _CHANNEL_LISTS:
        for i, channel in enumerate(getattr(header, name)):
            for field in _CHANNEL_FIELDS:
                key.append(('{}[{}].{}'.format(name, i, field),
                            getattr(channel, field)))
    return tuple(key)


def first_difference(key, other):
    """Returns (field, expected, found) for the first mismatch of two keys."""
    for (field, expected), (_, found) in zip(key, other):
        if expected != found:
            return field, expected, found
    # one key is a prefix of the other
    return 'length', len(key), len(other)


def check_compatible(files, paths):
    """Raises IncompatibleSession unless every header matches the first."""
    reference = compatibility_key(files[0].header)
    for path, rhs_file in zip(paths[1:], files[1:]):
        key = compatibility_key(rhs_file.header)
        if key != reference:
            field, expected, found = first_difference(reference, key)
            raise IncompatibleSession(path, field, expected, found)


def concatenate_data(files, sample_rate):
    """Joins the data of `files` along the sample axis.

    Timestamps are recomputed as one continuous sequence starting at zero.

    Returns:
        RhsData or None: None if no file holds any data
    """
    datas = [f.data for f in files if f.data is not None]
    if not datas:
        return None
    fields = {}
    for name in RhsData._fields:
        if name == 'timestamps':
            continue
        arrays = [getattr(d, name) for d in datas]
        if arrays[0] is None:
            fields[name] = None
        else:
            fields[name] = np.concatenate(arrays, axis=1)
    num_samples = sum(len(d.timestamps) for d in datas)
    fields['timestamps'] = np.arange(num_samples) / sample_rate
    return RhsData(**fields)


def combine_files(paths, options=None):
    """Decodes and merges an ordered list of RHS files.

    Files are decoded concurrently; validation and concatenation follow
    the order of `paths`.

    Args:
        paths (sequence of str): files in session order
        options (Options): loader options; defaults if None

    Returns:
        RhsFile: with `source_files` listing `paths`

    Raises:
        EmptySession: if `paths` is empty
        IncompatibleSession: if any header differs from the first file's
        FormatError: if any file fails to decode
    """
    if options is None:
        options = make_options()
    paths = list(paths)
    if not paths:
        raise EmptySession(paths)
    read = ft.partial(read_file, options=options)
    with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
        files = list(executor.map(read, paths))
    check_compatible(files, paths)
    first = files[0]
    data = concatenate_data(files, first.header.sample_rate)
    combined = RhsFile(header=first.header,
                       data=data,
                       source_files=tuple(paths),
                       start_time=first.start_time)
    logger.info('Combined %d files, %0.2f seconds in total', len(paths),
                combined.duration)
    return combined


def read_session(directory, options=None):
    """Decodes every RHS file in `directory` as one recording.

    Raises:
        EmptySession: if the directory holds no RHS files
    """
    if options is None:
        options = make_options()
    paths = list_session_files(directory, options.extension)
    if not paths:
        raise EmptySession(directory)
    logger.info('Found %d RHS files in %s', len(paths), directory)
    return combine_files(paths, options)
