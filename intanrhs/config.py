"""Loader options.

Options come from, in increasing priority: `DEFAULTS`, a YAML config file
(or a dict), and keyword arguments passed to `intanrhs.load`. Example
config file:

    notch_bandwidth: 10
    max_workers: 8
    timezone: America/Chicago
"""
import codecs
import os.path
from collections import namedtuple

import yaml

from .constants import DEFAULT_NOTCH_BANDWIDTH

DEFAULTS = {
    # 3-dB bandwidth (Hz) of the notch filter applied to pre-3.0 files
    'notch_bandwidth': DEFAULT_NOTCH_BANDWIDTH,
    # set False to never notch filter
    'apply_notch': True,
    # threads decoding the files of a session
    'max_workers': 4,
    # extension of the files collected from a session directory
    'extension': '.rhs',
    # timezone of the acquisition time encoded in file names; None is local
    'timezone': None,
}

Options = namedtuple('Options', sorted(DEFAULTS))


def read_config(path):
    """Loads loader options from a YAML file.

    Args:
        path (str): path to the config file

    Returns:
        dict: the options in the file (possibly empty)
    """
    if not os.path.isfile(path):
        raise FileNotFoundError('{} does not exist'.format(path))
    with codecs.open(path, 'r', encoding='utf-8') as fp:
        params = yaml.safe_load(fp)
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise ValueError('{} does not hold a mapping of options'.format(path))
    return params


def make_options(config=None, **overrides):
    """Merges defaults, a config and keyword overrides into Options.

    Args:
        config (str or dict or None): path to a YAML config file, or a dict
            of options
        **overrides: individual options

    Returns:
        Options

    Raises:
        TypeError: if any option name is unknown
    """
    params = dict(DEFAULTS)
    if isinstance(config, str):
        config = read_config(config)
    for source in (config or {}, overrides):
        unknown = set(source) - set(DEFAULTS)
        if unknown:
            raise TypeError('unknown option(s): {}'
                            .format(', '.join(sorted(unknown))))
        params.update(source)
    if params['max_workers'] < 1:
        raise ValueError('max_workers must be at least 1')
    return Options(**params)
