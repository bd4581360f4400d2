import os
import os.path

from .config import make_options
from .errors import InvalidInput
from .rhsfile import read_file
from .session import read_session


def load(path, config=None, **options):
    """Loads an RHS file, or every RHS file of a session directory.

    Args:
        path (str or os.PathLike): an .rhs file, or a directory whose .rhs
            files make up one recording session
        config (str or dict or None): YAML config file or dict of options;
            see `intanrhs.config`
        **options: individual loader options, overriding `config`

    Returns:
        RhsFile: `source_files` is None for a single file and lists the
            merged files, in order, for a directory

    Raises:
        InvalidInput: if `path` is neither a file nor a directory
        FormatError: if decoding fails
    """
    opts = make_options(config, **options)
    path = os.fspath(path)
    if os.path.isfile(path):
        return read_file(path, opts)
    if os.path.isdir(path):
        return read_session(path, opts)
    raise InvalidInput(path)
