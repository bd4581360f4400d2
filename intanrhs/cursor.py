import struct

import numpy as np

from .constants import NULL_QSTRING_LENGTH
from .errors import Truncated, ReadFailure


class ByteCursor():
    """Sequential reader over an in-memory byte buffer.

    All reads advance the cursor. A read that would run past the end of the
    buffer raises `Truncated` with the offset where the read started, and
    leaves the cursor where it was.

    Args:
        data (bytes-like): buffer to read from
        offset (int): starting position
        byteorder (str): struct byte order prefix, '<' (default) or '>'
    """

    def __init__(self, data, offset=0, byteorder='<'):
        self.data = memoryview(data).cast('B')
        self.offset = offset
        self.byteorder = byteorder

    @classmethod
    def from_file(cls, path, byteorder='<'):
        """Reads an entire file into a new cursor."""
        try:
            with open(path, 'rb') as fp:
                data = fp.read()
        except OSError as err:
            raise ReadFailure(path, err) from err
        return cls(data, byteorder=byteorder)

    def __len__(self):
        return len(self.data)

    def tell(self):
        return self.offset

    @property
    def remaining(self):
        return len(self.data) - self.offset

    def at_end(self):
        return self.offset >= len(self.data)

    def _require(self, num_bytes):
        if num_bytes < 0 or num_bytes > self.remaining:
            raise Truncated(self.offset)

    def read(self, num_bytes):
        self._require(num_bytes)
        start = self.offset
        self.offset += num_bytes
        return self.data[start:self.offset].tobytes()

    def skip(self, num_bytes):
        self._require(num_bytes)
        self.offset += num_bytes

    def unpack(self, fmt):
        """Reads fields described by a struct format (without byte order)."""
        fmt = self.byteorder + fmt
        size = struct.calcsize(fmt)
        self._require(size)
        values = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return values

    def read_int16(self):
        return self.unpack('h')[0]

    def read_uint16(self):
        return self.unpack('H')[0]

    def read_int32(self):
        return self.unpack('i')[0]

    def read_uint32(self):
        return self.unpack('I')[0]

    def read_float32(self):
        return self.unpack('f')[0]

    def read_string(self, length_format='I', encoding='utf-8'):
        """Reads a length-prefixed string.

        Args:
            length_format (str): struct code of the byte count, 'H' (16-bit)
                or 'I' (32-bit)
            encoding (str): text encoding of the payload

        Returns:
            str
        """
        start = self.offset
        length, = self.unpack(length_format)
        try:
            return self.read(length).decode(encoding)
        except Truncated:
            self.offset = start
            raise

    def read_qstring(self):
        """Reads a Qt style QString.

        The first 32-bit unsigned number is the length of the string in
        bytes; 0xFFFFFFFF marks a null string, returned as None. Characters
        are UTF-16.
        """
        start = self.offset
        length = self.read_uint32()
        if length == NULL_QSTRING_LENGTH:
            return None
        if length > self.remaining:
            self.offset = start
            raise Truncated(start, 'QString at byte {} declares {} bytes, '
                            'only {} remain.'.format(start, length,
                                                     self.remaining + 4))
        raw = self.read(length - length % 2)
        self.skip(length % 2)
        return raw.decode('utf-16-le', errors='surrogatepass')

    def read_array(self, dtype, count):
        """Reads `count` items of `dtype` into a new numpy array."""
        dtype = np.dtype(dtype)
        self._require(dtype.itemsize * count)
        arr = np.frombuffer(self.data, dtype=dtype, count=count,
                            offset=self.offset).copy()
        self.offset += dtype.itemsize * count
        return arr
