"""Sequential little-endian reader over a seekable byte source.

Every read either returns exactly what was asked for or raises ERR_IO.
There is no partial-read tolerance: a tag cut short cannot be skipped.
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO, Union

from ._errors import ERR_IO, PartMetError

Source = Union[BinaryIO, bytes, bytearray, memoryview]

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class ByteReader:
    """Position-tracking reader.  Accepts a binary file object or a buffer."""

    def __init__(self, source: Source) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._f = source

    def seek(self, offset: int) -> None:
        self._f.seek(offset, io.SEEK_SET)

    def tell(self) -> int:
        return self._f.tell()

    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("read_bytes: negative length {}".format(n))
        if n == 0:
            return b""
        off = self._f.tell()
        data = self._f.read(n)
        if len(data) != n:
            raise PartMetError(
                ERR_IO,
                "short read at offset {}: wanted {} bytes, got {}".format(
                    off, n, len(data)),
            )
        return data

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u16le(self) -> int:
        return _U16.unpack(self.read_bytes(2))[0]

    def read_u32le(self) -> int:
        return _U32.unpack(self.read_bytes(4))[0]
