"""
Forward-only little-endian cursor over instruction and event payloads.
"""

import struct

import base58

from meme_decoder.errors import BinaryReaderError

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")


class BinaryReader:
    """Sequential reader over a fixed byte buffer.

    Every read advances the cursor by the width of the value. Reading past the
    end raises BinaryReaderError and leaves the cursor where it was.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    def __len__(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _check_bounds(self, size: int) -> None:
        if size < 0 or self._offset + size > len(self._data):
            raise BinaryReaderError(self._offset, size, len(self._data))

    def _take(self, size: int) -> bytes:
        self._check_bounds(size)
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        self._check_bounds(fmt.size)
        (value,) = fmt.unpack_from(self._data, self._offset)
        self._offset += fmt.size
        return value

    def read_u8(self) -> int:
        self._check_bounds(1)
        value = self._data[self._offset]
        self._offset += 1
        return value

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_u128(self) -> int:
        return int.from_bytes(self._take(16), "little")

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_fixed_array(self, length: int) -> bytes:
        return self._take(length)

    def read_pubkey(self) -> str:
        """32-byte address as base58 text."""
        return base58.b58encode(self._take(32)).decode()

    def read_string(self) -> str:
        """Borsh string: u32 length prefix followed by UTF-8 bytes."""
        start = self._offset
        length = self.read_u32()
        if self.remaining() < length:
            self._offset = start
            raise BinaryReaderError(start + 4, length, len(self._data))
        return self._take(length).decode("utf-8")

    def skip(self, length: int) -> None:
        self._take(length)
