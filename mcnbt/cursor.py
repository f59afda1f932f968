"""
Forward-only byte cursors used by the tag codec.

Fixed-width values are described by a struct format character:

- ``b``/``B``: int8 / uint8
- ``h``/``H``: int16 / uint16
- ``i``/``I``: int32 / uint32
- ``q``: int64
- ``f``/``d``: float32 / float64

The byte order ("big" or "little") is fixed per cursor.
"""

import io
import struct
from typing import BinaryIO, Dict, Optional, Tuple, Union

import numpy as np

from mcnbt.errors import InvariantViolation, IoError, UnexpectedEof

BytesLike = Union[bytes, bytearray, memoryview]

_ORDER_PREFIX = {"big": ">", "little": "<"}

_STRUCTS: Dict[Tuple[str, str], struct.Struct] = {}


def _order_prefix(byte_order: str) -> str:
    try:
        return _ORDER_PREFIX[byte_order]
    except KeyError:
        raise ValueError(f"Invalid byte order: {byte_order!r}, expected 'big' or 'little'") from None


def _get_struct(byte_order: str, kind: str) -> struct.Struct:
    key = (byte_order, kind)
    packer = _STRUCTS.get(key)
    if packer is None:
        packer = struct.Struct(_order_prefix(byte_order) + kind)
        _STRUCTS[key] = packer
    return packer


def array_dtype(byte_order: str, kind: str) -> np.dtype:
    """numpy dtype for wire array elements of a struct ``kind`` in ``byte_order``."""
    return np.dtype(_order_prefix(byte_order) + kind)


class ByteReader:
    """Sequential reader over an in-memory byte buffer."""

    def __init__(self, data: BytesLike, byte_order: str = "big"):
        _order_prefix(byte_order)
        self._data = memoryview(data).cast("B")
        self._pos = 0
        self.byte_order = byte_order

    @classmethod
    def from_stream(cls, stream: BinaryIO, byte_order: str = "big") -> "ByteReader":
        """Read an already-open binary stream to the end and wrap the bytes.

        The caller keeps ownership of ``stream``; it is not closed here.
        """
        try:
            data = stream.read()
        except (OSError, ValueError) as e:
            raise IoError(f"Failed to read source: {e}") from e
        return cls(data, byte_order)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"Cannot read a negative byte count: {n}")
        if n > self.remaining:
            raise UnexpectedEof(
                f"Needed {n} bytes, only {self.remaining} remaining", self._pos
            )
        start = self._pos
        self._pos += n
        return self._data[start:self._pos].tobytes()

    def read_fixed(self, kind: str):
        """Read one fixed-width value in this cursor's byte order."""
        packer = _get_struct(self.byte_order, kind)
        if packer.size > self.remaining:
            raise UnexpectedEof(
                f"Needed {packer.size} bytes, only {self.remaining} remaining", self._pos
            )
        value = packer.unpack_from(self._data, self._pos)[0]
        self._pos += packer.size
        return value

    def read_ubyte(self) -> int:
        return self.read_fixed("B")

    def read_array(self, kind: str, count: int) -> np.ndarray:
        """Read ``count`` fixed-width elements into a native-order numpy array."""
        dtype = array_dtype(self.byte_order, kind)
        raw = self.read_bytes(count * dtype.itemsize)
        return np.frombuffer(raw, dtype=dtype).astype(dtype.newbyteorder("="))

    def rest(self) -> bytes:
        """Unread bytes, without advancing."""
        return self._data[self._pos:].tobytes()


class ByteWriter:
    """Append-only writer over a binary sink (an in-memory buffer by default).

    The writer does not own ``sink``; closing it is the caller's job.
    """

    def __init__(self, sink: Optional[BinaryIO] = None, byte_order: str = "big"):
        _order_prefix(byte_order)
        self._sink = sink if sink is not None else io.BytesIO()
        self._pos = 0
        self.byte_order = byte_order

    @property
    def position(self) -> int:
        return self._pos

    def write_bytes(self, data: BytesLike) -> None:
        try:
            self._sink.write(data)
        except (OSError, ValueError) as e:
            raise IoError(f"Sink rejected write: {e}", self._pos) from e
        self._pos += len(data)

    def write_fixed(self, kind: str, value) -> None:
        packer = _get_struct(self.byte_order, kind)
        try:
            data = packer.pack(value)
        except struct.error as e:
            raise InvariantViolation(f"Value {value!r} does not fit format {kind!r}: {e}") from None
        self.write_bytes(data)

    def write_ubyte(self, value: int) -> None:
        self.write_fixed("B", value)

    def write_array(self, kind: str, values: np.ndarray) -> None:
        dtype = array_dtype(self.byte_order, kind)
        self.write_bytes(np.asarray(values).astype(dtype, copy=False).tobytes())

    def getvalue(self) -> bytes:
        """Bytes written so far, when writing to the default in-memory buffer."""
        if not isinstance(self._sink, io.BytesIO):
            raise TypeError("getvalue() is only available for in-memory writers")
        return self._sink.getvalue()
