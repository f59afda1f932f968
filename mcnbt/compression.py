"""
Optional gzip/zlib framing around encoded NBT.

Java level.dat and player files are gzip-compressed, region chunks are
zlib-compressed, Bedrock files and network packets are usually raw.
"""

import gzip
import logging
import zlib
from enum import Enum
from typing import Tuple

from mcnbt.errors import CompressionError

LOG = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
# CMF byte of a deflate stream with a 32K window. Not a tag id, so raw NBT
# never starts with it.
ZLIB_MAGIC = 0x78


class Compression(Enum):
    NONE = "none"
    GZIP = "gzip"
    ZLIB = "zlib"
    AUTO = "auto"  # decode only: sniff the leading bytes

    @classmethod
    def from_name(cls, name: str) -> "Compression":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown compression: {name!r}, expected one of "
                f"{', '.join(c.value for c in cls)}"
            ) from None


def _is_zlib_header(data: bytes) -> bool:
    if len(data) < 2:
        return False
    cmf, flg = data[0], data[1]
    return (
        cmf == ZLIB_MAGIC
        and not flg & 0x20         # no preset dictionary
        and (cmf << 8 | flg) % 31 == 0
    )


def detect_compression(data: bytes) -> Compression:
    """Guess the framing of ``data`` from its first two bytes."""
    if data[:2] == GZIP_MAGIC:
        return Compression.GZIP
    if _is_zlib_header(data[:2]):
        return Compression.ZLIB
    return Compression.NONE


def decompress(data: bytes, compression: Compression = Compression.AUTO) -> Tuple[bytes, Compression]:
    """
    Strip compression framing.

    Returns:
        Tuple of (decompressed bytes, framing that was removed)

    Raises:
        CompressionError: If the data is not valid for the chosen framing
    """
    if compression == Compression.AUTO:
        compression = detect_compression(data)
        LOG.debug("Detected compression: %s", compression.value)

    try:
        if compression == Compression.GZIP:
            out = gzip.decompress(data)
        elif compression == Compression.ZLIB:
            out = zlib.decompress(data)
        else:
            out = bytes(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CompressionError(f"{compression.value} decompression failed: {e}") from e

    LOG.debug("Decompressed %d -> %d bytes (%s)", len(data), len(out), compression.value)
    return out, compression


def compress(data: bytes, compression: Compression, level: int = 9) -> bytes:
    """Apply compression framing to encoded bytes."""
    if compression == Compression.AUTO:
        raise ValueError("Compression.AUTO is only valid when decoding")
    if compression == Compression.GZIP:
        return gzip.compress(data, compresslevel=level)
    if compression == Compression.ZLIB:
        return zlib.compress(data, level)
    return bytes(data)
