"""Tests for compression.py - gzip/zlib framing."""

import gzip
import zlib

import pytest

from mcnbt.compression import Compression, compress, decompress, detect_compression
from mcnbt.errors import CompressionError

PAYLOAD = b"\x0a\x00\x00\x01\x00\x01x\x05\x00"


class TestDetect:
    """Test magic-byte sniffing."""

    def test_gzip(self):
        assert detect_compression(gzip.compress(PAYLOAD)) == Compression.GZIP

    @pytest.mark.parametrize("level", [1, 6, 9])
    def test_zlib(self, level):
        assert detect_compression(zlib.compress(PAYLOAD, level)) == Compression.ZLIB

    @pytest.mark.parametrize("data", [PAYLOAD, b"\x01\x00\x01a\x05", b"", b"\x08", b"\x08\x1d"])
    def test_uncompressed(self, data):
        assert detect_compression(data) == Compression.NONE


class TestDecompress:
    """Test framing removal."""

    @pytest.mark.parametrize("compression", [Compression.GZIP, Compression.ZLIB, Compression.NONE])
    def test_auto_roundtrip(self, compression):
        framed = compress(PAYLOAD, compression)
        data, used = decompress(framed)
        assert data == PAYLOAD
        assert used == compression

    def test_explicit(self):
        data, used = decompress(zlib.compress(PAYLOAD), Compression.ZLIB)
        assert (data, used) == (PAYLOAD, Compression.ZLIB)

    def test_truncated_gzip(self):
        with pytest.raises(CompressionError, match="gzip"):
            decompress(gzip.compress(PAYLOAD)[:-8])

    def test_bad_gzip_header(self):
        with pytest.raises(CompressionError):
            decompress(b"\x1f\x8bnot gzip at all")

    def test_wrong_explicit_framing(self):
        with pytest.raises(CompressionError, match="zlib"):
            decompress(PAYLOAD, Compression.ZLIB)

    def test_string_root_is_not_zlib(self):
        """Test raw NBT whose first bytes form a valid zlib checksum stays raw."""
        data = b"\x08\x1d" + b"x" * 29
        assert (0x0800 | 0x1D) % 31 == 0
        assert detect_compression(data) == Compression.NONE
        assert decompress(data) == (data, Compression.NONE)


class TestCompress:
    """Test framing application."""

    def test_none_is_identity(self):
        assert compress(PAYLOAD, Compression.NONE) == PAYLOAD

    def test_auto_rejected(self):
        with pytest.raises(ValueError):
            compress(PAYLOAD, Compression.AUTO)

    def test_from_name(self):
        assert Compression.from_name("GZip") == Compression.GZIP
        with pytest.raises(ValueError, match="Unknown compression"):
            Compression.from_name("lz4")
