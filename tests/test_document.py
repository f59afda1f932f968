"""Tests for document.py and the top-level decode/encode API."""

import gzip

import pytest

import mcnbt
from mcnbt import (
    BEDROCK,
    BEDROCK_NETWORK,
    JAVA,
    JAVA_MUTF8,
    JAVA_NETWORK,
    Byte,
    ByteArray,
    Compound,
    Compression,
    DecodeOptions,
    DepthExceeded,
    Double,
    Float,
    Int,
    IoError,
    List,
    Long,
    LongArray,
    RootDocument,
    String,
    TagType,
)


ALL_PROFILES = [JAVA, JAVA_MUTF8, JAVA_NETWORK, BEDROCK, BEDROCK_NETWORK]

ROOTS = [
    String("x" * 29),
    String(""),
    Byte(5),
    Long(-1),
    Float(1.5),
    Double(float("nan")),
    ByteArray(b"\x78\x9c"),
    List.of(Int(1)),
    Compound(),
]


def make_doc(profile=JAVA):
    root = Compound({
        "Data": Compound({
            "LevelName": String("My World"),
            "Time": Int(1200),
            "Seeds": LongArray([1, -1]),
            "Players": List.of(Compound(name=String("Alex"))),
        }),
    })
    return RootDocument("", root, profile)


class TestDecodeEncode:
    """Test the public decode/encode pair."""

    def test_concrete_scenario(self):
        """Test the smallest named root round-trips byte for byte."""
        data = b"\x01\x00\x01a\x05"
        doc = mcnbt.decode(data)
        assert doc.name == "a"
        assert doc.root == Byte(5)
        assert doc.profile == JAVA
        assert doc.compression == Compression.NONE
        assert mcnbt.encode(doc) == data

    @pytest.mark.parametrize("profile", [JAVA, BEDROCK, BEDROCK_NETWORK], ids=lambda p: p.name)
    def test_roundtrip(self, profile):
        doc = make_doc(profile)
        decoded = mcnbt.decode(mcnbt.encode(doc), profile)
        assert decoded == doc
        assert decoded.root.child("Data").child("LevelName").as_str() == "My World"

    @pytest.mark.parametrize("root", ROOTS, ids=lambda t: t.tag_name)
    @pytest.mark.parametrize("profile", ALL_PROFILES, ids=lambda p: p.name)
    def test_roundtrip_any_root(self, profile, root):
        """Test every root type decodes with the default auto-detected framing."""
        for name in ("", "n" * 29):
            doc = RootDocument(name, root, profile)
            decoded = mcnbt.decode(mcnbt.encode(doc), profile)
            assert decoded.root == root
            assert decoded.compression == Compression.NONE
            assert mcnbt.encode(decoded) == mcnbt.encode(doc)

    def test_gzip_transparency(self):
        """Test gzip-wrapped input decodes to the same tree as raw input."""
        doc = make_doc()
        raw = mcnbt.encode(doc)
        framed = mcnbt.encode(doc, Compression.GZIP)
        assert framed[:2] == b"\x1f\x8b"
        from_raw = mcnbt.decode(raw)
        from_gzip = mcnbt.decode(framed)
        assert from_gzip.root == from_raw.root
        assert from_gzip.compression == Compression.GZIP

    def test_compression_is_reapplied(self):
        """Test re-encoding keeps the input's framing by default."""
        doc = mcnbt.decode(gzip.compress(mcnbt.encode(make_doc())))
        again = mcnbt.encode(doc)
        assert gzip.decompress(again) == mcnbt.encode(doc, Compression.NONE)

    def test_encode_with_other_profile(self):
        doc = make_doc()
        bedrock_bytes = doc.to_bytes(profile=BEDROCK)
        assert bedrock_bytes != doc.to_bytes()
        assert mcnbt.decode(bedrock_bytes, BEDROCK).root == doc.root

    def test_options_are_passed_through(self):
        data = mcnbt.encode(RootDocument("", List.of(List.of(List()))))
        with pytest.raises(DepthExceeded):
            mcnbt.decode(data, options=DecodeOptions(max_depth=2))

    def test_size_recorded(self):
        data = mcnbt.encode(make_doc())
        assert mcnbt.decode(data + b"\x00\x00").size == len(data)


class TestFiles:
    """Test load/save."""

    def test_save_load(self, tmp_path):
        doc = make_doc()
        path = mcnbt.save(doc, tmp_path / "world" / "level.dat", Compression.GZIP)
        assert path.exists()
        with open(path, "rb") as f:
            assert f.read(2) == b"\x1f\x8b"

        loaded = mcnbt.load(path)
        assert loaded == doc
        assert loaded.compression == Compression.GZIP

    def test_bedrock_file(self, tmp_path):
        doc = make_doc(BEDROCK)
        doc.save(tmp_path / "level.dat")
        loaded = RootDocument.load(tmp_path / "level.dat", BEDROCK)
        assert loaded.root == doc.root
        assert loaded.compression == Compression.NONE

    def test_missing_file(self, tmp_path):
        with pytest.raises(IoError):
            mcnbt.load(tmp_path / "missing.dat")


class TestEquality:
    """Test document equality ignores framing."""

    def test_compression_not_compared(self):
        a = make_doc()
        b = make_doc()
        b.compression = Compression.ZLIB
        assert a == b

    def test_profile_compared(self):
        assert make_doc(JAVA) != make_doc(BEDROCK)

    def test_root_type(self):
        doc = RootDocument("n", List(TagType.INT, [Int(1)]))
        assert mcnbt.decode(mcnbt.encode(doc)).root == doc.root
