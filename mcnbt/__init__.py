"""
mcnbt - Named Binary Tag (NBT) codec for Minecraft Java and Bedrock data.

Supported wire variants:
- Java Edition (big-endian), files and 1.20.2+ network packets
- Bedrock Edition (little-endian) files
- Bedrock network (little-endian, varint lengths)

Optional gzip/zlib framing is detected automatically when decoding.
"""

__version__ = "0.1.0"

from pathlib import Path
from typing import Optional, Union

from mcnbt.compression import Compression, compress, decompress, detect_compression
from mcnbt.cursor import BytesLike
from mcnbt.document import RootDocument
from mcnbt.errors import (
    CompressionError,
    DecodeError,
    DepthExceeded,
    DuplicateKey,
    EncodeError,
    InvalidUtf8,
    InvariantViolation,
    IoError,
    LengthOverflow,
    MalformedVarint,
    NBTError,
    StringTooLong,
    TypeMismatch,
    UnexpectedEof,
    UnknownTagType,
)
from mcnbt.profile import (
    BEDROCK,
    BEDROCK_NETWORK,
    JAVA,
    JAVA_MUTF8,
    JAVA_NETWORK,
    DecodeOptions,
    PlatformProfile,
    get_profile,
)
from mcnbt.tags import (
    Byte,
    ByteArray,
    Compound,
    Double,
    Float,
    Int,
    IntArray,
    List,
    Long,
    LongArray,
    Short,
    String,
    Tag,
    TagType,
    format_tree,
    from_python,
    walk,
)


def decode(
    data: BytesLike,
    profile: PlatformProfile = JAVA,
    compression: Compression = Compression.AUTO,
    options: Optional[DecodeOptions] = None,
    strict: bool = False,
) -> RootDocument:
    """
    Decode NBT bytes into a RootDocument.

    Example:
        >>> doc = decode(b"\\x01\\x00\\x01a\\x05")
        >>> doc.name, doc.root
        ('a', Byte(value=5))
    """
    return RootDocument.from_bytes(data, profile, compression, options, strict=strict)


def encode(document: RootDocument, compression: Optional[Compression] = None) -> bytes:
    """Encode a RootDocument with its own profile (and compression unless overridden)."""
    return document.to_bytes(compression)


def load(
    path: Union[str, Path],
    profile: PlatformProfile = JAVA,
    compression: Compression = Compression.AUTO,
    options: Optional[DecodeOptions] = None,
) -> RootDocument:
    return RootDocument.load(path, profile, compression, options)


def save(document: RootDocument, path: Union[str, Path],
         compression: Optional[Compression] = None) -> Path:
    return document.save(path, compression)


__all__ = [
    "decode",
    "encode",
    "load",
    "save",
    "RootDocument",
    # profiles and options
    "PlatformProfile",
    "DecodeOptions",
    "JAVA",
    "JAVA_MUTF8",
    "JAVA_NETWORK",
    "BEDROCK",
    "BEDROCK_NETWORK",
    "get_profile",
    # compression
    "Compression",
    "compress",
    "decompress",
    "detect_compression",
    # tags
    "Tag",
    "TagType",
    "Byte",
    "Short",
    "Int",
    "Long",
    "Float",
    "Double",
    "ByteArray",
    "String",
    "List",
    "Compound",
    "IntArray",
    "LongArray",
    "walk",
    "from_python",
    "format_tree",
    # errors
    "NBTError",
    "DecodeError",
    "EncodeError",
    "UnexpectedEof",
    "UnknownTagType",
    "InvalidUtf8",
    "StringTooLong",
    "LengthOverflow",
    "DuplicateKey",
    "DepthExceeded",
    "MalformedVarint",
    "CompressionError",
    "InvariantViolation",
    "IoError",
    "TypeMismatch",
]
