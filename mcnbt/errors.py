"""
Error types raised by the NBT codec.

Every error carries the byte offset (in the decompressed stream) at which it
was detected, or ``None`` when no stream position applies.
"""

from typing import Optional


class NBTError(ValueError):
    """Base class for all codec errors."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)


class DecodeError(NBTError):
    """Input bytes do not describe a valid tag tree."""


class EncodeError(NBTError):
    """A tag tree cannot be written."""


class UnexpectedEof(DecodeError):
    pass


class UnknownTagType(DecodeError):
    def __init__(self, type_id: int, offset: Optional[int] = None, message: Optional[str] = None):
        self.type_id = type_id
        super().__init__(message or f"Unknown tag type id: {type_id}", offset)


class InvalidUtf8(DecodeError):
    pass


class StringTooLong(DecodeError):
    pass


class LengthOverflow(DecodeError):
    pass


class DuplicateKey(DecodeError):
    def __init__(self, name: str, offset: Optional[int] = None):
        self.name = name
        super().__init__(f"Duplicate key in compound: {name!r}", offset)


class DepthExceeded(DecodeError):
    pass


class MalformedVarint(DecodeError):
    pass


class CompressionError(DecodeError):
    pass


class InvariantViolation(EncodeError):
    pass


class IoError(NBTError):
    """The underlying source or sink rejected a read or write."""


class TypeMismatch(NBTError, TypeError):
    """A tree accessor was asked for a shape the tag does not have."""
