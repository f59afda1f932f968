"""
Tag codec: reads and writes tag trees through a byte cursor.

Wire layout (Java profile shown; Bedrock swaps the byte order, Bedrock
network replaces lengths, counts, Int and Long payloads with varints and
drops the root name):

- Root:      [type_id:1][name_len:u16][name][payload]
- Compound:  ([type_id:1][name_len:u16][name][payload])* [0x00]
- List:      [element_type:1][count:i32][count x payload]
- Arrays:    [count:i32][count x element]
- String:    [len:u16][utf-8 bytes]

Decoding keeps its own stack of open containers instead of recursing, so
nesting depth is limited by ``DecodeOptions.max_depth`` and never by the
interpreter's recursion limit.
"""

import logging
from typing import Dict, List as ListType, Optional, Tuple, Union

from mutf8 import decode_modified_utf8, encode_modified_utf8

from mcnbt.cursor import ByteReader, ByteWriter, BytesLike
from mcnbt.errors import (
    DepthExceeded,
    DuplicateKey,
    InvalidUtf8,
    InvariantViolation,
    LengthOverflow,
    StringTooLong,
    UnknownTagType,
)
from mcnbt.profile import JAVA, DecodeOptions, PlatformProfile
from mcnbt.tags import (
    TAG_CLASSES,
    Compound,
    Int,
    List,
    Long,
    String,
    Tag,
    TagType,
    _ArrayTag,
    _ScalarTag,
)
from mcnbt.varint import read_varint, read_varuint, write_varint, write_varuint

LOG = logging.getLogger(__name__)

_FIXED_PAYLOAD_SIZE = {
    TagType.BYTE: 1,
    TagType.SHORT: 2,
    TagType.INT: 4,
    TagType.LONG: 8,
    TagType.FLOAT: 4,
    TagType.DOUBLE: 8,
    TagType.BYTE_ARRAY: 4,
    TagType.STRING: 2,
    TagType.LIST: 5,
    TagType.COMPOUND: 1,
    TagType.INT_ARRAY: 4,
    TagType.LONG_ARRAY: 4,
}

# Smallest possible encoding of each payload when lengths are varints.
_VARINT_PAYLOAD_SIZE = dict(_FIXED_PAYLOAD_SIZE)
_VARINT_PAYLOAD_SIZE.update({
    TagType.INT: 1,
    TagType.LONG: 1,
    TagType.BYTE_ARRAY: 1,
    TagType.STRING: 1,
    TagType.LIST: 2,
    TagType.INT_ARRAY: 1,
    TagType.LONG_ARRAY: 1,
})

_ARRAY_ELEMENT_SIZE = {
    TagType.BYTE_ARRAY: 1,
    TagType.INT_ARRAY: 4,
    TagType.LONG_ARRAY: 8,
}


class _CompoundFrame:
    def __init__(self):
        self.entries: Dict[str, Tag] = {}
        self.pending_name: Optional[str] = None

    def add(self, tag: Tag) -> None:
        self.entries[self.pending_name] = tag
        self.pending_name = None

    def finish(self) -> Compound:
        return Compound(self.entries)


class _ListFrame:
    def __init__(self, element_type: TagType, count: int):
        self.element_type = element_type
        self.remaining = count
        self.items: ListType[Tag] = []

    def add(self, tag: Tag) -> None:
        self.items.append(tag)

    def finish(self) -> List:
        return List(self.element_type, self.items)


_Frame = Union[_CompoundFrame, _ListFrame]


class TagDecoder:
    """Decodes tags from a ``ByteReader`` according to a profile."""

    def __init__(self, reader: ByteReader, profile: PlatformProfile = JAVA,
                 options: Optional[DecodeOptions] = None):
        if reader.byte_order != profile.byte_order:
            raise ValueError(
                f"Reader byte order {reader.byte_order!r} does not match profile {profile.name!r}"
            )
        self.reader = reader
        self.profile = profile
        self.options = options or DecodeOptions()
        self._min_size = _VARINT_PAYLOAD_SIZE if profile.varint_lengths else _FIXED_PAYLOAD_SIZE

    # ── primitives ───────────────────────────────────────────

    def read_type_id(self) -> TagType:
        offset = self.reader.position
        type_id = self.reader.read_ubyte()
        try:
            return TagType(type_id)
        except ValueError:
            raise UnknownTagType(type_id, offset) from None

    def read_string(self) -> str:
        offset = self.reader.position
        if self.profile.varint_lengths:
            length = read_varuint(self.reader)
        else:
            length = self.reader.read_fixed("H")
        if length > self.reader.remaining:
            raise StringTooLong(
                f"String length {length} exceeds the {self.reader.remaining} bytes remaining",
                offset,
            )
        start = self.reader.position
        raw = self.reader.read_bytes(length)
        try:
            if self.profile.modified_utf8:
                return decode_modified_utf8(raw)
            return raw.decode("utf-8")
        except (UnicodeDecodeError, ValueError, IndexError) as e:
            raise InvalidUtf8(f"Invalid string bytes: {e}", start) from None

    def read_count(self, element_size: int) -> int:
        """Read a list/array count and check it against the remaining input."""
        offset = self.reader.position
        if self.profile.varint_lengths:
            count = read_varint(self.reader)
        else:
            count = self.reader.read_fixed("i")
        if count < 0:
            raise LengthOverflow(f"Negative length {count}", offset)
        if count * element_size > self.reader.remaining:
            raise LengthOverflow(
                f"Length {count} needs at least {count * element_size} bytes, "
                f"only {self.reader.remaining} remaining",
                offset,
            )
        return count

    def read_int(self) -> int:
        if self.profile.varint_lengths:
            return read_varint(self.reader, 32)
        return self.reader.read_fixed("i")

    def read_long(self) -> int:
        if self.profile.varint_lengths:
            return read_varint(self.reader, 64)
        return self.reader.read_fixed("q")

    # ── tags ─────────────────────────────────────────────────

    def read_root(self) -> Tuple[str, Tag]:
        """Read the root tag: its type id, its name (if the profile has one), its payload."""
        offset = self.reader.position
        type_id = self.read_type_id()
        if type_id == TagType.END:
            raise UnknownTagType(type_id, offset, "Root tag cannot be TAG_End")
        name = self.read_string() if self.profile.named_root else ""
        return name, self.read_payload(type_id)

    def read_payload(self, type_id: TagType) -> Tag:
        """Read one unnamed payload of ``type_id``, including all nested children."""
        opened = self._open(type_id, 1)
        if isinstance(opened, Tag):
            return opened
        stack: ListType[_Frame] = [opened]
        while True:
            frame = stack[-1]
            child_type = self._next_child(frame)
            if child_type is None:
                stack.pop()
                tag = frame.finish()
                if not stack:
                    return tag
                stack[-1].add(tag)
                continue
            child = self._open(child_type, len(stack) + 1)
            if isinstance(child, Tag):
                frame.add(child)
            else:
                stack.append(child)

    def _next_child(self, frame: _Frame) -> Optional[TagType]:
        """Type of the next child of ``frame``, or None once it is complete."""
        if isinstance(frame, _ListFrame):
            if frame.remaining == 0:
                return None
            frame.remaining -= 1
            return frame.element_type
        offset = self.reader.position
        child_type = self.read_type_id()
        if child_type == TagType.END:
            return None
        name = self.read_string()
        if name in frame.entries:
            raise DuplicateKey(name, offset)
        frame.pending_name = name
        return child_type

    def _open(self, type_id: TagType, depth: int) -> Union[Tag, _Frame]:
        """Read a leaf payload, or the header of a container at ``depth``."""
        if type_id in (TagType.LIST, TagType.COMPOUND) and depth > self.options.max_depth:
            raise DepthExceeded(
                f"Nesting deeper than {self.options.max_depth} containers", self.reader.position
            )

        if type_id == TagType.COMPOUND:
            return _CompoundFrame()
        if type_id == TagType.LIST:
            offset = self.reader.position
            element_type = self.read_type_id()
            count = self.read_count(self._min_size.get(element_type, 0))
            if element_type == TagType.END and count > 0:
                raise UnknownTagType(element_type, offset, f"TAG_List of TAG_End with {count} items")
            if count == 0 and element_type != TagType.END and not self.options.lenient_empty_lists:
                raise UnknownTagType(
                    element_type, offset,
                    f"Empty TAG_List declares element type {element_type.tag_name}",
                )
            return _ListFrame(element_type, count)

        if type_id == TagType.END:
            raise UnknownTagType(type_id, self.reader.position, "TAG_End has no payload")
        cls = TAG_CLASSES[type_id]
        if type_id == TagType.STRING:
            return String(self.read_string())
        if type_id == TagType.INT:
            return Int(self.read_int())
        if type_id == TagType.LONG:
            return Long(self.read_long())
        if issubclass(cls, _ScalarTag):
            return cls(self.reader.read_fixed(cls.kind))
        return self._read_array(cls)

    def _read_array(self, cls) -> _ArrayTag:
        if not self.profile.varint_lengths:
            count = self.read_count(_ARRAY_ELEMENT_SIZE[cls.type_id])
            return cls(self.reader.read_array(cls.kind, count))
        count = self.read_count(1)
        if cls.type_id == TagType.BYTE_ARRAY:
            return cls(self.reader.read_array("b", count))
        read = self.read_long if cls.type_id == TagType.LONG_ARRAY else self.read_int
        return cls([read() for _ in range(count)])


class TagEncoder:
    """Encodes tags to a ``ByteWriter`` according to a profile."""

    def __init__(self, writer: ByteWriter, profile: PlatformProfile = JAVA):
        if writer.byte_order != profile.byte_order:
            raise ValueError(
                f"Writer byte order {writer.byte_order!r} does not match profile {profile.name!r}"
            )
        self.writer = writer
        self.profile = profile

    def write_string(self, value: str) -> None:
        if not isinstance(value, str):
            raise InvariantViolation(f"Expected str, got {type(value).__name__}")
        try:
            raw = encode_modified_utf8(value) if self.profile.modified_utf8 else value.encode("utf-8")
        except (UnicodeEncodeError, ValueError) as e:
            raise InvariantViolation(f"Cannot encode string {value!r}: {e}") from None
        if self.profile.varint_lengths:
            if len(raw) > 0xFFFFFFFF:
                raise InvariantViolation(f"String of {len(raw)} bytes exceeds the varint length field")
            write_varuint(self.writer, len(raw))
        else:
            if len(raw) > 0xFFFF:
                raise InvariantViolation(f"String of {len(raw)} bytes exceeds the u16 length field")
            self.writer.write_fixed("H", len(raw))
        self.writer.write_bytes(raw)

    def write_count(self, count: int) -> None:
        if self.profile.varint_lengths:
            write_varint(self.writer, count)
        else:
            self.writer.write_fixed("i", count)

    def write_int(self, value: int) -> None:
        if self.profile.varint_lengths:
            write_varint(self.writer, value, 32)
        else:
            self.writer.write_fixed("i", value)

    def write_long(self, value: int) -> None:
        if self.profile.varint_lengths:
            write_varint(self.writer, value, 64)
        else:
            self.writer.write_fixed("q", value)

    def write_root(self, name: str, tag: Tag) -> None:
        if not isinstance(tag, Tag):
            raise InvariantViolation(f"Root must be a tag, got {type(tag).__name__}")
        self.writer.write_ubyte(tag.type_id)
        if self.profile.named_root:
            self.write_string(name)
        self.write_payload(tag)

    def write_payload(self, tag: Tag) -> None:
        """Write the payload of ``tag``, recursing into containers in stored order."""
        if isinstance(tag, Compound):
            for name, child in tag.entries.items():
                if not isinstance(name, str):
                    raise InvariantViolation(f"Compound keys must be str, got {name!r}")
                if not isinstance(child, Tag):
                    raise InvariantViolation(f"Compound entry {name!r} is not a tag: {child!r}")
                self.writer.write_ubyte(child.type_id)
                self.write_string(name)
                self.write_payload(child)
            self.writer.write_ubyte(TagType.END)
        elif isinstance(tag, List):
            if tag.element_type == TagType.END and tag.items:
                raise InvariantViolation("Non-empty TAG_List cannot have element type TAG_End")
            element_cls = TAG_CLASSES.get(tag.element_type)
            for i, item in enumerate(tag.items):
                if type(item) is not element_cls:
                    raise InvariantViolation(
                        f"TAG_List of {tag.element_type.tag_name} has a "
                        f"{type(item).__name__} at index {i}"
                    )
            self.writer.write_ubyte(tag.element_type)
            self.write_count(len(tag.items))
            for item in tag.items:
                self.write_payload(item)
        elif isinstance(tag, String):
            self.write_string(tag.value)
        elif isinstance(tag, Int):
            self.write_int(tag.value)
        elif isinstance(tag, Long):
            self.write_long(tag.value)
        elif isinstance(tag, _ScalarTag):
            self.writer.write_fixed(tag.kind, tag.value)
        elif isinstance(tag, _ArrayTag):
            self.write_count(len(tag.value))
            if not self.profile.varint_lengths or tag.type_id == TagType.BYTE_ARRAY:
                self.writer.write_array(tag.kind, tag.value)
            else:
                write = self.write_long if tag.type_id == TagType.LONG_ARRAY else self.write_int
                for value in tag.value.tolist():
                    write(value)
        else:
            raise InvariantViolation(f"Not a tag: {tag!r}")


def decode_tag(
    data: BytesLike,
    profile: PlatformProfile = JAVA,
    options: Optional[DecodeOptions] = None,
    strict: bool = False,
) -> Tuple[str, Tag, int]:
    """
    Decode one root tag from uncompressed bytes.

    Returns:
        Tuple of (root name, root tag, number of bytes consumed)

    Raises:
        DecodeError: If the bytes are not a valid tag under ``profile``;
        with ``strict``, also if bytes are left over after the root tag.
    """
    reader = ByteReader(data, profile.byte_order)
    name, tag = TagDecoder(reader, profile, options).read_root()
    if strict and not reader.at_end():
        raise LengthOverflow(f"{reader.remaining} trailing bytes after root tag", reader.position)
    LOG.debug("Decoded %s %r (%d bytes, profile %s)", tag.tag_name, name, reader.position, profile.name)
    return name, tag, reader.position


def encode_tag(name: str, tag: Tag, profile: PlatformProfile = JAVA) -> bytes:
    """Encode a root tag (with ``name`` if the profile writes root names) to bytes."""
    writer = ByteWriter(byte_order=profile.byte_order)
    TagEncoder(writer, profile).write_root(name, tag)
    LOG.debug("Encoded %s %r (%d bytes, profile %s)", tag.tag_name, name, writer.position, profile.name)
    return writer.getvalue()
