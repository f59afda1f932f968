"""
In-memory tag tree.

Each NBT type is a class; the closed set of wire ids lives in ``TagType``.
``End`` only exists on the wire (as ``TagType.END``) and never appears in a
tree. Containers own their children; trees never share nodes.

Example:
    >>> level = Compound({
    ...     "Name": String("Steve"),
    ...     "Health": Float(20.0),
    ...     "Pos": List(TagType.DOUBLE, [Double(0.5), Double(64.0), Double(0.5)]),
    ...     "Heights": IntArray([64, 65, 63]),
    ... })
    >>> level.child("Pos").length()
    3
"""

import struct
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Dict, Iterable, Iterator, List as ListType, Tuple, Type, TypeVar, Union

import numpy as np

from mcnbt.errors import InvariantViolation, TypeMismatch


class TagType(IntEnum):
    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12

    @property
    def tag_name(self) -> str:
        return "TAG_" + "_".join(part.capitalize() for part in self.name.split("_"))


PathKey = Union[str, int]
TagT = TypeVar("TagT", bound="Tag")


class Tag(ABC):
    """Base class for every tag value."""

    type_id: ClassVar[TagType]

    @property
    def tag_name(self) -> str:
        return self.type_id.tag_name

    def child(self, key: PathKey) -> "Tag":
        """Child by name (Compound) or index (List)."""
        raise TypeMismatch(f"{self.tag_name} has no children")

    def length(self) -> int:
        """Number of elements in a List, array or Compound."""
        raise TypeMismatch(f"{self.tag_name} has no length")

    def expect(self, cls: Type[TagT]) -> TagT:
        if not isinstance(self, cls):
            raise TypeMismatch(f"Expected {cls.type_id.tag_name}, got {self.tag_name}")
        return self

    def scalar(self, expected: Union[TagType, Type["Tag"]]) -> Any:
        """Python value of a scalar or String tag of the expected type."""
        expected_type = as_tag_type(expected)
        if self.type_id != expected_type or not isinstance(self, (_ScalarTag, String)):
            raise TypeMismatch(f"Expected {expected_type.tag_name}, got {self.tag_name}")
        return self.value

    def as_int(self) -> int:
        if not isinstance(self, (Byte, Short, Int, Long)):
            raise TypeMismatch(f"Expected an integer tag, got {self.tag_name}")
        return self.value

    def as_float(self) -> float:
        if not isinstance(self, (Float, Double)):
            raise TypeMismatch(f"Expected a floating point tag, got {self.tag_name}")
        return self.value

    def as_str(self) -> str:
        return self.scalar(TagType.STRING)

    @abstractmethod
    def to_python(self) -> Any:
        """Plain Python value: ints, floats, strs, lists and dicts."""


# ── Scalars ──────────────────────────────────────────────────

@dataclass
class _ScalarTag(Tag):
    value: Any

    # struct format character of the fixed-width payload
    kind: ClassVar[str]

    def to_python(self) -> Any:
        return self.value


@dataclass
class Byte(_ScalarTag):
    value: int
    type_id: ClassVar[TagType] = TagType.BYTE
    kind: ClassVar[str] = "b"


@dataclass
class Short(_ScalarTag):
    value: int
    type_id: ClassVar[TagType] = TagType.SHORT
    kind: ClassVar[str] = "h"


@dataclass
class Int(_ScalarTag):
    value: int
    type_id: ClassVar[TagType] = TagType.INT
    kind: ClassVar[str] = "i"


@dataclass
class Long(_ScalarTag):
    value: int
    type_id: ClassVar[TagType] = TagType.LONG
    kind: ClassVar[str] = "q"


@dataclass(eq=False)
class _FloatTag(_ScalarTag):
    """Floating point scalar. Equal when the wire bit patterns match, so NaN
    equals its own decoded copy and 0.0 differs from -0.0."""

    def _bits(self) -> bytes:
        return struct.pack("<" + self.kind, self.value)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._bits() == other._bits()


@dataclass(eq=False)
class Float(_FloatTag):
    """32-bit float. The value is rounded to float32 precision on creation."""
    value: float
    type_id: ClassVar[TagType] = TagType.FLOAT
    kind: ClassVar[str] = "f"

    def __post_init__(self):
        try:
            self.value = struct.unpack("<f", struct.pack("<f", self.value))[0]
        except (OverflowError, struct.error) as e:
            raise InvariantViolation(f"Invalid float32 value {self.value!r}: {e}") from None


@dataclass(eq=False)
class Double(_FloatTag):
    value: float
    type_id: ClassVar[TagType] = TagType.DOUBLE
    kind: ClassVar[str] = "d"


@dataclass
class String(Tag):
    value: str
    type_id: ClassVar[TagType] = TagType.STRING

    def to_python(self) -> str:
        return self.value


# ── Arrays ───────────────────────────────────────────────────

def _coerce_array(value: Any, dtype: np.dtype) -> np.ndarray:
    if isinstance(value, (bytes, bytearray, memoryview)) and dtype == np.int8:
        arr = np.frombuffer(value, dtype=np.int8).copy()
    else:
        arr = np.asarray(value)
        if arr.ndim != 1:
            raise InvariantViolation(f"Array tags must be 1-D, got shape {arr.shape}")
        if arr.size == 0:
            arr = np.zeros(0, dtype=dtype)
        else:
            if arr.dtype.kind not in "iub":
                raise InvariantViolation(f"Array elements must be integers, got dtype {arr.dtype}")
            info = np.iinfo(dtype)
            if int(arr.min()) < info.min or int(arr.max()) > info.max:
                raise InvariantViolation(f"Array elements out of {np.dtype(dtype).name} range")
            arr = arr.astype(dtype)
    arr.flags.writeable = False
    return arr


class _ArrayTag(Tag, Sequence):
    dtype: ClassVar[np.dtype]
    kind: ClassVar[str]

    def __init__(self, value: Any = ()):
        self.value = _coerce_array(value, self.dtype)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return np.array_equal(self.value, other.value)

    __hash__ = None

    def __repr__(self):
        return f"{type(self).__name__}({self.value.tolist()!r})"

    def __len__(self):
        return len(self.value)

    def __getitem__(self, index):
        return self.value[index]

    def length(self) -> int:
        return len(self.value)

    def to_python(self) -> ListType[int]:
        return self.value.tolist()


class ByteArray(_ArrayTag):
    type_id: ClassVar[TagType] = TagType.BYTE_ARRAY
    dtype = np.dtype(np.int8)
    kind = "b"


class IntArray(_ArrayTag):
    type_id: ClassVar[TagType] = TagType.INT_ARRAY
    dtype = np.dtype(np.int32)
    kind = "i"


class LongArray(_ArrayTag):
    type_id: ClassVar[TagType] = TagType.LONG_ARRAY
    dtype = np.dtype(np.int64)
    kind = "q"


# ── Containers ───────────────────────────────────────────────

class List(Tag, Sequence):
    """
    Homogeneous list. Every item should be an instance of ``element_type``;
    this is checked when the list is encoded, not here.
    """

    type_id: ClassVar[TagType] = TagType.LIST

    def __init__(self, element_type: Union[TagType, int, Type[Tag]] = TagType.END,
                 items: Iterable[Tag] = ()):
        self.element_type = as_tag_type(element_type)
        self.items: Tuple[Tag, ...] = tuple(items)

    @classmethod
    def of(cls, *items: Tag) -> "List":
        """List whose element type is taken from the first item."""
        if not items:
            return cls()
        return cls(items[0].type_id, items)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self.element_type == other.element_type and self.items == other.items

    __hash__ = None

    def __repr__(self):
        return f"List({self.element_type.name}, {list(self.items)!r})"

    def __len__(self):
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def child(self, key: PathKey) -> Tag:
        if not isinstance(key, int):
            raise TypeMismatch(f"TAG_List children are indexed by int, got {key!r}")
        return self.items[key]

    def length(self) -> int:
        return len(self.items)

    def to_python(self) -> ListType[Any]:
        return [item.to_python() for item in self.items]


class Compound(Tag, Mapping):
    """Ordered mapping of names to tags. Equality includes member order."""

    type_id: ClassVar[TagType] = TagType.COMPOUND

    def __init__(self, entries: Union[Mapping, Iterable[Tuple[str, Tag]]] = (), **kwargs: Tag):
        self.entries: Dict[str, Tag] = dict(entries)
        self.entries.update(kwargs)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return list(self.entries.items()) == list(other.entries.items())

    __hash__ = None

    def __repr__(self):
        return f"Compound({self.entries!r})"

    def __getitem__(self, name):
        return self.entries[name]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def child(self, key: PathKey) -> Tag:
        if not isinstance(key, str):
            raise TypeMismatch(f"TAG_Compound children are named by str, got {key!r}")
        return self.entries[key]

    def length(self) -> int:
        return len(self.entries)

    def to_python(self) -> Dict[str, Any]:
        return {name: tag.to_python() for name, tag in self.entries.items()}


TAG_CLASSES: Dict[TagType, Type[Tag]] = {
    cls.type_id: cls
    for cls in (Byte, Short, Int, Long, Float, Double, ByteArray, String,
                List, Compound, IntArray, LongArray)
}


def as_tag_type(value: Union[TagType, int, Type[Tag]]) -> TagType:
    if isinstance(value, type) and issubclass(value, Tag):
        return value.type_id
    try:
        return TagType(value)
    except ValueError:
        raise ValueError(f"Not a tag type: {value!r}") from None


# ── Traversal ────────────────────────────────────────────────

def walk(tag: Tag) -> Iterator[Tuple[Tuple[PathKey, ...], Tag]]:
    """
    Depth-first, pre-order traversal.

    Yields ``(path, tag)`` where path is the tuple of compound names and list
    indexes leading from ``tag`` to the yielded node (``()`` for ``tag`` itself).
    """
    stack = [((), tag)]
    while stack:
        path, node = stack.pop()
        yield path, node
        if isinstance(node, Compound):
            children = [(path + (name,), child) for name, child in node.entries.items()]
        elif isinstance(node, List):
            children = [(path + (i,), child) for i, child in enumerate(node.items)]
        else:
            continue
        stack.extend(reversed(children))


def from_python(value: Any) -> Tag:
    """
    Build a tag tree from plain Python values.

    bool and int become Byte/Int/Long by range, float becomes Double, str
    becomes String, bytes becomes ByteArray, dict becomes Compound and
    list/tuple becomes a List of the first element's type. Existing tags
    pass through unchanged.
    """
    if isinstance(value, Tag):
        return value
    if isinstance(value, bool):
        return Byte(int(value))
    if isinstance(value, int):
        if -(2**31) <= value < 2**31:
            return Int(value)
        if -(2**63) <= value < 2**63:
            return Long(value)
        raise InvariantViolation(f"Integer {value} outside int64 range")
    if isinstance(value, float):
        return Double(value)
    if isinstance(value, str):
        return String(value)
    if isinstance(value, (bytes, bytearray)):
        return ByteArray(value)
    if isinstance(value, Mapping):
        entries = {}
        for name, item in value.items():
            if not isinstance(name, str):
                raise InvariantViolation(f"Compound keys must be str, got {name!r}")
            entries[name] = from_python(item)
        return Compound(entries)
    if isinstance(value, (list, tuple)):
        return List.of(*(from_python(item) for item in value))
    raise InvariantViolation(f"Cannot convert {type(value).__name__} to a tag")


def format_tree(tag: Tag, name: str = "", indent: str = "  ") -> str:
    """Indented, one-tag-per-line rendering of a tree."""
    lines = []
    for path, node in walk(tag):
        label = path[-1] if path else name
        if isinstance(label, int):
            label = f"[{label}]"
        else:
            label = f'"{label}"'
        prefix = indent * len(path) + f"{node.tag_name}({label})"
        if isinstance(node, Compound):
            lines.append(f"{prefix}: {len(node)} entries")
        elif isinstance(node, List):
            lines.append(f"{prefix}: {len(node)} entries of {node.element_type.tag_name}")
        elif isinstance(node, _ArrayTag):
            lines.append(f"{prefix}: [{len(node)} values]")
        else:
            lines.append(f"{prefix}: {node.value!r}")
    return "\n".join(lines)
