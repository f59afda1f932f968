"""
Platform profiles: the wire parameters that distinguish NBT variants.

A profile is an immutable value passed explicitly into every codec call.
"""

from dataclasses import dataclass, replace
from typing import Dict


@dataclass(frozen=True)
class PlatformProfile:
    """
    Wire-format parameters for one NBT variant.

    Fields:
    - byte_order: "big" (Java) or "little" (Bedrock)
    - varint_lengths: string lengths, array/list counts, Int and Long
      payloads use variable-length integers (Bedrock network)
    - named_root: the root tag is followed by a name
    - modified_utf8: strings use Java's Modified UTF-8 instead of UTF-8
    """
    name: str
    byte_order: str = "big"
    varint_lengths: bool = False
    named_root: bool = True
    modified_utf8: bool = False

    def __post_init__(self):
        if self.byte_order not in ("big", "little"):
            raise ValueError(f"Invalid byte order: {self.byte_order!r}")

    def replace(self, **changes) -> "PlatformProfile":
        return replace(self, **changes)


@dataclass(frozen=True)
class DecodeOptions:
    """
    Limits and leniency switches for decoding.

    max_depth counts nested containers; the root container is depth 1.
    lenient_empty_lists accepts an empty list that declares a non-End
    element type (the declared type is kept for re-encoding).
    """
    max_depth: int = 512
    lenient_empty_lists: bool = True

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")


JAVA = PlatformProfile(name="java")
JAVA_MUTF8 = PlatformProfile(name="java-mutf8", modified_utf8=True)
JAVA_NETWORK = PlatformProfile(name="java-network", named_root=False)
BEDROCK = PlatformProfile(name="bedrock", byte_order="little")
BEDROCK_NETWORK = PlatformProfile(
    name="bedrock-network",
    byte_order="little",
    varint_lengths=True,
    named_root=False,
)

PROFILES: Dict[str, PlatformProfile] = {
    p.name: p for p in (JAVA, JAVA_MUTF8, JAVA_NETWORK, BEDROCK, BEDROCK_NETWORK)
}


def get_profile(name: str) -> PlatformProfile:
    """Look up a built-in profile by name ("java", "bedrock_network", ...)."""
    key = name.strip().lower().replace("_", "-")
    try:
        return PROFILES[key]
    except KeyError:
        raise ValueError(
            f"Unknown profile: {name!r}, expected one of {', '.join(sorted(PROFILES))}"
        ) from None
