"""
Root documents: a decoded root tag together with how it was stored.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from mcnbt.codec import decode_tag, encode_tag
from mcnbt.compression import Compression, compress, decompress
from mcnbt.cursor import BytesLike
from mcnbt.errors import IoError
from mcnbt.profile import JAVA, DecodeOptions, PlatformProfile
from mcnbt.tags import Tag

LOG = logging.getLogger(__name__)


@dataclass
class RootDocument:
    """
    A root tag, its name, and the profile/compression it was read with.

    Re-encoding with the same profile reproduces the decoded bytes; the
    compressed framing is only guaranteed to decompress to the same content.

    Fields:
    - name: root name ("" for profiles without a root name)
    - root: the root tag (normally a Compound)
    - profile: wire variant used to decode, and used by default to encode
    - compression: framing the input had, reapplied by default on encode
    - size: decompressed bytes consumed by the root tag when decoded
    """
    name: str
    root: Tag
    profile: PlatformProfile = JAVA
    compression: Compression = Compression.NONE
    size: Optional[int] = None

    def __eq__(self, other):
        if not isinstance(other, RootDocument):
            return NotImplemented
        return (self.name, self.root, self.profile) == (other.name, other.root, other.profile)

    @classmethod
    def from_bytes(
        cls,
        data: BytesLike,
        profile: PlatformProfile = JAVA,
        compression: Compression = Compression.AUTO,
        options: Optional[DecodeOptions] = None,
        strict: bool = False,
    ) -> "RootDocument":
        raw, used = decompress(bytes(data), compression)
        name, root, size = decode_tag(raw, profile, options, strict=strict)
        return cls(name=name, root=root, profile=profile, compression=used, size=size)

    def to_bytes(self, compression: Optional[Compression] = None,
                 profile: Optional[PlatformProfile] = None) -> bytes:
        """
        Encode the document.

        Args:
            compression: Framing to apply (defaults to the document's own)
            profile: Wire variant (defaults to the document's own)
        """
        data = encode_tag(self.name, self.root, profile or self.profile)
        return compress(data, self.compression if compression is None else compression)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        profile: PlatformProfile = JAVA,
        compression: Compression = Compression.AUTO,
        options: Optional[DecodeOptions] = None,
    ) -> "RootDocument":
        """Read and decode an NBT file."""
        path = Path(path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise IoError(f"Failed to read {path}: {e}") from e
        LOG.debug("Loading %s (%d bytes, profile %s)", path, len(data), profile.name)
        return cls.from_bytes(data, profile, compression, options)

    def save(self, path: Union[str, Path], compression: Optional[Compression] = None) -> Path:
        """Encode and write the document, returning the written path."""
        path = Path(path)
        data = self.to_bytes(compression)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise IoError(f"Failed to write {path}: {e}") from e
        LOG.debug("Saved %s (%d bytes, profile %s)", path, len(data), self.profile.name)
        return path
