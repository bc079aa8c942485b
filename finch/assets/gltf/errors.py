# finch/assets/gltf/errors.py
from typing import Optional


class GltfLoadError(ValueError):
    """Base class for every failure while decoding a glTF asset."""


class UnsupportedAssetError(GltfLoadError):
    """The document uses a version or feature finch does not decode."""


class BufferLoadError(GltfLoadError):
    """A declared buffer could not be read or is shorter than declared."""

    def __init__(self, index: int, uri: Optional[str], reason: str) -> None:
        self.index = index
        self.uri = uri
        super().__init__(f"buffer {index} ({uri!r}): {reason}")


class UnresolvedReferenceError(GltfLoadError):
    """An index into one of the document's arrays is out of range."""

    def __init__(self, kind: str, index: object, size: int, via: str = "") -> None:
        self.kind = kind
        self.index = index
        self.size = size
        prefix = f"{via} -> " if via else ""
        super().__init__(
            f"{prefix}{kind} {index} does not exist ({size} declared)"
        )


class MissingAttributeError(GltfLoadError):
    """A primitive lacks a required vertex attribute."""

    def __init__(self, mesh: int, primitive: int, attribute: str) -> None:
        self.mesh = mesh
        self.primitive = primitive
        self.attribute = attribute
        super().__init__(
            f"mesh {mesh} primitive {primitive}: "
            f"required attribute {attribute} is missing"
        )


class AccessorFormatError(GltfLoadError):
    """An accessor's component or element type is not the expected one."""


class TruncatedRangeError(GltfLoadError):
    """A read would run past the end of its buffer view or buffer."""


class IndexOutOfRangeError(GltfLoadError):
    """An index value points past the vertices of its primitive."""
