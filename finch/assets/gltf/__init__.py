# finch/assets/gltf/__init__.py
from finch.assets.gltf.errors import (
    AccessorFormatError,
    BufferLoadError,
    GltfLoadError,
    IndexOutOfRangeError,
    MissingAttributeError,
    TruncatedRangeError,
    UnresolvedReferenceError,
    UnsupportedAssetError,
)

__all__ = [
    "GltfLoadError",
    "UnsupportedAssetError",
    "BufferLoadError",
    "UnresolvedReferenceError",
    "MissingAttributeError",
    "AccessorFormatError",
    "TruncatedRangeError",
    "IndexOutOfRangeError",
]
