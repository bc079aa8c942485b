# finch/assets/__init__.py
from finch.assets.importers.gltf import GltfImporter, load_gltf
from finch.assets.types import (
    STANDARD_LAYOUT,
    VERTEX_DTYPE,
    MeshData,
    TextureData,
    VertexLayout,
)

__all__ = [
    "GltfImporter",
    "load_gltf",
    "MeshData",
    "TextureData",
    "VertexLayout",
    "STANDARD_LAYOUT",
    "VERTEX_DTYPE",
]
