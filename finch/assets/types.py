# finch/assets/types.py
from dataclasses import dataclass
from typing import List

import numpy as np

from finch.types import BoundingBox3D

# Interleaved vertex record: position, color, uv. 32 bytes, little-endian.
VERTEX_DTYPE = np.dtype(
    [
        ("position", "<f4", (3,)),
        ("color", "<f4", (3,)),
        ("uv", "<f4", (2,)),
    ]
)

INDEX_DTYPE = np.dtype("<u2")

DEFAULT_VERTEX_COLOR = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class VertexLayout:
    """Describes vertex attributes for VAO creation."""

    attributes: List[str]  # e.g. ["in_pos", "in_color", "in_uv"]
    format: str  # moderngl buffer format string e.g. "3f 3f 2f"
    stride_bytes: int  # e.g. 32


STANDARD_LAYOUT = VertexLayout(
    attributes=["in_pos", "in_color", "in_uv"],
    format="3f 3f 2f",
    stride_bytes=VERTEX_DTYPE.itemsize,
)


@dataclass(frozen=True)
class MeshData:
    """
    Decoded mesh, ready for GPU upload.

    `vertices` is a structured array of VERTEX_DTYPE records and `indices`
    a flat uint16 triangle list. Both arrays are read-only.
    """

    vertices: np.ndarray
    indices: np.ndarray
    vertex_layout: VertexLayout
    aabb: BoundingBox3D

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def vertex_bytes(self) -> bytes:
        return self.vertices.tobytes()

    def index_bytes(self) -> bytes:
        return self.indices.tobytes()


@dataclass(frozen=True)
class TextureData:
    """Raw texture data and metadata."""

    data: bytes
    width: int
    height: int
    components: int  # 3 (RGB) or 4 (RGBA)
