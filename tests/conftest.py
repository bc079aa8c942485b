import json
import struct
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from finch.camera import Camera
from finch.types import Vector3

FLOAT = 5126
UNSIGNED_SHORT = 5123

TRIANGLE_POSITIONS = [(0.0, 0.5, 0.0), (-0.5, -0.5, 0.0), (0.5, -0.5, 0.0)]
TRIANGLE_UVS = [(0.5, 0.0), (0.0, 1.0), (1.0, 1.0)]
TRIANGLE_INDICES = [0, 1, 2]


def pack_floats(rows: Sequence[Sequence[float]]) -> bytes:
    return b"".join(struct.pack(f"<{len(r)}f", *r) for r in rows)


def pack_u16(values: Sequence[int]) -> bytes:
    return struct.pack(f"<{len(values)}H", *values)


def build_document(
    positions: Sequence[Tuple[float, float, float]],
    uvs: Optional[Sequence[Tuple[float, float]]] = None,
    indices: Optional[Sequence[int]] = None,
    uri: str = "mesh.bin",
) -> Tuple[Dict[str, Any], bytes]:
    """
    Single-buffer document: one bufferView and one accessor per attribute,
    declared in the order positions, uvs, indices.
    """
    blob = b""
    views: List[Dict[str, Any]] = []
    accessors: List[Dict[str, Any]] = []
    attributes: Dict[str, int] = {}
    primitive: Dict[str, Any] = {"attributes": attributes}

    def add(data: bytes, component_type: int, count: int, kind: str) -> int:
        nonlocal blob
        views.append(
            {"buffer": 0, "byteOffset": len(blob), "byteLength": len(data)}
        )
        blob += data
        # keep the next view 4-byte aligned
        blob += b"\x00" * (-len(blob) % 4)
        accessors.append(
            {
                "bufferView": len(views) - 1,
                "componentType": component_type,
                "count": count,
                "type": kind,
            }
        )
        return len(accessors) - 1

    attributes["POSITION"] = add(
        pack_floats(positions), FLOAT, len(positions), "VEC3"
    )
    if uvs is not None:
        attributes["TEXCOORD_0"] = add(
            pack_floats(uvs), FLOAT, len(uvs), "VEC2"
        )
    if indices is not None:
        primitive["indices"] = add(
            pack_u16(indices), UNSIGNED_SHORT, len(indices), "SCALAR"
        )

    doc = {
        "asset": {"version": "2.0", "generator": "finch tests"},
        "buffers": [{"uri": uri, "byteLength": len(blob)}],
        "bufferViews": views,
        "accessors": accessors,
        "meshes": [{"name": "test", "primitives": [primitive]}],
    }
    return doc, blob


def write_asset(
    directory: Path,
    doc: Dict[str, Any],
    blob: bytes,
    name: str = "mesh.gltf",
) -> Path:
    for buffer in doc.get("buffers", []):
        uri = buffer.get("uri")
        if uri and not uri.startswith("data:"):
            (directory / uri).write_bytes(blob)

    path = directory / name
    path.write_text(json.dumps(doc))
    return path


@pytest.fixture
def triangle_asset(tmp_path) -> Path:
    """A one-triangle .gltf with POSITION, TEXCOORD_0 and indices."""
    doc, blob = build_document(
        TRIANGLE_POSITIONS, TRIANGLE_UVS, TRIANGLE_INDICES
    )
    return write_asset(tmp_path, doc, blob)


@pytest.fixture
def camera() -> Camera:
    return Camera(
        position=Vector3(0.0, 0.0, 2.0),
        forward=Vector3(0.0, 0.0, -1.0),
        up=Vector3(0.0, 1.0, 0.0),
        aspect_ratio=1.0,
        fov_vertical=45.0,
        znear=0.1,
        zfar=100.0,
    )
