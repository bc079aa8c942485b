# finch/assets/gltf/document.py
"""
Typed view over a parsed glTF 2.0 JSON document.

Every top-level array is wrapped in an `Arena`: position in the declaration
is the reference key, and lookups are bounds-checked so that a dangling
reference surfaces as `UnresolvedReferenceError` instead of an IndexError
deep inside the decoder.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from finch.assets.gltf.errors import (
    GltfLoadError,
    UnresolvedReferenceError,
    UnsupportedAssetError,
)

SUPPORTED_VERSION = "2.0"

T = TypeVar("T")


class ComponentType:
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126


COMPONENT_SIZES: Dict[int, int] = {
    ComponentType.BYTE: 1,
    ComponentType.UNSIGNED_BYTE: 1,
    ComponentType.SHORT: 2,
    ComponentType.UNSIGNED_SHORT: 2,
    ComponentType.UNSIGNED_INT: 4,
    ComponentType.FLOAT: 4,
}

ELEMENT_ARITY: Dict[str, int] = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
}

MODE_TRIANGLES = 4


class Arena(Generic[T]):
    """Dense, index-addressed store for one kind of glTF entity."""

    def __init__(self, kind: str, items: List[T]) -> None:
        self.kind = kind
        self._items = items

    def get(self, index: Any, via: str = "") -> T:
        # bool is an int subclass; `true` is never a valid reference.
        if (
            not isinstance(index, int)
            or isinstance(index, bool)
            or not 0 <= index < len(self._items)
        ):
            raise UnresolvedReferenceError(
                self.kind, index, len(self._items), via
            )
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


@dataclass(frozen=True)
class Buffer:
    uri: Optional[str]
    byte_length: int


@dataclass(frozen=True)
class BufferView:
    buffer: int
    byte_length: int
    byte_offset: int = 0
    byte_stride: Optional[int] = None


@dataclass(frozen=True)
class Accessor:
    buffer_view: Optional[int]
    component_type: int
    count: int
    type: str
    byte_offset: int = 0
    sparse: bool = False

    @property
    def arity(self) -> int:
        return ELEMENT_ARITY[self.type]

    @property
    def element_size(self) -> int:
        return COMPONENT_SIZES[self.component_type] * self.arity


@dataclass(frozen=True)
class Primitive:
    attributes: Dict[str, int]
    indices: Optional[int] = None
    mode: int = MODE_TRIANGLES


@dataclass(frozen=True)
class MeshDescription:
    primitives: List[Primitive]
    name: Optional[str] = None


@dataclass
class GltfDocument:
    version: str
    buffers: Arena[Buffer]
    buffer_views: Arena[BufferView]
    accessors: Arena[Accessor]
    meshes: Arena[MeshDescription]
    generator: Optional[str] = None
    extensions_required: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> GltfDocument:
        if not isinstance(raw, dict):
            raise GltfLoadError("glTF document root must be a JSON object")

        asset = raw.get("asset")
        if not isinstance(asset, dict) or "version" not in asset:
            raise UnsupportedAssetError("document has no asset.version field")

        version = asset["version"]
        if version != SUPPORTED_VERSION:
            raise UnsupportedAssetError(
                f"asset.version is {version!r}, "
                f"only {SUPPORTED_VERSION!r} is supported"
            )

        required = raw.get("extensionsRequired", [])
        if not isinstance(required, list):
            raise GltfLoadError("extensionsRequired must be a JSON array")

        return cls(
            version=version,
            generator=asset.get("generator"),
            extensions_required=list(required),
            buffers=_arena(raw, "buffers", "buffer", _parse_buffer),
            buffer_views=_arena(
                raw, "bufferViews", "bufferView", _parse_buffer_view
            ),
            accessors=_arena(raw, "accessors", "accessor", _parse_accessor),
            meshes=_arena(raw, "meshes", "mesh", _parse_mesh),
        )

    @classmethod
    def from_path(cls, path: Path) -> GltfDocument:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except OSError as e:
            raise GltfLoadError(f"cannot read {path}: {e}") from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise GltfLoadError(f"{path} is not valid JSON: {e}") from e

        return cls.from_json(raw)


def _arena(
    raw: Dict[str, Any],
    key: str,
    kind: str,
    parse: Callable[[Dict[str, Any]], T],
) -> Arena[T]:
    entries = raw.get(key, [])
    if not isinstance(entries, list):
        raise GltfLoadError(f"{key} must be a JSON array")

    items = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise GltfLoadError(f"{kind} {i} is malformed: not a JSON object")
        try:
            items.append(parse(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise GltfLoadError(
                f"{kind} {i} is malformed: missing or bad {e}"
            ) from e
    return Arena(kind, items)


def _byte_length(entry: Dict[str, Any]) -> int:
    length = int(entry["byteLength"])
    if length < 0:
        raise ValueError(f"byteLength {length}")
    return length


def _parse_buffer(entry: Dict[str, Any]) -> Buffer:
    return Buffer(uri=entry.get("uri"), byte_length=_byte_length(entry))


def _parse_buffer_view(entry: Dict[str, Any]) -> BufferView:
    stride = entry.get("byteStride")
    return BufferView(
        buffer=entry["buffer"],
        byte_length=_byte_length(entry),
        byte_offset=int(entry.get("byteOffset", 0)),
        byte_stride=int(stride) if stride is not None else None,
    )


def _parse_accessor(entry: Dict[str, Any]) -> Accessor:
    return Accessor(
        buffer_view=entry.get("bufferView"),
        component_type=int(entry["componentType"]),
        count=int(entry["count"]),
        type=str(entry.get("type", "SCALAR")),
        byte_offset=int(entry.get("byteOffset", 0)),
        sparse="sparse" in entry,
    )


def _parse_mesh(entry: Dict[str, Any]) -> MeshDescription:
    primitives = [
        Primitive(
            attributes=dict(p["attributes"]),
            indices=p.get("indices"),
            mode=int(p.get("mode", MODE_TRIANGLES)),
        )
        for p in entry["primitives"]
    ]
    return MeshDescription(primitives=primitives, name=entry.get("name"))
