# finch/assets/gltf/accessors.py
"""
Accessor resolution and typed decoding.

An accessor is resolved by following accessor -> bufferView -> buffer. The
result is a byte range plus an element layout; the decode_* helpers then
reinterpret that range as little-endian components, regardless of the host
byte order.
"""

from dataclasses import dataclass

import numpy as np

from finch.assets.gltf.buffers import BufferStore
from finch.assets.gltf.document import (
    COMPONENT_SIZES,
    ELEMENT_ARITY,
    Accessor,
    ComponentType,
    GltfDocument,
)
from finch.assets.gltf.errors import (
    AccessorFormatError,
    TruncatedRangeError,
    UnsupportedAssetError,
)

_COMPONENT_DTYPES = {
    ComponentType.FLOAT: np.dtype("<f4"),
    ComponentType.UNSIGNED_SHORT: np.dtype("<u2"),
}


@dataclass(frozen=True)
class ResolvedAccessor:
    index: int
    accessor: Accessor
    data: memoryview  # the owning buffer view's bytes
    stride: int

    @property
    def label(self) -> str:
        return f"accessor {self.index}"

    @property
    def count(self) -> int:
        return self.accessor.count


def resolve_accessor(
    doc: GltfDocument, store: BufferStore, index: int, via: str = ""
) -> ResolvedAccessor:
    accessor = doc.accessors.get(index, via)
    label = f"{via} -> accessor {index}" if via else f"accessor {index}"

    if accessor.sparse:
        raise UnsupportedAssetError(
            f"{label}: sparse accessors are not supported"
        )
    if accessor.buffer_view is None:
        raise UnsupportedAssetError(f"{label}: accessor has no bufferView")
    if accessor.type not in ELEMENT_ARITY:
        raise AccessorFormatError(
            f"{label}: unknown element type {accessor.type!r}"
        )
    if accessor.component_type not in COMPONENT_SIZES:
        raise AccessorFormatError(
            f"{label}: unknown componentType {accessor.component_type}"
        )
    if accessor.count < 0 or accessor.byte_offset < 0:
        raise AccessorFormatError(f"{label}: negative count or byteOffset")

    view = doc.buffer_views.get(accessor.buffer_view, label)
    data = store.view_bytes(
        view, f"{label} -> bufferView {accessor.buffer_view}"
    )

    element_size = accessor.element_size
    stride = view.byte_stride or element_size
    if stride < element_size:
        raise AccessorFormatError(
            f"{label}: byteStride {stride} is smaller than "
            f"element size {element_size}"
        )

    if accessor.count:
        last = stride * (accessor.count - 1)
        end = accessor.byte_offset + last + element_size
        if end > len(data):
            raise TruncatedRangeError(
                f"{label}: reading {accessor.count} elements needs {end} bytes, "
                f"bufferView {accessor.buffer_view} holds {len(data)}"
            )

    return ResolvedAccessor(
        index=index, accessor=accessor, data=data, stride=stride
    )


def expect_format(
    resolved: ResolvedAccessor, component_type: int, element_type: str
) -> None:
    accessor = resolved.accessor
    if accessor.component_type != component_type:
        raise AccessorFormatError(
            f"{resolved.label}: componentType {accessor.component_type}, "
            f"expected {component_type}"
        )
    if accessor.type != element_type:
        raise AccessorFormatError(
            f"{resolved.label}: type {accessor.type}, expected {element_type}"
        )


def _read(resolved: ResolvedAccessor, arity: int) -> np.ndarray:
    dtype = _COMPONENT_DTYPES[resolved.accessor.component_type]
    if resolved.count == 0:
        return np.empty((0, arity), dtype=dtype)

    view = np.ndarray(
        shape=(resolved.count, arity),
        dtype=dtype,
        buffer=resolved.data,
        offset=resolved.accessor.byte_offset,
        strides=(resolved.stride, dtype.itemsize),
    )
    return view.copy()


def decode_positions(resolved: ResolvedAccessor) -> np.ndarray:
    """(count, 3) little-endian float32 positions."""
    expect_format(resolved, ComponentType.FLOAT, "VEC3")
    return _read(resolved, 3)


def decode_uvs(resolved: ResolvedAccessor) -> np.ndarray:
    """(count, 2) little-endian float32 texture coordinates."""
    expect_format(resolved, ComponentType.FLOAT, "VEC2")
    return _read(resolved, 2)


def decode_indices(resolved: ResolvedAccessor) -> np.ndarray:
    """Flat little-endian uint16 index list."""
    expect_format(resolved, ComponentType.UNSIGNED_SHORT, "SCALAR")
    return _read(resolved, 1).reshape(-1)
