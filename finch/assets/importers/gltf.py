# finch/assets/importers/gltf.py
import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

from finch.assets.gltf.accessors import (
    decode_indices,
    decode_positions,
    decode_uvs,
    resolve_accessor,
)
from finch.assets.gltf.buffers import BufferStore
from finch.assets.gltf.document import MODE_TRIANGLES, GltfDocument, Primitive
from finch.assets.gltf.errors import (
    GltfLoadError,
    IndexOutOfRangeError,
    MissingAttributeError,
    UnsupportedAssetError,
)
from finch.assets.importers.base import AssetImporter
from finch.assets.types import (
    DEFAULT_VERTEX_COLOR,
    INDEX_DTYPE,
    STANDARD_LAYOUT,
    VERTEX_DTYPE,
    MeshData,
)
from finch.types import BoundingBox3D, Vector3

log = logging.getLogger("finch")

POSITION = "POSITION"
TEXCOORD_0 = "TEXCOORD_0"

_MAX_U16_VERTICES = 0xFFFF + 1


class GltfImporter(AssetImporter):
    """
    Decodes every mesh of a .gltf document into one interleaved vertex
    array and one uint16 triangle-list index array.

    Primitives are concatenated as they are met. Index values are kept as
    stored (no base-vertex adjustment), so they stay relative to the start
    of their own primitive.
    """

    def import_file(self, path: Path) -> MeshData:
        path = Path(path)
        log.info("Loading glTF %s", path)
        try:
            doc = GltfDocument.from_path(path)
            _check_required_extensions(doc)
            store = BufferStore.load(doc.buffers, path.parent)
            mesh = self.assemble(doc, store)
        except GltfLoadError as e:
            log.error("Failed to load %s: %s", path, e)
            raise

        log.info(
            "Loaded %s: %d vertices, %d triangles",
            path.name,
            mesh.vertex_count,
            mesh.triangle_count,
        )
        return mesh

    def assemble(self, doc: GltfDocument, store: BufferStore) -> MeshData:
        vertex_chunks: List[np.ndarray] = []
        index_chunks: List[np.ndarray] = []

        for mesh_index, mesh in enumerate(doc.meshes):
            for prim_index, primitive in enumerate(mesh.primitives):
                vertices, indices = self._decode_primitive(
                    doc, store, mesh_index, prim_index, primitive
                )
                log.debug(
                    "mesh %d primitive %d: %d vertices, %d indices",
                    mesh_index,
                    prim_index,
                    len(vertices),
                    len(indices),
                )
                vertex_chunks.append(vertices)
                index_chunks.append(indices)

        if not vertex_chunks:
            raise GltfLoadError("document declares no mesh primitives")

        vertices = np.concatenate(vertex_chunks)
        indices = np.concatenate(index_chunks).astype(INDEX_DTYPE, copy=False)
        vertices.setflags(write=False)
        indices.setflags(write=False)

        return MeshData(
            vertices=vertices,
            indices=indices,
            vertex_layout=STANDARD_LAYOUT,
            aabb=_bounds(vertices["position"]),
        )

    def _decode_primitive(
        self,
        doc: GltfDocument,
        store: BufferStore,
        mesh_index: int,
        prim_index: int,
        primitive: Primitive,
    ) -> Tuple[np.ndarray, np.ndarray]:
        where = f"mesh {mesh_index} primitive {prim_index}"

        if primitive.mode != MODE_TRIANGLES:
            raise UnsupportedAssetError(
                f"{where}: mode {primitive.mode}, only triangle lists "
                f"(mode {MODE_TRIANGLES}) are supported"
            )

        if POSITION not in primitive.attributes:
            raise MissingAttributeError(mesh_index, prim_index, POSITION)

        positions = decode_positions(
            resolve_accessor(
                doc,
                store,
                primitive.attributes[POSITION],
                f"{where} {POSITION}",
            )
        )
        vertex_count = len(positions)

        if TEXCOORD_0 in primitive.attributes:
            uvs = decode_uvs(
                resolve_accessor(
                    doc,
                    store,
                    primitive.attributes[TEXCOORD_0],
                    f"{where} {TEXCOORD_0}",
                )
            )
            if len(uvs) != vertex_count:
                raise GltfLoadError(
                    f"{where}: {TEXCOORD_0} has {len(uvs)} elements, "
                    f"{POSITION} has {vertex_count}"
                )
        else:
            uvs = np.zeros((vertex_count, 2), dtype=np.float32)

        vertices = np.empty(vertex_count, dtype=VERTEX_DTYPE)
        vertices["position"] = positions
        vertices["color"] = DEFAULT_VERTEX_COLOR
        vertices["uv"] = uvs

        if primitive.indices is None:
            if vertex_count > _MAX_U16_VERTICES:
                raise UnsupportedAssetError(
                    f"{where}: {vertex_count} unindexed vertices do not fit "
                    "16-bit indices"
                )
            indices = np.arange(vertex_count, dtype=INDEX_DTYPE)
        else:
            # Index data goes through its accessor's own bufferView, exactly
            # like the vertex attributes.
            indices = decode_indices(
                resolve_accessor(
                    doc, store, primitive.indices, f"{where} indices"
                )
            )

        if len(indices) % 3:
            raise GltfLoadError(
                f"{where}: {len(indices)} indices is not a whole number "
                "of triangles"
            )

        if len(indices) and int(indices.max()) >= vertex_count:
            bad = int(np.argmax(indices >= vertex_count))
            raise IndexOutOfRangeError(
                f"{where}: index {bad} has value {int(indices[bad])}, "
                f"primitive has {vertex_count} vertices"
            )

        return vertices, indices


def load_gltf(path: Union[str, Path]) -> MeshData:
    """Decode a .gltf file. Raises a GltfLoadError subclass on failure."""
    return GltfImporter().import_file(Path(path))


def _check_required_extensions(doc: GltfDocument) -> None:
    if doc.extensions_required:
        raise UnsupportedAssetError(
            "document requires unsupported extensions: "
            + ", ".join(doc.extensions_required)
        )


def _bounds(positions: np.ndarray) -> BoundingBox3D:
    if len(positions) == 0:
        return BoundingBox3D(Vector3.zero(), Vector3.zero())

    lo = positions.min(axis=0)
    hi = positions.max(axis=0)
    return BoundingBox3D(
        Vector3(float(lo[0]), float(lo[1]), float(lo[2])),
        Vector3(float(hi[0]), float(hi[1]), float(hi[2])),
    )
