import base64
import json
import struct

import numpy as np
import pytest
from PIL import Image

from finch.assets import MeshData, load_gltf
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
from finch.assets.importers.gltf import GltfImporter
from finch.assets.importers.texture import TextureImporter
from finch.assets.types import TextureData
from tests.conftest import (
    TRIANGLE_INDICES,
    TRIANGLE_POSITIONS,
    TRIANGLE_UVS,
    build_document,
    pack_floats,
    write_asset,
)


def test_gltf_importer_simple_triangle(triangle_asset):
    mesh_data = GltfImporter().import_file(triangle_asset)

    assert isinstance(mesh_data, MeshData)
    # 3 vertices * (3 pos + 3 color + 2 uv) * 4 bytes/float = 96 bytes
    assert len(mesh_data.vertex_bytes()) == 96
    assert mesh_data.vertex_layout.stride_bytes == 32
    assert mesh_data.vertex_layout.format == "3f 3f 2f"

    np.testing.assert_array_equal(
        mesh_data.vertices["position"],
        np.array(TRIANGLE_POSITIONS, dtype=np.float32),
    )
    np.testing.assert_array_equal(
        mesh_data.vertices["uv"], np.array(TRIANGLE_UVS, dtype=np.float32)
    )
    np.testing.assert_array_equal(mesh_data.vertices["color"], np.ones((3, 3)))

    assert mesh_data.indices.dtype == np.uint16
    assert mesh_data.indices.tolist() == TRIANGLE_INDICES
    assert mesh_data.index_bytes() == b"\x00\x00\x01\x00\x02\x00"
    assert mesh_data.triangle_count == 1


def test_gltf_importer_interleaves_vertex_records(triangle_asset):
    mesh_data = GltfImporter().import_file(triangle_asset)

    first = struct.unpack_from("<3f3f2f", mesh_data.vertex_bytes(), 0)
    assert first == pytest.approx((0.0, 0.5, 0.0, 1.0, 1.0, 1.0, 0.5, 0.0))


def test_gltf_importer_computes_bounds(triangle_asset):
    aabb = load_gltf(triangle_asset).aabb

    assert tuple(aabb.min) == pytest.approx((-0.5, -0.5, 0.0))
    assert tuple(aabb.max) == pytest.approx((0.5, 0.5, 0.0))


def test_gltf_importer_is_deterministic(triangle_asset):
    a = GltfImporter().import_file(triangle_asset)
    b = GltfImporter().import_file(triangle_asset)

    assert a.vertex_bytes() == b.vertex_bytes()
    assert a.index_bytes() == b.index_bytes()


def test_positions_round_trip_bit_exact(tmp_path):
    positions = [
        (0.1, -0.2, 0.3),
        (1e-30, 3.4e38, -0.0),
        (123.456, 7.0, -8.25),
        (float("inf"), -1.5, 2.0**-20),
    ]
    doc, blob = build_document(positions, indices=[0, 1, 2, 1, 2, 3])
    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    decoded = mesh_data.vertices["position"].astype("<f4").tobytes()
    assert decoded == pack_floats(positions)


def test_gltf_importer_result_is_read_only(triangle_asset):
    mesh_data = load_gltf(triangle_asset)

    with pytest.raises(ValueError):
        mesh_data.indices[0] = 7
    with pytest.raises(ValueError):
        mesh_data.vertices["position"][0] = (1.0, 1.0, 1.0)


def test_missing_texcoord_defaults_to_zero(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, indices=TRIANGLE_INDICES)
    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    np.testing.assert_array_equal(mesh_data.vertices["uv"], np.zeros((3, 2)))


def test_unindexed_primitive_gets_sequential_indices(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, TRIANGLE_UVS)
    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    assert mesh_data.indices.tolist() == [0, 1, 2]


def test_index_accessor_resolved_through_its_buffer_view(tmp_path):
    """
    Declare the index accessor first so that its own index (0) differs from
    the bufferView it points at (2). Reading bufferView 0 would yield
    position bytes instead of indices.
    """
    doc, blob = build_document(
        TRIANGLE_POSITIONS, TRIANGLE_UVS, indices=[2, 1, 0]
    )
    pos, uv, idx = doc["accessors"]
    doc["accessors"] = [idx, pos, uv]
    doc["meshes"][0]["primitives"][0] = {
        "attributes": {"POSITION": 1, "TEXCOORD_0": 2},
        "indices": 0,
    }
    assert doc["accessors"][0]["bufferView"] == 2

    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    assert mesh_data.indices.tolist() == [2, 1, 0]
    np.testing.assert_array_equal(
        mesh_data.vertices["position"],
        np.array(TRIANGLE_POSITIONS, dtype=np.float32),
    )


def test_primitives_are_concatenated_without_rebasing(tmp_path):
    doc, blob = build_document(
        TRIANGLE_POSITIONS, TRIANGLE_UVS, TRIANGLE_INDICES
    )
    primitive = doc["meshes"][0]["primitives"][0]
    doc["meshes"].append({"primitives": [dict(primitive)]})

    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    assert mesh_data.vertex_count == 6
    assert mesh_data.indices.tolist() == [0, 1, 2, 0, 1, 2]


def test_data_uri_buffer(tmp_path):
    doc, blob = build_document(
        TRIANGLE_POSITIONS, TRIANGLE_UVS, TRIANGLE_INDICES
    )
    encoded = base64.b64encode(blob).decode("ascii")
    doc["buffers"][0]["uri"] = "data:application/octet-stream;base64," + encoded

    mesh_data = load_gltf(write_asset(tmp_path, doc, blob))

    assert mesh_data.indices.tolist() == TRIANGLE_INDICES


def test_unsupported_version(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["asset"]["version"] = "1.0"

    with pytest.raises(UnsupportedAssetError, match="1.0"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_missing_position_attribute(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, TRIANGLE_UVS)
    del doc["meshes"][0]["primitives"][0]["attributes"]["POSITION"]

    with pytest.raises(MissingAttributeError, match="POSITION"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_missing_buffer_file(tmp_path):
    doc, _ = build_document(TRIANGLE_POSITIONS)
    path = tmp_path / "orphan.gltf"
    path.write_text(json.dumps(doc))

    with pytest.raises(BufferLoadError, match="mesh.bin"):
        load_gltf(path)


def test_buffer_shorter_than_declared(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["buffers"][0]["byteLength"] = len(blob) + 4

    with pytest.raises(BufferLoadError, match="declares"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_position_must_be_float(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, indices=TRIANGLE_INDICES)
    doc["accessors"][0]["componentType"] = 5125

    with pytest.raises(AccessorFormatError, match="componentType 5125"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_indices_must_be_16_bit(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, indices=[0, 1, 2, 0])
    doc["accessors"][1].update(componentType=5125, count=2)

    with pytest.raises(AccessorFormatError, match="expected 5123"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_unknown_accessor_reference(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["meshes"][0]["primitives"][0]["attributes"]["POSITION"] = 7

    with pytest.raises(UnresolvedReferenceError, match="accessor 7") as info:
        load_gltf(write_asset(tmp_path, doc, blob))

    assert info.value.kind == "accessor"
    assert info.value.index == 7


def test_unknown_buffer_view_reference(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["accessors"][0]["bufferView"] = 3

    with pytest.raises(UnresolvedReferenceError, match="bufferView 3"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_buffer_view_past_end_of_buffer(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["bufferViews"][0]["byteLength"] = len(blob) + 12

    with pytest.raises(TruncatedRangeError, match="exceeds buffer 0"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_index_value_out_of_range(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS, indices=[0, 1, 3])

    with pytest.raises(IndexOutOfRangeError, match="value 3"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_non_triangle_mode_rejected(tmp_path):
    doc, blob = build_document(TRIANGLE_POSITIONS)
    doc["meshes"][0]["primitives"][0]["mode"] = 1

    with pytest.raises(UnsupportedAssetError, match="mode 1"):
        load_gltf(write_asset(tmp_path, doc, blob))


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.gltf"
    path.write_text("{ not json")

    with pytest.raises(GltfLoadError, match="not valid JSON"):
        load_gltf(path)


def test_non_utf8_document(tmp_path):
    path = tmp_path / "binary.gltf"
    path.write_bytes(b"\xff\xfe\x00{")

    with pytest.raises(GltfLoadError, match="not valid JSON"):
        load_gltf(path)


@pytest.mark.parametrize(
    "document, message",
    [
        ({"buffers": [5]}, "buffer 0 is malformed"),
        ({"meshes": ["cube"]}, "mesh 0 is malformed"),
        ({"accessors": {"0": {}}}, "accessors must be a JSON array"),
        (
            {"extensionsRequired": "KHR_draco_mesh_compression"},
            "extensionsRequired",
        ),
    ],
)
def test_non_object_entries_are_load_errors(tmp_path, document, message):
    path = tmp_path / "odd.gltf"
    path.write_text(json.dumps({"asset": {"version": "2.0"}, **document}))

    with pytest.raises(GltfLoadError, match=message):
        load_gltf(path)


def test_load_errors_are_value_errors(tmp_path):
    path = tmp_path / "empty.gltf"
    path.write_text(json.dumps({"asset": {"version": "2.0"}}))

    with pytest.raises(ValueError, match="no mesh primitives"):
        load_gltf(path)


def test_texture_importer_png(tmp_path):
    img = Image.new("RGB", (2, 2), color="red")
    f = tmp_path / "test.png"
    img.save(f)

    tex_data = TextureImporter().import_file(f)

    assert isinstance(tex_data, TextureData)
    assert tex_data.width == 2
    assert tex_data.height == 2
    assert tex_data.components == 4  # Should always convert to RGBA
    assert len(tex_data.data) == 2 * 2 * 4


def test_negative_buffer_length_is_rejected(tmp_path):
    path = tmp_path / "negative.gltf"
    (tmp_path / "negative.bin").write_bytes(bytes(8))
    path.write_text(
        json.dumps(
            {
                "asset": {"version": "2.0"},
                "buffers": [{"uri": "negative.bin", "byteLength": -4}],
            }
        )
    )

    with pytest.raises(GltfLoadError, match="buffer 0 is malformed.*-4"):
        load_gltf(path)
