"""Tests for the SKN skin codec"""

import struct

import numpy as np
import pytest

from rigview.formats.errors import (
    AssetDecodeError,
    InvalidIndexRange,
    InvalidName,
    MalformedSignature,
    TruncatedData,
    UnsupportedVersion,
)
from rigview.formats.hasher import fnv1a
from rigview.formats.skn import read_skin, write_skin


QUAD_INDICES = [0, 1, 2, 2, 1, 3]
QUAD_VERTICES = [
    # position, influences, weights, normal, uv
    ((0.0, 0.0, 0.0), (0, 1, 0, 0), (0.75, 0.25, 0.0, 0.0), (0.0, 2.0, 0.0), (0.0, 0.0)),
    ((1.0, 0.0, 0.0), (1, 0, 0, 0), (1.0, 0.0, 0.0, 0.0), (0.0, 0.0, 3.0), (1.0, 0.0)),
    ((0.0, 2.0, -1.0), (2, 0, 0, 0), (1.0, 0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0)),
    ((1.0, 2.0, 4.0), (2, 1, 0, 0), (0.5, 0.5, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 1.0)),
]


def build_skn(major, indices, vertices, submeshes=(), minor=1, vertex_type=0,
              bbox=((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))):
    """Assemble an SKN buffer field by field."""
    out = bytearray(b"\x33\x22\x11\x00")
    out += struct.pack("<HH", major, minor)
    if major > 0:
        out += struct.pack("<I", len(submeshes))
        for name, offset, count in submeshes:
            out += name.encode("utf-8").ljust(64, b"\0") + b"\0" * 8
            out += struct.pack("<II", offset, count)
    if major == 4:
        out += b"\0" * 4
    out += struct.pack("<II", len(indices), len(vertices))
    if major == 4:
        out += struct.pack("<II", 56 if vertex_type else 52, vertex_type)
        out += struct.pack("<6f", *bbox[0], *bbox[1])
        out += b"\0" * 16
    out += struct.pack(f"<{len(indices)}H", *indices)
    for position, influence, weight, normal, uv in vertices:
        out += struct.pack("<3f4B4f3f2f", *position, *influence, *weight, *normal, *uv)
        if vertex_type:
            out += b"\xaa" * 4
    return bytes(out)


def test_read_v1_geometry():
    """Version 1 decodes vertices, indices and the submesh table"""
    data = build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 3), ("Cape", 3, 3)])
    skin = read_skin(data)

    assert (skin.major, skin.minor) == (1, 1)
    assert skin.vertex_count == 4
    assert skin.indices.tolist() == QUAD_INDICES
    assert np.allclose(skin.positions[2], (0.0, 2.0, -1.0))
    assert skin.influences[3].tolist() == [2, 1, 0, 0]
    assert np.allclose(skin.weights[0], (0.75, 0.25, 0.0, 0.0))
    assert np.allclose(skin.uvs[1], (1.0, 0.0))
    assert not skin.is_bound

    assert [s.name for s in skin.submeshes] == ["Body", "Cape"]
    assert skin.submeshes[1].offset == 3 and skin.submeshes[1].count == 3
    assert skin.submeshes[0].hash == fnv1a("Body")
    assert skin.submesh_indices(skin.submeshes[1]).tolist() == [2, 1, 3]


def test_normals_are_normalized_on_read():
    """Normals come out unit length; a zero normal stays zero"""
    skin = read_skin(build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)]))

    assert np.allclose(skin.normals[0], (0.0, 1.0, 0.0))
    assert np.allclose(skin.normals[1], (0.0, 0.0, 1.0))
    assert np.allclose(np.linalg.norm(skin.normals[:3], axis=1), 1.0)
    assert np.allclose(skin.normals[3], (0.0, 0.0, 0.0))


def test_bounding_box_computed_without_stored_one():
    """Versions below 4 derive the box from the positions"""
    skin = read_skin(build_skn(2, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)]))

    assert np.allclose(skin.bounding_box[0], (0.0, 0.0, -1.0))
    assert np.allclose(skin.bounding_box[1], (1.0, 2.0, 4.0))
    assert np.allclose(skin.center, (0.5, 1.0, 1.5))


def test_read_v0_has_implicit_base_submesh():
    """Version 0 has no table and one submesh over every index"""
    skin = read_skin(build_skn(0, QUAD_INDICES, QUAD_VERTICES))

    assert len(skin.submeshes) == 1
    base = skin.submeshes[0]
    assert base.name == "Base"
    assert base.hash == fnv1a("Base")
    assert (base.offset, base.count) == (0, len(QUAD_INDICES))


def test_read_v4_uses_stored_bbox_and_skips_extra_vertex_bytes():
    """Version 4 keeps the file's box and honors the vertex type flag"""
    bbox = ((-5.0, -5.0, -5.0), (5.0, 5.0, 5.0))
    data = build_skn(4, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)],
                     vertex_type=1, bbox=bbox)
    skin = read_skin(data)

    assert np.allclose(skin.bounding_box, bbox)
    assert np.allclose(skin.center, (0.0, 0.0, 0.0))
    # The extra bytes after vertex 0 must not shift vertex 1
    assert np.allclose(skin.positions[1], (1.0, 0.0, 0.0))
    assert np.allclose(skin.uvs[3], (1.0, 1.0))
    assert skin.influences[2].tolist() == [2, 0, 0, 0]


def test_read_v4_without_extra_vertex_bytes():
    skin = read_skin(build_skn(4, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)]))
    assert np.allclose(skin.positions[3], (1.0, 2.0, 4.0))


def test_decoding_is_deterministic():
    """The same bytes decode to identical data"""
    data = build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)])
    a = read_skin(data)
    b = read_skin(data)

    assert np.array_equal(a.positions, b.positions)
    assert np.array_equal(a.normals, b.normals)
    assert np.array_equal(a.influences, b.influences)
    assert np.array_equal(a.indices, b.indices)
    assert [(s.name, s.offset, s.count) for s in a.submeshes] == \
        [(s.name, s.offset, s.count) for s in b.submeshes]


def test_bad_signature_rejected():
    data = b"\x00\x11\x22\x33" + build_skn(1, QUAD_INDICES, QUAD_VERTICES)[4:]
    with pytest.raises(MalformedSignature):
        read_skin(data)


def test_unsupported_version_rejected():
    data = build_skn(3, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)])
    with pytest.raises(UnsupportedVersion) as info:
        read_skin(data)
    assert info.value.version == 3


def test_truncated_buffer_rejected():
    """Every prefix of a valid buffer fails with TruncatedData"""
    data = build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)])
    for cut in (2, 6, 20, len(data) - 30, len(data) - 1):
        with pytest.raises(TruncatedData):
            read_skin(data[:cut])


def test_submesh_range_past_index_buffer_rejected():
    data = build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 3), ("Cape", 4, 3)])
    with pytest.raises(InvalidIndexRange):
        read_skin(data)


def test_decode_errors_share_a_base_class():
    """Callers can catch every decode failure in one place"""
    with pytest.raises(AssetDecodeError):
        read_skin(b"")
    with pytest.raises(ValueError):
        read_skin(b"junk")


@pytest.mark.parametrize("major", [0, 1, 4])
def test_write_then_read_preserves_structure(major):
    """Re-encoding a decoded skin keeps counts, offsets and names"""
    submeshes = [("Body", 0, 3), ("Cape", 3, 3)] if major else ()
    original = read_skin(build_skn(major, QUAD_INDICES, QUAD_VERTICES, submeshes=submeshes,
                                   bbox=((0.0, 0.0, -1.0), (1.0, 2.0, 4.0))))
    decoded = read_skin(write_skin(original))

    assert decoded.major == original.major
    assert decoded.vertex_count == original.vertex_count
    assert decoded.indices.tolist() == original.indices.tolist()
    assert [(s.name, s.offset, s.count) for s in decoded.submeshes] == \
        [(s.name, s.offset, s.count) for s in original.submeshes]
    assert np.array_equal(decoded.influences, original.influences)
    assert np.allclose(decoded.positions, original.positions)


def test_submesh_name_that_is_not_utf8_rejected():
    data = bytearray(build_skn(1, QUAD_INDICES, QUAD_VERTICES, submeshes=[("Body", 0, 6)]))
    name_start = 4 + 4 + 4
    data[name_start:name_start + 4] = b"Bod\xff"
    with pytest.raises(InvalidName):
        read_skin(bytes(data))
