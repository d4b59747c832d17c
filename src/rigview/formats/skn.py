"""
SKN Codec

Reads and writes skinned mesh buffers.

Layout (little-endian):
    signature   33 22 11 00
    u16 major, u16 minor
    [major >= 1] u32 submesh count, then per submesh:
                 64-byte name, 8 reserved bytes, u32 index offset, u32 index count
    [major == 4] 4 reserved bytes
    u32 index count, u32 vertex count
    [major == 4] 4 reserved bytes, u32 vertex type, f32[3] bbox min,
                 f32[3] bbox max, 16 reserved bytes
    u16[index count] indices
    per vertex:  f32[3] position, u8[4] influences, f32[4] weights,
                 f32[3] normal, f32[2] uv, [vertex type != 0] 4 extra bytes
"""

import logging
from enum import IntEnum
from typing import List, Optional

import numpy as np

from ..animation.skin import Skin, Submesh
from ..config.settings import (
    SKN_IMPLICIT_SUBMESH_NAME,
    SKN_SIGNATURE,
    SKN_SUBMESH_NAME_SIZE,
    SKN_SUBMESH_PADDING,
)
from .binary_io import BinaryReader, BinaryWriter
from .errors import InvalidIndexRange, MalformedSignature, UnsupportedVersion

logger = logging.getLogger(__name__)

ASSET = "SKN"

BASIC_VERTEX = np.dtype([
    ('position', '<f4', (3,)),
    ('influence', 'u1', (4,)),
    ('weight', '<f4', (4,)),
    ('normal', '<f4', (3,)),
    ('uv', '<f4', (2,)),
])

# Vertex type != 0 carries 4 trailing bytes nothing downstream reads
EXTENDED_VERTEX = np.dtype(BASIC_VERTEX.descr + [('extra', 'u1', (4,))])


class SknVersion(IntEnum):
    """Shipped SKN major versions."""
    V0 = 0
    V1 = 1
    V2 = 2
    V4 = 4


class SknHeader:
    """Everything that precedes the index buffer."""

    def __init__(self, major: int, minor: int):
        self.major = major
        self.minor = minor
        self.submeshes: Optional[List[Submesh]] = None
        self.index_count = 0
        self.vertex_count = 0
        self.vertex_type = 0
        self.bounding_box: Optional[np.ndarray] = None


def _read_submesh_table(reader: BinaryReader) -> List[Submesh]:
    count = reader.read_u32("submesh count")
    submeshes = []
    for _ in range(count):
        name = reader.read_fixed_string(SKN_SUBMESH_NAME_SIZE, "submesh name")
        reader.skip(SKN_SUBMESH_PADDING, "submesh padding")
        offset = reader.read_u32("submesh index offset")
        index_count = reader.read_u32("submesh index count")
        submeshes.append(Submesh(name, offset, index_count))
    return submeshes


def _read_header_v0(reader: BinaryReader, header: SknHeader):
    header.index_count = reader.read_u32("index count")
    header.vertex_count = reader.read_u32("vertex count")


def _read_header_v1(reader: BinaryReader, header: SknHeader):
    header.submeshes = _read_submesh_table(reader)
    header.index_count = reader.read_u32("index count")
    header.vertex_count = reader.read_u32("vertex count")


def _read_header_v4(reader: BinaryReader, header: SknHeader):
    header.submeshes = _read_submesh_table(reader)
    reader.skip(4, "flags")
    header.index_count = reader.read_u32("index count")
    header.vertex_count = reader.read_u32("vertex count")
    reader.skip(4, "vertex size")
    header.vertex_type = reader.read_u32("vertex type")
    bbox_min = reader.read_vec3("bounding box min")
    bbox_max = reader.read_vec3("bounding box max")
    header.bounding_box = np.array([bbox_min, bbox_max], dtype='f4')
    reader.skip(16, "bounding sphere")


_HEADER_READERS = {
    SknVersion.V0: _read_header_v0,
    SknVersion.V1: _read_header_v1,
    SknVersion.V2: _read_header_v1,
    SknVersion.V4: _read_header_v4,
}


def read_skin(data: bytes) -> Skin:
    """
    Decode an SKN buffer.

    Args:
        data: Complete SKN file contents

    Returns:
        Unbound Skin (influences are still skin-local palette slots)

    Raises:
        MalformedSignature: Wrong magic bytes
        UnsupportedVersion: Major version is not a shipped one
        TruncatedData: Buffer ends before a declared field or count
        InvalidIndexRange: A submesh runs past the index buffer
    """
    reader = BinaryReader(data, ASSET)

    signature = reader.read_bytes(len(SKN_SIGNATURE), "signature")
    if signature != SKN_SIGNATURE:
        raise MalformedSignature(f"bad signature {signature.hex()}", ASSET)

    major = reader.read_u16("major version")
    minor = reader.read_u16("minor version")
    try:
        version = SknVersion(major)
    except ValueError:
        raise UnsupportedVersion(major, ASSET) from None

    header = SknHeader(major, minor)
    _HEADER_READERS[version](reader, header)

    indices = reader.read_array('<u2', header.index_count, "indices")
    vertex_dtype = EXTENDED_VERTEX if header.vertex_type else BASIC_VERTEX
    vertices = reader.read_array(vertex_dtype, header.vertex_count, "vertices")

    submeshes = header.submeshes
    if submeshes is None:
        submeshes = [Submesh(SKN_IMPLICIT_SUBMESH_NAME, 0, header.index_count)]
    for submesh in submeshes:
        if submesh.end > header.index_count:
            raise InvalidIndexRange(
                f"submesh '{submesh.name}' covers indices [{submesh.offset}, {submesh.end}) "
                f"but only {header.index_count} exist",
                ASSET,
            )

    skin = Skin(
        positions=vertices['position'],
        normals=_normalize(vertices['normal']),
        uvs=vertices['uv'],
        influences=vertices['influence'],
        weights=vertices['weight'],
        indices=indices,
        submeshes=submeshes,
        bounding_box=header.bounding_box,
        major=major,
        minor=minor,
    )
    skin.vertex_type = header.vertex_type

    logger.info("SKN version %d.%d loaded: %d submeshes, %d indices, %d vertices",
                major, minor, len(submeshes), header.index_count, header.vertex_count)
    return skin


def _normalize(normals: np.ndarray) -> np.ndarray:
    normals = np.asarray(normals, dtype='f4')
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    result = np.zeros_like(normals)
    np.divide(normals, lengths, out=result, where=lengths > 0)
    return result


def write_skin(skin: Skin, major: Optional[int] = None) -> bytes:
    """
    Encode a skin as an SKN buffer.

    Args:
        skin: Skin to encode (bound or unbound; influences must fit in a byte)
        major: Target major version, defaults to the version it was read from

    Returns:
        SKN file contents
    """
    version = SknVersion(skin.major if major is None else major)
    vertex_type = skin.vertex_type if version == SknVersion.V4 else 0

    if skin.vertex_count and int(skin.influences.max()) > 0xFF:
        raise ValueError("influence indices above 255 cannot be stored in an SKN buffer")

    writer = BinaryWriter()
    writer.write_bytes(SKN_SIGNATURE)
    writer.write_u16(int(version))
    writer.write_u16(skin.minor)

    if version != SknVersion.V0:
        writer.write_u32(len(skin.submeshes))
        for submesh in skin.submeshes:
            writer.write_fixed_string(submesh.name, SKN_SUBMESH_NAME_SIZE)
            writer.pad(SKN_SUBMESH_PADDING)
            writer.write_u32(submesh.offset)
            writer.write_u32(submesh.count)
    if version == SknVersion.V4:
        writer.pad(4)

    writer.write_u32(skin.index_count)
    writer.write_u32(skin.vertex_count)

    vertex_dtype = EXTENDED_VERTEX if vertex_type else BASIC_VERTEX
    if version == SknVersion.V4:
        writer.write_u32(vertex_dtype.itemsize)
        writer.write_u32(vertex_type)
        writer.write_floats(skin.bounding_box[0])
        writer.write_floats(skin.bounding_box[1])
        writer.pad(16)

    writer.write_array(skin.indices, '<u2')

    vertices = np.zeros(skin.vertex_count, dtype=vertex_dtype)
    vertices['position'] = skin.positions
    vertices['influence'] = skin.influences
    vertices['weight'] = skin.weights
    vertices['normal'] = skin.normals
    vertices['uv'] = skin.uvs
    writer.write_bytes(vertices.tobytes())

    return writer.getvalue()
