"""
SKL Codec

Reads and writes skeleton buffers.

Layout (little-endian):
    signature   "r3d2sklt"
    u32 version
    version 1:  u32 joint count, then per joint:
                32-byte name, i32 parent, f32[3] translation,
                f32[4] rotation (x, y, z, w), f32[3] scale
    version 2:  version 1 followed by u32 influence count, u32[count] influences
    version 3:  u16 joint count, u16 influence count, then per joint:
                u16-prefixed name, u32 hash, i16 parent, f32[3] translation,
                f32[4] rotation, f32[3] scale; then u16[count] influences

A negative parent marks the root. Joint hashes are recomputed from the name
for versions 1-2 and taken from the file for version 3.
"""

import logging
from enum import IntEnum
from typing import List, Optional

from ..animation.skeleton import Joint, Skeleton
from ..config.settings import SKL_JOINT_NAME_SIZE, SKL_SIGNATURE
from .binary_io import BinaryReader, BinaryWriter
from .errors import MalformedSignature, UnsupportedVersion

logger = logging.getLogger(__name__)

ASSET = "SKL"


class SklVersion(IntEnum):
    """Shipped SKL versions."""
    V1 = 1  # Fixed-width names, no influence table
    V2 = 2  # V1 plus a u32 influence table
    V3 = 3  # Compact: u16 counts, stored hashes, u16 influence table


def _read_transform(reader: BinaryReader):
    translation = reader.read_vec3("joint translation")
    rotation = reader.read_quat("joint rotation")
    scale = reader.read_vec3("joint scale")
    return translation, rotation, scale


def _parent_index(raw: int) -> Optional[int]:
    return None if raw < 0 else raw


def _read_legacy_joints(reader: BinaryReader) -> List[Joint]:
    count = reader.read_u32("joint count")
    joints = []
    for index in range(count):
        name = reader.read_fixed_string(SKL_JOINT_NAME_SIZE, "joint name")
        parent = _parent_index(reader.read_i32("joint parent"))
        translation, rotation, scale = _read_transform(reader)
        joints.append(Joint(name, index, parent, translation, rotation, scale))
    return joints


def _read_v1(reader: BinaryReader):
    return _read_legacy_joints(reader), None


def _read_v2(reader: BinaryReader):
    joints = _read_legacy_joints(reader)
    count = reader.read_u32("influence count")
    influences = reader.read_array('<u4', count, "influences").tolist()
    return joints, influences


def _read_v3(reader: BinaryReader):
    joint_count = reader.read_u16("joint count")
    influence_count = reader.read_u16("influence count")
    joints = []
    for index in range(joint_count):
        name = reader.read_string("joint name")
        name_hash = reader.read_u32("joint hash")
        parent = _parent_index(reader.read_i16("joint parent"))
        translation, rotation, scale = _read_transform(reader)
        joints.append(Joint(name, index, parent, translation, rotation, scale, name_hash=name_hash))
    influences = reader.read_array('<u2', influence_count, "influences").tolist()
    return joints, influences


_VERSION_READERS = {
    SklVersion.V1: _read_v1,
    SklVersion.V2: _read_v2,
    SklVersion.V3: _read_v3,
}


def read_skeleton(data: bytes, name: str = "Skeleton") -> Skeleton:
    """
    Decode an SKL buffer.

    Args:
        data: Complete SKL file contents
        name: Skeleton name for debugging

    Returns:
        Skeleton with bind and inverse bind transforms computed

    Raises:
        MalformedSignature: Wrong magic bytes
        UnsupportedVersion: Version is not a shipped one
        TruncatedData: Buffer ends before a declared field or count
        InvalidHierarchy: Parent references do not form one parent-first tree
    """
    reader = BinaryReader(data, ASSET)

    signature = reader.read_bytes(len(SKL_SIGNATURE), "signature")
    if signature != SKL_SIGNATURE:
        raise MalformedSignature(f"bad signature {signature!r}", ASSET)

    raw_version = reader.read_u32("version")
    try:
        version = SklVersion(raw_version)
    except ValueError:
        raise UnsupportedVersion(raw_version, ASSET) from None

    joints, influences = _VERSION_READERS[version](reader)
    skeleton = Skeleton(joints, influences, name=name, version=int(version))

    logger.info("SKL version %d loaded: %d joints, %s influences",
                version, skeleton.joint_count,
                len(influences) if influences is not None else "no")
    return skeleton


def write_skeleton(skeleton: Skeleton, version: Optional[int] = None) -> bytes:
    """
    Encode a skeleton as an SKL buffer.

    Args:
        skeleton: Skeleton to encode
        version: Target version, defaults to the version it was read from (or 3)

    Returns:
        SKL file contents
    """
    version = SklVersion(version or skeleton.version or SklVersion.V3)
    influences = skeleton.influence_table()

    writer = BinaryWriter()
    writer.write_bytes(SKL_SIGNATURE)
    writer.write_u32(int(version))

    if version == SklVersion.V3:
        writer.write_u16(skeleton.joint_count)
        writer.write_u16(len(influences))
    else:
        writer.write_u32(skeleton.joint_count)

    for joint in skeleton.joints:
        parent = -1 if joint.parent is None else joint.parent
        if version == SklVersion.V3:
            writer.write_string(joint.name)
            writer.write_u32(joint.hash)
            writer.write_i16(parent)
        else:
            writer.write_fixed_string(joint.name, SKL_JOINT_NAME_SIZE)
            writer.write_i32(parent)
        writer.write_floats(joint.translation)
        writer.write_floats(joint.rotation)
        writer.write_floats(joint.scale)

    if version == SklVersion.V2:
        writer.write_u32(len(influences))
        writer.write_array(influences, '<u4')
    elif version == SklVersion.V3:
        writer.write_array(influences, '<u2')

    return writer.getvalue()
