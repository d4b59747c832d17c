"""
ANM Codec

Reads and writes animation clip buffers.

Layout (little-endian):
    signature   "r3d2anmd"
    u32 version
    version 1 (keyframed):
        f32 duration, u32 track count, then per track:
        u32 joint hash, u32 keyframe count, then per keyframe:
        f32 time, f32[3] translation, f32[4] rotation (x, y, z, w), f32[3] scale
    version 2 (sampled):
        f32 duration, f32 fps, u32 frame count, u32 track count, then per track:
        u32 joint hash, frame count x (f32[3] translation, f32[4] rotation, f32[3] scale)
    version 3 (sampled, quantized):
        as version 2 with rotations stored as i16[4] / 32767

Sampled clips get implicit timestamps frame / fps; every version decodes to
the same Track representation.
"""

import logging
from enum import IntEnum
from typing import Optional

import numpy as np

from ..animation.animation import Animation, Track
from ..config.settings import ANM_QUANTIZED_SCALE, ANM_SIGNATURE
from .binary_io import BinaryReader, BinaryWriter
from .errors import MalformedSignature, NonMonotonicKeyframes, UnsupportedVersion

logger = logging.getLogger(__name__)

ASSET = "ANM"

KEYFRAME = np.dtype([
    ('time', '<f4'),
    ('translation', '<f4', (3,)),
    ('rotation', '<f4', (4,)),
    ('scale', '<f4', (3,)),
])

FRAME = np.dtype([
    ('translation', '<f4', (3,)),
    ('rotation', '<f4', (4,)),
    ('scale', '<f4', (3,)),
])

QUANTIZED_FRAME = np.dtype([
    ('translation', '<f4', (3,)),
    ('rotation', '<i2', (4,)),
    ('scale', '<f4', (3,)),
])


class AnmVersion(IntEnum):
    """Shipped ANM versions."""
    KEYFRAMED = 1
    SAMPLED = 2
    SAMPLED_QUANTIZED = 3


def _read_keyframed(reader: BinaryReader, animation: Animation):
    animation.duration = reader.read_f32("duration")
    track_count = reader.read_u32("track count")
    for _ in range(track_count):
        joint_hash = reader.read_u32("track joint hash")
        keyframe_count = reader.read_u32("keyframe count")
        keys = reader.read_array(KEYFRAME, keyframe_count, "keyframes")
        animation.add_track(Track(
            joint_hash, keys['time'], keys['translation'], keys['rotation'], keys['scale']
        ))


def _read_sampled(reader: BinaryReader, animation: Animation, quantized: bool = False):
    animation.duration = reader.read_f32("duration")
    fps = reader.read_f32("fps")
    frame_count = reader.read_u32("frame count")
    track_count = reader.read_u32("track count")

    if frame_count > 1 and not fps > 0.0:
        raise NonMonotonicKeyframes(f"sampled clip has non-positive fps {fps}", ASSET)
    animation.fps = fps

    times = np.arange(frame_count, dtype='f4') / fps if frame_count > 1 else np.zeros(frame_count, dtype='f4')
    for _ in range(track_count):
        joint_hash = reader.read_u32("track joint hash")
        frames = reader.read_array(QUANTIZED_FRAME if quantized else FRAME, frame_count, "frames")
        rotations = frames['rotation'].astype('f4')
        if quantized:
            rotations = _dequantize(rotations)
        animation.add_track(Track(
            joint_hash, times, frames['translation'], rotations, frames['scale']
        ))


def _dequantize(rotations: np.ndarray) -> np.ndarray:
    rotations = rotations / ANM_QUANTIZED_SCALE
    lengths = np.linalg.norm(rotations, axis=1, keepdims=True)
    result = np.tile(np.array([0.0, 0.0, 0.0, 1.0], dtype='f4'), (len(rotations), 1))
    np.divide(rotations, lengths, out=result, where=lengths > 0)
    return result.astype('f4')


_VERSION_READERS = {
    AnmVersion.KEYFRAMED: _read_keyframed,
    AnmVersion.SAMPLED: _read_sampled,
    AnmVersion.SAMPLED_QUANTIZED: lambda reader, animation: _read_sampled(reader, animation, quantized=True),
}


def read_animation(data: bytes, name: str = "") -> Animation:
    """
    Decode an ANM buffer.

    Args:
        data: Complete ANM file contents
        name: Clip name (usually the file stem)

    Returns:
        Animation whose duration covers every track's last keyframe

    Raises:
        MalformedSignature: Wrong magic bytes
        UnsupportedVersion: Version is not a shipped one
        TruncatedData: Buffer ends before a declared field or count
        NonMonotonicKeyframes: A track's timestamps go backwards
    """
    reader = BinaryReader(data, ASSET)

    signature = reader.read_bytes(len(ANM_SIGNATURE), "signature")
    if signature != ANM_SIGNATURE:
        raise MalformedSignature(f"bad signature {signature!r}", ASSET)

    raw_version = reader.read_u32("version")
    try:
        version = AnmVersion(raw_version)
    except ValueError:
        raise UnsupportedVersion(raw_version, ASSET) from None

    animation = Animation(name)
    _VERSION_READERS[version](reader, animation)

    logger.info("ANM version %d loaded: '%s', %.2fs, %d tracks",
                version, name, animation.duration, len(animation.tracks))
    return animation


def write_animation(
    animation: Animation,
    version: int = AnmVersion.KEYFRAMED,
    fps: Optional[float] = None,
) -> bytes:
    """
    Encode an animation as an ANM buffer.

    Sampled versions require every track to hold the same number of frames,
    spaced at 1 / fps.

    Args:
        animation: Clip to encode
        version: Target version
        fps: Sampling rate for sampled versions, defaults to animation.fps

    Returns:
        ANM file contents
    """
    version = AnmVersion(version)
    writer = BinaryWriter()
    writer.write_bytes(ANM_SIGNATURE)
    writer.write_u32(int(version))
    writer.write_f32(animation.duration)

    tracks = list(animation.tracks.values())

    if version == AnmVersion.KEYFRAMED:
        writer.write_u32(len(tracks))
        for track in tracks:
            keys = np.zeros(len(track), dtype=KEYFRAME)
            keys['time'] = track.times
            keys['translation'] = track.translations
            keys['rotation'] = track.rotations
            keys['scale'] = track.scales
            writer.write_u32(track.joint_hash)
            writer.write_u32(len(track))
            writer.write_bytes(keys.tobytes())
        return writer.getvalue()

    fps = fps if fps is not None else animation.fps
    if fps is None:
        raise ValueError("sampled ANM versions need an fps")
    frame_counts = {len(track) for track in tracks}
    if len(frame_counts) > 1:
        raise ValueError("sampled ANM versions need the same frame count on every track")
    frame_count = frame_counts.pop() if frame_counts else 0

    quantized = version == AnmVersion.SAMPLED_QUANTIZED
    frame_dtype = QUANTIZED_FRAME if quantized else FRAME
    writer.write_f32(fps)
    writer.write_u32(frame_count)
    writer.write_u32(len(tracks))
    for track in tracks:
        frames = np.zeros(frame_count, dtype=frame_dtype)
        frames['translation'] = track.translations
        frames['scale'] = track.scales
        if quantized:
            frames['rotation'] = np.round(track.rotations * ANM_QUANTIZED_SCALE).astype('i2')
        else:
            frames['rotation'] = track.rotations
        writer.write_u32(track.joint_hash)
        writer.write_bytes(frames.tobytes())

    return writer.getvalue()
