"""Tests for the ANM animation codec"""

import math
import struct

import numpy as np
import pytest

from rigview.animation.animation import Animation, Keyframe, Track
from rigview.formats.anm import AnmVersion, read_animation, write_animation
from rigview.formats.errors import (
    MalformedSignature,
    NonMonotonicKeyframes,
    TruncatedData,
    UnsupportedVersion,
)
from rigview.formats.hasher import fnv1a

IDENTITY = (0.0, 0.0, 0.0, 1.0)
ONE = (1.0, 1.0, 1.0)


def build_keyframed(duration, tracks):
    """
    Assemble a version 1 ANM buffer.

    tracks: list of (joint hash, [(time, translation, rotation, scale), ...])
    """
    out = bytearray(b"r3d2anmd")
    out += struct.pack("<IfI", 1, duration, len(tracks))
    for joint_hash, keys in tracks:
        out += struct.pack("<II", joint_hash, len(keys))
        for time, translation, rotation, scale in keys:
            out += struct.pack("<f3f4f3f", time, *translation, *rotation, *scale)
    return bytes(out)


def build_sampled(duration, fps, tracks, quantized=False):
    """
    Assemble a version 2/3 ANM buffer.

    tracks: list of (joint hash, [(translation, rotation, scale), ...])
    """
    frame_count = len(tracks[0][1]) if tracks else 0
    out = bytearray(b"r3d2anmd")
    out += struct.pack("<IffII", 3 if quantized else 2, duration, fps, frame_count, len(tracks))
    for joint_hash, frames in tracks:
        out += struct.pack("<I", joint_hash)
        for translation, rotation, scale in frames:
            out += struct.pack("<3f", *translation)
            if quantized:
                out += struct.pack("<4h", *(int(round(c * 32767)) for c in rotation))
            else:
                out += struct.pack("<4f", *rotation)
            out += struct.pack("<3f", *scale)
    return bytes(out)


ROOT = fnv1a("Root")
ARM = fnv1a("L_Arm")


def test_read_keyframed_tracks():
    data = build_keyframed(1.0, [
        (ROOT, [(0.0, (0.0, 0.0, 0.0), IDENTITY, ONE), (1.0, (10.0, 0.0, 0.0), IDENTITY, ONE)]),
        (ARM, [(0.25, (0.0, 1.0, 0.0), IDENTITY, (2.0, 2.0, 2.0))]),
    ])
    animation = read_animation(data, name="run")

    assert animation.name == "run"
    assert animation.duration == pytest.approx(1.0)
    assert animation.fps is None
    assert set(animation.tracks) == {ROOT, ARM}

    root = animation.get_track(ROOT)
    assert root.times.tolist() == [0.0, 1.0]
    assert np.allclose(root.translations[1], (10.0, 0.0, 0.0))
    arm = animation.get_track(ARM)
    assert len(arm) == 1
    assert np.allclose(arm.scales[0], (2.0, 2.0, 2.0))
    assert animation.get_track(fnv1a("Head")) is None


def test_duration_covers_last_keyframe():
    """A declared duration shorter than the keys is widened"""
    data = build_keyframed(0.5, [
        (ROOT, [(0.0, (0.0, 0.0, 0.0), IDENTITY, ONE), (2.0, (1.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    assert read_animation(data).duration == pytest.approx(2.0)


def test_decreasing_timestamps_rejected():
    data = build_keyframed(1.0, [
        (ROOT, [(0.5, (0.0, 0.0, 0.0), IDENTITY, ONE), (0.25, (1.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    with pytest.raises(NonMonotonicKeyframes):
        read_animation(data)


def test_equal_timestamps_allowed():
    data = build_keyframed(1.0, [
        (ROOT, [(0.5, (0.0, 0.0, 0.0), IDENTITY, ONE), (0.5, (1.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    assert len(read_animation(data).get_track(ROOT)) == 2


def test_read_sampled_reconstructs_timestamps():
    """Fixed-interval clips get timestamps frame / fps"""
    frames = [((float(i), 0.0, 0.0), IDENTITY, ONE) for i in range(4)]
    animation = read_animation(build_sampled(0.3, 10.0, [(ROOT, frames), (ARM, frames)]))

    assert animation.fps == pytest.approx(10.0)
    track = animation.get_track(ROOT)
    assert np.allclose(track.times, [0.0, 0.1, 0.2, 0.3])
    assert np.allclose(track.translations[:, 0], [0.0, 1.0, 2.0, 3.0])
    assert animation.duration == pytest.approx(0.3)


def test_read_quantized_rotations():
    half = math.sqrt(0.5)
    frames = [((0.0, 0.0, 0.0), IDENTITY, ONE), ((0.0, 0.0, 0.0), (0.0, 0.0, half, half), ONE)]
    animation = read_animation(build_sampled(1.0, 1.0, [(ROOT, frames)], quantized=True))

    rotations = animation.get_track(ROOT).rotations
    assert np.allclose(rotations[0], IDENTITY, atol=1e-4)
    assert np.allclose(rotations[1], (0.0, 0.0, half, half), atol=1e-4)
    assert np.allclose(np.linalg.norm(rotations, axis=1), 1.0, atol=1e-6)


def test_sampled_clip_needs_positive_fps():
    frames = [((0.0, 0.0, 0.0), IDENTITY, ONE)] * 3
    with pytest.raises(NonMonotonicKeyframes):
        read_animation(build_sampled(1.0, 0.0, [(ROOT, frames)]))


def test_bad_signature_rejected():
    with pytest.raises(MalformedSignature):
        read_animation(b"r3d2sklt" + struct.pack("<IfI", 1, 0.0, 0))


def test_unsupported_version_rejected():
    with pytest.raises(UnsupportedVersion):
        read_animation(b"r3d2anmd" + struct.pack("<IfI", 7, 0.0, 0))


def test_truncated_buffer_rejected():
    data = build_keyframed(1.0, [
        (ROOT, [(0.0, (0.0, 0.0, 0.0), IDENTITY, ONE), (1.0, (10.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    for cut in (5, 14, 22, len(data) - 1):
        with pytest.raises(TruncatedData):
            read_animation(data[:cut])


def test_duplicate_track_keeps_later_one():
    data = build_keyframed(1.0, [
        (ROOT, [(0.0, (1.0, 0.0, 0.0), IDENTITY, ONE)]),
        (ROOT, [(0.0, (2.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    animation = read_animation(data)
    assert len(animation.tracks) == 1
    assert np.allclose(animation.get_track(ROOT).translations[0], (2.0, 0.0, 0.0))


def test_track_from_keyframes():
    track = Track.from_keyframes(ROOT, [
        Keyframe(0.0, (0.0, 0.0, 0.0), IDENTITY, ONE),
        Keyframe(2.0, (4.0, 0.0, 0.0), IDENTITY, ONE),
    ])
    assert track.start_time == 0.0
    assert track.end_time == 2.0
    assert [k.time for k in track.keyframes] == [0.0, 2.0]


@pytest.mark.parametrize("version", list(AnmVersion))
def test_write_then_read_preserves_structure(version):
    animation = Animation("walk", fps=4.0)
    for joint_hash in (ROOT, ARM):
        animation.add_track(Track(
            joint_hash,
            times=[0.0, 0.25, 0.5],
            translations=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)],
            rotations=[IDENTITY] * 3,
            scales=[ONE] * 3,
        ))

    decoded = read_animation(write_animation(animation, version=version), name="walk")

    assert set(decoded.tracks) == {ROOT, ARM}
    assert decoded.duration == pytest.approx(0.5)
    for joint_hash in (ROOT, ARM):
        track = decoded.get_track(joint_hash)
        assert np.allclose(track.times, [0.0, 0.25, 0.5])
        assert np.allclose(track.translations[:, 0], [0.0, 1.0, 2.0])


def test_nan_timestamp_rejected():
    data = build_keyframed(1.0, [
        (ROOT, [(0.0, (0.0, 0.0, 0.0), IDENTITY, ONE), (float("nan"), (1.0, 0.0, 0.0), IDENTITY, ONE)]),
    ])
    with pytest.raises(NonMonotonicKeyframes):
        read_animation(data)
