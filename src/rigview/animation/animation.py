"""
Animation

Keyframe animation data and sampling.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..formats.errors import NonMonotonicKeyframes
from .transform import lerp, slerp

logger = logging.getLogger(__name__)


class Keyframe:
    """
    Single keyframe in a joint track.

    Stores time and the joint's full local translation/rotation/scale.
    """

    def __init__(self, time: float, translation, rotation, scale):
        """
        Initialize keyframe.

        Args:
            time: Time in seconds
            translation: (3,) local translation
            rotation: (4,) local rotation quaternion (x, y, z, w)
            scale: (3,) local scale
        """
        self.time = float(time)
        self.translation = np.asarray(translation, dtype='f4')
        self.rotation = np.asarray(rotation, dtype='f4')
        self.scale = np.asarray(scale, dtype='f4')

    def __repr__(self):
        return f"Keyframe(t={self.time:.3f})"


class Track:
    """
    Time-ordered keyframes for one joint, identified by its name hash.

    Keyframe components are held as parallel numpy arrays so lookups can use
    a binary search over `times`.
    """

    def __init__(self, joint_hash: int, times, translations, rotations, scales):
        """
        Initialize track.

        Args:
            joint_hash: Hash of the joint this track drives
            times: (K,) non-decreasing timestamps in seconds
            translations: (K, 3) translations
            rotations: (K, 4) quaternions (x, y, z, w)
            scales: (K, 3) scales

        Raises:
            NonMonotonicKeyframes: A timestamp is smaller than the one before it
        """
        self.joint_hash = joint_hash
        self.times = np.asarray(times, dtype='f4').reshape(-1)
        self.translations = np.asarray(translations, dtype='f4').reshape(-1, 3)
        self.rotations = np.asarray(rotations, dtype='f4').reshape(-1, 4)
        self.scales = np.asarray(scales, dtype='f4').reshape(-1, 3)

        count = len(self.times)
        if not (len(self.translations) == len(self.rotations) == len(self.scales) == count):
            raise ValueError(f"track {joint_hash:#010x} has mismatched keyframe component counts")
        if not np.all(np.isfinite(self.times)):
            raise NonMonotonicKeyframes(
                f"track {joint_hash:#010x} has a non-finite keyframe timestamp", "ANM"
            )
        if count > 1 and np.any(np.diff(self.times) < 0):
            raise NonMonotonicKeyframes(
                f"track {joint_hash:#010x} has decreasing keyframe timestamps", "ANM"
            )

    @classmethod
    def from_keyframes(cls, joint_hash: int, keyframes: Iterable[Keyframe]) -> 'Track':
        keyframes = list(keyframes)
        return cls(
            joint_hash,
            [k.time for k in keyframes],
            [k.translation for k in keyframes],
            [k.rotation for k in keyframes],
            [k.scale for k in keyframes],
        )

    @property
    def keyframes(self) -> List[Keyframe]:
        return [
            Keyframe(self.times[i], self.translations[i], self.rotations[i], self.scales[i])
            for i in range(len(self.times))
        ]

    @property
    def start_time(self) -> float:
        return float(self.times[0]) if len(self.times) else 0.0

    @property
    def end_time(self) -> float:
        return float(self.times[-1]) if len(self.times) else 0.0

    def __len__(self):
        return len(self.times)

    def sample(self, time: float) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """
        Sample the track at a given time.

        Times before the first keyframe return the first keyframe, times after
        the last return the last; nothing is interpolated in either case.

        Args:
            time: Time in seconds

        Returns:
            (translation, rotation, scale), or None for an empty track
        """
        count = len(self.times)
        if count == 0:
            return None

        if time <= self.times[0]:
            return self._keyframe_values(0)
        if time >= self.times[-1]:
            return self._keyframe_values(count - 1)

        # Bracketing pair k0.time <= time < k1.time
        next_idx = int(np.searchsorted(self.times, time, side='right'))
        prev_idx = next_idx - 1

        t0 = float(self.times[prev_idx])
        t1 = float(self.times[next_idx])
        factor = (time - t0) / (t1 - t0) if t1 > t0 else 0.0

        translation = lerp(self.translations[prev_idx], self.translations[next_idx], factor)
        rotation = slerp(self.rotations[prev_idx], self.rotations[next_idx], factor)
        scale = lerp(self.scales[prev_idx], self.scales[next_idx], factor)
        return translation, rotation, scale

    def _keyframe_values(self, index: int):
        return (
            self.translations[index].copy(),
            self.rotations[index].copy(),
            self.scales[index].copy(),
        )

    def __repr__(self):
        return f"Track(joint_hash={self.joint_hash:#010x}, keyframes={len(self.times)})"


class Animation:
    """
    A single animation clip: a duration and one track per animated joint.

    Joints with no track are static and hold their bind pose.
    """

    def __init__(self, name: str = "", duration: float = 0.0, fps: Optional[float] = None):
        """
        Initialize animation.

        Args:
            name: Animation name
            duration: Declared clip length in seconds
            fps: Sampling rate for fixed-interval clips, None for keyframed ones
        """
        self.name = name
        self.duration = float(duration)
        self.fps = fps
        self.tracks: Dict[int, Track] = {}

    def add_track(self, track: Track):
        """Add a joint track; the duration grows to cover its last keyframe."""
        if track.joint_hash in self.tracks:
            logger.warning("Animation '%s' has a duplicate track for joint %#010x; keeping the later one",
                           self.name, track.joint_hash)
        self.tracks[track.joint_hash] = track

        if len(track):
            self.duration = max(self.duration, track.end_time)

    def get_track(self, joint_hash: int) -> Optional[Track]:
        return self.tracks.get(joint_hash)

    def __repr__(self):
        return f"Animation(name='{self.name}', duration={self.duration:.2f}s, tracks={len(self.tracks)})"
