"""
Animation Controller

Manages clip selection, playback policy and the character's joint matrices.
"""

from typing import List, Optional, Sequence

import numpy as np

from ..config.settings import (
    DEFAULT_ANIMATION_SPEED,
    DEFAULT_LOOP_ANIMATION,
    DEFAULT_NEXT_ANIMATION,
    JOINT_MATRIX_DTYPE,
)
from .animation import Animation
from .evaluator import compute_model_transforms, evaluate
from .skeleton import Skeleton


class AnimationController:
    """
    Controls animation playback for one character.

    Manages:
    - The list of clips and which one is selected
    - Playback time, play/pause, loop and advance-to-next-clip states
    - The character's own joint matrix buffer, rewritten on every update

    Looping and clip switching live here; the evaluator never wraps time.
    """

    def __init__(self, skeleton: Skeleton, animations: Optional[Sequence[Animation]] = None):
        """
        Initialize animation controller.

        Args:
            skeleton: Skeleton to animate
            animations: Clips available to this character
        """
        self.skeleton = skeleton
        self.animations: List[Animation] = list(animations or [])
        self.selected: int = 0
        self.current_time: float = 0.0
        self.is_playing: bool = False
        self.loop: bool = DEFAULT_LOOP_ANIMATION
        self.next_animation: bool = DEFAULT_NEXT_ANIMATION
        self.playback_speed: float = DEFAULT_ANIMATION_SPEED

        # Bind pose until something is evaluated
        self.joint_transforms = np.tile(
            np.identity(4, dtype=JOINT_MATRIX_DTYPE), (skeleton.joint_count, 1, 1)
        )

    @property
    def current_animation(self) -> Optional[Animation]:
        if not self.animations:
            return None
        return self.animations[self.selected]

    def select(self, name: str) -> bool:
        """
        Select a clip by name without starting playback.

        Returns:
            True if a clip with that name exists
        """
        for index, animation in enumerate(self.animations):
            if animation.name == name:
                self.selected = index
                self.current_time = 0.0
                return True
        return False

    def play(self, index: Optional[int] = None, loop: Optional[bool] = None):
        """
        Start playing a clip from the beginning.

        Args:
            index: Clip index, defaults to the selected clip
            loop: Override the loop flag
        """
        if index is not None:
            if not 0 <= index < len(self.animations):
                raise IndexError(f"animation index {index} out of range")
            self.selected = index
        if loop is not None:
            self.loop = loop
        self.current_time = 0.0
        self.is_playing = True

    def pause(self):
        """Pause animation playback."""
        self.is_playing = False

    def resume(self):
        """Resume animation playback."""
        self.is_playing = True

    def stop(self):
        """Stop animation and reset to bind pose."""
        self.is_playing = False
        self.current_time = 0.0
        self.joint_transforms[:] = np.identity(4, dtype=JOINT_MATRIX_DTYPE)

    def set_time(self, time: float):
        """Jump to an externally synchronized time (e.g. shared by several characters)."""
        self.current_time = float(time)
        self._evaluate()

    def update(self, delta_time: float) -> np.ndarray:
        """
        Update animation playback.

        While the time is below the clip duration it advances by
        delta_time * speed. Once it reaches the end the controller moves to
        the next clip, restarts, or holds, depending on the flags.

        Args:
            delta_time: Time elapsed since last frame (seconds)

        Returns:
            The joint matrix buffer
        """
        animation = self.current_animation
        if animation is None:
            return self.joint_transforms

        if self.is_playing:
            if self.current_time < animation.duration:
                self.current_time += delta_time * self.playback_speed
            elif self.next_animation:
                self.selected = (self.selected + 1) % len(self.animations)
                self.current_time = 0.0
            elif self.loop:
                self.current_time = 0.0

        return self._evaluate()

    def model_transforms(self) -> np.ndarray:
        """Model-space joint transforms at the current time, for joint/bone overlays."""
        return compute_model_transforms(self.skeleton, self.current_animation, self.current_time)

    def _evaluate(self) -> np.ndarray:
        evaluate(self.skeleton, self.current_animation, self.current_time, out=self.joint_transforms)
        return self.joint_transforms

    def __repr__(self):
        anim_name = self.current_animation.name if self.current_animation else "None"
        return f"AnimationController(animation='{anim_name}', time={self.current_time:.2f}s, playing={self.is_playing})"
