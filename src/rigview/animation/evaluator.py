"""
Animation Evaluator

Samples one animation clip on a skeleton and produces the skin palette: one
matrix per joint that maps bind-pose vertices into the current pose.
"""

from typing import List, Optional, Tuple

import numpy as np

from ..config.settings import JOINT_MATRIX_DTYPE
from .animation import Animation
from .skeleton import Skeleton
from .transform import compose_trs

LocalPose = Tuple[np.ndarray, np.ndarray, np.ndarray]


def sample_local_pose(skeleton: Skeleton, animation: Optional[Animation], time: float) -> List[LocalPose]:
    """
    Sample every joint's local translation/rotation/scale at `time`.

    Joints without a track (or an empty one) keep their bind pose. This is
    also what lets a clip authored for one skeleton play on another that only
    shares some joint names.

    Args:
        skeleton: Skeleton to pose
        animation: Clip to sample, or None for the bind pose
        time: Sample time in seconds; not looped or clamped to the duration

    Returns:
        (translation, rotation, scale) per joint, in skeleton order
    """
    pose = []
    for joint in skeleton.joints:
        track = animation.get_track(joint.hash) if animation is not None else None
        sample = track.sample(time) if track is not None else None
        if sample is None:
            sample = (joint.translation, joint.rotation, joint.scale)
        pose.append(sample)
    return pose


def compute_model_transforms(skeleton: Skeleton, animation: Optional[Animation], time: float) -> np.ndarray:
    """
    Model-space transform of every joint at `time`.

    Used directly by joint/bone debug overlays and as the first half of
    :func:`evaluate`.

    Returns:
        (J, 4, 4) array in skeleton joint order
    """
    model = np.empty((skeleton.joint_count, 4, 4), dtype='f4')
    pose = sample_local_pose(skeleton, animation, time)

    # Parents precede children, so one forward pass is enough
    for joint, (translation, rotation, scale) in zip(skeleton.joints, pose):
        local = compose_trs(translation, rotation, scale)
        if joint.parent is None:
            model[joint.index] = local
        else:
            model[joint.index] = local @ model[joint.parent]
    return model


def evaluate(
    skeleton: Skeleton,
    animation: Optional[Animation],
    time: float,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Evaluate the skin palette for `animation` at `time`.

    Joint matrix formula (row-vector form of model * inverse_bind):
    jointMatrix = inverseBindTransform @ modelTransform

    Args:
        skeleton: Skeleton to pose
        animation: Clip to sample, or None for the bind pose
        time: Sample time in seconds
        out: Optional (J, 4, 4) buffer that is overwritten and returned

    Returns:
        (J, 4, 4) joint matrices indexed like `skeleton.joints`
    """
    if out is None:
        out = np.empty((skeleton.joint_count, 4, 4), dtype=JOINT_MATRIX_DTYPE)
    elif out.shape != (skeleton.joint_count, 4, 4):
        raise ValueError(
            f"joint transform buffer has shape {out.shape}, expected ({skeleton.joint_count}, 4, 4)"
        )

    model = compute_model_transforms(skeleton, animation, time)
    for joint in skeleton.joints:
        out[joint.index] = joint.inverse_bind_transform @ model[joint.index]
    return out
