"""
Transform Math

TRS composition and keyframe interpolation on top of pyrr.

Matrices follow pyrr's row-vector layout (``v' = v @ M``, translation in row
3), so "apply A then B" is ``A @ B``.
"""

import numpy as np
from pyrr import matrix44, quaternion

IDENTITY_ROTATION = np.array([0.0, 0.0, 0.0, 1.0], dtype='f4')  # (x, y, z, w)


def compose_trs(translation, rotation, scale) -> np.ndarray:
    """
    Build a local transform that scales, then rotates, then translates.

    Args:
        translation: (3,) translation
        rotation: (4,) quaternion (x, y, z, w)
        scale: (3,) scale

    Returns:
        4x4 float32 matrix
    """
    rotation = normalize_quaternion(rotation)
    scale_mat = matrix44.create_from_scale(scale, dtype='f4')
    # pyrr's create_from_quaternion is the column-vector form; v @ M needs its transpose
    rot_mat = matrix44.create_from_inverse_of_quaternion(rotation, dtype='f4')
    pos_mat = matrix44.create_from_translation(translation, dtype='f4')
    return scale_mat @ rot_mat @ pos_mat


def normalize_quaternion(rotation) -> np.ndarray:
    """Unit quaternion; a zero quaternion becomes the identity rotation."""
    rotation = np.asarray(rotation, dtype='f4')
    length = float(np.linalg.norm(rotation))
    if length == 0.0:
        return IDENTITY_ROTATION.copy()
    return quaternion.normalize(rotation).astype('f4')


def lerp(v0, v1, factor: float) -> np.ndarray:
    """Linear interpolation between two vectors."""
    v0 = np.asarray(v0, dtype='f4')
    v1 = np.asarray(v1, dtype='f4')
    return v0 * (1.0 - factor) + v1 * factor


def slerp(q0, q1, factor: float) -> np.ndarray:
    """
    Shortest-arc spherical interpolation between two quaternions.

    q1 is negated when the pair lies more than 90 degrees apart so pyrr never
    takes the long way round, and the result is renormalized.
    """
    q0 = np.asarray(q0, dtype='f4')
    q1 = np.asarray(q1, dtype='f4')
    if float(np.dot(q0, q1)) < 0.0:
        q1 = -q1
    return normalize_quaternion(quaternion.slerp(q0, q1, factor))


def inverse(matrix) -> np.ndarray:
    return matrix44.inverse(np.asarray(matrix, dtype='f4')).astype('f4')
