"""
Animation System

Skeletons, skins, keyframe clips and skin-palette evaluation.
"""

from .skeleton import Joint, Skeleton
from .skin import Skin, Submesh, apply_skeleton
from .animation import Keyframe, Track, Animation
from .evaluator import evaluate, compute_model_transforms, sample_local_pose
from .animation_controller import AnimationController

__all__ = [
    'Joint',
    'Skeleton',
    'Skin',
    'Submesh',
    'apply_skeleton',
    'Keyframe',
    'Track',
    'Animation',
    'evaluate',
    'compute_model_transforms',
    'sample_local_pose',
    'AnimationController',
]
