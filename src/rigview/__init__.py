"""
Rigview - Character Asset Core

Decodes SKN skins, SKL skeletons and ANM animations from raw byte buffers and
evaluates skeletal animation into per-joint skinning matrices.
"""

# Formats
from .formats import (
    AssetDecodeError,
    MalformedSignature,
    UnsupportedVersion,
    TruncatedData,
    InvalidIndexRange,
    InvalidName,
    InvalidHierarchy,
    NonMonotonicKeyframes,
    SkinBindingError,
    SkinAlreadyBound,
    InfluenceTableMismatch,
    fnv1a,
)
from .formats.skn import read_skin, write_skin
from .formats.skl import read_skeleton, write_skeleton
from .formats.anm import read_animation, write_animation

# Animation
from .animation import (
    Joint,
    Skeleton,
    Skin,
    Submesh,
    apply_skeleton,
    Keyframe,
    Track,
    Animation,
    evaluate,
    AnimationController,
)

# Loaders
from .loaders import Character, CharacterLoader, CharacterLoadResult, CharacterSource, load_character

__version__ = "0.1.0"
__all__ = [
    # Errors
    "AssetDecodeError",
    "MalformedSignature",
    "UnsupportedVersion",
    "TruncatedData",
    "InvalidIndexRange",
    "InvalidName",
    "InvalidHierarchy",
    "NonMonotonicKeyframes",
    "SkinBindingError",
    "SkinAlreadyBound",
    "InfluenceTableMismatch",
    # Codecs
    "fnv1a",
    "read_skin",
    "write_skin",
    "read_skeleton",
    "write_skeleton",
    "read_animation",
    "write_animation",
    # Animation
    "Joint",
    "Skeleton",
    "Skin",
    "Submesh",
    "apply_skeleton",
    "Keyframe",
    "Track",
    "Animation",
    "evaluate",
    "AnimationController",
    # Loaders
    "Character",
    "CharacterLoader",
    "CharacterLoadResult",
    "CharacterSource",
    "load_character",
]
