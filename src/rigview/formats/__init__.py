"""
Binary asset formats (SKN skins, SKL skeletons, ANM animations).

Codecs live in their own modules (`skn`, `skl`, `anm`); only the shared
error types and the name hasher are re-exported here.
"""

from .errors import (
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
)
from .hasher import fnv1a

__all__ = [
    'AssetDecodeError',
    'MalformedSignature',
    'UnsupportedVersion',
    'TruncatedData',
    'InvalidIndexRange',
    'InvalidName',
    'InvalidHierarchy',
    'NonMonotonicKeyframes',
    'SkinBindingError',
    'SkinAlreadyBound',
    'InfluenceTableMismatch',
    'fnv1a',
]
