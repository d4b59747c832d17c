"""
Decode Errors

Every decoder raises one of these on bad input. A failure is local to the
asset being decoded; nothing already loaded is touched.
"""

from typing import Optional


class AssetDecodeError(ValueError):
    """Base class for all asset decoding failures."""

    def __init__(self, message: str, asset: Optional[str] = None):
        self.asset = asset
        if asset:
            message = f"{asset}: {message}"
        super().__init__(message)


class MalformedSignature(AssetDecodeError):
    """The buffer does not start with the expected magic bytes."""


class UnsupportedVersion(AssetDecodeError):
    """The format version is not one of the known shipped versions."""

    def __init__(self, version: int, asset: Optional[str] = None):
        self.version = version
        super().__init__(f"unsupported version {version}", asset)


class TruncatedData(AssetDecodeError):
    """Not enough bytes left for a declared field or count."""


class InvalidIndexRange(AssetDecodeError):
    """A submesh range runs past the end of the index buffer."""


class InvalidName(AssetDecodeError):
    """A joint or submesh name is not valid UTF-8."""


class InvalidHierarchy(AssetDecodeError):
    """Joint parent references are out of range, cyclic, or rootless."""


class NonMonotonicKeyframes(AssetDecodeError):
    """Keyframe timestamps go backwards inside a track."""


class SkinBindingError(ValueError):
    """Base class for skin/skeleton binding failures."""


class SkinAlreadyBound(SkinBindingError):
    """The skin's influences were already remapped to skeleton joints."""


class InfluenceTableMismatch(SkinBindingError):
    """The skeleton's influence table cannot remap the skin's palette slots."""
