"""FNV-1a name hashing for joints and submeshes."""

from typing import Union

FNV1A_OFFSET_BASIS = 0x811C9DC5
FNV1A_PRIME = 0x01000193


def fnv1a(name: Union[str, bytes]) -> int:
    """
    Hash a name with 32-bit FNV-1a.

    Strings are hashed over their UTF-8 bytes with no case folding, so
    "Root" and "root" hash differently.

    Args:
        name: Joint or submesh name

    Returns:
        Unsigned 32-bit hash
    """
    data = name.encode("utf-8") if isinstance(name, str) else bytes(name)

    value = FNV1A_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV1A_PRIME) & 0xFFFFFFFF
    return value
