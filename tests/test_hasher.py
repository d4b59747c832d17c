"""Tests for FNV-1a name hashing"""

from rigview.formats.hasher import fnv1a


def test_fnv1a_known_vectors():
    """Matches the published 32-bit FNV-1a test vectors"""
    assert fnv1a("") == 0x811C9DC5
    assert fnv1a("a") == 0xE40C292C
    assert fnv1a("foobar") == 0xBF9CF968


def test_fnv1a_is_case_sensitive():
    """No case folding is applied before hashing"""
    assert fnv1a("Root") != fnv1a("root")


def test_fnv1a_str_and_bytes_agree():
    """Strings hash over their UTF-8 bytes"""
    assert fnv1a("L_Hand") == fnv1a(b"L_Hand")
    assert fnv1a("Bön") == fnv1a("Bön".encode("utf-8"))


def test_fnv1a_is_stable_and_32_bit():
    """Repeated calls agree and stay within u32 range"""
    names = ["Root", "Pelvis", "Spine1", "Head", "Weapon_Attach"]
    first = [fnv1a(name) for name in names]
    second = [fnv1a(name) for name in names]
    assert first == second
    assert all(0 <= value <= 0xFFFFFFFF for value in first)
