"""Loader utilities for characters built from raw asset buffers."""

from .character_loader import (
    Character,
    CharacterLoader,
    CharacterLoadResult,
    CharacterSource,
    load_character,
)

__all__ = ['Character', 'CharacterLoader', 'CharacterLoadResult', 'CharacterSource', 'load_character']
