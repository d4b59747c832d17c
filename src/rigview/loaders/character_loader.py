"""Character loader: decode, bind and wire up one character from raw buffers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..animation.animation import Animation
from ..animation.animation_controller import AnimationController
from ..animation.skeleton import Skeleton
from ..animation.skin import Skin
from ..formats.anm import read_animation
from ..formats.errors import AssetDecodeError
from ..formats.skl import read_skeleton
from ..formats.skn import read_skin

logger = logging.getLogger(__name__)


@dataclass
class CharacterSource:
    """Raw buffers for one character, already read by the caller."""

    name: str
    skin: bytes
    skeleton: bytes
    animations: Dict[str, bytes] = field(default_factory=dict)
    materials: Dict[str, str] = field(default_factory=dict)
    texture_names: List[str] = field(default_factory=list)
    visibility: Dict[str, bool] = field(default_factory=dict)
    selected_animation: Optional[str] = None


@dataclass
class Character:
    """
    Everything one loaded character owns.

    The controller holds this character's joint matrix buffer; nothing here
    is shared with other characters.
    """

    name: str
    skin: Skin
    skeleton: Skeleton
    animations: List[Animation]
    controller: AnimationController

    @property
    def joint_transforms(self):
        return self.controller.joint_transforms


@dataclass
class CharacterLoadResult:
    """Result returned from :class:`CharacterLoader`."""

    character: Character
    errors: Dict[str, AssetDecodeError] = field(default_factory=dict)


class CharacterLoader:
    """
    Load characters from byte buffers.

    A skin or skeleton that fails to decode aborts that character only. A
    broken animation clip is dropped and reported while the rest loads.
    """

    def load(self, source: CharacterSource) -> CharacterLoadResult:
        """
        Decode and bind one character.

        Args:
            source: Raw buffers and viewer configuration

        Returns:
            The character and any per-clip decode errors

        Raises:
            AssetDecodeError: The skin or skeleton buffer is invalid
            SkinBindingError: The skin cannot be bound to the skeleton
        """
        logger.info("Loading character: %s", source.name)

        skin = read_skin(source.skin)
        skeleton = read_skeleton(source.skeleton, name=source.name)
        skin.apply_skeleton(skeleton)

        if source.materials:
            skin.assign_materials(source.materials, source.texture_names)
        if source.visibility:
            skin.set_visibility(source.visibility)

        animations: List[Animation] = []
        errors: Dict[str, AssetDecodeError] = {}
        for clip_name, data in sorted(source.animations.items()):
            try:
                animations.append(read_animation(data, name=clip_name))
            except AssetDecodeError as exc:
                logger.error("Failed to load animation '%s' for %s: %s", clip_name, source.name, exc)
                errors[clip_name] = exc

        controller = AnimationController(skeleton, animations)
        if source.selected_animation and not controller.select(source.selected_animation):
            logger.warning("Selected animation '%s' not found for %s",
                           source.selected_animation, source.name)

        character = Character(
            name=source.name,
            skin=skin,
            skeleton=skeleton,
            animations=animations,
            controller=controller,
        )
        logger.info("  Loaded %s: %d submeshes, %d joints, %d animations",
                    source.name, len(skin.submeshes), skeleton.joint_count, len(animations))
        return CharacterLoadResult(character=character, errors=errors)

    def load_many(
        self, sources: Sequence[CharacterSource]
    ) -> Tuple[List[CharacterLoadResult], Dict[str, Exception]]:
        """
        Load several characters, skipping the ones that fail.

        Returns:
            (successful results in input order, failures keyed by character name)
        """
        results: List[CharacterLoadResult] = []
        failures: Dict[str, Exception] = {}
        for source in sources:
            try:
                results.append(self.load(source))
            except ValueError as exc:
                # AssetDecodeError and SkinBindingError both derive from ValueError
                logger.error("Failed to load character '%s': %s", source.name, exc)
                failures[source.name] = exc
        return results, failures


def load_character(
    name: str,
    skin: bytes,
    skeleton: bytes,
    animations: Optional[Mapping[str, bytes]] = None,
) -> CharacterLoadResult:
    """Convenience wrapper around :meth:`CharacterLoader.load`."""
    source = CharacterSource(name=name, skin=skin, skeleton=skeleton,
                             animations=dict(animations or {}))
    return CharacterLoader().load(source)
