"""
Skin

Skinned mesh geometry and its binding to a skeleton.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..formats.errors import InfluenceTableMismatch, SkinAlreadyBound
from ..formats.hasher import fnv1a
from .skeleton import Skeleton

logger = logging.getLogger(__name__)


class Submesh:
    """
    Named contiguous range of the shared index buffer.

    `material_index` and `visible` are not part of the file; they are filled
    in later from the viewer configuration.
    """

    def __init__(self, name: str, offset: int, count: int):
        self.name = name
        self.hash = fnv1a(name)
        self.offset = offset
        self.count = count
        self.material_index = 0
        self.visible = True

    @property
    def end(self) -> int:
        return self.offset + self.count

    def __repr__(self):
        return f"Submesh(name='{self.name}', offset={self.offset}, count={self.count})"


class Skin:
    """
    Skin geometry decoded from an SKN buffer.

    Contains:
    - Per-vertex positions, normals, UVs, bone influences and weights
    - A triangle index buffer shared by all submeshes
    - Bounding box and center

    Influences start out as skin-local palette slots and become global joint
    indices after :func:`apply_skeleton`. That rewrite happens exactly once.
    """

    def __init__(
        self,
        positions: np.ndarray,
        normals: np.ndarray,
        uvs: np.ndarray,
        influences: np.ndarray,
        weights: np.ndarray,
        indices: np.ndarray,
        submeshes: List[Submesh],
        bounding_box: Optional[np.ndarray] = None,
        major: int = 0,
        minor: int = 0,
    ):
        """
        Initialize skin.

        Args:
            positions: (N, 3) vertex positions
            normals: (N, 3) unit normals
            uvs: (N, 2) texture coordinates
            influences: (N, 4) palette slots per vertex
            weights: (N, 4) influence weights per vertex
            indices: (M,) triangle indices
            submeshes: Index ranges into `indices`
            bounding_box: (2, 3) min/max; computed from positions when omitted
            major: Format major version the skin was read from
            minor: Format minor version
        """
        self.major = major
        self.minor = minor
        self.positions = np.asarray(positions, dtype='f4').reshape(-1, 3)
        self.normals = np.asarray(normals, dtype='f4').reshape(-1, 3)
        self.uvs = np.asarray(uvs, dtype='f4').reshape(-1, 2)
        self.influences = np.asarray(influences, dtype='u2').reshape(-1, 4)
        self.weights = np.asarray(weights, dtype='f4').reshape(-1, 4)
        self.indices = np.asarray(indices, dtype='u2').reshape(-1)
        self.submeshes = submeshes
        self.vertex_type = 0
        self.is_bound = False

        if bounding_box is None:
            bounding_box = compute_bounding_box(self.positions)
        self.bounding_box = np.asarray(bounding_box, dtype='f4').reshape(2, 3)
        self.center = (self.bounding_box[0] + self.bounding_box[1]) / 2.0

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    def get_submesh(self, name: str) -> Optional[Submesh]:
        """Find a submesh by name (compared through its hash)."""
        name_hash = fnv1a(name)
        for submesh in self.submeshes:
            if submesh.hash == name_hash:
                return submesh
        return None

    def submesh_indices(self, submesh: Submesh) -> np.ndarray:
        """Slice of the index buffer drawn for `submesh`."""
        return self.indices[submesh.offset:submesh.end]

    def assign_materials(self, name_to_texture: Dict[str, str], texture_names: Sequence[str]):
        """
        Set each submesh's material slot from a submesh-name -> texture-name map.

        Args:
            name_to_texture: Submesh name to texture name
            texture_names: Loaded texture names; the slot is the position in this list
        """
        for submesh in self.submeshes:
            texture_name = name_to_texture.get(submesh.name)
            if texture_name is None:
                logger.warning("No material configured for submesh '%s'", submesh.name)
                continue
            try:
                submesh.material_index = list(texture_names).index(texture_name)
            except ValueError:
                logger.warning("Texture '%s' for submesh '%s' is not loaded",
                               texture_name, submesh.name)

    def set_visibility(self, name_to_visible: Dict[str, bool]):
        """Show/hide submeshes by name; unnamed submeshes keep their state."""
        for submesh in self.submeshes:
            if submesh.name in name_to_visible:
                submesh.visible = bool(name_to_visible[submesh.name])

    def apply_skeleton(self, skeleton: Skeleton):
        """Remap influences to skeleton joints. See :func:`apply_skeleton`."""
        apply_skeleton(self, skeleton)

    def __repr__(self):
        return (f"Skin(vertices={self.vertex_count}, indices={self.index_count}, "
                f"submeshes={len(self.submeshes)}, bound={self.is_bound})")


def compute_bounding_box(positions: np.ndarray) -> np.ndarray:
    """
    Component-wise min/max over positions.

    Returns:
        (2, 3) array [min, max]; all zeros for an empty mesh
    """
    positions = np.asarray(positions, dtype='f4').reshape(-1, 3)
    if len(positions) == 0:
        return np.zeros((2, 3), dtype='f4')
    return np.array([positions.min(axis=0), positions.max(axis=0)], dtype='f4')


def apply_skeleton(skin: Skin, skeleton: Skeleton):
    """
    Rewrite a skin's palette slots into global skeleton joint indices.

    Each influence component `slot` becomes `skeleton.influence_table()[slot]`.
    The table is validated against the largest slot in the skin before any
    vertex is touched, and a skin can only be bound once.

    Args:
        skin: Freshly decoded, unbound skin
        skeleton: Skeleton the skin was authored against

    Raises:
        SkinAlreadyBound: The skin was bound before
        InfluenceTableMismatch: The table is too short or points outside the skeleton
    """
    if skin.is_bound:
        raise SkinAlreadyBound("skin influences are already remapped to skeleton joints")

    table = np.asarray(skeleton.influence_table(), dtype=np.int64)

    if skin.vertex_count > 0:
        max_slot = int(skin.influences.max())
        if max_slot >= len(table):
            raise InfluenceTableMismatch(
                f"skin uses palette slot {max_slot} but the skeleton's influence "
                f"table only has {len(table)} entries"
            )
        used = table[:max_slot + 1]
        if len(used) and (used.min() < 0 or used.max() >= skeleton.joint_count):
            raise InfluenceTableMismatch(
                f"influence table maps into joints outside [0, {skeleton.joint_count})"
            )

        skin.influences = table[skin.influences].astype('u2')

    skin.is_bound = True
    logger.debug("Bound skin (%d vertices) to skeleton '%s'", skin.vertex_count, skeleton.name)
