"""
Skeleton

Represents a hierarchical skeleton structure with joints/bones.
"""

from typing import List, Optional, Dict, Sequence
import numpy as np

from ..formats.errors import InvalidHierarchy
from ..formats.hasher import fnv1a
from .transform import IDENTITY_ROTATION, compose_trs, inverse


class Joint:
    """
    Represents a single joint (bone) in a skeleton hierarchy.

    Each joint has:
    - Bind-pose local transform (relative to parent) as translation/rotation/scale
    - Bind-pose model transform and its inverse, used to cancel the bind pose
      during skinning
    - Parent-child relationships by index
    """

    def __init__(
        self,
        name: str,
        index: int,
        parent: Optional[int] = None,
        translation=None,
        rotation=None,
        scale=None,
        name_hash: Optional[int] = None,
    ):
        """
        Initialize a joint.

        Args:
            name: Joint name
            index: Joint index in skeleton
            parent: Parent joint index (None for root)
            translation: Bind-pose local translation
            rotation: Bind-pose local rotation quaternion (x, y, z, w)
            scale: Bind-pose local scale
            name_hash: Stored hash; recomputed from the name when omitted
        """
        self.name = name
        self.index = index
        self.parent = parent
        self.hash = fnv1a(name) if name_hash is None else name_hash
        self.children: List[int] = []

        # Bind pose defaults used when an animation has no track for this joint
        self.translation = np.array(translation if translation is not None else (0.0, 0.0, 0.0), dtype='f4')
        self.rotation = np.array(rotation if rotation is not None else IDENTITY_ROTATION, dtype='f4')
        self.scale = np.array(scale if scale is not None else (1.0, 1.0, 1.0), dtype='f4')

        # Local transform (relative to parent)
        self.local_transform = compose_trs(self.translation, self.rotation, self.scale)

        # Model-space bind transform and inverse, filled by Skeleton.update_bind_transforms
        self.bind_transform = np.identity(4, dtype='f4')
        self.inverse_bind_transform = np.identity(4, dtype='f4')

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def __repr__(self):
        return f"Joint(name='{self.name}', index={self.index}, parent={self.parent})"


class Skeleton:
    """
    Hierarchical skeleton structure.

    Joints are stored parent-before-child, so a single forward pass over
    `joints` visits every parent before its children.

    The optional `influences` table maps a skin's local palette slot to a
    joint index in this skeleton.
    """

    def __init__(
        self,
        joints: Sequence[Joint],
        influences: Optional[Sequence[int]] = None,
        name: str = "Skeleton",
        version: int = 0,
    ):
        """
        Initialize skeleton.

        Args:
            joints: Joints in parent-before-child order
            influences: Authored palette-slot -> joint-index table, if the file has one
            name: Skeleton name for debugging
            version: Format version the skeleton was read from

        Raises:
            InvalidHierarchy: The joints do not form a single rooted tree in order
        """
        self.name = name
        self.version = version
        self.joints: List[Joint] = list(joints)
        self.influences: Optional[List[int]] = list(influences) if influences is not None else None
        self.joint_by_name: Dict[str, Joint] = {}
        self.joint_by_hash: Dict[int, Joint] = {}

        validate_hierarchy([joint.parent for joint in self.joints])

        for joint in self.joints:
            self.joint_by_name[joint.name] = joint
            self.joint_by_hash[joint.hash] = joint
            joint.children = []
        for joint in self.joints:
            if joint.parent is not None:
                self.joints[joint.parent].children.append(joint.index)

        self.root = self.joints[0]
        self.update_bind_transforms()

    @property
    def joint_count(self) -> int:
        return len(self.joints)

    def get_joint(self, name: str) -> Optional[Joint]:
        """
        Find a joint by name.

        Args:
            name: Joint name

        Returns:
            Joint if found, None otherwise
        """
        return self.joint_by_name.get(name)

    def get_joint_by_hash(self, name_hash: int) -> Optional[Joint]:
        return self.joint_by_hash.get(name_hash)

    def influence_table(self) -> List[int]:
        """
        Palette-slot -> joint-index table used when binding a skin.

        Falls back to the identity mapping over all joints when the file did
        not carry an authored table.
        """
        if self.influences is not None:
            return list(self.influences)
        return list(range(self.joint_count))

    def update_bind_transforms(self):
        """
        Compose bind-pose model transforms root first and store their inverses.

        model = local @ parent_model (row-vector form of parent * local).
        """
        for joint in self.joints:
            if joint.parent is None:
                joint.bind_transform = joint.local_transform.copy()
            else:
                parent_model = self.joints[joint.parent].bind_transform
                joint.bind_transform = joint.local_transform @ parent_model
            joint.inverse_bind_transform = inverse(joint.bind_transform)

    def __repr__(self):
        return f"Skeleton(name='{self.name}', joints={len(self.joints)})"


def validate_hierarchy(parents: Sequence[Optional[int]]):
    """
    Check that parent references form one tree stored parent-first.

    Args:
        parents: Parent index per joint, None for the root

    Raises:
        InvalidHierarchy: Empty skeleton, zero or several roots, or a parent
            that does not precede its child (out of range or cyclic)
    """
    if not parents:
        raise InvalidHierarchy("skeleton has no joints", "SKL")

    roots = [index for index, parent in enumerate(parents) if parent is None]
    if len(roots) != 1:
        raise InvalidHierarchy(f"expected exactly one root joint, found {len(roots)}", "SKL")
    if roots[0] != 0:
        raise InvalidHierarchy(f"root joint {roots[0]} is not stored first", "SKL")

    for index, parent in enumerate(parents):
        if parent is None:
            continue
        if not 0 <= parent < index:
            raise InvalidHierarchy(
                f"joint {index} references parent {parent}, which does not precede it", "SKL"
            )
