"""
Rigview Configuration Settings

All configuration constants for the asset decoders and animation playback.
Modify these values to change decoder/playback behavior.
"""

import logging

# ============================================================================
# Logging
# ============================================================================

LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# ============================================================================
# Skin (SKN) Format
# ============================================================================

SKN_SIGNATURE = b"\x33\x22\x11\x00"
SKN_SUBMESH_NAME_SIZE = 64       # NUL-padded submesh name field
SKN_SUBMESH_PADDING = 8          # Reserved bytes after each submesh name
SKN_IMPLICIT_SUBMESH_NAME = "Base"  # Single submesh used by version 0 files

# ============================================================================
# Skeleton (SKL) Format
# ============================================================================

SKL_SIGNATURE = b"r3d2sklt"
SKL_JOINT_NAME_SIZE = 32         # NUL-padded joint name field (versions 1-2)

# ============================================================================
# Animation (ANM) Format
# ============================================================================

ANM_SIGNATURE = b"r3d2anmd"
ANM_QUANTIZED_SCALE = 32767.0    # i16 quaternion components -> [-1, 1]

# ============================================================================
# Animation Playback
# ============================================================================

DEFAULT_ANIMATION_SPEED = 1.0    # Playback speed multiplier
DEFAULT_LOOP_ANIMATION = True    # Restart the clip when it reaches the end
DEFAULT_NEXT_ANIMATION = False   # Advance to the next clip instead of looping

# Joint matrices handed to the renderer
JOINT_MATRIX_DTYPE = "f4"
