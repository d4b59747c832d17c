#!/usr/bin/env python3
"""
Character Asset Inspector

Decodes an SKN skin, an SKL skeleton and any ANM clips, prints what they
contain and optionally samples a pose.

Usage:
    python tools/inspect_character.py model.skn model.skl --anm run.anm --time 0.5
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from rigview.config.settings import LOG_FORMAT, LOG_LEVEL  # noqa: E402
from rigview.loaders import CharacterLoader, CharacterSource  # noqa: E402


def _print_summary(result) -> None:
    character = result.character
    skin = character.skin
    skeleton = character.skeleton

    print(f"Skin: SKN {skin.major}.{skin.minor}, {skin.vertex_count} vertices, {skin.index_count} indices")
    print(f"  bbox min {skin.bounding_box[0]}, max {skin.bounding_box[1]}, center {skin.center}")
    for submesh in skin.submeshes:
        print(f"  submesh '{submesh.name}' [{submesh.offset}, {submesh.end}) hash={submesh.hash:#010x}")

    print(f"Skeleton: version {skeleton.version}, {skeleton.joint_count} joints")
    for joint in skeleton.joints:
        parent = skeleton.joints[joint.parent].name if joint.parent is not None else "-"
        print(f"  [{joint.index:3d}] {joint.name:<32} parent={parent}")

    for animation in character.animations:
        matched = sum(1 for joint in skeleton.joints if animation.get_track(joint.hash) is not None)
        print(f"Animation '{animation.name}': {animation.duration:.3f}s, "
              f"{len(animation.tracks)} tracks, {matched}/{skeleton.joint_count} joints matched")

    for clip_name, error in result.errors.items():
        print(f"[failed] {clip_name}: {error}")


def cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect SKN/SKL/ANM character assets.")
    parser.add_argument("skin", type=Path, help="SKN skin file")
    parser.add_argument("skeleton", type=Path, help="SKL skeleton file")
    parser.add_argument("--anm", type=Path, action="append", default=[], help="ANM clip (repeatable)")
    parser.add_argument("--time", type=float, help="Sample the first clip at this time and print joint matrices")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING if args.quiet else LOG_LEVEL, format=LOG_FORMAT)

    source = CharacterSource(
        name=args.skin.stem,
        skin=args.skin.read_bytes(),
        skeleton=args.skeleton.read_bytes(),
        animations={path.stem: path.read_bytes() for path in args.anm},
    )

    try:
        result = CharacterLoader().load(source)
    except ValueError as exc:
        print(f"Failed to load {source.name}: {exc}")
        return 1

    _print_summary(result)

    if args.time is not None:
        controller = result.character.controller
        controller.set_time(args.time)
        np.set_printoptions(precision=4, suppress=True)
        for joint, matrix in zip(result.character.skeleton.joints, controller.joint_transforms):
            print(f"{joint.name}:\n{matrix}")

    return 0


if __name__ == "__main__":
    raise SystemExit(cli())
