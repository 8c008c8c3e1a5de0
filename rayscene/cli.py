"""Command line front end — expand the modules of a scene file.

Usage::

    python -m rayscene scene.json [--seed N] [--demodulize] [-o out.json] [-v]

Prints each top-level object with its expanded objects and the scene
error report. With ``--demodulize`` every module instance is replaced by
its expanded objects and the resulting scene is written as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rayscene.constants import APP_NAME, APP_VERSION
from rayscene.core.serializers import dict_to_scene, scene_to_dict
from rayscene.scene import Scene
from rayscene.scene_objs.module_obj import ModuleObj

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description=__doc__.splitlines()[0])
    parser.add_argument("scene", type=Path, help="scene JSON file")
    parser.add_argument("--seed", type=int, default=None, help="seed of the random stream")
    parser.add_argument("--demodulize", action="store_true",
                        help="replace module instances by their expanded objects")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="write the resulting scene JSON here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser


def load_scene(path: Path, seed: int | None = None) -> Scene:
    data = json.loads(path.read_text(encoding="utf-8"))
    if seed is not None:
        data["randomSeed"] = seed
    return dict_to_scene(data)


def describe_scene(scene: Scene) -> str:
    lines = []
    for i, obj in enumerate(scene.objs):
        lines.append(f"objs[{i}] {obj.type}")
        if isinstance(obj, ModuleObj):
            for j, child in enumerate(obj.expanded_objects):
                lines.append(f"    objs[{j}] {json.dumps(child.serialize())}")
    return "\n".join(lines)


def demodulize_all(scene: Scene) -> int:
    """Demodulize every top-level module instance. Returns how many."""
    modules = [obj for obj in scene.objs if isinstance(obj, ModuleObj)]
    for module in modules:
        module.demodulize()
    return len(modules)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        scene = load_scene(args.scene, args.seed)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot load %s: %s", args.scene, exc)
        return 2

    if args.demodulize:
        count = demodulize_all(scene)
        logger.info("Demodulized %d module instance(s)", count)
        text = json.dumps(scene_to_dict(scene), indent=2)
        if args.output is not None:
            args.output.write_text(text, encoding="utf-8")
        else:
            print(text)
    else:
        print(describe_scene(scene))

    report = scene.get_error_report()
    if report:
        print(report, file=sys.stderr)
        return 1
    return 0
