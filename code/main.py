#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import random

from layout_analysis import summarize_connectivity
from level_config import GeneratorConfig
from level_constants import SEED_UPPER_BOUND
from level_errors import LevelGenerationError
from level_generator import LevelGenerator
from level_geometry import GridAlignment
from room_catalog import TemplateCatalog
from room_templates import prototype_room_templates


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate one grid level layout and print it as JSON.")
    parser.add_argument("--width", type=int, default=10, help="Grid width in cells (default: 10)")
    parser.add_argument("--height", type=int, default=10, help="Grid height in cells (default: 10)")
    parser.add_argument("--min-rooms", type=int, default=5, help="Minimum room count (default: 5)")
    parser.add_argument("--max-rooms", type=int, default=8, help="Maximum room count (default: 8)")
    parser.add_argument("--density", type=int, default=50, help="Corridor density 0..100 (default: 50)")
    parser.add_argument(
        "--alignment",
        choices=[alignment.value for alignment in GridAlignment],
        default=GridAlignment.HORIZONTAL.value,
    )
    parser.add_argument("--forced", action="store_true", help="Retry until a valid layout is produced")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible layout")
    parser.add_argument("--config", type=str, default=None, help="Path to a JSON configuration file")
    parser.add_argument("--templates", type=str, default=None, help="Path to a JSON template catalog")
    parser.add_argument("--indent", type=int, default=2)
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each attempt")
    return parser.parse_args()


def build_config(args: argparse.Namespace) -> GeneratorConfig:
    if args.config:
        with open(args.config, "r", encoding="utf-8") as handle:
            return GeneratorConfig.from_mapping(json.load(handle))
    return GeneratorConfig(
        grid_width=args.width,
        grid_height=args.height,
        min_level_size=args.min_rooms,
        max_level_size=args.max_rooms,
        level_density=args.density,
        forced_level_generation=args.forced,
        grid_alignment=GridAlignment.from_value(args.alignment),
    )


def build_catalog(args: argparse.Namespace) -> TemplateCatalog:
    if args.templates:
        with open(args.templates, "r", encoding="utf-8") as handle:
            return TemplateCatalog.from_mapping(json.load(handle))
    return TemplateCatalog(prototype_room_templates)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        catalog = build_catalog(args)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"ERROR: {exc}")

    seed = args.seed if args.seed is not None else config.random_seed
    if seed is None:
        # Pick a seed and print it, so a layout can be reproduced with --seed.
        seed = random.randrange(SEED_UPPER_BOUND)
    print(f"Using random seed {seed}")

    generator = LevelGenerator(config, catalog)
    try:
        result = generator.generate(seed=seed)
    except LevelGenerationError as exc:
        raise SystemExit(f"ERROR: {exc}")

    output = result.layout.to_dict()
    output["state"] = result.state.value
    output["attempts"] = result.attempts
    output["hooks"] = {
        "cache_scene": result.hooks.cache_scene,
        "save_scene": result.hooks.save_scene,
        "rebake_occlusion": result.hooks.rebake_occlusion,
    }
    output["connectivity"] = summarize_connectivity(result.layout).to_dict()
    print(json.dumps(output, indent=args.indent))


if __name__ == "__main__":
    main()
