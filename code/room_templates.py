"""Prototype room templates used by the CLI, the benchmark, and the tests."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from level_geometry import CellPos, Direction, Rotation
from room_models import ExitTemplate, RoomKind, RoomTemplate

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST

ALL_TURNS = (Rotation.DEG_0, Rotation.DEG_90, Rotation.DEG_180, Rotation.DEG_270)
HALF_TURNS = (Rotation.DEG_0, Rotation.DEG_90)


def single_cell_template(
    name: str,
    kind: RoomKind,
    directions: Iterable[Direction],
    **kwargs,
) -> RoomTemplate:
    origin = CellPos(0, 0)
    return RoomTemplate(
        name=name,
        footprint=frozenset((origin,)),
        exits=tuple(ExitTemplate(origin, direction) for direction in directions),
        kind=kind,
        **kwargs,
    )


def with_rotations(template: RoomTemplate, rotations: Sequence[Rotation]) -> List[RoomTemplate]:
    """Expand a template into one variant per rotation, keeping the base name for DEG_0."""
    variants = []
    for rotation in rotations:
        if rotation is Rotation.DEG_0:
            variants.append(template)
        else:
            variants.append(template.rotated(rotation))
    return variants


def build_default_room_templates() -> List[RoomTemplate]:
    templates: List[RoomTemplate] = []

    # Essential rooms.
    templates.append(single_cell_template("entrance", RoomKind.ESSENTIAL, (S,)))
    templates.append(
        RoomTemplate(
            name="boss_room",
            footprint=frozenset(CellPos(x, y) for x in range(2) for y in range(2)),
            exits=(ExitTemplate(CellPos(0, 0), N),),
            kind=RoomKind.ESSENTIAL,
        )
    )
    templates.append(
        single_cell_template(
            "treasure_vault", RoomKind.ESSENTIAL, (W,), required=False, weight=0.3, max_instances=1
        )
    )

    # Normal rooms.
    templates.append(single_cell_template("hall_cross", RoomKind.NORMAL, (N, E, S, W), weight=0.8))
    templates.extend(
        with_rotations(single_cell_template("hall_t", RoomKind.NORMAL, (N, E, S), weight=0.6), ALL_TURNS)
    )
    templates.extend(
        with_rotations(
            RoomTemplate(
                name="chamber",
                footprint=frozenset(CellPos(x, y) for x in range(2) for y in range(2)),
                exits=(ExitTemplate(CellPos(0, 0), N), ExitTemplate(CellPos(1, 1), S)),
                kind=RoomKind.NORMAL,
                weight=0.7,
            ),
            ALL_TURNS,
        )
    )
    templates.extend(
        with_rotations(single_cell_template("dead_end", RoomKind.NORMAL, (N,), weight=0.5), ALL_TURNS)
    )

    # Corridors.
    templates.extend(
        with_rotations(single_cell_template("corridor_straight", RoomKind.CORRIDOR, (N, S)), HALF_TURNS)
    )
    templates.extend(
        with_rotations(single_cell_template("corridor_bend", RoomKind.CORRIDOR, (N, E), weight=0.7), ALL_TURNS)
    )
    return templates


prototype_room_templates = build_default_room_templates()
