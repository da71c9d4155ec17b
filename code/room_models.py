"""Core dataclasses used by the level generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from level_constants import CORRIDOR_EXIT_COUNT
from level_errors import InvalidTemplate
from level_geometry import (
    CellPos,
    Direction,
    Rotation,
    Transform,
    normalize_offsets,
    rotate_direction,
    rotate_offset,
)


class RoomKind(Enum):
    """Classifies how a RoomTemplate is used during placement."""

    ESSENTIAL = "essential"  # Must appear in every valid layout when flagged as required.
    NORMAL = "normal"
    CORRIDOR = "corridor"  # Two-exit connector; its frequency follows the level density.

    @classmethod
    def from_value(cls, value: "RoomKind | str") -> RoomKind:
        if isinstance(value, RoomKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise InvalidTemplate(f"Unsupported room kind {value!r}") from exc


class ExitState(Enum):
    DANGLING = "dangling"
    CONNECTED = "connected"
    SEALED = "sealed"


@dataclass(frozen=True)
class ExitTemplate:
    """An exit in footprint-relative coordinates."""

    offset: CellPos
    direction: Direction


@dataclass(eq=False)
class RoomTemplate:
    """Defines the blueprint for a type of room."""

    name: str
    footprint: FrozenSet[CellPos]
    exits: Tuple[ExitTemplate, ...]
    kind: RoomKind
    required: Optional[bool] = None  # Defaults to True for essential templates.
    fixed_anchor: Optional[CellPos] = None
    weight: float = 1.0  # Relative weight when choosing between templates of the same kind.
    max_instances: Optional[int] = None
    _exit_lookup: Dict[Tuple[CellPos, Direction], int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.footprint = frozenset(self.footprint)
        self.exits = tuple(self.exits)
        self.kind = RoomKind.from_value(self.kind)
        if self.required is None:
            self.required = self.kind is RoomKind.ESSENTIAL
        self.validate()
        self._exit_lookup = {
            (exit_.offset, exit_.direction): index for index, exit_ in enumerate(self.exits)
        }

    def validate(self) -> None:
        """Check the footprint and exits obey the catalog constraints."""
        if not self.name:
            raise InvalidTemplate("Room templates must have a name")
        if not self.footprint:
            raise InvalidTemplate(f"Room {self.name} must have a non-empty footprint")
        if self.weight <= 0:
            raise InvalidTemplate(f"Room {self.name} must have a positive weight")
        if self.max_instances is not None and self.max_instances <= 0:
            raise InvalidTemplate(f"Room {self.name} max_instances must be positive or None")
        if self.required and self.kind is not RoomKind.ESSENTIAL:
            raise InvalidTemplate(f"Room {self.name} is required but not essential")
        if self.fixed_anchor is not None and self.kind is not RoomKind.ESSENTIAL:
            raise InvalidTemplate(f"Room {self.name} has a fixed anchor but is not essential")
        if self.kind is RoomKind.CORRIDOR and len(self.exits) != CORRIDOR_EXIT_COUNT:
            raise InvalidTemplate(
                f"Corridor {self.name} must define exactly {CORRIDOR_EXIT_COUNT} exits, got {len(self.exits)}"
            )

        seen = set()
        for exit_index, exit_ in enumerate(self.exits):
            if exit_.offset not in self.footprint:
                raise InvalidTemplate(
                    f"Room {self.name} exit {exit_index} at {exit_.offset.to_tuple()} lies outside the footprint"
                )
            if exit_.offset.step(exit_.direction) in self.footprint:
                raise InvalidTemplate(
                    f"Room {self.name} exit {exit_index} faces into its own footprint"
                )
            key = (exit_.offset, exit_.direction)
            if key in seen:
                raise InvalidTemplate(f"Room {self.name} declares exit {exit_index} twice")
            seen.add(key)

    @property
    def is_corridor(self) -> bool:
        return self.kind is RoomKind.CORRIDOR

    @property
    def is_required_essential(self) -> bool:
        return self.kind is RoomKind.ESSENTIAL and bool(self.required)

    def exit_index_at(self, offset: CellPos, direction: Direction) -> Optional[int]:
        return self._exit_lookup.get((offset, direction))

    def exit_directions(self) -> FrozenSet[Direction]:
        return frozenset(exit_.direction for exit_ in self.exits)

    def cells_at(self, anchor: CellPos) -> Tuple[CellPos, ...]:
        """Return the grid cells covered when the footprint is anchored at ``anchor``."""
        return tuple(sorted((anchor + offset for offset in self.footprint), key=lambda cell: cell.row_major))

    def rotated(self, rotation: Rotation, name: Optional[str] = None) -> RoomTemplate:
        """Return a copy of this template turned clockwise, re-normalized to non-negative offsets."""
        if self.fixed_anchor is not None and rotation is not Rotation.DEG_0:
            raise InvalidTemplate(f"Room {self.name} has a fixed anchor and cannot be rotated")
        rotated_cells, shift = normalize_offsets(rotate_offset(cell, rotation) for cell in self.footprint)
        exits = tuple(
            ExitTemplate(
                offset=rotate_offset(exit_.offset, rotation) + shift,
                direction=rotate_direction(exit_.direction, rotation),
            )
            for exit_ in self.exits
        )
        return RoomTemplate(
            name=name if name is not None else f"{self.name}_r{rotation.degrees}",
            footprint=frozenset(rotated_cells),
            exits=exits,
            kind=self.kind,
            required=self.required,
            fixed_anchor=self.fixed_anchor,
            weight=self.weight,
            max_instances=self.max_instances,
        )


@dataclass(frozen=True)
class WorldExit:
    """Exit information after anchoring a template on the grid."""

    cell: CellPos
    direction: Direction


@dataclass(frozen=True)
class ExitLink:
    """Identifies one exit of one placed room."""

    room_index: int
    exit_index: int


@dataclass(frozen=True)
class PlacementGap:
    """A template that could not be placed; recorded, not fatal."""

    template_name: str
    reason: str


@dataclass
class RoomInstance:
    """Represents a room template placed on the level grid."""

    template: RoomTemplate
    anchor: CellPos
    index: int = -1  # Placement order within the owning layout.
    transform: Transform = field(default_factory=Transform)
    connections: Dict[int, ExitLink] = field(default_factory=dict)
    sealed_exit_indices: set[int] = field(default_factory=set)

    @property
    def kind(self) -> RoomKind:
        return self.template.kind

    @property
    def is_essential(self) -> bool:
        return self.template.kind is RoomKind.ESSENTIAL

    @property
    def has_fixed_anchor(self) -> bool:
        return self.template.fixed_anchor is not None

    @property
    def cells(self) -> Tuple[CellPos, ...]:
        return self.template.cells_at(self.anchor)

    def get_world_exits(self) -> List[WorldExit]:
        """Calculates the grid cell and facing of each exit."""
        return [
            WorldExit(cell=self.anchor + exit_.offset, direction=exit_.direction)
            for exit_ in self.template.exits
        ]

    def exit_index_at(self, cell: CellPos, direction: Direction) -> Optional[int]:
        return self.template.exit_index_at(cell - self.anchor, direction)

    def exit_state(self, exit_index: int) -> ExitState:
        if exit_index in self.connections:
            return ExitState.CONNECTED
        if exit_index in self.sealed_exit_indices:
            return ExitState.SEALED
        return ExitState.DANGLING

    def get_open_exit_indices(self) -> List[int]:
        """Return indices of exits neither connected nor sealed."""
        return [
            index
            for index in range(len(self.template.exits))
            if index not in self.connections and index not in self.sealed_exit_indices
        ]

    def to_dict(self) -> dict:
        world_exits = self.get_world_exits()
        exits = []
        for exit_index, world_exit in enumerate(world_exits):
            link = self.connections.get(exit_index)
            exits.append(
                {
                    "cell": list(world_exit.cell.to_tuple()),
                    "direction": world_exit.direction.name.lower(),
                    "state": self.exit_state(exit_index).value,
                    "connected_to": None if link is None else [link.room_index, link.exit_index],
                }
            )
        return {
            "index": self.index,
            "template": self.template.name,
            "kind": self.template.kind.value,
            "anchor": list(self.anchor.to_tuple()),
            "cells": [list(cell.to_tuple()) for cell in self.cells],
            "transform": self.transform.to_dict(),
            "exits": exits,
        }
