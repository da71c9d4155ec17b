"""Data container for the state of one level layout attempt."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from level_config import GeneratorConfig
from level_geometry import CellPos
from level_grid import Grid, build_grid
from room_models import ExitLink, ExitState, PlacementGap, RoomInstance, RoomKind, RoomTemplate


@dataclass
class ValidationReport:
    """Outcome of validating one attempt."""

    room_count: int
    min_rooms: int
    max_rooms: int
    missing_essentials: Tuple[str, ...] = ()
    unplaced_fixed_essentials: Tuple[str, ...] = ()  # Reported only; never invalidates.
    dangling_essential_exits: int = 0
    dangling_exits: int = 0  # Unconnected exits before sealing.
    sealed_exits: int = 0
    connected_exits: int = 0
    forced: bool = False

    @property
    def room_count_in_range(self) -> bool:
        return self.min_rooms <= self.room_count <= self.max_rooms

    @property
    def is_valid(self) -> bool:
        if self.missing_essentials or not self.room_count_in_range:
            return False
        if self.forced and self.dangling_essential_exits:
            return False
        return True

    def describe_problems(self) -> str:
        problems = []
        if self.missing_essentials:
            problems.append(f"missing essential templates {', '.join(self.missing_essentials)}")
        if not self.room_count_in_range:
            problems.append(
                f"room count {self.room_count} outside [{self.min_rooms}, {self.max_rooms}]"
            )
        if self.forced and self.dangling_essential_exits:
            problems.append(f"{self.dangling_essential_exits} dangling exits on essential rooms")
        return "; ".join(problems) if problems else "none"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_count": self.room_count,
            "missing_essentials": list(self.missing_essentials),
            "unplaced_fixed_essentials": list(self.unplaced_fixed_essentials),
            "dangling_essential_exits": self.dangling_essential_exits,
            "dangling_exits": self.dangling_exits,
            "sealed_exits": self.sealed_exits,
            "connected_exits": self.connected_exits,
            "is_valid": self.is_valid,
        }


class LevelLayout:
    """Stores the mutable state for one level layout attempt."""

    def __init__(self, config: GeneratorConfig, attempt: int = 1, seed: Optional[int] = None) -> None:
        self.config = config
        self.attempt = attempt
        self.seed = seed
        self.grid: Grid = build_grid(
            config.grid_width,
            config.grid_height,
            config.grid_alignment,
            config.cell_spacing,
            config.cell_rotation,
            config.cell_scale,
        )
        self.rooms: List[RoomInstance] = []
        self.placement_gaps: List[PlacementGap] = []
        self.target_room_count: int = 0
        self.report: Optional[ValidationReport] = None
        self._instance_counts: Counter[str] = Counter()
        # Open exits facing a free cell, in placement order, and the exits waiting on each cell.
        self._frontier: Dict[ExitLink, None] = {}
        self._waiting_on: Dict[CellPos, List[ExitLink]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_room(
        self,
        template: RoomTemplate,
        anchor: CellPos,
        reservation: Optional[str] = None,
    ) -> RoomInstance:
        room_index = len(self.rooms)
        self.grid.occupy(template.cells_at(anchor), room_index, reservation)
        room = RoomInstance(
            template=template,
            anchor=anchor,
            index=room_index,
            transform=self.grid.cell(anchor).transform,
        )
        self.rooms.append(room)
        self._instance_counts[template.name] += 1

        for cell in room.cells:
            for link in self._waiting_on.pop(cell, ()):
                self._frontier.pop(link, None)
        for exit_index in range(len(template.exits)):
            self._track_frontier(ExitLink(room_index, exit_index))
        return room

    def release_reservations(self, owner: str) -> None:
        """Free ``owner``'s reserved cells; exits facing them rejoin the frontier."""
        self.grid.release_reservations(owner)
        self._frontier.clear()
        self._waiting_on.clear()
        for link in self.iter_open_exits():
            self._track_frontier(link)

    def _track_frontier(self, link: ExitLink) -> None:
        neighbor = self.exit_neighbor(link)
        if neighbor is not None and self.grid.is_free(neighbor):
            self._frontier[link] = None
            self._waiting_on[neighbor].append(link)

    def record_gap(self, template: RoomTemplate, reason: str) -> PlacementGap:
        gap = PlacementGap(template_name=template.name, reason=reason)
        self.placement_gaps.append(gap)
        return gap

    def connect(self, a: ExitLink, b: ExitLink) -> None:
        room_a = self.rooms[a.room_index]
        room_b = self.rooms[b.room_index]
        if a.exit_index in room_a.connections or b.exit_index in room_b.connections:
            raise ValueError(f"Exit {a} or {b} is already connected")
        room_a.connections[a.exit_index] = b
        room_b.connections[b.exit_index] = a
        self._frontier.pop(a, None)
        self._frontier.pop(b, None)

    def seal(self, link: ExitLink) -> None:
        room = self.rooms[link.room_index]
        if link.exit_index in room.connections:
            raise ValueError(f"Exit {link} is connected and cannot be sealed")
        room.sealed_exit_indices.add(link.exit_index)
        self._frontier.pop(link, None)

    # ------------------------------------------------------------------
    # Exit queries
    # ------------------------------------------------------------------
    def facing_exit(self, link: ExitLink) -> Optional[ExitLink]:
        """Return the exit of a neighbouring room that faces ``link`` back, if any."""
        room = self.rooms[link.room_index]
        world_exit = room.get_world_exits()[link.exit_index]
        neighbor = self.grid.neighbor(world_exit.cell, world_exit.direction)
        if neighbor is None:
            return None
        owner = self.grid.room_at(neighbor)
        if owner is None or owner == link.room_index:
            return None
        other_exit = self.rooms[owner].exit_index_at(neighbor, world_exit.direction.opposite())
        if other_exit is None:
            return None
        return ExitLink(owner, other_exit)

    def exit_neighbor(self, link: ExitLink) -> Optional[CellPos]:
        world_exit = self.rooms[link.room_index].get_world_exits()[link.exit_index]
        return self.grid.neighbor(world_exit.cell, world_exit.direction)

    def iter_open_exits(self) -> Iterator[ExitLink]:
        """Exits neither connected nor sealed, in placement order."""
        for room in self.rooms:
            for exit_index in room.get_open_exit_indices():
                yield ExitLink(room.index, exit_index)

    def frontier_exits(self) -> List[ExitLink]:
        """Open exits whose neighbouring cell is free for a new room."""
        return list(self._frontier)

    @property
    def has_frontier(self) -> bool:
        return bool(self._frontier)

    def is_frontier_exit(self, link: ExitLink) -> bool:
        return link in self._frontier

    def count_exits(self, state: ExitState) -> int:
        total = 0
        for room in self.rooms:
            total += sum(
                1 for exit_index in range(len(room.template.exits)) if room.exit_state(exit_index) is state
            )
        return total

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    @property
    def room_count(self) -> int:
        return len(self.rooms)

    def instance_count(self, template: RoomTemplate) -> int:
        return self._instance_counts[template.name]

    def can_place_more_of(self, template: RoomTemplate) -> bool:
        return template.max_instances is None or self.instance_count(template) < template.max_instances

    def rooms_of_kind(self, kind: RoomKind) -> List[RoomInstance]:
        return [room for room in self.rooms if room.kind is kind]

    @property
    def corridor_count(self) -> int:
        return len(self.rooms_of_kind(RoomKind.CORRIDOR))

    @property
    def corridor_proportion(self) -> float:
        return self.corridor_count / self.room_count if self.rooms else 0.0

    @property
    def is_valid(self) -> bool:
        return self.report is not None and self.report.is_valid

    def template_counts(self) -> Counter[str]:
        return Counter(self._instance_counts)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Host-agnostic description of the layout."""
        config = self.config
        return {
            "grid": {
                "width": config.grid_width,
                "height": config.grid_height,
                "alignment": config.grid_alignment.value,
                "cell_spacing": list(config.cell_spacing.to_tuple()),
            },
            "level_transform": config.level_transform.to_dict(),
            "attempt": self.attempt,
            "seed": self.seed,
            "target_room_count": self.target_room_count,
            "is_valid": self.is_valid,
            "report": self.report.to_dict() if self.report is not None else None,
            "placement_gaps": [
                {"template": gap.template_name, "reason": gap.reason} for gap in self.placement_gaps
            ],
            "rooms": [room.to_dict() for room in self.rooms],
        }
