"""Connects facing exits, fills dangling ones and validates the finished attempt."""

from __future__ import annotations

import logging
from typing import Tuple

from level_layout import ValidationReport
from placement_context import PlacementContext
from placers import run_corridor_fill_placer
from room_models import ExitState, RoomInstance

logger = logging.getLogger(__name__)


class ConnectivityResolver:
    """Runs after placement; leaves every exit connected, sealed or (forced) dangling on an essential room."""

    def __init__(self, context: PlacementContext) -> None:
        self.context = context
        self.layout = context.layout

    def resolve(self) -> ValidationReport:
        linked = self.link_facing_exits()
        self.context.run_phase("corridor_fill", run_corridor_fill_placer)
        linked += self.link_facing_exits()

        dangling = self.layout.count_exits(ExitState.DANGLING)
        dangling_essential = sum(
            1 for link in self.layout.iter_open_exits() if self.must_connect(self.layout.rooms[link.room_index])
        )
        sealed = self.seal_dangling_exits()

        config = self.context.config
        report = ValidationReport(
            room_count=self.layout.room_count,
            min_rooms=config.min_level_size,
            max_rooms=config.max_level_size,
            missing_essentials=self.missing_essentials(),
            unplaced_fixed_essentials=self.unplaced_fixed_essentials(),
            dangling_essential_exits=dangling_essential,
            dangling_exits=dangling,
            sealed_exits=sealed,
            connected_exits=self.layout.count_exits(ExitState.CONNECTED),
            forced=config.forced_level_generation,
        )
        self.layout.report = report
        logger.debug(
            "Attempt %d resolved: %d rooms, %d links made, %d exits sealed, valid=%s",
            self.layout.attempt,
            report.room_count,
            linked,
            sealed,
            report.is_valid,
        )
        return report

    def link_facing_exits(self) -> int:
        """Connect every pair of open exits that face each other across a cell border."""
        linked = 0
        for link in list(self.layout.iter_open_exits()):
            room = self.layout.rooms[link.room_index]
            if link.exit_index not in room.get_open_exit_indices():
                continue
            other = self.layout.facing_exit(link)
            if other is None:
                continue
            if other.exit_index not in self.layout.rooms[other.room_index].get_open_exit_indices():
                continue
            self.layout.connect(link, other)
            linked += 1
        return linked

    def seal_dangling_exits(self) -> int:
        """Seal open exits; in forced mode essential rooms keep theirs dangling."""
        keep_essential = self.context.config.forced_level_generation
        sealed = 0
        for link in list(self.layout.iter_open_exits()):
            if keep_essential and self.must_connect(self.layout.rooms[link.room_index]):
                continue
            self.layout.seal(link)
            sealed += 1
        return sealed

    @staticmethod
    def must_connect(room: RoomInstance) -> bool:
        """Whether forced mode requires this room's exits connected; fixed-anchor essentials are exempt."""
        return room.is_essential and not room.has_fixed_anchor

    def missing_essentials(self) -> Tuple[str, ...]:
        return tuple(
            template.name
            for template in self.context.catalog.required_essentials()
            if template.fixed_anchor is None and self.layout.instance_count(template) == 0
        )

    def unplaced_fixed_essentials(self) -> Tuple[str, ...]:
        return tuple(
            template.name
            for template in self.context.catalog.required_essentials()
            if template.fixed_anchor is not None and self.layout.instance_count(template) == 0
        )
