"""PlacementEngine runs the placers that fill one attempt's grid with rooms."""

from __future__ import annotations

import logging

from placement_context import PlacementContext
from placers import run_essential_room_placer, run_frontier_growth_placer

logger = logging.getLogger(__name__)


class PlacementEngine:
    """Places essential rooms, then grows the layout from its open exits."""

    def __init__(self, context: PlacementContext) -> None:
        self.context = context

    def sample_target(self) -> int:
        """Draw the number of rooms this attempt aims for."""
        config = self.context.config
        target = config.room_count_distribution.sample(self.context.rng)
        required = len(self.context.catalog.required_essentials())
        return min(config.max_level_size, max(target, required))

    def place(self) -> int:
        context = self.context
        layout = context.layout
        layout.target_room_count = self.sample_target()
        logger.debug(
            "Attempt %d targets %d rooms on a %dx%d grid",
            layout.attempt,
            layout.target_room_count,
            layout.grid.width,
            layout.grid.height,
        )

        placed = context.run_phase("essential_rooms", run_essential_room_placer)
        placed += context.run_phase("frontier_growth", run_frontier_growth_placer, layout.target_room_count)

        for gap in layout.placement_gaps:
            logger.debug("Could not place %s: %s", gap.template_name, gap.reason)
        return placed
