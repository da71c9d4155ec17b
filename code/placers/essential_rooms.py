"""Places required essential rooms before free growth starts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from placement_context import PlacementContext, PlacementPlan
from placers.base import CandidateFinder, PlacementPlanner, RoomPlacer, RoomPlanApplier
from room_models import RoomTemplate


@dataclass(frozen=True)
class EssentialCandidate:
    template: RoomTemplate
    fixed: bool


class EssentialRoomFinder(CandidateFinder[EssentialCandidate, PlacementPlan]):
    """Yields fixed-anchor essentials, then one free essential as the layout seed.

    Remaining essentials are queued on ``context.pending_essentials`` so free growth
    can attach them to the frontier.
    """

    def find_candidates(self, context: PlacementContext) -> Iterable[EssentialCandidate]:
        required = context.catalog.required_essentials()
        fixed = [template for template in required if template.fixed_anchor is not None]
        free = [template for template in required if template.fixed_anchor is None]

        reserved: List[RoomTemplate] = []
        for template in fixed:
            cells = template.cells_at(template.fixed_anchor)
            if context.layout.grid.reserve(cells, template.name):
                reserved.append(template)
            else:
                context.layout.record_gap(template, f"fixed anchor {template.fixed_anchor.to_tuple()} is unavailable")

        for template in reserved:
            yield EssentialCandidate(template, fixed=True)

        if free and context.layout.room_count == 0:
            yield EssentialCandidate(free[0], fixed=False)
            free = free[1:]
        context.pending_essentials.extend(free)

    def on_failure(self, context: PlacementContext, candidate: EssentialCandidate) -> None:
        template = candidate.template
        if candidate.fixed:
            context.layout.release_reservations(template.name)
        if not context.can_add_room():
            context.layout.record_gap(template, "maximum level size reached")
        else:
            context.layout.record_gap(template, "no free region fits the footprint")


class EssentialRoomPlanner(PlacementPlanner[EssentialCandidate, PlacementPlan]):
    def plan(self, context: PlacementContext, candidate: EssentialCandidate) -> Optional[PlacementPlan]:
        if not context.can_add_room():
            return None
        template = candidate.template
        if candidate.fixed:
            return context.evaluate_placement(template, template.fixed_anchor, reservation=template.name)
        return context.choose_free_region_plan(template)


def run_essential_room_placer(context: PlacementContext) -> int:
    placer = RoomPlacer(
        name="essential_rooms",
        candidate_finder=EssentialRoomFinder(),
        planner=EssentialRoomPlanner(),
        applier=RoomPlanApplier(stop_when_full=False),
    )
    return placer.run(context)
