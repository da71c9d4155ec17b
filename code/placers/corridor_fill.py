"""Fills dangling exits with corridors (and, for essential rooms, any growth template)."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional, Set, Tuple

from placement_context import PlacementContext, PlacementPlan
from placers.base import CandidateFinder, PlacementPlanner, RoomPlacer, RoomPlanApplier
from room_models import ExitLink, RoomKind


@dataclass(frozen=True)
class FillCandidate:
    link: ExitLink
    kinds: Tuple[RoomKind, ...]


class CorridorFillFinder(CandidateFinder[FillCandidate, PlacementPlan]):
    """Walks a queue of frontier exits, enqueueing the exits of every room it inserts."""

    def find_candidates(self, context: PlacementContext) -> Iterable[FillCandidate]:
        layout = context.layout
        queue: Deque[ExitLink] = deque(layout.frontier_exits())
        seen: Set[ExitLink] = set(queue)

        while queue and context.can_add_room():
            link = queue.popleft()
            if not layout.is_frontier_exit(link):
                continue

            room = layout.rooms[link.room_index]
            corridor = context.prefers_corridor()
            if room.is_essential:
                if corridor:
                    kinds = (RoomKind.CORRIDOR, RoomKind.NORMAL)
                else:
                    kinds = (RoomKind.NORMAL, RoomKind.CORRIDOR)
            elif corridor:
                kinds = (RoomKind.CORRIDOR,)
            else:
                continue

            count = layout.room_count
            yield FillCandidate(link, kinds)
            if layout.room_count == count:
                continue
            new_room = layout.rooms[-1]
            for exit_index in new_room.get_open_exit_indices():
                new_link = ExitLink(new_room.index, exit_index)
                if new_link not in seen:
                    seen.add(new_link)
                    queue.append(new_link)


class CorridorFillPlanner(PlacementPlanner[FillCandidate, PlacementPlan]):
    def plan(self, context: PlacementContext, candidate: FillCandidate) -> Optional[PlacementPlan]:
        ranked = [context.weighted_templates(context.catalog.growth_templates(kind)) for kind in candidate.kinds]
        for templates in ranked:
            plan = context.best_plan_among(templates, [candidate.link])
            if plan is not None:
                return plan
        return None


def run_corridor_fill_placer(context: PlacementContext) -> int:
    placer = RoomPlacer(
        name="corridor_fill",
        candidate_finder=CorridorFillFinder(),
        planner=CorridorFillPlanner(),
        applier=RoomPlanApplier(),
    )
    return placer.run(context)
