"""Frontier growth: attaches rooms to open exits until the target room count is met."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Iterable, List, Optional, Set

from placement_context import PlacementContext, PlacementPlan
from placers.base import CandidateFinder, PlacementPlanner, RoomPlacer, RoomPlanApplier
from room_models import RoomKind, RoomTemplate


class GrowthMode(Enum):
    FRONTIER = "frontier"  # Attach any growth template to an open exit.
    ESSENTIAL = "essential"  # Attach a scheduled essential, falling back to a free region.
    DETACHED = "detached"  # Seed a new cluster in a free region.


@dataclass(frozen=True)
class GrowthRequest:
    mode: GrowthMode
    template: Optional[RoomTemplate] = None


@dataclass
class GrowthState:
    """Shared between the finder and planner of one growth run."""

    target: int
    pending: Deque[RoomTemplate] = field(default_factory=deque)
    slots: Deque[int] = field(default_factory=deque)


def schedule_essential_slots(start: int, target: int, essentials: List[RoomTemplate]) -> List[int]:
    """Spread essentials evenly over the growth, leaving room to answer their extra exits."""
    slots = []
    count = len(essentials)
    span = max(0, target - start)
    for position, template in enumerate(essentials):
        remaining = essentials[position:]
        need = sum(1 + max(0, len(t.exits) - 1) for t in remaining)
        slot = start + (position + 1) * span // (count + 1)
        slot = max(start, min(slot, target - need))
        slots.append(slot)
    return slots


class FrontierGrowthFinder(CandidateFinder[GrowthRequest, PlacementPlan]):
    def __init__(self, state: GrowthState) -> None:
        self.state = state

    def find_candidates(self, context: PlacementContext) -> Iterable[GrowthRequest]:
        state = self.state
        layout = context.layout
        min_rooms = context.config.min_level_size
        stalled = False

        while context.can_add_room():
            count = layout.room_count
            if state.pending and (stalled or count >= state.target or count >= state.slots[0]):
                state.slots.popleft()
                yield GrowthRequest(GrowthMode.ESSENTIAL, state.pending.popleft())
                continue
            if stalled or count >= state.target:
                break

            if layout.has_frontier:
                yield GrowthRequest(GrowthMode.FRONTIER)
                if layout.room_count > count:
                    continue
            if count == 0 or count < min_rooms:
                yield GrowthRequest(GrowthMode.DETACHED)
                if layout.room_count > count:
                    continue
            stalled = True

        while state.pending:
            state.slots.popleft()
            layout.record_gap(state.pending.popleft(), "maximum level size reached")

    def on_failure(self, context: PlacementContext, candidate: GrowthRequest) -> None:
        if candidate.mode is GrowthMode.ESSENTIAL:
            context.layout.record_gap(candidate.template, "no free region fits the footprint")


class FrontierGrowthPlanner(PlacementPlanner[GrowthRequest, PlacementPlan]):
    def __init__(self, state: GrowthState) -> None:
        self.state = state

    def plan(self, context: PlacementContext, candidate: GrowthRequest) -> Optional[PlacementPlan]:
        if candidate.mode is GrowthMode.ESSENTIAL:
            return self._plan_essential(context, candidate.template)
        if candidate.mode is GrowthMode.DETACHED:
            return self._plan_detached(context)
        return self._plan_frontier(context)

    def _plan_essential(self, context: PlacementContext, template: RoomTemplate) -> Optional[PlacementPlan]:
        if not context.layout.can_place_more_of(template):
            return None
        frontier = context.layout.frontier_exits()
        plan = context.best_frontier_plan(template, frontier) if frontier else None
        if plan is not None:
            return plan
        return context.choose_free_region_plan(template)

    def _plan_detached(self, context: PlacementContext) -> Optional[PlacementPlan]:
        if context.layout.room_count == 0:
            kinds = (RoomKind.NORMAL, RoomKind.CORRIDOR)
        else:
            kinds = context.kind_order()
        for template in context.growth_templates(kinds):
            plan = context.choose_free_region_plan(template)
            if plan is not None:
                return plan
        return None

    def _plan_frontier(self, context: PlacementContext) -> Optional[PlacementPlan]:
        groups = context.frontier_groups()
        frontier_size = sum(len(group) for group in groups)
        ranked = [
            context.weighted_templates(context.catalog.growth_templates(kind)) for kind in context.kind_order()
        ]
        for group in groups:
            for templates in ranked:
                deferred = self._closing_templates(context, templates, frontier_size)
                plan = context.best_plan_among(templates, group, deferred)
                if plan is not None:
                    return plan
        return None

    def _closing_templates(
        self,
        context: PlacementContext,
        templates: List[RoomTemplate],
        frontier_size: int,
    ) -> Set[RoomTemplate]:
        """Templates that would close the last open exit while rooms are still wanted."""
        wanted_after = self.state.target - (context.layout.room_count + 1)
        if wanted_after <= 0 and not self.state.pending:
            return set()
        return {
            template
            for template in templates
            if frontier_size - 1 + max(0, len(template.exits) - 1) < 1
        }


def run_frontier_growth_placer(context: PlacementContext, target: int) -> int:
    essentials = list(context.pending_essentials)
    context.pending_essentials.clear()
    state = GrowthState(
        target=target,
        pending=deque(essentials),
        slots=deque(schedule_essential_slots(context.layout.room_count, target, essentials)),
    )
    placer = RoomPlacer(
        name="frontier_growth",
        candidate_finder=FrontierGrowthFinder(state),
        planner=FrontierGrowthPlanner(state),
        applier=RoomPlanApplier(stop_when_full=False),
    )
    return placer.run(context)
