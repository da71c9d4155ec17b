from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from placement_context import PlacementContext, PlacementPlan


C = TypeVar("C")
P = TypeVar("P")


@dataclass
class PlacerStepResult:
    """Describes the outcome of applying a single placement plan."""

    applied: bool
    stop: bool = False


class CandidateFinder(Generic[C, P]):
    """Locate placement opportunities in the current layout state."""

    def find_candidates(self, context: PlacementContext) -> Iterable[C]:
        raise NotImplementedError

    def on_success(self, context: PlacementContext, candidate: C, plan: P) -> None:
        """Hook called when a plan for the candidate is successfully applied."""
        return None

    def on_failure(self, context: PlacementContext, candidate: C) -> None:
        """Hook called when no plan exists for the candidate."""
        return None


class PlacementPlanner(Generic[C, P]):
    """Validate a candidate and choose where to put it."""

    def plan(self, context: PlacementContext, candidate: C) -> Optional[P]:
        raise NotImplementedError


class PlacementApplier(Generic[C, P]):
    """Commit a planned placement to the layout."""

    def apply(self, context: PlacementContext, candidate: C, plan: P) -> PlacerStepResult:
        raise NotImplementedError

    def finalize(self, context: PlacementContext) -> int:
        """Perform any final bookkeeping; return the placer's reported result."""
        return 0


class RoomPlanApplier(PlacementApplier[C, "PlacementPlan"]):
    """Registers rooms from PlacementPlans and counts them."""

    def __init__(self, stop_when_full: bool = True) -> None:
        self.rooms_placed = 0
        self.stop_when_full = stop_when_full

    def apply(self, context: PlacementContext, candidate: C, plan: PlacementPlan) -> PlacerStepResult:
        context.apply_plan(plan)
        self.rooms_placed += 1
        return PlacerStepResult(applied=True, stop=self.stop_when_full and not context.can_add_room())

    def finalize(self, context: PlacementContext) -> int:
        return self.rooms_placed


class RoomPlacer(Generic[C, P]):
    """Coordinates finder, planner, and applier to execute one placement phase."""

    def __init__(
        self,
        name: str,
        candidate_finder: CandidateFinder[C, P],
        planner: PlacementPlanner[C, P],
        applier: PlacementApplier[C, P],
    ) -> None:
        self.name = name
        self.candidate_finder = candidate_finder
        self.planner = planner
        self.applier = applier

    def run(self, context: PlacementContext) -> int:
        """Execute the placer pipeline and return the aggregate result."""
        for candidate in self.candidate_finder.find_candidates(context):
            context.check_cancelled()
            plan = self.planner.plan(context, candidate)
            if plan is None:
                self.candidate_finder.on_failure(context, candidate)
                continue
            result = self.applier.apply(context, candidate, plan)
            if result.applied:
                self.candidate_finder.on_success(context, candidate, plan)
            if result.stop:
                break
        return self.applier.finalize(context)
