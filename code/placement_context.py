"""Context object providing shared state and helper utilities for room placers."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from time import perf_counter
from typing import AbstractSet, Any, Callable, Dict, List, Optional, Sequence, Tuple

from level_config import GeneratorConfig
from level_errors import GenerationCancelled
from level_geometry import CellPos, Direction
from level_layout import LevelLayout
from metrics import GenerationMetrics
from room_catalog import TemplateCatalog
from room_models import ExitLink, ExitState, RoomInstance, RoomKind, RoomTemplate

# Above this many free cells, free-region placement samples anchors before scanning.
LARGE_GRID_FREE_CELLS = 4096
FREE_REGION_SAMPLES = 256


@dataclass(frozen=True)
class PlacementPlan:
    """A validated position for one template, with the exits it would link."""

    template: RoomTemplate
    anchor: CellPos
    links: Tuple[Tuple[int, ExitLink], ...]  # (new room exit index, existing exit)
    blocked_exits: int  # Existing open exits this room would wall off.
    unusable_exits: int  # Own exits facing the grid edge or a non-matching neighbour.
    reservation: Optional[str] = None

    @property
    def resolved(self) -> int:
        return len(self.links)

    @property
    def compatible(self) -> bool:
        return self.blocked_exits == 0 and self.unusable_exits == 0

    def sort_key(self) -> Tuple[bool, int, int, int]:
        # Compatible first, then most dangling exits resolved, then row-major anchor.
        return (not self.compatible, -self.resolved, self.anchor.y, self.anchor.x)

    def links_to(self, link: ExitLink) -> bool:
        return any(existing == link for _, existing in self.links)


@dataclass
class PlacementContext:
    """Encapsulates shared state and helpers for placer implementations."""

    config: GeneratorConfig
    layout: LevelLayout
    catalog: TemplateCatalog
    rng: random.Random
    should_cancel: Optional[Callable[[], bool]] = None
    metrics: Optional[GenerationMetrics] = None
    pending_essentials: List[RoomTemplate] = field(default_factory=list)
    # Kind-choice draws, kept apart from ``rng`` so the density never shifts the main stream.
    density_rng: Optional[random.Random] = None

    def __post_init__(self) -> None:
        if self.density_rng is None:
            self.density_rng = random.Random(self.rng.getrandbits(64))

    def check_cancelled(self) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise GenerationCancelled(
                f"Generation cancelled during attempt {self.layout.attempt} "
                f"after placing {self.layout.room_count} rooms"
            )

    def can_add_room(self) -> bool:
        return self.layout.room_count < self.config.max_level_size

    def run_phase(self, name: str, func: Callable[..., int], *args: Any, **kwargs: Any) -> int:
        """Run one placer, recording its duration and rooms added when metrics are on."""
        if self.metrics is None:
            return func(self, *args, **kwargs)

        rooms_before = self.layout.room_count
        start = perf_counter()
        try:
            return func(self, *args, **kwargs)
        finally:
            duration = perf_counter() - start
            self.metrics.record_phase_run(name, duration, self.layout.room_count - rooms_before)

    # ------------------------------------------------------------------
    # Template selection
    # ------------------------------------------------------------------
    def weighted_templates(self, templates: Sequence[RoomTemplate]) -> List[RoomTemplate]:
        """Return placeable templates ordered by randomized weights."""
        weighted: List[Tuple[float, int, RoomTemplate]] = []
        for order, template in enumerate(templates):
            if not self.layout.can_place_more_of(template):
                continue
            weighted.append((self.rng.random() ** (1.0 / template.weight), -order, template))
        weighted.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [template for _, _, template in weighted]

    def prefers_corridor(self) -> bool:
        """True with probability density/100."""
        return self.density_rng.random() < self.config.density_fraction

    def kind_order(self) -> Tuple[RoomKind, RoomKind]:
        """Corridors first with probability density/100, otherwise normal rooms first."""
        if self.prefers_corridor():
            return RoomKind.CORRIDOR, RoomKind.NORMAL
        return RoomKind.NORMAL, RoomKind.CORRIDOR

    def growth_templates(self, kinds: Sequence[RoomKind]) -> List[RoomTemplate]:
        ordered: List[RoomTemplate] = []
        for kind in kinds:
            ordered.extend(self.weighted_templates(self.catalog.growth_templates(kind)))
        return ordered

    # ------------------------------------------------------------------
    # Candidate evaluation
    # ------------------------------------------------------------------
    def evaluate_placement(
        self,
        template: RoomTemplate,
        anchor: CellPos,
        reservation: Optional[str] = None,
    ) -> Optional[PlacementPlan]:
        """Check a footprint position and score its exits; None if it overlaps or walls off an essential exit."""
        grid = self.layout.grid
        cells = template.cells_at(anchor)
        if not grid.can_fit(cells, reservation):
            return None

        cell_set = set(cells)
        links: List[Tuple[int, ExitLink]] = []
        blocked = 0
        unusable = 0
        for cell in cells:
            offset = cell - anchor
            for direction in Direction:
                own_exit = template.exit_index_at(offset, direction)
                neighbor = grid.neighbor(cell, direction)
                if neighbor is None or neighbor in cell_set:
                    if own_exit is not None:
                        unusable += 1
                    continue
                owner = grid.room_at(neighbor)
                if owner is None:
                    if own_exit is not None and not grid.is_free(neighbor):
                        unusable += 1
                    continue

                other_room = self.layout.rooms[owner]
                their_exit = other_room.exit_index_at(neighbor, direction.opposite())
                their_open = their_exit is not None and other_room.exit_state(their_exit) is ExitState.DANGLING
                if own_exit is not None and their_open:
                    links.append((own_exit, ExitLink(owner, their_exit)))
                    continue
                if own_exit is not None:
                    unusable += 1
                if their_open:
                    if other_room.is_essential:
                        return None
                    blocked += 1

        return PlacementPlan(
            template=template,
            anchor=anchor,
            links=tuple(links),
            blocked_exits=blocked,
            unusable_exits=unusable,
            reservation=reservation,
        )

    def frontier_plans(self, template: RoomTemplate, frontier: Sequence[ExitLink]) -> List[PlacementPlan]:
        """All placements of ``template`` that answer at least one of the ``frontier`` exits."""
        plans: Dict[CellPos, PlacementPlan] = {}
        for link in frontier:
            room = self.layout.rooms[link.room_index]
            world_exit = room.get_world_exits()[link.exit_index]
            neighbor = self.layout.grid.neighbor(world_exit.cell, world_exit.direction)
            if neighbor is None:
                continue
            needed = world_exit.direction.opposite()
            for exit_ in template.exits:
                if exit_.direction is not needed:
                    continue
                anchor = neighbor - exit_.offset
                if anchor in plans:
                    continue
                plan = self.evaluate_placement(template, anchor)
                if plan is not None and plan.links_to(link):
                    plans[anchor] = plan
        return list(plans.values())

    def best_frontier_plan(
        self, template: RoomTemplate, frontier: Sequence[ExitLink]
    ) -> Optional[PlacementPlan]:
        plans = self.frontier_plans(template, frontier)
        if not plans:
            return None
        return min(plans, key=lambda plan: plan.sort_key())

    def best_plan_among(
        self,
        templates: Sequence[RoomTemplate],
        frontier: Sequence[ExitLink],
        deferred: AbstractSet[RoomTemplate] = frozenset(),
    ) -> Optional[PlacementPlan]:
        """Best frontier placement across ``templates``; their order only breaks exact ties.

        A template in ``deferred`` loses to any other plan that is as compatible and
        resolves as many exits.
        """
        best: Optional[PlacementPlan] = None
        best_key = None
        for order, template in enumerate(templates):
            plan = self.best_frontier_plan(template, frontier)
            if plan is None:
                continue
            unfit, resolved, y, x = plan.sort_key()
            key = (unfit, resolved, template in deferred, y, x, order)
            if best_key is None or key < best_key:
                best, best_key = plan, key
        return best

    def free_region_plans(self, template: RoomTemplate, reservation: Optional[str] = None) -> List[PlacementPlan]:
        """Every in-bounds position where ``template`` fits, in row-major anchor order."""
        grid = self.layout.grid
        min_x = min(offset.x for offset in template.footprint)
        max_x = max(offset.x for offset in template.footprint)
        min_y = min(offset.y for offset in template.footprint)
        max_y = max(offset.y for offset in template.footprint)
        plans = []
        for y in range(-min_y, grid.height - max_y):
            for x in range(-min_x, grid.width - max_x):
                plan = self.evaluate_placement(template, CellPos(x, y), reservation)
                if plan is not None:
                    plans.append(plan)
        return plans

    def sampled_free_region_plans(self, template: RoomTemplate, samples: int) -> List[PlacementPlan]:
        """Evaluate ``samples`` random anchors instead of scanning the whole grid."""
        grid = self.layout.grid
        free = grid.free_cells()
        if not free:
            return []
        plans = []
        seen = set()
        offsets = sorted(template.footprint, key=lambda offset: offset.row_major)
        for _ in range(samples):
            cell = self.rng.choice(free)
            anchor = cell - self.rng.choice(offsets)
            if anchor in seen:
                continue
            seen.add(anchor)
            plan = self.evaluate_placement(template, anchor)
            if plan is not None:
                plans.append(plan)
        return plans

    def choose_free_region_plan(self, template: RoomTemplate) -> Optional[PlacementPlan]:
        """Pick a random free position, preferring ones whose exits all face usable cells."""
        plans: List[PlacementPlan] = []
        if self.layout.grid.free_count > LARGE_GRID_FREE_CELLS:
            plans = self.sampled_free_region_plans(template, FREE_REGION_SAMPLES)
        if not plans:
            plans = self.free_region_plans(template)
        if not plans:
            return None
        best_key = min((plan.unusable_exits + plan.blocked_exits, -plan.resolved) for plan in plans)
        best = [plan for plan in plans if (plan.unusable_exits + plan.blocked_exits, -plan.resolved) == best_key]
        return self.rng.choice(best)

    # ------------------------------------------------------------------
    # Frontier helpers
    # ------------------------------------------------------------------
    def frontier_groups(self) -> List[List[ExitLink]]:
        """Frontier exits split so that essential rooms' exits are served first."""
        essential: List[ExitLink] = []
        other: List[ExitLink] = []
        for link in self.layout.frontier_exits():
            if self.layout.rooms[link.room_index].is_essential:
                essential.append(link)
            else:
                other.append(link)
        return [group for group in (essential, other) if group]

    def apply_plan(self, plan: PlacementPlan) -> RoomInstance:
        """Register the planned room and connect the exits it answers."""
        room = self.layout.register_room(plan.template, plan.anchor, plan.reservation)
        for own_exit, existing in plan.links:
            self.layout.connect(ExitLink(room.index, own_exit), existing)
        return room
