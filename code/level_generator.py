"""LevelGenerator drives attempts until a layout is accepted or the retry budget runs out."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from connectivity_resolver import ConnectivityResolver
from level_config import GeneratorConfig
from level_constants import SEED_UPPER_BOUND
from level_errors import AttemptInvalid, GenerationCancelled, InvalidConfig, RetryBudgetExceeded
from level_layout import LevelLayout
from metrics import GenerationMetrics
from placement_context import PlacementContext
from placement_engine import PlacementEngine
from room_catalog import TemplateCatalog

logger = logging.getLogger(__name__)


class GenerationState(Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class PostGenerationHooks:
    """Host actions requested by the configuration; the generator only reports them."""

    cache_scene: bool
    save_scene: bool
    rebake_occlusion: bool

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> PostGenerationHooks:
        return cls(
            cache_scene=not config.disable_scene_caching,
            save_scene=config.automatic_save,
            rebake_occlusion=config.automatic_occlusion_culling,
        )


@dataclass
class GenerationResult:
    layout: LevelLayout
    attempts: int
    state: GenerationState
    hooks: PostGenerationHooks
    seed: int
    metrics: Optional[GenerationMetrics] = None

    @property
    def is_valid(self) -> bool:
        return self.state is GenerationState.VALID


class LevelGenerator:
    """Manages the overall process of generating one level layout."""

    def __init__(
        self,
        config: GeneratorConfig,
        catalog: TemplateCatalog,
        *,
        on_complete: Optional[Callable[[GenerationResult], None]] = None,
    ) -> None:
        config.validate()
        if len(catalog) == 0:
            raise InvalidConfig("Template catalog is empty")
        self.config = config
        self.catalog = catalog
        self.on_complete = on_complete
        self.state = GenerationState.IDLE
        self.metrics = GenerationMetrics() if config.collect_metrics else None

    def _choose_seed(self, seed: Optional[int]) -> int:
        if seed is not None:
            return seed
        if self.config.random_seed is not None:
            return self.config.random_seed
        chosen = random.randrange(SEED_UPPER_BOUND)
        logger.info("No seed given; using %d", chosen)
        return chosen

    def run_attempt(
        self,
        attempt: int,
        attempt_seed: int,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> LevelLayout:
        """Build one layout from scratch; raises AttemptInvalid if it fails validation."""
        layout = LevelLayout(self.config, attempt=attempt, seed=attempt_seed)
        context = PlacementContext(
            config=self.config,
            layout=layout,
            catalog=self.catalog,
            rng=random.Random(attempt_seed),
            should_cancel=should_cancel,
            metrics=self.metrics,
        )
        PlacementEngine(context).place()
        context.check_cancelled()
        report = ConnectivityResolver(context).resolve()
        if self.metrics is not None:
            self.metrics.record_attempt(report.is_valid)
        if not report.is_valid:
            raise AttemptInvalid(layout)
        return layout

    def generate(
        self,
        seed: Optional[int] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> GenerationResult:
        """Generate a layout; forced mode retries invalid attempts up to the configured cap."""
        config = self.config
        for note in config.advisories():
            logger.warning(note)

        run_seed = self._choose_seed(seed)
        master_rng = random.Random(run_seed)
        max_attempts = config.max_generation_attempts if config.forced_level_generation else 1

        last_invalid: Optional[LevelLayout] = None
        attempt = 0
        try:
            while attempt < max_attempts:
                attempt += 1
                self.state = GenerationState.ATTEMPTING
                attempt_seed = master_rng.randrange(SEED_UPPER_BOUND)
                logger.debug("Starting attempt %d with seed %d", attempt, attempt_seed)
                try:
                    layout = self.run_attempt(attempt, attempt_seed, should_cancel)
                except AttemptInvalid as exc:
                    logger.debug("%s", exc)
                    last_invalid = exc.layout
                    continue
                self.state = GenerationState.VALID
                logger.info(
                    "Accepted layout with %d rooms after %d attempt(s)", layout.room_count, attempt
                )
                return self._finish(layout, attempt, run_seed)
        except GenerationCancelled:
            self.state = GenerationState.IDLE
            raise

        self.state = GenerationState.INVALID
        if last_invalid is None or last_invalid.report is None:
            raise RuntimeError("Generation finished without a validated layout")
        if not config.forced_level_generation:
            logger.warning(
                "Accepting incomplete layout: %s", last_invalid.report.describe_problems()
            )
            return self._finish(last_invalid, attempt, run_seed)

        report = last_invalid.report
        raise RetryBudgetExceeded(
            attempts=attempt,
            missing_essentials=report.missing_essentials,
            dangling_exits=report.dangling_essential_exits,
            last_layout=last_invalid,
        )

    def _finish(self, layout: LevelLayout, attempts: int, seed: int) -> GenerationResult:
        result = GenerationResult(
            layout=layout,
            attempts=attempts,
            state=self.state,
            hooks=PostGenerationHooks.from_config(self.config),
            seed=seed,
            metrics=self.metrics,
        )
        if self.on_complete is not None:
            self.on_complete(result)
        return result
