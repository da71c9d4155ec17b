"""Configuration container for level generation."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from level_constants import (
    DEFAULT_MAX_GENERATION_ATTEMPTS,
    MAX_GRID_SIZE,
    MAX_LEVEL_DENSITY,
    MIN_GRID_SIZE,
    MIN_LEVEL_DENSITY,
)
from level_errors import InvalidConfig, InvalidDimension
from level_geometry import UNIT_SCALE, ZERO_VECTOR, GridAlignment, Transform, Vector2, Vector3


@dataclass(frozen=True)
class RoomCountDistribution:
    """Triangular distribution over the number of rooms one attempt aims to place."""

    min_count: int
    max_count: int
    mode: Optional[float] = None

    def __post_init__(self) -> None:
        min_count = int(self.min_count)
        max_count = int(self.max_count)
        if min_count < 0:
            raise InvalidConfig("Room count minimum cannot be negative")
        if max_count < min_count:
            raise InvalidConfig("Room count maximum must be >= minimum")

        # Default to the maximum so attempts lean toward filling the grid.
        mode = float(max_count) if self.mode is None else float(self.mode)
        if not (min_count <= mode <= max_count):
            raise InvalidConfig("Room count mode must lie within [min_count, max_count]")

        object.__setattr__(self, "min_count", min_count)
        object.__setattr__(self, "max_count", max_count)
        object.__setattr__(self, "mode", mode)

    def sample(self, rng: random.Random) -> int:
        if self.min_count == self.max_count:
            return self.min_count
        value = rng.triangular(self.min_count, self.max_count, self.mode)
        clamped = max(self.min_count, min(self.max_count, value))
        return int(round(clamped))


# camelCase field names used by editor-side configuration files.
_CAMEL_CASE_FIELDS = {
    "gridWidth": "grid_width",
    "gridHeight": "grid_height",
    "minLevelSize": "min_level_size",
    "maxLevelSize": "max_level_size",
    "levelDensity": "level_density",
    "forcedLevelGeneration": "forced_level_generation",
    "gridAlignment": "grid_alignment",
    "cellPositionOffset": "cell_spacing",
    "cellRotation": "cell_rotation",
    "cellScale": "cell_scale",
    "levelPosition": "level_position",
    "levelRotation": "level_rotation",
    "levelScale": "level_scale",
    "disableSceneCaching": "disable_scene_caching",
    "automaticSave": "automatic_save",
    "automaticOcclusionCulling": "automatic_occlusion_culling",
    "randomSeed": "random_seed",
    "maxGenerationAttempts": "max_generation_attempts",
}


@dataclass(frozen=True)
class GeneratorConfig:
    """Aggregates all tunable parameters for one generation run."""

    grid_width: int
    grid_height: int
    min_level_size: int
    max_level_size: int
    # 0..100; share of corridor (two-exit) rooms during growth and corridor fill.
    level_density: int = 50
    # Retry until every essential room is placed and every essential exit connects.
    forced_level_generation: bool = False
    grid_alignment: GridAlignment = GridAlignment.HORIZONTAL
    # Physical space between cells, in world units.
    cell_spacing: Vector2 = Vector2(0.0, 0.0)
    cell_rotation: Vector3 = ZERO_VECTOR
    cell_scale: Vector3 = UNIT_SCALE
    level_position: Vector3 = ZERO_VECTOR
    level_rotation: Vector3 = ZERO_VECTOR
    level_scale: Vector3 = UNIT_SCALE

    # Host hints; the generator only reports them.
    disable_scene_caching: bool = False
    automatic_save: bool = False
    automatic_occlusion_culling: bool = False

    random_seed: int | None = None
    max_generation_attempts: int = DEFAULT_MAX_GENERATION_ATTEMPTS
    collect_metrics: bool = False
    _room_count_distribution: RoomCountDistribution = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "grid_alignment", self._coerce_alignment(self.grid_alignment))
        try:
            object.__setattr__(self, "cell_spacing", Vector2.coerce(self.cell_spacing))
            for name in ("cell_rotation", "cell_scale", "level_position", "level_rotation", "level_scale"):
                object.__setattr__(self, name, Vector3.coerce(getattr(self, name)))
        except (TypeError, ValueError) as exc:
            raise InvalidConfig(f"GeneratorConfig vector fields are malformed: {exc}") from exc
        self.validate()
        object.__setattr__(
            self,
            "_room_count_distribution",
            RoomCountDistribution(self.min_level_size, self.max_level_size),
        )

    @staticmethod
    def _coerce_alignment(value: Any) -> GridAlignment:
        try:
            return GridAlignment.from_value(value)
        except ValueError as exc:
            raise InvalidConfig(str(exc)) from exc

    def validate(self) -> None:
        """Re-check every invariant the editing surface clamps; raise InvalidConfig on failure."""
        for name in ("grid_width", "grid_height"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidDimension(f"GeneratorConfig {name} must be an integer, got {value!r}")
            if not (MIN_GRID_SIZE <= value <= MAX_GRID_SIZE):
                raise InvalidDimension(
                    f"GeneratorConfig {name} must lie within [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}], got {value}"
                )
        for name in ("min_level_size", "max_level_size", "level_density", "max_generation_attempts"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidConfig(f"GeneratorConfig {name} must be an integer, got {value!r}")
        if self.min_level_size < 0:
            raise InvalidConfig("GeneratorConfig min_level_size cannot be negative")
        if self.max_level_size < self.min_level_size:
            raise InvalidConfig("GeneratorConfig max_level_size must be >= min_level_size")
        if self.max_level_size > self.cell_count:
            raise InvalidConfig(
                f"GeneratorConfig max_level_size {self.max_level_size} exceeds grid capacity {self.cell_count}"
            )
        if not (MIN_LEVEL_DENSITY <= self.level_density <= MAX_LEVEL_DENSITY):
            raise InvalidConfig(
                f"GeneratorConfig level_density must lie within [{MIN_LEVEL_DENSITY}, {MAX_LEVEL_DENSITY}]"
            )
        if self.cell_spacing.x < 0 or self.cell_spacing.y < 0:
            raise InvalidConfig("GeneratorConfig cell_spacing must be non-negative")
        if self.max_generation_attempts <= 0:
            raise InvalidConfig("GeneratorConfig max_generation_attempts must be positive")
        if self.random_seed is not None and not isinstance(self.random_seed, int):
            raise InvalidConfig("GeneratorConfig random_seed must be an integer or None")

    @property
    def cell_count(self) -> int:
        return self.grid_width * self.grid_height

    @property
    def density_fraction(self) -> float:
        return self.level_density / float(MAX_LEVEL_DENSITY)

    @property
    def room_count_distribution(self) -> RoomCountDistribution:
        return self._room_count_distribution

    @property
    def level_transform(self) -> Transform:
        return Transform(self.level_position, self.level_rotation, self.level_scale)

    def advisories(self) -> List[str]:
        """Non-fatal warnings about settings that tend to slow generation down."""
        notes = []
        half_grid = self.cell_count // 2
        if self.min_level_size > self.cell_count / 2:
            notes.append(
                f"min_level_size {self.min_level_size} is above half the grid size ({half_grid}); "
                "generation may need many attempts"
            )
        if self.forced_level_generation:
            notes.append(
                "forced_level_generation is enabled; infeasible size settings end in RetryBudgetExceeded "
                f"after {self.max_generation_attempts} attempts"
            )
        return notes

    def with_seed(self, seed: int) -> GeneratorConfig:
        values = {f.name: getattr(self, f.name) for f in fields(self) if f.init}
        values["random_seed"] = seed
        return GeneratorConfig(**values)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeneratorConfig:
        """Build a config from snake_case or camelCase field names."""
        known = {f.name for f in fields(cls) if f.init}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_FIELDS.get(key, key)
            if name not in known:
                raise InvalidConfig(f"Unknown GeneratorConfig field {key!r}")
            values[name] = value
        missing = [name for name in ("grid_width", "grid_height", "min_level_size", "max_level_size") if name not in values]
        if missing:
            raise InvalidConfig(f"GeneratorConfig is missing required fields: {', '.join(missing)}")
        try:
            return cls(**values)
        except InvalidConfig:
            raise
        except (TypeError, ValueError) as exc:
            raise InvalidConfig(str(exc)) from exc

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if isinstance(value, (Vector2, Vector3)):
                value = list(value.to_tuple())
            elif isinstance(value, GridAlignment):
                value = value.value
            result[f.name] = value
        return result
