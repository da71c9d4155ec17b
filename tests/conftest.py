import random
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
CODE_DIR = ROOT_DIR / "code"
if str(CODE_DIR) not in sys.path:
    sys.path.insert(0, str(CODE_DIR))

from level_config import GeneratorConfig
from level_geometry import CellPos, Direction
from level_layout import LevelLayout
from placement_context import PlacementContext
from room_catalog import TemplateCatalog
from room_models import ExitTemplate, RoomKind, RoomTemplate
from room_templates import build_default_room_templates, single_cell_template

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST


@pytest.fixture
def cross_template() -> RoomTemplate:
    return single_cell_template("cross", RoomKind.NORMAL, (N, E, S, W))


@pytest.fixture
def corridor_template() -> RoomTemplate:
    return single_cell_template("corridor_ns", RoomKind.CORRIDOR, (N, S))


@pytest.fixture
def entrance_template() -> RoomTemplate:
    return single_cell_template("entrance", RoomKind.ESSENTIAL, (S,))


@pytest.fixture
def wide_template() -> RoomTemplate:
    return RoomTemplate(
        name="wide_hall",
        footprint=frozenset((CellPos(0, 0), CellPos(1, 0))),
        exits=(ExitTemplate(CellPos(0, 0), W), ExitTemplate(CellPos(1, 0), E)),
        kind=RoomKind.NORMAL,
    )


@pytest.fixture
def default_room_templates() -> list[RoomTemplate]:
    return build_default_room_templates()


@pytest.fixture
def default_catalog(default_room_templates: list[RoomTemplate]) -> TemplateCatalog:
    return TemplateCatalog(default_room_templates)


@pytest.fixture
def make_config() -> Callable[..., GeneratorConfig]:
    def _make_config(**overrides) -> GeneratorConfig:
        values = dict(
            grid_width=10,
            grid_height=10,
            min_level_size=5,
            max_level_size=8,
            level_density=50,
        )
        values.update(overrides)
        return GeneratorConfig(**values)

    return _make_config


@pytest.fixture
def make_context(
    make_config: Callable[..., GeneratorConfig],
    default_catalog: TemplateCatalog,
) -> Callable[..., PlacementContext]:
    def _make_context(
        *,
        catalog: Optional[TemplateCatalog] = None,
        seed: int = 0,
        **config_overrides,
    ) -> PlacementContext:
        config = make_config(**config_overrides)
        return PlacementContext(
            config=config,
            layout=LevelLayout(config, seed=seed),
            catalog=catalog if catalog is not None else default_catalog,
            rng=random.Random(seed),
        )

    return _make_context
