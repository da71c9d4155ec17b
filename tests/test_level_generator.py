import pytest

from level_errors import AttemptInvalid, GenerationCancelled, InvalidConfig, RetryBudgetExceeded
from level_generator import GenerationState, LevelGenerator
from level_layout import LevelLayout
from level_geometry import CellPos, Direction, GridAlignment
from room_catalog import TemplateCatalog
from room_models import ExitState, RoomKind
from room_templates import single_cell_template

E = Direction.EAST
DENSITY_STEPS = (0, 25, 50, 75, 100)


def assert_partitioned(layout):
    seen = set()
    for room in layout.rooms:
        for cell in room.cells:
            assert cell not in seen
            seen.add(cell)


def test_forced_reference_scenario_is_valid_within_the_cap(make_config, default_catalog):
    config = make_config(forced_level_generation=True)

    result = LevelGenerator(config, default_catalog).generate(seed=42)

    layout = result.layout
    assert result.state is GenerationState.VALID
    assert result.is_valid
    assert 1 <= result.attempts <= config.max_generation_attempts
    assert 5 <= layout.room_count <= 8
    assert {"entrance", "boss_room"} <= {room.template.name for room in layout.rooms}
    assert_partitioned(layout)
    for room in layout.rooms:
        for exit_index in range(len(room.template.exits)):
            assert room.exit_state(exit_index) is not ExitState.DANGLING


def test_same_seed_gives_identical_layout(make_config, default_catalog):
    config = make_config(level_density=60)

    first = LevelGenerator(config, default_catalog).generate(seed=1234)
    second = LevelGenerator(config, default_catalog).generate(seed=1234)

    assert first.layout.to_dict() == second.layout.to_dict()
    assert first.seed == second.seed == 1234


def test_config_seed_is_used_when_none_is_passed(make_config, default_catalog):
    config = make_config(random_seed=77)

    result = LevelGenerator(config, default_catalog).generate()

    assert result.seed == 77


@pytest.mark.parametrize("alignment", list(GridAlignment))
def test_room_count_stays_within_bounds_for_every_alignment(make_config, default_catalog, alignment):
    config = make_config(grid_alignment=alignment, forced_level_generation=True)

    for seed in range(5):
        layout = LevelGenerator(config, default_catalog).generate(seed=seed).layout
        assert 5 <= layout.room_count <= 8
        assert_partitioned(layout)


def corridor_shares(make_config, catalog, seed):
    shares = []
    for density in DENSITY_STEPS:
        config = make_config(grid_width=12, grid_height=12, min_level_size=10, max_level_size=30, level_density=density)
        shares.append(LevelGenerator(config, catalog).generate(seed=seed).layout.corridor_proportion)
    return shares


def test_full_density_never_lowers_corridor_share_for_a_seed(make_config, default_catalog):
    for seed in range(20):
        shares = corridor_shares(make_config, default_catalog, seed)
        assert shares[-1] >= shares[0], f"seed {seed}: {shares}"


def test_corridor_share_climbs_with_each_density_step(make_config, default_catalog):
    totals = [0.0] * len(DENSITY_STEPS)
    for seed in range(20):
        for step, share in enumerate(corridor_shares(make_config, default_catalog, seed)):
            totals[step] += share

    assert totals == sorted(totals)
    assert totals[-1] > totals[0]


def test_single_cell_grid_never_errors(make_config, default_catalog):
    config = make_config(grid_width=1, grid_height=1, min_level_size=0, max_level_size=1)

    result = LevelGenerator(config, default_catalog).generate(seed=3)

    assert result.layout.room_count <= 1
    assert result.state in (GenerationState.VALID, GenerationState.INVALID)


def test_unforced_mode_accepts_invalid_layout_with_report(make_config, default_catalog):
    # A 2x2 grid cannot hold both the entrance and the 2x2 boss room.
    config = make_config(grid_width=2, grid_height=2, min_level_size=1, max_level_size=4)

    result = LevelGenerator(config, default_catalog).generate(seed=8)

    assert result.state is GenerationState.INVALID
    assert result.attempts == 1
    assert result.layout.report.missing_essentials
    assert not result.layout.is_valid


def test_full_occupancy_exhausts_retries_when_infeasible(make_config, default_catalog):
    # The 2x2 boss room leaves no cell for the entrance.
    config = make_config(
        grid_width=2,
        grid_height=2,
        min_level_size=4,
        max_level_size=4,
        forced_level_generation=True,
        max_generation_attempts=5,
    )
    generator = LevelGenerator(config, default_catalog)

    with pytest.raises(RetryBudgetExceeded) as excinfo:
        generator.generate(seed=0)

    assert excinfo.value.attempts == 5
    assert excinfo.value.last_layout is not None
    assert generator.state is GenerationState.INVALID


@pytest.mark.parametrize("width, height", [(1, 2), (2, 2)])
def test_full_occupancy_fills_the_grid_when_feasible(make_config, cross_template, width, height):
    cells = width * height
    config = make_config(
        grid_width=width,
        grid_height=height,
        min_level_size=cells,
        max_level_size=cells,
        forced_level_generation=True,
    )

    result = LevelGenerator(config, TemplateCatalog([cross_template])).generate(seed=0)

    assert result.state is GenerationState.VALID
    assert result.layout.room_count == cells
    assert result.layout.grid.free_count == 0


def test_forced_mode_does_not_retry_for_fixed_anchor_essentials(make_config, cross_template):
    pinned = single_cell_template("pinned", RoomKind.ESSENTIAL, (E,), fixed_anchor=CellPos(0, 0))
    config = make_config(grid_width=1, grid_height=1, min_level_size=1, max_level_size=1, forced_level_generation=True)

    result = LevelGenerator(config, TemplateCatalog([pinned, cross_template])).generate(seed=6)

    room = result.layout.rooms[0]
    assert result.state is GenerationState.VALID
    assert result.attempts == 1
    assert room.template is pinned
    assert room.exit_state(0) is ExitState.SEALED
    assert result.layout.report.dangling_essential_exits == 0


def test_unplaceable_fixed_anchor_is_reported_without_invalidating(make_config, cross_template):
    pinned = single_cell_template("pinned", RoomKind.ESSENTIAL, (E,), fixed_anchor=CellPos(20, 0))
    config = make_config(forced_level_generation=True, max_generation_attempts=3)

    result = LevelGenerator(config, TemplateCatalog([pinned, cross_template])).generate(seed=2)

    report = result.layout.report
    assert result.state is GenerationState.VALID
    assert report.missing_essentials == ()
    assert report.unplaced_fixed_essentials == ("pinned",)
    assert [gap.template_name for gap in result.layout.placement_gaps] == ["pinned"]


def test_retry_budget_error_carries_diagnostics(make_config, default_catalog):
    config = make_config(
        grid_width=2,
        grid_height=2,
        min_level_size=1,
        max_level_size=4,
        forced_level_generation=True,
        max_generation_attempts=3,
    )

    with pytest.raises(RetryBudgetExceeded) as excinfo:
        LevelGenerator(config, default_catalog).generate(seed=5)

    assert excinfo.value.attempts == 3
    assert "entrance" in excinfo.value.missing_essentials or "boss_room" in excinfo.value.missing_essentials
    assert "3 attempts" in str(excinfo.value)


def test_cancellation_resets_to_idle(make_config, default_catalog):
    generator = LevelGenerator(make_config(), default_catalog)

    with pytest.raises(GenerationCancelled):
        generator.generate(seed=1, should_cancel=lambda: True)

    assert generator.state is GenerationState.IDLE


def test_completion_callback_receives_result_and_hooks(make_config, default_catalog):
    received = []
    config = make_config(disable_scene_caching=True, automatic_save=True, collect_metrics=True)

    result = LevelGenerator(config, default_catalog, on_complete=received.append).generate(seed=10)

    assert received == [result]
    assert result.hooks.cache_scene is False
    assert result.hooks.save_scene is True
    assert result.hooks.rebake_occlusion is False
    snapshot = result.metrics.snapshot()
    assert snapshot["attempts"] == 1
    assert {"essential_rooms", "frontier_growth", "corridor_fill"} <= set(snapshot["phases"])


def test_empty_catalog_is_rejected(make_config):
    with pytest.raises(InvalidConfig):
        LevelGenerator(make_config(), TemplateCatalog([]))


def test_invalid_attempt_without_report_raises_runtime_error(make_config, default_catalog, monkeypatch):
    config = make_config()
    generator = LevelGenerator(config, default_catalog)

    def unreported_attempt(attempt, attempt_seed, should_cancel=None):
        raise AttemptInvalid(LevelLayout(config, attempt=attempt, seed=attempt_seed))

    monkeypatch.setattr(generator, "run_attempt", unreported_attempt)

    with pytest.raises(RuntimeError, match="without a validated layout"):
        generator.generate(seed=1)
