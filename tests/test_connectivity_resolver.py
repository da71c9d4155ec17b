from connectivity_resolver import ConnectivityResolver
from level_geometry import CellPos, Direction
from room_catalog import TemplateCatalog
from room_models import ExitLink, ExitState, RoomKind
from room_templates import single_cell_template


def test_facing_exits_are_linked_and_the_rest_sealed(make_context, cross_template):
    context = make_context(
        catalog=TemplateCatalog([cross_template]),
        grid_width=3,
        grid_height=1,
        min_level_size=1,
        max_level_size=3,
        level_density=0,
    )
    left = context.layout.register_room(cross_template, CellPos(0, 0))
    right = context.layout.register_room(cross_template, CellPos(1, 0))

    report = ConnectivityResolver(context).resolve()

    assert left.connections == {1: ExitLink(right.index, 3)}
    assert right.connections == {3: ExitLink(left.index, 1)}
    assert report.connected_exits == 2
    assert report.dangling_exits == 6
    assert report.sealed_exits == 6
    assert context.layout.count_exits(ExitState.DANGLING) == 0
    assert report.is_valid
    assert context.layout.is_valid


def test_forced_mode_leaves_essential_exits_dangling(make_context, entrance_template, cross_template):
    context = make_context(
        catalog=TemplateCatalog([entrance_template, cross_template]),
        grid_width=1,
        grid_height=2,
        min_level_size=1,
        max_level_size=1,
        forced_level_generation=True,
    )
    entrance = context.layout.register_room(entrance_template, CellPos(0, 0))

    report = ConnectivityResolver(context).resolve()

    assert entrance.exit_state(0) is ExitState.DANGLING
    assert report.dangling_essential_exits == 1
    assert not report.is_valid
    assert "dangling" in report.describe_problems()


def test_unforced_mode_seals_essential_exits(make_context, entrance_template, cross_template):
    context = make_context(
        catalog=TemplateCatalog([entrance_template, cross_template]),
        grid_width=1,
        grid_height=2,
        min_level_size=1,
        max_level_size=1,
    )
    entrance = context.layout.register_room(entrance_template, CellPos(0, 0))

    report = ConnectivityResolver(context).resolve()

    assert entrance.exit_state(0) is ExitState.SEALED
    assert report.is_valid


def test_essential_exits_are_filled_regardless_of_density(make_context, entrance_template, cross_template):
    context = make_context(
        catalog=TemplateCatalog([entrance_template, cross_template]),
        grid_width=1,
        grid_height=2,
        min_level_size=1,
        max_level_size=2,
        level_density=0,
        forced_level_generation=True,
    )
    entrance = context.layout.register_room(entrance_template, CellPos(0, 0))

    report = ConnectivityResolver(context).resolve()

    assert context.layout.room_count == 2
    assert entrance.connections == {0: ExitLink(1, 0)}
    assert report.dangling_essential_exits == 0
    assert report.is_valid


def test_full_density_fills_open_exits_with_corridors(make_context, cross_template, corridor_template):
    context = make_context(
        catalog=TemplateCatalog([cross_template, corridor_template]),
        grid_width=3,
        grid_height=3,
        min_level_size=1,
        max_level_size=5,
        level_density=100,
    )
    context.layout.register_room(cross_template, CellPos(1, 1))

    ConnectivityResolver(context).resolve()

    layout = context.layout
    assert layout.corridor_count == 2
    assert {room.anchor for room in layout.rooms_of_kind(corridor_template.kind)} == {CellPos(1, 0), CellPos(1, 2)}


def test_missing_required_essentials_invalidate_the_attempt(make_context, entrance_template, cross_template):
    context = make_context(
        catalog=TemplateCatalog([entrance_template, cross_template]),
        min_level_size=1,
        max_level_size=4,
    )
    context.layout.register_room(cross_template, CellPos(4, 4))

    report = ConnectivityResolver(context).resolve()

    assert report.missing_essentials == ("entrance",)
    assert not context.layout.is_valid


def test_forced_mode_seals_exits_of_fixed_anchor_essentials(make_context, cross_template):
    pinned = single_cell_template("pinned", RoomKind.ESSENTIAL, (Direction.EAST,), fixed_anchor=CellPos(0, 0))
    context = make_context(
        catalog=TemplateCatalog([pinned, cross_template]),
        grid_width=1,
        grid_height=1,
        min_level_size=1,
        max_level_size=1,
        forced_level_generation=True,
    )
    room = context.layout.register_room(pinned, CellPos(0, 0))

    report = ConnectivityResolver(context).resolve()

    assert room.exit_state(0) is ExitState.SEALED
    assert report.dangling_essential_exits == 0
    assert report.missing_essentials == ()
    assert report.is_valid
