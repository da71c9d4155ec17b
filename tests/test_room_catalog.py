import pytest

from level_errors import InvalidTemplate
from level_geometry import CellPos, Direction, Rotation
from room_catalog import TemplateCatalog
from room_models import ExitTemplate, RoomKind, RoomTemplate
from room_templates import single_cell_template

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST


def test_essential_templates_are_required_by_default(entrance_template, cross_template):
    assert entrance_template.is_required_essential
    assert not cross_template.is_required_essential
    optional = single_cell_template("vault", RoomKind.ESSENTIAL, (W,), required=False)
    assert not optional.is_required_essential


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(name="empty", footprint=frozenset(), exits=(), kind=RoomKind.NORMAL),
        dict(
            name="outside",
            footprint=frozenset((CellPos(0, 0),)),
            exits=(ExitTemplate(CellPos(1, 0), E),),
            kind=RoomKind.NORMAL,
        ),
        dict(
            name="inward",
            footprint=frozenset((CellPos(0, 0), CellPos(1, 0))),
            exits=(ExitTemplate(CellPos(0, 0), E),),
            kind=RoomKind.NORMAL,
        ),
        dict(
            name="corridor_three_way",
            footprint=frozenset((CellPos(0, 0),)),
            exits=(ExitTemplate(CellPos(0, 0), N), ExitTemplate(CellPos(0, 0), E), ExitTemplate(CellPos(0, 0), S)),
            kind=RoomKind.CORRIDOR,
        ),
        dict(
            name="heavy",
            footprint=frozenset((CellPos(0, 0),)),
            exits=(),
            kind=RoomKind.NORMAL,
            weight=0,
        ),
        dict(
            name="pinned_normal",
            footprint=frozenset((CellPos(0, 0),)),
            exits=(),
            kind=RoomKind.NORMAL,
            fixed_anchor=CellPos(0, 0),
        ),
    ],
)
def test_invalid_templates_are_rejected_at_load(kwargs):
    with pytest.raises(InvalidTemplate):
        RoomTemplate(**kwargs)


def test_rotated_template_turns_exits_and_stays_normalized():
    template = RoomTemplate(
        name="l_room",
        footprint=frozenset((CellPos(0, 0), CellPos(1, 0))),
        exits=(ExitTemplate(CellPos(0, 0), N), ExitTemplate(CellPos(1, 0), E)),
        kind=RoomKind.NORMAL,
    )

    rotated = template.rotated(Rotation.DEG_90)

    assert rotated.name == "l_room_r90"
    assert rotated.footprint == frozenset((CellPos(0, 0), CellPos(0, 1)))
    assert set((exit_.offset, exit_.direction) for exit_ in rotated.exits) == {
        (CellPos(0, 0), E),
        (CellPos(0, 1), S),
    }


def test_cells_at_returns_row_major_cells(wide_template):
    assert wide_template.cells_at(CellPos(3, 2)) == (CellPos(3, 2), CellPos(4, 2))
    assert wide_template.exit_index_at(CellPos(1, 0), E) == 1
    assert wide_template.exit_index_at(CellPos(1, 0), W) is None


def test_catalog_lookups(default_catalog):
    names = {template.name for template in default_catalog.required_essentials()}
    assert names == {"entrance", "boss_room"}
    assert "hall_cross" in default_catalog
    assert default_catalog.get("corridor_bend_r90").kind is RoomKind.CORRIDOR
    assert all(t.kind is RoomKind.CORRIDOR for t in default_catalog.by_kind(RoomKind.CORRIDOR))

    normal_growth = {t.name for t in default_catalog.growth_templates(RoomKind.NORMAL)}
    assert "treasure_vault" in normal_growth
    assert "entrance" not in normal_growth

    facing_west = default_catalog.with_exit_facing(W, kinds=(RoomKind.CORRIDOR,))
    assert facing_west
    assert all(W in t.exit_directions() for t in facing_west)

    with pytest.raises(KeyError):
        default_catalog.get("missing")


def test_catalog_rejects_duplicate_names(cross_template):
    with pytest.raises(InvalidTemplate):
        TemplateCatalog([cross_template, single_cell_template("cross", RoomKind.NORMAL, (N,))])


def test_catalog_from_mapping_expands_rotations():
    catalog = TemplateCatalog.from_mapping(
        {
            "templates": [
                {
                    "name": "start",
                    "kind": "essential",
                    "footprint": [[0, 0]],
                    "exits": [{"cell": [0, 0], "direction": "south"}],
                    "fixed_anchor": [0, 0],
                },
                {
                    "name": "bend",
                    "kind": "corridor",
                    "footprint": [[0, 0]],
                    "exits": [
                        {"cell": [0, 0], "direction": "north"},
                        {"cell": [0, 0], "direction": "east"},
                    ],
                    "rotations": [0, 90, 180],
                },
            ]
        }
    )

    assert len(catalog) == 4
    assert catalog.get("start").fixed_anchor == CellPos(0, 0)
    assert catalog.get("bend_r180").exit_directions() == frozenset((S, W))


def test_catalog_from_mapping_reports_malformed_entries():
    with pytest.raises(InvalidTemplate):
        TemplateCatalog.from_mapping({"templates": [{"name": "no_kind", "footprint": [[0, 0]]}]})
    with pytest.raises(InvalidTemplate):
        TemplateCatalog.from_mapping({"rooms": []})
