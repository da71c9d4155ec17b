import pytest

from level_geometry import (
    CellPos,
    Direction,
    GridAlignment,
    Rotation,
    Vector2,
    Vector3,
    normalize_offsets,
    rotate_direction,
    rotate_offset,
)


def test_rotation_from_degrees_normalizes_and_computes_quarter_turns():
    rotation = Rotation.from_degrees(450)

    assert rotation is Rotation.DEG_90
    assert rotation.quarter_turns() == 1
    assert Rotation.from_degrees(-90) is Rotation.DEG_270

    with pytest.raises(ValueError):
        Rotation.from_degrees(45)


@pytest.mark.parametrize(
    "direction,rotation,expected",
    [
        (Direction.NORTH, Rotation.DEG_90, Direction.EAST),
        (Direction.NORTH, Rotation.DEG_270, Direction.WEST),
        (Direction.SOUTH, Rotation.DEG_90, Direction.WEST),
        (Direction.WEST, Rotation.DEG_180, Direction.EAST),
    ],
)
def test_rotate_direction_turns_clockwise(direction, rotation, expected):
    assert rotate_direction(direction, rotation) is expected
    assert direction.rotate(rotation) is expected


def test_opposite_direction_pairs():
    assert Direction.NORTH.opposite() is Direction.SOUTH
    assert Direction.EAST.opposite() is Direction.WEST


@pytest.mark.parametrize(
    "rotation,expected",
    [
        (Rotation.DEG_0, CellPos(2, 1)),
        (Rotation.DEG_90, CellPos(-1, 2)),
        (Rotation.DEG_180, CellPos(-2, -1)),
        (Rotation.DEG_270, CellPos(1, -2)),
    ],
)
def test_rotate_offset_matches_direction_rotation(rotation, expected):
    assert rotate_offset(CellPos(2, 1), rotation) == expected


def test_normalize_offsets_shifts_to_origin():
    offsets, shift = normalize_offsets([CellPos(-1, 0), CellPos(0, -2)])

    assert shift == CellPos(1, 2)
    assert set(offsets) == {CellPos(0, 2), CellPos(1, 0)}


def test_cell_pos_arithmetic_and_row_major_order():
    a = CellPos(3, 1)
    b = CellPos(0, 2)

    assert a + b == CellPos(3, 3)
    assert a - b == CellPos(3, -1)
    assert a.step(Direction.NORTH) == CellPos(3, 0)
    assert sorted([b, a], key=lambda cell: cell.row_major) == [a, b]
    assert CellPos.from_tuple((4, 5)).to_tuple() == (4, 5)


def test_grid_alignment_and_vector_coercion():
    assert GridAlignment.from_value("Staggered") is GridAlignment.STAGGERED
    assert GridAlignment.from_value(GridAlignment.VERTICAL) is GridAlignment.VERTICAL
    with pytest.raises(ValueError):
        GridAlignment.from_value("diagonal")

    assert Vector2.coerce([1, 2]) == Vector2(1.0, 2.0)
    assert Vector3.coerce((1, 2, 3)).to_tuple() == (1.0, 2.0, 3.0)
