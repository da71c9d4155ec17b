import pytest

from level_errors import InvalidConfig, InvalidDimension
from level_geometry import CellPos, Direction, GridAlignment, Vector2, Vector3
from level_grid import CellState, build_grid


def test_horizontal_neighbors_are_orthogonal_and_bounded():
    grid = build_grid(3, 3)

    assert grid.neighbor(CellPos(1, 1), Direction.NORTH) == CellPos(1, 0)
    assert grid.neighbor(CellPos(1, 1), Direction.EAST) == CellPos(2, 1)
    assert grid.neighbor(CellPos(0, 0), Direction.WEST) is None
    assert grid.neighbor(CellPos(2, 2), Direction.SOUTH) is None


def test_staggered_adjacency_shifts_columns_and_is_symmetric():
    grid = build_grid(4, 4, GridAlignment.STAGGERED)

    assert grid.neighbor(CellPos(1, 0), Direction.EAST) == CellPos(2, 0)
    assert grid.neighbor(CellPos(2, 0), Direction.SOUTH) == CellPos(1, 1)
    assert grid.neighbor(CellPos(1, 1), Direction.SOUTH) == CellPos(2, 2)

    for cell in grid.iter_cells():
        for direction in Direction:
            neighbor = grid.neighbor(cell.pos, direction)
            if neighbor is not None:
                assert grid.neighbor(neighbor, direction.opposite()) == cell.pos


def test_cell_transforms_follow_alignment_and_spacing():
    spacing = Vector2(1.0, 0.5)

    horizontal = build_grid(3, 3, GridAlignment.HORIZONTAL, spacing)
    vertical = build_grid(3, 3, GridAlignment.VERTICAL, spacing)
    staggered = build_grid(3, 3, GridAlignment.STAGGERED, spacing)

    assert horizontal.cell(CellPos(2, 1)).transform.position == Vector3(4.0, 0.0, -1.5)
    assert vertical.cell(CellPos(2, 1)).transform.position == Vector3(4.0, -1.5, 0.0)
    assert staggered.cell(CellPos(0, 1)).transform.position == Vector3(1.0, 0.0, -1.5)
    assert staggered.cell(CellPos(0, 2)).transform.position == Vector3(0.0, 0.0, -3.0)


def test_occupy_rejects_overlap_and_tracks_free_cells():
    grid = build_grid(2, 2)

    grid.occupy([CellPos(0, 0), CellPos(1, 0)], room_index=0)

    assert grid.room_at(CellPos(1, 0)) == 0
    assert grid.free_count == 2
    assert not grid.can_fit([CellPos(1, 0)])
    with pytest.raises(ValueError):
        grid.occupy([CellPos(1, 0), CellPos(1, 1)], room_index=1)
    assert grid.room_at(CellPos(1, 1)) is None


def test_reservations_only_admit_their_owner():
    grid = build_grid(3, 1)

    assert grid.reserve([CellPos(0, 0), CellPos(1, 0)], "boss")
    assert not grid.reserve([CellPos(1, 0), CellPos(2, 0)], "other")
    assert grid.cell(CellPos(2, 0)).state is CellState.EMPTY
    assert not grid.is_free(CellPos(0, 0))
    assert grid.is_free(CellPos(0, 0), reservation="boss")
    assert grid.free_count == 1

    grid.release_reservations("boss")

    assert grid.free_count == 3
    assert grid.is_free(CellPos(1, 0))


@pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (501, 1), (1, 501)])
def test_build_grid_rejects_out_of_range_dimensions(width, height):
    with pytest.raises(InvalidDimension):
        build_grid(width, height)

    assert issubclass(InvalidDimension, InvalidConfig)


def test_boundary_dimensions_build():
    assert build_grid(1, 1).cell_count == 1
    assert build_grid(500, 1).width == 500
