"""Bounded cell lattice with alignment-dependent adjacency and world transforms."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from level_constants import MAX_GRID_SIZE, MIN_GRID_SIZE
from level_errors import InvalidDimension
from level_geometry import (
    UNIT_SCALE,
    ZERO_VECTOR,
    CellPos,
    Direction,
    GridAlignment,
    Transform,
    Vector2,
    Vector3,
)


class CellState(Enum):
    EMPTY = "empty"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


@dataclass
class Cell:
    pos: CellPos
    transform: Transform
    state: CellState = CellState.EMPTY
    room_index: Optional[int] = None
    reserved_for: Optional[str] = None


# ----------------------------------------------------------------------
# Adjacency rules, keyed by alignment
# ----------------------------------------------------------------------
def orthogonal_neighbor(pos: CellPos, direction: Direction) -> CellPos:
    return pos.step(direction)


def staggered_neighbor(pos: CellPos, direction: Direction) -> CellPos:
    """Brick stacking: odd rows sit half a cell east, so vertical steps shift one column."""
    if direction.dy == 0:
        return pos.step(direction)
    shift = 1 if pos.y % 2 else -1
    return CellPos(pos.x + shift, pos.y + direction.dy)


AdjacencyRule = Callable[[CellPos, Direction], CellPos]

ADJACENCY_RULES: Dict[GridAlignment, AdjacencyRule] = {
    GridAlignment.HORIZONTAL: orthogonal_neighbor,
    GridAlignment.VERTICAL: orthogonal_neighbor,
    GridAlignment.STAGGERED: staggered_neighbor,
}


# ----------------------------------------------------------------------
# World placement, keyed by alignment
# ----------------------------------------------------------------------
def _horizontal_position(pos: CellPos, pitch: Vector3) -> Vector3:
    return Vector3(pos.x * pitch.x, 0.0, -pos.y * pitch.z)


def _vertical_position(pos: CellPos, pitch: Vector3) -> Vector3:
    return Vector3(pos.x * pitch.x, -pos.y * pitch.y, 0.0)


def _staggered_position(pos: CellPos, pitch: Vector3) -> Vector3:
    row_offset = pitch.x / 2.0 if pos.y % 2 else 0.0
    return Vector3(pos.x * pitch.x + row_offset, 0.0, -pos.y * pitch.z)


POSITION_RULES: Dict[GridAlignment, Callable[[CellPos, Vector3], Vector3]] = {
    GridAlignment.HORIZONTAL: _horizontal_position,
    GridAlignment.VERTICAL: _vertical_position,
    GridAlignment.STAGGERED: _staggered_position,
}


def cell_pitch(alignment: GridAlignment, spacing: Vector2, cell_scale: Vector3) -> Vector3:
    """Distance between neighbouring cell origins along each world axis."""
    if alignment is GridAlignment.VERTICAL:
        return Vector3(cell_scale.x + spacing.x, cell_scale.y + spacing.y, cell_scale.z)
    return Vector3(cell_scale.x + spacing.x, cell_scale.y, cell_scale.z + spacing.y)


def cell_world_transform(
    pos: CellPos,
    alignment: GridAlignment,
    spacing: Vector2,
    cell_rotation: Vector3,
    cell_scale: Vector3,
) -> Transform:
    """Pure function of the coordinate, spacing, and per-cell rotation/scale."""
    pitch = cell_pitch(alignment, spacing, cell_scale)
    return Transform(
        position=POSITION_RULES[alignment](pos, pitch),
        rotation=cell_rotation,
        scale=cell_scale,
    )


class Grid:
    """Owns the cells of one attempt; only occupancy changes after build."""

    def __init__(
        self,
        width: int,
        height: int,
        alignment: GridAlignment = GridAlignment.HORIZONTAL,
        spacing: Vector2 = Vector2(0.0, 0.0),
        cell_rotation: Vector3 = ZERO_VECTOR,
        cell_scale: Vector3 = UNIT_SCALE,
    ) -> None:
        self.width = width
        self.height = height
        self.alignment = alignment
        self.spacing = spacing
        self._adjacency = ADJACENCY_RULES[alignment]
        self._cells: List[List[Cell]] = [
            [
                Cell(
                    pos=CellPos(x, y),
                    transform=cell_world_transform(CellPos(x, y), alignment, spacing, cell_rotation, cell_scale),
                )
                for x in range(width)
            ]
            for y in range(height)
        ]
        self._free_count = width * height

    def in_bounds(self, pos: CellPos) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def cell(self, pos: CellPos) -> Cell:
        if not self.in_bounds(pos):
            raise IndexError(f"Cell {pos.to_tuple()} outside {self.width}x{self.height} grid")
        return self._cells[pos.y][pos.x]

    def neighbor(self, pos: CellPos, direction: Direction) -> Optional[CellPos]:
        """Return the adjacent cell in ``direction``, or None past the grid edge."""
        candidate = self._adjacency(pos, direction)
        return candidate if self.in_bounds(candidate) else None

    def room_at(self, pos: CellPos) -> Optional[int]:
        if not self.in_bounds(pos):
            return None
        return self._cells[pos.y][pos.x].room_index

    def is_free(self, pos: CellPos, reservation: Optional[str] = None) -> bool:
        if not self.in_bounds(pos):
            return False
        cell = self._cells[pos.y][pos.x]
        if cell.state is CellState.EMPTY:
            return True
        return cell.state is CellState.RESERVED and reservation is not None and cell.reserved_for == reservation

    def can_fit(self, cells: Iterable[CellPos], reservation: Optional[str] = None) -> bool:
        return all(self.is_free(pos, reservation) for pos in cells)

    def occupy(self, cells: Iterable[CellPos], room_index: int, reservation: Optional[str] = None) -> None:
        cells = tuple(cells)
        if not self.can_fit(cells, reservation):
            raise ValueError(f"Room {room_index} overlaps occupied or reserved cells")
        for pos in cells:
            cell = self._cells[pos.y][pos.x]
            if cell.state is CellState.EMPTY:
                self._free_count -= 1
            cell.state = CellState.OCCUPIED
            cell.room_index = room_index
            cell.reserved_for = None

    def reserve(self, cells: Iterable[CellPos], owner: str) -> bool:
        """Hold empty cells for ``owner``; returns False and reserves nothing if any cell is taken."""
        cells = tuple(cells)
        if not all(self.in_bounds(pos) and self.cell(pos).state is CellState.EMPTY for pos in cells):
            return False
        for pos in cells:
            cell = self._cells[pos.y][pos.x]
            cell.state = CellState.RESERVED
            cell.reserved_for = owner
            self._free_count -= 1
        return True

    def release_reservations(self, owner: str) -> None:
        for cell in self.iter_cells():
            if cell.state is CellState.RESERVED and cell.reserved_for == owner:
                cell.state = CellState.EMPTY
                cell.reserved_for = None
                self._free_count += 1

    def iter_cells(self) -> Iterator[Cell]:
        """Cells in row-major order."""
        for row in self._cells:
            yield from row

    def free_cells(self) -> List[CellPos]:
        return [cell.pos for cell in self.iter_cells() if cell.state is CellState.EMPTY]

    @property
    def free_count(self) -> int:
        return self._free_count

    @property
    def cell_count(self) -> int:
        return self.width * self.height


def build_grid(
    width: int,
    height: int,
    alignment: GridAlignment = GridAlignment.HORIZONTAL,
    spacing: Vector2 = Vector2(0.0, 0.0),
    cell_rotation: Vector3 = ZERO_VECTOR,
    cell_scale: Vector3 = UNIT_SCALE,
) -> Grid:
    """Build an empty grid; raises InvalidDimension for sizes outside [1, 500]."""
    for name, value in (("width", width), ("height", height)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidDimension(f"Grid {name} must be an integer, got {value!r}")
        if not (MIN_GRID_SIZE <= value <= MAX_GRID_SIZE):
            raise InvalidDimension(f"Grid {name} must lie within [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}], got {value}")
    return Grid(
        width,
        height,
        GridAlignment.from_value(alignment),
        Vector2.coerce(spacing),
        Vector3.coerce(cell_rotation),
        Vector3.coerce(cell_scale),
    )
