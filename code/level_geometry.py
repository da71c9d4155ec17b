"""Geometry helpers for working with grid cells, directions, rotations, and transforms."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple


class Rotation(Enum):
    """Represents clockwise rotations in 90° increments."""

    DEG_0 = 0
    DEG_90 = 90
    DEG_180 = 180
    DEG_270 = 270

    @property
    def degrees(self) -> int:
        return self.value

    def quarter_turns(self) -> int:
        return (self.value // 90) % 4

    @classmethod
    def from_degrees(cls, value: int) -> Rotation:
        try:
            return cls(value % 360)
        except ValueError as exc:
            raise ValueError(f"Unsupported rotation {value}") from exc


class Direction(Enum):
    """Cardinal directions with unit vectors on the cell grid (y grows southward)."""

    NORTH = (0, -1)
    EAST = (1, 0)
    SOUTH = (0, 1)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def vector(self) -> Tuple[int, int]:
        return self.value

    def rotate(self, rotation: Rotation) -> Direction:
        return rotate_direction(self, rotation)

    def opposite(self) -> Direction:
        return self.rotate(Rotation.DEG_180)

    @classmethod
    def from_tuple(cls, value: Tuple[int, int]) -> Direction:
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unsupported direction {value}") from exc

    @classmethod
    def from_name(cls, value: str) -> Direction:
        try:
            return cls[value.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unsupported direction {value!r}") from exc


class GridAlignment(Enum):
    """How the grid is stacked in world space."""

    HORIZONTAL = "horizontal"  # Rectangular lattice on the X/Z plane.
    VERTICAL = "vertical"  # Rectangular lattice on the X/Y plane.
    STAGGERED = "staggered"  # Brick stacking on the X/Z plane, odd rows shifted half a cell.

    @classmethod
    def from_value(cls, value: "GridAlignment | str") -> GridAlignment:
        if isinstance(value, GridAlignment):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported grid alignment {value!r}") from exc


@dataclass(frozen=True)
class CellPos:
    """Integer grid coordinate."""

    x: int
    y: int

    def __iter__(self):
        yield self.x
        yield self.y

    def __add__(self, other: CellPos) -> CellPos:
        return CellPos(self.x + other.x, self.y + other.y)

    def __sub__(self, other: CellPos) -> CellPos:
        return CellPos(self.x - other.x, self.y - other.y)

    @property
    def row_major(self) -> Tuple[int, int]:
        """Sort key ordering cells row by row."""
        return self.y, self.x

    def step(self, direction: Direction) -> CellPos:
        return CellPos(self.x + direction.dx, self.y + direction.dy)

    def to_tuple(self) -> Tuple[int, int]:
        return self.x, self.y

    @classmethod
    def from_tuple(cls, value: Iterable[int]) -> CellPos:
        x, y = value
        return cls(int(x), int(y))


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def to_tuple(self) -> Tuple[float, float]:
        return self.x, self.y

    @classmethod
    def coerce(cls, value: "Vector2 | Iterable[float]") -> Vector2:
        if isinstance(value, Vector2):
            return value
        x, y = value
        return cls(float(x), float(y))


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_tuple(self) -> Tuple[float, float, float]:
        return self.x, self.y, self.z

    @classmethod
    def coerce(cls, value: "Vector3 | Iterable[float]") -> Vector3:
        if isinstance(value, Vector3):
            return value
        x, y, z = value
        return cls(float(x), float(y), float(z))


ZERO_VECTOR = Vector3(0.0, 0.0, 0.0)
UNIT_SCALE = Vector3(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Transform:
    """Position, Euler rotation in degrees, and scale."""

    position: Vector3 = ZERO_VECTOR
    rotation: Vector3 = ZERO_VECTOR
    scale: Vector3 = UNIT_SCALE

    def to_dict(self) -> dict:
        return {
            "position": list(self.position.to_tuple()),
            "rotation": list(self.rotation.to_tuple()),
            "scale": list(self.scale.to_tuple()),
        }


def rotate_offset(offset: CellPos, rotation: Rotation) -> CellPos:
    """Rotate a template-local offset clockwise about the origin."""
    if rotation is Rotation.DEG_0:
        return offset
    if rotation is Rotation.DEG_90:
        return CellPos(-offset.y, offset.x)
    if rotation is Rotation.DEG_180:
        return CellPos(-offset.x, -offset.y)
    if rotation is Rotation.DEG_270:
        return CellPos(offset.y, -offset.x)
    raise AssertionError(f"Unhandled rotation {rotation}")


def rotate_direction(direction: Direction, rotation: Rotation) -> Direction:
    dx, dy = direction.vector
    if rotation is Rotation.DEG_0:
        return direction
    if rotation is Rotation.DEG_90:
        return Direction.from_tuple((-dy, dx))
    if rotation is Rotation.DEG_180:
        return Direction.from_tuple((-dx, -dy))
    if rotation is Rotation.DEG_270:
        return Direction.from_tuple((dy, -dx))
    raise AssertionError(f"Unhandled rotation {rotation}")


def normalize_offsets(offsets: Iterable[CellPos]) -> Tuple[Tuple[CellPos, ...], CellPos]:
    """Shift offsets so the smallest x and y are zero; return the offsets and the shift applied."""
    offsets = tuple(offsets)
    if not offsets:
        return (), CellPos(0, 0)
    shift = CellPos(-min(o.x for o in offsets), -min(o.y for o in offsets))
    return tuple(o + shift for o in offsets), shift
