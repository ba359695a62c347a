"""Robot pose and the mutable working grid used during a run.

The authoritative grid (``MazeData.grid``) is never touched while a program
executes. Each run gets a ``MazeOverlay`` copied from it; ``ifHole`` fills
holes in the overlay only, and the overlay is rebuilt on every start/reset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .schemas import Tile


@dataclass(frozen=True)
class Direction:
    """Axis-aligned unit vector. The y axis points down the grid."""

    dx: int
    dy: int

    def turned_right(self) -> "Direction":
        # Clockwise on screen: east -> south -> west -> north.
        return Direction(-self.dy, self.dx)

    def turned_left(self) -> "Direction":
        return Direction(self.dy, -self.dx)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.dx, self.dy)


EAST = Direction(1, 0)
SOUTH = Direction(0, 1)
WEST = Direction(-1, 0)
NORTH = Direction(0, -1)


@dataclass(frozen=True)
class RobotState:
    """Robot pose: cell coordinates plus heading."""

    x: int
    y: int
    direction: Direction = EAST

    def ahead(self) -> Tuple[int, int]:
        """Return the coordinates of the cell one step along the heading."""
        return (self.x + self.direction.dx, self.y + self.direction.dy)

    def moved_to(self, x: int, y: int) -> "RobotState":
        return RobotState(x=x, y=y, direction=self.direction)

    def turned_right(self) -> "RobotState":
        return RobotState(x=self.x, y=self.y, direction=self.direction.turned_right())

    def turned_left(self) -> "RobotState":
        return RobotState(x=self.x, y=self.y, direction=self.direction.turned_left())


@dataclass
class MazeOverlay:
    """Working copy of a maze grid that a single run may mutate."""

    size: int
    tiles: List[List[Tile]] = field(default_factory=list)

    @classmethod
    def from_grid(cls, grid: Sequence[Sequence[Tile]]) -> "MazeOverlay":
        """Copy ``grid`` row by row so mutations never reach the source."""
        return cls(size=len(grid), tiles=[list(row) for row in grid])

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def tile_at(self, x: int, y: int) -> Tile:
        return self.tiles[y][x]

    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        self.tiles[y][x] = tile

    def rows(self) -> Tuple[Tuple[Tile, ...], ...]:
        """Immutable snapshot for read-only consumers (renderers, tests)."""
        return tuple(tuple(row) for row in self.tiles)
