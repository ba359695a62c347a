"""Pydantic schemas for maze definitions.

These models describe the persisted shape of a maze,
``{id, name, size, grid}``, and validate it on the way in and out of a
maze store. The mutable working copy used during execution lives in
``grid.py``.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, model_validator


class Tile(str, Enum):
    """Terrain value of a single maze cell."""

    FLOOR = "floor"
    WALL = "wall"
    HOLE = "hole"
    START = "start"
    GOAL = "goal"


class MazeData(BaseModel):
    """A named, square grid of tiles.

    ``grid`` is row-major with the origin at the top-left: ``grid[y][x]``.
    The start/goal count rule is an editor concern (see ``validate_maze``);
    this model only checks that the grid is the square the ``size`` claims.
    """

    id: str = Field(..., description="Unique maze identifier")
    name: str = Field(..., description="Human-friendly maze title")
    size: int = Field(..., ge=1, description="Edge length of the square grid")
    grid: List[List[Tile]] = Field(..., description="Row-major tiles, grid[y][x]")

    @model_validator(mode="after")
    def _check_square(self) -> "MazeData":
        if len(self.grid) != self.size:
            raise ValueError(
                f"grid has {len(self.grid)} rows but size is {self.size}"
            )
        for y, row in enumerate(self.grid):
            if len(row) != self.size:
                raise ValueError(
                    f"row {y} has {len(row)} tiles but size is {self.size}"
                )
        return self
