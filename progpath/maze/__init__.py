"""Maze grids, robot pose and editor helpers for progpath."""

from .schemas import MazeData, Tile
from .grid import EAST, NORTH, SOUTH, WEST, Direction, MazeOverlay, RobotState
from .helpers import (
    InvalidMazeError,
    blank_maze,
    find_goal,
    find_start,
    initial_robot_state,
    maze_issues,
    render_ascii,
    validate_maze,
)

__all__ = [
    "MazeData",
    "Tile",
    "Direction",
    "EAST",
    "SOUTH",
    "WEST",
    "NORTH",
    "MazeOverlay",
    "RobotState",
    "InvalidMazeError",
    "blank_maze",
    "find_goal",
    "find_start",
    "initial_robot_state",
    "maze_issues",
    "render_ascii",
    "validate_maze",
]
