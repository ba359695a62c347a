"""Utilities for maze grids: landmark lookup, editor validation, debug views."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from progpath.config import MAX_MAZE_SIZE, MIN_MAZE_SIZE

from .grid import EAST, NORTH, SOUTH, WEST, Direction, RobotState
from .schemas import MazeData, Tile


class InvalidMazeError(ValueError):
    """Raised when a maze fails editor-side validation.

    Carries every issue found so the editor can show them all at once.
    """

    def __init__(self, maze_id: str, issues: List[str]) -> None:
        self.maze_id = maze_id
        self.issues = issues
        lines = [f"Maze '{maze_id}' is not playable:"]
        lines.extend(f"  - {issue}" for issue in issues)
        super().__init__("\n".join(lines))


def _find_tile(grid: Sequence[Sequence[Tile]], target: Tile) -> Optional[Tuple[int, int]]:
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if tile == target:
                return (x, y)
    return None


def find_start(grid: Sequence[Sequence[Tile]]) -> Tuple[int, int]:
    """Return (x, y) of the first start tile in row-major order.

    Mazes without a start tile still load; the robot is placed at (0, 0).
    """

    found = _find_tile(grid, Tile.START)
    return found if found is not None else (0, 0)


def find_goal(grid: Sequence[Sequence[Tile]]) -> Optional[Tuple[int, int]]:
    """Return (x, y) of the first goal tile, or None when the maze has none."""
    return _find_tile(grid, Tile.GOAL)


def initial_robot_state(maze: MazeData, direction: Direction = EAST) -> RobotState:
    """Pose the robot on the start tile, facing ``direction``."""
    x, y = find_start(maze.grid)
    return RobotState(x=x, y=y, direction=direction)


def maze_issues(maze: MazeData) -> List[str]:
    """List every editor rule the maze breaks (empty list means playable)."""

    issues: List[str] = []
    if not MIN_MAZE_SIZE <= maze.size <= MAX_MAZE_SIZE:
        issues.append(
            f"size must be between {MIN_MAZE_SIZE} and {MAX_MAZE_SIZE}, got {maze.size}"
        )

    counts: Dict[Tile, int] = {Tile.START: 0, Tile.GOAL: 0}
    for row in maze.grid:
        for tile in row:
            if tile in counts:
                counts[tile] += 1

    for tile in (Tile.START, Tile.GOAL):
        count = counts[tile]
        if count == 0:
            issues.append(f"place one {tile.value} tile")
        elif count > 1:
            issues.append(f"only one {tile.value} tile is allowed, found {count}")
    return issues


def validate_maze(maze: MazeData) -> MazeData:
    """Return ``maze`` unchanged, or raise InvalidMazeError listing all issues."""
    issues = maze_issues(maze)
    if issues:
        raise InvalidMazeError(maze.id, issues)
    return maze


def blank_maze(maze_id: str, name: str, size: int = MIN_MAZE_SIZE) -> MazeData:
    """Create an all-floor maze with start top-left and goal bottom-right."""

    grid = [[Tile.FLOOR for _ in range(size)] for _ in range(size)]
    grid[0][0] = Tile.START
    grid[size - 1][size - 1] = Tile.GOAL
    return MazeData(id=maze_id, name=name, size=size, grid=grid)


_TILE_SYMBOLS: Dict[Tile, str] = {
    Tile.FLOOR: ". ",
    Tile.WALL: "██",
    Tile.HOLE: "O ",
    Tile.START: "S ",
    Tile.GOAL: "G ",
}

_HEADING_SYMBOLS: Dict[Direction, str] = {
    EAST: "> ",
    SOUTH: "v ",
    WEST: "< ",
    NORTH: "^ ",
}


def render_ascii(
    grid: Sequence[Sequence[Tile]],
    robot: Optional[RobotState] = None,
) -> str:
    """Render the grid as text, drawing the robot as a heading arrow.

    Top row first, matching the row-major layout. Suitable for logs and test
    failure messages.
    """

    lines: List[str] = []
    for y, row in enumerate(grid):
        cells: List[str] = []
        for x, tile in enumerate(row):
            if robot is not None and (robot.x, robot.y) == (x, y):
                cells.append(_HEADING_SYMBOLS.get(robot.direction, "R "))
            else:
                cells.append(_TILE_SYMBOLS.get(Tile(tile), "??"))
        lines.append("".join(cells).rstrip())
    return "\n".join(lines)
