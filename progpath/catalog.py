"""Built-in practice mazes.

Levels progress from plain sequences, to loops, to hole checks, to all three
combined. Layouts are written one character per tile:

    S start   G goal   . floor   # wall   O hole
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .maze import MazeData, Tile
from .persistence import MazeStore


_SYMBOLS: Dict[str, Tile] = {
    "S": Tile.START,
    "G": Tile.GOAL,
    ".": Tile.FLOOR,
    "#": Tile.WALL,
    "O": Tile.HOLE,
}

_LAYOUTS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("maze1", "Sequence 1", ("S..##", ".#.##", "...G#", "#####", ".....")),
    ("maze2", "Sequence 2", ("S###.", "...#.", "##.#.", "G..#.", "####.")),
    ("maze3", "Sequence + Loop 1", ("S....", ".###.", ".#.#.", ".###.", "....G")),
    ("maze4", "Sequence + Loop 2", ("S#G.#", ".##.#", ".##.#", "....#", "#####")),
    ("maze5", "Sequence + Condition 1", ("S#...", "O#...", "G#...", ".....", ".....")),
    ("maze6", "Sequence + Condition 2", ("S####", "O.OG#", "#####", ".....", ".....")),
    ("maze7", "Sequence + Loop + Condition 1", ("S....", ".#.#.", ".....", ".#.#.", "....G")),
    ("maze8", "Sequence + Loop + Condition 2", ("S#...", ".#.#.", "O.O#.", "####.", "G....")),
    ("maze9", "Sequence + Loop + Condition 3", ("S#GO#", "O##O#", "O##O#", "OOOO#", "#####")),
    ("maze10", "Sequence + Loop + Condition 4", ("S#...", ".#...", "O#...", ".####", "OO.OG")),
]


def parse_layout(maze_id: str, name: str, rows: Tuple[str, ...]) -> MazeData:
    """Build a MazeData from one-character-per-tile rows."""
    grid = [[_SYMBOLS[char] for char in row] for row in rows]
    return MazeData(id=maze_id, name=name, size=len(grid), grid=grid)


def initial_mazes() -> List[MazeData]:
    """Return fresh copies of the built-in mazes."""
    return [parse_layout(maze_id, name, rows) for maze_id, name, rows in _LAYOUTS]


async def seed_store(store: MazeStore) -> int:
    """Save the built-in mazes into an empty store.

    Returns the number of mazes written (0 when the store already had data,
    so an instructor's edits are never overwritten).
    """

    if await store.list():
        return 0
    mazes = initial_mazes()
    for maze in mazes:
        await store.save(maze)
    return len(mazes)
