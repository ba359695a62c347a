"""
Maze Demo

Replays a sequence of QR marker cards into a session, then runs the
resulting program on a built-in maze and draws each step as ASCII.

The cards below solve "Sequence + Loop 1" (maze3): walk the top corridor,
turn right, walk down the right-hand corridor to the goal.

Run: uv run python examples/maze_demo/run.py [maze_id]
"""

import asyncio
import sys

from progpath import (
    Config,
    GameStatus,
    MarkerFeed,
    MazeSession,
    SessionView,
    build_maze_store,
    render_ascii,
    seed_store,
)
from progpath.logging_utils import colored, Color, LOG_TAG_INFO

CARDS = ["loop", "forward", "loop", "turnRight", "loop", "forward", "loop"]


class CardClock:
    """Pretends each card is shown a couple of seconds after the last one."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 2.0
        return self.now


def draw(view: SessionView) -> None:
    snapshot = view.execution
    if snapshot.status is GameStatus.IDLE:
        return
    print(render_ascii(snapshot.grid, snapshot.robot))
    print()


async def main() -> None:
    maze_id = sys.argv[1] if len(sys.argv) > 1 else "maze3"

    Config.validate()
    print(Config.display())
    print()

    store = build_maze_store()
    await store.initialize()
    seeded = await seed_store(store)
    if seeded:
        print(colored(f"{LOG_TAG_INFO} Seeded {seeded} built-in mazes", Color.CYAN))

    session = MazeSession(store, tick_seconds=0.2, listeners=[draw])
    maze = await session.load(maze_id)
    print(render_ascii(maze.grid))
    print()

    feed = MarkerFeed(session.on_detected, clock=CardClock())
    for card in CARDS:
        feed.on_payload(card)
        if card == "loop" and session.ingestion.is_building_loop:
            session.ingestion.set_pending_loop_count(4)

    snapshot = await session.run()
    print(colored(f"{LOG_TAG_INFO} Finished: {snapshot.status.value}", Color.BOLD))
    await store.close()


if __name__ == "__main__":
    asyncio.run(main())
