"""Tests for maze stores, retrying loads and the built-in catalog."""

import json

import pytest
from pydantic import ValidationError

from progpath.catalog import initial_mazes, seed_store
from progpath.logging_utils import LOG_TAG_ERROR
from progpath.maze import Tile, blank_maze, maze_issues
from progpath.persistence import (
    InMemoryMazeStore,
    JsonMazeStore,
    MazeNotFoundError,
    build_maze_store,
    load_maze_with_retries,
)


@pytest.mark.asyncio
async def test_in_memory_store_round_trip_and_isolation():
    store = InMemoryMazeStore()
    await store.initialize()

    maze = blank_maze("m1", "Blank")
    await store.save(maze)

    loaded = await store.load("m1")
    assert loaded == maze

    # Mutating a loaded copy never reaches the stored authoritative grid.
    loaded.grid[0][1] = Tile.WALL
    again = await store.load("m1")
    assert again.grid[0][1] is Tile.FLOOR

    assert await store.load("missing") is None
    await store.delete("m1")
    await store.delete("m1")
    assert await store.list() == []
    await store.close()


@pytest.mark.asyncio
async def test_json_store_round_trip(tmp_path):
    store = JsonMazeStore(tmp_path / "mazes")
    await store.initialize()

    first = blank_maze("b", "Second by id", size=6)
    second = blank_maze("a", "First by id")
    await store.save(first)
    await store.save(second)

    path = tmp_path / "mazes" / "b.json"
    payload = json.loads(path.read_text("utf-8"))
    assert payload["size"] == 6
    assert payload["grid"][0][0] == "start"

    assert await store.load("b") == first
    assert [maze.id for maze in await store.list()] == ["a", "b"]

    await store.delete("b")
    assert await store.load("b") is None
    await store.close()


@pytest.mark.asyncio
async def test_json_store_rejects_path_like_ids(tmp_path):
    store = JsonMazeStore(tmp_path)
    with pytest.raises(ValueError):
        await store.load("../escape")


@pytest.mark.asyncio
async def test_json_store_surfaces_malformed_records(tmp_path):
    store = JsonMazeStore(tmp_path)
    await store.initialize()
    (tmp_path / "bad.json").write_text('{"id": "bad", "name": "Bad", "size": 3, "grid": []}', "utf-8")

    with pytest.raises(ValidationError):
        await store.load("bad")


class FlakyStore(InMemoryMazeStore):
    """Fails the first ``failures`` loads with an OSError."""

    def __init__(self, failures: int, mazes=None):
        super().__init__(mazes)
        self.failures = failures
        self.calls = 0

    async def load(self, maze_id):
        self.calls += 1
        if self.calls <= self.failures:
            raise OSError("file is being written")
        return await super().load(maze_id)


@pytest.mark.asyncio
async def test_load_retries_transient_errors():
    store = FlakyStore(failures=2, mazes=[blank_maze("m", "M")])
    maze = await load_maze_with_retries(store, "m", max_attempts=3, wait_seconds=0)
    assert maze.id == "m"
    assert store.calls == 3


@pytest.mark.asyncio
async def test_load_gives_up_after_max_attempts():
    store = FlakyStore(failures=5, mazes=[blank_maze("m", "M")])
    with pytest.raises(OSError):
        await load_maze_with_retries(store, "m", max_attempts=2, wait_seconds=0)
    assert store.calls == 2


@pytest.mark.asyncio
async def test_missing_maze_is_not_retried():
    store = FlakyStore(failures=0)
    with pytest.raises(MazeNotFoundError) as excinfo:
        await load_maze_with_retries(store, "nope", max_attempts=3, wait_seconds=0)
    assert store.calls == 1
    assert excinfo.value.maze_id == "nope"


def test_build_maze_store_kinds():
    assert isinstance(build_maze_store("memory"), InMemoryMazeStore)
    assert isinstance(build_maze_store("json"), JsonMazeStore)
    with pytest.raises(ValueError):
        build_maze_store("redis")


def test_catalog_mazes_are_playable():
    mazes = initial_mazes()
    assert [maze.id for maze in mazes] == [f"maze{i}" for i in range(1, 11)]
    for maze in mazes:
        assert maze_issues(maze) == [], maze.id


@pytest.mark.asyncio
async def test_seed_store_only_fills_empty_store():
    store = InMemoryMazeStore()
    assert await seed_store(store) == 10
    assert len(await store.list()) == 10

    await store.save(blank_maze("custom", "Custom"))
    assert await seed_store(store) == 0
    assert len(await store.list()) == 11


@pytest.mark.asyncio
async def test_retries_are_logged_with_error_tag(capsys):
    store = FlakyStore(failures=1, mazes=[blank_maze("m", "M")])
    await load_maze_with_retries(store, "m", max_attempts=2, wait_seconds=0)

    out = capsys.readouterr().out
    assert LOG_TAG_ERROR in out
    assert "retry 2/2 for 'm'" in out
