"""
MazeStore interface for pluggable maze storage backends.

The interpreter only ever *reads* mazes: it loads the authoritative grid when
a session opens a maze and keeps it for every start/reset. Saving, deleting
and listing exist for the editor and for seeding the built-in catalog.

Backends:
1. InMemoryMazeStore - Dict-based storage, data lost on exit (testing, demos)
2. JsonMazeStore - One human-readable JSON file per maze
3. PostgresMazeStore - Database storage via asyncpg (shared classrooms)

Persisted shape (all backends)::

    {"id": "maze1", "name": "Sequence 1", "size": 5, "grid": [["start", ...], ...]}

Usage pattern:
    store = JsonMazeStore("mazes")
    await store.initialize()
    maze = await load_maze_with_retries(store, "maze1")
    await store.close()
"""

import asyncio
import json
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from progpath.maze import MazeData
from .config import Config
from .logging_utils import LOG_TAG_ERROR, log_error

try:  # Optional dependency (only needed for PostgresMazeStore)
    import asyncpg
except ImportError:  # pragma: no cover - the postgres extra is not installed
    asyncpg = None


class MazeNotFoundError(LookupError):
    """Raised when a caller requires a maze id the store does not hold."""

    def __init__(self, maze_id: str) -> None:
        self.maze_id = maze_id
        super().__init__(
            f"Maze '{maze_id}' not found.\n\n"
            "Remediation tips:\n"
            "  - List available mazes with `await store.list()`\n"
            "  - Seed the built-in catalog with `await seed_store(store)`\n"
            "  - Check PROGPATH_MAZE_STORE / PROGPATH_MAZE_DIR point at the right backend"
        )


class MazeStore(ABC):
    """Abstract base class for maze persistence.

    All methods are async so file and database backends never block the tick
    loop. ``initialize()`` and ``close()`` manage connection pools, directories,
    etc.; they are no-ops for the in-memory backend.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open pools)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def load(self, maze_id: str) -> Optional[MazeData]:
        """
        Retrieve a maze by id.

        Returns:
            MazeData if found, None otherwise

        Raises:
            ValidationError: If the stored record is malformed
        """
        pass

    @abstractmethod
    async def save(self, maze: MazeData) -> None:
        """Insert or overwrite a maze keyed by ``maze.id``."""
        pass

    @abstractmethod
    async def delete(self, maze_id: str) -> None:
        """Remove a maze. Deleting an unknown id is a no-op."""
        pass

    @abstractmethod
    async def list(self) -> List[MazeData]:
        """Return every stored maze, ordered by id."""
        pass


class InMemoryMazeStore(MazeStore):
    """Dict-backed maze store. Perfect for tests and single-process demos.

    Mazes are deep-copied on the way in and out so callers can never mutate
    the stored authoritative grid.
    """

    def __init__(self, mazes: Optional[Iterable[MazeData]] = None):
        self.mazes: Dict[str, MazeData] = {}
        for maze in mazes or []:
            self.mazes[maze.id] = maze.model_copy(deep=True)

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        # Data is kept so post-run reads still work.
        pass

    async def load(self, maze_id: str) -> Optional[MazeData]:
        maze = self.mazes.get(maze_id)
        return maze.model_copy(deep=True) if maze is not None else None

    async def save(self, maze: MazeData) -> None:
        self.mazes[maze.id] = maze.model_copy(deep=True)

    async def delete(self, maze_id: str) -> None:
        self.mazes.pop(maze_id, None)

    async def list(self) -> List[MazeData]:
        return [self.mazes[key].model_copy(deep=True) for key in sorted(self.mazes)]


class JsonMazeStore(MazeStore):
    """File-based store: ``{base_path}/{maze_id}.json`` per maze.

    Files are pretty-printed (indent=2) so mazes can be edited by hand or
    committed alongside lesson material. All file I/O runs in a worker thread
    (asyncio.to_thread).
    """

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else Config.MAZE_DIR

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def load(self, maze_id: str) -> Optional[MazeData]:
        path = self._maze_path(maze_id)
        if not path.exists():
            return None

        payload = await asyncio.to_thread(path.read_text, "utf-8")
        return MazeData.model_validate_json(payload)

    async def save(self, maze: MazeData) -> None:
        path = self._maze_path(maze.id)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        data = maze.model_dump(mode="json")
        await asyncio.to_thread(
            path.write_text, json.dumps(data, indent=2, ensure_ascii=False), "utf-8"
        )

    async def delete(self, maze_id: str) -> None:
        path = self._maze_path(maze_id)
        if path.exists():
            await asyncio.to_thread(path.unlink)

    async def list(self) -> List[MazeData]:
        if not self.base_path.exists():
            return []

        def _read_all() -> List[str]:
            return [p.read_text("utf-8") for p in sorted(self.base_path.glob("*.json"))]

        payloads = await asyncio.to_thread(_read_all)
        mazes = [MazeData.model_validate_json(text) for text in payloads]
        mazes.sort(key=lambda m: m.id)
        return mazes

    async def clear(self) -> None:
        """Delete the whole store directory."""
        if self.base_path.exists():
            await asyncio.to_thread(shutil.rmtree, self.base_path)

    def _maze_path(self, maze_id: str) -> Path:
        if not maze_id or "/" in maze_id or "\\" in maze_id or maze_id.startswith("."):
            raise ValueError(f"Maze id {maze_id!r} cannot be used as a file name")
        return self.base_path / f"{maze_id}.json"


class PostgresMazeStore(MazeStore):
    """PostgreSQL-backed maze store using an asyncpg connection pool.

    Schema (created by ``initialize()`` when missing):
    - mazes: id TEXT PRIMARY KEY, name TEXT, size INTEGER, grid JSONB
    """

    CREATE_TABLE = """
        CREATE TABLE IF NOT EXISTS mazes (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            size INTEGER NOT NULL,
            grid JSONB NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """

    def __init__(self, database_url: Optional[str] = None):
        if asyncpg is None:  # pragma: no cover
            raise ImportError(
                "asyncpg is required for PostgresMazeStore. Install with `pip install progpath[postgres]`."
            )

        self.database_url = database_url or Config.DATABASE_URL
        self.pool: Optional["asyncpg.Pool"] = None

    async def initialize(self) -> None:
        if self.pool is None:
            self.pool = await asyncpg.create_pool(self.database_url)
            async with self.pool.acquire() as conn:
                await conn.execute(self.CREATE_TABLE)

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def load(self, maze_id: str) -> Optional[MazeData]:
        assert self.pool is not None, "Maze store not initialized"

        query = "SELECT id, name, size, grid FROM mazes WHERE id = $1"
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, maze_id)

        if not row:
            return None
        return self._row_to_maze(row)

    async def save(self, maze: MazeData) -> None:
        assert self.pool is not None, "Maze store not initialized"

        payload = maze.model_dump(mode="json")
        query = """
            INSERT INTO mazes (id, name, size, grid)
            VALUES ($1, $2, $3, $4::jsonb)
            ON CONFLICT (id) DO UPDATE
            SET name = $2, size = $3, grid = $4::jsonb, updated_at = now()
        """

        async with self.pool.acquire() as conn:
            await conn.execute(
                query, maze.id, maze.name, maze.size, json.dumps(payload["grid"])
            )

    async def delete(self, maze_id: str) -> None:
        assert self.pool is not None, "Maze store not initialized"

        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM mazes WHERE id = $1", maze_id)

    async def list(self) -> List[MazeData]:
        assert self.pool is not None, "Maze store not initialized"

        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT id, name, size, grid FROM mazes ORDER BY id")

        return [self._row_to_maze(row) for row in rows]

    @staticmethod
    def _row_to_maze(row) -> MazeData:
        grid = row["grid"]
        # asyncpg returns JSONB as text unless a codec is registered
        if isinstance(grid, str):
            grid = json.loads(grid)
        return MazeData(id=row["id"], name=row["name"], size=row["size"], grid=grid)


def build_maze_store(kind: Optional[str] = None) -> MazeStore:
    """Construct the backend named by ``kind`` (defaults to Config.MAZE_STORE)."""

    kind = kind or Config.MAZE_STORE
    if kind == "memory":
        return InMemoryMazeStore()
    if kind == "json":
        return JsonMazeStore(Config.MAZE_DIR)
    if kind == "postgres":
        return PostgresMazeStore(Config.DATABASE_URL)
    raise ValueError(f"Unknown maze store '{kind}'; expected memory, json or postgres")


async def load_maze_with_retries(
    store: MazeStore,
    maze_id: str,
    *,
    max_attempts: Optional[int] = None,
    wait_seconds: float = 0.05,
) -> MazeData:
    """Load ``maze_id``, retrying transient read failures.

    OSError and ValidationError are retried: the editor may be rewriting the
    JSON file while we read it. A missing maze is not transient and raises
    MazeNotFoundError immediately.
    """

    attempts = max_attempts or Config.STORE_LOAD_ATTEMPTS
    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type((OSError, ValidationError)),
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_error(
                    f"{LOG_TAG_ERROR} Maze store retry {attempt_number}/{attempts} "
                    f"for '{maze_id}'"
                )
            maze = await store.load(maze_id)

    if maze is None:
        raise MazeNotFoundError(maze_id)
    return maze
