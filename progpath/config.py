"""
Progpath Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


# Loop repetition bounds enforced by the command model and the ingestion adapter.
MIN_LOOP_COUNT = 1
MAX_LOOP_COUNT = 10

# Maze size bounds enforced by the editor-side validation helpers.
MIN_MAZE_SIZE = 5
MAX_MAZE_SIZE = 10

MAZE_STORE_KINDS = ("memory", "json", "postgres")


class Config:
    """Application configuration loaded from environment variables."""

    # Execution timing
    TICK_SECONDS: float = float(os.getenv("PROGPATH_TICK_SECONDS", "0.5"))

    # Marker ingestion
    DETECTION_DISPLAY_SECONDS: float = float(
        os.getenv("PROGPATH_DETECTION_DISPLAY_SECONDS", "1.5")
    )
    MARKER_COOLDOWN_SECONDS: float = float(
        os.getenv("PROGPATH_MARKER_COOLDOWN_SECONDS", "1.5")
    )
    DEFAULT_LOOP_COUNT: int = int(os.getenv("PROGPATH_DEFAULT_LOOP_COUNT", "2"))

    # Maze storage
    MAZE_STORE: str = os.getenv("PROGPATH_MAZE_STORE", "memory")
    MAZE_DIR: Path = Path(os.getenv("PROGPATH_MAZE_DIR", "mazes"))
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://localhost/progpath")
    STORE_LOAD_ATTEMPTS: int = int(os.getenv("PROGPATH_STORE_LOAD_ATTEMPTS", "3"))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are unusable."""
        if cls.TICK_SECONDS < 0:
            raise ValueError(
                "PROGPATH_TICK_SECONDS must be >= 0 (use 0 for as-fast-as-possible runs)"
            )

        if not MIN_LOOP_COUNT <= cls.DEFAULT_LOOP_COUNT <= MAX_LOOP_COUNT:
            raise ValueError(
                f"PROGPATH_DEFAULT_LOOP_COUNT must be between {MIN_LOOP_COUNT} and "
                f"{MAX_LOOP_COUNT}, got {cls.DEFAULT_LOOP_COUNT}"
            )

        if cls.MAZE_STORE not in MAZE_STORE_KINDS:
            raise ValueError(
                f"PROGPATH_MAZE_STORE must be one of {', '.join(MAZE_STORE_KINDS)}; "
                f"got '{cls.MAZE_STORE}'"
            )

        if cls.STORE_LOAD_ATTEMPTS < 1:
            raise ValueError("PROGPATH_STORE_LOAD_ATTEMPTS must be >= 1")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Progpath Configuration:",
            f"  Tick: {cls.TICK_SECONDS}s",
            f"  Detection display: {cls.DETECTION_DISPLAY_SECONDS}s",
            f"  Marker cooldown: {cls.MARKER_COOLDOWN_SECONDS}s",
            f"  Default loop count: {cls.DEFAULT_LOOP_COUNT}",
            f"  Maze store: {cls.MAZE_STORE}",
        ]
        if cls.MAZE_STORE == "json":
            lines.append(f"  Maze directory: {cls.MAZE_DIR}")
        elif cls.MAZE_STORE == "postgres":
            lines.append(f"  Database: {cls.DATABASE_URL}")
        return "\n".join(lines)
