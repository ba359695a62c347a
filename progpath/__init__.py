"""
Progpath - robot command interpreter for maze programming lessons.

Learners stack commands (forward, turns, hole checks, loops), possibly by
showing QR marker cards to a camera, and watch a robot run them in a grid
maze one step per tick.

No camera, renderer or database required. All collaborators are injected.
"""

__version__ = "0.1.0"

# Main session
from .session import MazeSession, SessionView

# Interpreter core
from .flattener import flatten
from .executor import Executor, ExecutionSnapshot, StepResult
from .program import Program
from .ingestion import (
    CommandIngestion,
    IdleIngestion,
    BuildingLoop,
    DetectionNotice,
)
from .markers import MarkerFeed, MarkerDebouncer, parse_marker_payload, MarkerPayloadError

# Storage
from .persistence import (
    MazeStore,
    InMemoryMazeStore,
    JsonMazeStore,
    PostgresMazeStore,
    MazeNotFoundError,
    build_maze_store,
    load_maze_with_retries,
)
from .catalog import initial_mazes, seed_store

# Core schemas
from .schemas import (
    Command,
    CommandType,
    CommandTypeError,
    GameStatus,
    FailureReason,
)
from .maze import (
    Direction,
    MazeData,
    MazeOverlay,
    RobotState,
    Tile,
    InvalidMazeError,
    blank_maze,
    validate_maze,
    render_ascii,
)
from .config import Config

__all__ = [
    # Session
    "MazeSession",
    "SessionView",
    # Interpreter core
    "flatten",
    "Executor",
    "ExecutionSnapshot",
    "StepResult",
    "Program",
    "CommandIngestion",
    "IdleIngestion",
    "BuildingLoop",
    "DetectionNotice",
    "MarkerFeed",
    "MarkerDebouncer",
    "parse_marker_payload",
    "MarkerPayloadError",
    # Storage
    "MazeStore",
    "InMemoryMazeStore",
    "JsonMazeStore",
    "PostgresMazeStore",
    "MazeNotFoundError",
    "build_maze_store",
    "load_maze_with_retries",
    "initial_mazes",
    "seed_store",
    # Schemas
    "Command",
    "CommandType",
    "CommandTypeError",
    "GameStatus",
    "FailureReason",
    "Direction",
    "MazeData",
    "MazeOverlay",
    "RobotState",
    "Tile",
    "InvalidMazeError",
    "blank_maze",
    "validate_maze",
    "render_ascii",
    # Configuration
    "Config",
]
