"""
Pydantic schemas for the progpath command interpreter.

Design Philosophy:
- A program is an ordered sequence of ``Command`` nodes
- ``loop`` is the only node with children, so the tree is finite and acyclic
- Nodes are immutable; edits build new nodes, so subtrees are never shared
  mutably between the program, the pending loop and the trace
- Field aliases keep the JSON wire shape (``type``, ``loopCount``,
  ``children``) for marker payloads and saved programs
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from progpath.config import MAX_LOOP_COUNT, MIN_LOOP_COUNT
from progpath.maze import Direction, MazeData, MazeOverlay, RobotState, Tile


# ============================================================================
# Command Tree
# ============================================================================


class CommandType(str, Enum):
    """Every instruction the robot understands."""

    FORWARD = "forward"
    TURN_RIGHT = "turnRight"
    TURN_LEFT = "turnLeft"
    IF_HOLE = "ifHole"
    LOOP = "loop"


def clamp_loop_count(count: int) -> int:
    """Clamp a user-supplied repetition count into [1, 10]."""
    return max(MIN_LOOP_COUNT, min(MAX_LOOP_COUNT, int(count)))


class Command(BaseModel):
    """A single node of a robot program.

    ``loop_count`` and ``children`` are only meaningful for ``loop``. A loop
    built without a count keeps ``loop_count=None``; the flattener reads that
    as one repetition. Counts above the maximum are clamped on construction.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: CommandType = Field(..., description="Instruction kind")
    loop_count: Optional[int] = Field(
        None,
        alias="loopCount",
        description="Repetitions for loop nodes; None outside loops",
    )
    children: Tuple["Command", ...] = Field(
        default_factory=tuple,
        description="Ordered loop body; always empty outside loops",
    )

    @field_validator("loop_count")
    @classmethod
    def _clamp_count(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        # 0 is kept as-is (an explicitly disabled loop contributes nothing)
        return max(0, min(MAX_LOOP_COUNT, value))

    @model_validator(mode="after")
    def _only_loops_nest(self) -> "Command":
        if self.type is not CommandType.LOOP:
            if self.children:
                raise ValueError(f"'{self.type.value}' commands cannot have children")
            if self.loop_count is not None:
                raise ValueError(f"'{self.type.value}' commands cannot have a loopCount")
        return self

    @property
    def is_loop(self) -> bool:
        return self.type is CommandType.LOOP

    # Convenience constructors -------------------------------------------------

    @classmethod
    def forward(cls) -> "Command":
        return cls(type=CommandType.FORWARD)

    @classmethod
    def turn_right(cls) -> "Command":
        return cls(type=CommandType.TURN_RIGHT)

    @classmethod
    def turn_left(cls) -> "Command":
        return cls(type=CommandType.TURN_LEFT)

    @classmethod
    def if_hole(cls) -> "Command":
        return cls(type=CommandType.IF_HOLE)

    @classmethod
    def repeat(cls, count: Optional[int], children: Iterable["Command"] = ()) -> "Command":
        """Build a loop node repeating ``children`` ``count`` times."""
        return cls(type=CommandType.LOOP, loop_count=count, children=tuple(children))

    def with_children(self, children: Iterable["Command"]) -> "Command":
        """Return a copy of this loop with a new body."""
        if not self.is_loop:
            raise CommandTypeError(self.type, "replace children")
        return Command.repeat(self.loop_count, children)

    def with_loop_count(self, count: int) -> "Command":
        """Return a copy of this loop with ``count`` clamped into [1, 10]."""
        if not self.is_loop:
            raise CommandTypeError(self.type, "set a loop count")
        return Command.repeat(clamp_loop_count(count), self.children)


Command.model_rebuild()


class CommandTypeError(ValueError):
    """Raised when a loop-only operation targets a non-loop command."""

    def __init__(self, command_type: CommandType, operation: str) -> None:
        self.command_type = command_type
        self.operation = operation
        super().__init__(
            f"Cannot {operation} on a '{command_type.value}' command; "
            "only loop commands carry a count and children."
        )


# ============================================================================
# Execution Outcome Schemas
# ============================================================================


class GameStatus(str, Enum):
    """Lifecycle of a single run."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a run ended in ``failed``. Each maps to a user-facing message."""

    OUT_OF_BOUNDS = "OutOfBounds"
    WALL_COLLISION = "WallCollision"
    FELL_IN_HOLE = "FellInHole"
    GOAL_NOT_REACHED = "GoalNotReached"

    @property
    def message(self) -> str:
        return FAILURE_MESSAGES[self]


FAILURE_MESSAGES = {
    FailureReason.OUT_OF_BOUNDS: "out of bounds",
    FailureReason.WALL_COLLISION: "hit wall",
    FailureReason.FELL_IN_HOLE: "fell in hole",
    FailureReason.GOAL_NOT_REACHED: "did not reach goal",
}


__all__ = [
    "CommandType",
    "Command",
    "CommandTypeError",
    "clamp_loop_count",
    "GameStatus",
    "FailureReason",
    "FAILURE_MESSAGES",
    # Re-exported maze types so callers can import the whole data model here
    "Direction",
    "MazeData",
    "MazeOverlay",
    "RobotState",
    "Tile",
]
