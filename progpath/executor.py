"""Step-wise execution state machine for robot programs.

The executor owns everything a run mutates: the robot pose, the maze overlay,
the trace cursor, the move counter and the game status. It advances exactly
one trace entry per ``step()`` call; the session's tick loop decides when
that happens.

State machine::

    idle ──start──▶ running ──(goal-reaching forward)──▶ success
      ▲               │  │
      │             pause └──(wall / bounds / hole / trace exhausted)──▶ failed
      │               ▼
      └──reset── running (paused) ──start──▶ running (rewound)

``start`` and ``reset`` always rewind pose, overlay and counters; there is no
resume-in-place. Every transition that can strand an in-flight tick (start,
pause, reset) bumps ``generation``. Tick callbacks capture the generation
before they wait and hand it to ``step``; a mismatch means the tick is stale
and it is discarded without touching any state.

Terminal failures are state, not exceptions: ``status`` becomes ``failed``
and ``failure_reason`` / ``error_message`` say why.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .maze import MazeData, MazeOverlay, RobotState, Tile, initial_robot_state
from .schemas import Command, CommandType, FailureReason, GameStatus


@dataclass(frozen=True)
class StepResult:
    """What a single resolved step did (for logging and listeners)."""

    index: int
    command: Optional[Command]
    robot: RobotState
    status: GameStatus
    failure_reason: Optional[FailureReason] = None
    filled_hole: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class ExecutionSnapshot:
    """Read-only view of the executor for renderers."""

    status: GameStatus
    paused: bool
    cursor: int
    trace: Tuple[Command, ...]
    robot: RobotState
    grid: Tuple[Tuple[Tile, ...], ...]
    move_count: int
    error_message: str
    failure_reason: Optional[FailureReason]
    generation: int


class Executor:
    """Runs a flattened trace against one maze.

    Args:
        maze: Authoritative maze definition; never mutated.
        trace: Flattened, loop-free commands (see ``flattener.flatten``).
        initial_state: Pose restored on start/reset. Defaults to the start
            tile facing east, or (0, 0) when the maze has no start tile.
    """

    def __init__(
        self,
        maze: MazeData,
        trace: Sequence[Command] = (),
        initial_state: Optional[RobotState] = None,
    ) -> None:
        self.maze = maze
        self.initial_state = initial_state or initial_robot_state(maze)
        self._trace: Tuple[Command, ...] = tuple(trace)
        self._status = GameStatus.IDLE
        self._paused = False
        self._cursor = -1
        self._robot = self.initial_state
        self._overlay = MazeOverlay.from_grid(maze.grid)
        self._move_count = 0
        self._failure_reason: Optional[FailureReason] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def is_executing(self) -> bool:
        """True while ticks should advance the run (running and not paused)."""
        return self._status is GameStatus.RUNNING and not self._paused

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def trace(self) -> Tuple[Command, ...]:
        return self._trace

    @property
    def robot(self) -> RobotState:
        return self._robot

    @property
    def overlay(self) -> MazeOverlay:
        return self._overlay

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def failure_reason(self) -> Optional[FailureReason]:
        return self._failure_reason

    @property
    def error_message(self) -> str:
        return self._failure_reason.message if self._failure_reason else ""

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> ExecutionSnapshot:
        return ExecutionSnapshot(
            status=self._status,
            paused=self._paused,
            cursor=self._cursor,
            trace=self._trace,
            robot=self._robot,
            grid=self._overlay.rows(),
            move_count=self._move_count,
            error_message=self.error_message,
            failure_reason=self._failure_reason,
            generation=self._generation,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_trace(self, trace: Sequence[Command]) -> None:
        """Replace the trace. A running cursor keeps its index."""
        self._trace = tuple(trace)

    def start(self) -> bool:
        """Begin a fresh run from the initial pose.

        Allowed from idle, success, failed and paused. Returns False (and
        changes nothing) when a run is already executing.
        """

        if self.is_executing:
            return False
        self._rewind()
        self._status = GameStatus.RUNNING
        self._cursor = 0
        return True

    def pause(self) -> bool:
        """Suspend an executing run; pending ticks become stale."""
        if not self.is_executing:
            return False
        self._paused = True
        self._generation += 1
        return True

    def reset(self) -> None:
        """Return to idle with pose, overlay and counters restored."""
        self._rewind()
        self._status = GameStatus.IDLE
        self._cursor = -1

    def _rewind(self) -> None:
        self._generation += 1
        self._paused = False
        self._robot = self.initial_state
        self._overlay = MazeOverlay.from_grid(self.maze.grid)
        self._move_count = 0
        self._failure_reason = None

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, generation: Optional[int] = None) -> Optional[StepResult]:
        """Resolve the command under the cursor.

        Args:
            generation: Token captured when the tick was scheduled. When it no
                longer matches, a start/pause/reset happened in between and
                the step is discarded.

        Returns:
            The StepResult, or None when nothing was applied (stale token,
            paused, or not running).
        """

        if generation is not None and generation != self._generation:
            return None
        if not self.is_executing:
            return None

        index = self._cursor
        # Empty trace, or a trace shortened under the cursor mid-run.
        if index >= len(self._trace):
            self._fail(FailureReason.GOAL_NOT_REACHED)
            return self._result(index, None)

        command = self._trace[index]
        filled_hole: Optional[Tuple[int, int]] = None

        # Pose and overlay are read here, at resolution time, never from an
        # earlier capture.
        if command.type is CommandType.FORWARD:
            self._resolve_forward()
        elif command.type is CommandType.TURN_RIGHT:
            self._robot = self._robot.turned_right()
            self._cursor += 1
        elif command.type is CommandType.TURN_LEFT:
            self._robot = self._robot.turned_left()
            self._cursor += 1
        elif command.type is CommandType.IF_HOLE:
            filled_hole = self._resolve_if_hole()
            self._cursor += 1
        else:
            raise ValueError(
                f"Trace contains unflattened '{command.type.value}' command at index {index}"
            )

        if self._status is GameStatus.RUNNING and self._cursor >= len(self._trace):
            self._fail(FailureReason.GOAL_NOT_REACHED)
        return self._result(index, command, filled_hole)

    def _resolve_forward(self) -> None:
        x, y = self._robot.ahead()
        overlay = self._overlay

        if not overlay.in_bounds(x, y):
            self._fail(FailureReason.OUT_OF_BOUNDS)
            return

        target = overlay.tile_at(x, y)
        if target == Tile.WALL:
            self._fail(FailureReason.WALL_COLLISION)
            return

        self._robot = self._robot.moved_to(x, y)
        self._move_count += 1

        if target == Tile.HOLE:
            self._fail(FailureReason.FELL_IN_HOLE)
        elif target == Tile.GOAL:
            self._status = GameStatus.SUCCESS
            self._cursor = -1
        else:
            self._cursor += 1

    def _resolve_if_hole(self) -> Optional[Tuple[int, int]]:
        x, y = self._robot.ahead()
        overlay = self._overlay
        if overlay.in_bounds(x, y) and overlay.tile_at(x, y) == Tile.HOLE:
            overlay.set_tile(x, y, Tile.FLOOR)
            return (x, y)
        return None

    def _fail(self, reason: FailureReason) -> None:
        self._status = GameStatus.FAILED
        self._failure_reason = reason
        self._cursor = -1

    def _result(
        self,
        index: int,
        command: Optional[Command],
        filled_hole: Optional[Tuple[int, int]] = None,
    ) -> StepResult:
        return StepResult(
            index=index,
            command=command,
            robot=self._robot,
            status=self._status,
            failure_reason=self._failure_reason,
            filled_hole=filled_hole,
        )
