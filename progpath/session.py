"""
Maze session: wires program, ingestion, executor and the execution tick.

Fully decoupled from cameras, rendering and storage choice. The maze store
is injected, detections arrive through ``on_detected``, and renderers
subscribe as listeners.

Control flow:
1. Ingestion edits the Program (marker detections, command-stack edits)
2. The Program re-flattens and the session hands the new trace to the executor
3. Each tick waits ``tick_seconds`` then advances the executor by one step
4. Listeners receive a read-only view after every tick and user action
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import Config
from .executor import ExecutionSnapshot, Executor, StepResult
from .ingestion import CommandIngestion, DetectionNotice
from .logging_utils import (
    log_deterministic,
    log_error,
    log_info,
    log_ingestion,
    log_success,
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    LOG_TAG_INFO,
    LOG_TAG_INGEST,
    LOG_TAG_SUCCESS,
)
from .maze import MazeData, initial_robot_state
from .persistence import MazeStore, InMemoryMazeStore, load_maze_with_retries
from .program import Program
from .schemas import Command, GameStatus


@dataclass(frozen=True)
class SessionView:
    """Everything a renderer may read after a change."""

    maze_id: str
    execution: ExecutionSnapshot
    commands: Tuple[Command, ...]
    pending_loop: Optional[Command]
    notice: Optional[DetectionNotice]


SessionListener = Callable[[SessionView], None]


class MazeSession:
    """
    One learner working on one maze.

    Accepts all collaborators as parameters; nothing is read from disk or the
    network except through the injected store.
    """

    def __init__(
        self,
        store: Optional[MazeStore] = None,
        *,
        program: Optional[Program] = None,
        tick_seconds: Optional[float] = None,
        default_loop_count: Optional[int] = None,
        display_seconds: Optional[float] = None,
        listeners: Optional[List[SessionListener]] = None,
        verbose: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize a session with its collaborators injected.

        Args:
            store: Maze store to load from (defaults to an empty in-memory store)
            program: Program to edit (defaults to an empty one)
            tick_seconds: Delay before each step (defaults to Config.TICK_SECONDS)
            default_loop_count: Count proposed when a loop marker opens a loop
            display_seconds: Lifetime of detection notices
            listeners: Callables receiving a SessionView after every change
            verbose: Print color-coded step and ingestion logs
            clock: Monotonic clock shared with the ingestion notices
        """
        self.store = store if store is not None else InMemoryMazeStore()
        self.program = program if program is not None else Program()
        self.tick_seconds = Config.TICK_SECONDS if tick_seconds is None else tick_seconds
        self.listeners: List[SessionListener] = listeners if listeners is not None else []
        self.verbose = verbose
        self._clock = clock

        self.maze: Optional[MazeData] = None
        self.executor: Optional[Executor] = None
        self._task: Optional[asyncio.Task] = None

        self.ingestion = CommandIngestion(
            self.program,
            is_running=self._is_executing,
            default_loop_count=default_loop_count,
            display_seconds=display_seconds,
            clock=clock,
        )
        # Keep the executor's trace in step with every program edit.
        self.program.listeners.append(self._on_trace_changed)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, maze_id: str) -> MazeData:
        """Load the authoritative maze and build a fresh executor for it.

        A failed load leaves the current maze and any run in progress as they
        were.

        Raises:
            MazeNotFoundError: If the store has no maze with this id
        """
        maze = await load_maze_with_retries(self.store, maze_id)
        self._cancel_task()
        self.maze = maze
        self.executor = Executor(maze, self.program.trace, initial_robot_state(maze))
        self._log(log_info, f"{LOG_TAG_INFO} Loaded maze '{maze.name}' ({maze.size}x{maze.size})")
        self._notify()
        return maze

    def _require_executor(self) -> Executor:
        if self.executor is None:
            raise RuntimeError("No maze loaded; call `await session.load(maze_id)` first.")
        return self.executor

    def _is_executing(self) -> bool:
        return self.executor is not None and self.executor.is_executing

    def _on_trace_changed(self, trace: Tuple[Command, ...]) -> None:
        if self.executor is not None:
            self.executor.set_trace(trace)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start (or restart) execution from the initial pose."""
        executor = self._require_executor()
        started = executor.start()
        if started:
            self._log(log_info, f"{LOG_TAG_INFO} Run started: {len(executor.trace)} steps")
            self._notify()
        return started

    def pause(self) -> bool:
        """Suspend execution; any tick already waiting is discarded."""
        executor = self._require_executor()
        paused = executor.pause()
        self._cancel_task()
        if paused:
            self._log(log_info, f"{LOG_TAG_INFO} Paused at step {executor.cursor + 1}")
            self._notify()
        return paused

    def toggle(self) -> bool:
        """Execute button: pause a running program, otherwise start it.

        Returns True when execution is running afterwards.
        """
        if self._is_executing():
            self.pause()
            return False
        return self.start()

    def reset(self) -> None:
        """Back to idle with the original maze and pose restored."""
        executor = self._require_executor()
        executor.reset()
        self._cancel_task()
        self._log(log_info, f"{LOG_TAG_INFO} Reset")
        self._notify()

    def on_detected(self, command: Command) -> bool:
        """Command source callback. Ignored while a run is executing."""
        accepted = self.ingestion.submit_detected_command(command)
        if accepted:
            notice = self.ingestion.active_notice()
            label = notice.label if notice else command.type.value
            mode = " (loop body)" if self.ingestion.is_building_loop else ""
            self._log(log_ingestion, f"  {LOG_TAG_INGEST} Detected {label}{mode}")
            self._notify()
        return accepted

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    async def tick(self) -> Optional[StepResult]:
        """Wait one interval, then advance exactly one step.

        The executor and its generation are captured before the wait and
        re-checked after it, so a pause/reset/reload during the wait turns
        this tick into a no-op.
        """
        executor = self._require_executor()
        generation = executor.generation
        await asyncio.sleep(self.tick_seconds)
        if self.executor is not executor:
            return None

        result = executor.step(generation)
        if result is not None:
            self._log_step(executor, result)
            self._notify()
        return result

    async def run(self, max_ticks: Optional[int] = None) -> ExecutionSnapshot:
        """Start if needed and tick until the run stops executing.

        Args:
            max_ticks: Optional safety limit on the number of ticks

        Returns:
            Snapshot of the executor once the run ended or was paused
        """
        executor = self._require_executor()
        if not executor.is_executing:
            self.start()

        ticks = 0
        while self._is_executing() and (max_ticks is None or ticks < max_ticks):
            await self.tick()
            ticks += 1
        return self.snapshot()

    def play(self) -> "asyncio.Task[ExecutionSnapshot]":
        """Start execution in a background task (requires a running loop)."""
        self._require_executor()
        self._cancel_task()
        self.start()
        self._task = asyncio.create_task(self.run())
        return self._task

    def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A listener pausing from inside the tick loop must not cancel itself;
        # the loop exits on its own once the executor stops executing.
        if task is not current:
            task.cancel()

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def snapshot(self) -> ExecutionSnapshot:
        return self._require_executor().snapshot()

    def view(self) -> SessionView:
        executor = self._require_executor()
        return SessionView(
            maze_id=executor.maze.id,
            execution=executor.snapshot(),
            commands=self.program.commands,
            pending_loop=self.ingestion.pending_loop,
            notice=self.ingestion.active_notice(),
        )

    def _notify(self) -> None:
        if self.executor is None or not self.listeners:
            return
        view = self.view()
        for listener in self.listeners:
            listener(view)

    def _log(self, printer: Callable[[str], None], message: str) -> None:
        if self.verbose:
            printer(message)

    def _log_step(self, executor: Executor, result: StepResult) -> None:
        total = len(executor.trace)
        name = result.command.type.value if result.command else "end"
        robot = result.robot
        line = (
            f"  {LOG_TAG_DETERMINISTIC} [Step {result.index + 1}/{total}] "
            f"{name} → ({robot.x}, {robot.y})"
        )
        if result.filled_hole is not None:
            line += f" filled hole at {result.filled_hole}"
        self._log(log_deterministic, line)

        if result.status is GameStatus.SUCCESS:
            self._log(log_success, f"{LOG_TAG_SUCCESS} Goal reached in {executor.move_count} moves")
        elif result.status is GameStatus.FAILED:
            self._log(log_error, f"{LOG_TAG_ERROR} Failed: {executor.error_message}")
