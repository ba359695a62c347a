"""Command ingestion: turns detections and button presses into program edits.

Marker detections arrive one command at a time, so nesting is expressed
modally. A first ``loop`` marker opens a loop, following markers fill its
body, and a second ``loop`` marker closes it and appends the finished loop to
the program. The mode is an explicit state value::

    IdleIngestion ──loop──▶ BuildingLoop(count, children) ──loop──▶ IdleIngestion
                               │  ▲
                               └──┘ non-loop: appended to children

All submissions are ignored while the executor is running.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple, Union

from .config import Config
from .program import Program
from .schemas import Command, CommandType, CommandTypeError, clamp_loop_count


END_LOOP_LABEL = "End Loop"


@dataclass(frozen=True)
class IdleIngestion:
    """Commands go straight onto the top-level program."""


@dataclass(frozen=True)
class BuildingLoop:
    """A loop is open; commands accumulate in its body."""

    loop_count: int
    children: Tuple[Command, ...] = ()

    def to_command(self) -> Command:
        return Command.repeat(self.loop_count, self.children)


IngestionState = Union[IdleIngestion, BuildingLoop]


@dataclass(frozen=True)
class DetectionNotice:
    """Transient "detected X" banner for the presentation layer."""

    label: str
    expires_at: float

    def is_active(self, now: float) -> bool:
        return now < self.expires_at


class CommandIngestion:
    """Entry point for detected commands and command-stack edits.

    Args:
        program: Program the edits apply to.
        is_running: Callable reporting whether the executor is currently
            executing; submissions are dropped while it returns True.
        default_loop_count: Count proposed when a loop marker opens a loop.
        display_seconds: Lifetime of each detection notice.
        clock: Monotonic time source (seconds); injectable for tests.
    """

    def __init__(
        self,
        program: Program,
        is_running: Callable[[], bool] = lambda: False,
        *,
        default_loop_count: Optional[int] = None,
        display_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.program = program
        self._is_running = is_running
        self.default_loop_count = clamp_loop_count(
            default_loop_count if default_loop_count is not None else Config.DEFAULT_LOOP_COUNT
        )
        self.display_seconds = (
            display_seconds if display_seconds is not None else Config.DETECTION_DISPLAY_SECONDS
        )
        self._clock = clock
        self._state: IngestionState = IdleIngestion()
        self._notice: Optional[DetectionNotice] = None

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> IngestionState:
        return self._state

    @property
    def is_building_loop(self) -> bool:
        return isinstance(self._state, BuildingLoop)

    @property
    def pending_loop(self) -> Optional[Command]:
        """The loop being assembled, as a command, or None when idle."""
        if isinstance(self._state, BuildingLoop):
            return self._state.to_command()
        return None

    def active_notice(self, now: Optional[float] = None) -> Optional[DetectionNotice]:
        """Return the current detection notice while it is still on screen."""
        if self._notice is None:
            return None
        current = self._clock() if now is None else now
        return self._notice if self._notice.is_active(current) else None

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def submit_detected_command(self, command: Command) -> bool:
        """Apply one detected command.

        Returns:
            False when the detection was dropped because a run is executing,
            True otherwise.
        """

        if self._is_running():
            return False

        state = self._state
        self._publish_notice(command, state)

        if command.type is CommandType.LOOP:
            if isinstance(state, BuildingLoop):
                self.program.append(state.to_command())
                self._state = IdleIngestion()
            else:
                count = command.loop_count or self.default_loop_count
                self._state = BuildingLoop(loop_count=clamp_loop_count(count))
        elif isinstance(state, BuildingLoop):
            self._state = replace(state, children=state.children + (command,))
        else:
            self.program.append(command)
        return True

    # The command source's only contract with the core.
    on_detected = submit_detected_command

    def set_pending_loop_count(self, count: int) -> bool:
        """Confirm/adjust the open loop's count; False when no loop is open."""
        if not isinstance(self._state, BuildingLoop):
            return False
        self._state = replace(self._state, loop_count=clamp_loop_count(count))
        return True

    def cancel_loop(self) -> Optional[Command]:
        """Discard the open loop and return what it held (None when idle)."""
        pending = self.pending_loop
        self._state = IdleIngestion()
        return pending

    def _publish_notice(self, command: Command, state: IngestionState) -> None:
        label = command.type.value
        if command.type is CommandType.LOOP and isinstance(state, BuildingLoop):
            label = END_LOOP_LABEL
        self._notice = DetectionNotice(
            label=label, expires_at=self._clock() + self.display_seconds
        )

    # ------------------------------------------------------------------
    # Command stack edits
    # ------------------------------------------------------------------

    def remove_command(self, index: int) -> Command:
        return self.program.remove(index)

    def update_command(self, index: int, new_command: Command) -> None:
        self.program.replace(index, new_command)

    def clear_program(self) -> None:
        self.program.clear()

    def add_child_command(self, parent_index: int, command: Command) -> None:
        """Append ``command`` to the body of the top-level loop at ``parent_index``."""
        parent = self._loop_at(parent_index, "add a child")
        self.program.replace(parent_index, parent.with_children(parent.children + (command,)))

    def remove_child_command(self, parent_index: int, child_index: int) -> Command:
        """Remove and return one child of the top-level loop at ``parent_index``."""
        parent = self._loop_at(parent_index, "remove a child")
        children = parent.children
        if not 0 <= child_index < len(children):
            raise IndexError(
                f"Child index {child_index} out of range for a loop of {len(children)} commands"
            )
        removed = children[child_index]
        self.program.replace(
            parent_index,
            parent.with_children(children[:child_index] + children[child_index + 1 :]),
        )
        return removed

    def update_loop_count(self, index: int, count: int) -> None:
        parent = self._loop_at(index, "set a loop count")
        self.program.replace(index, parent.with_loop_count(count))

    def _loop_at(self, index: int, operation: str) -> Command:
        command = self.program[index] if 0 <= index < len(self.program) else None
        if command is None:
            raise IndexError(
                f"Command index {index} out of range for a program of {len(self.program)} commands"
            )
        if not command.is_loop:
            raise CommandTypeError(command.type, operation)
        return command
