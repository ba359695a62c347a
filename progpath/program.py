"""The editable robot program and its derived execution trace."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

from .flattener import flatten
from .schemas import Command


TraceListener = Callable[[Tuple[Command, ...]], None]


class Program:
    """Ordered top-level commands plus the trace flattened from them.

    Every mutation replaces the command tuple and recomputes the trace, then
    notifies listeners (the session forwards the new trace to the executor).
    Commands are immutable, so handing out ``commands`` never exposes state
    that callers could edit behind the program's back.
    """

    def __init__(
        self,
        commands: Iterable[Command] = (),
        listeners: Optional[List[TraceListener]] = None,
    ) -> None:
        self._commands: Tuple[Command, ...] = tuple(commands)
        self._trace: Tuple[Command, ...] = flatten(self._commands)
        self.listeners: List[TraceListener] = listeners if listeners is not None else []

    @property
    def commands(self) -> Tuple[Command, ...]:
        return self._commands

    @property
    def trace(self) -> Tuple[Command, ...]:
        return self._trace

    def __len__(self) -> int:
        return len(self._commands)

    def __getitem__(self, index: int) -> Command:
        return self._commands[index]

    def append(self, command: Command) -> None:
        self._replace(self._commands + (command,))

    def remove(self, index: int) -> Command:
        """Remove and return the command at ``index``."""
        self._check_index(index)
        removed = self._commands[index]
        self._replace(self._commands[:index] + self._commands[index + 1 :])
        return removed

    def replace(self, index: int, command: Command) -> None:
        self._check_index(index)
        updated = list(self._commands)
        updated[index] = command
        self._replace(tuple(updated))

    def clear(self) -> None:
        self._replace(())

    def _check_index(self, index: int) -> None:
        # Negative indices are rejected: UI indices are always positional.
        if not 0 <= index < len(self._commands):
            raise IndexError(
                f"Command index {index} out of range for a program of {len(self._commands)} commands"
            )

    def _replace(self, commands: Tuple[Command, ...]) -> None:
        self._commands = commands
        self._trace = flatten(commands)
        for listener in self.listeners:
            listener(self._trace)
