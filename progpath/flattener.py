"""Linearize a nested command program into an execution trace.

The executor never sees ``loop`` nodes: each loop is replaced in place by its
flattened body repeated ``loop_count`` times. ``ifHole`` stays a trace entry
because its effect depends on the maze at the moment it runs.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .schemas import Command


def _loop_repetitions(command: Command) -> int:
    # A loop that never had a count runs once; an explicit 0 runs zero times.
    if command.loop_count is None:
        return 1
    return command.loop_count


def _flatten_into(commands: Sequence[Command], trace: List[Command]) -> None:
    for command in commands:
        if command.is_loop:
            body: List[Command] = []
            _flatten_into(command.children, body)
            trace.extend(body * _loop_repetitions(command))
        else:
            trace.append(command)


def flatten(commands: Sequence[Command]) -> Tuple[Command, ...]:
    """Return the execution trace for ``commands``.

    Pure and total: command trees are finite and acyclic, and nested loop
    counts multiply (a loop of 2 around a loop of 3 yields 6 copies).
    """

    trace: List[Command] = []
    _flatten_into(commands, trace)
    return tuple(trace)
