"""Tests for flattening nested programs into execution traces."""

from progpath.flattener import flatten
from progpath.schemas import Command, CommandType


F = Command.forward()
R = Command.turn_right()
L = Command.turn_left()
H = Command.if_hole()


def test_loop_free_program_is_unchanged():
    program = [F, R, H, L, F]
    assert flatten(program) == tuple(program)


def test_loop_expands_in_place():
    program = [L, Command.repeat(3, [F, R]), H]
    assert flatten(program) == (L, F, R, F, R, F, R, H)


def test_nested_loops_multiply():
    inner = Command.repeat(3, [F])
    trace = flatten([Command.repeat(2, [inner])])
    assert len(trace) == 6
    assert all(command == F for command in trace)


def test_empty_loop_yields_nothing():
    assert flatten([Command.repeat(5, [])]) == ()
    assert flatten([F, Command.repeat(5, []), F]) == (F, F)


def test_missing_count_runs_once_and_zero_count_runs_never():
    assert flatten([Command.repeat(None, [F, R])]) == (F, R)
    assert flatten([Command.repeat(0, [F, R])]) == ()


def test_if_hole_is_kept_as_trace_entry():
    trace = flatten([Command.repeat(2, [H, F])])
    assert [command.type for command in trace] == [
        CommandType.IF_HOLE,
        CommandType.FORWARD,
        CommandType.IF_HOLE,
        CommandType.FORWARD,
    ]


def test_trace_never_contains_loops():
    program = [Command.repeat(2, [Command.repeat(2, [F, Command.repeat(1, [R])]), L])]
    trace = flatten(program)
    assert trace == (F, R, F, R, L, F, R, F, R, L)
    assert not any(command.is_loop for command in trace)


def test_flatten_does_not_touch_input():
    loop = Command.repeat(2, [F])
    program = [loop]
    flatten(program)
    assert program == [loop]
    assert loop.children == (F,)
