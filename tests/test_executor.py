"""Tests for the step-wise executor state machine."""

from typing import List, Optional

from progpath.executor import Executor
from progpath.flattener import flatten
from progpath.maze import EAST, SOUTH, MazeData, RobotState, Tile
from progpath.schemas import Command, FailureReason, GameStatus


F = Command.forward()
R = Command.turn_right()
L = Command.turn_left()
H = Command.if_hole()


def make_maze(rows: List[List[str]], maze_id: str = "test") -> MazeData:
    return MazeData(id=maze_id, name=maze_id, size=len(rows), grid=rows)


def two_by_two() -> MazeData:
    return make_maze([["start", "floor"], ["wall", "goal"]])


def hole_ahead() -> MazeData:
    return make_maze(
        [
            ["start", "hole", "floor"],
            ["floor", "floor", "floor"],
            ["floor", "floor", "goal"],
        ]
    )


def run_to_end(executor: Executor, limit: int = 100) -> int:
    """Step until the run stops; return the number of applied steps."""
    executor.start()
    steps = 0
    while executor.is_executing and steps < limit:
        assert executor.step() is not None
        steps += 1
    return steps


def test_scenario_a_reaches_goal():
    executor = Executor(two_by_two(), flatten([F, R, F]))
    executor.start()

    executor.step()
    assert (executor.robot.x, executor.robot.y) == (1, 0)
    executor.step()
    assert executor.robot.direction == SOUTH
    result = executor.step()

    assert result is not None
    assert executor.status is GameStatus.SUCCESS
    assert (executor.robot.x, executor.robot.y) == (1, 1)
    assert executor.move_count == 2
    assert executor.cursor == -1
    assert executor.error_message == ""


def test_scenario_b_hits_wall_without_moving():
    executor = Executor(two_by_two(), flatten([R, F]))
    run_to_end(executor)

    assert executor.status is GameStatus.FAILED
    assert executor.failure_reason is FailureReason.WALL_COLLISION
    assert executor.error_message == "hit wall"
    assert executor.move_count == 0
    assert (executor.robot.x, executor.robot.y) == (0, 0)
    assert executor.cursor == -1


def test_scenario_c_if_hole_fills_then_forward_keeps_running():
    maze = hole_ahead()
    executor = Executor(maze, flatten([H, F, F]))
    executor.start()

    executor.step()
    assert executor.overlay.tile_at(1, 0) is Tile.FLOOR
    assert (executor.robot.x, executor.robot.y) == (0, 0)
    # The authoritative maze is never touched.
    assert maze.grid[0][1] is Tile.HOLE

    executor.step()
    assert executor.status is GameStatus.RUNNING
    assert (executor.robot.x, executor.robot.y) == (1, 0)
    assert executor.move_count == 1


def test_scenario_d_falls_in_hole_after_moving():
    executor = Executor(hole_ahead(), flatten([F]))
    run_to_end(executor)

    assert executor.status is GameStatus.FAILED
    assert executor.failure_reason is FailureReason.FELL_IN_HOLE
    assert (executor.robot.x, executor.robot.y) == (1, 0)
    assert executor.move_count == 1


def test_scenario_e_loop_through_corridor():
    maze = make_maze(
        [
            ["start", "floor", "goal"],
            ["wall", "wall", "wall"],
            ["wall", "wall", "wall"],
        ]
    )
    trace = flatten([Command.repeat(2, [F])])
    assert trace == (F, F)

    executor = Executor(maze, trace)
    steps = run_to_end(executor)

    assert steps == 2
    assert executor.status is GameStatus.SUCCESS


def test_out_of_bounds_fails():
    executor = Executor(two_by_two(), flatten([L, F]))
    run_to_end(executor)

    assert executor.failure_reason is FailureReason.OUT_OF_BOUNDS
    assert executor.error_message == "out of bounds"
    assert executor.move_count == 0


def test_exhausted_trace_fails_on_last_step():
    executor = Executor(two_by_two(), flatten([F]))
    executor.start()

    result = executor.step()
    assert result is not None and result.command == F
    assert result.status is GameStatus.FAILED
    assert result.failure_reason is FailureReason.GOAL_NOT_REACHED
    assert executor.status is GameStatus.FAILED
    assert executor.error_message == "did not reach goal"
    assert executor.cursor == -1
    assert (executor.robot.x, executor.robot.y) == (1, 0)
    assert executor.move_count == 1
    assert executor.step() is None


def test_trace_shortened_under_cursor_fails_on_next_step():
    executor = Executor(two_by_two(), flatten([F, R, F]))
    executor.start()
    executor.step()
    executor.set_trace(flatten([F]))

    result = executor.step()
    assert result is not None and result.command is None
    assert executor.failure_reason is FailureReason.GOAL_NOT_REACHED


def test_empty_program_fails_with_goal_not_reached():
    executor = Executor(two_by_two(), ())
    steps = run_to_end(executor)
    assert steps == 1
    assert executor.failure_reason is FailureReason.GOAL_NOT_REACHED
    assert executor.move_count == 0


def test_if_hole_is_idempotent():
    executor = Executor(hole_ahead(), flatten([H, H, F]))
    executor.start()

    first = executor.step()
    second = executor.step()

    assert first is not None and first.filled_hole == (1, 0)
    assert second is not None and second.filled_hole is None
    assert executor.overlay.tile_at(1, 0) is Tile.FLOOR
    assert executor.status is GameStatus.RUNNING


def test_if_hole_facing_out_of_bounds_is_noop():
    maze = hole_ahead()
    executor = Executor(maze, flatten([L, H]))
    run_to_end(executor)
    assert executor.overlay.rows() == tuple(tuple(row) for row in maze.grid)
    assert executor.failure_reason is FailureReason.GOAL_NOT_REACHED


def test_every_finished_run_has_exactly_one_outcome():
    maze = hole_ahead()
    programs = [
        [F],
        [H, F, F],
        [R, F, F, L, F, F],
        [Command.repeat(2, [H, F]), R, Command.repeat(2, [F])],
        [L, F],
        [R, R, F],
        [],
    ]
    for program in programs:
        executor = Executor(maze, flatten(program))
        run_to_end(executor)
        assert executor.status in (GameStatus.SUCCESS, GameStatus.FAILED)
        if executor.status is GameStatus.SUCCESS:
            assert executor.failure_reason is None
        else:
            assert executor.failure_reason is not None


def test_start_rewinds_pose_overlay_and_counters():
    executor = Executor(hole_ahead(), flatten([H, F, F]))
    executor.start()
    executor.step()
    executor.step()
    assert executor.overlay.tile_at(1, 0) is Tile.FLOOR

    executor.pause()
    assert executor.start() is True

    assert executor.status is GameStatus.RUNNING
    assert executor.cursor == 0
    assert executor.robot == RobotState(0, 0, EAST)
    assert executor.move_count == 0
    assert executor.overlay.tile_at(1, 0) is Tile.HOLE


def test_start_is_rejected_while_executing():
    executor = Executor(two_by_two(), flatten([F, R, F]))
    assert executor.start() is True
    executor.step()
    assert executor.start() is False
    assert executor.cursor == 1


def test_pause_freezes_cursor_and_pose():
    executor = Executor(two_by_two(), flatten([F, R, F]))
    executor.start()
    executor.step()

    assert executor.pause() is True
    assert executor.paused
    assert executor.status is GameStatus.RUNNING
    assert executor.step() is None
    assert executor.cursor == 1
    assert (executor.robot.x, executor.robot.y) == (1, 0)


def test_reset_restores_everything_from_any_state():
    executor = Executor(hole_ahead(), flatten([H, F, F]))
    run_to_end(executor)
    assert executor.status is GameStatus.FAILED

    executor.reset()
    assert executor.status is GameStatus.IDLE
    assert executor.cursor == -1
    assert executor.robot == executor.initial_state
    assert executor.move_count == 0
    assert executor.error_message == ""
    assert executor.overlay.tile_at(1, 0) is Tile.HOLE


def test_stale_generation_is_discarded():
    executor = Executor(two_by_two(), flatten([F, R, F]))
    executor.start()
    token: Optional[int] = executor.generation

    executor.reset()
    executor.start()

    assert executor.step(token) is None
    assert executor.cursor == 0
    assert (executor.robot.x, executor.robot.y) == (0, 0)
    assert executor.step(executor.generation) is not None


def test_missing_start_tile_defaults_to_origin():
    maze = make_maze([["floor", "goal"], ["floor", "floor"]])
    executor = Executor(maze, flatten([F]))
    assert executor.initial_state == RobotState(0, 0, EAST)
    run_to_end(executor)
    assert executor.status is GameStatus.SUCCESS


def test_start_tile_sets_initial_pose():
    maze = make_maze([["floor", "floor"], ["goal", "start"]])
    executor = Executor(maze)
    assert executor.initial_state == RobotState(1, 1, EAST)


def test_trace_replacement_keeps_cursor():
    executor = Executor(two_by_two(), flatten([F, R]))
    executor.start()
    executor.step()
    executor.set_trace(flatten([F, R, F]))

    executor.step()
    assert executor.robot.direction == SOUTH
    executor.step()
    assert executor.status is GameStatus.SUCCESS


def test_snapshot_is_detached_from_live_state():
    executor = Executor(hole_ahead(), flatten([H, F]))
    executor.start()
    before = executor.snapshot()
    executor.step()
    after = executor.snapshot()

    assert before.grid[0][1] is Tile.HOLE
    assert after.grid[0][1] is Tile.FLOOR
    assert before.cursor == 0 and after.cursor == 1
