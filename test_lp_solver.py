"""Tests for the LP solver surface on small models."""

import json
import math

from pytest import approx, raises

from errors import EmptyModelError, LpSolverModelError, UnsupportedPropertyError
from linear_model import LinearModel, SosType, ValueState, build_model
from lp_native import MessageMask, SolveReturn
from lp_params import SimplexType, SolverParams
from lp_result import LinearResult, SolutionQuality
from lp_solver import LpSolver, SimplexAlgorithm, SolverState


def cover_model():
    """min x + y subject to x + y >= 1, x, y >= 0."""
    return build_model(["x", "y"], [("cover", {"x": 1, "y": 1}, 1, math.inf)], {"x": 1, "y": 1})


def test_cover_scenario():
    """Test the smallest useful model end to end."""
    model = cover_model()
    x, y = model.get_index_from_key("x"), model.get_index_from_key("y")
    with LpSolver(model) as solver:
        solver.solve()
        assert solver.state == SolverState.SOLVED
        assert solver.status == SolveReturn.OPTIMAL
        assert solver.result == LinearResult.OPTIMAL
        assert solver.solution_quality == SolutionQuality.APPROXIMATE
        assert solver.get_value(x) + solver.get_value(y) == approx(1.0)
        assert max(solver.get_value(x), solver.get_value(y)) > 0
        assert solver.get_value(model.get_index_from_key("cover")) == approx(1.0)

        goal = model.get_index_from_key("objective")
        assert solver.get_solution_value(goal) == approx(1.0)
        assert solver.goal_value == approx(1.0)
        assert solver.solved_goal_count == 1
        assert solver.get_solved_goal(0) == ("objective", goal, True, True)


def test_ranged_row_activity():
    """Test that a [2, 5] row is one engine row whose activity stays in range."""
    model = build_model(["x", "y"], [("range", {"x": 1, "y": 1}, 2, 5)], {"x": 1, "y": 1}, minimize=False)
    with LpSolver(model) as solver:
        solver.solve()
        assert solver.inner_row_count == 1
        activity = solver.get_value(model.get_index_from_key("range"))
        assert 2 - 1e-6 <= activity <= 5 + 1e-6
        assert activity == approx(5.0)


def test_sos1_exclusivity():
    model = build_model(
        ["x", "y", "z"],
        [("cap", {"x": 1, "y": 1, "z": 1}, -math.inf, 10)],
        {"x": 1, "y": 2, "z": 3},
        minimize=False,
    )
    members = [model.get_index_from_key(key) for key in ("x", "y", "z")]
    for vid in members:
        model.set_bounds(vid, 0, 1)
    sos = model.add_row("sos", sos=SosType.SOS1)
    for weight, vid in enumerate(members, start=1):
        model.set_coefficient(sos, vid, weight)

    with LpSolver(model) as solver:
        solver.solve()
        assert solver.result == LinearResult.OPTIMAL
        assert sum(1 for vid in members if abs(solver.get_value(vid)) > 1e-6) <= 1
        assert solver.goal_value == approx(3.0)
        assert model.get_value_state(sos) == ValueState.INVALID
        assert not math.isnan(solver.mip_best_bound)


def test_infeasible_result_depends_on_simplex_type():
    for simplex_type, expected in (
        (SimplexType.PRIMAL_PRIMAL, LinearResult.INFEASIBLE_PRIMAL),
        (SimplexType.DUAL_PRIMAL, LinearResult.INFEASIBLE_OR_UNBOUNDED),
    ):
        model = build_model(["x"], [("low", {"x": 1}, -math.inf, 1), ("high", {"x": 1}, 2, math.inf)], {"x": 1})
        with LpSolver(model) as solver:
            solver.solve(SolverParams(simplex_type=simplex_type))
            assert solver.state == SolverState.SOLVED
            assert solver.status == SolveReturn.INFEASIBLE
            assert solver.result == expected
            assert solver.solved_goal_count == 0
            assert model.get_value_state(model.get_index_from_key("x")) == ValueState.INVALID


def test_integer_statistics():
    model = build_model(["x", "y"], [("cap", {"x": 2, "y": 1}, -math.inf, 3)], {"x": 1, "y": 1}, minimize=False)
    model.set_integrality(model.get_index_from_key("x"), True)
    with LpSolver(model) as solver:
        solver.solve()
        assert solver.inner_integer_index_count == 1
        assert solver.inner_index_count == 3
        assert solver.inner_slack_count == 1
        assert solver.branch_count >= 0


def test_properties():
    model = cover_model()
    x = model.get_index_from_key("x")
    with LpSolver(model) as solver:
        with raises(LpSolverModelError, match="call solve"):
            solver.get_property("IterationCount")
        solver.solve()
        assert solver.get_property("GoalValue") == approx(1.0)
        assert solver.get_property("PivotCount") == 250
        assert solver.get_property("PresolveLoops") == -1
        assert solver.get_property("MipGap") == 1e-11
        assert solver.get_property("IterationCount") >= 0
        assert solver.get_property("NodeCount") == 0
        assert solver.get_property("ElapsedTime") >= 0.0
        assert isinstance(solver.get_property("GoalBound"), float)
        assert math.isnan(solver.mip_best_bound)

        solver.set_property("VariableUpperBound", x, 8)
        assert solver.get_property("VariableUpperBound", x) == 8.0
        with raises(UnsupportedPropertyError):
            solver.get_property("Colour")
        with raises(UnsupportedPropertyError):
            solver.set_property("GoalValue", x, 1)


def test_algorithm_used():
    with LpSolver(cover_model()) as solver:
        solver.solve()
        assert solver.algorithm_used == SimplexAlgorithm.PRIMAL
        assert solver.gap == 1e-11
    with LpSolver(cover_model()) as solver:
        solver.solve(SolverParams(simplex_type=SimplexType.DUAL_DUAL))
        assert solver.algorithm_used == SimplexAlgorithm.DUAL


def test_empty_model_aborts():
    solver = LpSolver(LinearModel())
    with raises(EmptyModelError):
        solver.solve()
    assert solver.state == SolverState.ABORTED
    solver.shutdown()
    assert solver.state == SolverState.DISPOSED


def test_callbacks_are_forwarded(tmp_path):
    log_lines, messages, events = [], [], []
    log_file = tmp_path / "solve.log"
    params = SolverParams(
        log_func=log_lines.append,
        msg_func=messages.append,
        solving=lambda: events.append(1),
        log_file=str(log_file),
    )
    with LpSolver(cover_model()) as solver:
        solver.solve(params)
    assert log_lines
    assert MessageMask.LPOPTIMAL in messages
    assert MessageMask.PRESOLVE in messages
    assert len(events) == len(messages)
    assert log_file.exists()


def test_exports(tmp_path):
    with LpSolver(cover_model()) as solver:
        solver.solve()
        assert solver.write_lp(str(tmp_path / "model.lp"))
        assert solver.write_mps(str(tmp_path / "model.mps"))
        assert solver.write_params(str(tmp_path / "model.ini"))
        assert solver.print_debug_dump(str(tmp_path / "dump.txt"))
        assert solver.write_xli("xli_JSON", str(tmp_path / "model.json"), results=True)
        assert not solver.write_xli("xli_Missing", str(tmp_path / "missing.json"))

    assert "[Default]" in (tmp_path / "model.ini").read_text()
    assert json.loads((tmp_path / "model.json").read_text())["results"]["status"] == "OPTIMAL"
    assert (tmp_path / "model.mps").stat().st_size > 0
