"""Tests for the index-based linear model."""

import math

from pytest import raises

from errors import LpSolverModelError, UnsupportedPropertyError
from linear_model import LinearModel, SosType, ValueState, build_model


def test_vids_are_shared_between_variables_and_rows():
    """Test that variables and rows draw from one vid counter in creation order."""
    model = LinearModel()
    x = model.add_variable("x")
    row = model.add_row("r")
    y = model.add_variable("y")
    assert (x, row, y) == (0, 1, 2)
    assert model.variable_indices == [x, y]
    assert model.row_indices == [row]
    assert model.is_row(row)
    assert not model.is_row(y)


def test_existing_key_returns_existing_vid():
    """Test that adding a key twice does not create a second entry."""
    model = LinearModel()
    x = model.add_variable("x")
    assert model.add_variable("x") == x
    assert model.variable_count == 1
    assert model.get_index_from_key("x") == x
    assert model.get_key_from_index(x) == "x"
    assert model.try_get_index_from_key("missing") is None


def test_bounds_default_to_unbounded():
    model = LinearModel()
    x = model.add_variable()
    assert model.get_bounds(x) == (-math.inf, math.inf)


def test_bounds_reject_inverted_and_nan():
    """Test that bounds with lower above upper, or NaN, are rejected."""
    model = LinearModel()
    x = model.add_variable()
    with raises(ValueError, match="exceeds upper bound"):
        model.set_bounds(x, 5, 2)
    with raises(ValueError, match="NaN"):
        model.set_bounds(x, math.nan, 2)
    model.set_lower_bound(x, 1)
    model.set_upper_bound(x, 3)
    assert model.get_bounds(x) == (1.0, 3.0)


def test_zero_coefficient_removes_entry():
    model = LinearModel()
    x = model.add_variable()
    row = model.add_row()
    model.set_coefficient(row, x, 2.5)
    assert model.get_row_entries(row) == [(x, 2.5)]
    assert model.get_variable_entries(x) == [(row, 2.5)]
    assert model.coefficient_count == 1
    model.set_coefficient(row, x, 0)
    assert model.get_row_entry_count(row) == 0
    assert model.get_variable_entry_count(x) == 0
    assert model.get_coefficient(row, x) == 0.0


def test_coefficient_requires_row_and_variable():
    model = LinearModel()
    x = model.add_variable()
    row = model.add_row()
    with raises(LpSolverModelError, match="is a variable"):
        model.set_coefficient(x, x, 1)
    with raises(LpSolverModelError, match="is a row"):
        model.set_coefficient(row, row, 1)


def test_second_goal_is_rejected():
    """Test that a model holds at most one goal."""
    model = LinearModel()
    first = model.add_row("cost")
    second = model.add_row("profit")
    model.add_goal(first, 0, True)
    with raises(LpSolverModelError, match="Only one goal per model"):
        model.add_goal(second, 1, False)
    assert model.goal_count == 1
    assert model.get_goal(first).minimize


def test_goals_can_be_removed_and_cleared():
    model = LinearModel()
    row = model.add_row()
    model.add_goal(row, 0, True)
    assert model.remove_goal(row)
    assert not model.remove_goal(row)
    model.add_goal(row, 0, False)
    model.clear_goals()
    assert model.goal_count == 0


def test_values_start_invalid():
    model = LinearModel()
    x = model.add_variable()
    assert model.get_value_state(x) == ValueState.INVALID
    model.set_value(x, 4)
    assert model.get_value(x) == 4.0
    assert model.get_value_state(x) == ValueState.DEFINED


def test_mip_detection():
    """Test that integrality or an SOS row makes a model a MIP."""
    model = LinearModel()
    x = model.add_variable()
    assert not model.is_mip_model
    model.set_integrality(x, True)
    assert model.is_mip_model
    assert model.integer_index_count == 1

    model = LinearModel()
    model.add_variable()
    sos = model.add_row(sos=SosType.SOS2)
    assert model.is_mip_model
    assert model.get_sos_row_indexes(SosType.SOS2) == [sos]
    assert model.get_sos_row_indexes(SosType.SOS1) == []


def test_bound_properties():
    model = LinearModel()
    x = model.add_variable()
    model.set_property("VariableLowerBound", x, 2)
    model.set_property("VariableUpperBound", x, 7)
    assert model.get_property("VariableLowerBound", x) == 2.0
    assert model.get_property("VariableUpperBound", x) == 7.0
    with raises(UnsupportedPropertyError):
        model.get_property("Color", x)
    with raises(UnsupportedPropertyError):
        model.set_property("Color", x, "red")


def test_build_model():
    model = build_model(["x", "y"], [("c", {"x": 1, "y": 1}, 1, math.inf)], {"x": 1, "y": 2})
    assert model.variable_count == 2
    assert model.row_count == 2
    assert model.goal_count == 1
    goal_row = model.get_index_from_key("objective")
    assert model.is_goal(goal_row)
    assert model.get_bounds(model.get_index_from_key("x")) == (0.0, math.inf)
    assert model.get_coefficient(goal_row, model.get_index_from_key("y")) == 2.0
