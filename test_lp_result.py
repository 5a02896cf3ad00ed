"""Tests for mapping engine outcomes to results and solution quality."""

from lp_native import SolveReturn
from lp_params import SimplexType
from lp_result import LinearResult, SolutionQuality, linear_result, solution_quality

NON_PRIMAL = (SimplexType.DUAL_PRIMAL, SimplexType.PRIMAL_DUAL, SimplexType.DUAL_DUAL)


def expected_lp(status, primal):
    if status == SolveReturn.OPTIMAL:
        return LinearResult.OPTIMAL
    if status == SolveReturn.INFEASIBLE:
        return LinearResult.INFEASIBLE_PRIMAL if primal else LinearResult.INFEASIBLE_OR_UNBOUNDED
    if status == SolveReturn.UNBOUNDED:
        return LinearResult.UNBOUNDED_PRIMAL if primal else LinearResult.UNBOUNDED_DUAL
    return LinearResult.INVALID


def expected_mip(status, primal):
    if status == SolveReturn.UNBOUNDED:
        return LinearResult.INVALID
    return expected_lp(status, primal)


def test_lp_table_is_exhaustive():
    """Test every engine outcome against every simplex type for LP models."""
    for status in SolveReturn:
        assert linear_result(status, SimplexType.PRIMAL_PRIMAL, is_mip=False) == expected_lp(status, True)
        for simplex_type in NON_PRIMAL:
            assert linear_result(status, simplex_type, is_mip=False) == expected_lp(status, False)


def test_mip_table_is_exhaustive():
    """Test every engine outcome against every simplex type for MIP models."""
    for status in SolveReturn:
        assert linear_result(status, SimplexType.PRIMAL_PRIMAL, is_mip=True) == expected_mip(status, True)
        for simplex_type in NON_PRIMAL:
            assert linear_result(status, simplex_type, is_mip=True) == expected_mip(status, False)


def test_timeouts_and_aborts_are_invalid():
    for status in (SolveReturn.TIMEOUT, SolveReturn.USERABORT, SolveReturn.NOMEMORY, SolveReturn.SUBOPTIMAL):
        assert linear_result(status, SimplexType.DUAL_PRIMAL, is_mip=False) == LinearResult.INVALID
        assert linear_result(status, SimplexType.DUAL_PRIMAL, is_mip=True) == LinearResult.INVALID


def test_solution_quality():
    assert solution_quality(SolveReturn.OPTIMAL) == SolutionQuality.APPROXIMATE
    for status in SolveReturn:
        if status != SolveReturn.OPTIMAL:
            assert solution_quality(status) == SolutionQuality.NONE
