"""Mapping from engine outcomes to solver results.

The tables are explicit so that every (outcome, algorithm) pair has a visible,
testable answer; anything not listed is INVALID.
"""

from enum import Enum

from frozendict import frozendict

from lp_native import SolveReturn
from lp_params import SimplexType


class LinearResult(Enum):
    OPTIMAL = "OPTIMAL"
    INFEASIBLE_PRIMAL = "INFEASIBLE_PRIMAL"
    INFEASIBLE_OR_UNBOUNDED = "INFEASIBLE_OR_UNBOUNDED"
    UNBOUNDED_PRIMAL = "UNBOUNDED_PRIMAL"
    UNBOUNDED_DUAL = "UNBOUNDED_DUAL"
    INVALID = "INVALID"


class SolutionQuality(Enum):
    NONE = "NONE"
    APPROXIMATE = "APPROXIMATE"
    EXACT = "EXACT"


# keyed on (engine outcome, simplex type is primal/primal)
LP_RESULTS = frozendict({
    (SolveReturn.OPTIMAL, True): LinearResult.OPTIMAL,
    (SolveReturn.OPTIMAL, False): LinearResult.OPTIMAL,
    (SolveReturn.INFEASIBLE, True): LinearResult.INFEASIBLE_PRIMAL,
    (SolveReturn.INFEASIBLE, False): LinearResult.INFEASIBLE_OR_UNBOUNDED,
    (SolveReturn.UNBOUNDED, True): LinearResult.UNBOUNDED_PRIMAL,
    (SolveReturn.UNBOUNDED, False): LinearResult.UNBOUNDED_DUAL,
})

MIP_RESULTS = frozendict({
    (SolveReturn.OPTIMAL, True): LinearResult.OPTIMAL,
    (SolveReturn.OPTIMAL, False): LinearResult.OPTIMAL,
    (SolveReturn.INFEASIBLE, True): LinearResult.INFEASIBLE_PRIMAL,
    (SolveReturn.INFEASIBLE, False): LinearResult.INFEASIBLE_OR_UNBOUNDED,
})


def linear_result(status: SolveReturn, simplex_type: SimplexType, is_mip: bool) -> LinearResult:
    """Classify an engine outcome for an LP or a MIP model."""
    table = MIP_RESULTS if is_mip else LP_RESULTS
    return table.get((status, simplex_type == SimplexType.PRIMAL_PRIMAL), LinearResult.INVALID)


def solution_quality(status: SolveReturn) -> SolutionQuality:
    return SolutionQuality.APPROXIMATE if status == SolveReturn.OPTIMAL else SolutionQuality.NONE
