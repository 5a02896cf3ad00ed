"""Copy an engine solution back into the abstract model."""

import logging

from linear_model import LinearModel
from lp_native import NativeLp

_LOGGER = logging.getLogger("lpadapter")


def extract_results(lp: NativeLp, column_map: dict[int, int], row_map: dict[int, int], model: LinearModel) -> None:
    """Write variable values, row activities and the goal value into model.

    The engine solution is laid out as [objective, row activities...,
    column values...]. Nothing is written when the engine has no solution.
    SOS rows have no row number and keep their previous values.
    """
    solution = lp.get_primal_solution()
    if solution is None:
        _LOGGER.debug("No primal solution to extract")
        return

    n_rows = lp.n_rows
    for vid, column in column_map.items():
        model.set_value(vid, solution[n_rows + column])

    for vid, row in row_map.items():
        model.set_value(vid, solution[row])

    for goal in model.goals:
        model.set_value(goal.index, lp.get_objective())
