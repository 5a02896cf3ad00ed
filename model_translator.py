"""Translate a LinearModel into a NativeLp instance.

The abstract model addresses variables and rows by vid; the engine addresses
them by 1-based column and row numbers. The translator builds both maps while
it loads the engine.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from errors import EmptyModelError, NativeCreationError
from linear_model import LinearModel, SosType
from lp_native import ConstraintType, NativeLp

_LOGGER = logging.getLogger("lpadapter")


@dataclass
class TranslatedModel:
    """A loaded engine instance plus the vid -> column/row maps.

    Attributes:
        lp: engine instance owning the translated model
        column_map: variable vid -> 1-based column
        row_map: ordinary row vid -> 1-based row (goal and SOS rows excluded)
        infinite: the engine's infinite sentinel after configuration
    """
    lp: NativeLp
    column_map: dict[int, int] = field(default_factory=dict)
    row_map: dict[int, int] = field(default_factory=dict)
    infinite: float = math.inf


def _load_columns(model: LinearModel, lp: NativeLp, column_map: dict[int, int]) -> None:
    for column, vid in enumerate(model.variable_indices, start=1):
        column_map[vid] = column
        lower, upper = model.get_bounds(vid)

        if model.get_ignore_bounds(vid):
            lp.set_unbounded(column)
        elif math.isinf(lower):
            lp.set_unbounded(column)
            if not math.isinf(upper):
                lp.set_upbo(column, upper)
        elif math.isinf(upper):
            lp.set_lowbo(column, lower)
        else:
            lp.set_bounds(column, lower, upper)

        if model.get_integrality(vid):
            lp.set_int(column, True)


def _compact(model: LinearModel, row: int, column_map: dict[int, int]) -> tuple[list[float], list[int]]:
    entries = model.get_row_entries(row)
    return [value for _, value in entries], [column_map[var] for var, _ in entries]


def _load_objective(model: LinearModel, lp: NativeLp, row: int, column_map: dict[int, int]) -> None:
    goal = model.get_goal(row)
    lp.set_sense(not goal.minimize)
    values, columns = _compact(model, row, column_map)
    lp.set_obj_fnex(values, columns)


def _load_row(model: LinearModel, lp: NativeLp, row: int, column_map: dict[int, int], infinite: float) -> int:
    values, columns = _compact(model, row, column_map)
    lower, upper = model.get_bounds(row)
    has_lower = not math.isinf(lower)
    has_upper = not math.isinf(upper)

    if has_lower and has_upper:
        if lower == upper:
            return lp.add_constraintex(values, columns, ConstraintType.EQ, upper)
        row_number = lp.add_constraintex(values, columns, ConstraintType.LE, upper)
        lp.set_rh_range(row_number, upper - lower)
        return row_number
    if has_lower:
        return lp.add_constraintex(values, columns, ConstraintType.GE, lower)
    if has_upper:
        return lp.add_constraintex(values, columns, ConstraintType.LE, upper)
    # free row
    return lp.add_constraintex(values, columns, ConstraintType.LE, infinite)


def build_native_model(
    model: LinearModel,
    native_factory: Callable[[int], Optional[NativeLp]] = NativeLp,
    infinite: Optional[float] = None,
) -> TranslatedModel:
    """Create an engine instance and load the model into it.

    Precondition:
        model has at least one variable
        model has at most one goal

    Postcondition:
        returns a TranslatedModel owning the engine instance; the caller must
        call lp.delete() when done with it
        model is not modified

    Args:
        model: abstract model to translate
        native_factory: callable creating an engine with the given column count
        infinite: infinite sentinel to configure; None keeps the engine default

    Returns:
        TranslatedModel with the loaded engine and the vid maps

    Raises:
        EmptyModelError: if the model has no variables
        NativeCreationError: if the engine could not be created
    """
    if model.variable_count == 0:
        raise EmptyModelError("Cannot solve a model without variables")

    try:
        lp = native_factory(model.variable_count)
    except Exception as exc:
        raise NativeCreationError(f"Could not create the LP engine: {exc}") from exc
    if lp is None:
        raise NativeCreationError("Could not create the LP engine")

    try:
        if infinite is not None:
            lp.set_infinite(infinite)
        translated = TranslatedModel(lp=lp, infinite=lp.get_infinite())

        lp.set_add_rowmode(True)
        _load_columns(model, lp, translated.column_map)

        goal_rows = [row for row in model.row_indices if model.is_goal(row)]
        sos1_rows = set(model.get_sos_row_indexes(SosType.SOS1))
        sos2_rows = set(model.get_sos_row_indexes(SosType.SOS2))
        objective_row = goal_rows[0] if goal_rows else None
        if len(goal_rows) > 1:
            _LOGGER.warning("Only the first goal is used; skipping %s", goal_rows[1:])

        sos_count = 0
        for row in model.row_indices:
            if row == objective_row:
                _load_objective(model, lp, row, translated.column_map)
            elif row in goal_rows:
                continue
            elif row in sos1_rows or row in sos2_rows:
                sos_count += 1
                weights, columns = _compact(model, row, translated.column_map)
                sos_type = 1 if row in sos1_rows else 2
                lp.add_sos(f"SOS{sos_count}", sos_type, sos_count, columns, weights)
            else:
                translated.row_map[row] = _load_row(model, lp, row, translated.column_map, translated.infinite)

        lp.set_add_rowmode(False)
    except Exception:
        lp.delete()
        raise

    _LOGGER.debug(
        "Translated %s columns, %s rows, %s SOS constraints",
        len(translated.column_map), len(translated.row_map), sos_count,
    )
    return translated
