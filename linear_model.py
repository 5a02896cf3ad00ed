"""Index-based sparse LP/MIP model.

Variables and rows are identified by integer vids handed out from a single
counter, so a vid names exactly one variable or one row. Rows carry their own
bounds and become the objective when a goal is registered on them, or an SOS
group when they are created with an SOS type.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Hashable, Iterable, Optional

from errors import LpSolverModelError, UnsupportedPropertyError

_LOGGER = logging.getLogger("lpadapter")

VARIABLE_LOWER_BOUND = "VariableLowerBound"
VARIABLE_UPPER_BOUND = "VariableUpperBound"


class SosType(IntEnum):
    """Special-ordered-set kind of a row."""
    NONE = 0
    SOS1 = 1
    SOS2 = 2


class ValueState(Enum):
    """Whether a value has been written for a vid."""
    INVALID = "INVALID"
    DEFINED = "DEFINED"


@dataclass
class Goal:
    """An optimization goal attached to a row."""
    key: Any
    index: int
    priority: int
    minimize: bool
    enabled: bool = True


@dataclass
class _Entry:
    key: Any
    is_row: bool
    lower: float = -math.inf
    upper: float = math.inf
    value: float = 0.0
    value_state: ValueState = ValueState.INVALID
    integer: bool = False
    ignore_bounds: bool = False
    basic: bool = False
    sos: SosType = SosType.NONE


class LinearModel:
    """Sparse linear model with integer-indexed variables and rows."""

    def __init__(self):
        self._entries: dict[int, _Entry] = {}
        self._key_to_vid: dict[Hashable, int] = {}
        self._variables: list[int] = []
        self._rows: list[int] = []
        # row vid -> var vid -> coefficient, and the transposed view
        self._row_coefs: dict[int, dict[int, float]] = {}
        self._var_coefs: dict[int, dict[int, float]] = {}
        self._goals: dict[int, Goal] = {}
        self._next_vid = 0

    # ========== Variables and rows ==========

    def _add(self, key, is_row: bool, sos: SosType = SosType.NONE) -> int:
        if key is not None and key in self._key_to_vid:
            return self._key_to_vid[key]

        vid = self._next_vid
        self._next_vid += 1
        self._entries[vid] = _Entry(key=key, is_row=is_row, sos=sos)
        if key is not None:
            self._key_to_vid[key] = vid
        if is_row:
            self._rows.append(vid)
            self._row_coefs[vid] = {}
        else:
            self._variables.append(vid)
            self._var_coefs[vid] = {}
        return vid

    def add_variable(self, key: Hashable = None) -> int:
        """Add a variable and return its vid.

        A key that is already in use returns the vid it names instead of
        creating a new variable.
        """
        return self._add(key, is_row=False)

    def add_row(self, key: Hashable = None, sos: SosType = SosType.NONE) -> int:
        """Add a row, optionally as a special-ordered set, and return its vid."""
        return self._add(key, is_row=True, sos=SosType(sos))

    def _entry(self, vid: int) -> _Entry:
        try:
            return self._entries[vid]
        except KeyError as exc:
            raise KeyError(f"Unknown vid {vid}") from exc

    def _variable_entry(self, vid: int) -> _Entry:
        entry = self._entry(vid)
        if entry.is_row:
            raise LpSolverModelError(f"vid {vid} is a row, not a variable")
        return entry

    def _row_entry(self, vid: int) -> _Entry:
        entry = self._entry(vid)
        if not entry.is_row:
            raise LpSolverModelError(f"vid {vid} is a variable, not a row")
        return entry

    @property
    def variable_count(self) -> int:
        return len(self._variables)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def variable_indices(self) -> list[int]:
        """Variable vids in enumeration (creation) order."""
        return list(self._variables)

    @property
    def row_indices(self) -> list[int]:
        """Row vids in enumeration (creation) order."""
        return list(self._rows)

    @property
    def indices(self) -> list[int]:
        return list(self._entries)

    @property
    def variable_keys(self) -> list:
        return [self._entries[vid].key for vid in self._variables]

    @property
    def row_keys(self) -> list:
        return [self._entries[vid].key for vid in self._rows]

    @property
    def keys(self) -> list:
        return list(self._key_to_vid)

    @property
    def key_count(self) -> int:
        return len(self._key_to_vid)

    def is_row(self, vid: int) -> bool:
        return self._entry(vid).is_row

    def try_get_index_from_key(self, key: Hashable) -> Optional[int]:
        return self._key_to_vid.get(key)

    def get_index_from_key(self, key: Hashable) -> int:
        try:
            return self._key_to_vid[key]
        except KeyError as exc:
            raise KeyError(f"Unknown key {key!r}") from exc

    def get_key_from_index(self, vid: int):
        return self._entry(vid).key

    # ========== Bounds, integrality, values ==========

    def set_bounds(self, vid: int, lower: float, upper: float) -> None:
        """Set both bounds of a variable or row.

        Precondition:
            neither bound is NaN
            lower <= upper

        Postcondition:
            the vid's bounds are (lower, upper); +-math.inf means unbounded

        Raises:
            ValueError: if a bound is NaN or lower exceeds upper
        """
        lower, upper = float(lower), float(upper)
        if math.isnan(lower) or math.isnan(upper):
            raise ValueError(f"Bounds of vid {vid} must not be NaN")
        if lower > upper:
            raise ValueError(f"Lower bound {lower} exceeds upper bound {upper} for vid {vid}")
        entry = self._entry(vid)
        entry.lower = lower
        entry.upper = upper

    def set_lower_bound(self, vid: int, lower: float) -> None:
        self.set_bounds(vid, lower, self._entry(vid).upper)

    def set_upper_bound(self, vid: int, upper: float) -> None:
        self.set_bounds(vid, self._entry(vid).lower, upper)

    def get_bounds(self, vid: int) -> tuple[float, float]:
        entry = self._entry(vid)
        return entry.lower, entry.upper

    def set_ignore_bounds(self, vid: int, ignore: bool) -> None:
        self._variable_entry(vid).ignore_bounds = bool(ignore)

    def get_ignore_bounds(self, vid: int) -> bool:
        return self._entry(vid).ignore_bounds

    def set_integrality(self, vid: int, integer: bool) -> None:
        self._variable_entry(vid).integer = bool(integer)

    def get_integrality(self, vid: int) -> bool:
        return self._entry(vid).integer

    @property
    def integer_index_count(self) -> int:
        return sum(1 for vid in self._variables if self._entries[vid].integer)

    def set_basic(self, vid: int, basic: bool) -> None:
        self._entry(vid).basic = bool(basic)

    def get_basic(self, vid: int) -> bool:
        return self._entry(vid).basic

    def set_value(self, vid: int, value: float) -> None:
        entry = self._entry(vid)
        entry.value = float(value)
        entry.value_state = ValueState.DEFINED

    def get_value(self, vid: int) -> float:
        return self._entry(vid).value

    def get_value_state(self, vid: int) -> ValueState:
        return self._entry(vid).value_state

    # ========== Coefficients ==========

    def set_coefficient(self, row: int, var: int, value: float) -> None:
        """Set the coefficient of var in row; zero removes the entry."""
        self._row_entry(row)
        self._variable_entry(var)
        value = float(value)
        if value == 0.0:
            self._row_coefs[row].pop(var, None)
            self._var_coefs[var].pop(row, None)
        else:
            self._row_coefs[row][var] = value
            self._var_coefs[var][row] = value

    def get_coefficient(self, row: int, var: int) -> float:
        return self._row_coefs.get(row, {}).get(var, 0.0)

    def get_row_entries(self, row: int) -> list[tuple[int, float]]:
        """Nonzero (var vid, coefficient) pairs of a row in variable order."""
        self._row_entry(row)
        coefs = self._row_coefs[row]
        return [(var, coefs[var]) for var in self._variables if var in coefs]

    def get_row_entry_count(self, row: int) -> int:
        self._row_entry(row)
        return len(self._row_coefs[row])

    def get_variable_entries(self, var: int) -> list[tuple[int, float]]:
        """Nonzero (row vid, coefficient) pairs of a variable in row order."""
        self._variable_entry(var)
        coefs = self._var_coefs[var]
        return [(row, coefs[row]) for row in self._rows if row in coefs]

    def get_variable_entry_count(self, var: int) -> int:
        self._variable_entry(var)
        return len(self._var_coefs[var])

    @property
    def coefficient_count(self) -> int:
        return sum(len(coefs) for coefs in self._row_coefs.values())

    # ========== Goals ==========

    def add_goal(self, vid: int, priority: int, minimize: bool) -> Goal:
        """Make a row the objective.

        Precondition:
            vid is a row
            the model has no goal yet

        Postcondition:
            returns the new Goal; goal_count is 1

        Args:
            vid: row holding the objective coefficients
            priority: goal priority (kept for reporting only)
            minimize: True to minimize, False to maximize

        Raises:
            LpSolverModelError: if the model already has a goal
        """
        self._row_entry(vid)
        if self.goal_count == 1:
            raise LpSolverModelError(
                "There is already a goal added to the model. Only one goal per model is allowed"
            )
        goal = Goal(key=self._entries[vid].key, index=vid, priority=priority, minimize=bool(minimize))
        self._goals[vid] = goal
        return goal

    def remove_goal(self, vid: int) -> bool:
        return self._goals.pop(vid, None) is not None

    def clear_goals(self) -> None:
        self._goals.clear()

    @property
    def goal_count(self) -> int:
        return len(self._goals)

    @property
    def goals(self) -> list[Goal]:
        return list(self._goals.values())

    def is_goal(self, vid: int) -> bool:
        return vid in self._goals

    def get_goal(self, vid: int) -> Optional[Goal]:
        return self._goals.get(vid)

    # ========== Special-ordered sets ==========

    def get_sos_row_indexes(self, sos_type: SosType) -> list[int]:
        return [vid for vid in self._rows if self._entries[vid].sos == sos_type]

    def get_sos_type(self, vid: int) -> SosType:
        return self._entry(vid).sos

    @property
    def is_special_ordered_set(self) -> bool:
        return any(self._entries[vid].sos != SosType.NONE for vid in self._rows)

    @property
    def is_mip_model(self) -> bool:
        return self.integer_index_count > 0 or self.is_special_ordered_set

    @property
    def is_quadratic_model(self) -> bool:
        return False

    # ========== Properties ==========

    def set_property(self, name: str, vid: int, value: Any) -> None:
        if name == VARIABLE_LOWER_BOUND:
            self.set_lower_bound(vid, value)
        elif name == VARIABLE_UPPER_BOUND:
            self.set_upper_bound(vid, value)
        else:
            raise UnsupportedPropertyError(f"Property {name!r} is not supported")

    def get_property(self, name: str, vid: int) -> Any:
        if name == VARIABLE_LOWER_BOUND:
            return self.get_bounds(vid)[0]
        if name == VARIABLE_UPPER_BOUND:
            return self.get_bounds(vid)[1]
        raise UnsupportedPropertyError(f"Property {name!r} is not supported")


def build_model(
    variables: Iterable[Hashable],
    rows: Iterable[tuple[Hashable, dict, float, float]],
    objective: Optional[dict] = None,
    minimize: bool = True,
) -> LinearModel:
    """Build a model from plain python data.

    Precondition:
        rows are (key, {variable_key: coefficient}, lower, upper) tuples
        objective, if given, maps variable keys to coefficients

    Postcondition:
        returns a LinearModel with one variable per key (bounds [0, inf)),
        one row per tuple and, if objective is given, a goal row keyed "objective"

    Args:
        variables: variable keys in enumeration order
        rows: constraint rows
        objective: objective coefficients
        minimize: goal direction

    Returns:
        the populated LinearModel
    """
    model = LinearModel()
    for key in variables:
        vid = model.add_variable(key)
        model.set_bounds(vid, 0, math.inf)

    for key, coefficients, lower, upper in rows:
        row = model.add_row(key)
        model.set_bounds(row, lower, upper)
        for var_key, coefficient in coefficients.items():
            model.set_coefficient(row, model.get_index_from_key(var_key), coefficient)

    if objective is not None:
        goal_row = model.add_row("objective")
        for var_key, coefficient in objective.items():
            model.set_coefficient(goal_row, model.get_index_from_key(var_key), coefficient)
        model.add_goal(goal_row, 0, minimize)

    _LOGGER.debug("Built model with %s variables and %s rows", model.variable_count, model.row_count)
    return model
