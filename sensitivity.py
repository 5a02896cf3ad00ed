"""Sensitivity ranges and duals in the abstract model's vid space."""

import math
from dataclasses import dataclass
from typing import Optional

from lp_native import ConstraintType, NativeLp


@dataclass(frozen=True)
class SensitivityRange:
    """A value and the interval over which the current basis stays optimal."""
    current: float = 0.0
    lower: float = 0.0
    upper: float = 0.0


class SensitivityReport:
    """Read the engine's ranging arrays through the translation maps.

    Every magnitude at or beyond the engine's infinite sentinel is reported as
    math.inf with the sentinel's sign. When the engine computed no ranging
    arrays the limits are (-inf, inf).
    """

    def __init__(self, lp: NativeLp, column_map: dict[int, int], row_map: dict[int, int], infinite: float):
        self._lp = lp
        self._column_map = column_map
        self._row_map = row_map
        self._infinite = infinite

    def _normalize(self, value: float) -> float:
        if abs(value) >= self._infinite:
            return math.copysign(math.inf, value)
        return value

    def _limits(self, lowers: Optional[list[float]], uppers: Optional[list[float]], index: int) -> tuple[float, float]:
        if lowers is None or uppers is None:
            return -math.inf, math.inf
        lower = lowers[index - 1]
        upper = uppers[index - 1]
        lower = -math.inf if lower <= -self._infinite else lower
        upper = math.inf if upper >= self._infinite else upper
        return lower, upper

    def _sign(self) -> float:
        return -1.0 if self._lp.is_maxim() else 1.0

    def get_objective_coefficient_range(self, vid: int, priority: Optional[int] = None) -> SensitivityRange:
        """Range of the objective coefficient of a variable.

        priority is accepted for goal-addressed callers; the model has one goal.
        """
        column = self._column_map.get(vid)
        if column is None:
            return SensitivityRange()

        ranging = self._lp.get_sensitivity_obj()
        lowers, uppers = ranging if ranging is not None else (None, None)
        lower, upper = self._limits(lowers, uppers, column)
        return SensitivityRange(self._normalize(self._lp.get_mat(0, column)), lower, upper)

    def get_variable_range(self, vid: int) -> SensitivityRange:
        """Binding right-hand side of a row, or binding bound of a variable, with its range."""
        if vid in self._row_map:
            index = self._row_map[vid]
            is_variable = False
        elif vid in self._column_map:
            index = self._column_map[vid]
            is_variable = True
        else:
            return SensitivityRange()

        lp = self._lp
        ranging = lp.get_sensitivity_rhs()
        current = 0.0
        if ranging is None:
            lowers = uppers = None
            if is_variable:
                index += lp.n_rows
        else:
            duals, lowers, uppers = ranging
            sign = self._sign()
            if is_variable:
                lower_bound = lp.get_lowbo(index)
                upper_bound = lp.get_upbo(index)
                index += lp.n_rows
                if duals[index - 1] * sign >= 0.0:
                    current = lower_bound
                else:
                    current = self._bound_sum(lower_bound, upper_bound)
            else:
                constr_type = lp.get_constr_type(index)
                rh_range = lp.get_rh_range(index)
                current = lp.get_rh(index)
                if duals[index - 1] * sign >= 0.0:
                    if constr_type == ConstraintType.LE and rh_range < self._infinite:
                        current -= rh_range
                elif constr_type == ConstraintType.GE and rh_range < self._infinite:
                    current += rh_range

        lower, upper = self._limits(lowers, uppers, index)
        return SensitivityRange(self._normalize(current), lower, upper)

    def _bound_sum(self, lower: float, upper: float) -> float:
        lower_infinite = abs(lower) >= self._infinite
        upper_infinite = abs(upper) >= self._infinite
        if lower_infinite and upper_infinite:
            return 0.0
        if lower_infinite:
            return upper
        if upper_infinite:
            return lower
        return lower + upper

    def get_dual_value(self, vid: int) -> float:
        """Dual value of a row or reduced cost of a variable; 0.0 when unknown."""
        if vid in self._row_map:
            index = self._row_map[vid]
        elif vid in self._column_map:
            index = self._column_map[vid] + self._lp.n_rows
        else:
            return 0.0
        return self._lp.get_var_dualresult(index)
