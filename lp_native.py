"""Handle-style LP/MIP engine.

NativeLp holds a model in 1-based column/row form: column bounds and
integrality, rows with a constraint type, a right-hand side and an optional
range, special-ordered sets and a single objective row (row 0). solve() hands
the model to CBC through python-mip. When sensitivity is requested, the final
LP (integer columns fixed at the incumbent) is re-solved with HiGHS to fill the
ranging arrays, which CBC does not expose.

Infinite values are reported as the +-infinite sentinel (see set_infinite) and
accepted either as the sentinel or as math.inf.
"""

import configparser
import glob
import gzip
import json
import logging
import math
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Callable, Optional

import highspy
import numpy as np
from mip import CONTINUOUS, INT_MAX, INTEGER, MAXIMIZE, MINIMIZE, LP_Method, Model, OptimizationStatus, xsum

from errors import UnsupportedPropertyError
from lp_params import DEFAULT_INFINITE, TUNING_NAMES, SimplexType, SolverParams, Verbosity

_LOGGER = logging.getLogger("lpadapter")

# First branch-and-bound time slice when an abort function is installed; doubles each slice.
ABORT_POLL_SECONDS = 1.0


class ConstraintType(IntEnum):
    FR = 0
    LE = 1
    GE = 2
    EQ = 3


class SolveReturn(IntEnum):
    """Outcome of NativeLp.solve."""
    UNKNOWNERROR = -5
    NOMEMORY = -2
    NOTRUN = -1
    OPTIMAL = 0
    SUBOPTIMAL = 1
    INFEASIBLE = 2
    UNBOUNDED = 3
    DEGENERATE = 4
    NUMFAILURE = 5
    USERABORT = 6
    TIMEOUT = 7
    PRESOLVED = 9


class MessageMask(IntFlag):
    """Events reported through the message callback."""
    PRESOLVE = 1
    ITERATION = 2
    INVERT = 4
    LPFEASIBLE = 8
    LPOPTIMAL = 16
    LPEQUAL = 32
    LPBETTER = 64
    MILPFEASIBLE = 128
    MILPEQUAL = 256
    MILPBETTER = 512


_CBC_STATUS = {
    OptimizationStatus.OPTIMAL: SolveReturn.OPTIMAL,
    OptimizationStatus.FEASIBLE: SolveReturn.SUBOPTIMAL,
    OptimizationStatus.INFEASIBLE: SolveReturn.INFEASIBLE,
    OptimizationStatus.INT_INFEASIBLE: SolveReturn.INFEASIBLE,
    OptimizationStatus.UNBOUNDED: SolveReturn.UNBOUNDED,
    OptimizationStatus.NO_SOLUTION_FOUND: SolveReturn.TIMEOUT,
    OptimizationStatus.CUTOFF: SolveReturn.INFEASIBLE,
    OptimizationStatus.ERROR: SolveReturn.NUMFAILURE,
}

# Settings CBC has no knob for; they are kept, reported and written to params files.
_UNMAPPED_SETTINGS = (
    "anti_degen",
    "basis_crash",
    "bb_depth_limit",
    "bb_floor_first",
    "bb_rule",
    "break_at_value",
    "epsb",
    "epsd",
    "epsel",
    "epsperturb",
    "epspivot",
    "improve",
    "max_pivot",
    "negrange",
    "obj_in_basis",
    "pivoting",
    "presolve_max_loops",
    "scale_limit",
    "scaling",
    "solution_limit",
)

_DEFAULT_SETTINGS = SolverParams().native_settings()


@dataclass
class _Column:
    name: str
    lower: float = 0.0
    upper: float = math.inf
    integer: bool = False


@dataclass
class _Row:
    name: str
    entries: dict[int, float]
    constr_type: ConstraintType
    rh: float
    range: Optional[float] = None


@dataclass
class _Sos:
    name: str
    sos_type: int
    priority: int
    columns: list[int] = field(default_factory=list)
    weights: list[float] = field(default_factory=list)


def _params_file_key(name: str) -> str:
    """Convert a setting name to its params-file key (epsint -> Epsint)."""
    return "".join(part.capitalize() for part in name.split("_"))


_PARAMS_FILE_NAMES = {_params_file_key(name): name for name in TUNING_NAMES}


def _header_from_options(options: str) -> str:
    """Extract the section name from a '-H <header>' options string."""
    parts = options.split()
    if "-H" in parts:
        position = parts.index("-H")
        if position + 1 < len(parts):
            return parts[position + 1]
    return "Default"


class NativeLp:
    """One engine instance with 1-based columns and rows."""

    def __init__(self, columns: int = 0):
        self._cbc: Optional[Model] = Model(solver_name="CBC")
        self._cbc.verbose = 0
        self._cbc_vars: Optional[list] = None
        self._infinite = DEFAULT_INFINITE
        self._columns = [_Column(f"C{col}") for col in range(1, columns + 1)]
        self._rows: list[_Row] = []
        self._objective: dict[int, float] = {}
        self._maximize = False
        self._sos: list[_Sos] = []
        self._settings = dict(_DEFAULT_SETTINGS)
        self._row_mode = False
        self._sensitivity = False
        self._abort_func: Optional[Callable[[], bool]] = None
        self._log_func: Optional[Callable[[str], None]] = None
        self._msg_func: Optional[Callable[[int], None]] = None
        self._msg_mask = 0
        self._output_file = ""
        self._xli: Optional[str] = None
        self._reset_results()

    def _reset_results(self):
        self._status = SolveReturn.NOTRUN
        self._incumbent: Optional[list[float]] = None
        self._solution: Optional[list[float]] = None
        self._objective_value = 0.0
        self._objective_bound = -self._infinite if self._maximize else self._infinite
        self._solution_count = 0
        self._duals: Optional[list[float]] = None
        self._dual_lowers: Optional[list[float]] = None
        self._dual_uppers: Optional[list[float]] = None
        self._obj_lowers: Optional[list[float]] = None
        self._obj_uppers: Optional[list[float]] = None
        self._total_iter = 0
        self._total_nodes = 0
        self._elapsed = 0.0

    def _changed(self):
        self._cbc_vars = None

    # ========== Infinity ==========

    def set_infinite(self, infinite: float) -> None:
        self._infinite = float(infinite)
        self._settings["infinite"] = self._infinite

    def get_infinite(self) -> float:
        return self._infinite

    def is_infinite(self, value: float) -> bool:
        return abs(value) >= self._infinite

    def _to_inner(self, value: float) -> float:
        """Map the sentinel (or beyond) to +-math.inf."""
        value = float(value)
        if self.is_infinite(value):
            return math.copysign(math.inf, value)
        return value

    def _to_outer(self, value: float) -> float:
        """Map +-math.inf (or beyond the sentinel) to the +-sentinel."""
        if self.is_infinite(value):
            return math.copysign(self._infinite, value)
        return float(value)

    # ========== Columns ==========

    @property
    def n_columns(self) -> int:
        return len(self._columns)

    @property
    def n_orig_columns(self) -> int:
        return len(self._columns)

    def _column(self, col: int) -> _Column:
        if not 1 <= col <= len(self._columns):
            raise IndexError(f"Column {col} out of range 1..{len(self._columns)}")
        return self._columns[col - 1]

    def set_col_name(self, col: int, name: str) -> None:
        self._column(col).name = name
        self._changed()

    def get_col_name(self, col: int) -> str:
        return self._column(col).name

    def set_int(self, col: int, integer: bool = True) -> None:
        self._column(col).integer = bool(integer)
        self._changed()

    def is_int(self, col: int) -> bool:
        return self._column(col).integer

    def set_bounds(self, col: int, lower: float, upper: float) -> None:
        column = self._column(col)
        column.lower = self._to_inner(lower)
        column.upper = self._to_inner(upper)
        self._changed()

    def set_lowbo(self, col: int, lower: float) -> None:
        self._column(col).lower = self._to_inner(lower)
        self._changed()

    def set_upbo(self, col: int, upper: float) -> None:
        self._column(col).upper = self._to_inner(upper)
        self._changed()

    def set_unbounded(self, col: int) -> None:
        column = self._column(col)
        column.lower = -math.inf
        column.upper = math.inf
        self._changed()

    def is_unbounded(self, col: int) -> bool:
        column = self._column(col)
        return column.lower == -math.inf and column.upper == math.inf

    def get_lowbo(self, col: int) -> float:
        return self._to_outer(self._column(col).lower)

    def get_upbo(self, col: int) -> float:
        return self._to_outer(self._column(col).upper)

    # ========== Rows ==========

    @property
    def n_rows(self) -> int:
        return len(self._rows)

    @property
    def n_orig_rows(self) -> int:
        return len(self._rows)

    def _row(self, row: int) -> _Row:
        if not 1 <= row <= len(self._rows):
            raise IndexError(f"Row {row} out of range 1..{len(self._rows)}")
        return self._rows[row - 1]

    def set_add_rowmode(self, on: bool) -> bool:
        """Switch row-wise building on or off; returns whether the mode changed."""
        changed = self._row_mode != bool(on)
        self._row_mode = bool(on)
        return changed

    def is_add_rowmode(self) -> bool:
        return self._row_mode

    def _compact(self, values, colnos) -> dict[int, float]:
        entries = {}
        for value, col in zip(values, colnos):
            self._column(col)
            if value != 0.0:
                entries[col] = float(value)
        return entries

    def add_constraintex(self, values, colnos, constr_type: ConstraintType, rh: float) -> int:
        """Append a row and return its 1-based number."""
        row = _Row(
            name=f"R{len(self._rows) + 1}",
            entries=self._compact(values, colnos),
            constr_type=ConstraintType(constr_type),
            rh=self._to_inner(rh),
        )
        self._rows.append(row)
        self._changed()
        return len(self._rows)

    def set_rh_range(self, row: int, delta: float) -> None:
        self._row(row).range = abs(self._to_inner(delta))
        self._changed()

    def get_rh_range(self, row: int) -> float:
        """Width of a ranged row; the sentinel when the row has no range."""
        native_row = self._row(row)
        if native_row.constr_type == ConstraintType.EQ:
            return 0.0
        if native_row.range is None:
            return self._infinite
        return self._to_outer(native_row.range)

    def get_rh(self, row: int) -> float:
        if row == 0:
            return 0.0
        return self._to_outer(self._row(row).rh)

    def get_constr_type(self, row: int) -> ConstraintType:
        return self._row(row).constr_type

    def get_row_name(self, row: int) -> str:
        return self._row(row).name

    def _row_bounds(self, native_row: _Row) -> tuple[float, float]:
        rh = native_row.rh
        open_ended = native_row.range is None or math.isinf(native_row.range)
        if native_row.constr_type == ConstraintType.EQ:
            return rh, rh
        if native_row.constr_type == ConstraintType.GE:
            upper = math.inf if open_ended else rh + native_row.range
            return rh, upper
        if native_row.constr_type == ConstraintType.LE:
            lower = -math.inf if open_ended else rh - native_row.range
            return lower, rh
        return -math.inf, math.inf

    def get_row_bounds(self, row: int) -> tuple[float, float]:
        """Lower and upper activity limits of a row, infinite as the sentinel."""
        lower, upper = self._row_bounds(self._row(row))
        return self._to_outer(lower), self._to_outer(upper)

    def get_mat(self, row: int, col: int) -> float:
        """Matrix element; row 0 is the objective."""
        self._column(col)
        if row == 0:
            return self._objective.get(col, 0.0)
        return self._row(row).entries.get(col, 0.0)

    def get_nonzeros(self) -> int:
        return sum(len(native_row.entries) for native_row in self._rows)

    # ========== Objective and SOS ==========

    def set_obj_fnex(self, values, colnos) -> None:
        self._objective = self._compact(values, colnos)
        self._changed()

    def set_sense(self, maximize: bool) -> None:
        self._maximize = bool(maximize)
        self._changed()

    def set_minim(self) -> None:
        self.set_sense(False)

    def set_maxim(self) -> None:
        self.set_sense(True)

    def is_maxim(self) -> bool:
        return self._maximize

    def add_sos(self, name: Optional[str], sos_type: int, priority: int, colnos, weights) -> int:
        """Register a special-ordered set; returns the number of sets."""
        for col in colnos:
            self._column(col)
        self._sos.append(_Sos(
            name=name or f"SOS{len(self._sos) + 1}",
            sos_type=int(sos_type),
            priority=int(priority),
            columns=list(colnos),
            weights=[float(weight) for weight in weights],
        ))
        self._changed()
        return len(self._sos)

    def get_sos_count(self) -> int:
        return len(self._sos)

    def _is_mip(self) -> bool:
        return bool(self._sos) or any(column.integer for column in self._columns)

    # ========== Settings and callbacks ==========

    def set_param(self, name: str, value) -> None:
        """Set one engine setting by name.

        Raises:
            UnsupportedPropertyError: if name is not an engine setting
        """
        if name not in _DEFAULT_SETTINGS:
            raise UnsupportedPropertyError(f"Engine setting {name!r} is not supported")
        if name == "infinite":
            self.set_infinite(value)
        else:
            self._settings[name] = value

    def get_param(self, name: str):
        if name not in _DEFAULT_SETTINGS:
            raise UnsupportedPropertyError(f"Engine setting {name!r} is not supported")
        return self._settings[name]

    def get_simplextype(self) -> SimplexType:
        return SimplexType(self._settings["simplex_type"])

    def get_presolveloops(self) -> int:
        return self._settings["presolve_max_loops"]

    def get_maxpivot(self) -> int:
        return self._settings["max_pivot"]

    def get_mip_gap(self, absolute: bool) -> float:
        return self._settings["mip_gap_abs" if absolute else "mip_gap_rel"]

    def set_sensitivity(self, enabled: bool) -> None:
        self._sensitivity = bool(enabled)

    def put_abortfunc(self, func: Optional[Callable[[], bool]]) -> None:
        self._abort_func = func

    def put_logfunc(self, func: Optional[Callable[[str], None]]) -> None:
        self._log_func = func

    def put_msgfunc(self, func: Optional[Callable[[int], None]], mask: int) -> None:
        self._msg_func = func
        self._msg_mask = int(mask)

    def set_outputfile(self, filename: str) -> None:
        self._output_file = filename or ""

    def _log(self, message: str) -> None:
        _LOGGER.debug(message)
        if self._log_func is not None:
            self._log_func(message)
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(message + "\n")

    def _message(self, msg: MessageMask) -> None:
        if self._msg_func is not None and msg & self._msg_mask:
            self._msg_func(msg)

    def _abort_requested(self) -> bool:
        return self._abort_func is not None and bool(self._abort_func())

    # ========== Solving ==========

    def _load_cbc(self) -> list:
        """Create the CBC model from the current columns and rows."""
        if self._cbc_vars is not None:
            return self._cbc_vars
        if self._cbc is None or self._cbc.num_cols > 0:
            self._cbc = Model(solver_name="CBC")

        cbc = self._cbc
        variables = [
            cbc.add_var(
                name=column.name,
                lb=column.lower,
                ub=column.upper,
                var_type=INTEGER if column.integer else CONTINUOUS,
            )
            for column in self._columns
        ]

        for native_row in self._rows:
            if not native_row.entries:
                continue
            expr = xsum(coef * variables[col - 1] for col, coef in native_row.entries.items())
            lower, upper = self._row_bounds(native_row)
            if lower == upper:
                cbc.add_constr(expr == upper, name=native_row.name)
            elif math.isfinite(lower) and math.isfinite(upper):
                # one row: the slack absorbs the width of the range
                slack = cbc.add_var(name=f"{native_row.name}_rng", lb=0.0, ub=upper - lower)
                cbc.add_constr(expr + slack == upper, name=native_row.name)
            elif math.isfinite(lower):
                cbc.add_constr(expr >= lower, name=native_row.name)
            elif math.isfinite(upper):
                cbc.add_constr(expr <= upper, name=native_row.name)

        cbc.objective = xsum(coef * variables[col - 1] for col, coef in self._objective.items())
        cbc.sense = MAXIMIZE if self._maximize else MINIMIZE

        for sos in self._sos:
            if sos.columns:
                cbc.add_sos([(variables[col - 1], weight) for col, weight in zip(sos.columns, sos.weights)], sos.sos_type)

        self._cbc_vars = variables
        return variables

    def _configure_cbc(self) -> None:
        cbc = self._cbc
        settings = self._settings
        cbc.verbose = 1 if settings["verbose"] >= Verbosity.NORMAL or settings["trace"] or settings["debug"] else 0
        cbc.integer_tol = settings["epsint"]
        cbc.max_mip_gap_abs = settings["mip_gap_abs"]
        cbc.max_mip_gap = settings["mip_gap_rel"]
        cbc.preprocess = -1 if settings["presolve"] else 0
        if self.get_simplextype() in (SimplexType.PRIMAL_PRIMAL, SimplexType.DUAL_PRIMAL):
            cbc.lp_method = LP_Method.PRIMAL
        else:
            cbc.lp_method = LP_Method.DUAL
        if not self.is_infinite(settings["obj_bound"]):
            cbc.cutoff = settings["obj_bound"]
        for name in _UNMAPPED_SETTINGS:
            if settings[name] != _DEFAULT_SETTINGS[name]:
                _LOGGER.debug("Setting %s=%s is kept but not applied by CBC", name, settings[name])

    def _empty_row_violated(self) -> bool:
        tolerance = self._settings["epsint"]
        for native_row in self._rows:
            if native_row.entries:
                continue
            lower, upper = self._row_bounds(native_row)
            if lower > tolerance or upper < -tolerance:
                self._log(f"Empty row {native_row.name} excludes zero activity")
                return True
        return False

    def _capture_incumbent(self, variables) -> None:
        values = [variable.x for variable in variables]
        if any(value is None for value in values):
            return
        objective = sum(coef * values[col - 1] for col, coef in self._objective.items())
        improved = self._incumbent is None or (
            objective > self._objective_value if self._maximize else objective < self._objective_value
        )
        if self._incumbent is None:
            self._message(MessageMask.MILPFEASIBLE if self._is_mip() else MessageMask.LPFEASIBLE)
        if improved:
            self._incumbent = values
            self._objective_value = objective
            self._solution_count += 1
            self._message(MessageMask.MILPBETTER if self._is_mip() else MessageMask.LPOPTIMAL)

    def _optimize(self, variables) -> SolveReturn:
        """Run CBC, in doubling time slices when an abort function is installed on a MIP."""
        cbc = self._cbc
        timeout = self._settings["timeout"]
        deadline = time.perf_counter() + timeout if timeout and timeout > 0 else math.inf
        max_solutions = 1 if self._settings["break_at_first"] else INT_MAX
        sliced = self._abort_func is not None and self._is_mip()
        slice_seconds = ABORT_POLL_SECONDS

        while True:
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return SolveReturn.SUBOPTIMAL if self._incumbent is not None else SolveReturn.TIMEOUT
            budget = min(remaining, slice_seconds) if sliced else remaining
            status = cbc.optimize(max_seconds=budget, max_solutions=max_solutions)
            if status in (OptimizationStatus.OPTIMAL, OptimizationStatus.FEASIBLE):
                self._capture_incumbent(variables)
            if cbc.objective_bound is not None:
                self._objective_bound = cbc.objective_bound

            result = _CBC_STATUS.get(status, SolveReturn.UNKNOWNERROR)
            interrupted = status in (OptimizationStatus.FEASIBLE, OptimizationStatus.NO_SOLUTION_FOUND)
            if not sliced or not interrupted or self._settings["break_at_first"]:
                return result
            if self._abort_requested():
                return SolveReturn.USERABORT
            if self._incumbent is not None:
                cbc.start = list(zip(variables, self._incumbent))
            slice_seconds *= 2

    def solve(self) -> SolveReturn:
        """Solve the model and return the outcome."""
        self._reset_results()
        start = time.perf_counter()
        try:
            self._status = self._run()
        finally:
            self._elapsed = time.perf_counter() - start
        self._log(f"Solve finished with status {self._status.name} in {self._elapsed:.3f}s")
        return self._status

    def _run(self) -> SolveReturn:
        if self._empty_row_violated():
            return SolveReturn.INFEASIBLE

        variables = self._load_cbc()
        self._configure_cbc()
        self._log(f"Loaded {self.n_columns} columns, {self.n_rows} rows, {len(self._sos)} SOS constraints")
        if self._abort_requested():
            return SolveReturn.USERABORT

        self._message(MessageMask.PRESOLVE)
        status = self._optimize(variables)

        if self._incumbent is not None:
            self._store_solution()
        if status == SolveReturn.OPTIMAL and self._sensitivity:
            self._compute_sensitivity()
        return status

    def _store_solution(self) -> None:
        values = self._incumbent
        activities = [
            sum(coef * values[col - 1] for col, coef in native_row.entries.items())
            for native_row in self._rows
        ]
        self._solution = [self._objective_value] + activities + list(values)

    # ========== Sensitivity ==========

    def _load_highs(self, highs: highspy.Highs) -> None:
        """Load the LP of the final solution: integer and zero SOS columns fixed at the incumbent."""
        fixed = {col for col, column in enumerate(self._columns, start=1) if column.integer}
        for sos in self._sos:
            fixed.update(col for col in sos.columns if self._incumbent[col - 1] == 0.0)

        n_cols = len(self._columns)
        lower = np.array([column.lower for column in self._columns], dtype=np.double)
        upper = np.array([column.upper for column in self._columns], dtype=np.double)
        for col in fixed:
            lower[col - 1] = upper[col - 1] = self._incumbent[col - 1]

        highs.addVars(n_cols, lower, upper)
        costs = np.array([self._objective.get(col, 0.0) for col in range(1, n_cols + 1)], dtype=np.double)
        highs.changeColsCost(n_cols, np.arange(n_cols, dtype=np.int32), costs)
        if self._maximize:
            highs.changeObjectiveSense(highspy.ObjSense.kMaximize)

        # empty rows included: HiGHS row i is engine row i + 1
        for native_row in self._rows:
            row_lower, row_upper = self._row_bounds(native_row)
            indices = np.array([col - 1 for col in native_row.entries], dtype=np.int32)
            values = np.array(list(native_row.entries.values()), dtype=np.double)
            highs.addRow(row_lower, row_upper, len(indices), indices, values)

    def _compute_sensitivity(self) -> None:
        highs = highspy.Highs()
        highs.setOptionValue("output_flag", False)
        self._load_highs(highs)
        highs.run()
        if highs.getModelStatus() != highspy.HighsModelStatus.kOptimal:
            _LOGGER.warning("Sensitivity pass did not reach an optimal LP: %s",
                            highs.modelStatusToString(highs.getModelStatus()))
            return

        ranging = highs.getRanging()
        if isinstance(ranging, tuple):
            ranging = ranging[1]
        solution = highs.getSolution()
        outer = self._to_outer

        self._duals = [float(value) for value in solution.row_dual] + [float(value) for value in solution.col_dual]
        self._dual_lowers = [outer(v) for v in ranging.row_bound_dn.value_] + [outer(v) for v in ranging.col_bound_dn.value_]
        self._dual_uppers = [outer(v) for v in ranging.row_bound_up.value_] + [outer(v) for v in ranging.col_bound_up.value_]
        self._obj_lowers = [outer(v) for v in ranging.col_cost_dn.value_]
        self._obj_uppers = [outer(v) for v in ranging.col_cost_up.value_]
        self._total_iter = highs.getInfo().simplex_iteration_count
        self._log(f"Sensitivity computed in {self._total_iter} simplex iterations")

    def get_sensitivity_obj(self) -> Optional[tuple[list[float], list[float]]]:
        """Objective ranging arrays (lower limits, upper limits), one entry per column."""
        if self._obj_lowers is None:
            return None
        return list(self._obj_lowers), list(self._obj_uppers)

    def get_sensitivity_rhs(self) -> Optional[tuple[list[float], list[float], list[float]]]:
        """Duals and their validity limits: rows first, then columns."""
        if self._duals is None:
            return None
        return list(self._duals), list(self._dual_lowers), list(self._dual_uppers)

    def get_var_dualresult(self, index: int) -> float:
        """Dual of row index, or reduced cost of column index - n_rows."""
        if self._duals is None or not 1 <= index <= len(self._duals):
            return 0.0
        return self._duals[index - 1]

    # ========== Results and statistics ==========

    def get_status(self) -> SolveReturn:
        return self._status

    def get_primal_solution(self) -> Optional[list[float]]:
        """[objective, row activities..., column values...] or None without a solution."""
        if self._solution is None:
            return None
        return list(self._solution)

    def get_objective(self) -> float:
        return self._objective_value

    def get_working_objective(self) -> float:
        return self._objective_value

    def get_obj_bound(self) -> float:
        return self._to_outer(self._objective_bound)

    def get_solutioncount(self) -> int:
        return self._solution_count

    def get_total_iter(self) -> int:
        return self._total_iter

    def get_total_nodes(self) -> int:
        return self._total_nodes

    def time_elapsed(self) -> float:
        return self._elapsed

    # ========== Files ==========

    def _write_cbc(self, filename: str, suffix: str) -> bool:
        self._load_cbc()
        with tempfile.TemporaryDirectory() as directory:
            try:
                self._cbc.write(f"{directory}/model{suffix}")
                # CBC may add its own extension and gzip MPS output
                written = sorted(glob.glob(f"{directory}/model{suffix}*"))
                if not written:
                    raise FileNotFoundError(f"CBC produced no {suffix} file")
                if written[0].endswith(".gz"):
                    with gzip.open(written[0], "rb") as src, open(filename, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                else:
                    shutil.copyfile(written[0], filename)
            except OSError as exc:
                _LOGGER.error("Could not write %s: %s", filename, exc)
                return False
        return True

    def write_lp(self, filename: str) -> bool:
        return self._write_cbc(filename, ".lp")

    def write_mps(self, filename: str, free: bool = False) -> bool:
        # CBC writes a single MPS dialect
        return self._write_cbc(filename, ".mps")

    def write_params(self, filename: str, options: str = "") -> bool:
        """Write the engine settings to an INI file."""
        parser = configparser.ConfigParser()
        parser.optionxform = str
        parser[_header_from_options(options)] = {
            _params_file_key(name): str(int(value) if isinstance(value, IntEnum) else value)
            for name, value in self._settings.items()
        }
        try:
            with open(filename, "w", encoding="utf-8") as f:
                parser.write(f)
        except OSError as exc:
            _LOGGER.error("Could not write params file %s: %s", filename, exc)
            return False
        return True

    def read_params(self, filename: str, options: str = "") -> bool:
        """Apply the settings found in an INI file written by write_params.

        Raises:
            UnsupportedPropertyError: if the file names an unknown setting
            ValueError: if a value cannot be converted to the setting's type
        """
        parser = configparser.ConfigParser()
        parser.optionxform = str
        if not parser.read(filename, encoding="utf-8"):
            return False
        header = _header_from_options(options)
        if header not in parser:
            return False

        section = parser[header]
        for key in section:
            if key not in _PARAMS_FILE_NAMES:
                raise UnsupportedPropertyError(f"Unknown params file key {key!r}")
            name = _PARAMS_FILE_NAMES[key]
            default = _DEFAULT_SETTINGS[name]
            if isinstance(default, bool):
                value = section.getboolean(key)
            elif isinstance(default, IntEnum):
                value = type(default)(int(section[key]))
            elif isinstance(default, int):
                value = int(section[key])
            else:
                value = float(section[key])
            self.set_param(name, value)
        return True

    def to_dict(self, results: bool = False) -> dict:
        """Plain-data view of the model, and optionally of the last results."""
        data = {
            "sense": "max" if self._maximize else "min",
            "objective": {str(col): coef for col, coef in self._objective.items()},
            "columns": [
                {"name": c.name, "lower": self._to_outer(c.lower), "upper": self._to_outer(c.upper), "integer": c.integer}
                for c in self._columns
            ],
            "rows": [
                {
                    "name": r.name,
                    "type": r.constr_type.name,
                    "rh": self._to_outer(r.rh),
                    "range": None if r.range is None else self._to_outer(r.range),
                    "entries": {str(col): coef for col, coef in r.entries.items()},
                }
                for r in self._rows
            ],
            "sos": [
                {"name": s.name, "type": s.sos_type, "priority": s.priority, "columns": s.columns, "weights": s.weights}
                for s in self._sos
            ],
        }
        if results:
            data["results"] = {
                "status": self._status.name,
                "objective": self._objective_value,
                "solution": self._solution,
            }
        return data

    def print_debugdump(self, filename: str) -> bool:
        """Write a readable dump of columns, rows, sets and settings."""
        lines = [f"Model: {self.n_columns} columns, {self.n_rows} rows, {len(self._sos)} SOS",
                 f"Sense: {'maximize' if self._maximize else 'minimize'}",
                 f"Objective: {self._objective}"]
        for col, column in enumerate(self._columns, start=1):
            kind = "int" if column.integer else "real"
            lines.append(f"C{col} {column.name} {kind} [{self._to_outer(column.lower)}, {self._to_outer(column.upper)}]")
        for row, native_row in enumerate(self._rows, start=1):
            range_text = "" if native_row.range is None else f" range {native_row.range}"
            lines.append(f"R{row} {native_row.name} {native_row.constr_type.name} {native_row.rh}{range_text} {native_row.entries}")
        for sos in self._sos:
            lines.append(f"{sos.name} type {sos.sos_type} priority {sos.priority} {list(zip(sos.columns, sos.weights))}")
        lines.extend(f"{name}={value}" for name, value in self._settings.items())
        lines.append(f"Status: {self._status.name}")
        try:
            with open(filename, "w", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        except OSError as exc:
            _LOGGER.error("Could not write debug dump %s: %s", filename, exc)
            return False
        return True

    def set_xli(self, name: str) -> bool:
        """Select a registered external-format exporter."""
        if name not in XLI_EXPORTERS:
            return False
        self._xli = name
        return True

    def write_xli(self, filename: str, options: str = "", results: bool = False) -> bool:
        if self._xli is None:
            return False
        return XLI_EXPORTERS[self._xli](self, filename, options, results)

    def delete(self) -> None:
        """Release the engine model."""
        self._cbc = None
        self._cbc_vars = None
        self._columns = []
        self._rows = []
        self._sos = []
        self._objective = {}
        self._abort_func = None
        self._log_func = None
        self._msg_func = None


def _write_json(lp: NativeLp, filename: str, options: str, results: bool) -> bool:
    try:
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(lp.to_dict(results), f, indent=2)
    except OSError as exc:
        _LOGGER.error("Could not write %s: %s", filename, exc)
        return False
    return True


XLI_EXPORTERS: dict[str, Callable[[NativeLp, str, str, bool], bool]] = {
    "xli_CPLEX": lambda lp, filename, options, results: lp.write_lp(filename),
    "xli_MPS": lambda lp, filename, options, results: lp.write_mps(filename, free="-free" in options),
    "xli_JSON": _write_json,
}


def register_xli(name: str, exporter: Callable[[NativeLp, str, str, bool], bool]) -> None:
    """Make an external-format exporter available to NativeLp.set_xli."""
    XLI_EXPORTERS[name] = exporter
