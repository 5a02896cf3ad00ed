"""LP solver lifecycle.

LpSolver owns one engine instance for one model. It translates the model,
solves it once, copies the results back and answers queries about the solve.
solve() and shutdown() may be called from different threads.

    with LpSolver(model) as solver:
        solver.solve(SolverParams(get_sensitivity=True))
        if solver.result == LinearResult.OPTIMAL:
            ...
"""

import logging
import math
import threading
from enum import Enum, IntEnum
from typing import Any, Callable, Optional

from errors import LpSolverModelError, UnsupportedPropertyError
from linear_model import VARIABLE_LOWER_BOUND, VARIABLE_UPPER_BOUND, LinearModel
from lp_native import MessageMask, NativeLp, SolveReturn
from lp_params import SimplexType, SolverParams
from lp_report import SolverReport
from lp_result import LinearResult, SolutionQuality, linear_result, solution_quality
from model_translator import TranslatedModel, build_native_model
from result_extractor import extract_results
from sensitivity import SensitivityReport

_LOGGER = logging.getLogger("lpadapter")

# Engine messages forwarded to msg_func and the solving event
MESSAGE_MASK = (
    MessageMask.PRESOLVE
    | MessageMask.LPFEASIBLE
    | MessageMask.LPOPTIMAL
    | MessageMask.LPEQUAL
    | MessageMask.MILPFEASIBLE
    | MessageMask.MILPBETTER
)

ITERATION_COUNT = "IterationCount"
NODE_COUNT = "NodeCount"
GOAL_BOUND = "GoalBound"
GOAL_VALUE = "GoalValue"
PIVOT_COUNT = "PivotCount"
ELAPSED_TIME = "ElapsedTime"
PRESOLVE_LOOPS = "PresolveLoops"
MIP_GAP = "MipGap"


class SolverState(IntEnum):
    START = 0
    SOLVING = 1
    SOLVED = 2
    ABORTING = 3
    ABORTED = 4
    DISPOSING = 5
    DISPOSED = 6


class ReportType(Enum):
    SENSITIVITY = "SENSITIVITY"
    INFEASIBILITY = "INFEASIBILITY"
    SOLVER_DETAILS = "SOLVER_DETAILS"


class SimplexAlgorithm(Enum):
    PRIMAL = "PRIMAL"
    DUAL = "DUAL"


_FINISHED = (SolverState.SOLVED, SolverState.ABORTED)


class LpSolver:
    """Solve a LinearModel once and expose the results."""

    def __init__(self, model: LinearModel, native_factory: Callable[[int], Optional[NativeLp]] = NativeLp):
        self.model = model
        self._native_factory = native_factory
        self._condition = threading.Condition()
        self._state = SolverState.START
        self._translated: Optional[TranslatedModel] = None
        self._status = SolveReturn.NOTRUN
        self._get_sensitivity = False

    def __enter__(self) -> "LpSolver":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def __del__(self):
        if getattr(self, "_condition", None) is not None:
            self.shutdown()

    # ========== State ==========

    @property
    def state(self) -> SolverState:
        return self._state

    def _compare_exchange(self, new: SolverState, expected: SolverState) -> bool:
        with self._condition:
            if self._state != expected:
                return False
            self._state = new
            self._condition.notify_all()
            return True

    def _set_state(self, state: SolverState) -> None:
        with self._condition:
            self._state = state
            self._condition.notify_all()

    def _abort_callback(self, query_abort: Optional[Callable[[], bool]]) -> Optional[Callable[[], bool]]:
        if query_abort is None:
            return None

        def abort() -> bool:
            if query_abort():
                self._set_state(SolverState.ABORTING)
                return True
            return False
        return abort

    @staticmethod
    def _message_callback(params: SolverParams) -> Optional[Callable[[int], None]]:
        if params.msg_func is None and params.solving is None:
            return None

        def on_message(msg: int) -> None:
            if params.msg_func is not None:
                params.msg_func(msg)
            if params.solving is not None:
                params.solving()
        return on_message

    # ========== Solve ==========

    def solve(self, params: Optional[SolverParams] = None) -> "LpSolver":
        """Solve the model.

        Precondition:
            the model has at least one variable

        Postcondition:
            state is SOLVED or ABORTED, unless the solver was shut down first;
            variable, row and goal values of the model hold the solution

        Only the first call solves. A call that races with a running solve
        waits for it to finish; later calls return immediately.

        Args:
            params: engine settings and callbacks; defaults to SolverParams()

        Returns:
            self

        Raises:
            EmptyModelError: if the model has no variables
            NativeCreationError: if the engine could not be created
        """
        if self._state in (SolverState.DISPOSING, SolverState.DISPOSED):
            return self

        if not self._compare_exchange(SolverState.SOLVING, SolverState.START):
            with self._condition:
                self._condition.wait_for(lambda: self._state in _FINISHED or self._state >= SolverState.DISPOSING)
            return self

        if params is None:
            params = SolverParams()

        try:
            self._run(params)
        except Exception:
            _LOGGER.exception("Solve aborted by an error")
            self._set_state(SolverState.ABORTED)
            raise

        with self._condition:
            if self._state == SolverState.ABORTING:
                self._state = SolverState.ABORTED
            elif self._state == SolverState.SOLVING:
                self._state = SolverState.SOLVED
            self._condition.notify_all()
        _LOGGER.info("Solve finished in state %s with status %s", self._state.name, self._status.name)
        return self

    def _run(self, params: SolverParams) -> None:
        self._get_sensitivity = params.get_sensitivity
        translated = build_native_model(self.model, self._native_factory, params.infinite)
        self._translated = translated
        lp = translated.lp

        for name, value in params.native_settings().items():
            lp.set_param(name, value)
        lp.set_sensitivity(params.get_sensitivity)
        lp.set_outputfile(params.log_file)
        lp.put_abortfunc(self._abort_callback(params.query_abort))
        lp.put_logfunc(params.log_func)
        lp.put_msgfunc(self._message_callback(params), MESSAGE_MASK)

        _LOGGER.info("Solving %s columns and %s rows", lp.n_columns, lp.n_rows)
        self._status = lp.solve()
        extract_results(lp, translated.column_map, translated.row_map, self.model)

    def shutdown(self) -> None:
        """Release the engine instance; waits for a running solve to finish."""
        with self._condition:
            if self._state == SolverState.DISPOSED:
                return
            if self._state == SolverState.DISPOSING:
                self._condition.wait_for(lambda: self._state == SolverState.DISPOSED)
                return
            if self._state != SolverState.START:
                self._condition.wait_for(lambda: self._state in _FINISHED)
            self._state = SolverState.DISPOSING
            self._condition.notify_all()

        if self._translated is not None:
            self._translated.lp.delete()
            self._translated = None
        self._set_state(SolverState.DISPOSED)
        _LOGGER.info("Solver shut down")

    # ========== Solution ==========

    @property
    def _lp(self) -> NativeLp:
        if self._translated is None:
            raise LpSolverModelError("The solver has no native model; call solve() first")
        return self._translated.lp

    @property
    def has_solution(self) -> bool:
        return self._translated is not None and self._state in _FINISHED

    @property
    def status(self) -> SolveReturn:
        return self._status

    @property
    def lp_result(self) -> LinearResult:
        return linear_result(self._status, self._lp.get_simplextype(), is_mip=False)

    @property
    def mip_result(self) -> LinearResult:
        return linear_result(self._status, self._lp.get_simplextype(), is_mip=True)

    @property
    def result(self) -> LinearResult:
        return self.mip_result if self.model.is_mip_model else self.lp_result

    @property
    def solution_quality(self) -> SolutionQuality:
        return solution_quality(self._status)

    @property
    def solved_goal_count(self) -> int:
        if self.model.goal_count == 0:
            return 0
        return 1 if self._lp.get_solutioncount() > 0 else 0

    def get_solved_goal(self, goal_index: int) -> tuple[Any, int, bool, bool]:
        """Return (key, vid, minimize, optimal) of a solved goal."""
        goal = self.model.goals[goal_index]
        return goal.key, goal.index, goal.minimize, self._status == SolveReturn.OPTIMAL

    @property
    def mip_best_bound(self) -> float:
        if self.model.is_mip_model:
            return self._lp.get_obj_bound()
        return math.nan

    def get_value(self, vid: int) -> float:
        return self.model.get_value(vid)

    def get_solution_value(self, goal_vid: int) -> float:
        return self.model.get_value(goal_vid)

    # ========== Statistics ==========

    @property
    def inner_index_count(self) -> int:
        return self._lp.n_rows + self._lp.n_columns

    @property
    def inner_integer_index_count(self) -> int:
        lp = self._lp
        return sum(1 for column in range(1, lp.n_columns + 1) if lp.is_int(column))

    @property
    def inner_slack_count(self) -> int:
        return self._lp.n_rows

    @property
    def inner_row_count(self) -> int:
        return self._lp.n_rows

    @property
    def pivot_count(self) -> int:
        return self._lp.get_maxpivot()

    @property
    def branch_count(self) -> int:
        return self._lp.get_total_nodes()

    @property
    def gap(self) -> float:
        return self._lp.get_mip_gap(True)

    @property
    def algorithm_used(self) -> SimplexAlgorithm:
        if self._lp.get_simplextype() in (SimplexType.PRIMAL_PRIMAL, SimplexType.DUAL_PRIMAL):
            return SimplexAlgorithm.PRIMAL
        return SimplexAlgorithm.DUAL

    @property
    def iteration_count(self) -> int:
        return self._lp.get_total_iter()

    @property
    def node_count(self) -> int:
        return self._lp.get_total_nodes()

    @property
    def presolve_loops(self) -> int:
        return self._lp.get_presolveloops()

    @property
    def goal_value(self) -> float:
        return self._lp.get_working_objective()

    @property
    def elapsed_time(self) -> float:
        return self._lp.time_elapsed()

    # ========== Properties ==========

    def get_property(self, name: str, vid: int = -1) -> Any:
        """Read a named solver property.

        Raises:
            UnsupportedPropertyError: if name is not a solver property
        """
        if name == ITERATION_COUNT:
            return self.iteration_count
        if name == NODE_COUNT:
            return self.node_count
        if name == GOAL_BOUND:
            return self._lp.get_obj_bound()
        if name == GOAL_VALUE:
            return self.goal_value
        if name == PIVOT_COUNT:
            return self.pivot_count
        if name == ELAPSED_TIME:
            return self.elapsed_time
        if name == PRESOLVE_LOOPS:
            return self.presolve_loops
        if name == MIP_GAP:
            return self.gap
        if name in (VARIABLE_LOWER_BOUND, VARIABLE_UPPER_BOUND):
            return self.model.get_property(name, vid)
        raise UnsupportedPropertyError(f"Property {name!r} is not supported")

    def set_property(self, name: str, vid: int, value: Any) -> None:
        if name in (VARIABLE_LOWER_BOUND, VARIABLE_UPPER_BOUND):
            self.model.set_property(name, vid, value)
        else:
            raise UnsupportedPropertyError(f"Property {name!r} is not supported")

    # ========== Reports ==========

    def get_report(self, report_type: ReportType):
        """Return the requested report, or None when it is not available.

        The sensitivity report exists only when get_sensitivity was set for
        the solve.
        """
        if report_type == ReportType.SENSITIVITY:
            lp = self._lp
            if not self._get_sensitivity:
                return None
            translated = self._translated
            return SensitivityReport(lp, translated.column_map, translated.row_map, translated.infinite)
        if report_type == ReportType.SOLVER_DETAILS:
            return SolverReport(self)
        return None

    # ========== Export ==========

    def write_lp(self, filename: str) -> bool:
        return self._lp.write_lp(filename)

    def write_mps(self, filename: str, free: bool = False) -> bool:
        return self._lp.write_mps(filename, free)

    def write_params(self, filename: str, options: str = "") -> bool:
        return self._lp.write_params(filename, options)

    def write_xli(self, xli_name: str, filename: str, options: str = "", results: bool = False) -> bool:
        lp = self._lp
        return lp.set_xli(xli_name) and lp.write_xli(filename, options, results)

    def print_debug_dump(self, filename: str) -> bool:
        return self._lp.print_debugdump(filename)
