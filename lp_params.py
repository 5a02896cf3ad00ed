"""Engine tuning parameters.

The values are handed to the native engine unmodified. Defaults are the
engine defaults callers of the adapter expect.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

from frozendict import frozendict

DEFAULT_INFINITE = 1.0e30


class SimplexType(IntEnum):
    """Simplex algorithm for phase 1 and phase 2."""
    PRIMAL_PRIMAL = 5
    DUAL_PRIMAL = 6
    PRIMAL_DUAL = 9
    DUAL_DUAL = 10


class BranchMode(IntEnum):
    """Which branch is taken first in branch-and-bound."""
    CEILING = 0
    FLOOR = 1
    AUTOMATIC = 2
    DEFAULT = 3


class Verbosity(IntEnum):
    NEUTRAL = 0
    CRITICAL = 1
    SEVERE = 2
    IMPORTANT = 3
    NORMAL = 4
    DETAILED = 5
    FULL = 6


# Names of the settings passed to NativeLp.set_param, in params-file order.
TUNING_NAMES = (
    "anti_degen",
    "basis_crash",
    "bb_depth_limit",
    "bb_floor_first",
    "bb_rule",
    "break_at_first",
    "break_at_value",
    "debug",
    "epsb",
    "epsd",
    "epsel",
    "epsint",
    "epsperturb",
    "epspivot",
    "improve",
    "infinite",
    "max_pivot",
    "mip_gap_abs",
    "mip_gap_rel",
    "negrange",
    "obj_bound",
    "obj_in_basis",
    "pivoting",
    "presolve",
    "presolve_max_loops",
    "scale_limit",
    "scaling",
    "simplex_type",
    "solution_limit",
    "timeout",
    "trace",
    "verbose",
)


@dataclass
class SolverParams:
    """Parameters for one solve.

    Tuning values are passed through to the engine. query_abort is polled
    during the solve; returning True aborts it. get_sensitivity must be set
    before solving for the sensitivity report to be available.
    """
    anti_degen: int = 37
    basis_crash: int = 0
    bb_depth_limit: int = -50
    bb_floor_first: BranchMode = BranchMode.CEILING
    bb_rule: int = 0
    break_at_first: bool = False
    break_at_value: float = -DEFAULT_INFINITE
    debug: bool = False
    epsb: float = 1e-10
    epsd: float = 1e-9
    epsel: float = 1e-12
    epsint: float = 1e-7
    epsperturb: float = 1e-5
    epspivot: float = 2e-7
    improve: int = 6
    infinite: float = DEFAULT_INFINITE
    max_pivot: int = 250
    mip_gap_abs: float = 1e-11
    mip_gap_rel: float = 1e-9
    negrange: float = -1e-6
    obj_bound: float = DEFAULT_INFINITE
    obj_in_basis: bool = True
    pivoting: int = 34
    presolve: int = 0
    presolve_max_loops: int = -1
    scale_limit: float = 5.0
    scaling: int = 196
    simplex_type: SimplexType = SimplexType.DUAL_PRIMAL
    solution_limit: int = 1
    timeout: float = 0.0
    trace: bool = False
    verbose: int = Verbosity.CRITICAL

    log_file: str = ""
    log_func: Optional[Callable[[str], None]] = field(default=None, repr=False)
    msg_func: Optional[Callable[[int], None]] = field(default=None, repr=False)
    solving: Optional[Callable[[], None]] = field(default=None, repr=False)
    query_abort: Optional[Callable[[], bool]] = field(default=None, repr=False)
    get_sensitivity: bool = False

    def native_settings(self) -> frozendict:
        """Return the tuning values keyed by engine setting name."""
        return frozendict((name, getattr(self, name)) for name in TUNING_NAMES)
