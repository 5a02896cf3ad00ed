"""Exception types raised by the LP adapter."""


class LpSolverModelError(ValueError):
    """The caller built or queried the model in a way the solver cannot accept."""


class EmptyModelError(LpSolverModelError):
    """The model has no variables to solve for."""


class UnsupportedPropertyError(LpSolverModelError):
    """A property or engine setting name is not recognized."""


class NativeCreationError(RuntimeError):
    """The engine refused to allocate a native instance."""
