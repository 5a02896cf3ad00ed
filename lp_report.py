"""Plain-text solver details report."""

from errors import LpSolverModelError


class SolverReport:
    """Summary of a finished solve.

    The solver argument is an LpSolver; every accessor raises
    LpSolverModelError when the solver has nothing to report on.
    """

    def __init__(self, solver):
        self._solver = solver

    def _validate(self):
        if not self._solver.has_solution:
            raise LpSolverModelError("There is no solution to report on")

    @property
    def iteration_count(self) -> int:
        self._validate()
        return int(self._solver.iteration_count)

    @property
    def presolve_loops(self) -> int:
        self._validate()
        return int(self._solver.presolve_loops)

    @property
    def node_count(self) -> int:
        self._validate()
        return int(self._solver.node_count)

    @property
    def pivot_count(self) -> int:
        self._validate()
        return int(self._solver.pivot_count)

    def generate(self) -> str:
        self._validate()
        model = self._solver.model
        lines = [
            "===SolverDetails====",
            f"Iteration Count:{self.iteration_count}",
            f"Presolve loops:{self.presolve_loops}",
        ]
        if model.is_mip_model:
            lines.append(f"Node Count:{self.node_count}")
        else:
            lines.append(f"Pivot count:{self.pivot_count}")
        lines += [
            "===Model details===",
            f"Variables:{model.variable_count}",
            f"Rows:{model.row_count}",
            f"Non-zeros:{model.coefficient_count}",
            "===Solution details===",
            f"Result:{self._solver.result.value}",
            f"Goal value:{self._solver.goal_value}",
        ]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.generate()
