"""Exceptions raised by the MPC layer."""


class SolverConvergenceError(RuntimeError):
    """The optimizer did not converge and the caller asked to stop.

    Attributes:
        step_index: Closed-loop step at which the solve failed
        solution: The non-converged MPCSolution (best available iterate)
    """

    def __init__(self, step_index: int, solution) -> None:
        self.step_index = step_index
        self.solution = solution
        super().__init__(
            f"MPC solve did not converge at step {step_index}: "
            f"{solution.solver_status}"
        )
