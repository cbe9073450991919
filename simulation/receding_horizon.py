"""Closed-loop receding-horizon simulation.

Each step:
1. Solves the MPC problem from the current true state
2. Takes only the first element of the optimized input sequence
3. Advances the true state with x_next = A·x + B·u
4. Logs the applied input, resulting state and solver diagnostics

The remaining N-1 planned inputs are discarded and recomputed at the
next step.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import yaml

from plant.discretization import DiscreteDynamics, step_dynamics
from mpc import LinearMPCSolver, MPCSolution, SolverConvergenceError


logger = logging.getLogger(__name__)

# What to do with the input of a non-converged solve
FAILURE_POLICIES = ('apply', 'zero', 'raise')


@dataclass(frozen=True)
class ClosedLoopConfig:
    """Configuration for a closed-loop run.

    Attributes:
        num_steps: Total number of simulated steps T
        initial_state: True state at step 0
        reference: Constant target state
        failure_policy: Handling of a non-converged solve:
            'apply' uses the optimizer's best available input and logs a warning,
            'zero' applies a zero input (both clipped to the input box),
            'raise' stops with SolverConvergenceError
    """

    num_steps: int
    initial_state: Tuple[float, ...]
    reference: Tuple[float, ...]
    failure_policy: str = 'apply'

    def __post_init__(self) -> None:
        """Validate step count, vector lengths and failure policy."""
        if isinstance(self.num_steps, bool) or not isinstance(self.num_steps, int) \
                or self.num_steps <= 0:
            raise ValueError(
                f"num_steps must be a positive integer, got {self.num_steps}"
            )
        if len(self.initial_state) != len(self.reference):
            raise ValueError(
                f"initial_state has {len(self.initial_state)} entries but "
                f"reference has {len(self.reference)}"
            )
        if not np.all(np.isfinite(np.array(self.initial_state, dtype=float))):
            raise ValueError(f"initial_state must be finite, got {self.initial_state}")
        if not np.all(np.isfinite(np.array(self.reference, dtype=float))):
            raise ValueError(f"reference must be finite, got {self.reference}")
        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(
                f"failure_policy must be one of {FAILURE_POLICIES}, "
                f"got '{self.failure_policy}'"
            )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ClosedLoopConfig':
        """Load closed-loop settings from YAML.

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If required parameters missing or invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file)

        try:
            return cls(
                num_steps=config['num_steps'],
                initial_state=tuple(float(value) for value in config['initial_state']),
                reference=tuple(float(value) for value in config['reference']),
                failure_policy=config.get('failure_policy', 'apply'),
            )
        except KeyError as error:
            raise ValueError(
                f"Missing simulation parameter {error} in {yaml_path}"
            ) from error


@dataclass
class SimulationResult:
    """Results from a closed-loop run.

    Attributes:
        state_history: True states x_0..x_T (T+1, n)
        control_history: Applied inputs u_0..u_{T-1} (T, m)
        planned_control_history: Full optimized sequences (T, N, m)
        predicted_state_history: Predicted trajectories (T, N, n)
        cost_history: Optimal cost per step (T,)
        solve_time_history: Optimizer wall-clock time per step (T,)
        iteration_history: Optimizer iterations per step (T,)
        converged_history: Optimizer success flag per step (T,)
        constraint_violation_history: Max constraint violation per step (T,)
        solver_status_history: Optimizer status message per step
    """

    state_history: np.ndarray
    control_history: np.ndarray
    planned_control_history: np.ndarray
    predicted_state_history: np.ndarray
    cost_history: np.ndarray
    solve_time_history: np.ndarray
    iteration_history: np.ndarray
    converged_history: np.ndarray
    constraint_violation_history: np.ndarray
    solver_status_history: List[str] = field(default_factory=list)

    @property
    def num_steps(self) -> int:
        return self.control_history.shape[0]

    @property
    def final_state(self) -> np.ndarray:
        return self.state_history[-1].copy()

    @property
    def all_converged(self) -> bool:
        """True when every step's optimizer reported success."""
        return bool(np.all(self.converged_history))

    @property
    def failed_steps(self) -> List[int]:
        """Indices of steps whose solve did not converge."""
        return [int(index) for index in np.flatnonzero(~self.converged_history)]

    @property
    def mean_solve_time_ms(self) -> float:
        if self.solve_time_history.size == 0:
            return 0.0
        return float(1000.0 * np.mean(self.solve_time_history))

    @property
    def max_solve_time_ms(self) -> float:
        if self.solve_time_history.size == 0:
            return 0.0
        return float(1000.0 * np.max(self.solve_time_history))

    def within_bounds(self, lower, upper, tolerance: float = 1e-6) -> bool:
        """Check every recorded state lies inside [lower, upper] component-wise."""
        lower = np.asarray(lower, dtype=float)
        upper = np.asarray(upper, dtype=float)
        return bool(
            np.all(self.state_history >= lower - tolerance)
            and np.all(self.state_history <= upper + tolerance)
        )


class RecedingHorizonSimulation:
    """Closed-loop MPC on a discrete linear plant.

    The simulation owns the true state; the solver only ever sees the
    state at the current step.
    """

    def __init__(
        self,
        solver: LinearMPCSolver,
        dynamics: DiscreteDynamics,
        config: ClosedLoopConfig,
    ) -> None:
        """Initialize the closed loop.

        Args:
            solver: Configured MPC solver
            dynamics: True plant used to advance the state
            config: Step count, initial state, reference, failure policy

        Raises:
            ValueError: If solver, plant and config dimensions disagree
        """
        if solver.state_dimension != dynamics.state_dimension:
            raise ValueError(
                f"Solver expects {solver.state_dimension} states, "
                f"plant has {dynamics.state_dimension}"
            )
        if solver.control_dimension != dynamics.control_dimension:
            raise ValueError(
                f"Solver expects {solver.control_dimension} inputs, "
                f"plant has {dynamics.control_dimension}"
            )
        if len(config.initial_state) != dynamics.state_dimension:
            raise ValueError(
                f"initial_state must have {dynamics.state_dimension} entries, "
                f"got {len(config.initial_state)}"
            )

        self._solver = solver
        self._dynamics = dynamics
        self._config = config
        self._reference = np.array(config.reference, dtype=float)

    def step(
        self,
        state: np.ndarray,
        step_index: int = 0,
    ) -> Tuple[np.ndarray, np.ndarray, MPCSolution]:
        """Run one predict -> optimize -> apply -> advance cycle.

        Args:
            state: Current true state (n,)
            step_index: Step counter used in diagnostics

        Returns:
            Tuple of (applied control (m,), next state (n,), solution)

        Raises:
            SolverConvergenceError: If the solve failed and the failure
                policy is 'raise'
        """
        solution = self._solver.solve(state, self._reference)
        applied_control = solution.optimal_control.copy()

        if not solution.converged:
            policy = self._config.failure_policy
            if policy == 'raise':
                raise SolverConvergenceError(step_index, solution)
            if policy == 'zero':
                logger.warning(
                    "Step %d: solver failed (%s), applying zero input",
                    step_index, solution.solver_status,
                )
                applied_control = np.zeros_like(applied_control)
            else:
                logger.warning(
                    "Step %d: solver failed (%s), applying best available input %s",
                    step_index, solution.solver_status, applied_control,
                )
            # Fallback inputs still respect the input box
            control_lower, control_upper = self._solver.input_constraints.get_bounds(
                self._solver.control_dimension
            )
            applied_control = np.clip(applied_control, control_lower, control_upper)

        next_state = step_dynamics(self._dynamics, state, applied_control)

        logger.debug(
            "Step %d: u=%s x_next=%s cost=%.6g",
            step_index, applied_control, next_state, solution.cost,
        )
        return applied_control, next_state, solution

    def run(self, initial_state: Optional[np.ndarray] = None) -> SimulationResult:
        """Run the closed loop for the configured number of steps.

        Every run starts cold: a stored warm start from an earlier run is
        discarded, so identical inputs reproduce the same trajectory.

        Args:
            initial_state: Overrides the configured initial state

        Returns:
            SimulationResult with logged data
        """
        self._solver.reset_warm_start()

        num_steps = self._config.num_steps
        horizon = self._solver.prediction_horizon_steps
        n_states = self._dynamics.state_dimension
        n_controls = self._dynamics.control_dimension

        if initial_state is None:
            initial_state = self._config.initial_state
        state = np.asarray(initial_state, dtype=float).flatten()

        state_history = np.zeros((num_steps + 1, n_states))
        control_history = np.zeros((num_steps, n_controls))
        planned_control_history = np.zeros((num_steps, horizon, n_controls))
        predicted_state_history = np.zeros((num_steps, horizon, n_states))
        cost_history = np.zeros(num_steps)
        solve_time_history = np.zeros(num_steps)
        iteration_history = np.zeros(num_steps, dtype=int)
        converged_history = np.zeros(num_steps, dtype=bool)
        violation_history = np.zeros(num_steps)
        status_history: List[str] = []

        logger.info(
            "Running %d closed-loop steps (N=%d) from x0=%s towards %s",
            num_steps, horizon, state, self._reference,
        )

        state_history[0] = state
        for step_index in range(num_steps):
            applied_control, state, solution = self.step(state, step_index)

            state_history[step_index + 1] = state
            control_history[step_index] = applied_control
            planned_control_history[step_index] = solution.control_sequence
            predicted_state_history[step_index] = solution.predicted_trajectory
            cost_history[step_index] = solution.cost
            solve_time_history[step_index] = solution.solve_time_s
            iteration_history[step_index] = solution.solver_iterations
            converged_history[step_index] = solution.converged
            violation_history[step_index] = solution.max_constraint_violation
            status_history.append(solution.solver_status)

        result = SimulationResult(
            state_history=state_history,
            control_history=control_history,
            planned_control_history=planned_control_history,
            predicted_state_history=predicted_state_history,
            cost_history=cost_history,
            solve_time_history=solve_time_history,
            iteration_history=iteration_history,
            converged_history=converged_history,
            constraint_violation_history=violation_history,
            solver_status_history=status_history,
        )

        if result.all_converged:
            logger.info(
                "Closed loop finished: final state %s, mean solve %.2f ms",
                result.final_state, result.mean_solve_time_ms,
            )
        else:
            logger.warning(
                "Closed loop finished with %d non-converged steps: %s",
                len(result.failed_steps), result.failed_steps,
            )
        return result

    @property
    def solver(self) -> LinearMPCSolver:
        return self._solver

    @property
    def dynamics(self) -> DiscreteDynamics:
        return self._dynamics

    @property
    def config(self) -> ClosedLoopConfig:
        return self._config
