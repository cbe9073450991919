"""Linear MPC solvers.

Each solve minimises, over the input sequence u_0..u_{N-1}, the cost

    sum_{i=0}^{N-2} [(x_i - x_ref)^T Q (x_i - x_ref) + u_i^T R u_i]
    + (x_{N-1} - x_ref)^T Q_f (x_{N-1} - x_ref) + u_{N-1}^T R u_{N-1}

    s.t. x_0 = A x + B u_0,  x_i = A x_{i-1} + B u_i    (dynamics)
         x_min <= x_i <= x_max                          (state bounds)
         u_min <= u_i <= u_max                          (control bounds)

Two backends are available:
    - ScipyMPCSolver: scipy.optimize.minimize (SLSQP) over the input
      sequence alone, states eliminated through the prediction matrices
    - CasadiMPCSolver: CasADi Opti with IPOPT, states and inputs both
      decision variables, dynamics as equality constraints

Optimizer non-convergence is never silent: the solution carries
``converged=False`` and the optimizer's status, and a warning is logged.
"""

from dataclasses import dataclass
import logging
import time
from typing import Optional, Tuple

import casadi as ca
import numpy as np
import scipy.linalg
from scipy.optimize import minimize

from plant.discretization import DiscreteDynamics
from mpc.config import MPCConfig
from mpc.constraints import (
    StateConstraints,
    InputConstraints,
    constraint_margins,
    create_constraints_from_config,
    max_constraint_violation,
    stacked_bounds,
)
from mpc.cost_matrices import compute_terminal_cost_dare, validate_cost_matrix
from mpc.prediction import (
    build_prediction_matrices,
    expand_reference,
    horizon_cost,
    predict_trajectory,
    stage_weights,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MPCSolution:
    """Solution from MPC solver.

    Attributes:
        optimal_control: First control input to apply (m,)
        control_sequence: Full optimized control sequence (N, m)
        predicted_trajectory: Predicted states x_0..x_{N-1} (N, n)
        solve_time_s: Wall-clock solve time in seconds
        solver_status: Status message reported by the optimizer
        converged: Whether the optimizer reported success
        cost: Cost of the returned sequence
        solver_iterations: Number of optimizer iterations used for this solve
        max_constraint_violation: Largest box-constraint violation of the
            returned sequence (0 when feasible)
    """

    optimal_control: np.ndarray
    control_sequence: np.ndarray
    predicted_trajectory: np.ndarray
    solve_time_s: float
    solver_status: str
    converged: bool
    cost: float
    solver_iterations: int = 0
    max_constraint_violation: float = 0.0


class LinearMPCSolver:
    """Receding-horizon optimizer for a discrete linear system.

    Subclasses implement ``_optimize``; this class owns validation,
    initial guesses, warm starting and solution bookkeeping.

    Attributes:
        prediction_horizon_steps: Number of prediction steps N
        state_cost: Q matrix (n, n)
        control_cost: R matrix (m, m)
        terminal_cost: Q_f matrix (n, n)
        state_constraints: State bound constraints
        input_constraints: Control bound constraints
        warm_start_enabled: Whether to warm-start from previous solution
    """

    def __init__(
        self,
        prediction_horizon_steps: int,
        discrete_dynamics: DiscreteDynamics,
        state_cost: np.ndarray,
        control_cost: np.ndarray,
        terminal_cost: np.ndarray,
        state_constraints: StateConstraints,
        input_constraints: InputConstraints,
        warm_start_enabled: bool = False,
        max_iterations: int = 200,
        tolerance: float = 1e-8,
    ) -> None:
        """Initialize the MPC solver.

        Args:
            prediction_horizon_steps: Number of prediction steps N
            discrete_dynamics: Discrete-time dynamics (A_d, B_d)
            state_cost: State cost matrix Q
            control_cost: Control cost matrix R
            terminal_cost: Terminal cost matrix Q_f
            state_constraints: State bound constraints (every predicted step)
            input_constraints: Control bound constraints
            warm_start_enabled: Seed each solve with the previous solution
                shifted one step
            max_iterations: Optimizer iteration cap
            tolerance: Optimizer convergence tolerance

        Raises:
            ValueError: If horizon or weight matrices are invalid
        """
        if (
            isinstance(prediction_horizon_steps, bool)
            or not isinstance(prediction_horizon_steps, int)
            or prediction_horizon_steps <= 0
        ):
            raise ValueError(
                f"prediction_horizon_steps must be a positive integer, "
                f"got {prediction_horizon_steps}"
            )

        self._prediction_horizon_steps = prediction_horizon_steps
        self._state_matrix = np.asarray(
            discrete_dynamics.state_matrix_discrete, dtype=float
        )
        self._control_matrix = np.asarray(
            discrete_dynamics.control_matrix_discrete, dtype=float
        )
        self._state_dimension = self._state_matrix.shape[0]
        self._control_dimension = self._control_matrix.shape[1]

        self._state_cost = np.asarray(state_cost, dtype=float)
        self._control_cost = np.asarray(control_cost, dtype=float)
        self._terminal_cost = np.asarray(terminal_cost, dtype=float)
        validate_cost_matrix(self._state_cost, self._state_dimension, 'state_cost')
        validate_cost_matrix(
            self._control_cost, self._control_dimension, 'control_cost'
        )
        validate_cost_matrix(
            self._terminal_cost, self._state_dimension, 'terminal_cost'
        )

        self._state_constraints = state_constraints
        self._input_constraints = input_constraints
        # Fail fast on bound lengths that do not match the plant
        state_constraints.get_bounds(self._state_dimension)
        input_constraints.get_bounds(self._control_dimension)

        self._warm_start_enabled = warm_start_enabled
        self._max_iterations = max_iterations
        self._tolerance = tolerance

        # Warm start storage
        self._previous_control_solution: Optional[np.ndarray] = None

    def solve(
        self,
        current_state: np.ndarray,
        reference: np.ndarray,
        initial_guess: Optional[np.ndarray] = None,
    ) -> MPCSolution:
        """Solve the MPC problem from the current true state.

        The seed is, in order of precedence: ``initial_guess`` if given,
        the shifted previous solution if warm starting is enabled and one
        exists, otherwise all zeros.

        Args:
            current_state: Current state (n,)
            reference: Reference state (n,) or per-step references (N, n)
            initial_guess: Optional seed sequence, (N, m) or N*m values

        Returns:
            MPCSolution with optimal control and diagnostics

        Raises:
            ValueError: If input dimensions are incorrect
        """
        horizon = self._prediction_horizon_steps

        current_state = np.asarray(current_state, dtype=float).flatten()
        if current_state.shape != (self._state_dimension,):
            raise ValueError(
                f"current_state must have shape ({self._state_dimension},), "
                f"got {current_state.shape}"
            )
        if not np.all(np.isfinite(current_state)):
            raise ValueError(
                f"current_state contains non-finite values: {current_state}"
            )

        reference_trajectory = expand_reference(
            reference, horizon, self._state_dimension
        )
        seed = self._initial_controls(initial_guess)

        start_time = time.perf_counter()
        control_sequence, solver_status, converged, iterations = self._optimize(
            current_state, reference_trajectory, seed
        )
        solve_time_s = time.perf_counter() - start_time

        control_sequence = np.asarray(control_sequence, dtype=float).reshape(
            horizon, self._control_dimension
        )
        predicted_trajectory = predict_trajectory(
            self._state_matrix, self._control_matrix, current_state, control_sequence
        )
        cost = horizon_cost(
            predicted_trajectory,
            control_sequence,
            reference_trajectory,
            self._state_cost,
            self._terminal_cost,
            self._control_cost,
        )
        violation = max_constraint_violation(
            predicted_trajectory,
            control_sequence,
            self._state_constraints,
            self._input_constraints,
        )

        if converged:
            if self._warm_start_enabled:
                self._previous_control_solution = control_sequence.copy()
        else:
            logger.warning(
                "MPC solve did not converge (%s) after %d iterations; "
                "max constraint violation %.3e",
                solver_status, iterations, violation,
            )

        logger.debug(
            "MPC solve: status=%s cost=%.6g iterations=%d time=%.2f ms",
            solver_status, cost, iterations, 1000.0 * solve_time_s,
        )

        return MPCSolution(
            optimal_control=control_sequence[0, :].copy(),
            control_sequence=control_sequence,
            predicted_trajectory=predicted_trajectory,
            solve_time_s=solve_time_s,
            solver_status=solver_status,
            converged=converged,
            cost=cost,
            solver_iterations=iterations,
            max_constraint_violation=violation,
        )

    def _optimize(
        self,
        current_state: np.ndarray,
        reference_trajectory: np.ndarray,
        initial_controls: np.ndarray,
    ) -> Tuple[np.ndarray, str, bool, int]:
        """Run the backend optimizer.

        Returns:
            Tuple of (control sequence (N, m), status message,
            converged flag, iteration count)
        """
        raise NotImplementedError

    def _initial_controls(self, initial_guess: Optional[np.ndarray]) -> np.ndarray:
        horizon = self._prediction_horizon_steps
        shape = (horizon, self._control_dimension)

        if initial_guess is not None:
            initial_guess = np.asarray(initial_guess, dtype=float)
            if initial_guess.size != horizon * self._control_dimension:
                raise ValueError(
                    f"initial_guess must hold {horizon * self._control_dimension} "
                    f"values, got shape {initial_guess.shape}"
                )
            return initial_guess.reshape(shape)

        if self._warm_start_enabled and self._previous_control_solution is not None:
            return self._shifted_previous_solution()

        return np.zeros(shape)

    def _shifted_previous_solution(self) -> np.ndarray:
        """Shift strategy: u_warm[k] = u_prev[k+1], last value repeated."""
        shifted_control = np.empty_like(self._previous_control_solution)
        shifted_control[:-1, :] = self._previous_control_solution[1:, :]
        shifted_control[-1, :] = self._previous_control_solution[-1, :]
        return shifted_control

    def reset_warm_start(self) -> None:
        """Forget the stored solution so the next solve starts cold."""
        self._previous_control_solution = None

    @property
    def prediction_horizon_steps(self) -> int:
        """Number of prediction steps N."""
        return self._prediction_horizon_steps

    @property
    def state_dimension(self) -> int:
        return self._state_dimension

    @property
    def control_dimension(self) -> int:
        return self._control_dimension

    @property
    def state_matrix(self) -> np.ndarray:
        """Discrete-time state transition matrix."""
        return self._state_matrix.copy()

    @property
    def control_matrix(self) -> np.ndarray:
        """Discrete-time control matrix."""
        return self._control_matrix.copy()

    @property
    def state_cost(self) -> np.ndarray:
        return self._state_cost.copy()

    @property
    def control_cost(self) -> np.ndarray:
        return self._control_cost.copy()

    @property
    def terminal_cost(self) -> np.ndarray:
        return self._terminal_cost.copy()

    @property
    def state_constraints(self) -> StateConstraints:
        return self._state_constraints

    @property
    def input_constraints(self) -> InputConstraints:
        return self._input_constraints

    @property
    def warm_start_enabled(self) -> bool:
        return self._warm_start_enabled


class ScipyMPCSolver(LinearMPCSolver):
    """MPC solved with scipy's SLSQP over the stacked input sequence.

    The problem is condensed: predicted states are X = Phi x + Gamma U, so
    the only decision variables are the N*m inputs. Cost gradient and the
    constraint Jacobian are exact.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)

        horizon = self._prediction_horizon_steps
        self._prediction_matrix, self._input_response_matrix = (
            build_prediction_matrices(
                self._state_matrix, self._control_matrix, horizon
            )
        )
        self._stacked_state_cost = stage_weights(
            self._state_cost, self._terminal_cost, horizon
        )
        self._stacked_control_cost = scipy.linalg.block_diag(
            *([self._control_cost] * horizon)
        )
        self._constraint_jacobian = self._build_constraint_jacobian()

    def _build_constraint_jacobian(self) -> np.ndarray:
        """Constant Jacobian of ``constraint_margins`` w.r.t. the inputs.

        Row order matches constraint_margins:
        [u_max - u, u - u_min, x_max - x, x - x_min].
        """
        horizon = self._prediction_horizon_steps
        control_lower, control_upper = stacked_bounds(
            self._input_constraints, self._control_dimension, horizon
        )
        state_lower, state_upper = stacked_bounds(
            self._state_constraints, self._state_dimension, horizon
        )
        identity = np.eye(horizon * self._control_dimension)
        gamma = self._input_response_matrix

        return np.vstack([
            -identity[np.isfinite(control_upper)],
            identity[np.isfinite(control_lower)],
            -gamma[np.isfinite(state_upper)],
            gamma[np.isfinite(state_lower)],
        ])

    def _predict_stacked(self, stacked_controls, current_state):
        return (
            self._prediction_matrix @ current_state
            + self._input_response_matrix @ stacked_controls
        )

    def _objective(self, stacked_controls, current_state, stacked_reference):
        """Cost and gradient of the condensed problem."""
        error = self._predict_stacked(stacked_controls, current_state) - stacked_reference
        weighted_error = self._stacked_state_cost @ error
        weighted_control = self._stacked_control_cost @ stacked_controls

        cost = error @ weighted_error + stacked_controls @ weighted_control
        gradient = (
            2.0 * self._input_response_matrix.T @ weighted_error
            + 2.0 * weighted_control
        )
        return cost, gradient

    def _margins(self, stacked_controls, current_state):
        horizon = self._prediction_horizon_steps
        states = self._predict_stacked(stacked_controls, current_state).reshape(
            horizon, self._state_dimension
        )
        controls = stacked_controls.reshape(horizon, self._control_dimension)
        return constraint_margins(
            states, controls, self._state_constraints, self._input_constraints
        )

    def _optimize(self, current_state, reference_trajectory, initial_controls):
        constraints = []
        if self._constraint_jacobian.shape[0] > 0:
            constraints.append({
                'type': 'ineq',
                'fun': self._margins,
                'jac': lambda stacked_controls, current_state: self._constraint_jacobian,
                'args': (current_state,),
            })

        result = minimize(
            self._objective,
            initial_controls.reshape(-1),
            args=(current_state, reference_trajectory.reshape(-1)),
            jac=True,
            method='SLSQP',
            constraints=constraints,
            options={
                'maxiter': self._max_iterations,
                'ftol': self._tolerance,
            },
        )

        return (
            result.x,
            str(result.message),
            bool(result.success),
            int(getattr(result, 'nit', 0)),
        )


class CasadiMPCSolver(LinearMPCSolver):
    """MPC solved with CasADi's Opti interface and IPOPT.

    The problem is built once; each solve only updates parameter values
    (current state, reference) and the initial guess.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._build_optimization_problem()

    def _build_optimization_problem(self) -> None:
        """Build the CasADi Opti optimization problem."""
        horizon = self._prediction_horizon_steps
        n_states = self._state_dimension
        n_controls = self._control_dimension

        self._opti = ca.Opti()

        # Decision variables: predicted states x_0..x_{N-1} and inputs u_0..u_{N-1}
        self._state_variables = self._opti.variable(n_states, horizon)
        self._control_variables = self._opti.variable(n_controls, horizon)

        # Parameters (set at solve time)
        self._initial_state_param = self._opti.parameter(n_states)
        self._reference_trajectory_param = self._opti.parameter(n_states, horizon)

        state_matrix = ca.DM(self._state_matrix)
        control_matrix = ca.DM(self._control_matrix)
        state_cost = ca.DM(self._state_cost)
        terminal_cost = ca.DM(self._terminal_cost)
        control_cost = ca.DM(self._control_cost)

        cost = 0
        for step_index in range(horizon):
            state_error = (
                self._state_variables[:, step_index]
                - self._reference_trajectory_param[:, step_index]
            )
            control = self._control_variables[:, step_index]
            weight = terminal_cost if step_index == horizon - 1 else state_cost

            cost += ca.mtimes([state_error.T, weight, state_error])
            cost += ca.mtimes([control.T, control_cost, control])

        self._opti.minimize(cost)

        # Dynamics constraints: x_i = A_d x_{i-1} + B_d u_i, starting from the true state
        previous_state = self._initial_state_param
        for step_index in range(horizon):
            next_state = (
                ca.mtimes(state_matrix, previous_state)
                + ca.mtimes(control_matrix, self._control_variables[:, step_index])
            )
            self._opti.subject_to(
                self._state_variables[:, step_index] == next_state
            )
            previous_state = self._state_variables[:, step_index]

        # State and control box constraints (finite components only)
        state_lower, state_upper = self._state_constraints.get_bounds(n_states)
        control_lower, control_upper = self._input_constraints.get_bounds(n_controls)
        for step_index in range(horizon):
            for state_index in range(n_states):
                if np.isfinite(state_lower[state_index]):
                    self._opti.subject_to(
                        self._state_variables[state_index, step_index]
                        >= state_lower[state_index]
                    )
                if np.isfinite(state_upper[state_index]):
                    self._opti.subject_to(
                        self._state_variables[state_index, step_index]
                        <= state_upper[state_index]
                    )
            for control_index in range(n_controls):
                if np.isfinite(control_lower[control_index]):
                    self._opti.subject_to(
                        self._control_variables[control_index, step_index]
                        >= control_lower[control_index]
                    )
                if np.isfinite(control_upper[control_index]):
                    self._opti.subject_to(
                        self._control_variables[control_index, step_index]
                        <= control_upper[control_index]
                    )

        ipopt_options = {
            'print_time': False,
            'ipopt': {
                'print_level': 0,
                'sb': 'yes',  # Suppress IPOPT banner
                'warm_start_init_point': 'yes' if self._warm_start_enabled else 'no',
                'max_iter': self._max_iterations,
                'tol': self._tolerance,
            }
        }
        self._opti.solver('ipopt', ipopt_options)

    def _optimize(self, current_state, reference_trajectory, initial_controls):
        horizon = self._prediction_horizon_steps

        self._opti.set_value(self._initial_state_param, current_state)
        self._opti.set_value(self._reference_trajectory_param, reference_trajectory.T)

        initial_states = predict_trajectory(
            self._state_matrix, self._control_matrix, current_state, initial_controls
        )
        self._opti.set_initial(self._state_variables, initial_states.T)
        self._opti.set_initial(self._control_variables, initial_controls.T)

        try:
            solution = self._opti.solve()
            controls = solution.value(self._control_variables)
            stats = solution.stats()
            converged = True
        except RuntimeError as error:
            # Best available iterate from the failed solve
            controls = self._opti.debug.value(self._control_variables)
            stats = self._opti.stats()
            stats.setdefault('return_status', str(error))
            converged = False

        controls = np.asarray(controls, dtype=float).reshape(
            self._control_dimension, horizon
        ).T

        return (
            controls,
            str(stats.get('return_status', 'unknown')),
            converged,
            int(stats.get('iter_count', 0)),
        )


_SOLVER_BACKENDS = {
    'slsqp': ScipyMPCSolver,
    'ipopt': CasadiMPCSolver,
}


def resolve_terminal_cost(
    config: MPCConfig,
    discrete_dynamics: DiscreteDynamics,
) -> np.ndarray:
    """Pick Q_f: explicit diagonal, else scaled DARE solution, else scaled Q."""
    explicit = config.terminal_cost_matrix
    if explicit is not None:
        return explicit

    if config.use_terminal_cost_dare:
        terminal_cost = compute_terminal_cost_dare(
            discrete_dynamics.state_matrix_discrete,
            discrete_dynamics.control_matrix_discrete,
            config.state_cost_matrix,
            config.control_cost_matrix,
        )
    else:
        terminal_cost = config.state_cost_matrix
    return config.terminal_cost_scale * terminal_cost


def create_solver(
    config: MPCConfig,
    discrete_dynamics: DiscreteDynamics,
) -> LinearMPCSolver:
    """Build the configured solver backend for a discrete plant.

    Args:
        config: MPC configuration
        discrete_dynamics: Discrete-time plant matrices

    Returns:
        ScipyMPCSolver or CasadiMPCSolver depending on config.solver_name

    Raises:
        ValueError: If config dimensions do not match the plant
    """
    if config.state_dimension != discrete_dynamics.state_dimension:
        raise ValueError(
            f"Config has {config.state_dimension} state weights but plant has "
            f"{discrete_dynamics.state_dimension} states"
        )
    if config.control_dimension != discrete_dynamics.control_dimension:
        raise ValueError(
            f"Config has {config.control_dimension} control weights but plant has "
            f"{discrete_dynamics.control_dimension} inputs"
        )

    state_constraints, input_constraints = create_constraints_from_config(config)
    solver_class = _SOLVER_BACKENDS[config.solver_name]

    return solver_class(
        prediction_horizon_steps=config.prediction_horizon_steps,
        discrete_dynamics=discrete_dynamics,
        state_cost=config.state_cost_matrix,
        control_cost=config.control_cost_matrix,
        terminal_cost=resolve_terminal_cost(config, discrete_dynamics),
        state_constraints=state_constraints,
        input_constraints=input_constraints,
        warm_start_enabled=config.warm_start_enabled,
        max_iterations=config.max_iterations,
        tolerance=config.tolerance,
    )
