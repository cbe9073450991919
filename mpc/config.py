"""MPC configuration parameters.

Single source of truth for MPC controller settings.
See simulation/config/aircraft_pitch/mpc_params.yaml for parameter values.
"""

from dataclasses import dataclass
from typing import Tuple, Optional, Union

import numpy as np
import yaml

from mpc._internal.validation import (
    validate_positive,
    validate_positive_integer,
    validate_cost_diagonal,
    validate_bound_length,
    validate_bound_pair,
    validate_solver_name,
)

Bound = Union[float, Tuple[float, ...]]


def _as_bound(value) -> Bound:
    """Convert YAML scalars/lists into an immutable bound value."""
    if value is None:
        return value
    if isinstance(value, (list, tuple)):
        return tuple(float(item) for item in value)
    return float(value)


@dataclass(frozen=True)
class MPCConfig:
    """Configuration parameters for linear MPC controller.

    All parameters immutable after construction (frozen=True).

    Attributes:
        prediction_horizon_steps: Number of prediction steps (N)
        sampling_period_s: Discretization time step (T_s)
        state_cost_diagonal: Q matrix diagonal elements (n,)
        control_cost_diagonal: R matrix diagonal elements (m,)
        terminal_cost_diagonal: Q_f diagonal (n,); None derives Q_f from
            use_terminal_cost_dare / terminal_cost_scale
        state_lower_bound: Scalar or per-component x_min
        state_upper_bound: Scalar or per-component x_max
        control_lower_bound: Scalar or per-component u_min
        control_upper_bound: Scalar or per-component u_max
        use_terminal_cost_dare: If True and no terminal diagonal is given,
            compute Q_f via discrete ARE
        terminal_cost_scale: Scaling factor applied to the derived Q_f
        solver_name: Optimizer backend ('slsqp' or 'ipopt')
        warm_start_enabled: Seed each solve with the previous sequence shifted
        max_iterations: Iteration cap handed to the optimizer
        tolerance: Convergence tolerance handed to the optimizer
    """
    # Horizon parameters
    prediction_horizon_steps: int
    sampling_period_s: float

    # Cost function weights
    state_cost_diagonal: Tuple[float, ...]
    control_cost_diagonal: Tuple[float, ...]
    terminal_cost_diagonal: Optional[Tuple[float, ...]] = None

    # Box constraints
    state_lower_bound: Bound = -np.inf
    state_upper_bound: Bound = np.inf
    control_lower_bound: Bound = -np.inf
    control_upper_bound: Bound = np.inf

    # Terminal cost
    use_terminal_cost_dare: bool = False
    terminal_cost_scale: float = 1.0

    # Solver settings
    solver_name: str = 'slsqp'
    warm_start_enabled: bool = False
    max_iterations: int = 200
    tolerance: float = 1e-8

    def __post_init__(self) -> None:
        """Validate parameters satisfy constraints."""
        # Horizon parameters
        validate_positive_integer(
            self.prediction_horizon_steps, 'prediction_horizon_steps'
        )
        validate_positive(self.sampling_period_s, 'sampling_period_s')

        # Cost function weights
        state_diagonal = np.array(self.state_cost_diagonal, dtype=float)
        control_diagonal = np.array(self.control_cost_diagonal, dtype=float)
        validate_cost_diagonal(state_diagonal, 'state_cost_diagonal')
        validate_cost_diagonal(control_diagonal, 'control_cost_diagonal')
        if self.terminal_cost_diagonal is not None:
            terminal_diagonal = np.array(self.terminal_cost_diagonal, dtype=float)
            validate_cost_diagonal(terminal_diagonal, 'terminal_cost_diagonal')
            if terminal_diagonal.shape != state_diagonal.shape:
                raise ValueError(
                    f"terminal_cost_diagonal must have shape {state_diagonal.shape}, "
                    f"got {terminal_diagonal.shape}"
                )

        # Constraints
        state_lower = np.atleast_1d(np.array(self.state_lower_bound, dtype=float))
        state_upper = np.atleast_1d(np.array(self.state_upper_bound, dtype=float))
        control_lower = np.atleast_1d(np.array(self.control_lower_bound, dtype=float))
        control_upper = np.atleast_1d(np.array(self.control_upper_bound, dtype=float))
        validate_bound_length(state_lower, self.state_dimension, 'state_lower_bound')
        validate_bound_length(state_upper, self.state_dimension, 'state_upper_bound')
        validate_bound_length(
            control_lower, self.control_dimension, 'control_lower_bound'
        )
        validate_bound_length(
            control_upper, self.control_dimension, 'control_upper_bound'
        )
        validate_bound_pair(state_lower, state_upper, 'state')
        validate_bound_pair(control_lower, control_upper, 'control')

        # Terminal cost
        validate_positive(self.terminal_cost_scale, 'terminal_cost_scale')

        # Solver
        validate_solver_name(self.solver_name)
        validate_positive_integer(self.max_iterations, 'max_iterations')
        validate_positive(self.tolerance, 'tolerance')

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'MPCConfig':
        """Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML file containing MPC parameters

        Returns:
            MPCConfig instance

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If required parameters missing or invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file)

        try:
            horizon = config['prediction_horizon_steps']
            sampling_period_s = config['sampling_period_s']
            state_cost_diagonal = config['state_cost_diagonal']
            control_cost_diagonal = config['control_cost_diagonal']
        except KeyError as error:
            raise ValueError(f"Missing MPC parameter {error} in {yaml_path}") from error

        terminal_diagonal = config.get('terminal_cost_diagonal', None)

        # Convert lists to tuples for immutability
        return cls(
            prediction_horizon_steps=horizon,
            sampling_period_s=float(sampling_period_s),
            state_cost_diagonal=tuple(state_cost_diagonal),
            control_cost_diagonal=tuple(control_cost_diagonal),
            terminal_cost_diagonal=(
                tuple(terminal_diagonal) if terminal_diagonal is not None else None
            ),
            state_lower_bound=_as_bound(config.get('state_lower_bound', -np.inf)),
            state_upper_bound=_as_bound(config.get('state_upper_bound', np.inf)),
            control_lower_bound=_as_bound(config.get('control_lower_bound', -np.inf)),
            control_upper_bound=_as_bound(config.get('control_upper_bound', np.inf)),
            use_terminal_cost_dare=config.get('use_terminal_cost_dare', False),
            terminal_cost_scale=config.get('terminal_cost_scale', 1.0),
            solver_name=config.get('solver_name', 'slsqp'),
            warm_start_enabled=config.get('warm_start_enabled', False),
            max_iterations=config.get('max_iterations', 200),
            tolerance=float(config.get('tolerance', 1e-8)),
        )

    @property
    def state_dimension(self) -> int:
        """Length of the state vector implied by Q."""
        return len(self.state_cost_diagonal)

    @property
    def control_dimension(self) -> int:
        """Length of the input vector implied by R."""
        return len(self.control_cost_diagonal)

    @property
    def state_cost_matrix(self) -> np.ndarray:
        """Build Q matrix from diagonal elements.

        Returns:
            Diagonal state cost matrix (n, n)
        """
        return np.diag(np.array(self.state_cost_diagonal, dtype=float))

    @property
    def control_cost_matrix(self) -> np.ndarray:
        """Build R matrix from diagonal elements.

        Returns:
            Diagonal control cost matrix (m, m)
        """
        return np.diag(np.array(self.control_cost_diagonal, dtype=float))

    @property
    def terminal_cost_matrix(self) -> Optional[np.ndarray]:
        """Q_f from the configured diagonal, or None when it must be derived."""
        if self.terminal_cost_diagonal is None:
            return None
        return np.diag(np.array(self.terminal_cost_diagonal, dtype=float))

    @property
    def prediction_horizon_duration_s(self) -> float:
        """Total prediction horizon duration.

        Returns:
            N * T_s in seconds
        """
        return self.prediction_horizon_steps * self.sampling_period_s
