"""Constraint definitions for MPC.

Provides dataclasses for state and input box constraints and the
inequality margins evaluated over a predicted trajectory:

    u_max - u_i >= 0,  u_i - u_min >= 0
    x_max - x_i >= 0,  x_i - x_min >= 0     for i = 0..N-1

Bounds may be scalars (applied to every component) or per-component
sequences. Infinite bounds leave a component unconstrained.
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from mpc._internal.validation import validate_bound_length, validate_bound_pair

Bound = Union[float, Tuple[float, ...]]


def _broadcast_bounds(
    lower: Bound,
    upper: Bound,
    dimension: int,
    name: str,
) -> Tuple[np.ndarray, np.ndarray]:
    lower_array = np.atleast_1d(np.array(lower, dtype=float))
    upper_array = np.atleast_1d(np.array(upper, dtype=float))
    validate_bound_length(lower_array, dimension, f'{name} lower bound')
    validate_bound_length(upper_array, dimension, f'{name} upper bound')
    return (
        np.broadcast_to(lower_array, (dimension,)).copy(),
        np.broadcast_to(upper_array, (dimension,)).copy(),
    )


@dataclass(frozen=True)
class StateConstraints:
    """State box constraints for MPC.

    Encodes: x_min <= x_i <= x_max for each predicted step.

    Attributes:
        lower_bound: Scalar or per-component x_min
        upper_bound: Scalar or per-component x_max
    """

    lower_bound: Bound = -np.inf
    upper_bound: Bound = np.inf

    def __post_init__(self) -> None:
        """Validate lower <= upper and no NaN entries."""
        lower = np.atleast_1d(np.array(self.lower_bound, dtype=float))
        upper = np.atleast_1d(np.array(self.upper_bound, dtype=float))
        if lower.size != upper.size and 1 not in (lower.size, upper.size):
            raise ValueError(
                f"State bounds have mismatched lengths {lower.size} and {upper.size}"
            )
        validate_bound_pair(lower, upper, 'state')

    def get_bounds(self, dimension: int) -> Tuple[np.ndarray, np.ndarray]:
        """Get lower and upper bound arrays for state constraints.

        Args:
            dimension: State vector length n

        Returns:
            Tuple of (lower_bound, upper_bound), each shape (n,)
        """
        return _broadcast_bounds(
            self.lower_bound, self.upper_bound, dimension, 'state'
        )


@dataclass(frozen=True)
class InputConstraints:
    """Control input box constraints for MPC.

    Encodes: u_min <= u_i <= u_max

    Attributes:
        lower_bound: Scalar or per-component u_min
        upper_bound: Scalar or per-component u_max
    """

    lower_bound: Bound = -np.inf
    upper_bound: Bound = np.inf

    def __post_init__(self) -> None:
        """Validate lower <= upper and no NaN entries."""
        lower = np.atleast_1d(np.array(self.lower_bound, dtype=float))
        upper = np.atleast_1d(np.array(self.upper_bound, dtype=float))
        if lower.size != upper.size and 1 not in (lower.size, upper.size):
            raise ValueError(
                f"Input bounds have mismatched lengths {lower.size} and {upper.size}"
            )
        validate_bound_pair(lower, upper, 'control')

    def get_bounds(self, dimension: int) -> Tuple[np.ndarray, np.ndarray]:
        """Get lower and upper bound arrays for control constraints.

        Args:
            dimension: Control vector length m

        Returns:
            Tuple of (lower_bound, upper_bound), each shape (m,)
        """
        return _broadcast_bounds(
            self.lower_bound, self.upper_bound, dimension, 'control'
        )


def create_constraints_from_config(config) -> Tuple[StateConstraints, InputConstraints]:
    """Create constraint objects from an MPCConfig.

    Args:
        config: MPCConfig carrying the four bound fields

    Returns:
        Tuple of (StateConstraints, InputConstraints)
    """
    state_constraints = StateConstraints(
        lower_bound=config.state_lower_bound,
        upper_bound=config.state_upper_bound,
    )
    input_constraints = InputConstraints(
        lower_bound=config.control_lower_bound,
        upper_bound=config.control_upper_bound,
    )
    return state_constraints, input_constraints


def stacked_bounds(
    constraints: Union[StateConstraints, InputConstraints],
    dimension: int,
    horizon: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Repeat per-step bounds over the horizon.

    Returns:
        Tuple of (lower, upper), each shape (horizon * dimension,), ordered
        step-major to match a row-major flatten of a (horizon, dimension) array
    """
    lower, upper = constraints.get_bounds(dimension)
    return np.tile(lower, horizon), np.tile(upper, horizon)


def constraint_margins(
    states: np.ndarray,
    controls: np.ndarray,
    state_constraints: StateConstraints,
    input_constraints: InputConstraints,
) -> np.ndarray:
    """Evaluate every finite box inequality over a predicted trajectory.

    Margins are grouped as [u_max - u, u - u_min, x_max - x, x - x_min],
    each over all steps. Infinite bounds produce no entry.

    Args:
        states: Predicted states (N, n)
        controls: Candidate inputs (N, m)
        state_constraints: State box constraints
        input_constraints: Input box constraints

    Returns:
        1-D array of margins; the trajectory is feasible iff all are >= 0
    """
    horizon, state_dimension = states.shape
    control_dimension = controls.shape[1]

    control_lower, control_upper = stacked_bounds(
        input_constraints, control_dimension, horizon
    )
    state_lower, state_upper = stacked_bounds(
        state_constraints, state_dimension, horizon
    )
    flat_controls = controls.reshape(-1)
    flat_states = states.reshape(-1)

    margins = (
        (control_upper - flat_controls, np.isfinite(control_upper)),
        (flat_controls - control_lower, np.isfinite(control_lower)),
        (state_upper - flat_states, np.isfinite(state_upper)),
        (flat_states - state_lower, np.isfinite(state_lower)),
    )
    return np.concatenate([values[mask] for values, mask in margins])


def max_constraint_violation(
    states: np.ndarray,
    controls: np.ndarray,
    state_constraints: StateConstraints,
    input_constraints: InputConstraints,
) -> float:
    """Largest amount by which any box inequality is violated (0 if feasible)."""
    margins = constraint_margins(
        states, controls, state_constraints, input_constraints
    )
    if margins.size == 0:
        return 0.0
    return float(max(0.0, -np.min(margins)))
