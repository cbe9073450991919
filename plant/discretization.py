"""Discretization of continuous-time dynamics.

Converts continuous linear systems to discrete-time for MPC implementation.
Uses zero-order hold (ZOH) assumption via matrix exponential.
"""

import numpy as np
import scipy.linalg
from dataclasses import dataclass
from plant._internal.validation import (
    validate_positive,
    validate_system_matrices,
    validate_vector,
)


@dataclass(frozen=True)
class DiscreteDynamics:
    """Discrete-time linear system matrices.

    Represents: x[k+1] = A_d·x[k] + B_d·u[k]

    Attributes:
        state_matrix_discrete: A_d matrix (n, n)
        control_matrix_discrete: B_d matrix (n, m)
        sampling_period_s: Discretization time step
    """
    state_matrix_discrete: np.ndarray
    control_matrix_discrete: np.ndarray
    sampling_period_s: float

    def __post_init__(self):
        """Validate matrix dimensions and sampling period."""
        validate_system_matrices(
            self.state_matrix_discrete, self.control_matrix_discrete
        )
        validate_positive(self.sampling_period_s, 'sampling_period_s')

    @property
    def state_dimension(self) -> int:
        return self.state_matrix_discrete.shape[0]

    @property
    def control_dimension(self) -> int:
        return self.control_matrix_discrete.shape[1]

    @classmethod
    def from_matrices(
        cls,
        state_matrix_discrete,
        control_matrix_discrete,
        sampling_period_s: float = 1.0,
    ) -> 'DiscreteDynamics':
        """Wrap already-discrete A, B given as nested lists or arrays."""
        state_matrix = np.atleast_2d(np.asarray(state_matrix_discrete, dtype=float))
        control_matrix = np.asarray(control_matrix_discrete, dtype=float)
        if control_matrix.ndim == 1:
            control_matrix = control_matrix.reshape(-1, 1)
        return cls(
            state_matrix_discrete=state_matrix,
            control_matrix_discrete=control_matrix,
            sampling_period_s=sampling_period_s,
        )


def discretize_linear_dynamics(
    state_matrix: np.ndarray,
    control_matrix: np.ndarray,
    sampling_period_s: float
) -> DiscreteDynamics:
    """Convert continuous linear dynamics to discrete-time using ZOH.

    Given continuous system: x_dot = A·x + B·u
    Computes discrete system: x[k+1] = A_d·x[k] + B_d·u[k]

    Uses exact discretization via matrix exponential:
    A_d = exp(A·T_s)
    B_d = ∫[0 to T_s] exp(A·τ) dτ · B

    Args:
        state_matrix: Continuous state matrix A (n, n)
        control_matrix: Continuous control matrix B (n, m)
        sampling_period_s: Sampling period T_s in seconds

    Returns:
        DiscreteDynamics object with A_d, B_d matrices

    Raises:
        ValueError: If matrices have incompatible shapes or T_s <= 0

    References:
        Franklin, Powell, Workman - Digital Control of Dynamic Systems
    """
    validate_positive(sampling_period_s, 'sampling_period_s')
    validate_system_matrices(state_matrix, control_matrix)

    state_dimension = state_matrix.shape[0]
    control_dimension = control_matrix.shape[1]

    # Build augmented matrix for simultaneous discretization
    # M = [[A,  B],
    #      [0,  0]]
    augmented_dimension = state_dimension + control_dimension
    augmented_matrix = np.zeros((augmented_dimension, augmented_dimension))
    augmented_matrix[:state_dimension, :state_dimension] = state_matrix
    augmented_matrix[:state_dimension, state_dimension:] = control_matrix

    # exp(M·T_s) = [[A_d, B_d],
    #               [ 0,   I ]]
    augmented_exponential = scipy.linalg.expm(
        augmented_matrix * sampling_period_s
    )

    state_matrix_discrete = augmented_exponential[
        :state_dimension, :state_dimension
    ]
    control_matrix_discrete = augmented_exponential[
        :state_dimension, state_dimension:
    ]

    return DiscreteDynamics(
        state_matrix_discrete=state_matrix_discrete,
        control_matrix_discrete=control_matrix_discrete,
        sampling_period_s=sampling_period_s
    )


def step_dynamics(
    dynamics: DiscreteDynamics,
    state: np.ndarray,
    control: np.ndarray,
) -> np.ndarray:
    """Advance the true state one sample: x_next = A_d·x + B_d·u.

    Args:
        dynamics: Discrete system matrices
        state: Current state (n,)
        control: Applied control (m,)

    Returns:
        Next state (n,)

    Raises:
        ValueError: If state or control has the wrong shape or is non-finite
    """
    state = np.asarray(state, dtype=float).flatten()
    control = np.asarray(control, dtype=float).flatten()
    validate_vector(state, dynamics.state_dimension, 'state')
    validate_vector(control, dynamics.control_dimension, 'control')

    return (
        dynamics.state_matrix_discrete @ state
        + dynamics.control_matrix_discrete @ control
    )
