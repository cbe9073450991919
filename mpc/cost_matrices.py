"""Cost matrix construction for MPC.

Provides functions to build Q, R, Q_f matrices for the MPC cost function:
    J = sum_{i=0}^{N-2} [(x_i - x_ref)^T Q (x_i - x_ref) + u_i^T R u_i]
        + (x_{N-1} - x_ref)^T Q_f (x_{N-1} - x_ref) + u_{N-1}^T R u_{N-1}
"""

import numpy as np
import scipy.linalg

from mpc._internal.validation import validate_cost_diagonal

_SYMMETRY_TOLERANCE = 1e-9
_EIGENVALUE_TOLERANCE = -1e-9


def build_state_cost_matrix(diagonal: np.ndarray) -> np.ndarray:
    """Build state cost matrix Q from diagonal elements.

    Args:
        diagonal: Array of diagonal elements (n,)

    Returns:
        Diagonal state cost matrix Q (n, n)

    Raises:
        ValueError: If diagonal is not 1-D or has negative entries
    """
    diagonal = np.asarray(diagonal, dtype=float)
    validate_cost_diagonal(diagonal, 'state cost diagonal')
    return np.diag(diagonal)


def build_control_cost_matrix(diagonal: np.ndarray) -> np.ndarray:
    """Build control cost matrix R from diagonal elements.

    Args:
        diagonal: Array of diagonal elements (m,)

    Returns:
        Diagonal control cost matrix R (m, m)

    Raises:
        ValueError: If diagonal is not 1-D or has negative entries
    """
    diagonal = np.asarray(diagonal, dtype=float)
    validate_cost_diagonal(diagonal, 'control cost diagonal')
    return np.diag(diagonal)


def validate_cost_matrix(matrix: np.ndarray, dimension: int, name: str) -> None:
    """Check a weight matrix is square, symmetric and positive semi-definite.

    Args:
        matrix: Weight matrix
        dimension: Expected size
        name: Matrix name for error messages

    Raises:
        ValueError: If any of the properties does not hold
    """
    if matrix.shape != (dimension, dimension):
        raise ValueError(
            f"{name} must have shape ({dimension}, {dimension}), got {matrix.shape}"
        )
    if not np.all(np.isfinite(matrix)):
        raise ValueError(f"{name} contains non-finite values")
    if not np.allclose(matrix, matrix.T, atol=_SYMMETRY_TOLERANCE):
        raise ValueError(f"{name} must be symmetric")
    if np.min(np.linalg.eigvalsh(matrix)) < _EIGENVALUE_TOLERANCE:
        raise ValueError(f"{name} must be positive semi-definite")


def compute_terminal_cost_dare(
    state_matrix_discrete: np.ndarray,
    control_matrix_discrete: np.ndarray,
    state_cost: np.ndarray,
    control_cost: np.ndarray,
) -> np.ndarray:
    """Compute terminal cost matrix Q_f via discrete algebraic Riccati equation.

    Solves the DARE to find P that satisfies:
        P = A^T P A - A^T P B (R + B^T P B)^{-1} B^T P A + Q

    Args:
        state_matrix_discrete: Discrete state transition matrix A_d (n, n)
        control_matrix_discrete: Discrete control matrix B_d (n, m)
        state_cost: State cost matrix Q (n, n)
        control_cost: Control cost matrix R (m, m)

    Returns:
        Terminal cost matrix P (n, n), symmetric positive semi-definite

    Raises:
        ValueError: If matrix dimensions are incompatible
        numpy.linalg.LinAlgError: If DARE has no solution (system not stabilizable)
    """
    n_states = state_matrix_discrete.shape[0]
    n_controls = control_matrix_discrete.shape[1]

    if state_matrix_discrete.shape != (n_states, n_states):
        raise ValueError(
            f"state_matrix_discrete must be square, got shape "
            f"{state_matrix_discrete.shape}"
        )
    if control_matrix_discrete.shape[0] != n_states:
        raise ValueError(
            f"control_matrix_discrete row count {control_matrix_discrete.shape[0]} "
            f"must match state dimension {n_states}"
        )
    if state_cost.shape != (n_states, n_states):
        raise ValueError(
            f"state_cost shape {state_cost.shape} must match "
            f"({n_states}, {n_states})"
        )
    if control_cost.shape != (n_controls, n_controls):
        raise ValueError(
            f"control_cost shape {control_cost.shape} must match "
            f"({n_controls}, {n_controls})"
        )

    terminal_cost = scipy.linalg.solve_discrete_are(
        state_matrix_discrete,
        control_matrix_discrete,
        state_cost,
        control_cost,
    )

    # Symmetrize away round-off from the Schur solver
    return 0.5 * (terminal_cost + terminal_cost.T)
