"""Horizon prediction and cost evaluation.

Indexing convention: for a candidate input sequence u_0..u_{N-1} applied
from the current state x, the predicted state x_i is the state reached
after applying u_i:

    x_0 = A x + B u_0,    x_i = A x_{i-1} + B u_i

so the predicted trajectory has shape (N, n) and never contains the
current state itself.
"""

import numpy as np
import scipy.linalg


def predict_trajectory(
    state_matrix: np.ndarray,
    control_matrix: np.ndarray,
    initial_state: np.ndarray,
    controls: np.ndarray,
) -> np.ndarray:
    """Simulate the linear model forward over a candidate input sequence.

    Args:
        state_matrix: A (n, n)
        control_matrix: B (n, m)
        initial_state: Current state x (n,)
        controls: Candidate inputs (N, m)

    Returns:
        Predicted states (N, n)
    """
    horizon = controls.shape[0]
    states = np.zeros((horizon, state_matrix.shape[0]))
    state = np.asarray(initial_state, dtype=float)
    for step_index in range(horizon):
        state = state_matrix @ state + control_matrix @ controls[step_index]
        states[step_index] = state
    return states


def build_prediction_matrices(
    state_matrix: np.ndarray,
    control_matrix: np.ndarray,
    horizon: int,
):
    """Condensed prediction X = Phi x + Gamma U.

    X stacks x_0..x_{N-1} and U stacks u_0..u_{N-1}, both step-major.

    Returns:
        Tuple (Phi (N*n, n), Gamma (N*n, N*m))
    """
    n_states = state_matrix.shape[0]
    n_controls = control_matrix.shape[1]

    phi = np.zeros((horizon * n_states, n_states))
    gamma = np.zeros((horizon * n_states, horizon * n_controls))

    # powers[k] = A^k
    powers = [np.eye(n_states)]
    for _ in range(horizon):
        powers.append(state_matrix @ powers[-1])

    for row in range(horizon):
        row_slice = slice(row * n_states, (row + 1) * n_states)
        phi[row_slice, :] = powers[row + 1]
        for column in range(row + 1):
            gamma[row_slice, column * n_controls:(column + 1) * n_controls] = (
                powers[row - column] @ control_matrix
            )

    return phi, gamma


def expand_reference(reference: np.ndarray, horizon: int, dimension: int) -> np.ndarray:
    """Normalise a reference to one target per predicted step.

    Args:
        reference: Constant target (n,) or per-step targets (N, n)
        horizon: Prediction horizon N
        dimension: State dimension n

    Returns:
        Reference trajectory (N, n)

    Raises:
        ValueError: If reference has neither accepted shape
    """
    reference = np.asarray(reference, dtype=float)
    if reference.shape == (dimension,):
        return np.tile(reference, (horizon, 1))
    if reference.shape == (horizon, dimension):
        return reference.copy()
    raise ValueError(
        f"reference must have shape ({dimension},) or "
        f"({horizon}, {dimension}), got {reference.shape}"
    )


def stage_weights(state_cost: np.ndarray, terminal_cost: np.ndarray, horizon: int):
    """Block-diagonal state weight over the horizon: Q, ..., Q, Q_f."""
    return scipy.linalg.block_diag(
        *([state_cost] * (horizon - 1) + [terminal_cost])
    )


def horizon_cost(
    states: np.ndarray,
    controls: np.ndarray,
    reference: np.ndarray,
    state_cost: np.ndarray,
    terminal_cost: np.ndarray,
    control_cost: np.ndarray,
) -> float:
    """Quadratic tracking-plus-effort cost of a predicted trajectory.

    J = sum_{i=0}^{N-2} [(x_i - r_i)^T Q (x_i - r_i) + u_i^T R u_i]
        + (x_{N-1} - r_{N-1})^T Q_f (x_{N-1} - r_{N-1}) + u_{N-1}^T R u_{N-1}

    Args:
        states: Predicted states (N, n)
        controls: Inputs (N, m)
        reference: Constant (n,) or per-step (N, n) reference
        state_cost: Q (n, n)
        terminal_cost: Q_f (n, n)
        control_cost: R (m, m)

    Returns:
        Scalar cost
    """
    horizon, dimension = states.shape
    reference = expand_reference(reference, horizon, dimension)

    cost = 0.0
    for step_index in range(horizon):
        error = states[step_index] - reference[step_index]
        weight = terminal_cost if step_index == horizon - 1 else state_cost
        control = controls[step_index]
        cost += float(error @ weight @ error) + float(control @ control_cost @ control)
    return cost
