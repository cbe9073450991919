"""Unit tests for MPC cost matrices."""

import numpy as np
import pytest

from mpc.cost_matrices import (
    build_state_cost_matrix,
    build_control_cost_matrix,
    compute_terminal_cost_dare,
    validate_cost_matrix,
)


class TestBuildCostMatrices:
    """Tests for diagonal cost matrix construction."""

    def test_state_cost_diagonal(self):
        Q = build_state_cost_matrix([40.0, 40.0, 40.0])

        np.testing.assert_array_equal(Q, 40.0 * np.eye(3))

    def test_control_cost_diagonal(self):
        R = build_control_cost_matrix([1.0])

        np.testing.assert_array_equal(R, np.eye(1))

    def test_negative_entry_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            build_state_cost_matrix([1.0, -1.0, 1.0])

    def test_two_dimensional_input_raises(self):
        with pytest.raises(ValueError, match="1-D"):
            build_control_cost_matrix(np.eye(2))


class TestValidateCostMatrix:
    """Tests for weight matrix checks."""

    def test_accepts_psd(self):
        validate_cost_matrix(np.diag([1.0, 0.0, 2.0]), 3, 'Q')

    def test_wrong_shape_raises(self):
        with pytest.raises(ValueError, match="shape"):
            validate_cost_matrix(np.eye(2), 3, 'Q')

    def test_non_symmetric_raises(self):
        with pytest.raises(ValueError, match="symmetric"):
            validate_cost_matrix(np.array([[1.0, 1.0], [0.0, 1.0]]), 2, 'Q')

    def test_indefinite_raises(self):
        with pytest.raises(ValueError, match="positive semi-definite"):
            validate_cost_matrix(np.diag([1.0, -1.0]), 2, 'Q')


class TestTerminalCostDare:
    """Tests for the DARE terminal cost."""

    def test_satisfies_riccati_equation(self, discrete_dynamics, mpc_config):
        A = discrete_dynamics.state_matrix_discrete
        B = discrete_dynamics.control_matrix_discrete
        Q = mpc_config.state_cost_matrix
        R = mpc_config.control_cost_matrix

        P = compute_terminal_cost_dare(A, B, Q, R)

        gain_term = A.T @ P @ B @ np.linalg.solve(R + B.T @ P @ B, B.T @ P @ A)
        residual = A.T @ P @ A - gain_term + Q - P
        assert np.max(np.abs(residual)) < 1e-6 * np.max(np.abs(P))

    def test_symmetric_positive_definite(self, discrete_dynamics, mpc_config):
        P = compute_terminal_cost_dare(
            discrete_dynamics.state_matrix_discrete,
            discrete_dynamics.control_matrix_discrete,
            mpc_config.state_cost_matrix,
            mpc_config.control_cost_matrix,
        )

        np.testing.assert_array_equal(P, P.T)
        assert np.min(np.linalg.eigvalsh(P)) > 0

    def test_mismatched_cost_shape_raises(self, discrete_dynamics):
        with pytest.raises(ValueError, match="state_cost shape"):
            compute_terminal_cost_dare(
                discrete_dynamics.state_matrix_discrete,
                discrete_dynamics.control_matrix_discrete,
                np.eye(2),
                np.eye(1),
            )
