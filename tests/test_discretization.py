"""Tests for discretization module.

Tests ZOH vs Euler, time-step sensitivity and the one-step update.
"""

import pytest
import numpy as np
import scipy.linalg

from plant import (
    DiscreteDynamics,
    build_pitch_dynamics,
    discretize_linear_dynamics,
    step_dynamics,
)


@pytest.fixture
def continuous(plant_params):
    """Continuous aircraft pitch dynamics."""
    return build_pitch_dynamics(plant_params)


def test_zoh_vs_euler_comparison(continuous):
    """Test that ZOH differs from Euler for the same time step."""
    sampling_period_s = 0.1

    discrete_sys = discretize_linear_dynamics(
        continuous.state_matrix,
        continuous.control_matrix,
        sampling_period_s
    )

    # Euler approximation: A_d ≈ I + A*Ts
    euler_state_matrix = np.eye(3) + continuous.state_matrix * sampling_period_s

    error = np.linalg.norm(
        discrete_sys.state_matrix_discrete - euler_state_matrix
    )
    assert error > 1e-6, "ZOH should differ from Euler approximation"


def test_time_step_independence(continuous):
    """Test that smaller time steps approach continuous limit."""
    small_ts = 0.001
    discrete_sys_small = discretize_linear_dynamics(
        continuous.state_matrix,
        continuous.control_matrix,
        small_ts
    )

    first_order_approx = np.eye(3) + continuous.state_matrix * small_ts

    np.testing.assert_allclose(
        discrete_sys_small.state_matrix_discrete,
        first_order_approx,
        atol=1e-5  # Absolute tolerance accounts for second-order terms
    )
    np.testing.assert_allclose(
        discrete_sys_small.control_matrix_discrete,
        continuous.control_matrix * small_ts,
        atol=1e-5
    )


def test_state_matrix_is_matrix_exponential(continuous):
    """A_d equals expm(A*Ts) exactly."""
    discrete_sys = discretize_linear_dynamics(
        continuous.state_matrix, continuous.control_matrix, 0.1
    )

    np.testing.assert_allclose(
        discrete_sys.state_matrix_discrete,
        scipy.linalg.expm(continuous.state_matrix * 0.1),
        atol=1e-12,
    )


def test_matrix_shapes_and_properties(discrete_dynamics):
    """Verify discrete matrix shapes and numerical properties."""
    assert discrete_dynamics.state_matrix_discrete.shape == (3, 3)
    assert discrete_dynamics.control_matrix_discrete.shape == (3, 1)
    assert discrete_dynamics.sampling_period_s == 0.1
    assert np.all(np.isfinite(discrete_dynamics.state_matrix_discrete))
    assert np.all(np.isfinite(discrete_dynamics.control_matrix_discrete))


def test_invalid_sampling_period_raises(continuous):
    with pytest.raises(ValueError, match="must be positive"):
        discretize_linear_dynamics(
            continuous.state_matrix, continuous.control_matrix, 0.0
        )


def test_incompatible_matrices_raise():
    with pytest.raises(ValueError):
        discretize_linear_dynamics(np.eye(3), np.ones((2, 1)), 0.1)


class TestStepDynamics:
    """Tests for the discrete one-step update."""

    def test_linear_update(self, discrete_dynamics):
        """x_next = A_d x + B_d u."""
        state = np.array([0.1, -0.2, 0.3])
        control = np.array([0.5])

        next_state = step_dynamics(discrete_dynamics, state, control)

        expected = (
            discrete_dynamics.state_matrix_discrete @ state
            + discrete_dynamics.control_matrix_discrete @ control
        )
        np.testing.assert_allclose(next_state, expected)

    def test_zero_state_zero_control_stays_zero(self, discrete_dynamics):
        next_state = step_dynamics(discrete_dynamics, np.zeros(3), np.zeros(1))

        assert np.all(next_state == 0)

    def test_scalar_control_accepted(self, discrete_dynamics):
        """A single-input plant accepts a bare float."""
        next_state = step_dynamics(discrete_dynamics, np.zeros(3), 0.5)

        np.testing.assert_allclose(
            next_state, 0.5 * discrete_dynamics.control_matrix_discrete[:, 0]
        )

    def test_wrong_state_shape_raises(self, discrete_dynamics):
        with pytest.raises(ValueError, match="state must have shape"):
            step_dynamics(discrete_dynamics, np.zeros(2), np.zeros(1))

    def test_non_finite_control_raises(self, discrete_dynamics):
        with pytest.raises(ValueError, match="non-finite"):
            step_dynamics(discrete_dynamics, np.zeros(3), np.array([np.inf]))


class TestDiscreteDynamicsFromMatrices:
    """Tests for wrapping already-discrete matrices."""

    def test_nested_lists(self):
        dynamics = DiscreteDynamics.from_matrices(
            [[1.0, 0.1], [0.0, 1.0]], [0.0, 0.1]
        )

        assert dynamics.state_matrix_discrete.shape == (2, 2)
        assert dynamics.control_matrix_discrete.shape == (2, 1)
        assert dynamics.state_dimension == 2
        assert dynamics.control_dimension == 1

    def test_non_positive_sampling_period_raises(self):
        with pytest.raises(ValueError):
            DiscreteDynamics.from_matrices(np.eye(2), np.ones((2, 1)), 0.0)
