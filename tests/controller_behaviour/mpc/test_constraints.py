"""Unit tests for MPC constraints."""

import numpy as np
import pytest

from mpc import MPCConfig
from mpc.constraints import (
    StateConstraints,
    InputConstraints,
    constraint_margins,
    create_constraints_from_config,
    max_constraint_violation,
    stacked_bounds,
)


class TestStateConstraints:
    """Tests for StateConstraints."""

    def test_scalar_bounds_broadcast(self):
        """A scalar limit applies to every component."""
        constraints = StateConstraints(lower_bound=-1.0, upper_bound=1.0)
        lower, upper = constraints.get_bounds(3)

        np.testing.assert_array_equal(lower, [-1.0, -1.0, -1.0])
        np.testing.assert_array_equal(upper, [1.0, 1.0, 1.0])

    def test_per_component_bounds(self):
        constraints = StateConstraints(
            lower_bound=(-1.0, -2.0, -np.inf),
            upper_bound=(1.0, 2.0, np.inf),
        )
        lower, upper = constraints.get_bounds(3)

        np.testing.assert_array_equal(lower, [-1.0, -2.0, -np.inf])
        np.testing.assert_array_equal(upper, [1.0, 2.0, np.inf])

    def test_default_is_unconstrained(self):
        lower, upper = StateConstraints().get_bounds(3)

        assert np.all(lower == -np.inf)
        assert np.all(upper == np.inf)

    def test_lower_above_upper_raises(self):
        with pytest.raises(ValueError, match="exceeds upper bound"):
            StateConstraints(lower_bound=1.0, upper_bound=-1.0)

    def test_nan_raises(self):
        with pytest.raises(ValueError, match="NaN"):
            StateConstraints(lower_bound=float('nan'), upper_bound=1.0)

    def test_wrong_length_for_dimension_raises(self):
        constraints = StateConstraints(lower_bound=(-1.0, -1.0), upper_bound=(1.0, 1.0))

        with pytest.raises(ValueError, match="scalar or have 3 entries"):
            constraints.get_bounds(3)


class TestInputConstraints:
    """Tests for InputConstraints."""

    def test_get_bounds_shape(self):
        constraints = InputConstraints(lower_bound=-1.0, upper_bound=1.0)
        lower, upper = constraints.get_bounds(1)

        assert lower.shape == (1,)
        assert upper.shape == (1,)

    def test_asymmetric_bounds(self):
        constraints = InputConstraints(lower_bound=-0.5, upper_bound=1.0)
        lower, upper = constraints.get_bounds(1)

        assert lower[0] == -0.5
        assert upper[0] == 1.0

    def test_lower_above_upper_raises(self):
        with pytest.raises(ValueError, match="exceeds upper bound"):
            InputConstraints(lower_bound=0.5, upper_bound=0.0)


class TestCreateConstraintsFromConfig:
    """Tests for create_constraints_from_config."""

    def test_example_config(self, mpc_config):
        state_constraints, input_constraints = create_constraints_from_config(mpc_config)

        state_lower, state_upper = state_constraints.get_bounds(3)
        control_lower, control_upper = input_constraints.get_bounds(1)

        np.testing.assert_array_equal(state_lower, -np.ones(3))
        np.testing.assert_array_equal(state_upper, np.ones(3))
        np.testing.assert_array_equal(control_lower, [-1.0])
        np.testing.assert_array_equal(control_upper, [1.0])

    def test_unbounded_config(self):
        config = MPCConfig(
            prediction_horizon_steps=5,
            sampling_period_s=0.1,
            state_cost_diagonal=(1.0, 1.0),
            control_cost_diagonal=(1.0,),
        )
        state_constraints, input_constraints = create_constraints_from_config(config)

        assert np.all(np.isinf(state_constraints.get_bounds(2)[0]))
        assert np.all(np.isinf(input_constraints.get_bounds(1)[1]))


class TestConstraintMargins:
    """Tests for the inequality margins over a trajectory."""

    @pytest.fixture
    def box(self):
        return (
            StateConstraints(lower_bound=-1.0, upper_bound=1.0),
            InputConstraints(lower_bound=-0.5, upper_bound=0.5),
        )

    def test_stacked_bounds_are_step_major(self):
        constraints = StateConstraints(lower_bound=(-1.0, -2.0), upper_bound=(1.0, 2.0))
        lower, upper = stacked_bounds(constraints, 2, 3)

        np.testing.assert_array_equal(lower, [-1.0, -2.0, -1.0, -2.0, -1.0, -2.0])
        np.testing.assert_array_equal(upper, [1.0, 2.0, 1.0, 2.0, 1.0, 2.0])

    def test_margin_count(self, box):
        """Four inequalities per finite component and step."""
        states = np.zeros((4, 3))
        controls = np.zeros((4, 1))

        margins = constraint_margins(states, controls, *box)

        assert margins.shape == (4 * (2 * 1 + 2 * 3),)

    def test_margin_values(self, box):
        """Margins are u_max-u, u-u_min, x_max-x, x-x_min."""
        states = np.array([[0.5, 0.0, -0.25]])
        controls = np.array([[0.2]])

        margins = constraint_margins(states, controls, *box)

        expected = np.concatenate([
            [0.5 - 0.2],
            [0.2 + 0.5],
            1.0 - states[0],
            states[0] + 1.0,
        ])
        np.testing.assert_allclose(margins, expected)

    def test_infinite_bounds_skipped(self):
        states = np.zeros((3, 2))
        controls = np.zeros((3, 1))

        margins = constraint_margins(
            states,
            controls,
            StateConstraints(lower_bound=(-1.0, -np.inf), upper_bound=(1.0, np.inf)),
            InputConstraints(),
        )

        assert margins.shape == (3 * 2,)

    def test_feasible_trajectory_has_no_violation(self, box):
        states = np.full((5, 3), 0.9)
        controls = np.full((5, 1), -0.5)

        assert max_constraint_violation(states, controls, *box) == 0.0

    def test_violation_magnitude(self, box):
        states = np.zeros((5, 3))
        states[3, 2] = -1.25
        controls = np.zeros((5, 1))
        controls[1, 0] = 0.6

        violation = max_constraint_violation(states, controls, *box)

        assert violation == pytest.approx(0.25)

    def test_no_constraints_no_violation(self):
        violation = max_constraint_violation(
            np.full((2, 2), 100.0), np.full((2, 1), 100.0),
            StateConstraints(), InputConstraints(),
        )

        assert violation == 0.0
