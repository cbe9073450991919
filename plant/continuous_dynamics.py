"""Continuous-time state-space model of the aircraft pitch dynamics."""

from dataclasses import dataclass

import numpy as np

from plant.parameters import (
    PitchPlantParameters,
    STATE_DIMENSION,
    CONTROL_DIMENSION,
    ANGLE_OF_ATTACK_INDEX,
    PITCH_RATE_INDEX,
    PITCH_ANGLE_INDEX,
    ELEVATOR_INDEX,
)
from plant._internal.validation import validate_system_matrices


@dataclass(frozen=True)
class ContinuousDynamics:
    """Continuous linear system x_dot = A·x + B·u.

    Attributes:
        state_matrix: A matrix (n, n)
        control_matrix: B matrix (n, m)
    """
    state_matrix: np.ndarray
    control_matrix: np.ndarray

    def __post_init__(self):
        validate_system_matrices(self.state_matrix, self.control_matrix)

    @property
    def state_dimension(self) -> int:
        return self.state_matrix.shape[0]

    @property
    def control_dimension(self) -> int:
        return self.control_matrix.shape[1]


def build_pitch_dynamics(params: PitchPlantParameters) -> ContinuousDynamics:
    """Assemble the continuous A, B matrices from plant coefficients.

    Args:
        params: Aircraft pitch coefficients

    Returns:
        ContinuousDynamics with A (3, 3) and B (3, 1)
    """
    state_matrix = np.zeros((STATE_DIMENSION, STATE_DIMENSION))
    control_matrix = np.zeros((STATE_DIMENSION, CONTROL_DIMENSION))

    # alpha_dot
    state_matrix[ANGLE_OF_ATTACK_INDEX, ANGLE_OF_ATTACK_INDEX] = (
        params.alpha_alpha_coefficient
    )
    state_matrix[ANGLE_OF_ATTACK_INDEX, PITCH_RATE_INDEX] = (
        params.alpha_pitch_rate_coefficient
    )
    control_matrix[ANGLE_OF_ATTACK_INDEX, ELEVATOR_INDEX] = (
        params.alpha_elevator_coefficient
    )

    # q_dot
    state_matrix[PITCH_RATE_INDEX, ANGLE_OF_ATTACK_INDEX] = (
        params.pitch_rate_alpha_coefficient
    )
    state_matrix[PITCH_RATE_INDEX, PITCH_RATE_INDEX] = (
        params.pitch_rate_pitch_rate_coefficient
    )
    control_matrix[PITCH_RATE_INDEX, ELEVATOR_INDEX] = (
        params.pitch_rate_elevator_coefficient
    )

    # theta_dot (pure integrator of pitch rate)
    state_matrix[PITCH_ANGLE_INDEX, PITCH_RATE_INDEX] = (
        params.pitch_angle_pitch_rate_coefficient
    )

    return ContinuousDynamics(
        state_matrix=state_matrix,
        control_matrix=control_matrix,
    )
