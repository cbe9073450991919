"""Aerodynamic coefficients for the aircraft pitch example.

Linearized longitudinal short-period model of an aircraft in steady,
level cruise (constant altitude and airspeed), in physical time units:

    alpha_dot = a11*alpha + a12*q + b1*delta
    q_dot     = a21*alpha + a22*q + b2*delta
    theta_dot = a32*q

State vector: [alpha, q, theta] (angle of attack, pitch rate, pitch angle)
Control vector: [delta] (elevator deflection)
"""

from dataclasses import dataclass

import yaml

from plant._internal.validation import validate_finite


@dataclass(frozen=True)
class PitchPlantParameters:
    """Continuous-time coefficients for the aircraft pitch dynamics.

    All parameters immutable after construction (frozen=True). Defaults
    describe a statically stable airframe (negative pitch stiffness and
    damping) with theta_dot = q. The values are illustrative, not
    identified from a real aircraft.

    Attributes:
        alpha_alpha_coefficient: d(alpha_dot)/d(alpha)
        alpha_pitch_rate_coefficient: d(alpha_dot)/d(q)
        alpha_elevator_coefficient: d(alpha_dot)/d(delta)
        pitch_rate_alpha_coefficient: d(q_dot)/d(alpha)
        pitch_rate_pitch_rate_coefficient: d(q_dot)/d(q)
        pitch_rate_elevator_coefficient: d(q_dot)/d(delta)
        pitch_angle_pitch_rate_coefficient: d(theta_dot)/d(q)
    """

    alpha_alpha_coefficient: float = -0.7
    alpha_pitch_rate_coefficient: float = 1.0
    alpha_elevator_coefficient: float = 0.1
    pitch_rate_alpha_coefficient: float = -2.0
    pitch_rate_pitch_rate_coefficient: float = -1.0
    pitch_rate_elevator_coefficient: float = 2.5
    pitch_angle_pitch_rate_coefficient: float = 1.0

    def __post_init__(self):
        """Validate all coefficients are finite."""
        validate_finite(self.alpha_alpha_coefficient, 'alpha_alpha_coefficient')
        validate_finite(
            self.alpha_pitch_rate_coefficient, 'alpha_pitch_rate_coefficient'
        )
        validate_finite(self.alpha_elevator_coefficient, 'alpha_elevator_coefficient')
        validate_finite(
            self.pitch_rate_alpha_coefficient, 'pitch_rate_alpha_coefficient'
        )
        validate_finite(
            self.pitch_rate_pitch_rate_coefficient,
            'pitch_rate_pitch_rate_coefficient',
        )
        validate_finite(
            self.pitch_rate_elevator_coefficient, 'pitch_rate_elevator_coefficient'
        )
        validate_finite(
            self.pitch_angle_pitch_rate_coefficient,
            'pitch_angle_pitch_rate_coefficient',
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'PitchPlantParameters':
        """Load coefficients from YAML configuration file.

        Missing keys fall back to the dataclass defaults.

        Args:
            yaml_path: Path to YAML file containing plant coefficients

        Returns:
            PitchPlantParameters instance

        Raises:
            FileNotFoundError: If YAML file does not exist
            ValueError: If a coefficient is invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file) or {}

        return cls(**config)


# Module-level constants for state/control dimensions
STATE_DIMENSION = 3  # [alpha, q, theta]
CONTROL_DIMENSION = 1  # [delta]

# State vector indices
ANGLE_OF_ATTACK_INDEX = 0
PITCH_RATE_INDEX = 1
PITCH_ANGLE_INDEX = 2

# Control vector indices
ELEVATOR_INDEX = 0
