"""Plant models for linear MPC.

This module provides the aircraft pitch state-space model and the
zero-order-hold discretization used by the MPC layer.

Public API:
    - PitchPlantParameters: Aerodynamic coefficient dataclass
    - ContinuousDynamics: Continuous system dataclass
    - build_pitch_dynamics: Compute continuous A, B matrices
    - DiscreteDynamics: Discrete system dataclass
    - discretize_linear_dynamics: Convert continuous to discrete
    - step_dynamics: Advance a discrete system one sample
"""

from plant.parameters import PitchPlantParameters
from plant.continuous_dynamics import (
    ContinuousDynamics,
    build_pitch_dynamics,
)
from plant.discretization import (
    DiscreteDynamics,
    discretize_linear_dynamics,
    step_dynamics,
)

__all__ = [
    'PitchPlantParameters',
    'ContinuousDynamics',
    'build_pitch_dynamics',
    'DiscreteDynamics',
    'discretize_linear_dynamics',
    'step_dynamics',
]
