"""Closed-loop simulation of linear MPC.

Public API:
    - RecedingHorizonSimulation: Predict -> optimize -> apply -> advance loop
    - ClosedLoopConfig: Configuration dataclass for a closed-loop run
    - SimulationResult: Result dataclass from simulation runs
    - FAILURE_POLICIES: Accepted handling modes for non-converged solves
    - build_pitch_simulation: Aircraft pitch example from YAML files
"""

from simulation.receding_horizon import (
    RecedingHorizonSimulation,
    ClosedLoopConfig,
    SimulationResult,
    FAILURE_POLICIES,
)
from simulation.pitch_example import build_pitch_simulation, DEFAULT_CONFIG_DIR

__all__ = [
    'RecedingHorizonSimulation',
    'ClosedLoopConfig',
    'SimulationResult',
    'FAILURE_POLICIES',
    'build_pitch_simulation',
    'DEFAULT_CONFIG_DIR',
]
