from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = REPO_ROOT / 'simulation' / 'config' / 'aircraft_pitch'

# Allow running the suite from a checkout without `pip install -e .`
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def config_dir() -> Path:
    """Directory holding the aircraft pitch YAML files."""
    return CONFIG_DIR


@pytest.fixture
def plant_params(config_dir):
    """Load aircraft pitch coefficients."""
    from plant import PitchPlantParameters
    return PitchPlantParameters.from_yaml(str(config_dir / 'plant_params.yaml'))


@pytest.fixture
def mpc_config(config_dir):
    """Load MPC configuration."""
    from mpc import MPCConfig
    return MPCConfig.from_yaml(str(config_dir / 'mpc_params.yaml'))


@pytest.fixture
def loop_config(config_dir):
    """Load closed-loop configuration."""
    from simulation import ClosedLoopConfig
    return ClosedLoopConfig.from_yaml(str(config_dir / 'simulation_params.yaml'))


@pytest.fixture
def discrete_dynamics(plant_params, mpc_config):
    """Get discretized aircraft pitch dynamics."""
    from plant import build_pitch_dynamics, discretize_linear_dynamics
    continuous = build_pitch_dynamics(plant_params)
    return discretize_linear_dynamics(
        continuous.state_matrix,
        continuous.control_matrix,
        mpc_config.sampling_period_s,
    )
