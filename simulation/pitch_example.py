"""Aircraft pitch example assembled from the shipped YAML files."""

from dataclasses import replace
import logging
from pathlib import Path
from typing import Optional

from plant import (
    PitchPlantParameters,
    build_pitch_dynamics,
    discretize_linear_dynamics,
)
from mpc import MPCConfig, create_solver
from simulation.receding_horizon import ClosedLoopConfig, RecedingHorizonSimulation


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent / 'config' / 'aircraft_pitch'


def build_pitch_simulation(
    config_dir: Optional[Path] = None,
    prediction_horizon_steps: Optional[int] = None,
    solver_name: Optional[str] = None,
    warm_start_enabled: Optional[bool] = None,
    num_steps: Optional[int] = None,
    failure_policy: Optional[str] = None,
) -> RecedingHorizonSimulation:
    """Build the closed-loop aircraft pitch simulation.

    Loads plant_params.yaml, mpc_params.yaml and simulation_params.yaml from
    ``config_dir``, discretizes the plant with the MPC sampling period and
    wires the configured solver into a RecedingHorizonSimulation. Keyword
    arguments that are not None override the corresponding YAML value.

    Raises:
        FileNotFoundError: If a configuration file is missing
        ValueError: If a configuration value is invalid
    """
    config_dir = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR

    plant_params = PitchPlantParameters.from_yaml(str(config_dir / 'plant_params.yaml'))
    mpc_config = MPCConfig.from_yaml(str(config_dir / 'mpc_params.yaml'))
    loop_config = ClosedLoopConfig.from_yaml(str(config_dir / 'simulation_params.yaml'))

    mpc_overrides = {}
    if prediction_horizon_steps is not None:
        mpc_overrides['prediction_horizon_steps'] = prediction_horizon_steps
    if solver_name is not None:
        mpc_overrides['solver_name'] = solver_name
    if warm_start_enabled is not None:
        mpc_overrides['warm_start_enabled'] = warm_start_enabled
    if mpc_overrides:
        mpc_config = replace(mpc_config, **mpc_overrides)

    loop_overrides = {}
    if num_steps is not None:
        loop_overrides['num_steps'] = num_steps
    if failure_policy is not None:
        loop_overrides['failure_policy'] = failure_policy
    if loop_overrides:
        loop_config = replace(loop_config, **loop_overrides)

    continuous = build_pitch_dynamics(plant_params)
    discrete = discretize_linear_dynamics(
        continuous.state_matrix,
        continuous.control_matrix,
        mpc_config.sampling_period_s,
    )
    solver = create_solver(mpc_config, discrete)

    logger.info(
        "Aircraft pitch MPC: N=%d, Ts=%.3f s, solver=%s, warm start=%s",
        mpc_config.prediction_horizon_steps,
        mpc_config.sampling_period_s,
        mpc_config.solver_name,
        mpc_config.warm_start_enabled,
    )

    return RecedingHorizonSimulation(solver, discrete, loop_config)
