"""MPC module for linear receding-horizon control.

This module provides linear MPC solvers for discrete linear plants with
two optimizer backends: scipy's SLSQP and CasADi with IPOPT.

Public API:
    - MPCConfig: Configuration dataclass for MPC parameters
    - LinearMPCSolver: Solver base class
    - ScipyMPCSolver: SLSQP backend
    - CasadiMPCSolver: CasADi Opti / IPOPT backend
    - create_solver: Build the configured backend
    - MPCSolution: Solution dataclass from MPC solver
    - SolverConvergenceError: Raised when a failed solve must stop the loop
    - StateConstraints: State bound constraints
    - InputConstraints: Control bound constraints
    - constraint_margins: Evaluate box inequalities over a trajectory
    - predict_trajectory: Simulate the model over an input sequence
    - horizon_cost: Evaluate the tracking-plus-effort cost
    - build_state_cost_matrix: Build Q matrix from diagonal
    - build_control_cost_matrix: Build R matrix from diagonal
    - compute_terminal_cost_dare: Compute Q_f via DARE
"""

from mpc.config import MPCConfig
from mpc.cost_matrices import (
    build_state_cost_matrix,
    build_control_cost_matrix,
    compute_terminal_cost_dare,
)
from mpc.constraints import (
    StateConstraints,
    InputConstraints,
    constraint_margins,
    create_constraints_from_config,
)
from mpc.exceptions import SolverConvergenceError
from mpc.prediction import (
    build_prediction_matrices,
    horizon_cost,
    predict_trajectory,
)
from mpc.linear_mpc_solver import (
    LinearMPCSolver,
    ScipyMPCSolver,
    CasadiMPCSolver,
    MPCSolution,
    create_solver,
)

__all__ = [
    'MPCConfig',
    'LinearMPCSolver',
    'ScipyMPCSolver',
    'CasadiMPCSolver',
    'MPCSolution',
    'SolverConvergenceError',
    'create_solver',
    'StateConstraints',
    'InputConstraints',
    'constraint_margins',
    'create_constraints_from_config',
    'build_prediction_matrices',
    'horizon_cost',
    'predict_trajectory',
    'build_state_cost_matrix',
    'build_control_cost_matrix',
    'compute_terminal_cost_dare',
]
