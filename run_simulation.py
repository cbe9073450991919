#!/usr/bin/env python3
"""Run the closed-loop aircraft pitch MPC example.

Usage:
    python3 run_simulation.py                    # Run with YAML settings
    python3 run_simulation.py --steps 60         # Longer run
    python3 run_simulation.py --solver ipopt     # CasADi/IPOPT backend
    python3 run_simulation.py --warm-start       # Shifted warm start
"""

import argparse
import logging

import numpy as np

from mpc import SolverConvergenceError
from simulation import build_pitch_simulation, FAILURE_POLICIES


def main():
    parser = argparse.ArgumentParser(description='Run receding-horizon pitch MPC')
    parser.add_argument('--config-dir', type=str, default=None,
                        help='Directory holding plant/mpc/simulation YAML files')
    parser.add_argument('--steps', type=int, default=None,
                        help='Number of closed-loop steps T')
    parser.add_argument('--horizon', type=int, default=None,
                        help='Prediction horizon N')
    parser.add_argument('--solver', choices=['slsqp', 'ipopt'], default=None,
                        help='Optimizer backend')
    parser.add_argument('--warm-start', action='store_true',
                        help='Seed each solve with the shifted previous solution')
    parser.add_argument('--failure-policy', choices=FAILURE_POLICIES, default=None,
                        help='Handling of non-converged solves')
    parser.add_argument('--verbose', action='store_true',
                        help='Log every closed-loop step')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    sim = build_pitch_simulation(
        config_dir=args.config_dir,
        prediction_horizon_steps=args.horizon,
        solver_name=args.solver,
        warm_start_enabled=True if args.warm_start else None,
        num_steps=args.steps,
        failure_policy=args.failure_policy,
    )

    try:
        result = sim.run()
    except SolverConvergenceError as error:
        print(f"Stopped: {error}")
        return 1

    np.set_printoptions(precision=4, suppress=True)

    print("\n" + "=" * 50)
    print("Trajectory")
    print("=" * 50)
    print(f"  {'k':>3}  {'u':>9}  {'alpha':>9}  {'q':>9}  {'theta':>9}  ok")
    for step_index in range(result.num_steps):
        state = result.state_history[step_index + 1]
        control = result.control_history[step_index]
        flag = 'y' if result.converged_history[step_index] else 'n'
        print(f"  {step_index:>3}  {control[0]:>9.4f}  {state[0]:>9.4f}  "
              f"{state[1]:>9.4f}  {state[2]:>9.4f}  {flag}")

    print("\n" + "=" * 50)
    print("Simulation Results")
    print("=" * 50)
    print(f"  Final state: {result.final_state}")
    print(f"  All solves converged: {result.all_converged}")
    if not result.all_converged:
        print(f"  Non-converged steps: {result.failed_steps}")
    print(f"  Mean solve time: {result.mean_solve_time_ms:.1f}ms")
    print(f"  Max solve time: {result.max_solve_time_ms:.1f}ms")
    print(f"  Max constraint violation: "
          f"{np.max(result.constraint_violation_history):.2e}")

    return 0


if __name__ == '__main__':
    exit(main())
