"""Validation utilities for MPC module.

Provides input validation for MPC configuration and solver inputs.
"""

import numpy as np

SUPPORTED_SOLVERS = ('slsqp', 'ipopt')


def validate_positive(value: float, name: str) -> None:
    """Validate that a value is strictly positive.

    Args:
        value: The value to validate
        name: Parameter name for error messages

    Raises:
        ValueError: If value is not positive
    """
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_positive_integer(value: int, name: str) -> None:
    """Validate that a value is a positive integer.

    Args:
        value: The value to validate
        name: Parameter name for error messages

    Raises:
        ValueError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")


def validate_cost_diagonal(diagonal: np.ndarray, name: str) -> None:
    """Validate cost weight diagonal elements.

    Weights may be zero (positive semi-definite) but never negative.

    Args:
        diagonal: Array of diagonal elements
        name: Parameter name for error messages

    Raises:
        ValueError: If diagonal is empty, not 1-D, negative or non-finite
    """
    if diagonal.ndim != 1 or diagonal.size == 0:
        raise ValueError(
            f"{name} must be a non-empty 1-D sequence, got shape {diagonal.shape}"
        )
    if not np.all(np.isfinite(diagonal)):
        raise ValueError(f"All {name} elements must be finite")
    if not np.all(diagonal >= 0):
        raise ValueError(f"All {name} elements must be non-negative")


def validate_bound_pair(lower: np.ndarray, upper: np.ndarray, name: str) -> None:
    """Validate a lower/upper box bound pair.

    Raises:
        ValueError: If bounds contain NaN or lower > upper anywhere
    """
    if np.any(np.isnan(lower)) or np.any(np.isnan(upper)):
        raise ValueError(f"{name} bounds must not contain NaN")
    if np.any(lower > upper):
        raise ValueError(
            f"{name} lower bound {lower} exceeds upper bound {upper}"
        )


def validate_bound_length(bound: np.ndarray, dimension: int, name: str) -> None:
    """Validate a bound is a scalar or has one entry per component.

    Raises:
        ValueError: If bound length is neither 1 nor dimension
    """
    if bound.ndim > 1 or bound.size not in (1, dimension):
        raise ValueError(
            f"{name} must be a scalar or have {dimension} entries, "
            f"got shape {bound.shape}"
        )


def validate_solver_name(solver_name: str) -> None:
    """Validate solver name is supported.

    'slsqp' runs scipy.optimize.minimize over the input sequence;
    'ipopt' runs the CasADi Opti formulation.

    Args:
        solver_name: Name of the optimizer backend

    Raises:
        ValueError: If solver name is not supported
    """
    if solver_name not in SUPPORTED_SOLVERS:
        raise ValueError(
            f"solver_name must be one of {SUPPORTED_SOLVERS}, got '{solver_name}'"
        )
