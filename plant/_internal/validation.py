"""Runtime contract validation utilities.

Internal module for parameter and input validation of plant models.
"""

import numpy as np


def validate_positive(value: float, name: str) -> None:
    """Validate that a value is strictly positive.

    Args:
        value: Value to validate
        name: Parameter name for error message

    Raises:
        ValueError: If value <= 0
    """
    if value <= 0:
        raise ValueError(
            f"{name} must be positive, got {value}"
        )


def validate_finite(value: float, name: str) -> None:
    """Validate that a scalar coefficient is a finite number.

    Raises:
        ValueError: If value is NaN or infinite
    """
    if not np.isfinite(value):
        raise ValueError(
            f"{name} must be finite, got {value}"
        )


def validate_vector(vector: np.ndarray, dimension: int, name: str) -> None:
    """Validate vector has shape (dimension,) and finite values.

    Args:
        vector: Vector to validate
        dimension: Expected length
        name: Vector name for error message

    Raises:
        ValueError: If shape incorrect or contains non-finite values
    """
    if vector.shape != (dimension,):
        raise ValueError(
            f"{name} must have shape ({dimension},), got {vector.shape}"
        )

    if not np.all(np.isfinite(vector)):
        raise ValueError(
            f"{name} contains non-finite values: {vector}"
        )


def validate_system_matrices(
    state_matrix: np.ndarray,
    control_matrix: np.ndarray,
) -> None:
    """Validate that (A, B) describe one linear system.

    Raises:
        ValueError: If A is not square or B has a different row count
    """
    if state_matrix.ndim != 2 or state_matrix.shape[0] != state_matrix.shape[1]:
        raise ValueError(
            f"State matrix must be square, got {state_matrix.shape}"
        )
    if control_matrix.ndim != 2 or control_matrix.shape[0] != state_matrix.shape[0]:
        raise ValueError(
            f"Control matrix shape {control_matrix.shape} incompatible "
            f"with state matrix shape {state_matrix.shape}"
        )
    if not (np.all(np.isfinite(state_matrix)) and np.all(np.isfinite(control_matrix))):
        raise ValueError("System matrices contain non-finite values")
