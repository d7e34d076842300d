"""Input validation functions."""

import numpy as np

from mvpastats.utils.exceptions import ConfigurationError


def validate_square(matrix: np.ndarray, size: int, name: str = "matrix") -> None:
    """Validate a matrix has shape (size, size).

    Args:
        matrix: Array to validate
        size: Expected number of rows and columns
        name: Parameter name for error message

    Raises:
        ConfigurationError: If the shape differs
    """
    shape = np.shape(matrix)
    if shape != (size, size):
        raise ConfigurationError(
            f"{name} must have shape ({size}, {size}), got {shape}"
        )
