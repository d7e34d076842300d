"""Configuration parameter validation."""

from typing import Any, List

import numpy as np

from mvpastats.utils.exceptions import ConfigurationError


class ConfigValidator:
    """Validate measure options, collecting every problem before raising.

    Each ``validate_*`` method records a message in ``errors`` and returns
    False on failure, so that a single ``raise_if_errors`` call reports all
    invalid options at once.

    Attributes:
        errors: List of validation error messages

    Example:
        >>> validator = ConfigValidator()
        >>> validator.validate_choice("cosine", ["Pearson"], "corr_type")
        False
        >>> validator.raise_if_errors()
        Traceback (most recent call last):
        ...
        ConfigurationError: Configuration validation failed:
          - corr_type must be one of ['Pearson'], got 'cosine'
    """

    def __init__(self):
        self.errors: List[str] = []

    def validate_positive(self, value: Any, name: str) -> bool:
        """Validate value is a positive number (booleans are rejected)."""
        if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
            self.errors.append(f"{name} must be a number, got {type(value).__name__}")
            return False

        if value <= 0:
            self.errors.append(f"{name} must be positive, got {value}")
            return False

        return True

    def validate_choice(self, value: Any, choices: List[Any], name: str) -> bool:
        """Validate value is in allowed choices.

        Args:
            value: Value to validate
            choices: List of allowed values
            name: Parameter name for error message

        Returns:
            True if valid, False otherwise
        """
        if value not in choices:
            self.errors.append(f"{name} must be one of {choices}, got '{value}'")
            return False

        return True

    def validate_type(self, value: Any, expected_type: type, name: str) -> bool:
        if not isinstance(value, expected_type):
            self.errors.append(
                f"{name} must be of type {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )
            return False

        return True

    def validate_callable(self, value: Any, name: str, allow_none: bool = False) -> bool:
        """Validate value is a function, or None when ``allow_none``."""
        if value is None and allow_none:
            return True

        if not callable(value):
            self.errors.append(f"{name} must be callable, got {type(value).__name__}")
            return False

        return True

    def validate_square_matrix(self, matrix: np.ndarray, name: str) -> bool:
        """Validate matrix is 2-D with as many rows as columns."""
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            self.errors.append(f"{name} must be a square matrix, got shape {matrix.shape}")
            return False

        return True

    def validate_zero_sum(self, matrix: np.ndarray, name: str, tolerance: float) -> bool:
        """Validate the finite entries of matrix sum to zero within tolerance.

        Non-finite entries are excluded from the sum.

        Args:
            matrix: Float array to validate
            name: Parameter name for error message
            tolerance: Largest absolute sum accepted as zero

        Returns:
            True if valid, False otherwise
        """
        total = matrix[np.isfinite(matrix)].sum()

        if abs(total) > tolerance:
            self.errors.append(f"{name} does not have a sum of zero (sum={total:.3g})")
            return False

        return True

    def raise_if_errors(self) -> None:
        """Raise ConfigurationError if any validation errors occurred.

        Raises:
            ConfigurationError: If there are any validation errors
        """
        if self.errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(
                f"  - {err}" for err in self.errors
            )
            raise ConfigurationError(error_msg)
