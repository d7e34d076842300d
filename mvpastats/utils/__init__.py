"""Utility functions for mvpastats."""

from mvpastats.utils.logging import setup_logging, timer
from mvpastats.utils.exceptions import (
    MVPAStatsError,
    DatasetError,
    PartitionError,
    ConfigurationError,
    StatisticalError,
)
from mvpastats.utils.validation import validate_square
from mvpastats.utils.matrix import (
    fast_unique,
    corr,
    fisher_z_transform,
    inverse_fisher_z_transform,
    CORRELATION_TYPES,
)

__all__ = [
    # Logging
    "setup_logging",
    "timer",
    # Exceptions
    "MVPAStatsError",
    "DatasetError",
    "PartitionError",
    "ConfigurationError",
    "StatisticalError",
    # Validation
    "validate_square",
    # Matrix utilities
    "fast_unique",
    "corr",
    "fisher_z_transform",
    "inverse_fisher_z_transform",
    "CORRELATION_TYPES",
]
