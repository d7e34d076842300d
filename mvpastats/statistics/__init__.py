"""Featurewise statistics for MVPA datasets.

This module provides:
- One-sample t, two-sample t and one-way ANOVA F statistics computed for
  all features at once
- Conversion of statistics to z-scores and p-values
"""

from mvpastats.statistics.stat import (
    compute_statistic,
    quick_ttest,
    quick_ttest2,
    quick_ftest,
    STAT_CONTRACTS,
)
from mvpastats.statistics.distributions import cdf, icdf

__all__ = [
    # Statistics
    "compute_statistic",
    "quick_ttest",
    "quick_ttest2",
    "quick_ftest",
    "STAT_CONTRACTS",
    # Distributions
    "cdf",
    "icdf",
]
