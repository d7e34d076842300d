"""Dataset measures: split-half correlation and sample averaging."""

from mvpastats.measures.cache import MeasureCache
from mvpastats.measures.correlation import (
    compute_correlation_measure,
    default_template,
    unflatten_correlations,
)
from mvpastats.measures.averaging import compute_averaging_measure

__all__ = [
    "MeasureCache",
    "compute_correlation_measure",
    "default_template",
    "unflatten_correlations",
    "compute_averaging_measure",
]
