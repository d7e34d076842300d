"""Statistical measures for multivariate pattern analysis of neuroimaging data."""

from mvpastats.core import (
    __version__,
    Dataset,
    Partitions,
    check_dataset,
    slice_dataset,
    nchoosek_partitioner,
    nfold_partitioner,
    check_partitions,
)
from mvpastats.config import CorrelationMeasureConfig, AveragingConfig, OutputMode
from mvpastats.measures import (
    MeasureCache,
    compute_correlation_measure,
    compute_averaging_measure,
    unflatten_correlations,
)
from mvpastats.statistics import compute_statistic
from mvpastats.utils.logging import setup_logging

__all__ = [
    "__version__",
    "Dataset",
    "Partitions",
    "check_dataset",
    "slice_dataset",
    "nchoosek_partitioner",
    "nfold_partitioner",
    "check_partitions",
    "CorrelationMeasureConfig",
    "AveragingConfig",
    "OutputMode",
    "MeasureCache",
    "compute_correlation_measure",
    "compute_averaging_measure",
    "unflatten_correlations",
    "compute_statistic",
    "setup_logging",
]
