"""Core data structures: datasets and partitions."""

from mvpastats.core.version import __version__
from mvpastats.core.dataset import Dataset, check_dataset, slice_dataset
from mvpastats.core.partitioning import (
    Partitions,
    nchoosek_partitioner,
    nfold_partitioner,
    check_partitions,
)

__all__ = [
    "__version__",
    "Dataset",
    "check_dataset",
    "slice_dataset",
    "Partitions",
    "nchoosek_partitioner",
    "nfold_partitioner",
    "check_partitions",
]
