"""Dataset container shared by all measures and statistics.

A dataset holds a samples matrix (n_samples x n_features) together with
per-sample attributes (``sa``, e.g. targets and chunks), per-feature
attributes (``fa``) and free-form dataset attributes (``a``).
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Sequence

import numpy as np

from mvpastats.utils.exceptions import DatasetError

logger = logging.getLogger(__name__)


@dataclass
class Dataset:
    """Samples matrix with sample, feature and dataset attributes.

    Attributes:
        samples: Array of shape (n_samples, n_features).
        sa: Sample attributes; each value has one row per sample.
        fa: Feature attributes; each value has one entry per feature.
        a: Dataset attributes (anything that is neither per-sample nor
            per-feature, e.g. a brain mask).

    Example:
        >>> ds = Dataset(
        ...     samples=np.random.randn(4, 10),
        ...     sa={"targets": np.array([1, 2, 1, 2]),
        ...         "chunks": np.array([1, 1, 2, 2])},
        ... )
        >>> ds.nsamples, ds.nfeatures
        (4, 10)
    """
    samples: np.ndarray
    sa: Dict[str, Any] = field(default_factory=dict)
    fa: Dict[str, Any] = field(default_factory=dict)
    a: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        samples = np.asarray(self.samples)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        self.samples = samples

    @property
    def nsamples(self) -> int:
        return self.samples.shape[0]

    @property
    def nfeatures(self) -> int:
        return self.samples.shape[1]

    @property
    def targets(self) -> np.ndarray:
        return np.asarray(self.sa["targets"]).ravel()

    @property
    def chunks(self) -> np.ndarray:
        return np.asarray(self.sa["chunks"]).ravel()

    def copy(self, deep: bool = True) -> "Dataset":
        """Return a copy of the dataset."""
        if deep:
            return copy.deepcopy(self)
        return Dataset(
            samples=self.samples,
            sa=dict(self.sa),
            fa=dict(self.fa),
            a=dict(self.a),
        )


def check_dataset(ds: Dataset, required_sa: Iterable[str] = ()) -> None:
    """Check that a dataset is well formed.

    Args:
        ds: Dataset to check
        required_sa: Names of sample attributes that must be present

    Raises:
        DatasetError: If samples is not 2D, if an attribute has the wrong
            number of entries, or if a required attribute is missing.
    """
    if not isinstance(ds, Dataset):
        raise DatasetError(f"Expected a Dataset, got {type(ds).__name__}")

    if ds.samples.ndim != 2:
        raise DatasetError(
            f"samples must be 2D, got shape {ds.samples.shape}"
        )

    for name in required_sa:
        if name not in ds.sa:
            raise DatasetError(f"Missing sample attribute '{name}'")

    for name, value in ds.sa.items():
        n = len(value)
        if n != ds.nsamples:
            raise DatasetError(
                f"Sample attribute '{name}' has {n} values, "
                f"expected {ds.nsamples}"
            )

    for name, value in ds.fa.items():
        n = len(value)
        if n != ds.nfeatures:
            raise DatasetError(
                f"Feature attribute '{name}' has {n} values, "
                f"expected {ds.nfeatures}"
            )


def slice_dataset(ds: Dataset, indices: Sequence[int], axis: int = 0) -> Dataset:
    """Select samples (axis=0) or features (axis=1) from a dataset.

    Args:
        ds: Input dataset
        indices: Integer indices or boolean mask along ``axis``
        axis: 0 to slice samples and ``sa``, 1 to slice features and ``fa``

    Returns:
        New dataset; attributes along the other axis are shallow copies.

    Raises:
        DatasetError: If axis is not 0 or 1
    """
    indices = np.asarray(indices)

    if axis == 0:
        return Dataset(
            samples=ds.samples[indices, :],
            sa={k: np.asarray(v)[indices] for k, v in ds.sa.items()},
            fa=dict(ds.fa),
            a=dict(ds.a),
        )

    if axis == 1:
        return Dataset(
            samples=ds.samples[:, indices],
            sa=dict(ds.sa),
            fa={k: np.asarray(v)[indices] for k, v in ds.fa.items()},
            a=dict(ds.a),
        )

    raise DatasetError(f"axis must be 0 or 1, got {axis}")
