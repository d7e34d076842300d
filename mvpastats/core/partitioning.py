"""Train/test partitions over the chunks of a dataset."""

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Union

import numpy as np

from mvpastats.core.dataset import Dataset
from mvpastats.utils.exceptions import PartitionError
from mvpastats.utils.matrix import fast_unique

logger = logging.getLogger(__name__)


@dataclass
class Partitions:
    """Ordered set of train/test splits of the samples of a dataset.

    Attributes:
        train_indices: One integer index array per partition.
        test_indices: One integer index array per partition.
    """
    train_indices: List[np.ndarray] = field(default_factory=list)
    test_indices: List[np.ndarray] = field(default_factory=list)

    @property
    def npartitions(self) -> int:
        return len(self.train_indices)

    def __iter__(self):
        return iter(zip(self.train_indices, self.test_indices))


def nchoosek_partitioner(ds: Dataset, k: Union[int, str]) -> Partitions:
    """Partition samples by taking every combination of k chunks for testing.

    Args:
        ds: Dataset with ``sa["chunks"]``
        k: Number of test chunks per partition, or ``"half"`` for half of
            the chunks (rounded down). With ``"half"`` and an even number
            of chunks, only combinations containing the first chunk are
            kept, so that no split appears twice with train and test
            swapped.

    Returns:
        Partitions where each test set is the samples in k chunks and the
        train set is the samples in all other chunks.

    Raises:
        PartitionError: If there are fewer than two chunks or k is invalid

    Example:
        >>> ds.sa["chunks"]
        array([1, 1, 2, 2, 3, 3, 4, 4])
        >>> p = nchoosek_partitioner(ds, "half")
        >>> p.npartitions
        3
    """
    chunks = ds.chunks
    unique_chunks, _, chunk_ids = fast_unique(chunks)
    nchunks = len(unique_chunks)

    if nchunks < 2:
        raise PartitionError(
            f"At least 2 chunks are required for partitioning, found {nchunks}"
        )

    is_half = isinstance(k, str)
    if is_half:
        if k != "half":
            raise PartitionError(f"k must be an integer or 'half', got '{k}'")
        k = nchunks // 2

    if not 1 <= k < nchunks:
        raise PartitionError(
            f"k must be between 1 and {nchunks - 1} for {nchunks} chunks, got {k}"
        )

    combinations = list(itertools.combinations(range(nchunks), k))
    if is_half and 2 * k == nchunks:
        combinations = combinations[:len(combinations) // 2]

    partitions = Partitions()
    for test_chunk_ids in combinations:
        test_msk = np.isin(chunk_ids, test_chunk_ids)
        partitions.train_indices.append(np.flatnonzero(~test_msk))
        partitions.test_indices.append(np.flatnonzero(test_msk))

    logger.debug(
        f"Created {partitions.npartitions} partitions from {nchunks} chunks "
        f"with {k} test chunk(s) each"
    )

    return partitions


def nfold_partitioner(ds: Dataset) -> Partitions:
    """Leave-one-chunk-out partitioning.

    Args:
        ds: Dataset with ``sa["chunks"]``

    Returns:
        One partition per chunk, testing on that chunk and training on
        all other chunks.
    """
    return nchoosek_partitioner(ds, 1)


def check_partitions(
    partitions: Partitions,
    ds: Dataset,
    unbalanced_partitions_ok: bool = False,
) -> None:
    """Check that partitions are valid for a dataset.

    Args:
        partitions: Partitions to check
        ds: Dataset with ``sa["chunks"]`` and ``sa["targets"]``
        unbalanced_partitions_ok: If False, every target must occur equally
            often in each training set.

    Raises:
        PartitionError: If train and test lists differ in length, an index
            is invalid or out of range, a half is empty, train and test
            share a sample or a chunk, or training targets are unbalanced.
    """
    ntrain = len(partitions.train_indices)
    ntest = len(partitions.test_indices)
    if ntrain != ntest:
        raise PartitionError(
            f"Partition count mismatch: {ntrain} train sets, {ntest} test sets"
        )

    if ntrain == 0:
        raise PartitionError("No partitions found")

    nsamples = ds.nsamples
    chunks = ds.chunks
    targets = ds.targets if "targets" in ds.sa else None

    for k, (train, test) in enumerate(partitions, start=1):
        for label, indices in (("train", train), ("test", test)):
            indices = np.asarray(indices)
            if indices.size == 0:
                raise PartitionError(f"Partition #{k}: empty {label} indices")
            if not np.issubdtype(indices.dtype, np.integer):
                raise PartitionError(
                    f"Partition #{k}: {label} indices must be integers, "
                    f"got {indices.dtype}"
                )
            if indices.min() < 0 or indices.max() >= nsamples:
                raise PartitionError(
                    f"Partition #{k}: {label} indices out of range "
                    f"[0, {nsamples})"
                )

        overlap = np.intersect1d(train, test)
        if overlap.size:
            raise PartitionError(
                f"Partition #{k}: samples {overlap.tolist()} are in both "
                f"train and test indices"
            )

        shared_chunks = np.intersect1d(chunks[train], chunks[test])
        if shared_chunks.size:
            raise PartitionError(
                f"Partition #{k}: chunks {shared_chunks.tolist()} are in both "
                f"train and test indices"
            )

        if targets is not None and not unbalanced_partitions_ok:
            _, counts = np.unique(targets[train], return_counts=True)
            if np.any(counts != counts[0]):
                raise PartitionError(
                    f"Partition #{k}: unbalanced targets in train indices "
                    f"(counts {counts.tolist()}); set "
                    f"unbalanced_partitions_ok=True to allow this"
                )
