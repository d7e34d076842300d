"""Split-half correlation measure.

For each partition, samples in the two halves (train and test indices) are
merged per target, the patterns of the two halves are correlated across
features, and the resulting class-by-class correlation matrix is either
weighted by a template into a single score or returned as a whole.
"""

import logging
from typing import Callable, List, Optional

import numpy as np

from mvpastats.config.defaults import CorrelationMeasureConfig, OutputMode
from mvpastats.config.strategies import mean_merge
from mvpastats.core.dataset import Dataset, check_dataset
from mvpastats.core.partitioning import (
    Partitions,
    check_partitions,
    nchoosek_partitioner,
)
from mvpastats.measures.cache import MeasureCache
from mvpastats.utils.exceptions import DatasetError
from mvpastats.utils.matrix import corr, fast_unique
from mvpastats.utils.validation import validate_square

logger = logging.getLogger(__name__)


def compute_correlation_measure(
    ds: Dataset,
    config: Optional[CorrelationMeasureConfig] = None,
    cache: Optional[MeasureCache] = None,
    **options,
) -> Dataset:
    """Compute a split-half correlation measure.

    Args:
        ds: Dataset with ``sa["targets"]`` and ``sa["chunks"]``
        config: Measure configuration; defaults are used if None
        cache: Optional cache reused across calls with identical options
            (for instance in a searchlight); it never changes the result
        **options: Fields of CorrelationMeasureConfig overriding ``config``:
            partitions, template, merge_func, corr_type, post_corr_func,
            output, check_partitions, unbalanced_partitions_ok

    Returns:
        Dataset with one column of samples and, depending on ``output``:
            - 'mean' / 'corr': one sample, the template-weighted
              correlations averaged over partitions;
              ``sa["labels"] == ["corr"]``.
            - 'raw' / 'correlation' / 'one_minus_correlation': Q*Q samples
              (Q classes) with correlations (or 1 minus correlations)
              between all classes of the two halves, averaged over
              partitions. ``sa["half1"]`` and ``sa["half2"]`` hold the
              1-based class index of each sample for the first and second
              half; ``a["sdim"]`` holds the class values.
            - 'by_partition': one template-weighted sample per partition,
              with ``sa["partition"]`` (1-based) and ``sa["chunks"]``, the
              test chunk of each partition if it was tested only in that
              partition, NaN otherwise.

    Raises:
        ConfigurationError: For invalid options, including a template
            that does not sum to zero or does not match the classes
        DatasetError: If a target class has no samples in a half
        PartitionError: If partitions are invalid for the dataset

    Example:
        >>> ds = synthetic_dataset(ntargets=2, nchunks=6)
        >>> c = compute_correlation_measure(ds)
        >>> c.samples.shape
        (1, 1)
        >>> c_raw = compute_correlation_measure(ds, output="correlation")
        >>> unflatten_correlations(c_raw).shape
        (2, 2)

    Notes:
        - By default the correlations are Fisher-transformed (atanh)
          before the template is applied.
        - Multiple samples with the same chunk and target in a half are
          merged (averaged by default) prior to computing correlations.
    """
    if cache is not None:
        params = cache.resolve_config(config, options)
    else:
        params = CorrelationMeasureConfig.from_options(config, **options)
        params.validate()

    output_mode = params.output_mode

    check_dataset(ds, required_sa=("targets", "chunks"))

    partitions = params.partitions
    use_cached_partitions = partitions is None and cache is not None

    if use_cached_partitions:
        partitions, _ = cache.partitions_for(ds)
    elif partitions is None:
        partitions = nchoosek_partitioner(ds, "half")

    if params.check_partitions:
        unbalanced_ok = params.unbalanced_partitions_ok
        # cached partitions are only trusted once they passed a check on
        # the same chunks and targets
        if not (use_cached_partitions and cache.partitions_checked(ds, unbalanced_ok)):
            check_partitions(partitions, ds, unbalanced_ok)
            if use_cached_partitions:
                cache.mark_checked(ds, unbalanced_ok)

    chunks = ds.chunks
    classes, _, class_ids = fast_unique(ds.targets)
    nclasses = len(classes)

    template = params.template
    if template is None:
        template = default_template(nclasses)
    else:
        validate_square(template, nclasses, "template")
    template_msk = np.isfinite(template)

    logger.debug(
        f"Correlation measure: {partitions.npartitions} partitions, "
        f"{nclasses} classes, {params.corr_type}, output={output_mode.value}"
    )

    test_counts = np.zeros(ds.nsamples, dtype=int)
    pdata = []

    for train_indices, test_indices in partitions:
        half1 = _get_data(ds.samples, train_indices, class_ids, classes, params.merge_func)
        half2 = _get_data(ds.samples, test_indices, class_ids, classes, params.merge_func)

        raw_c = corr(half1.T, half2.T, params.corr_type)
        c = _apply_post_corr_func(params.post_corr_func, raw_c)

        pdata.append(_aggregate_correlations(c, template, template_msk, output_mode))
        test_counts[test_indices] += 1

    if output_mode is OutputMode.MEAN:
        return _assemble_mean(pdata)
    if output_mode is OutputMode.BY_PARTITION:
        return _assemble_by_partition(pdata, partitions, chunks, test_counts)
    return _assemble_matrix(pdata, classes)


def default_template(nclasses: int) -> np.ndarray:
    """Template with 1/Q on the diagonal and -1/(Q*(Q-1)) elsewhere.

    The entries sum to zero, so that the weighted sum of a correlation
    matrix is the on-diagonal mean minus the off-diagonal mean, scaled.
    """
    return (np.eye(nclasses) - 1 / nclasses) / (nclasses - 1)


def unflatten_correlations(result: Dataset) -> np.ndarray:
    """Rebuild the QxQ class-by-class matrix from a 'raw' measure result.

    Args:
        result: Output of compute_correlation_measure with output 'raw',
            'correlation' or 'one_minus_correlation'

    Returns:
        Matrix with rows indexed by half1 classes and columns by half2
        classes

    Raises:
        DatasetError: If the result has no half1/half2 sample attributes
    """
    if "half1" not in result.sa or "half2" not in result.sa:
        raise DatasetError(
            "Result has no 'half1' and 'half2' sample attributes; "
            "use output='raw'"
        )

    nclasses = len(result.a["sdim"]["values"][0])
    matrix = np.full((nclasses, nclasses), np.nan)
    matrix[result.sa["half1"] - 1, result.sa["half2"] - 1] = result.samples[:, 0]

    return matrix


def _get_data(
    samples: np.ndarray,
    sample_idxs: np.ndarray,
    class_ids: np.ndarray,
    classes: np.ndarray,
    merge_func: Callable[[np.ndarray], np.ndarray],
) -> np.ndarray:
    """Merge the samples of one half into one row per class."""
    half_samples = samples[sample_idxs, :]
    target_ids = class_ids[sample_idxs]
    nclasses = len(classes)

    merge_by_averaging = merge_func is mean_merge
    if merge_by_averaging and np.array_equal(target_ids, np.arange(nclasses)):
        # one sample per class, already in class order
        return half_samples

    data = np.zeros((nclasses, samples.shape[1]))

    for k in range(nclasses):
        msk = target_ids == k
        n = np.sum(msk)

        if n == 0:
            raise DatasetError(f"missing target class {classes[k]}")

        class_samples = half_samples[msk, :]

        if not merge_by_averaging:
            data[k, :] = merge_func(class_samples)
        elif n == 1:
            data[k, :] = class_samples[0]
        else:
            data[k, :] = np.sum(class_samples, axis=0) / n

    return data


def _apply_post_corr_func(
    post_corr_func: Optional[Callable[[np.ndarray], np.ndarray]],
    c: np.ndarray,
) -> np.ndarray:
    if post_corr_func is None:
        return c
    return post_corr_func(c)


def _aggregate_correlations(
    c: np.ndarray,
    template: np.ndarray,
    template_msk: np.ndarray,
    output_mode: OutputMode,
) -> np.ndarray:
    """Reduce one partition's correlation matrix according to the output mode."""
    if output_mode in (OutputMode.MEAN, OutputMode.BY_PARTITION):
        return np.array([np.sum(c[template_msk] * template[template_msk])])
    if output_mode is OutputMode.RAW:
        return c.ravel(order="F")
    return 1 - c.ravel(order="F")


def _assemble_mean(pdata: List[np.ndarray]) -> Dataset:
    return Dataset(
        samples=np.mean(np.column_stack(pdata), axis=1)[:, np.newaxis],
        sa={"labels": np.array(["corr"])},
    )


def _assemble_matrix(pdata: List[np.ndarray], classes: np.ndarray) -> Dataset:
    nclasses = len(classes)
    class_idxs = np.arange(1, nclasses + 1)

    return Dataset(
        samples=np.mean(np.column_stack(pdata), axis=1)[:, np.newaxis],
        sa={
            "half1": np.tile(class_idxs, nclasses),
            "half2": np.repeat(class_idxs, nclasses),
        },
        a={
            "sdim": {
                "labels": ["half1", "half2"],
                "values": [classes, classes],
            },
        },
    )


def _assemble_by_partition(
    pdata: List[np.ndarray],
    partitions: Partitions,
    chunks: np.ndarray,
    test_counts: np.ndarray,
) -> Dataset:
    npartitions = partitions.npartitions

    if np.issubdtype(chunks.dtype, np.number):
        test_chunks = np.full(npartitions, np.nan)
    else:
        test_chunks = np.full(npartitions, np.nan, dtype=object)

    for k, test_indices in enumerate(partitions.test_indices):
        partition_chunks = np.unique(chunks[test_indices])
        # only report a chunk that was tested in this partition alone
        if len(partition_chunks) == 1 and np.all(test_counts[test_indices] == 1):
            test_chunks[k] = partition_chunks[0]

    return Dataset(
        samples=np.concatenate(pdata)[:, np.newaxis],
        sa={
            "partition": np.arange(1, npartitions + 1),
            "chunks": test_chunks,
        },
    )
