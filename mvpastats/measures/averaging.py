"""Averaging of random subsets of samples into pseudo-samples."""

import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from mvpastats.config.defaults import AveragingConfig
from mvpastats.core.dataset import Dataset, check_dataset
from mvpastats.utils.exceptions import ConfigurationError
from mvpastats.utils.matrix import fast_unique

logger = logging.getLogger(__name__)


def compute_averaging_measure(
    ds: Dataset,
    config: Optional[AveragingConfig] = None,
    **options,
) -> Dataset:
    """Average random subsets of samples sharing a target and chunk.

    For every unique (target, chunk) combination and each repetition,
    ``count`` samples are drawn without replacement and averaged into a
    single output sample.

    Args:
        ds: Dataset with ``sa["targets"]`` and ``sa["chunks"]``
        config: Averaging configuration
        **options: Fields of AveragingConfig (ratio, count, nrep, seed)
            overriding ``config``. ``ratio`` is relative to the smallest
            combination and rounded half up.

    Returns:
        Dataset with ``nrep`` samples per combination, ordered by
        combination (targets, then chunks, ascending) and repetition,
        with ``sa["targets"]``, ``sa["chunks"]`` and ``sa["repeat"]``
        (1-based). ``fa`` and ``a`` are copied from the input.

    Raises:
        ConfigurationError: If the options are invalid or the number of
            samples to average is below 1 or larger than the smallest
            combination.

    Example:
        >>> avg = compute_averaging_measure(ds, ratio=0.5, nrep=10, seed=0)
    """
    if config is None:
        config = AveragingConfig(**options)
    elif options:
        config = replace(config, **options)
    config.validate()

    check_dataset(ds, required_sa=("targets", "chunks"))

    targets = ds.targets
    chunks = ds.chunks
    _, _, target_ids = fast_unique(targets)
    unique_chunks, _, chunk_ids = fast_unique(chunks)

    combination_ids = target_ids * len(unique_chunks) + chunk_ids
    unique_combinations, first_positions, _ = fast_unique(combination_ids)
    groups = [np.flatnonzero(combination_ids == c) for c in unique_combinations]

    nmin = min(len(g) for g in groups)
    if config.count is not None:
        count = int(config.count)
    else:
        count = int(np.floor(config.ratio * nmin + 0.5))

    if count < 1:
        raise ConfigurationError(
            f"Cannot average fewer than 1 sample (count={count}); "
            f"increase ratio or count"
        )
    if count > nmin:
        raise ConfigurationError(
            f"Cannot average {count} samples: the smallest target/chunk "
            f"combination has {nmin} samples"
        )

    rng = np.random.default_rng(config.seed)

    nrep = config.nrep
    ngroups = len(groups)
    samples = np.zeros((ngroups * nrep, ds.nfeatures))
    source = np.zeros(ngroups * nrep, dtype=int)
    repeat = np.zeros(ngroups * nrep, dtype=int)

    row = 0
    for group, first in zip(groups, first_positions):
        for rep in range(nrep):
            idxs = rng.choice(group, size=count, replace=False)
            samples[row, :] = np.mean(ds.samples[idxs, :], axis=0)
            source[row] = first
            repeat[row] = rep + 1
            row += 1

    logger.debug(
        f"Averaged {count} samples into {row} pseudo-samples "
        f"({ngroups} target/chunk combinations, nrep={nrep})"
    )

    return Dataset(
        samples=samples,
        sa={
            "targets": targets[source],
            "chunks": chunks[source],
            "repeat": repeat,
        },
        fa=dict(ds.fa),
        a=dict(ds.a),
    )
