"""Memoization of parsed options and derived partitions across measure calls.

Measures are typically called many times with identical options, for
example once per sphere of a searchlight. A ``MeasureCache`` owned by the
caller remembers the most recently parsed options and the most recently
derived partitions, so that neither is recomputed when nothing changed.
The cache holds a single entry of each kind; a different key replaces it.
"""

import logging
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from mvpastats.config.defaults import CorrelationMeasureConfig
from mvpastats.core.dataset import Dataset
from mvpastats.core.partitioning import Partitions, nchoosek_partitioner
from mvpastats.utils.logging import log_config

logger = logging.getLogger(__name__)


def _same_value(a: Any, b: Any) -> bool:
    """Compare option values: arrays by value, functions by identity."""
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        if not (isinstance(a, np.ndarray) and isinstance(b, np.ndarray)):
            return False
        return a.shape == b.shape and np.array_equal(a, b, equal_nan=a.dtype.kind == "f")

    if is_dataclass(a) and not isinstance(a, type):
        return type(a) is type(b) and all(
            _same_value(getattr(a, f.name), getattr(b, f.name)) for f in fields(a)
        )

    if isinstance(a, dict):
        return (
            isinstance(b, dict)
            and a.keys() == b.keys()
            and all(_same_value(a[k], b[k]) for k in a)
        )

    if isinstance(a, (list, tuple)):
        return (
            isinstance(b, (list, tuple))
            and len(a) == len(b)
            and all(_same_value(x, y) for x, y in zip(a, b))
        )

    if callable(a) or callable(b):
        return a is b

    return type(a) is type(b) and a == b


class MeasureCache:
    """Single-entry memo of parsed measure options and derived partitions.

    A cache is not thread-safe; use one instance per thread (or per
    searchlight run). Using a cache never changes the result of a measure.

    Attributes:
        hits: Number of lookups answered from the cache.
        misses: Number of lookups that had to be recomputed.

    Example:
        >>> cache = MeasureCache()
        >>> for sphere_ds in spheres:
        ...     res = compute_correlation_measure(sphere_ds, cache=cache,
        ...                                       corr_type="Spearman")
    """

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.clear()

    def clear(self) -> None:
        """Forget the cached options and partitions."""
        self._options_key: Optional[Tuple[Any, Dict[str, Any]]] = None
        self._config: Optional[CorrelationMeasureConfig] = None
        self._chunks: Optional[np.ndarray] = None
        self._partitions: Optional[Partitions] = None
        # (chunks, targets, unbalanced_partitions_ok) of the last passed check
        self._checked_key: Optional[Tuple[np.ndarray, np.ndarray, bool]] = None

    def resolve_config(
        self,
        config: Optional[CorrelationMeasureConfig],
        options: Dict[str, Any],
    ) -> CorrelationMeasureConfig:
        """Parse and validate measure options, reusing the previous result.

        Args:
            config: Base configuration, or None for the defaults
            options: Keyword options overriding ``config``

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If the options are invalid
        """
        key = (config, options)
        if self._config is not None and _same_value(self._options_key, key):
            self.hits += 1
            return self._config

        self.misses += 1
        parsed = CorrelationMeasureConfig.from_options(config, **options)
        parsed.validate()
        log_config(logger, parsed, "Correlation measure options (cache miss)", logging.DEBUG)

        # store a snapshot so that later in-place changes by the caller miss
        self._options_key = (
            None if config is None else _snapshot(config),
            {k: _snapshot(v) for k, v in options.items()},
        )
        self._config = parsed

        return parsed

    def partitions_for(self, ds: Dataset) -> Tuple[Partitions, bool]:
        """Half-split partitions for the chunks of ``ds``.

        Args:
            ds: Dataset with ``sa["chunks"]``

        Returns:
            Tuple of (partitions, from_cache). ``from_cache`` is True when
            the chunks equal those of the previous call. Cached partitions
            are not necessarily valid for ``ds``; see partitions_checked.
        """
        chunks = ds.chunks
        if self._chunks is not None and np.array_equal(self._chunks, chunks):
            self.hits += 1
            return self._partitions, True

        self.misses += 1
        logger.debug("Deriving half-split partitions (cache miss)")
        self._partitions = nchoosek_partitioner(ds, "half")
        self._chunks = chunks.copy()
        self._checked_key = None

        return self._partitions, False

    def partitions_checked(self, ds: Dataset, unbalanced_partitions_ok: bool) -> bool:
        """Whether the cached partitions passed check_partitions for ``ds``.

        Balance depends on the targets, so a check only counts for the
        chunks, targets and ``unbalanced_partitions_ok`` it was run with.
        """
        if self._checked_key is None:
            return False

        chunks, targets, unbalanced_ok = self._checked_key
        return (
            unbalanced_ok == unbalanced_partitions_ok
            and np.array_equal(chunks, ds.chunks)
            and np.array_equal(targets, ds.targets)
        )

    def mark_checked(self, ds: Dataset, unbalanced_partitions_ok: bool) -> None:
        """Record that the cached partitions passed check_partitions for ``ds``."""
        self._checked_key = (ds.chunks.copy(), ds.targets.copy(), unbalanced_partitions_ok)


def _snapshot(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.copy()
    if is_dataclass(value) and not isinstance(value, type):
        return type(value)(**{f.name: _snapshot(getattr(value, f.name)) for f in fields(value)})
    if isinstance(value, list):
        return [_snapshot(v) for v in value]
    return value
