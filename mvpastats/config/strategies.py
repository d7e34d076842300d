"""Named strategies for function-valued measure options.

Merge strategies reduce a group of same-target samples (rows) to a single
row. Post-correlation strategies transform a correlation matrix elementwise
before it is aggregated. Both are plain functions; the names below make
them selectable from configuration files.
"""

from typing import Callable, Dict, Optional

import numpy as np

from mvpastats.utils.exceptions import ConfigurationError
from mvpastats.utils.matrix import fisher_z_transform


def mean_merge(samples: np.ndarray) -> np.ndarray:
    """Average samples over rows."""
    return np.mean(samples, axis=0)


def median_merge(samples: np.ndarray) -> np.ndarray:
    """Median of samples over rows."""
    return np.median(samples, axis=0)


MERGE_STRATEGIES: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "mean": mean_merge,
    "median": median_merge,
}

# None means the raw correlations are used as they are
POST_CORR_STRATEGIES: Dict[str, Optional[Callable[[np.ndarray], np.ndarray]]] = {
    "atanh": fisher_z_transform,
    "fisher": fisher_z_transform,
    "identity": None,
}


def get_merge_strategy(name: str) -> Callable[[np.ndarray], np.ndarray]:
    """Get a merge function by name.

    Raises:
        ConfigurationError: If strategy name is not recognized
    """
    if name not in MERGE_STRATEGIES:
        available = ", ".join(MERGE_STRATEGIES.keys())
        raise ConfigurationError(
            f"Unknown merge strategy: '{name}'. "
            f"Available strategies: {available}"
        )

    return MERGE_STRATEGIES[name]


def get_post_corr_strategy(name: str) -> Optional[Callable[[np.ndarray], np.ndarray]]:
    """Get a post-correlation function by name (None for 'identity').

    Raises:
        ConfigurationError: If strategy name is not recognized
    """
    if name not in POST_CORR_STRATEGIES:
        available = ", ".join(POST_CORR_STRATEGIES.keys())
        raise ConfigurationError(
            f"Unknown post-correlation strategy: '{name}'. "
            f"Available strategies: {available}"
        )

    return POST_CORR_STRATEGIES[name]

