"""Cumulative distribution functions used to convert statistics.

Thin wrappers around ``scipy.stats`` that select a distribution family by
name, so that a statistic can be mapped to a probability with the same
call whatever its distribution.
"""

from typing import Dict

import numpy as np
from scipy import stats

from mvpastats.utils.exceptions import StatisticalError


DISTRIBUTIONS: Dict[str, object] = {
    "t": stats.t,
    "F": stats.f,
    "norm": stats.norm,
}


def _get_distribution(name: str):
    if name not in DISTRIBUTIONS:
        raise StatisticalError(
            f"Unknown distribution: '{name}'. "
            f"Supported: {list(DISTRIBUTIONS.keys())}"
        )
    return DISTRIBUTIONS[name]


def cdf(name: str, x: np.ndarray, *params) -> np.ndarray:
    """Left-tail cumulative probability of ``x``.

    Args:
        name: Distribution family ('t', 'F' or 'norm')
        x: Statistic values
        *params: Distribution parameters (degrees of freedom for 't' and
            'F'; none for the standard normal)

    Returns:
        Probabilities P(X <= x), same shape as ``x``

    Example:
        >>> float(cdf("t", 0.0, 10))
        0.5
    """
    return _get_distribution(name).cdf(x, *params)


def icdf(name: str, p: np.ndarray, *params) -> np.ndarray:
    """Inverse of :func:`cdf`: the value with left-tail probability ``p``.

    Example:
        >>> round(float(icdf("norm", 0.975)), 2)
        1.96
    """
    return _get_distribution(name).ppf(p, *params)
