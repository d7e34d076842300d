"""Matrix operations shared by the measures and the statistic engine."""

from typing import Optional, Tuple

import numpy as np
from scipy import stats

from mvpastats.utils.exceptions import ConfigurationError


# All supported correlation types
CORRELATION_TYPES = ['Pearson', 'Spearman', 'Kendall']


def fast_unique(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Find unique values of a vector together with a class index mapping.

    Args:
        x: 1D array of labels

    Returns:
        Tuple ``(unique, first_positions, ids)`` where ``unique`` is sorted
        ascending, ``first_positions[k]`` is the position of the first
        occurrence of ``unique[k]`` in ``x``, and ``ids[i]`` is the
        0-based index of ``x[i]`` in ``unique``.

    Example:
        >>> unq, pos, ids = fast_unique(np.array([3, 1, 3, 2]))
        >>> unq
        array([1, 2, 3])
        >>> ids
        array([2, 0, 2, 1])
    """
    x = np.asarray(x).ravel()
    unique, first_positions, ids = np.unique(
        x, return_index=True, return_inverse=True
    )
    return unique, first_positions, ids.ravel()


def _pearson(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    xc = x - x.mean(axis=0)
    yc = y - y.mean(axis=0)

    norm_x = np.sqrt(np.sum(xc ** 2, axis=0))
    norm_y = np.sqrt(np.sum(yc ** 2, axis=0))

    with np.errstate(divide='ignore', invalid='ignore'):
        return (xc.T @ yc) / np.outer(norm_x, norm_y)


def corr(
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    corr_type: str = "Pearson",
) -> np.ndarray:
    """Correlate the columns of ``x`` with the columns of ``y``.

    Args:
        x: Array of shape (n_observations, p)
        y: Array of shape (n_observations, q). If None, ``x`` is used.
        corr_type: 'Pearson', 'Spearman' or 'Kendall'

    Returns:
        Correlation matrix of shape (p, q); element (i, j) is the
        correlation between ``x[:, i]`` and ``y[:, j]``.

    Raises:
        ConfigurationError: If corr_type is unknown
        ValueError: If x and y differ in number of observations

    Example:
        >>> x = np.random.randn(50, 3)
        >>> c = corr(x)
        >>> np.allclose(np.diag(c), 1)
        True
    """
    x = np.asarray(x, dtype=float)
    y = x if y is None else np.asarray(y, dtype=float)

    if x.ndim != 2 or y.ndim != 2:
        raise ValueError(
            f"Inputs must be 2D, got shapes {x.shape} and {y.shape}"
        )

    if x.shape[0] != y.shape[0]:
        raise ValueError(
            f"Number of observations differs: {x.shape[0]} != {y.shape[0]}"
        )

    if corr_type == 'Pearson':
        return _pearson(x, y)

    if corr_type == 'Spearman':
        return _pearson(stats.rankdata(x, axis=0), stats.rankdata(y, axis=0))

    if corr_type == 'Kendall':
        c = np.zeros((x.shape[1], y.shape[1]))
        for i in range(x.shape[1]):
            for j in range(y.shape[1]):
                tau, _ = stats.kendalltau(x[:, i], y[:, j])
                c[i, j] = tau
        return c

    raise ConfigurationError(
        f"Unknown correlation type: '{corr_type}'. "
        f"Supported: {CORRELATION_TYPES}"
    )


def fisher_z_transform(correlation_matrix: np.ndarray) -> np.ndarray:
    """Apply Fisher z-transformation to correlation matrix.

    Transforms correlation coefficients to z-scores using Fisher's
    transformation: z = atanh(r) = 0.5 * ln((1+r)/(1-r))

    Args:
        correlation_matrix: Matrix of correlation coefficients

    Returns:
        Fisher z-transformed matrix

    Note:
        Correlations of exactly +1 or -1 map to +inf and -inf.
    """
    with np.errstate(divide='ignore'):
        return np.arctanh(correlation_matrix)


def inverse_fisher_z_transform(z_matrix: np.ndarray) -> np.ndarray:
    """Apply inverse Fisher z-transformation: r = tanh(z)

    Args:
        z_matrix: Matrix of Fisher z-scores

    Returns:
        Matrix of correlation coefficients
    """
    return np.tanh(z_matrix)
