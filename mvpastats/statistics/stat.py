"""Featurewise one-sample t, two-sample t and one-way ANOVA F statistics.

Each statistic is computed in closed form for all features (columns) at
once, which is considerably faster than running one test per feature.
Optionally the statistic is converted to a z-score or a p-value through
the cumulative distribution of the statistic.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from mvpastats.core.dataset import Dataset
from mvpastats.statistics.distributions import cdf, icdf
from mvpastats.utils.exceptions import DatasetError, StatisticalError
from mvpastats.utils.logging import timer

logger = logging.getLogger(__name__)


# Tolerance on the sum of the per-level contrast values
CONTRAST_SUM_TOLERANCE = 1e-8

TAILS = ("left", "right", "both")


@dataclass(frozen=True)
class StatContract:
    """Requirements and distribution of a statistic.

    Attributes:
        min_classes: Minimum number of unique targets.
        max_classes: Maximum number of unique targets (None: no maximum).
        cdf_name: Distribution used to convert the statistic.
        default_tail: Tail used when a p-value is requested without one.
    """
    min_classes: int
    max_classes: Optional[int]
    cdf_name: str
    default_tail: str

    def check(self, stat_name: str, nclasses: int) -> None:
        """Raise StatisticalError if nclasses violates the contract."""
        if self.max_classes is None:
            if nclasses < self.min_classes:
                raise StatisticalError(
                    f"{stat_name} stat: expected >={self.min_classes} classes, "
                    f"found {nclasses}"
                )
        elif not self.min_classes <= nclasses <= self.max_classes:
            plural = "class" if self.min_classes == 1 else "classes"
            raise StatisticalError(
                f"{stat_name} stat: expected {self.min_classes} {plural}, "
                f"found {nclasses}"
            )


STAT_CONTRACTS: Dict[str, StatContract] = {
    # one-sample t-test against zero
    "t": StatContract(min_classes=1, max_classes=1, cdf_name="t", default_tail="both"),
    # two-sample t-test, equal variance
    "t2": StatContract(min_classes=2, max_classes=2, cdf_name="t", default_tail="both"),
    # one-way ANOVA, same tail as a classical ANOVA table
    "F": StatContract(min_classes=2, max_classes=None, cdf_name="F", default_tail="right"),
}


def compute_statistic(
    ds: Dataset,
    stat_name: str,
    output_stat_name: Optional[str] = None,
) -> Dataset:
    """Compute a one-sample t, two-sample t, or F statistic per feature.

    Args:
        ds: Dataset with (n_samples, n_features) samples and
            ``sa["targets"]`` indicating the conditions (levels). For 't'
            the targets may be omitted. For 'F' an optional
            ``sa["contrast"]`` gives one weight per sample.
        stat_name: One of:
            - 't': one-sample t-test against zero.
            - 't2': two-sample t-test with equal variance, computing
              classes[0] minus classes[1], with classes the sorted
              unique targets.
            - 'F': one-way ANOVA.
        output_stat_name: None or '' (default) returns the statistic.
            'z' returns a z-score. 'left', 'right' and 'both' return a
            p-value with that tail. 'p' returns a p-value with tail
            'right' for 'F' and 'both' otherwise.

    Returns:
        Dataset with:
            - samples: (1, n_features) statistic, z-score or p-value
            - sa["labels"]: the output kind (stat_name, 'z' or 'p')
            - sa["df"]: degrees of freedom, only for the raw statistic;
              shape (1,) for 't' and 't2', (1, 2) for 'F'
            - fa, a: copied from the input

    Raises:
        StatisticalError: For an unknown stat or output name, a class
            count that does not match the statistic, or an invalid
            contrast.
        DatasetError: If targets are missing (other than for 't') or do
            not have one value per sample.

    Example:
        >>> ds = Dataset(samples=np.random.randn(12, 100),
        ...              sa={"targets": np.tile([1, 2, 3], 4)})
        >>> s = compute_statistic(ds, "F")
        >>> s.sa["df"]
        array([[2, 9]])
        >>> p = compute_statistic(ds, "F", "p")

    Notes:
        - For paired-sample t-tests, provide the observation differences.
        - For a one-sample t-test against x != 0, subtract x first.
    """
    if stat_name not in STAT_CONTRACTS:
        raise StatisticalError(
            f"illegal stat name '{stat_name}', expected one of "
            f"{list(STAT_CONTRACTS.keys())}"
        )
    contract = STAT_CONTRACTS[stat_name]

    output_stat_name, tail = _parse_output_stat_name(output_stat_name, contract)

    samples = np.asarray(ds.samples, dtype=float)
    nsamples = samples.shape[0]

    if "targets" in ds.sa:
        targets = np.asarray(ds.sa["targets"]).ravel()
    elif stat_name == "t":
        # only the one-sample test can do without targets
        targets = np.ones(nsamples)
    else:
        raise DatasetError("Missing sample attribute 'targets'")

    if len(targets) != nsamples:
        raise DatasetError(
            f"Targets has {len(targets)} values, expected {nsamples}"
        )

    classes = np.unique(targets)
    contract.check(stat_name, len(classes))

    with timer(logger, f"{stat_name} stat"), np.errstate(divide="ignore", invalid="ignore"):
        if stat_name == "t":
            stat, df = quick_ttest(samples)
        elif stat_name == "t2":
            stat, df = quick_ttest2(
                samples[targets == classes[0], :],
                samples[targets == classes[1], :],
            )
        else:
            contrast = ds.sa.get("contrast")
            stat, df = quick_ftest(samples, targets, classes, contrast)

    logger.debug(
        f"Computed {stat_name} stat for {samples.shape[1]} features "
        f"({len(classes)} classes, df={df})"
    )

    if output_stat_name is None:
        label = stat_name
    else:
        # left-tailed p-value
        stat = cdf(contract.cdf_name, stat, *np.atleast_1d(df))
        df = None

        if output_stat_name == "z":
            stat = icdf("norm", stat)
        elif tail == "right":
            stat = 1 - stat
        elif tail == "both":
            # whichever tail is more extreme
            stat = (0.5 - np.abs(stat - 0.5)) * 2

        label = output_stat_name

    result = Dataset(
        samples=np.asarray(stat, dtype=float).reshape(1, -1),
        sa={"labels": np.array([label])},
        fa=dict(ds.fa),
        a=dict(ds.a),
    )
    if df is not None:
        result.sa["df"] = np.atleast_1d(df)[np.newaxis] if stat_name == "F" else np.array([df])

    return result


def _parse_output_stat_name(
    output_stat_name: Optional[str],
    contract: StatContract,
) -> Tuple[Optional[str], Optional[str]]:
    """Split an output name into (kind, tail); kind None means raw."""
    if not output_stat_name:
        return None, None
    if output_stat_name in TAILS:
        return "p", output_stat_name
    if output_stat_name == "p":
        return "p", contract.default_tail
    if output_stat_name == "z":
        return "z", None

    raise StatisticalError(f"illegal output type '{output_stat_name}'")


def quick_ttest(x: np.ndarray) -> Tuple[np.ndarray, int]:
    """One-sample t-test against zero, for each column of x.

    Returns:
        Tuple of (t-values with shape (n_features,), degrees of freedom)
    """
    n = x.shape[0]
    mu = np.sum(x, axis=0) / n

    df = n - 1
    scaling = n * df

    ss = np.sum((x - mu) ** 2, axis=0)

    t = mu * np.sqrt(scaling / ss)

    return t, df


def quick_ttest2(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, int]:
    """Two-sample t-test with equal variance assumption, x minus y.

    Returns:
        Tuple of (t-values with shape (n_features,), degrees of freedom)
    """
    nx = x.shape[0]
    ny = y.shape[0]
    mux = np.sum(x, axis=0) / nx
    muy = np.sum(y, axis=0) / ny

    df = nx + ny - 2
    scaling = (nx * ny) * df / (nx + ny)

    # pooled sum of squares around each group's own mean
    ss = np.sum(np.vstack([x - mux, y - muy]) ** 2, axis=0)

    t = (mux - muy) * np.sqrt(scaling / ss)

    return t, df


def quick_ftest(
    samples: np.ndarray,
    targets: np.ndarray,
    classes: np.ndarray,
    contrast: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, Tuple[int, int]]:
    """One-way ANOVA for each column of samples.

    Args:
        samples: Array of shape (n_samples, n_features)
        targets: Class label of each sample
        classes: Sorted unique targets
        contrast: Optional weight per sample. All samples of a class must
            share the same weight and the per-class weights must sum to
            zero. The between-class sum of squares then has one degree
            of freedom.

    Returns:
        Tuple of (F-values with shape (n_features,), (df1, df2))

    Raises:
        StatisticalError: If the contrast is not constant within a class
            or its per-class values do not sum to zero
    """
    has_contrast = contrast is not None
    if has_contrast:
        contrast = np.asarray(contrast, dtype=float).ravel()
        if len(contrast) != len(targets):
            raise StatisticalError(
                f"Contrast has {len(contrast)} values, expected {len(targets)}"
            )
    contrast_sum = 0.0

    ns, nf = samples.shape
    nclasses = len(classes)
    mu = np.sum(samples, axis=0) / ns  # grand mean

    b = np.zeros((nclasses, nf))  # between-class deviations
    nsc = np.zeros((nclasses, 1))
    wss = np.zeros(nf)  # within-class sum of squares

    for k, cls in enumerate(classes):
        msk = targets == cls

        nsc[k] = np.sum(msk)
        class_samples = samples[msk, :]
        muc = np.sum(class_samples, axis=0) / nsc[k]

        if has_contrast:
            class_contrast = contrast[msk]
            if not np.all(class_contrast == class_contrast[0]):
                raise StatisticalError(
                    f"Contrast has different values in level {cls}: "
                    f"{np.unique(class_contrast).tolist()}"
                )
            contrast_sum += class_contrast[0]
            b[k, :] = np.sum(class_contrast[:, np.newaxis] * (mu - muc), axis=0)
        else:
            b[k, :] = mu - muc

        wss += np.sum((muc - class_samples) ** 2, axis=0)

    if has_contrast:
        if abs(contrast_sum) > CONTRAST_SUM_TOLERANCE:
            raise StatisticalError(
                f"contrast has sum {contrast_sum:g}, should be 0"
            )
        bss = np.sum(b, axis=0) ** 2 / np.sum(contrast ** 2)
        df1 = 1
    else:
        bss = np.sum(nsc * b ** 2, axis=0)
        df1 = nclasses - 1

    df = (df1, ns - nclasses)

    f = (bss / df[0]) / (wss / df[1])

    return f, df
