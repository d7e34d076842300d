"""Default configuration dataclasses for mvpastats."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from mvpastats.config.strategies import (
    get_merge_strategy,
    get_post_corr_strategy,
    mean_merge,
)
from mvpastats.utils.exceptions import ConfigurationError
from mvpastats.utils.matrix import CORRELATION_TYPES, fisher_z_transform


# Tolerance on the sum of a user-supplied template matrix
TEMPLATE_SUM_TOLERANCE = 1e-8


class OutputMode(Enum):
    """Output kinds of the correlation measure."""
    MEAN = "mean"
    RAW = "raw"
    ONE_MINUS_CORRELATION = "one_minus_correlation"
    BY_PARTITION = "by_partition"

    @classmethod
    def from_string(cls, value: Union[str, "OutputMode"]) -> "OutputMode":
        """Resolve an output name, including the aliases 'corr' and 'correlation'."""
        if isinstance(value, cls):
            return value
        return cls(_OUTPUT_ALIASES.get(value, value))


_OUTPUT_ALIASES = {
    "corr": "mean",
    "correlation": "raw",
}

OUTPUT_NAMES = [mode.value for mode in OutputMode] + list(_OUTPUT_ALIASES)


@dataclass
class CorrelationMeasureConfig:
    """Configuration for the split-half correlation measure.

    Attributes:
        partitions: Train/test partitions. None derives half-split
            partitions from the dataset chunks.
        template: QxQ weighting matrix for Q classes; its finite entries
            must sum to zero. None uses (I - 1/Q) / (Q - 1). Non-finite
            entries are ignored.
        merge_func: Function (or strategy name) reducing same-target rows
            to one row. None means averaging.
        corr_type: 'Pearson', 'Spearman' or 'Kendall'.
        post_corr_func: Function (or strategy name) applied to the
            correlation matrix before aggregation. None skips it.
        output: 'mean' ('corr'), 'raw' ('correlation'),
            'one_minus_correlation' or 'by_partition'.
        check_partitions: Validate partitions against the dataset.
        unbalanced_partitions_ok: Allow training sets with unequal numbers
            of samples per target.
    """
    partitions: Optional[object] = None
    template: Optional[np.ndarray] = None
    merge_func: Optional[Union[str, Callable]] = mean_merge
    corr_type: str = "Pearson"
    post_corr_func: Optional[Union[str, Callable]] = fisher_z_transform
    output: Union[str, OutputMode] = "mean"
    check_partitions: bool = True
    unbalanced_partitions_ok: bool = False

    def __post_init__(self):
        if self.merge_func is None:
            self.merge_func = mean_merge
        elif isinstance(self.merge_func, str):
            self.merge_func = get_merge_strategy(self.merge_func)

        if isinstance(self.post_corr_func, str):
            self.post_corr_func = get_post_corr_strategy(self.post_corr_func)

        if self.template is not None:
            self.template = np.asarray(self.template, dtype=float)

    @classmethod
    def from_options(
        cls,
        config: Optional["CorrelationMeasureConfig"] = None,
        **options,
    ) -> "CorrelationMeasureConfig":
        """Build a config from keyword options, overriding ``config`` if given.

        Raises:
            ConfigurationError: If an option name is unknown
        """
        unknown = set(options) - {f.name for f in fields(cls)}
        if unknown:
            raise ConfigurationError(
                f"Unknown correlation measure option(s): {sorted(unknown)}"
            )

        if config is None:
            return cls(**options)
        return replace(config, **options)

    @property
    def output_mode(self) -> OutputMode:
        return OutputMode.from_string(self.output)

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        from mvpastats.config.validator import ConfigValidator
        from mvpastats.core.partitioning import Partitions

        validator = ConfigValidator()

        if not isinstance(self.output, OutputMode):
            validator.validate_choice(self.output, OUTPUT_NAMES, "output")
        validator.validate_choice(self.corr_type, CORRELATION_TYPES, "corr_type")
        validator.validate_callable(self.merge_func, "merge_func")
        validator.validate_callable(self.post_corr_func, "post_corr_func", allow_none=True)
        validator.validate_type(self.check_partitions, bool, "check_partitions")

        if self.partitions is not None:
            validator.validate_type(self.partitions, Partitions, "partitions")

        if self.template is not None and validator.validate_square_matrix(
            self.template, "template"
        ):
            validator.validate_zero_sum(self.template, "Template matrix", TEMPLATE_SUM_TOLERANCE)

        validator.raise_if_errors()


@dataclass
class AveragingConfig:
    """Configuration for the averaging measure.

    Exactly one of ``ratio`` and ``count`` must be set.

    Attributes:
        ratio: Fraction of the samples of each target/chunk combination
            to average into one output sample.
        count: Number of samples to average into one output sample.
        nrep: Number of output samples per target/chunk combination.
        seed: Seed for the random number generator.
    """
    ratio: Optional[float] = None
    count: Optional[int] = None
    nrep: int = 1
    seed: Optional[int] = None

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        from mvpastats.config.validator import ConfigValidator

        validator = ConfigValidator()

        if (self.ratio is None) == (self.count is None):
            validator.errors.append("exactly one of ratio and count must be set")
        elif self.ratio is not None:
            validator.validate_positive(self.ratio, "ratio")
        else:
            validator.validate_positive(self.count, "count")

        validator.validate_positive(self.nrep, "nrep")

        validator.raise_if_errors()
