"""Configuration loading and validation for mvpastats."""

from mvpastats.config.defaults import (
    CorrelationMeasureConfig,
    AveragingConfig,
    OutputMode,
)
from mvpastats.config.loader import (
    load_config_file,
    load_measure_config,
    merge_configs,
    config_from_dict,
    save_config,
)
from mvpastats.config.validator import ConfigValidator
from mvpastats.config.strategies import (
    MERGE_STRATEGIES,
    POST_CORR_STRATEGIES,
    mean_merge,
    median_merge,
)

__all__ = [
    "CorrelationMeasureConfig",
    "AveragingConfig",
    "OutputMode",
    "load_config_file",
    "load_measure_config",
    "merge_configs",
    "config_from_dict",
    "save_config",
    "ConfigValidator",
    "MERGE_STRATEGIES",
    "POST_CORR_STRATEGIES",
    "mean_merge",
    "median_merge",
]
