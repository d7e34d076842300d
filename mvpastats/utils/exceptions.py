"""Custom exceptions for mvpastats."""


class MVPAStatsError(Exception):
    """Base exception for mvpastats."""
    pass


class DatasetError(MVPAStatsError):
    """Error related to the structure or content of a dataset."""
    pass


class PartitionError(MVPAStatsError):
    """Error in a set of train/test partitions."""
    pass


class ConfigurationError(MVPAStatsError):
    """Error in configuration."""
    pass


class StatisticalError(MVPAStatsError):
    """Error during statistical analysis."""
    pass
