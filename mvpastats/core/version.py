"""Version information for mvpastats."""

__version__ = "0.3.0"
