"""Reading and writing measure configurations.

A configuration file is a JSON or YAML mapping of option names to values.
It may hold the options of several measures in named sections, e.g.::

    correlation:
      corr_type: Spearman
      output: raw
    averaging:
      ratio: 0.5
      nrep: 10

Function-valued options are written by strategy name ("median",
"atanh", ...) and templates as nested lists, with ``null`` for entries
to ignore.
"""

import json
from dataclasses import asdict, fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import numpy as np
import yaml

from mvpastats.config.strategies import MERGE_STRATEGIES, POST_CORR_STRATEGIES
from mvpastats.utils.exceptions import ConfigurationError


ConfigType = TypeVar('ConfigType')

CONFIG_SUFFIXES = (".json", ".yaml", ".yml")


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a configuration mapping from a JSON or YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Dictionary of options (empty for an empty YAML file)

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        ConfigurationError: If the suffix is not supported or the file
            does not hold a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    if path.suffix not in CONFIG_SUFFIXES:
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix}. "
            f"Supported formats: {', '.join(CONFIG_SUFFIXES)}"
        )

    with path.open() as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{path} must hold a mapping of options, got {type(data).__name__}"
        )

    return data


def load_measure_config(
    path: Union[str, Path],
    config_class: Type[ConfigType],
    section: Optional[str] = None,
    **overrides,
) -> ConfigType:
    """Build a validated measure configuration from a file.

    Args:
        path: JSON or YAML configuration file
        config_class: CorrelationMeasureConfig or AveragingConfig
        section: Top-level key holding the options of this measure; None
            reads options from the top level
        **overrides: Options taking precedence over the file

    Returns:
        Validated instance of config_class

    Raises:
        ConfigurationError: If the section is missing or an option is
            invalid

    Example:
        >>> config = load_measure_config("analysis.yaml",
        ...                              CorrelationMeasureConfig,
        ...                              section="correlation",
        ...                              output="by_partition")
    """
    data = load_config_file(path)

    if section is not None:
        if section not in data:
            raise ConfigurationError(
                f"Section '{section}' not found in {path}; "
                f"available: {sorted(data)}"
            )
        data = data[section]

    config = config_from_dict(merge_configs(data, overrides), config_class)
    config.validate()

    return config


def merge_configs(
    base: Dict[str, Any],
    override: Dict[str, Any]
) -> Dict[str, Any]:
    """Merge two configuration dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dictionaries are merged recursively.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def config_from_dict(
    data: Dict[str, Any],
    config_class: Type[ConfigType]
) -> ConfigType:
    """Create configuration dataclass from dictionary.

    Only includes fields that are defined in the dataclass. Nested lists
    for ``template`` become arrays, a ``partitions`` mapping with
    ``train_indices`` and ``test_indices`` becomes a Partitions instance,
    and strategy names are resolved by the dataclass itself.

    Args:
        data: Dictionary with configuration parameters
        config_class: Dataclass type to instantiate

    Returns:
        Instance of config_class
    """
    from mvpastats.core.partitioning import Partitions

    if not is_dataclass(config_class):
        raise ConfigurationError(f"{config_class} is not a dataclass")

    valid_fields = {f.name for f in fields(config_class)}

    filtered_data = {}
    for key, value in data.items():
        if key not in valid_fields:
            continue
        if key == "template" and value is not None:
            # null entries become NaN and are ignored by the measure
            value = np.array(
                [[np.nan if v is None else v for v in row] for row in value],
                dtype=float,
            )
        elif key == "partitions" and isinstance(value, dict):
            value = Partitions(
                train_indices=[np.asarray(i, dtype=int) for i in value["train_indices"]],
                test_indices=[np.asarray(i, dtype=int) for i in value["test_indices"]],
            )
        filtered_data[key] = value

    return config_class(**filtered_data)


def save_config(config: Any, path: Union[str, Path]) -> None:
    """Save configuration to JSON file.

    Args:
        config: Configuration dictionary or dataclass instance
        path: Output path for JSON file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if is_dataclass(config) and not isinstance(config, type):
        config_dict = asdict(config)
    elif isinstance(config, dict):
        config_dict = config
    else:
        raise TypeError(f"Expected dict or dataclass, got {type(config)}")

    config_serializable = _make_serializable(config_dict)

    with path.open('w') as f:
        json.dump(config_serializable, f, indent=2)


def _strategy_name(func: Any) -> Any:
    for registry in (MERGE_STRATEGIES, POST_CORR_STRATEGIES):
        for name, strategy in registry.items():
            if strategy is func:
                return name
    raise ConfigurationError(
        f"Cannot serialize function {getattr(func, '__name__', func)!r}: "
        f"not a named strategy"
    )


def _make_serializable(obj: Any) -> Any:
    """Convert object to JSON-serializable format.

    Args:
        obj: Object to convert

    Returns:
        JSON-serializable version of object
    """
    if isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, np.ndarray):
        return [_make_serializable(v) for v in obj.tolist()]
    elif isinstance(obj, float) and not np.isfinite(obj):
        return None
    elif isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    elif callable(obj):
        return _strategy_name(obj)
    elif isinstance(obj, dict):
        return {k: _make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_make_serializable(item) for item in obj]
    else:
        return obj
