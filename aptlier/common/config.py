"""Configuration management for aptlier.

Handles loading of the optional YAML configuration file that lives in the
working directory. Every option only changes how aptly and gpg are invoked;
none of them alter the snapshot bookkeeping.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_FILE = "aptlier.yaml"


@dataclass
class AptlierConfig:
    """Top-level configuration for aptlier."""

    aptly_command: str = "aptly"
    gpg_command: Optional[str] = None  # gpg1, falling back to gpg
    distributor: str = "ubuntu"
    release: str = "xenial"
    publish_name: str = "main"
    snapshots_file: str = "snapshots"
    verbose: bool = True
    work_dir: str = "."
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    command_timeout: Optional[int] = None

    def with_overrides(self, **overrides: Any) -> "AptlierConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def parse_config(config_dict: Dict[str, Any]) -> AptlierConfig:
    """Parse a configuration dictionary.

    Unknown keys are rejected so that typos do not silently fall back to
    defaults.

    Args:
        config_dict: Configuration dictionary

    Returns:
        AptlierConfig instance

    Raises:
        ValueError: If the dictionary contains unknown options
    """
    known = {f.name for f in fields(AptlierConfig)}
    unknown = sorted(set(config_dict) - known)
    if unknown:
        raise ValueError(f"Unknown configuration options: {', '.join(unknown)}")

    config = AptlierConfig(**config_dict)
    if not isinstance(config.verbose, bool):
        raise TypeError(f"verbose must be a boolean, got {config.verbose!r}")
    return config


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(
    config_path: Optional[str] = None,
    work_dir: Optional[str] = None,
) -> AptlierConfig:
    """Load and parse configuration into the typed dataclass.

    With no explicit path, ``aptlier.yaml`` in the working directory is read
    when present and defaults are used otherwise.

    Args:
        config_path: Explicit path to a configuration file
        work_dir: Working directory that holds the default configuration file

    Returns:
        AptlierConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        default_path = Path(work_dir or ".") / DEFAULT_CONFIG_FILE
        if not default_path.exists():
            return AptlierConfig().with_overrides(work_dir=work_dir)
        config_path = str(default_path)

    config = parse_config(load_config(config_path))
    return config.with_overrides(work_dir=work_dir)
