"""Common utilities for aptlier."""

from .logger import setup_logger, get_logger
from .config import AptlierConfig, load_config, load_typed_config
from .errors import AptlierError, CommandError

__all__ = [
    "AptlierConfig",
    "AptlierError",
    "CommandError",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
