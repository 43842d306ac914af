from . import logging
from .logging import LoggingConfig, get_logging_config, setup_logging

__all__ = [
    "logging",
    "setup_logging",
    "get_logging_config",
    "LoggingConfig",
]
