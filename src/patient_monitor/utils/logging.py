import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class LoggingConfig:
    """
    Logging settings shared by every module of the package.

    Parameters
    ----------
    log_level : str
        Level name, e.g. "INFO" or "DEBUG".
    log_to_file : bool
        Also write records to `log_file`.
    log_file : str
        Path of the log file when `log_to_file` is set.
    """

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: str = "patient_monitor.log"


def get_logging_config() -> LoggingConfig:
    """
    Build the logging config from the LOG_LEVEL and LOG_FILE environment variables.
    """
    log_file = os.environ.get("LOG_FILE", "")
    return LoggingConfig(
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        log_to_file=bool(log_file),
        log_file=log_file or LoggingConfig.log_file,
    )


def setup_logging(
    name: str = "patient_monitor", config: Optional[LoggingConfig] = None
) -> logging.Logger:
    """
    Configure the named logger once; repeated calls only update the level.

    Parameters
    ----------
    name : str
        Logger name, normally the root package name.
    config : LoggingConfig, optional
        Settings to apply; read from the environment when omitted.

    Returns
    -------
    logging.Logger
        The configured logger.
    """
    config = config or get_logging_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        if config.log_to_file:
            file_handler = logging.FileHandler(config.log_file)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)
        logger.propagate = False
    return logger
