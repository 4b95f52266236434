"""
Centralized logging configuration for BlindBid.

Every module logs through a child of the "blindbid" logger, named after its
subsystem (lifecycle, evaluator, storage, ...). Console output is colored;
an optional plain-text file handler mirrors it.

Bid amounts are never logged. Log lines carry auction ids, identities and
settlement outcomes only.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

import colorlog

ROOT_LOGGER_NAME = "blindbid"
LOG_FILE_NAME = "blindbid.log"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved
    return level


class BlindBidLogger:
    """Owns the handlers of the "blindbid" logger tree"""

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: Union[int, str] = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        force: bool = False,
    ):
        """
        Setup logging configuration.

        Args:
            level: Logging level, as a number or a name such as "DEBUG"
            log_dir: Directory for the log file. If None, uses ./logs
            log_to_file: Whether to also write to <log_dir>/blindbid.log
            force: Replace existing handlers. Module loggers are created at
                import time, so the CLI reconfigures with force=True once
                its options are parsed.
        """
        if cls._initialized and not force:
            return

        level = _resolve_level(level)
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(level)

        for handler in cls._detach_handlers(root_logger):
            handler.close()

        console_handler = colorlog.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        )
        root_logger.addHandler(console_handler)

        cls._log_file = None
        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            cls._log_file = directory / LOG_FILE_NAME

            file_handler = logging.FileHandler(cls._log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)

        cls._initialized = True

    @staticmethod
    def _detach_handlers(root_logger: logging.Logger) -> List[logging.Handler]:
        handlers = list(root_logger.handlers)
        for handler in handlers:
            root_logger.removeHandler(handler)
        return handlers

    @classmethod
    def log_file(cls) -> Optional[Path]:
        """Path of the active log file, if file logging is on."""
        return cls._log_file

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger for a specific subsystem.

        Args:
            name: Subsystem name (e.g., 'lifecycle', 'evaluator', 'storage')

        Returns:
            Logger instance
        """
        if not cls._initialized:
            cls.setup()

        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# Convenience functions
def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific subsystem"""
    return BlindBidLogger.get_logger(name)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """(Re)configure logging, replacing any handlers installed earlier"""
    BlindBidLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)
