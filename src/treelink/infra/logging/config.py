from __future__ import annotations

"""
Logging Configuration Models.

Settings accepted by `configure_logging` and the mapping from level names
to the numeric constants of the `logging` module.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

LEVEL_NAMES: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging setup for one process.

    Attributes:
        level: Minimum level name; unknown names fall back to INFO.
        console: Write records to stderr.
        log_file: Optional rotating log file.
        max_bytes: Size at which the log file rolls over.
        backup_count: Rolled-over files kept next to the active one.
        console_fmt: Format of stderr lines.
        file_fmt: Format of log file lines.
        datefmt: Timestamp format of log file lines.
    """
    level: str = "WARNING"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    console_fmt: str = "%(levelname)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @property
    def level_value(self) -> int:
        if not self.level:
            return logging.INFO
        return LEVEL_NAMES.get(str(self.level).strip().upper(), logging.INFO)
