from __future__ import annotations

"""
Logging Configuration Models.

Settings consumed by `configure_logging`. The CLI derives them from the
`log_level` / `log_file` configuration keys and the --debug flag.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

_LEVEL_MAP: Dict[str, int] = {
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
    Immutable logging settings.

    Attributes:
        level: Minimum severity level to capture.
        console: Emit records on stderr (stdout is reserved for reports).
        log_file: Optional path of a rotating log file.
        max_bytes: Size of a log file before it rotates.
        backup_count: Rotated files to keep.
        console_fmt: Format of stderr records.
        file_fmt: Format of file records.
        datefmt: Timestamp format of file records.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    console_fmt: str = "%(levelname)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_config(cls, config: Dict, debug: bool = False) -> "LoggingConfig":
        """Build settings from a validated run configuration."""
        return cls(
            level="DEBUG" if debug else config.get("log_level", "INFO"),
            log_file=config.get("log_file") or None,
        )
