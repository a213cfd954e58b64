"""Logging utilities and the diagnostics sink passed through each pipeline stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

_LOGGER_NAME = "pkgdoc"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the pkgdoc hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the pkgdoc logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[pkgdoc] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


@dataclass(frozen=True)
class Diagnostic:
    """A single message reported by a pipeline stage."""

    level: str
    message: str
    code: Optional[str] = None


class Diagnostics:
    """Records stage messages and forwards them to a logger.

    One instance is created per run and handed to every stage, so callers can
    inspect what was reported without capturing process-wide logging output.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("diagnostics")
        self.entries: List[Diagnostic] = []

    def verbose(self, message: str, code: str | None = None) -> None:
        self._record("verbose", logging.DEBUG, message, code)

    def info(self, message: str, code: str | None = None) -> None:
        self._record("info", logging.INFO, message, code)

    def warning(self, message: str, code: str | None = None) -> None:
        self._record("warning", logging.WARNING, message, code)

    def error(self, message: str, code: str | None = None) -> None:
        self._record("error", logging.ERROR, message, code)

    def messages(self, level: str | None = None) -> List[str]:
        """Return recorded messages, optionally filtered by level."""
        return [entry.message for entry in self.entries if level is None or entry.level == level]

    def codes(self) -> List[str]:
        return [entry.code for entry in self.entries if entry.code]

    def _record(self, level: str, log_level: int, message: str, code: str | None) -> None:
        self.entries.append(Diagnostic(level=level, message=message, code=code))
        self.logger.log(log_level, message)


__all__ = ["Diagnostic", "Diagnostics", "configure_logging", "get_logger"]
