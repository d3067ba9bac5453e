"""Logging utilities for apigen pipeline phases."""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

_LOGGER_NAME = "apigen"
_SIZE_SUFFIXES = ("B", "KB", "MB", "GB")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the apigen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    level: str | None = None,
) -> logging.Logger:
    """Configure the apigen logger with console output and an optional file sink."""
    resolved = logging.DEBUG if verbose else _parse_level(level)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(resolved)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when configured repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved)
    stream_handler.setFormatter(logging.Formatter("[apigen] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(resolved)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


@contextmanager
def log_phase(logger: logging.Logger, phase: str) -> Iterator[None]:
    """Bracket a pipeline phase with start and outcome markers."""
    logger.info("=== Starting %s ===", phase)
    try:
        yield
    except BaseException:
        logger.info("=== %s FAILED ===", phase)
        raise
    logger.info("=== %s SUCCESS ===", phase)


@contextmanager
def timed_operation(logger: logging.Logger, name: str) -> Iterator[None]:
    """Log the wall-clock duration of the wrapped block at debug level."""
    logger.debug("Starting operation: %s", name)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - started
        logger.debug("Timing [%s]: %.2f seconds", name, elapsed)


def log_structured(
    logger: logging.Logger,
    component: str,
    action: str,
    status: str,
    **data: Any,
) -> None:
    """Emit a `[component] action: status` line with optional debug payload."""
    message = f"[{component}] {action}: {status}"
    if data and logger.isEnabledFor(logging.DEBUG):
        message += f" | Data: {json.dumps(data, default=str, sort_keys=True)}"
    logger.info(message)


def log_file_generation(logger: logging.Logger, path: Path | str, size_bytes: int = 0) -> None:
    size_info = f" ({format_size(size_bytes)})" if size_bytes > 0 else ""
    logger.info("Generated: %s%s", path, size_info)


def log_template_validation(
    logger: logging.Logger, template: str, valid: bool, details: str = ""
) -> None:
    status = "VALID" if valid else "INVALID"
    logger.info("Template validation [%s]: %s", template, status)
    if details:
        logger.debug("Template details: %s", details)


def format_size(size_bytes: int) -> str:
    """Return a human readable size such as `1.5 KB`."""
    number = float(size_bytes)
    index = 0
    while number >= 1024 and index < len(_SIZE_SUFFIXES) - 1:
        number /= 1024
        index += 1
    return f"{number:.1f} {_SIZE_SUFFIXES[index]}"


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.INFO
    name = level.strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


__all__ = [
    "configure_logging",
    "format_size",
    "get_logger",
    "log_file_generation",
    "log_phase",
    "log_structured",
    "log_template_validation",
    "timed_operation",
]
