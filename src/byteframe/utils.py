"""Foundation utilities for byteframe.

Sidecar JSON I/O, timing of transcode runs and root logger setup. This
module must not import any other project module.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
from pathlib import Path
import time
from typing import Any, Iterator

__all__ = [
    "read_json",
    "write_json",
    "time_block",
    "configure_logging",
    "LOG_LEVELS",
]

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ============================================================================
# JSON I/O
# ============================================================================


def read_json(path: Path | str) -> dict[str, Any]:
    """Parse a JSON object from ``path``.

    Raises:
        FileNotFoundError: If the file does not exist
        JSONDecodeError: If the content is not valid JSON
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_json(path: Path | str, obj: dict[str, Any], indent: int = 2) -> None:
    """Write ``obj`` as indented UTF-8 JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=indent, ensure_ascii=False), encoding="utf-8")


# ============================================================================
# Timing
# ============================================================================


@contextmanager
def time_block(label: str, log: logging.Logger | None = None) -> Iterator[None]:
    """Log ``"<label> completed in N.NNs"`` when the block exits, even on error.

    Example:
        with time_block("Encoding report.pdf", logger):
            encode_file(...)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        (log or logger).info(f"{label} completed in {time.perf_counter() - start:.2f}s")


# ============================================================================
# Logging Configuration
# ============================================================================


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """Replace the root logger's handlers with a single stderr handler.

    Args:
        level: One of LOG_LEVELS, case-insensitive
        structured: Emit JSON-shaped records instead of plain text

    Raises:
        ValueError: If level is not a known log level
    """
    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(JSON_FORMAT if structured else PLAIN_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(name)
