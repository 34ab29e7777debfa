"""
Logging setup.

LOG_LEVEL sets the root level, LOG_FORMAT picks "structured" (default)
or "simple" lines, and LOG_LEVEL_<AREA> overrides one area, for example
LOG_LEVEL_PIPELINE=DEBUG.
"""

import logging
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from vidscribe.config import Settings

# LOG_LEVEL_<key> -> logger it controls
AREA_LOGGERS = {
    "ai_clients": "vidscribe.services.ai_clients",
    "pipeline": "vidscribe.services.pipeline",
    "transcriber": "vidscribe.services.transcriber",
    "generator": "vidscribe.services.description_generator",
    "evaluator": "vidscribe.services.description_evaluator",
}

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "uvicorn.access")

SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def short_logger_name(name: str) -> str:
    """Drop the package prefix: "vidscribe.services.pipeline.x" -> "pipeline.x"."""
    for prefix, replacement in (
        ("vidscribe.services.", ""),
        ("vidscribe.api.", "api."),
        ("vidscribe.", ""),
    ):
        if name.startswith(prefix):
            return replacement + name[len(prefix):]
    return name


class StructuredFormatter(logging.Formatter):
    """One line per record: time | level | logger | message."""

    def format(self, record: logging.LogRecord) -> str:
        line = " | ".join(
            (
                self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
                f"{record.levelname:8}",
                f"{short_logger_name(record.name):15}",
                record.getMessage(),
            )
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def setup_logging(settings: "Settings", stream: TextIO | None = None) -> None:
    """Replace root handlers with a single stream handler (stdout unless given)."""
    root_level = _level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    if settings.log_format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)

    for key, logger_name in AREA_LOGGERS.items():
        override = getattr(settings, f"log_level_{key}", None)
        if override:
            logging.getLogger(logger_name).setLevel(_level(override, root_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
