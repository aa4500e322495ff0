"""Logging infrastructure for the Meal Planner Service.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Background cart-fill jobs log through ``job_logger(job_id)`` so every line of
a job carries its id (and, per call, the product being added). JSON output
keeps those fields as keys; text output shows them as a ``[job_id]`` tag.
"""

import json
import logging
import os
import sys
from typing import Any, MutableMapping


# Record attributes copied into JSON output when present
CONTEXT_FIELDS = ("job_id", "session_id", "user_id", "product")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the context fields set on ``record`` through ``extra``."""
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping and per-job filtering."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Context values may be models or paths
        return json.dumps(log_data, default=str, ensure_ascii=False)


class RichTextFormatter(logging.Formatter):
    """Colored single-line output with a level icon, for terminals."""

    STYLES = {
        # level: (ANSI color, icon)
        "DEBUG": ("\033[36m", "🔍"),
        "INFO": ("\033[32m", "🛒"),
        "WARNING": ("\033[33m", "⚠️"),
        "ERROR": ("\033[31m", "❌"),
        "CRITICAL": ("\033[35m", "🔥"),
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Render ``icon time LEVEL logger [job_id] message`` in the level's color.

        The traceback, if any, follows on the next lines uncolored.
        """
        color, icon = self.STYLES.get(record.levelname, (self.RESET, ""))
        job_id = getattr(record, "job_id", None)
        job_tag = f"[{job_id}] " if job_id else ""

        line = (
            f"{color}{icon} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{record.levelname:<8} {record.name:<20} {job_tag}{record.getMessage()}{self.RESET}"
        )
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


class JobLoggerAdapter(logging.LoggerAdapter):
    """Adds a job id to every record; per-call ``extra`` is merged on top."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use.

    Level and format come from LOG_LEVEL and LOG_TYPE at the time of the
    first call; later calls return the already configured logger.
    """
    logger_instance = logging.getLogger(name)
    if logger_instance.handlers:
        return logger_instance

    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    use_json = os.getenv("LOG_TYPE", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if use_json else RichTextFormatter())

    logger_instance.setLevel(log_level)
    logger_instance.addHandler(handler)
    return logger_instance


logger = get_logger("meal_planner")


def job_logger(job_id: str) -> JobLoggerAdapter:
    """Logger for one cart-fill job."""
    return JobLoggerAdapter(logger, {"job_id": job_id})


# Request-level chatter from client libraries
for noisy in ("httpx", "aiohttp.access", "google.genai", "browser_use_sdk"):
    logging.getLogger(noisy).setLevel(logging.WARNING)
