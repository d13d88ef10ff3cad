from __future__ import annotations

import logging
import os
import sys
from typing import Dict, Mapping

LOGGER_NAME = "mold"
DEFAULT_LOGGING_LEVEL = "warning"
_VALID_LEVELS = {"debug", "info", "warning", "error", "critical"}
_SENSITIVE_MARKERS = ("token", "secret", "password", "passwd", "apikey", "api_key", "auth", "credential")
REDACTED = "[REDACTED]"


def _env_bool(name: str, default: bool = True) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def normalize_logging_level(raw: str | None) -> str:
    level = (raw or DEFAULT_LOGGING_LEVEL).strip().lower()
    if level == "warn":
        level = "warning"
    return level if level in _VALID_LEVELS else DEFAULT_LOGGING_LEVEL


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a single stderr handler to the `mold` logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(normalize_logging_level(level).upper())
    for handler in logger.handlers:
        if getattr(handler, "_mold_handler", False):
            handler.stream = sys.stderr  # type: ignore[attr-defined]
            return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._mold_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def redact_vars(values: Mapping[str, str]) -> Dict[str, str]:
    if not _env_bool("MOLD_LOG_REDACT", True):
        return dict(values)
    return {key: (REDACTED if is_sensitive(key) and value else value) for key, value in values.items()}


def redact_text(text: str, values: Mapping[str, str]) -> str:
    """Mask the values of sensitive variables wherever they appear in `text`."""
    if not _env_bool("MOLD_LOG_REDACT", True):
        return text
    for key, value in values.items():
        if value and len(value) >= 4 and is_sensitive(key):
            text = text.replace(value, REDACTED)
    return text
