import logging

from mold.logging_utils import (
    REDACTED,
    configure_logging,
    is_sensitive,
    normalize_logging_level,
    redact_text,
    redact_vars,
)


def test_sensitive_names():
    assert is_sensitive("GITHUB_TOKEN")
    assert is_sensitive("db_password")
    assert not is_sensitive("mode")


def test_vars_redaction_default():
    cleaned = redact_vars({"API_KEY": "abc123", "mode": "debug", "EMPTY_SECRET": ""})
    assert cleaned["API_KEY"] == REDACTED
    assert cleaned["mode"] == "debug"
    assert cleaned["EMPTY_SECRET"] == ""


def test_text_redaction_masks_values(monkeypatch):
    values = {"DEPLOY_TOKEN": "s3cr3t-value", "mode": "debug"}
    assert redact_text("deploy --token s3cr3t-value --mode debug", values) == f"deploy --token {REDACTED} --mode debug"
    monkeypatch.setenv("MOLD_LOG_REDACT", "false")
    assert redact_text("deploy --token s3cr3t-value", values) == "deploy --token s3cr3t-value"
    assert redact_vars(values)["DEPLOY_TOKEN"] == "s3cr3t-value"


def test_normalize_logging_level():
    assert normalize_logging_level("DEBUG") == "debug"
    assert normalize_logging_level("warn") == "warning"
    assert normalize_logging_level("chatty") == "warning"
    assert normalize_logging_level(None) == "warning"


def test_configure_logging_is_idempotent():
    logger = configure_logging("info")
    configure_logging("debug")
    handlers = [h for h in logger.handlers if getattr(h, "_mold_handler", False)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG
