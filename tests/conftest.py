from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolated_mold_env(monkeypatch):
    """Keep the caller's mold settings out of every test."""
    for name in ("MOLDENV", "MOLD_FILE", "MOLD_SHELL", "MOLD_LOG_LEVEL", "MOLD_LOG_REDACT"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def write_moldfile(tmp_path: Path):
    def _write(text: str, name: str = "moldfile") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
