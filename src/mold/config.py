"""
Centralized configuration loader for the mold CLI and services.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import MoldError

CONFIG_FILE = "mold.toml"
DEFAULT_SHELL = "/bin/sh"
DEFAULT_LOG_LEVEL = "warning"


class ConfigError(MoldError):
    """Invalid mold.toml contents."""


@dataclass
class MoldConfig:
    moldfile: Optional[str] = None
    environments: List[str] = field(default_factory=list)
    shell: Optional[str] = DEFAULT_SHELL
    log_level: str = DEFAULT_LOG_LEVEL


def split_environments(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _read_file_config(project_root: Optional[Path]) -> Dict[str, Any]:
    if project_root is None:
        return {}
    cfg_path = project_root / CONFIG_FILE
    if not cfg_path.exists():
        return {}
    try:
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid {CONFIG_FILE}: {exc}", path=str(cfg_path)) from exc
    section = data.get("mold", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[mold] in {CONFIG_FILE} must be a table", path=str(cfg_path))
    return section


def load_config(env: Optional[Mapping[str, str]] = None, project_root: Optional[Path] = None) -> MoldConfig:
    environ = env if env is not None else os.environ
    file_cfg = _read_file_config(project_root)

    environments = file_cfg.get("environments", [])
    if isinstance(environments, str):
        environments = split_environments(environments)
    if environ.get("MOLDENV"):
        environments = split_environments(environ.get("MOLDENV"))

    shell = environ.get("MOLD_SHELL") or file_cfg.get("shell") or DEFAULT_SHELL
    return MoldConfig(
        moldfile=environ.get("MOLD_FILE") or file_cfg.get("file"),
        environments=[str(name) for name in environments],
        shell=None if shell == "default" else shell,
        log_level=environ.get("MOLD_LOG_LEVEL") or file_cfg.get("log_level") or DEFAULT_LOG_LEVEL,
    )
