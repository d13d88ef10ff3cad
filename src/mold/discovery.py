"""
Moldfile discovery: walk up from a directory until a moldfile is found.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .errors import MoldError

DEFAULT_FILES: Sequence[str] = ("moldfile", "Moldfile")


class DiscoveryError(MoldError):
    """No moldfile could be located."""


def locate_file(name: Path | str, start: Optional[Path] = None) -> Path:
    name = Path(name)
    if name.is_absolute():
        if name.is_file():
            return name
        raise DiscoveryError(f"File '{name}' does not exist")

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / name
        if candidate.is_file():
            return candidate
    raise DiscoveryError(f"Unable to discover '{name}'")


def discover(start: Optional[Path] = None, file: Optional[Path | str] = None) -> Path:
    """Locate `file` (or one of DEFAULT_FILES) from `start` upward."""
    if file is not None:
        return locate_file(file, start)
    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in DEFAULT_FILES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    raise DiscoveryError(
        "Cannot locate moldfile, tried the following:\n" + " ".join(DEFAULT_FILES)
    )
