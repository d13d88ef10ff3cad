"""
Environment flags: names bound to "1" so guards such as `if ci { ... }` or
`if linux { ... }` can test them.
"""

from __future__ import annotations

import os
import sys
from typing import Dict, Iterable, List, Mapping, Optional

from .scope import Scope

FLAG_VALUE = "1"


def platform_flags() -> List[str]:
    family = "windows" if os.name == "nt" else "unix"
    platform = sys.platform
    if platform.startswith("linux"):
        name = "linux"
    elif platform == "darwin":
        name = "macos"
    elif platform in {"win32", "cygwin"}:
        name = "windows"
    else:
        name = platform.rstrip("0123456789")
    return [family] if family == name else [family, name]


def invocation_scope(
    environments: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
    include_platform: bool = True,
) -> Scope:
    """Outermost writable frame, directly over the process environment."""
    flags: Dict[str, str] = {}
    if include_platform:
        for name in platform_flags():
            flags[name] = FLAG_VALUE
    for name in environments:
        flags[name] = FLAG_VALUE
    return Scope(values=flags, environ=environ, name="invocation")
