"""
Requirement checks for `require` statements.
"""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING, Callable, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..resolver import Namespace

SEPARATOR = ":"


class Capabilities:
    """
    Answers whether a named requirement is available.

    A name is satisfied by a recipe or an import alias visible from the
    requiring recipe's namespace (searched outward to the root), otherwise by
    an executable on PATH. Names containing ':' only ever refer to recipes or
    modules.
    """

    def __init__(
        self,
        search_path: Optional[str] = None,
        which: Callable[..., Optional[str]] = shutil.which,
    ) -> None:
        self.search_path = search_path
        self._which = which
        self._programs: Dict[str, bool] = {}

    def is_available(self, name: str, namespace: Optional["Namespace"] = None) -> bool:
        ns = namespace
        while ns is not None:
            if ns.lookup(name) is not None or ns.find_namespace(name) is not None:
                return True
            ns = ns.parent
        if SEPARATOR in name:
            return False
        return self.has_program(name)

    def has_program(self, name: str) -> bool:
        if name not in self._programs:
            self._programs[name] = self._which(name, path=self.search_path) is not None
        return self._programs[name]
