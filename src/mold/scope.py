"""
Layered variable scopes.

A scope is a chain of frames. Lookups walk innermost-first and fall back to
the process environment, which is the outermost, read-only frame. Two kinds
of assignment exist:

* override (``name = "v"``) always rebinds in the scope's own frame;
* default (``name := "v"``) binds only when nothing is visible from this
  frame outward, environment included. The check happens at assignment time.
"""

from __future__ import annotations

import os
import re
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

NAME_PATTERN = r"[A-Za-z0-9_\-/:]+"
_PLACEHOLDER = re.compile(r"\$\$\{(" + NAME_PATTERN + r")\}|\$\{(" + NAME_PATTERN + r")\}")


class Scope:
    """One frame of variable bindings plus a link to its parent."""

    def __init__(
        self,
        parent: Optional["Scope"] = None,
        values: Optional[Mapping[str, str]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        name: str = "scope",
    ) -> None:
        self.parent = parent
        self.values: Dict[str, str] = dict(values or {})
        self.name = name
        # only the root frame consults the environment
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        root = self.root()
        return root._environ if root._environ is not None else os.environ

    def root(self) -> "Scope":
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def child(self, values: Optional[Mapping[str, str]] = None, name: str = "scope") -> "Scope":
        return Scope(parent=self, values=values, name=name)

    def frames(self) -> Iterator["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def get(self, name: str) -> Optional[str]:
        for frame in self.frames():
            if name in frame.values:
                return frame.values[name]
        return self.environ.get(name)

    def set(self, name: str, value: str, is_default: bool = False) -> bool:
        """Bind `name`; returns False when a default assignment was a no-op."""
        if is_default and self.get(name) is not None:
            return False
        self.values[name] = value
        return True

    def flatten(self, include_environ: bool = True) -> Dict[str, str]:
        merged: Dict[str, str] = dict(self.environ) if include_environ else {}
        for frame in reversed(list(self.frames())):
            merged.update(frame.values)
        return merged

    def freeze(self) -> Mapping[str, str]:
        return MappingProxyType(self.flatten())

    def interpolate(self, text: str) -> str:
        """Replace ``${name}`` with bound values; ``$${name}`` stays literal."""

        def _replace(match: re.Match) -> str:
            escaped, name = match.group(1), match.group(2)
            if escaped is not None:
                return "${" + escaped + "}"
            value = self.get(name)
            if value is None:
                return match.group(0)
            return value

        return _PLACEHOLDER.sub(_replace, text)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Scope({self.name}, {self.values})"
