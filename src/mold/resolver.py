"""
Module resolution: walks `import` statements and assembles the namespace tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from . import ast_nodes
from .errors import (
    ImportCycleError,
    ImportNotFoundError,
    IncompatibleVersionError,
    RecipeCollisionError,
    UnknownRecipeError,
)
from .parser import parse_file
from .runtime.expressions import select_branch
from .scope import Scope
from .version import __version__

logger = logging.getLogger("mold.resolver")

SEPARATOR = ":"


@dataclass
class ResolvedRecipe:
    """A recipe declaration bound to the namespace it was defined in."""

    name: str
    decl: ast_nodes.RecipeDecl
    namespace: "Namespace"

    @property
    def qualified_name(self) -> str:
        return self.namespace.qualify(self.name)

    @property
    def help(self) -> Optional[str]:
        return self.decl.help


@dataclass
class Namespace:
    """Recipes of one moldfile plus the namespaces of its imports, keyed by alias."""

    name: str
    directory: Path
    scope: Scope
    path: Optional[Path] = None
    document: Optional[ast_nodes.Document] = None
    parent: Optional["Namespace"] = None
    work_dir: Optional[str] = None
    help: Optional[str] = None
    recipes: Dict[str, ResolvedRecipe] = field(default_factory=dict)
    children: Dict[str, "Namespace"] = field(default_factory=dict)

    @property
    def prefix(self) -> str:
        parts: List[str] = []
        ns: Optional[Namespace] = self
        while ns is not None and ns.parent is not None:
            parts.append(ns.name)
            ns = ns.parent
        return SEPARATOR.join(reversed(parts))

    @property
    def root(self) -> "Namespace":
        ns = self
        while ns.parent is not None:
            ns = ns.parent
        return ns

    def qualify(self, name: str) -> str:
        prefix = self.prefix
        return f"{prefix}{SEPARATOR}{name}" if prefix else name

    def add(self, recipe: ResolvedRecipe, span: Optional[ast_nodes.Span] = None) -> None:
        if recipe.name in self.recipes:
            existing = self.recipes[recipe.name]
            raise RecipeCollisionError(
                f"Recipe '{recipe.name}' from {_describe(recipe.namespace)} collides with "
                f"'{existing.qualified_name}' from {_describe(existing.namespace)}",
                span.line if span else None,
                span.column if span else None,
                path=str(self.path) if self.path else None,
            )
        self.recipes[recipe.name] = recipe

    def lookup(self, name: str) -> Optional[ResolvedRecipe]:
        if name in self.recipes:
            return self.recipes[name]
        if SEPARATOR in name:
            head, rest = name.split(SEPARATOR, 1)
            child = self.children.get(head)
            if child is not None:
                return child.lookup(rest)
        return None

    def find(self, name: str) -> ResolvedRecipe:
        recipe = self.lookup(name)
        if recipe is None:
            raise UnknownRecipeError(f"Couldn't locate recipe '{name}'", recipe=name, name=name)
        return recipe

    def find_namespace(self, name: str) -> Optional["Namespace"]:
        ns: Optional[Namespace] = self
        for part in name.split(SEPARATOR):
            if ns is None:
                return None
            ns = ns.children.get(part)
        return ns

    def iter_recipes(self) -> Iterator[Tuple[str, ResolvedRecipe]]:
        """Recipes defined here (not merged from unaliased imports), then children."""
        for name in sorted(self.recipes):
            recipe = self.recipes[name]
            if recipe.namespace is self:
                yield recipe.qualified_name, recipe
        for alias in sorted(self.children):
            yield from self.children[alias].iter_recipes()


def _describe(ns: Namespace) -> str:
    return str(ns.path) if ns.path else "<root>"


VersionKey = Tuple[int, int, int]

_OPERATORS = (">=", "<=", "^", "~", ">", "<", "=")
_WILDCARDS = {"*", "x", "X"}


def parse_version(text: str) -> Tuple[int, ...]:
    parts = text.strip().lstrip("v").split(".")
    if not parts or not all(part.isdigit() for part in parts):
        raise ValueError(text)
    return tuple(int(part) for part in parts)


def _bump(numbers: List[int]) -> VersionKey:
    """Smallest version above every version the given components match."""
    padded = numbers + [0] * (3 - len(numbers))
    padded[len(numbers) - 1] += 1
    return padded[0], padded[1], padded[2]


def comparator_range(text: str) -> Tuple[Optional[VersionKey], Optional[VersionKey]]:
    """
    Turn one comparator (`^1.2`, `~0.6`, `>=0.5`, `1.*`, ...) into a
    half-open `[lower, upper)` range. None means unbounded.

    A bare version is a caret requirement: `0.6` accepts 0.6.x, `1.2` accepts
    anything below 2.0.0, and `0.0.3` accepts only 0.0.3.
    """

    text = text.strip()
    op = None
    for candidate in _OPERATORS:
        if text.startswith(candidate):
            op, text = candidate, text[len(candidate):].strip()
            break
    parts = text.lstrip("v").split(".") if text else []
    if not 1 <= len(parts) <= 3:
        raise ValueError(text)
    numbers: List[int] = []
    for part in parts:
        if part in _WILDCARDS:
            break
        if not part.isdigit():
            raise ValueError(text)
        numbers.append(int(part))
    if not all(part in _WILDCARDS for part in parts[len(numbers):]):
        raise ValueError(text)
    if len(numbers) < len(parts):
        if op not in (None, "="):
            raise ValueError(text)
        op = "="
    if not numbers:
        return None, None

    op = op or "^"
    major, minor, patch = (numbers + [0, 0])[:3]
    low = (major, minor, patch)
    if op == "=":
        return low, _bump(numbers)
    if op == ">=":
        return low, None
    if op == ">":
        return _bump(numbers), None
    if op == "<":
        return None, low
    if op == "<=":
        return None, _bump(numbers)
    if op == "~":
        return low, _bump(numbers[:2])
    # caret: the leftmost non-zero component given must not change
    significant = next((idx for idx, value in enumerate(numbers) if value), len(numbers) - 1)
    return low, _bump(numbers[: significant + 1])


def version_matches(requirement: str, version: str) -> bool:
    """Check `version` against comma separated comparators, all of which must hold."""
    have = parse_version(version)
    key = (have + (0, 0, 0))[:3]
    for comparator in requirement.split(","):
        lower, upper = comparator_range(comparator)
        if lower is not None and key < lower:
            return False
        if upper is not None and key >= upper:
            return False
    return True


def check_version(required: str, current: str = __version__) -> None:
    """Raise unless the tool's version satisfies the moldfile's `version` requirement."""

    try:
        compatible = version_matches(required, current)
    except ValueError:
        raise IncompatibleVersionError(f"Invalid version requirement '{required}'") from None
    if not compatible:
        raise IncompatibleVersionError(
            f"Incompatible versions: file requires version {required}, but current version is {current}"
        )


class ModuleResolver:
    """
    Builds a `Namespace` from a root document.

    Top-level `var` statements and conditional blocks are applied to each
    module's scope frame in source order while resolving, so later overrides
    shadow earlier ones and defaults see everything bound before them.
    """

    def __init__(
        self,
        loader: Callable[[Path], ast_nodes.Document] = parse_file,
        tool_version: str = __version__,
    ) -> None:
        self.loader = loader
        self.tool_version = tool_version
        self._documents: Dict[Path, ast_nodes.Document] = {}

    def resolve(
        self,
        document: ast_nodes.Document,
        path: Path | str | None = None,
        scope: Optional[Scope] = None,
    ) -> Namespace:
        root_path = Path(path).resolve() if path is not None else None
        directory = root_path.parent if root_path else Path.cwd()
        base = scope if scope is not None else Scope(name="invocation")
        global_scope = base.child(name="global")
        if root_path is not None:
            global_scope.set("MOLD_FILE", str(root_path))
            global_scope.set("MOLD_ROOT", str(directory))
        namespace = Namespace(
            name="",
            directory=directory,
            scope=global_scope,
            path=root_path,
            document=document,
        )
        chain = [root_path] if root_path is not None else []
        self._populate(namespace, document, chain)
        return namespace

    def _populate(self, ns: Namespace, document: ast_nodes.Document, chain: List[Path]) -> None:
        if document.version is not None:
            try:
                check_version(document.version, self.tool_version)
            except IncompatibleVersionError as exc:
                exc.path = str(ns.path) if ns.path else None
                raise
        ns.scope.set("MOLD_DIR", str(ns.directory))
        self._apply(ns, document.statements, chain)

    def _apply(self, ns: Namespace, statements: List[ast_nodes.Statement], chain: List[Path]) -> None:
        for stmt in statements:
            if isinstance(stmt, ast_nodes.ImportDecl):
                self._import(ns, stmt, chain)
            elif isinstance(stmt, ast_nodes.VarStmt):
                bound = ns.scope.set(stmt.name, ns.scope.interpolate(stmt.value), stmt.is_default)
                if not bound:
                    logger.debug("default for %s skipped; already bound", stmt.name)
            elif isinstance(stmt, ast_nodes.DirStmt):
                ns.work_dir = stmt.path
            elif isinstance(stmt, ast_nodes.HelpStmt):
                ns.help = stmt.text
            elif isinstance(stmt, ast_nodes.RecipeDecl):
                ns.add(ResolvedRecipe(name=stmt.name, decl=stmt, namespace=ns), stmt.span)
            elif isinstance(stmt, ast_nodes.IfStmt):
                body = select_branch(stmt, ns.scope)
                if body:
                    self._apply(ns, body, chain)

    def _import(self, ns: Namespace, decl: ast_nodes.ImportDecl, chain: List[Path]) -> None:
        target = (ns.directory / decl.path).resolve()
        line = decl.span.line if decl.span else None
        column = decl.span.column if decl.span else None
        where = str(ns.path) if ns.path else None

        if target in chain:
            cycle = [str(p) for p in chain[chain.index(target):]] + [str(target)]
            raise ImportCycleError(
                "Import cycle: " + " -> ".join(cycle),
                line,
                column,
                path=where,
                chain=cycle,
            )
        if not target.is_file():
            raise ImportNotFoundError(f"Imported moldfile '{decl.path}' not found at {target}", line, column, path=where)

        alias = decl.alias or target.stem
        if alias in ns.children:
            raise RecipeCollisionError(
                f"Import alias '{alias}' is already used by {_describe(ns.children[alias])}",
                line,
                column,
                path=where,
            )

        logger.debug("importing %s as %s", target, alias)
        try:
            document = self._load(target)
        except OSError as exc:
            raise ImportNotFoundError(
                f"Imported moldfile '{decl.path}' could not be read: {exc.strerror or exc}",
                line,
                column,
                path=where,
            ) from exc
        child = Namespace(
            name=alias,
            directory=target.parent,
            scope=ns.scope.child(name=f"module:{alias}"),
            path=target,
            document=document,
            parent=ns,
        )
        ns.children[alias] = child
        self._populate(child, document, chain + [target])

        if decl.alias is None:
            for name in sorted(child.recipes):
                ns.add(
                    ResolvedRecipe(name=name, decl=child.recipes[name].decl, namespace=child.recipes[name].namespace),
                    decl.span,
                )

    def _load(self, path: Path) -> ast_nodes.Document:
        if path not in self._documents:
            self._documents[path] = self.loader(path)
        return self._documents[path]


def resolve(
    document: ast_nodes.Document,
    path: Path | str | None = None,
    scope: Optional[Scope] = None,
) -> Namespace:
    return ModuleResolver().resolve(document, path, scope)


def load_namespace(path: Path | str, scope: Optional[Scope] = None) -> Namespace:
    path = Path(path)
    return ModuleResolver().resolve(parse_file(path), path, scope)
