"""
AST node definitions for the mold language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class Span:
    """Location span for diagnostics."""

    line: int
    column: int


# Guard expressions


@dataclass
class NameExpr:
    """Bare name; true when the scope binds it to a non-empty value."""

    name: str
    span: Optional[Span] = None


@dataclass
class WildcardExpr:
    """`*`, always true."""

    span: Optional[Span] = None


@dataclass
class AndExpr:
    """left + right"""

    left: "Expr"
    right: "Expr"
    span: Optional[Span] = None


@dataclass
class OrExpr:
    """left | right"""

    left: "Expr"
    right: "Expr"
    span: Optional[Span] = None


@dataclass
class NotExpr:
    """~inner"""

    inner: "Expr"
    span: Optional[Span] = None


@dataclass
class GroupExpr:
    """( inner )"""

    inner: "Expr"
    span: Optional[Span] = None


Expr = Union[NameExpr, WildcardExpr, AndExpr, OrExpr, NotExpr, GroupExpr]


# Statements


@dataclass
class VersionDecl:
    """version \"x.y.z\""""

    version: str
    span: Optional[Span] = None


@dataclass
class ImportDecl:
    """import \"path\" [as alias]"""

    path: str
    alias: Optional[str] = None
    span: Optional[Span] = None


@dataclass
class DirStmt:
    """dir \"path\""""

    path: str
    span: Optional[Span] = None


@dataclass
class HelpStmt:
    """help \"text\""""

    text: str
    span: Optional[Span] = None


@dataclass
class RequireStmt:
    """require name"""

    name: str
    span: Optional[Span] = None


@dataclass
class RunStmt:
    """run \"cmd\" or $ \"cmd\""""

    command: str
    span: Optional[Span] = None


@dataclass
class VarStmt:
    """var name = \"v\" (override) or var name := \"v\" (default)"""

    name: str
    value: str
    is_default: bool = False
    span: Optional[Span] = None


@dataclass
class IfBranch:
    """One `if`/`elif`/`else` arm; `guard` is None for `else`."""

    guard: Optional[Expr]
    body: List["Statement"] = field(default_factory=list)
    span: Optional[Span] = None
    end: Optional[Span] = None


@dataclass
class IfStmt:
    branches: List[IfBranch] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class RecipeDecl:
    """recipe name { ... }"""

    name: str
    body: List["Statement"] = field(default_factory=list)
    span: Optional[Span] = None
    end: Optional[Span] = None

    @property
    def help(self) -> Optional[str]:
        """Last top-level `help` statement of the body, if any."""
        text = None
        for stmt in self.body:
            if isinstance(stmt, HelpStmt):
                text = stmt.text
        return text


Statement = Union[
    VersionDecl,
    ImportDecl,
    DirStmt,
    HelpStmt,
    RequireStmt,
    RunStmt,
    VarStmt,
    IfStmt,
    RecipeDecl,
]


@dataclass
class Comment:
    """A `#` or `//` comment, text kept with its marker."""

    text: str
    span: Optional[Span] = None


@dataclass
class Document:
    """Root parse result of one moldfile."""

    statements: List[Statement] = field(default_factory=list)
    version: Optional[str] = None
    path: Optional[str] = None
    comments: List[Comment] = field(default_factory=list)

    @property
    def imports(self) -> List[ImportDecl]:
        return [stmt for stmt in self.statements if isinstance(stmt, ImportDecl)]

    @property
    def recipes(self) -> List[RecipeDecl]:
        return [stmt for stmt in self.statements if isinstance(stmt, RecipeDecl)]
