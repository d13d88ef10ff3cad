"""
Canonical moldfile formatter.

Parsing the output of `render_document` yields the same tree (spans aside),
comments included, so `format_source` is idempotent.
"""

from __future__ import annotations

from typing import List

from .. import ast_nodes
from ..parser import parse_source

INDENT = "  "

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def quote(text: str) -> str:
    out: list[str] = []
    for char in text:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{{{ord(char):x}}}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def expression_to_source(expr: ast_nodes.Expr) -> str:
    """Render a guard expression back to moldfile syntax."""
    if isinstance(expr, ast_nodes.NameExpr):
        return _name_or_string(expr.name)
    if isinstance(expr, ast_nodes.WildcardExpr):
        return "*"
    if isinstance(expr, ast_nodes.AndExpr):
        return f"{_operand(expr.left, allow_not=True)} + {expression_to_source(expr.right)}"
    if isinstance(expr, ast_nodes.OrExpr):
        return f"{_operand(expr.left, allow_not=True)} | {expression_to_source(expr.right)}"
    if isinstance(expr, ast_nodes.NotExpr):
        return f"~{_operand(expr.inner)}"
    if isinstance(expr, ast_nodes.GroupExpr):
        return f"({expression_to_source(expr.inner)})"
    raise TypeError(f"Unsupported guard expression {type(expr).__name__}")


def _operand(expr: ast_nodes.Expr, allow_not: bool = False) -> str:
    # parsed trees never put a binary node here; hand-built ones need parens
    wrap = (ast_nodes.AndExpr, ast_nodes.OrExpr) if allow_not else (ast_nodes.AndExpr, ast_nodes.OrExpr, ast_nodes.NotExpr)
    if isinstance(expr, wrap):
        return f"({expression_to_source(expr)})"
    return expression_to_source(expr)


class _Comments:
    """Source comments waiting to be placed, in source order."""

    def __init__(self, comments: List[ast_nodes.Comment] | None = None) -> None:
        self.pending = sorted(
            (c for c in comments or [] if c.span is not None),
            key=lambda c: (c.span.line, c.span.column),
        )

    def before(self, span: ast_nodes.Span | None, pad: str) -> List[str]:
        """Own-line comments that sit above `span`."""
        if span is None:
            return []
        lines: List[str] = []
        while self.pending and self.pending[0].span.line < span.line:
            lines.append(pad + self.pending.pop(0).text)
        return lines

    def after(self, span: ast_nodes.Span | None) -> str:
        """Comments trailing on the line of `span`."""
        if span is None:
            return ""
        texts: List[str] = []
        while self.pending and self.pending[0].span.line == span.line:
            texts.append(self.pending.pop(0).text)
        return "".join(f" {text}" for text in texts)

    def rest(self, pad: str) -> List[str]:
        lines = [pad + comment.text for comment in self.pending]
        self.pending = []
        return lines


def render_statement(stmt: ast_nodes.Statement, depth: int = 0, comments: _Comments | None = None) -> List[str]:
    if comments is None:
        comments = _Comments()
    pad = INDENT * depth
    lead = comments.before(stmt.span, pad)
    if isinstance(stmt, ast_nodes.RecipeDecl):
        head = f"{pad}recipe {stmt.name} {{" + comments.after(stmt.span)
        body = _render_body(stmt.body, depth + 1, comments)
        tail = comments.before(stmt.end, pad + INDENT)
        return [*lead, head, *body, *tail, f"{pad}}}" + comments.after(stmt.end)]
    if isinstance(stmt, ast_nodes.IfStmt):
        return [*lead, *_render_if(stmt, depth, comments)]
    return [*lead, pad + _render_simple(stmt) + comments.after(stmt.span)]


def _render_simple(stmt: ast_nodes.Statement) -> str:
    if isinstance(stmt, ast_nodes.VersionDecl):
        return f"version {quote(stmt.version)}"
    if isinstance(stmt, ast_nodes.ImportDecl):
        line = f"import {quote(stmt.path)}"
        if stmt.alias:
            line += f" as {stmt.alias}"
        return line
    if isinstance(stmt, ast_nodes.DirStmt):
        return f"dir {quote(stmt.path)}"
    if isinstance(stmt, ast_nodes.HelpStmt):
        return f"help {quote(stmt.text)}"
    if isinstance(stmt, ast_nodes.RequireStmt):
        return f"require {_name_or_string(stmt.name)}"
    if isinstance(stmt, ast_nodes.RunStmt):
        return f"run {quote(stmt.command)}"
    if isinstance(stmt, ast_nodes.VarStmt):
        op = ":=" if stmt.is_default else "="
        return f"var {stmt.name} {op} {quote(stmt.value)}"
    raise TypeError(f"Unsupported statement {type(stmt).__name__}")


def _render_body(body: List[ast_nodes.Statement], depth: int, comments: _Comments) -> List[str]:
    lines: List[str] = []
    for stmt in body:
        lines.extend(render_statement(stmt, depth, comments))
    return lines


def _render_if(stmt: ast_nodes.IfStmt, depth: int, comments: _Comments) -> List[str]:
    pad = INDENT * depth
    lines: List[str] = []
    for idx, branch in enumerate(stmt.branches):
        if branch.guard is None:
            head = "else"
        elif idx == 0:
            head = f"if {expression_to_source(branch.guard)}"
        else:
            head = f"elif {expression_to_source(branch.guard)}"
        if idx == 0:
            lines.append(f"{pad}{head} {{" + comments.after(branch.span))
        else:
            # `} elif x {` shares the closing brace of the previous arm
            lines[-1] = f"{lines[-1]} {head} {{" + comments.after(branch.span)
        lines.extend(_render_body(branch.body, depth + 1, comments))
        lines.extend(comments.before(branch.end, pad + INDENT))
        lines.append(f"{pad}}}")
    if stmt.branches:
        lines[-1] += comments.after(stmt.branches[-1].end)
    return lines


def _name_or_string(name: str) -> str:
    if name and all(ch.isalnum() or ch in "_-/:" for ch in name) and "//" not in name and ":=" not in name:
        return name
    return quote(name)


def render_document(document: ast_nodes.Document) -> str:
    """Render a Document as canonical moldfile text, comments included."""
    comments = _Comments(document.comments)
    blocks: List[str] = []
    previous: type | None = None
    for stmt in document.statements:
        lines = render_statement(stmt, 0, comments)
        # blank line around recipes and between statement groups
        if blocks and (isinstance(stmt, ast_nodes.RecipeDecl) or type(stmt) is not previous or previous is ast_nodes.RecipeDecl):
            blocks.append("")
        blocks.extend(lines)
        previous = type(stmt)
    trailing = comments.rest("")
    if trailing:
        if blocks:
            blocks.append("")
        blocks.extend(trailing)
    if not blocks:
        return ""
    return "\n".join(blocks) + "\n"


def format_source(source: str) -> str:
    return render_document(parse_source(source))
