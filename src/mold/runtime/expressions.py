from __future__ import annotations

from typing import Iterator, List, Optional

from .. import ast_nodes
from ..errors import MoldError
from ..scope import Scope


class EvaluationError(MoldError):
    """Raised when a guard expression is not a known node type."""


def evaluate(expr: ast_nodes.Expr, scope: Scope) -> bool:
    """Evaluate a guard expression; And/Or short-circuit left to right."""
    if isinstance(expr, ast_nodes.NameExpr):
        return bool(scope.get(expr.name))
    if isinstance(expr, ast_nodes.WildcardExpr):
        return True
    if isinstance(expr, ast_nodes.AndExpr):
        return evaluate(expr.left, scope) and evaluate(expr.right, scope)
    if isinstance(expr, ast_nodes.OrExpr):
        return evaluate(expr.left, scope) or evaluate(expr.right, scope)
    if isinstance(expr, ast_nodes.NotExpr):
        return not evaluate(expr.inner, scope)
    if isinstance(expr, ast_nodes.GroupExpr):
        return evaluate(expr.inner, scope)
    raise EvaluationError(f"Unsupported guard expression {type(expr).__name__}")


def select_branch(stmt: ast_nodes.IfStmt, scope: Scope) -> Optional[List[ast_nodes.Statement]]:
    """Body of the first branch whose guard holds, or None when nothing matches."""
    for branch in stmt.branches:
        if branch.guard is None or evaluate(branch.guard, scope):
            return branch.body
    return None


def iter_flattened(
    statements: List[ast_nodes.Statement],
    scope: Scope,
    apply_vars: bool = True,
) -> Iterator[ast_nodes.Statement]:
    """
    Yield statements with conditional blocks replaced by their selected body.

    `var` statements are applied to `scope` when reached, before being
    yielded, and guards are evaluated lazily, so a consumer that inspects the
    scope between items sees it exactly as it was at that statement.
    """

    for stmt in statements:
        if isinstance(stmt, ast_nodes.IfStmt):
            body = select_branch(stmt, scope)
            if body:
                yield from iter_flattened(body, scope, apply_vars=apply_vars)
            continue
        if apply_vars and isinstance(stmt, ast_nodes.VarStmt):
            scope.set(stmt.name, scope.interpolate(stmt.value), stmt.is_default)
        yield stmt


def flatten(
    statements: List[ast_nodes.Statement],
    scope: Scope,
    apply_vars: bool = True,
) -> List[ast_nodes.Statement]:
    return list(iter_flattened(statements, scope, apply_vars=apply_vars))
