"""Guard-expression parsing helpers.

These functions are attached to `Parser` as methods. Precedence comes from
the rule nesting rather than a precedence table: an or-choice is an and-choice
optionally followed by `|` and a whole expression, an and-choice is a
not-choice optionally followed by `+` and a whole expression, and `~` applies
to a single atom. The resulting trees lean right:

    a | b + c   ->  a | (b + c)
    ~a + b      ->  (~a) + b
    a + b | c   ->  a + (b | c)
"""

from __future__ import annotations

from .. import ast_nodes

__all__ = [
    "parse_expression",
    "parse_or",
    "parse_and",
    "parse_not",
    "parse_atom",
]


def parse_expression(self) -> ast_nodes.Expr:
    return self.parse_or()


def parse_or(self) -> ast_nodes.Expr:
    start = self.peek()
    left = self.parse_and()
    if self.match("OR"):
        right = self.parse_expression()
        return ast_nodes.OrExpr(left=left, right=right, span=self._span(start))
    return left


def parse_and(self) -> ast_nodes.Expr:
    start = self.peek()
    left = self.parse_not()
    if self.match("AND"):
        right = self.parse_expression()
        return ast_nodes.AndExpr(left=left, right=right, span=self._span(start))
    return left


def parse_not(self) -> ast_nodes.Expr:
    start = self.peek()
    if self.match("NOT"):
        return ast_nodes.NotExpr(inner=self.parse_atom(), span=self._span(start))
    return self.parse_atom()


def parse_atom(self) -> ast_nodes.Expr:
    token = self.peek()
    span = self._span(token)
    if self.match("LPAREN"):
        inner = self.parse_expression()
        self.consume("RPAREN", expected="')' to close group")
        return ast_nodes.GroupExpr(inner=inner, span=span)
    if self.match("STAR"):
        return ast_nodes.WildcardExpr(span=span)
    if token.type == "STRING":
        self.advance()
        if token.value == "*":
            return ast_nodes.WildcardExpr(span=span)
        if not token.value:
            raise self.error("Empty name in guard expression", token)
        return ast_nodes.NameExpr(name=token.value, span=span)
    if token.type in {"IDENT", "KEYWORD"}:
        self.advance()
        return ast_nodes.NameExpr(name=token.value or "", span=span)
    raise self.expected("a name, '*', '~' or '('", token)
