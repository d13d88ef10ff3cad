"""
Recursive-descent parser for moldfiles.
"""

from __future__ import annotations

from typing import List

from .. import ast_nodes
from ..errors import ParseError
from ..lexer import Lexer, Token, describe_token
from . import expr
from . import stmt


class Parser:
    def __init__(self, tokens: List[Token], filename: str | None = None, comments: List[Token] | None = None) -> None:
        self.tokens = tokens
        self.filename = filename
        self.comments = comments or []
        self.position = 0

    @classmethod
    def from_source(cls, source: str, filename: str | None = None) -> "Parser":
        lexer = Lexer(source, filename)
        return cls(lexer.tokenize(), filename, lexer.comments)

    parse_document = stmt.parse_document
    parse_document_statement = stmt.parse_document_statement
    parse_recipe_statement = stmt.parse_recipe_statement
    parse_block = stmt.parse_block
    parse_if = stmt.parse_if
    parse_branch = stmt.parse_branch
    parse_version = stmt.parse_version
    parse_import = stmt.parse_import
    parse_recipe = stmt.parse_recipe
    parse_var = stmt.parse_var
    parse_dir = stmt.parse_dir
    parse_help = stmt.parse_help
    parse_require = stmt.parse_require
    parse_run = stmt.parse_run

    parse_expression = expr.parse_expression
    parse_or = expr.parse_or
    parse_and = expr.parse_and
    parse_not = expr.parse_not
    parse_atom = expr.parse_atom

    def consume(self, token_type: str, value: str | None = None, expected: str | None = None) -> Token:
        token = self.peek()
        if token.type != token_type or (value is not None and token.value != value):
            raise self.expected(expected or (f"'{value}'" if value is not None else token_type), token)
        self.advance()
        return token

    def consume_name(self, what: str) -> Token:
        token = self.peek()
        if token.type not in {"IDENT", "KEYWORD"}:
            raise self.expected(what, token)
        self.advance()
        return token

    def consume_string_value(self, field_name: str) -> Token:
        if not self.check("STRING"):
            raise self.expected(f"string after '{field_name}'", self.peek())
        return self.consume("STRING")

    def match(self, token_type: str) -> bool:
        if self.check(token_type):
            self.advance()
            return True
        return False

    def match_value(self, token_type: str, value: str) -> bool:
        if self.check_value(token_type, value):
            self.advance()
            return True
        return False

    def check(self, token_type: str) -> bool:
        return self.peek().type == token_type

    def check_value(self, token_type: str, value: str) -> bool:
        token = self.peek()
        return token.type == token_type and token.value == value

    def peek(self) -> Token:
        return self.tokens[self.position]

    def previous(self) -> Token:
        return self.tokens[max(self.position - 1, 0)]

    def advance(self) -> Token:
        token = self.tokens[self.position]
        self.position = min(self.position + 1, len(self.tokens) - 1)
        return token

    def error(self, message: str, token: Token, expected: str | None = None) -> ParseError:
        return ParseError(message, token.line, token.column, path=self.filename, expected=expected)

    def expected(self, what: str, token: Token) -> ParseError:
        return self.error(f"Expected {what}, found {describe_token(token)}", token, expected=what)

    def _span(self, token: Token) -> ast_nodes.Span:
        return ast_nodes.Span(line=token.line, column=token.column)
