"""
Character-stream lexer for the mold language.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .errors import LexError

KEYWORDS = {
    "version",
    "import",
    "as",
    "recipe",
    "var",
    "if",
    "elif",
    "else",
    "help",
    "dir",
    "require",
    "run",
}

PUNCTUATION = {
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    "|": "OR",
    "+": "AND",
    "~": "NOT",
    "*": "STAR",
    "=": "EQUALS",
    "$": "DOLLAR",
}

SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
}

HEX_DIGITS = set("0123456789abcdefABCDEF")
WHITESPACE = {" ", "\t", "\r", "\n"}
NAME_PUNCTUATION = {"_", "-", "/", ":"}


@dataclass
class Token:
    type: str
    value: Optional[str]
    line: int
    column: int
    offset: int = 0

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Token({self.type}, {self.value}, {self.line}:{self.column})"


def describe_token(token: Token) -> str:
    if token.type == "EOF":
        return "end of input"
    if token.type == "STRING":
        return f'string "{token.value}"'
    return f"'{token.value}'"


class Lexer:
    """
    Turns moldfile text into tokens. Whitespace is dropped; `#` and `//` comments
    are kept aside in `comments` so the formatter can put them back.
    """

    def __init__(self, source: str, filename: str | None = None) -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.comments: List[Token] = []

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            self._skip_trivia()
            if self.pos >= len(self.source):
                tokens.append(Token("EOF", None, self.line, self.column, self.pos))
                return tokens
            tokens.append(self._next_token())

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _error(self, message: str, line: int, column: int) -> LexError:
        return LexError(message, line, column, path=self.filename)

    def _skip_trivia(self) -> None:
        while self.pos < len(self.source):
            char = self._peek()
            if char in WHITESPACE:
                self._advance()
            elif char == "#" or (char == "/" and self._peek(1) == "/"):
                line, column, offset = self.line, self.column, self.pos
                while self.pos < len(self.source) and self._peek() != "\n":
                    self._advance()
                text = self.source[offset : self.pos].rstrip()
                self.comments.append(Token("COMMENT", text, line, column, offset))
            else:
                return

    def _next_token(self) -> Token:
        char = self._peek()
        line, column, offset = self.line, self.column, self.pos
        if char == '"':
            return Token("STRING", self._read_string(), line, column, offset)
        if char == ":" and self._peek(1) == "=":
            self._advance()
            self._advance()
            return Token("DEFAULT", ":=", line, column, offset)
        if self._is_name_char(char):
            ident = self._read_name()
            token_type = "KEYWORD" if ident in KEYWORDS else "IDENT"
            return Token(token_type, ident, line, column, offset)
        if char in PUNCTUATION:
            self._advance()
            return Token(PUNCTUATION[char], char, line, column, offset)
        raise self._error(f"Unexpected character '{char}'", line, column)

    def _is_name_char(self, char: str) -> bool:
        return bool(char) and (char.isalnum() or char in NAME_PUNCTUATION)

    def _read_name(self) -> str:
        chars: list[str] = []
        while self.pos < len(self.source):
            char = self._peek()
            if not self._is_name_char(char):
                break
            # `x:= "v"` and `a//comment` end the name
            if char == ":" and self._peek(1) == "=":
                break
            if char == "/" and self._peek(1) == "/":
                break
            chars.append(self._advance())
        return "".join(chars)

    def _read_string(self) -> str:
        start_line, start_col = self.line, self.column
        self._advance()
        chars: list[str] = []
        while True:
            if self.pos >= len(self.source):
                raise self._error("Unterminated string literal", start_line, start_col)
            char = self._advance()
            if char == '"':
                return "".join(chars)
            if char != "\\":
                chars.append(char)
                continue
            esc_line, esc_col = self.line, self.column - 1
            if self.pos >= len(self.source):
                raise self._error("Unterminated string literal", start_line, start_col)
            esc = self._advance()
            if esc in SIMPLE_ESCAPES:
                chars.append(SIMPLE_ESCAPES[esc])
            elif esc == "u":
                chars.append(self._read_unicode_escape(esc_line, esc_col))
            else:
                raise self._error(f"Invalid escape sequence '\\{esc}'", esc_line, esc_col)

    def _read_unicode_escape(self, line: int, column: int) -> str:
        if self._peek() == "{":
            self._advance()
            digits: list[str] = []
            while self.pos < len(self.source) and self._peek() != "}":
                digits.append(self._advance())
            if self.pos >= len(self.source):
                raise self._error("Unterminated unicode escape", line, column)
            self._advance()
            if not 1 <= len(digits) <= 6:
                raise self._error("Unicode escape needs 1 to 6 hex digits", line, column)
        else:
            digits = []
            for _ in range(4):
                if self.pos >= len(self.source):
                    raise self._error("Unicode escape needs 4 hex digits", line, column)
                digits.append(self._advance())
        text = "".join(digits)
        if not all(ch in HEX_DIGITS for ch in text):
            raise self._error(f"Invalid unicode escape '\\u{text}'", line, column)
        code_point = int(text, 16)
        if code_point > 0x10FFFF:
            raise self._error(f"Unicode escape out of range '\\u{text}'", line, column)
        return chr(code_point)
