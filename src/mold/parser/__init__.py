"""
Parser facade.

Public API is `parse_source`, `parse_file`, `read_source` and the error types.
"""

from __future__ import annotations

from pathlib import Path

from .. import ast_nodes
from ..errors import LexError, ParseError
from .core import Parser


def parse_source(source: str, path: str | None = None) -> ast_nodes.Document:
    """Parse moldfile text into a Document."""
    return Parser.from_source(source, path).parse_document()


def read_source(path: Path | str) -> str:
    """Read a moldfile as UTF-8; undecodable bytes are a ParseError at their position."""
    path = Path(path)
    data = path.read_bytes()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        before = data[: exc.start]
        line = before.count(b"\n") + 1
        column = len(before) - (before.rfind(b"\n") + 1) + 1
        raise ParseError(
            f"Invalid UTF-8 at byte {exc.start}",
            line,
            column,
            path=str(path),
        ) from exc
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_file(path: Path | str) -> ast_nodes.Document:
    path = Path(path)
    return parse_source(read_source(path), str(path))


parse = parse_source

__all__ = ["parse", "parse_source", "parse_file", "read_source", "ParseError", "LexError", "Parser"]
