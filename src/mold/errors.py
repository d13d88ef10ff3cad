"""
Custom error types for the mold toolchain.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MoldError(Exception):
    """Base error with optional location metadata."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    path: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts: list[str] = []
        if self.path:
            parts.append(self.path)
        if self.line is not None:
            parts.append(f"line {self.line}")
            if self.column is not None:
                parts.append(f"column {self.column}")
        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


@dataclass
class ParseError(MoldError):
    """Malformed moldfile syntax."""

    expected: Optional[str] = None


class LexError(ParseError):
    """Lexical analysis error (bad character, escape or unterminated string)."""


class ResolveError(MoldError):
    """Failure while assembling the namespace from a root document and its imports."""


class ImportNotFoundError(ResolveError):
    """An imported moldfile does not exist."""


@dataclass
class ImportCycleError(ResolveError):
    """An import chain leads back to a file already on the chain."""

    chain: List[str] = field(default_factory=list)


class RecipeCollisionError(ResolveError):
    """Two recipes (or import aliases) claim the same name in one namespace."""


class IncompatibleVersionError(ResolveError):
    """The moldfile asks for a version this tool does not provide."""


@dataclass
class ExecError(MoldError):
    """Failure of an in-progress recipe invocation."""

    recipe: Optional[str] = None


@dataclass
class UnknownRecipeError(ExecError):
    name: str = ""


@dataclass
class MissingRequirementError(ExecError):
    requirement: str = ""


@dataclass
class CommandFailedError(ExecError):
    statement_index: int = -1
    exit_status: int = 1
    command: Optional[str] = None


@dataclass
class CommandCancelledError(ExecError):
    statement_index: int = -1


@dataclass
class CommandTimeoutError(ExecError):
    statement_index: int = -1
