"""
mold task-runner core package.
"""

from .version import __version__  # noqa: F401

__all__ = [
    "lexer",
    "parser",
    "ast_nodes",
    "scope",
    "resolver",
    "runtime",
    "errors",
    "__version__",
]
