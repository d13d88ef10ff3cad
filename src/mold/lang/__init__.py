"""
Language tooling built on top of the parser.
"""

from .formatter import format_source, render_document

__all__ = ["format_source", "render_document"]
