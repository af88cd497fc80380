"""Utility modules for unfold-notes."""

from unfold_notes.utils.content import is_likely_markdown
from unfold_notes.utils.html_to_markdown import html_to_markdown
from unfold_notes.utils.logging import get_logger, setup_logging
from unfold_notes.utils.markdown_to_html import markdown_to_html
from unfold_notes.utils.structured_converter import StructuredConverter, simple_structured_converter

__all__ = [
    "StructuredConverter",
    "get_logger",
    "html_to_markdown",
    "is_likely_markdown",
    "markdown_to_html",
    "setup_logging",
    "simple_structured_converter",
]
