"""Decorators for MCP tool handlers.

Provides error handling for MCP tool handlers: ``NotesError`` raised by the
export, import and conversion layers is logged and returned to the client as
a formatted message instead of failing the tool call.

Usage:
    @mcp.tool()
    @handle_notes_error
    async def handler(...) -> str:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec

from unfold_notes.models import NotesError

logger = logging.getLogger(__name__)

P = ParamSpec("P")


def format_notes_error(error: NotesError) -> str:
    """Format a NotesError as ``Error [code]: message``."""
    return f"Error [{error.code.value}]: {error.message}"


def handle_notes_error(
    func: Callable[P, Awaitable[str]],
) -> Callable[P, Awaitable[str]]:
    """Decorator to catch and format NotesError exceptions.

    Wraps the function in a try-except block. If NotesError is raised,
    returns a formatted error message. Other exceptions are propagated.

    Args:
        func: The async function to wrap.

    Returns:
        Wrapped function that catches NotesError exceptions.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> str:
        try:
            return await func(*args, **kwargs)
        except NotesError as e:
            logger.error(
                "NotesError in %s: code=%s, message=%s",
                func.__name__,
                e.code.value,
                e.message,
                exc_info=True,
            )
            return format_notes_error(e)

    return wrapper
