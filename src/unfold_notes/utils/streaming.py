"""Throttled Markdown preview for streamed AI output.

AI responses arrive token by token as Markdown. The preview re-renders the
accumulated buffer to editor HTML at most once per interval, and renders it
one final time when the stream ends.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from unfold_notes.config import get_preview_interval
from unfold_notes.utils.markdown_to_html import MarkdownRenderer, markdown_to_html

logger = logging.getLogger(__name__)


class StreamingPreview:
    """Per-stream Markdown buffer with a throttled HTML rendering.

    Attributes:
        interval: Minimum seconds between two renders while streaming
        html: Most recent rendering of the buffer
    """

    def __init__(
        self,
        renderer: MarkdownRenderer | None = None,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._renderer = renderer
        self.interval = get_preview_interval() if interval is None else interval
        self._clock = clock
        self._chunks: list[str] = []
        self._last_render: float | None = None
        self.html = ""

    @property
    def buffer(self) -> str:
        """Markdown received so far."""
        return "".join(self._chunks)

    def _render(self) -> str:
        self.html = markdown_to_html(self.buffer, self._renderer)
        self._last_render = self._clock()
        return self.html

    def feed(self, token: str) -> str | None:
        """Append a token and re-render if the interval has elapsed.

        Args:
            token: Next chunk of streamed Markdown

        Returns:
            The new HTML when a render happened, otherwise None
        """
        if token:
            self._chunks.append(token)
        now = self._clock()
        if self._last_render is not None and now - self._last_render < self.interval:
            return None
        return self._render()

    def finalize(self) -> str:
        """Render the complete buffer and return the HTML to persist."""
        html = self._render()
        logger.debug("Streaming preview finalized: %d chars Markdown, %d chars HTML", len(self.buffer), len(html))
        return html
