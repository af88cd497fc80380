"""Markdown to HTML conversion utility.

Uses markdown-it-py (CommonMark with tables, strikethrough and ``==mark==``)
and post-processes the output into the editor's HTML dialect: task lists,
wiki links and YouTube embeds.
"""

import html
import logging
import re

from markdown_it import MarkdownIt

from unfold_notes.utils.dialect import (
    NOTE_HREF_PREFIX,
    NOTE_LINK_ATTR,
    TASK_CHECKED_ATTR,
    TASK_ITEM_MARKER,
    TASK_LIST_TYPE,
    YOUTUBE_ATTR,
    YOUTUBE_EMBED_URL,
)
from unfold_notes.utils.highlight import highlight_plugin

logger = logging.getLogger(__name__)

# How far back a </li> looks for the task item marker
TASK_ITEM_LOOKBACK = 200

# Pre-compiled regex patterns for performance
_EMPTY_PARAGRAPH_PATTERN = re.compile(r"<p>\s*</p>")
_TASK_PREFIX_PATTERN = re.compile(r"<li>\s*(<p>)?\[([ xX])\]\s*")
_LI_CLOSE_PATTERN = re.compile(r"</li>")
_TASK_LIST_PATTERN = re.compile(r"<ul>\s*(<li data-type=\"taskItem\")")
_WIKI_LINK_PATTERN = re.compile(r"\[\[([^\]\n]+)\]\]")
_CODE_PATTERN = re.compile(r"<pre[^>]*>.*?</pre>|<code[^>]*>.*?</code>", re.DOTALL | re.IGNORECASE)
_YOUTUBE_LINK_PATTERN = re.compile(
    r"<p>\s*<a href=\"https?://(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([\w-]+)[^\"]*\"[^>]*>[^<]*</a>\s*</p>",
    re.IGNORECASE,
)


class MarkdownRenderer:
    """Markdown renderer owning one configured markdown-it parser.

    Attributes:
        breaks: Whether single newlines inside a paragraph become <br>
    """

    def __init__(self, breaks: bool = True) -> None:
        self.breaks = breaks
        self._md = (
            MarkdownIt("commonmark", {"breaks": breaks, "html": True})
            .enable(["table", "strikethrough"])
            .use(highlight_plugin)
        )

    def render(self, markdown: str) -> str:
        """Render Markdown to editor HTML.

        Never raises: a failed render returns the escaped source in one
        paragraph.

        Args:
            markdown: Markdown formatted text, possibly incomplete

        Returns:
            HTML formatted text. Returns empty string for empty or non-string input.
        """
        if not isinstance(markdown, str) or not markdown.strip():
            return ""

        try:
            result: str = self._md.render(markdown)
            return post_process_for_editor(result)
        except Exception:
            logger.warning("Markdown rendering failed; returning escaped text", exc_info=True)
            return f"<p>{html.escape(markdown.strip())}</p>"


def _convert_task_prefix(match: re.Match[str]) -> str:
    checked = match.group(2).lower() == "x"
    checkbox = '<input type="checkbox" checked>' if checked else '<input type="checkbox">'
    paragraph = match.group(1) or ""
    return (
        f'<li {TASK_ITEM_MARKER} {TASK_CHECKED_ATTR}="{str(checked).lower()}">'
        f"<label>{checkbox}</label><div>{paragraph}"
    )


def _close_task_items(html_content: str) -> str:
    """Close the task item <div> before </li>.

    A </li> is treated as closing a task item when the task marker appears in
    the preceding TASK_ITEM_LOOKBACK characters. A plain item ending shortly
    after a task item is misjudged as one.
    """

    def close(match: re.Match[str]) -> str:
        window = html_content[max(0, match.start() - TASK_ITEM_LOOKBACK) : match.start()]
        return "</div></li>" if TASK_ITEM_MARKER in window else match.group(0)

    return _LI_CLOSE_PATTERN.sub(close, html_content)


def _convert_wiki_links(html_content: str) -> str:
    """Turn ``[[Title]]`` into note links, leaving code untouched."""
    code_spans: list[str] = []

    def stash(match: re.Match[str]) -> str:
        code_spans.append(match.group(0))
        return f"__CODE_SPAN_{len(code_spans) - 1}__"

    result = _CODE_PATTERN.sub(stash, html_content)
    result = _WIKI_LINK_PATTERN.sub(
        lambda m: f'<a {NOTE_LINK_ATTR}="true" href="{NOTE_HREF_PREFIX}{m.group(1)}">{m.group(1)}</a>',
        result,
    )
    for i, span in enumerate(code_spans):
        result = result.replace(f"__CODE_SPAN_{i}__", span)
    return result


def _convert_youtube_links(html_content: str) -> str:
    def embed(match: re.Match[str]) -> str:
        src = YOUTUBE_EMBED_URL.format(video_id=match.group(1))
        return f'<div {YOUTUBE_ATTR}=""><iframe src="{src}"></iframe></div>'

    return _YOUTUBE_LINK_PATTERN.sub(embed, html_content)


def post_process_for_editor(html_content: str) -> str:
    """Rewrite markdown-it output into the editor's HTML dialect.

    Args:
        html_content: HTML rendered by markdown-it

    Returns:
        HTML with task lists, note links and video embeds in editor form
    """
    result = _EMPTY_PARAGRAPH_PATTERN.sub("<p></p>", html_content)
    result = _TASK_PREFIX_PATTERN.sub(_convert_task_prefix, result)
    result = _close_task_items(result)
    result = _TASK_LIST_PATTERN.sub(rf'<ul data-type="{TASK_LIST_TYPE}">\1', result)
    result = _convert_wiki_links(result)
    result = _convert_youtube_links(result)
    return result.strip()


_default_renderer = MarkdownRenderer()


def markdown_to_html(content: str, renderer: MarkdownRenderer | None = None) -> str:
    """Convert Markdown content to editor HTML.

    Args:
        content: Markdown formatted text
        renderer: Renderer to use; defaults to a shared renderer with line breaks on

    Returns:
        HTML formatted text. Returns empty string for empty input.

    Example:
        >>> markdown_to_html("# Hello")
        '<h1>Hello</h1>'
    """
    return (renderer or _default_renderer).render(content)
