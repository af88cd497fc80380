"""Content format detection and API content negotiation.

Notes are stored as editor HTML. API callers read Markdown and may write
either Markdown or HTML.
"""

import logging
import re

from unfold_notes.utils.html_to_markdown import html_to_markdown
from unfold_notes.utils.markdown_to_html import markdown_to_html

logger = logging.getLogger(__name__)

_HTML_TAG_PATTERN = re.compile(r"<[a-z][^<>]*>", re.IGNORECASE)

# Checked in order; any match means Markdown
_MARKDOWN_PATTERNS = (
    re.compile(r"^#{1,6}\s", re.MULTILINE),  # Headings
    re.compile(r"\*\*[^*]+\*\*"),  # Bold
    re.compile(r"\*[^*]+\*"),  # Italic
    re.compile(r"\[[^\[\]\n]+\]\([^()\n]+\)"),  # Links
    re.compile(r"^[ \t]*[-*+]\s", re.MULTILINE),  # Unordered list
    re.compile(r"^[ \t]*\d+\.\s", re.MULTILINE),  # Ordered list
    re.compile(r"^[ \t]*>", re.MULTILINE),  # Blockquote
    re.compile(r"`[^`]+`"),  # Inline code
    re.compile(r"```.*```", re.DOTALL),  # Code block
    re.compile(r"^[ \t]*-[ \t]*\[[ xX]\]", re.MULTILINE),  # Task list
    re.compile(r"\[\[[^\[\]\n]+\]\]"),  # Wiki links
)


def is_likely_markdown(content: str | None) -> bool:
    """Guess whether content is Markdown rather than HTML.

    Anything containing an HTML tag is HTML. Plain text with no Markdown
    signal is not Markdown.

    Args:
        content: Text to classify

    Returns:
        True if the content looks like Markdown
    """
    if not content:
        return False
    if _HTML_TAG_PATTERN.search(content):
        return False
    return any(pattern.search(content) for pattern in _MARKDOWN_PATTERNS)


def transform_content_for_api_response(content: str | None) -> str | None:
    """Convert stored HTML to Markdown for an API response.

    None and empty content pass through unchanged.
    """
    if not content:
        return content
    logger.debug("Transforming HTML to Markdown, input length: %d", len(content))
    result = html_to_markdown(content)
    logger.debug("Output length: %d | First 100 chars: %r", len(result), result[:100])
    return result


def transform_content_from_api_request(content: str | None) -> str | None:
    """Convert API request content to HTML for storage.

    Content is converted only when it looks like Markdown; HTML and plain
    text are stored as given.
    """
    if not content:
        return content
    if not is_likely_markdown(content):
        return content
    logger.debug("Transforming Markdown to HTML, input length: %d", len(content))
    return markdown_to_html(content)
