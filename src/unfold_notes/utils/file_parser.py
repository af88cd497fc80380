"""Markdown file parser for importing notes.

Parses Markdown files (for example, files from an unfold-notes export) with
YAML frontmatter support, extracts titles from headings, and renders the
body to editor HTML.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from unfold_notes.utils.markdown_to_html import markdown_to_html


@dataclass
class ParsedNote:
    """Represents a parsed Markdown note.

    Attributes:
        title: The note title (from frontmatter or heading)
        body: The note body content (Markdown)
        html: The body rendered to editor HTML
        space: Space name from frontmatter, if any
        folder: Folder path from frontmatter, if any
        tags: List of tags for the note
        source_path: Path to the source Markdown file
    """

    title: str
    body: str
    html: str = ""
    space: str | None = None
    folder: str | None = None
    tags: list[str] = field(default_factory=list)
    source_path: Path | None = None


# Pattern to match YAML frontmatter (must start at beginning of file)
FRONTMATTER_PATTERN = re.compile(r"^---\n(.*?)\n---\n?", re.DOTALL)

# Patterns to match H1 and H2 title headings
_H1_TITLE_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_H2_TITLE_PATTERN = re.compile(r"^##\s+(.+)$", re.MULTILINE)


def parse_note_file(file_path: Path | str) -> ParsedNote:
    """Parse a Markdown file into a note.

    The function extracts:
    - Title: From YAML frontmatter, or first H1, or first H2 as fallback
    - Space and folder: From YAML frontmatter (optional)
    - Body: The Markdown content (frontmatter stripped, title heading removed)

    Args:
        file_path: Path to the Markdown file (str or Path)

    Returns:
        ParsedNote with extracted components

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If no title can be extracted
    """
    path = Path(file_path) if isinstance(file_path, str) else file_path

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    content = path.read_text(encoding="utf-8")

    frontmatter_data = _extract_frontmatter(content)
    body = _strip_frontmatter(content)

    title = _get_title(frontmatter_data, body)
    if not title:
        raise ValueError(f"No title found: {path}")

    # If title came from heading (not frontmatter), remove it from body
    if not _has_frontmatter_title(frontmatter_data):
        body = _remove_title_heading(body, title)

    body = body.strip()

    return ParsedNote(
        title=title,
        body=body,
        html=markdown_to_html(body),
        space=_get_optional_string(frontmatter_data, "space"),
        folder=_get_optional_string(frontmatter_data, "folder"),
        tags=_get_tags(frontmatter_data),
        source_path=path,
    )


def _extract_frontmatter(content: str) -> dict[str, Any]:
    """Extract YAML frontmatter from content.

    Returns:
        Parsed YAML as dict, or empty dict if no valid frontmatter
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return {}

    try:
        data = yaml.safe_load(match.group(1))
        return data if isinstance(data, dict) else {}
    except yaml.YAMLError:
        return {}


def _strip_frontmatter(content: str) -> str:
    match = FRONTMATTER_PATTERN.match(content)
    if match:
        return content[match.end() :]
    return content


def _has_frontmatter_title(frontmatter: dict[str, Any]) -> bool:
    title = frontmatter.get("title", "")
    return bool(title and str(title).strip())


def _get_title(frontmatter: dict[str, Any], body: str) -> str | None:
    """Extract title from frontmatter or body headings.

    Priority:
    1. YAML frontmatter 'title' field (if non-empty)
    2. First H1 heading
    3. First H2 heading
    """
    if _has_frontmatter_title(frontmatter):
        return str(frontmatter["title"]).strip()

    h1_match = _H1_TITLE_PATTERN.search(body)
    if h1_match:
        return h1_match.group(1).strip()

    h2_match = _H2_TITLE_PATTERN.search(body)
    if h2_match:
        return h2_match.group(1).strip()

    return None


def _remove_title_heading(body: str, title: str) -> str:
    """Remove the first H1 or H2 heading that matches the title."""
    escaped_title = re.escape(title)

    for level in ("#", "##"):
        pattern = re.compile(rf"^{level}\s+{escaped_title}\s*\n?", re.MULTILINE)
        new_body, count = pattern.subn("", body, count=1)
        if count > 0:
            return new_body

    return body


def _get_optional_string(frontmatter: dict[str, Any], key: str) -> str | None:
    value = frontmatter.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _get_tags(frontmatter: dict[str, Any]) -> list[str]:
    """Extract tags from frontmatter.

    Handles both list and single string formats.
    """
    tags = frontmatter.get("tags", [])

    if isinstance(tags, str):
        return [tags] if tags.strip() else []

    if isinstance(tags, list):
        return [str(tag).strip() for tag in tags if tag]

    return []
