"""Markdown rendering helpers for the editor dialect.

Both HTML to Markdown converters build their output through these helpers
so that one construct always renders to the same Markdown text, whichever
converter produced it.
"""

from __future__ import annotations

from unfold_notes.models import LinkStyle
from unfold_notes.utils.dialect import (
    EMPHASIS_MARKERS,
    FENCE,
    HORIZONTAL_RULE,
    LANGUAGE_CLASS_PATTERN,
    NOTE_HREF_PREFIX,
    TABLE_SEPARATOR_CELL,
    YOUTUBE_EMBED_ID_PATTERN,
    YOUTUBE_LABEL,
    YOUTUBE_WATCH_URL,
)
from unfold_notes.utils.normalize import collapse_blank_lines

CONTINUATION_INDENT = "  "


def heading(level: int, text: str) -> str:
    """Render a heading of the given level (1-6)."""
    return f"{'#' * level} {text.strip()}\n\n"


def inline(tag: str, text: str) -> str:
    """Wrap text in the Markdown markers for an inline tag."""
    opening, closing = EMPHASIS_MARKERS[tag]
    return f"{opening}{text}{closing}"


def paragraph(text: str) -> str:
    return f"{text.strip()}\n\n"


def line_break(preserve_line_breaks: bool) -> str:
    return "\n" if preserve_line_breaks else " "


def horizontal_rule() -> str:
    return HORIZONTAL_RULE


def link(text: str, href: str | None, title: str | None = None, link_style: LinkStyle = LinkStyle.INLINE) -> str:
    """Render a link.

    An empty href renders the text alone.
    """
    if not href:
        return text
    if link_style is LinkStyle.REFERENCE:
        return f"[{text}][{href}]"
    if title:
        return f'[{text}]({href} "{title}")'
    return f"[{text}]({href})"


def image(src: str | None, alt: str | None = None, title: str | None = None) -> str:
    """Render an image; a missing title is omitted rather than empty-quoted."""
    alt = alt or ""
    src = src or ""
    if title:
        return f'![{alt}]({src} "{title}")'
    return f"![{alt}]({src})"


def figure(src: str | None, alt: str | None, caption: str | None) -> str:
    """Render a figure image, falling back to the caption for alt text."""
    return f"![{alt or (caption or '').strip()}]({src or ''})\n\n"


def list_prefix(ordinal: int | None) -> str:
    """Return ``N. `` for an ordered item or ``- `` for an unordered one."""
    return f"{ordinal}. " if ordinal is not None else "- "


def task_prefix(checked: bool) -> str:
    return f"- [{'x' if checked else ' '}] "


def is_checked(value: str | None) -> bool:
    """Task item checked state is the string "true", not a boolean attribute."""
    return value == "true"


def list_item(prefix: str, content: str, has_nested_list: bool = False) -> str:
    """Render one list item.

    Continuation lines are indented two spaces so that nested lists and
    follow-on paragraphs stay inside the item. Items holding a nested list
    drop their blank lines, except inside fenced code.
    """
    lines = content.strip().split("\n")
    if has_nested_list:
        kept: list[str] = []
        in_fence = False
        for line in lines:
            if FENCE in line:
                in_fence = not in_fence
            if line.strip() or in_fence:
                kept.append(line)
        lines = kept or [""]
    indented = [lines[0]] + [f"{CONTINUATION_INDENT}{line}" if line.strip() else "" for line in lines[1:]]
    return prefix + "\n".join(indented) + "\n"


def blockquote(content: str) -> str:
    """Prefix every line with ``> ``; blank line runs outside code collapse first."""
    lines = collapse_blank_lines(content).split("\n")
    return "\n".join(f"> {line}" for line in lines) + "\n\n"


def extract_language(class_attr: str | list[str] | None) -> str:
    """Extract X from a ``language-X`` class, or return an empty string."""
    if not class_attr:
        return ""
    if isinstance(class_attr, list):
        class_attr = " ".join(class_attr)
    match = LANGUAGE_CLASS_PATTERN.search(class_attr)
    return match.group(1) if match else ""


def code_block(code: str, language: str = "") -> str:
    """Render a fenced code block; surrounding blank lines inside are dropped."""
    body = code.strip("\n").rstrip()
    return f"{FENCE}{language}\n{body}\n{FENCE}\n\n"


def table(rows: list[list[str]], has_header: bool) -> str:
    """Render pipe-table rows.

    Rows are padded to the widest row. The separator row follows row 0 only
    when that row held a header cell.
    """
    rows = [row for row in rows if row]
    if not rows:
        return ""

    column_count = max(len(row) for row in rows)
    result = "\n"
    for index, row in enumerate(rows):
        cells = [" ".join(cell.split()) for cell in row]
        cells += [""] * (column_count - len(cells))
        result += f"| {' | '.join(cells)} |\n"
        if index == 0 and has_header:
            result += f"| {' | '.join(TABLE_SEPARATOR_CELL for _ in cells)} |\n"
    return result + "\n"


def note_link_label(note_id: str | None, href: str | None, text: str) -> str:
    """Pick the wiki-link label: data-note-id, then the #note: href suffix, then the text."""
    if note_id:
        return note_id
    if href and href.startswith(NOTE_HREF_PREFIX):
        suffix = href[len(NOTE_HREF_PREFIX) :]
        if suffix:
            return suffix
    return text.strip()


def note_link(label: str) -> str:
    return f"[[{label}]]" if label else ""


def extract_video_id(src: str | None) -> str:
    if not src:
        return ""
    match = YOUTUBE_EMBED_ID_PATTERN.search(src)
    return match.group(1) if match else ""


def video_embed(video_id: str) -> str:
    """Render a YouTube embed as a watch link; no id renders nothing."""
    if not video_id:
        return ""
    return f"\n[{YOUTUBE_LABEL}]({YOUTUBE_WATCH_URL.format(video_id=video_id)})\n\n"
