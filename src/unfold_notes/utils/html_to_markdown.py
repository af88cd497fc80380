"""HTML to Markdown conversion without a DOM.

Converts editor HTML (TipTap dialect) to Markdown with an ordered pipeline
of string-rewrite passes. Used for API responses and zip export, and as the
fallback of the structured converter.
"""

import logging
import re
from collections.abc import Callable
from functools import lru_cache

from unfold_notes.models import ConverterOptions
from unfold_notes.utils import markdown_format as md
from unfold_notes.utils.dialect import NOTE_ID_ATTR, TASK_CHECKED_ATTR, TASK_ITEM_TYPE, TASK_LIST_TYPE
from unfold_notes.utils.normalize import collapse_blank_lines, decode_entities

logger = logging.getLogger(__name__)

_DEFAULT_OPTIONS = ConverterOptions()

# Tag and attribute scans stop at "<" as well as ">", so a stray "<" costs a
# scan to the next tag rather than to the end of the input.
# Element bodies may not open another element of the same kind, so an
# unterminated tag fails at the next opening instead of scanning to the end.

# Code blocks: <pre><code class="language-x">...</code></pre>, or <pre> alone
_CODE_BLOCK_PATTERN = re.compile(
    r"<pre(?:\s[^<>]*)?>\s*<code(\s[^<>]*)?>((?:(?!<pre[\s>]).)*?)</code>\s*</pre>",
    re.DOTALL | re.IGNORECASE,
)
_PRE_ONLY_PATTERN = re.compile(r"<pre(?:\s[^<>]*)?>((?:(?!<pre[\s>]).)*?)</pre>", re.DOTALL | re.IGNORECASE)

# Whitespace around block-level tags is not content
_BLOCK_TAG_WHITESPACE = re.compile(
    r"\s*(</?(?:p|h[1-6]|ul|ol|li|div|blockquote|table|thead|tbody|tfoot|tr|td|th|hr|br|figure|figcaption)"
    r"(?:\s[^<>]*)?/?>)\s*",
    re.IGNORECASE,
)
_WHITESPACE_RUN = re.compile(r"\s+")

_HEADING_PATTERN = re.compile(
    r"<h([1-6])(?:\s[^<>]*)?>((?:(?!<h[1-6][\s>]).)*?)</h\1\s*>",
    re.IGNORECASE | re.DOTALL,
)

_INLINE_BODY = r"((?:(?!<\1[\s>]).)*?)"


def _inline_pattern(tags: str) -> re.Pattern[str]:
    return re.compile(rf"<({tags})(?:\s[^<>]*)?>{_INLINE_BODY}</\1\s*>", re.IGNORECASE | re.DOTALL)


# (tag alternatives, markdown tag key); a tag name must end at whitespace or '>'
_INLINE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (_inline_pattern("strong|b"), "strong"),
    (_inline_pattern("em|i"), "em"),
    (_inline_pattern("s|strike|del"), "s"),
    (_inline_pattern("u"), "u"),
    (_inline_pattern("code"), "code"),
    (_inline_pattern("mark"), "mark"),
]

_NOTE_LINK_PATTERN = re.compile(
    r"<a(\s[^<>]*\bdata-note-link\b[^<>]*)>((?:(?!<a[\s>]).)*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)
_LINK_PATTERN = re.compile(r"<a(\s[^<>]*)?>((?:(?!<a[\s>]).)*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_FIGURE_PATTERN = re.compile(
    r"<figure(?:\s[^<>]*)?>((?:(?!<figure[\s>]).)*?)</figure\s*>",
    re.IGNORECASE | re.DOTALL,
)
_FIGCAPTION_PATTERN = re.compile(
    r"<figcaption(?:\s[^<>]*)?>((?:(?!<figcaption[\s>]).)*?)</figcaption\s*>",
    re.IGNORECASE | re.DOTALL,
)
_IMG_PATTERN = re.compile(r"<img(\s[^<>]*)?/?>", re.IGNORECASE)

_TASK_ITEM_OPEN = re.compile(
    rf"<li(?=[\s>])[^<>]*\bdata-type=[\"']{TASK_ITEM_TYPE}[\"'][^<>]*>",
    re.IGNORECASE,
)
_TASK_LIST_OPEN = re.compile(
    rf"<ul(?=[\s>])[^<>]*\bdata-type=[\"']{TASK_LIST_TYPE}[\"'][^<>]*>",
    re.IGNORECASE,
)
_LIST_OPEN = re.compile(r"<(ul|ol)(?=[\s>/])[^<>]*>", re.IGNORECASE)
_LI_OPEN = re.compile(r"<li(?=[\s>/])[^<>]*>", re.IGNORECASE)
_STRAY_LIST_TAG = re.compile(r"</?(?:ul|ol|li)(?:\s[^<>]*)?>", re.IGNORECASE)

_BLOCKQUOTE_OPEN = re.compile(r"<blockquote(?=[\s>])[^<>]*>", re.IGNORECASE)
_HR_PATTERN = re.compile(r"<hr(?:\s[^<>]*)?/?>", re.IGNORECASE)
# An unclosed <p> ends where the next one opens
_PARAGRAPH_PATTERN = re.compile(
    r"<p(?:\s[^<>]*)?>((?:(?!<p[\s>]).)*?)(?:</p\s*>|(?=<p[\s>]))",
    re.IGNORECASE | re.DOTALL,
)
_BR_PATTERN = re.compile(r"<br(?:\s[^<>]*)?/?>", re.IGNORECASE)

_TABLE_PATTERN = re.compile(
    r"<table(?:\s[^<>]*)?>((?:(?!<table[\s>]).)*?)</table\s*>",
    re.IGNORECASE | re.DOTALL,
)
_ROW_PATTERN = re.compile(r"<tr(?:\s[^<>]*)?>((?:(?!<tr[\s>]).)*?)</tr\s*>", re.IGNORECASE | re.DOTALL)
_CELL_PATTERN = re.compile(
    r"<(th|td)(?:\s[^<>]*)?>((?:(?!<t[hd][\s>]).)*?)</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)

_VIDEO_EMBED_PATTERN = re.compile(
    r"<div(\s[^<>]*\bdata-youtube-video\b[^<>]*)>((?:(?!<div[\s>]).)*?)</div\s*>",
    re.IGNORECASE | re.DOTALL,
)
_IFRAME_PATTERN = re.compile(r"<iframe(\s[^<>]*)?>", re.IGNORECASE)

_DIV_OPEN = re.compile(r"<div(?:\s[^<>]*)?>", re.IGNORECASE)
_DIV_CLOSE = re.compile(r"</div\s*>", re.IGNORECASE)
_SPAN_TAG = re.compile(r"</?span(?:\s[^<>]*)?>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^<>]+>")

_ATTRIBUTE_PATTERN = re.compile(r"""([\w:.-]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'<>]+)))?""")
_NESTED_LIST_PLACEHOLDER = re.compile(r"__NESTED_LIST_(\d+)__")

# Code block placeholders sit on a line of their own, behind any list or quote prefix
_CODE_PLACEHOLDER = re.compile(r"__CODE_BLOCK_(\d+)__")
_CODE_PLACEHOLDER_SPACING = re.compile(r"\s*(__CODE_BLOCK_\d+__)\s*")
_CODE_PLACEHOLDER_LINE = re.compile(r"^(.*?)__CODE_BLOCK_(\d+)__[ \t]*$", re.MULTILINE)
_LINE_PREFIX_SEGMENT = re.compile(r"> |  |(?:[-*+]|\d+\.)(?: \[[ xX]\])? ")


def _parse_attributes(attr_string: str | None) -> dict[str, str]:
    """Parse an attribute string into a dict (names lower-cased)."""
    attrs: dict[str, str] = {}
    if not attr_string:
        return attrs
    for match in _ATTRIBUTE_PATTERN.finditer(attr_string):
        name, double_quoted, single_quoted, bare = match.groups()
        value = next((v for v in (double_quoted, single_quoted, bare) if v is not None), "")
        attrs.setdefault(name.lower(), value)
    return attrs


def _create_code_block_extractor(code_blocks: list[str]) -> Callable[[re.Match[str]], str]:
    """Create a code block extractor closure with local storage.

    Args:
        code_blocks: List to store extracted code blocks (mutated in place)

    Returns:
        A function that extracts code blocks and returns placeholders
    """

    def extract_code_block(match: re.Match[str]) -> str:
        if match.re is _CODE_BLOCK_PATTERN:
            language = md.extract_language(_parse_attributes(match.group(1)).get("class"))
            code = match.group(2)
        else:
            language = ""
            code = match.group(1)
        # Highlighter markup inside code is dropped; entities are decoded here only
        code = decode_entities(_ANY_TAG.sub("", code))
        code_blocks.append(md.code_block(code, language))
        return f"\n\n__CODE_BLOCK_{len(code_blocks) - 1}__\n\n"

    return extract_code_block


@lru_cache(maxsize=16)
def _tag_token_pattern(tag_name: str) -> re.Pattern[str]:
    return re.compile(rf"<{tag_name}(?=[\s>/])|</{tag_name}\s*>", re.IGNORECASE)


def _match_tags(html_content: str, tag_name: str) -> dict[int, tuple[int, int]]:
    """Pair opening and closing tags of one name by nesting, in a single scan.

    Args:
        html_content: HTML string to search
        tag_name: Tag name (e.g., "li", "ul")

    Returns:
        Opening tag start -> (close_start, close_end); unterminated openings are absent
    """
    pairs: dict[int, tuple[int, int]] = {}
    open_starts: list[int] = []
    for token in _tag_token_pattern(tag_name).finditer(html_content):
        if token.group(0).startswith("</"):
            if open_starts:
                pairs[open_starts.pop()] = (token.start(), token.end())
        else:
            open_starts.append(token.start())
    return pairs


def _replace_elements(
    html_content: str,
    open_pattern: re.Pattern[str],
    tag_name: str | None,
    convert: Callable[[re.Match[str], str], str],
) -> str:
    """Replace each outermost element opened by ``open_pattern`` with ``convert(open_match, inner)``.

    With no ``tag_name`` the closing tag is the one named by the opening match.
    Unterminated elements are left in place for later passes.
    """
    pairs_by_tag: dict[str, dict[int, tuple[int, int]]] = {}
    parts: list[str] = []
    pos = 0
    search_from = 0
    while True:
        opening = open_pattern.search(html_content, search_from)
        if opening is None:
            break
        name = tag_name or opening.group(1).lower()
        if name not in pairs_by_tag:
            pairs_by_tag[name] = _match_tags(html_content, name)
        closing = pairs_by_tag[name].get(opening.start())
        if closing is None:
            search_from = opening.end()
            continue
        parts.append(html_content[pos : opening.start()])
        parts.append(convert(opening, html_content[opening.end() : closing[0]]))
        pos = search_from = closing[1]
    parts.append(html_content[pos:])
    return "".join(parts)


def _item_text(content: str) -> tuple[str, bool]:
    """Flatten list item content to Markdown text.

    Nested lists are converted first and kept out of the flattening. An item
    has a nested list when any list appears inside it, quoted or not.

    Returns:
        (text, has_nested_list)
    """
    has_nested_list = _LIST_OPEN.search(content) is not None
    nested: list[str] = []

    def stash(markdown: str) -> str:
        nested.append(markdown)
        return f"__NESTED_LIST_{len(nested) - 1}__"

    # Quotes first: a list inside a quote belongs to the quote
    content = _replace_elements(content, _BLOCKQUOTE_OPEN, "blockquote", _convert_blockquote)
    content = _replace_elements(content, _TASK_LIST_OPEN, "ul", lambda *args: stash(_convert_task_list(*args)))
    content = _replace_lists(content, lambda *args: stash(_convert_generic_list(*args)))

    text = _TABLE_PATTERN.sub(_convert_table, content)
    text = _VIDEO_EMBED_PATTERN.sub(_convert_video_embed, text)
    text = _PARAGRAPH_PATTERN.sub(lambda m: md.paragraph(m.group(1)), text)
    text = _BR_PATTERN.sub("\n", text)
    text = _DIV_CLOSE.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    text = _NESTED_LIST_PLACEHOLDER.sub(lambda m: "\n" + nested[int(m.group(1))], text)
    return text.strip(), has_nested_list


def _replace_lists(html_content: str, convert: Callable[[re.Match[str], str], str]) -> str:
    """Replace every outermost <ul>/<ol> element, matching each by its own tag name."""
    return _replace_elements(html_content, _LIST_OPEN, None, convert)


def _split_items(list_content: str) -> list[str]:
    """Return the contents of the top-level <li> elements of a list."""
    pairs = _match_tags(list_content, "li")
    items: list[str] = []
    search_from = 0
    while True:
        opening = _LI_OPEN.search(list_content, search_from)
        if opening is None:
            break
        closing = pairs.get(opening.start())
        if closing is None:
            # Omitted </li>: the item runs to the end of the list
            items.append(list_content[opening.end() :])
            break
        items.append(list_content[opening.end() : closing[0]])
        search_from = closing[1]
    return items


def _convert_list(list_content: str, ordered: bool) -> str:
    """Convert the inside of a <ul>/<ol> to Markdown list text."""
    lines: list[str] = []
    for ordinal, item in enumerate(_split_items(list_content), start=1):
        text, has_nested_list = _item_text(item)
        lines.append(md.list_item(md.list_prefix(ordinal if ordered else None), text, has_nested_list))
    return "\n" + "".join(lines) + "\n"


def _convert_generic_list(opening: re.Match[str], inner: str) -> str:
    return _convert_list(inner, ordered=opening.group(1).lower() == "ol")


def _convert_task_list(_: re.Match[str], inner: str) -> str:
    return "\n" + _replace_elements(inner, _TASK_ITEM_OPEN, "li", _convert_task_item) + "\n"


# === Passes ===


def _convert_heading(match: re.Match[str]) -> str:
    return md.heading(int(match.group(1)), match.group(2))


def _convert_inline(text: str) -> str:
    for pattern, tag in _INLINE_PATTERNS:
        # Nested same-name elements convert innermost first, one level per round
        while True:
            converted = pattern.sub(lambda m, tag=tag: md.inline(tag, m.group(2)), text)
            if converted == text:
                break
            text = converted
    return text


def _convert_note_link(match: re.Match[str]) -> str:
    attrs = _parse_attributes(match.group(1))
    text = _ANY_TAG.sub("", match.group(2))
    return md.note_link(md.note_link_label(attrs.get(NOTE_ID_ATTR), attrs.get("href"), text))


def _create_link_converter(options: ConverterOptions) -> Callable[[re.Match[str]], str]:
    def convert_link(match: re.Match[str]) -> str:
        attrs = _parse_attributes(match.group(1))
        return md.link(match.group(2).strip(), attrs.get("href"), attrs.get("title"), options.link_style)

    return convert_link


def _convert_figure(match: re.Match[str]) -> str:
    content = match.group(1)
    img = _IMG_PATTERN.search(content)
    if img is None:
        return content
    attrs = _parse_attributes(img.group(1))
    caption_match = _FIGCAPTION_PATTERN.search(content)
    caption = _WHITESPACE_RUN.sub(" ", _ANY_TAG.sub("", caption_match.group(1))) if caption_match else ""
    return md.figure(attrs.get("src"), attrs.get("alt"), caption)


def _convert_image(match: re.Match[str]) -> str:
    attrs = _parse_attributes(match.group(1))
    return md.image(attrs.get("src"), attrs.get("alt"), attrs.get("title"))


def _convert_task_item(opening: re.Match[str], inner: str) -> str:
    checked = md.is_checked(_parse_attributes(opening.group(0)[3:-1]).get(TASK_CHECKED_ATTR))
    text, has_nested_list = _item_text(inner)
    return md.list_item(md.task_prefix(checked), text, has_nested_list)


def _convert_blockquote(_: re.Match[str], inner: str) -> str:
    inner = _replace_elements(inner, _BLOCKQUOTE_OPEN, "blockquote", _convert_blockquote)
    inner = _replace_elements(inner, _TASK_LIST_OPEN, "ul", _convert_task_list)
    inner = _replace_lists(inner, _convert_generic_list)
    inner = _TABLE_PATTERN.sub(_convert_table, inner)
    inner = _VIDEO_EMBED_PATTERN.sub(_convert_video_embed, inner)
    inner = _PARAGRAPH_PATTERN.sub(lambda m: md.paragraph(m.group(1)), inner)
    inner = _BR_PATTERN.sub("\n", inner)
    inner = _DIV_CLOSE.sub("\n", inner)
    inner = _ANY_TAG.sub("", inner)
    return md.blockquote(inner)


def _convert_table(match: re.Match[str]) -> str:
    rows: list[list[str]] = []
    has_header = False
    for index, row in enumerate(_ROW_PATTERN.finditer(match.group(1))):
        cells = list(_CELL_PATTERN.finditer(row.group(1)))
        if index == 0:
            has_header = any(cell.group(1).lower() == "th" for cell in cells)
        rows.append([_ANY_TAG.sub("", cell.group(2)).strip() for cell in cells])
    return md.table(rows, has_header)


def _convert_video_embed(match: re.Match[str]) -> str:
    iframe = _IFRAME_PATTERN.search(match.group(2))
    src = _parse_attributes(iframe.group(1)).get("src") if iframe else None
    return md.video_embed(md.extract_video_id(src))


def _prefix_code_block(block: str, prefix: str) -> str | None:
    """Repeat a line prefix over every line of a code block.

    The prefix is read back into the segments that produced it, and each is
    applied innermost first the way list items and quotes render their lines.
    Returns None when the prefix is not made of list and quote segments.
    """
    segments = _LINE_PREFIX_SEGMENT.findall(prefix)
    if "".join(segments) != prefix:
        return None
    lines = block.split("\n")
    for segment in reversed(segments):
        if segment == "> ":
            lines = [f"> {line}" for line in lines]
            continue
        head = [segment + lines[0]] if segment != md.CONTINUATION_INDENT else []
        tail = lines[1:] if head else lines
        lines = head + [f"{md.CONTINUATION_INDENT}{line}" if line.strip() else "" for line in tail]
    return "\n".join(lines)


def _restore_code_blocks(text: str, code_blocks: list[str]) -> str:
    def restore_line(match: re.Match[str]) -> str:
        index = int(match.group(2))
        if index >= len(code_blocks):
            return match.group(0)
        prefix = match.group(1)
        if prefix:
            prefixed = _prefix_code_block(code_blocks[index].rstrip("\n"), prefix)
            if prefixed is not None:
                return prefixed
        return f"{prefix}\n\n{code_blocks[index]}\n\n"

    def restore(match: re.Match[str]) -> str:
        index = int(match.group(1))
        return f"\n\n{code_blocks[index]}\n\n" if index < len(code_blocks) else match.group(0)

    text = _CODE_PLACEHOLDER_LINE.sub(restore_line, text)
    return _CODE_PLACEHOLDER.sub(restore, text)


def _convert(html_content: str, options: ConverterOptions) -> str:
    # Use local storage for code blocks (thread-safe)
    code_blocks: list[str] = []
    extract_code_block = _create_code_block_extractor(code_blocks)

    # 1. Code blocks (placeholders protect their content from later passes)
    result = _CODE_BLOCK_PATTERN.sub(extract_code_block, html_content)
    result = _PRE_ONLY_PATTERN.sub(extract_code_block, result)

    # Source formatting whitespace is insignificant outside code
    result = _WHITESPACE_RUN.sub(" ", result)
    result = _BLOCK_TAG_WHITESPACE.sub(r"\1", result)
    result = _CODE_PLACEHOLDER_SPACING.sub(r"\n\n\1\n\n", result)

    # 2. Headings
    result = _HEADING_PATTERN.sub(_convert_heading, result)

    # 3. Inline emphasis, inline code, highlight
    result = _convert_inline(result)

    # 4. Wiki links before generic links, then figures and images
    result = _NOTE_LINK_PATTERN.sub(_convert_note_link, result)
    result = _LINK_PATTERN.sub(_create_link_converter(options), result)
    result = _FIGURE_PATTERN.sub(_convert_figure, result)
    result = _IMG_PATTERN.sub(_convert_image, result)

    # 5. Task items, then drop the task list wrapper
    result = _replace_elements(result, _TASK_ITEM_OPEN, "li", _convert_task_item)
    result = _replace_elements(result, _TASK_LIST_OPEN, "ul", lambda _, inner: f"\n{inner}\n")

    # 6. Generic lists and any unmatched list tags
    result = _replace_lists(result, _convert_generic_list)
    result = _STRAY_LIST_TAG.sub("\n", result)

    # 7. Blockquotes and horizontal rules
    result = _replace_elements(result, _BLOCKQUOTE_OPEN, "blockquote", _convert_blockquote)
    result = _HR_PATTERN.sub(md.horizontal_rule(), result)

    # 8. Paragraphs and line breaks
    result = _PARAGRAPH_PATTERN.sub(lambda m: md.paragraph(m.group(1)), result)
    result = _BR_PATTERN.sub(md.line_break(options.preserve_line_breaks), result)

    # 9. Tables
    result = _TABLE_PATTERN.sub(_convert_table, result)

    # 10. Video embeds
    result = _VIDEO_EMBED_PATTERN.sub(_convert_video_embed, result)

    # 11. Container tags keep their content; everything else is stripped
    result = _DIV_OPEN.sub("", result)
    result = _DIV_CLOSE.sub("\n", result)
    result = _SPAN_TAG.sub("", result)
    result = _ANY_TAG.sub("", result)

    # 12. Entities, code blocks back in under their list and quote prefixes, whitespace
    result = decode_entities(result)
    result = _restore_code_blocks(result, code_blocks)
    return collapse_blank_lines(result)


def html_to_markdown(html_content: str, options: ConverterOptions | None = None) -> str:
    """Convert editor HTML to Markdown without a DOM.

    Never raises: on failure the tag-stripped text is returned.

    Args:
        html_content: HTML string from the editor
        options: Line-break and link-style configuration

    Returns:
        Markdown formatted text, empty for empty or non-string input
    """
    if not isinstance(html_content, str) or not html_content.strip():
        return ""

    try:
        return _convert(html_content, options or _DEFAULT_OPTIONS)
    except Exception:
        logger.warning("Pattern conversion failed; returning stripped text", exc_info=True)
        return collapse_blank_lines(decode_entities(_ANY_TAG.sub("", html_content)))
