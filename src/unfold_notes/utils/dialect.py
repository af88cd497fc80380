"""Editor HTML dialect definition.

The single mapping table between the editor's HTML elements and Markdown
constructs. Both HTML to Markdown converters and the Markdown to HTML
generator read their markers from here, and the cross-implementation tests
classify converter output against it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

# Inline markers keyed by tag: (opening, closing)
EMPHASIS_MARKERS: dict[str, tuple[str, str]] = {
    "strong": ("**", "**"),
    "b": ("**", "**"),
    "em": ("*", "*"),
    "i": ("*", "*"),
    "s": ("~~", "~~"),
    "strike": ("~~", "~~"),
    "del": ("~~", "~~"),
    "u": ("_", "_"),
    "code": ("`", "`"),
    "mark": ("==", "=="),
}

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Task lists (TipTap taskList/taskItem nodes)
TASK_LIST_TYPE = "taskList"
TASK_ITEM_TYPE = "taskItem"
TASK_ITEM_MARKER = f'data-type="{TASK_ITEM_TYPE}"'
TASK_CHECKED_ATTR = "data-checked"

# Wiki-style note links
NOTE_LINK_ATTR = "data-note-link"
NOTE_ID_ATTR = "data-note-id"
NOTE_HREF_PREFIX = "#note:"

# YouTube embeds
YOUTUBE_ATTR = "data-youtube-video"
YOUTUBE_LABEL = "YouTube Video"
YOUTUBE_WATCH_URL = "https://youtube.com/watch?v={video_id}"
YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/{video_id}"
YOUTUBE_EMBED_ID_PATTERN = re.compile(r"embed/([^?\"'/&#\s]+)")

# Code blocks
FENCE = "```"
LANGUAGE_CLASS_PATTERN = re.compile(r"language-(\w+)")

HORIZONTAL_RULE = "\n---\n\n"
TABLE_SEPARATOR_CELL = "---"


@dataclass(frozen=True)
class DialectEntry:
    """One supported construct of the editor dialect.

    Attributes:
        construct: Construct name used for classification
        selectors: Registry keys that select the HTML shape
        markdown_template: Markdown shape, ``{text}``-style placeholders
        required_attributes: Attributes the HTML shape must carry
        optional_attributes: Attributes read when present
        edge_case_policy: What happens when attributes are missing
    """

    construct: str
    selectors: tuple[str, ...]
    markdown_template: str
    required_attributes: tuple[str, ...] = ()
    optional_attributes: tuple[str, ...] = ()
    edge_case_policy: str = ""


DIALECT: tuple[DialectEntry, ...] = (
    DialectEntry("heading", HEADING_TAGS, "{hashes} {text}\n\n"),
    DialectEntry(
        "bold",
        ("strong", "b"),
        "**{text}**",
        edge_case_policy="nested pairs compose by string concatenation",
    ),
    DialectEntry(
        "italic",
        ("em", "i"),
        "*{text}*",
        edge_case_policy="nested pairs compose by string concatenation",
    ),
    DialectEntry("strike", ("s", "strike", "del"), "~~{text}~~"),
    DialectEntry("underline", ("u",), "_{text}_"),
    DialectEntry("inline_code", ("code",), "`{text}`"),
    DialectEntry("highlight", ("mark",), "=={text}=="),
    DialectEntry("paragraph", ("p",), "{text}\n\n"),
    DialectEntry(
        "line_break",
        ("br",),
        "\n",
        edge_case_policy="emits a space when line-break preservation is disabled",
    ),
    DialectEntry("rule", ("hr",), HORIZONTAL_RULE),
    DialectEntry(
        "link",
        ("a",),
        '[{text}]({href} "{title}")',
        required_attributes=("href",),
        optional_attributes=("title",),
        edge_case_policy="empty href emits the text only; reference style emits [text][href]",
    ),
    DialectEntry(
        "image",
        ("img",),
        '![{alt}]({src} "{title}")',
        required_attributes=("src",),
        optional_attributes=("alt", "title"),
        edge_case_policy="missing alt/title omitted, not empty-quoted",
    ),
    DialectEntry("list", ("ul", "ol"), "{items}\n"),
    DialectEntry(
        "list_item",
        ("li",),
        "- {text}\n",
        edge_case_policy="nested list continuation lines indented 2 spaces; ordinal = sibling index + 1",
    ),
    DialectEntry(
        "task_list",
        (f'ul[data-type="{TASK_LIST_TYPE}"]',),
        "{items}\n",
        required_attributes=("data-type",),
    ),
    DialectEntry(
        "task_item",
        (f'li[data-type="{TASK_ITEM_TYPE}"]',),
        "- [{mark}] {text}\n",
        required_attributes=("data-type", TASK_CHECKED_ATTR),
        edge_case_policy='checked state is the string "true"/"false"',
    ),
    DialectEntry(
        "blockquote",
        ("blockquote",),
        "> {line}\n\n",
        edge_case_policy="multi-line content split then re-joined",
    ),
    DialectEntry(
        "code_block",
        ("pre",),
        "```{language}\n{code}\n```\n\n",
        optional_attributes=("class",),
        edge_case_policy="language from language-(\\w+); absent gives an empty fence tag",
    ),
    DialectEntry(
        "table",
        ("table",),
        "| {cells} |\n",
        edge_case_policy="separator row only after row 0 when it holds a <th>",
    ),
    DialectEntry(
        "wiki_link",
        (f"a[{NOTE_LINK_ATTR}]",),
        "[[{label}]]",
        required_attributes=(NOTE_LINK_ATTR,),
        optional_attributes=(NOTE_ID_ATTR, "href"),
        edge_case_policy="data-note-id preferred over the #note: href suffix",
    ),
    DialectEntry(
        "video_embed",
        (f"div[{YOUTUBE_ATTR}]",),
        f"\n[{YOUTUBE_LABEL}](https://youtube.com/watch?v={{video_id}})\n\n",
        required_attributes=(YOUTUBE_ATTR,),
        edge_case_policy="missing video id gives empty output",
    ),
    DialectEntry(
        "figure",
        ("figure",),
        "![{alt}]({src})\n\n",
        edge_case_policy="caption used as alt fallback only",
    ),
)

_ENTRIES_BY_CONSTRUCT = {entry.construct: entry for entry in DIALECT}


def get_entry(construct: str) -> DialectEntry:
    """Return the dialect entry for a construct name.

    Raises:
        KeyError: If the construct is not part of the dialect
    """
    return _ENTRIES_BY_CONSTRUCT[construct]


def classify_element(tag: str, attrs: Mapping[str, object] | None = None) -> str | None:
    """Classify an HTML element under its dialect construct.

    Attribute-qualified shapes (task items, wiki links, embeds) win over the
    plain tag they refine.

    Args:
        tag: Element tag name (any case)
        attrs: Element attributes

    Returns:
        Construct name, or None for tags outside the dialect
    """
    tag = tag.lower()
    attrs = attrs or {}

    if tag == "a" and NOTE_LINK_ATTR in attrs:
        return "wiki_link"
    if tag == "li" and attrs.get("data-type") == TASK_ITEM_TYPE:
        return "task_item"
    if tag == "ul" and attrs.get("data-type") == TASK_LIST_TYPE:
        return "task_list"
    if tag == "div" and YOUTUBE_ATTR in attrs:
        return "video_embed"

    for entry in DIALECT:
        if tag in entry.selectors:
            return entry.construct
    return None
