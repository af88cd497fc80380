"""Whitespace and HTML entity normalization shared by all converters."""

import re

_WHITESPACE_RUN = re.compile(r"\s+")
_BLANK_LINES = re.compile(r"\n{3,}")
_TRAILING_SPACES = re.compile(r"[ \t]+$", re.MULTILINE)
# Runs after a non-space character only, so list indentation survives
_INNER_SPACE_RUN = re.compile(r"(?<=\S)[ \t]+")
# Fenced code blocks are left exactly as written, including fences nested in
# list items ("  ```" or "- ```" opening, indented closing) and blockquotes ("> ```")
_FENCED_BLOCK = re.compile(
    r"^(?P<prefix>[ \t>]*)(?P<marker>(?:[-*+]|\d+\.)(?: \[[ xX]\])? )?```[^\n]*\n"
    r".*?^(?P=prefix)(?(marker)  )```[ \t]*$",
    re.MULTILINE | re.DOTALL,
)

_ENTITY_PATTERN = re.compile(r"&(?:(amp|lt|gt|quot|#39|nbsp)|#(\d{1,7})|#[xX]([0-9a-fA-F]{1,6}));")
_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
    "nbsp": " ",
}

_MARKDOWN_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "*": "\\*",
        "_": "\\_",
        "[": "\\[",
        "]": "\\]",
        "<": "&lt;",
        ">": "&gt;",
    }
)


def normalize_inline_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to a single space.

    Applied to text nodes only, never to code block content.
    """
    return _WHITESPACE_RUN.sub(" ", text)


def _collapse_segment(segment: str) -> str:
    segment = _TRAILING_SPACES.sub("", segment)
    segment = _INNER_SPACE_RUN.sub(" ", segment)
    return _BLANK_LINES.sub("\n\n", segment)


def collapse_blank_lines(text: str) -> str:
    """Cap blank lines at one, collapse space runs, and trim.

    Leading indentation and fenced code blocks are preserved. The function is
    idempotent.
    """
    parts: list[str] = []
    pos = 0
    for match in _FENCED_BLOCK.finditer(text):
        parts.append(_collapse_segment(text[pos : match.start()]))
        parts.append(match.group(0))
        pos = match.end()
    parts.append(_collapse_segment(text[pos:]))
    return "".join(parts).strip()


def _decode_entity(match: re.Match[str]) -> str:
    named, decimal, hexadecimal = match.groups()
    if named:
        return _NAMED_ENTITIES[named]
    code_point = int(decimal) if decimal else int(hexadecimal, 16)
    if code_point == 0 or code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
        return match.group(0)
    return chr(code_point)


def decode_entities(text: str) -> str:
    """Decode the standard named entities and numeric character references.

    Decoding is a single pass, so ``&amp;lt;`` becomes ``&lt;``.
    """
    if "&" not in text:
        return text
    return _ENTITY_PATTERN.sub(_decode_entity, text)


def encode_for_markdown(text: str) -> str:
    """Escape Markdown metacharacters and re-encode angle brackets.

    Not applied by the conversion pipelines; callers opt in.
    """
    return text.translate(_MARKDOWN_ESCAPES)
