"""markdown-it rule for ``==highlight==`` spans.

Follows the delimiter handling of markdown-it's own strikethrough rule:
``==`` runs are pushed as text tokens with delimiters during tokenizing and
matched pairs are turned into ``<mark>`` tokens once the inline pass has
balanced them.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline
from markdown_it.rules_inline.state_inline import Delimiter

MARKER = "="
_MARKER_CODE = ord(MARKER)


def tokenize(state: StateInline, silent: bool) -> bool:
    """Push a text token and a delimiter for every ``==`` in a marker run."""
    if silent or state.src[state.pos] != MARKER:
        return False

    scanned = state.scanDelims(state.pos, True)
    length = scanned.length
    if length < 2:
        return False

    if length % 2:
        token = state.push("text", "", 0)
        token.content = MARKER
        length -= 1

    for _ in range(0, length, 2):
        token = state.push("text", "", 0)
        token.content = MARKER * 2
        state.delimiters.append(
            Delimiter(
                marker=_MARKER_CODE,
                length=0,
                token=len(state.tokens) - 1,
                end=-1,
                open=scanned.can_open,
                close=scanned.can_close,
            )
        )

    state.pos += scanned.length
    return True


def _convert_pairs(state: StateInline, delimiters: list[Delimiter]) -> None:
    lone_markers: list[int] = []

    for delimiter in delimiters:
        if delimiter.marker != _MARKER_CODE or delimiter.end == -1:
            continue
        closer = delimiters[delimiter.end]

        token = state.tokens[delimiter.token]
        token.type = "mark_open"
        token.tag = "mark"
        token.nesting = 1
        token.markup = MARKER * 2
        token.content = ""

        token = state.tokens[closer.token]
        token.type = "mark_close"
        token.tag = "mark"
        token.nesting = -1
        token.markup = MARKER * 2
        token.content = ""

        before_close = state.tokens[closer.token - 1]
        if before_close.type == "text" and before_close.content == MARKER:
            lone_markers.append(closer.token - 1)

    # An odd marker left before a closer belongs after it: "===a==" is "=<mark>a</mark>"
    while lone_markers:
        i = lone_markers.pop()
        j = i + 1
        while j < len(state.tokens) and state.tokens[j].type == "mark_close":
            j += 1
        j -= 1
        if i != j:
            state.tokens[i], state.tokens[j] = state.tokens[j], state.tokens[i]


def post_process(state: StateInline) -> None:
    """Turn balanced ``==`` delimiter pairs into mark tokens."""
    _convert_pairs(state, state.delimiters)
    for meta in state.tokens_meta:
        if meta and "delimiters" in meta:
            _convert_pairs(state, meta["delimiters"])


def highlight_plugin(md: MarkdownIt) -> None:
    """Register the highlight rule ahead of emphasis.

    Example:
        >>> MarkdownIt().use(highlight_plugin).render("==hi==")
        '<p><mark>hi</mark></p>\\n'
    """
    md.inline.ruler.before("emphasis", "mark", tokenize)
    md.inline.ruler2.before("emphasis", "mark", post_process)
