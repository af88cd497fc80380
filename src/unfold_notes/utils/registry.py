"""Per-tag converter registry for the structured HTML to Markdown converter.

Registry keys are selectors: a bare tag name (``li``) or a tag refined by
an attribute predicate (``li[data-type="taskItem"]``, ``a[data-note-link]``).
Attribute predicates are evaluated at resolution time, so a refined
selector wins over the bare tag whenever the element carries the attribute.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from unfold_notes.utils.html_tree import HtmlDocument

# tag, optional [attr] or [attr=value] with the value quoted or bare
_SELECTOR_PATTERN = re.compile(
    r"""^\s*([a-zA-Z][\w-]*)\s*
    (?:\[\s*([\w:.-]+)\s*
        (?:=\s*(?:"([^"]*)"|'([^']*)'|([^\]\s"']+)))?
    \s*\])?\s*$""",
    re.VERBOSE,
)


@dataclass(frozen=True)
class ByTag:
    """Select elements by tag name."""

    name: str

    def matches(self, document: HtmlDocument, node_id: int) -> bool:
        return document.tag(node_id) == self.name


@dataclass(frozen=True)
class ByTagAndAttribute:
    """Select elements by tag name and attribute presence or value.

    Attributes:
        name: Tag name
        attribute: Attribute that must be present
        value: Required attribute value, None for presence only
    """

    name: str
    attribute: str
    value: str | None = None

    def matches(self, document: HtmlDocument, node_id: int) -> bool:
        if document.tag(node_id) != self.name:
            return False
        actual = document.get_attribute(node_id, self.attribute)
        if actual is None:
            return False
        return self.value is None or actual == self.value


Selector = ByTag | ByTagAndAttribute


def parse_selector(key: str) -> Selector:
    """Parse a registry key into a selector.

    Args:
        key: ``tag``, ``tag[attr]`` or ``tag[attr="value"]``

    Returns:
        ByTag or ByTagAndAttribute

    Raises:
        ValueError: If the key is not a supported selector
    """
    match = _SELECTOR_PATTERN.match(key)
    if not match:
        raise ValueError(f"Unsupported converter selector: {key!r}")

    tag, attribute, double_quoted, single_quoted, bare = match.groups()
    tag = tag.lower()
    if attribute is None:
        return ByTag(tag)

    value = next((v for v in (double_quoted, single_quoted, bare) if v is not None), None)
    return ByTagAndAttribute(tag, attribute.lower(), value)


@dataclass(frozen=True)
class ConverterContext:
    """What a converter handler receives for one element.

    Attributes:
        convert_children: Convert all children of the element and concatenate
        convert_node: Convert an arbitrary node by id
        get_attribute: Attribute lookup on the element
        element: Node id of the element being converted
        document: Arena the element belongs to
    """

    convert_children: Callable[[], str]
    convert_node: Callable[[int], str]
    get_attribute: Callable[[str], str | None]
    element: int
    document: HtmlDocument

    @property
    def tag(self) -> str:
        return self.document.tag(self.element)


ElementConverter = Callable[[ConverterContext], str]


class ConverterRegistry:
    """Selector-keyed handler registry.

    Registering a selector that already exists replaces its handler. Among
    attribute selectors for the same tag, the most recently registered one
    that matches wins; the bare tag handler is the fallback.
    """

    def __init__(self) -> None:
        self._by_tag: dict[str, dict[Selector, ElementConverter]] = {}

    def register(self, key: str | Selector, handler: ElementConverter) -> None:
        selector = parse_selector(key) if isinstance(key, str) else key
        bucket = self._by_tag.setdefault(selector.name, {})
        # Re-inserting moves the selector to the end, so it is tried first
        bucket.pop(selector, None)
        bucket[selector] = handler

    def register_bulk(self, handlers: Mapping[str, ElementConverter]) -> None:
        for key, handler in handlers.items():
            self.register(key, handler)

    def resolve(self, document: HtmlDocument, node_id: int) -> ElementConverter | None:
        """Return the handler for an element, or None when no selector matches."""
        bucket = self._by_tag.get(document.tag(node_id))
        if not bucket:
            return None
        for selector, handler in reversed(bucket.items()):
            if isinstance(selector, ByTagAndAttribute) and selector.matches(document, node_id):
                return handler
        return bucket.get(ByTag(document.tag(node_id)))

    def selectors(self) -> list[Selector]:
        return [selector for bucket in self._by_tag.values() for selector in bucket]

    def __contains__(self, key: str | Selector) -> bool:
        selector = parse_selector(key) if isinstance(key, str) else key
        return selector in self._by_tag.get(selector.name, {})

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._by_tag.values())
