"""Parsed HTML document as an arena of nodes.

BeautifulSoup does the HTML parsing; its tree is copied into a flat list of
nodes linked by integer ids, which the structured converter walks.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator
from dataclasses import dataclass, field
from enum import Enum

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

DEFAULT_TREE_BUILDER = "html.parser"


class NodeKind(str, Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"


@dataclass
class HtmlNode:
    """One node of the arena.

    Attributes:
        id: Index of the node in ``HtmlDocument.nodes``
        kind: Document root, element, or text
        tag: Lower-cased tag name (elements only)
        attrs: Attribute values; multi-valued attributes are space-joined
        text: Character data (text nodes only)
        parent: Parent node id, None for the root
        children: Child node ids in document order
    """

    id: int
    kind: NodeKind
    tag: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""
    parent: int | None = None
    children: list[int] = field(default_factory=list)


class HtmlDocument:
    """Flat node arena with index-based parent/child links."""

    ROOT = 0

    def __init__(self) -> None:
        self.nodes: list[HtmlNode] = [HtmlNode(id=self.ROOT, kind=NodeKind.DOCUMENT)]

    def add_node(
        self,
        parent: int,
        kind: NodeKind,
        tag: str = "",
        attrs: dict[str, str] | None = None,
        text: str = "",
    ) -> int:
        node_id = len(self.nodes)
        self.nodes.append(
            HtmlNode(id=node_id, kind=kind, tag=tag, attrs=attrs or {}, text=text, parent=parent)
        )
        self.nodes[parent].children.append(node_id)
        return node_id

    def node(self, node_id: int) -> HtmlNode:
        return self.nodes[node_id]

    def is_element(self, node_id: int) -> bool:
        return self.nodes[node_id].kind is NodeKind.ELEMENT

    def is_text(self, node_id: int) -> bool:
        return self.nodes[node_id].kind is NodeKind.TEXT

    def tag(self, node_id: int) -> str:
        return self.nodes[node_id].tag

    def parent(self, node_id: int) -> int | None:
        return self.nodes[node_id].parent

    def children(self, node_id: int) -> list[int]:
        return self.nodes[node_id].children

    def element_children(self, node_id: int) -> list[int]:
        return [child for child in self.nodes[node_id].children if self.is_element(child)]

    def get_attribute(self, node_id: int, name: str) -> str | None:
        return self.nodes[node_id].attrs.get(name.lower())

    def iter_descendants(self, node_id: int) -> Iterator[int]:
        """Yield descendants in document order (pre-order), iteratively."""
        stack = list(reversed(self.nodes[node_id].children))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def find_first(self, node_id: int, tags: Collection[str]) -> int | None:
        """Return the first descendant element whose tag is in ``tags``."""
        for descendant in self.iter_descendants(node_id):
            if self.is_element(descendant) and self.nodes[descendant].tag in tags:
                return descendant
        return None

    def find_all(self, node_id: int, tags: Collection[str]) -> list[int]:
        return [
            descendant
            for descendant in self.iter_descendants(node_id)
            if self.is_element(descendant) and self.nodes[descendant].tag in tags
        ]

    def text_content(self, node_id: int) -> str:
        """Concatenated character data of the node and its descendants."""
        node = self.nodes[node_id]
        if node.kind is NodeKind.TEXT:
            return node.text
        return "".join(self.nodes[d].text for d in self.iter_descendants(node_id) if self.is_text(d))


def _attribute_value(value: str | list[str] | None) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def parse_html(html: str, tree_builder: str = DEFAULT_TREE_BUILDER) -> HtmlDocument:
    """Parse HTML into an arena document.

    When the tree builder wraps the fragment in ``<html><body>``, the body's
    children become the root's children.

    Args:
        html: HTML string
        tree_builder: BeautifulSoup tree builder name

    Returns:
        HtmlDocument whose root holds the body content

    Raises:
        bs4.FeatureNotFound: If the tree builder is not installed
    """
    soup = BeautifulSoup(html, tree_builder)
    source_root: Tag = soup.body if soup.body is not None else soup

    document = HtmlDocument()
    stack: list[tuple[Tag, int]] = [(source_root, HtmlDocument.ROOT)]
    while stack:
        source, parent_id = stack.pop()
        pending: list[tuple[Tag, int]] = []
        for child in source.children:
            if isinstance(child, Tag):
                attrs = {str(name).lower(): _attribute_value(value) for name, value in child.attrs.items()}
                child_id = document.add_node(parent_id, NodeKind.ELEMENT, tag=child.name.lower(), attrs=attrs)
                pending.append((child, child_id))
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                document.add_node(parent_id, NodeKind.TEXT, text=str(child))
        # Children are appended in order above; descend into them afterwards
        stack.extend(reversed(pending))
    return document
