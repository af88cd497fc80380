"""Structured (tree-walking) HTML to Markdown converter.

Usage:
    converter = StructuredConverter()
    markdown = converter.convert(html_string)

To add custom converters:
    converter.register_converter("custom-tag", lambda ctx: f"Custom: {ctx.convert_children()}")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from bs4 import FeatureNotFound

from unfold_notes.models import ConverterOptions
from unfold_notes.utils import markdown_format as md
from unfold_notes.utils.dialect import DIALECT, HEADING_TAGS, NOTE_ID_ATTR, TASK_CHECKED_ATTR
from unfold_notes.utils.html_to_markdown import html_to_markdown as pattern_html_to_markdown
from unfold_notes.utils.html_tree import DEFAULT_TREE_BUILDER, HtmlDocument, parse_html
from unfold_notes.utils.normalize import collapse_blank_lines, normalize_inline_whitespace
from unfold_notes.utils.registry import ConverterContext, ConverterRegistry, ElementConverter

logger = logging.getLogger(__name__)

LIST_TAGS = ("ul", "ol")
PASS_THROUGH_TAGS = ("thead", "tbody", "tfoot", "tr", "th", "td", "div", "span")


class StructuredConverter:
    """HTML to Markdown by recursive descent over a parsed document.

    The registry is built once per instance: dialect defaults first, then the
    caller's converters, last write wins.

    Attributes:
        options: Line-break and link-style configuration
        tree_builder: BeautifulSoup tree builder used for parsing
    """

    def __init__(
        self,
        options: ConverterOptions | None = None,
        converters: Mapping[str, ElementConverter] | None = None,
        tree_builder: str = DEFAULT_TREE_BUILDER,
    ) -> None:
        self.options = options or ConverterOptions()
        self.tree_builder = tree_builder
        self._registry = ConverterRegistry()
        self._converting = False
        self._register_defaults()
        if converters:
            self._registry.register_bulk(converters)

    @property
    def registry(self) -> ConverterRegistry:
        return self._registry

    def register_converter(self, key: str, handler: ElementConverter) -> None:
        """Register or override the handler for a selector.

        Raises:
            RuntimeError: If called from inside a running conversion
        """
        if self._converting:
            raise RuntimeError("Converters cannot be registered during a conversion")
        self._registry.register(key, handler)

    def register_converters(self, handlers: Mapping[str, ElementConverter]) -> None:
        for key, handler in handlers.items():
            self.register_converter(key, handler)

    def convert(self, html: str) -> str:
        """Convert editor HTML to Markdown.

        Falls back to the pattern-based converter when the document cannot be
        parsed or walked. Never raises.

        Args:
            html: HTML string

        Returns:
            Markdown text, empty for empty or non-string input
        """
        if not isinstance(html, str) or not html.strip():
            return ""

        try:
            document = parse_html(html, self.tree_builder)
        except FeatureNotFound:
            logger.warning("Tree builder %r is not installed; using pattern converter", self.tree_builder)
            return pattern_html_to_markdown(html, self.options)

        self._converting = True
        try:
            markdown = self._convert_children(document, HtmlDocument.ROOT)
        except RecursionError:
            logger.warning("Document nests too deeply for the tree walk; using pattern converter")
            return pattern_html_to_markdown(html, self.options)
        except Exception:
            logger.warning("Structured conversion failed; using pattern converter", exc_info=True)
            return pattern_html_to_markdown(html, self.options)
        finally:
            self._converting = False

        return collapse_blank_lines(markdown)

    # === Tree walk ===

    def _convert_node(self, document: HtmlDocument, node_id: int) -> str:
        if document.is_text(node_id):
            return normalize_inline_whitespace(document.node(node_id).text)
        if not document.is_element(node_id):
            return ""

        handler = self._registry.resolve(document, node_id)
        if handler is None:
            # Unknown tags are transparent
            return self._convert_children(document, node_id)

        ctx = ConverterContext(
            convert_children=lambda: self._convert_children(document, node_id),
            convert_node=lambda child: self._convert_node(document, child),
            get_attribute=lambda name: document.get_attribute(node_id, name),
            element=node_id,
            document=document,
        )
        return handler(ctx)

    def _convert_children(self, document: HtmlDocument, node_id: int) -> str:
        result = ""
        for child in document.children(node_id):
            converted = self._convert_node(document, child)
            # Whitespace between block elements, or after a line break, carries no meaning
            if document.is_text(child) and (not result or result.endswith("\n")):
                if not converted.strip():
                    continue
                if result:
                    converted = converted.lstrip(" ")
            result += converted
        return result

    # === Default converters ===

    def _register_defaults(self) -> None:
        handlers: dict[str, ElementConverter] = {
            "heading": self._heading,
            "bold": self._inline,
            "italic": self._inline,
            "strike": self._inline,
            "underline": self._inline,
            "inline_code": self._inline,
            "highlight": self._inline,
            "paragraph": lambda ctx: md.paragraph(ctx.convert_children()),
            "line_break": lambda ctx: md.line_break(self.options.preserve_line_breaks),
            "rule": lambda ctx: md.horizontal_rule(),
            "link": self._link,
            "image": self._image,
            "list": self._list,
            "list_item": self._list_item,
            "task_list": self._list,
            "task_item": self._task_item,
            "blockquote": lambda ctx: md.blockquote(ctx.convert_children()),
            "code_block": self._code_block,
            "table": self._table,
            "wiki_link": self._note_link,
            "video_embed": self._video_embed,
            "figure": self._figure,
        }
        for entry in DIALECT:
            for selector in entry.selectors:
                self._registry.register(selector, handlers[entry.construct])

        for tag in PASS_THROUGH_TAGS:
            self._registry.register(tag, lambda ctx: ctx.convert_children())

    def _heading(self, ctx: ConverterContext) -> str:
        return md.heading(HEADING_TAGS.index(ctx.tag) + 1, ctx.convert_children())

    def _inline(self, ctx: ConverterContext) -> str:
        return md.inline(ctx.tag, ctx.convert_children())

    def _link(self, ctx: ConverterContext) -> str:
        return md.link(
            ctx.convert_children().strip(),
            ctx.get_attribute("href"),
            ctx.get_attribute("title"),
            self.options.link_style,
        )

    def _note_link(self, ctx: ConverterContext) -> str:
        label = md.note_link_label(
            ctx.get_attribute(NOTE_ID_ATTR),
            ctx.get_attribute("href"),
            ctx.convert_children(),
        )
        return md.note_link(label)

    def _image(self, ctx: ConverterContext) -> str:
        return md.image(ctx.get_attribute("src"), ctx.get_attribute("alt"), ctx.get_attribute("title"))

    def _list(self, ctx: ConverterContext) -> str:
        items = "".join(ctx.convert_node(child) for child in ctx.document.element_children(ctx.element))
        # A nested list must start on its own line inside the parent item
        return f"\n{items}\n"

    def _item_content(self, ctx: ConverterContext) -> tuple[str, bool]:
        has_nested_list = ctx.document.find_first(ctx.element, LIST_TAGS) is not None
        return ctx.convert_children(), has_nested_list

    def _list_item(self, ctx: ConverterContext) -> str:
        document = ctx.document
        parent = document.parent(ctx.element)
        ordinal = None
        if parent is not None and document.tag(parent) == "ol":
            ordinal = document.element_children(parent).index(ctx.element) + 1

        content, has_nested_list = self._item_content(ctx)
        return md.list_item(md.list_prefix(ordinal), content, has_nested_list)

    def _task_item(self, ctx: ConverterContext) -> str:
        checked = md.is_checked(ctx.get_attribute(TASK_CHECKED_ATTR))
        content, has_nested_list = self._item_content(ctx)
        return md.list_item(md.task_prefix(checked), content, has_nested_list)

    def _code_block(self, ctx: ConverterContext) -> str:
        document = ctx.document
        code = document.find_first(ctx.element, ("code",))
        language = md.extract_language(document.get_attribute(code, "class")) if code is not None else ""
        text = document.text_content(code if code is not None else ctx.element)
        return md.code_block(text, language)

    def _table(self, ctx: ConverterContext) -> str:
        document = ctx.document
        rows: list[list[str]] = []
        has_header = False
        for index, row in enumerate(document.find_all(ctx.element, ("tr",))):
            cells = [cell for cell in document.element_children(row) if document.tag(cell) in ("th", "td")]
            if index == 0:
                has_header = any(document.tag(cell) == "th" for cell in cells)
            rows.append([self._convert_children(document, cell).strip() for cell in cells])
        return md.table(rows, has_header)

    def _video_embed(self, ctx: ConverterContext) -> str:
        iframe = ctx.document.find_first(ctx.element, ("iframe",))
        src = ctx.document.get_attribute(iframe, "src") if iframe is not None else None
        return md.video_embed(md.extract_video_id(src))

    def _figure(self, ctx: ConverterContext) -> str:
        document = ctx.document
        img = document.find_first(ctx.element, ("img",))
        if img is None:
            return ctx.convert_children()
        caption = document.find_first(ctx.element, ("figcaption",))
        caption_text = normalize_inline_whitespace(document.text_content(caption)) if caption is not None else ""
        return md.figure(document.get_attribute(img, "src"), document.get_attribute(img, "alt"), caption_text)


def simple_structured_converter() -> StructuredConverter:
    """Pre-configured converter: preserved line breaks, inline links."""
    return StructuredConverter(ConverterOptions(preserve_line_breaks=True, link_style="inline"))
