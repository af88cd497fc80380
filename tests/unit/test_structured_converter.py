"""Unit tests for the structured (tree-walking) HTML to Markdown converter."""

from __future__ import annotations

import logging

import pytest

from unfold_notes.models import ConverterOptions, LinkStyle
from unfold_notes.utils.registry import ConverterContext
from unfold_notes.utils.structured_converter import StructuredConverter, simple_structured_converter


@pytest.fixture
def converter() -> StructuredConverter:
    """A converter with default options."""
    return StructuredConverter()


class TestStructuredConversion:
    """Tests for StructuredConverter.convert on the editor dialect."""

    def test_heading_and_paragraph(self, converter: StructuredConverter) -> None:
        """Headings and paragraphs keep their inline emphasis."""
        html = "<h2>Hello <strong>World</strong></h2><p>Some <em>text</em>.</p>"
        assert converter.convert(html) == "## Hello **World**\n\nSome *text*."

    def test_nested_list_indentation(self, converter: StructuredConverter) -> None:
        """Nested list items are indented two spaces under their parent."""
        html = "<ul><li>A</li><li>B<ul><li>B1</li></ul></li></ul>"
        assert converter.convert(html) == "- A\n- B\n  - B1"

    def test_task_item_checked(self, converter: StructuredConverter) -> None:
        """Checked task items render [x]."""
        html = '<ul data-type="taskList"><li data-type="taskItem" data-checked="true">Done</li></ul>'
        assert converter.convert(html) == "- [x] Done"

    def test_task_item_editor_markup(self, converter: StructuredConverter) -> None:
        """The editor's label/checkbox/div wrapper is not part of the item text."""
        html = (
            '<ul data-type="taskList"><li data-type="taskItem" data-checked="false">'
            '<label><input type="checkbox"></label><div><p>Write tests</p></div></li></ul>'
        )
        assert converter.convert(html) == "- [ ] Write tests"

    def test_checked_state_is_string(self, converter: StructuredConverter) -> None:
        """Only the string "true" means checked."""
        html = '<ul data-type="taskList"><li data-type="taskItem" data-checked="">x</li></ul>'
        assert converter.convert(html) == "- [ ] x"

    def test_table_with_header(self, converter: StructuredConverter) -> None:
        """A header row gets a separator row."""
        html = "<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></table>"
        assert converter.convert(html) == "| A | B |\n| --- | --- |\n| 1 | 2 |"

    def test_table_without_header(self, converter: StructuredConverter) -> None:
        """Without <th> in row 0 there is no separator row."""
        html = "<table><tbody><tr><td>1</td><td>2</td></tr><tr><td>3</td></tr></tbody></table>"
        assert converter.convert(html) == "| 1 | 2 |\n| 3 | |"

    def test_code_block_language(self, converter: StructuredConverter) -> None:
        """Code blocks become fenced blocks tagged with their language."""
        html = '<pre><code class="language-js">let x=1;</code></pre>'
        assert converter.convert(html) == "```js\nlet x=1;\n```"

    def test_code_block_keeps_content(self, converter: StructuredConverter) -> None:
        """Code content keeps its newlines and is not re-interpreted."""
        html = "<pre><code>a  &lt;b&gt;\n  *c*</code></pre>"
        assert converter.convert(html) == "```\na  <b>\n  *c*\n```"

    def test_ordered_list_ordinals(self, converter: StructuredConverter) -> None:
        """Ordinals are the element-sibling index plus one."""
        html = "<ol>\n  <li>First</li>\n  <li>Second</li>\n</ol>"
        assert converter.convert(html) == "1. First\n2. Second"

    def test_wiki_link_prefers_note_id(self, converter: StructuredConverter) -> None:
        """data-note-id is preferred over the href suffix."""
        html = '<p><a data-note-link="true" data-note-id="42" href="#note:Other">Text</a></p>'
        assert converter.convert(html) == "[[42]]"

    def test_empty_href_link(self, converter: StructuredConverter) -> None:
        """A link without href renders its text only."""
        assert converter.convert('<p><a href="">plain</a></p>') == "plain"

    def test_image_title_and_missing_alt(self, converter: StructuredConverter) -> None:
        """A missing alt renders empty; a title is quoted."""
        assert converter.convert('<img src="a.png" title="T">') == '![](a.png "T")'

    def test_video_embed_without_id(self, converter: StructuredConverter) -> None:
        """An embed without a recognizable video id renders nothing."""
        html = '<div data-youtube-video=""><iframe src="https://example.com/video"></iframe></div>'
        assert converter.convert(html) == ""

    def test_entities_decoded(self, converter: StructuredConverter) -> None:
        """Text entities are decoded once."""
        assert converter.convert("<p>a &amp; b &amp;lt;</p>") == "a & b &lt;"

    def test_unknown_tags_are_transparent(self, converter: StructuredConverter) -> None:
        """Tags outside the dialect contribute their children."""
        assert converter.convert("<section><article><p>Inside</p></article></section>") == "Inside"

    def test_line_breaks_disabled(self) -> None:
        """With line-break preservation off, <br> is a space."""
        converter = StructuredConverter(ConverterOptions(preserve_line_breaks=False))
        assert converter.convert("<p>a<br>b</p>") == "a b"

    def test_reference_links(self) -> None:
        """Reference style renders [text][href]."""
        converter = StructuredConverter(ConverterOptions(link_style=LinkStyle.REFERENCE))
        assert converter.convert('<p><a href="https://x.com">X</a></p>') == "[X][https://x.com]"

    def test_simple_preset(self) -> None:
        """The simple preset preserves line breaks and uses inline links."""
        converter = simple_structured_converter()
        assert converter.options.preserve_line_breaks is True
        assert converter.options.link_style is LinkStyle.INLINE


class TestStructuredRobustness:
    """Degenerate input and fallbacks."""

    @pytest.mark.parametrize("html", ["", "   \n\t", "</p></div></li>"])
    def test_empty_like_input(self, converter: StructuredConverter, html: str) -> None:
        """Empty, whitespace-only and closing-tag-only input gives an empty string."""
        assert converter.convert(html) == ""

    def test_non_string_input(self, converter: StructuredConverter) -> None:
        """Non-string input gives an empty string."""
        assert converter.convert(None) == ""  # type: ignore[arg-type]

    def test_missing_tree_builder_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        """An uninstalled tree builder falls back to the pattern converter with a warning."""
        converter = StructuredConverter(tree_builder="no-such-tree-builder")
        with caplog.at_level(logging.WARNING, logger="unfold_notes.utils.structured_converter"):
            assert converter.convert("<p><strong>Hi</strong></p>") == "**Hi**"
        assert "pattern converter" in caplog.text

    def test_deep_nesting_falls_back(self, converter: StructuredConverter) -> None:
        """Nesting deeper than the recursion limit still converts."""
        html = "<div>" * 3000 + "deep" + "</div>" * 3000
        assert converter.convert(html) == "deep"


class TestConverterRegistration:
    """Tests for custom converter registration."""

    def test_register_custom_tag(self, converter: StructuredConverter) -> None:
        """Custom tags can be given a handler."""
        converter.register_converter("custom-tag", lambda ctx: f"Custom: {ctx.convert_children()}")
        assert converter.convert("<custom-tag>hi</custom-tag>") == "Custom: hi"

    def test_override_default(self, converter: StructuredConverter) -> None:
        """A registered handler replaces the default one."""
        converter.register_converter("mark", lambda ctx: f"<<{ctx.convert_children()}>>")
        assert converter.convert("<p><mark>x</mark></p>") == "<<x>>"

    def test_override_attribute_selector(self, converter: StructuredConverter) -> None:
        """Attribute-qualified keys can be overridden like bare tags."""
        converter.register_converters(
            {'li[data-type="taskItem"]': lambda ctx: f"TODO({ctx.get_attribute('data-checked')})\n"}
        )
        html = '<ul data-type="taskList"><li data-type="taskItem" data-checked="true">x</li></ul>'
        assert converter.convert(html) == "TODO(true)"

    def test_constructor_converters(self) -> None:
        """Converters passed to the constructor are applied after the defaults."""
        converter = StructuredConverter(converters={"u": lambda ctx: ctx.convert_children().upper()})
        assert converter.convert("<p><u>loud</u></p>") == "LOUD"

    def test_register_during_conversion_rejected(self, converter: StructuredConverter) -> None:
        """The registry cannot be changed while a conversion is running."""
        errors: list[RuntimeError] = []

        def handler(ctx: ConverterContext) -> str:
            try:
                converter.register_converter("p", lambda inner: "")
            except RuntimeError as e:
                errors.append(e)
            return "ok"

        converter.register_converter("custom-tag", handler)
        assert converter.convert("<custom-tag></custom-tag>") == "ok"
        assert len(errors) == 1
        assert converter.convert("<p>still</p>") == "still"
