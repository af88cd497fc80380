"""FastMCP server for unfold-notes content conversion.

Provides MCP tools for converting note content between the editor's HTML
dialect and Markdown, and for exporting notes as a Markdown zip archive.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from fastmcp import FastMCP

from unfold_notes.config import get_converter_options
from unfold_notes.decorators import handle_notes_error
from unfold_notes.export import export_notes, load_export_payload
from unfold_notes.models import ErrorCode, ExportOptions, NotesError
from unfold_notes.utils.content import is_likely_markdown, transform_content_from_api_request
from unfold_notes.utils.html_to_markdown import html_to_markdown
from unfold_notes.utils.markdown_to_html import markdown_to_html
from unfold_notes.utils.structured_converter import StructuredConverter

# Create MCP server instance
mcp = FastMCP("unfold-notes")

ConverterName = Literal["pattern", "structured"]


def _convert_html(html: str, converter: ConverterName) -> str:
    options = get_converter_options()
    if converter == "structured":
        return StructuredConverter(options).convert(html)
    return html_to_markdown(html, options)


@mcp.tool()
@handle_notes_error
async def notes_html_to_markdown(
    html: Annotated[str, "Editor HTML to convert"],
    converter: Annotated[ConverterName, "Converter to use: 'pattern' (default) or 'structured'"] = "pattern",
) -> str:
    """Convert editor HTML to Markdown.

    Args:
        html: Editor HTML (TipTap dialect)
        converter: Which HTML to Markdown converter to use

    Returns:
        Markdown text
    """
    if not html.strip():
        raise NotesError(code=ErrorCode.INVALID_INPUT, message="HTML content is empty")
    return _convert_html(html, converter)


@mcp.tool()
@handle_notes_error
async def notes_markdown_to_html(
    markdown: Annotated[str, "Markdown to convert"],
) -> str:
    """Convert Markdown to editor HTML.

    Task lists, [[wiki links]] and YouTube links are rendered in the editor's
    HTML dialect.

    Args:
        markdown: Markdown text

    Returns:
        Editor HTML
    """
    if not markdown.strip():
        raise NotesError(code=ErrorCode.INVALID_INPUT, message="Markdown content is empty")
    return markdown_to_html(markdown)


@mcp.tool()
async def notes_detect_format(
    content: Annotated[str, "Content to classify"],
) -> str:
    """Detect whether content is Markdown or HTML/plain text.

    Args:
        content: Note content

    Returns:
        "markdown" or "html"
    """
    return "markdown" if is_likely_markdown(content) else "html"


@mcp.tool()
async def notes_prepare_for_storage(
    content: Annotated[str, "Note content as an API client would send it"],
) -> str:
    """Prepare content for storage as editor HTML.

    Markdown is converted to HTML; HTML and plain text are returned unchanged.

    Args:
        content: Note content

    Returns:
        Content to store
    """
    return transform_content_from_api_request(content) or ""


@mcp.tool()
@handle_notes_error
async def notes_export(
    notes_file: Annotated[str, "Path to a JSON file with 'notes', 'folders' and 'spaces'"],
    destination: Annotated[str, "Zip file path, or a directory to write the archive into"],
    converter: Annotated[ConverterName, "Converter to use: 'pattern' (default) or 'structured'"] = "pattern",
    include_readme: Annotated[bool, "Add a README.md to the archive"] = True,
) -> str:
    """Export notes as a zip archive of Markdown files with YAML frontmatter.

    Args:
        notes_file: Path to the export payload JSON file
        destination: Archive path or target directory
        converter: Which HTML to Markdown converter renders note bodies
        include_readme: Whether to add a README.md

    Returns:
        Export result message
    """
    payload = load_export_payload(Path(notes_file))
    options = ExportOptions(
        converter=converter,
        include_readme=include_readme,
        converter_options=get_converter_options(),
    )
    result = export_notes(payload.notes, payload.folders, payload.spaces, destination, options)
    return f"Exported {result.note_count} notes to {result.archive_path}"
