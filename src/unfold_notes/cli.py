"""Command line interface for unfold-notes.

Converts note content between editor HTML and Markdown, and exports notes
to a zip archive of Markdown files.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from unfold_notes.config import get_converter_options, get_log_level
from unfold_notes.export import export_notes, load_export_payload
from unfold_notes.models import ConverterOptions, ExportOptions, LinkStyle, NotesError
from unfold_notes.utils.content import is_likely_markdown
from unfold_notes.utils.html_to_markdown import html_to_markdown
from unfold_notes.utils.logging import setup_logging
from unfold_notes.utils.markdown_to_html import markdown_to_html
from unfold_notes.utils.structured_converter import StructuredConverter

app = typer.Typer(
    name="unfold-notes",
    help="Convert Unfold Notes editor HTML to and from Markdown",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log at DEBUG level"),
    ] = False,
) -> None:
    """Unfold Notes content tools."""
    setup_logging(logging.DEBUG if verbose else get_log_level())


def _read_input(file: Path | None) -> str:
    """Read a file, or stdin when no file (or ``-``) is given."""
    if file is None or str(file) == "-":
        return sys.stdin.read()
    if not file.exists():
        typer.echo(f"❌ File not found: {file}", err=True)
        raise typer.Exit(1)
    return file.read_text(encoding="utf-8")


def _write_output(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"✅ Written to: {output}")


@app.command()
def html2md(
    file: Annotated[
        Path | None,
        typer.Argument(help="HTML file to convert (default: stdin)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write Markdown to this file instead of stdout"),
    ] = None,
    structured: Annotated[
        bool,
        typer.Option("--structured", "-s", help="Use the structured (tree-walking) converter"),
    ] = False,
    no_line_breaks: Annotated[
        bool,
        typer.Option("--no-line-breaks", help="Render <br> as a space"),
    ] = False,
    reference_links: Annotated[
        bool,
        typer.Option("--reference-links", help="Render links as [text][href]"),
    ] = False,
) -> None:
    """Convert editor HTML to Markdown.

    Example:
        unfold-notes html2md note.html -o note.md
    """
    defaults = get_converter_options()
    options = ConverterOptions(
        preserve_line_breaks=defaults.preserve_line_breaks and not no_line_breaks,
        link_style=LinkStyle.REFERENCE if reference_links else defaults.link_style,
    )
    html = _read_input(file)
    if structured:
        markdown = StructuredConverter(options).convert(html)
    else:
        markdown = html_to_markdown(html, options)
    _write_output(markdown, output)


@app.command()
def md2html(
    file: Annotated[
        Path | None,
        typer.Argument(help="Markdown file to convert (default: stdin)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write HTML to this file instead of stdout"),
    ] = None,
) -> None:
    """Convert Markdown to editor HTML.

    Example:
        unfold-notes md2html note.md
    """
    _write_output(markdown_to_html(_read_input(file)), output)


@app.command()
def detect(
    file: Annotated[
        Path | None,
        typer.Argument(help="File to classify (default: stdin)"),
    ] = None,
) -> None:
    """Print "markdown" or "html" for the given content."""
    typer.echo("markdown" if is_likely_markdown(_read_input(file)) else "html")


@app.command()
def export(
    notes_file: Annotated[
        Path,
        typer.Argument(help="JSON file with 'notes', 'folders' and 'spaces'"),
    ],
    destination: Annotated[
        Path,
        typer.Option("--output", "-o", help="Zip file path or target directory"),
    ] = Path("."),
    structured: Annotated[
        bool,
        typer.Option("--structured", "-s", help="Use the structured (tree-walking) converter"),
    ] = False,
    no_readme: Annotated[
        bool,
        typer.Option("--no-readme", help="Do not add README.md to the archive"),
    ] = False,
) -> None:
    """Export notes to a zip archive of Markdown files.

    Example:
        unfold-notes export notes.json -o export.zip
    """
    options = ExportOptions(
        converter="structured" if structured else "pattern",
        include_readme=not no_readme,
        converter_options=get_converter_options(),
    )
    try:
        payload = load_export_payload(notes_file)
        result = export_notes(payload.notes, payload.folders, payload.spaces, destination, options)
    except NotesError as e:
        typer.echo(f"❌ Error [{e.code.value}]: {e.message}", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"✅ Exported {result.note_count} notes to: {result.archive_path}")


if __name__ == "__main__":
    app()
