"""Unit tests for the command line interface.

Tests the Typer CLI application using CliRunner.
"""

import logging
import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from unfold_notes import cli
from unfold_notes.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def mock_setup_logging(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Keep the CLI from attaching handlers to the runner's captured streams."""
    mock = MagicMock()
    monkeypatch.setattr(cli, "setup_logging", mock)
    return mock


class TestMainCallback:
    """Tests for the app callback."""

    def test_verbose_sets_debug(self, mock_setup_logging: MagicMock) -> None:
        """--verbose configures DEBUG logging."""
        result = runner.invoke(app, ["--verbose", "detect"], input="# x")

        assert result.exit_code == 0
        mock_setup_logging.assert_called_once_with(logging.DEBUG)

    def test_no_args_shows_help(self) -> None:
        """Running without a command prints usage."""
        result = runner.invoke(app, [])

        assert "Usage" in result.output


class TestHtml2Md:
    """Tests for the html2md command."""

    def test_stdin_to_stdout(self) -> None:
        """HTML from stdin is printed as Markdown."""
        result = runner.invoke(app, ["html2md"], input="<h1>Title</h1><p><em>hi</em></p>")

        assert result.exit_code == 0
        assert result.stdout == "# Title\n\n*hi*\n"

    def test_structured_option(self, tmp_path: Path) -> None:
        """--structured uses the tree-walking converter."""
        source = tmp_path / "note.html"
        source.write_text('<ul data-type="taskList"><li data-type="taskItem" data-checked="true">Done</li></ul>')

        result = runner.invoke(app, ["html2md", str(source), "--structured"])

        assert result.exit_code == 0
        assert result.stdout == "- [x] Done\n"

    def test_no_line_breaks(self) -> None:
        """--no-line-breaks renders <br> as a space."""
        result = runner.invoke(app, ["html2md", "--no-line-breaks"], input="<p>a<br>b</p>")

        assert result.stdout == "a b\n"

    def test_reference_links(self) -> None:
        """--reference-links renders [text][href] with the structured converter."""
        result = runner.invoke(
            app,
            ["html2md", "-s", "--reference-links"],
            input='<p><a href="https://example.com">site</a></p>',
        )

        assert result.stdout == "[site][https://example.com]\n"

    def test_output_file(self, tmp_path: Path) -> None:
        """--output writes the Markdown to a file."""
        target = tmp_path / "note.md"

        result = runner.invoke(app, ["html2md", "-o", str(target)], input="<p>x</p>")

        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8") == "x\n"
        assert "Written to" in result.stdout

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing input file exits with status 1."""
        result = runner.invoke(app, ["html2md", str(tmp_path / "nope.html")])

        assert result.exit_code == 1
        assert "File not found" in result.output


class TestMd2Html:
    """Tests for the md2html command."""

    def test_converts(self, tmp_path: Path) -> None:
        """Markdown from a file is printed as editor HTML."""
        source = tmp_path / "note.md"
        source.write_text("See [[Other]]", encoding="utf-8")

        result = runner.invoke(app, ["md2html", str(source)])

        assert result.exit_code == 0
        assert result.stdout == '<p>See <a data-note-link="true" href="#note:Other">Other</a></p>\n'


class TestDetect:
    """Tests for the detect command."""

    @pytest.mark.parametrize(("content", "expected"), [("- item", "markdown"), ("<p>x</p>", "html")])
    def test_detect(self, content: str, expected: str) -> None:
        """The content format is printed."""
        result = runner.invoke(app, ["detect", "-"], input=content)

        assert result.stdout == f"{expected}\n"


class TestExport:
    """Tests for the export command."""

    def test_export(self, export_payload_file: Path, tmp_path: Path) -> None:
        """The archive is written and the note count reported."""
        destination = tmp_path / "export.zip"

        result = runner.invoke(app, ["export", str(export_payload_file), "-o", str(destination)])

        assert result.exit_code == 0
        assert "Exported 4 notes" in result.stdout
        with zipfile.ZipFile(destination) as archive:
            assert "README.md" in archive.namelist()

    def test_export_no_readme(self, export_payload_file: Path, tmp_path: Path) -> None:
        """--no-readme leaves the README out."""
        destination = tmp_path / "export.zip"

        result = runner.invoke(app, ["export", str(export_payload_file), "-o", str(destination), "--no-readme"])

        assert result.exit_code == 0
        with zipfile.ZipFile(destination) as archive:
            assert "README.md" not in archive.namelist()

    def test_invalid_payload(self, tmp_path: Path) -> None:
        """An invalid payload exits with status 1 and the error code."""
        payload = tmp_path / "notes.json"
        payload.write_text('{"notes": "nope"}', encoding="utf-8")

        result = runner.invoke(app, ["export", str(payload), "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error [invalid_input]" in result.output
