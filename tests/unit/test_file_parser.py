"""Unit tests for file_parser module.

Tests for parsing Markdown files with YAML frontmatter, extracting titles
from H1/H2 headings, and rendering the body to editor HTML.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from unfold_notes.utils.file_parser import ParsedNote, parse_note_file


def _write(tmp_path: Path, content: str, name: str = "note.md") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestParsedNote:
    """Tests for ParsedNote dataclass."""

    def test_defaults(self) -> None:
        """ParsedNote should have sensible defaults."""
        note = ParsedNote(title="Title", body="Body")

        assert note.html == ""
        assert note.space is None
        assert note.folder is None
        assert note.tags == []
        assert note.source_path is None


class TestParseNoteFile:
    """Tests for parse_note_file function."""

    def test_frontmatter_title(self, tmp_path: Path) -> None:
        """Title comes from frontmatter, and a matching heading stays in the body."""
        path = _write(tmp_path, "---\ntitle: From Frontmatter\n---\n# Heading\n\nBody text\n")

        note = parse_note_file(path)

        assert note.title == "From Frontmatter"
        assert note.body == "# Heading\n\nBody text"
        assert note.source_path == path

    def test_h1_title_removed_from_body(self, tmp_path: Path) -> None:
        """Without frontmatter, the first H1 is the title and leaves the body."""
        path = _write(tmp_path, "# My Note\n\nFirst paragraph\n")

        note = parse_note_file(path)

        assert note.title == "My Note"
        assert note.body == "First paragraph"

    def test_h2_fallback(self, tmp_path: Path) -> None:
        """The first H2 is used when there is no H1."""
        path = _write(tmp_path, "Intro\n\n## Second Level\n\nMore\n")

        note = parse_note_file(path)

        assert note.title == "Second Level"
        assert note.body == "Intro\n\nMore"

    def test_h1_preferred_over_earlier_h2(self, tmp_path: Path) -> None:
        """An H1 anywhere wins over an H2."""
        path = _write(tmp_path, "## Sub\n\n# Main\n")

        assert parse_note_file(path).title == "Main"

    def test_empty_frontmatter_title_falls_back(self, tmp_path: Path) -> None:
        """A blank frontmatter title falls back to the heading."""
        path = _write(tmp_path, '---\ntitle: "  "\n---\n# Heading Title\n\nBody\n')

        note = parse_note_file(path)

        assert note.title == "Heading Title"
        assert note.body == "Body"

    def test_metadata(self, tmp_path: Path) -> None:
        """Space, folder and tags are read from the frontmatter."""
        content = "---\ntitle: Plan\nspace: Work\nfolder: Projects\ntags:\n  - a\n  - b\n---\nBody\n"
        note = parse_note_file(_write(tmp_path, content))

        assert note.space == "Work"
        assert note.folder == "Projects"
        assert note.tags == ["a", "b"]

    def test_single_string_tag(self, tmp_path: Path) -> None:
        """A single tag may be given as a string."""
        note = parse_note_file(_write(tmp_path, "---\ntitle: T\ntags: solo\n---\nBody\n"))

        assert note.tags == ["solo"]

    def test_html_rendered(self, tmp_path: Path) -> None:
        """The body is rendered to editor HTML."""
        note = parse_note_file(_write(tmp_path, "# Tasks\n\n- [x] Done\n\nSee [[Other]]\n"))

        assert '<ul data-type="taskList">' in note.html
        assert '<a data-note-link="true" href="#note:Other">Other</a>' in note.html
        assert "<h1>" not in note.html

    def test_exported_note_reimports(self, tmp_path: Path) -> None:
        """A file in the export format parses back into its title and metadata."""
        content = (
            "---\n"
            "title: 'Old: notes?'\n"
            "created: '2024-01-02T03:04:05+00:00'\n"
            "updated: '2024-01-02T03:04:05+00:00'\n"
            "space: Work\n"
            "folder: Archive\n"
            "---\n"
            "- [x] Done"
        )
        note = parse_note_file(_write(tmp_path, content))

        assert note.title == "Old: notes?"
        assert note.space == "Work"
        assert note.folder == "Archive"
        assert note.body == "- [x] Done"

    def test_invalid_yaml_ignored(self, tmp_path: Path) -> None:
        """Unparseable frontmatter is treated as absent."""
        path = _write(tmp_path, "---\ntitle: [unclosed\n---\n# Fallback\n")

        assert parse_note_file(path).title == "Fallback"

    def test_accepts_string_path(self, tmp_path: Path) -> None:
        """A str path works as well as a Path."""
        path = _write(tmp_path, "# Title\n")

        assert parse_note_file(str(path)).source_path == path

    def test_file_not_found(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="File not found"):
            parse_note_file(tmp_path / "missing.md")

    def test_no_title(self, tmp_path: Path) -> None:
        """A file without any title raises ValueError."""
        with pytest.raises(ValueError, match="No title found"):
            parse_note_file(_write(tmp_path, "Just text\n"))
