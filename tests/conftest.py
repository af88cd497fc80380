"""Pytest configuration and shared fixtures for unfold-notes tests.

This module provides common fixtures used across unit and performance tests.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from unfold_notes.models import Folder, Note, Space

# ============================================================================
# Dialect Samples
# ============================================================================

# Canonical HTML sample per dialect construct, with the Markdown both
# HTML to Markdown converters produce for it
DIALECT_SAMPLES: dict[str, tuple[str, str]] = {
    "heading": ("<h3>Section</h3>", "### Section"),
    "bold": ("<p><strong>bold</strong></p>", "**bold**"),
    "italic": ("<p><em>italic</em></p>", "*italic*"),
    "strike": ("<p><s>gone</s></p>", "~~gone~~"),
    "underline": ("<p><u>under</u></p>", "_under_"),
    "inline_code": ("<p>Use <code>x</code></p>", "Use `x`"),
    "highlight": ("<p><mark>hi</mark></p>", "==hi=="),
    "paragraph": ("<p>One</p><p>Two</p>", "One\n\nTwo"),
    "line_break": ("<p>a<br>b</p>", "a\nb"),
    "rule": ("<p>a</p><hr><p>b</p>", "a\n\n---\n\nb"),
    "link": ('<p><a href="https://example.com" title="Ex">site</a></p>', '[site](https://example.com "Ex")'),
    "image": ('<img src="a.png" alt="Alt">', "![Alt](a.png)"),
    "list": ("<ol><li>First</li><li>Second</li></ol>", "1. First\n2. Second"),
    "list_item": ("<ul><li>A</li><li>B<ul><li>B1</li></ul></li></ul>", "- A\n- B\n  - B1"),
    "task_list": (
        '<ul data-type="taskList"><li data-type="taskItem" data-checked="false">Todo</li>'
        '<li data-type="taskItem" data-checked="true">Done</li></ul>',
        "- [ ] Todo\n- [x] Done",
    ),
    "task_item": (
        '<ul data-type="taskList"><li data-type="taskItem" data-checked="true">Done</li></ul>',
        "- [x] Done",
    ),
    "blockquote": ("<blockquote><p>Line 1</p><p>Line 2</p></blockquote>", "> Line 1\n>\n> Line 2"),
    "code_block": ('<pre><code class="language-js">let x=1;</code></pre>', "```js\nlet x=1;\n```"),
    "table": (
        "<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></table>",
        "| A | B |\n| --- | --- |\n| 1 | 2 |",
    ),
    "wiki_link": ('<p><a data-note-link="true" href="#note:My Note">My Note</a></p>', "[[My Note]]"),
    "video_embed": (
        '<div data-youtube-video=""><iframe src="https://www.youtube.com/embed/abc123"></iframe></div>',
        "[YouTube Video](https://youtube.com/watch?v=abc123)",
    ),
    "figure": ('<figure><img src="a.png"><figcaption>Caption</figcaption></figure>', "![Caption](a.png)"),
}


@pytest.fixture
def dialect_samples() -> dict[str, tuple[str, str]]:
    """Canonical (html, markdown) sample per dialect construct."""
    return DIALECT_SAMPLES


# ============================================================================
# Export Fixtures
# ============================================================================


@pytest.fixture
def timestamp() -> datetime:
    """A fixed timezone-aware timestamp."""
    return datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)


@pytest.fixture
def sample_spaces() -> list[Space]:
    """Spaces for export tests."""
    return [Space(id=1, name="Work")]


@pytest.fixture
def sample_folders() -> list[Folder]:
    """Folders for export tests: Work/Projects/Archive."""
    return [
        Folder(id=10, name="Projects", space_id=1),
        Folder(id=11, name="Archive", parent_id=10, space_id=1),
    ]


@pytest.fixture
def sample_notes(timestamp: datetime) -> list[Note]:
    """Notes for export tests, including a case-insensitive duplicate title."""
    return [
        Note(
            id=1,
            title="Plan",
            content="<h2>Goals</h2><p>Ship <strong>it</strong></p>",
            folder_id=10,
            created_at=timestamp,
            updated_at=timestamp,
        ),
        Note(
            id=2,
            title="plan",
            content="<p>Second plan</p>",
            folder_id=10,
            created_at=timestamp,
            updated_at=timestamp,
        ),
        Note(
            id=3,
            title="Old: notes?",
            content='<ul data-type="taskList"><li data-type="taskItem" data-checked="true">Done</li></ul>',
            folder_id=11,
            created_at=timestamp,
            updated_at=timestamp,
        ),
        Note(
            id=4,
            title="",
            content=None,
            created_at=timestamp,
            updated_at=timestamp,
        ),
    ]


@pytest.fixture
def export_payload_file(
    tmp_path: Path,
    sample_notes: list[Note],
    sample_folders: list[Folder],
    sample_spaces: list[Space],
) -> Path:
    """Write the sample notes, folders and spaces to a JSON payload file."""
    payload = {
        "notes": [note.model_dump(mode="json") for note in sample_notes],
        "folders": [folder.model_dump(mode="json") for folder in sample_folders],
        "spaces": [space.model_dump(mode="json") for space in sample_spaces],
    }
    path = tmp_path / "notes.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
