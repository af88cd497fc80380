"""Export notes as a zip archive of Markdown files.

Each note becomes ``Space/Folder/.../Title.md`` with YAML frontmatter
(title, created, updated, and space and folder when known). A README
describing the layout is added at the archive root.
"""

from __future__ import annotations

import logging
import re
import zipfile
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

import yaml
from pydantic import ValidationError

from unfold_notes.models import (
    ErrorCode,
    ExportOptions,
    ExportPayload,
    ExportResult,
    Folder,
    Note,
    NotesError,
    Space,
)
from unfold_notes.utils.html_to_markdown import html_to_markdown
from unfold_notes.utils.structured_converter import StructuredConverter

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
MARKDOWN_SUFFIX = ".md"
README_NAME = "README.md"

_INVALID_FILE_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RUN = re.compile(r"\s+")

README_TEMPLATE = """# Unfold Notes Export

Exported on: {exported_at}
Total notes: {note_count}

## Structure

Notes are organized by space and folder structure. Each note is saved as a markdown file with YAML frontmatter containing metadata.

The folder structure is: `Space Name/Folder Name/Note Title.md`

## Frontmatter Fields

- `title`: The note title
- `created`: Creation timestamp (ISO 8601)
- `updated`: Last update timestamp (ISO 8601)
- `space`: The space/notebook name (if any)
- `folder`: The folder/section name (if any)

## Importing to Other Apps

These markdown files are compatible with most note-taking apps including:
- Obsidian (drag and drop the extracted folder)
- Notion (via import)
- Bear
- iA Writer
- Typora
- Any text editor

---
Exported from Unfold Notes
"""


def sanitize_file_name(name: str | None) -> str:
    """Make a name safe as a single path component.

    Characters invalid in file names become ``-``, whitespace runs collapse
    to one space, and an empty result becomes ``Untitled``.
    """
    cleaned = _INVALID_FILE_NAME_CHARS.sub("-", name or "")
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()
    return cleaned or UNTITLED


def export_file_name(exported_at: datetime) -> str:
    """Default archive name, e.g. ``unfold-notes-export-2024-05-01.zip``."""
    return f"unfold-notes-export-{exported_at.date().isoformat()}.zip"


class UniquePathAllocator:
    """Hands out archive paths, de-duplicating case-insensitively.

    A taken ``Folder/Title.md`` becomes ``Folder/Title (1).md``, then
    ``Folder/Title (2).md`` and so on.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, base_path: str) -> str:
        path = base_path
        stem = base_path.removesuffix(MARKDOWN_SUFFIX)
        counter = 1
        while path.lower() in self._used:
            path = f"{stem} ({counter}){MARKDOWN_SUFFIX}"
            counter += 1
        self._used.add(path.lower())
        return path


class FolderPaths:
    """Resolves folder ids to ``Space/Parent/.../Folder`` archive paths."""

    def __init__(self, folders: Iterable[Folder], spaces: Iterable[Space]) -> None:
        self._folders = {folder.id: folder for folder in folders}
        self._space_names = {space.id: space.name for space in spaces}

    def folder(self, folder_id: int | None) -> Folder | None:
        return self._folders.get(folder_id) if folder_id is not None else None

    def space_name(self, folder_id: int | None) -> str | None:
        """Name of the space owning the folder's root ancestor."""
        space_id = None
        for folder in self._ancestry(folder_id):
            space_id = folder.space_id
        return self._space_names.get(space_id) if space_id is not None else None

    def path(self, folder_id: int | None) -> str:
        """Archive directory for a folder, empty for notes outside any folder."""
        ancestry = self._ancestry(folder_id)
        parts = [sanitize_file_name(folder.name) for folder in reversed(ancestry)]
        space_name = self.space_name(folder_id)
        if space_name:
            parts.insert(0, sanitize_file_name(space_name))
        return "/".join(parts)

    def _ancestry(self, folder_id: int | None) -> list[Folder]:
        """Folders from ``folder_id`` up to its root; stops at unknown ids and cycles."""
        chain: list[Folder] = []
        seen: set[int] = set()
        current = self.folder(folder_id)
        while current is not None and current.id not in seen:
            seen.add(current.id)
            chain.append(current)
            current = self.folder(current.parent_id)
        return chain


def build_frontmatter(note: Note, space: str | None = None, folder: str | None = None) -> str:
    """Render the YAML frontmatter block for a note, including delimiters."""
    data: dict[str, str] = {
        "title": note.title or UNTITLED,
        "created": note.created_at.isoformat(),
        "updated": note.updated_at.isoformat(),
    }
    if space:
        data["space"] = space
    if folder:
        data["folder"] = folder
    body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{body}---\n"


def _note_converter(options: ExportOptions) -> Callable[[str], str]:
    if options.converter == "structured":
        return StructuredConverter(options.converter_options).convert
    return lambda html: html_to_markdown(html, options.converter_options)


def export_notes(
    notes: Iterable[Note],
    folders: Iterable[Folder],
    spaces: Iterable[Space],
    destination: Path | str,
    options: ExportOptions | None = None,
    exported_at: datetime | None = None,
) -> ExportResult:
    """Write notes into a zip archive of Markdown files.

    Args:
        notes: Notes to export
        folders: All folders the notes may live in (for path hierarchy)
        spaces: All spaces the folders may belong to
        destination: Archive path, or a directory to create the default-named archive in
        options: Converter choice, README and compression settings
        exported_at: Export timestamp (default: now, UTC)

    Returns:
        ExportResult with the archive path and the entries written

    Raises:
        NotesError: If the archive cannot be written (EXPORT_FAILED)
    """
    options = options or ExportOptions()
    exported_at = exported_at or datetime.now(UTC)
    archive_path = Path(destination)
    if archive_path.is_dir():
        archive_path = archive_path / export_file_name(exported_at)

    folder_paths = FolderPaths(folders, spaces)
    convert = _note_converter(options)
    allocator = UniquePathAllocator()

    # Archive order: space, folder, title
    def sort_key(note: Note) -> tuple[str, str, str]:
        folder = folder_paths.folder(note.folder_id)
        return (
            folder_paths.space_name(note.folder_id) or "",
            folder.name if folder else "",
            note.title,
        )

    ordered = sorted(notes, key=sort_key)
    entries: list[str] = []

    try:
        with zipfile.ZipFile(
            archive_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=options.compression_level,
        ) as archive:
            for note in ordered:
                folder = folder_paths.folder(note.folder_id)
                directory = folder_paths.path(note.folder_id)
                file_name = sanitize_file_name(note.title) + MARKDOWN_SUFFIX
                entry = allocator.allocate(f"{directory}/{file_name}" if directory else file_name)

                markdown = convert(note.content) if note.content else ""
                frontmatter = build_frontmatter(
                    note,
                    space=folder_paths.space_name(note.folder_id),
                    folder=folder.name if folder else None,
                )
                archive.writestr(entry, frontmatter + markdown)
                entries.append(entry)

            if options.include_readme:
                readme = README_TEMPLATE.format(exported_at=exported_at.isoformat(), note_count=len(entries))
                archive.writestr(README_NAME, readme)
    except OSError as e:
        logger.error("Export failed writing %s: %s", archive_path, e)
        raise NotesError(
            code=ErrorCode.EXPORT_FAILED,
            message=f"Failed to create export archive: {e}",
            details={"path": str(archive_path)},
        ) from e

    logger.info("Exported %d notes to %s", len(entries), archive_path)
    return ExportResult(archive_path=str(archive_path), note_count=len(entries), entries=entries)


def load_export_payload(file_path: Path | str) -> ExportPayload:
    """Read notes, folders and spaces from a JSON file.

    Raises:
        NotesError: FILE_NOT_FOUND if the file is missing, INVALID_INPUT if it
            is not a valid export payload
    """
    path = Path(file_path)
    if not path.is_file():
        raise NotesError(
            code=ErrorCode.FILE_NOT_FOUND,
            message=f"File not found: {path}",
            details={"path": str(path)},
        )
    try:
        return ExportPayload.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise NotesError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Invalid export payload: {e.error_count()} validation error(s)",
            details={"path": str(path), "errors": e.errors(include_url=False)},
        ) from e
