"""Pydantic data models for unfold-notes.

This module defines the data models used throughout the converter and its
collaborators, including converter options, export records, and error types.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel


class LinkStyle(str, Enum):
    """How the structured converter renders ordinary links."""

    INLINE = "inline"  # [text](href "title")
    REFERENCE = "reference"  # [text][href]


class ConverterOptions(BaseModel):
    """Configuration for one HTML to Markdown converter instance.

    Attributes:
        preserve_line_breaks: Emit ``\\n`` for ``<br>`` (a space when False)
        link_style: Inline or reference style links
    """

    model_config = {"frozen": True}

    preserve_line_breaks: bool = True
    link_style: LinkStyle = LinkStyle.INLINE


class ExportOptions(BaseModel):
    """Options for the zip export job.

    Attributes:
        converter: Which HTML to Markdown converter renders note bodies
        include_readme: Add a README.md describing the archive layout
        compression_level: zlib level for archive entries (0-9)
        converter_options: Options for the structured converter
    """

    converter: Literal["pattern", "structured"] = "pattern"
    include_readme: bool = True
    compression_level: int = 9
    converter_options: ConverterOptions = ConverterOptions()


class Space(BaseModel):
    """A top-level space (notebook) that folders belong to."""

    id: int
    name: str


class Folder(BaseModel):
    """A folder (section), possibly nested under another folder.

    Attributes:
        id: Folder ID
        name: Folder display name
        parent_id: Parent folder ID, None for a root folder
        space_id: Owning space ID, None for folders outside any space
    """

    id: int
    name: str
    parent_id: int | None = None
    space_id: int | None = None


class Note(BaseModel):
    """A stored note as the export job and API layer receive it.

    Attributes:
        id: Note ID
        title: Note title
        content: Editor HTML, None for an empty note
        folder_id: Containing folder ID, None for notes at the root
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: int
    title: str = ""
    content: str | None = None
    folder_id: int | None = None
    created_at: datetime
    updated_at: datetime


class ExportResult(BaseModel):
    """Result of an export job.

    Attributes:
        archive_path: Path of the written zip archive
        note_count: Number of notes written
        entries: Archive entry names in write order (README excluded)
    """

    archive_path: str
    note_count: int
    entries: list[str] = []


class ErrorCode(str, Enum):
    """Error codes for unfold-notes collaborators."""

    INVALID_INPUT = "invalid_input"
    FILE_NOT_FOUND = "file_not_found"
    EXPORT_FAILED = "export_failed"
    CONVERSION_FAILED = "conversion_failed"


class NotesError(Exception):
    """Exception raised by the export, import and tool layers.

    The converters themselves never raise; this covers the I/O and input
    validation around them.

    Attributes:
        code: Error code
        message: Human-readable error message
        details: Additional error details
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            details: Additional context (e.g., path, note id)
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ExportPayload(BaseModel):
    """Export job input as read from a JSON file.

    Attributes:
        notes: Notes to export
        folders: Folders referenced by the notes
        spaces: Spaces referenced by the folders
    """

    notes: list[Note]
    folders: list[Folder] = []
    spaces: list[Space] = []
