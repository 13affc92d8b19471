"""Encoding and decoding of the ``.cat`` note file format.

A ``cat`` file is a small header followed by the raw body::

    TITLE: <title>
    CREATED: <created_at>
    UPDATED: <updated_at>
    ---
    <content>

Header lines are only recognised before the first ``---`` line, so body text
that happens to start with ``TITLE:`` is never mistaken for a header.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

from .errors import NoteDecodeError
from .models import Note, now_timestamp, stamp_after

SEPARATOR = "---"
DEFAULT_TITLE = "Untitled Note"
CAT_EXTENSION = ".cat"


class LineKind(str, Enum):
    """Classification of a single line of a cat file."""

    TITLE = "title"
    CREATED = "created"
    UPDATED = "updated"
    SEPARATOR = "separator"
    TEXT = "text"


@dataclass(frozen=True)
class HeaderLine:
    """Result of classifying one line: its kind and the value after the prefix."""

    kind: LineKind
    value: str = ""


_HEADER_PREFIXES: tuple[tuple[LineKind, str], ...] = (
    (LineKind.TITLE, "TITLE:"),
    (LineKind.CREATED, "CREATED:"),
    (LineKind.UPDATED, "UPDATED:"),
)


def classify_line(line: str) -> HeaderLine:
    """Classify a header-section line.

    The value is whatever follows the prefix, stripped, so ``TITLE:x`` and
    ``TITLE: x`` both yield ``x``. Only the exact line ``---`` is a separator.
    """
    if line == SEPARATOR:
        return HeaderLine(LineKind.SEPARATOR)
    for kind, prefix in _HEADER_PREFIXES:
        if line.startswith(prefix):
            return HeaderLine(kind, line[len(prefix) :].strip())
    return HeaderLine(LineKind.TEXT, line)


def encode_note(note: Note) -> str:
    """Serialize a note to its on-disk text. ``txt`` notes are stored as raw content."""
    if note.file_type != "cat":
        return note.content
    return (
        f"TITLE: {note.title}\n"
        f"CREATED: {note.created_at}\n"
        f"UPDATED: {note.updated_at}\n"
        f"{SEPARATOR}\n"
        f"{note.content}"
    )


def _to_text(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise NoteDecodeError(f"Note file is not valid UTF-8: {exc}") from exc
    else:
        text = raw
    if "\x00" in text:
        raise NoteDecodeError("Note file contains binary data")
    return text


def decode_note(raw: str | bytes, note_id: str, filename: str | None = None) -> Note:
    """Parse file content into a Note.

    Args:
        raw: File content, as text or UTF-8 bytes.
        note_id: Id to assign; the format does not store it.
        filename: Name the content was loaded from, if known. A non-``.cat``
            extension makes this a ``txt`` note, and the name without its
            extension becomes the fallback title.

    Raises:
        NoteDecodeError: The content is not UTF-8 text.
    """
    text = _to_text(raw)
    stem = PurePosixPath(filename).stem if filename else None

    if filename is not None and PurePosixPath(filename).suffix != CAT_EXTENSION:
        now = now_timestamp()
        return Note(
            id=note_id,
            title=stem or "",
            content=text,
            created_at=now,
            updated_at=now,
            file_type="txt",
        )

    fields: dict[LineKind, str] = {}
    body: list[str] = []
    header_done = False

    text = text.replace("\r\n", "\n")
    for line in text.split("\n"):
        if header_done:
            body.append(line)
            continue
        parsed = classify_line(line)
        if parsed.kind is LineKind.SEPARATOR:
            header_done = True
        elif parsed.kind is not LineKind.TEXT:
            fields[parsed.kind] = parsed.value

    if header_done:
        content = "\n".join(body).strip()
    else:
        # No separator: the whole file is body and the header falls back to defaults.
        fields = {}
        content = text.strip()

    if LineKind.TITLE in fields:
        title = fields[LineKind.TITLE]
    else:
        title = stem or DEFAULT_TITLE

    # A single surviving timestamp fills in for the missing one.
    created_at = fields.get(LineKind.CREATED)
    updated_at = fields.get(LineKind.UPDATED)
    if not created_at and not updated_at:
        created_at = updated_at = now_timestamp()
    elif not created_at:
        created_at = updated_at
    elif not updated_at:
        updated_at = stamp_after(created_at)

    return Note(
        id=note_id,
        title=title,
        content=content,
        created_at=created_at,
        updated_at=updated_at,
        file_type="cat",
    )
