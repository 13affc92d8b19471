"""Filename policy: deterministic note file names and id recovery.

New files are named ``<sanitized-title>-<id>.cat``; older files may be named
just ``<id>.cat``. Ids are digit strings and never contain ``-``, so the id is
always the text after the last dash.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from .models import Note

CAT_SUFFIX = ".cat"

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


def name_for(title: str, note_id: str) -> str:
    """``"Hello World", "42"`` -> ``"hello_world-42.cat"``."""
    return f"{_UNSAFE_CHARS.sub('_', title.lower())}-{note_id}{CAT_SUFFIX}"


def filename_for(note: Note) -> str:
    """File name a note is saved under."""
    return name_for(note.title, note.id)


def delete_filename_for(note_id: str, title: str = "") -> str:
    """File name to ask the server to delete.

    Without a title the legacy ``<id>.cat`` name is used and the server falls
    back to scanning for the id.
    """
    if title:
        return name_for(title, note_id)
    return f"{note_id}{CAT_SUFFIX}"


def id_from_filename(filename: str) -> str:
    """Recover the note id from a file name (either naming scheme)."""
    if "-" in filename:
        filename = filename.rsplit("-", 1)[1]
    return filename.removesuffix(CAT_SUFFIX)


def resolve_file_for_id(filenames: Iterable[str], note_id: str) -> str | None:
    """First file, in listing order, that belongs to ``note_id``."""
    legacy = f"{note_id}{CAT_SUFFIX}"
    suffix = f"-{note_id}{CAT_SUFFIX}"
    for name in filenames:
        if name == legacy or name.endswith(suffix):
            return name
    return None


def resolve_note_file(
    requested: str,
    exists: Callable[[str], bool],
    list_files: Callable[[], Iterable[str]],
) -> str | None:
    """Find the file a delete request refers to.

    The exact name wins if ``exists`` says so, whatever its extension.
    Otherwise the id is taken from ``requested`` and a fresh listing is
    scanned for it, which covers notes renamed since they were written and
    callers that only know the id.
    """
    if exists(requested):
        return requested
    return resolve_file_for_id(list_files(), id_from_filename(requested))
