"""Client-side note collection kept consistent with the notes API.

State lives in an explicit NotesState value. Each NoteSync operation takes the
current state and returns the next one, so the layer can be driven by any UI
(or by tests) without shared globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path

import httpx

from note_store.codec import decode_note, encode_note
from note_store.errors import NoteDecodeError
from note_store.filenames import delete_filename_for, filename_for, id_from_filename
from note_store.models import Note, new_note_id, now_timestamp, parse_timestamp, stamp_after
from notes_client.api import NotesAPI, NotesAPIError

logger = logging.getLogger(__name__)

WELCOME_TITLE = "Welcome to Notes"
WELCOME_CONTENT = (
    "Start writing your notes here. They will be automatically saved to the server."
)
NEW_NOTE_TITLE = "New Note"

STATUS_DURATION = 2.0  # seconds
ERROR_STATUS_DURATION = 3.0

# Failures of a single request; JSON decoding problems raise ValueError
_REQUEST_ERRORS = (NotesAPIError, httpx.HTTPError, ValueError)
_LOAD_ERRORS = (*_REQUEST_ERRORS, NoteDecodeError)


class UnknownNoteError(LookupError):
    """The note id is not in the client collection."""


@dataclass(frozen=True)
class StatusMessage:
    """Transient message for the user."""

    text: str
    duration: float = STATUS_DURATION


def _failure(text: str) -> StatusMessage:
    return StatusMessage(text, ERROR_STATUS_DURATION)


def _age(timestamp: str) -> datetime:
    """Sort key for a stored timestamp; unparseable values sort oldest."""
    return parse_timestamp(timestamp) or datetime.min.replace(tzinfo=UTC)


@dataclass
class NotesState:
    """The client's notes, most recent first, and the selected note."""

    notes: list[Note] = field(default_factory=list)
    active: Note | None = None
    status: StatusMessage | None = None

    def get(self, note_id: str) -> Note | None:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    @property
    def ids(self) -> set[str]:
        return {note.id for note in self.notes}


async def save_note(api: NotesAPI, note: Note) -> Note:
    """Persist ``note`` and return it with its server ``file_path`` set."""
    file_path = await api.save_note(filename_for(note), encode_note(note))
    return note.model_copy(update={"file_path": file_path})


def filter_notes(state: NotesState, query: str) -> list[Note]:
    """Notes whose title or content contains ``query`` (case-insensitive)."""
    q = query.lower()
    return [n for n in state.notes if q in n.title.lower() or q in n.content.lower()]


def import_note_file(path: Path | str, existing_ids: set[str] | None = None) -> Note:
    """Read a local ``.cat`` or ``.txt`` file into a new note with a fresh id."""
    path = Path(path)
    note = decode_note(path.read_bytes(), new_note_id(existing_ids or ()), path.name)
    logger.info("Imported %s as note %s (%s)", path, note.id, note.file_type)
    return note


class NoteSync:
    """Create/update/delete notes through the API and keep NotesState in step."""

    def __init__(self, api: NotesAPI) -> None:
        self._api = api

    async def _load_notes(self) -> list[Note]:
        filenames = await self._api.list_notes()
        loaded: dict[str, Note] = {}
        for filename in filenames:
            try:
                raw = await self._api.fetch_note(filename)
                note = decode_note(raw, id_from_filename(filename), filename)
            except _LOAD_ERRORS as e:
                logger.error("Error loading note %s: %s", filename, e)
                continue
            note = note.model_copy(update={"file_path": f"/notes/{filename}"})
            # A renamed note leaves its old file behind; keep the newest copy.
            current = loaded.get(note.id)
            if current is not None:
                logger.warning(
                    "Several files for note %s: %s and %s",
                    note.id,
                    current.file_path,
                    note.file_path,
                )
                if _age(note.updated_at) <= _age(current.updated_at):
                    continue
            loaded[note.id] = note
        return list(loaded.values())

    async def load_all(self, state: NotesState) -> NotesState:
        """Replace the collection with the notes stored on the server.

        Files that fail to load are skipped. When the server has no notes a
        welcome note is created and saved.
        """
        try:
            notes = await self._load_notes()
        except _REQUEST_ERRORS as e:
            logger.error("Error loading notes: %s", e)
            return replace(state, status=_failure("Failed to load notes from server"))

        if notes:
            logger.info("Loaded %d notes", len(notes))
            return NotesState(
                notes=notes,
                active=notes[0],
                status=StatusMessage(f"Loaded {len(notes)} notes"),
            )

        now = now_timestamp()
        welcome = Note(
            id=new_note_id(),
            title=WELCOME_TITLE,
            content=WELCOME_CONTENT,
            created_at=now,
            updated_at=now,
        )
        try:
            welcome = await save_note(self._api, welcome)
            status = StatusMessage("Created welcome note")
        except _REQUEST_ERRORS as e:
            logger.error("Error saving welcome note: %s", e)
            status = _failure("Failed to save welcome note")
        return NotesState(notes=[welcome], active=welcome, status=status)

    async def create(self, state: NotesState) -> NotesState:
        """Add an empty note at the front, select it and save it.

        A failed save is reported in the status; the note stays in memory.
        """
        now = now_timestamp()
        note = Note(
            id=new_note_id(state.ids),
            title=NEW_NOTE_TITLE,
            content="",
            created_at=now,
            updated_at=now,
        )
        try:
            note = await save_note(self._api, note)
            status = StatusMessage("New note created")
        except _REQUEST_ERRORS as e:
            logger.error("Error creating note: %s", e)
            status = _failure("Failed to save new note")
        return NotesState(notes=[note, *state.notes], active=note, status=status)

    async def update(self, state: NotesState, note: Note) -> NotesState:
        """Stamp ``updated_at``, replace the stored copy and save it.

        A failed save is reported in the status; the in-memory change is kept.

        Raises:
            UnknownNoteError: ``note.id`` is not in the collection.
        """
        if state.get(note.id) is None:
            raise UnknownNoteError(note.id)

        updated = note.model_copy(update={"updated_at": stamp_after(note.created_at)})
        try:
            updated = await save_note(self._api, updated)
            status = StatusMessage("Note saved")
        except _REQUEST_ERRORS as e:
            logger.error("Error saving note %s: %s", note.id, e)
            status = _failure("Failed to save note")

        notes = [updated if n.id == note.id else n for n in state.notes]
        return NotesState(notes=notes, active=updated, status=status)

    async def delete(self, state: NotesState, note_id: str) -> NotesState:
        """Delete a note on the server, then drop it from the collection.

        The server is asked for the title-derived file name and falls back to
        a scan by id. Server failures propagate and leave ``state`` untouched.

        Raises:
            UnknownNoteError: ``note_id`` is not in the collection.
            NotesAPIError: The server refused the delete (e.g. 404).
        """
        target = state.get(note_id)
        if target is None:
            raise UnknownNoteError(note_id)

        await self._api.delete_note(delete_filename_for(note_id, target.title))

        remaining = [n for n in state.notes if n.id != note_id]
        active = state.active
        if active is not None and active.id == note_id:
            active = remaining[0] if remaining else None
        logger.info("Deleted note %s", note_id)
        return NotesState(notes=remaining, active=active, status=StatusMessage("Note deleted"))
