"""Exceptions raised by the note store."""


class NoteStoreError(Exception):
    """Base class for note store failures."""


class InvalidFilenameError(NoteStoreError, ValueError):
    """The client supplied a filename that does not name a file in the notes directory."""


class NoteNotFoundError(NoteStoreError):
    """No file matched, neither by exact name nor by note id."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"File not found: {filename}")
        self.filename = filename


class NoteDecodeError(NoteStoreError):
    """A note file could not be turned into a Note."""
