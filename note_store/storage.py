"""Directory-backed storage: one ``.cat`` file per note."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from .errors import InvalidFilenameError, NoteNotFoundError
from .filenames import CAT_SUFFIX, resolve_note_file

logger = logging.getLogger("note_store.storage")

DEFAULT_NOTES_DIR = Path("public") / "notes"


def sanitize_filename(filename: str) -> str:
    """Reduce a client-supplied name to its basename.

    Both ``/`` and ``\\`` count as separators. Raises InvalidFilenameError if
    nothing usable is left or the name contains a NUL character.
    """
    if "\x00" in filename:
        raise InvalidFilenameError(f"Invalid filename: {filename!r}")
    name = PurePosixPath(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise InvalidFilenameError(f"Invalid filename: {filename!r}")
    return name


class NoteStorage:
    """Reads and writes note files inside a single flat directory.

    Holds no state besides the directory path; every call works against the
    current directory listing. There is no locking between calls.
    """

    def __init__(self, notes_dir: Path = DEFAULT_NOTES_DIR) -> None:
        self._dir = Path(notes_dir)

    @property
    def notes_dir(self) -> Path:
        return self._dir

    def _target(self, filename: str) -> tuple[str, Path]:
        """Sanitized name and the path it maps to inside the notes directory."""
        name = sanitize_filename(filename)
        path = self._dir / name
        if path.resolve().parent != self._dir.resolve():
            raise InvalidFilenameError(f"Invalid filename: {filename!r}")
        return name, path

    def ensure_dir(self) -> None:
        """Create the notes directory if it is missing."""
        if not self._dir.exists():
            self._dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created notes directory at %s", self._dir)

    def list_notes(self) -> list[str]:
        """Names of all ``.cat`` files, in directory-listing order."""
        if not self._dir.exists():
            return []
        return [
            p.name for p in self._dir.iterdir() if p.name.endswith(CAT_SUFFIX) and p.is_file()
        ]

    def save(self, filename: str, content: str) -> str:
        """Create or overwrite a note file with exactly ``content``.

        The content is written to a temporary file that then replaces the
        target, so a failed save leaves any previous file as it was.

        Returns the sanitized filename. OSError from the write and
        UnicodeEncodeError for content that is not encodable as UTF-8 propagate.
        """
        self.ensure_dir()
        name, path = self._target(filename)
        data = content.encode("utf-8")
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".save-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Saved note to %s", path)
        return name

    def path_for(self, filename: str) -> Path:
        """Path of an existing file in the notes directory."""
        _, path = self._target(filename)
        if not path.is_file():
            raise NoteNotFoundError(filename)
        return path

    def delete(self, filename: str) -> str:
        """Delete a file by exact name, falling back to a scan by note id.

        The exact name may be any regular file in the directory; the id scan
        only looks at ``.cat`` files. Returns the name of the deleted file.

        Raises:
            NoteNotFoundError: Neither the exact name nor any file with the
                same id exists.
        """
        name, _ = self._target(filename)
        match = resolve_note_file(name, lambda n: (self._dir / n).is_file(), self.list_notes)
        if match is None:
            logger.info("No matching files found for %s", name)
            raise NoteNotFoundError(name)
        if match != name:
            logger.info("File %s not found, deleting %s by note id", name, match)
        (self._dir / match).unlink()
        logger.info("Deleted note %s", match)
        return match

    @property
    def count(self) -> int:
        """Number of stored notes."""
        return len(self.list_notes())
