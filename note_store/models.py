"""Pydantic models for the flat-file note store."""

from __future__ import annotations

import time
from collections.abc import Collection
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

FileType = Literal["cat", "txt"]


def now_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. ``2026-01-02T03:04:05.678Z``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Returns None for anything that does not parse.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def stamp_after(earliest: str) -> str:
    """The current timestamp, or ``earliest`` if that lies in the future."""
    now = now_timestamp()
    floor = parse_timestamp(earliest)
    if floor is not None and floor > parse_timestamp(now):
        return earliest
    return now


def new_note_id(existing: Collection[str] = ()) -> str:
    """Return a millisecond-based id that does not collide with ``existing``."""
    candidate = time.time_ns() // 1_000_000
    while str(candidate) in existing:
        candidate += 1
    return str(candidate)


class Note(BaseModel):
    """A single note and its on-disk metadata."""

    id: str = Field(default_factory=new_note_id)
    title: str = Field(default="", description="Display title, may be empty")
    content: str = Field(default="", description="Free-form note body")
    created_at: str = Field(
        default_factory=now_timestamp,
        description="ISO-8601 creation timestamp",
    )
    updated_at: str = Field(
        default_factory=now_timestamp,
        description="ISO-8601 last update timestamp",
    )
    file_path: str | None = Field(
        default=None, description="Server path once persisted, e.g. /notes/x.cat"
    )
    file_type: FileType = "cat"


class SaveNoteRequest(BaseModel):
    """Body of ``POST /api/save-note``. Fields are optional so the handler can
    answer missing values with a 400 instead of a validation error."""

    filename: str | None = None
    content: str | None = None


class DeleteNoteRequest(BaseModel):
    """Body of ``DELETE /api/delete-note``."""

    filename: str | None = None
