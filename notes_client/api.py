"""Thin async HTTP client for the notes API.

Every method returns parsed data or raises. Non-2xx responses become
NotesAPIError; transport problems surface as httpx.HTTPError.
"""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import quote

import httpx

BASE_URL = os.getenv("NOTES_API_URL", "http://localhost:3001")


class NotesAPIError(Exception):
    """The notes API answered with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def raise_for_status(resp: httpx.Response) -> None:
    """Raise NotesAPIError carrying the server's ``error`` text for a non-2xx response."""
    if resp.is_success:
        return
    try:
        message = resp.json().get("error") or resp.reason_phrase
    except (ValueError, AttributeError):
        message = resp.reason_phrase
    raise NotesAPIError(resp.status_code, message)


class NotesAPI:
    """Wraps an ``httpx.AsyncClient`` pointed at the notes API."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"))

    async def __aenter__(self) -> NotesAPI:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_notes(self) -> list[str]:
        """GET /api/list-notes — names of the stored .cat files."""
        resp = await self._client.get("/api/list-notes")
        raise_for_status(resp)
        notes = resp.json().get("notes")
        return notes if isinstance(notes, list) else []

    async def fetch_note(self, filename: str) -> bytes:
        """GET /notes/{filename} — raw file content."""
        resp = await self._client.get(f"/notes/{quote(filename)}")
        raise_for_status(resp)
        return resp.content

    async def save_note(self, filename: str, content: str) -> str:
        """POST /api/save-note — returns the server path of the written file."""
        resp = await self._client.post(
            "/api/save-note",
            json={"filename": filename, "content": content},
        )
        raise_for_status(resp)
        return resp.json()["filePath"]

    async def delete_note(self, filename: str) -> None:
        """DELETE /api/delete-note."""
        resp = await self._client.request(
            "DELETE",
            "/api/delete-note",
            json={"filename": filename},
        )
        raise_for_status(resp)
