"""Tests for the notes HTTP API (notes_api.main) using FastAPI's TestClient."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from note_store.storage import NoteStorage
from notes_api.main import create_app

CAT_TEXT = (
    "TITLE: Hello World\n"
    "CREATED: 2026-10-19T08:00:00.000Z\n"
    "UPDATED: 2026-10-19T08:00:00.000Z\n"
    "---\n"
)


@pytest.fixture()
def notes_dir(tmp_path: Path) -> Path:
    return tmp_path / "notes"


@pytest.fixture()
def storage(notes_dir: Path) -> NoteStorage:
    return NoteStorage(notes_dir)


@pytest.fixture()
def client(storage: NoteStorage):
    """TestClient around an app storing notes in a temp directory."""
    with TestClient(create_app(storage)) as c:
        yield c


def _delete(client: TestClient, body: dict):
    return client.request("DELETE", "/api/delete-note", json=body)


class TestLifespan:
    def test_startup_creates_notes_dir(self, client: TestClient, notes_dir: Path):
        assert notes_dir.is_dir()


class TestListNotes:
    def test_empty(self, client: TestClient):
        resp = client.get("/api/list-notes")
        assert resp.status_code == 200
        assert resp.json() == {"notes": []}

    def test_only_cat_files(self, client: TestClient, notes_dir: Path):
        (notes_dir / "a-1.cat").write_text("x")
        (notes_dir / "notes.txt").write_text("x")
        assert client.get("/api/list-notes").json() == {"notes": ["a-1.cat"]}

    def test_io_error_returns_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom():
            raise PermissionError("denied")

        monkeypatch.setattr(storage, "list_notes", boom)
        resp = client.get("/api/list-notes")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to list notes"}

    def test_unexpected_error_returns_json_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom():
            raise RuntimeError("listing exploded")

        monkeypatch.setattr(storage, "list_notes", boom)
        resp = client.get("/api/list-notes")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to list notes"}


class TestSaveNote:
    def test_saves_file(self, client: TestClient, notes_dir: Path):
        resp = client.post(
            "/api/save-note",
            json={"filename": "hello_world-1.cat", "content": CAT_TEXT},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "filePath": "/notes/hello_world-1.cat"}
        assert (notes_dir / "hello_world-1.cat").read_text(encoding="utf-8") == CAT_TEXT

    def test_filename_sanitized(self, client: TestClient, notes_dir: Path, tmp_path: Path):
        resp = client.post(
            "/api/save-note",
            json={"filename": "../../outside-1.cat", "content": "x"},
        )
        assert resp.status_code == 200
        assert resp.json()["filePath"] == "/notes/outside-1.cat"
        assert (notes_dir / "outside-1.cat").exists()
        assert not (tmp_path / "outside-1.cat").exists()

    @pytest.mark.parametrize(
        "body",
        [
            {"content": "x"},
            {"filename": "", "content": "x"},
            {"filename": "a-1.cat"},
            {},
        ],
    )
    def test_missing_fields(self, client: TestClient, body: dict):
        resp = client.post("/api/save-note", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Filename and content are required"}

    def test_unusable_filename(self, client: TestClient):
        resp = client.post("/api/save-note", json={"filename": "..", "content": "x"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_malformed_body(self, client: TestClient):
        resp = client.post(
            "/api/save-note",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_wrong_field_type(self, client: TestClient):
        resp = client.post("/api/save-note", json={"filename": ["a"], "content": "x"})
        assert resp.status_code == 400

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root ignores directory permissions",
    )
    def test_io_error_returns_500(self, client: TestClient, notes_dir: Path):
        notes_dir.chmod(0o500)
        try:
            resp = client.post("/api/save-note", json={"filename": "x-1.cat", "content": "x"})
        finally:
            notes_dir.chmod(0o700)
        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Failed to save note:")

    def test_io_error_returns_500_when_write_fails(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom(filename, content):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(storage, "save", boom)
        resp = client.post("/api/save-note", json={"filename": "x-1.cat", "content": "x"})
        assert resp.status_code == 500
        assert "No space left on device" in resp.json()["error"]

    def test_unencodable_content_keeps_previous_file(self, client: TestClient, notes_dir: Path):
        (notes_dir / "a-1.cat").write_text("precious", encoding="utf-8")
        resp = client.post(
            "/api/save-note",
            content=b'{"filename": "a-1.cat", "content": "x\\ud800"}',
            headers={"Content-Type": "application/json"},
        )
        # A lone surrogate is refused either by body validation or by the encoder
        assert resp.status_code in (400, 500)
        assert "error" in resp.json()
        assert (notes_dir / "a-1.cat").read_text(encoding="utf-8") == "precious"

    def test_unexpected_error_returns_json_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom(filename, content):
            raise RuntimeError("disk controller on fire")

        monkeypatch.setattr(storage, "save", boom)
        resp = client.post("/api/save-note", json={"filename": "x-1.cat", "content": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to save note: disk controller on fire"}

    def test_nul_in_filename(self, client: TestClient, notes_dir: Path):
        resp = client.post("/api/save-note", json={"filename": "a\u0000-1.cat", "content": "x"})
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert list(notes_dir.iterdir()) == []


class TestDeleteNote:
    def test_exact(self, client: TestClient, notes_dir: Path):
        (notes_dir / "hello_world-1.cat").write_text(CAT_TEXT)
        resp = _delete(client, {"filename": "hello_world-1.cat"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert not (notes_dir / "hello_world-1.cat").exists()

    def test_fallback_by_id(self, client: TestClient, notes_dir: Path):
        (notes_dir / "my_title-42.cat").write_text(CAT_TEXT)
        resp = _delete(client, {"filename": "42.cat"})
        assert resp.status_code == 200
        assert client.get("/api/list-notes").json() == {"notes": []}

    def test_not_found(self, client: TestClient):
        resp = _delete(client, {"filename": "nothing-9.cat"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "File not found"}

    def test_missing_filename(self, client: TestClient):
        resp = _delete(client, {})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Filename is required"}

    def test_io_error_returns_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom(filename):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(storage, "delete", boom)
        resp = _delete(client, {"filename": "x-1.cat"})
        assert resp.status_code == 500
        assert "read-only file system" in resp.json()["error"]

    def test_non_cat_file_by_exact_name(self, client: TestClient, notes_dir: Path):
        (notes_dir / "todo.txt").write_text("buy milk")
        resp = _delete(client, {"filename": "todo.txt"})
        assert resp.status_code == 200
        assert not (notes_dir / "todo.txt").exists()

    def test_nul_in_filename(self, client: TestClient):
        resp = _delete(client, {"filename": "a\u0000-1.cat"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_unexpected_error_returns_json_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom(filename):
            raise ValueError("bad path")

        monkeypatch.setattr(storage, "delete", boom)
        resp = _delete(client, {"filename": "x-1.cat"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to delete note: bad path"}


class TestServeNote:
    def test_returns_raw_content(self, client: TestClient, notes_dir: Path):
        (notes_dir / "hello_world-1.cat").write_bytes(CAT_TEXT.encode("utf-8"))
        resp = client.get("/notes/hello_world-1.cat")
        assert resp.status_code == 200
        assert resp.content == CAT_TEXT.encode("utf-8")
        assert resp.headers["content-type"].startswith("text/plain")

    def test_missing(self, client: TestClient):
        assert client.get("/notes/missing-1.cat").status_code == 404

    def test_nul_in_filename(self, client: TestClient):
        resp = client.get("/notes/a%00-1.cat")
        assert resp.status_code == 404
        assert resp.json() == {"error": "File not found"}

    def test_unexpected_error_returns_json_500(self, client: TestClient, storage: NoteStorage, monkeypatch):
        def boom(filename):
            raise RuntimeError("stat failed")

        monkeypatch.setattr(storage, "path_for", boom)
        resp = client.get("/notes/x-1.cat")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to read note: stat failed"}


class TestServiceEndpoints:
    def test_health(self, client: TestClient, notes_dir: Path):
        (notes_dir / "a-1.cat").write_text("x")
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["server"] == "notes-api"
        assert data["total_notes"] == 1
        assert "timestamp" in data

    def test_metrics(self, client: TestClient):
        client.get("/api/list-notes")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "notes_operations_total" in resp.text
        assert "notes_http_requests_total" in resp.text
