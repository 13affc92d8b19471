"""Put notes into a running notes API.

Creates a sample note, a custom note, or imports local .cat/.txt files
through the HTTP API, so the server decides where and how they are stored.
Requires the project to be installed (``pip install -e .``).

Usage:
    python scripts/seed_notes.py --sample
    python scripts/seed_notes.py --title "Groceries" --content "Eggs, milk"
    python scripts/seed_notes.py --import notes/*.cat notes/todo.txt
    python scripts/seed_notes.py --sample --base-url http://localhost:3001
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import httpx

from note_store.codec import encode_note
from note_store.errors import NoteDecodeError
from note_store.filenames import filename_for
from note_store.models import Note, new_note_id, now_timestamp
from notes_client.api import NotesAPIError, raise_for_status
from notes_client.sync import import_note_file

DEFAULT_BASE_URL = "http://localhost:3001"
TIMEOUT = 10

SAMPLE_TITLE = "Sample Note"
SAMPLE_CONTENT = "This is a sample note created by the seed_notes.py script."


def check_health(client: httpx.Client) -> bool:
    """Verify the notes API is reachable and healthy."""
    try:
        resp = client.get("/health")
        return resp.json().get("status") == "healthy"
    except (httpx.HTTPError, ValueError) as e:
        print(f"  Health check failed: {e}")
        return False


def make_note(title: str, content: str, used_ids: set[str]) -> Note:
    """Build a fresh cat note with equal created/updated timestamps."""
    now = now_timestamp()
    note = Note(
        id=new_note_id(used_ids),
        title=title.strip(),
        content=content.strip(),
        created_at=now,
        updated_at=now,
    )
    used_ids.add(note.id)
    return note


def push_note(client: httpx.Client, note: Note) -> str:
    """Save a note through the API and return its server path.

    Raises NotesAPIError with the server's error text on a non-2xx answer.
    """
    resp = client.post(
        "/api/save-note",
        json={"filename": filename_for(note), "content": encode_note(note)},
    )
    raise_for_status(resp)
    return resp.json()["filePath"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed notes into the notes API")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Notes API base URL (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument("--sample", action="store_true", help="Create the sample note")
    parser.add_argument("--title", help="Title of a custom note")
    parser.add_argument("--content", default="", help="Content of a custom note")
    parser.add_argument(
        "--import",
        dest="paths",
        nargs="+",
        type=Path,
        default=[],
        metavar="PATH",
        help="Local .cat or .txt files to import",
    )
    return parser


def collect_notes(args: argparse.Namespace) -> list[Note]:
    """Notes requested on the command line, in the order given."""
    used_ids: set[str] = set()
    notes: list[Note] = []
    if args.sample:
        notes.append(make_note(SAMPLE_TITLE, SAMPLE_CONTENT, used_ids))
    if args.title is not None:
        if not args.title.strip():
            raise ValueError("Title cannot be empty.")
        notes.append(make_note(args.title, args.content, used_ids))
    for path in args.paths:
        note = import_note_file(path, used_ids)
        # txt files become cat notes once they live on the server
        note = note.model_copy(update={"file_type": "cat"})
        used_ids.add(note.id)
        notes.append(note)
    return notes


def main() -> None:
    """Send every requested note to the API."""
    parser = build_parser()
    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    try:
        notes = collect_notes(args)
    except (OSError, ValueError, NoteDecodeError) as e:
        parser.error(str(e))
    if not notes:
        parser.error("nothing to do: pass --sample, --title or --import")

    print(f"\n  Seeding {len(notes)} note(s) via {base_url}")

    failures = 0
    with httpx.Client(base_url=base_url, timeout=TIMEOUT) as client:
        if not check_health(client):
            print("  FAIL: Notes API is not healthy. Is the server running?")
            sys.exit(1)

        for i, note in enumerate(notes, 1):
            try:
                file_path = push_note(client, note)
                print(f"  [{i}/{len(notes)}] Saved '{note.title}' -> {file_path}")
            except (NotesAPIError, httpx.HTTPError) as e:
                failures += 1
                print(f"  [{i}/{len(notes)}] ERROR saving '{note.title}': {e}")

    print(f"\n  Done. {len(notes) - failures} saved, {failures} failed.\n")
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
