"""FastAPI application serving the flat-file note store.

Endpoints:
  GET    /api/list-notes    — Names of all stored .cat files
  POST   /api/save-note     — Create or overwrite a note file
  DELETE /api/delete-note   — Delete a note file (exact name, then by note id)
  GET    /notes/{filename}  — Raw content of a stored note file
  GET    /health            — Server health and note count
  GET    /metrics           — Prometheus metrics
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from note_store.errors import InvalidFilenameError, NoteNotFoundError
from note_store.models import DeleteNoteRequest, SaveNoteRequest
from note_store.storage import NoteStorage
from notes_api.config import settings
from notes_api.metrics import (
    HTTP_DURATION,
    HTTP_REQUESTS,
    NOTE_OPERATIONS,
    STORED_NOTES,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Endpoints excluded from HTTP metrics
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request count and duration for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with timing and counting."""
        path = request.url.path
        if path in _METRICS_EXCLUDE:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        # Label by route template so /notes/{filename} stays a single series
        route = request.scope.get("route")
        endpoint = getattr(route, "path", path)
        HTTP_REQUESTS.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_DURATION.labels(endpoint=endpoint).observe(elapsed)
        return response


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(storage: NoteStorage | None = None) -> FastAPI:
    """Create the API around ``storage`` (defaults to the configured notes directory)."""
    store = storage or NoteStorage(settings.notes_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: make sure the notes directory exists."""
        store.ensure_dir()
        logger.info("Notes directory: %s", store.notes_dir)
        yield
        logger.info("Notes API shut down.")

    app = FastAPI(title="Notes API", version="1.0.0", lifespan=lifespan)
    app.state.storage = store

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed bodies as 400 with the usual error shape."""
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return _error(400, "Invalid request body")

    # --- Note endpoints ---

    @app.get("/api/list-notes")
    async def list_notes() -> Any:
        """List every stored .cat file."""
        try:
            notes = store.list_notes()
        except Exception as e:
            logger.error("Error listing notes: %s", e)
            NOTE_OPERATIONS.labels(operation="list", status="error").inc()
            return _error(500, "Failed to list notes")
        NOTE_OPERATIONS.labels(operation="list", status="success").inc()
        STORED_NOTES.set(len(notes))
        logger.info("Found %d notes in %s", len(notes), store.notes_dir)
        return {"notes": notes}

    @app.post("/api/save-note")
    async def save_note(request: SaveNoteRequest) -> Any:
        """Write a note file, overwriting any file with the same name."""
        if not request.filename or request.content is None:
            NOTE_OPERATIONS.labels(operation="save", status="invalid").inc()
            return _error(400, "Filename and content are required")
        try:
            name = store.save(request.filename, request.content)
        except InvalidFilenameError as e:
            NOTE_OPERATIONS.labels(operation="save", status="invalid").inc()
            return _error(400, str(e))
        except Exception as e:
            logger.error("Error saving note %s: %s", request.filename, e)
            NOTE_OPERATIONS.labels(operation="save", status="error").inc()
            return _error(500, f"Failed to save note: {e}")
        NOTE_OPERATIONS.labels(operation="save", status="success").inc()
        return {"success": True, "filePath": f"/notes/{name}"}

    @app.delete("/api/delete-note")
    async def delete_note(request: DeleteNoteRequest) -> Any:
        """Delete a note file by name, or by the note id embedded in the name."""
        if not request.filename:
            logger.info("Delete request without filename")
            NOTE_OPERATIONS.labels(operation="delete", status="invalid").inc()
            return _error(400, "Filename is required")
        try:
            store.delete(request.filename)
        except InvalidFilenameError as e:
            NOTE_OPERATIONS.labels(operation="delete", status="invalid").inc()
            return _error(400, str(e))
        except NoteNotFoundError:
            NOTE_OPERATIONS.labels(operation="delete", status="not_found").inc()
            return _error(404, "File not found")
        except Exception as e:
            logger.error("Error deleting note %s: %s", request.filename, e)
            NOTE_OPERATIONS.labels(operation="delete", status="error").inc()
            return _error(500, f"Failed to delete note: {e}")
        NOTE_OPERATIONS.labels(operation="delete", status="success").inc()
        return {"success": True}

    @app.get("/notes/{filename}")
    async def read_note(filename: str) -> Response:
        """Serve the raw content of a stored note file."""
        try:
            path = store.path_for(filename)
        except (InvalidFilenameError, NoteNotFoundError):
            NOTE_OPERATIONS.labels(operation="read", status="not_found").inc()
            return _error(404, "File not found")
        except Exception as e:
            logger.error("Error reading note %s: %s", filename, e)
            NOTE_OPERATIONS.labels(operation="read", status="error").inc()
            return _error(500, f"Failed to read note: {e}")
        NOTE_OPERATIONS.labels(operation="read", status="success").inc()
        return FileResponse(path, media_type="text/plain")

    # --- Service endpoints ---

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Check that the notes directory is readable."""
        try:
            total = store.count
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return {"status": "unhealthy", "server": "notes-api", "error": str(e)}
        return {
            "status": "healthy",
            "server": "notes-api",
            "total_notes": total,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting notes API on port %d ...", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
