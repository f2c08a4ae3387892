"""HTTP API over the listing service.

Thin presentation layer: it maps query parameters onto ListingService.list
and listing errors onto error envelopes. It performs no listing logic.
"""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from dirindex.core.diagnostics import publish_envelope
from dirindex.core.errors import (
    ListingError,
    NotADirectoryError,
    NotFoundError,
    SandboxViolationError,
)
from dirindex.core.logging import get_logger
from dirindex.listing.format import human_size, parent_path
from dirindex.listing.service import ListingService
from dirindex.listing.types import Entry

_logger = get_logger(__name__)

# Path problems share one client-facing message.
_INVALID_PATH_ERRORS = (SandboxViolationError, NotFoundError, NotADirectoryError)


class ListingItem(BaseModel):
    name: str
    path: str
    is_dir: bool
    is_external: bool
    size: int
    size_human: str
    mtime: float
    mime_type: str
    href: str


class ListingResponse(BaseModel):
    path: str
    parent: str | None
    items: list[ListingItem]


def entry_href(entry: Entry) -> str:
    """Link target: external URL, directory navigation, or file download."""
    if entry.is_external:
        return entry.path
    if entry.is_dir:
        return f"?p={quote(entry.path, safe='/')}"
    return f"files/{quote(entry.path.lstrip('/'), safe='/')}"


def to_item(entry: Entry) -> ListingItem:
    return ListingItem(
        name=entry.name,
        path=entry.path,
        is_dir=entry.is_dir,
        is_external=entry.is_external,
        size=entry.size,
        size_human="-" if entry.is_dir else human_size(entry.size),
        mtime=entry.mtime,
        mime_type=entry.mime_type,
        href=entry_href(entry),
    )


def error_envelope(error: ListingError) -> tuple[int, dict[str, Any]]:
    if isinstance(error, _INVALID_PATH_ERRORS):
        return 404, {"error": {"code": error.code, "message": "Invalid path"}}
    return 500, {"error": {"code": error.code, "message": error.message}}


def create_app(service: ListingService) -> FastAPI:
    app = FastAPI(title="dirindex")
    app.state.listing_service = service

    @app.middleware("http")
    async def _emit_route_boundary(request: Request, call_next: Any) -> Any:
        op = f"{request.method} {request.url.path}"
        t0 = time.monotonic()
        publish_envelope("boundary.start", component="web", operation=op, data={})
        response = await call_next(request)
        publish_envelope(
            "boundary.end",
            component="web",
            operation=op,
            data={
                "status_code": int(response.status_code),
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        return response

    @app.exception_handler(ListingError)
    async def _listing_error(request: Request, exc: ListingError) -> JSONResponse:
        status_code, body = error_envelope(exc)
        if status_code >= 500:
            _logger.error(f"{request.url.path}: {exc.code}: {exc.message}")
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # Sync handler: FastAPI runs it in the worker thread pool, so a slow scan
    # does not block other requests.
    @app.get("/api/list", response_model=ListingResponse)
    def api_list(p: str = "", q: str = "", ext: str = "", sort: str = "name") -> ListingResponse:
        rel, entries = service.list_directory(
            p, name_filter=q, extension_filter=ext, sort_key=sort
        )
        return ListingResponse(
            path=rel,
            parent=parent_path(rel) if rel else None,
            items=[to_item(e) for e in entries],
        )

    return app
