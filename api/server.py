"""FastAPI application serving the media tree, thumbnails and UI config."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Body, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from catalog import CatalogEntry, DirectoryReadError, UnsafePathError, build_catalog, list_directory, resolve_within
from core.settings import DEFAULT_SETTINGS, load_settings, save_settings, video_extensions

from .models import CatalogEntryModel, SaveConfigResponse, UIConfig

LOGGER = logging.getLogger("vidgrid.api")


@dataclass(slots=True)
class APIServerConfig:
    """Runtime configuration for the FastAPI application."""

    library_root: Path
    thumbs_dir: Path
    working_dir: Path
    settings: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SETTINGS))
    public_dir: Optional[Path] = None
    cors_origins: Sequence[str] = ()
    app_version: str = "dev"

    @property
    def extensions(self) -> frozenset[str]:
        return video_extensions(self.settings)


def _entries_payload(entries: List[CatalogEntry]) -> List[Dict[str, Any]]:
    return [entry.as_dict() for entry in entries]


def create_app(config: APIServerConfig) -> FastAPI:
    """Create a FastAPI application bound to the given configuration."""

    app = FastAPI(
        title="VidGrid",
        version=config.app_version,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )

    allowed_origins: List[str] = [origin for origin in config.cors_origins if origin]
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    library_root = Path(config.library_root).resolve()
    thumbs_dir = Path(config.thumbs_dir).resolve()
    working_dir = Path(config.working_dir)
    extensions = config.extensions
    config_lock = threading.Lock()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[override]
        start = time.perf_counter()
        response: Optional[Response] = None
        client_host = request.client.host if request.client else None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            status_code = response.status_code if response is not None else 500
            LOGGER.info(
                "%s %s -> %s (%.1f ms) ip=%s",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
                client_host or "-",
            )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request: Request, exc: HTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid parameters", "details": exc.errors()},
        )

    def serve_file(root: Path, relative: str) -> FileResponse:
        try:
            target = resolve_within(root, relative)
        except UnsafePathError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        if not target.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        return FileResponse(target)

    @app.get("/api/list", response_model=List[CatalogEntryModel])
    def list_path(
        path: str = Query("", description="Directory path relative to the library root."),
    ) -> List[Dict[str, Any]]:
        try:
            entries = list_directory(library_root, path, extensions)
        except UnsafePathError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        except DirectoryReadError as exc:
            LOGGER.warning("Listing failed: %s", exc)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        return _entries_payload(entries)

    @app.get("/api/catalog", response_model=List[CatalogEntryModel])
    def catalog() -> List[Dict[str, Any]]:
        try:
            entries = build_catalog(library_root, extensions)
        except DirectoryReadError as exc:
            LOGGER.error("Catalog failed: %s", exc)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Catalog Error")
        return _entries_payload(entries)

    @app.get("/thumbs/{file_path:path}")
    def thumbnail(file_path: str) -> FileResponse:
        return serve_file(thumbs_dir, file_path)

    @app.get("/videos/{file_path:path}")
    def video(file_path: str) -> FileResponse:
        return serve_file(library_root, file_path)

    @app.get("/api/config")
    def get_config() -> Dict[str, Any]:
        settings = load_settings(working_dir)
        ui = settings.get("ui") if isinstance(settings.get("ui"), dict) else {}
        try:
            return UIConfig(**ui).model_dump()
        except ValidationError as exc:
            LOGGER.warning("Stored UI config is invalid, serving defaults: %s", exc)
            return UIConfig().model_dump()

    @app.post("/api/config", response_model=SaveConfigResponse)
    def update_config(payload: Dict[str, Any] = Body(...)) -> SaveConfigResponse:
        try:
            ui = UIConfig(**payload)
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        try:
            with config_lock:
                settings = load_settings(working_dir)
                settings["ui"] = ui.model_dump()
                save_settings(settings, working_dir)
        except OSError as exc:
            LOGGER.error("Error saving config: %s", exc)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error saving config")
        return SaveConfigResponse(success=True)

    public_dir = config.public_dir
    if public_dir is not None and Path(public_dir).is_dir():
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")

    return app


__all__ = [
    "APIServerConfig",
    "create_app",
]
