"""Shouyutong - FastAPI application.

This module defines the FastAPI ``app``, all REST routes, and the ``main()``
CLI function that launches the uvicorn server.

Architecture
------------
The API is a thin layer over the core services:

- **Lookup** goes through :class:`~shouyutong.core.orchestrator.SignOrchestrator`:
  library first, text generation on a miss, images only on request.
- **Library persistence** uses :class:`~shouyutong.core.store.EntryStore`
  over a :class:`~shouyutong.core.storage.FileStorage` in ``data_dir``.
- **Curator access** is checked by the store itself.  Each request builds a
  store whose authorizer is bound to the ``X-Curator-Token`` header, so a
  mutation without a valid curator session is refused however it is sent.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Version and suggested words
GET       ``/api/lookup``               Resolve a word (store or generated)
POST      ``/api/lookup/image``         Generate an illustration
POST      ``/api/images/upload``        Turn uploaded bytes into a data URL
POST      ``/api/auth/login``           Curator login, returns a token
POST      ``/api/auth/logout``          Close a curator session
GET       ``/api/auth/status``          Whether the token is a curator
GET       ``/api/library``              Entries, most recent first
GET       ``/api/library/export``       Download the library snapshot
POST      ``/api/library/import``       Replace the library (curator)
POST      ``/api/library``              Commit an entry (curator)
DELETE    ``/api/library/{word}``       Delete an entry (curator)
DELETE    ``/api/library``              Clear the library (curator)
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    shouyutong

Direct invocation::

    python -m shouyutong.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from shouyutong import __version__
from shouyutong.api.models import (
    CommitRequest,
    ImageRequest,
    ImageResponse,
    LibraryResponse,
    LoginRequest,
    LoginResponse,
    LookupResponse,
)
from shouyutong.core.auth import CuratorGate
from shouyutong.core.config import ShouyutongConfig, config
from shouyutong.core.errors import (
    AuthorizationError,
    GenerationError,
    PersistenceError,
    ValidationError,
)
from shouyutong.core.generation import OpenAISignGenerator, SignGenerator
from shouyutong.core.images import validate_data_url
from shouyutong.core.models import PersistedSignEntry
from shouyutong.core.orchestrator import SignOrchestrator
from shouyutong.core.storage import FileStorage, KeyValueStorage
from shouyutong.core.store import EntryStore

logger = logging.getLogger(__name__)

SUGGESTED_WORDS = ["你好", "谢谢", "北京", "学习"]


# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and release the generator's HTTP client on shutdown."""
    logger.info(
        "Shouyutong API started (library key '%s').",
        app.state.config.library_key,
    )

    yield

    close = getattr(app.state.generator, "aclose", None)
    if close is not None:
        await close()
    logger.info("Shouyutong API stopped.")


def create_app(
    app_config: ShouyutongConfig | None = None,
    *,
    storage: KeyValueStorage | None = None,
    generator: SignGenerator | None = None,
    gate: CuratorGate | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration (defaults to the global instance)
        storage: Persistence substrate (defaults to FileStorage in data_dir)
        generator: Content generator (defaults to OpenAISignGenerator)
        gate: Curator gate (defaults to the configured credential)

    Returns:
        Configured FastAPI application
    """
    app_config = app_config or config

    app = FastAPI(
        title="Shouyutong",
        description="Sign language lookup with a curated override library.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.storage = storage or FileStorage(app_config.data_dir)
    app.state.generator = generator or OpenAISignGenerator(app_config)
    app.state.gate = gate or CuratorGate(
        app_config.curator_username, app_config.curator_password
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(_build_router())
    return app


# ---------------------------------------------------------------------------
# Error mapping.
# ---------------------------------------------------------------------------


def _register_error_handlers(app: FastAPI) -> None:
    status_codes = {
        ValidationError: 400,
        AuthorizationError: 401,
        GenerationError: 502,
        PersistenceError: 507,
    }

    def make_handler(status_code: int):
        async def handler(request: Request, exc: Exception) -> JSONResponse:
            logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handler

    for exc_class, status_code in status_codes.items():
        app.add_exception_handler(exc_class, make_handler(status_code))


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_store(
    request: Request,
    x_curator_token: str | None = Header(default=None),
) -> EntryStore:
    """Build a store whose mutations are authorized by the request's token."""
    state = request.app.state
    return EntryStore(
        state.storage,
        key=state.config.library_key,
        authorizer=state.gate.authorizer_for(x_curator_token),
    )


def get_orchestrator(
    request: Request,
    store: EntryStore = Depends(get_store),
) -> SignOrchestrator:
    return SignOrchestrator(store, request.app.state.generator)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


def _build_router() -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.get("/config")
    async def get_config() -> dict:
        """Return the version and the words suggested on the start page."""
        return {"version": __version__, "suggestedWords": SUGGESTED_WORDS}

    @router.get("/lookup", response_model=LookupResponse)
    async def lookup(
        word: str,
        orchestrator: SignOrchestrator = Depends(get_orchestrator),
    ) -> LookupResponse:
        """Resolve a word: library entry if present, generated text otherwise.

        Raises:
            HTTPException: 400 for an empty word.  Generation failures map to 502.
        """
        resolution = await orchestrator.resolve(word)
        if resolution is None:
            raise HTTPException(status_code=400, detail="word is required")
        return LookupResponse(
            entry=resolution.entry.content(),
            image_url=resolution.image,
            provenance=resolution.provenance,
        )

    @router.post("/lookup/image", response_model=ImageResponse)
    async def generate_image(
        req: ImageRequest,
        orchestrator: SignOrchestrator = Depends(get_orchestrator),
    ) -> ImageResponse:
        """Generate an illustration for a word and its movement description."""
        image = await orchestrator.generate_image(req.word, req.movement)
        return ImageResponse(word=req.word.strip(), image_url=image)

    @router.post("/images/upload")
    async def upload_image(
        request: Request,
        orchestrator: SignOrchestrator = Depends(get_orchestrator),
    ) -> dict:
        """Accept raw image bytes as the request body and return a data URL."""
        data = await request.body()
        return {"imageUrl": orchestrator.upload_image(data)}

    # --- Curator session ---------------------------------------------------

    @router.post("/auth/login", response_model=LoginResponse)
    async def login(req: LoginRequest, request: Request) -> LoginResponse:
        token = request.app.state.gate.login(req.username, req.password)
        if token is None:
            raise HTTPException(status_code=401, detail="Invalid username or password")
        return LoginResponse(token=token)

    @router.post("/auth/logout")
    async def logout(
        request: Request,
        x_curator_token: str | None = Header(default=None),
    ) -> dict:
        return {"success": request.app.state.gate.logout(x_curator_token)}

    @router.get("/auth/status")
    async def auth_status(
        request: Request,
        x_curator_token: str | None = Header(default=None),
    ) -> dict:
        return {"authenticated": request.app.state.gate.is_authenticated(x_curator_token)}

    # --- Library -----------------------------------------------------------

    @router.get("/library", response_model=LibraryResponse)
    async def list_library(store: EntryStore = Depends(get_store)) -> LibraryResponse:
        """Return all curated entries, most recently saved first."""
        entries = store.list_entries()
        return LibraryResponse(total=len(entries), entries=entries)

    @router.get("/library/export")
    async def export_library(store: EntryStore = Depends(get_store)) -> Response:
        """Download the library as a re-importable JSON snapshot."""
        filename = f"shouyutong_library_{date.today().isoformat()}.json"
        return Response(
            content=store.export_data(),
            media_type="application/json; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @router.post("/library/import")
    async def import_library(request: Request, store: EntryStore = Depends(get_store)) -> dict:
        """Replace the library with the snapshot sent as the request body.

        Raises:
            HTTPException: 400 if the body is not a valid snapshot (the
                library is left unchanged).
        """
        body = await request.body()
        try:
            content = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HTTPException(status_code=400, detail="Snapshot must be UTF-8 text") from e

        if not store.import_data(content):
            raise HTTPException(status_code=400, detail="Import failed, check the file format")
        return {"success": True, "total": len(store.get_library())}

    @router.post("/library", response_model=PersistedSignEntry)
    async def commit_entry(
        req: CommitRequest,
        orchestrator: SignOrchestrator = Depends(get_orchestrator),
    ) -> PersistedSignEntry:
        """Save an edited entry and its image to the library."""
        if not orchestrator.store.authorizer():
            raise AuthorizationError("Not authorized to save library entries")
        image = validate_data_url(req.image_url) if req.image_url else None
        return orchestrator.commit(req.entry, image)

    @router.delete("/library/{word}")
    async def delete_entry(word: str, store: EntryStore = Depends(get_store)) -> dict:
        if not store.delete_word(word):
            raise HTTPException(status_code=404, detail="Entry not found")
        return {"success": True, "deleted": word}

    @router.delete("/library")
    async def clear_library(store: EntryStore = Depends(get_store)) -> dict:
        store.clear_all()
        return {"success": True}

    return router


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~shouyutong.core.config.config`
    (``SHOUYUTONG_SERVER_HOST`` and ``SHOUYUTONG_SERVER_PORT``).

    This function is registered as the ``shouyutong`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    uvicorn.run(
        "shouyutong.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
