# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from tataru.config import EngineSettings
from tataru.engine import TataruEngine
from tataru.errors import Cancelled, StoreError

from . import __version__
from .api import router as api_router
from .settings import MarketApiSettings

logger = logging.getLogger(__name__)


def create_app(
    engine: Optional[TataruEngine] = None,
    *,
    settings_path: Optional[Path] = None,
    snapshot_path: Optional[Path] = None,
    root_path: str = "",
    cors_allow_origins: Optional[Sequence[str]] = None,
    gzip_minimum_size: int = 800,
) -> FastAPI:
    """FastAPI app factory.

    Without an explicit engine, one is built from the engine settings (or
    from `snapshot_path` for offline runs).
    """

    rp = MarketApiSettings.normalize_root_path(root_path)

    app = FastAPI(
        title="Tataru MarketAPI",
        version=__version__,
        root_path=rp,
        docs_url="/docs",
        redoc_url=None,
    )

    # state
    if engine is None:
        settings = EngineSettings.load(Path(settings_path) if settings_path else None)
        engine = TataruEngine.from_settings(settings, snapshot=snapshot_path)
    app.state.engine = engine

    # middleware
    if gzip_minimum_size and gzip_minimum_size > 0:
        app.add_middleware(GZipMiddleware, minimum_size=int(gzip_minimum_size))

    if cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_allow_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # errors
    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.warning("store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": f"catalog store unavailable: {exc}"})

    @app.exception_handler(Cancelled)
    async def _cancelled(request: Request, exc: Cancelled) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def _invalid(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # routes
    app.include_router(api_router)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.engine.close()

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app
