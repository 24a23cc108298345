from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcqgen.config import Settings, load_settings
from mcqgen.logs import configure_logging
from mcqgen.paths import find_repo_root

from .routes import router as api_router
from .sse_routes import router as sse_router


def create_app(settings: Settings | None = None, *, root: Path | None = None) -> FastAPI:
    if settings is None:
        settings = load_settings(root or find_repo_root())
    configure_logging(settings.log_level)

    app = FastAPI(title="mcqgen api", version="0.1.0")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(sse_router)
    return app


app = create_app()
