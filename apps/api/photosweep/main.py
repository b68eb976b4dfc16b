import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photosweep.api.routes import router
from photosweep.core.config import Settings, get_settings
from photosweep.core.logging import setup_logging
from photosweep.engine.normalizer import load_library
from photosweep.engine.session import CleanerSession
from photosweep.engine.store import InMemoryMediaStore, MediaStore


def create_app(store: MediaStore | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if store is None:
        store = (
            load_library(
                settings.library_manifest_path,
                calendar_timezone=settings.calendar_timezone,
            )
            if settings.library_manifest_path
            else InMemoryMediaStore(calendar_timezone=settings.calendar_timezone)
        )

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.session = CleanerSession(store, settings)
    app.state.cleanup_lock = asyncio.Lock()
    app.include_router(router)
    return app
