# workclock/main.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from workclock.api.routes import health, host, roster, settings as settings_routes
from workclock.core.config import Settings, get_settings
from workclock.core.logging import configure_logging
from workclock.db.session import build_engine, build_session_factory, init_db
from workclock.services.directory_client import MondayClient
from workclock.services.notifier import Notifier
from workclock.services.preferences_service import PreferencesService
from workclock.services.preferences_store import PreferencesStore

logger = logging.getLogger(__name__)


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Composition root: every collaborator is built here, stored on
        app.state and torn down on shutdown.
        """
        engine = build_engine(settings.DB_URL)
        await init_db(engine)

        notifier = Notifier()
        store = PreferencesStore(build_session_factory(engine))
        directory = MondayClient.from_settings(settings)

        app.state.settings = settings
        app.state.notifier = notifier
        app.state.preferences = PreferencesService(
            store=store,
            notifier=notifier,
            key=settings.PREFERENCES_KEY,
        )
        app.state.directory = directory

        if directory is None:
            logger.info("MONDAY_API_TOKEN not set; board rosters are disabled")

        try:
            yield
        finally:
            if directory is not None:
                await directory.aclose()
            await engine.dispose()

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory for the WorkClock service.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Resolves, for the people assigned on a board, their current presence\n"
            "status (working / last hour / off) and local time from a default work\n"
            "schedule and per-person overrides, with sorting, filtering and paging."
        ),
        version="0.1.0",
        lifespan=_lifespan(settings),
    )

    # Routers
    app.include_router(health.router)
    app.include_router(roster.router)
    app.include_router(settings_routes.router)
    app.include_router(host.router)

    return app
