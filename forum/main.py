"""Forum API — FastAPI application factory and process entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - API handlers go through HandlerRegistry; the registry is frozen once mounted
    - /data/ is served before the frontend mount so it takes precedence
    - Database initialized and schema created on startup via lifespan
    - Listener startup failure propagates out of run() (fatal)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from forum.api.auth import AuthenticationResolver
from forum.api.dispatch import HandlerRegistry
from forum.api.error_handlers import register_error_handlers
from forum.api.routes import data
from forum.config import Settings, get_settings
from forum.infrastructure.database import init_db
from forum.infrastructure.listener import serve
from forum.infrastructure.observability import setup_logging
from forum.infrastructure.sessions import get_session_store
from forum.services.handle_account import HANDLERS

logger = logging.getLogger(__name__)


def build_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    registry.register_all(HANDLERS)
    return registry


def create_app(
    settings: Settings | None = None, registry: HandlerRegistry | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    registry = registry or build_registry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        manager = init_db(
            settings.resolved_database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        await manager.create_schema()
        logger.info("Forum API started")
        yield
        await manager.close()
        logger.info("Forum API shutting down")

    app = FastAPI(
        title="Forum API", version="1.0.0", lifespan=lifespan,
        docs_url=None, redoc_url=None, openapi_url=None,
    )
    app.state.settings = settings
    app.state.static_root = settings.static_root

    register_error_handlers(app)

    # API handlers, then data files, then the frontend bundle
    resolver = AuthenticationResolver(get_session_store(), settings.session_cookie)
    registry.mount(app, resolver, settings.handler_timeout_seconds)
    app.include_router(data.router)

    if settings.web_root.is_dir():
        app.mount("/", StaticFiles(directory=settings.web_root, html=True), name="web")

    return app


def run() -> None:
    """Console entry point: configure logging, build the app, block on the listener."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info("Forum server starting")
    serve(create_app(settings), settings)


if __name__ == "__main__":
    run()
