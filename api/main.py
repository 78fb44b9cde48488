"""
Notes Status - Main entry point

Lifecycle: starting -> serving -> draining -> stopped.
uvicorn owns the listener and SIGINT/SIGTERM; on a signal it stops accepting
connections and waits up to SHUTDOWN_TIMEOUT seconds for in-flight requests.
Only then does the lifespan shutdown run, so "draining" here is the phase
that drains the database side (waits out a pool init in flight and closes
the pool), not the HTTP side.
"""
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates

from lib.db import Database
from lib.logging import get_logger, setup_logging
from lib.settings import Settings, settings as default_settings
from api.middleware.logging import install_logging
from api.routes.health import router as health_router
from api.routes.notes import ACTION_METHODS, router as notes_router

TEMPLATES_DIR = Path(__file__).parent / "templates"

logger = get_logger()


class Lifecycle(str, Enum):
    STARTING = "starting"
    SERVING = "serving"
    DRAINING = "draining"  # HTTP already drained by uvicorn; closing the pool
    STOPPED = "stopped"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle - connect/disconnect the pool"""
    settings: Settings = app.state.settings
    db: Database = app.state.db
    app.state.lifecycle = Lifecycle.STARTING

    # Non-fatal: requests retry through Database.ensure_pool()
    await db.connect()

    logger.info(
        f"Starting server on :{settings.port} "
        f"(env={settings.environment}, db={settings.describe_db()})"
    )
    app.state.lifecycle = Lifecycle.SERVING
    try:
        yield
    finally:
        app.state.lifecycle = Lifecycle.DRAINING
        logger.info("Shutting down gracefully...")
        await db.disconnect()
        app.state.lifecycle = Lifecycle.STOPPED
        logger.info("Server stopped")


async def not_found():
    return PlainTextResponse("404 page not found", status_code=404)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None
) -> FastAPI:
    """Build the app; the pool is created here and owned by the lifespan"""
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Notes Status",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.db = database if database is not None else Database(settings)
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.lifecycle = Lifecycle.STARTING

    install_logging(app)

    app.include_router(health_router)
    app.include_router(notes_router)
    # Must stay last: everything unmatched (including non-GET on "/") is a 404
    app.add_api_route(
        "/{path:path}",
        not_found,
        methods=ACTION_METHODS,
        include_in_schema=False,
    )
    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=int(default_settings.port),
        timeout_graceful_shutdown=default_settings.shutdown_timeout,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
