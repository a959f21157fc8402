import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from moafinder.config import Settings
from moafinder.core.exceptions import register_exception_handlers
from moafinder.database import build_engine, build_session_factory, create_schema

# Import all models so Base.metadata knows about them
import moafinder.auth.models  # noqa: F401
import moafinder.organizations.models  # noqa: F401
import moafinder.locations.models  # noqa: F401
import moafinder.tags.models  # noqa: F401
import moafinder.events.models  # noqa: F401
import moafinder.notes.models  # noqa: F401

logger = logging.getLogger(__name__)


async def init_database(application: FastAPI) -> None:
    """Create the engine and session factory on ``application.state``."""
    settings = application.state.settings

    if settings.is_sqlite and ":memory:" not in settings.database_url:
        db_path = settings.database_url.split("///")[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = build_engine(settings.database_url)

    # Auto-create tables for SQLite in development
    if settings.is_sqlite:
        await create_schema(engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))

    application.state.engine = engine
    application.state.session_factory = build_session_factory(engine)


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = application.state.settings
    await init_database(application)

    from moafinder.core.scheduler import setup_scheduler, shutdown_scheduler

    setup_scheduler(application.state.session_factory, settings)

    yield

    shutdown_scheduler()
    await application.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    fastapi_app = FastAPI(
        title="MoaFinder",
        description="Neighbourhood directory of events, places and organizations",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.settings = settings

    # CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from moafinder.auth.router import router as auth_router
    from moafinder.events.router import router as events_router
    from moafinder.locations.router import router as locations_router
    from moafinder.notes.router import router as notes_router
    from moafinder.organizations.router import router as organizations_router
    from moafinder.tags.router import router as tags_router

    fastapi_app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    fastapi_app.include_router(events_router, prefix="/api/events", tags=["events"])
    fastapi_app.include_router(locations_router, prefix="/api/locations", tags=["locations"])
    fastapi_app.include_router(notes_router, prefix="/api/notes", tags=["notes"])
    fastapi_app.include_router(
        organizations_router, prefix="/api/organizations", tags=["organizations"]
    )
    fastapi_app.include_router(tags_router, prefix="/api/tags", tags=["tags"])

    # System endpoints
    @fastapi_app.get("/api/system/health")
    async def health(request: Request):
        try:
            async with request.app.state.session_factory() as db:
                await db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Health check could not reach the database")
            return JSONResponse(
                status_code=503,
                content={"data": {"status": "unavailable"}},
            )
        return {"data": {"status": "healthy"}}

    # Register exception handlers
    register_exception_handlers(fastapi_app)

    return fastapi_app


app = create_app()
