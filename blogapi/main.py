import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from blogapi import __version__
from blogapi.config import Settings
from blogapi.database import build_engine, build_session_factory
from blogapi.errors import install_error_handlers
from blogapi.middleware import RequestMetricsMiddleware
from blogapi.routers import posts, users

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once per process."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app(settings: Settings, engine: AsyncEngine | None = None) -> FastAPI:
    """
    Build the application around an explicit *settings* value.

    *engine* defaults to one built from ``settings.DATABASE_URL``; the engine
    and its session factory live on ``app.state`` for the ``get_db``
    dependency.
    """
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Blog API starting (%s)", settings.APP_ENV)
        yield
        await engine.dispose()
        logger.info("Blog API stopped")

    app = FastAPI(
        title="Blog API",
        description="Blogging backend: accounts, posts, likes and comments",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # Middleware
    app.add_middleware(RequestMetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # Routers
    app.include_router(users.router)
    app.include_router(users.profile_router)
    app.include_router(posts.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    return app


def main() -> None:
    settings = Settings()
    setup_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
