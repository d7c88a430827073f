"""Application entrypoint for the FastAPI server."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from reelswipe.api import setup_routers
from reelswipe.api.deps import close_catalog, get_catalog
from reelswipe.catalog.service import CatalogService
from reelswipe.config import config
from reelswipe.llm.llm_adapter import llm_available
from reelswipe.logging import get_logger, setup_logging
from reelswipe.providers.tmdb_client import TMDBError

setup_logging(config.log_level)
logger = get_logger(__name__)

SESSION_MAX_AGE = 14 * 24 * 3600


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application")

    # Ensure all tables exist (idempotent)
    from reelswipe.storage.db import Base, close_engine, get_engine
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

    if not config.tmdb_bearer_token:
        logger.warning("TMDB_BEARER_TOKEN is not set, catalog endpoints will return 503")
    if not config.mail_enabled:
        logger.info("SMTP is not configured, sharing is disabled")

    yield

    logger.info("Shutting down application")
    await close_catalog()
    await close_engine()


app = FastAPI(
    title="ReelSwipe",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=config.session_secret,
    max_age=SESSION_MAX_AGE,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TMDBError)
async def catalog_error_handler(request: Request, exc: TMDBError) -> JSONResponse:
    """Map catalog failures to 503 (unavailable) or 502 (bad upstream reply)."""
    if exc.is_unavailable:
        logger.warning(f"Catalog unavailable for {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"error": "catalog_unavailable"})

    logger.error(f"Catalog error for {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": "catalog_error"})


setup_routers(app)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True}


@app.get("/api/status")
async def service_status(catalog: CatalogService = Depends(get_catalog)) -> dict:
    """Which optional backends are configured."""
    return {
        "ok": True,
        "catalog": catalog.available,
        "llm": llm_available(),
    }


def main() -> None:
    """Run the API server."""
    logger.info(f"Starting FastAPI server on {config.host}:{config.port}")
    uvicorn.run(
        "reelswipe.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
