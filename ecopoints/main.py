"""EcoPoints - client layer over the EcoPoints HTTP API, with a small companion server."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ecopoints import __version__
from ecopoints.core.api_client import ApiClient, UnauthorizedHandler
from ecopoints.core.config import settings
from ecopoints.core.logging import configure_logfire, instrument_fastapi, instrument_httpx
from ecopoints.core.session_store import create_session_store
from ecopoints.interface.github_oauth import router as github_oauth_router
from ecopoints.interface.mock_backend import router as mock_backend_router


logger = logging.getLogger(__name__)


def create_api_client(*, on_unauthorized: UnauthorizedHandler | None = None) -> ApiClient:
    """Build an API client from settings, with the configured session storage."""
    return ApiClient(
        base_url=settings.api_base_url,
        session=create_session_store(settings.session_file),
        on_unauthorized=on_unauthorized,
        login_path=settings.login_path,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    configure_logfire()
    instrument_httpx()
    logger.info(
        "startup",
        extra={"api_base_url": settings.api_base_url, "mock_backend": settings.enable_mock_backend},
    )
    yield


app = FastAPI(
    title="ecopoints",
    description="Companion server for the EcoPoints client",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origin],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(github_oauth_router)
if settings.enable_mock_backend:
    app.include_router(mock_backend_router, prefix="/api")


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ecopoints.main:app", host="0.0.0.0", port=3000)  # noqa: S104
