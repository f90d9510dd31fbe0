"""Design Library Seeder FastAPI Application"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

from dotenv import load_dotenv
load_dotenv()  # Load .env file

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.ai.config import ProviderConfig
from core.ai.errors import ConfigurationError
from core.storage.config import StorageConfig
from core.store.base import DocumentNotFoundError

from .routes import health, seed
from .services import build_seed_service

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Design Library Seeder"
APP_VERSION = "0.1.0"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:3001,http://127.0.0.1:3000"


def cors_origins() -> List[str]:
    """Admin frontend origins from ``CORS_ORIGINS`` (comma separated)."""
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class ProxyHeadersMiddleware(BaseHTTPMiddleware):
    """Honor X-Forwarded-Proto so generated links keep https behind a reverse proxy."""

    async def dispatch(self, request: Request, call_next):
        if request.headers.get("x-forwarded-proto") == "https":
            request.scope["scheme"] = "https"
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Build the seeding services; a missing primary API key stops startup."""
    logger.info(f"Starting {APP_NAME} API...")
    if getattr(app.state, "seed_service", None) is None:
        app.state.seed_service = build_seed_service(ProviderConfig.from_env(), StorageConfig.from_env())
    yield
    service = app.state.seed_service
    service.metrics.log_summary()
    service.token_tracker.log("Token usage at shutdown")
    logger.info(f"Shutting down {APP_NAME} API...")


app = FastAPI(
    title=APP_NAME,
    description="AI-generated bilingual design library seeding API",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Proxy headers middleware (must be added first)
app.add_middleware(ProxyHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(DocumentNotFoundError)
async def not_found_handler(request: Request, exc: DocumentNotFoundError):
    return JSONResponse(status_code=404, content={"detail": f"Not found: {exc.collection}/{exc.doc_id}"})


app.include_router(health.router, tags=["Health"])
app.include_router(seed.router, prefix="/api/seed", tags=["Seed"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }
