"""
Read-only HTTP view of the progress store, plus health checks for the
external services. Started by `vidscribe serve`.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vidscribe.api import routes
from vidscribe.config import Settings, get_settings
from vidscribe.logging_config import setup_logging
from vidscribe.services.pipeline import ProcessingStrategy

setup_logging(get_settings())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(f"vidscribe API up, store {settings.store_path}, log level {settings.log_level}")
    yield
    logger.info("vidscribe API stopped")


app = FastAPI(
    title="vidscribe API",
    description="Progress of video description runs",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])
app.include_router(routes.router)


@app.get("/health")
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/health/services")
async def services_health(settings: Settings = Depends(get_settings)) -> dict:
    """Whisper, Ollama and Claude reachability, with the configured URLs."""
    status = await ProcessingStrategy(settings).check_availability()
    return {
        **asdict(status),
        "whisper_url": settings.whisper_url,
        "ollama_url": settings.ollama_url,
    }
