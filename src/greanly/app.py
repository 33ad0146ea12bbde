"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from greanly.api.chat import router as chat_router
from greanly.api.exceptions import register_exception_handlers
from greanly.configs.config import get_app_config
from greanly.core.service.metrics import setup_metrics
from greanly.infra.http_client import create_http_client
from greanly.infra.logging import setup_logging
from greanly.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the shared HTTP client for the lifetime of the app."""
    app.state.http_client = create_http_client()
    logger.info("Greanly started")
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        logger.info("Greanly stopped")


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_app_config()
    setup_logging(
        config.logging,
        secrets=(
            config.llm.api_key,
            config.retrieval.api_key,
            config.search.api_key,
            config.tracing.password,
        ),
    )

    app = FastAPI(
        title="Greanly",
        description="Sustainability companion chat backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    setup_metrics(app, config.tracing)
    init_telemetry(app, config.tracing)

    app.include_router(chat_router)

    return app


app = get_app()
