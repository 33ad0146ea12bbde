"""Global exception handlers for the non-streaming endpoints."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from greanly.core.errors import GreanlyError, MalformedRequest

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on ``app``."""

    @app.exception_handler(MalformedRequest)
    async def handle_malformed_request(
        request: Request, exc: MalformedRequest
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(GreanlyError)
    async def handle_greanly_error(request: Request, exc: GreanlyError) -> JSONResponse:
        logger.error("Unhandled domain error on %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
