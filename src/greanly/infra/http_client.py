"""Shared outbound HTTP client.

One ``httpx.AsyncClient`` is created in the application lifespan and
reused by the moderation, model, retrieval and search collaborators so
connection pools are not rebuilt per request.
"""

from __future__ import annotations

import httpx
from fastapi import Request

# Per-call timeouts are set by each collaborator; this is the pool default.
DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=5.0)
DEFAULT_LIMITS = httpx.Limits(max_connections=100, max_keepalive_connections=20)


def create_http_client() -> httpx.AsyncClient:
    """Build the process-wide async HTTP client."""
    return httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, limits=DEFAULT_LIMITS)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """FastAPI dependency: the client stored on ``app.state`` by the lifespan."""
    return request.app.state.http_client
