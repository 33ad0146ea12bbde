"""Pinecone integrated-inference retriever.

Queries the index's records search endpoint with the raw user text (the
index embeds it server side) and returns the hits as scored candidates::

    POST {index_host}/records/namespaces/{namespace}/search
    {"query": {"inputs": {"text": ...}, "top_k": 3}, "fields": ["text"]}

    -> {"result": {"hits": [{"_id": ..., "_score": 0.82,
                             "fields": {"text": ...}}]}}

Hit order is preserved as returned by the index.
"""

from __future__ import annotations

import logging
import time

import httpx

from greanly.configs.system import RetrievalConfig
from greanly.core.errors import RetrievalUnavailable
from greanly.core.service.metrics import (
    RETRIEVAL_CANDIDATES_RETURNED,
    RETRIEVAL_LATENCY_SECONDS,
)
from greanly.core.service.models import RetrievalCandidate

logger = logging.getLogger(__name__)

_SEARCH_PATH = "/records/namespaces/{namespace}/search"
_HEADER_API_KEY = "Api-Key"
_HEADER_API_VERSION = "X-Pinecone-API-Version"

_KEY_RESULT = "result"
_KEY_HITS = "hits"
_KEY_SCORE = "_score"
_KEY_FIELDS = "fields"


class PineconeRetriever:
    """``ContextRetriever`` over a Pinecone index with integrated embedding."""

    def __init__(
        self,
        config: RetrievalConfig,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._config = config
        self._http = http_client

    @property
    def configured(self) -> bool:
        return bool(self._config.index_host and self._config.api_key)

    async def retrieve(self, query: str) -> list[RetrievalCandidate]:
        if not query.strip():
            return []
        if not self.configured:
            logger.debug(
                "Index '%s' not configured; returning no candidates.",
                self._config.index_name,
            )
            return []

        url = self._config.index_host.rstrip("/") + _SEARCH_PATH.format(
            namespace=self._config.namespace
        )
        payload = {
            "query": {
                "inputs": {"text": query},
                "top_k": self._config.top_k,
            },
            "fields": [self._config.text_field],
        }
        headers = {
            _HEADER_API_KEY: self._config.api_key,
            _HEADER_API_VERSION: self._config.api_version,
        }

        start = time.monotonic()
        try:
            response = await self._http.post(
                url,
                json=payload,
                headers=headers,
                timeout=self._config.timeout.total_seconds(),
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RetrievalUnavailable(
                f"Search on index '{self._config.index_name}' failed: {e}"
            ) from e
        finally:
            RETRIEVAL_LATENCY_SECONDS.observe(time.monotonic() - start)

        candidates = self._parse_hits(body)
        RETRIEVAL_CANDIDATES_RETURNED.observe(len(candidates))
        return candidates

    def _parse_hits(self, body: object) -> list[RetrievalCandidate]:
        if not isinstance(body, dict):
            raise RetrievalUnavailable("Unexpected search response shape.")
        hits = (body.get(_KEY_RESULT) or {}).get(_KEY_HITS) or []

        candidates: list[RetrievalCandidate] = []
        for hit in hits:
            if not isinstance(hit, dict):
                continue
            fields = hit.get(_KEY_FIELDS) or {}
            content = fields.get(self._config.text_field)
            if not isinstance(content, str) or not content.strip():
                continue
            try:
                score = float(hit.get(_KEY_SCORE, 0.0))
            except (TypeError, ValueError):
                continue
            # Dot-product and cosine indexes can score outside [0, 1].
            score = min(max(score, 0.0), 1.0)
            candidates.append(RetrievalCandidate(content=content, score=score))
        return candidates
