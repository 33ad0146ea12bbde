"""Context retriever contract."""

from typing import Protocol

from greanly.core.service.models import RetrievalCandidate


class ContextRetriever(Protocol):
    """Ranked retrieval over the knowledge index.

    Implementations return candidates ordered by descending relevance and
    raise ``RetrievalUnavailable`` when the backend cannot be queried.
    An empty list is a normal answer.
    """

    async def retrieve(self, query: str) -> list[RetrievalCandidate]: ...


def candidates_from_context(context: str, score: float) -> list[RetrievalCandidate]:
    """Adapt a pre-assembled context string into a one-candidate list.

    Backends that only return a blob of context carry no score of their
    own, so the caller assigns one.  Blank context means no candidates.
    """
    if not context.strip():
        return []
    return [RetrievalCandidate(content=context, score=min(max(score, 0.0), 1.0))]
