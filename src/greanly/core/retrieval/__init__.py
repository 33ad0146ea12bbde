from .base import ContextRetriever, candidates_from_context  # noqa: F401
from .pinecone import PineconeRetriever  # noqa: F401
