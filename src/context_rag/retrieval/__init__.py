"""
Retrieval — vector search and context assembly.

This module wraps the vector store behind a clean interface so that
ingestion and retrieval never need to know which DB is backing them.

Public surface
--------------
- :class:`ContextRetriever` — question in, grounding context out.
- :class:`VectorStoreBase`, :class:`CollectionBase` — abstract backend.
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`InMemoryVectorStore` — process-local backend for tests.
- :class:`Citation`, :class:`RetrievalResult` — data models.
"""

from context_rag.retrieval.base import CollectionBase, VectorStoreBase
from context_rag.retrieval.memory_store import InMemoryVectorStore
from context_rag.retrieval.models import Citation, RetrievalResult
from context_rag.retrieval.retriever import (
    EMPTY_QUESTION,
    NO_RELEVANT_CONTENT,
    NOT_UNDERSTOOD,
    ContextRetriever,
)

__all__ = [
    "EMPTY_QUESTION",
    "NOT_UNDERSTOOD",
    "NO_RELEVANT_CONTENT",
    "ChromaVectorStore",
    "Citation",
    "CollectionBase",
    "ContextRetriever",
    "InMemoryVectorStore",
    "RetrievalResult",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from context_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
