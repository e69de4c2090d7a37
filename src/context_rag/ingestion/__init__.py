"""
Ingestion — chunking, embedding and batched persistence into the vector store.

Raw text is split by :class:`TextChunker`, embedded through the
:class:`EmbeddingGateway` under a :class:`ConcurrencyLimiter`, and written
in batches by :class:`IngestionOrchestrator`.
"""

from context_rag.ingestion.chunker import TextChunker, chunk_text
from context_rag.ingestion.embedder import EmbeddingGateway, get_embedding_function
from context_rag.ingestion.limiter import ConcurrencyLimiter
from context_rag.ingestion.metadata import flatten_metadata
from context_rag.ingestion.models import Chunk, EmbeddingVector, IngestionResult, ProgressState
from context_rag.ingestion.orchestrator import IngestionOrchestrator

__all__ = [
    "Chunk",
    "ConcurrencyLimiter",
    "EmbeddingGateway",
    "EmbeddingVector",
    "IngestionOrchestrator",
    "IngestionResult",
    "ProgressState",
    "TextChunker",
    "chunk_text",
    "flatten_metadata",
    "get_embedding_function",
]
