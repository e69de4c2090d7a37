"""Context retriever — question in, grounding context out.

Usage::

    from context_rag.retrieval.retriever import ContextRetriever

    retriever = ContextRetriever(gateway, store)
    context = await retriever.retrieve("What does the contract say about renewal?")

:meth:`ContextRetriever.retrieve` never raises: empty questions, failed
query embeddings and empty result sets each map to a sentinel string.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from context_rag.config import settings
from context_rag.ingestion.limiter import ConcurrencyLimiter
from context_rag.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from context_rag.ingestion.embedder import EmbeddingGateway
    from context_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

EMPTY_QUESTION = ""
NOT_UNDERSTOOD = "Sorry, we couldn't understand your question. Please try rephrasing it."
NO_RELEVANT_CONTENT = "No relevant content found."

CONTEXT_SEPARATOR = "\n\n"


class ContextRetriever:
    """Embed a question and fetch the nearest stored chunks.

    Parameters
    ----------
    gateway:
        Embedding gateway; must be the one used at ingestion time so query
        and stored vectors share a space.
    store:
        Vector store holding the shared collection.
    collection_name:
        Collection searched on every call.
    default_k:
        Number of chunks joined into the context.
    limiter:
        Bound on concurrent embedding calls. Pass the limiter used for
        ingestion so questions and chunks share one budget.
    """

    def __init__(
        self,
        gateway: EmbeddingGateway,
        store: VectorStoreBase,
        *,
        collection_name: str = settings.collection_name,
        default_k: int = settings.retrieval_top_k,
        limiter: ConcurrencyLimiter | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._limiter = limiter or ConcurrencyLimiter()
        self.collection_name = collection_name
        self.default_k = default_k

    # -- public API -----------------------------------------------------------

    async def search(self, question: str, *, k: int | None = None) -> list[RetrievalResult] | None:
        """Return cited results for *question*, closest first.

        Returns ``None`` when the question could not be embedded.
        """
        vector = await self._limiter.run(self._gateway.embed, question)
        if not vector:
            return None

        collection = await asyncio.to_thread(self._store.get_or_create_collection, self.collection_name)
        hits = await asyncio.to_thread(collection.query, vector, k or self.default_k)
        return self._to_results(hits)

    async def retrieve(self, question: str | None) -> str:
        """Return the grounding context for *question*, or a sentinel string."""
        if not question or not question.strip():
            logger.warning("Empty question passed to retrieve")
            return EMPTY_QUESTION

        try:
            results = await self.search(question)
        except Exception:
            logger.exception("Vector-store query failed for collection %r", self.collection_name)
            return NO_RELEVANT_CONTENT

        if results is None:
            logger.warning("Query embedding failed, empty vector returned")
            return NOT_UNDERSTOOD
        if not results:
            return NO_RELEVANT_CONTENT
        return CONTEXT_SEPARATOR.join(r.content for r in results)

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_results(hits: list[dict[str, Any]]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in hits:
            meta = hit.get("metadata") or {}
            citation = Citation(
                document_id=hit.get("id"),
                source=str(meta.get("source", "unknown")),
                chunk_index=meta.get("chunk_index"),
                score=hit.get("score"),
                metadata=meta,
            )
            results.append(RetrievalResult(content=hit.get("content") or "", citation=citation))
        return results
