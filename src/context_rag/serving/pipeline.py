"""Ingestion and question-answering entry points used by the HTTP layer.

Both entry points are async generators so the caller can relay their
output incrementally (server-sent events for ingestion, a token stream
for answers).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any

from context_rag.exceptions import CollectionUnavailableError
from context_rag.generation.prompts import build_answer_messages
from context_rag.ingestion.chunker import TextChunker
from context_rag.ingestion.embedder import EmbeddingGateway
from context_rag.ingestion.limiter import ConcurrencyLimiter
from context_rag.ingestion.models import IngestionResult, ProgressState
from context_rag.ingestion.orchestrator import IngestionOrchestrator
from context_rag.retrieval.base import VectorStoreBase
from context_rag.retrieval.retriever import ContextRetriever

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

_DONE = object()


class RagPipeline:
    """Owns one instance of every pipeline component.

    Parameters
    ----------
    store:
        Vector store; a :class:`~context_rag.retrieval.chroma_store.ChromaVectorStore`
        built from settings when omitted.
    gateway:
        Embedding gateway shared by ingestion and retrieval.
    llm_factory:
        Zero-argument callable returning the chat model used for answers.
        Called on the first :meth:`answer`.
    chunker, limiter:
        Override the default components (mainly for tests).
    orchestrator_kwargs:
        Extra keyword arguments for :class:`IngestionOrchestrator`.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        gateway: EmbeddingGateway | None = None,
        llm_factory: Callable[[], BaseChatModel] | None = None,
        *,
        chunker: TextChunker | None = None,
        limiter: ConcurrencyLimiter | None = None,
        **orchestrator_kwargs: Any,
    ) -> None:
        if store is None:
            from context_rag.retrieval.chroma_store import ChromaVectorStore

            store = ChromaVectorStore()
        if llm_factory is None:
            from context_rag.generation.llm import get_llm

            llm_factory = get_llm

        self.store = store
        self.gateway = gateway or EmbeddingGateway()
        self.chunker = chunker or TextChunker()
        self.limiter = limiter or ConcurrencyLimiter()
        self.orchestrator = IngestionOrchestrator(
            self.gateway, store, self.limiter, **orchestrator_kwargs
        )
        collection_name = self.orchestrator.collection_name
        self.retriever = ContextRetriever(
            self.gateway, store, collection_name=collection_name, limiter=self.limiter
        )
        self._llm_factory = llm_factory
        self._llm: BaseChatModel | None = None

    # -- ingestion -------------------------------------------------------------

    async def ingest_text(
        self,
        text: str | None,
        metadata: dict[str, Any] | None = None,
        *,
        stop: asyncio.Event | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Chunk and ingest *text*, yielding status events.

        The last event is either ``{"stage": "complete", ...}`` with the
        final counts or ``{"stage": "error", "error": ...}``.
        """
        if not text or not text.strip():
            yield {"stage": "error", "error": "Empty text provided"}
            return

        yield {"stage": "chunking", "message": f"Processing {len(text.strip())} characters..."}
        chunks = self.chunker.chunk(text, metadata)
        yield {
            "stage": "chunking_complete",
            "totalChunks": len(chunks),
            "message": f"Created {len(chunks)} chunks",
        }
        if not chunks:
            yield {"stage": "error", "error": "No valid chunks created from text"}
            return

        yield {"stage": "embedding_start", "message": "Starting embedding process..."}

        stop = stop or asyncio.Event()
        queue: asyncio.Queue[Any] = asyncio.Queue()

        async def run() -> IngestionResult:
            try:
                return await self.orchestrator.ingest(chunks, queue.put_nowait, stop=stop)
            finally:
                queue.put_nowait(_DONE)

        task = asyncio.create_task(run())
        try:
            while (item := await queue.get()) is not _DONE:
                yield _progress_event(item)
            result = await task
        except CollectionUnavailableError as exc:
            yield {"stage": "error", "error": str(exc)}
            return
        except Exception as exc:
            logger.exception("Ingestion failed")
            yield {"stage": "error", "error": str(exc) or "Processing failed"}
            return
        finally:
            if not task.done():
                # Consumer went away: let the batch in flight finish, start no more.
                stop.set()
                await asyncio.shield(task)

        yield {
            "stage": "complete",
            "status": "success",
            "details": {
                "totalChunks": len(chunks),
                "successCount": result.success_count,
                "failedCount": result.failed_count,
            },
            "message": "Processing completed successfully",
        }

    # -- answering -------------------------------------------------------------

    async def answer(self, question: str) -> AsyncIterator[str]:
        """Retrieve context for *question* and stream the generated answer."""
        context = await self.retriever.retrieve(question)
        messages = build_answer_messages(question, context)
        async for chunk in self._get_llm().astream(messages):
            if chunk.content:
                yield str(chunk.content)

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = self._llm_factory()
        return self._llm


def _progress_event(progress: ProgressState) -> dict[str, Any]:
    return {
        "stage": "embedding_progress",
        "processed": progress.processed,
        "total": progress.total,
        "percentage": progress.percentage,
        "message": f"Processed {progress.processed}/{progress.total} chunks",
    }
