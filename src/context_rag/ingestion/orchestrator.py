"""Ingestion orchestrator — chunks in, embedded vectors persisted in batches.

Batches run strictly one after another. Inside a batch, every chunk is
embedded concurrently through the :class:`ConcurrencyLimiter`; a chunk
that cannot be embedded never aborts its siblings, and a batch whose
upsert fails never aborts the ingestion. Both are counted as failures
and reported through the progress callback.

Usage::

    orchestrator = IngestionOrchestrator(EmbeddingGateway(), ChromaVectorStore())
    result = await orchestrator.ingest(chunk_text(raw_text), on_progress=print)
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING
from uuid import uuid4

from context_rag.config import settings
from context_rag.exceptions import CollectionUnavailableError
from context_rag.ingestion.limiter import ConcurrencyLimiter
from context_rag.ingestion.metadata import flatten_metadata
from context_rag.ingestion.models import Chunk, EmbeddingVector, IngestionResult, ProgressState

if TYPE_CHECKING:
    from context_rag.ingestion.embedder import EmbeddingGateway
    from context_rag.retrieval.base import CollectionBase, VectorStoreBase

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressState], "Awaitable[None] | None"]


def random_chunk_id(chunk: Chunk, text: str) -> str:
    """``chunk-<epoch ms>-<random>-<index>``; unique per call."""
    return f"chunk-{int(time.time() * 1000)}-{uuid4().hex[:12]}-{chunk.sequence_index}"


def content_chunk_id(chunk: Chunk, text: str) -> str:
    """``chunk-<sha256 prefix>-<index>``; stable across re-ingestion of the same text."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
    return f"chunk-{digest}-{chunk.sequence_index}"


class IngestionOrchestrator:
    """Drive chunks through the embedding gateway into a vector-store collection.

    Parameters
    ----------
    gateway:
        Embedding gateway used for every chunk.
    store:
        Vector store holding the target collection.
    limiter:
        Gate bounding concurrent embedding calls. A new limiter with the
        configured concurrency is created when omitted.
    collection_name:
        Collection shared with retrieval.
    batch_size:
        Number of chunks embedded and persisted together.
    batch_delay:
        Seconds to pause between batches.
    min_chars:
        Chunks whose stripped text is this long or shorter are skipped.
    stable_ids:
        Derive ids from chunk content instead of time + randomness.
    """

    def __init__(
        self,
        gateway: EmbeddingGateway,
        store: VectorStoreBase,
        limiter: ConcurrencyLimiter | None = None,
        *,
        collection_name: str = settings.collection_name,
        batch_size: int = settings.ingest_batch_size,
        batch_delay: float = settings.batch_delay_seconds,
        min_chars: int = settings.min_chunk_chars,
        stable_ids: bool = settings.stable_chunk_ids,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._gateway = gateway
        self._store = store
        self._limiter = limiter or ConcurrencyLimiter()
        self.collection_name = collection_name
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.min_chars = min_chars
        self._make_id = content_chunk_id if stable_ids else random_chunk_id

    # -- public API -----------------------------------------------------------

    async def ingest(
        self,
        chunks: Sequence[Chunk],
        on_progress: ProgressCallback | None = None,
        *,
        stop: asyncio.Event | None = None,
    ) -> IngestionResult:
        """Embed and persist *chunks*, reporting progress after every batch.

        Parameters
        ----------
        chunks:
            Ordered chunks, typically from :class:`~context_rag.ingestion.chunker.TextChunker`.
        on_progress:
            Called (or awaited, if it returns an awaitable) with a
            :class:`ProgressState` after each batch.
        stop:
            When set, no further batch is started; the batch in flight
            finishes normally.

        Raises
        ------
        CollectionUnavailableError
            If the collection cannot be obtained. Raised before any
            embedding work starts.
        """
        collection = await self._open_collection()

        valid = [c for c in chunks if len(c.text.strip()) > self.min_chars]
        skipped = len(chunks) - len(valid)
        total = len(valid)
        n_batches = (total + self.batch_size - 1) // self.batch_size
        logger.info(
            "Ingesting %d chunks into %r in %d batches of %d (%d skipped)",
            total, self.collection_name, n_batches, self.batch_size, skipped,
        )

        progress = ProgressState(total=total)
        for number, start in enumerate(range(0, total, self.batch_size), 1):
            if stop is not None and stop.is_set():
                logger.info("Ingestion stopped before batch %d/%d", number, n_batches)
                break

            batch = valid[start : start + self.batch_size]
            stored = await self._process_batch(collection, batch)
            logger.info("batch %d/%d: stored %d/%d", number, n_batches, stored, len(batch))

            progress = progress.advance(len(batch), stored)
            await self._emit(on_progress, progress)

            if start + self.batch_size < total:
                await asyncio.sleep(self.batch_delay)

        logger.info(
            "Ingestion complete: %d successful, %d failed",
            progress.success_count, progress.failed_count,
        )
        return IngestionResult(
            success_count=progress.success_count,
            failed_count=progress.failed_count,
            total=total,
            skipped=skipped,
        )

    # -- internals ------------------------------------------------------------

    async def _open_collection(self) -> CollectionBase:
        try:
            return await asyncio.to_thread(self._store.get_or_create_collection, self.collection_name)
        except Exception as exc:
            logger.error("Could not open collection %r: %s", self.collection_name, exc)
            raise CollectionUnavailableError(self.collection_name, str(exc)) from exc

    async def _process_batch(self, collection: CollectionBase, batch: Sequence[Chunk]) -> int:
        """Embed and persist one batch; return how many vectors were stored."""
        outcomes = await asyncio.gather(
            *(self._limiter.run(self._embed_chunk, chunk) for chunk in batch),
            return_exceptions=True,
        )

        accepted: list[EmbeddingVector] = []
        for chunk, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Embedding chunk %d raised: %r", chunk.sequence_index, outcome)
            elif outcome is None:
                logger.warning("Failed to embed chunk %d after retries", chunk.sequence_index)
            else:
                accepted.append(outcome)

        if not accepted:
            return 0

        try:
            await asyncio.to_thread(
                collection.add,
                ids=[v.id for v in accepted],
                documents=[v.text for v in accepted],
                embeddings=[v.vector for v in accepted],
                metadatas=[v.metadata for v in accepted],
            )
        except Exception:
            logger.exception(
                "Upsert of %d vectors failed (chunks %d-%d)",
                len(accepted), batch[0].sequence_index, batch[-1].sequence_index,
            )
            return 0
        return len(accepted)

    async def _embed_chunk(self, chunk: Chunk) -> EmbeddingVector | None:
        text = chunk.text.strip()
        vector = await self._gateway.embed(text)
        if not vector:
            return None
        return EmbeddingVector(
            id=self._make_id(chunk, text),
            text=text,
            vector=vector,
            metadata=flatten_metadata(chunk.source_metadata, {"chunk_index": chunk.sequence_index}),
        )

    @staticmethod
    async def _emit(on_progress: ProgressCallback | None, progress: ProgressState) -> None:
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result
