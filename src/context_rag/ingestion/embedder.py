"""Embedding gateway — text to vectors with retry and a lazily loaded model."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from context_rag.config import settings

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from context_rag.ingestion.limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str = settings.embedding_model) -> Embeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )


def _is_empty(vector: Sequence[float] | None) -> bool:
    return not vector


class EmbeddingGateway:
    """Convert text into fixed-length vectors.

    A failed or empty embedding is reported as an empty list rather than
    an exception, so callers treat "no embedding" as data.

    Parameters
    ----------
    model_factory:
        Zero-argument callable returning a LangChain ``Embeddings``. It is
        invoked once, on first use.
    max_retries:
        Retries after the first attempt (2 means 3 attempts in total).
    retry_base_delay:
        Seconds to wait before the first retry; doubles on each retry.
    sleep:
        Coroutine function used to wait between attempts.
    """

    def __init__(
        self,
        model_factory: Callable[[], Embeddings] = get_embedding_function,
        *,
        max_retries: int = settings.embedding_max_retries,
        retry_base_delay: float = settings.embedding_retry_base_delay,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._model_factory = model_factory
        self._model: Embeddings | None = None
        self._model_lock = threading.Lock()
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    # -- model ---------------------------------------------------------------

    def _load_model(self) -> Embeddings:
        with self._model_lock:
            if self._model is None:
                logger.info("Loading embedding model")
                self._model = self._model_factory()
            return self._model

    async def _get_model(self) -> Embeddings:
        if self._model is not None:
            return self._model
        return await asyncio.to_thread(self._load_model)

    # -- public API ----------------------------------------------------------

    async def embed(self, text: str | None) -> list[float]:
        """Embed a single *text*, retrying with exponential backoff.

        Returns an empty list for empty input or when every attempt
        fails or yields an empty result.
        """
        if not text or not text.strip():
            return []

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_base_delay),
            retry=retry_if_exception_type(Exception) | retry_if_result(_is_empty),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            return await retrying(self._embed_once, text)
        except RetryError as exc:
            last = exc.last_attempt
            reason = last.exception() if last.failed else "empty embedding"
            logger.warning("Embedding failed after %d attempts: %s", last.attempt_number, reason)
            return []

    async def embed_batch(
        self,
        texts: Sequence[str | None],
        limiter: ConcurrencyLimiter | None = None,
    ) -> list[list[float]]:
        """Embed every text in *texts*, preserving positions.

        Tries the backend's batch call first and falls back to concurrent
        per-item :meth:`embed` calls (gated by *limiter* when given) if it
        fails.
        """
        vectors: list[list[float]] = [[] for _ in texts]
        positions = [i for i, text in enumerate(texts) if text and text.strip()]
        if not positions:
            return vectors

        try:
            model = await self._get_model()
            batch = await model.aembed_documents([texts[i] for i in positions])
            if len(batch) != len(positions):
                raise ValueError(f"backend returned {len(batch)} vectors for {len(positions)} texts")
            for i, vector in zip(positions, batch):
                vectors[i] = [float(x) for x in vector]
            return vectors
        except Exception:
            logger.warning("Batch embedding failed, falling back to per-item calls", exc_info=True)

        if limiter is not None:
            calls = [limiter.run(self.embed, texts[i]) for i in positions]
        else:
            calls = [self.embed(texts[i]) for i in positions]
        for i, vector in zip(positions, await asyncio.gather(*calls)):
            vectors[i] = vector
        return vectors

    # -- internals -----------------------------------------------------------

    async def _embed_once(self, text: str) -> list[float]:
        model = await self._get_model()
        vector = await model.aembed_query(text)
        return [float(x) for x in vector] if vector is not None else []
