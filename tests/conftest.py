"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Sequence
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessageChunk

from context_rag.retrieval.base import CollectionBase, VectorStoreBase


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding backend ──────────────────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Deterministic LangChain embeddings with scriptable failures.

    Parameters
    ----------
    fail_times:
        Number of initial ``embed_query`` calls that raise.
    empty:
        Return ``[]`` from ``embed_query`` instead of a vector.
    batch_error:
        Exception raised by ``embed_documents``.
    """

    def __init__(
        self,
        dim: int = 4,
        *,
        fail_times: int = 0,
        empty: bool = False,
        batch_error: Exception | None = None,
    ) -> None:
        self.dim = dim
        self.fail_times = fail_times
        self.empty = empty
        self.batch_error = batch_error
        self.calls = 0
        self.batch_calls = 0

    def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError("embedding backend unavailable")
        if self.empty:
            return []
        return self._vector(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls += 1
        if self.batch_error is not None:
            raise self.batch_error
        return [self._vector(t) for t in texts]

    def _vector(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255 for b in digest[: self.dim]]


class StubGateway:
    """Async stand-in for :class:`EmbeddingGateway`.

    Returns a fixed unit vector, or ``[]`` for texts in *failing*. Tracks
    how many calls overlap in time.
    """

    def __init__(self, failing: set[str] | None = None, delay: float = 0.0) -> None:
        self.failing = failing or set()
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str | None) -> list[float]:
        self.calls.append(text or "")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if not text or text in self.failing:
                return []
            return [1.0, 0.0, 0.0]
        finally:
            self.in_flight -= 1


# ── Fake chat model ─────────────────────────────────────────────────────


class FakeChatModel:
    """Records the messages it receives and streams a canned answer word by word."""

    def __init__(self, answer: str = "The answer is 42.") -> None:
        self.answer = answer
        self.received: list[Any] = []

    async def astream(self, messages):
        self.received.append(messages)
        for i, word in enumerate(self.answer.split(" ")):
            yield AIMessageChunk(content=word if i == 0 else f" {word}")
        yield AIMessageChunk(content="")


# ── Fake vector store ───────────────────────────────────────────────────


class RecordingCollection(CollectionBase):
    """Collection that records ``add`` calls and returns canned query hits."""

    def __init__(
        self,
        name: str,
        *,
        hits: list[dict[str, Any]] | None = None,
        fail_adds: set[int] | None = None,
        query_error: Exception | None = None,
    ) -> None:
        super().__init__(name)
        self.hits = hits or []
        self.fail_adds = fail_adds or set()
        self.query_error = query_error
        self.adds: list[dict[str, list[Any]]] = []
        self.add_attempts = 0
        self.queries: list[tuple[list[float], int]] = []

    def add(
        self,
        ids: Sequence[str],
        documents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadatas: Sequence[dict[str, Any]],
    ) -> None:
        self.add_attempts += 1
        if self.add_attempts in self.fail_adds:
            raise ConnectionError("vector store timed out")
        self.adds.append(
            {
                "ids": list(ids),
                "documents": list(documents),
                "embeddings": [list(e) for e in embeddings],
                "metadatas": list(metadatas),
            }
        )

    def query(self, query_embedding: Sequence[float], k: int = 5) -> list[dict[str, Any]]:
        self.queries.append((list(query_embedding), k))
        if self.query_error is not None:
            raise self.query_error
        return self.hits[:k]

    def count(self) -> int:
        return sum(len(a["ids"]) for a in self.adds)

    @property
    def stored_ids(self) -> list[str]:
        return [i for a in self.adds for i in a["ids"]]

    @property
    def stored_metadatas(self) -> list[dict[str, Any]]:
        return [m for a in self.adds for m in a["metadatas"]]


class RecordingStore(VectorStoreBase):
    """Store handing out a single :class:`RecordingCollection`."""

    def __init__(self, collection: RecordingCollection | None = None, *, unavailable: bool = False) -> None:
        self.collection = collection or RecordingCollection("test-collection")
        self.unavailable = unavailable
        self.requested: list[str] = []

    def get_or_create_collection(self, name: str) -> RecordingCollection:
        self.requested.append(name)
        if self.unavailable:
            raise ConnectionError("cannot reach vector store")
        return self.collection

    def health_check(self) -> bool:
        return not self.unavailable


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def stub_gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()
