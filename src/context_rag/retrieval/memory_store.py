"""Process-local vector store for tests and local development."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

import numpy as np

from context_rag.retrieval.base import CollectionBase, VectorStoreBase, check_aligned


class InMemoryCollection(CollectionBase):
    """Cosine-similarity search over vectors held in a dict.

    Ids already present are kept as they are; a second ``add`` with the
    same id is ignored, matching Chroma's ``add``.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._entries: dict[str, tuple[str, np.ndarray, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def add(
        self,
        ids: Sequence[str],
        documents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadatas: Sequence[dict[str, Any]],
    ) -> None:
        check_aligned(ids, documents, embeddings, metadatas)
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate ids in a single add call")
        with self._lock:
            for doc_id, document, embedding, metadata in zip(ids, documents, embeddings, metadatas):
                if doc_id in self._entries:
                    continue
                self._entries[doc_id] = (document, np.asarray(embedding, dtype=float), dict(metadata))

    def query(self, query_embedding: Sequence[float], k: int = 5) -> list[dict[str, Any]]:
        query = np.asarray(query_embedding, dtype=float)
        query_norm = np.linalg.norm(query)

        with self._lock:
            entries = list(self._entries.items())

        scored = []
        for doc_id, (document, vector, metadata) in entries:
            denom = query_norm * np.linalg.norm(vector)
            score = float(np.dot(query, vector) / denom) if denom else 0.0
            scored.append((score, doc_id, document, metadata))

        # sorted() is stable, so ties keep insertion order.
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [
            {"id": doc_id, "content": document, "score": score, "metadata": dict(metadata)}
            for score, doc_id, document, metadata in scored[:k]
        ]

    def count(self) -> int:
        return len(self._entries)


class InMemoryVectorStore(VectorStoreBase):
    """Simple in-memory storage; collections live as long as the store."""

    def __init__(self) -> None:
        self._collections: dict[str, InMemoryCollection] = {}
        self._lock = threading.Lock()

    def get_or_create_collection(self, name: str) -> InMemoryCollection:
        with self._lock:
            if name not in self._collections:
                self._collections[name] = InMemoryCollection(name)
            return self._collections[name]

    def health_check(self) -> bool:
        return True
