"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

import chromadb

from context_rag.config import settings
from context_rag.retrieval.base import CollectionBase, VectorStoreBase, check_aligned

logger = logging.getLogger(__name__)


def _sanitize_metadata(metadata: dict[str, Any]) -> dict[str, str | int | float | bool]:
    """Coerce *metadata* to the flat str/int/float/bool values Chroma accepts."""
    clean: dict[str, str | int | float | bool] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            clean[key] = value
        elif isinstance(value, date):
            clean[key] = value.isoformat()
        elif isinstance(value, (list, tuple)):
            clean[key] = json.dumps(list(value), default=str)
        else:
            clean[key] = str(value)
    return clean


class ChromaCollection(CollectionBase):
    """Thin wrapper around a ``chromadb`` collection."""

    def __init__(self, collection: Any) -> None:
        super().__init__(collection.name)
        self._collection = collection

    def add(
        self,
        ids: Sequence[str],
        documents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadatas: Sequence[dict[str, Any]],
    ) -> None:
        check_aligned(ids, documents, embeddings, metadatas)
        if not ids:
            return
        self._collection.add(
            ids=list(ids),
            documents=list(documents),
            embeddings=[list(e) for e in embeddings],
            metadatas=[_sanitize_metadata(m) for m in metadatas],
        )

    def query(self, query_embedding: Sequence[float], k: int = 5) -> list[dict[str, Any]]:
        results = self._collection.query(
            query_embeddings=[list(query_embedding)],
            n_results=k,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    # Distances are non-negative; map to a 0-1 similarity score.
                    "score": 1.0 / (1.0 + dist),
                    "metadata": meta or {},
                }
            )
        return hits

    def count(self) -> int:
        return self._collection.count()


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    persist_dir:
        When given, an embedded ``PersistentClient`` at this path is used
        instead of the HTTP client.
    distance:
        HNSW distance function for new collections (``cosine`` | ``l2`` | ``ip``).
    client:
        Pre-built ``chromadb`` client; overrides the connection options.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        persist_dir: str = settings.chroma_persist_dir,
        distance: str = settings.chroma_distance,
        client: Any = None,
    ) -> None:
        if client is None:
            if persist_dir:
                client = chromadb.PersistentClient(path=persist_dir)
            else:
                client = chromadb.HttpClient(host=host, port=port)
        self._client = client
        self._distance = distance

    def get_or_create_collection(self, name: str) -> ChromaCollection:
        collection = self._client.get_or_create_collection(
            name=name,
            metadata={"hnsw:space": self._distance},
        )
        return ChromaCollection(collection)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
