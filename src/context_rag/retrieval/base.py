"""Abstract base classes for vector-store backends.

Adding a new backend (Qdrant, pgvector …) only requires subclassing
:class:`VectorStoreBase` and :class:`CollectionBase`. The ingestion and
retrieval layers are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class CollectionBase(ABC):
    """A named, persistent set of vectors keyed by id.

    Parameters
    ----------
    name:
        Logical name of the collection.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(
        self,
        ids: Sequence[str],
        documents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadatas: Sequence[dict[str, Any]],
    ) -> None:
        """Add vectors in one call; all four sequences are aligned by position.

        Implementations must not merge distinct vectors that collide on id.
        """
        ...

    @abstractmethod
    def query(self, query_embedding: Sequence[float], k: int = 5) -> list[dict[str, Any]]:
        """Return the *k* stored entries closest to *query_embedding*, closest first.

        Each result dict **must** contain at least:

        * ``"id"`` – chunk identifier
        * ``"content"`` – the stored text
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – associated metadata dict
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored entries."""
        ...


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface."""

    @abstractmethod
    def get_or_create_collection(self, name: str) -> CollectionBase:
        """Return the collection called *name*, creating it when missing."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...


def check_aligned(
    ids: Sequence[str],
    documents: Sequence[str],
    embeddings: Sequence[Sequence[float]],
    metadatas: Sequence[dict[str, Any]],
) -> None:
    """Raise ``ValueError`` unless the four ``add`` arguments have equal length."""
    lengths = {len(ids), len(documents), len(embeddings), len(metadatas)}
    if len(lengths) != 1:
        raise ValueError(
            "ids, documents, embeddings and metadatas must be the same length "
            f"(got {len(ids)}, {len(documents)}, {len(embeddings)}, {len(metadatas)})"
        )
