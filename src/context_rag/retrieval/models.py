"""Domain models for retrieval results and citation tracking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source.

    Attributes
    ----------
    document_id:
        The vector-store id of the chunk (``None`` when unknown).
    source:
        Human-readable source locator (file name, URL, …).
    chunk_index:
        Ordinal position of the chunk within the ingested text.
    score:
        Similarity score returned by the vector store.
    metadata:
        Flattened metadata stored alongside the chunk.
    retrieved_at:
        UTC timestamp of when the retrieval happened.
    """

    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"
