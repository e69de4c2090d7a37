"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """A bounded segment of source text, the atomic unit of embedding.

    Attributes
    ----------
    sequence_index:
        Position of the chunk in the chunker's output, starting at 0.
    text:
        The chunk's text as produced by the splitter.
    source_metadata:
        Metadata inherited from the source document. Values may be nested
        mappings; they are flattened before storage.
    """

    model_config = ConfigDict(frozen=True)

    sequence_index: int
    text: str
    source_metadata: dict[str, Any] = Field(default_factory=dict)


class EmbeddingVector(BaseModel):
    """A successfully embedded chunk, ready to be written to a collection."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProgressState(BaseModel):
    """Snapshot emitted after every ingestion batch.

    ``processed == total`` marks completion regardless of how the
    chunks split between successes and failures.
    """

    model_config = ConfigDict(frozen=True)

    processed: int = 0
    total: int = 0
    success_count: int = 0
    failed_count: int = 0

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 100
        # Halves round up.
        return int(self.processed * 100 / self.total + 0.5)

    def advance(self, batch_size: int, stored: int) -> ProgressState:
        """Return the state after a batch of *batch_size* chunks, *stored* of them persisted."""
        return self.model_copy(
            update={
                "processed": self.processed + batch_size,
                "success_count": self.success_count + stored,
                "failed_count": self.failed_count + batch_size - stored,
            }
        )


class IngestionResult(BaseModel):
    """Final counts returned by :meth:`IngestionOrchestrator.ingest`."""

    model_config = ConfigDict(frozen=True)

    success_count: int = 0
    failed_count: int = 0
    total: int = 0
    skipped: int = 0
