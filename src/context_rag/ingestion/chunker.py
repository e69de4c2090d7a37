"""Text chunking strategies."""

from __future__ import annotations

import logging
from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from context_rag.config import settings
from context_rag.ingestion.models import Chunk

logger = logging.getLogger(__name__)

# Paragraphs, then lines, then sentences, then words, then characters.
DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class TextChunker:
    """Deterministic recursive splitter producing ordered :class:`Chunk` objects.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.
    min_chars:
        Chunks whose stripped text is this long or shorter are dropped.
    """

    def __init__(
        self,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        min_chars: int = settings.min_chunk_chars,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError(f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})")
        self.min_chars = min_chars
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=DEFAULT_SEPARATORS,
            add_start_index=True,
        )

    def chunk(self, text: str | None, metadata: dict[str, Any] | None = None) -> list[Chunk]:
        """Split *text* into chunks, discarding short fragments.

        Empty or ``None`` input yields an empty list.
        """
        if not text or not text.strip():
            return []

        documents = self._splitter.create_documents([text], metadatas=[dict(metadata or {})])
        kept = [doc for doc in documents if len(doc.page_content.strip()) > self.min_chars]
        logger.debug("Split %d chars into %d chunks (%d kept)", len(text), len(documents), len(kept))

        return [
            Chunk(sequence_index=idx, text=doc.page_content, source_metadata=doc.metadata)
            for idx, doc in enumerate(kept)
        ]


def chunk_text(text: str | None, metadata: dict[str, Any] | None = None) -> list[Chunk]:
    """Chunk *text* with the configured default size and overlap."""
    return TextChunker().chunk(text, metadata)
