"""Unit tests for the chunker module."""

import pytest

from context_rag.ingestion.chunker import TextChunker, chunk_text
from context_rag.ingestion.models import Chunk


def test_chunk_text_splits_long_text() -> None:
    """A text longer than chunk_size should be split."""
    chunks = chunk_text("Alpha beta. " * 50)  # 600 chars
    assert len(chunks) > 1
    assert all(isinstance(c, Chunk) for c in chunks)


def test_chunks_respect_size_limit() -> None:
    chunks = TextChunker(chunk_size=300, chunk_overlap=30).chunk("word " * 500)
    assert all(len(c.text) <= 300 for c in chunks)


def test_chunking_is_deterministic() -> None:
    text = "First paragraph line.\nSecond line here.\n\n" + "Some sentence goes here. " * 40
    first = chunk_text(text)
    second = chunk_text(text)
    assert [c.model_dump() for c in first] == [c.model_dump() for c in second]


def test_short_fragments_are_discarded() -> None:
    text = "Hi.\n\n" + ("lorem ipsum " * 30).strip() + "\n\nOk then.\n\n" + ("dolor sit " * 30).strip()
    chunks = chunk_text(text)
    assert chunks
    assert all(len(c.text.strip()) > 20 for c in chunks)
    assert not any(c.text.strip() in ("Hi.", "Ok then.") for c in chunks)


def test_text_shorter_than_minimum_yields_nothing() -> None:
    assert chunk_text("Just a short note.") == []


@pytest.mark.parametrize("text", ["", "   \n\n  ", None])
def test_empty_input_returns_empty_list(text) -> None:
    assert chunk_text(text) == []


def test_sequence_indices_are_contiguous() -> None:
    chunks = chunk_text("Alpha beta. " * 100)
    assert [c.sequence_index for c in chunks] == list(range(len(chunks)))


def test_prefers_paragraph_boundaries() -> None:
    para1 = ("lorem ipsum " * 17).strip()
    para2 = ("dolor sit amet " * 13).strip()
    chunks = TextChunker(chunk_size=300, chunk_overlap=30).chunk(f"{para1}\n\n{para2}")
    assert [c.text for c in chunks] == [para1, para2]


def test_consecutive_chunks_overlap() -> None:
    words = " ".join(f"w{i:03d}" for i in range(200))
    chunks = TextChunker(chunk_size=100, chunk_overlap=30).chunk(words)
    assert len(chunks) > 2
    first_tail = chunks[0].text.split()[-1]
    assert first_tail in chunks[1].text.split()


def test_source_metadata_is_copied_with_start_index() -> None:
    meta = {"source": "contract.pdf", "author": {"name": "Legal"}}
    chunks = chunk_text("Alpha beta. " * 50, metadata=meta)
    assert all(c.source_metadata["source"] == "contract.pdf" for c in chunks)
    assert all(c.source_metadata["author"] == {"name": "Legal"} for c in chunks)
    assert chunks[0].source_metadata["start_index"] == 0
    assert chunks[1].source_metadata["start_index"] > 0


def test_chunks_are_immutable() -> None:
    chunk = chunk_text("Alpha beta. " * 5)[0]
    with pytest.raises(Exception):
        chunk.text = "changed"  # type: ignore[misc]


def test_overlap_must_be_smaller_than_size() -> None:
    with pytest.raises(ValueError, match="chunk_overlap"):
        TextChunker(chunk_size=50, chunk_overlap=50)
