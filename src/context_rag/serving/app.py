"""FastAPI application exposing ingestion and question answering."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from context_rag.serving.pipeline import RagPipeline

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Context RAG API",
    version="0.1.0",
    description="Ingest free text into a vector store and answer questions grounded in it.",
)


# ── Request schemas ───────────────────────────────────────────────────
class EmbedRequest(BaseModel):
    """Raw text to chunk, embed and store."""

    text: str | None = None
    metadata: dict[str, Any] = {}


class ChatRequest(BaseModel):
    """Incoming question from the user."""

    question: Any = None


@lru_cache(maxsize=1)
def get_pipeline() -> RagPipeline:
    """Build the process-wide pipeline on first use."""
    return RagPipeline()


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/embed")
async def embed(
    body: EmbedRequest,
    pipeline: RagPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """Ingest ``body.text`` and stream progress as server-sent events.

    SSE format (one JSON object per event)::

        data: {"stage": "chunking", "message": "..."}
        data: {"stage": "embedding_progress", "processed": 10, "total": 42, ...}
        data: {"stage": "complete", "details": {"totalChunks": 42, ...}}

    A client disconnect cancels the stream; the pipeline then lets the
    batch in flight finish and starts no further batch.
    """
    stop = asyncio.Event()

    async def event_generator() -> AsyncIterator[str]:
        try:
            async for event in pipeline.ingest_text(body.text, body.metadata, stop=stop):
                yield f"data: {json.dumps(event)}\n\n"
        except Exception as e:
            logger.exception("Ingestion stream failed")
            yield f"data: {json.dumps({'stage': 'error', 'error': str(e) or 'Processing failed'})}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@app.post("/chat")
async def chat(body: ChatRequest, pipeline: RagPipeline = Depends(get_pipeline)) -> StreamingResponse:
    """Answer ``body.question`` from stored context, streaming plain-text tokens."""
    if not body.question or not isinstance(body.question, str):
        raise HTTPException(status_code=400, detail="Question is required and must be a string")

    return StreamingResponse(pipeline.answer(body.question), media_type="text/plain; charset=utf-8")
