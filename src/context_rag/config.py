"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://localhost:8001/v1' for a local vLLM server."
        ),
    )
    llm_temperature: float = 0.1
    llm_max_tokens: int = 2000

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_persist_dir: str = Field(
        default="",
        description="When set, use an embedded PersistentClient at this path instead of HttpClient.",
    )
    chroma_distance: str = "cosine"
    collection_name: str = Field(
        default="document-chunks",
        description="Single collection shared by ingestion and retrieval.",
    )

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_concurrency: int = Field(default=3, ge=1)
    embedding_max_retries: int = Field(default=2, ge=0)
    embedding_retry_base_delay: float = Field(default=1.0, ge=0.0, description="Seconds before the first retry")

    # Chunking
    chunk_size: int = 300
    chunk_overlap: int = 30
    min_chunk_chars: int = 20

    # Ingestion
    ingest_batch_size: int = Field(default=10, ge=1)
    batch_delay_seconds: float = Field(default=0.1, ge=0.0)
    stable_chunk_ids: bool = Field(
        default=False,
        description="Derive ids from chunk content so re-ingesting the same text reuses ids.",
    )

    # Retrieval
    retrieval_top_k: int = Field(default=5, ge=1)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Module-level singleton, import `settings` wherever needed.
settings = Settings()
