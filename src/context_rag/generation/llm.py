"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (vLLM, Ollama,
   …). ``ChatOpenAI`` works unchanged against ``/v1/chat/completions``.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from context_rag.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float = settings.llm_temperature) -> ChatOpenAI:
    """Return the configured chat model, with streaming enabled.

    When ``settings.llm_base_url`` is set a dummy API key (``"EMPTY"``)
    is used if none is configured, since local servers rarely check it.
    Otherwise an unset key leaves ``ChatOpenAI`` to read ``OPENAI_API_KEY``.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": temperature,
        "max_tokens": settings.llm_max_tokens,
        "streaming": True,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)
