"""
Generation — the external text generator fed with retrieved context.

Only the plumbing lives here: a chat-model factory and the messages that
carry the question and its grounding context.
"""

from context_rag.generation.llm import get_llm
from context_rag.generation.prompts import build_answer_messages

__all__ = ["build_answer_messages", "get_llm"]
