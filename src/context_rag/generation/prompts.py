"""Prompt messages for answering a question from retrieved context."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

SYSTEM_PROMPT = """\
You are a helpful assistant. Use the provided context to answer the question
accurately and concisely.
If the context doesn't contain relevant information, say so clearly.
Keep your response focused and relevant.
"""


def build_answer_messages(question: str, context: str) -> list[BaseMessage]:
    """Assemble the messages for a retrieval-augmented answer.

    Parameters
    ----------
    question:
        The user question.
    context:
        Grounding context (or a sentinel string) from
        :meth:`~context_rag.retrieval.retriever.ContextRetriever.retrieve`.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.astream()``.
    """
    user_msg = f"Context:\n{context}\n\nQuestion: {question}\n\nAnswer:"
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=user_msg),
    ]
