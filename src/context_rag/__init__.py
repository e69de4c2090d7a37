"""Chunk, embed and store free text; retrieve grounding context for questions."""

__version__ = "0.1.0"
