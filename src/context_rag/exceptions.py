"""Exceptions raised across component boundaries.

Item- and batch-level failures never surface as exceptions; they are
absorbed into counters. Only setup failures propagate to callers.
"""

from __future__ import annotations


class ContextRagError(Exception):
    """Base class for errors raised by this package."""


class CollectionUnavailableError(ContextRagError):
    """The vector-store collection could not be obtained or created."""

    def __init__(self, collection_name: str, reason: str = "") -> None:
        self.collection_name = collection_name
        message = f"Collection {collection_name!r} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
