"""
Exceptions raised at the loading boundary.

Rules never raise these; they only come out of payload and reference
data parsing, before validation starts.
"""

from typing import Optional


class TagCheckError(Exception):
    """Base exception for TagCheck failures."""


class GraphPayloadError(TagCheckError):
    """Raised when an entity payload cannot be turned into a graph."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        if entity_id:
            message = f"{entity_id}: {message}"
        super().__init__(message)
        self.entity_id = entity_id


class ReferenceDataError(TagCheckError):
    """Raised when a reference dataset has the wrong shape."""

    def __init__(self, dataset: str, message: str):
        super().__init__(f"Invalid reference data '{dataset}': {message}")
        self.dataset = dataset
