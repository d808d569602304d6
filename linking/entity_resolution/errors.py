"""
Exceptions raised by entity resolution.

Storage failures are not wrapped: SQLAlchemy errors reach the caller as-is.
"""

from threading import Event
from typing import Optional


class LinkingError(Exception):
    """Base class for entity linking failures."""


class ExtractionNotFoundError(LinkingError):
    """Extraction result is missing or not waiting to be linked."""

    def __init__(self, extraction_result_id: str):
        self.extraction_result_id = extraction_result_id
        super().__init__(f"ai_output_not_found: {extraction_result_id}")


class ResolutionCancelledError(LinkingError):
    """The caller cancelled a run before it was finalized."""


def raise_if_cancelled(cancel_event: Optional[Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelledError("Entity resolution cancelled")
