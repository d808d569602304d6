"""
Entity Resolution Module

Links AI-extracted entity mentions to canonical registry records:
- Exact name matching (case-insensitive)
- Fuzzy substring matching, routed to review
- Idempotent link writes keyed by (org, source, entity)
"""

from linking.entity_resolution.errors import (
    ExtractionNotFoundError,
    LinkingError,
    ResolutionCancelledError,
)
from linking.entity_resolution.matchers import (
    EXACT_CONFIDENCE,
    FUZZY_CONFIDENCE,
    MatchOutcome,
    MentionMatcher,
)
from linking.entity_resolution.registry import EntityKind
from linking.entity_resolution.resolver import (
    ResolutionOrchestrator,
    ResolutionOutcome,
    ResolutionSummary,
)
from linking.entity_resolution.store import ResolutionStore, SqlResolutionStore
from linking.entity_resolution.writer import LinkWriter

__all__ = [
    "EXACT_CONFIDENCE",
    "FUZZY_CONFIDENCE",
    "EntityKind",
    "ExtractionNotFoundError",
    "LinkingError",
    "LinkWriter",
    "MatchOutcome",
    "MentionMatcher",
    "ResolutionCancelledError",
    "ResolutionOrchestrator",
    "ResolutionOutcome",
    "ResolutionStore",
    "ResolutionSummary",
    "SqlResolutionStore",
]
