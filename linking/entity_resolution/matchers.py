"""
Mention matching against canonical entity registries.
"""

from dataclasses import dataclass
from threading import Event
from typing import Any, Optional

from config.logging import logger
from linking.entity_resolution.errors import raise_if_cancelled
from linking.entity_resolution.registry import EntityKind
from linking.entity_resolution.store import ResolutionStore
from linking.models import MatchType

# Fixed policy scores, not similarity metrics
EXACT_CONFIDENCE = 95
FUZZY_CONFIDENCE = 70


@dataclass(frozen=True)
class MatchOutcome:
    """Best canonical entity found for one mention."""
    entity_id: str
    confidence: int
    match_type: MatchType

    def __repr__(self) -> str:
        return f"<MatchOutcome({self.entity_id}, {self.match_type.value}, conf={self.confidence})>"


def clean_mention(raw_mention: Any) -> str:
    """Trim a mention as emitted by the extraction step; None becomes ""."""
    if raw_mention is None:
        return ""
    return str(raw_mention).strip()


class MentionMatcher:
    """
    Resolves a free-text mention to at most one canonical entity.

    Resolution strategy:
    1. Exact: case-insensitive name equality (confidence 95)
    2. Fuzzy: case-insensitive substring containment (confidence 70),
       only tried when there is no exact match
    3. Otherwise no outcome; the mention is dropped

    Usage:
        matcher = MentionMatcher(SqlResolutionStore(db))
        outcome = matcher.resolve(org_id, EntityKind.FUNDS, "Acme Fund II")
    """

    def __init__(self, store: ResolutionStore):
        self.store = store

    def resolve(
        self,
        org_id: str,
        kind: EntityKind,
        raw_mention: Any,
        cancel_event: Optional[Event] = None,
    ) -> Optional[MatchOutcome]:
        name = clean_mention(raw_mention)
        if not name:
            return None

        raise_if_cancelled(cancel_event)
        entity_id = self.store.find_exact(org_id, kind, name)
        if entity_id is not None:
            logger.debug(f"Exact {kind.tag} match: '{name}' -> {entity_id}")
            return MatchOutcome(entity_id, EXACT_CONFIDENCE, MatchType.EXACT)

        raise_if_cancelled(cancel_event)
        entity_id = self.store.find_fuzzy(org_id, kind, name)
        if entity_id is not None:
            logger.debug(f"Fuzzy {kind.tag} match: '{name}' -> {entity_id}")
            return MatchOutcome(entity_id, FUZZY_CONFIDENCE, MatchType.FUZZY)

        logger.debug(f"No {kind.tag} match for: '{name}'")
        return None
