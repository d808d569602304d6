"""
Resolution orchestrator

Links one AI extraction result to the organization's canonical entities:
load -> match every mention of every registry bucket -> write links ->
mark the extraction result linked.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum as PyEnum
from threading import Event
from typing import Any, Optional

from sqlalchemy.orm import Session

from config.logging import logger
from linking.entity_resolution.errors import ExtractionNotFoundError, raise_if_cancelled
from linking.entity_resolution.matchers import MentionMatcher
from linking.entity_resolution.registry import EntityKind
from linking.entity_resolution.store import ResolutionStore, SqlResolutionStore
from linking.entity_resolution.writer import LinkWriter


class ResolutionOutcome(PyEnum):
    LINKING_COMPLETE = "LINKING_COMPLETE"
    NO_ENTITIES = "NO_ENTITIES"


@dataclass
class ResolutionSummary:
    """Result of one resolution run."""
    extraction_result_id: str
    outcome: ResolutionOutcome
    links_created: int = 0
    links_existing: int = 0


def entity_mentions(output_json: Any) -> Optional[Mapping]:
    """Return the bucket -> mentions mapping, or None when the payload has none."""
    if not isinstance(output_json, Mapping):
        return None
    entities = output_json.get("entities")
    if not isinstance(entities, Mapping):
        return None
    return entities


def bucket_mentions(entities: Mapping, kind: EntityKind) -> list:
    """Mentions for one registry in upstream order; anything but a list counts as empty."""
    mentions = entities.get(kind.bucket)
    if not isinstance(mentions, list):
        return []
    return mentions


class ResolutionOrchestrator:
    """
    Runs entity resolution for a single extraction result.

    Re-running over the same extraction result never duplicates links, and a
    run that fails before the final status update leaves the extraction
    result at ai_done so the caller can retry it.

    Usage:
        orchestrator = ResolutionOrchestrator.for_session(db)
        summary = orchestrator.run_resolution(ai_output_id)
    """

    def __init__(self, store: ResolutionStore):
        self.store = store
        self.matcher = MentionMatcher(store)
        self.writer = LinkWriter(store)

    @classmethod
    def for_session(cls, db: Session) -> "ResolutionOrchestrator":
        return cls(SqlResolutionStore(db))

    def run_resolution(
        self,
        extraction_result_id: str,
        cancel_event: Optional[Event] = None,
    ) -> ResolutionSummary:
        """
        Resolve every entity mention of an extraction result into links.

        Args:
            extraction_result_id: ai_outputs id, must be in ai_done status
            cancel_event: Optional event; once set, the run stops at its next
                storage call without marking the extraction result linked

        Returns:
            ResolutionSummary with outcome LINKING_COMPLETE or NO_ENTITIES

        Raises:
            ExtractionNotFoundError: id unknown or not in ai_done status
            ResolutionCancelledError: cancel_event was set mid-run
        """
        raise_if_cancelled(cancel_event)
        extraction = self.store.load_extraction(extraction_result_id)
        if extraction is None:
            raise ExtractionNotFoundError(extraction_result_id)

        entities = entity_mentions(extraction.output_json)
        if entities is None:
            # Status intentionally stays ai_done: nothing was there to link
            logger.info(f"No entities in extraction result {extraction_result_id}")
            return ResolutionSummary(extraction_result_id, ResolutionOutcome.NO_ENTITIES)

        logger.info(
            f"Resolving entities for {extraction.source_type}:{extraction.source_id} "
            f"(extraction result {extraction_result_id})"
        )
        summary = ResolutionSummary(extraction_result_id, ResolutionOutcome.LINKING_COMPLETE)
        unmatched = 0

        for kind in EntityKind:
            for raw_mention in bucket_mentions(entities, kind):
                outcome = self.matcher.resolve(
                    extraction.org_id, kind, raw_mention, cancel_event
                )
                if outcome is None:
                    unmatched += 1
                    continue

                raise_if_cancelled(cancel_event)
                created = self.writer.write(
                    org_id=extraction.org_id,
                    source_id=extraction.source_id,
                    entity_type=kind.tag,
                    entity_id=outcome.entity_id,
                    confidence=outcome.confidence,
                    match_type=outcome.match_type,
                    source_type=extraction.source_type,
                )
                if created:
                    summary.links_created += 1
                else:
                    summary.links_existing += 1

        raise_if_cancelled(cancel_event)
        self.store.mark_linked(extraction_result_id)

        logger.info(
            f"Linking complete for {extraction_result_id}: "
            f"{summary.links_created} new, {summary.links_existing} existing, "
            f"{unmatched} unmatched or blank"
        )
        return summary
