"""
Idempotent persistence of entity links.
"""

from config.logging import logger
from linking.entity_resolution.store import ResolutionStore
from linking.models import NEWS_SOURCE_TYPE, MatchType, link_status_for


class LinkWriter:
    """
    Records source-to-entity links.

    A link that already exists for (org, source, entity type, entity id) is
    left untouched, even if this write carries a different confidence.
    """

    def __init__(self, store: ResolutionStore):
        self.store = store

    def write(
        self,
        org_id: str,
        source_id: str,
        entity_type: str,
        entity_id: str,
        confidence: int,
        match_type: MatchType,
        source_type: str = NEWS_SOURCE_TYPE,
    ) -> bool:
        """
        Insert a link with a status derived from its confidence.

        Args:
            org_id: Owning organization
            source_id: Source document (news item) id
            entity_type: Short registry tag (gp, fund, company, lp, sp)
            entity_id: Canonical entity id
            confidence: Match confidence, 0-100
            match_type: How the entity was matched
            source_type: Kind of source document

        Returns:
            True if a new link was created, False if it already existed
        """
        if not 0 <= confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {confidence}")

        status = link_status_for(confidence)
        created = self.store.insert_link({
            "org_id": org_id,
            "source_type": source_type,
            "source_id": source_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "confidence_score": confidence,
            "match_type": match_type,
            "status": status,
        })

        if created:
            logger.debug(
                f"Linked {source_type}:{source_id} -> {entity_type}:{entity_id} "
                f"({match_type.value}, {confidence}, {status.value})"
            )
        else:
            logger.debug(f"Link already exists: {source_type}:{source_id} -> {entity_type}:{entity_id}")
        return created
