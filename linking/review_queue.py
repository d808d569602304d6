"""
Review queue for low-confidence entity links.

Fuzzy matches are written with REVIEW status. This module lists them and
exports them to CSV so an analyst can confirm or reject each one; applying
those decisions happens outside the linking engine.
"""

import csv
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from config.logging import logger
from config.settings import settings
from linking.entity_resolution.registry import EntityKind
from linking.models import NEWS_SOURCE_TYPE, EntityLink, LinkStatus


class ReviewQueue:
    """
    Read-only views over entity links.

    Usage:
        queue = ReviewQueue(db)
        pending = queue.pending(org_id)
        queue.export_csv(org_id)
    """

    CSV_COLUMNS = [
        "link_id", "source_type", "source_id", "entity_type", "entity_id",
        "entity_name", "confidence_score", "match_type", "created_at", "decision",
    ]

    def __init__(self, db: Session):
        self.db = db

    def pending(self, org_id: str) -> list[EntityLink]:
        """REVIEW links of one organization, oldest first."""
        return self.db.query(EntityLink).filter(
            EntityLink.org_id == org_id,
            EntityLink.status == LinkStatus.REVIEW,
        ).order_by(EntityLink.created_at, EntityLink.id).all()

    def links_for_source(
        self,
        org_id: str,
        source_id: str,
        source_type: str = NEWS_SOURCE_TYPE,
    ) -> list[EntityLink]:
        """All links of one source document, grouped by entity type."""
        return self.db.query(EntityLink).filter(
            EntityLink.org_id == org_id,
            EntityLink.source_type == source_type,
            EntityLink.source_id == source_id,
        ).order_by(EntityLink.entity_type, EntityLink.created_at, EntityLink.id).all()

    def entity_names(self, org_id: str, links: list[EntityLink]) -> dict[tuple[str, str], str]:
        """
        Display names of the canonical entities the links point at.

        Runs one query per entity type. Links with an unknown type or a
        missing registry row are left out.

        Returns:
            Mapping of (entity_type, entity_id) to name
        """
        ids_by_tag: dict[str, set[str]] = {}
        for link in links:
            ids_by_tag.setdefault(link.entity_type, set()).add(link.entity_id)

        names = {}
        for tag, entity_ids in ids_by_tag.items():
            try:
                model = EntityKind.from_tag(tag).model
            except ValueError:
                logger.warning(f"Skipping names for unknown entity type '{tag}'")
                continue

            rows = self.db.query(model.id, model.name).filter(
                model.org_id == org_id,
                model.id.in_(entity_ids),
            ).all()
            names.update({(tag, row.id): row.name for row in rows})
        return names

    def export_csv(self, org_id: str, path: Optional[Path] = None) -> Path:
        """
        Export an organization's REVIEW links to CSV for manual review.

        The trailing decision column is left empty for the reviewer.

        Returns:
            Path to the created CSV file
        """
        if path is None:
            path = Path(settings.REVIEW_QUEUE_PATH)

        path.parent.mkdir(parents=True, exist_ok=True)
        links = self.pending(org_id)
        names = self.entity_names(org_id, links)

        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.CSV_COLUMNS)

            for link in links:
                writer.writerow([
                    link.id,
                    link.source_type,
                    link.source_id,
                    link.entity_type,
                    link.entity_id,
                    names.get((link.entity_type, link.entity_id), ""),
                    link.confidence_score,
                    link.match_type.value,
                    link.created_at.isoformat() if link.created_at else "",
                    "",  # Decision column for manual input
                ])

        logger.info(f"Exported {len(links)} links awaiting review to {path}")
        return path
