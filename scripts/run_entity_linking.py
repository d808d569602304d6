#!/usr/bin/env python3
"""
Link AI extraction results to canonical entities.

Usage:
    python scripts/run_entity_linking.py --id <ai_output_id>
    python scripts/run_entity_linking.py --org <org_id>
    python scripts/run_entity_linking.py --org <org_id> --export-review
    python scripts/run_entity_linking.py --init-db
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from config.logging import logger
from linking.database import SessionLocal, init_db
from linking.entity_resolution import LinkingError, ResolutionOrchestrator
from linking.models import ExtractionResult, ExtractionStatus
from linking.review_queue import ReviewQueue


def pending_extraction_ids(db, org_id: str) -> list[str]:
    """ai_done extraction results of an organization, oldest first."""
    rows = db.query(ExtractionResult.id).filter(
        ExtractionResult.org_id == org_id,
        ExtractionResult.status == ExtractionStatus.AI_DONE,
    ).order_by(ExtractionResult.created_at, ExtractionResult.id).all()
    return [row.id for row in rows]


def main():
    parser = argparse.ArgumentParser(
        description="Resolve AI-extracted entity mentions into entity links"
    )
    parser.add_argument(
        "--id",
        dest="ids",
        action="append",
        default=[],
        help="Extraction result (ai_outputs) id to link; may be repeated",
    )
    parser.add_argument(
        "--org",
        help="Link every ai_done extraction result of this organization",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables before running",
    )
    parser.add_argument(
        "--export-review",
        action="store_true",
        help="Export the organization's REVIEW links to CSV (requires --org)",
    )
    parser.add_argument(
        "--review-path",
        type=Path,
        help="CSV path for --export-review (default: REVIEW_QUEUE_PATH)",
    )

    args = parser.parse_args()

    if args.export_review and not args.org:
        parser.error("--export-review requires --org")

    if args.init_db:
        init_db()
        logger.info("Database tables created")

    db = SessionLocal()
    failures = 0

    try:
        ids = list(args.ids)
        if args.org:
            ids.extend(pending_extraction_ids(db, args.org))

        orchestrator = ResolutionOrchestrator.for_session(db)
        queue = ReviewQueue(db)

        for extraction_id in ids:
            try:
                summary = orchestrator.run_resolution(extraction_id)
            except (LinkingError, SQLAlchemyError) as e:
                failures += 1
                logger.error(f"Linking failed for {extraction_id}: {e}")
                continue

            print(
                f"{extraction_id}: {summary.outcome.value} "
                f"({summary.links_created} new, {summary.links_existing} existing)"
            )

            extraction = db.get(ExtractionResult, extraction_id)
            for link in queue.links_for_source(extraction.org_id, extraction.source_id):
                print(
                    f"  {link.entity_type:<8} {link.entity_id}  "
                    f"{link.match_type.value:<5} {link.confidence_score:>3}  {link.status.value}"
                )

        if args.export_review:
            csv_path = queue.export_csv(args.org, args.review_path)
            print(f"Review queue exported to: {csv_path}")

    finally:
        db.close()

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
