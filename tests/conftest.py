"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from typing import Any, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from linking.database import use_unicode_lower
from linking.entity_resolution import EntityKind
from linking.entity_resolution.store import LINK_NATURAL_KEY
from linking.models import Base, ExtractionResult, ExtractionStatus

ORG_A = "org-a"
ORG_B = "org-b"
NEWS_ID = "news-1"


@pytest.fixture
def db():
    """Fresh in-memory SQLite database with all tables."""
    engine = create_engine("sqlite://", future=True)
    use_unicode_lower(engine)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def add_entity(db):
    """Create a canonical registry row and return its id."""

    def _add(
        kind: EntityKind,
        name: str,
        org_id: str = ORG_A,
        created_at: Optional[datetime] = None,
        entity_id: Optional[str] = None,
    ) -> str:
        entity = kind.model(org_id=org_id, name=name)
        if created_at is not None:
            entity.created_at = created_at
        if entity_id is not None:
            entity.id = entity_id
        db.add(entity)
        db.commit()
        return entity.id

    return _add


@pytest.fixture
def add_extraction(db):
    """Create an extraction result and return its id."""

    def _add(
        output_json: Optional[dict],
        org_id: str = ORG_A,
        source_id: str = NEWS_ID,
        status: ExtractionStatus = ExtractionStatus.AI_DONE,
    ) -> str:
        extraction = ExtractionResult(
            org_id=org_id,
            source_type="news",
            source_id=source_id,
            status=status,
            output_json=output_json,
        )
        db.add(extraction)
        db.commit()
        return extraction.id

    return _add


class RecordingStore:
    """
    In-memory ResolutionStore that records every storage call.

    Registry semantics mirror SqlResolutionStore (case-insensitive equality
    and containment, first row wins).
    """

    def __init__(self):
        self.extractions: dict[str, ExtractionResult] = {}
        self.registry: dict[tuple[str, EntityKind], list[tuple[str, str]]] = {}
        self.links: dict[tuple, dict[str, Any]] = {}
        self.calls: list[tuple] = []

    def add_entity(self, kind: EntityKind, entity_id: str, name: str, org_id: str = ORG_A):
        self.registry.setdefault((org_id, kind), []).append((entity_id, name))

    def add_extraction(
        self,
        extraction_id: str,
        output_json: Optional[dict],
        org_id: str = ORG_A,
        source_id: str = NEWS_ID,
        status: ExtractionStatus = ExtractionStatus.AI_DONE,
    ) -> ExtractionResult:
        extraction = ExtractionResult(
            id=extraction_id,
            org_id=org_id,
            source_type="news",
            source_id=source_id,
            status=status,
            output_json=output_json,
        )
        self.extractions[extraction_id] = extraction
        return extraction

    def registry_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in ("exact", "fuzzy")]

    def load_extraction(self, extraction_result_id):
        self.calls.append(("load", extraction_result_id))
        extraction = self.extractions.get(extraction_result_id)
        if extraction is None or extraction.status != ExtractionStatus.AI_DONE:
            return None
        return extraction

    def find_exact(self, org_id, kind, name):
        self.calls.append(("exact", kind, name))
        for entity_id, entity_name in self.registry.get((org_id, kind), []):
            if entity_name.lower() == name.lower():
                return entity_id
        return None

    def find_fuzzy(self, org_id, kind, name):
        self.calls.append(("fuzzy", kind, name))
        for entity_id, entity_name in self.registry.get((org_id, kind), []):
            if name.lower() in entity_name.lower():
                return entity_id
        return None

    def insert_link(self, values):
        self.calls.append(("insert", values["entity_type"], values["entity_id"]))
        key = tuple(values[column] for column in LINK_NATURAL_KEY)
        if key in self.links:
            return False
        self.links[key] = dict(values)
        return True

    def mark_linked(self, extraction_result_id):
        self.calls.append(("mark_linked", extraction_result_id))
        self.extractions[extraction_result_id].status = ExtractionStatus.LINKED


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()
