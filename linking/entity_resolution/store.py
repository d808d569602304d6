"""
Storage access for entity resolution.

ResolutionStore is everything the resolver needs from the database. The
SQLAlchemy implementation scopes every registry query and every link write
by organization.
"""

from contextlib import contextmanager
from typing import Any, Optional, Protocol

from rapidfuzz import fuzz
from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from linking.entity_resolution.registry import EntityKind
from linking.models import EntityLink, ExtractionResult, ExtractionStatus

# Columns of uq_entity_links_natural_key
LINK_NATURAL_KEY = ["org_id", "source_type", "source_id", "entity_type", "entity_id"]

_UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}

# Shortest containing names first; only these are scored with rapidfuzz
FUZZY_CANDIDATE_LIMIT = 25


class ResolutionStore(Protocol):
    """Storage capabilities used by a resolution run."""

    def load_extraction(self, extraction_result_id: str) -> Optional[ExtractionResult]:
        ...

    def find_exact(self, org_id: str, kind: EntityKind, name: str) -> Optional[str]:
        ...

    def find_fuzzy(self, org_id: str, kind: EntityKind, name: str) -> Optional[str]:
        ...

    def insert_link(self, values: dict[str, Any]) -> bool:
        ...

    def mark_linked(self, extraction_result_id: str) -> None:
        ...


class SqlResolutionStore:
    """
    ResolutionStore backed by a SQLAlchemy session.

    Duplicate canonical names resolve to the earliest created row (then the
    lowest id). When several rows contain a fuzzy mention, the shortest
    FUZZY_CANDIDATE_LIMIT of them are fetched and the closest name by
    rapidfuzz ratio wins, with the same ordering breaking ties.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _rollback_on_error(self):
        try:
            yield
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def load_extraction(self, extraction_result_id: str) -> Optional[ExtractionResult]:
        """Fetch an extraction result only if it is waiting to be linked."""
        with self._rollback_on_error():
            return self.db.query(ExtractionResult).filter(
                ExtractionResult.id == extraction_result_id,
                ExtractionResult.status == ExtractionStatus.AI_DONE,
            ).first()

    def find_exact(self, org_id: str, kind: EntityKind, name: str) -> Optional[str]:
        """Case-insensitive name equality within one organization's registry."""
        model = kind.model
        with self._rollback_on_error():
            row = self.db.query(model.id).filter(
                model.org_id == org_id,
                func.lower(model.name) == func.lower(name),
            ).order_by(model.created_at, model.id).first()
        return row.id if row else None

    def find_fuzzy(self, org_id: str, kind: EntityKind, name: str) -> Optional[str]:
        """Case-insensitive substring containment within one organization's registry."""
        model = kind.model
        with self._rollback_on_error():
            rows = self.db.query(model.id, model.name).filter(
                model.org_id == org_id,
                model.name.icontains(name, autoescape=True),
            ).order_by(
                func.length(model.name), model.created_at, model.id,
            ).limit(FUZZY_CANDIDATE_LIMIT).all()

        if not rows:
            return None

        # max() keeps the first of equally scored rows
        needle = name.lower()
        best = max(rows, key=lambda row: fuzz.ratio(needle, row.name.lower()))
        return best.id

    def insert_link(self, values: dict[str, Any]) -> bool:
        """
        Insert an entity link unless its natural key already exists.

        Returns:
            True if a row was created, False if the link was already there
        """
        dialect = self.db.get_bind().dialect.name
        with self._rollback_on_error():
            insert_for_dialect = _UPSERT_DIALECTS.get(dialect)
            if insert_for_dialect is not None:
                stmt = insert_for_dialect(EntityLink.__table__).values(**values).on_conflict_do_nothing(
                    index_elements=LINK_NATURAL_KEY
                )
                created = self.db.execute(stmt).rowcount == 1
            else:
                created = self._insert_with_savepoint(values)
            self.db.commit()
        return created

    def _insert_with_savepoint(self, values: dict[str, Any]) -> bool:
        """Portable insert for dialects without ON CONFLICT DO NOTHING."""
        if self._find_link(values) is not None:
            return False
        try:
            with self.db.begin_nested():
                self.db.add(EntityLink(**values))
        except IntegrityError:
            # Lost a race with a concurrent run; anything else is a real failure
            if self._find_link(values) is not None:
                return False
            raise
        return True

    def _find_link(self, values: dict[str, Any]) -> Optional[EntityLink]:
        return self.db.query(EntityLink).filter_by(
            **{column: values[column] for column in LINK_NATURAL_KEY}
        ).first()

    def mark_linked(self, extraction_result_id: str) -> None:
        with self._rollback_on_error():
            self.db.execute(
                update(ExtractionResult)
                .where(ExtractionResult.id == extraction_result_id)
                .values(status=ExtractionStatus.LINKED)
            )
            self.db.commit()
