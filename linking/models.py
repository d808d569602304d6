"""
Entity Link Engine - Database Models

SQLAlchemy ORM models for extraction results, the per-organization canonical
entity registries, and the links resolution writes between them.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import ClassVar, Optional

from sqlalchemy import (
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# Enums
class ExtractionStatus(PyEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    AI_DONE = "ai_done"      # Extraction finished, ready for linking
    LINKED = "linked"        # Resolution ran over every bucket
    FAILED = "failed"


class MatchType(PyEnum):
    """How a mention was matched to a canonical entity."""
    EXACT = "exact"  # Case-insensitive equality
    FUZZY = "fuzzy"  # Case-insensitive substring containment


class LinkStatus(PyEnum):
    LINKED = "LINKED"
    REVIEW = "REVIEW"


# Links at or above this confidence are trusted; below it they await review
LINK_CONFIDENCE_THRESHOLD = 80

NEWS_SOURCE_TYPE = "news"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def link_status_for(confidence: int) -> LinkStatus:
    """Derive the review status of a link from its confidence score."""
    if confidence >= LINK_CONFIDENCE_THRESHOLD:
        return LinkStatus.LINKED
    return LinkStatus.REVIEW


class ExtractionResult(Base):
    """
    One AI-produced analysis of one source document.

    output_json["entities"] maps a bucket key (e.g. "funds") to the ordered
    list of mention strings the extraction step found for that bucket.
    """

    __tablename__ = "ai_outputs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    org_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    source_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=NEWS_SOURCE_TYPE
    )
    source_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[ExtractionStatus] = mapped_column(
        Enum(ExtractionStatus), nullable=False, default=ExtractionStatus.PENDING, index=True
    )
    output_json: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ExtractionResult(id={self.id}, source={self.source_id}, status={self.status.value})>"


class RegistryEntity:
    """
    Columns shared by every canonical entity registry table.
    Each registry is its own table; matching only ever reads them.
    """

    entity_tag: ClassVar[str]

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    org_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, name={self.name})>"


class GeneralPartner(RegistryEntity, Base):
    __tablename__ = "general_partners"
    entity_tag = "gp"


class Fund(RegistryEntity, Base):
    __tablename__ = "funds"
    entity_tag = "fund"


class PortfolioCompany(RegistryEntity, Base):
    __tablename__ = "portfolio_companies"
    entity_tag = "company"


class LimitedPartner(RegistryEntity, Base):
    __tablename__ = "limited_partners"
    entity_tag = "lp"


class ServiceProvider(RegistryEntity, Base):
    __tablename__ = "service_providers"
    entity_tag = "sp"


class EntityLink(Base):
    """
    Durable edge from one source document to one canonical entity.

    (org_id, source_type, source_id, entity_type, entity_id) is the natural
    key: a second insert for the same key is dropped, never updated.
    """

    __tablename__ = "entity_links"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    org_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=NEWS_SOURCE_TYPE
    )
    source_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)

    confidence_score: Mapped[int] = mapped_column(Integer, nullable=False)
    match_type: Mapped[MatchType] = mapped_column(Enum(MatchType), nullable=False)
    status: Mapped[LinkStatus] = mapped_column(
        Enum(LinkStatus), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "org_id", "source_type", "source_id", "entity_type", "entity_id",
            name="uq_entity_links_natural_key",
        ),
        Index("ix_entity_links_org_status", "org_id", "status"),
        Index("ix_entity_links_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<EntityLink(source={self.source_id}, {self.entity_type}:{self.entity_id}, "
            f"conf={self.confidence_score}, status={self.status.value})>"
        )
