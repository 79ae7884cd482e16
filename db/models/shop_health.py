"""
db/models/shop_health.py

Persisted shop health outputs: the scored snapshot, the suggestion rows
derived from it and the per-shop AI profile summary.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ShopHealthSnapshotRecord(Base, TimestampMixin):
    __tablename__ = "shop_health_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    shop_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    intake_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("shop_boost_intakes.id", ondelete="SET NULL"),
        nullable=True,
    )
    period_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    period_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    metrics: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    scores: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    narrative_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_shop_health_snapshots_shop_created", "shop_id", "created_at"),
    )


class MenuItemSuggestion(Base, TimestampMixin):
    __tablename__ = "menu_item_suggestions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    shop_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    intake_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("shop_boost_intakes.id", ondelete="SET NULL"),
        nullable=True,
    )
    suggestion_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Snapshot menuSuggestions[].id",
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price_suggestion: Mapped[float | None] = mapped_column(Float, nullable=True)
    labor_hours_suggestion: Mapped[float | None] = mapped_column(Float, nullable=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_menu_item_suggestions_shop_id", "shop_id"),
    )


class InspectionTemplateSuggestion(Base, TimestampMixin):
    __tablename__ = "inspection_template_suggestions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    shop_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    intake_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("shop_boost_intakes.id", ondelete="SET NULL"),
        nullable=True,
    )
    suggestion_key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    items: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    applies_to: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="fleet, retail, both",
    )
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        Index("ix_inspection_template_suggestions_shop_id", "shop_id"),
    )


class ShopAIProfile(Base, TimestampMixin):
    __tablename__ = "shop_ai_profiles"

    shop_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_refreshed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
