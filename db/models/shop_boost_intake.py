"""
db/models/shop_boost_intake.py

Shop boost intake: one shop's uploaded batch of history exports awaiting
analysis. Rows are created by the upload flow; the pipeline only reads
them and flips ``status`` to completed.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class IntakeStatus:
    """Valid intake states."""

    PENDING = "pending"
    COMPLETED = "completed"


class ShopBoostIntake(Base, TimestampMixin):
    __tablename__ = "shop_boost_intakes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    shop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=IntakeStatus.PENDING,
        comment="pending → completed",
    )

    customers_file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    vehicles_file_path: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Repair-order history export; the source of repair statistics",
    )
    parts_file_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    questionnaire: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Free-form onboarding answers (specialty, techCount, bayCount, ...)",
    )

    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_shop_boost_intakes_shop_status", "shop_id", "status"),
        Index("ix_shop_boost_intakes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShopBoostIntake id={self.id} shop_id={self.shop_id} "
            f"status={self.status!r}>"
        )
