"""
db/base.py

Declarative base and the timestamp mixin shared by shop boost tables.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for every shop boost table; Alembic reads its metadata.
    """


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """
    ``created_at`` set by the database on insert, ``updated_at`` refreshed on UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=_utc_now,
    )
