"""
Relational persistence for the shop boost pipeline.

``ShopBoostRepository`` performs statements on a caller-owned session.
``SqlAlchemyShopBoostStore`` wraps it into the ``ShopBoostStore`` contract
the pipeline depends on: one transaction per call, SQLAlchemy failures
surfaced as ``ShopBoostPersistenceError``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import Select, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.ai_training import AITrainingData, AITrainingEvent
from db.models.shop_boost_intake import IntakeStatus, ShopBoostIntake
from db.models.shop_health import (
    InspectionTemplateSuggestion,
    MenuItemSuggestion,
    ShopAIProfile,
    ShopHealthSnapshotRecord,
)
from db.models.shop_import import ShopImportFile, ShopImportRow
from db.repositories.errors import IntakeLookupError, ShopBoostPersistenceError
from db.repositories.types import (
    HealthSnapshotCreate,
    ImportFileCreate,
    ImportRowCreate,
    InspectionSuggestionCreate,
    IntakeRecord,
    MenuSuggestionCreate,
)
from shop_history.types import DerivedStats

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 500


def _as_uuid(value: str | uuid.UUID | None) -> uuid.UUID | None:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _require_uuid(value: str | uuid.UUID | None, name: str) -> uuid.UUID:
    parsed = _as_uuid(value)
    if parsed is None:
        raise ShopBoostPersistenceError(f"{name} is not a valid UUID: {value!r}")
    return parsed


def _to_record(intake: ShopBoostIntake) -> IntakeRecord:
    return IntakeRecord(
        id=str(intake.id),
        shop_id=str(intake.shop_id),
        status=intake.status,
        customers_file_path=intake.customers_file_path,
        vehicles_file_path=intake.vehicles_file_path,
        parts_file_path=intake.parts_file_path,
        questionnaire=(
            dict(intake.questionnaire) if isinstance(intake.questionnaire, Mapping) else None
        ),
        created_at=intake.created_at,
    )


class ShopBoostStore(Protocol):
    """
    Relational store used by the shop boost pipeline.
    """

    def find_pending_intake(self, shop_id: str, intake_id: str | None = None) -> IntakeRecord | None:
        ...

    def mark_intake_completed(self, intake_id: str, processed_at: datetime) -> None:
        ...

    def derive_shop_stats(self, shop_id: str) -> DerivedStats:
        ...

    def record_import_file(self, record: ImportFileCreate) -> str:
        ...

    def record_import_rows(
        self,
        *,
        intake_id: str,
        file_id: str,
        rows: Sequence[ImportRowCreate],
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        ...

    def insert_health_snapshot(self, record: HealthSnapshotCreate) -> str:
        ...

    def insert_menu_suggestions(self, records: Sequence[MenuSuggestionCreate]) -> int:
        ...

    def insert_inspection_suggestions(self, records: Sequence[InspectionSuggestionCreate]) -> int:
        ...

    def upsert_profile_summary(self, *, shop_id: str, summary: str, refreshed_at: datetime) -> None:
        ...

    def insert_training_event(self, *, shop_id: str, source: str, payload: dict[str, Any]) -> str | None:
        ...

    def insert_training_data(self, *, shop_id: str, source_event_id: str, content: str) -> None:
        ...


class ShopBoostRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_pending_intake(
        self,
        *,
        shop_id: uuid.UUID,
        intake_id: uuid.UUID | None = None,
    ) -> ShopBoostIntake | None:
        """
        Most recent pending intake for the shop, narrowed to ``intake_id`` when given.
        """

        stmt: Select[tuple[ShopBoostIntake]] = select(ShopBoostIntake).where(
            ShopBoostIntake.shop_id == shop_id,
            ShopBoostIntake.status == IntakeStatus.PENDING,
        )
        if intake_id is not None:
            stmt = stmt.where(ShopBoostIntake.id == intake_id)
        stmt = stmt.order_by(ShopBoostIntake.created_at.desc()).limit(1)
        return self._session.scalars(stmt).first()

    def mark_intake_completed(self, *, intake_id: uuid.UUID, processed_at: datetime) -> ShopBoostIntake | None:
        intake = self._session.get(ShopBoostIntake, intake_id)
        if intake is None:
            return None
        intake.status = IntakeStatus.COMPLETED
        intake.processed_at = processed_at
        return intake

    def create_import_file(self, record: ImportFileCreate) -> ShopImportFile:
        import_file = ShopImportFile(
            intake_id=_require_uuid(record.intake_id, "intake_id"),
            kind=record.kind,
            storage_path=record.storage_path,
            original_filename=record.original_filename,
            sha256=record.sha256,
            parsed_row_count=record.parsed_row_count,
            status=record.status,
        )
        self._session.add(import_file)
        self._session.flush()
        return import_file

    def bulk_insert_import_rows(
        self,
        *,
        intake_id: uuid.UUID,
        file_id: uuid.UUID,
        rows: Sequence[ImportRowCreate],
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert raw rows in chunks of ``batch_size`` using PostgreSQL INSERT.
        """

        if not rows:
            return 0

        inserted = 0
        for chunk_start in range(0, len(rows), max(1, batch_size)):
            chunk = rows[chunk_start : chunk_start + max(1, batch_size)]
            values = [
                {
                    "id": uuid.uuid4(),
                    "intake_id": intake_id,
                    "file_id": file_id,
                    "row_number": row.row_number,
                    "entity_type": row.entity_type,
                    "raw": row.raw,
                    "normalized": row.normalized,
                    "errors": row.errors,
                }
                for row in chunk
            ]
            self._session.execute(insert(ShopImportRow), values)
            inserted += len(values)
        return inserted

    def create_health_snapshot(self, record: HealthSnapshotCreate) -> ShopHealthSnapshotRecord:
        snapshot = ShopHealthSnapshotRecord(
            shop_id=_require_uuid(record.shop_id, "shop_id"),
            intake_id=_as_uuid(record.intake_id),
            period_start=record.period_start,
            period_end=record.period_end,
            metrics=record.metrics,
            scores=record.scores,
            narrative_summary=record.narrative_summary,
        )
        self._session.add(snapshot)
        self._session.flush()
        return snapshot

    def bulk_insert_menu_suggestions(self, records: Sequence[MenuSuggestionCreate]) -> int:
        if not records:
            return 0
        values = [
            {
                "id": uuid.uuid4(),
                "shop_id": _require_uuid(record.shop_id, "shop_id"),
                "intake_id": _as_uuid(record.intake_id),
                "suggestion_key": record.suggestion_key,
                "title": record.title,
                "category": record.category,
                "price_suggestion": record.price_suggestion,
                "labor_hours_suggestion": record.labor_hours_suggestion,
                "confidence": record.confidence,
                "reason": record.reason,
            }
            for record in records
        ]
        self._session.execute(insert(MenuItemSuggestion), values)
        return len(values)

    def bulk_insert_inspection_suggestions(self, records: Sequence[InspectionSuggestionCreate]) -> int:
        if not records:
            return 0
        values = [
            {
                "id": uuid.uuid4(),
                "shop_id": _require_uuid(record.shop_id, "shop_id"),
                "intake_id": _as_uuid(record.intake_id),
                "suggestion_key": record.suggestion_key,
                "name": record.name,
                "items": record.items,
                "applies_to": record.applies_to,
                "confidence": record.confidence,
            }
            for record in records
        ]
        self._session.execute(insert(InspectionTemplateSuggestion), values)
        return len(values)

    def upsert_profile_summary(self, *, shop_id: uuid.UUID, summary: str, refreshed_at: datetime) -> None:
        stmt = (
            insert(ShopAIProfile)
            .values(shop_id=shop_id, summary=summary, last_refreshed_at=refreshed_at)
            .on_conflict_do_update(
                index_elements=[ShopAIProfile.shop_id],
                set_={
                    "summary": summary,
                    "last_refreshed_at": refreshed_at,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
        )
        self._session.execute(stmt)

    def create_training_event(self, *, shop_id: uuid.UUID, source: str, payload: dict[str, Any]) -> AITrainingEvent:
        event = AITrainingEvent(shop_id=shop_id, source=source, payload=payload)
        self._session.add(event)
        self._session.flush()
        return event

    def create_training_data(self, *, shop_id: uuid.UUID, source_event_id: uuid.UUID, content: str) -> AITrainingData:
        data = AITrainingData(shop_id=shop_id, source_event_id=source_event_id, content=content)
        self._session.add(data)
        self._session.flush()
        return data


class SqlAlchemyShopBoostStore:
    """
    ``ShopBoostStore`` backed by SQLAlchemy sessions, one transaction per call.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory: Callable[[], Session] = SessionLocal
        else:
            self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[ShopBoostRepository]:
        try:
            with self._session_factory() as session:
                with session.begin():
                    yield ShopBoostRepository(session)
        except SQLAlchemyError as exc:
            logger.error("Shop boost store operation failed operation=%s error=%s", operation, exc)
            raise ShopBoostPersistenceError(f"{operation} failed.") from exc

    def find_pending_intake(self, shop_id: str, intake_id: str | None = None) -> IntakeRecord | None:
        shop_uuid = _as_uuid(shop_id)
        if shop_uuid is None:
            return None
        intake_uuid = None
        if intake_id is not None:
            intake_uuid = _as_uuid(intake_id)
            if intake_uuid is None:
                return None

        try:
            with self._transaction("find_pending_intake") as repository:
                intake = repository.find_pending_intake(shop_id=shop_uuid, intake_id=intake_uuid)
                return _to_record(intake) if intake is not None else None
        except ShopBoostPersistenceError as exc:
            raise IntakeLookupError(str(exc)) from exc.__cause__

    def mark_intake_completed(self, intake_id: str, processed_at: datetime) -> None:
        intake_uuid = _require_uuid(intake_id, "intake_id")
        with self._transaction("mark_intake_completed") as repository:
            repository.mark_intake_completed(intake_id=intake_uuid, processed_at=processed_at)

    def derive_shop_stats(self, shop_id: str) -> DerivedStats:
        # Recorded repair-order transactions are not modelled yet.
        return DerivedStats.empty()

    def record_import_file(self, record: ImportFileCreate) -> str:
        with self._transaction("record_import_file") as repository:
            return str(repository.create_import_file(record).id)

    def record_import_rows(
        self,
        *,
        intake_id: str,
        file_id: str,
        rows: Sequence[ImportRowCreate],
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        intake_uuid = _require_uuid(intake_id, "intake_id")
        file_uuid = _require_uuid(file_id, "file_id")
        with self._transaction("record_import_rows") as repository:
            return repository.bulk_insert_import_rows(
                intake_id=intake_uuid,
                file_id=file_uuid,
                rows=rows,
                batch_size=batch_size,
            )

    def insert_health_snapshot(self, record: HealthSnapshotCreate) -> str:
        with self._transaction("insert_health_snapshot") as repository:
            return str(repository.create_health_snapshot(record).id)

    def insert_menu_suggestions(self, records: Sequence[MenuSuggestionCreate]) -> int:
        with self._transaction("insert_menu_suggestions") as repository:
            return repository.bulk_insert_menu_suggestions(records)

    def insert_inspection_suggestions(self, records: Sequence[InspectionSuggestionCreate]) -> int:
        with self._transaction("insert_inspection_suggestions") as repository:
            return repository.bulk_insert_inspection_suggestions(records)

    def upsert_profile_summary(self, *, shop_id: str, summary: str, refreshed_at: datetime) -> None:
        shop_uuid = _require_uuid(shop_id, "shop_id")
        with self._transaction("upsert_profile_summary") as repository:
            repository.upsert_profile_summary(shop_id=shop_uuid, summary=summary, refreshed_at=refreshed_at)

    def insert_training_event(self, *, shop_id: str, source: str, payload: dict[str, Any]) -> str | None:
        shop_uuid = _require_uuid(shop_id, "shop_id")
        with self._transaction("insert_training_event") as repository:
            event = repository.create_training_event(shop_id=shop_uuid, source=source, payload=payload)
            return str(event.id) if event.id is not None else None

    def insert_training_data(self, *, shop_id: str, source_event_id: str, content: str) -> None:
        shop_uuid = _require_uuid(shop_id, "shop_id")
        event_uuid = _require_uuid(source_event_id, "source_event_id")
        with self._transaction("insert_training_data") as repository:
            repository.create_training_data(shop_id=shop_uuid, source_event_id=event_uuid, content=content)
