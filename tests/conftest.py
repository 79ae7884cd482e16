"""
Shared fakes for shop boost tests: an in-memory store, a dict-backed
object storage and a logger whose records can be inspected.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Sequence

import pytest

from db.repositories.errors import ObjectStorageError, ShopBoostPersistenceError
from db.repositories.types import (
    HealthSnapshotCreate,
    ImportFileCreate,
    ImportRowCreate,
    InspectionSuggestionCreate,
    IntakeRecord,
    MenuSuggestionCreate,
)
from shop_history.types import DerivedStats

SHOP_ID = "5b7f6d8e-0a3c-4d1f-9e2b-7c6a5d4e3f21"
INTAKE_ID = "0f1e2d3c-4b5a-4968-8776-a5b4c3d2e1f0"

VEHICLES_CSV = (
    "RO Number,Technician,Job Description,Labor Rate,Invoice Total\n"
    "1001,Lucas,Brake pad replacement,120,$250.00\n"
    "1002,Maria,Brake pad replacement,120,$300.00\n"
    "1003,Lucas,Oil change,95,80\n"
)
CUSTOMERS_CSV = "Customer Name,Phone\nJane Roe,555-0100\nJohn Doe,555-0101\n"


class FakeShopBoostStore:
    """
    In-memory ``ShopBoostStore``. ``fail_on`` names methods that raise
    ``ShopBoostPersistenceError``.
    """

    def __init__(
        self,
        intake: IntakeRecord | None = None,
        *,
        fail_on: Sequence[str] = (),
        store_stats: DerivedStats | None = None,
        training_event_id: str | None = "evt-1",
    ) -> None:
        self.intake = intake
        self.fail_on = set(fail_on)
        self.store_stats = store_stats or DerivedStats.empty()
        self.training_event_id = training_event_id
        self.calls: list[str] = []
        self.import_files: list[ImportFileCreate] = []
        self.import_rows: list[tuple[str, list[ImportRowCreate], int]] = []
        self.health_snapshots: list[HealthSnapshotCreate] = []
        self.menu_suggestions: list[MenuSuggestionCreate] = []
        self.inspection_suggestions: list[InspectionSuggestionCreate] = []
        self.profiles: dict[str, str] = {}
        self.training_events: list[dict[str, Any]] = []
        self.training_data: list[dict[str, Any]] = []
        self.completed: list[tuple[str, datetime]] = []

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise ShopBoostPersistenceError(f"{name} failed.")

    def find_pending_intake(self, shop_id: str, intake_id: str | None = None) -> IntakeRecord | None:
        self._enter("find_pending_intake")
        if self.intake is None or self.intake.shop_id != shop_id:
            return None
        return self.intake

    def mark_intake_completed(self, intake_id: str, processed_at: datetime) -> None:
        self._enter("mark_intake_completed")
        self.completed.append((intake_id, processed_at))

    def derive_shop_stats(self, shop_id: str) -> DerivedStats:
        self._enter("derive_shop_stats")
        return self.store_stats

    def record_import_file(self, record: ImportFileCreate) -> str:
        self._enter("record_import_file")
        self.import_files.append(record)
        return f"file-{record.kind}"

    def record_import_rows(
        self,
        *,
        intake_id: str,
        file_id: str,
        rows: Sequence[ImportRowCreate],
        batch_size: int = 500,
    ) -> int:
        self._enter("record_import_rows")
        self.import_rows.append((file_id, list(rows), batch_size))
        return len(rows)

    def insert_health_snapshot(self, record: HealthSnapshotCreate) -> str:
        self._enter("insert_health_snapshot")
        self.health_snapshots.append(record)
        return str(uuid.uuid4())

    def insert_menu_suggestions(self, records: Sequence[MenuSuggestionCreate]) -> int:
        self._enter("insert_menu_suggestions")
        self.menu_suggestions.extend(records)
        return len(records)

    def insert_inspection_suggestions(self, records: Sequence[InspectionSuggestionCreate]) -> int:
        self._enter("insert_inspection_suggestions")
        self.inspection_suggestions.extend(records)
        return len(records)

    def upsert_profile_summary(self, *, shop_id: str, summary: str, refreshed_at: datetime) -> None:
        self._enter("upsert_profile_summary")
        self.profiles[shop_id] = summary

    def insert_training_event(self, *, shop_id: str, source: str, payload: dict[str, Any]) -> str | None:
        self._enter("insert_training_event")
        self.training_events.append({"shop_id": shop_id, "source": source, "payload": payload})
        return self.training_event_id

    def insert_training_data(self, *, shop_id: str, source_event_id: str, content: str) -> None:
        self._enter("insert_training_data")
        self.training_data.append(
            {"shop_id": shop_id, "source_event_id": source_event_id, "content": content}
        )


class FakeObjectStorage:
    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects = dict(objects or {})
        self.requests: list[tuple[str, str]] = []

    def download(self, bucket: str, path: str) -> bytes:
        self.requests.append((bucket, path))
        try:
            return self.objects[path]
        except KeyError:
            raise ObjectStorageError(f"{bucket}/{path} not found") from None


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [record.getMessage() for record in self.records]


def make_intake(**overrides: Any) -> IntakeRecord:
    fields: dict[str, Any] = {
        "id": INTAKE_ID,
        "shop_id": SHOP_ID,
        "status": "pending",
        "customers_file_path": f"{SHOP_ID}/customers.csv",
        "vehicles_file_path": f"{SHOP_ID}/vehicles.csv",
        "parts_file_path": None,
        "questionnaire": {"specialty": "general", "techCount": 3, "bayCount": 4},
    }
    fields.update(overrides)
    return IntakeRecord(**fields)


@pytest.fixture()
def recording_logger() -> tuple[logging.Logger, RecordingHandler]:
    logger = logging.getLogger(f"tests.shop_boost.{uuid.uuid4().hex}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = RecordingHandler()
    logger.addHandler(handler)
    return logger, handler


@pytest.fixture()
def intake() -> IntakeRecord:
    return make_intake()


@pytest.fixture()
def storage() -> FakeObjectStorage:
    return FakeObjectStorage(
        {
            f"{SHOP_ID}/customers.csv": CUSTOMERS_CSV.encode("utf-8"),
            f"{SHOP_ID}/vehicles.csv": ("\ufeff" + VEHICLES_CSV).encode("utf-8"),
        }
    )
