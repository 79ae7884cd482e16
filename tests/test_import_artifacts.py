"""
tests/test_import_artifacts.py

Recording downloaded exports as import files and raw rows.
"""

from __future__ import annotations

import hashlib
import json

from app.services.import_artifacts import (
    ImportArtifactRecorder,
    ImportFileInput,
    ImportStats,
    build_import_rows,
    original_filename,
)
from tests.conftest import CUSTOMERS_CSV, INTAKE_ID, VEHICLES_CSV, FakeShopBoostStore


def _files(**texts: str | None) -> list[ImportFileInput]:
    return [
        ImportFileInput(kind=kind, storage_path=f"shop/{kind}.csv", csv_text=text)
        for kind, text in texts.items()
    ]


def test_build_rows_maps_header_to_values() -> None:
    rows = build_import_rows(CUSTOMERS_CSV, "customers")

    assert [row.row_number for row in rows] == [1, 2]
    assert rows[0].entity_type == "customers"
    assert rows[0].raw == {"Customer Name": "Jane Roe", "Phone": "555-0100"}
    assert rows[0].normalized == {}
    assert rows[0].errors == []


def test_blank_headers_become_positional_and_short_rows_pad() -> None:
    rows = build_import_rows("Name,,Phone\nJane,x\n", "customers")

    assert rows[0].raw == {"Name": "Jane", "col_2": "x", "Phone": ""}


def test_header_only_file_has_no_rows() -> None:
    assert build_import_rows("Name,Phone\n", "customers") == []


def test_original_filename_is_last_path_segment() -> None:
    assert original_filename("shop-1/uploads/vehicles.csv") == "vehicles.csv"
    assert original_filename("vehicles.csv/") == "vehicles.csv"


def test_record_writes_files_and_rows() -> None:
    store = FakeShopBoostStore()

    stats = ImportArtifactRecorder(store, batch_size=2).record(
        intake_id=INTAKE_ID,
        files=_files(customers=CUSTOMERS_CSV, vehicles=VEHICLES_CSV, parts=None),
    )

    assert stats.file_count == 2
    assert stats.row_count == 5
    assert stats.rows_for("vehicles") == 3
    assert stats.rows_for("parts") == 0
    assert stats.by_kind["customers"].file_id == "file-customers"

    vehicles = store.import_files[1]
    assert vehicles.kind == "vehicles"
    assert vehicles.original_filename == "vehicles.csv"
    assert vehicles.parsed_row_count == 3
    assert vehicles.sha256 == hashlib.sha256(VEHICLES_CSV.encode("utf-8")).hexdigest()
    assert vehicles.status == "completed"

    file_id, rows, batch_size = store.import_rows[1]
    assert file_id == "file-vehicles"
    assert len(rows) == 3
    assert batch_size == 2


def test_missing_path_or_text_is_skipped() -> None:
    store = FakeShopBoostStore()
    files = [
        ImportFileInput(kind="customers", storage_path=None, csv_text=CUSTOMERS_CSV),
        ImportFileInput(kind="vehicles", storage_path="shop/vehicles.csv", csv_text=""),
    ]

    stats = ImportArtifactRecorder(store).record(intake_id=INTAKE_ID, files=files)

    assert stats == ImportStats()
    assert store.calls == []


def test_file_failure_skips_that_file(recording_logger) -> None:
    logger, handler = recording_logger
    store = FakeShopBoostStore(fail_on=("record_import_file",))

    stats = ImportArtifactRecorder(store, logger=logger).record(
        intake_id=INTAKE_ID, files=_files(vehicles=VEHICLES_CSV)
    )

    assert stats.file_count == 0
    assert store.calls == ["record_import_file"]
    event = json.loads(handler.messages()[0])
    assert event["event"] == "import_file_record_failed"
    assert event["kind"] == "vehicles"


def test_row_failure_keeps_file_counts(recording_logger) -> None:
    logger, handler = recording_logger
    store = FakeShopBoostStore(fail_on=("record_import_rows",))

    stats = ImportArtifactRecorder(store, logger=logger).record(
        intake_id=INTAKE_ID, files=_files(vehicles=VEHICLES_CSV)
    )

    assert stats.file_count == 1
    assert stats.rows_for("vehicles") == 3
    assert json.loads(handler.messages()[0])["event"] == "import_rows_record_failed"


def test_stats_payload() -> None:
    store = FakeShopBoostStore()

    stats = ImportArtifactRecorder(store).record(intake_id=INTAKE_ID, files=_files(vehicles=VEHICLES_CSV))

    assert stats.to_payload() == {
        "fileCount": 1,
        "rowCount": 3,
        "byKind": {
            "customers": {"rows": 0, "fileId": None},
            "vehicles": {"rows": 3, "fileId": "file-vehicles"},
            "parts": {"rows": 0, "fileId": None},
        },
    }
