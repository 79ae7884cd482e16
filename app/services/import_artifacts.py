"""
Records the downloaded exports of an intake as import artifacts.

Each present file becomes one ``shop_import_files`` row plus its data
lines as raw header → value dicts in ``shop_import_rows``. Store failures
are logged and the file is skipped; the pipeline keeps going.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from app.logging_utils import log_event
from db.models.shop_import import ImportFileKind
from db.repositories.errors import ShopBoostPersistenceError
from db.repositories.shop_boost_repository import ShopBoostStore
from db.repositories.types import ImportFileCreate, ImportRowCreate
from shop_history.csv_lines import count_data_rows, decode_rows

IMPORT_FILE_KINDS: tuple[str, ...] = (
    ImportFileKind.CUSTOMERS,
    ImportFileKind.VEHICLES,
    ImportFileKind.PARTS,
)


@dataclass(frozen=True)
class ImportFileInput:
    kind: str
    storage_path: str | None
    csv_text: str | None


@dataclass(frozen=True)
class ImportKindStats:
    rows: int = 0
    file_id: str | None = None


@dataclass(frozen=True)
class ImportStats:
    """
    Counts of recorded files and rows, overall and per file kind.
    """

    file_count: int = 0
    row_count: int = 0
    by_kind: dict[str, ImportKindStats] = field(
        default_factory=lambda: {kind: ImportKindStats() for kind in IMPORT_FILE_KINDS}
    )

    def rows_for(self, kind: str) -> int:
        return self.by_kind.get(kind, ImportKindStats()).rows

    def to_payload(self) -> dict[str, Any]:
        return {
            "fileCount": self.file_count,
            "rowCount": self.row_count,
            "byKind": {
                kind: {"rows": stats.rows, "fileId": stats.file_id}
                for kind, stats in self.by_kind.items()
            },
        }


def original_filename(storage_path: str) -> str:
    parts = [part for part in storage_path.split("/") if part]
    return parts[-1] if parts else storage_path


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def build_import_rows(csv_text: str, entity_type: str) -> list[ImportRowCreate]:
    """
    Map every data line to ``{header: value}``; blank headers become ``col_<n>`` (1-based).
    """

    decoded = decode_rows(csv_text)
    if len(decoded) < 2:
        return []

    header = decoded[0]
    rows: list[ImportRowCreate] = []
    for row_number, values in enumerate(decoded[1:], start=1):
        raw = {
            (name or f"col_{position + 1}"): (values[position] if position < len(values) else "")
            for position, name in enumerate(header)
        }
        rows.append(ImportRowCreate(row_number=row_number, entity_type=entity_type, raw=raw))
    return rows


class ImportArtifactRecorder:
    def __init__(
        self,
        store: ShopBoostStore,
        *,
        batch_size: int = 500,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._batch_size = max(1, batch_size)
        self._logger = logger or logging.getLogger(__name__)

    def record(self, *, intake_id: str, files: Sequence[ImportFileInput]) -> ImportStats:
        by_kind = {kind: ImportKindStats() for kind in IMPORT_FILE_KINDS}
        file_count = 0
        row_count = 0

        for item in files:
            if not item.storage_path or not item.csv_text:
                continue

            rows = count_data_rows(item.csv_text)
            try:
                file_id = self._store.record_import_file(
                    ImportFileCreate(
                        intake_id=intake_id,
                        kind=item.kind,
                        storage_path=item.storage_path,
                        original_filename=original_filename(item.storage_path),
                        sha256=sha256_hex(item.csv_text),
                        parsed_row_count=rows,
                    )
                )
            except ShopBoostPersistenceError as exc:
                log_event(
                    self._logger,
                    logging.ERROR,
                    "import_file_record_failed",
                    intake_id=intake_id,
                    kind=item.kind,
                    error=str(exc),
                )
                continue

            file_count += 1
            row_count += rows
            by_kind[item.kind] = ImportKindStats(rows=rows, file_id=file_id)

            try:
                self._store.record_import_rows(
                    intake_id=intake_id,
                    file_id=file_id,
                    rows=build_import_rows(item.csv_text, item.kind),
                    batch_size=self._batch_size,
                )
            except ShopBoostPersistenceError as exc:
                log_event(
                    self._logger,
                    logging.WARNING,
                    "import_rows_record_failed",
                    intake_id=intake_id,
                    kind=item.kind,
                    file_id=file_id,
                    error=str(exc),
                )

        return ImportStats(file_count=file_count, row_count=row_count, by_kind=by_kind)
