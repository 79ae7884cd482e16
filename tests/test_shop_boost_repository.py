"""
tests/test_shop_boost_repository.py

SQLAlchemy store behaviour that needs no live database: identifier
validation, error wrapping, chunked inserts and the profile upsert SQL.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from db.repositories.errors import IntakeLookupError, ShopBoostPersistenceError
from db.repositories.shop_boost_repository import (
    ShopBoostRepository,
    SqlAlchemyShopBoostStore,
    _to_record,
)
from db.repositories.types import ImportRowCreate
from tests.conftest import INTAKE_ID, SHOP_ID

NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)


class BrokenSession:
    def __enter__(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def __exit__(self, *exc_info):
        return False


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TestSqlAlchemyStore:
    def test_invalid_ids_find_nothing_without_touching_db(self) -> None:
        factory = MagicMock()
        store = SqlAlchemyShopBoostStore(factory)

        assert store.find_pending_intake("not-a-uuid") is None
        assert store.find_pending_intake(SHOP_ID, "not-a-uuid") is None
        factory.assert_not_called()

    def test_lookup_failure_raises_intake_lookup_error(self) -> None:
        store = SqlAlchemyShopBoostStore(BrokenSession)

        with pytest.raises(IntakeLookupError):
            store.find_pending_intake(SHOP_ID, INTAKE_ID)

    def test_write_failure_raises_persistence_error(self) -> None:
        store = SqlAlchemyShopBoostStore(BrokenSession)

        with pytest.raises(ShopBoostPersistenceError) as exc_info:
            store.upsert_profile_summary(shop_id=SHOP_ID, summary="s", refreshed_at=NOW)
        assert not isinstance(exc_info.value, IntakeLookupError)

    def test_invalid_write_ids_are_rejected(self) -> None:
        store = SqlAlchemyShopBoostStore(MagicMock())

        with pytest.raises(ShopBoostPersistenceError):
            store.mark_intake_completed("nope", NOW)
        with pytest.raises(ShopBoostPersistenceError):
            store.insert_training_data(shop_id=SHOP_ID, source_event_id="nope", content="c")

    def test_store_stats_are_empty(self) -> None:
        stats = SqlAlchemyShopBoostStore(MagicMock()).derive_shop_stats(SHOP_ID)

        assert stats.total_repair_orders == 0
        assert stats.repairs == ()


def _intake_row(questionnaire) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.UUID(INTAKE_ID),
        shop_id=uuid.UUID(SHOP_ID),
        status="pending",
        customers_file_path=None,
        vehicles_file_path="intakes/vehicles.csv",
        parts_file_path=None,
        questionnaire=questionnaire,
        created_at=NOW,
    )


class TestIntakeRecord:
    def test_mapping_questionnaire_is_copied(self) -> None:
        answers = {"specialty": "diesel"}

        record = _to_record(_intake_row(answers))  # type: ignore[arg-type]

        assert record.questionnaire == {"specialty": "diesel"}
        assert record.questionnaire is not answers
        assert record.id == INTAKE_ID

    @pytest.mark.parametrize("questionnaire", [None, [1, 2], "free text"])
    def test_non_mapping_questionnaire_becomes_none(self, questionnaire) -> None:
        record = _to_record(_intake_row(questionnaire))  # type: ignore[arg-type]

        assert record.questionnaire is None


# ---------------------------------------------------------------------------
# Repository statements
# ---------------------------------------------------------------------------


class TestRepositoryStatements:
    def test_import_rows_are_chunked(self) -> None:
        session = MagicMock()
        rows = [
            ImportRowCreate(row_number=n, entity_type="vehicles", raw={"RO": str(n)})
            for n in range(1, 6)
        ]

        inserted = ShopBoostRepository(session).bulk_insert_import_rows(
            intake_id=MagicMock(), file_id=MagicMock(), rows=rows, batch_size=2
        )

        assert inserted == 5
        assert session.execute.call_count == 3
        chunk_sizes = [len(call.args[1]) for call in session.execute.call_args_list]
        assert chunk_sizes == [2, 2, 1]

    def test_no_rows_no_statements(self) -> None:
        session = MagicMock()

        assert ShopBoostRepository(session).bulk_insert_import_rows(
            intake_id=MagicMock(), file_id=MagicMock(), rows=[]
        ) == 0
        session.execute.assert_not_called()

    def test_profile_upsert_targets_shop_id(self) -> None:
        session = MagicMock()

        ShopBoostRepository(session).upsert_profile_summary(
            shop_id=uuid.UUID(SHOP_ID), summary="summary", refreshed_at=NOW
        )

        statement = session.execute.call_args.args[0]
        sql = str(statement.compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT (shop_id) DO UPDATE" in sql
        assert "last_refreshed_at" in sql
