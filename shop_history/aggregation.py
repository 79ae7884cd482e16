"""
shop_history/aggregation.py

Folds decoded CSV rows into per-description frequency and revenue.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Sequence

from app.logging_utils import log_event
from shop_history.columns import NO_COLUMN, choose_description_column, choose_total_column
from shop_history.csv_lines import decode_rows
from shop_history.descriptions import normalize_description
from shop_history.types import (
    GENERAL_REPAIR_LABEL,
    ZERO_MONEY,
    DerivedStats,
    RawRow,
    RepairAggregateEntry,
    repair_key,
)

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_money(raw: str | None) -> Decimal:
    """
    Keep only digits and dots, then parse exactly. Anything unparsable is 0.
    """

    digits = _NON_NUMERIC.sub("", raw or "")
    if not digits:
        return ZERO_MONEY
    try:
        return Decimal(digits)
    except InvalidOperation:
        return ZERO_MONEY


def _cell(row: RawRow, index: int) -> str:
    if index == NO_COLUMN or index >= len(row):
        return ""
    return row[index].strip()


def aggregate_rows(
    rows: Sequence[RawRow],
    description_index: int,
    total_index: int,
) -> dict[str, RepairAggregateEntry]:
    """
    Aggregate data rows (the header at ``rows[0]`` is skipped).

    The returned mapping is keyed by :func:`repair_key`; the first label
    seen for a key is kept for display.
    """

    repairs: dict[str, RepairAggregateEntry] = {}
    for row in rows[1:]:
        label = normalize_description(_cell(row, description_index) or GENERAL_REPAIR_LABEL)
        total = parse_money(_cell(row, total_index))

        key = repair_key(label)
        existing = repairs.get(key)
        if existing is None:
            repairs[key] = RepairAggregateEntry(label=label, count=1, revenue=total)
        else:
            repairs[key] = RepairAggregateEntry(
                label=existing.label,
                count=existing.count + 1,
                revenue=existing.revenue + total,
            )
    return repairs


def derive_stats_from_rows(rows: Sequence[RawRow], *, log: logging.Logger | None = None) -> DerivedStats:
    """
    Classify the header, aggregate the data rows and build ``DerivedStats``.
    """

    if len(rows) < 2:
        return DerivedStats.empty()

    header = rows[0]
    description_index = choose_description_column(header)
    total_index = choose_total_column(header)
    log_event(
        log or logger,
        logging.DEBUG,
        "repair_history_columns_resolved",
        description=header[description_index] if description_index != NO_COLUMN else None,
        total=header[total_index] if total_index != NO_COLUMN else None,
    )
    return DerivedStats.from_repairs(aggregate_rows(rows, description_index, total_index))


def derive_stats_from_csv(text: str | None, *, log: logging.Logger | None = None) -> DerivedStats:
    """
    Derive stats from the repair-history export text; empty stats when absent.
    """

    return derive_stats_from_rows(decode_rows(text), log=log)
