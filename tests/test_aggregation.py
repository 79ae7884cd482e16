"""
tests/test_aggregation.py

Repair aggregation from decoded CSV rows.

Coverage
--------
- Count/revenue accumulation and ranked views
- Exact money parsing and summation
- Case/whitespace-insensitive label identity
- Missing description or total columns
- Totals over the full aggregate (not just the top 10)
"""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from shop_history.aggregation import (
    aggregate_rows,
    derive_stats_from_csv,
    derive_stats_from_rows,
    parse_money,
)
from shop_history.columns import NO_COLUMN
from shop_history.types import DerivedStats


def _stats(*rows: tuple[str, str]) -> DerivedStats:
    return derive_stats_from_rows([["Description", "Total"], *[list(row) for row in rows]])


class TestRanking:
    def test_brake_and_oil_example(self) -> None:
        stats = _stats(
            ("Brake pad replacement", "250"),
            ("Brake pad replacement", "300"),
            ("Oil change", "80"),
        )

        common = stats.most_common_repairs
        assert [(e.label, e.count, e.revenue) for e in common] == [
            ("Brake pad replacement", 2, 550.0),
            ("Oil change", 1, 80.0),
        ]
        assert [e.label for e in stats.high_value_repairs] == ["Brake pad replacement", "Oil change"]

    def test_high_value_order_differs_when_revenue_disagrees_with_count(self) -> None:
        stats = _stats(
            ("Oil change", "60"),
            ("Oil change", "60"),
            ("Oil change", "60"),
            ("Engine replacement", "6400"),
        )

        assert [e.label for e in stats.most_common_repairs] == ["Oil change", "Engine replacement"]
        assert [e.label for e in stats.high_value_repairs] == ["Engine replacement", "Oil change"]

    def test_totals_and_average(self) -> None:
        stats = _stats(("Brakes", "100"), ("Oil change", "50"))

        assert stats.total_repair_orders == 2
        assert stats.total_revenue == Decimal("150")
        assert stats.average_ro == pytest.approx(75.0)

    def test_ranked_views_are_capped_but_totals_are_not(self) -> None:
        rows = [(f"Repair job {i:02d}", "10") for i in range(15)]

        stats = _stats(*rows)

        assert len(stats.most_common_repairs) == 10
        assert len(stats.high_value_repairs) == 10
        assert len(stats.repairs) == 15
        assert stats.total_repair_orders == 15
        assert stats.total_revenue == Decimal("150")


class TestLabels:
    def test_labels_group_case_and_whitespace_insensitively(self) -> None:
        repairs = aggregate_rows(
            [["Description", "Total"], ["Oil  Change", "40"], ["oil change", "45"]],
            description_index=0,
            total_index=1,
        )

        assert list(repairs) == ["oil change"]
        entry = repairs["oil change"]
        assert entry.label == "Oil Change"
        assert entry.count == 2
        assert entry.revenue == Decimal("85")

    def test_missing_description_column_uses_general_repair(self) -> None:
        repairs = aggregate_rows(
            [["Total"], ["100"], ["20"]],
            description_index=NO_COLUMN,
            total_index=0,
        )

        assert [(e.label, e.count, e.revenue) for e in repairs.values()] == [
            ("General Repair", 2, 120.0)
        ]

    def test_technician_names_collapse_into_general_repair(self) -> None:
        stats = _stats(("Lucas", "100"), ("Maria", "90"), ("Brake flush", "120"))

        assert stats.most_common_repairs[0].label == "General Repair"
        assert stats.most_common_repairs[0].count == 2


class TestMoney:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("$1,250.00", Decimal("1250.00")),
            ("80", Decimal("80")),
            (" 12.5 USD", Decimal("12.5")),
            ("", Decimal("0")),
            (None, Decimal("0")),
            ("n/a", Decimal("0")),
            ("1.2.3", Decimal("0")),
            (".", Decimal("0")),
        ],
    )
    def test_parse_money(self, raw: str | None, expected: Decimal) -> None:
        parsed = parse_money(raw)

        assert isinstance(parsed, Decimal)
        assert parsed == expected

    def test_cents_sum_exactly(self) -> None:
        stats = _stats(("Oil change", "0.10"), ("Oil change", "0.20"), ("Wiper blades", "19.99"))

        assert stats.total_revenue == Decimal("20.29")
        assert stats.repairs[0].revenue == Decimal("0.30")
        assert stats.to_payload()["totalRevenue"] == 20.29

    def test_missing_total_column_counts_zero_revenue(self) -> None:
        stats = derive_stats_from_rows([["Description"], ["Oil change"]])

        assert stats.total_repair_orders == 1
        assert stats.total_revenue == Decimal("0")


class TestFromCsv:
    def test_vendor_export_picks_description_and_total(self) -> None:
        text = (
            "RO Number,Technician,Job Description,Labor Rate,Invoice Total\n"
            "1001,Lucas,Brake pad replacement,120,$250.00\n"
            '1002,Maria,"Brake pad replacement, front",120,"$1,300.00"\n'
        )

        stats = derive_stats_from_csv(text)

        assert {e.label for e in stats.repairs} == {
            "Brake pad replacement",
            "Brake pad replacement, front",
        }
        assert stats.total_revenue == Decimal("1550.00")

    @pytest.mark.parametrize("text", [None, "", "Description,Total\n"])
    def test_empty_or_header_only_file(self, text: str | None) -> None:
        assert derive_stats_from_csv(text) == DerivedStats.empty()

    def test_payload_uses_camel_case_keys(self) -> None:
        payload = derive_stats_from_csv("Description,Total\nOil change,80\n").to_payload()

        assert payload["totalRepairOrders"] == 1
        assert payload["averageRo"] == pytest.approx(80.0)
        assert payload["mostCommonRepairs"] == [{"label": "Oil change", "count": 1, "revenue": 80.0}]
        assert payload["comebackRisks"] == []
        assert payload["fleetMetrics"] == []

    def test_resolved_columns_are_logged_as_json(self, recording_logger) -> None:
        logger, handler = recording_logger
        text = "RO Number,Job Description,Invoice Total\n1001,Oil change,80\n"

        derive_stats_from_csv(text, log=logger)

        assert [json.loads(message) for message in handler.messages()] == [
            {
                "event": "repair_history_columns_resolved",
                "description": "Job Description",
                "total": "Invoice Total",
            }
        ]
