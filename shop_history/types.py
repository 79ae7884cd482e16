"""
shop_history/types.py

Value types shared by the repair-history aggregation modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Final

MAX_RANKED_REPAIRS: Final[int] = 10
"""Length cap for both ranked repair lists."""

GENERAL_REPAIR_LABEL: Final[str] = "General Repair"
"""Fallback label for blank or low-information descriptions."""

RawRow = list[str]

ZERO_MONEY: Final[Decimal] = Decimal("0")


def repair_key(label: str) -> str:
    """Identity key for a repair label: case and whitespace insensitive."""
    return " ".join(label.split()).lower()


def to_money(value: Decimal | float | int | str) -> Decimal:
    """
    Exact money value. Floats go through ``str`` so ``0.1`` stays ``0.1``.
    """

    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class ColumnScore:
    """
    Score of one header column.
    """

    index: int
    score: int


@dataclass(frozen=True)
class RepairAggregateEntry:
    """
    Frequency and revenue for one normalized repair description.
    """

    label: str
    count: int
    revenue: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "revenue", to_money(self.revenue))

    @property
    def key(self) -> str:
        return repair_key(self.label)

    def to_payload(self) -> dict[str, Any]:
        return {"label": self.label, "count": self.count, "revenue": float(self.revenue)}


def _most_common_order(entry: RepairAggregateEntry) -> tuple[int, Decimal, str]:
    return (-entry.count, -entry.revenue, entry.key)


def _high_value_order(entry: RepairAggregateEntry) -> tuple[Decimal, int, str]:
    return (-entry.revenue, -entry.count, entry.key)


@dataclass(frozen=True)
class DerivedStats:
    """
    Aggregate repair-order statistics for one shop.

    ``repairs`` is the full per-label aggregate; the two ranked lists are
    truncated views over it.
    """

    total_repair_orders: int = 0
    total_revenue: Decimal = ZERO_MONEY
    repairs: tuple[RepairAggregateEntry, ...] = ()
    comeback_risks: tuple[dict[str, Any], ...] = ()
    fleet_metrics: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_revenue", to_money(self.total_revenue))

    @classmethod
    def empty(cls) -> "DerivedStats":
        return cls()

    @classmethod
    def from_repairs(cls, repairs: dict[str, RepairAggregateEntry]) -> "DerivedStats":
        """Build stats whose totals are the sums over *repairs*."""
        entries = tuple(repairs.values())
        return cls(
            total_repair_orders=sum(entry.count for entry in entries),
            total_revenue=sum((entry.revenue for entry in entries), ZERO_MONEY),
            repairs=entries,
        )

    @property
    def average_ro(self) -> float:
        if self.total_repair_orders <= 0:
            return 0.0
        return float(self.total_revenue / self.total_repair_orders)

    @property
    def most_common_repairs(self) -> list[RepairAggregateEntry]:
        return sorted(self.repairs, key=_most_common_order)[:MAX_RANKED_REPAIRS]

    @property
    def high_value_repairs(self) -> list[RepairAggregateEntry]:
        return sorted(self.repairs, key=_high_value_order)[:MAX_RANKED_REPAIRS]

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the snapshot contract."""
        return {
            "totalRepairOrders": self.total_repair_orders,
            "totalRevenue": float(self.total_revenue),
            "averageRo": self.average_ro,
            "mostCommonRepairs": [entry.to_payload() for entry in self.most_common_repairs],
            "highValueRepairs": [entry.to_payload() for entry in self.high_value_repairs],
            "comebackRisks": [dict(item) for item in self.comeback_risks],
            "fleetMetrics": [dict(item) for item in self.fleet_metrics],
        }


__all__ = [
    "ColumnScore",
    "DerivedStats",
    "GENERAL_REPAIR_LABEL",
    "MAX_RANKED_REPAIRS",
    "RawRow",
    "RepairAggregateEntry",
    "repair_key",
    "to_money",
]
