"""
shop_history/merge.py

Combines independently computed ``DerivedStats``.

``merge_stats`` is associative, and commutative over totals and repair
aggregates: totals add, the average is recomputed from the merged totals
and repair aggregates are unioned by label key. Comeback risks and fleet
metrics are concatenated in argument order.
"""

from __future__ import annotations

from functools import reduce
from typing import Iterable

from shop_history.types import DerivedStats, RepairAggregateEntry


def merge_repair_entries(
    left: Iterable[RepairAggregateEntry],
    right: Iterable[RepairAggregateEntry],
) -> tuple[RepairAggregateEntry, ...]:
    """
    Union by label key, summing count and revenue for shared keys.
    """

    merged: dict[str, RepairAggregateEntry] = {}
    for entry in (*left, *right):
        existing = merged.get(entry.key)
        if existing is None:
            merged[entry.key] = entry
            continue
        merged[entry.key] = RepairAggregateEntry(
            # min() keeps the display label independent of argument order
            label=min(existing.label, entry.label),
            count=existing.count + entry.count,
            revenue=existing.revenue + entry.revenue,
        )
    return tuple(merged[key] for key in sorted(merged))


def merge_stats(a: DerivedStats, b: DerivedStats) -> DerivedStats:
    return DerivedStats(
        total_repair_orders=a.total_repair_orders + b.total_repair_orders,
        total_revenue=a.total_revenue + b.total_revenue,
        repairs=merge_repair_entries(a.repairs, b.repairs),
        comeback_risks=(*a.comeback_risks, *b.comeback_risks),
        fleet_metrics=(*a.fleet_metrics, *b.fleet_metrics),
    )


def merge_all(stats: Iterable[DerivedStats]) -> DerivedStats:
    """Fold any number of partial results."""
    return reduce(merge_stats, stats, DerivedStats.empty())
