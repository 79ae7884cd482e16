"""
Typed DTOs passed between the shop boost pipeline and its relational store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class IntakeRecord:
    """
    Read-only view of one shop boost intake.
    """

    id: str
    shop_id: str
    status: str
    customers_file_path: str | None = None
    vehicles_file_path: str | None = None
    parts_file_path: str | None = None
    questionnaire: dict[str, Any] | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ImportFileCreate:
    """
    One downloaded export file to record as an import artifact.
    """

    intake_id: str
    kind: str
    storage_path: str
    original_filename: str | None
    sha256: str
    parsed_row_count: int
    status: str = "completed"


@dataclass(frozen=True)
class ImportRowCreate:
    """
    One raw CSV data line keyed by header.
    """

    row_number: int
    entity_type: str
    raw: dict[str, str]
    normalized: dict[str, Any] = field(default_factory=dict)
    errors: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class HealthSnapshotCreate:
    shop_id: str
    intake_id: str | None
    metrics: dict[str, Any]
    scores: dict[str, Any]
    narrative_summary: str | None
    period_start: datetime | None = None
    period_end: datetime | None = None


@dataclass(frozen=True)
class MenuSuggestionCreate:
    shop_id: str
    intake_id: str | None
    suggestion_key: str
    title: str
    price_suggestion: float | None
    labor_hours_suggestion: float | None
    confidence: float
    reason: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class InspectionSuggestionCreate:
    shop_id: str
    intake_id: str | None
    suggestion_key: str
    name: str
    items: dict[str, Any]
    applies_to: str
    confidence: float
