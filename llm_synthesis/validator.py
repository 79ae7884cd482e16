"""Validation layer for raw LLM snapshot output.

The completion text is untrusted: it is parsed into a plain structure,
then coerced field by field into ``ShopHealthSnapshot``. Identity fields
are never taken from the model: ``shopId`` is overwritten and placeholder
suggestion ids are replaced.
"""

import json
import math
import re
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from llm_synthesis.schema import (
    PLACEHOLDER_ID,
    ComebackRisk,
    FleetMetric,
    InspectionSuggestion,
    MenuSuggestion,
    ShopHealthSnapshot,
    TopRepair,
)
from shop_history.types import DerivedStats

IdFactory = Callable[[], str]

DEFAULT_TIME_RANGE = "Recent history"
DEFAULT_NARRATIVE = "No summary yet."


def new_suggestion_id() -> str:
    return str(uuid.uuid4())


class LLMOutputValidationError(Exception):
    """Raised when LLM output fails parsing or schema validation.

    Attributes:
        stage: Which validation step failed ("empty_response", "json_parse"
            or "schema").
        errors: List of human-readable error descriptions.
        raw_response: The original string that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: str,
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        message = (
            f"LLM output validation failed at stage '{stage}': "
            + "; ".join(errors)
        )
        super().__init__(message)


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON.

    Args:
        text: Raw LLM response string.

    Returns:
        The text with leading/trailing code fences removed, if present.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def parse_llm_json(raw_response: Optional[str]) -> Dict[str, Any]:
    """Parse a raw completion into an untrusted JSON object.

    Raises:
        LLMOutputValidationError: On empty content, invalid JSON, or a
            top-level value that is not an object.
    """
    if raw_response is None or not raw_response.strip():
        raise LLMOutputValidationError(
            stage="empty_response",
            errors=["completion returned no content"],
            raw_response=raw_response or "",
        )

    cleaned = _strip_markdown_fences(raw_response)
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMOutputValidationError(
            stage="json_parse",
            errors=[str(exc)],
            raw_response=raw_response,
        ) from exc

    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an object"],
            raw_response=raw_response,
        )
    return data


def reconcile_suggestion_id(value: Any, id_factory: IdFactory = new_suggestion_id) -> str:
    """Keep a concrete id, trimmed of surrounding whitespace; replace missing,
    blank or sentinel ids.

    Trimming here matches what the wire models do to every string field.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip() or value.strip() == PLACEHOLDER_ID:
        return id_factory()
    return value.strip()


def reconcile_suggestion_ids(
    entries: Any,
    id_factory: IdFactory = new_suggestion_id,
) -> List[Dict[str, Any]]:
    """Return copies of the suggestion dicts with reconciled ``id`` fields.

    Non-dict entries are dropped.
    """
    if not isinstance(entries, list):
        return []
    reconciled: List[Dict[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        item = dict(entry)
        item["id"] = reconcile_suggestion_id(item.get("id"), id_factory)
        reconciled.append(item)
    return reconciled


def _wire_keys(model: Type[BaseModel]) -> Tuple[str, ...]:
    return tuple(to_camel(name) for name in model.model_fields)


def _coerce_entries(
    raw: Any,
    model: Type[BaseModel],
    errors: List[str],
    path: str,
) -> List[BaseModel]:
    """Validate each dict entry on its own; invalid entries are dropped."""
    if not isinstance(raw, list):
        if raw is not None:
            errors.append(f"{path}: expected a list")
        return []

    keys = _wire_keys(model)
    entries: List[BaseModel] = []
    for position, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.append(f"{path}.{position}: expected an object")
            continue
        projected = {key: item[key] for key in keys if key in item}
        try:
            entries.append(model.model_validate(projected))
        except ValidationError as exc:
            errors.extend(
                f"{path}.{position}.{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
                for e in exc.errors()
            )
    return entries


def _coerce_non_negative(value: Any, fallback: float, *, integer: bool = False) -> float:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number < 0:
        return fallback
    if integer:
        return int(number) if number.is_integer() else fallback
    return number


def _coerce_text(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _fallback_repairs(entries) -> List[TopRepair]:
    return [TopRepair(label=e.label, count=e.count, revenue=float(e.revenue)) for e in entries]


def coerce_snapshot(
    data: Dict[str, Any],
    *,
    shop_id: str,
    fallback_stats: DerivedStats,
    id_factory: IdFactory = new_suggestion_id,
    errors: Optional[List[str]] = None,
) -> ShopHealthSnapshot:
    """Coerce an untrusted payload into a ``ShopHealthSnapshot``.

    Args:
        data: Parsed JSON object from the model.
        shop_id: Caller-supplied shop id; always wins over the model's echo.
        fallback_stats: Merged stats used when totals or repair lists are
            missing or unusable.
        id_factory: Generator for replacement suggestion ids.
        errors: Optional list collecting per-field coercion problems.

    Returns:
        A validated, frozen ``ShopHealthSnapshot``.

    Raises:
        LLMOutputValidationError: If the assembled snapshot still fails
            schema validation.
    """
    problems: List[str] = [] if errors is None else errors

    most_common = data.get("mostCommonRepairs")
    high_value = data.get("highValueRepairs")

    payload = {
        "shop_id": shop_id,
        "time_range_description": _coerce_text(
            data.get("timeRangeDescription"), DEFAULT_TIME_RANGE
        ),
        "total_repair_orders": _coerce_non_negative(
            data.get("totalRepairOrders"), fallback_stats.total_repair_orders, integer=True
        ),
        "total_revenue": _coerce_non_negative(
            data.get("totalRevenue"), float(fallback_stats.total_revenue)
        ),
        "average_ro": _coerce_non_negative(data.get("averageRo"), fallback_stats.average_ro),
        "most_common_repairs": (
            _fallback_repairs(fallback_stats.most_common_repairs)
            if most_common is None
            else _coerce_entries(most_common, TopRepair, problems, "mostCommonRepairs")
        ),
        "high_value_repairs": (
            _fallback_repairs(fallback_stats.high_value_repairs)
            if high_value is None
            else _coerce_entries(high_value, TopRepair, problems, "highValueRepairs")
        ),
        "comeback_risks": _coerce_entries(
            data.get("comebackRisks"), ComebackRisk, problems, "comebackRisks"
        ),
        "fleet_metrics": _coerce_entries(
            data.get("fleetMetrics"), FleetMetric, problems, "fleetMetrics"
        ),
        "menu_suggestions": _coerce_entries(
            reconcile_suggestion_ids(data.get("menuSuggestions"), id_factory),
            MenuSuggestion,
            problems,
            "menuSuggestions",
        ),
        "inspection_suggestions": _coerce_entries(
            reconcile_suggestion_ids(data.get("inspectionSuggestions"), id_factory),
            InspectionSuggestion,
            problems,
            "inspectionSuggestions",
        ),
        "narrative_summary": _coerce_text(data.get("narrativeSummary"), DEFAULT_NARRATIVE),
    }

    try:
        return ShopHealthSnapshot.model_validate(payload)
    except ValidationError as exc:
        raise LLMOutputValidationError(
            stage="schema",
            errors=[
                f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
                for e in exc.errors()
            ],
            raw_response=json.dumps(data, default=str),
        ) from exc


def validate_llm_output(
    raw_response: Optional[str],
    *,
    shop_id: str,
    fallback_stats: DerivedStats,
    id_factory: IdFactory = new_suggestion_id,
    errors: Optional[List[str]] = None,
) -> ShopHealthSnapshot:
    """Parse and coerce a raw completion in one step.

    Steps:
        1. Reject empty content.
        2. Strip optional markdown fences and parse as JSON.
        3. Coerce into ``ShopHealthSnapshot`` with id reconciliation.
    """
    data = parse_llm_json(raw_response)
    return coerce_snapshot(
        data,
        shop_id=shop_id,
        fallback_stats=fallback_stats,
        id_factory=id_factory,
        errors=errors,
    )
