"""
Deterministic shop health heuristics applied after snapshot synthesis.

Issues are detected from the merged history, the synthesized comeback
risks and the questionnaire; recommendations and scores are derived from
those issues. Nothing here calls the model or the store.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from app.services.import_artifacts import ImportStats
from db.models.shop_import import ImportFileKind
from llm_synthesis.schema import (
    ComebackRisk,
    InspectionSuggestion,
    MenuSuggestion,
    ShopHealthIssue,
    ShopHealthRecommendation,
    ShopHealthSnapshot,
)
from shop_history.types import DerivedStats

DEFAULT_SPECIALTY = "general"

ARO_TARGETS: dict[str, int] = {"hd": 700, "diesel": 700, "mixed": 550}
DEFAULT_ARO_TARGET = 450
MIN_ROS_FOR_ARO_CHECK = 15

COMEBACK_MIN_COUNT = 3
COMEBACK_MIN_RATE = 0.05

TECH_PER_BAY_MIN = 0.6
TECH_PER_BAY_MAX = 1.25

RISK_WEIGHTS: dict[str, float] = {"comebacks": 0.5, "low_aro": 0.3, "bay_imbalance": 0.2}
OTHER_RISK_WEIGHT = 0.1

HISTORY_VOLUME_FULL_ROS = 200
MAX_RECOMMENDATIONS = 6


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round2(value: float) -> float:
    return round_half_up(value, 2)


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def severity_from_score(score: float) -> str:
    if score >= 80:
        return "high"
    if score >= 50:
        return "medium"
    return "low"


def questionnaire_specialty(questionnaire: Mapping[str, Any] | None) -> str:
    if not isinstance(questionnaire, Mapping):
        return DEFAULT_SPECIALTY
    value = questionnaire.get("specialty")
    if isinstance(value, str) and value.strip():
        return value.strip().lower()
    return DEFAULT_SPECIALTY


def read_questionnaire_number(questionnaire: Mapping[str, Any] | None, key: str) -> float | None:
    """
    Numeric questionnaire answer; numeric strings are accepted.
    """

    if not isinstance(questionnaire, Mapping):
        return None
    value = questionnaire.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _format_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _comeback_issue(total_ros: int, comeback_risks: Sequence[ComebackRisk]) -> ShopHealthIssue | None:
    count = sum(risk.count for risk in comeback_risks)
    rate = count / total_ros if total_ros > 0 else 0.0
    if count < COMEBACK_MIN_COUNT and rate < COMEBACK_MIN_RATE:
        return None

    score = min(100, round_half_up(rate * 1000 + count * 6))
    if total_ros > 0:
        evidence = (
            f"{count} repeat signals across {total_ros} ROs "
            f"(~{int(round_half_up(rate * 100))}%)."
        )
    else:
        evidence = f"{count} repeat signals detected."
    return ShopHealthIssue(
        key="comebacks",
        title="Repeat issues / comeback risk",
        severity=severity_from_score(score),
        detail=(
            "Repeat patterns in the history point to comebacks and lost bay time. "
            "A QC step and targeted inspections catch them before delivery."
        ),
        evidence=evidence,
    )


def _low_aro_issue(stats: DerivedStats, specialty: str) -> ShopHealthIssue | None:
    target = ARO_TARGETS.get(specialty, DEFAULT_ARO_TARGET)
    aro = stats.average_ro
    if stats.total_repair_orders < MIN_ROS_FOR_ARO_CHECK or not 0 < aro < target:
        return None

    score = min(100, round_half_up((target - aro) / target * 120))
    return ShopHealthIssue(
        key="low_aro",
        title="Average RO looks low",
        severity=severity_from_score(score),
        detail=(
            "The average repair order suggests packaged services are being missed. "
            "Build two or three menu packages around the most common repairs "
            "and attach an inspection to lift ARO."
        ),
        evidence=f"ARO {int(round_half_up(aro))} vs target ~{target} for {specialty}.",
    )


def _bay_imbalance_issue(questionnaire: Mapping[str, Any] | None) -> ShopHealthIssue | None:
    tech_count = read_questionnaire_number(questionnaire, "techCount")
    bay_count = read_questionnaire_number(questionnaire, "bayCount")
    if not tech_count or not bay_count or bay_count <= 0:
        return None

    ratio = tech_count / bay_count
    if TECH_PER_BAY_MIN <= ratio <= TECH_PER_BAY_MAX:
        return None

    distance = TECH_PER_BAY_MIN - ratio if ratio < TECH_PER_BAY_MIN else ratio - TECH_PER_BAY_MAX
    score = min(100, round_half_up(distance * 160))
    return ShopHealthIssue(
        key="bay_imbalance",
        title="Tech-to-bay imbalance",
        severity=severity_from_score(score),
        detail=(
            "The staffing ratio means bays sit idle or techs wait on bays. "
            "Tighter dispatch rules and a WIP board keep bays loaded."
        ),
        evidence=(
            f"{_format_count(tech_count)} techs / {_format_count(bay_count)} bays = "
            f"{ratio:.2f} tech per bay."
        ),
    )


def detect_issues(
    *,
    questionnaire: Mapping[str, Any] | None,
    stats: DerivedStats,
    comeback_risks: Sequence[ComebackRisk],
) -> list[ShopHealthIssue]:
    """Comebacks, low average RO and tech-to-bay imbalance, in that order."""
    candidates = (
        _comeback_issue(stats.total_repair_orders, comeback_risks),
        _low_aro_issue(stats, questionnaire_specialty(questionnaire)),
        _bay_imbalance_issue(questionnaire),
    )
    return [issue for issue in candidates if issue is not None]


def build_recommendations(
    *,
    issues: Sequence[ShopHealthIssue],
    stats: DerivedStats,
    menu_suggestions: Sequence[MenuSuggestion],
    inspection_suggestions: Sequence[InspectionSuggestion],
) -> list[ShopHealthRecommendation]:
    """
    Publish menus and inspections when suggested, then one recommendation
    per detected issue. At most ``MAX_RECOMMENDATIONS`` are returned.
    """

    issue_keys = {issue.key for issue in issues}
    recommendations: list[ShopHealthRecommendation] = []

    if menu_suggestions:
        recommendations.append(
            ShopHealthRecommendation(
                key="publish_menus",
                title="Publish the suggested menu packages",
                why="Packages standardize pricing, make quoting consistent and lift ARO.",
                action_steps=[
                    "Review the top suggested menus and adjust price and labor time.",
                    "Enable them as available services.",
                    "Have advisors attach one package per matching complaint.",
                ],
                expected_impact="Higher ARO, faster estimates and consistent quotes.",
            )
        )

    if inspection_suggestions:
        recommendations.append(
            ShopHealthRecommendation(
                key="publish_inspections",
                title="Attach an inspection to every RO type",
                why="Consistent inspections surface upsells early and reduce comebacks.",
                action_steps=[
                    "Make one or two suggested inspections the default per work type.",
                    "Require a photo and note on every failed item.",
                    "Turn inspection results into recommended services.",
                ],
                expected_impact="More approved work and fewer missed items.",
            )
        )

    if "comebacks" in issue_keys:
        recommendations.append(
            ShopHealthRecommendation(
                key="reduce_comebacks_qc",
                title="Add a QC step to reduce comebacks",
                why="Repeat repairs consume bay time; a short QC pass catches misses.",
                action_steps=[
                    "Create a post-repair QC inspection of 10 to 15 items.",
                    "Require QC sign-off before invoicing high-risk jobs.",
                    "Review repeat issues monthly and tune the checklist.",
                ],
                expected_impact="Lower comeback rate and fewer rechecks.",
            )
        )

    if "low_aro" in issue_keys:
        common = stats.most_common_repairs
        top_repair = common[0].label if common else "the most common repairs"
        recommendations.append(
            ShopHealthRecommendation(
                key="raise_aro_packages",
                title="Lift ARO with bundled packages",
                why="Bundles turn frequent complaints into predictable, higher-value tickets.",
                action_steps=[
                    f"Create a package built around: {top_repair}.",
                    "Add one complementary add-on as the default suggestion.",
                    "Offer basic, standard and premium options.",
                ],
                expected_impact="Higher ARO and easier approvals.",
            )
        )

    if "bay_imbalance" in issue_keys:
        recommendations.append(
            ShopHealthRecommendation(
                key="dispatch_balance",
                title="Tighten dispatch rules to keep bays loaded",
                why="When bay and tech capacity do not match, work stalls in WIP.",
                action_steps=[
                    "Track jobs on a WIP board from waiting to done.",
                    "Follow up on any job waiting for approval longer than two hours.",
                    "Use job status to surface blocked work.",
                ],
                expected_impact="Shorter cycle time and better utilization.",
            )
        )

    return recommendations[:MAX_RECOMMENDATIONS]


def compute_scores(
    *,
    questionnaire: Mapping[str, Any] | None,
    stats: DerivedStats,
    snapshot: ShopHealthSnapshot,
    issues: Sequence[ShopHealthIssue],
    import_stats: ImportStats,
) -> dict[str, Any]:
    """
    Component scores in [0, 1] and the weighted overall score.

    The vehicles (repair-order) export drives completeness and
    classification; risk rises with each detected issue.
    """

    has_vehicles = import_stats.rows_for(ImportFileKind.VEHICLES) > 0
    has_customers = import_stats.rows_for(ImportFileKind.CUSTOMERS) > 0
    has_parts = import_stats.rows_for(ImportFileKind.PARTS) > 0

    completeness = clamp01(
        (0.6 if has_vehicles else 0.0)
        + (0.2 if has_customers else 0.0)
        + (0.2 if has_parts else 0.0)
    )
    history_volume = clamp01(stats.total_repair_orders / HISTORY_VOLUME_FULL_ROS)

    menu_count = len(snapshot.menu_suggestions)
    inspection_count = len(snapshot.inspection_suggestions)
    classification = clamp01(
        0.35 + min(0.65, (menu_count + inspection_count) * 0.08) if has_vehicles else 0.0
    )

    risk = clamp01(sum(RISK_WEIGHTS.get(issue.key, OTHER_RISK_WEIGHT) for issue in issues))
    overall = clamp01(
        completeness * 0.35 + history_volume * 0.25 + classification * 0.25 + (1 - risk) * 0.15
    )

    if has_vehicles:
        present = ["Vehicles history present"]
        if has_customers:
            present.append("customers present")
        if has_parts:
            present.append("parts present")
        completeness_note = ", ".join(present) + "."
    else:
        completeness_note = "No vehicles history detected."

    return {
        "overall": round2(overall),
        "risk": round2(risk),
        "components": {
            "completeness": {"score": round2(completeness), "note": completeness_note},
            "historyVolume": {
                "score": round2(history_volume),
                "note": f"Based on {stats.total_repair_orders} repair orders.",
            },
            "classification": {
                "score": round2(classification),
                "note": (
                    f"Derived from suggestions generated "
                    f"(menus: {menu_count}, inspections: {inspection_count})."
                ),
            },
        },
        "meta": {
            "specialty": questionnaire_specialty(questionnaire),
            "import_row_count": import_stats.row_count,
            "import_file_count": import_stats.file_count,
        },
    }


def build_metrics(
    *,
    questionnaire: Mapping[str, Any] | None,
    stats: DerivedStats,
    import_stats: ImportStats,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    history = stats.to_payload()
    return {
        "specialty": questionnaire_specialty(questionnaire),
        "import": import_stats.to_payload(),
        "history": {
            key: history[key]
            for key in (
                "totalRepairOrders",
                "totalRevenue",
                "averageRo",
                "mostCommonRepairs",
                "highValueRepairs",
            )
        },
        "generatedAt": (generated_at or datetime.now(timezone.utc)).isoformat(),
    }
