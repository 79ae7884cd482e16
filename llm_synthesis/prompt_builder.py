"""Structured prompt builder for shop health snapshot synthesis."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from llm_synthesis.schema import PLACEHOLDER_ID
from shop_history.types import DerivedStats

_SHAPE_EXAMPLE: Dict[str, Any] = {
    "shopId": "<string>",
    "timeRangeDescription": "<string>",
    "totalRepairOrders": 0,
    "totalRevenue": 0,
    "averageRo": 0,
    "mostCommonRepairs": [
        {"label": "<string>", "count": 0, "revenue": 0, "averageLaborHours": 0}
    ],
    "highValueRepairs": [
        {"label": "<string>", "count": 0, "revenue": 0, "averageLaborHours": 0}
    ],
    "comebackRisks": [
        {"label": "<string>", "count": 0, "estimatedLostHours": 0, "note": "<string>"}
    ],
    "fleetMetrics": [
        {"label": "<string>", "value": 0, "unit": "<string|null>", "note": "<string|null>"}
    ],
    "menuSuggestions": [
        {
            "id": PLACEHOLDER_ID,
            "name": "<string>",
            "description": "<string>",
            "targetVehicleYmm": "<string|null>",
            "estimatedLaborHours": 0,
            "recommendedPrice": 0,
            "basedOnJobs": ["<string>"],
        }
    ],
    "inspectionSuggestions": [
        {"id": PLACEHOLDER_ID, "name": "<string>", "usageContext": "retail", "note": "<string>"}
    ],
    "narrativeSummary": (
        "<short paragraph summarizing what this shop is good at, "
        "and 2-3 clear next steps>"
    ),
}

_SHAPE_JSON = json.dumps(_SHAPE_EXAMPLE, indent=2)

_SYSTEM_INSTRUCTIONS = (
    "You are an assistant that helps configure an auto and heavy-duty repair shop "
    "management system. Return ONLY valid JSON, no markdown, no commentary."
)

_RULES = """\
Rules:
- Repair labels should be customer-friendly and not person names.
- Menus and inspections should reflect the most common repairs.
"""

_SECTION_TEMPLATE = """\
{title}:
{data}
"""


@dataclass(frozen=True)
class SnapshotPrompt:
    """System and user messages for one completion request."""

    system: str
    user: str


class SnapshotPromptBuilder:
    """Builds a deterministic prompt from questionnaire answers and stats.

    The user message embeds the example shape, whose suggestion ids are the
    shared placeholder sentinel, followed by the questionnaire and the
    merged statistics as JSON.
    """

    def build_prompt(
        self,
        questionnaire: Optional[Mapping[str, Any]],
        stats: DerivedStats,
    ) -> SnapshotPrompt:
        """Build the system and user messages.

        Args:
            questionnaire: Free-form intake answers; ``None`` or any non-mapping
                value is sent as ``{}``.
            stats: Merged repair history statistics.

        Returns:
            A ``SnapshotPrompt`` ready for ``BaseLLMAdapter.complete``.
        """
        sections = self._format_data_sections(
            questionnaire_answers=dict(questionnaire) if isinstance(questionnaire, Mapping) else {},
            aggregate_stats_from_history=stats.to_payload(),
        )
        user = (
            "Return ONLY valid JSON with this exact shape (keys and types):\n"
            f"{_SHAPE_JSON}\n\n"
            f"{sections}\n"
            f"{_RULES}"
        )
        return SnapshotPrompt(system=_SYSTEM_INSTRUCTIONS, user=user)

    def _format_data_sections(self, **data: Any) -> str:
        parts = []
        for key, value in data.items():
            title = key.replace("_", " ").capitalize()
            body = json.dumps(value, indent=2, default=str)
            parts.append(_SECTION_TEMPLATE.format(title=title, data=body))
        return "\n".join(parts)
