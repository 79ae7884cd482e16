"""Canonical structured output schema for shop health snapshots.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching the keys downstream consumers read.
"""

from typing import Final, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PLACEHOLDER_ID: Final[str] = "<uuid-string>"
"""Sentinel used for ``id`` in the example shape sent to the model.

A suggestion whose id equals this value was not filled in by the model and
gets a generated identifier instead.
"""


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )


class TopRepair(_WireModel):
    label: str = Field(min_length=1)
    count: int = Field(ge=0)
    revenue: float = Field(ge=0.0)
    average_labor_hours: Optional[float] = None


class ComebackRisk(_WireModel):
    label: str = Field(min_length=1)
    count: int = Field(ge=0)
    estimated_lost_hours: Optional[float] = None
    note: Optional[str] = None


class FleetMetric(_WireModel):
    label: str = Field(min_length=1)
    value: float
    unit: Optional[str] = None
    note: Optional[str] = None


class MenuSuggestion(_WireModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    target_vehicle_ymm: Optional[str] = None
    estimated_labor_hours: Optional[float] = None
    recommended_price: Optional[float] = None
    based_on_jobs: List[str] = Field(default_factory=list)


class InspectionSuggestion(_WireModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    usage_context: str = "retail"
    note: Optional[str] = None


IssueSeverity = Literal["low", "medium", "high"]


class ShopHealthIssue(_WireModel):
    key: str
    title: str
    severity: IssueSeverity
    detail: str
    evidence: str


class ShopHealthRecommendation(_WireModel):
    key: str
    title: str
    why: str
    action_steps: List[str] = Field(default_factory=list)
    expected_impact: str


class ShopHealthSnapshot(_WireModel):
    """Only allowed output contract for a shop boost run."""

    shop_id: str = Field(min_length=1)
    time_range_description: str
    total_repair_orders: int = Field(ge=0)
    total_revenue: float = Field(ge=0.0)
    average_ro: float = Field(ge=0.0)
    most_common_repairs: List[TopRepair] = Field(default_factory=list)
    high_value_repairs: List[TopRepair] = Field(default_factory=list)
    comeback_risks: List[ComebackRisk] = Field(default_factory=list)
    fleet_metrics: List[FleetMetric] = Field(default_factory=list)
    menu_suggestions: List[MenuSuggestion] = Field(default_factory=list)
    inspection_suggestions: List[InspectionSuggestion] = Field(default_factory=list)
    narrative_summary: str
    issues_detected: List[ShopHealthIssue] = Field(default_factory=list)
    recommendations: List[ShopHealthRecommendation] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


SNAPSHOT_CORE_KEYS: Final[tuple[str, ...]] = (
    "shopId",
    "timeRangeDescription",
    "totalRepairOrders",
    "totalRevenue",
    "averageRo",
    "mostCommonRepairs",
    "highValueRepairs",
    "comebackRisks",
    "fleetMetrics",
    "menuSuggestions",
    "inspectionSuggestions",
    "narrativeSummary",
)
