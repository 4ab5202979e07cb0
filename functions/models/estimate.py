"""Estimate document models.

EstimateBreakdown is the calculator's output. EstimateRecord is the
persisted estimate: a scope snapshot plus its priced breakdown and the
caller's metadata.
"""

from enum import Enum
from decimal import Decimal
from typing import Dict, Any, Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from models.scope import ScopeModel


class EstimateStatus(str, Enum):
    """Status of an estimate document."""

    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    TEMPLATE = "template"


# Allowed explicit status changes; approved and template are terminal
STATUS_TRANSITIONS: Dict[str, frozenset] = {
    EstimateStatus.DRAFT.value: frozenset({EstimateStatus.SENT.value}),
    EstimateStatus.SENT.value: frozenset({
        EstimateStatus.APPROVED.value,
        EstimateStatus.REJECTED.value,
        EstimateStatus.DRAFT.value,
    }),
    EstimateStatus.REJECTED.value: frozenset({EstimateStatus.DRAFT.value}),
    EstimateStatus.APPROVED.value: frozenset(),
    EstimateStatus.TEMPLATE.value: frozenset(),
}


class LineItemCategory(str, Enum):
    """Category of a priced line item."""

    BASE = "base"
    ROOMS = "rooms"
    ROOM_TYPE = "room_type"
    FURNITURE = "furniture"
    APPLIANCES = "appliances"
    LIGHTING = "lighting"
    CUSTOM_MATERIALS = "custom_materials"
    SERVICE = "service"


class LineItem(BaseModel):
    """One labelled amount in an estimate breakdown."""

    label: str
    category: LineItemCategory
    amount: Decimal

    class Config:
        use_enum_values = True
        frozen = True


class Milestone(BaseModel):
    """One installment of the payment schedule."""

    label: str
    percentage: Decimal
    amount: Decimal

    class Config:
        frozen = True


class EstimateBreakdown(BaseModel):
    """Line-itemized result of pricing a scope."""

    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")
    category_totals: Dict[str, Decimal] = Field(default_factory=dict, alias="categoryTotals")
    subtotal: Decimal
    gst_rate: Decimal = Field(..., alias="gstRate")
    gst_amount: Decimal = Field(..., alias="gstAmount")
    total: Decimal
    milestones: List[Milestone] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def milestone_percentages(self) -> List[Decimal]:
        return [m.percentage for m in self.milestones]

    def amount_for(self, category: str) -> Decimal:
        """Summed amount of a category, zero when absent."""
        return self.category_totals.get(category, Decimal("0.00"))


class EstimateRecord(BaseModel):
    """Persisted estimate document.

    Priced fields are derived from ``scope``; they change only through an
    explicit recalculation, which produces a new record value.
    """

    id: Optional[str] = Field(default=None, description="Document ID")
    title: str = Field(default="New Estimate")

    # Linkage (never set on templates)
    client_id: Optional[str] = Field(default=None, alias="clientId")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    lead_id: Optional[str] = Field(default=None, alias="leadId")

    scope: ScopeModel

    # Priced output
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")
    category_totals: Dict[str, Decimal] = Field(default_factory=dict, alias="categoryTotals")
    subtotal: Decimal = Field(default=Decimal("0.00"))
    gst_amount: Decimal = Field(default=Decimal("0.00"), alias="gstAmount")
    total: Decimal = Field(default=Decimal("0.00"))
    milestone_percentages: List[Decimal] = Field(default_factory=list, alias="milestonePercentages")
    milestones: List[Milestone] = Field(default_factory=list)

    status: EstimateStatus = Field(default=EstimateStatus.DRAFT)
    is_template: bool = Field(default=False, alias="isTemplate")
    template_name: Optional[str] = Field(default=None, alias="templateName")

    # Timestamps
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    calculated_at: Optional[datetime] = Field(default=None, alias="calculatedAt")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @model_validator(mode="after")
    def validate_record(self) -> "EstimateRecord":
        """Totals reconcile and templates stay unbound."""
        if self.total != self.subtotal + self.gst_amount:
            raise ValueError(
                f"total must equal subtotal + gstAmount, got: "
                f"subtotal={self.subtotal}, gstAmount={self.gst_amount}, total={self.total}"
            )
        if self.is_template:
            if self.status != EstimateStatus.TEMPLATE.value:
                raise ValueError("template estimates must have status 'template'")
            if self.client_id or self.project_id or self.lead_id:
                raise ValueError("template estimates cannot be linked to a client, lead or project")
        elif self.status == EstimateStatus.TEMPLATE.value:
            raise ValueError("status 'template' requires isTemplate")
        return self

    @classmethod
    def from_breakdown(
        cls,
        scope: ScopeModel,
        breakdown: EstimateBreakdown,
        **metadata: Any
    ) -> "EstimateRecord":
        """Build a record from a scope, its breakdown and caller metadata."""
        return cls(
            scope=scope,
            line_items=list(breakdown.line_items),
            category_totals=dict(breakdown.category_totals),
            subtotal=breakdown.subtotal,
            gst_amount=breakdown.gst_amount,
            total=breakdown.total,
            milestone_percentages=breakdown.milestone_percentages,
            milestones=list(breakdown.milestones),
            **metadata,
        )

    def with_breakdown(self, scope: ScopeModel, breakdown: EstimateBreakdown, **changes: Any) -> "EstimateRecord":
        """Return a new record carrying a recomputed breakdown."""
        return self.model_copy(update={
            "scope": scope,
            "line_items": list(breakdown.line_items),
            "category_totals": dict(breakdown.category_totals),
            "subtotal": breakdown.subtotal,
            "gst_amount": breakdown.gst_amount,
            "total": breakdown.total,
            "milestone_percentages": breakdown.milestone_percentages,
            "milestones": list(breakdown.milestones),
            **changes,
        })

    def can_transition_to(self, status: str) -> bool:
        return EstimateStatus(status).value in STATUS_TRANSITIONS[self.status]

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict.

        Firestore has no decimal type, so amounts are stored as strings.

        Returns:
            Dict with camelCase keys for Firestore.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"id"})


class EstimateSummary(BaseModel):
    """Summary view of an estimate for listings."""

    id: str = Field(description="Estimate ID")
    title: str = Field(description="Estimate title")
    status: EstimateStatus = Field(description="Current status")
    project_type: Optional[str] = Field(default=None, alias="projectType")
    total: Decimal = Field(default=Decimal("0.00"))
    is_template: bool = Field(default=False, alias="isTemplate")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @classmethod
    def from_record(cls, record: EstimateRecord) -> "EstimateSummary":
        return cls(
            id=record.id or "",
            title=record.title,
            status=record.status,
            project_type=record.scope.project_type,
            total=record.total,
            is_template=record.is_template,
            updated_at=record.updated_at,
        )
