"""Scope model for the estimate engine.

The scope is the calculator's input: what is being estimated.
"""

from typing import Tuple

from pydantic import BaseModel, Field, field_validator

from models.rate_config import QualityTier


class ScopeModel(BaseModel):
    """Structured description of the work being estimated.

    ``layout_type`` and ``comments`` are informational and never enter
    the arithmetic. The model is frozen and its name lists are tuples; a
    changed scope is a new scope.
    """

    project_type: str = Field(default="residential", alias="projectType")
    room_count: int = Field(default=0, ge=0, alias="roomCount")
    sqft: int = Field(default=0, ge=0, description="Total square footage")
    layout_type: str = Field(default="", alias="layoutType")
    rooms: Tuple[str, ...] = Field(default=(), description="Ordered room type names")
    furniture: QualityTier = Field(default=QualityTier.MID)
    appliances: QualityTier = Field(default=QualityTier.MID)
    lighting: QualityTier = Field(default=QualityTier.MID)
    custom_materials: bool = Field(default=False, alias="customMaterials")
    additional_services: Tuple[str, ...] = Field(default=(), alias="additionalServices")
    comments: str = Field(default="")

    class Config:
        populate_by_name = True
        use_enum_values = True
        frozen = True
        extra = "forbid"

    @field_validator("rooms", "additional_services")
    @classmethod
    def strip_names(cls, values: Tuple[str, ...]) -> Tuple[str, ...]:
        """Names must be non-blank; surrounding whitespace is dropped."""
        cleaned = tuple(v.strip() for v in values)
        if any(not v for v in cleaned):
            raise ValueError("names must not be blank")
        return cleaned

    @field_validator("additional_services")
    @classmethod
    def dedupe_services(cls, values: Tuple[str, ...]) -> Tuple[str, ...]:
        """Services are a set; keep first occurrence order."""
        return tuple(dict.fromkeys(values))

    def to_firestore_dict(self):
        """Convert to a dict with camelCase keys; name tuples become lists."""
        return self.model_dump(mode="json", by_alias=True)
