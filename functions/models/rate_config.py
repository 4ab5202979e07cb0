"""Rate configuration models for the estimate engine.

A RateConfig is a named, typed rate record. Records are grouped by
``configType`` (pricing, roomType, service) and carry a payload whose
shape depends on the type. The calculator never reads records directly;
it reads a RateConfigSnapshot built from the active records.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from config.errors import ConfigNotFoundError, InvalidConfigError

logger = structlog.get_logger(__name__)


# =============================================================================
# ENUMS & CONSTANTS
# =============================================================================


class ConfigType(str, Enum):
    """Type of a rate configuration record."""

    PRICING = "pricing"
    ROOM_TYPE = "roomType"
    SERVICE = "service"


class QualityTier(str, Enum):
    """Quality level for furniture, appliances and lighting."""

    BASIC = "basic"
    MID = "mid"
    PREMIUM = "premium"


BASE_RATES_NAME = "baseRates"

# Pricing configs that hold a basic/mid/premium tier table
TIERED_CATEGORIES = ("furniture", "appliances", "lighting")


# =============================================================================
# PAYLOAD MODELS
# =============================================================================


class BaseRates(BaseModel):
    """Flat-rate pricing payload (the ``baseRates`` pricing config)."""

    base_rate: Decimal = Field(..., ge=0, alias="baseRate", description="Rate per sqft")
    per_room_rate: Decimal = Field(..., ge=0, alias="perRoomRate", description="Fee per room")
    gst_rate: Decimal = Field(..., ge=0, le=1, alias="gstRate", description="GST as a fraction")
    custom_materials_fee: Decimal = Field(
        default=Decimal("0"), ge=0, alias="customMaterialsFee",
        description="Flat fee for custom material sourcing"
    )

    class Config:
        populate_by_name = True


class TierRate(BaseModel):
    """One tier of a tiered pricing table."""

    rate: Decimal = Field(..., ge=0, description="Rate per sqft")
    description: Optional[str] = None


class TierRates(BaseModel):
    """Tiered pricing payload (furniture, appliances, lighting)."""

    basic: Optional[TierRate] = None
    mid: Optional[TierRate] = None
    premium: Optional[TierRate] = None

    def get(self, tier: str) -> Optional[TierRate]:
        return getattr(self, QualityTier(tier).value)


class RoomTypeRates(BaseModel):
    """Room type payload."""

    base_rate: Decimal = Field(..., ge=0, alias="baseRate", description="Flat fee for the room")
    per_sqft_rate: Decimal = Field(..., ge=0, alias="perSqftRate", description="Rate per allocated sqft")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class ServiceRates(BaseModel):
    """Additional service payload."""

    base_rate: Decimal = Field(..., ge=0, alias="baseRate", description="Flat fee for the service")
    has_sqft_component: bool = Field(default=False, alias="hasSqftComponent")
    per_sqft_rate: Optional[Decimal] = Field(default=None, ge=0, alias="perSqftRate")
    description: Optional[str] = None

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_sqft_component(self) -> "ServiceRates":
        """A sqft component needs a per-sqft rate."""
        if self.has_sqft_component and self.per_sqft_rate is None:
            raise ValueError("perSqftRate is required when hasSqftComponent is true")
        return self


# =============================================================================
# RATE CONFIG RECORD
# =============================================================================


class RateConfig(BaseModel):
    """A named, typed rate configuration record."""

    id: Optional[str] = Field(default=None, description="Storage identifier")
    name: str = Field(..., min_length=1, description="Unique within configType")
    config_type: ConfigType = Field(..., alias="configType")
    description: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict, description="Type specific payload")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def key(self) -> Tuple[str, str]:
        return (self.config_type, self.name)

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


# =============================================================================
# SNAPSHOT
# =============================================================================


def _recency_key(item: Tuple[int, RateConfig]) -> Tuple[int, datetime, int]:
    index, record = item
    updated = record.updated_at
    if updated is None:
        return (0, datetime.min.replace(tzinfo=timezone.utc), index)
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return (1, updated, index)


def resolve_active(records: Iterable[RateConfig]) -> Dict[Tuple[str, str], RateConfig]:
    """Pick one active record per ``(configType, name)`` pair.

    Inactive records are dropped. Among duplicates the most recently
    updated record wins; records without ``updatedAt`` count as oldest and
    any remaining tie goes to the record that appears last in the input.
    """
    chosen: Dict[Tuple[str, str], Tuple[int, RateConfig]] = {}
    for item in enumerate(records):
        record = item[1]
        if not record.is_active:
            continue
        current = chosen.get(record.key)
        if current is None:
            chosen[record.key] = item
            continue
        winner, loser = (item, current) if _recency_key(item) > _recency_key(current) else (current, item)
        chosen[record.key] = winner
        logger.warning(
            "rate_config_duplicate_discarded",
            config_type=record.config_type,
            name=record.name,
            kept_id=winner[1].id,
            discarded_id=loser[1].id,
        )
    return {key: item[1] for key, item in chosen.items()}


class RateConfigSnapshot:
    """Immutable index of the active rate configs used for one calculation.

    Duplicate active records are resolved by ``resolve_active``. Payloads
    are validated when the snapshot is built, so a malformed record fails
    before any scope is priced against it.
    """

    def __init__(self, records: Iterable[RateConfig]):
        self._records: Dict[Tuple[str, str], RateConfig] = resolve_active(records)
        self._base_rates: Optional[BaseRates] = None
        self._tiers: Dict[str, TierRates] = {}
        self._rooms: Dict[str, RoomTypeRates] = {}
        self._services: Dict[str, ServiceRates] = {}

        for (config_type, name), record in self._records.items():
            if config_type == ConfigType.PRICING.value:
                if name == BASE_RATES_NAME:
                    self._base_rates = self._parse(BaseRates, record)
                elif name in TIERED_CATEGORIES:
                    self._tiers[name] = self._parse(TierRates, record)
            elif config_type == ConfigType.ROOM_TYPE.value:
                self._rooms[name] = self._parse(RoomTypeRates, record)
            elif config_type == ConfigType.SERVICE.value:
                self._services[name] = self._parse(ServiceRates, record)

    @staticmethod
    def _parse(model, record: RateConfig):
        try:
            return model.model_validate(record.config)
        except PydanticValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise InvalidConfigError(
                message=f"Malformed {record.config_type} config {record.name!r}",
                config_type=record.config_type,
                name=record.name,
                details={"errors": errors},
            ) from e

    @classmethod
    def from_dicts(cls, data: Iterable[Dict[str, Any]]) -> "RateConfigSnapshot":
        """Build a snapshot from raw (camelCase or snake_case) dictionaries."""
        return cls(RateConfig.model_validate(item) for item in data)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._records

    @property
    def records(self) -> List[RateConfig]:
        """The winning active records, in resolution order."""
        return list(self._records.values())

    def base_rates(self) -> BaseRates:
        if self._base_rates is None:
            raise ConfigNotFoundError(ConfigType.PRICING.value, BASE_RATES_NAME)
        return self._base_rates

    def tier_rate(self, category: str, tier: str) -> Decimal:
        """Rate per sqft for a furniture/appliances/lighting tier."""
        table = self._tiers.get(category)
        if table is None:
            raise ConfigNotFoundError(ConfigType.PRICING.value, category)
        entry = table.get(tier)
        if entry is None:
            raise ConfigNotFoundError(
                ConfigType.PRICING.value, f"{category}.{tier}", details={"tier": tier}
            )
        return entry.rate

    def room_type(self, name: str) -> RoomTypeRates:
        try:
            return self._rooms[name]
        except KeyError:
            raise ConfigNotFoundError(ConfigType.ROOM_TYPE.value, name) from None

    def service(self, name: str) -> ServiceRates:
        try:
            return self._services[name]
        except KeyError:
            raise ConfigNotFoundError(ConfigType.SERVICE.value, name) from None
