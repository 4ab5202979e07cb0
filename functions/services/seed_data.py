"""Seed catalogue for the estimate engine.

Initial rate configs (base rates, tier tables, room types, services) and
the canonical scope templates. Loading them is a one-time data concern;
the shapes here are exactly what the calculator reads.
"""

from typing import Any, Dict, List

import structlog

from models.estimate import EstimateRecord, EstimateStatus
from models.rate_config import RateConfig
from services.rate_config_store import RateConfigStore
from validators.scope_validator import parse_scope

logger = structlog.get_logger(__name__)


# =============================================================================
# PRICING
# =============================================================================

PRICING_CONFIGS: List[Dict[str, Any]] = [
    {
        "name": "baseRates",
        "description": "Base pricing rates for estimates",
        "configType": "pricing",
        "config": {
            "baseRate": 20,             # per sqft
            "perRoomRate": 1500,
            "gstRate": "0.05",
            "customMaterialsFee": 2500,
        },
    },
    {
        "name": "furniture",
        "description": "Furniture pricing tiers",
        "configType": "pricing",
        "config": {
            "basic": {"rate": 15, "description": "Basic furniture package"},
            "mid": {"rate": 30, "description": "Mid-range furniture package"},
            "premium": {"rate": 50, "description": "Premium furniture package"},
        },
    },
    {
        "name": "appliances",
        "description": "Appliance pricing tiers",
        "configType": "pricing",
        "config": {
            "basic": {"rate": 10, "description": "Basic appliance package"},
            "mid": {"rate": 20, "description": "Mid-range appliance package"},
            "premium": {"rate": 35, "description": "Premium appliance package"},
        },
    },
    {
        "name": "lighting",
        "description": "Lighting pricing tiers",
        "configType": "pricing",
        "config": {
            "basic": {"rate": 5, "description": "Basic lighting package"},
            "mid": {"rate": 12, "description": "Mid-range lighting package"},
            "premium": {"rate": 25, "description": "Premium lighting package"},
        },
    },
]


# =============================================================================
# ROOM TYPES
# =============================================================================

# name -> (baseRate, perSqftRate)
ROOM_TYPE_RATES = {
    "Kitchen": (2500, 25),
    "Living Room": (1800, 15),
    "Bedroom": (1200, 12),
    "Bathroom": (2000, 30),
    "Dining Room": (1500, 12),
    "Home Office": (1600, 14),
    "Entryway": (800, 10),
}

ROOM_TYPE_CONFIGS: List[Dict[str, Any]] = [
    {
        "name": name,
        "description": f"{name} design configuration",
        "configType": "roomType",
        "config": {
            "baseRate": base_rate,
            "perSqftRate": per_sqft_rate,
            "description": f"{name} design and layout",
        },
    }
    for name, (base_rate, per_sqft_rate) in ROOM_TYPE_RATES.items()
]


# =============================================================================
# SERVICES
# =============================================================================

SERVICE_CONFIGS: List[Dict[str, Any]] = [
    {
        "name": "3D Rendering",
        "description": "3D rendering service",
        "configType": "service",
        "config": {
            "baseRate": 800,
            "hasSqftComponent": False,
            "description": "Photorealistic 3D renderings of design",
        },
    },
    {
        "name": "Project Management",
        "description": "Project management service",
        "configType": "service",
        "config": {
            "baseRate": 2500,
            "hasSqftComponent": True,
            "perSqftRate": 5,
            "description": "Full-service project management",
        },
    },
    {
        "name": "Furniture Procurement",
        "description": "Furniture procurement service",
        "configType": "service",
        "config": {
            "baseRate": 1500,
            "hasSqftComponent": False,
            "description": "Sourcing and procurement of furniture items",
        },
    },
    {
        "name": "Custom Millwork Design",
        "description": "Custom millwork design service",
        "configType": "service",
        "config": {
            "baseRate": 3500,
            "hasSqftComponent": True,
            "perSqftRate": 8,
            "description": "Design and installation of custom millwork",
        },
    },
    {
        "name": "Color Consultation",
        "description": "Color consultation service",
        "configType": "service",
        "config": {
            "baseRate": 500,
            "hasSqftComponent": False,
            "description": "Professional color scheme consultation",
        },
    },
    {
        "name": "Lighting Design",
        "description": "Lighting design service",
        "configType": "service",
        "config": {
            "baseRate": 1200,
            "hasSqftComponent": True,
            "perSqftRate": 3,
            "description": "Custom lighting design plan",
        },
    },
]


# =============================================================================
# TEMPLATES
# =============================================================================

TEMPLATE_SCOPES: List[Dict[str, Any]] = [
    {
        "title": "Modern Residential Kitchen",
        "milestones": [40, 40, 20],
        "scope": {
            "projectType": "residential",
            "roomCount": 1,
            "sqft": 250,
            "layoutType": "open",
            "rooms": ["Kitchen"],
            "furniture": "mid",
            "appliances": "mid",
            "lighting": "mid",
            "customMaterials": False,
            "additionalServices": ["3D Rendering"],
            "comments": "",
        },
    },
    {
        "title": "Premium Whole Home Design",
        "milestones": [50, 30, 20],
        "scope": {
            "projectType": "residential",
            "roomCount": 5,
            "sqft": 2000,
            "layoutType": "mixed",
            "rooms": ["Living Room", "Kitchen", "Bedroom", "Bathroom", "Dining Room"],
            "furniture": "premium",
            "appliances": "premium",
            "lighting": "premium",
            "customMaterials": True,
            "additionalServices": ["3D Rendering", "Project Management", "Furniture Procurement"],
            "comments": "",
        },
    },
    {
        "title": "Basic Bathroom Renovation",
        "milestones": [40, 40, 20],
        "scope": {
            "projectType": "residential",
            "roomCount": 1,
            "sqft": 100,
            "layoutType": "traditional",
            "rooms": ["Bathroom"],
            "furniture": "basic",
            "appliances": "basic",
            "lighting": "mid",
            "customMaterials": False,
            "additionalServices": [],
            "comments": "",
        },
    },
]


def seed_rate_configs_list() -> List[RateConfig]:
    """Every seed rate config as an active RateConfig."""
    return [
        RateConfig.model_validate({**data, "isActive": True})
        for data in PRICING_CONFIGS + ROOM_TYPE_CONFIGS + SERVICE_CONFIGS
    ]


async def seed_rate_configs(store: RateConfigStore) -> List[RateConfig]:
    """Write the seed catalogue to a store.

    Args:
        store: Target store.

    Returns:
        The stored records.
    """
    saved = []
    for config in seed_rate_configs_list():
        saved.append(await store.save_config(config))
    logger.info("rate_configs_seeded", count=len(saved))
    return saved


def seed_templates() -> List[EstimateRecord]:
    """Unpriced template records for the canonical scopes.

    Templates are stored without totals; estimates created from them are
    priced against live rates.
    """
    return [
        EstimateRecord(
            title=data["title"],
            template_name=data["title"],
            scope=parse_scope(data["scope"]),
            milestone_percentages=data["milestones"],
            status=EstimateStatus.TEMPLATE,
            is_template=True,
        )
        for data in TEMPLATE_SCOPES
    ]


def find_template(title: str) -> EstimateRecord:
    """Seed template by title (case-insensitive).

    Raises:
        KeyError: If no seed template has that title.
    """
    for template in seed_templates():
        if template.title.lower() == title.lower():
            return template
    raise KeyError(title)
