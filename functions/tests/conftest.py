"""Pytest configuration and shared fixtures for estimate engine tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Dict, Any, List


# ============================================================================
# Ensure local imports work (models/, services/, config/, validators/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from services...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Mock collection and document methods
    collection_mock = MagicMock()
    document_mock = MagicMock()
    document_mock.id = "est-generated"

    # Set up chain: client.collection().document()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock
    collection_mock.stream.return_value = []
    collection_mock.where.return_value.stream.return_value = []

    # Mock async methods
    document_mock.get = AsyncMock(return_value=MagicMock(exists=False))
    document_mock.set = AsyncMock()
    document_mock.update = AsyncMock()
    document_mock.delete = AsyncMock()

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    return FirestoreService(db=mock_firestore_client)


# ============================================================================
# Rate Config Fixtures
# ============================================================================

@pytest.fixture
def seed_configs():
    """Seed catalogue as RateConfig records."""
    from services.seed_data import seed_rate_configs_list

    return seed_rate_configs_list()


@pytest.fixture
def snapshot(seed_configs):
    """Snapshot of the seed catalogue."""
    from models.rate_config import RateConfigSnapshot

    return RateConfigSnapshot(seed_configs)


@pytest.fixture
def config_store(seed_configs):
    """In-memory store loaded with the seed catalogue."""
    from services.rate_config_store import InMemoryRateConfigStore

    return InMemoryRateConfigStore(seed_configs)


# ============================================================================
# Scope Fixtures
# ============================================================================

@pytest.fixture
def kitchen_scope_data() -> Dict[str, Any]:
    """The 250 sqft mid-tier kitchen with 3D rendering."""
    return {
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
    }


@pytest.fixture
def kitchen_scope(kitchen_scope_data):
    from validators.scope_validator import parse_scope

    return parse_scope(kitchen_scope_data)


@pytest.fixture
def whole_home_scope():
    """Multi-room scope with custom materials and sqft-based services."""
    from models.scope import ScopeModel

    return ScopeModel(
        project_type="residential",
        room_count=5,
        sqft=2000,
        layout_type="mixed",
        rooms=["Living Room", "Kitchen", "Bedroom", "Bathroom", "Dining Room"],
        furniture="premium",
        appliances="premium",
        lighting="premium",
        custom_materials=True,
        additional_services=["3D Rendering", "Project Management", "Furniture Procurement"],
    )


# ============================================================================
# Estimate Repository Fake
# ============================================================================

class InMemoryEstimateRepository:
    """In-memory stand-in for the Firestore estimate methods."""

    def __init__(self):
        self.estimates: Dict[str, Any] = {}
        self._next = 1

    async def create_estimate(self, record):
        estimate_id = record.id or f"est-{self._next}"
        self._next += 1
        stored = record.model_copy(update={"id": estimate_id})
        self.estimates[estimate_id] = stored
        return stored

    async def get_estimate(self, estimate_id):
        return self.estimates.get(estimate_id)

    async def update_estimate(self, record):
        self.estimates[record.id] = record
        return record

    async def list_estimates(self, project_id=None) -> List[Any]:
        return [
            r for r in self.estimates.values()
            if not r.is_template and (project_id is None or r.project_id == project_id)
        ]

    async def list_templates(self) -> List[Any]:
        return [r for r in self.estimates.values() if r.is_template]

    async def delete_estimate(self, estimate_id):
        self.estimates.pop(estimate_id, None)


@pytest.fixture
def estimate_repository():
    return InMemoryEstimateRepository()


@pytest.fixture
def estimate_service(config_store, estimate_repository):
    """EstimateService over the seed catalogue and an in-memory repository."""
    from services.estimate_service import EstimateService

    return EstimateService(config_store, estimate_repository, default_milestones=[40, 40, 20])
