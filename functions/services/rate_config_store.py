"""Rate config store contract and in-memory implementation.

Stores are async because the production store (Firestore) performs I/O.
The calculator never talks to a store; callers load a RateConfigSnapshot
and hand it over.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional

import structlog

from models.rate_config import ConfigType, RateConfig, RateConfigSnapshot, resolve_active

logger = structlog.get_logger(__name__)


class RateConfigStore(ABC):
    """Access to named, typed rate configuration records."""

    @abstractmethod
    async def get_configs(self) -> List[RateConfig]:
        """All records, active and inactive."""

    @abstractmethod
    async def save_config(self, config: RateConfig) -> RateConfig:
        """Create or replace a record; returns it with id and timestamps."""

    async def get_active_configs(self) -> List[RateConfig]:
        return [c for c in await self.get_configs() if c.is_active]

    async def get_active_configs_by_type(self, config_type: str) -> List[RateConfig]:
        config_type = ConfigType(config_type).value
        return [c for c in await self.get_active_configs() if c.config_type == config_type]

    async def get_config_by_name(self, config_type: str, name: str) -> Optional[RateConfig]:
        """Active config for ``(config_type, name)``, or None.

        Duplicates resolve the same way a snapshot resolves them.
        """
        config_type = ConfigType(config_type).value
        resolved = resolve_active(await self.get_active_configs_by_type(config_type))
        return resolved.get((config_type, name))

    async def deactivate_config(self, config_type: str, name: str) -> int:
        """Mark every active record for the pair inactive. Returns the count."""
        deactivated = 0
        for config in await self.get_active_configs_by_type(config_type):
            if config.name == name:
                await self.save_config(config.model_copy(update={"is_active": False}))
                deactivated += 1
        logger.info("rate_config_deactivated", config_type=config_type, name=name, count=deactivated)
        return deactivated

    async def load_snapshot(self) -> RateConfigSnapshot:
        """Snapshot of the active configs for one or more calculations."""
        configs = await self.get_active_configs()
        snapshot = RateConfigSnapshot(configs)
        logger.info("rate_config_snapshot_loaded", records=len(configs), resolved=len(snapshot))
        return snapshot


class InMemoryRateConfigStore(RateConfigStore):
    """Dictionary-backed store for tests, scripts and local quoting.

    Records passed to the constructor keep their timestamps; records
    written through ``save_config`` are stamped with the current time.
    """

    def __init__(self, configs: Optional[List[RateConfig]] = None):
        self._configs: Dict[str, RateConfig] = {}
        self._ids = count(1)
        for config in configs or []:
            self._put(config, touch=False)

    def _put(self, config: RateConfig, touch: bool = True) -> RateConfig:
        now = datetime.now(timezone.utc)
        stored = config.model_copy(update={
            "id": config.id or str(next(self._ids)),
            "created_at": config.created_at or now,
            "updated_at": now if touch else (config.updated_at or now),
        })
        self._configs[stored.id] = stored
        return stored

    async def get_configs(self) -> List[RateConfig]:
        return list(self._configs.values())

    async def save_config(self, config: RateConfig) -> RateConfig:
        stored = self._put(config)
        logger.info(
            "rate_config_saved",
            config_id=stored.id,
            config_type=stored.config_type,
            name=stored.name,
            is_active=stored.is_active,
        )
        return stored
