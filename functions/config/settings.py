"""Estimate engine configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, collection names, etc.)
load_dotenv()


def _parse_milestones(raw: str) -> List[str]:
    """Split a comma separated milestone list such as "40,40,20"."""
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Collections
    rate_config_collection: str = field(default_factory=lambda: os.getenv("RATE_CONFIG_COLLECTION", "rateConfigs"))
    estimate_collection: str = field(default_factory=lambda: os.getenv("ESTIMATE_COLLECTION", "estimates"))

    # Pricing
    default_milestones: List[str] = field(
        default_factory=lambda: _parse_milestones(os.getenv("ESTIMATE_DEFAULT_MILESTONES", "40,40,20"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
