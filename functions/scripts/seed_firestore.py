"""
Seed Firestore with the rate catalogue and the canonical scope templates.

Intended for a fresh project or the Firestore emulator. Existing records
are not touched unless --deactivate-existing is given, in which case every
active record that the catalogue replaces is marked inactive first.

Usage (Firestore emulator):
  export FIRESTORE_EMULATOR_HOST="127.0.0.1:8080"
  export GCLOUD_PROJECT="designdesk-dev"
  python scripts/seed_firestore.py
  python scripts/seed_firestore.py --configs-only --deactivate-existing
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
import sys

import structlog

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.settings import settings  # noqa: E402
from services.firestore_service import FirestoreService  # noqa: E402
from services.seed_data import seed_rate_configs, seed_rate_configs_list, seed_templates  # noqa: E402

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.log_level.upper())),
)
logger = structlog.get_logger()


def _check_emulator_reachable() -> None:
    """Fail fast if FIRESTORE_EMULATOR_HOST is set but not reachable.

    firebase-admin will otherwise block on network calls which feels like a hang.
    """
    host = os.environ.get("FIRESTORE_EMULATOR_HOST")
    if not host or ":" not in host:
        return
    h, p = host.rsplit(":", 1)
    try:
        port = int(p)
    except ValueError:
        return

    try:
        with socket.create_connection((h, port), timeout=1.5):
            return
    except OSError as e:
        raise RuntimeError(
            f"FIRESTORE_EMULATOR_HOST is set to '{host}' but it's not reachable. "
            f"Is the Firestore emulator running? Underlying error: {e}"
        )


async def seed(service: FirestoreService, configs_only: bool, deactivate_existing: bool) -> None:
    if deactivate_existing:
        for config in seed_rate_configs_list():
            await service.deactivate_config(config.config_type, config.name)

    await seed_rate_configs(service)

    if not configs_only:
        for template in seed_templates():
            stored = await service.create_estimate(template)
            logger.info("template_seeded", estimate_id=stored.id, title=stored.title)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed estimate rate configs and templates.")
    parser.add_argument("--configs-only", action="store_true", help="Skip the scope templates")
    parser.add_argument(
        "--deactivate-existing",
        action="store_true",
        help="Deactivate active records with the same type and name before seeding",
    )
    args = parser.parse_args()

    if settings.is_emulator_mode:
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)
    _check_emulator_reachable()

    from firebase_admin import initialize_app

    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    try:
        initialize_app(options=options)
    except ValueError:
        # Already initialized
        pass

    asyncio.run(seed(FirestoreService(), args.configs_only, args.deactivate_existing))
    logger.info("seed_complete")


if __name__ == "__main__":
    main()
