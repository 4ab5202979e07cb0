"""
Quote a scope against the seed rate catalogue and print the breakdown.

Useful for checking rate changes or a client's scope locally without
Firestore.

Usage:
  cd functions
  python scripts/quote_scope.py --template "Modern Residential Kitchen"
  python scripts/quote_scope.py --scope scope.json --milestones 50 30 20 --json
  python scripts/quote_scope.py --list-templates
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

import structlog

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.errors import EstimateError  # noqa: E402
from services.estimate_service import EstimateService  # noqa: E402
from services.rate_config_store import InMemoryRateConfigStore  # noqa: E402
from services.seed_data import find_template, seed_rate_configs_list, seed_templates  # noqa: E402
from services.templates import instantiate_from_template  # noqa: E402
from utils.estimate_logger import breakdown_to_json, log_estimate_breakdown, log_estimate_error  # noqa: E402

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
    ]
)
logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quote an interior design scope.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--scope", type=Path, help="Path to a scope JSON file")
    source.add_argument("--template", help="Title of a seed template")
    source.add_argument("--list-templates", action="store_true", help="List seed templates and exit")
    parser.add_argument("--milestones", nargs="+", help="Milestone percentages, e.g. 40 40 20")
    parser.add_argument("--json", action="store_true", help="Print the breakdown as JSON")
    return parser


async def quote(args: argparse.Namespace) -> int:
    service = EstimateService(InMemoryRateConfigStore(seed_rate_configs_list()))

    milestones: Optional[List[str]] = args.milestones
    if args.template:
        try:
            template = find_template(args.template)
        except KeyError:
            print(f"Unknown template: {args.template}", file=sys.stderr)
            return 2
        scope = instantiate_from_template(template)
        title = template.title
        milestones = milestones or template.milestone_percentages
    else:
        scope = json.loads(args.scope.read_text(encoding="utf-8"))
        title = args.scope.stem

    try:
        breakdown = await service.calculate(scope, milestones)
    except EstimateError as e:
        log_estimate_error(e, title)
        return 1

    if args.json:
        print(breakdown_to_json(breakdown))
    else:
        log_estimate_breakdown(breakdown, title)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.list_templates:
        for template in seed_templates():
            print(template.title)
        return 0
    return asyncio.run(quote(args))


if __name__ == "__main__":
    raise SystemExit(main())
