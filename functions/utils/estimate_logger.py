"""Estimate breakdown logger.

Prints a formatted, banner-framed breakdown for scripts and local runs,
and emits a matching structured event for log aggregation.
"""

import json
from decimal import Decimal
from typing import Any, Dict, Optional

import structlog

from config.errors import EstimateError
from models.estimate import EstimateBreakdown

logger = structlog.get_logger()

BANNER_WIDTH = 80
ESTIMATE_BANNER_CHAR = "═"
SECTION_BANNER_CHAR = "─"
ERROR_BANNER_CHAR = "!"


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_amount(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def _format_pct(value: Decimal) -> str:
    return f"{value.normalize():f}"


def _format_row(label: str, amount: Decimal, width: int = BANNER_WIDTH) -> str:
    left = f"║ {label}"
    right = _format_amount(amount)
    return left + " " * max(1, width - len(left) - len(right)) + right


def format_breakdown(breakdown: EstimateBreakdown, title: str = "ESTIMATE") -> str:
    """Render a breakdown as a fixed-width text block."""
    lines = [
        ESTIMATE_BANNER_CHAR * BANNER_WIDTH,
        _create_banner(ESTIMATE_BANNER_CHAR, title.upper()),
        ESTIMATE_BANNER_CHAR * BANNER_WIDTH,
    ]
    for item in breakdown.line_items:
        lines.append(_format_row(item.label, item.amount))
    lines.append(SECTION_BANNER_CHAR * BANNER_WIDTH)
    lines.append(_format_row("Subtotal", breakdown.subtotal))
    lines.append(_format_row(f"GST ({_format_pct(breakdown.gst_rate * 100)}%)", breakdown.gst_amount))
    lines.append(_format_row("Total", breakdown.total))
    lines.append(SECTION_BANNER_CHAR * BANNER_WIDTH)
    for milestone in breakdown.milestones:
        lines.append(_format_row(f"{milestone.label} ({_format_pct(milestone.percentage)}%)", milestone.amount))
    lines.append(ESTIMATE_BANNER_CHAR * BANNER_WIDTH)
    return "\n".join(lines)


def breakdown_to_json(breakdown: EstimateBreakdown, indent: Optional[int] = 2) -> str:
    """Serialize a breakdown with camelCase keys; amounts are strings."""
    return json.dumps(breakdown.model_dump(mode="json", by_alias=True), indent=indent, ensure_ascii=False)


def log_estimate_breakdown(breakdown: EstimateBreakdown, title: str = "ESTIMATE") -> None:
    """Print a breakdown and log its summary."""
    print("\n")
    print(format_breakdown(breakdown, title))
    print("\n")

    logger.info(
        "estimate_breakdown_logged",
        title=title,
        line_items=len(breakdown.line_items),
        subtotal=str(breakdown.subtotal),
        gst_amount=str(breakdown.gst_amount),
        total=str(breakdown.total),
        milestones=[str(m.amount) for m in breakdown.milestones],
    )


def log_estimate_error(error: EstimateError, title: str = "ESTIMATE") -> Dict[str, Any]:
    """Print a failed calculation and log it. Returns the error payload."""
    payload = error.to_dict()

    print("\n")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(ERROR_BANNER_CHAR, f"✗ {title.upper()} FAILED"))
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Code    : {error.code}")
    print(f"║ Message : {error.message}")
    for key, value in error.details.items():
        print(f"║ {key:<8}: {value}")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.error("estimate_failed_logged", title=title, **payload)
    return payload
