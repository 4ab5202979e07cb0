"""Utility modules for the estimate engine."""

from utils.estimate_logger import (
    format_breakdown,
    breakdown_to_json,
    log_estimate_breakdown,
    log_estimate_error,
)
from utils.money import round_money, to_decimal

__all__ = [
    "format_breakdown",
    "breakdown_to_json",
    "log_estimate_breakdown",
    "log_estimate_error",
    "round_money",
    "to_decimal",
]
