"""Estimate pricing engine.

Turns a ScopeModel into a line-itemized EstimateBreakdown using the rates
in a RateConfigSnapshot:

1. Base rate        baseRate x sqft
2. Per-room fee     perRoomRate x roomCount
3. Room types       baseRate + perSqftRate x (sqft / len(rooms)), per room
4. Tiers            tier rate x sqft for furniture, appliances, lighting
5. Custom materials flat customMaterialsFee when requested
6. Services         baseRate (+ perSqftRate x sqft when the service has one)
7-9. Subtotal, GST and total, rounded half-up to cents
10. Milestones      total split by percentage, remainder on the last one

Every rate the scope references is resolved before anything is summed,
so a missing config fails the whole calculation. The module is pure: no
I/O, no logging and no state between calls.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from models.estimate import EstimateBreakdown, LineItem, LineItemCategory, Milestone
from models.rate_config import RateConfigSnapshot, TIERED_CATEGORIES
from models.scope import ScopeModel
from utils.money import HUNDRED, ZERO, round_money, sum_money
from validators.milestone_validator import validate_milestones

DEFAULT_MILESTONES = (Decimal("40"), Decimal("40"), Decimal("20"))

MILESTONE_LABELS = {
    2: ("Initial Deposit", "Final Payment"),
    3: ("Initial Deposit", "Mid-Project Payment", "Final Payment"),
}

TIER_LABELS = {
    "furniture": "Furniture",
    "appliances": "Appliances",
    "lighting": "Lighting",
}


def allocate_room_sqft(sqft: int, room_total: int) -> Decimal:
    """Square footage allocated to each room: an even share of the total."""
    if room_total <= 0:
        return ZERO
    return Decimal(sqft) / Decimal(room_total)


def split_milestones(total: Decimal, percentages: Sequence) -> List[Milestone]:
    """Split a total into milestone installments.

    Every installment but the last is rounded half-up to cents; the last
    takes whatever remains, so the installments sum to ``total`` exactly.
    """
    values = validate_milestones(percentages)
    labels = MILESTONE_LABELS[len(values)]

    milestones: List[Milestone] = []
    allocated = ZERO
    for label, pct in zip(labels[:-1], values[:-1]):
        amount = round_money(total * pct / HUNDRED)
        allocated += amount
        milestones.append(Milestone(label=label, percentage=pct, amount=amount))
    milestones.append(
        Milestone(label=labels[-1], percentage=values[-1], amount=total - allocated)
    )
    return milestones


def _room_labels(rooms: Sequence[str]) -> List[str]:
    """Label rooms, numbering repeated names ("Bedroom 1", "Bedroom 2")."""
    totals: Dict[str, int] = {}
    for name in rooms:
        totals[name] = totals.get(name, 0) + 1
    seen: Dict[str, int] = {}
    labels = []
    for name in rooms:
        if totals[name] == 1:
            labels.append(name)
            continue
        seen[name] = seen.get(name, 0) + 1
        labels.append(f"{name} {seen[name]}")
    return labels


def compute_estimate(
    scope: ScopeModel,
    configs: RateConfigSnapshot,
    milestone_percentages: Optional[Sequence] = None
) -> EstimateBreakdown:
    """Price a scope against a config snapshot.

    Args:
        scope: Validated scope.
        configs: Active rate configs.
        milestone_percentages: Two or three percentages summing to 100;
            defaults to 40/40/20.

    Returns:
        EstimateBreakdown with line items, totals and milestones.

    Raises:
        ConfigNotFoundError: A referenced room type, tier or service has no
            active config (or baseRates is missing).
        InvalidMilestoneError: The percentages are invalid.
    """
    percentages = validate_milestones(
        DEFAULT_MILESTONES if milestone_percentages is None else milestone_percentages
    )

    # Resolve everything first; nothing is priced until all rates exist
    base = configs.base_rates()
    room_rates = [configs.room_type(name) for name in scope.rooms]
    tier_rates = {
        category: configs.tier_rate(category, getattr(scope, category))
        for category in TIERED_CATEGORIES
    }
    service_rates = [(name, configs.service(name)) for name in scope.additional_services]

    sqft = Decimal(scope.sqft)
    items: List[LineItem] = [
        LineItem(
            label="Base Rate",
            category=LineItemCategory.BASE,
            amount=round_money(base.base_rate * sqft),
        ),
        LineItem(
            label="Per-Room Fee",
            category=LineItemCategory.ROOMS,
            amount=round_money(base.per_room_rate * scope.room_count),
        ),
    ]

    room_sqft = allocate_room_sqft(scope.sqft, len(scope.rooms))
    for label, rates in zip(_room_labels(scope.rooms), room_rates):
        items.append(LineItem(
            label=label,
            category=LineItemCategory.ROOM_TYPE,
            amount=round_money(rates.base_rate + rates.per_sqft_rate * room_sqft),
        ))

    for category in TIERED_CATEGORIES:
        tier = getattr(scope, category)
        items.append(LineItem(
            label=f"{TIER_LABELS[category]} ({tier})",
            category=LineItemCategory(category),
            amount=round_money(tier_rates[category] * sqft),
        ))

    if scope.custom_materials:
        items.append(LineItem(
            label="Custom Materials",
            category=LineItemCategory.CUSTOM_MATERIALS,
            amount=round_money(base.custom_materials_fee),
        ))

    for name, rates in service_rates:
        cost = rates.base_rate
        if rates.has_sqft_component:
            cost += rates.per_sqft_rate * sqft
        items.append(LineItem(
            label=name,
            category=LineItemCategory.SERVICE,
            amount=round_money(cost),
        ))

    category_totals: Dict[str, Decimal] = {}
    for item in items:
        category_totals[item.category] = category_totals.get(item.category, ZERO) + item.amount

    subtotal = sum_money(item.amount for item in items)
    gst_amount = round_money(subtotal * base.gst_rate)
    total = round_money(subtotal + gst_amount)

    return EstimateBreakdown(
        line_items=items,
        category_totals={k: round_money(v) for k, v in category_totals.items()},
        subtotal=subtotal,
        gst_rate=base.gst_rate,
        gst_amount=gst_amount,
        total=total,
        milestones=split_milestones(total, percentages),
    )
