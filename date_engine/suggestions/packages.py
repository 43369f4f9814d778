from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import (
    BudgetCategory,
    CandidateSlot,
    DatePackage,
    ItemizedBudget,
    PackageItem,
    RankedCandidate,
)

logger = logging.getLogger(__name__)

DINING_TAGS = frozenset({"restaurant", "cafe"})
BUDGET_SLACK = 2.0


@dataclass(frozen=True)
class TierSpec:
    package_id: str
    name: str
    category: BudgetCategory
    dining_rate: float
    default_price_level: int
    default_activity_cost: float
    transport_factor: float
    transport_min: float
    transport_max: float
    tax_tip_rate: float


TIERS: tuple[TierSpec, ...] = (
    TierSpec("cheap_package", "Budget-Friendly Evening", "cheap", 15, 1, 10, 0.5, 5, 15, 0.15),
    TierSpec("midrange_package", "Perfect Evening Out", "mid-range", 20, 2, 25, 0.7, 8, 20, 0.18),
    TierSpec("splurge_package", "Luxury Experience", "splurge", 30, 3, 50, 1.0, 12, 30, 0.20),
)


def is_dining(candidate: RankedCandidate) -> bool:
    return candidate.kind == "venue" and bool(DINING_TAGS & set(candidate.category_tags))


def partition_candidates(
    ranked: list[RankedCandidate],
) -> tuple[list[RankedCandidate], list[RankedCandidate]]:
    """Split a ranked list into (dining, activity), keeping rank order."""
    dining = [c for c in ranked if is_dining(c)]
    activity = [c for c in ranked if not is_dining(c)]
    return dining, activity


def pair_by_tier(
    dining: list[RankedCandidate],
    activity: list[RankedCandidate],
    tiers: tuple[TierSpec, ...] = TIERS,
) -> list[tuple[TierSpec, RankedCandidate, RankedCandidate]]:
    """Pair the i-th best dining and activity option with the i-th tier.

    A tier with no i-th dining or activity candidate is skipped.
    """
    pairs = []
    for index, tier in enumerate(tiers):
        if index < len(dining) and index < len(activity):
            pairs.append((tier, dining[index], activity[index]))
    return pairs


def estimate_budget(
    tier: TierSpec,
    dining: RankedCandidate,
    activity: RankedCandidate,
) -> ItemizedBudget:
    dining_cost = (dining.price_level or tier.default_price_level) * tier.dining_rate
    if activity.min_ticket_price is not None:
        activity_cost = activity.min_ticket_price
    else:
        activity_cost = tier.default_activity_cost

    travel = (dining.distance_km + activity.distance_km) * tier.transport_factor
    transportation = min(tier.transport_max, max(tier.transport_min, travel))
    taxes_and_tips = (dining_cost + activity_cost) * tier.tax_tip_rate

    return ItemizedBudget(
        dining=float(dining_cost),
        activity=float(activity_cost),
        transportation=float(transportation),
        taxes_and_tips=float(taxes_and_tips),
    )


def generate_packages(
    ranked: list[RankedCandidate],
    max_budget: float,
    suggested_times: list[CandidateSlot] | None = None,
) -> list[DatePackage]:
    """
    Build up to three packages (cheap, mid-range, splurge) from ranked candidates.

    Packages costing more than twice ``max_budget`` are dropped; the slack
    lets stretch options through. An empty list is a valid result.
    """
    dining, activity = partition_candidates(ranked)
    limit = max_budget * BUDGET_SLACK

    packages: list[DatePackage] = []
    for tier, dining_choice, activity_choice in pair_by_tier(dining, activity):
        budget = estimate_budget(tier, dining_choice, activity_choice)
        total = budget.total()
        if total > limit:
            logger.debug("Dropping %s: %.2f exceeds %.2f", tier.package_id, total, limit)
            continue

        packages.append(DatePackage(
            id=tier.package_id,
            name=tier.name,
            budget_category=tier.category,
            total_cost_estimate=total,
            itemized_budget=budget,
            items=[
                PackageItem(type="dining", candidate=dining_choice),
                PackageItem(type="activity", candidate=activity_choice),
            ],
            suggested_times=list(suggested_times) if suggested_times else None,
        ))

    return packages
