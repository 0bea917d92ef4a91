"""
Budget Allocator

Caps the protocol to the budget tier's capacity. Core supplements are
kept first in protocol order, the remaining slots are filled with
optional supplements in protocol order. Anything that does not fit is
reported in `removed`.

Tier capacities, dose multipliers and cost bands come from EngineConfig.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from stackrx.catalog.models import BudgetTier, SupplementCatalogEntry
from stackrx.config import EngineConfig, get_default_config

logger = logging.getLogger(__name__)

# Tier includes all lower tiers
TIER_ORDER = [BudgetTier.ESSENTIAL, BudgetTier.COMPREHENSIVE, BudgetTier.PREMIUM]


class BudgetAllocation(BaseModel):
    core: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    capacity: int
    warning: Optional[str] = None

    class Config:
        frozen = True

    @property
    def selected(self) -> List[str]:
        return list(self.core) + list(self.optional)


class BudgetEstimate(BaseModel):
    min_estimate: float
    max_estimate: float
    average_per_supplement: float


def allocate_budget(
    core_ids: List[str],
    optional_ids: List[str],
    tier: BudgetTier,
    config: Optional[EngineConfig] = None,
) -> BudgetAllocation:
    """
    Select supplements that fit the tier's capacity.

    Returns:
        BudgetAllocation(core, optional, removed); |core| + |optional| <= capacity
    """
    config = config or get_default_config()
    capacity = config.tier(tier).max_supplements

    core = list(core_ids[:capacity])
    remaining = capacity - len(core)
    optional = list(optional_ids[:remaining])

    removed = list(core_ids[len(core):]) + list(optional_ids[len(optional):])

    warning = None
    if removed:
        warning = f"Budget tier {BudgetTier(tier).value} limits stack to {len(core) + len(optional)} supplements."
        logger.info(f"Budget allocation: capacity={capacity}, removed={removed}")

    return BudgetAllocation(
        core=core,
        optional=optional,
        removed=removed,
        capacity=capacity,
        warning=warning,
    )


def get_budget_dose_modifier(tier: BudgetTier, config: Optional[EngineConfig] = None) -> float:
    config = config or get_default_config()
    return config.tier(tier).dose_multiplier


def get_budget_label(tier: BudgetTier, config: Optional[EngineConfig] = None) -> str:
    config = config or get_default_config()
    return config.tier(tier).label


def estimate_monthly_budget(
    tier: BudgetTier,
    supplement_count: int,
    config: Optional[EngineConfig] = None,
) -> BudgetEstimate:
    """Rough monthly cost band (USD) for a stack of supplement_count items."""
    config = config or get_default_config()
    settings = config.tier(tier)

    min_estimate = settings.cost_per_supplement_min * supplement_count
    max_estimate = settings.cost_per_supplement_max * supplement_count
    average = settings.average_cost if supplement_count > 0 else 0.0

    return BudgetEstimate(
        min_estimate=min_estimate,
        max_estimate=max_estimate,
        average_per_supplement=average,
    )


def suggest_budget_tier(training_frequency: Optional[str] = None, age: Optional[int] = None) -> BudgetTier:
    """High training load and older adults benefit from the premium tier."""
    training = getattr(training_frequency, "value", training_frequency)
    if training in ("INTENSE", "VERY_INTENSE"):
        return BudgetTier.PREMIUM
    if age is not None and age > 60:
        return BudgetTier.PREMIUM
    return BudgetTier.COMPREHENSIVE


def allowed_tiers(tier: BudgetTier) -> List[BudgetTier]:
    index = TIER_ORDER.index(BudgetTier(tier))
    return TIER_ORDER[: index + 1]


def is_supplement_in_tier(entry: SupplementCatalogEntry, tier: BudgetTier) -> bool:
    return entry.budget_tier in allowed_tiers(tier)


def filter_catalog_by_tier(
    catalog: List[SupplementCatalogEntry],
    tier: BudgetTier,
) -> List[SupplementCatalogEntry]:
    """Catalog entries available at a tier, catalog order kept."""
    return [entry for entry in catalog if is_supplement_in_tier(entry, tier)]


def tier_costs(config: Optional[EngineConfig] = None) -> Dict[BudgetTier, float]:
    """Average monthly cost per supplement for each tier."""
    config = config or get_default_config()
    return {tier: config.tier(tier).average_cost for tier in BudgetTier}
