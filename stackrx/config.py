"""
StackRx Engine Configuration

Every weight, capacity and threshold the pipeline uses lives in one
EngineConfig object that is threaded explicitly through the orchestrator.
Tests and deployments override values by building a new config; nothing
mutates shared module state.

Environment overrides (load_engine_config):
    STACKRX_HARD_BLOCK_POLICY      ABORT | REMOVE
    STACKRX_MORNING_CAPACITY       int
    STACKRX_MODIFIER_FLOOR         float
    STACKRX_MODIFIER_CEILING       float
    STACKRX_CAPACITY_<TIER>        int (e.g. STACKRX_CAPACITY_PREMIUM=10)
"""

import logging
import math
import os
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from stackrx.catalog.models import BudgetTier
from stackrx.safety.models import RuleSet
from stackrx.safety.rules import default_rule_set

logger = logging.getLogger(__name__)


class HardBlockPolicy(str, Enum):
    ABORT = "ABORT"    # any post-assembly hard block aborts the prescription
    REMOVE = "REMOVE"  # drop offending supplements and continue


class ScoringWeights(BaseModel):
    """
    Weights of the six priority-score components.

    TOTAL MUST EQUAL 1.0
    """
    goal_alignment: float = Field(default=0.30, ge=0, le=1)
    demographic: float = Field(default=0.25, ge=0, le=1)
    evidence: float = Field(default=0.20, ge=0, le=1)
    priority: float = Field(default=0.10, ge=0, le=1)
    training: float = Field(default=0.10, ge=0, le=1)
    age: float = Field(default=0.05, ge=0, le=1)

    class Config:
        frozen = True
        extra = "forbid"

    @model_validator(mode="after")
    def _check_total(self) -> "ScoringWeights":
        if not math.isclose(self.total(), 1.0, abs_tol=1e-9):
            raise ValueError(f"scoring weights must sum to 1.0, got {self.total()}")
        return self

    def total(self) -> float:
        return math.fsum([
            self.goal_alignment,
            self.demographic,
            self.evidence,
            self.priority,
            self.training,
            self.age,
        ])


class BudgetTierSettings(BaseModel):
    label: str
    description: str
    max_supplements: int = Field(ge=0)
    dose_multiplier: float = Field(gt=0)
    max_monthly_cost: float = Field(ge=0)
    cost_per_supplement_min: float = Field(ge=0)
    cost_per_supplement_max: float = Field(ge=0)

    class Config:
        frozen = True

    @property
    def average_cost(self) -> float:
        return (self.cost_per_supplement_min + self.cost_per_supplement_max) / 2


DEFAULT_BUDGET_TIERS: Dict[BudgetTier, BudgetTierSettings] = {
    BudgetTier.ESSENTIAL: BudgetTierSettings(
        label="Essential Baseline",
        description="Core supplements for foundational health",
        max_supplements=5,
        dose_multiplier=0.8,
        max_monthly_cost=50,
        cost_per_supplement_min=8,
        cost_per_supplement_max=15,
    ),
    BudgetTier.COMPREHENSIVE: BudgetTierSettings(
        label="Balanced Approach",
        description="Core + complementary supplements",
        max_supplements=8,
        dose_multiplier=1.0,
        max_monthly_cost=100,
        cost_per_supplement_min=12,
        cost_per_supplement_max=25,
    ),
    BudgetTier.PREMIUM: BudgetTierSettings(
        label="Comprehensive Stack",
        description="Full protocol with premium additions",
        max_supplements=12,
        dose_multiplier=1.1,
        max_monthly_cost=200,
        cost_per_supplement_min=20,
        cost_per_supplement_max=50,
    ),
}


class EngineConfig(BaseModel):
    """Injectable configuration for one engine deployment."""
    scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights)
    budget_tiers: Dict[BudgetTier, BudgetTierSettings] = Field(
        default_factory=lambda: dict(DEFAULT_BUDGET_TIERS)
    )
    modifier_floor: float = Field(default=0.7, gt=0)
    modifier_ceiling: float = Field(default=1.5, gt=0)
    default_symptoms_rating: float = Field(default=5.0, ge=0, le=10)
    morning_capacity: int = Field(default=5, ge=0)
    hard_block_policy: HardBlockPolicy = HardBlockPolicy.ABORT
    pathway_focus: List[str] = Field(
        default_factory=lambda: ["Metabolic optimization", "Nutrient sufficiency", "Safety first"]
    )
    rules: RuleSet = Field(default_factory=default_rule_set)

    class Config:
        frozen = True
        extra = "forbid"

    @model_validator(mode="after")
    def _check_bounds(self) -> "EngineConfig":
        if self.modifier_floor > self.modifier_ceiling:
            raise ValueError("modifier_floor must not exceed modifier_ceiling")
        missing = [tier.value for tier in BudgetTier if tier not in self.budget_tiers]
        if missing:
            raise ValueError(f"budget_tiers missing settings for: {missing}")
        return self

    def tier(self, tier: BudgetTier) -> BudgetTierSettings:
        return self.budget_tiers[BudgetTier(tier)]


def get_default_config() -> EngineConfig:
    return EngineConfig()


def load_engine_config(environ: Optional[Dict[str, str]] = None) -> EngineConfig:
    """Build an EngineConfig from defaults plus STACKRX_* environment overrides."""
    env = os.environ if environ is None else environ
    overrides = {}

    policy = env.get("STACKRX_HARD_BLOCK_POLICY")
    if policy:
        overrides["hard_block_policy"] = HardBlockPolicy(policy.upper())

    if env.get("STACKRX_MORNING_CAPACITY"):
        overrides["morning_capacity"] = int(env["STACKRX_MORNING_CAPACITY"])
    if env.get("STACKRX_MODIFIER_FLOOR"):
        overrides["modifier_floor"] = float(env["STACKRX_MODIFIER_FLOOR"])
    if env.get("STACKRX_MODIFIER_CEILING"):
        overrides["modifier_ceiling"] = float(env["STACKRX_MODIFIER_CEILING"])

    tiers = dict(DEFAULT_BUDGET_TIERS)
    for tier in BudgetTier:
        raw = env.get(f"STACKRX_CAPACITY_{tier.value}")
        if raw:
            tiers[tier] = tiers[tier].model_copy(update={"max_supplements": int(raw)})
    overrides["budget_tiers"] = tiers

    config = EngineConfig(**overrides)
    logger.info(
        f"Engine config: policy={config.hard_block_policy.value}, "
        f"morning_capacity={config.morning_capacity}, "
        f"clamp=[{config.modifier_floor}, {config.modifier_ceiling}]"
    )
    return config
