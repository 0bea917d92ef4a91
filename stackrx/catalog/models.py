"""
Catalog Models

Read-only reference data supplied by the catalog collaborator:
supplement entries (dose ranges, modifiers, evidence) and one protocol
definition per goal.

Supplement ids are the stable join key for every rule and every stage.
Display names are only used when the prescription is assembled.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator


class EvidenceLevel(str, Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    EMERGING = "EMERGING"


class BudgetTier(str, Enum):
    ESSENTIAL = "ESSENTIAL"
    COMPREHENSIVE = "COMPREHENSIVE"
    PREMIUM = "PREMIUM"


class SupplementCatalogEntry(BaseModel):
    """
    A single supplement in the reference catalog.

    Modifier keys are normalised to lower case so that "FEMALE" and
    "female" resolve to the same multiplier.
    """
    id: str = Field(description="Stable catalog identifier (e.g. 'sup_006')")
    name: str = Field(description="Display name")
    category: str = "general"
    is_botanical: bool = Field(
        default=False,
        description="Herb-class active (relevant for pregnancy screening)"
    )
    dose_min: float = Field(gt=0)
    dose_typical: float = Field(gt=0)
    dose_max: float = Field(gt=0)
    dose_unit: str = "mg"
    gender_modifiers: Dict[str, float] = Field(
        default_factory=dict,
        description="male / female / other / female_premenopausal / female_postmenopausal"
    )
    age_modifiers: Dict[str, float] = Field(
        default_factory=dict,
        description="Age bracket ('18-30', '30-50', '50+') -> multiplier"
    )
    base_priority: int = Field(default=50, ge=0, le=100)
    evidence_level: EvidenceLevel = EvidenceLevel.MODERATE
    budget_tier: BudgetTier = BudgetTier.ESSENTIAL
    compound_classes: List[str] = Field(
        default_factory=list,
        description="Shared active compounds (e.g. 'magnesium') counted across products"
    )

    class Config:
        frozen = True
        extra = "forbid"

    @field_validator("gender_modifiers", "age_modifiers")
    @classmethod
    def _normalise_modifiers(cls, value: Dict[str, float]) -> Dict[str, float]:
        normalised = {}
        for key, multiplier in value.items():
            if multiplier <= 0:
                raise ValueError(f"modifier '{key}' must be positive, got {multiplier}")
            normalised[key.lower()] = float(multiplier)
        return normalised

    @field_validator("compound_classes")
    @classmethod
    def _normalise_compound_classes(cls, value: List[str]) -> List[str]:
        return [c.lower() for c in value]

    @model_validator(mode="after")
    def _check_dose_range(self) -> "SupplementCatalogEntry":
        if not (self.dose_min <= self.dose_typical <= self.dose_max):
            raise ValueError(
                f"{self.id}: dose range must satisfy min <= typical <= max "
                f"({self.dose_min}, {self.dose_typical}, {self.dose_max})"
            )
        return self


class ProtocolDefinition(BaseModel):
    """Ordered core and optional supplement ids for one goal."""
    protocol_id: str
    goal: str
    name: str = ""
    description: str = ""
    core_supplement_ids: List[str] = Field(default_factory=list)
    optional_supplement_ids: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"

    @property
    def all_supplement_ids(self) -> List[str]:
        return list(self.core_supplement_ids) + list(self.optional_supplement_ids)
