"""
Engine Models

Pydantic models for the generation request, the intermediate dosed
supplements and the final prescription contract.

Inputs are frozen: the pipeline never mutates the patient profile,
the clinical flags or the catalog.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from stackrx.catalog.models import BudgetTier, ProtocolDefinition, SupplementCatalogEntry
from stackrx.safety.models import SafetyIssue, Severity


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class MenstruationStatus(str, Enum):
    REGULAR = "REGULAR"
    IRREGULAR = "IRREGULAR"
    NONE = "NONE"


class MenopauseStatus(str, Enum):
    PREMENOPAUSAL = "PREMENOPAUSAL"
    PERIMENOPAUSAL = "PERIMENOPAUSAL"
    POSTMENOPAUSAL = "POSTMENOPAUSAL"


class PregnancyIntention(str, Enum):
    YES = "YES"
    NO = "NO"
    UNSURE = "UNSURE"


class DietPreference(str, Enum):
    OMNIVORE = "OMNIVORE"
    VEGETARIAN = "VEGETARIAN"
    VEGAN = "VEGAN"
    PESCATARIAN = "PESCATARIAN"


class AlcoholUse(str, Enum):
    NONE = "NONE"
    OCCASIONAL = "OCCASIONAL"
    MODERATE = "MODERATE"
    HEAVY = "HEAVY"


class TrainingFrequency(str, Enum):
    NONE = "NONE"
    LIGHT = "LIGHT"            # 1-2x per week
    MODERATE = "MODERATE"      # 3-4x per week
    INTENSE = "INTENSE"        # 5-6x per week
    VERY_INTENSE = "VERY_INTENSE"  # daily or twice daily


class DoseType(str, Enum):
    MINIMAL = "MINIMAL"
    OPTIMAL = "OPTIMAL"
    MAXIMUM = "MAXIMUM"


# =============================================================================
# INPUTS
# =============================================================================

class PatientProfile(BaseModel):
    """Demographics and lifestyle of the patient. Never mutated."""
    age: int = Field(ge=13, le=120)
    gender: Sex
    weight: float = Field(gt=0, description="kg")
    height: float = Field(gt=0, description="cm")
    menstruation_status: Optional[MenstruationStatus] = None
    menopause_status: Optional[MenopauseStatus] = None
    pregnancy_intention: Optional[PregnancyIntention] = None
    is_pregnant: Optional[bool] = None
    diet_preference: Optional[DietPreference] = None
    alcohol_use: Optional[AlcoholUse] = None
    training_frequency: Optional[TrainingFrequency] = None

    class Config:
        frozen = True
        extra = "forbid"


class ClinicalFlags(BaseModel):
    """Free-text clinical context, matched by case-insensitive substring."""
    current_medications: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    lab_abnormalities: List[str] = Field(default_factory=list)
    symptom_clusters: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"


class GenerationRequest(BaseModel):
    """
    Complete input to one prescription generation.

    goal stays a plain string: an unknown goal is an InvalidGoal error
    raised by the goal resolver, not a request validation failure.
    """
    patient_profile: PatientProfile
    goal: str
    clinical_flags: Optional[ClinicalFlags] = None
    budget_tier: BudgetTier
    symptoms_rating: Optional[float] = Field(default=None, ge=0, le=10)
    custom_notes: Optional[str] = None
    protocol: ProtocolDefinition
    supplement_catalog: List[SupplementCatalogEntry]

    class Config:
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "patient_profile": {
                    "age": 45,
                    "gender": "FEMALE",
                    "weight": 68,
                    "height": 168,
                    "menopause_status": "POSTMENOPAUSAL",
                },
                "goal": "STRESS_SLEEP",
                "budget_tier": "ESSENTIAL",
                "protocol": {"protocol_id": "prot_002", "goal": "STRESS_SLEEP"},
                "supplement_catalog": [],
            }
        }


# =============================================================================
# INTERMEDIATE
# =============================================================================

class PriorityScore(BaseModel):
    """Weighted priority of one candidate supplement (0-100)."""
    supplement_id: str
    score: int
    rationale: str

    class Config:
        frozen = True


class DoseCalculation(BaseModel):
    """Personalised dose for one supplement."""
    optimal_dose: float
    minimum_effective_dose: float
    safe_upper_limit: float
    composite_modifier: float
    clinical_multiplier: float = 1.0
    timing: str
    cycling: str
    reasoning: str

    class Config:
        frozen = True


class DosedSupplement(BaseModel):
    """A supplement with its final dose, ready to be scheduled."""
    supplement_id: str
    dose: float
    unit: str
    timing: str
    cycling: str = "No cycling recommended"
    dose_type: DoseType = DoseType.OPTIMAL
    reasoning: str = ""
    minimum_effective_dose: Optional[float] = None
    safe_upper_limit: Optional[float] = None
    warnings: List[str] = Field(default_factory=list)
    compound_classes: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class ScheduledStacks(BaseModel):
    """Dosed supplements bucketed by time of day."""
    morning: List[DosedSupplement] = Field(default_factory=list)
    afternoon: List[DosedSupplement] = Field(default_factory=list)
    evening: List[DosedSupplement] = Field(default_factory=list)

    class Config:
        frozen = True

    def all_supplements(self) -> List[DosedSupplement]:
        return list(self.morning) + list(self.afternoon) + list(self.evening)


# =============================================================================
# OUTPUT
# =============================================================================

class StackItem(BaseModel):
    supplement_id: str
    supplement_name: str
    dose: float
    unit: str
    timing: str
    dose_type: DoseType
    reasoning: str
    warnings: List[str] = Field(default_factory=list)


class PrescriptionSummary(BaseModel):
    goal: str
    priority: List[str]
    pathway_focus: List[str]
    generated_at: str


class WeeklyCyclical(BaseModel):
    supplement_name: str
    days_on: int
    days_off: int
    reasoning: str


class LifestyleRecommendations(BaseModel):
    sleep: List[str] = Field(default_factory=list)
    diet: List[str] = Field(default_factory=list)
    training: List[str] = Field(default_factory=list)
    stress_reduction: List[str] = Field(default_factory=list)


class RedFlag(BaseModel):
    severity: Severity
    message: str


class ShoppingListItem(BaseModel):
    supplement_name: str
    quantity: int
    unit: str
    estimated_cost: float


class PrescriptionResult(BaseModel):
    """Final prescription. Produced once per generation, persisted as a snapshot."""
    summary: PrescriptionSummary
    morning_stack: List[StackItem] = Field(default_factory=list)
    afternoon_stack: List[StackItem] = Field(default_factory=list)
    evening_stack: List[StackItem] = Field(default_factory=list)
    weekly_cyclicals: List[WeeklyCyclical] = Field(default_factory=list)
    lifestyle: LifestyleRecommendations
    red_flags: List[RedFlag] = Field(default_factory=list)
    shopping_list: List[ShoppingListItem] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    disclaimer: str = ""
    prescription_hash: str = ""

    class Config:
        frozen = True

    def all_items(self) -> List[StackItem]:
        return list(self.morning_stack) + list(self.afternoon_stack) + list(self.evening_stack)


class SafetySummary(BaseModel):
    is_safe: bool
    issues: List[str] = Field(default_factory=list)
    blocked_supplements: List[SafetyIssue] = Field(default_factory=list)
    adjusted_supplements: List[SafetyIssue] = Field(default_factory=list)
    warnings: List[SafetyIssue] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """
    Output contract of the engine.

    prescription is None if and only if errors is non-empty.
    """
    prescription: Optional[PrescriptionResult] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    safety: SafetySummary
    error_code: Optional[str] = None
