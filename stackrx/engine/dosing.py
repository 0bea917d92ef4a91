"""
Dosing Calculator

Personalised dose for one supplement:

    composite = gender x age-bracket x BMI x training x symptom x budget
    composite = clamp(composite, modifier_floor, modifier_ceiling)

    optimal = clamp(typical * composite, min * composite, max * composite)

A clinical dose multiplier (from clinical-flag processing) scales the
whole range afterwards. Every dose is rounded to one decimal and
min <= optimal <= max always holds.

Timing and cycling advice are looked up by supplement id.
"""

import logging
import re
from typing import Dict, Optional, Tuple

from pydantic import BaseModel

from stackrx.catalog.models import BudgetTier, SupplementCatalogEntry
from stackrx.config import EngineConfig, get_default_config
from stackrx.engine.models import (
    DietPreference,
    DoseCalculation,
    MenopauseStatus,
    MenstruationStatus,
    PatientProfile,
    Sex,
    TrainingFrequency,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMING = "With meals"
DEFAULT_CYCLING = "No cycling recommended"

SUPPLEMENT_TIMING: Dict[str, str] = {
    "sup_001": "Morning with breakfast",
    "sup_002": "Evening 30-60 min before bed",
    "sup_003": "With largest meal",
    "sup_004": "Morning on empty stomach or with orange juice",
    "sup_005": "Anytime with meals",
    "sup_006": "Twice daily with meals",
    "sup_007": "With a fat-containing meal",
    "sup_008": "Morning on empty stomach",
    "sup_009": "Morning with breakfast",
    "sup_010": "With black pepper and fat",
    "sup_011": "With meals (2-3x daily)",
    "sup_012": "With a meal containing fat",
    "sup_013": "Morning with breakfast",
    "sup_014": "Morning on empty stomach or with meal",
    "sup_015": "Morning or with afternoon coffee",
}

SUPPLEMENT_CYCLING: Dict[str, str] = {
    "sup_009": "5 days on, 2 days off to maintain sensitivity",
    "sup_005": "Continuous - no cycling needed",
    "sup_011": "10 weeks on, 2 weeks off",
    "sup_006": "8 weeks on, 1 week off to prevent tolerance",
}

ELEVATED_SYMPTOM_RATING = 7

TRAINING_LOAD_MULTIPLIERS: Dict[TrainingFrequency, float] = {
    TrainingFrequency.NONE: 0.9,
    TrainingFrequency.LIGHT: 1.0,
    TrainingFrequency.MODERATE: 1.15,
    TrainingFrequency.INTENSE: 1.3,
    TrainingFrequency.VERY_INTENSE: 1.5,
}

INTENSE_TRAINING = (TrainingFrequency.INTENSE, TrainingFrequency.VERY_INTENSE)

_CYCLE_PATTERN = re.compile(
    r"(\d+)\s*(day|week)s?\s+on\s*,\s*(\d+)\s*(day|week)s?\s+off",
    re.IGNORECASE,
)


class DemographicModifiers(BaseModel):
    """Profile-level multipliers, independent of the supplement."""
    age_multiplier: float
    gender_multiplier: float
    weight_multiplier: float
    training_load_multiplier: float
    bmi: float


class DoseValidation(BaseModel):
    is_valid: bool
    message: str


# =============================================================================
# PROFILE MODIFIERS
# =============================================================================

def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    return weight_kg / ((height_cm / 100) ** 2)


def get_age_multiplier(age: int) -> float:
    if age < 18:
        return 0.7
    if age < 30:
        return 0.9
    if age < 50:
        return 1.0
    if age < 65:
        return 1.1
    return 1.2


def get_weight_multiplier(bmi: float) -> float:
    if bmi < 18.5:
        return 0.95
    if bmi < 25:
        return 1.0
    if bmi < 30:
        return 1.05
    if bmi < 35:
        return 1.1
    return 1.15


def get_training_load_multiplier(training_frequency: Optional[TrainingFrequency]) -> float:
    if training_frequency is None:
        return 1.0
    return TRAINING_LOAD_MULTIPLIERS.get(training_frequency, 1.0)


def get_gender_multiplier(profile: PatientProfile) -> float:
    """Reproductive-status multiplier used for the profile breakdown."""
    if profile.gender == Sex.FEMALE:
        if (
            profile.menopause_status == MenopauseStatus.PREMENOPAUSAL
            and profile.menstruation_status == MenstruationStatus.REGULAR
        ):
            return 1.1
        if profile.menopause_status == MenopauseStatus.POSTMENOPAUSAL:
            return 0.95
    return 1.0


def calculate_demographic_modifiers(profile: PatientProfile) -> DemographicModifiers:
    bmi = calculate_bmi(profile.weight, profile.height)
    return DemographicModifiers(
        age_multiplier=get_age_multiplier(profile.age),
        gender_multiplier=get_gender_multiplier(profile),
        weight_multiplier=get_weight_multiplier(bmi),
        training_load_multiplier=get_training_load_multiplier(profile.training_frequency),
        bmi=bmi,
    )


# =============================================================================
# CATALOG MODIFIERS
# =============================================================================

def get_catalog_gender_modifier(entry: SupplementCatalogEntry, profile: PatientProfile) -> float:
    """Reproductive-status key first (female only), then the plain gender key."""
    modifiers = entry.gender_modifiers

    if profile.gender == Sex.FEMALE:
        if profile.menopause_status == MenopauseStatus.POSTMENOPAUSAL and modifiers.get("female_postmenopausal"):
            return modifiers["female_postmenopausal"]
        if profile.menopause_status == MenopauseStatus.PREMENOPAUSAL and modifiers.get("female_premenopausal"):
            return modifiers["female_premenopausal"]

    return modifiers.get(profile.gender.value.lower()) or 1.0


def get_catalog_age_modifier(entry: SupplementCatalogEntry, age: int) -> float:
    if age < 30:
        bracket = "18-30"
    elif age < 50:
        bracket = "30-50"
    else:
        bracket = "50+"
    return entry.age_modifiers.get(bracket) or 1.0


def get_symptom_modifier(symptoms_rating: float) -> float:
    # 0.9 at rating 0 up to 1.2 at rating 10
    return 0.9 + (symptoms_rating / 10) * 0.3


# =============================================================================
# NUTRIENT-SPECIFIC MODIFIERS
# =============================================================================

def get_iron_dose_modifier(profile: PatientProfile) -> float:
    if profile.gender == Sex.MALE:
        return 0.1  # only with proven deficiency
    if profile.gender == Sex.FEMALE:
        if (
            profile.menopause_status == MenopauseStatus.PREMENOPAUSAL
            and profile.menstruation_status == MenstruationStatus.REGULAR
        ):
            return 1.5
        if profile.menopause_status == MenopauseStatus.POSTMENOPAUSAL:
            return 0.5
        if profile.menopause_status == MenopauseStatus.PERIMENOPAUSAL:
            return 1.2
    return 1.0


def get_vitamin_d_dose_modifier(profile: PatientProfile) -> float:
    bmi = calculate_bmi(profile.weight, profile.height)
    modifier = get_age_multiplier(profile.age) * get_weight_multiplier(bmi)
    return min(modifier, 1.3)


def get_zinc_dose_modifier(profile: PatientProfile) -> float:
    modifier = 1.0
    if profile.diet_preference in (DietPreference.VEGAN, DietPreference.VEGETARIAN):
        modifier *= 1.3
    if profile.training_frequency in INTENSE_TRAINING:
        modifier *= 1.2
    return modifier


def get_creatine_dose_modifier(profile: PatientProfile) -> float:
    modifier = 0.5
    if profile.gender == Sex.MALE and profile.age > 40:
        modifier = 1.3
    if profile.training_frequency in INTENSE_TRAINING:
        modifier = max(modifier, 1.5)
    return modifier


def should_supplement_iron(profile: PatientProfile) -> bool:
    if profile.gender == Sex.MALE:
        return False
    if profile.menopause_status == MenopauseStatus.POSTMENOPAUSAL:
        return False
    if (
        profile.menopause_status == MenopauseStatus.PREMENOPAUSAL
        and profile.menstruation_status == MenstruationStatus.REGULAR
    ):
        return True
    return profile.menopause_status == MenopauseStatus.PERIMENOPAUSAL


# =============================================================================
# TIMING / CYCLING
# =============================================================================

def get_supplement_timing(supplement_id: str) -> str:
    return SUPPLEMENT_TIMING.get(supplement_id, DEFAULT_TIMING)


def get_supplement_cycling(supplement_id: str) -> str:
    return SUPPLEMENT_CYCLING.get(supplement_id, DEFAULT_CYCLING)


def parse_cycling(cycling: str) -> Optional[Tuple[int, int]]:
    """
    Parse "N days on, M days off" (or weeks) into (days_on, days_off).

    Returns None for continuous or unrecognised advice.
    """
    match = _CYCLE_PATTERN.search(cycling or "")
    if match is None:
        return None

    on, on_unit, off, off_unit = match.groups()
    days_on = int(on) * (7 if on_unit.lower() == "week" else 1)
    days_off = int(off) * (7 if off_unit.lower() == "week" else 1)
    return days_on, days_off


# =============================================================================
# DOSE
# =============================================================================

def build_dose_reasoning(
    profile: PatientProfile,
    symptoms_rating: float,
    composite_modifier: float,
    clinical_multiplier: float = 1.0,
) -> str:
    parts = [f"Based on age ({profile.age})"]

    if profile.training_frequency is not None and profile.training_frequency != TrainingFrequency.NONE:
        parts.append(f"training frequency ({profile.training_frequency.value})")

    if profile.gender == Sex.FEMALE and profile.menopause_status is not None:
        parts.append(f"reproductive status ({profile.menopause_status.value})")

    if symptoms_rating > ELEVATED_SYMPTOM_RATING:
        parts.append("elevated symptom rating")

    if clinical_multiplier != 1.0:
        parts.append(f"clinical adjustment ({clinical_multiplier * 100:.0f}%)")

    return f"Dose calculated {', '.join(parts)}. Multiplier: {composite_modifier * 100:.0f}% of baseline."


def calculate_personalized_dose(
    entry: SupplementCatalogEntry,
    profile: PatientProfile,
    symptoms_rating: Optional[float] = None,
    budget_tier: BudgetTier = BudgetTier.COMPREHENSIVE,
    clinical_multiplier: float = 1.0,
    config: Optional[EngineConfig] = None,
) -> DoseCalculation:
    """
    Personalised dose range for one supplement.

    Args:
        entry: Catalog entry (dose range, modifiers)
        profile: Patient profile
        symptoms_rating: 0-10, None uses the configured default (5)
        budget_tier: Tier whose dose multiplier applies
        clinical_multiplier: Clinical-flag dose multiplier (1.0 = none)
        config: Engine configuration

    Returns:
        DoseCalculation with rounded min <= optimal <= max
    """
    config = config or get_default_config()
    rating = config.default_symptoms_rating if symptoms_rating is None else symptoms_rating

    demographics = calculate_demographic_modifiers(profile)

    composite = (
        get_catalog_gender_modifier(entry, profile)
        * get_catalog_age_modifier(entry, profile.age)
        * demographics.weight_multiplier
        * demographics.training_load_multiplier
        * get_symptom_modifier(rating)
        * config.tier(budget_tier).dose_multiplier
    )
    composite = min(max(composite, config.modifier_floor), config.modifier_ceiling)

    minimum = entry.dose_min * composite
    maximum = entry.dose_max * composite
    optimal = max(minimum, min(entry.dose_typical * composite, maximum))

    return DoseCalculation(
        optimal_dose=round(optimal * clinical_multiplier, 1),
        minimum_effective_dose=round(minimum * clinical_multiplier, 1),
        safe_upper_limit=round(maximum * clinical_multiplier, 1),
        composite_modifier=composite,
        clinical_multiplier=clinical_multiplier,
        timing=get_supplement_timing(entry.id),
        cycling=get_supplement_cycling(entry.id),
        reasoning=build_dose_reasoning(profile, rating, composite, clinical_multiplier),
    )


def validate_dose_range(dose: float, min_safe: float, max_safe: float) -> DoseValidation:
    if dose < min_safe:
        return DoseValidation(
            is_valid=False,
            message=f"Dose {dose} is below minimum effective dose of {min_safe}",
        )
    if dose > max_safe:
        return DoseValidation(
            is_valid=False,
            message=f"Dose {dose} exceeds safe upper limit of {max_safe}",
        )
    return DoseValidation(is_valid=True, message="Dose within safe range")
