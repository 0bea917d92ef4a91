"""
StackRx Engine

Deterministic prescription pipeline:
goal -> hard stops -> clinical flags -> budget -> scoring -> dosing
-> scheduling -> safety -> output.

Usage:
    from stackrx.engine import generate_prescription, GenerationRequest
"""

from .models import (
    Sex,
    MenstruationStatus,
    MenopauseStatus,
    PregnancyIntention,
    DietPreference,
    AlcoholUse,
    TrainingFrequency,
    DoseType,
    PatientProfile,
    ClinicalFlags,
    GenerationRequest,
    PriorityScore,
    DoseCalculation,
    DosedSupplement,
    ScheduledStacks,
    PrescriptionResult,
    SafetySummary,
    GenerationResult,
)
from .goals import GoalType, resolve_goal, get_available_goals
from .screening import screen_hard_stops
from .clinical_flags import process_clinical_flags
from .budget import allocate_budget, filter_catalog_by_tier, estimate_monthly_budget, suggest_budget_tier
from .scoring import score_supplement, rank_supplements, explain_score
from .dosing import calculate_personalized_dose, validate_dose_range
from .scheduler import schedule_supplements
from .orchestrate import generate_prescription, generate_from_payload

__all__ = [
    # Models
    "Sex",
    "MenstruationStatus",
    "MenopauseStatus",
    "PregnancyIntention",
    "DietPreference",
    "AlcoholUse",
    "TrainingFrequency",
    "DoseType",
    "PatientProfile",
    "ClinicalFlags",
    "GenerationRequest",
    "PriorityScore",
    "DoseCalculation",
    "DosedSupplement",
    "ScheduledStacks",
    "PrescriptionResult",
    "SafetySummary",
    "GenerationResult",
    # Stages
    "GoalType",
    "resolve_goal",
    "get_available_goals",
    "screen_hard_stops",
    "process_clinical_flags",
    "allocate_budget",
    "filter_catalog_by_tier",
    "estimate_monthly_budget",
    "suggest_budget_tier",
    "score_supplement",
    "rank_supplements",
    "explain_score",
    "calculate_personalized_dose",
    "validate_dose_range",
    "schedule_supplements",
    # Orchestrator
    "generate_prescription",
    "generate_from_payload",
]
