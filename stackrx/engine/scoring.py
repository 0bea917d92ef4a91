"""
Priority Scorer

Deterministic weighted scoring of candidate supplements (0-100).
No ML, no randomness.

Components (each 0-1):
1. goal alignment      - goal x supplement table, default 0.5
2. demographic fit     - catalog gender / age-bracket modifiers, baseline 0.5
3. evidence            - STRONG 1.0 / MODERATE 0.75 / EMERGING 0.5
4. base priority       - catalog base_priority / 100
5. training alignment  - training-focused supplements favour active patients
6. age appropriateness - per-supplement age curves, default 0.8

score = round(100 * sum(weight * component)), weights from ScoringWeights.
"""

import logging
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from stackrx.catalog.models import EvidenceLevel, SupplementCatalogEntry
from stackrx.config import ScoringWeights
from stackrx.engine.models import PatientProfile, PriorityScore, TrainingFrequency

logger = logging.getLogger(__name__)


# =============================================================================
# TABLES
# =============================================================================

GOAL_ALIGNMENT: Dict[str, Dict[str, float]] = {
    "ENERGY_RECOVERY": {
        "sup_005": 1.0,   # Creatine
        "sup_002": 0.9,   # Magnesium
        "sup_003": 0.8,   # Omega-3
        "sup_013": 0.9,   # B-Complex
        "sup_007": 0.85,  # CoQ10
        "sup_001": 0.7,   # Vitamin D3
        "sup_004": 0.85,  # Iron
    },
    "STRESS_SLEEP": {
        "sup_006": 1.0,
        "sup_002": 0.95,
        "sup_015": 0.9,
        "sup_009": 0.7,
        "sup_013": 0.6,
    },
    "LONGEVITY": {
        "sup_012": 1.0,
        "sup_007": 0.95,
        "sup_010": 0.9,
        "sup_003": 0.9,
        "sup_001": 0.85,
        "sup_014": 0.75,
        "sup_011": 0.8,
    },
    "ATHLETIC_PERFORMANCE": {
        "sup_005": 1.0,
        "sup_008": 0.85,
        "sup_003": 0.8,
        "sup_002": 0.85,
        "sup_013": 0.8,
        "sup_004": 0.75,
    },
    "METABOLIC_HEALTH": {
        "sup_011": 1.0,
        "sup_010": 0.85,
        "sup_008": 0.8,
        "sup_002": 0.75,
        "sup_014": 0.8,
        "sup_001": 0.7,
    },
    "IMMUNE_SUPPORT": {
        "sup_001": 1.0,
        "sup_008": 0.95,
        "sup_014": 0.9,
        "sup_010": 0.8,
        "sup_013": 0.75,
    },
    "BRAIN_HEALTH": {
        "sup_003": 1.0,
        "sup_013": 0.9,
        "sup_002": 0.8,
        "sup_010": 0.85,
        "sup_015": 0.75,
        "sup_007": 0.7,
    },
    "JOINT_HEALTH": {
        "sup_010": 1.0,
        "sup_003": 0.9,
        "sup_002": 0.7,
        "sup_001": 0.75,
        "sup_014": 0.6,
    },
}

EVIDENCE_SCORES: Dict[EvidenceLevel, float] = {
    EvidenceLevel.STRONG: 1.0,
    EvidenceLevel.MODERATE: 0.75,
    EvidenceLevel.EMERGING: 0.5,
}

# Creatine, Zinc, Magnesium
TRAINING_FOCUSED_IDS = frozenset({"sup_005", "sup_008", "sup_002"})

AGE_CURVES: Dict[str, Callable[[int], float]] = {
    "sup_005": lambda age: 1.0 if age > 40 else 0.7,   # Creatine
    "sup_007": lambda age: 1.0 if age > 50 else 0.6,   # CoQ10
    "sup_012": lambda age: 1.0 if age > 45 else 0.5,   # Resveratrol
    "sup_001": lambda age: 1.0 if age > 50 else 0.8,   # Vitamin D3
    "sup_009": lambda age: 0.7 if age > 60 else (0.9 if age > 40 else 1.0),  # Rhodiola
}

DEFAULT_GOAL_ALIGNMENT = 0.5
DEFAULT_AGE_APPROPRIATENESS = 0.8


class ScoreBreakdown(BaseModel):
    """Per-component breakdown on a 0-100 scale."""
    goal_score: int
    demographic_score: int
    evidence_score: int
    priority_score: int
    training_score: int
    age_score: int
    final_score: int


# =============================================================================
# COMPONENTS
# =============================================================================

def age_bracket(age: int) -> str:
    if age < 30:
        return "18-30"
    if age < 50:
        return "30-50"
    return "50+"


def calculate_goal_alignment(supplement_id: str, goal: str) -> float:
    return GOAL_ALIGNMENT.get(goal, {}).get(supplement_id, DEFAULT_GOAL_ALIGNMENT)


def calculate_demographic_fit(entry: SupplementCatalogEntry, profile: PatientProfile) -> float:
    score = 0.5

    gender_mod = entry.gender_modifiers.get(profile.gender.value.lower())
    if gender_mod:
        score = min(gender_mod, 1.0)

    age_mod = entry.age_modifiers.get(age_bracket(profile.age))
    if age_mod:
        score = (score + min(age_mod, 1.0)) / 2

    return min(score, 1.0)


def calculate_evidence_score(evidence_level: EvidenceLevel) -> float:
    return EVIDENCE_SCORES.get(evidence_level, 0.5)


def calculate_training_alignment(
    supplement_id: str,
    training_frequency: Optional[TrainingFrequency],
) -> float:
    focused = supplement_id in TRAINING_FOCUSED_IDS

    if training_frequency is None or training_frequency == TrainingFrequency.NONE:
        return 0.4 if focused else 0.7

    if training_frequency in (TrainingFrequency.INTENSE, TrainingFrequency.VERY_INTENSE):
        return 1.0 if focused else 0.8

    return 0.7


def calculate_age_appropriateness(supplement_id: str, age: int) -> float:
    curve = AGE_CURVES.get(supplement_id)
    if curve is None:
        return DEFAULT_AGE_APPROPRIATENESS
    return curve(age)


def _components(entry: SupplementCatalogEntry, profile: PatientProfile, goal: str) -> Dict[str, float]:
    return {
        "goal": calculate_goal_alignment(entry.id, goal),
        "demographic": calculate_demographic_fit(entry, profile),
        "evidence": calculate_evidence_score(entry.evidence_level),
        "priority": entry.base_priority / 100,
        "training": calculate_training_alignment(entry.id, profile.training_frequency),
        "age": calculate_age_appropriateness(entry.id, profile.age),
    }


def _weighted_total(components: Dict[str, float], weights: ScoringWeights) -> int:
    total = (
        components["goal"] * weights.goal_alignment
        + components["demographic"] * weights.demographic
        + components["evidence"] * weights.evidence
        + components["priority"] * weights.priority
        + components["training"] * weights.training
        + components["age"] * weights.age
    )
    return int(round(total * 100))


def build_scoring_rationale(
    profile: PatientProfile,
    goal: str,
    components: Dict[str, float],
) -> str:
    parts = []

    if components["goal"] > 0.8:
        parts.append(f"Strong alignment with {goal.replace('_', ' ')} goal")
    elif components["goal"] > 0.5:
        parts.append("Moderate alignment with goal")

    if components["demographic"] > 0.8:
        parts.append(f"Excellent fit for {profile.gender.value.lower()}, age {profile.age}")

    if components["evidence"] == 1.0:
        parts.append("Strong clinical evidence")
    elif components["evidence"] < 0.6:
        parts.append("Emerging evidence - monitor effectiveness")

    if components["training"] > 0.8 and profile.training_frequency is not None:
        parts.append(f"Ideal for {profile.training_frequency.value.lower()} training")

    return ". ".join(parts) or "Reasonable fit based on profile."


# =============================================================================
# PUBLIC API
# =============================================================================

def score_supplement(
    entry: SupplementCatalogEntry,
    profile: PatientProfile,
    goal: str,
    weights: Optional[ScoringWeights] = None,
) -> PriorityScore:
    """Weighted 0-100 priority of one supplement for a profile and goal."""
    weights = weights or ScoringWeights()
    components = _components(entry, profile, goal)

    return PriorityScore(
        supplement_id=entry.id,
        score=_weighted_total(components, weights),
        rationale=build_scoring_rationale(profile, goal, components),
    )


def rank_supplements(scores: List[PriorityScore]) -> List[PriorityScore]:
    """Descending by score. sorted() is stable, so ties keep candidate order."""
    return sorted(scores, key=lambda s: s.score, reverse=True)


def explain_score(
    entry: SupplementCatalogEntry,
    profile: PatientProfile,
    goal: str,
    weights: Optional[ScoringWeights] = None,
) -> ScoreBreakdown:
    """Component breakdown (0-100 each) plus the final weighted score."""
    weights = weights or ScoringWeights()
    components = _components(entry, profile, goal)

    return ScoreBreakdown(
        goal_score=int(round(components["goal"] * 100)),
        demographic_score=int(round(components["demographic"] * 100)),
        evidence_score=int(round(components["evidence"] * 100)),
        priority_score=int(round(components["priority"] * 100)),
        training_score=int(round(components["training"] * 100)),
        age_score=int(round(components["age"] * 100)),
        final_score=_weighted_total(components, weights),
    )
