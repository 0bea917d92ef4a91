"""
Output Assembler

Builds the PrescriptionResult from the scheduled stack once every
stage has run. This is the only place supplement display names are
resolved from the catalog.
"""

import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from stackrx.catalog.models import BudgetTier, SupplementCatalogEntry
from stackrx.config import EngineConfig
from stackrx.engine.budget import tier_costs
from stackrx.engine.dosing import parse_cycling
from stackrx.engine.models import (
    DosedSupplement,
    LifestyleRecommendations,
    PrescriptionResult,
    PrescriptionSummary,
    RedFlag,
    ScheduledStacks,
    ShoppingListItem,
    StackItem,
    WeeklyCyclical,
)
from stackrx.safety.models import SafetyIssue, Severity
from stackrx.shared.disclaimer import render_disclaimer_block
from stackrx.shared.hashing import hash_prescription

SUPPLY_DAYS = 30
TOP_PRIORITY_COUNT = 3

LIFESTYLE_RECOMMENDATIONS: Dict[str, List[str]] = {
    "sleep": [
        "Target 7-9 hours per night",
        "Maintain consistent sleep schedule",
        "Avoid screens 1 hour before bed",
        "Keep bedroom cool and dark",
        "Consider magnesium glycinate 1-2 hours before bed",
    ],
    "diet": [
        "Prioritize whole, unprocessed foods",
        "Include protein at each meal",
        "Eat colorful vegetables daily",
        "Stay hydrated (8-10 cups water daily)",
        "Limit processed foods and added sugars",
    ],
    "training": [
        "Engage in regular physical activity",
        "Mix cardio and resistance training",
        "Allow adequate recovery between sessions",
        "Progressive overload for strength gains",
        "Stretch and foam roll regularly",
    ],
    "stress_reduction": [
        "Practice 10-15 minutes daily meditation",
        "Take regular breaks from screens",
        "Engage in activities you enjoy",
        "Maintain social connections",
        "Consider yoga or tai chi",
    ],
}


def now_iso() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def build_lifestyle_recommendations() -> LifestyleRecommendations:
    return LifestyleRecommendations(
        sleep=list(LIFESTYLE_RECOMMENDATIONS["sleep"]),
        diet=list(LIFESTYLE_RECOMMENDATIONS["diet"]),
        training=list(LIFESTYLE_RECOMMENDATIONS["training"]),
        stress_reduction=list(LIFESTYLE_RECOMMENDATIONS["stress_reduction"]),
    )


def to_stack_item(supplement: DosedSupplement, names: Dict[str, str]) -> StackItem:
    return StackItem(
        supplement_id=supplement.supplement_id,
        supplement_name=names.get(supplement.supplement_id, supplement.supplement_id),
        dose=supplement.dose,
        unit=supplement.unit,
        timing=supplement.timing,
        dose_type=supplement.dose_type,
        reasoning=supplement.reasoning,
        warnings=list(supplement.warnings),
    )


def build_weekly_cyclicals(
    supplements: List[DosedSupplement],
    names: Dict[str, str],
) -> List[WeeklyCyclical]:
    cyclicals = []
    for supplement in supplements:
        cycle = parse_cycling(supplement.cycling)
        if cycle is None:
            continue
        days_on, days_off = cycle
        cyclicals.append(WeeklyCyclical(
            supplement_name=names.get(supplement.supplement_id, supplement.supplement_id),
            days_on=days_on,
            days_off=days_off,
            reasoning=supplement.cycling,
        ))
    return cyclicals


def build_red_flags(
    clinical_warnings: List[str],
    safety_issues: List[SafetyIssue],
    names: Dict[str, str],
) -> List[RedFlag]:
    flags = [RedFlag(severity=Severity.MEDIUM, message=w) for w in clinical_warnings]
    flags.extend(
        RedFlag(severity=issue.severity, message=issue.describe(names))
        for issue in safety_issues
    )
    return flags


def build_shopping_list(
    supplements: List[DosedSupplement],
    catalog: Dict[str, SupplementCatalogEntry],
    config: EngineConfig,
) -> List[ShoppingListItem]:
    costs = tier_costs(config)
    items = []
    for supplement in supplements:
        entry = catalog.get(supplement.supplement_id)
        tier = entry.budget_tier if entry is not None else BudgetTier.COMPREHENSIVE
        items.append(ShoppingListItem(
            supplement_name=entry.name if entry is not None else supplement.supplement_id,
            quantity=math.ceil((supplement.dose / 10) * SUPPLY_DAYS),
            unit=supplement.unit,
            estimated_cost=costs[tier],
        ))
    return items


def assemble_prescription(
    goal_label: str,
    ranked_ids: List[str],
    stacks: ScheduledStacks,
    catalog: Dict[str, SupplementCatalogEntry],
    clinical_warnings: List[str],
    safety_issues: List[SafetyIssue],
    warnings: List[str],
    config: EngineConfig,
    generated_at: Optional[str] = None,
) -> PrescriptionResult:
    """
    Build the final prescription and stamp its canonical hash.

    Args:
        goal_label: Display label of the resolved goal
        ranked_ids: Final supplement ids in priority order
        stacks: Scheduled (post-safety) stacks
        catalog: Catalog entries by id
        clinical_warnings: Warnings from clinical-flag processing
        safety_issues: Safety warnings and adjustments for red flags
        warnings: Accumulated pipeline warnings
        config: Engine configuration
        generated_at: Timestamp override (defaults to now)
    """
    names = {sid: entry.name for sid, entry in catalog.items()}
    by_id = {s.supplement_id: s for s in stacks.all_supplements()}
    ordered = [by_id[sid] for sid in ranked_ids if sid in by_id]

    prescription = PrescriptionResult(
        summary=PrescriptionSummary(
            goal=goal_label,
            priority=[names.get(sid, sid) for sid in ranked_ids[:TOP_PRIORITY_COUNT]],
            pathway_focus=list(config.pathway_focus),
            generated_at=generated_at or now_iso(),
        ),
        morning_stack=[to_stack_item(s, names) for s in stacks.morning],
        afternoon_stack=[to_stack_item(s, names) for s in stacks.afternoon],
        evening_stack=[to_stack_item(s, names) for s in stacks.evening],
        weekly_cyclicals=build_weekly_cyclicals(ordered, names),
        lifestyle=build_lifestyle_recommendations(),
        red_flags=build_red_flags(clinical_warnings, safety_issues, names),
        shopping_list=build_shopping_list(ordered, catalog, config),
        warnings=list(warnings),
        disclaimer=render_disclaimer_block(len(ordered)),
    )

    prescription_hash = hash_prescription(prescription)
    return prescription.model_copy(update={"prescription_hash": prescription_hash})
