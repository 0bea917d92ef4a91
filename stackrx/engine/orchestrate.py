"""
StackRx Prescription Orchestrator

Runs the nine pipeline stages in order:

1. Goal resolution         -> InvalidGoalError aborts
2. Hard-stop screening     -> HardStopClinicalError aborts
3. Clinical-flag processing
4. Budget allocation
5. Priority scoring
6. Dosing
7. Time-of-day scheduling
8. Safety validation       -> SafetyHardBlockError aborts (policy ABORT)
9. Output assembly

Any EngineError is caught once, here, and converted into the
GenerationResult contract: prescription is None iff errors is non-empty.
No partial prescription is ever returned.

IMPORTANT: All stages are DETERMINISTIC.
Same inputs ALWAYS produce same outputs (except generated_at).

Usage:
    from stackrx.engine.orchestrate import generate_prescription

    result = generate_prescription(request)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from stackrx.catalog.models import BudgetTier, SupplementCatalogEntry
from stackrx.config import EngineConfig, HardBlockPolicy, get_default_config
from stackrx.engine.assembly import assemble_prescription
from stackrx.engine.budget import allocate_budget
from stackrx.engine.clinical_flags import process_clinical_flags
from stackrx.engine.dosing import calculate_personalized_dose
from stackrx.engine.goals import resolve_goal
from stackrx.engine.models import (
    DosedSupplement,
    DoseType,
    GenerationRequest,
    GenerationResult,
    PrescriptionResult,
    SafetySummary,
    ScheduledStacks,
)
from stackrx.engine.scheduler import schedule_supplements
from stackrx.engine.scoring import rank_supplements, score_supplement
from stackrx.engine.screening import screen_hard_stops
from stackrx.errors import (
    EngineError,
    HardStopClinicalError,
    RequestValidationError,
    SafetyHardBlockError,
)
from stackrx.safety.validator import SafetyCheckOutput, describe_issues, perform_safety_check

logger = logging.getLogger(__name__)

# Friendly messages for the most common request validation failures
VALIDATION_MESSAGES = {
    ("patient_profile",): "Demographics required",
    ("patient_profile", "age"): "Age must be between 13 and 120",
    ("goal",): "Goal required",
    ("budget_tier",): "Invalid budget tier",
}


@dataclass
class _RunState:
    """What a run has accumulated so far, kept for the error result."""
    warnings: List[str] = field(default_factory=list)
    safety: Optional[SafetyCheckOutput] = None
    names: Dict[str, str] = field(default_factory=dict)


# =============================================================================
# HELPERS
# =============================================================================

def _unique(ids: List[str]) -> List[str]:
    seen = []
    for sid in ids:
        if sid not in seen:
            seen.append(sid)
    return seen


def _safety_summary(safety: Optional[SafetyCheckOutput], names: Dict[str, str], is_safe: bool) -> SafetySummary:
    if safety is None:
        return SafetySummary(is_safe=is_safe)
    return SafetySummary(
        is_safe=is_safe,
        issues=describe_issues(safety.blocked_supplements, names),
        blocked_supplements=list(safety.blocked_supplements),
        adjusted_supplements=list(safety.adjusted_supplements),
        warnings=list(safety.warnings),
    )


def _apply_safety_outcome(
    stacks: ScheduledStacks,
    safety: SafetyCheckOutput,
    drop_ids: List[str],
) -> ScheduledStacks:
    """Drop removed items, apply safety dose adjustments, attach warnings."""
    adjusted = {i.supplement_id: i for i in safety.adjusted_supplements}

    def _apply(supplement: DosedSupplement) -> Optional[DosedSupplement]:
        sid = supplement.supplement_id
        if sid in drop_ids:
            return None

        notes = [issue.reason for issue in safety.warnings if issue.supplement_id == sid]
        issue = adjusted.get(sid)
        if issue is None:
            if not notes:
                return supplement
            return supplement.model_copy(update={"warnings": list(supplement.warnings) + notes})

        new_dose = issue.new_dose if issue.new_dose is not None else supplement.dose
        factor = new_dose / supplement.dose if supplement.dose else 1.0
        update: Dict[str, Any] = {
            "dose": new_dose,
            "dose_type": DoseType.MINIMAL,
            "warnings": list(supplement.warnings) + notes + [issue.reason],
        }
        if supplement.minimum_effective_dose is not None:
            update["minimum_effective_dose"] = round(min(supplement.minimum_effective_dose * factor, new_dose), 1)
        if supplement.safe_upper_limit is not None:
            update["safe_upper_limit"] = round(max(supplement.safe_upper_limit * factor, new_dose), 1)
        return supplement.model_copy(update=update)

    def _bucket(items: List[DosedSupplement]) -> List[DosedSupplement]:
        applied = [_apply(s) for s in items]
        return [s for s in applied if s is not None]

    return ScheduledStacks(
        morning=_bucket(stacks.morning),
        afternoon=_bucket(stacks.afternoon),
        evening=_bucket(stacks.evening),
    )


# =============================================================================
# PIPELINE
# =============================================================================

def _run_pipeline(
    request: GenerationRequest,
    config: EngineConfig,
    state: _RunState,
    generated_at: Optional[str],
) -> PrescriptionResult:
    rules = config.rules
    profile = request.patient_profile
    flags = request.clinical_flags
    protocol = request.protocol
    catalog: Dict[str, SupplementCatalogEntry] = {e.id: e for e in request.supplement_catalog}
    state.names = {sid: entry.name for sid, entry in catalog.items()}

    # -----------------------------------------
    # Step 1: Goal Resolution
    # -----------------------------------------
    goal = resolve_goal(request.goal)

    # -----------------------------------------
    # Step 2: Hard-Stop Screening
    # -----------------------------------------
    hard_stop = screen_hard_stops(profile, flags, protocol, request.supplement_catalog, rules.screening_rules)
    if hard_stop.is_hard_stop:
        raise HardStopClinicalError(hard_stop.reason, hard_stop.rule_id)

    # -----------------------------------------
    # Step 3: Clinical Flags
    # -----------------------------------------
    clinical = process_clinical_flags(flags, rules.clinical_rules, profile)
    state.warnings.extend(clinical.warnings)

    # -----------------------------------------
    # Step 4: Budget Allocation
    # -----------------------------------------
    # Clinically blocked ids never take a budget slot
    allocation = allocate_budget(
        [sid for sid in protocol.core_supplement_ids if sid not in clinical.blocked_ids],
        [sid for sid in protocol.optional_supplement_ids if sid not in clinical.blocked_ids],
        request.budget_tier,
        config,
    )
    if allocation.warning:
        state.warnings.append(allocation.warning)

    # -----------------------------------------
    # Step 5: Scoring & Ranking
    # -----------------------------------------
    candidate_ids = [
        sid for sid in _unique(allocation.selected + clinical.auto_add_ids)
        if sid not in clinical.blocked_ids
    ]
    clinical_extras = [sid for sid in candidate_ids if sid not in allocation.selected]
    if clinical_extras and len(candidate_ids) > allocation.capacity:
        extra_names = ", ".join(state.names.get(sid, sid) for sid in clinical_extras)
        state.warnings.append(
            f"Clinical additions ({extra_names}) extend the stack beyond the "
            f"{BudgetTier(request.budget_tier).value} limit of {allocation.capacity} supplements."
        )

    scores = []
    for sid in candidate_ids:
        entry = catalog.get(sid)
        if entry is None:
            logger.warning(f"Supplement {sid} not in catalog, skipped")
            continue
        scores.append(score_supplement(entry, profile, goal.goal.value, config.scoring_weights))
    ranked = rank_supplements(scores)

    # -----------------------------------------
    # Step 6: Dosing
    # -----------------------------------------
    dosed: List[DosedSupplement] = []
    for score in ranked:
        entry = catalog[score.supplement_id]
        clinical_multiplier = clinical.dose_adjustments.get(entry.id, 1.0)
        dose = calculate_personalized_dose(
            entry,
            profile,
            symptoms_rating=request.symptoms_rating,
            budget_tier=request.budget_tier,
            clinical_multiplier=clinical_multiplier,
            config=config,
        )
        dosed.append(DosedSupplement(
            supplement_id=entry.id,
            dose=dose.optimal_dose,
            unit=entry.dose_unit,
            timing=dose.timing,
            cycling=dose.cycling,
            dose_type=DoseType.MINIMAL if clinical_multiplier < 1.0 else DoseType.OPTIMAL,
            reasoning=dose.reasoning,
            minimum_effective_dose=dose.minimum_effective_dose,
            safe_upper_limit=dose.safe_upper_limit,
            compound_classes=list(entry.compound_classes),
        ))

    # -----------------------------------------
    # Step 7: Time-of-Day Scheduling
    # -----------------------------------------
    stacks = schedule_supplements(dosed, config)

    # -----------------------------------------
    # Step 8: Safety Validation
    # -----------------------------------------
    safety = perform_safety_check(dosed, profile, flags, rules)
    state.safety = safety

    blocked_ids = safety.blocked_ids
    if blocked_ids and config.hard_block_policy == HardBlockPolicy.ABORT:
        raise SafetyHardBlockError(describe_issues(safety.blocked_supplements, state.names))

    removed_issues = [i for i in safety.blocked_supplements + safety.removed_supplements if i.supplement_id]
    for issue in removed_issues:
        logger.warning(f"Removed {issue.supplement_id} from stack ({issue.rule_id}): {issue.reason}")
        state.warnings.append(f"{issue.describe(state.names)} (removed from stack)")

    state.warnings.extend(describe_issues(safety.warnings, state.names))

    drop_ids = [i.supplement_id for i in removed_issues]
    final_stacks = _apply_safety_outcome(stacks, safety, drop_ids)

    # -----------------------------------------
    # Step 9: Output Assembly
    # -----------------------------------------
    ranked_ids = [s.supplement_id for s in ranked if s.supplement_id not in drop_ids]
    return assemble_prescription(
        goal_label=goal.label,
        ranked_ids=ranked_ids,
        stacks=final_stacks,
        catalog=catalog,
        clinical_warnings=clinical.warnings,
        safety_issues=safety.warnings + safety.adjusted_supplements,
        warnings=state.warnings,
        config=config,
        generated_at=generated_at,
    )


# =============================================================================
# PUBLIC API
# =============================================================================

def generate_prescription(
    request: GenerationRequest,
    config: Optional[EngineConfig] = None,
    generated_at: Optional[str] = None,
) -> GenerationResult:
    """
    Generate a prescription for one request.

    Args:
        request: Validated generation request
        config: Engine configuration (defaults when omitted)
        generated_at: Timestamp override, used by snapshot tests

    Returns:
        GenerationResult; prescription is None iff errors is non-empty
    """
    config = config or get_default_config()
    state = _RunState()

    try:
        prescription = _run_pipeline(request, config, state, generated_at)
    except EngineError as e:
        logger.warning(f"Generation aborted [{e.code}]: {e.to_error_string()}")
        return GenerationResult(
            prescription=None,
            errors=[e.to_error_string()],
            warnings=list(state.warnings),
            safety=_safety_summary(state.safety, state.names, is_safe=False),
            error_code=e.code,
        )

    is_safe = state.safety.is_safe_to_generate if state.safety is not None else True
    logger.info(
        f"Generated prescription {prescription.prescription_hash} "
        f"({len(prescription.all_items())} supplements, safe={is_safe})"
    )
    return GenerationResult(
        prescription=prescription,
        errors=[],
        warnings=list(state.warnings),
        safety=_safety_summary(state.safety, state.names, is_safe=is_safe),
    )


def describe_validation_errors(error: ValidationError) -> List[str]:
    """Render pydantic errors as human-readable strings, friendly text first."""
    details = []
    for err in error.errors():
        loc = tuple(str(part) for part in err.get("loc", ()))
        message = VALIDATION_MESSAGES.get(loc)
        if message is None:
            message = f"{'.'.join(loc) or 'request'}: {err.get('msg', 'invalid value')}"
        if message not in details:
            details.append(message)
    return details


def validate_request(payload: Mapping[str, Any]) -> GenerationRequest:
    """
    Validate a raw request mapping.

    Raises:
        RequestValidationError: payload does not describe a valid request
    """
    try:
        return GenerationRequest.model_validate(dict(payload))
    except ValidationError as e:
        raise RequestValidationError("Invalid generation request", describe_validation_errors(e))


def generate_from_payload(
    payload: Mapping[str, Any],
    config: Optional[EngineConfig] = None,
    generated_at: Optional[str] = None,
) -> GenerationResult:
    """Validate a raw mapping, then generate; validation failures become errors."""
    try:
        request = validate_request(payload)
    except RequestValidationError as e:
        logger.warning(f"Generation aborted [{e.code}]: {e.to_error_string()}")
        return GenerationResult(
            prescription=None,
            errors=[e.to_error_string()],
            safety=SafetySummary(is_safe=False),
            error_code=e.code,
        )
    return generate_prescription(request, config, generated_at)
