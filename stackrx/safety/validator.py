"""
Safety Validator

Re-checks the assembled stack independently of clinical-flag processing.
The two rule sets overlap on purpose: clinical flags annotate the request,
this layer answers whether the finished stack may be issued at all.

Per supplement:
1. Contraindication rules (first match wins)
   - HARD_BLOCK / ADJUST_DOSE / REMOVE end evaluation for the supplement
   - SOFT_WARN is recorded and evaluation continues
2. Medication interaction rules (first match wins)

Stack level, over the supplements that were neither blocked nor removed:
3. Combination rules (herb-herb pairs)
4. Compound rules (overlapping sources of one compound class)

is_safe_to_generate is False if and only if a HARD_BLOCK exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .matching import rule_matches
from .models import (
    CombinationRule,
    CompoundRule,
    RuleSet,
    SafetyAction,
    SafetyCheckStage,
    SafetyIssue,
    SafetyRule,
)

if TYPE_CHECKING:
    from stackrx.engine.models import ClinicalFlags, DosedSupplement, PatientProfile

logger = logging.getLogger(__name__)


@dataclass
class SafetyCheckOutput:
    """Partitioned stack produced by perform_safety_check."""
    safe_supplements: List["DosedSupplement"]
    blocked_supplements: List[SafetyIssue]
    adjusted_supplements: List[SafetyIssue]
    warnings: List[SafetyIssue]
    removed_supplements: List[SafetyIssue] = field(default_factory=list)

    @property
    def is_safe_to_generate(self) -> bool:
        return not any(i.type == SafetyAction.HARD_BLOCK for i in self.blocked_supplements)

    @property
    def blocked_ids(self) -> List[str]:
        return [i.supplement_id for i in self.blocked_supplements if i.supplement_id]


def _issue_from_rule(rule: SafetyRule, supplement_id: str, dose: Optional[float] = None) -> SafetyIssue:
    new_dose = None
    if rule.action == SafetyAction.ADJUST_DOSE and dose is not None:
        new_dose = round(dose * (rule.dose_multiplier or 0.5), 1)
    return SafetyIssue(
        type=rule.action,
        supplement_id=supplement_id,
        reason=rule.reason,
        severity=rule.severity,
        recommendation=rule.recommendation,
        rule_id=rule.rule_id,
        new_dose=new_dose,
    )


def find_supplement_issue(
    supplement_id: str,
    dose: Optional[float],
    rules: List[SafetyRule],
    stage: SafetyCheckStage,
    profile: Optional["PatientProfile"],
    flags: Optional["ClinicalFlags"],
) -> Optional[SafetyIssue]:
    """First rule of a stage that targets the supplement and whose trigger fires."""
    for rule in rules:
        if rule.stage != stage or supplement_id not in rule.supplement_ids:
            continue
        if rule_matches(rule, profile, flags):
            return _issue_from_rule(rule, supplement_id, dose)
    return None


def check_combinations(
    supplement_ids: List[str],
    rules: List[CombinationRule],
) -> List[SafetyIssue]:
    present = set(supplement_ids)
    issues = []
    for rule in rules:
        if all(sid in present for sid in rule.supplement_ids):
            issues.append(SafetyIssue(
                type=SafetyAction.SOFT_WARN,
                label=rule.label,
                reason=rule.reason,
                severity=rule.severity,
                recommendation=rule.recommendation,
                rule_id=rule.rule_id,
            ))
    return issues


def check_compounds(
    supplements: List[Any],
    rules: List[CompoundRule],
) -> List[SafetyIssue]:
    """Count supplements per compound class; untagged supplements never match."""
    issues = []
    for rule in rules:
        count = len([
            s for s in supplements
            if rule.compound_class in getattr(s, "compound_classes", [])
        ])
        if count >= rule.min_count:
            issues.append(SafetyIssue(
                type=SafetyAction.SOFT_WARN,
                label=rule.label,
                reason=rule.reason,
                severity=rule.severity,
                recommendation=rule.recommendation,
                rule_id=rule.rule_id,
            ))
    return issues


def perform_safety_check(
    supplements: List["DosedSupplement"],
    profile: Optional["PatientProfile"],
    flags: Optional["ClinicalFlags"],
    rules: RuleSet,
) -> SafetyCheckOutput:
    """
    Comprehensive safety validation of an assembled stack.

    Args:
        supplements: Dosed supplements (any object with supplement_id and dose)
        profile: Patient profile (pregnancy status)
        flags: Clinical flags (medications, conditions, symptoms)
        rules: Rule set to evaluate

    Returns:
        SafetyCheckOutput partitioned into safe / blocked / adjusted / warned
    """
    safe: List[Any] = []
    blocked: List[SafetyIssue] = []
    adjusted: List[SafetyIssue] = []
    warnings: List[SafetyIssue] = []
    removed: List[SafetyIssue] = []

    for supplement in supplements:
        sid = supplement.supplement_id
        # Soft warnings only count if the supplement stays in the stack
        pending: List[SafetyIssue] = []

        contraindication = find_supplement_issue(
            sid, supplement.dose, rules.safety_rules,
            SafetyCheckStage.CONTRAINDICATION, profile, flags,
        )
        if contraindication is not None:
            if contraindication.type == SafetyAction.HARD_BLOCK:
                blocked.append(contraindication)
                continue
            if contraindication.type == SafetyAction.ADJUST_DOSE:
                adjusted.append(contraindication)
                continue
            if contraindication.type == SafetyAction.REMOVE:
                removed.append(contraindication)
                continue
            pending.append(contraindication)

        interaction = find_supplement_issue(
            sid, supplement.dose, rules.safety_rules,
            SafetyCheckStage.MEDICATION_INTERACTION, profile, flags,
        )
        if interaction is not None:
            if interaction.type == SafetyAction.HARD_BLOCK:
                blocked.append(interaction)
                continue
            if interaction.type == SafetyAction.REMOVE:
                removed.append(interaction)
                continue
            if interaction.type == SafetyAction.ADJUST_DOSE:
                adjusted.append(interaction)
                warnings.extend(pending)
                continue
            pending.append(interaction)

        warnings.extend(pending)
        safe.append(supplement)

    # Stack-level checks only see what stays in the stack
    dropped = {i.supplement_id for i in blocked + removed}
    kept = [s for s in supplements if s.supplement_id not in dropped]
    warnings.extend(check_combinations([s.supplement_id for s in kept], rules.combination_rules))
    warnings.extend(check_compounds(kept, rules.compound_rules))

    output = SafetyCheckOutput(
        safe_supplements=safe,
        blocked_supplements=blocked,
        adjusted_supplements=adjusted,
        warnings=warnings,
        removed_supplements=removed,
    )
    logger.info(
        f"Safety check: {len(safe)} safe, {len(blocked)} blocked, "
        f"{len(adjusted)} adjusted, {len(warnings)} warnings, {len(removed)} removed"
    )
    return output


def get_safety_assessment_summary(output: SafetyCheckOutput) -> str:
    """One-line summary for display."""
    if output.blocked_supplements:
        return (
            f"SAFETY HOLD: {len(output.blocked_supplements)} supplement(s) "
            f"blocked due to safety concerns."
        )
    if output.warnings:
        return f"CAUTION: {len(output.warnings)} warning(s) require attention. Review carefully."
    return "All safety checks passed. Safe to generate prescription."


def describe_issues(issues: List[SafetyIssue], names: Dict[str, str]) -> List[str]:
    """Render issues as '<name>: <reason>' strings."""
    return [issue.describe(names) for issue in issues]
