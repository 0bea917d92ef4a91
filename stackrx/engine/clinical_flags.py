"""
Clinical-Flag Processor

Turns free-text medications, conditions and symptoms into request
annotations: supplements to auto-add, supplements to block, dose
multipliers and warnings. The catalog is never touched; downstream
stages read the annotations.

Accumulation rules:
- auto_add_ids / blocked_ids are de-duplicated, first-seen order kept
- two rules adjusting the same supplement: the LOWEST multiplier wins
- warnings are de-duplicated, rule order kept
"""

import logging
from typing import Dict, List, Optional

from stackrx.engine.models import ClinicalFlags, PatientProfile
from stackrx.safety.matching import rule_matches
from stackrx.safety.models import ClinicalAction, ClinicalFlagResult, ClinicalRule

logger = logging.getLogger(__name__)


def _append_unique(target: List[str], values: List[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def process_clinical_flags(
    flags: Optional[ClinicalFlags],
    rules: List[ClinicalRule],
    profile: Optional[PatientProfile] = None,
) -> ClinicalFlagResult:
    """
    Evaluate clinical rules against the request's flags.

    Args:
        flags: Clinical flags (None means no annotations)
        rules: Clinical rules, evaluated in order
        profile: Patient profile, only read by PREGNANCY-triggered rules

    Returns:
        ClinicalFlagResult with auto-adds, blocks, dose multipliers and warnings
    """
    auto_add: List[str] = []
    blocked: List[str] = []
    adjustments: Dict[str, float] = {}
    warnings: List[str] = []
    applied: List[str] = []

    if flags is None:
        return ClinicalFlagResult()

    for rule in rules:
        if not rule_matches(rule, profile, flags):
            continue

        applied.append(rule.rule_id)

        if rule.action == ClinicalAction.AUTO_ADD:
            _append_unique(auto_add, rule.supplement_ids)
        elif rule.action == ClinicalAction.BLOCK:
            _append_unique(blocked, rule.supplement_ids)
        elif rule.action == ClinicalAction.ADJUST_DOSE:
            multiplier = rule.dose_multiplier if rule.dose_multiplier is not None else 1.0
            for sid in rule.supplement_ids:
                current = adjustments.get(sid)
                adjustments[sid] = multiplier if current is None else min(current, multiplier)

        if rule.warning and rule.warning not in warnings:
            warnings.append(rule.warning)

    if applied:
        logger.info(
            f"Clinical flags: rules={applied}, auto_add={auto_add}, "
            f"blocked={blocked}, adjusted={sorted(adjustments)}"
        )

    return ClinicalFlagResult(
        auto_add_ids=auto_add,
        blocked_ids=blocked,
        dose_adjustments=adjustments,
        warnings=warnings,
        rules_applied=applied,
    )
