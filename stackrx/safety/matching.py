"""
Generic Rule Matcher

One routine evaluates every keyword rule (screening, clinical, safety).

Matching semantics:
- Keywords and flag entries are compared lower-cased.
- A keyword matches an entry when it is a SUBSTRING of that entry.
  "COVID-19 kidney involvement" therefore matches "kidney". This is the
  extensibility mechanism of the rule surface, not an accident.
- PREGNANCY triggers fire on profile status (is_pregnant, or
  pregnancy_intention YES/UNSURE) or on a condition entry that matches.

PURE: no side effects, no state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .models import KeywordRule, TriggerType

if TYPE_CHECKING:
    from stackrx.engine.models import ClinicalFlags, PatientProfile


PREGNANCY_INTENTION_TRIGGERS = frozenset({"YES", "UNSURE"})


def normalise_entries(entries: Optional[List[str]]) -> List[str]:
    """Lower-case and strip free-text flag entries, dropping blanks."""
    return [e.strip().lower() for e in (entries or []) if e and e.strip()]


def match_flag_text(text: str, keyword: str) -> bool:
    """Case-insensitive substring match of keyword inside text."""
    return keyword.lower() in text.lower()


def entries_for_trigger(
    trigger_type: TriggerType,
    flags: Optional["ClinicalFlags"],
) -> List[str]:
    """Select the flag entries a trigger type inspects."""
    if flags is None:
        return []
    if trigger_type == TriggerType.MEDICATION:
        return normalise_entries(flags.current_medications)
    if trigger_type == TriggerType.SYMPTOM:
        return normalise_entries(flags.symptom_clusters)
    if trigger_type == TriggerType.LAB:
        return normalise_entries(flags.lab_abnormalities)
    # CONDITION and PREGNANCY both read medical conditions
    return normalise_entries(flags.medical_conditions)


def is_pregnancy_indicated(profile: Optional["PatientProfile"]) -> bool:
    if profile is None:
        return False
    if profile.is_pregnant:
        return True
    intention = profile.pregnancy_intention
    if intention is None:
        return False
    return str(getattr(intention, "value", intention)) in PREGNANCY_INTENTION_TRIGGERS


def entry_matches(rule: KeywordRule, entry: str) -> bool:
    """Does a single flag entry satisfy the rule's keyword constraints?"""
    if rule.all_keywords and not all(match_flag_text(entry, k) for k in rule.all_keywords):
        return False
    if rule.keywords and not any(match_flag_text(entry, k) for k in rule.keywords):
        return False
    return bool(rule.keywords or rule.all_keywords)


def is_suppressed(rule: KeywordRule, flags: Optional["ClinicalFlags"]) -> bool:
    if not rule.unless_condition_keywords:
        return False
    conditions = entries_for_trigger(TriggerType.CONDITION, flags)
    return any(
        match_flag_text(condition, keyword)
        for condition in conditions
        for keyword in rule.unless_condition_keywords
    )


def rule_matches(
    rule: KeywordRule,
    profile: Optional["PatientProfile"],
    flags: Optional["ClinicalFlags"],
) -> bool:
    """
    Evaluate a keyword rule against a profile and its clinical flags.

    Returns True when the trigger fires and no suppression applies.
    """
    if is_suppressed(rule, flags):
        return False

    if rule.trigger_type == TriggerType.PREGNANCY and is_pregnancy_indicated(profile):
        return True

    entries = entries_for_trigger(rule.trigger_type, flags)
    return any(entry_matches(rule, entry) for entry in entries)


def matching_entries(
    rule: KeywordRule,
    flags: Optional["ClinicalFlags"],
) -> List[str]:
    """Flag entries that triggered a rule (for audit messages)."""
    entries = entries_for_trigger(rule.trigger_type, flags)
    return [entry for entry in entries if entry_matches(rule, entry)]
