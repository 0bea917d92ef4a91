"""
Safety Module

Rule records, the generic keyword matcher and the assembled-stack
safety validator.

Design Principles:
- RULES ARE DATA: adding a rule never requires a code change
- IDS, NOT NAMES: every rule references stable catalog ids
- DETERMINISTIC: same input -> same output
"""

from .models import (
    TriggerType,
    Severity,
    SafetyAction,
    ClinicalAction,
    SafetyCheckStage,
    KeywordRule,
    ClinicalRule,
    ScreeningRule,
    SafetyRule,
    CombinationRule,
    CompoundRule,
    RuleSet,
    SafetyIssue,
    HardStopResult,
    ClinicalFlagResult,
)
from .matching import match_flag_text, rule_matches, matching_entries
from .rules import default_rule_set, RULES_VERSION
from .validator import (
    SafetyCheckOutput,
    perform_safety_check,
    get_safety_assessment_summary,
    describe_issues,
)

__all__ = [
    # Models
    "TriggerType",
    "Severity",
    "SafetyAction",
    "ClinicalAction",
    "SafetyCheckStage",
    "KeywordRule",
    "ClinicalRule",
    "ScreeningRule",
    "SafetyRule",
    "CombinationRule",
    "CompoundRule",
    "RuleSet",
    "SafetyIssue",
    "HardStopResult",
    "ClinicalFlagResult",
    # Matching
    "match_flag_text",
    "rule_matches",
    "matching_entries",
    # Rules
    "default_rule_set",
    "RULES_VERSION",
    # Validator
    "SafetyCheckOutput",
    "perform_safety_check",
    "get_safety_assessment_summary",
    "describe_issues",
]
