"""
Safety Rule Models

Clinical, screening and safety rules are plain data records. A single
generic matcher (see matching.py) evaluates them, so adding a rule is a
data insertion, not a code change.

All rules reference supplements by stable catalog id.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TriggerType(str, Enum):
    MEDICATION = "MEDICATION"
    CONDITION = "CONDITION"
    SYMPTOM = "SYMPTOM"
    LAB = "LAB"
    PREGNANCY = "PREGNANCY"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class SafetyAction(str, Enum):
    HARD_BLOCK = "HARD_BLOCK"
    SOFT_WARN = "SOFT_WARN"
    ADJUST_DOSE = "ADJUST_DOSE"
    REMOVE = "REMOVE"


class ClinicalAction(str, Enum):
    AUTO_ADD = "AUTO_ADD"
    BLOCK = "BLOCK"
    ADJUST_DOSE = "ADJUST_DOSE"
    WARN = "WARN"


class SafetyCheckStage(str, Enum):
    CONTRAINDICATION = "CONTRAINDICATION"
    MEDICATION_INTERACTION = "MEDICATION_INTERACTION"


class KeywordRule(BaseModel):
    """
    Trigger part shared by every keyword rule.

    Matching semantics (case-insensitive substring):
    - keywords: rule fires when ANY keyword appears in ANY entry
    - all_keywords: ALL of them must appear in the SAME entry
    - unless_condition_keywords: rule is suppressed when any medical
      condition entry contains one of them
    PREGNANCY triggers also fire on profile pregnancy status.
    """
    rule_id: str
    trigger_type: TriggerType
    keywords: List[str] = Field(default_factory=list)
    all_keywords: List[str] = Field(default_factory=list)
    unless_condition_keywords: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"


class ClinicalRule(KeywordRule):
    """Annotates the request: auto-add, block, adjust dose or warn."""
    action: ClinicalAction
    supplement_ids: List[str] = Field(default_factory=list)
    dose_multiplier: Optional[float] = Field(default=None, gt=0)
    warning: Optional[str] = None


class ScreeningRule(KeywordRule):
    """Absolute contraindication checked before any selection."""
    reason: str
    requires_botanical_candidates: bool = Field(
        default=False,
        description="Only fires when the protocol contains herb-class actives"
    )


class SafetyRule(KeywordRule):
    """Per-supplement rule evaluated against the assembled stack."""
    stage: SafetyCheckStage = SafetyCheckStage.CONTRAINDICATION
    supplement_ids: List[str]
    severity: Severity
    action: SafetyAction
    dose_multiplier: Optional[float] = Field(
        default=None,
        gt=0,
        description="Applied to the current dose when action is ADJUST_DOSE"
    )
    reason: str
    recommendation: str = ""


class CombinationRule(BaseModel):
    """Warns when every listed supplement is present in the stack."""
    rule_id: str
    supplement_ids: List[str]
    label: str
    severity: Severity
    reason: str
    recommendation: str = ""

    class Config:
        frozen = True
        extra = "forbid"


class CompoundRule(BaseModel):
    """Warns when at least min_count kept supplements share a compound class."""
    rule_id: str
    compound_class: str
    min_count: int = Field(ge=1)
    label: str
    severity: Severity
    reason: str
    recommendation: str = ""

    class Config:
        frozen = True
        extra = "forbid"


class RuleSet(BaseModel):
    """Complete set of rules consumed by one generation."""
    version: str = "rules_v1"
    screening_rules: List[ScreeningRule] = Field(default_factory=list)
    clinical_rules: List[ClinicalRule] = Field(default_factory=list)
    safety_rules: List[SafetyRule] = Field(default_factory=list)
    combination_rules: List[CombinationRule] = Field(default_factory=list)
    compound_rules: List[CompoundRule] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"


# Outputs

class SafetyIssue(BaseModel):
    """
    One finding of the safety validator.

    Per-supplement issues carry supplement_id; stack-level issues
    (combinations, compound patterns) carry a label instead.
    """
    type: SafetyAction
    supplement_id: Optional[str] = None
    label: Optional[str] = None
    reason: str
    severity: Severity
    recommendation: str = ""
    rule_id: Optional[str] = None
    new_dose: Optional[float] = None

    class Config:
        frozen = True
        extra = "forbid"

    def describe(self, names: Optional[Dict[str, str]] = None) -> str:
        subject = self.label
        if self.supplement_id is not None:
            subject = (names or {}).get(self.supplement_id, self.supplement_id)
        return f"{subject}: {self.reason}"


class HardStopResult(BaseModel):
    """Output of the hard-stop screener."""
    is_hard_stop: bool
    reason: str = ""
    rule_id: Optional[str] = None

    class Config:
        frozen = True


class ClinicalFlagResult(BaseModel):
    """Annotations produced by the clinical-flag processor."""
    auto_add_ids: List[str] = Field(default_factory=list)
    blocked_ids: List[str] = Field(default_factory=list)
    dose_adjustments: Dict[str, float] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    rules_applied: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
