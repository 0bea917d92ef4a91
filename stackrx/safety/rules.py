"""
Default Rule Tables

The clinical knowledge of the engine, expressed as data:

- SCREENING_RULES:   hard stops checked before selection (first match wins)
- CLINICAL_RULES:    request annotations (auto-add / block / adjust / warn)
- SAFETY_RULES:      per-supplement checks on the assembled stack
- COMBINATION_RULES: herb-herb pairs
- COMPOUND_RULES:    overlapping sources of the same compound class

Catalog ids used below:
    sup_001 Vitamin D3            sup_009 Rhodiola Rosea
    sup_002 Magnesium Glycinate   sup_010 Turmeric
    sup_003 Omega-3 Fish Oil      sup_011 Berberine
    sup_004 Iron                  sup_012 Resveratrol
    sup_005 Creatine              sup_013 B-Complex
    sup_006 Ashwagandha           sup_014 Probiotics
    sup_007 CoQ10                 sup_015 L-Theanine
    sup_008 Zinc Picolinate
"""

from typing import List

from .models import (
    ClinicalAction,
    ClinicalRule,
    CombinationRule,
    CompoundRule,
    RuleSet,
    SafetyAction,
    SafetyCheckStage,
    SafetyRule,
    ScreeningRule,
    Severity,
    TriggerType,
)

RULES_VERSION = "rules_v1"

PREGNANCY_UNSAFE_IDS = ["sup_006", "sup_010", "sup_011", "sup_012", "sup_009"]
ANTICOAGULANT_INTERACTING_IDS = ["sup_003", "sup_010", "sup_012"]


# =============================================================================
# HARD STOPS
# =============================================================================

SCREENING_RULES: List[ScreeningRule] = [
    ScreeningRule(
        rule_id="HS_PREGNANCY_BOTANICALS",
        trigger_type=TriggerType.PREGNANCY,
        keywords=["pregnan"],
        requires_botanical_candidates=True,
        reason="Pregnancy requires specialized protocol. Consult OB/GYN.",
    ),
    ScreeningRule(
        rule_id="HS_ANTICOAGULANT",
        trigger_type=TriggerType.MEDICATION,
        keywords=["warfarin", "coumadin", "anticoagulant"],
        reason="Anticoagulant use requires medical supervision for supplementation.",
    ),
    ScreeningRule(
        rule_id="HS_ANTIEPILEPTIC",
        trigger_type=TriggerType.MEDICATION,
        keywords=["epileptic", "seizure"],
        reason="Antiepileptic medication requires medical supervision.",
    ),
    ScreeningRule(
        rule_id="HS_ACTIVE_LIVER_DISEASE",
        trigger_type=TriggerType.CONDITION,
        keywords=["cirrhosis", "hepatitis"],
        reason="Active liver disease requires specialized protocol.",
    ),
    ScreeningRule(
        rule_id="HS_RENAL_FAILURE",
        trigger_type=TriggerType.CONDITION,
        keywords=["kidney failure", "renal failure"],
        reason="Severe kidney disease requires nephrologist consultation.",
    ),
]


# =============================================================================
# CLINICAL FLAG ANNOTATIONS
# =============================================================================

CLINICAL_RULES: List[ClinicalRule] = [
    # Medications
    ClinicalRule(
        rule_id="CF_STATIN_COQ10",
        trigger_type=TriggerType.MEDICATION,
        keywords=["statin"],
        action=ClinicalAction.AUTO_ADD,
        supplement_ids=["sup_007"],
        warning=(
            "CoQ10 is depleted by statins. Added to support muscle health "
            "and prevent statin-induced myopathy."
        ),
    ),
    ClinicalRule(
        rule_id="CF_SSRI_RHODIOLA",
        trigger_type=TriggerType.MEDICATION,
        keywords=["ssri", "sertraline"],
        action=ClinicalAction.BLOCK,
        supplement_ids=["sup_009"],
        warning="Rhodiola is blocked due to serotonin interaction risk with SSRIs.",
    ),
    # Conditions
    ClinicalRule(
        rule_id="CF_GERD_TURMERIC",
        trigger_type=TriggerType.CONDITION,
        keywords=["gerd", "reflux"],
        action=ClinicalAction.ADJUST_DOSE,
        supplement_ids=["sup_010"],
        dose_multiplier=0.5,
        warning="Turmeric dose reduced to 50% due to GERD. May cause irritation at higher doses.",
    ),
    ClinicalRule(
        rule_id="CF_KIDNEY_MINERALS",
        trigger_type=TriggerType.CONDITION,
        keywords=["kidney"],
        action=ClinicalAction.BLOCK,
        supplement_ids=["sup_002", "sup_005"],
        warning="Magnesium and creatine are contraindicated in kidney disease.",
    ),
    ClinicalRule(
        rule_id="CF_LIVER_HEPATIC",
        trigger_type=TriggerType.CONDITION,
        keywords=["liver"],
        action=ClinicalAction.BLOCK,
        supplement_ids=["sup_011", "sup_012"],
        warning=(
            "Berberine and resveratrol are metabolized by the liver and "
            "contraindicated in liver disease."
        ),
    ),
    ClinicalRule(
        rule_id="CF_AUTOIMMUNE_ASHWAGANDHA",
        trigger_type=TriggerType.CONDITION,
        keywords=["autoimmune"],
        action=ClinicalAction.ADJUST_DOSE,
        supplement_ids=["sup_006"],
        dose_multiplier=0.7,
        warning="Ashwagandha dose reduced and should be monitored in autoimmune conditions.",
    ),
    ClinicalRule(
        rule_id="CF_HYPOTENSION_ADAPTOGENS",
        trigger_type=TriggerType.CONDITION,
        keywords=["hypotension", "low blood"],
        action=ClinicalAction.ADJUST_DOSE,
        supplement_ids=["sup_006", "sup_009"],
        dose_multiplier=0.5,
        warning="Adaptogen doses reduced due to low blood pressure. Monitor symptoms.",
    ),
    # Symptoms
    ClinicalRule(
        rule_id="CF_INSOMNIA_TIMING",
        trigger_type=TriggerType.SYMPTOM,
        keywords=["insomnia", "sleep"],
        action=ClinicalAction.WARN,
        warning="Move stimulating supplements to morning time only.",
    ),
    ClinicalRule(
        rule_id="CF_ANXIETY_B_COMPLEX",
        trigger_type=TriggerType.SYMPTOM,
        keywords=["anxiety"],
        action=ClinicalAction.ADJUST_DOSE,
        supplement_ids=["sup_013"],
        dose_multiplier=0.5,
        warning="B-vitamin dose reduced due to anxiety symptoms.",
    ),
    ClinicalRule(
        rule_id="CF_CORTISOL_ASHWAGANDHA",
        trigger_type=TriggerType.SYMPTOM,
        keywords=["cortisol", "stress"],
        unless_condition_keywords=["autoimmune"],
        action=ClinicalAction.AUTO_ADD,
        supplement_ids=["sup_006"],
    ),
]


# =============================================================================
# ASSEMBLED-STACK SAFETY
# =============================================================================

SAFETY_RULES: List[SafetyRule] = [
    # Contraindications (first match wins per supplement)
    SafetyRule(
        rule_id="SR_PREGNANCY",
        trigger_type=TriggerType.PREGNANCY,
        keywords=["pregnan"],
        supplement_ids=PREGNANCY_UNSAFE_IDS,
        severity=Severity.CRITICAL,
        action=SafetyAction.HARD_BLOCK,
        reason="Contraindicated in pregnancy or pregnancy planning",
        recommendation="Do not use during pregnancy. Consult OB/GYN.",
    ),
    SafetyRule(
        rule_id="SR_ANTICOAGULANT_BLEEDING",
        trigger_type=TriggerType.MEDICATION,
        keywords=["warfarin", "coumadin"],
        supplement_ids=ANTICOAGULANT_INTERACTING_IDS,
        severity=Severity.CRITICAL,
        action=SafetyAction.HARD_BLOCK,
        reason="May increase bleeding risk with anticoagulants",
        recommendation="Avoid or require INR monitoring by physician",
    ),
    SafetyRule(
        rule_id="SR_KIDNEY_DISEASE",
        trigger_type=TriggerType.CONDITION,
        all_keywords=["kidney", "disease"],
        supplement_ids=["sup_002", "sup_005"],
        severity=Severity.CRITICAL,
        action=SafetyAction.HARD_BLOCK,
        reason="Contraindicated in kidney disease",
        recommendation="Requires nephrologist consultation",
    ),
    SafetyRule(
        rule_id="SR_LIVER_DISEASE",
        trigger_type=TriggerType.CONDITION,
        keywords=["liver"],
        supplement_ids=["sup_011", "sup_012"],
        severity=Severity.CRITICAL,
        action=SafetyAction.HARD_BLOCK,
        reason="Hepatically metabolized - contraindicated in liver disease",
        recommendation="Avoid entirely",
    ),
    SafetyRule(
        rule_id="SR_AUTOIMMUNE_ASHWAGANDHA",
        trigger_type=TriggerType.CONDITION,
        keywords=["autoimmune"],
        supplement_ids=["sup_006"],
        severity=Severity.HIGH,
        action=SafetyAction.SOFT_WARN,
        reason="May stimulate immune system in autoimmune conditions",
        recommendation="Monitor carefully under medical supervision",
    ),
    SafetyRule(
        rule_id="SR_HYPOTENSION_ADAPTOGENS",
        trigger_type=TriggerType.CONDITION,
        keywords=["hypotension", "low blood pressure"],
        supplement_ids=["sup_006", "sup_009"],
        severity=Severity.MEDIUM,
        action=SafetyAction.ADJUST_DOSE,
        dose_multiplier=0.5,
        reason="May lower blood pressure further",
        recommendation="Reduce dose and monitor BP regularly",
    ),
    SafetyRule(
        rule_id="SR_INSOMNIA_STIMULANTS",
        trigger_type=TriggerType.SYMPTOM,
        keywords=["insomnia"],
        supplement_ids=["sup_009", "sup_013"],
        severity=Severity.MEDIUM,
        action=SafetyAction.SOFT_WARN,
        reason="May exacerbate insomnia if taken late in day",
        recommendation="Take only in morning",
    ),
    # Medication interactions
    SafetyRule(
        rule_id="SR_SSRI_SEROTONERGIC",
        trigger_type=TriggerType.MEDICATION,
        stage=SafetyCheckStage.MEDICATION_INTERACTION,
        keywords=["ssri", "sertraline"],
        supplement_ids=["sup_009", "sup_013"],
        severity=Severity.CRITICAL,
        action=SafetyAction.HARD_BLOCK,
        reason="Serotonin syndrome risk with SSRIs",
        recommendation="Avoid combination",
    ),
    SafetyRule(
        rule_id="SR_ANTIBIOTIC_ABSORPTION",
        trigger_type=TriggerType.MEDICATION,
        stage=SafetyCheckStage.MEDICATION_INTERACTION,
        keywords=["antibiotic"],
        supplement_ids=["sup_004", "sup_014"],
        severity=Severity.HIGH,
        action=SafetyAction.SOFT_WARN,
        reason="May reduce antibiotic absorption or effectiveness",
        recommendation="Separate administration by 2+ hours",
    ),
]

COMBINATION_RULES: List[CombinationRule] = [
    CombinationRule(
        rule_id="CR_ASHWAGANDHA_RHODIOLA",
        supplement_ids=["sup_006", "sup_009"],
        label="Ashwagandha + Rhodiola combination",
        severity=Severity.LOW,
        reason="Combined adaptogenic effect may cause drowsiness + alertness conflict",
        recommendation="Space doses - rhodiola AM, ashwagandha PM",
    ),
    CombinationRule(
        rule_id="CR_TURMERIC_OMEGA3",
        supplement_ids=["sup_010", "sup_003"],
        label="Turmeric + Omega-3 combination",
        severity=Severity.MEDIUM,
        reason="Both have blood-thinning properties",
        recommendation="Monitor for easy bruising; may require dose reduction",
    ),
]

COMPOUND_RULES: List[CompoundRule] = [
    CompoundRule(
        rule_id="CP_EXCESS_MAGNESIUM",
        compound_class="magnesium",
        min_count=2,
        label="Excessive magnesium",
        severity=Severity.MEDIUM,
        reason="Multiple magnesium sources may cause diarrhea",
        recommendation="Use single magnesium source or reduce doses",
    ),
    CompoundRule(
        rule_id="CP_EXCESS_ANTIOXIDANTS",
        compound_class="antioxidant",
        min_count=3,
        label="Excessive antioxidants",
        severity=Severity.LOW,
        reason="Very high antioxidant load may interfere with exercise adaptation",
        recommendation="Consider cycling antioxidants",
    ),
]


def default_rule_set() -> RuleSet:
    """Rule set shipped with the engine."""
    return RuleSet(
        version=RULES_VERSION,
        screening_rules=SCREENING_RULES,
        clinical_rules=CLINICAL_RULES,
        safety_rules=SAFETY_RULES,
        combination_rules=COMBINATION_RULES,
        compound_rules=COMPOUND_RULES,
    )
