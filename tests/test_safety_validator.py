"""
StackRx Safety Validator Tests
Per-supplement contraindications, medication interactions and
stack-level combination / compound checks.

Run with:
    pytest tests/test_safety_validator.py -v
"""

import pytest

from stackrx.engine.models import ClinicalFlags, DosedSupplement, PatientProfile, PregnancyIntention
from stackrx.safety import (
    RuleSet,
    SafetyAction,
    SafetyCheckStage,
    SafetyRule,
    Severity,
    TriggerType,
    default_rule_set,
    describe_issues,
    get_safety_assessment_summary,
    perform_safety_check,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def rules():
    return default_rule_set()


@pytest.fixture
def profile():
    return PatientProfile(age=45, gender="FEMALE", weight=68, height=168)


def dosed(*ids, dose=100.0, classes=None):
    classes = classes or {}
    return [
        DosedSupplement(
            supplement_id=sid, dose=dose, unit="mg", timing="With meals",
            compound_classes=classes.get(sid, []),
        )
        for sid in ids
    ]


ANTIOXIDANTS = {sid: ["antioxidant"] for sid in ("sup_010", "sup_012", "sup_007")}


# =============================================================================
# CONTRAINDICATIONS
# =============================================================================

class TestContraindications:

    def test_clean_stack_is_safe(self, rules, profile):
        output = perform_safety_check(dosed("sup_001", "sup_002"), profile, ClinicalFlags(), rules)
        assert output.is_safe_to_generate
        assert [s.supplement_id for s in output.safe_supplements] == ["sup_001", "sup_002"]
        assert output.blocked_supplements == []

    def test_warfarin_blocks_omega3_and_turmeric(self, rules, profile):
        flags = ClinicalFlags(current_medications=["warfarin"])
        output = perform_safety_check(dosed("sup_003", "sup_010", "sup_002"), profile, flags, rules)

        assert not output.is_safe_to_generate
        assert output.blocked_ids == ["sup_003", "sup_010"]
        for issue in output.blocked_supplements:
            assert issue.severity == Severity.CRITICAL
            assert issue.type == SafetyAction.HARD_BLOCK
        assert [s.supplement_id for s in output.safe_supplements] == ["sup_002"]

    def test_pregnancy_blocks_botanicals(self, rules, profile):
        planning = profile.model_copy(update={"pregnancy_intention": PregnancyIntention.YES})
        output = perform_safety_check(dosed("sup_006", "sup_015"), planning, None, rules)
        assert output.blocked_ids == ["sup_006"]

    def test_kidney_disease_requires_both_words(self, rules, profile):
        involvement = ClinicalFlags(medical_conditions=["COVID-19 kidney involvement"])
        assert perform_safety_check(dosed("sup_002"), profile, involvement, rules).is_safe_to_generate

        disease = ClinicalFlags(medical_conditions=["chronic kidney disease"])
        assert perform_safety_check(dosed("sup_002"), profile, disease, rules).blocked_ids == ["sup_002"]

    def test_hypotension_adjusts_dose(self, rules, profile):
        flags = ClinicalFlags(medical_conditions=["hypotension"])
        output = perform_safety_check(dosed("sup_006", dose=478.8), profile, flags, rules)

        assert output.is_safe_to_generate
        assert len(output.adjusted_supplements) == 1
        issue = output.adjusted_supplements[0]
        assert issue.new_dose == pytest.approx(239.4)
        assert issue.severity == Severity.MEDIUM
        # adjusted supplements stay in the stack
        assert [s.supplement_id for s in output.safe_supplements] == ["sup_006"]

    def test_soft_warn_kept_for_surviving_supplement(self, rules, profile):
        flags = ClinicalFlags(symptom_clusters=["insomnia"])
        output = perform_safety_check(dosed("sup_013"), profile, flags, rules)
        assert [w.rule_id for w in output.warnings] == ["SR_INSOMNIA_STIMULANTS"]
        assert [s.supplement_id for s in output.safe_supplements] == ["sup_013"]

    def test_soft_warn_dropped_when_medication_stage_blocks(self, rules, profile):
        flags = ClinicalFlags(symptom_clusters=["insomnia"], current_medications=["sertraline"])
        output = perform_safety_check(dosed("sup_013"), profile, flags, rules)

        assert output.warnings == []
        assert output.blocked_ids == ["sup_013"]
        assert output.blocked_supplements[0].rule_id == "SR_SSRI_SEROTONERGIC"

    def test_hard_block_skips_medication_stage(self, rules, profile):
        flags = ClinicalFlags(medical_conditions=["pregnant"], current_medications=["sertraline"])
        output = perform_safety_check(dosed("sup_009"), profile, flags, rules)
        assert [i.rule_id for i in output.blocked_supplements] == ["SR_PREGNANCY"]

    def test_antibiotic_warns(self, rules, profile):
        flags = ClinicalFlags(current_medications=["Amoxicillin (antibiotic)"])
        output = perform_safety_check(dosed("sup_004", "sup_014"), profile, flags, rules)
        assert output.is_safe_to_generate
        assert {w.supplement_id for w in output.warnings} == {"sup_004", "sup_014"}
        assert all(w.severity == Severity.HIGH for w in output.warnings)


class TestRemoveAction:

    def test_remove_does_not_make_stack_unsafe(self, profile):
        rules = RuleSet(safety_rules=[
            SafetyRule(
                rule_id="SR_TEST_REMOVE",
                trigger_type=TriggerType.CONDITION,
                keywords=["migraine"],
                supplement_ids=["sup_015"],
                severity=Severity.LOW,
                action=SafetyAction.REMOVE,
                stage=SafetyCheckStage.CONTRAINDICATION,
                reason="Not indicated",
            )
        ])
        flags = ClinicalFlags(medical_conditions=["migraine"])
        output = perform_safety_check(dosed("sup_015", "sup_001"), profile, flags, rules)

        assert output.is_safe_to_generate
        assert [i.supplement_id for i in output.removed_supplements] == ["sup_015"]
        assert [s.supplement_id for s in output.safe_supplements] == ["sup_001"]


# =============================================================================
# STACK LEVEL
# =============================================================================

class TestStackLevel:

    def test_ashwagandha_rhodiola_combination(self, rules, profile):
        output = perform_safety_check(dosed("sup_006", "sup_009"), profile, None, rules)
        combos = [w for w in output.warnings if w.rule_id == "CR_ASHWAGANDHA_RHODIOLA"]
        assert len(combos) == 1
        assert combos[0].severity == Severity.LOW
        assert combos[0].supplement_id is None

    def test_turmeric_omega3_combination(self, rules, profile):
        output = perform_safety_check(dosed("sup_010", "sup_003"), profile, None, rules)
        assert any(
            w.rule_id == "CR_TURMERIC_OMEGA3" and w.severity == Severity.MEDIUM
            for w in output.warnings
        )

    def test_blocked_supplements_do_not_form_combinations(self, rules, profile):
        flags = ClinicalFlags(current_medications=["warfarin"])
        output = perform_safety_check(dosed("sup_010", "sup_003"), profile, flags, rules)
        assert not any(w.rule_id == "CR_TURMERIC_OMEGA3" for w in output.warnings)

    def test_antioxidant_compound_needs_three(self, rules, profile):
        two = perform_safety_check(dosed("sup_010", "sup_012", classes=ANTIOXIDANTS), profile, None, rules)
        assert not any(w.rule_id == "CP_EXCESS_ANTIOXIDANTS" for w in two.warnings)

        three = perform_safety_check(
            dosed("sup_010", "sup_012", "sup_007", classes=ANTIOXIDANTS), profile, None, rules
        )
        assert any(w.rule_id == "CP_EXCESS_ANTIOXIDANTS" for w in three.warnings)

    def test_untagged_supplements_never_form_compounds(self, rules, profile):
        output = perform_safety_check(dosed("sup_010", "sup_012", "sup_007"), profile, None, rules)
        assert not any(w.rule_id == "CP_EXCESS_ANTIOXIDANTS" for w in output.warnings)

    def test_two_magnesium_sources_warn(self, rules, profile):
        classes = {"sup_002": ["magnesium"], "sup_016": ["magnesium"]}
        output = perform_safety_check(dosed("sup_002", "sup_016", classes=classes), profile, None, rules)
        compounds = [w for w in output.warnings if w.rule_id == "CP_EXCESS_MAGNESIUM"]
        assert len(compounds) == 1
        assert compounds[0].severity == Severity.MEDIUM
        assert compounds[0].label == "Excessive magnesium"

    def test_single_magnesium_source_is_quiet(self, rules, profile):
        output = perform_safety_check(
            dosed("sup_002", "sup_001", classes={"sup_002": ["magnesium"]}), profile, None, rules
        )
        assert not any(w.rule_id == "CP_EXCESS_MAGNESIUM" for w in output.warnings)

    def test_blocked_supplement_not_counted_in_compound(self, rules, profile):
        flags = ClinicalFlags(current_medications=["warfarin"])
        output = perform_safety_check(
            dosed("sup_010", "sup_012", "sup_007", classes=ANTIOXIDANTS), profile, flags, rules
        )
        assert set(output.blocked_ids) == {"sup_010", "sup_012"}
        assert not any(w.rule_id == "CP_EXCESS_ANTIOXIDANTS" for w in output.warnings)


# =============================================================================
# SUMMARIES
# =============================================================================

class TestSummaries:

    def test_summary_reports_hold(self, rules, profile):
        flags = ClinicalFlags(current_medications=["coumadin"])
        output = perform_safety_check(dosed("sup_003"), profile, flags, rules)
        assert get_safety_assessment_summary(output).startswith("SAFETY HOLD: 1 supplement(s)")

    def test_summary_all_clear(self, rules, profile):
        output = perform_safety_check(dosed("sup_001"), profile, None, rules)
        assert get_safety_assessment_summary(output) == "All safety checks passed. Safe to generate prescription."

    def test_describe_issues_uses_names(self, rules, profile):
        flags = ClinicalFlags(current_medications=["warfarin"])
        output = perform_safety_check(dosed("sup_003"), profile, flags, rules)
        described = describe_issues(output.blocked_supplements, {"sup_003": "Omega-3 Fish Oil"})
        assert described == ["Omega-3 Fish Oil: May increase bleeding risk with anticoagulants"]
