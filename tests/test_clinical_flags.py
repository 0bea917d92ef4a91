"""
StackRx Clinical-Flag Processor Tests

Run with:
    pytest tests/test_clinical_flags.py -v
"""

import pytest

from stackrx.engine.clinical_flags import process_clinical_flags
from stackrx.engine.models import ClinicalFlags
from stackrx.safety import ClinicalAction, ClinicalRule, TriggerType, default_rule_set


@pytest.fixture
def rules():
    return default_rule_set().clinical_rules


class TestClinicalFlagProcessor:

    def test_no_flags(self, rules):
        result = process_clinical_flags(None, rules)
        assert result.auto_add_ids == []
        assert result.blocked_ids == []
        assert result.dose_adjustments == {}
        assert result.warnings == []

    def test_statin_adds_coq10(self, rules):
        result = process_clinical_flags(ClinicalFlags(current_medications=["Atorvastatin"]), rules)
        assert result.auto_add_ids == ["sup_007"]
        assert "CF_STATIN_COQ10" in result.rules_applied
        assert any("statin" in w.lower() for w in result.warnings)

    def test_ssri_blocks_rhodiola(self, rules):
        result = process_clinical_flags(ClinicalFlags(current_medications=["sertraline"]), rules)
        assert result.blocked_ids == ["sup_009"]

    def test_kidney_blocks_magnesium_and_creatine(self, rules):
        result = process_clinical_flags(ClinicalFlags(medical_conditions=["kidney disease"]), rules)
        assert result.blocked_ids == ["sup_002", "sup_005"]

    def test_kidney_substring_boundary(self, rules):
        result = process_clinical_flags(ClinicalFlags(medical_conditions=["COVID-19 kidney involvement"]), rules)
        assert result.blocked_ids == ["sup_002", "sup_005"]

    def test_liver_blocks_berberine_and_resveratrol(self, rules):
        result = process_clinical_flags(ClinicalFlags(medical_conditions=["fatty liver"]), rules)
        assert result.blocked_ids == ["sup_011", "sup_012"]

    def test_gerd_halves_turmeric(self, rules):
        result = process_clinical_flags(ClinicalFlags(medical_conditions=["acid reflux"]), rules)
        assert result.dose_adjustments == {"sup_010": 0.5}

    def test_lowest_multiplier_wins(self, rules):
        flags = ClinicalFlags(medical_conditions=["autoimmune thyroiditis", "hypotension"])
        result = process_clinical_flags(flags, rules)
        # autoimmune 0.7, hypotension 0.5
        assert result.dose_adjustments["sup_006"] == 0.5
        assert result.dose_adjustments["sup_009"] == 0.5

    def test_anxiety_halves_b_complex(self, rules):
        result = process_clinical_flags(ClinicalFlags(symptom_clusters=["anxiety"]), rules)
        assert result.dose_adjustments == {"sup_013": 0.5}

    def test_insomnia_warns_only(self, rules):
        result = process_clinical_flags(ClinicalFlags(symptom_clusters=["poor sleep"]), rules)
        assert result.warnings == ["Move stimulating supplements to morning time only."]
        assert result.auto_add_ids == []
        assert result.blocked_ids == []

    def test_stress_adds_ashwagandha(self, rules):
        result = process_clinical_flags(ClinicalFlags(symptom_clusters=["high cortisol"]), rules)
        assert result.auto_add_ids == ["sup_006"]

    def test_stress_with_autoimmune_does_not_add(self, rules):
        flags = ClinicalFlags(symptom_clusters=["stress"], medical_conditions=["autoimmune disease"])
        result = process_clinical_flags(flags, rules)
        assert result.auto_add_ids == []
        assert result.dose_adjustments["sup_006"] == 0.7

    def test_lists_deduplicated_in_first_seen_order(self):
        rules = [
            ClinicalRule(rule_id="A", trigger_type=TriggerType.MEDICATION, keywords=["x"],
                         action=ClinicalAction.BLOCK, supplement_ids=["s2", "s1"]),
            ClinicalRule(rule_id="B", trigger_type=TriggerType.MEDICATION, keywords=["x"],
                         action=ClinicalAction.BLOCK, supplement_ids=["s1", "s3"]),
        ]
        result = process_clinical_flags(ClinicalFlags(current_medications=["x"]), rules)
        assert result.blocked_ids == ["s2", "s1", "s3"]
        assert result.rules_applied == ["A", "B"]

    def test_flags_are_not_mutated(self, rules):
        flags = ClinicalFlags(current_medications=["statin"], medical_conditions=["GERD"])
        before = flags.model_dump()
        process_clinical_flags(flags, rules)
        assert flags.model_dump() == before
