"""
StackRx Orchestrator Tests
End-to-end generation through all nine stages.

Run with:
    pytest tests/test_orchestrate.py -v
"""

import pytest

from stackrx.catalog import BudgetTier, ReferenceCatalog
from stackrx.config import EngineConfig, HardBlockPolicy
from stackrx.engine.models import DoseType, GenerationRequest
from stackrx.engine.orchestrate import generate_from_payload, generate_prescription
from stackrx.safety import Severity, default_rule_set
from stackrx.shared.hashing import canonicalize_and_hash

FIXED_TIME = "2026-01-15T09:00:00+00:00"

ASHWAGANDHA = "Ashwagandha (Withanolides 5%)"
TURMERIC = "Turmeric (95% Curcuminoids)"
OMEGA3 = "Omega-3 Fish Oil"
B_COMPLEX = "B-Complex (High Potency)"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(scope="module")
def catalog():
    return ReferenceCatalog.load()


@pytest.fixture
def postmenopausal():
    return {"age": 45, "gender": "FEMALE", "weight": 68, "height": 168, "menopause_status": "POSTMENOPAUSAL"}


@pytest.fixture
def athlete():
    return {"age": 30, "gender": "MALE", "weight": 82, "height": 182, "training_frequency": "INTENSE"}


@pytest.fixture
def build_payload(catalog):
    def _build(profile, goal, budget_tier="ESSENTIAL", clinical_flags=None, **extra):
        protocol = catalog.get_protocol(goal)
        payload = {
            "patient_profile": profile,
            "goal": goal,
            "budget_tier": budget_tier,
            "protocol": protocol.model_dump(mode="json"),
            "supplement_catalog": [s.model_dump(mode="json") for s in catalog.list_supplements()],
        }
        if clinical_flags is not None:
            payload["clinical_flags"] = clinical_flags
        payload.update(extra)
        return payload
    return _build


@pytest.fixture
def build_request(build_payload):
    def _build(*args, **kwargs):
        return GenerationRequest.model_validate(build_payload(*args, **kwargs))
    return _build


@pytest.fixture
def no_anticoagulant_hard_stop():
    """Rule set whose screening stage lets warfarin through to the safety validator."""
    rules = default_rule_set()
    screening = [r for r in rules.screening_rules if r.rule_id != "HS_ANTICOAGULANT"]
    return rules.model_copy(update={"screening_rules": screening})


def item_ids(prescription):
    return [item.supplement_id for item in prescription.all_items()]


def find_item(prescription, supplement_id):
    return next(item for item in prescription.all_items() if item.supplement_id == supplement_id)


# =============================================================================
# HAPPY PATH
# =============================================================================

class TestStressSleepPrescription:

    @pytest.fixture
    def result(self, build_request, postmenopausal):
        return generate_prescription(build_request(postmenopausal, "STRESS_SLEEP"), generated_at=FIXED_TIME)

    def test_contract(self, result):
        assert result.errors == []
        assert result.error_code is None
        assert result.prescription is not None
        assert result.safety.is_safe is True

    def test_stack_contents(self, result):
        assert sorted(item_ids(result.prescription)) == ["sup_002", "sup_006", "sup_009", "sup_013", "sup_015"]

    def test_summary(self, result):
        summary = result.prescription.summary
        assert summary.goal == "Stress & Sleep"
        assert summary.priority[0] == ASHWAGANDHA
        assert len(summary.priority) == 3
        assert summary.generated_at == FIXED_TIME
        assert summary.pathway_focus == ["Metabolic optimization", "Nutrient sufficiency", "Safety first"]

    def test_ashwagandha_dose(self, result):
        item = find_item(result.prescription, "sup_006")
        assert item.supplement_name == ASHWAGANDHA
        assert item.dose == pytest.approx(478.8)
        assert item.unit == "mg"
        assert item.dose_type == DoseType.OPTIMAL
        assert "reproductive status (POSTMENOPAUSAL)" in item.reasoning
        assert "Multiplier: 80% of baseline" in item.reasoning

    def test_schedule(self, result):
        prescription = result.prescription
        assert [i.supplement_id for i in prescription.evening_stack] == ["sup_002"]
        assert len(prescription.morning_stack) == 4
        assert prescription.afternoon_stack == []

    def test_weekly_cyclicals(self, result):
        cycles = {c.supplement_name: (c.days_on, c.days_off) for c in result.prescription.weekly_cyclicals}
        assert cycles == {ASHWAGANDHA: (56, 7), "Rhodiola Rosea (3% Rosavins)": (5, 2)}

    def test_combination_warning(self, result):
        assert result.safety.warnings[0].rule_id == "CR_ASHWAGANDHA_RHODIOLA"
        assert [f.severity for f in result.prescription.red_flags] == [Severity.LOW]
        assert any(w.startswith("Ashwagandha + Rhodiola combination:") for w in result.warnings)

    def test_shopping_list(self, result):
        by_name = {i.supplement_name: i for i in result.prescription.shopping_list}
        assert len(by_name) == 5
        assert by_name[ASHWAGANDHA].quantity == 1437
        assert by_name[ASHWAGANDHA].estimated_cost == 18.5
        assert by_name["Magnesium Glycinate"].estimated_cost == 11.5

    def test_disclaimer_is_plural(self, result):
        assert result.prescription.disclaimer.startswith("* These statements")

    def test_lifestyle_present(self, result):
        lifestyle = result.prescription.lifestyle
        assert lifestyle.sleep and lifestyle.diet and lifestyle.training and lifestyle.stress_reduction

    def test_hash_matches_content(self, result):
        prescription = result.prescription
        assert prescription.prescription_hash.startswith("sha256:")
        assert prescription.prescription_hash == canonicalize_and_hash(prescription.model_dump(mode="json"))


# =============================================================================
# DETERMINISM
# =============================================================================

class TestDeterminism:

    def test_same_input_same_output(self, build_request, postmenopausal):
        request = build_request(postmenopausal, "STRESS_SLEEP")
        first = generate_prescription(request, generated_at=FIXED_TIME)
        second = generate_prescription(request, generated_at=FIXED_TIME)
        assert first.model_dump() == second.model_dump()

    def test_hash_ignores_timestamp(self, build_request, postmenopausal):
        request = build_request(postmenopausal, "STRESS_SLEEP")
        first = generate_prescription(request, generated_at=FIXED_TIME)
        second = generate_prescription(request)
        assert first.prescription.summary.generated_at != second.prescription.summary.generated_at
        assert first.prescription.prescription_hash == second.prescription.prescription_hash

    def test_request_not_mutated(self, build_request, postmenopausal):
        request = build_request(postmenopausal, "STRESS_SLEEP", clinical_flags={"medical_conditions": ["GERD"]})
        before = request.model_dump()
        generate_prescription(request)
        assert request.model_dump() == before


# =============================================================================
# BUDGET
# =============================================================================

class TestBudget:

    def test_item_count_monotone_in_tier(self, build_request, postmenopausal):
        counts = []
        for tier in BudgetTier:
            result = generate_prescription(build_request(postmenopausal, "LONGEVITY", tier.value))
            counts.append(len(result.prescription.all_items()))
        assert counts == sorted(counts)
        assert counts[0] == 5

    def test_budget_warning(self, build_request, postmenopausal):
        result = generate_prescription(build_request(postmenopausal, "LONGEVITY", "ESSENTIAL"))
        assert "Budget tier ESSENTIAL limits stack to 5 supplements." in result.warnings

    def test_auto_add_may_exceed_capacity(self, build_request, postmenopausal):
        flags = {"current_medications": ["atorvastatin"]}
        result = generate_prescription(build_request(postmenopausal, "STRESS_SLEEP", clinical_flags=flags))
        ids = item_ids(result.prescription)
        assert "sup_007" in ids
        assert len(ids) == 6
        assert (
            "Clinical additions (CoQ10 (Ubiquinol)) extend the stack beyond the "
            "ESSENTIAL limit of 5 supplements."
        ) in result.warnings

    def test_within_capacity_has_no_clinical_addition_warning(self, build_request, postmenopausal):
        result = generate_prescription(build_request(postmenopausal, "STRESS_SLEEP"))
        assert not any(w.startswith("Clinical additions") for w in result.warnings)

    def test_clinical_blocks_free_budget_slots(self, build_request, athlete):
        flags = {"medical_conditions": ["kidney disease"]}
        result = generate_prescription(build_request(athlete, "ATHLETIC_PERFORMANCE", "ESSENTIAL", flags))
        assert result.errors == []
        ids = item_ids(result.prescription)
        assert sorted(ids) == ["sup_003", "sup_004", "sup_008", "sup_013"]
        assert not any(w.startswith("Budget tier ESSENTIAL limits") for w in result.warnings)


# =============================================================================
# CLINICAL FLAGS / SAFETY
# =============================================================================

class TestClinicalScenarios:

    def test_kidney_disease_excludes_minerals(self, build_request, athlete):
        flags = {"medical_conditions": ["kidney disease"]}
        result = generate_prescription(build_request(athlete, "ATHLETIC_PERFORMANCE", "COMPREHENSIVE", flags))
        assert result.errors == []
        ids = item_ids(result.prescription)
        assert "sup_002" not in ids
        assert "sup_005" not in ids
        assert "sup_008" in ids
        assert result.safety.is_safe is True
        assert "Magnesium and creatine are contraindicated in kidney disease." in result.warnings

    def test_antioxidant_overlap_is_flagged(self, build_request, postmenopausal):
        result = generate_prescription(build_request(postmenopausal, "LONGEVITY"))
        assert any(w.rule_id == "CP_EXCESS_ANTIOXIDANTS" for w in result.safety.warnings)
        assert any(f.message.startswith("Excessive antioxidants:") for f in result.prescription.red_flags)

    def test_clinical_block_never_reaches_output(self, build_request, postmenopausal):
        flags = {"medical_conditions": ["fatty liver"]}
        result = generate_prescription(build_request(postmenopausal, "METABOLIC_HEALTH", "PREMIUM", flags))
        ids = item_ids(result.prescription)
        assert "sup_011" not in ids
        assert "sup_012" not in ids

    def test_clinical_dose_reduction_is_minimal(self, build_request, postmenopausal):
        flags = {"medical_conditions": ["acid reflux"]}
        result = generate_prescription(build_request(postmenopausal, "JOINT_HEALTH", clinical_flags=flags))
        turmeric = find_item(result.prescription, "sup_010")
        assert turmeric.dose_type == DoseType.MINIMAL
        assert "clinical adjustment (50%)" in turmeric.reasoning

    def test_safety_adjustment_halves_dose(self, build_request, postmenopausal):
        flags = {"medical_conditions": ["hypotension"]}
        result = generate_prescription(build_request(postmenopausal, "STRESS_SLEEP", clinical_flags=flags))
        assert result.safety.is_safe is True
        ashwagandha = find_item(result.prescription, "sup_006")
        # 478.8 x 0.5 clinical, then x 0.5 safety adjustment
        assert ashwagandha.dose == pytest.approx(119.7)
        assert ashwagandha.dose_type == DoseType.MINIMAL
        assert "May lower blood pressure further" in ashwagandha.warnings
        adjusted = {i.supplement_id for i in result.safety.adjusted_supplements}
        assert adjusted == {"sup_006", "sup_009"}
        assert any(f.message == f"{ASHWAGANDHA}: May lower blood pressure further"
                   for f in result.prescription.red_flags)

    def test_pregnancy_hard_stop(self, build_request, postmenopausal):
        profile = dict(postmenopausal, pregnancy_intention="YES")
        result = generate_prescription(build_request(profile, "STRESS_SLEEP"))
        assert result.prescription is None
        assert result.error_code == "HardStopClinical"
        assert "Pregnancy" in result.errors[0]
        assert result.safety.is_safe is False

    def test_pregnancy_without_botanicals(self, build_request, postmenopausal):
        profile = dict(postmenopausal, pregnancy_intention="YES")
        result = generate_prescription(build_request(profile, "ATHLETIC_PERFORMANCE"))
        assert result.errors == []
        assert result.prescription is not None


class TestAnticoagulant:

    def test_warfarin_is_a_hard_stop_by_default(self, build_request, postmenopausal):
        flags = {"current_medications": ["warfarin"]}
        result = generate_prescription(build_request(postmenopausal, "JOINT_HEALTH", clinical_flags=flags))
        assert result.prescription is None
        assert result.errors == ["HARD STOP: Anticoagulant use requires medical supervision for supplementation."]

    def test_warfarin_safety_block_aborts(self, build_request, postmenopausal, no_anticoagulant_hard_stop):
        config = EngineConfig(rules=no_anticoagulant_hard_stop)
        flags = {"current_medications": ["warfarin"]}
        result = generate_prescription(
            build_request(postmenopausal, "JOINT_HEALTH", clinical_flags=flags), config,
        )
        assert result.prescription is None
        assert result.error_code == "SafetyHardBlock"
        assert result.errors[0].startswith("Safety violations: ")
        assert f"{TURMERIC}: May increase bleeding risk with anticoagulants" in result.errors[0]
        assert f"{OMEGA3}: May increase bleeding risk with anticoagulants" in result.errors[0]

        blocked = result.safety.blocked_supplements
        assert sorted(i.supplement_id for i in blocked) == ["sup_003", "sup_010"]
        assert all(i.severity == Severity.CRITICAL for i in blocked)
        assert result.safety.is_safe is False

    def test_warfarin_remove_policy(self, build_request, postmenopausal, no_anticoagulant_hard_stop):
        config = EngineConfig(rules=no_anticoagulant_hard_stop, hard_block_policy=HardBlockPolicy.REMOVE)
        flags = {"current_medications": ["warfarin"]}
        result = generate_prescription(
            build_request(postmenopausal, "JOINT_HEALTH", clinical_flags=flags), config,
        )
        assert result.errors == []
        ids = item_ids(result.prescription)
        assert "sup_003" not in ids
        assert "sup_010" not in ids
        assert len(ids) == 3
        assert result.safety.is_safe is False
        assert f"{TURMERIC}: May increase bleeding risk with anticoagulants (removed from stack)" in result.warnings
        assert TURMERIC not in result.prescription.summary.priority

    def test_ssri_blocks_b_complex(self, build_request, postmenopausal):
        flags = {"current_medications": ["sertraline"]}
        result = generate_prescription(build_request(postmenopausal, "STRESS_SLEEP", clinical_flags=flags))
        assert result.error_code == "SafetyHardBlock"
        assert "B-Complex (High Potency): Serotonin syndrome risk with SSRIs" in result.errors[0]

    def test_removed_supplement_leaves_no_soft_warning(self, build_request, postmenopausal):
        config = EngineConfig(hard_block_policy=HardBlockPolicy.REMOVE)
        flags = {"current_medications": ["sertraline"], "symptom_clusters": ["insomnia"]}
        result = generate_prescription(
            build_request(postmenopausal, "STRESS_SLEEP", clinical_flags=flags), config,
        )
        assert result.errors == []
        assert "sup_013" not in item_ids(result.prescription)
        assert f"{B_COMPLEX}: Serotonin syndrome risk with SSRIs (removed from stack)" in result.warnings
        insomnia = f"{B_COMPLEX}: May exacerbate insomnia if taken late in day"
        assert insomnia not in result.warnings
        assert insomnia not in [f.message for f in result.prescription.red_flags]
        assert result.safety.warnings == []


# =============================================================================
# ERRORS
# =============================================================================

class TestErrors:

    def test_invalid_goal(self, build_request, postmenopausal):
        request = build_request(postmenopausal, "STRESS_SLEEP").model_copy(update={"goal": "WEIGHT_LOSS"})
        result = generate_prescription(request)
        assert result.prescription is None
        assert result.errors == ["Goal selection failed: Invalid goal: WEIGHT_LOSS"]
        assert result.error_code == "InvalidGoal"

    def test_payload_age_out_of_range(self, build_payload, postmenopausal):
        payload = build_payload(dict(postmenopausal, age=10), "STRESS_SLEEP")
        result = generate_from_payload(payload)
        assert result.prescription is None
        assert result.error_code == "ValidationError"
        assert result.errors == ["Invalid generation request: Age must be between 13 and 120"]

    def test_payload_missing_demographics(self, build_payload, postmenopausal):
        payload = build_payload(postmenopausal, "STRESS_SLEEP")
        del payload["patient_profile"]
        result = generate_from_payload(payload)
        assert result.errors == ["Invalid generation request: Demographics required"]

    def test_payload_invalid_tier(self, build_payload, postmenopausal):
        result = generate_from_payload(build_payload(postmenopausal, "STRESS_SLEEP", "GOLD"))
        assert result.errors == ["Invalid generation request: Invalid budget tier"]

    def test_payload_valid(self, build_payload, postmenopausal):
        result = generate_from_payload(build_payload(postmenopausal, "STRESS_SLEEP"), generated_at=FIXED_TIME)
        assert result.errors == []
        assert result.prescription.summary.generated_at == FIXED_TIME
