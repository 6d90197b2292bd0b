"""Tests for AssertionGenerator, merge-on-regenerate, and bundle edits."""

from __future__ import annotations

from dataclasses import replace

import pytest

from chartguard.assertions.generator import (
    DIAGNOSIS_PENDING_LABEL,
    NEXT_VISIT_LABEL,
    POST_OP_LABEL,
    SCHEDULED_TREATMENT_LABEL,
    AssertionGenerator,
    add_manual_assertion,
    remove_manual_assertion,
    toggle_assertion,
)
from chartguard.assertions.ids import MANUAL_SORT_ORDER, compute_assertion_id
from chartguard.families.classifier import CodeFamilyClassifier
from chartguard.models import (
    AssertionBundle,
    AssertionSource,
    ProcedureFact,
    RiskDisclosure,
    Section,
    Slot,
    VisitContext,
)


@pytest.fixture
def generator(classifier: CodeFamilyClassifier) -> AssertionGenerator:
    return AssertionGenerator(classifier)


def _labels(bundle: AssertionBundle, section: Section) -> list[str]:
    return [a.label for a in bundle.in_section(section)]


class TestGenerate:
    def test_section_order_is_sort_order(
        self, generator: AssertionGenerator, visit, composite, composite_risk
    ) -> None:
        bundle = generator.generate(visit, [composite], [composite_risk])
        orders = [a.sort_order for a in bundle.assertions]
        assert orders == list(range(len(bundle.assertions)))

        sections = [a.section for a in bundle.assertions]
        positions = [list(Section).index(s) for s in sections]
        assert positions == sorted(positions)

    def test_subjective(self, generator: AssertionGenerator, visit, composite) -> None:
        bundle = generator.generate(visit, [composite], [])
        assert _labels(bundle, Section.SUBJECTIVE) == [
            "CC: Sensitivity to cold on lower right",
            "HPI: Two weeks of sharp pain when drinking cold water",
            "Presents for Resin composite, one surface, posterior (30 O)",
        ]

    def test_scheduled_treatment_without_complaint(
        self, generator: AssertionGenerator, composite
    ) -> None:
        bundle = generator.generate(VisitContext(id="v"), [composite], [])
        cc = [a for a in bundle.in_section(Section.SUBJECTIVE) if a.slot == Slot.CC]
        assert cc[0].label == SCHEDULED_TREATMENT_LABEL

    def test_objective(self, generator: AssertionGenerator, visit, composite) -> None:
        bundle = generator.generate(visit, [composite], [])
        radiographic, finding = bundle.in_section(Section.OBJECTIVE)
        assert radiographic.slot == Slot.RADIOGRAPHIC
        assert radiographic.label == "Radiographs: BWX: distal caries #30 into dentin"
        assert finding.slot == Slot.CLINICAL_FINDING
        assert finding.label == "Resin composite, one surface, posterior required on 30"
        assert finding.description == "Clinical indication verified for D2391"
        assert finding.procedure_id == "proc-1"

    def test_assessment_dedupes_diagnosis_codes(
        self, generator: AssertionGenerator, visit, composite, crown
    ) -> None:
        bundle = generator.generate(visit, [composite, crown], [])
        (dx,) = bundle.in_section(Section.ASSESSMENT)
        assert dx.label == "Diagnosis: K02.9"
        assert dx.code == "K02.9"
        assert dx.description == (
            "Associated with: Resin composite, one surface, posterior, Crown - porcelain/ceramic"
        )

    def test_diagnosis_pending_placeholder(self, generator: AssertionGenerator, visit) -> None:
        proc = ProcedureFact(id="p", code="D1110", display_name="Prophylaxis - adult")
        bundle = generator.generate(visit, [proc], [])
        assert _labels(bundle, Section.ASSESSMENT) == [DIAGNOSIS_PENDING_LABEL]

    def test_treatment_uses_family_boilerplate(self, generator: AssertionGenerator, visit) -> None:
        endo = ProcedureFact(id="p", code="D3330", display_name="Molar RCT", teeth=("19",))
        exam = ProcedureFact(id="q", code="D0150", display_name="Comprehensive exam")
        bundle = generator.generate(visit, [endo, exam], [])
        rct, evaluation = bundle.in_section(Section.TREATMENT_PERFORMED)
        assert rct.label == "Completed: Molar RCT (19)"
        assert rct.description == "Canals instrumented and obturated."
        assert evaluation.label == "Completed: Comprehensive exam"
        assert evaluation.description == "Procedure completed according to standard of care."

    def test_plan_lists_active_risks_in_order(self, generator: AssertionGenerator, visit) -> None:
        risks = [
            RiskDisclosure(id="r2", title="Second", sort_order=2),
            RiskDisclosure(id="r0", title="Inactive", sort_order=0, is_active=False),
            RiskDisclosure(id="r1", title="First", sort_order=1),
        ]
        bundle = generator.generate(visit, [], risks)
        assert _labels(bundle, Section.PLAN) == [
            "Risk discussed: First",
            "Risk discussed: Second",
            NEXT_VISIT_LABEL,
            POST_OP_LABEL,
        ]
        assert {a.source for a in bundle.in_section(Section.PLAN) if a.slot == Slot.RISK} == {
            AssertionSource.RISK
        }

    def test_all_generated_assertions_checked(
        self, generator: AssertionGenerator, visit, composite, composite_risk
    ) -> None:
        bundle = generator.generate(visit, [composite], [composite_risk])
        assert all(a.checked for a in bundle.assertions)
        assert not any(a.is_manual for a in bundle.assertions)

    def test_duplicate_procedures_emit_once(self, generator: AssertionGenerator, visit, composite) -> None:
        bundle = generator.generate(visit, [composite, composite], [])
        ids = [a.id for a in bundle.assertions]
        assert len(ids) == len(set(ids))

    def test_ids_are_content_addressed(self, generator: AssertionGenerator, visit, composite) -> None:
        bundle = generator.generate(visit, [composite], [])
        finding = [a for a in bundle.assertions if a.slot == Slot.CLINICAL_FINDING][0]
        assert finding.id == compute_assertion_id(
            Section.OBJECTIVE, finding.label, "proc-1", "D2391"
        )
        assert finding.id.startswith("objective_")
        assert len(finding.id) == len("objective_") + 16


class TestRegenerate:
    def test_idempotent(
        self, generator: AssertionGenerator, visit, composite, composite_risk
    ) -> None:
        first = generator.generate(visit, [composite], [composite_risk])
        second = generator.generate(visit, [composite], [composite_risk])
        assert [(a.id, a.label, a.sort_order) for a in first.assertions] == [
            (a.id, a.label, a.sort_order) for a in second.assertions
        ]

    def test_preserves_checked_state(
        self, generator: AssertionGenerator, visit, composite, composite_risk
    ) -> None:
        previous = generator.generate(visit, [composite], [composite_risk])
        target = previous.assertions[0].id
        previous = toggle_assertion(previous, target)

        merged = generator.regenerate(previous, visit, [composite], [composite_risk])
        assert merged.get(target).checked is False
        assert sum(1 for a in merged.assertions if not a.checked) == 1

    def test_carries_manual_assertions(self, generator: AssertionGenerator, visit, composite) -> None:
        previous = generator.generate(visit, [composite], [])
        previous = add_manual_assertion(previous, Section.PLAN, "Patient prefers morning visits")
        manual_id = previous.assertions[-1].id

        merged = generator.regenerate(previous, visit, [], [])
        manual = merged.get(manual_id)
        assert manual is not None
        assert manual.label == "Patient prefers morning visits"
        assert merged.assertions[-1].id == manual_id

    def test_drops_stale_generated_assertions(
        self, generator: AssertionGenerator, visit, composite, crown
    ) -> None:
        previous = generator.generate(visit, [composite, crown], [])
        merged = generator.regenerate(previous, visit, [composite], [])
        assert not any(a.procedure_id == "proc-2" for a in merged.assertions)

    def test_no_previous_bundle(self, generator: AssertionGenerator, visit, composite) -> None:
        bundle = generator.regenerate(None, visit, [composite], [])
        assert bundle.visit_id == "visit-1"
        assert bundle.assertions


class TestBundleEdits:
    @pytest.fixture
    def bundle(self, generator: AssertionGenerator, visit, composite) -> AssertionBundle:
        return generator.generate(visit, [composite], [])

    def test_manual_assertion_defaults(self, bundle: AssertionBundle) -> None:
        updated = add_manual_assertion(bundle, Section.OBJECTIVE, "Gingiva pink and firm")
        manual = updated.assertions[-1]
        assert manual.is_manual
        assert manual.slot == Slot.MISC
        assert manual.sort_order == MANUAL_SORT_ORDER
        assert manual.checked is True
        assert manual.id.startswith("manual_")
        assert len(bundle.assertions) + 1 == len(updated.assertions)

    def test_manual_ids_are_unique(self, bundle: AssertionBundle) -> None:
        once = add_manual_assertion(bundle, Section.PLAN, "Same text")
        twice = add_manual_assertion(once, Section.PLAN, "Same text")
        assert twice.assertions[-1].id != twice.assertions[-2].id

    def test_toggle_flips_and_sets(self, bundle: AssertionBundle) -> None:
        target = bundle.assertions[0].id
        flipped = toggle_assertion(bundle, target)
        assert flipped.get(target).checked is False
        assert toggle_assertion(flipped, target, checked=True).get(target).checked is True
        assert bundle.get(target).checked is True

    def test_toggle_unknown_id_is_noop(self, bundle: AssertionBundle) -> None:
        assert toggle_assertion(bundle, "nope") is bundle

    def test_remove_only_manual(self, bundle: AssertionBundle) -> None:
        generated_id = bundle.assertions[0].id
        assert remove_manual_assertion(bundle, generated_id) is bundle

        with_manual = add_manual_assertion(bundle, Section.PLAN, "Call in two days")
        manual_id = with_manual.assertions[-1].id
        removed = remove_manual_assertion(with_manual, manual_id)
        assert removed.get(manual_id) is None
        assert len(removed.assertions) == len(bundle.assertions)

    def test_bundle_is_not_mutated(self, bundle: AssertionBundle) -> None:
        before = replace(bundle)
        add_manual_assertion(bundle, Section.PLAN, "x")
        toggle_assertion(bundle, bundle.assertions[0].id)
        assert bundle == before
