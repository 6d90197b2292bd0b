"""Assertion generation: deconstructs a visit into atomic, checkable facts.

Generation order is the sort-order contract: Subjective, Objective,
Assessment, Treatment Performed, then Plan, each walked in a fixed way.
Given identical inputs two runs produce identical ids, labels, and order,
which is what lets :func:`regenerate` merge against a previous bundle.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from chartguard.assertions.ids import MANUAL_SORT_ORDER, compute_assertion_id, new_manual_id
from chartguard.families.classifier import CodeFamilyClassifier
from chartguard.models import (
    Assertion,
    AssertionBundle,
    AssertionSource,
    ProcedureFact,
    RiskDisclosure,
    Section,
    Slot,
    VisitContext,
)
from chartguard.risks import active_risks

log = logging.getLogger(__name__)

SCHEDULED_TREATMENT_LABEL = "Patient presents for scheduled treatment"
DIAGNOSIS_PENDING_LABEL = "Diagnosis pending / See clinical notes"
NEXT_VISIT_LABEL = "Next visit: Recall / Next phase"
POST_OP_LABEL = "Post-operative instructions provided"


class _AssertionCollector:
    """Accumulates assertions for one generation pass."""

    def __init__(self) -> None:
        self.assertions: list[Assertion] = []
        self._seen: set[str] = set()

    def add(
        self,
        section: Section,
        slot: Slot,
        label: str,
        source: AssertionSource,
        **extras: Any,
    ) -> None:
        assertion_id = compute_assertion_id(
            section, label, extras.get("procedure_id", ""), extras.get("code", "")
        )
        if assertion_id in self._seen:
            return
        self._seen.add(assertion_id)
        self.assertions.append(
            Assertion(
                id=assertion_id,
                section=section,
                slot=slot,
                label=label,
                source=source,
                checked=True,
                sort_order=len(self.assertions),
                **extras,
            )
        )


class AssertionGenerator:
    """Builds an ``AssertionBundle`` from visit context, procedures, and risks."""

    def __init__(self, classifier: CodeFamilyClassifier) -> None:
        self._classifier = classifier

    def generate(
        self,
        visit: VisitContext,
        procedures: list[ProcedureFact],
        risks: list[RiskDisclosure],
    ) -> AssertionBundle:
        """Produce a fresh bundle of generated (non-manual) assertions."""
        out = _AssertionCollector()

        self._subjective(out, visit, procedures)
        self._objective(out, visit, procedures)
        self._assessment(out, procedures)
        self._treatment_performed(out, procedures)
        self._plan(out, risks)

        log.debug(
            "Generated %d assertions for visit %s (%d procedures, %d risks)",
            len(out.assertions),
            visit.id,
            len(procedures),
            len(risks),
        )
        return AssertionBundle(
            visit_id=visit.id,
            assertions=tuple(out.assertions),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    def regenerate(
        self,
        previous: AssertionBundle | None,
        visit: VisitContext,
        procedures: list[ProcedureFact],
        risks: list[RiskDisclosure],
    ) -> AssertionBundle:
        """Generate again and merge with ``previous``.

        Generated assertions whose id survives keep their ``checked`` state;
        every manual assertion of ``previous`` is carried over unchanged.
        """
        fresh = self.generate(visit, procedures, risks)
        if previous is None:
            return fresh
        return merge_bundles(previous, fresh)

    # ── Sections ────────────────────────────────────────────────────

    @staticmethod
    def _subjective(
        out: _AssertionCollector,
        visit: VisitContext,
        procedures: list[ProcedureFact],
    ) -> None:
        complaint = visit.chief_complaint.strip()
        if complaint:
            out.add(Section.SUBJECTIVE, Slot.CC, f"CC: {complaint}", AssertionSource.EXAM)
        elif procedures:
            out.add(Section.SUBJECTIVE, Slot.CC, SCHEDULED_TREATMENT_LABEL, AssertionSource.EXAM)

        history = visit.history_of_present_illness.strip()
        if history:
            out.add(Section.SUBJECTIVE, Slot.HPI, f"HPI: {history}", AssertionSource.EXAM)

        for proc in procedures:
            out.add(
                Section.SUBJECTIVE,
                Slot.CC,
                f"Presents for {proc.name}{_parenthesized(_site(proc))}",
                AssertionSource.PROCEDURE,
                **_procedure_link(proc),
            )

    @staticmethod
    def _objective(
        out: _AssertionCollector,
        visit: VisitContext,
        procedures: list[ProcedureFact],
    ) -> None:
        narrative = visit.radiographic_narrative.strip()
        if narrative:
            out.add(
                Section.OBJECTIVE,
                Slot.RADIOGRAPHIC,
                f"Radiographs: {narrative}",
                AssertionSource.EXAM,
            )

        for proc in procedures:
            location = proc.location
            label = f"{proc.name} required on {location}" if location else f"{proc.name} required"
            out.add(
                Section.OBJECTIVE,
                Slot.CLINICAL_FINDING,
                label,
                AssertionSource.PROCEDURE,
                description=f"Clinical indication verified for {proc.code}",
                **_procedure_link(proc),
            )

    @staticmethod
    def _assessment(out: _AssertionCollector, procedures: list[ProcedureFact]) -> None:
        # Dedup by diagnosis code, not by procedure
        cited_by: dict[str, list[str]] = {}
        for proc in procedures:
            for dx in proc.diagnosis_codes:
                dx = dx.strip()
                if not dx:
                    continue
                names = cited_by.setdefault(dx, [])
                if proc.name not in names:
                    names.append(proc.name)

        for dx, names in cited_by.items():
            out.add(
                Section.ASSESSMENT,
                Slot.DIAGNOSIS,
                f"Diagnosis: {dx}",
                AssertionSource.EXAM,
                code=dx,
                description=f"Associated with: {', '.join(names)}",
            )

        if not cited_by and procedures:
            out.add(Section.ASSESSMENT, Slot.DIAGNOSIS, DIAGNOSIS_PENDING_LABEL, AssertionSource.EXAM)

    def _treatment_performed(
        self,
        out: _AssertionCollector,
        procedures: list[ProcedureFact],
    ) -> None:
        for proc in procedures:
            out.add(
                Section.TREATMENT_PERFORMED,
                Slot.INTERVENTION,
                f"Completed: {proc.name}{_parenthesized(_site(proc))}",
                AssertionSource.PROCEDURE,
                description=self._classifier.treatment_detail_for(proc.code),
                **_procedure_link(proc),
            )

    @staticmethod
    def _plan(out: _AssertionCollector, risks: list[RiskDisclosure]) -> None:
        for risk in active_risks(risks):
            out.add(
                Section.PLAN,
                Slot.RISK,
                f"Risk discussed: {risk.title}",
                AssertionSource.RISK,
                description=risk.body,
            )

        out.add(Section.PLAN, Slot.PLAN, NEXT_VISIT_LABEL, AssertionSource.EXAM)
        out.add(Section.PLAN, Slot.PLAN, POST_OP_LABEL, AssertionSource.EXAM)


# ── Bundle edits ─────────────────────────────────────────────────────


def merge_bundles(previous: AssertionBundle, fresh: AssertionBundle) -> AssertionBundle:
    """Merge a freshly generated bundle into the previous one.

    Same id means merge, not replace: the previous ``checked`` state wins.
    Manual assertions from ``previous`` are appended in their prior order.
    """
    prior_checked = {a.id: a.checked for a in previous.assertions if not a.is_manual}
    merged = [
        replace(a, checked=prior_checked[a.id]) if a.id in prior_checked else a
        for a in fresh.assertions
    ]
    manual = [a for a in previous.assertions if a.is_manual]
    dropped = len(prior_checked) - sum(1 for a in fresh.assertions if a.id in prior_checked)
    if dropped:
        log.debug("Regeneration dropped %d stale assertions for visit %s", dropped, fresh.visit_id)

    return AssertionBundle(
        visit_id=fresh.visit_id,
        assertions=tuple(merged + manual),
        generated_at=fresh.generated_at,
    )


def add_manual_assertion(
    bundle: AssertionBundle,
    section: Section,
    label: str,
    *,
    slot: Slot = Slot.MISC,
    description: str = "",
    sentence: str = "",
    checked: bool = True,
) -> AssertionBundle:
    """Return a new bundle with a user-entered assertion appended."""
    manual = Assertion(
        id=new_manual_id(),
        section=section,
        slot=slot,
        label=label,
        source=AssertionSource.MANUAL,
        description=description,
        sentence=sentence,
        checked=checked,
        sort_order=MANUAL_SORT_ORDER,
    )
    return replace(bundle, assertions=bundle.assertions + (manual,))


def toggle_assertion(
    bundle: AssertionBundle,
    assertion_id: str,
    checked: bool | None = None,
) -> AssertionBundle:
    """Flip (or set) the ``checked`` state of one assertion.

    Unknown ids leave the bundle unchanged.
    """
    if bundle.get(assertion_id) is None:
        log.debug("toggle_assertion: unknown id %s", assertion_id)
        return bundle

    updated = tuple(
        replace(a, checked=(not a.checked) if checked is None else checked)
        if a.id == assertion_id
        else a
        for a in bundle.assertions
    )
    return replace(bundle, assertions=updated)


def remove_manual_assertion(bundle: AssertionBundle, assertion_id: str) -> AssertionBundle:
    """Drop a manual assertion.  Generated assertions can only be unchecked."""
    target = bundle.get(assertion_id)
    if target is None or not target.is_manual:
        return bundle
    return replace(bundle, assertions=tuple(a for a in bundle.assertions if a.id != assertion_id))


# ── Helpers ──────────────────────────────────────────────────────────


def _site(proc: ProcedureFact) -> str:
    """Location followed by surfaces, e.g. ``30 MO``."""
    return " ".join(part for part in (proc.location, proc.surface_label) if part)


def _parenthesized(text: str) -> str:
    return f" ({text})" if text else ""


def _procedure_link(proc: ProcedureFact) -> dict[str, str]:
    return {
        "procedure_id": proc.id,
        "code": proc.code,
        "tooth": proc.location,
        "surfaces": proc.surface_label,
    }
