"""Slot and section completeness over an assertion bundle.

Applicability of a slot is decided from the whole bundle, not just the
section being evaluated.  An applicable slot is complete when at least one
checked assertion sits in that (section, slot) pair.

The radiographic slot is only required once a radiographic fact exists:
no radiograph-related fact is read as "no radiograph was taken".
"""

from __future__ import annotations

from typing import Callable

from chartguard.models import (
    SECTION_ORDER,
    AssertionBundle,
    AssertionSource,
    MissingSlot,
    NoteCompletenessSummary,
    Section,
    SectionCompleteness,
    Slot,
    SlotStatus,
)

SECTION_SLOTS: dict[Section, tuple[Slot, ...]] = {
    Section.SUBJECTIVE: (Slot.CC, Slot.HPI),
    Section.OBJECTIVE: (Slot.CLINICAL_FINDING, Slot.RADIOGRAPHIC),
    Section.ASSESSMENT: (Slot.DIAGNOSIS,),
    Section.TREATMENT_PERFORMED: (Slot.INTERVENTION,),
    Section.PLAN: (Slot.RISK, Slot.PLAN),
}


def _has_source(bundle: AssertionBundle, source: AssertionSource) -> bool:
    return any(a.source == source for a in bundle.assertions)


def _has_slot(bundle: AssertionBundle, slot: Slot) -> bool:
    return any(a.slot == slot for a in bundle.assertions)


def _needs_subjective(bundle: AssertionBundle) -> bool:
    return _has_source(bundle, AssertionSource.PROCEDURE) or _has_slot(bundle, Slot.CC)


def _needs_procedure_facts(bundle: AssertionBundle) -> bool:
    return _has_source(bundle, AssertionSource.PROCEDURE)


def _needs_radiographic(bundle: AssertionBundle) -> bool:
    return _has_slot(bundle, Slot.RADIOGRAPHIC)


def _needs_risk(bundle: AssertionBundle) -> bool:
    return _has_source(bundle, AssertionSource.RISK)


def _needs_plan(bundle: AssertionBundle) -> bool:
    return any(not a.is_manual for a in bundle.assertions)


SLOT_RULES: dict[Slot, Callable[[AssertionBundle], bool]] = {
    Slot.CC: _needs_subjective,
    Slot.HPI: _needs_subjective,
    Slot.CLINICAL_FINDING: _needs_procedure_facts,
    Slot.RADIOGRAPHIC: _needs_radiographic,
    Slot.DIAGNOSIS: _needs_procedure_facts,
    Slot.INTERVENTION: _needs_procedure_facts,
    Slot.RISK: _needs_risk,
    Slot.PLAN: _needs_plan,
}


def is_slot_required(bundle: AssertionBundle, slot: Slot) -> bool:
    """Whether ``slot`` must be filled for this visit (MISC never is)."""
    rule = SLOT_RULES.get(slot)
    return rule(bundle) if rule is not None else False


def evaluate_slots(bundle: AssertionBundle, section: Section) -> dict[Slot, SlotStatus]:
    """Status of every slot belonging to ``section``, in slot order."""
    statuses: dict[Slot, SlotStatus] = {}
    for slot in SECTION_SLOTS[section]:
        if not is_slot_required(bundle, slot):
            statuses[slot] = SlotStatus.NOT_REQUIRED
            continue
        filled = any(
            a.checked and a.section == section and a.slot == slot for a in bundle.assertions
        )
        statuses[slot] = SlotStatus.COMPLETE if filled else SlotStatus.EMPTY
    return statuses


def get_section_completeness(bundle: AssertionBundle, section: Section) -> SectionCompleteness:
    """Required/completed slot counts for one section."""
    slots = evaluate_slots(bundle, section)
    required = sum(1 for s in slots.values() if s != SlotStatus.NOT_REQUIRED)
    completed = sum(1 for s in slots.values() if s == SlotStatus.COMPLETE)
    return SectionCompleteness(section=section, required=required, completed=completed, slots=slots)


def get_note_completeness(bundle: AssertionBundle) -> NoteCompletenessSummary:
    """Overall and per-section slot completeness."""
    summary = NoteCompletenessSummary()
    for section in SECTION_ORDER:
        result = get_section_completeness(bundle, section)
        summary.sections[section] = result
        summary.required += result.required
        summary.completed += result.completed
    return summary


def get_next_missing_slot(bundle: AssertionBundle) -> MissingSlot | None:
    """First empty slot in section order, then slot order; None when nothing is missing."""
    for section in SECTION_ORDER:
        for slot, status in evaluate_slots(bundle, section).items():
            if status == SlotStatus.EMPTY:
                return MissingSlot(section=section, slot=slot)
    return None
