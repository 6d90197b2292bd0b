"""Assertion synthesis: generation, merge-on-regenerate, and slot completeness.

Usage::

    from chartguard.assertions import AssertionGenerator, get_next_missing_slot

    generator = AssertionGenerator(classifier)
    bundle = generator.regenerate(previous_bundle, visit, procedures, risks)
    gap = get_next_missing_slot(bundle)
"""

from __future__ import annotations

from chartguard.assertions.evaluator import (
    SECTION_SLOTS,
    evaluate_slots,
    get_next_missing_slot,
    get_note_completeness,
    get_section_completeness,
    is_slot_required,
)
from chartguard.assertions.generator import (
    AssertionGenerator,
    add_manual_assertion,
    merge_bundles,
    remove_manual_assertion,
    toggle_assertion,
)
from chartguard.assertions.ids import MANUAL_SORT_ORDER, compute_assertion_id

__all__ = [
    "AssertionGenerator",
    "MANUAL_SORT_ORDER",
    "SECTION_SLOTS",
    "add_manual_assertion",
    "compute_assertion_id",
    "evaluate_slots",
    "get_next_missing_slot",
    "get_note_completeness",
    "get_section_completeness",
    "is_slot_required",
    "merge_bundles",
    "remove_manual_assertion",
    "toggle_assertion",
]
