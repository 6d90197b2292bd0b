"""Assertion identity: content-addressed ids for generated facts."""

from __future__ import annotations

import hashlib
import uuid

from chartguard.models import Section

# Sort order given to manual assertions so they follow all generated content
MANUAL_SORT_ORDER = 1_000_000


def compute_assertion_id(
    section: Section,
    label: str,
    procedure_id: str = "",
    code: str = "",
) -> str:
    """Deterministic id over (section, label, procedure_id, code).

    Identical content always yields the same id, independent of the order
    assertions are generated in.
    """
    raw = "|".join([section.value, label, procedure_id, code])
    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
    return f"{section.value.lower()}_{digest}"


def new_manual_id() -> str:
    """Random id for a user-entered assertion."""
    return f"manual_{uuid.uuid4().hex}"
