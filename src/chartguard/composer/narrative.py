"""Deterministic narrative composition from checked assertions.

Composition is a pure render: the same bundle always produces the same
section text.  Only the sections that have checked assertions are
rewritten; everything else is returned as it came in.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from chartguard.models import (
    SECTION_ORDER,
    SLOT_ORDER,
    Assertion,
    AssertionBundle,
    DocumentSection,
    Section,
)

log = logging.getLogger(__name__)


def render_section(bundle: AssertionBundle, section: Section) -> str:
    """Text for one section, or "" when nothing in it is checked.

    Lines within a slot are joined by a newline; slot paragraphs by a
    blank line.
    """
    checked = [a for a in bundle.in_section(section) if a.checked]
    paragraphs: list[str] = []
    for slot in SLOT_ORDER:
        in_slot: list[Assertion] = sorted(
            (a for a in checked if a.slot == slot), key=lambda a: a.sort_order
        )
        if in_slot:
            paragraphs.append("\n".join(a.render() for a in in_slot))
    return "\n\n".join(paragraphs)


def compose(
    bundle: AssertionBundle,
    existing_sections: list[DocumentSection],
    now: datetime | None = None,
) -> list[DocumentSection]:
    """Write rendered text into the existing sections of matching type.

    Section identity (``id``, ``title``) is preserved and ``last_edited_at``
    refreshed.  A section whose rendering is empty is left untouched, so
    unchecking everything never blanks a note.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    rendered = {section.value: render_section(bundle, section) for section in SECTION_ORDER}

    updated: list[DocumentSection] = []
    rewritten = 0
    for existing in existing_sections:
        text = rendered.get(existing.type.upper(), "")
        if not text:
            updated.append(existing)
            continue
        updated.append(replace(existing, content=text, last_edited_at=stamp))
        rewritten += 1

    log.debug(
        "Composed %d of %d sections for visit %s",
        rewritten,
        len(existing_sections),
        bundle.visit_id,
    )
    return updated


def blank_sections(prefix: str = "s") -> list[DocumentSection]:
    """One empty section per canonical type, in document order."""
    return [
        DocumentSection(
            id=f"{prefix}-{section.value.lower()}",
            type=section.value,
            title=section.value.replace("_", " ").title(),
        )
        for section in SECTION_ORDER
    ]
