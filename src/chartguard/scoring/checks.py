"""Requirement checks: one predicate per requirement kind.

Each check answers "is this documentation element present?" for a visit or
a single procedure.  Checks never mutate their inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from chartguard.families.models import (
    Requirement,
    RequirementKind,
    VisitRequirement,
    VisitRequirementKind,
)
from chartguard.models import (
    DocumentSection,
    ProcedureFact,
    RiskDisclosure,
    Section,
    VisitContext,
)
from chartguard.risks import risks_for_code


@dataclass(frozen=True)
class ScoringContext:
    """Everything a check may consult for one visit."""

    visit: VisitContext
    procedures: tuple[ProcedureFact, ...] = ()
    risks: tuple[RiskDisclosure, ...] = ()
    sections: tuple[DocumentSection, ...] = ()

    def visit_text(self, section_type: str) -> str:
        """Free text captured on the visit itself that belongs to a section."""
        if section_type == Section.SUBJECTIVE.value:
            return " ".join([self.visit.chief_complaint, self.visit.history_of_present_illness])
        if section_type == Section.OBJECTIVE.value:
            return self.visit.radiographic_narrative
        return ""

    def section_text(self, section_types: list[str] | tuple[str, ...]) -> str:
        """Concatenated content of the named sections plus the visit's own free text."""
        wanted = {t.upper() for t in section_types}
        parts = [s.content for s in self.sections if s.type.upper() in wanted and s.content]
        parts.extend(self.visit_text(t) for t in sorted(wanted))
        return "\n".join(p for p in parts if p)

    def all_section_text(self) -> str:
        return "\n".join(s.content for s in self.sections if s.content)

    @property
    def is_blank(self) -> bool:
        """No procedures, no visit free text, and no section content."""
        if self.procedures or self.all_section_text().strip():
            return False
        return not any(
            text.strip()
            for text in (
                self.visit.chief_complaint,
                self.visit.history_of_present_illness,
                self.visit.radiographic_narrative,
            )
        )


# ── Visit-level checks ───────────────────────────────────────────────


def _chief_complaint(ctx: ScoringContext, req: VisitRequirement) -> bool:
    return bool(ctx.visit.chief_complaint.strip())


def _history(ctx: ScoringContext, req: VisitRequirement) -> bool:
    return bool(ctx.visit.history_of_present_illness.strip())


def _procedures_or_note(ctx: ScoringContext, req: VisitRequirement) -> bool:
    if ctx.procedures:
        return True
    phrases = [p.lower() for p in req.params.get("phrases", ["no procedures performed"])]
    text = ctx.all_section_text().lower()
    return any(phrase in text for phrase in phrases)


def _visit_radiographic(ctx: ScoringContext, req: VisitRequirement) -> bool:
    return bool(ctx.visit.radiographic_narrative.strip())


VISIT_CHECKS: dict[VisitRequirementKind, Callable[[ScoringContext, VisitRequirement], bool]] = {
    VisitRequirementKind.CHIEF_COMPLAINT: _chief_complaint,
    VisitRequirementKind.HISTORY: _history,
    VisitRequirementKind.PROCEDURES_OR_NOTE: _procedures_or_note,
    VisitRequirementKind.RADIOGRAPHIC_NARRATIVE: _visit_radiographic,
}


# ── Procedure-level checks ───────────────────────────────────────────


def _tooth(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    return any(str(t).strip() for t in proc.teeth)


def _surfaces(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    return any(s.strip() for s in proc.surfaces)


def _diagnosis(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    minimum = int(req.params.get("min_count", 1))
    return sum(1 for dx in proc.diagnosis_codes if dx.strip()) >= minimum


def _radiographic(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    return bool(ctx.visit.radiographic_narrative.strip())


def _linked_risk(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    """An active risk whose snapshot names this exact code.

    Other active risks on the visit do not count.
    """
    return bool(risks_for_code(list(ctx.risks), proc.code))


def _documentation_flag(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    return proc.has_flag(req.params["flag"])


def _keyword_heuristic(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
    """Free-text fallback; a structured flag, when configured and set, wins."""
    flag = req.params.get("satisfied_by_flag")
    if flag and proc.has_flag(flag):
        return True
    sections = req.params.get("sections", [Section.SUBJECTIVE.value, Section.OBJECTIVE.value])
    text = ctx.section_text(sections).lower()
    return any(keyword.lower() in text for keyword in req.params.get("keywords", []))


PROCEDURE_CHECKS: dict[
    RequirementKind, Callable[[ScoringContext, ProcedureFact, Requirement], bool]
] = {
    RequirementKind.TOOTH: _tooth,
    RequirementKind.SURFACES: _surfaces,
    RequirementKind.DIAGNOSIS: _diagnosis,
    RequirementKind.RADIOGRAPHIC_NARRATIVE: _radiographic,
    RequirementKind.LINKED_RISK: _linked_risk,
    RequirementKind.DOCUMENTATION_FLAG: _documentation_flag,
    RequirementKind.KEYWORD_HEURISTIC: _keyword_heuristic,
}
