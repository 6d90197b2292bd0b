"""Visit documentation models: enums, input records, assertions, and results.

This is the canonical location for the data structures shared by the
generator, evaluator, scorer, composer, and sign-off gate.  Input records
(``ProcedureFact``, ``RiskDisclosure``, ``VisitContext``) are owned by
external stores and are never mutated here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

# ── Document structure ───────────────────────────────────────────────


class Section(str, Enum):
    """The five canonical note sections, in document order."""

    SUBJECTIVE = "SUBJECTIVE"
    OBJECTIVE = "OBJECTIVE"
    ASSESSMENT = "ASSESSMENT"
    TREATMENT_PERFORMED = "TREATMENT_PERFORMED"
    PLAN = "PLAN"


class Slot(str, Enum):
    """Semantic sub-category inside a section.  Declaration order is the slot order."""

    CC = "CC"
    HPI = "HPI"
    CLINICAL_FINDING = "CLINICAL_FINDING"
    RADIOGRAPHIC = "RADIOGRAPHIC"
    DIAGNOSIS = "DIAGNOSIS"
    INTERVENTION = "INTERVENTION"
    RISK = "RISK"
    PLAN = "PLAN"
    MISC = "MISC"


SECTION_ORDER: tuple[Section, ...] = tuple(Section)
SLOT_ORDER: tuple[Slot, ...] = tuple(Slot)


class AssertionSource(str, Enum):
    """Where an assertion came from."""

    PROCEDURE = "procedure"
    RISK = "risk"
    EXAM = "exam"
    MANUAL = "manual"


class SlotStatus(str, Enum):
    """Completeness state of one (section, slot) pair."""

    COMPLETE = "complete"
    EMPTY = "empty"
    NOT_REQUIRED = "not_required"


# ── Visit inputs ─────────────────────────────────────────────────────


class VisitType(str, Enum):
    """Visit type tag used for template labels."""

    RESTORATIVE = "restorative"
    ENDO = "endo"
    HYGIENE = "hygiene"
    EXAM = "exam"
    SURGERY = "surgery"
    ORTHO = "ortho"
    OTHER = "other"


VISIT_TYPE_LABELS: dict[VisitType, str] = {
    VisitType.RESTORATIVE: "Restorative",
    VisitType.ENDO: "Endodontic",
    VisitType.HYGIENE: "Hygiene",
    VisitType.EXAM: "Exam",
    VisitType.SURGERY: "Surgical",
    VisitType.ORTHO: "Orthodontic",
    VisitType.OTHER: "Other",
}


class RiskSeverity(str, Enum):
    """Likelihood band of a consent risk, most common first."""

    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    VERY_RARE = "VERY_RARE"

    @property
    def rank(self) -> int:
        """Ordinal rank, COMMON == 1."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    RiskSeverity.COMMON: 1,
    RiskSeverity.UNCOMMON: 2,
    RiskSeverity.RARE: 3,
    RiskSeverity.VERY_RARE: 4,
}


@dataclass(frozen=True)
class ProcedureFact:
    """One performed or billed procedure on the visit.

    Location is one of ``teeth``, ``quadrants`` or ``arches``; the selections
    are mutually exclusive and the first non-empty one is used.
    """

    id: str
    code: str
    display_name: str = ""
    teeth: tuple[str, ...] = ()
    quadrants: tuple[str, ...] = ()
    arches: tuple[str, ...] = ()
    surfaces: tuple[str, ...] = ()
    diagnosis_codes: tuple[str, ...] = ()
    documentation_flags: dict[str, bool] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.display_name or self.code

    @property
    def location(self) -> str:
        """Comma-joined tooth numbers, quadrants or arches ("" if none)."""
        for selection in (self.teeth, self.quadrants, self.arches):
            if selection:
                return ",".join(str(s) for s in selection)
        return ""

    @property
    def surface_label(self) -> str:
        return "".join(self.surfaces)

    def has_flag(self, flag: str) -> bool:
        return bool(self.documentation_flags.get(flag, False))


@dataclass(frozen=True)
class RiskDisclosure:
    """An informed-consent risk shown to the patient.

    ``linked_codes`` is the snapshot of procedure codes the risk was
    disclosed for.  Requirement matching uses this snapshot only.
    """

    id: str
    title: str
    body: str = ""
    severity: RiskSeverity = RiskSeverity.COMMON
    is_active: bool = True
    sort_order: int = 0
    linked_codes: tuple[str, ...] = ()

    def covers(self, code: str) -> bool:
        """True if this risk is active and was disclosed for ``code``."""
        if not self.is_active:
            return False
        wanted = code.strip().upper()
        return any(c.strip().upper() == wanted for c in self.linked_codes)


@dataclass(frozen=True)
class VisitContext:
    """Free-text context captured for a visit."""

    id: str
    chief_complaint: str = ""
    history_of_present_illness: str = ""
    radiographic_narrative: str = ""
    visit_type: VisitType = VisitType.OTHER


@dataclass(frozen=True)
class DocumentSection:
    """An editor-owned note section; the composer's only write surface."""

    id: str
    type: str
    title: str = ""
    content: str = ""
    last_edited_at: str = ""


# ── Assertions ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Assertion:
    """One atomic, independently checkable fact placed in a section and slot."""

    id: str
    section: Section
    slot: Slot
    label: str
    source: AssertionSource
    description: str = ""
    sentence: str = ""
    procedure_id: str = ""
    code: str = ""
    tooth: str = ""
    surfaces: str = ""
    checked: bool = True
    sort_order: int = 0

    @property
    def is_manual(self) -> bool:
        return self.source == AssertionSource.MANUAL

    def render(self) -> str:
        """Line of narrative text for this fact."""
        if self.sentence:
            return self.sentence
        if self.description and self.description != self.label:
            return f"{self.label} - {self.description}"
        return self.label


@dataclass(frozen=True)
class AssertionBundle:
    """All assertions for one visit."""

    visit_id: str
    assertions: tuple[Assertion, ...] = ()
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def in_section(self, section: Section) -> list[Assertion]:
        return [a for a in self.assertions if a.section == section]

    def get(self, assertion_id: str) -> Assertion | None:
        for assertion in self.assertions:
            if assertion.id == assertion_id:
                return assertion
        return None


# ── Results ──────────────────────────────────────────────────────────


@dataclass
class CompletenessResult:
    """Rule-based completeness of a visit."""

    score: int = 100
    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing


@dataclass(frozen=True)
class MissingSlot:
    """First empty slot, used for jump-to-problem navigation."""

    section: Section
    slot: Slot


@dataclass
class SectionCompleteness:
    """Slot-based completeness of a single section."""

    section: Section
    required: int = 0
    completed: int = 0
    slots: dict[Slot, SlotStatus] = field(default_factory=dict)

    @property
    def percent(self) -> int:
        return percent_complete(self.completed, self.required)


@dataclass
class NoteCompletenessSummary:
    """Slot-based completeness across all sections."""

    required: int = 0
    completed: int = 0
    sections: dict[Section, SectionCompleteness] = field(default_factory=dict)

    @property
    def percent(self) -> int:
        return percent_complete(self.completed, self.required)


@dataclass(frozen=True)
class SignOffDecision:
    """Outcome of the sign-off gate."""

    allowed: bool
    requires_override: bool = False
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


def percent_complete(met: int, total: int) -> int:
    """Integer percentage with half-up rounding; zero total is complete."""
    if total <= 0:
        return 100
    return int((100 * met) / total + 0.5)
