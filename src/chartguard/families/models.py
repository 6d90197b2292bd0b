"""Requirement table models: code families and the checks they impose."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Pattern


class RequirementSeverity(str, Enum):
    """Hard requirements count toward the score; soft ones only warn."""

    HARD = "hard"
    SOFT = "soft"


class RequirementKind(str, Enum):
    """Procedure-scoped check types a family can impose."""

    TOOTH = "tooth"
    SURFACES = "surfaces"
    DIAGNOSIS = "diagnosis"
    RADIOGRAPHIC_NARRATIVE = "radiographic_narrative"
    LINKED_RISK = "linked_risk"
    DOCUMENTATION_FLAG = "documentation_flag"
    KEYWORD_HEURISTIC = "keyword_heuristic"


class VisitRequirementKind(str, Enum):
    """Visit-scoped check types."""

    CHIEF_COMPLAINT = "chief_complaint"
    HISTORY = "history"
    PROCEDURES_OR_NOTE = "procedures_or_note"
    RADIOGRAPHIC_NARRATIVE = "radiographic_narrative"


@dataclass(frozen=True)
class Requirement:
    """A single documentation element required by a code family.

    ``message`` is a format string; ``{code}`` is replaced with the
    procedure code when the requirement is not met.
    """

    kind: RequirementKind
    message: str
    severity: RequirementSeverity = RequirementSeverity.HARD
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        """Identity used when unioning requirements across families."""
        if self.kind == RequirementKind.DOCUMENTATION_FLAG:
            return (self.kind.value, str(self.params.get("flag", "")))
        if self.kind == RequirementKind.KEYWORD_HEURISTIC:
            return (self.kind.value, "|".join(self.params.get("keywords", [])))
        return (self.kind.value, "")

    @property
    def is_hard(self) -> bool:
        return self.severity == RequirementSeverity.HARD

    def format_message(self, code: str) -> str:
        return self.message.format(code=code)


@dataclass(frozen=True)
class VisitRequirement:
    """A visit-level documentation element.

    When ``when_families`` is non-empty the requirement only applies if some
    procedure on the visit classifies into one of those families.
    """

    kind: VisitRequirementKind
    message: str
    severity: RequirementSeverity = RequirementSeverity.HARD
    when_families: tuple[str, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_hard(self) -> bool:
        return self.severity == RequirementSeverity.HARD


@dataclass(frozen=True)
class CodeFamily:
    """Static metadata for a family of billing codes."""

    id: str
    label: str
    code_pattern: Pattern[str]
    description: str = ""
    typical_codes: tuple[str, ...] = ()
    dx_required: bool = False
    risk_recommended: bool = False
    visit_dependencies: tuple[str, ...] = ()
    requirements: tuple[Requirement, ...] = ()
    treatment_detail: str = ""

    def matches(self, code: str) -> bool:
        return self.code_pattern.match(code) is not None


@dataclass(frozen=True)
class RequirementTable:
    """A versioned set of code families and visit-level requirements."""

    version: int
    families: tuple[CodeFamily, ...] = ()
    visit_requirements: tuple[VisitRequirement, ...] = ()
    default_treatment_detail: str = "Procedure completed according to standard of care."
    source: str = ""

    def family_ids(self) -> list[str]:
        return [f.id for f in self.families]
