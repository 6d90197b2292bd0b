"""Visit payload schemas: JSON documents in, domain records out.

The request models validate untrusted input with pydantic; the engine
itself only ever sees the frozen dataclasses from :mod:`chartguard.models`.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError

from chartguard.exceptions import PayloadError
from chartguard.models import (
    Assertion,
    AssertionBundle,
    AssertionSource,
    DocumentSection,
    ProcedureFact,
    RiskDisclosure,
    RiskSeverity,
    Section,
    Slot,
    VisitContext,
    VisitType,
)

# ── Request models ───────────────────────────────────────────────────


class ProcedureIn(BaseModel):
    """A performed procedure."""

    id: str
    code: str
    display_name: str = ""
    teeth: list[Union[int, str]] = Field(default_factory=list)
    quadrants: list[str] = Field(default_factory=list)
    arches: list[str] = Field(default_factory=list)
    surfaces: list[str] = Field(default_factory=list)
    diagnosis_codes: list[str] = Field(default_factory=list)
    documentation_flags: dict[str, bool] = Field(default_factory=dict)

    def to_domain(self) -> ProcedureFact:
        return ProcedureFact(
            id=self.id,
            code=self.code,
            display_name=self.display_name,
            teeth=tuple(str(t) for t in self.teeth),
            quadrants=tuple(self.quadrants),
            arches=tuple(self.arches),
            surfaces=tuple(self.surfaces),
            diagnosis_codes=tuple(self.diagnosis_codes),
            documentation_flags=dict(self.documentation_flags),
        )


class RiskIn(BaseModel):
    """A disclosed consent risk."""

    id: str
    title: str
    body: str = ""
    severity: RiskSeverity = RiskSeverity.COMMON
    is_active: bool = True
    sort_order: int = 0
    linked_codes: list[str] = Field(default_factory=list)

    def to_domain(self) -> RiskDisclosure:
        return RiskDisclosure(
            id=self.id,
            title=self.title,
            body=self.body,
            severity=self.severity,
            is_active=self.is_active,
            sort_order=self.sort_order,
            linked_codes=tuple(self.linked_codes),
        )


class VisitIn(BaseModel):
    """Free-text visit context."""

    id: str
    chief_complaint: str = ""
    history_of_present_illness: str = ""
    radiographic_narrative: str = ""
    visit_type: VisitType = VisitType.OTHER

    def to_domain(self) -> VisitContext:
        return VisitContext(**self.model_dump())


class SectionIn(BaseModel):
    """An existing note section."""

    id: str
    type: str
    title: str = ""
    content: str = ""
    last_edited_at: str = ""

    def to_domain(self) -> DocumentSection:
        return DocumentSection(**self.model_dump())


class AssertionIn(BaseModel):
    """A previously generated or manual assertion."""

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

    def to_domain(self) -> Assertion:
        return Assertion(**self.model_dump())


class BundleIn(BaseModel):
    """A previously stored assertion bundle."""

    visit_id: str
    assertions: list[AssertionIn] = Field(default_factory=list)
    generated_at: str = ""

    def to_domain(self) -> AssertionBundle:
        return AssertionBundle(
            visit_id=self.visit_id,
            assertions=tuple(a.to_domain() for a in self.assertions),
            generated_at=self.generated_at,
        )


class VisitPayload(BaseModel):
    """Everything the engine needs for one visit."""

    visit: VisitIn
    procedures: list[ProcedureIn] = Field(default_factory=list)
    risks: list[RiskIn] = Field(default_factory=list)
    sections: list[SectionIn] = Field(default_factory=list)
    bundle: BundleIn | None = None


# ── Loading ──────────────────────────────────────────────────────────


class VisitInputs:
    """Domain records parsed from a :class:`VisitPayload`."""

    def __init__(self, payload: VisitPayload) -> None:
        self.visit = payload.visit.to_domain()
        self.procedures = [p.to_domain() for p in payload.procedures]
        self.risks = [r.to_domain() for r in payload.risks]
        self.sections = [s.to_domain() for s in payload.sections]
        self.bundle = payload.bundle.to_domain() if payload.bundle is not None else None


def parse_payload(data: Any) -> VisitInputs:
    """Validate a decoded JSON document.

    Raises:
        PayloadError: With the dotted path of the first offending field.
    """
    try:
        payload = VisitPayload.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field_path = ".".join(str(part) for part in first.get("loc", ()))
        raise PayloadError(
            f"Invalid visit payload at {field_path or '<root>'}: {first.get('msg', exc)}",
            field_path=field_path,
        ) from exc
    return VisitInputs(payload)


def load_payload(path: Path) -> VisitInputs:
    """Read and validate a JSON payload file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PayloadError(f"{path} is not valid JSON: {exc}") from exc
    return parse_payload(data)


def to_jsonable(record: Any) -> Any:
    """Dataclass (or list of them) to plain JSON types."""
    if isinstance(record, (list, tuple)):
        return [to_jsonable(r) for r in record]
    return json.loads(json.dumps(asdict(record), default=str))
