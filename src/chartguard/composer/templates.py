"""Per-procedure SOAP templates used to pre-seed note sections.

This is the legacy composition path: canned text keyed by procedure code
(or display-name alias), hydrated with ``{{token}}`` placeholders and
appended into the Subjective, Objective, Assessment and Plan sections.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from chartguard.exceptions import TemplateLibraryError
from chartguard.families.classifier import normalize_code
from chartguard.models import (
    VISIT_TYPE_LABELS,
    DocumentSection,
    ProcedureFact,
    Section,
    VisitContext,
    VisitType,
)

log = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).resolve().parents[1] / "data" / "note_templates.yaml"

TEMPLATED_SECTIONS: tuple[Section, ...] = (
    Section.SUBJECTIVE,
    Section.OBJECTIVE,
    Section.ASSESSMENT,
    Section.PLAN,
)

UNSPECIFIED_AREA = "treated area"

_TOKEN = re.compile(r"{{\s*(\w+)\s*}}")


@dataclass(frozen=True)
class NoteTemplate:
    """Canned section text for a group of procedures."""

    id: str
    name: str
    category: str = ""
    codes: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    soap: dict[Section, str] = field(default_factory=dict)
    post_op: str = ""

    def matches_code(self, code: str) -> bool:
        return normalize_code(code) in self.codes

    def matches_name(self, display_name: str) -> bool:
        name = display_name.lower()
        return bool(name) and any(alias.lower() in name for alias in self.aliases)


class TemplateLibrary:
    """Ordered collection of note templates plus exam-finding defaults."""

    def __init__(
        self,
        templates: list[NoteTemplate] | tuple[NoteTemplate, ...] = (),
        defaults: dict[str, str] | None = None,
    ) -> None:
        self._templates = tuple(templates)
        self._defaults = dict(defaults or {})

    @property
    def templates(self) -> tuple[NoteTemplate, ...]:
        return self._templates

    @property
    def defaults(self) -> dict[str, str]:
        return dict(self._defaults)

    @classmethod
    def from_file(cls, path: Path = DEFAULT_TEMPLATES_PATH) -> TemplateLibrary:
        """Load a library from YAML.

        Raises:
            FileNotFoundError: If the file does not exist.
            TemplateLibraryError: If the document is malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Note template library not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise TemplateLibraryError(f"Cannot read {path}: {exc}") from exc

        library = cls.from_dict(data)
        log.info("Loaded %d note templates from %s", len(library.templates), path)
        return library

    @classmethod
    def from_dict(cls, data: Any) -> TemplateLibrary:
        if not isinstance(data, dict):
            raise TemplateLibraryError("Note template library must be a mapping")

        templates: list[NoteTemplate] = []
        seen: set[str] = set()
        for raw in data.get("templates", []):
            template = _parse_template(raw)
            if template.id in seen:
                raise TemplateLibraryError(f"Duplicate note template id {template.id!r}")
            seen.add(template.id)
            templates.append(template)

        defaults = {str(k): str(v) for k, v in (data.get("defaults") or {}).items()}
        return cls(templates, defaults)

    def find(self, procedure: ProcedureFact) -> NoteTemplate | None:
        """Template for ``procedure``: code match first, then alias match."""
        for template in self._templates:
            if template.matches_code(procedure.code):
                return template
        for template in self._templates:
            if template.matches_name(procedure.display_name):
                return template
        return None

    def get(self, template_id: str) -> NoteTemplate:
        for template in self._templates:
            if template.id == template_id:
                return template
        raise KeyError(f"Note template {template_id!r} not found")


def _parse_template(raw: Any) -> NoteTemplate:
    if not isinstance(raw, dict) or "id" not in raw:
        raise TemplateLibraryError(f"Note template entry is missing an id: {raw!r}")

    soap: dict[Section, str] = {}
    for key, text in (raw.get("soap") or {}).items():
        try:
            section = Section(str(key).upper())
        except ValueError as exc:
            raise TemplateLibraryError(
                f"Template {raw['id']!r} has unknown section {key!r}"
            ) from exc
        if section not in TEMPLATED_SECTIONS:
            raise TemplateLibraryError(
                f"Template {raw['id']!r} cannot fill section {section.value}"
            )
        soap[section] = str(text)

    return NoteTemplate(
        id=raw["id"],
        name=raw.get("name", raw["id"]),
        category=raw.get("category", ""),
        codes=tuple(normalize_code(c) for c in raw.get("codes", [])),
        aliases=tuple(raw.get("aliases", [])),
        soap=soap,
        post_op=raw.get("post_op", ""),
    )


# ── Hydration ────────────────────────────────────────────────────────


def hydrate_template(template: str, context: dict[str, str]) -> str:
    """Replace ``{{token}}`` placeholders; unknown tokens render empty."""
    return _TOKEN.sub(lambda m: context.get(m.group(1)) or "", template)


def tooth_list(procedure: ProcedureFact) -> str:
    """``#30, #31``, ``UR/UL quad``, ``upper arch`` or the generic area."""
    if procedure.teeth:
        return ", ".join(f"#{t}" for t in procedure.teeth)
    if procedure.quadrants:
        return "/".join(procedure.quadrants) + " quad"
    if procedure.arches:
        return " ".join(procedure.arches) + " arch"
    return UNSPECIFIED_AREA


def build_template_context(
    procedure: ProcedureFact,
    visit_type: VisitType,
    visit: VisitContext | None = None,
    defaults: dict[str, str] | None = None,
) -> dict[str, str]:
    context = dict(defaults or {})
    context.update(
        tooth_list=tooth_list(procedure),
        surfaces=procedure.surface_label,
        visit_type_label=VISIT_TYPE_LABELS.get(visit_type, visit_type.value),
    )
    if procedure.display_name:
        context["procedure_name"] = procedure.display_name
    if visit is not None and visit.chief_complaint.strip():
        context["chief_complaint"] = visit.chief_complaint.strip()
    return context


def procedure_header_label(procedure: ProcedureFact, context: dict[str, str]) -> str:
    label = procedure.display_name or "Procedure"
    area = context.get("tooth_list", "")
    if area and area != UNSPECIFIED_AREA:
        label = f"{label} {area}"
    return label


def apply_template(
    procedure: ProcedureFact,
    visit_type: VisitType | str,
    sections: list[DocumentSection],
    visit: VisitContext | None = None,
    *,
    library: TemplateLibrary,
    now: datetime | None = None,
) -> tuple[list[DocumentSection], str | None]:
    """Append the procedure's hydrated template into the note sections.

    Returns the updated sections and the id of the template used (None when
    no template matched, in which case ``sections`` are returned as-is).

    Raises:
        ValueError: If ``visit_type`` is not a known visit type.
    """
    effective_type = VisitType(visit_type)

    template = library.find(procedure)
    if template is None:
        return list(sections), None

    context = build_template_context(procedure, effective_type, visit, library.defaults)
    header = f"--- {procedure_header_label(procedure, context)} ---"
    stamp = (now or datetime.now(timezone.utc)).isoformat()

    updated: list[DocumentSection] = []
    for section in sections:
        try:
            section_type = Section(section.type.upper())
        except ValueError:
            updated.append(section)
            continue

        raw = template.soap.get(section_type, "")
        text = hydrate_template(raw, context).strip() if raw else ""
        if not text:
            updated.append(section)
            continue

        content = section.content or ""
        if not content.strip():
            content = text
        elif text in content:
            updated.append(section)
            continue
        else:
            content = f"{content}\n\n{header}\n{text}"

        updated.append(replace(section, content=content, last_edited_at=stamp))

    log.debug("Applied template %s for %s", template.id, procedure.code)
    return updated, template.id
