"""File-backed requirement table: loads code families from YAML or JSON on disk."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from chartguard.exceptions import RequirementTableError
from chartguard.families.models import (
    CodeFamily,
    Requirement,
    RequirementKind,
    RequirementSeverity,
    RequirementTable,
    VisitRequirement,
    VisitRequirementKind,
)

log = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parents[2] / "data" / "code_families.yaml"


class FileRequirementsBackend:
    """Loads a requirement table from a YAML or JSON file.

    The file is lazy-loaded on first access and cached for the lifetime of
    the backend.
    """

    def __init__(self, path: Path = DEFAULT_TABLE_PATH) -> None:
        self._path = Path(path)
        self._table: RequirementTable | None = None

    def load_table(self) -> RequirementTable:
        """Return the parsed table, reading the file on first call."""
        self._ensure_loaded()
        assert self._table is not None
        return self._table

    def get_family(self, family_id: str) -> CodeFamily:
        """Get a single family by ID."""
        for family in self.load_table().families:
            if family.id == family_id:
                return family
        raise KeyError(f"Code family {family_id!r} not found in {self._path}")

    def get_version(self) -> int:
        """Return the table version."""
        return self.load_table().version

    def _ensure_loaded(self) -> None:
        if self._table is not None:
            return

        if not self._path.exists():
            raise FileNotFoundError(f"Requirement table not found: {self._path}")

        raw_text = self._path.read_text(encoding="utf-8")
        try:
            if self._path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(raw_text)
            else:
                data = json.loads(raw_text)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise RequirementTableError(f"Cannot read {self._path}: {exc}") from exc

        self._table = parse_table(data, source=str(self._path))
        log.info(
            "Loaded %d code families from %s (version %d)",
            len(self._table.families),
            self._path,
            self._table.version,
        )


def parse_table(data: Any, *, source: str = "") -> RequirementTable:
    """Parse the raw mapping into a ``RequirementTable``.

    Raises:
        RequirementTableError: On unknown requirement kinds, invalid patterns,
            duplicate family ids, or a non-mapping document.
    """
    if not isinstance(data, dict):
        raise RequirementTableError(f"Requirement table {source or '<memory>'} must be a mapping")

    families: list[CodeFamily] = []
    seen: set[str] = set()
    for raw in data.get("families", []):
        family = _parse_family(raw)
        if family.id in seen:
            raise RequirementTableError(f"Duplicate code family id {family.id!r}")
        seen.add(family.id)
        families.append(family)

    visit_requirements = [_parse_visit_requirement(r) for r in data.get("visit_requirements", [])]
    for req in visit_requirements:
        unknown = [f for f in req.when_families if f not in seen]
        if unknown:
            raise RequirementTableError(
                f"Visit requirement {req.kind.value!r} references unknown families {unknown}"
            )

    kwargs: dict[str, Any] = {}
    if data.get("default_treatment_detail"):
        kwargs["default_treatment_detail"] = data["default_treatment_detail"]

    return RequirementTable(
        version=int(data.get("version", 1)),
        families=tuple(families),
        visit_requirements=tuple(visit_requirements),
        source=source,
        **kwargs,
    )


def _parse_family(raw: dict[str, Any]) -> CodeFamily:
    try:
        family_id = raw["id"]
        pattern_text = raw["code_pattern"]
    except (KeyError, TypeError) as exc:
        raise RequirementTableError(f"Code family entry is missing {exc}") from exc

    try:
        pattern = re.compile(pattern_text, re.IGNORECASE)
    except re.error as exc:
        raise RequirementTableError(
            f"Invalid code_pattern {pattern_text!r} for family {family_id!r}: {exc}"
        ) from exc

    return CodeFamily(
        id=family_id,
        label=raw.get("label", family_id),
        code_pattern=pattern,
        description=raw.get("description", ""),
        typical_codes=tuple(raw.get("typical_codes", [])),
        dx_required=bool(raw.get("dx_required", False)),
        risk_recommended=bool(raw.get("risk_recommended", False)),
        visit_dependencies=tuple(raw.get("visit_dependencies", [])),
        requirements=tuple(_parse_requirement(r, family_id) for r in raw.get("requirements", [])),
        treatment_detail=raw.get("treatment_detail", ""),
    )


def _parse_requirement(raw: dict[str, Any], family_id: str) -> Requirement:
    try:
        kind = RequirementKind(raw["kind"])
        severity = RequirementSeverity(raw.get("severity", "hard"))
    except (KeyError, ValueError) as exc:
        raise RequirementTableError(f"Bad requirement in family {family_id!r}: {exc}") from exc

    params = dict(raw.get("params", {}))
    if kind == RequirementKind.DOCUMENTATION_FLAG and not params.get("flag"):
        raise RequirementTableError(f"documentation_flag in {family_id!r} needs params.flag")
    if kind == RequirementKind.KEYWORD_HEURISTIC and not params.get("keywords"):
        raise RequirementTableError(f"keyword_heuristic in {family_id!r} needs params.keywords")

    return Requirement(
        kind=kind,
        message=raw.get("message", f"{{code}}: {kind.value} required."),
        severity=severity,
        params=params,
    )


def _parse_visit_requirement(raw: dict[str, Any]) -> VisitRequirement:
    try:
        kind = VisitRequirementKind(raw["kind"])
        severity = RequirementSeverity(raw.get("severity", "hard"))
    except (KeyError, ValueError) as exc:
        raise RequirementTableError(f"Bad visit requirement: {exc}") from exc

    return VisitRequirement(
        kind=kind,
        message=raw.get("message", f"{kind.value} is required."),
        severity=severity,
        when_families=tuple(raw.get("when_families", [])),
        params=dict(raw.get("params", {})),
    )
