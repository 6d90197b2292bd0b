"""In-memory requirement table backend for tests and alternate rule sets."""

from __future__ import annotations

from typing import Any

from chartguard.families.backends.file_backend import parse_table
from chartguard.families.models import CodeFamily, RequirementTable, VisitRequirement


class MemoryRequirementsBackend:
    """Holds a requirement table built in code."""

    def __init__(
        self,
        families: list[CodeFamily] | None = None,
        visit_requirements: list[VisitRequirement] | None = None,
        *,
        version: int = 1,
        default_treatment_detail: str = "Procedure completed according to standard of care.",
    ) -> None:
        self._table = RequirementTable(
            version=version,
            families=tuple(families or []),
            visit_requirements=tuple(visit_requirements or []),
            default_treatment_detail=default_treatment_detail,
            source="memory",
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryRequirementsBackend:
        """Build a backend from the same structure the file backend reads."""
        table = parse_table(data, source="memory")
        return cls(
            list(table.families),
            list(table.visit_requirements),
            version=table.version,
            default_treatment_detail=table.default_treatment_detail,
        )

    def load_table(self) -> RequirementTable:
        return self._table

    def get_family(self, family_id: str) -> CodeFamily:
        """Get a family by ID."""
        for family in self._table.families:
            if family.id == family_id:
                return family
        raise KeyError(f"Code family {family_id!r} not found")

    def get_version(self) -> int:
        return self._table.version
