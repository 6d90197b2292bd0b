"""Code family classification over an injected requirement table.

A code may belong to several families; every matching family's
requirements apply.  Codes outside every family are "general" and impose
nothing.
"""

from __future__ import annotations

from chartguard.families.models import CodeFamily, Requirement, RequirementTable


def normalize_code(code: str | None) -> str:
    """Upper-case and strip a raw billing code."""
    return (code or "").strip().upper()


class CodeFamilyClassifier:
    """Maps billing codes to code family ids using a ``RequirementTable``."""

    def __init__(self, table: RequirementTable) -> None:
        self._table = table
        self._by_id = {f.id: f for f in table.families}

    @property
    def table(self) -> RequirementTable:
        return self._table

    def classify(self, code: str | None) -> frozenset[str]:
        """Return the ids of every family whose pattern matches ``code``."""
        return frozenset(f.id for f in self.families_for(code))

    def families_for(self, code: str | None) -> list[CodeFamily]:
        """Matching families in table order."""
        normalized = normalize_code(code)
        if not normalized:
            return []
        return [f for f in self._table.families if f.matches(normalized)]

    def get_family(self, family_id: str) -> CodeFamily:
        """Raises KeyError for unknown ids."""
        if family_id not in self._by_id:
            raise KeyError(
                f"Code family {family_id!r} not found. Available: {sorted(self._by_id)}"
            )
        return self._by_id[family_id]

    def requirements_for(self, code: str | None) -> list[Requirement]:
        """Union of the requirements of every family ``code`` belongs to.

        Requirements are deduplicated by :attr:`Requirement.key`; the first
        occurrence in table order wins unless a later duplicate is hard and
        the kept one is soft.
        """
        merged: dict[tuple[str, str], Requirement] = {}
        for family in self.families_for(code):
            for req in family.requirements:
                kept = merged.get(req.key)
                if kept is None or (req.is_hard and not kept.is_hard):
                    merged[req.key] = req
        return list(merged.values())

    def treatment_detail_for(self, code: str | None) -> str:
        """Boilerplate for the treatment-performed fact of ``code``."""
        for family in self.families_for(code):
            if family.treatment_detail:
                return family.treatment_detail
        return self._table.default_treatment_detail

    def any_in(self, codes: list[str], family_ids: tuple[str, ...] | list[str]) -> bool:
        """True if any of ``codes`` classifies into one of ``family_ids``."""
        wanted = set(family_ids)
        return any(self.classify(code) & wanted for code in codes)
