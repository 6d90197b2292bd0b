"""Requirement table backend protocol: the contract all backends implement."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chartguard.families.models import CodeFamily, RequirementTable


@runtime_checkable
class IRequirementsBackend(Protocol):
    """Protocol for requirement table storage backends (file, memory)."""

    def load_table(self) -> RequirementTable:
        """Return the full requirement table."""
        ...

    def get_family(self, family_id: str) -> CodeFamily:
        """Get a single family by ID. Raises KeyError if not found."""
        ...

    def get_version(self) -> int:
        """Return the table version number."""
        ...
