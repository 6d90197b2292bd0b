"""Code families: requirement table models, backends, and the classifier.

Factory functions::

    from chartguard.families import create_classifier
    classifier = create_classifier(settings)
    classifier.classify("D2740")   # frozenset({"CROWN_INDIRECT"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chartguard.families.classifier import CodeFamilyClassifier, normalize_code
from chartguard.families.models import (
    CodeFamily,
    Requirement,
    RequirementKind,
    RequirementSeverity,
    RequirementTable,
    VisitRequirement,
    VisitRequirementKind,
)

if TYPE_CHECKING:
    from chartguard.core.config import AppSettings
    from chartguard.families.backends.protocol import IRequirementsBackend


def create_requirements_backend(settings: AppSettings) -> IRequirementsBackend:
    """Build the requirement table backend named in settings."""
    backend_type = settings.requirements.backend

    if backend_type == "file":
        from chartguard.families.backends.file_backend import FileRequirementsBackend

        return FileRequirementsBackend(settings.requirements.table_path)

    if backend_type == "memory":
        from chartguard.families.backends.memory_backend import MemoryRequirementsBackend

        return MemoryRequirementsBackend()

    raise ValueError(f"Unknown requirements backend: {backend_type!r}")


def create_classifier(settings: AppSettings) -> CodeFamilyClassifier:
    """Create a classifier over the configured requirement table."""
    return CodeFamilyClassifier(create_requirements_backend(settings).load_table())


__all__ = [
    "CodeFamily",
    "CodeFamilyClassifier",
    "Requirement",
    "RequirementKind",
    "RequirementSeverity",
    "RequirementTable",
    "VisitRequirement",
    "VisitRequirementKind",
    "create_classifier",
    "create_requirements_backend",
    "normalize_code",
]
