"""Shared fixtures for chartguard tests."""

from __future__ import annotations

import pytest

from chartguard.families.backends.file_backend import FileRequirementsBackend
from chartguard.families.classifier import CodeFamilyClassifier
from chartguard.families.models import RequirementTable
from chartguard.models import (
    DocumentSection,
    ProcedureFact,
    RiskDisclosure,
    RiskSeverity,
    Section,
    VisitContext,
    VisitType,
)


@pytest.fixture(scope="session")
def default_table() -> RequirementTable:
    """The packaged code family table."""
    return FileRequirementsBackend().load_table()


@pytest.fixture
def classifier(default_table: RequirementTable) -> CodeFamilyClassifier:
    return CodeFamilyClassifier(default_table)


@pytest.fixture
def visit() -> VisitContext:
    """Fully documented restorative visit context."""
    return VisitContext(
        id="visit-1",
        chief_complaint="Sensitivity to cold on lower right",
        history_of_present_illness="Two weeks of sharp pain when drinking cold water",
        radiographic_narrative="BWX: distal caries #30 into dentin",
        visit_type=VisitType.RESTORATIVE,
    )


@pytest.fixture
def composite() -> ProcedureFact:
    """D2391 on tooth 30, occlusal, with a diagnosis."""
    return ProcedureFact(
        id="proc-1",
        code="D2391",
        display_name="Resin composite, one surface, posterior",
        teeth=("30",),
        surfaces=("O",),
        diagnosis_codes=("K02.9",),
    )


@pytest.fixture
def crown() -> ProcedureFact:
    """D2740 with diagnosis and pre-op x-ray flag."""
    return ProcedureFact(
        id="proc-2",
        code="D2740",
        display_name="Crown - porcelain/ceramic",
        teeth=("19",),
        diagnosis_codes=("K02.9",),
        documentation_flags={"has_xray": True},
    )


@pytest.fixture
def composite_risk() -> RiskDisclosure:
    """Active risk disclosed for D2391 only."""
    return RiskDisclosure(
        id="risk-1",
        title="Post-operative sensitivity",
        body="Temporary sensitivity to hot and cold is common after a filling.",
        severity=RiskSeverity.COMMON,
        sort_order=1,
        linked_codes=("D2391",),
    )


@pytest.fixture
def empty_sections() -> list[DocumentSection]:
    return [
        DocumentSection(id=f"s-{s.value.lower()}", type=s.value, title=s.value.title())
        for s in Section
    ]
