"""chartguard: documentation completeness and assertion synthesis for dental visits.

Usage::

    from chartguard import (
        AppSettings,
        AssertionGenerator, CompletenessScorer, SignOffGate,
        create_classifier, create_scorer, create_sign_off_gate,
        compose, apply_template,
    )

    settings = AppSettings()
    classifier = create_classifier(settings)
    bundle = AssertionGenerator(classifier).generate(visit, procedures, risks)
    result = create_scorer(settings).score(visit, procedures, risks, sections)
    create_sign_off_gate(settings).can_sign(result.score, override_reason)
"""

from __future__ import annotations

from chartguard.assertions import (
    AssertionGenerator,
    add_manual_assertion,
    get_next_missing_slot,
    get_note_completeness,
    get_section_completeness,
    toggle_assertion,
)
from chartguard.composer import apply_template, compose
from chartguard.core.config import AppSettings
from chartguard.exceptions import (
    ChartGuardError,
    PayloadError,
    RequirementTableError,
    TemplateLibraryError,
)
from chartguard.families import CodeFamilyClassifier, create_classifier
from chartguard.models import (
    Assertion,
    AssertionBundle,
    AssertionSource,
    CompletenessResult,
    DocumentSection,
    ProcedureFact,
    RiskDisclosure,
    RiskSeverity,
    Section,
    SignOffDecision,
    Slot,
    SlotStatus,
    VisitContext,
    VisitType,
)
from chartguard.scoring import CompletenessScorer, create_scorer, group_by_family
from chartguard.signoff import SignOffGate, can_sign, create_sign_off_gate

__version__ = "0.3.0"

__all__ = [
    "AppSettings",
    "Assertion",
    "AssertionBundle",
    "AssertionGenerator",
    "AssertionSource",
    "ChartGuardError",
    "CodeFamilyClassifier",
    "CompletenessResult",
    "CompletenessScorer",
    "DocumentSection",
    "PayloadError",
    "ProcedureFact",
    "RequirementTableError",
    "RiskDisclosure",
    "RiskSeverity",
    "Section",
    "SignOffDecision",
    "SignOffGate",
    "Slot",
    "SlotStatus",
    "TemplateLibraryError",
    "VisitContext",
    "VisitType",
    "__version__",
    "add_manual_assertion",
    "apply_template",
    "can_sign",
    "compose",
    "create_classifier",
    "create_scorer",
    "create_sign_off_gate",
    "get_next_missing_slot",
    "get_note_completeness",
    "get_section_completeness",
    "group_by_family",
    "toggle_assertion",
]
