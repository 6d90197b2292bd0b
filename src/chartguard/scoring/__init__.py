"""Rule-based documentation completeness scoring.

Usage::

    from chartguard.scoring import create_scorer

    scorer = create_scorer(settings)
    result = scorer.score(visit, procedures, risks, sections)
    result.score, result.missing, result.warnings
"""

from __future__ import annotations

from chartguard.scoring.checks import PROCEDURE_CHECKS, VISIT_CHECKS, ScoringContext
from chartguard.scoring.engine import CompletenessScorer, create_scorer
from chartguard.scoring.presentation import UNCLASSIFIED, FamilyIssueGroup, group_by_family

__all__ = [
    "CompletenessScorer",
    "FamilyIssueGroup",
    "PROCEDURE_CHECKS",
    "ScoringContext",
    "UNCLASSIFIED",
    "VISIT_CHECKS",
    "create_scorer",
    "group_by_family",
]
