"""Completeness scorer: walks visit-level and per-procedure family requirements.

Scoring is pure computation over the raw visit inputs; it does not consume
an assertion bundle.  Hard requirements feed the score and ``missing``;
soft requirements only add ``warnings``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chartguard.families.classifier import CodeFamilyClassifier
from chartguard.models import (
    CompletenessResult,
    DocumentSection,
    ProcedureFact,
    RiskDisclosure,
    VisitContext,
    percent_complete,
)
from chartguard.risks import active_risks, is_risk_text_safe
from chartguard.scoring.checks import PROCEDURE_CHECKS, VISIT_CHECKS, ScoringContext

if TYPE_CHECKING:
    from chartguard.core.config import AppSettings
    from chartguard.families.models import Requirement, RequirementTable, VisitRequirement

log = logging.getLogger(__name__)


@dataclass
class _Tally:
    total: int = 0
    met: int = 0
    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def record(self, satisfied: bool, message: str, *, hard: bool) -> None:
        if hard:
            self.total += 1
            if satisfied:
                self.met += 1
            else:
                self.missing.append(message)
        elif not satisfied:
            self.warnings.append(message)

    def result(self) -> CompletenessResult:
        return CompletenessResult(
            score=percent_complete(self.met, self.total),
            missing=self.missing,
            warnings=self.warnings,
        )


class CompletenessScorer:
    """Scores a visit against an injected requirement table.

    Each requirement check runs independently; a check that raises is
    logged and counted as not met so one bad rule never blocks the rest.
    """

    def __init__(self, table: RequirementTable) -> None:
        self._classifier = CodeFamilyClassifier(table)

    @property
    def classifier(self) -> CodeFamilyClassifier:
        return self._classifier

    def score(
        self,
        visit: VisitContext,
        procedures: list[ProcedureFact],
        risks: list[RiskDisclosure],
        sections: list[DocumentSection] | None = None,
    ) -> CompletenessResult:
        """Return the completeness score with missing and warning messages.

        Args:
            visit: Free-text visit context.
            procedures: Procedures performed on the visit.
            risks: Risks disclosed on the visit (inactive ones are ignored).
            sections: Current note sections, consulted by the
                "no procedures performed" note and keyword heuristics.
        """
        ctx = ScoringContext(
            visit=visit,
            procedures=tuple(procedures),
            risks=tuple(risks),
            sections=tuple(sections or ()),
        )
        tally = _Tally()

        codes = [p.code for p in procedures]
        # An untouched visit has nothing to score yet and is vacuously complete
        visit_requirements = () if ctx.is_blank else self._classifier.table.visit_requirements
        for req in visit_requirements:
            if req.when_families and not self._classifier.any_in(codes, req.when_families):
                continue
            tally.record(self._run_visit_check(ctx, req), req.message, hard=req.is_hard)

        for proc in procedures:
            for req in self._classifier.requirements_for(proc.code):
                tally.record(
                    self._run_procedure_check(ctx, proc, req),
                    req.format_message(proc.code),
                    hard=req.is_hard,
                )

        for risk in active_risks(risks):
            if not is_risk_text_safe(f"{risk.title} {risk.body}"):
                tally.record(False, f"Risk '{risk.title}' wording promises an outcome.", hard=False)

        result = tally.result()
        log.debug(
            "Visit %s scored %d (%d/%d met, %d warnings)",
            visit.id,
            result.score,
            tally.met,
            tally.total,
            len(result.warnings),
        )
        return result

    # ── Check dispatch ──────────────────────────────────────────────

    @staticmethod
    def _run_visit_check(ctx: ScoringContext, req: VisitRequirement) -> bool:
        check = VISIT_CHECKS.get(req.kind)
        if check is None:
            return False
        try:
            return check(ctx, req)
        except Exception:
            log.exception("Visit check %s failed", req.kind.value)
            return False

    @staticmethod
    def _run_procedure_check(ctx: ScoringContext, proc: ProcedureFact, req: Requirement) -> bool:
        check = PROCEDURE_CHECKS.get(req.kind)
        if check is None:
            return False
        try:
            return check(ctx, proc, req)
        except Exception:
            log.exception("Check %s failed for %s", req.kind.value, proc.code)
            return False


def create_scorer(settings: AppSettings) -> CompletenessScorer:
    """Create a scorer over the configured requirement table."""
    from chartguard.families import create_requirements_backend

    return CompletenessScorer(create_requirements_backend(settings).load_table())
