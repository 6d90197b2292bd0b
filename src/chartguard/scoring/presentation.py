"""Groups scorer messages by the code family of their leading procedure code."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from chartguard.families.classifier import CodeFamilyClassifier
from chartguard.models import CompletenessResult

UNCLASSIFIED = "UNCLASSIFIED"

_LEADING_CODE = re.compile(r"^(D\d{3,4})\b", re.IGNORECASE)


@dataclass
class FamilyIssueGroup:
    """Missing and warning messages attributed to one family."""

    family_id: str
    label: str
    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.missing and not self.warnings


def group_by_family(
    result: CompletenessResult,
    classifier: CodeFamilyClassifier,
) -> list[FamilyIssueGroup]:
    """Bucket each message under every family its leading code belongs to.

    Messages with no leading code (visit-level) or an unclassified code go
    to the ``UNCLASSIFIED`` group, which is always last.  Empty groups are
    dropped.
    """
    groups = {
        family.id: FamilyIssueGroup(family_id=family.id, label=family.label)
        for family in classifier.table.families
    }
    groups[UNCLASSIFIED] = FamilyIssueGroup(family_id=UNCLASSIFIED, label="Visit / Unclassified")

    def targets(message: str) -> list[str]:
        match = _LEADING_CODE.match(message)
        if match is None:
            return [UNCLASSIFIED]
        family_ids = [f.id for f in classifier.families_for(match.group(1))]
        return family_ids or [UNCLASSIFIED]

    for message in result.missing:
        for family_id in targets(message):
            groups[family_id].missing.append(message)
    for message in result.warnings:
        for family_id in targets(message):
            groups[family_id].warnings.append(message)

    return [g for g in groups.values() if not g.is_empty]
