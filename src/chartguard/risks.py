"""Consent risk helpers: ordering, bullet rendering, and wording checks."""

from __future__ import annotations

from chartguard.models import RiskDisclosure

# Wording that promises or predicts outcomes; not acceptable in consent text
BANNED_PHRASES: tuple[str, ...] = (
    "may fail",
    "failure rate",
    "likely to fail",
    "will need a root canal",
    "will need root canal",
    "will need extraction",
    "guaranteed",
    "ensure success",
    "success rate",
    "cure the condition",
)


def active_risks(risks: list[RiskDisclosure]) -> list[RiskDisclosure]:
    """Active (not soft-deleted) risks in display order."""
    return sorted((r for r in risks if r.is_active), key=lambda r: r.sort_order)


def risks_for_code(risks: list[RiskDisclosure], code: str) -> list[RiskDisclosure]:
    """Active risks whose linked-code snapshot contains ``code``."""
    return [r for r in active_risks(risks) if r.covers(code)]


def sort_by_severity(risks: list[RiskDisclosure]) -> list[RiskDisclosure]:
    """Most common first; ties keep display order."""
    return sorted(risks, key=lambda r: (r.severity.rank, r.sort_order))


def build_risk_bullets(risks: list[RiskDisclosure]) -> str:
    """Render risks as ``* body`` lines (title when the body is empty)."""
    return "\n".join(f"* {r.body or r.title}" for r in risks)


def is_risk_text_safe(text: str) -> bool:
    """False if the text contains any outcome-promising phrase."""
    lower = text.lower()
    return not any(phrase in lower for phrase in BANNED_PHRASES)
