"""Sign-off gate: may a note with this completeness score be signed?

Below the threshold a note can still be signed with a written override
reason.  Locking the note after signing is the caller's responsibility.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chartguard.models import SignOffDecision

if TYPE_CHECKING:
    from chartguard.core.config import AppSettings

log = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 90
DEFAULT_MIN_OVERRIDE_LENGTH = 10


class SignOffGate:
    """Threshold policy with an override escape hatch."""

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        min_override_length: int = DEFAULT_MIN_OVERRIDE_LENGTH,
    ) -> None:
        self.threshold = threshold
        self.min_override_length = min_override_length

    def can_sign(self, score: int, override_reason: str | None = None) -> SignOffDecision:
        if score >= self.threshold:
            return SignOffDecision(allowed=True)

        reason = (override_reason or "").strip()
        if len(reason) >= self.min_override_length:
            log.info("Sign-off below threshold (%d < %d) allowed by override", score, self.threshold)
            return SignOffDecision(
                allowed=True,
                requires_override=True,
                message=f"Signed with override at score {score}.",
            )

        return SignOffDecision(
            allowed=False,
            requires_override=True,
            message=(
                f"Score {score} is below the sign-off threshold of {self.threshold}. "
                f"Provide an override reason of at least {self.min_override_length} characters."
            ),
        )


def can_sign(score: int, override_reason: str | None = None) -> SignOffDecision:
    """Check against the default policy (threshold 90, 10-character override)."""
    return SignOffGate().can_sign(score, override_reason)


def create_sign_off_gate(settings: AppSettings) -> SignOffGate:
    return SignOffGate(
        threshold=settings.signoff.threshold,
        min_override_length=settings.signoff.min_override_length,
    )
