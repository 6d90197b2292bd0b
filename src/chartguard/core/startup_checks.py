"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chartguard.core.config import AppSettings

log = logging.getLogger(__name__)

# Below this the gate lets almost any note through without an override
_LOW_THRESHOLD_WARNING = 50


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_reference_files(settings)
    _check_sign_off(settings)


def _check_reference_files(settings: AppSettings) -> None:
    """Reject a file backend pointing at files that do not exist."""
    if settings.requirements.backend != "file":
        return
    for label, path in (
        ("CHARTGUARD_REQUIREMENTS_TABLE_PATH", settings.requirements.table_path),
        ("CHARTGUARD_REQUIREMENTS_TEMPLATES_PATH", settings.requirements.templates_path),
    ):
        if not path.exists():
            raise ValueError(f"{label} points at a missing file: {path}")


def _check_sign_off(settings: AppSettings) -> None:
    """Warn when the sign-off threshold is low enough to be meaningless."""
    if settings.signoff.threshold < _LOW_THRESHOLD_WARNING:
        log.warning(
            "CHARTGUARD_SIGNOFF_THRESHOLD=%d: notes below half complete can be signed "
            "without an override.",
            settings.signoff.threshold,
        )
