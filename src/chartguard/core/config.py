"""Nested pydantic-settings configuration for the application.

Each sub-config reads its own ``CHARTGUARD_<GROUP>_*`` env vars::

    export CHARTGUARD_REQUIREMENTS_TABLE_PATH=/etc/chartguard/families.yaml
    export CHARTGUARD_SIGNOFF_THRESHOLD=85
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from chartguard.composer.templates import DEFAULT_TEMPLATES_PATH
from chartguard.families.backends.file_backend import DEFAULT_TABLE_PATH


class RequirementsConfig(BaseSettings):
    """Requirement table and note template sources.

    Env vars use ``CHARTGUARD_REQUIREMENTS_`` prefix.
    """

    model_config = {"env_prefix": "CHARTGUARD_REQUIREMENTS_"}

    backend: Literal["file", "memory"] = "file"
    table_path: Path = DEFAULT_TABLE_PATH
    templates_path: Path = DEFAULT_TEMPLATES_PATH


class SignOffConfig(BaseSettings):
    """Sign-off gate policy.

    Env vars use ``CHARTGUARD_SIGNOFF_`` prefix.
    """

    model_config = {"env_prefix": "CHARTGUARD_SIGNOFF_"}

    threshold: int = Field(default=90, ge=0, le=100)
    min_override_length: int = Field(default=10, ge=1)


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``CHARTGUARD_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "CHARTGUARD_OBSERVABILITY_"}

    log_level: str = "INFO"
    json_logs: bool | None = None


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs."""

    requirements: RequirementsConfig = RequirementsConfig()
    signoff: SignOffConfig = SignOffConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
