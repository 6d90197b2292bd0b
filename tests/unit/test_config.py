"""Tests for settings defaults, env var overrides, factories, and startup checks."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from chartguard.composer import create_template_library
from chartguard.composer.templates import DEFAULT_TEMPLATES_PATH
from chartguard.core.config import (
    AppSettings,
    ObservabilityConfig,
    RequirementsConfig,
    SignOffConfig,
)
from chartguard.core.startup_checks import validate_settings
from chartguard.families import create_classifier, create_requirements_backend
from chartguard.families.backends import FileRequirementsBackend, MemoryRequirementsBackend
from chartguard.families.backends.file_backend import DEFAULT_TABLE_PATH
from chartguard.logging_config import setup_logging, visit_log_context
from chartguard.scoring import create_scorer


class TestRequirementsConfig:
    def test_defaults(self) -> None:
        cfg = RequirementsConfig()
        assert cfg.backend == "file"
        assert cfg.table_path == DEFAULT_TABLE_PATH
        assert cfg.templates_path == DEFAULT_TEMPLATES_PATH

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("CHARTGUARD_REQUIREMENTS_BACKEND", "memory")
        monkeypatch.setenv("CHARTGUARD_REQUIREMENTS_TABLE_PATH", str(tmp_path / "t.yaml"))
        cfg = RequirementsConfig()
        assert cfg.backend == "memory"
        assert cfg.table_path == tmp_path / "t.yaml"

    def test_rejects_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            RequirementsConfig(backend="dynamodb")  # type: ignore[arg-type]


class TestSignOffConfig:
    def test_defaults(self) -> None:
        cfg = SignOffConfig()
        assert cfg.threshold == 90
        assert cfg.min_override_length == 10

    def test_threshold_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SignOffConfig(threshold=101)
        with pytest.raises(ValidationError):
            SignOffConfig(min_override_length=0)


class TestAppSettings:
    def test_aggregates_sub_configs(self) -> None:
        settings = AppSettings()
        assert isinstance(settings.requirements, RequirementsConfig)
        assert isinstance(settings.signoff, SignOffConfig)
        assert isinstance(settings.observability, ObservabilityConfig)
        assert settings.observability.log_level == "INFO"


class TestFactories:
    def test_file_backend(self) -> None:
        backend = create_requirements_backend(AppSettings())
        assert isinstance(backend, FileRequirementsBackend)

    def test_memory_backend(self) -> None:
        settings = AppSettings(requirements=RequirementsConfig(backend="memory"))
        backend = create_requirements_backend(settings)
        assert isinstance(backend, MemoryRequirementsBackend)
        assert create_classifier(settings).classify("D2740") == frozenset()

    def test_unknown_backend(self) -> None:
        settings = AppSettings()
        settings.requirements.backend = "sqlite"  # type: ignore[assignment]
        with pytest.raises(ValueError, match="sqlite"):
            create_requirements_backend(settings)

    def test_classifier_and_scorer(self) -> None:
        settings = AppSettings()
        assert create_classifier(settings).classify("D2740") == frozenset({"CROWN_INDIRECT"})
        assert create_scorer(settings).classifier.table.version == 3

    def test_template_library(self) -> None:
        library = create_template_library(AppSettings())
        assert library.get("ENDO_RCT").name == "Root Canal Therapy"


class TestStartupChecks:
    def test_defaults_pass(self) -> None:
        validate_settings(AppSettings())

    def test_missing_table_file(self, tmp_path: Path) -> None:
        settings = AppSettings(
            requirements=RequirementsConfig(table_path=tmp_path / "missing.yaml")
        )
        with pytest.raises(ValueError, match="CHARTGUARD_REQUIREMENTS_TABLE_PATH"):
            validate_settings(settings)

    def test_missing_templates_file(self, tmp_path: Path) -> None:
        settings = AppSettings(
            requirements=RequirementsConfig(templates_path=tmp_path / "missing.yaml")
        )
        with pytest.raises(ValueError, match="CHARTGUARD_REQUIREMENTS_TEMPLATES_PATH"):
            validate_settings(settings)

    def test_memory_backend_skips_file_checks(self, tmp_path: Path) -> None:
        settings = AppSettings(
            requirements=RequirementsConfig(backend="memory", table_path=tmp_path / "missing.yaml")
        )
        validate_settings(settings)

    def test_low_threshold_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = AppSettings(signoff=SignOffConfig(threshold=40))
        with caplog.at_level(logging.WARNING, logger="chartguard.core.startup_checks"):
            validate_settings(settings)
        assert "CHARTGUARD_SIGNOFF_THRESHOLD=40" in caplog.text


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        package_level = logging.getLogger("chartguard").level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("chartguard").setLevel(package_level)

    def test_setup_logging_sets_level(self) -> None:
        setup_logging(ObservabilityConfig(log_level="DEBUG", json_logs=True))
        assert logging.getLogger("chartguard").level == logging.DEBUG
        setup_logging(ObservabilityConfig(log_level="WARNING", json_logs=False))
        assert logging.getLogger().level == logging.WARNING

    def test_visit_context_reaches_stdlib_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(ObservabilityConfig(log_level="INFO", json_logs=True))
        log = logging.getLogger("chartguard.scoring.engine")

        with visit_log_context("visit-42"):
            log.info("scored")
        log.info("after")

        inside, outside = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
        assert inside["event"] == "scored"
        assert inside["visit_id"] == "visit-42"
        assert inside["logger"] == "chartguard.scoring.engine"
        assert "visit_id" not in outside
