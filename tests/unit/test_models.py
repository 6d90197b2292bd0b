"""Tests for domain model helpers."""

from __future__ import annotations

import pytest

from chartguard.models import (
    Assertion,
    AssertionSource,
    ProcedureFact,
    RiskDisclosure,
    Section,
    SignOffDecision,
    Slot,
    percent_complete,
)


class TestProcedureFact:
    def test_location_prefers_teeth(self) -> None:
        proc = ProcedureFact(id="p", code="D4341", teeth=("2", "3"), quadrants=("UR",))
        assert proc.location == "2,3"

    def test_location_falls_through(self) -> None:
        assert ProcedureFact(id="p", code="D4341", quadrants=("UR", "LR")).location == "UR,LR"
        assert ProcedureFact(id="p", code="D5110", arches=("upper",)).location == "upper"
        assert ProcedureFact(id="p", code="D1110").location == ""

    def test_name_and_surfaces(self) -> None:
        proc = ProcedureFact(id="p", code="D2392", surfaces=("M", "O"))
        assert proc.name == "D2392"
        assert proc.surface_label == "MO"
        assert proc.has_flag("has_xray") is False


class TestRiskDisclosure:
    def test_covers_requires_active(self) -> None:
        risk = RiskDisclosure(id="r", title="t", linked_codes=(" D2391 ",), is_active=False)
        assert not risk.covers("D2391")
        assert RiskDisclosure(id="r", title="t", linked_codes=(" D2391 ",)).covers("d2391")


class TestAssertionRender:
    def _make(self, **kwargs) -> Assertion:
        return Assertion(
            id="x", section=Section.PLAN, slot=Slot.PLAN, source=AssertionSource.EXAM, **kwargs
        )

    def test_sentence_wins(self) -> None:
        assert self._make(label="L", description="D", sentence="S.").render() == "S."

    def test_description_appended(self) -> None:
        assert self._make(label="L", description="D").render() == "L - D"

    def test_identical_description_dropped(self) -> None:
        assert self._make(label="L", description="L").render() == "L"


class TestPercentComplete:
    @pytest.mark.parametrize(
        ("met", "total", "expected"),
        [(0, 0, 100), (0, 3, 0), (1, 2, 50), (1, 8, 13), (5, 8, 63), (2, 3, 67), (7, 7, 100)],
    )
    def test_half_up(self, met: int, total: int, expected: int) -> None:
        assert percent_complete(met, total) == expected


def test_sign_off_decision_truthiness() -> None:
    assert SignOffDecision(allowed=True)
    assert not SignOffDecision(allowed=False, requires_override=True)
