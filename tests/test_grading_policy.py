from decimal import Decimal

import pytest
from pydantic import ValidationError

from grade_service.core.config import Settings
from grade_service.core.errors import ErrorKind, GradeError
from grade_service.core.periods import PeriodKey, semester_exam_code, validate_academic_year
from grade_service.services.grading_policy import GradingPolicy, round_score

BANDS = {
    "A": Decimal("85"),
    "B": Decimal("70"),
    "C": Decimal("55"),
    "D": Decimal("40"),
    "E": Decimal("25"),
    "F": Decimal("0"),
}


def test_round_score_is_half_up():
    assert round_score(Decimal("84.995")) == Decimal("85.00")
    assert round_score(Decimal("84.994")) == Decimal("84.99")
    assert round_score(Decimal("2.5")) == Decimal("2.50")


def test_letter_bands():
    policy = GradingPolicy.from_mapping(BANDS, Decimal("40"))
    assert policy.letters == ["A", "B", "C", "D", "E", "F"]
    assert policy.letter_for(Decimal("85.00")) == "A"
    assert policy.letter_for(Decimal("84.99")) == "B"
    assert policy.letter_for(Decimal("40.00")) == "D"
    assert policy.letter_for(Decimal("0")) == "F"


def test_score_below_every_band_gets_lowest_letter():
    policy = GradingPolicy.from_mapping({"PASS": Decimal("50"), "LOW": Decimal("10")}, Decimal("50"))
    assert policy.letter_for(Decimal("3")) == "LOW"


def test_pass_threshold_is_inclusive():
    policy = GradingPolicy.from_mapping(BANDS, Decimal("40"))
    assert policy.has_passed(Decimal("40.00"))
    assert not policy.has_passed(Decimal("39.99"))


@pytest.mark.parametrize(
    "bands",
    [
        {},
        {"A": Decimal("50"), "B": Decimal("50")},
        {"A": Decimal("50"), "B": Decimal("-1")},
    ],
)
def test_invalid_bands_are_rejected(bands):
    with pytest.raises(GradeError) as exc_info:
        GradingPolicy.from_mapping(bands, Decimal("40"))
    assert exc_info.value.kind == ErrorKind.INVALID_CONFIG


@pytest.mark.parametrize("value", ["2024-2026", "2024/2025", "24-25", "", "2025-2024"])
def test_invalid_academic_year(value):
    with pytest.raises(GradeError) as exc_info:
        validate_academic_year(value)
    assert exc_info.value.kind == ErrorKind.INVALID_ACADEMIC_YEAR


def test_period_key_parse():
    key = PeriodKey.parse("2024-2025:1")
    assert key.academic_year == "2024-2025"
    assert key.semester == 1
    assert str(key) == "2024-2025:1"
    assert semester_exam_code(key.semester) == "SEMESTER_1"


@pytest.mark.parametrize("raw", ["2024-2025", "2024-2025:3", "2024-2026:1", "2024-2025:x"])
def test_period_key_rejects_malformed_values(raw):
    with pytest.raises(GradeError) as exc_info:
        PeriodKey.parse(raw)
    assert exc_info.value.kind == ErrorKind.INVALID_PERIOD


@pytest.mark.parametrize(
    "overrides",
    [
        {"letter_grade_bands": {}},
        {"letter_grade_bands": {"A": "50", "B": "50"}},
        {"letter_grade_bands": {"A": "50", "B": "-1"}},
        {"pass_threshold": "-5"},
    ],
)
def test_settings_reject_bad_grading_policy(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)
