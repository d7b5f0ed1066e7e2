from decimal import Decimal

import pytest

from grade_service.core.errors import ErrorKind, GradeError
from grade_service.schemas.configs import GradeConfigRequest
from grade_service.schemas.grades import GradeCreateRequest
from grade_service.services.calculation import CalculationEngine, weighted_score
from grade_service.services.config_resolver import ConfigResolver
from grade_service.services.grade_store import GradeStore
from tests.conftest import ACADEMIC_YEAR, TEACHER_ID


def _enter(db, refs, scores: dict[str, str], student_id="student-1", subject="MATH", semester=1):
    store = GradeStore(db)
    for code, score in scores.items():
        store.create_grade(
            TEACHER_ID,
            GradeCreateRequest(
                student_id=student_id,
                class_id=refs.class_id,
                subject_id=refs.subjects[subject],
                assessment_type_id=refs.assessment_types[code],
                score=Decimal(score),
                semester=semester,
                academic_year=ACADEMIC_YEAR,
            ),
        )


def test_weighted_score_scenario():
    score = weighted_score([Decimal("70"), Decimal("80"), Decimal("90")], Decimal("95"), Decimal("60"), Decimal("40"))
    assert score.monthly_average == Decimal("80.00")
    assert score.weighted_monthly == Decimal("48.00")
    assert score.weighted_semester == Decimal("38.00")
    assert score.calculated_score == Decimal("86.00")


def test_weighted_score_without_monthly_scores():
    score = weighted_score([], Decimal("80"), Decimal("50"), Decimal("50"))
    assert score.monthly_average is None
    assert score.weighted_monthly == Decimal("0.00")
    assert score.calculated_score == Decimal("40.00")


def test_monthly_average_is_rounded_before_weighting():
    # 200 / 3 = 66.666... -> 66.67; 66.67 * 0.5 = 33.335 -> total 33.34 (not 33.33)
    score = weighted_score([Decimal("66"), Decimal("67"), Decimal("67")], None, Decimal("50"), Decimal("50"))
    assert score.monthly_average == Decimal("66.67")
    assert score.calculated_score == Decimal("33.34")


def test_calculate_with_teacher_config(db, refs):
    ConfigResolver(db).save_config(
        TEACHER_ID,
        GradeConfigRequest(
            class_id=refs.class_id,
            subject_id=refs.subjects["MATH"],
            semester=1,
            academic_year=ACADEMIC_YEAR,
            monthly_exam_count=3,
            monthly_weight=Decimal("60"),
            semester_exam_weight=Decimal("40"),
        ),
    )
    _enter(db, refs, {"MONTHLY_1": "70", "MONTHLY_2": "80", "MONTHLY_3": "90", "SEMESTER_1": "95"})

    result = CalculationEngine(db).calculate(
        "student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR, teacher_id=TEACHER_ID
    )

    assert result.monthly_average == Decimal("80.00")
    assert result.weighted_monthly == Decimal("48.00")
    assert result.weighted_semester == Decimal("38.00")
    assert result.calculated_score == Decimal("86.00")
    assert result.letter_grade == "A"
    details = result.calculation_details
    assert details.config_source == "teacher"
    assert details.complete
    assert details.missing_components == ()
    assert [item.assessment_code for item in details.monthly_exams] == ["MONTHLY_1", "MONTHLY_2", "MONTHLY_3"]
    assert details.semester_exam.score == Decimal("95")


def test_monthly_entries_beyond_configured_count_are_ignored(db, refs):
    ConfigResolver(db).save_default_config(
        GradeConfigRequest(
            class_id=refs.class_id,
            subject_id=refs.subjects["MATH"],
            semester=1,
            academic_year=ACADEMIC_YEAR,
            monthly_exam_count=2,
            monthly_weight=Decimal("100"),
            semester_exam_weight=Decimal("0"),
        )
    )
    _enter(db, refs, {"MONTHLY_1": "60", "MONTHLY_2": "80", "MONTHLY_3": "10"})

    result = CalculationEngine(db).calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert result.monthly_average == Decimal("70.00")
    assert result.calculated_score == Decimal("70.00")
    assert result.calculation_details.expected_monthly_count == 2
    assert result.calculation_details.config_source == "default"


def test_missing_monthly_scores_are_not_zeroed(db, refs):
    _enter(db, refs, {"SEMESTER_1": "80"})

    result = CalculationEngine(db).calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)

    assert result.monthly_average is None
    assert result.calculated_score == Decimal("40.00")
    assert result.letter_grade == "D"
    assert not result.calculation_details.complete
    assert "monthly_exams" in result.calculation_details.missing_components
    assert result.calculation_details.config_source == "builtin"


def test_partially_entered_months_are_reported(db, refs):
    _enter(db, refs, {"MONTHLY_1": "70", "MONTHLY_3": "90"})

    result = CalculationEngine(db).calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)

    assert result.monthly_average == Decimal("80.00")
    assert result.calculation_details.missing_components == (
        "monthly_exam:MONTHLY_2",
        "monthly_exam:MONTHLY_4",
        "semester_exam",
    )


def test_calculate_is_idempotent(db, refs):
    _enter(db, refs, {"MONTHLY_1": "71.5", "MONTHLY_2": "64", "SEMESTER_1": "77.25"})
    engine = CalculationEngine(db)

    first = engine.calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    second = engine.calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert first == second


def test_student_without_entries_scores_zero(db, refs):
    result = CalculationEngine(db).calculate("student-4", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert not result.has_scores
    assert result.calculated_score == Decimal("0.00")
    assert result.calculation_details.missing_components == ("monthly_exams", "semester_exam")


def test_calculate_unknown_class(db, refs):
    with pytest.raises(GradeError) as exc_info:
        CalculationEngine(db).calculate("student-1", "missing-class", refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert exc_info.value.kind == ErrorKind.CLASS_NOT_FOUND


def test_overall_average_across_subjects(db, refs):
    _enter(db, refs, {"SEMESTER_1": "90"}, subject="MATH")
    _enter(db, refs, {"SEMESTER_1": "61"}, subject="KHM")

    overall = CalculationEngine(db).calculate_overall("student-1", refs.class_id, 1, ACADEMIC_YEAR)

    assert overall.subject_count == 2
    # (45.00 + 30.50) / 2
    assert overall.average_score == Decimal("37.75")
    assert overall.letter_grade == "E"


def test_annual_result_flags_missing_semester(db, refs):
    _enter(db, refs, {"SEMESTER_1": "80"}, semester=1)

    annual = CalculationEngine(db).calculate_annual("student-1", refs.class_id, refs.subjects["MATH"], ACADEMIC_YEAR)

    assert annual.semester_scores == {1: Decimal("40.00"), 2: None}
    assert annual.annual_score == Decimal("20.00")
    assert not annual.complete

    _enter(db, refs, {"SEMESTER_2": "60"}, semester=2)
    annual = CalculationEngine(db).calculate_annual("student-1", refs.class_id, refs.subjects["MATH"], ACADEMIC_YEAR)
    assert annual.annual_score == Decimal("35.00")
    assert annual.complete


def test_overall_annual_average_across_semesters(db, refs):
    _enter(db, refs, {"SEMESTER_1": "90"}, subject="MATH", semester=1)
    _enter(db, refs, {"SEMESTER_1": "61"}, subject="KHM", semester=1)
    engine = CalculationEngine(db)

    annual = engine.calculate_annual_overall("student-1", refs.class_id, ACADEMIC_YEAR)
    assert annual.semester_averages == {1: Decimal("37.75"), 2: None}
    # Missing second semester counts as zero: 37.75 / 2 = 18.875
    assert annual.annual_average == Decimal("18.88")
    assert annual.letter_grade == "F"
    assert not annual.complete

    _enter(db, refs, {"SEMESTER_2": "100"}, subject="MATH", semester=2)
    annual = engine.calculate_annual_overall("student-1", refs.class_id, ACADEMIC_YEAR)
    # (37.75 + 50.00) / 2 = 43.875
    assert annual.semester_averages[2] == Decimal("50.00")
    assert annual.annual_average == Decimal("43.88")
    assert annual.letter_grade == "D"
    assert annual.complete


def test_uncounted_monthly_entry_is_not_a_score(db, refs):
    ConfigResolver(db).save_default_config(
        GradeConfigRequest(
            class_id=refs.class_id,
            subject_id=refs.subjects["MATH"],
            semester=1,
            academic_year=ACADEMIC_YEAR,
            monthly_exam_count=2,
            monthly_weight=Decimal("50"),
            semester_exam_weight=Decimal("50"),
        )
    )
    _enter(db, refs, {"MONTHLY_4": "90"})
    engine = CalculationEngine(db)

    result = engine.calculate("student-1", refs.class_id, refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert not result.has_scores

    overall = engine.calculate_overall("student-1", refs.class_id, 1, ACADEMIC_YEAR)
    assert overall.subject_count == 0
    assert overall.average_score is None

    annual = engine.calculate_annual("student-1", refs.class_id, refs.subjects["MATH"], ACADEMIC_YEAR)
    assert annual.annual_score is None
