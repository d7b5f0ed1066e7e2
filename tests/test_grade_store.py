from decimal import Decimal

import pytest
from sqlalchemy import func, select

from grade_service.core.errors import ErrorKind, GradeError
from grade_service.models import GradeEntry
from grade_service.schemas.grades import (
    BulkGradeRequest,
    GradeCreateRequest,
    MonthlyGradesRequest,
    SemesterExamGradesRequest,
    StudentMonthlyScores,
    StudentScore,
)
from grade_service.services.grade_store import GradeStore
from tests.conftest import ACADEMIC_YEAR, OTHER_TEACHER_ID, TEACHER_ID


def _grade(refs, student_id="student-1", code="MONTHLY_1", score="75", **overrides) -> GradeCreateRequest:
    values = {
        "student_id": student_id,
        "class_id": refs.class_id,
        "subject_id": refs.subjects["MATH"],
        "assessment_type_id": refs.assessment_types[code],
        "score": Decimal(score),
        "semester": 1,
        "academic_year": ACADEMIC_YEAR,
    }
    values.update(overrides)
    return GradeCreateRequest(**values)


def _count(db) -> int:
    return db.scalar(select(func.count()).select_from(GradeEntry))


def test_create_grade_and_reject_duplicate(db, refs):
    store = GradeStore(db)
    entry = store.create_grade(TEACHER_ID, _grade(refs, score="75"))
    assert entry.score == Decimal("75")
    assert entry.assessment_code == "MONTHLY_1"

    with pytest.raises(GradeError) as exc_info:
        store.create_grade(TEACHER_ID, _grade(refs, score="99"))
    assert exc_info.value.kind == ErrorKind.DUPLICATE_GRADE

    db.expire_all()
    assert _count(db) == 1
    assert store.get_grade(TEACHER_ID, entry.id).score == Decimal("75")


def test_concurrent_duplicate_is_caught_by_unique_constraint(db, refs, monkeypatch):
    store = GradeStore(db)
    # Both writers pass the existence check before either has committed.
    monkeypatch.setattr(store, "find_by_natural_key", lambda *args: None)

    store.create_grade(TEACHER_ID, _grade(refs, score="60"))
    with pytest.raises(GradeError) as exc_info:
        store.create_grade(OTHER_TEACHER_ID, _grade(refs, score="70"))
    assert exc_info.value.kind == ErrorKind.DUPLICATE_GRADE

    rows = db.scalars(select(GradeEntry)).all()
    assert len(rows) == 1
    assert rows[0].score == Decimal("60")
    assert rows[0].teacher_id == TEACHER_ID


def test_score_out_of_range(db, refs):
    store = GradeStore(db)
    for score in ("-1", "100.01"):
        with pytest.raises(GradeError) as exc_info:
            store.create_grade(TEACHER_ID, _grade(refs, score=score))
        assert exc_info.value.kind == ErrorKind.SCORE_OUT_OF_RANGE
    assert _count(db) == 0


def test_invalid_academic_year_and_unknown_references(db, refs):
    store = GradeStore(db)
    with pytest.raises(GradeError) as exc_info:
        store.create_grade(TEACHER_ID, _grade(refs, academic_year="2024-2026"))
    assert exc_info.value.kind == ErrorKind.INVALID_ACADEMIC_YEAR

    with pytest.raises(GradeError) as exc_info:
        store.create_grade(TEACHER_ID, _grade(refs, subject_id="missing-subject"))
    assert exc_info.value.kind == ErrorKind.SUBJECT_NOT_FOUND

    with pytest.raises(GradeError) as exc_info:
        store.create_grade(TEACHER_ID, _grade(refs, class_id="missing-class"))
    assert exc_info.value.kind == ErrorKind.CLASS_NOT_FOUND


def test_bulk_grades_skip_existing_and_repeated_students(db, refs):
    store = GradeStore(db)
    store.create_grade(TEACHER_ID, _grade(refs, student_id="student-1", score="50"))

    payload = BulkGradeRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        assessment_type_id=refs.assessment_types["MONTHLY_1"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        grades=[
            StudentScore(student_id="student-1", score=Decimal("90")),
            StudentScore(student_id="student-2", score=Decimal("80")),
            StudentScore(student_id="student-2", score=Decimal("81")),
            StudentScore(student_id="student-3", score=Decimal("70")),
        ],
    )
    created = store.create_bulk_grades(TEACHER_ID, payload)

    assert sorted(entry.student_id for entry in created) == ["student-2", "student-3"]
    assert _count(db) == 3
    first = store.find_by_natural_key(
        "student-1", refs.class_id, refs.subjects["MATH"], refs.assessment_types["MONTHLY_1"], 1, ACADEMIC_YEAR
    )
    assert first.score == Decimal("50")


def test_monthly_grades_skip_null_scores_and_follow_schedule_order(db, refs):
    store = GradeStore(db)
    payload = MonthlyGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        student_grades=[StudentMonthlyScores(student_id="student-1", scores=[Decimal("70"), None, Decimal("90")])],
    )
    written = store.enter_monthly_grades(TEACHER_ID, payload)

    assert [entry.assessment_code for entry in written] == ["MONTHLY_1", "MONTHLY_3"]
    monthly = store.student_monthly_grades("student-1", refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert [entry.score for entry in monthly] == [Decimal("70"), Decimal("90")]


def test_monthly_grades_update_in_place(db, refs):
    store = GradeStore(db)
    payload = MonthlyGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        student_grades=[StudentMonthlyScores(student_id="student-1", scores=[Decimal("70")])],
    )
    store.enter_monthly_grades(TEACHER_ID, payload)
    payload.student_grades[0].scores = [Decimal("72")]
    store.enter_monthly_grades(TEACHER_ID, payload)

    assert _count(db) == 1
    monthly = store.student_monthly_grades("student-1", refs.subjects["MATH"], 1, ACADEMIC_YEAR)
    assert monthly[0].score == Decimal("72")


def test_monthly_grades_reject_more_scores_than_slots(db, refs):
    store = GradeStore(db)
    payload = MonthlyGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        student_grades=[StudentMonthlyScores(student_id="student-1", scores=[Decimal("70")] * 5)],
    )
    with pytest.raises(GradeError) as exc_info:
        store.enter_monthly_grades(TEACHER_ID, payload)
    assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR
    assert _count(db) == 0


def test_semester_exam_grades_use_semester_code(db, refs):
    store = GradeStore(db)
    payload = SemesterExamGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=2,
        academic_year=ACADEMIC_YEAR,
        grades=[StudentScore(student_id="student-1", score=Decimal("88"))],
    )
    written = store.enter_semester_exam_grades(TEACHER_ID, payload)
    assert written[0].assessment_code == "SEMESTER_2"

    with pytest.raises(GradeError) as exc_info:
        store.enter_semester_exam_grades(OTHER_TEACHER_ID, payload)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED_ACCESS


def test_update_and_delete_require_owner(db, refs):
    store = GradeStore(db)
    entry = store.create_grade(TEACHER_ID, _grade(refs, score="60"))

    with pytest.raises(GradeError) as exc_info:
        store.update_grade(OTHER_TEACHER_ID, entry.id, Decimal("99"), None)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED_ACCESS

    with pytest.raises(GradeError) as exc_info:
        store.delete_grade(OTHER_TEACHER_ID, entry.id)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED_ACCESS

    updated = store.update_grade(TEACHER_ID, entry.id, Decimal("65"), "retake")
    assert updated.score == Decimal("65")
    assert updated.comments == "retake"

    store.delete_grade(TEACHER_ID, entry.id)
    with pytest.raises(GradeError) as exc_info:
        store.get_grade(TEACHER_ID, entry.id)
    assert exc_info.value.kind == ErrorKind.GRADE_NOT_FOUND


def test_bulk_grades_keep_valid_rows_when_a_key_is_taken_concurrently(db, refs, monkeypatch):
    store = GradeStore(db)
    store.create_grade(OTHER_TEACHER_ID, _grade(refs, student_id="student-1", score="50"))
    # The other writer's row is invisible to the existence check.
    monkeypatch.setattr(store, "find_by_natural_key", lambda *args: None)

    payload = BulkGradeRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        assessment_type_id=refs.assessment_types["MONTHLY_1"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        grades=[
            StudentScore(student_id="student-1", score=Decimal("90")),
            StudentScore(student_id="student-2", score=Decimal("80")),
        ],
    )
    created = store.create_bulk_grades(TEACHER_ID, payload)

    assert [entry.student_id for entry in created] == ["student-2"]
    rows = {row.student_id: row for row in db.scalars(select(GradeEntry)).all()}
    assert set(rows) == {"student-1", "student-2"}
    assert rows["student-1"].score == Decimal("50")
    assert rows["student-1"].teacher_id == OTHER_TEACHER_ID
    assert rows["student-2"].score == Decimal("80")


def test_repeated_student_in_upsert_request_is_rejected(db, refs):
    store = GradeStore(db)
    exam = SemesterExamGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        grades=[
            StudentScore(student_id="student-1", score=Decimal("80")),
            StudentScore(student_id="student-1", score=Decimal("85")),
        ],
    )
    with pytest.raises(GradeError) as exc_info:
        store.enter_semester_exam_grades(TEACHER_ID, exam)
    assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR

    monthly = MonthlyGradesRequest(
        class_id=refs.class_id,
        subject_id=refs.subjects["MATH"],
        semester=1,
        academic_year=ACADEMIC_YEAR,
        student_grades=[
            StudentMonthlyScores(student_id="student-2", scores=[Decimal("70")]),
            StudentMonthlyScores(student_id="student-2", scores=[Decimal("75")]),
        ],
    )
    with pytest.raises(GradeError) as exc_info:
        store.enter_monthly_grades(TEACHER_ID, monthly)
    assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR
    assert _count(db) == 0
