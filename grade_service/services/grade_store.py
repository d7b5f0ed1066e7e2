import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grade_service.core.errors import (
    ErrorKind,
    GradeError,
    duplicate_grade,
    not_found,
    score_out_of_range,
    unauthorized,
)
from grade_service.core.periods import semester_exam_code, validate_academic_year, validate_semester
from grade_service.models.assessment_type import AssessmentCategory, AssessmentType
from grade_service.models.grade_entry import GradeEntry
from grade_service.schemas.grades import (
    BulkGradeRequest,
    GradeCreateRequest,
    MonthlyGradesRequest,
    SemesterExamGradesRequest,
)
from grade_service.services.config_resolver import ConfigResolver
from grade_service.services.reference import ReferenceData
from grade_service.services.schedule_resolver import ScheduleResolver

logger = logging.getLogger(__name__)


class CalculationScope(NamedTuple):
    student_id: str
    class_id: str
    subject_id: str
    semester: int
    academic_year: str


def validate_score(score: Decimal, assessment_type: AssessmentType) -> None:
    if score < 0:
        raise score_out_of_range(f"Score {score} is negative")
    if score > assessment_type.max_score:
        raise score_out_of_range(f"Score {score} exceeds maximum of {assessment_type.max_score}")


def reject_repeated_students(student_ids: Iterable[str]) -> None:
    seen: set[str] = set()
    for student_id in student_ids:
        if student_id in seen:
            raise GradeError(ErrorKind.VALIDATION_ERROR, f"Student {student_id} appears more than once in the request")
        seen.add(student_id)


class GradeStore:
    """Writes and reads of individual grade entries.

    Calculated results are never cached, so the next read after a write recomputes
    from the current rows.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.reference = ReferenceData(db)

    def create_grade(self, teacher_id: str, payload: GradeCreateRequest) -> GradeEntry:
        logger.info(
            "Creating grade for student %s subject %s by teacher %s", payload.student_id, payload.subject_id, teacher_id
        )
        self._validate_scope(payload.class_id, payload.subject_id, payload.semester, payload.academic_year)
        assessment_type = self.reference.get_assessment_type(payload.assessment_type_id)
        validate_score(payload.score, assessment_type)

        if self.find_by_natural_key(
            payload.student_id,
            payload.class_id,
            payload.subject_id,
            assessment_type.id,
            payload.semester,
            payload.academic_year,
        ):
            raise duplicate_grade()

        entry = GradeEntry(
            teacher_id=teacher_id,
            student_id=payload.student_id,
            class_id=payload.class_id,
            subject_id=payload.subject_id,
            assessment_type_id=assessment_type.id,
            score=payload.score,
            semester=payload.semester,
            academic_year=payload.academic_year,
            comments=payload.comments,
        )
        self.db.add(entry)
        self._commit_new()
        self.db.refresh(entry)
        logger.info("Created grade %s", entry.id)
        self._log_change(self._scope(entry))
        return entry

    def create_bulk_grades(self, teacher_id: str, payload: BulkGradeRequest) -> list[GradeEntry]:
        logger.info("Creating bulk grades for class %s subject %s", payload.class_id, payload.subject_id)
        self._validate_scope(payload.class_id, payload.subject_id, payload.semester, payload.academic_year)
        assessment_type = self.reference.get_assessment_type(payload.assessment_type_id)
        for item in payload.grades:
            validate_score(item.score, assessment_type)

        created: list[GradeEntry] = []
        seen: set[str] = set()
        for item in payload.grades:
            if item.student_id in seen or self.find_by_natural_key(
                item.student_id,
                payload.class_id,
                payload.subject_id,
                assessment_type.id,
                payload.semester,
                payload.academic_year,
            ):
                logger.warning("Skipping duplicate grade for student %s", item.student_id)
                continue
            seen.add(item.student_id)
            entry = GradeEntry(
                teacher_id=teacher_id,
                student_id=item.student_id,
                class_id=payload.class_id,
                subject_id=payload.subject_id,
                assessment_type_id=assessment_type.id,
                score=item.score,
                semester=payload.semester,
                academic_year=payload.academic_year,
                comments=item.comments,
            )
            try:
                with self.db.begin_nested():
                    self.db.add(entry)
            except IntegrityError:
                # Written by a concurrent request since the existence check.
                logger.warning("Skipping grade for student %s, already entered", item.student_id)
                continue
            created.append(entry)

        self.db.commit()
        self._refresh_and_log(created)
        logger.info("Created %s bulk grades", len(created))
        return created

    def enter_monthly_grades(self, teacher_id: str, payload: MonthlyGradesRequest) -> list[GradeEntry]:
        logger.info("Entering monthly grades for class %s subject %s", payload.class_id, payload.subject_id)
        self._validate_scope(payload.class_id, payload.subject_id, payload.semester, payload.academic_year)
        config = ConfigResolver(self.db).resolve(
            teacher_id, payload.class_id, payload.subject_id, payload.semester, payload.academic_year
        )
        schedule = ScheduleResolver(self.db).resolve(
            teacher_id, payload.academic_year, semester_exam_code(payload.semester)
        )
        slot_codes = schedule.monthly_codes[: config.monthly_exam_count]
        slot_types = [self.reference.get_assessment_type_by_code(code) for code in slot_codes]
        reject_repeated_students(student.student_id for student in payload.student_grades)

        for student in payload.student_grades:
            if len(student.scores) > len(slot_types):
                raise GradeError(
                    ErrorKind.VALIDATION_ERROR,
                    f"Got {len(student.scores)} monthly scores but only {len(slot_types)} monthly slots are configured",
                )
            for score, assessment_type in zip(student.scores, slot_types):
                if score is not None:
                    validate_score(score, assessment_type)

        written: list[GradeEntry] = []
        for student in payload.student_grades:
            for score, assessment_type in zip(student.scores, slot_types):
                if score is None:
                    continue
                written.append(
                    self._upsert_for_student(
                        teacher_id,
                        student.student_id,
                        payload.class_id,
                        payload.subject_id,
                        assessment_type,
                        payload.semester,
                        payload.academic_year,
                        score,
                        student.comments,
                    )
                )

        self._commit_new()
        self._refresh_and_log(written)
        logger.info("Entered %s monthly grades", len(written))
        return written

    def enter_semester_exam_grades(self, teacher_id: str, payload: SemesterExamGradesRequest) -> list[GradeEntry]:
        logger.info("Entering semester exam grades for class %s subject %s", payload.class_id, payload.subject_id)
        self._validate_scope(payload.class_id, payload.subject_id, payload.semester, payload.academic_year)
        assessment_type = self.reference.get_assessment_type_by_code(semester_exam_code(payload.semester))
        reject_repeated_students(item.student_id for item in payload.grades)
        for item in payload.grades:
            validate_score(item.score, assessment_type)

        written = [
            self._upsert_for_student(
                teacher_id,
                item.student_id,
                payload.class_id,
                payload.subject_id,
                assessment_type,
                payload.semester,
                payload.academic_year,
                item.score,
                item.comments,
            )
            for item in payload.grades
        ]
        self._commit_new()
        self._refresh_and_log(written)
        logger.info("Entered %s semester exam grades", len(written))
        return written

    def update_grade(self, teacher_id: str, grade_id: str, score: Decimal, comments: str | None) -> GradeEntry:
        logger.info("Updating grade %s by teacher %s", grade_id, teacher_id)
        entry = self._get_owned(teacher_id, grade_id)
        validate_score(score, entry.assessment_type)
        entry.score = score
        entry.comments = comments
        self.db.commit()
        self.db.refresh(entry)
        self._log_change(self._scope(entry))
        return entry

    def delete_grade(self, teacher_id: str, grade_id: str) -> None:
        logger.info("Deleting grade %s by teacher %s", grade_id, teacher_id)
        entry = self._get_owned(teacher_id, grade_id)
        scope = self._scope(entry)
        self.db.delete(entry)
        self.db.commit()
        self._log_change(scope)

    def get_grade(self, teacher_id: str, grade_id: str) -> GradeEntry:
        return self._get_owned(teacher_id, grade_id)

    def find_by_natural_key(
        self,
        student_id: str,
        class_id: str,
        subject_id: str,
        assessment_type_id: str,
        semester: int,
        academic_year: str,
    ) -> GradeEntry | None:
        stmt = select(GradeEntry).where(
            GradeEntry.student_id == student_id,
            GradeEntry.class_id == class_id,
            GradeEntry.subject_id == subject_id,
            GradeEntry.assessment_type_id == assessment_type_id,
            GradeEntry.semester == semester,
            GradeEntry.academic_year == academic_year,
        )
        return self.db.scalar(stmt)

    def entries_for_scope(self, scope: CalculationScope) -> list[GradeEntry]:
        stmt = select(GradeEntry).where(
            GradeEntry.student_id == scope.student_id,
            GradeEntry.class_id == scope.class_id,
            GradeEntry.subject_id == scope.subject_id,
            GradeEntry.semester == scope.semester,
            GradeEntry.academic_year == scope.academic_year,
        )
        return list(self.db.scalars(stmt).all())

    def entries_for_class(
        self, class_id: str, semester: int, academic_year: str, subject_id: str | None = None
    ) -> list[GradeEntry]:
        stmt = select(GradeEntry).where(
            GradeEntry.class_id == class_id,
            GradeEntry.semester == semester,
            GradeEntry.academic_year == academic_year,
        )
        if subject_id is not None:
            stmt = stmt.where(GradeEntry.subject_id == subject_id)
        stmt = stmt.order_by(GradeEntry.student_id, GradeEntry.created_at)
        return list(self.db.scalars(stmt).all())

    def entries_for_student(self, student_id: str, semester: int, academic_year: str) -> list[GradeEntry]:
        stmt = (
            select(GradeEntry)
            .where(
                GradeEntry.student_id == student_id,
                GradeEntry.semester == semester,
                GradeEntry.academic_year == academic_year,
            )
            .order_by(GradeEntry.subject_id, GradeEntry.created_at)
        )
        return list(self.db.scalars(stmt).all())

    def list_class_subject_grades(
        self, class_id: str, subject_id: str, semester: int, academic_year: str
    ) -> list[GradeEntry]:
        self._validate_scope(class_id, subject_id, semester, academic_year)
        return self.entries_for_class(class_id, semester, academic_year, subject_id=subject_id)

    def student_monthly_grades(
        self, student_id: str, subject_id: str, semester: int, academic_year: str
    ) -> list[GradeEntry]:
        validate_semester(semester)
        validate_academic_year(academic_year)
        self.reference.get_subject(subject_id)
        stmt = (
            select(GradeEntry)
            .join(GradeEntry.assessment_type)
            .where(
                GradeEntry.student_id == student_id,
                GradeEntry.subject_id == subject_id,
                GradeEntry.semester == semester,
                GradeEntry.academic_year == academic_year,
                AssessmentType.category == AssessmentCategory.MONTHLY_EXAM,
            )
            .order_by(AssessmentType.display_order)
        )
        return list(self.db.scalars(stmt).all())

    def _upsert_for_student(
        self,
        teacher_id: str,
        student_id: str,
        class_id: str,
        subject_id: str,
        assessment_type: AssessmentType,
        semester: int,
        academic_year: str,
        score: Decimal,
        comments: str | None,
    ) -> GradeEntry:
        entry = self.find_by_natural_key(student_id, class_id, subject_id, assessment_type.id, semester, academic_year)
        if entry is not None:
            if entry.teacher_id != teacher_id:
                raise unauthorized(f"Grade {entry.id} was entered by another teacher")
            entry.score = score
            entry.comments = comments
            return entry

        entry = GradeEntry(
            teacher_id=teacher_id,
            student_id=student_id,
            class_id=class_id,
            subject_id=subject_id,
            assessment_type_id=assessment_type.id,
            score=score,
            semester=semester,
            academic_year=academic_year,
            comments=comments,
        )
        self.db.add(entry)
        return entry

    def _get_owned(self, teacher_id: str, grade_id: str) -> GradeEntry:
        entry = self.db.get(GradeEntry, grade_id)
        if entry is None:
            raise not_found(ErrorKind.GRADE_NOT_FOUND, grade_id)
        if entry.teacher_id != teacher_id:
            raise unauthorized("Grade not found or not authorized")
        return entry

    def _validate_scope(self, class_id: str, subject_id: str, semester: int, academic_year: str) -> None:
        validate_semester(semester)
        validate_academic_year(academic_year)
        self.reference.get_class(class_id)
        self.reference.get_subject(subject_id)

    def _commit_new(self) -> None:
        # The unique constraint is the only guard against concurrent writers of one natural key.
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise duplicate_grade() from exc

    def _refresh_and_log(self, entries: list[GradeEntry]) -> None:
        for entry in entries:
            self.db.refresh(entry)
        for scope in dict.fromkeys(self._scope(entry) for entry in entries):
            self._log_change(scope)

    @staticmethod
    def _log_change(scope: CalculationScope) -> None:
        logger.debug("Calculation scope changed: %s", scope)

    @staticmethod
    def _scope(entry: GradeEntry) -> CalculationScope:
        return CalculationScope(entry.student_id, entry.class_id, entry.subject_id, entry.semester, entry.academic_year)
