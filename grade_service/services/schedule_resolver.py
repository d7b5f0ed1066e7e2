import logging
from dataclasses import dataclass, field
from functools import partial

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grade_service.core.errors import ErrorKind, GradeError, not_found
from grade_service.core.periods import validate_academic_year
from grade_service.models.assessment_type import AssessmentCategory
from grade_service.models.semester_schedule import SemesterSchedule
from grade_service.schemas.configs import SemesterScheduleRequest
from grade_service.services.config_resolver import ConfigSource, resolve_two_tier
from grade_service.services.reference import ReferenceData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleSlot:
    assessment_code: str
    title: str | None
    display_order: int


@dataclass(frozen=True)
class ResolvedSchedule:
    academic_year: str
    semester_exam_code: str
    exam_schedule: tuple[ScheduleSlot, ...]
    monthly_codes: tuple[str, ...]
    source: ConfigSource
    id: str | None = None
    teacher_id: str | None = None
    ignored_codes: tuple[str, ...] = field(default=())

    @property
    def monthly_exam_count(self) -> int:
        return len(self.monthly_codes)

    @property
    def is_default(self) -> bool:
        return self.source != ConfigSource.TEACHER


def order_slots(items: list[dict]) -> tuple[ScheduleSlot, ...]:
    slots = [
        ScheduleSlot(
            assessment_code=item["assessment_code"],
            title=item.get("title"),
            display_order=int(item.get("display_order") or 0),
        )
        for item in items
    ]
    return tuple(sorted(slots, key=lambda slot: (slot.display_order, slot.assessment_code)))


class ScheduleResolver:
    """Resolves which assessment codes are the monthly slots of a semester, in display order."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.reference = ReferenceData(db)

    def resolve(self, teacher_id: str | None, academic_year: str, semester_exam_code: str) -> ResolvedSchedule:
        validate_academic_year(academic_year)
        teacher_lookup = None
        if teacher_id is not None:
            teacher_lookup = partial(self._find, teacher_id, academic_year, semester_exam_code)
        row, source = resolve_two_tier(teacher_lookup, partial(self._find, None, academic_year, semester_exam_code))
        if row is not None:
            return self._to_resolved(row, source)
        return self._builtin(academic_year, semester_exam_code)

    def list_schedules(self, teacher_id: str | None, academic_year: str) -> list[ResolvedSchedule]:
        validate_academic_year(academic_year)
        codes = self.db.scalars(
            select(SemesterSchedule.semester_exam_code)
            .where(SemesterSchedule.academic_year == academic_year)
            .distinct()
            .order_by(SemesterSchedule.semester_exam_code)
        ).all()
        return [self.resolve(teacher_id, academic_year, code) for code in codes]

    def list_default_schedules(self, academic_year: str | None = None) -> list[ResolvedSchedule]:
        stmt = select(SemesterSchedule).where(SemesterSchedule.teacher_id.is_(None))
        if academic_year is not None:
            stmt = stmt.where(SemesterSchedule.academic_year == academic_year)
        stmt = stmt.order_by(SemesterSchedule.academic_year, SemesterSchedule.semester_exam_code)
        return [self._to_resolved(row, ConfigSource.DEFAULT) for row in self.db.scalars(stmt).all()]

    def available_academic_years(self) -> list[str]:
        stmt = select(SemesterSchedule.academic_year).distinct().order_by(SemesterSchedule.academic_year)
        return list(self.db.scalars(stmt).all())

    def save_teacher_schedule(self, teacher_id: str, payload: SemesterScheduleRequest) -> ResolvedSchedule:
        logger.info(
            "Saving schedule for teacher %s academic year %s code %s",
            teacher_id,
            payload.academic_year,
            payload.semester_exam_code,
        )
        return self._upsert(teacher_id, payload)

    def save_default_schedule(self, payload: SemesterScheduleRequest) -> ResolvedSchedule:
        logger.info("Saving default schedule for academic year %s code %s", payload.academic_year, payload.semester_exam_code)
        return self._upsert(None, payload)

    def delete_teacher_schedule(self, teacher_id: str, academic_year: str, semester_exam_code: str) -> None:
        row = self._find(teacher_id, academic_year, semester_exam_code)
        if row is None:
            raise not_found(ErrorKind.SCHEDULE_NOT_FOUND, f"{academic_year}/{semester_exam_code}")
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted schedule %s for teacher %s", row.id, teacher_id)

    def delete_default_schedule(self, academic_year: str, semester_exam_code: str) -> None:
        row = self._find(None, academic_year, semester_exam_code)
        if row is None:
            raise not_found(ErrorKind.SCHEDULE_NOT_FOUND, f"{academic_year}/{semester_exam_code}")
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted default schedule %s", row.id)

    def _find(self, teacher_id: str | None, academic_year: str, semester_exam_code: str) -> SemesterSchedule | None:
        teacher_clause = (
            SemesterSchedule.teacher_id.is_(None) if teacher_id is None else SemesterSchedule.teacher_id == teacher_id
        )
        stmt = select(SemesterSchedule).where(
            teacher_clause,
            SemesterSchedule.academic_year == academic_year,
            SemesterSchedule.semester_exam_code == semester_exam_code,
        )
        return self.db.scalar(stmt)

    def _to_resolved(self, row: SemesterSchedule, source: ConfigSource) -> ResolvedSchedule:
        slots = order_slots(row.exam_schedule or [])
        catalog = self.reference.assessment_types_by_code()
        monthly: list[str] = []
        ignored: list[str] = []
        for slot in slots:
            assessment_type = catalog.get(slot.assessment_code)
            if assessment_type is None:
                ignored.append(slot.assessment_code)
            elif assessment_type.category == AssessmentCategory.MONTHLY_EXAM:
                monthly.append(slot.assessment_code)
        if ignored:
            logger.warning("Schedule %s references unknown assessment codes %s", row.id, ignored)
        return ResolvedSchedule(
            academic_year=row.academic_year,
            semester_exam_code=row.semester_exam_code,
            exam_schedule=slots,
            monthly_codes=tuple(monthly),
            source=source,
            id=row.id,
            teacher_id=row.teacher_id,
            ignored_codes=tuple(ignored),
        )

    def _builtin(self, academic_year: str, semester_exam_code: str) -> ResolvedSchedule:
        monthly_types = self.reference.list_assessment_types(AssessmentCategory.MONTHLY_EXAM)
        slots = [
            ScheduleSlot(assessment_code=item.code, title=item.name, display_order=order)
            for order, item in enumerate(monthly_types, start=1)
        ]
        slots.append(ScheduleSlot(assessment_code=semester_exam_code, title=None, display_order=len(slots) + 1))
        return ResolvedSchedule(
            academic_year=academic_year,
            semester_exam_code=semester_exam_code,
            exam_schedule=tuple(slots),
            monthly_codes=tuple(item.code for item in monthly_types),
            source=ConfigSource.BUILTIN,
        )

    def _upsert(self, teacher_id: str | None, payload: SemesterScheduleRequest) -> ResolvedSchedule:
        validate_academic_year(payload.academic_year)
        semester_type = self.reference.get_assessment_type_by_code(payload.semester_exam_code)
        if semester_type.category != AssessmentCategory.SEMESTER_EXAM:
            raise GradeError(
                ErrorKind.VALIDATION_ERROR, f"{payload.semester_exam_code} is not a semester exam assessment type"
            )
        catalog = self.reference.assessment_types_by_code()
        unknown = [item.assessment_code for item in payload.exam_schedule if item.assessment_code not in catalog]
        if unknown:
            raise not_found(ErrorKind.ASSESSMENT_TYPE_NOT_FOUND, ", ".join(unknown))
        codes = [item.assessment_code for item in payload.exam_schedule]
        if len(set(codes)) != len(codes):
            raise GradeError(ErrorKind.VALIDATION_ERROR, "Exam schedule lists an assessment code twice")

        items = [item.model_dump() for item in payload.exam_schedule]
        key = (teacher_id, payload.academic_year, payload.semester_exam_code)
        row = self._find(*key)
        if row is None:
            row = SemesterSchedule(
                teacher_id=teacher_id,
                academic_year=payload.academic_year,
                semester_exam_code=payload.semester_exam_code,
            )
            self.db.add(row)
        row.exam_schedule = items
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            row = self._find(*key)
            if row is None:
                raise
            row.exam_schedule = items
            self.db.commit()
        self.db.refresh(row)
        logger.info("Saved schedule %s", row.id)
        return self._to_resolved(row, ConfigSource.DEFAULT if teacher_id is None else ConfigSource.TEACHER)
