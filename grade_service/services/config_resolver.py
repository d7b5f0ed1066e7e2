import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from functools import partial
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grade_service.core.config import Settings, get_settings
from grade_service.core.errors import ErrorKind, GradeError, invalid_config, not_found, unauthorized
from grade_service.core.periods import validate_academic_year, validate_semester
from grade_service.models.grade_config import GradeConfig
from grade_service.schemas.configs import GradeConfigRequest
from grade_service.services.reference import ReferenceData

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEIGHT_TOTAL = Decimal("100.00")


class ConfigSource(StrEnum):
    TEACHER = "teacher"
    DEFAULT = "default"
    BUILTIN = "builtin"


def resolve_two_tier(
    teacher_lookup: Callable[[], T | None] | None,
    default_lookup: Callable[[], T | None],
) -> tuple[T | None, ConfigSource]:
    """Teacher override first, then the institutional default.

    Returns ``(None, BUILTIN)`` when neither tier has a row; the caller supplies the
    built-in value. ``teacher_lookup`` is ``None`` when there is no caller teacher.
    """
    if teacher_lookup is not None:
        row = teacher_lookup()
        if row is not None:
            return row, ConfigSource.TEACHER
    row = default_lookup()
    if row is not None:
        return row, ConfigSource.DEFAULT
    return None, ConfigSource.BUILTIN


def validate_weights(monthly_weight: Decimal, semester_exam_weight: Decimal) -> None:
    if monthly_weight + semester_exam_weight != WEIGHT_TOTAL:
        raise invalid_config(
            f"Monthly and semester weights must sum to 100 (got {monthly_weight} + {semester_exam_weight})"
        )


@dataclass(frozen=True)
class ResolvedConfig:
    class_id: str
    subject_id: str
    semester: int
    academic_year: str
    monthly_exam_count: int
    monthly_weight: Decimal
    semester_exam_weight: Decimal
    source: ConfigSource
    id: str | None = None
    teacher_id: str | None = None

    @property
    def is_default(self) -> bool:
        return self.source != ConfigSource.TEACHER

    @classmethod
    def from_row(cls, row: GradeConfig, source: ConfigSource) -> "ResolvedConfig":
        return cls(
            class_id=row.class_id,
            subject_id=row.subject_id,
            semester=row.semester,
            academic_year=row.academic_year,
            monthly_exam_count=row.monthly_exam_count,
            monthly_weight=row.monthly_weight,
            semester_exam_weight=row.semester_exam_weight,
            source=source,
            id=row.id,
            teacher_id=row.teacher_id,
        )


class ConfigResolver:
    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.reference = ReferenceData(db)

    def resolve(
        self,
        teacher_id: str | None,
        class_id: str,
        subject_id: str,
        semester: int,
        academic_year: str,
    ) -> ResolvedConfig:
        validate_semester(semester)
        validate_academic_year(academic_year)
        self.reference.get_subject(subject_id)

        teacher_lookup = None
        if teacher_id is not None:
            teacher_lookup = partial(self._find, teacher_id, class_id, subject_id, semester, academic_year)
        row, source = resolve_two_tier(
            teacher_lookup,
            partial(self._find, None, class_id, subject_id, semester, academic_year),
        )
        if row is not None:
            return ResolvedConfig.from_row(row, source)

        logger.debug(
            "No grade config for class %s subject %s semester %s %s, using built-in default",
            class_id,
            subject_id,
            semester,
            academic_year,
        )
        return ResolvedConfig(
            class_id=class_id,
            subject_id=subject_id,
            semester=semester,
            academic_year=academic_year,
            monthly_exam_count=self.settings.default_monthly_exam_count,
            monthly_weight=self.settings.default_monthly_weight,
            semester_exam_weight=self.settings.default_semester_exam_weight,
            source=ConfigSource.BUILTIN,
        )

    def save_config(self, teacher_id: str, payload: GradeConfigRequest) -> ResolvedConfig:
        logger.info(
            "Saving grade config for teacher %s class %s subject %s", teacher_id, payload.class_id, payload.subject_id
        )
        return self._upsert(teacher_id, payload)

    def save_default_config(self, payload: GradeConfigRequest) -> ResolvedConfig:
        logger.info("Saving default grade config for class %s subject %s", payload.class_id, payload.subject_id)
        return self._upsert(None, payload)

    def list_class_configs(
        self, teacher_id: str, class_id: str, semester: int, academic_year: str
    ) -> list[ResolvedConfig]:
        stmt = (
            select(GradeConfig)
            .where(
                GradeConfig.teacher_id == teacher_id,
                GradeConfig.class_id == class_id,
                GradeConfig.semester == semester,
                GradeConfig.academic_year == academic_year,
            )
            .order_by(GradeConfig.subject_id)
        )
        return [ResolvedConfig.from_row(row, ConfigSource.TEACHER) for row in self.db.scalars(stmt).all()]

    def delete_config(self, teacher_id: str, config_id: str) -> None:
        row = self.db.get(GradeConfig, config_id)
        if row is None:
            raise not_found(ErrorKind.CONFIG_NOT_FOUND, config_id)
        if row.teacher_id != teacher_id:
            raise unauthorized("Config belongs to another teacher or is an institutional default")
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted grade config %s", config_id)

    def _find(
        self, teacher_id: str | None, class_id: str, subject_id: str, semester: int, academic_year: str
    ) -> GradeConfig | None:
        teacher_clause = GradeConfig.teacher_id.is_(None) if teacher_id is None else GradeConfig.teacher_id == teacher_id
        stmt = select(GradeConfig).where(
            teacher_clause,
            GradeConfig.class_id == class_id,
            GradeConfig.subject_id == subject_id,
            GradeConfig.semester == semester,
            GradeConfig.academic_year == academic_year,
        )
        return self.db.scalar(stmt)

    def _upsert(self, teacher_id: str | None, payload: GradeConfigRequest) -> ResolvedConfig:
        validate_semester(payload.semester)
        validate_academic_year(payload.academic_year)
        validate_weights(payload.monthly_weight, payload.semester_exam_weight)
        if not 1 <= payload.monthly_exam_count <= 6:
            raise GradeError(ErrorKind.VALIDATION_ERROR, "Monthly exam count must be between 1 and 6")
        self.reference.get_subject(payload.subject_id)

        key = (teacher_id, payload.class_id, payload.subject_id, payload.semester, payload.academic_year)
        row = self._find(*key)
        if row is None:
            row = GradeConfig(
                teacher_id=teacher_id,
                class_id=payload.class_id,
                subject_id=payload.subject_id,
                semester=payload.semester,
                academic_year=payload.academic_year,
            )
            self.db.add(row)
        self._apply(row, payload)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent writer inserted the same scope first; last writer wins.
            self.db.rollback()
            row = self._find(*key)
            if row is None:
                raise
            self._apply(row, payload)
            self.db.commit()
        self.db.refresh(row)
        logger.info("Saved grade config %s", row.id)
        source = ConfigSource.DEFAULT if teacher_id is None else ConfigSource.TEACHER
        return ResolvedConfig.from_row(row, source)

    @staticmethod
    def _apply(row: GradeConfig, payload: GradeConfigRequest) -> None:
        row.monthly_exam_count = payload.monthly_exam_count
        row.monthly_weight = payload.monthly_weight
        row.semester_exam_weight = payload.semester_exam_weight
