"""Weighted semester grade calculation.

All arithmetic is done on ``Decimal`` values. The monthly average is rounded to two
places (half-up) before weighting; the weighted parts are summed unrounded and the
total is rounded once, so identical rows and config always give the identical score.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy.orm import Session

from grade_service.core.periods import SEMESTERS, semester_exam_code, validate_academic_year, validate_semester
from grade_service.models.assessment_type import AssessmentCategory
from grade_service.models.grade_entry import GradeEntry
from grade_service.services.config_resolver import ConfigResolver, ResolvedConfig
from grade_service.services.grade_store import CalculationScope, GradeStore
from grade_service.services.grading_policy import HUNDRED, GradingPolicy, round_score
from grade_service.services.reference import ReferenceData
from grade_service.services.schedule_resolver import ResolvedSchedule, ScheduleResolver

logger = logging.getLogger(__name__)


class WeightedScore(NamedTuple):
    monthly_average: Decimal | None
    weighted_monthly: Decimal
    weighted_semester: Decimal
    calculated_score: Decimal


def mean(values: Sequence[Decimal]) -> Decimal | None:
    if not values:
        return None
    return round_score(sum(values, Decimal("0")) / len(values))


def weighted_score(
    monthly_scores: Sequence[Decimal],
    semester_score: Decimal | None,
    monthly_weight: Decimal,
    semester_exam_weight: Decimal,
) -> WeightedScore:
    """Combine monthly scores and the semester exam score under the given weights.

    A missing component contributes nothing; it is never replaced by a zero score in
    the average itself.
    """
    monthly_average = mean(monthly_scores)
    weighted_monthly = monthly_average * monthly_weight / HUNDRED if monthly_average is not None else Decimal("0")
    weighted_semester = semester_score * semester_exam_weight / HUNDRED if semester_score is not None else Decimal("0")
    return WeightedScore(
        monthly_average=monthly_average,
        weighted_monthly=round_score(weighted_monthly),
        weighted_semester=round_score(weighted_semester),
        calculated_score=round_score(weighted_monthly + weighted_semester),
    )


@dataclass(frozen=True)
class GradeComponent:
    grade_id: str
    assessment_code: str
    assessment_name: str
    score: Decimal
    max_score: Decimal

    @classmethod
    def from_entry(cls, entry: GradeEntry) -> "GradeComponent":
        return cls(
            grade_id=entry.id,
            assessment_code=entry.assessment_code,
            assessment_name=entry.assessment_name,
            score=entry.score,
            max_score=entry.max_score,
        )


@dataclass(frozen=True)
class CalculationDetails:
    monthly_exams: tuple[GradeComponent, ...]
    semester_exam: GradeComponent | None
    monthly_weight: Decimal
    semester_weight: Decimal
    expected_monthly_count: int
    config_source: str
    formula: str
    complete: bool
    missing_components: tuple[str, ...]


@dataclass(frozen=True)
class CalculationResult:
    student_id: str
    class_id: str
    subject_id: str
    semester: int
    academic_year: str
    monthly_average: Decimal | None
    weighted_monthly: Decimal
    weighted_semester: Decimal
    calculated_score: Decimal
    letter_grade: str
    calculation_details: CalculationDetails
    counted_entries: int

    @property
    def has_scores(self) -> bool:
        return self.counted_entries > 0

    @property
    def semester_exam_score(self) -> Decimal | None:
        semester_exam = self.calculation_details.semester_exam
        return semester_exam.score if semester_exam else None


@dataclass(frozen=True)
class OverallResult:
    student_id: str
    class_id: str
    semester: int
    academic_year: str
    average_score: Decimal | None
    letter_grade: str | None
    subject_results: tuple[CalculationResult, ...]

    @property
    def subject_count(self) -> int:
        return len(self.subject_results)


@dataclass(frozen=True)
class AnnualResult:
    student_id: str
    class_id: str
    subject_id: str
    academic_year: str
    semester_scores: dict[int, Decimal | None]
    annual_score: Decimal | None
    letter_grade: str | None

    @property
    def complete(self) -> bool:
        return all(score is not None for score in self.semester_scores.values())


@dataclass(frozen=True)
class OverallAnnualResult:
    student_id: str
    class_id: str
    academic_year: str
    semester_averages: dict[int, Decimal | None]
    annual_average: Decimal | None
    letter_grade: str | None

    @property
    def complete(self) -> bool:
        return all(average is not None for average in self.semester_averages.values())


def annual_mean(semester_scores: dict[int, Decimal | None]) -> Decimal | None:
    present = [score for score in semester_scores.values() if score is not None]
    if not present:
        return None
    # A semester without any counted scores weighs in as zero; callers flag the result incomplete.
    return round_score(sum(present, Decimal("0")) / len(SEMESTERS))


def _format(value: Decimal | None) -> str:
    return "-" if value is None else str(value)


def build_result(
    scope: CalculationScope,
    entries: Iterable[GradeEntry],
    config: ResolvedConfig,
    schedule: ResolvedSchedule,
    policy: GradingPolicy,
) -> CalculationResult:
    """Compute one student's subject result from already-fetched grade rows."""
    entries = list(entries)
    counted_codes = schedule.monthly_codes[: config.monthly_exam_count]
    slot_index = {code: index for index, code in enumerate(counted_codes)}

    monthly_entries = sorted(
        (
            entry
            for entry in entries
            if entry.assessment_category == AssessmentCategory.MONTHLY_EXAM and entry.assessment_code in slot_index
        ),
        key=lambda entry: slot_index[entry.assessment_code],
    )
    semester_entries = sorted(
        (entry for entry in entries if entry.assessment_category == AssessmentCategory.SEMESTER_EXAM),
        key=lambda entry: (entry.assessment_code != schedule.semester_exam_code, entry.assessment_type.display_order),
    )
    semester_entry = semester_entries[0] if semester_entries else None

    score = weighted_score(
        [entry.score for entry in monthly_entries],
        semester_entry.score if semester_entry else None,
        config.monthly_weight,
        config.semester_exam_weight,
    )

    missing: list[str] = []
    present_codes = {entry.assessment_code for entry in monthly_entries}
    if not monthly_entries:
        missing.append("monthly_exams")
    else:
        missing.extend(f"monthly_exam:{code}" for code in counted_codes if code not in present_codes)
    if semester_entry is None:
        missing.append("semester_exam")

    formula = (
        f"({_format(score.monthly_average)} x {config.monthly_weight}%) + "
        f"({_format(semester_entry.score if semester_entry else None)} x {config.semester_exam_weight}%)"
    )
    details = CalculationDetails(
        monthly_exams=tuple(GradeComponent.from_entry(entry) for entry in monthly_entries),
        semester_exam=GradeComponent.from_entry(semester_entry) if semester_entry else None,
        monthly_weight=config.monthly_weight,
        semester_weight=config.semester_exam_weight,
        expected_monthly_count=len(counted_codes),
        config_source=config.source.value,
        formula=formula,
        complete=not missing,
        missing_components=tuple(missing),
    )
    return CalculationResult(
        student_id=scope.student_id,
        class_id=scope.class_id,
        subject_id=scope.subject_id,
        semester=scope.semester,
        academic_year=scope.academic_year,
        monthly_average=score.monthly_average,
        weighted_monthly=score.weighted_monthly,
        weighted_semester=score.weighted_semester,
        calculated_score=score.calculated_score,
        letter_grade=policy.letter_for(score.calculated_score),
        calculation_details=details,
        counted_entries=len(monthly_entries) + (semester_entry is not None),
    )


class CalculationEngine:
    def __init__(self, db: Session, policy: GradingPolicy | None = None) -> None:
        self.db = db
        self.policy = policy or GradingPolicy.from_settings()
        self.store = GradeStore(db)
        self.configs = ConfigResolver(db)
        self.schedules = ScheduleResolver(db)
        self.reference = ReferenceData(db)

    def calculate(
        self,
        student_id: str,
        class_id: str,
        subject_id: str,
        semester: int,
        academic_year: str,
        teacher_id: str | None = None,
    ) -> CalculationResult:
        self.reference.get_class(class_id)
        config = self.configs.resolve(teacher_id, class_id, subject_id, semester, academic_year)
        schedule = self.schedules.resolve(teacher_id, academic_year, semester_exam_code(semester))
        scope = CalculationScope(student_id, class_id, subject_id, semester, academic_year)
        result = build_result(scope, self.store.entries_for_scope(scope), config, schedule, self.policy)
        logger.debug("Calculated %s for %s: %s", result.calculated_score, scope, result.calculation_details.formula)
        return result

    def calculate_class_subject(
        self,
        class_id: str,
        subject_id: str,
        semester: int,
        academic_year: str,
        student_ids: Iterable[str],
        teacher_id: str | None = None,
    ) -> list[CalculationResult]:
        """Results for every listed student, fetching the class's rows in one query."""
        config = self.configs.resolve(teacher_id, class_id, subject_id, semester, academic_year)
        schedule = self.schedules.resolve(teacher_id, academic_year, semester_exam_code(semester))
        by_student: dict[str, list[GradeEntry]] = {}
        for entry in self.store.entries_for_class(class_id, semester, academic_year, subject_id=subject_id):
            by_student.setdefault(entry.student_id, []).append(entry)
        return [
            build_result(
                CalculationScope(student_id, class_id, subject_id, semester, academic_year),
                by_student.get(student_id, []),
                config,
                schedule,
                self.policy,
            )
            for student_id in student_ids
        ]

    def calculate_overall(
        self,
        student_id: str,
        class_id: str,
        semester: int,
        academic_year: str,
        teacher_id: str | None = None,
    ) -> OverallResult:
        validate_semester(semester)
        validate_academic_year(academic_year)
        self.reference.get_class(class_id)
        subject_ids = sorted(
            {
                entry.subject_id
                for entry in self.store.entries_for_student(student_id, semester, academic_year)
                if entry.class_id == class_id
            }
        )
        calculated = (
            self.calculate(student_id, class_id, subject_id, semester, academic_year, teacher_id)
            for subject_id in subject_ids
        )
        results = tuple(result for result in calculated if result.has_scores)
        average = mean([result.calculated_score for result in results])
        return OverallResult(
            student_id=student_id,
            class_id=class_id,
            semester=semester,
            academic_year=academic_year,
            average_score=average,
            letter_grade=self.policy.letter_for(average) if average is not None else None,
            subject_results=results,
        )

    def calculate_annual(
        self,
        student_id: str,
        class_id: str,
        subject_id: str,
        academic_year: str,
        teacher_id: str | None = None,
    ) -> AnnualResult:
        semester_scores: dict[int, Decimal | None] = {}
        for semester in SEMESTERS:
            result = self.calculate(student_id, class_id, subject_id, semester, academic_year, teacher_id)
            semester_scores[semester] = result.calculated_score if result.has_scores else None

        annual = annual_mean(semester_scores)
        return AnnualResult(
            student_id=student_id,
            class_id=class_id,
            subject_id=subject_id,
            academic_year=academic_year,
            semester_scores=semester_scores,
            annual_score=annual,
            letter_grade=self.policy.letter_for(annual) if annual is not None else None,
        )

    def calculate_annual_overall(
        self,
        student_id: str,
        class_id: str,
        academic_year: str,
        teacher_id: str | None = None,
    ) -> OverallAnnualResult:
        semester_averages = {
            semester: self.calculate_overall(student_id, class_id, semester, academic_year, teacher_id).average_score
            for semester in SEMESTERS
        }
        annual = annual_mean(semester_averages)
        logger.debug("Overall annual average for %s in %s: %s", student_id, academic_year, annual)
        return OverallAnnualResult(
            student_id=student_id,
            class_id=class_id,
            academic_year=academic_year,
            semester_averages=semester_averages,
            annual_average=annual,
            letter_grade=self.policy.letter_for(annual) if annual is not None else None,
        )
