import logging
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from grade_service.core.errors import ErrorKind, not_found
from grade_service.core.periods import validate_academic_year, validate_semester
from grade_service.services.calculation import CalculationEngine, CalculationResult, GradeComponent, mean
from grade_service.services.grade_store import GradeStore
from grade_service.services.grading_policy import HUNDRED, GradingPolicy, round_score
from grade_service.services.ranking import ScoredStudent, competition_rank
from grade_service.services.reference import ReferenceData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectBreakdown:
    subject_id: str
    subject_name: str
    subject_code: str
    is_core: bool
    monthly_exams: tuple[GradeComponent, ...]
    semester_exam: GradeComponent | None
    monthly_average: Decimal | None
    calculated_score: Decimal
    letter_grade: str
    complete: bool


@dataclass(frozen=True)
class StudentSemesterSummary:
    student_id: str
    class_id: str
    semester: int
    academic_year: str
    overall_average: Decimal | None
    letter_grade: str | None
    subjects: tuple[SubjectBreakdown, ...]


@dataclass(frozen=True)
class SubjectScore:
    subject_id: str
    monthly_average: Decimal | None
    semester_exam_score: Decimal | None
    calculated_score: Decimal
    letter_grade: str


@dataclass(frozen=True)
class StudentRow:
    student_id: str
    overall_average: Decimal
    letter_grade: str
    class_rank: int
    subject_scores: tuple[SubjectScore, ...]


@dataclass(frozen=True)
class SubjectStatistics:
    subject_id: str
    subject_name: str
    class_average: Decimal
    highest_score: Decimal
    lowest_score: Decimal
    pass_count: int
    fail_count: int
    pass_rate: Decimal


@dataclass(frozen=True)
class ClassStatistics:
    class_average: Decimal | None
    highest_average: Decimal | None
    lowest_average: Decimal | None
    letter_grade_counts: dict[str, int]
    pass_count: int
    fail_count: int
    overall_pass_rate: Decimal | None


@dataclass(frozen=True)
class ClassSummary:
    class_id: str
    semester: int
    academic_year: str
    students: tuple[StudentRow, ...]
    subject_statistics: tuple[SubjectStatistics, ...]
    class_statistics: ClassStatistics

    @property
    def total_students(self) -> int:
        return len(self.students)


def pass_rate(passed: int, total: int) -> Decimal | None:
    if total == 0:
        return None
    return round_score(Decimal(passed) * HUNDRED / Decimal(total))


def subject_statistics(
    subject_id: str, subject_name: str, scores: list[Decimal], policy: GradingPolicy
) -> SubjectStatistics:
    passed = sum(1 for score in scores if policy.has_passed(score))
    return SubjectStatistics(
        subject_id=subject_id,
        subject_name=subject_name,
        class_average=mean(scores),
        highest_score=max(scores),
        lowest_score=min(scores),
        pass_count=passed,
        fail_count=len(scores) - passed,
        pass_rate=pass_rate(passed, len(scores)),
    )


def class_statistics(averages: list[Decimal], policy: GradingPolicy) -> ClassStatistics:
    letters = Counter(policy.letter_for(average) for average in averages)
    passed = sum(1 for average in averages if policy.has_passed(average))
    return ClassStatistics(
        class_average=mean(averages),
        highest_average=max(averages) if averages else None,
        lowest_average=min(averages) if averages else None,
        letter_grade_counts={letter: letters.get(letter, 0) for letter in policy.letters},
        pass_count=passed,
        fail_count=len(averages) - passed,
        overall_pass_rate=pass_rate(passed, len(averages)),
    )


class SummaryAssembler:
    def __init__(self, db: Session, policy: GradingPolicy | None = None) -> None:
        self.db = db
        self.policy = policy or GradingPolicy.from_settings()
        self.reference = ReferenceData(db)
        self.store = GradeStore(db)
        self.calculator = CalculationEngine(db, policy=self.policy)

    def student_semester_summary(
        self, student_id: str, semester: int, academic_year: str, teacher_id: str | None = None
    ) -> StudentSemesterSummary:
        validate_semester(semester)
        validate_academic_year(academic_year)
        entries = self.store.entries_for_student(student_id, semester, academic_year)
        if not entries:
            raise not_found(ErrorKind.GRADE_NOT_FOUND, f"student {student_id} semester {semester} {academic_year}")

        class_id = entries[0].class_id
        overall = self.calculator.calculate_overall(student_id, class_id, semester, academic_year, teacher_id)
        subjects = sorted(
            (self._breakdown(result) for result in overall.subject_results),
            key=lambda item: (item.subject_code,),
        )
        return StudentSemesterSummary(
            student_id=student_id,
            class_id=class_id,
            semester=semester,
            academic_year=academic_year,
            overall_average=overall.average_score,
            letter_grade=overall.letter_grade,
            subjects=tuple(subjects),
        )

    def class_summary(
        self, class_id: str, semester: int, academic_year: str, teacher_id: str | None = None
    ) -> ClassSummary:
        validate_semester(semester)
        validate_academic_year(academic_year)
        student_ids = self.reference.enrolled_student_ids(class_id)
        subject_ids = sorted({entry.subject_id for entry in self.store.entries_for_class(class_id, semester, academic_year)})

        results_by_student: dict[str, list[CalculationResult]] = {student_id: [] for student_id in student_ids}
        subject_stats: list[SubjectStatistics] = []
        for subject_id in subject_ids:
            subject = self.reference.get_subject(subject_id)
            results = [
                result
                for result in self.calculator.calculate_class_subject(
                    class_id, subject_id, semester, academic_year, student_ids, teacher_id=teacher_id
                )
                if result.has_scores
            ]
            for result in results:
                results_by_student[result.student_id].append(result)
            if results:
                subject_stats.append(
                    subject_statistics(
                        subject_id, subject.name, [result.calculated_score for result in results], self.policy
                    )
                )

        averages: dict[str, Decimal] = {}
        for student_id, results in results_by_student.items():
            average = mean([result.calculated_score for result in results])
            if average is not None:
                averages[student_id] = average

        ranks = {
            item.student_id: item.rank
            for item in competition_rank(
                ScoredStudent(student_id, average, self.policy.letter_for(average))
                for student_id, average in averages.items()
            )
        }
        rows = [
            StudentRow(
                student_id=student_id,
                overall_average=average,
                letter_grade=self.policy.letter_for(average),
                class_rank=ranks[student_id],
                subject_scores=tuple(
                    SubjectScore(
                        subject_id=result.subject_id,
                        monthly_average=result.monthly_average,
                        semester_exam_score=result.semester_exam_score,
                        calculated_score=result.calculated_score,
                        letter_grade=result.letter_grade,
                    )
                    for result in results_by_student[student_id]
                ),
            )
            for student_id, average in averages.items()
        ]
        rows.sort(key=lambda row: (row.class_rank, row.student_id))
        logger.info("Assembled class summary for %s with %s students", class_id, len(rows))

        return ClassSummary(
            class_id=class_id,
            semester=semester,
            academic_year=academic_year,
            students=tuple(rows),
            subject_statistics=tuple(subject_stats),
            class_statistics=class_statistics(list(averages.values()), self.policy),
        )

    def _breakdown(self, result: CalculationResult) -> SubjectBreakdown:
        subject = self.reference.get_subject(result.subject_id)
        details = result.calculation_details
        return SubjectBreakdown(
            subject_id=subject.id,
            subject_name=subject.name,
            subject_code=subject.code,
            is_core=subject.is_core,
            monthly_exams=details.monthly_exams,
            semester_exam=details.semester_exam,
            monthly_average=result.monthly_average,
            calculated_score=result.calculated_score,
            letter_grade=result.letter_grade,
            complete=details.complete,
        )
