import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from grade_service.core.periods import PeriodKey, validate_academic_year, validate_semester
from grade_service.services.calculation import CalculationEngine
from grade_service.services.grading_policy import GradingPolicy
from grade_service.services.reference import ReferenceData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredStudent:
    student_id: str
    score: Decimal
    letter_grade: str


@dataclass(frozen=True)
class StudentRanking:
    rank: int
    student_id: str
    average_score: Decimal
    letter_grade: str
    previous_average: Decimal | None = None
    previous_rank: int | None = None
    rank_change: int | None = None


@dataclass(frozen=True)
class RankingSnapshot:
    class_id: str
    subject_id: str | None
    semester: int
    academic_year: str
    rankings: tuple[StudentRanking, ...]
    prior_period: str | None = None

    @property
    def total_students(self) -> int:
        return len(self.rankings)


def competition_rank(scored: Iterable[ScoredStudent]) -> list[StudentRanking]:
    """Standard competition ranking ("1224"): equal scores share a rank, the next
    distinct score takes its 1-based position. Ties are listed by student id."""
    ordered = sorted(scored, key=lambda item: (-item.score, item.student_id))
    rankings: list[StudentRanking] = []
    previous_score: Decimal | None = None
    rank = 0
    for position, item in enumerate(ordered, start=1):
        if previous_score is None or item.score != previous_score:
            rank = position
        rankings.append(
            StudentRanking(rank=rank, student_id=item.student_id, average_score=item.score, letter_grade=item.letter_grade)
        )
        previous_score = item.score
    return rankings


def join_prior(current: Sequence[StudentRanking], prior: Sequence[StudentRanking]) -> list[StudentRanking]:
    """Attach prior-period rank and average; ``rank_change`` is positive when a student moved up."""
    prior_by_student = {item.student_id: item for item in prior}
    joined: list[StudentRanking] = []
    for item in current:
        previous = prior_by_student.get(item.student_id)
        if previous is None:
            joined.append(item)
            continue
        joined.append(
            StudentRanking(
                rank=item.rank,
                student_id=item.student_id,
                average_score=item.average_score,
                letter_grade=item.letter_grade,
                previous_average=previous.average_score,
                previous_rank=previous.rank,
                rank_change=previous.rank - item.rank,
            )
        )
    return joined


class RankingEngine:
    """Ranks a class from currently stored grades; nothing is persisted."""

    def __init__(self, db: Session, policy: GradingPolicy | None = None) -> None:
        self.db = db
        self.reference = ReferenceData(db)
        self.calculator = CalculationEngine(db, policy=policy)

    def rank(
        self,
        class_id: str,
        subject_id: str,
        semester: int,
        academic_year: str,
        prior_period: PeriodKey | None = None,
        teacher_id: str | None = None,
    ) -> RankingSnapshot:
        logger.info("Ranking class %s subject %s semester %s %s", class_id, subject_id, semester, academic_year)
        current = self._subject_rankings(class_id, subject_id, semester, academic_year, teacher_id)
        prior = None
        if prior_period is not None:
            prior = self._subject_rankings(
                class_id, subject_id, prior_period.semester, prior_period.academic_year, teacher_id
            )
        return self._snapshot(class_id, subject_id, semester, academic_year, current, prior, prior_period)

    def rank_overall(
        self,
        class_id: str,
        semester: int,
        academic_year: str,
        prior_period: PeriodKey | None = None,
        teacher_id: str | None = None,
    ) -> RankingSnapshot:
        logger.info("Ranking class %s overall semester %s %s", class_id, semester, academic_year)
        current = self._overall_rankings(class_id, semester, academic_year, teacher_id)
        prior = None
        if prior_period is not None:
            prior = self._overall_rankings(class_id, prior_period.semester, prior_period.academic_year, teacher_id)
        return self._snapshot(class_id, None, semester, academic_year, current, prior, prior_period)

    def _subject_rankings(
        self, class_id: str, subject_id: str, semester: int, academic_year: str, teacher_id: str | None
    ) -> list[StudentRanking]:
        validate_semester(semester)
        validate_academic_year(academic_year)
        student_ids = self.reference.enrolled_student_ids(class_id)
        results = self.calculator.calculate_class_subject(
            class_id, subject_id, semester, academic_year, student_ids, teacher_id=teacher_id
        )
        return competition_rank(
            ScoredStudent(result.student_id, result.calculated_score, result.letter_grade)
            for result in results
            if result.has_scores
        )

    def _overall_rankings(
        self, class_id: str, semester: int, academic_year: str, teacher_id: str | None
    ) -> list[StudentRanking]:
        validate_semester(semester)
        validate_academic_year(academic_year)
        scored: list[ScoredStudent] = []
        for student_id in self.reference.enrolled_student_ids(class_id):
            overall = self.calculator.calculate_overall(student_id, class_id, semester, academic_year, teacher_id)
            if overall.average_score is not None:
                scored.append(ScoredStudent(student_id, overall.average_score, overall.letter_grade))
        return competition_rank(scored)

    @staticmethod
    def _snapshot(
        class_id: str,
        subject_id: str | None,
        semester: int,
        academic_year: str,
        current: list[StudentRanking],
        prior: list[StudentRanking] | None,
        prior_period: PeriodKey | None,
    ) -> RankingSnapshot:
        rankings = join_prior(current, prior) if prior is not None else current
        return RankingSnapshot(
            class_id=class_id,
            subject_id=subject_id,
            semester=semester,
            academic_year=academic_year,
            rankings=tuple(rankings),
            prior_period=str(prior_period) if prior_period else None,
        )
