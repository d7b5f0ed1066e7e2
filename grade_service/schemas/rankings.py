from decimal import Decimal

from pydantic import BaseModel


class StudentRankingOut(BaseModel):
    rank: int
    student_id: str
    average_score: Decimal
    letter_grade: str
    previous_average: Decimal | None
    previous_rank: int | None
    rank_change: int | None

    model_config = {"from_attributes": True}


class RankingSnapshotOut(BaseModel):
    class_id: str
    subject_id: str | None
    semester: int
    academic_year: str
    prior_period: str | None
    total_students: int
    rankings: list[StudentRankingOut]

    model_config = {"from_attributes": True}
