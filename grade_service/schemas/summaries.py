from decimal import Decimal

from pydantic import BaseModel

from grade_service.schemas.calculations import GradeComponentOut


class SubjectBreakdownOut(BaseModel):
    subject_id: str
    subject_name: str
    subject_code: str
    is_core: bool
    monthly_exams: list[GradeComponentOut]
    semester_exam: GradeComponentOut | None
    monthly_average: Decimal | None
    calculated_score: Decimal
    letter_grade: str
    complete: bool

    model_config = {"from_attributes": True}


class StudentSemesterSummaryOut(BaseModel):
    student_id: str
    class_id: str
    semester: int
    academic_year: str
    overall_average: Decimal | None
    letter_grade: str | None
    subjects: list[SubjectBreakdownOut]

    model_config = {"from_attributes": True}


class SubjectScoreOut(BaseModel):
    subject_id: str
    monthly_average: Decimal | None
    semester_exam_score: Decimal | None
    calculated_score: Decimal
    letter_grade: str

    model_config = {"from_attributes": True}


class StudentRowOut(BaseModel):
    student_id: str
    overall_average: Decimal
    letter_grade: str
    class_rank: int
    subject_scores: list[SubjectScoreOut]

    model_config = {"from_attributes": True}


class SubjectStatisticsOut(BaseModel):
    subject_id: str
    subject_name: str
    class_average: Decimal
    highest_score: Decimal
    lowest_score: Decimal
    pass_count: int
    fail_count: int
    pass_rate: Decimal

    model_config = {"from_attributes": True}


class ClassStatisticsOut(BaseModel):
    class_average: Decimal | None
    highest_average: Decimal | None
    lowest_average: Decimal | None
    letter_grade_counts: dict[str, int]
    pass_count: int
    fail_count: int
    overall_pass_rate: Decimal | None

    model_config = {"from_attributes": True}


class ClassSummaryOut(BaseModel):
    class_id: str
    semester: int
    academic_year: str
    total_students: int
    students: list[StudentRowOut]
    subject_statistics: list[SubjectStatisticsOut]
    class_statistics: ClassStatisticsOut

    model_config = {"from_attributes": True}
