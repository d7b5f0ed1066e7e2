from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class GradeCreateRequest(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=36)
    class_id: str = Field(..., min_length=1, max_length=36)
    subject_id: str = Field(..., min_length=1, max_length=36)
    assessment_type_id: str = Field(..., min_length=1, max_length=36)
    score: Decimal = Field(..., decimal_places=2)
    semester: int = Field(..., ge=1, le=2)
    academic_year: str = Field(..., max_length=9)
    comments: str | None = Field(default=None, max_length=500)


class GradeUpdateRequest(BaseModel):
    score: Decimal = Field(..., decimal_places=2)
    comments: str | None = Field(default=None, max_length=500)


class StudentScore(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=36)
    score: Decimal = Field(..., decimal_places=2)
    comments: str | None = Field(default=None, max_length=500)


class BulkGradeRequest(BaseModel):
    class_id: str = Field(..., min_length=1, max_length=36)
    subject_id: str = Field(..., min_length=1, max_length=36)
    assessment_type_id: str = Field(..., min_length=1, max_length=36)
    semester: int = Field(..., ge=1, le=2)
    academic_year: str = Field(..., max_length=9)
    grades: list[StudentScore] = Field(..., min_length=1, max_length=200)


class SemesterExamGradesRequest(BaseModel):
    class_id: str = Field(..., min_length=1, max_length=36)
    subject_id: str = Field(..., min_length=1, max_length=36)
    semester: int = Field(..., ge=1, le=2)
    academic_year: str = Field(..., max_length=9)
    grades: list[StudentScore] = Field(..., min_length=1, max_length=200)


class StudentMonthlyScores(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=36)
    # One score per monthly slot in schedule order; null means not entered.
    scores: list[Decimal | None] = Field(..., min_length=1, max_length=6)
    comments: str | None = Field(default=None, max_length=500)


class MonthlyGradesRequest(BaseModel):
    class_id: str = Field(..., min_length=1, max_length=36)
    subject_id: str = Field(..., min_length=1, max_length=36)
    semester: int = Field(..., ge=1, le=2)
    academic_year: str = Field(..., max_length=9)
    student_grades: list[StudentMonthlyScores] = Field(..., min_length=1, max_length=200)


class GradeOut(BaseModel):
    id: str
    teacher_id: str
    student_id: str
    class_id: str
    subject_id: str
    assessment_type_id: str
    assessment_code: str
    assessment_category: str
    score: Decimal
    max_score: Decimal
    semester: int
    academic_year: str
    comments: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
