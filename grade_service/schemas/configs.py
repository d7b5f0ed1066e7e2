from decimal import Decimal

from pydantic import BaseModel, Field


class GradeConfigRequest(BaseModel):
    class_id: str = Field(..., min_length=1, max_length=36)
    subject_id: str = Field(..., min_length=1, max_length=36)
    semester: int = Field(..., ge=1, le=2)
    academic_year: str = Field(..., max_length=9)
    monthly_exam_count: int = Field(default=4, ge=1, le=6)
    monthly_weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    semester_exam_weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)


class GradeConfigOut(BaseModel):
    id: str | None
    teacher_id: str | None
    class_id: str
    subject_id: str
    semester: int
    academic_year: str
    monthly_exam_count: int
    monthly_weight: Decimal
    semester_exam_weight: Decimal
    source: str
    is_default: bool

    model_config = {"from_attributes": True}


class ExamScheduleItem(BaseModel):
    assessment_code: str = Field(..., min_length=1, max_length=30)
    title: str | None = Field(default=None, max_length=64)
    display_order: int = Field(..., ge=0, le=100)

    model_config = {"from_attributes": True}


class SemesterScheduleRequest(BaseModel):
    academic_year: str = Field(..., max_length=9)
    semester_exam_code: str = Field(..., min_length=1, max_length=30)
    exam_schedule: list[ExamScheduleItem] = Field(..., min_length=1, max_length=12)


class SemesterScheduleOut(BaseModel):
    id: str | None
    teacher_id: str | None
    academic_year: str
    semester_exam_code: str
    exam_schedule: list[ExamScheduleItem]
    monthly_exam_count: int
    source: str
    is_default: bool

    model_config = {"from_attributes": True}
