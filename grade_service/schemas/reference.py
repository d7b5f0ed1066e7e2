from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class SubjectOut(BaseModel):
    id: str
    name: str
    name_localized: str
    code: str
    is_core: bool
    display_order: int

    model_config = {"from_attributes": True}


class ClassCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=32)
    grade_level: int = Field(..., ge=1, le=12)


class ClassOut(BaseModel):
    id: str
    name: str
    grade_level: int

    model_config = {"from_attributes": True}


class EnrollmentRequest(BaseModel):
    student_ids: list[str] = Field(..., min_length=1, max_length=200)


class EnrollmentResponse(BaseModel):
    class_id: str
    enrolled: int
    total_students: int


class AssessmentTypeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_localized: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=30)
    category: Literal["MONTHLY_EXAM", "SEMESTER_EXAM"]
    default_weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    max_score: Decimal = Field(default=Decimal("100"), ge=1, le=1000, decimal_places=2)
    display_order: int = Field(default=0, ge=0, le=1000)


class AssessmentTypeOut(BaseModel):
    id: str
    name: str
    name_localized: str
    code: str
    category: str
    default_weight: Decimal
    max_score: Decimal
    display_order: int

    model_config = {"from_attributes": True}
