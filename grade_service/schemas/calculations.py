from decimal import Decimal

from pydantic import BaseModel


class GradeComponentOut(BaseModel):
    grade_id: str
    assessment_code: str
    assessment_name: str
    score: Decimal
    max_score: Decimal

    model_config = {"from_attributes": True}


class CalculationDetailsOut(BaseModel):
    monthly_exams: list[GradeComponentOut]
    semester_exam: GradeComponentOut | None
    monthly_weight: Decimal
    semester_weight: Decimal
    expected_monthly_count: int
    config_source: str
    formula: str
    complete: bool
    missing_components: list[str]

    model_config = {"from_attributes": True}


class CalculationResultOut(BaseModel):
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
    calculation_details: CalculationDetailsOut

    model_config = {"from_attributes": True}


class OverallResultOut(BaseModel):
    student_id: str
    class_id: str
    semester: int
    academic_year: str
    subject_count: int
    average_score: Decimal | None
    letter_grade: str | None
    subject_results: list[CalculationResultOut]

    model_config = {"from_attributes": True}


class AnnualResultOut(BaseModel):
    student_id: str
    class_id: str
    subject_id: str
    academic_year: str
    semester_scores: dict[int, Decimal | None]
    annual_score: Decimal | None
    letter_grade: str | None
    complete: bool

    model_config = {"from_attributes": True}


class OverallAnnualResultOut(BaseModel):
    student_id: str
    class_id: str
    academic_year: str
    semester_averages: dict[int, Decimal | None]
    annual_average: Decimal | None
    letter_grade: str | None
    complete: bool

    model_config = {"from_attributes": True}
