from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grade_service.api.deps import CallerIdentity, get_current_teacher
from grade_service.db.session import get_db
from grade_service.schemas.calculations import (
    AnnualResultOut,
    CalculationResultOut,
    OverallAnnualResultOut,
    OverallResultOut,
)
from grade_service.services.calculation import CalculationEngine

router = APIRouter(prefix="/calculations", tags=["calculations"])


@router.get("/student/{student_id}/subject/{subject_id}", response_model=CalculationResultOut)
def calculate_subject(
    student_id: str,
    subject_id: str,
    class_id: str = Query(...),
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    result = CalculationEngine(db).calculate(
        student_id, class_id, subject_id, semester, academic_year, teacher_id=caller.teacher_id
    )
    return CalculationResultOut.model_validate(result)


@router.get("/student/{student_id}/overall", response_model=OverallResultOut)
def calculate_overall(
    student_id: str,
    class_id: str = Query(...),
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    result = CalculationEngine(db).calculate_overall(
        student_id, class_id, semester, academic_year, teacher_id=caller.teacher_id
    )
    return OverallResultOut.model_validate(result)


@router.get("/student/{student_id}/annual", response_model=AnnualResultOut)
def calculate_annual(
    student_id: str,
    class_id: str = Query(...),
    subject_id: str = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    result = CalculationEngine(db).calculate_annual(
        student_id, class_id, subject_id, academic_year, teacher_id=caller.teacher_id
    )
    return AnnualResultOut.model_validate(result)


@router.get("/student/{student_id}/annual/overall", response_model=OverallAnnualResultOut)
def calculate_annual_overall(
    student_id: str,
    class_id: str = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    result = CalculationEngine(db).calculate_annual_overall(
        student_id, class_id, academic_year, teacher_id=caller.teacher_id
    )
    return OverallAnnualResultOut.model_validate(result)
