from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grade_service.api.deps import CallerIdentity, get_current_teacher
from grade_service.db.session import get_db
from grade_service.schemas.grades import (
    BulkGradeRequest,
    GradeCreateRequest,
    GradeOut,
    GradeUpdateRequest,
    MonthlyGradesRequest,
    SemesterExamGradesRequest,
)
from grade_service.schemas.summaries import ClassSummaryOut, StudentSemesterSummaryOut
from grade_service.services.grade_store import GradeStore
from grade_service.services.summary import SummaryAssembler

router = APIRouter(prefix="/grades", tags=["grades"])


@router.post("", response_model=GradeOut)
def create_grade(
    payload: GradeCreateRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).create_grade(caller.teacher_id, payload)


@router.post("/bulk", response_model=list[GradeOut])
def create_bulk_grades(
    payload: BulkGradeRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).create_bulk_grades(caller.teacher_id, payload)


@router.post("/monthly", response_model=list[GradeOut])
def enter_monthly_grades(
    payload: MonthlyGradesRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).enter_monthly_grades(caller.teacher_id, payload)


@router.post("/semester-exam", response_model=list[GradeOut])
def enter_semester_exam_grades(
    payload: SemesterExamGradesRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).enter_semester_exam_grades(caller.teacher_id, payload)


@router.get("/class/{class_id}/subject/{subject_id}", response_model=list[GradeOut])
def list_class_subject_grades(
    class_id: str,
    subject_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    _: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).list_class_subject_grades(class_id, subject_id, semester, academic_year)


@router.get("/student/{student_id}/subject/{subject_id}/monthly", response_model=list[GradeOut])
def student_monthly_grades(
    student_id: str,
    subject_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    _: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).student_monthly_grades(student_id, subject_id, semester, academic_year)


@router.get("/student/{student_id}/semester-summary", response_model=StudentSemesterSummaryOut)
def student_semester_summary(
    student_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    summary = SummaryAssembler(db).student_semester_summary(student_id, semester, academic_year, caller.teacher_id)
    return StudentSemesterSummaryOut.model_validate(summary)


@router.get("/class/{class_id}/summary", response_model=ClassSummaryOut)
def class_summary(
    class_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    summary = SummaryAssembler(db).class_summary(class_id, semester, academic_year, caller.teacher_id)
    return ClassSummaryOut.model_validate(summary)


@router.get("/{grade_id}", response_model=GradeOut)
def get_grade(
    grade_id: str,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).get_grade(caller.teacher_id, grade_id)


@router.put("/{grade_id}", response_model=GradeOut)
def update_grade(
    grade_id: str,
    payload: GradeUpdateRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeStore(db).update_grade(caller.teacher_id, grade_id, payload.score, payload.comments)


@router.delete("/{grade_id}")
def delete_grade(
    grade_id: str,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    GradeStore(db).delete_grade(caller.teacher_id, grade_id)
    return {"ok": True}
