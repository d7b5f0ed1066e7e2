from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from grade_service.api.deps import get_current_teacher, require_admin
from grade_service.db.session import get_db
from grade_service.models.class_model import SchoolClass
from grade_service.schemas.reference import ClassCreateRequest, ClassOut, EnrollmentRequest, EnrollmentResponse
from grade_service.services.reference import ReferenceData

router = APIRouter(prefix="/classes", tags=["classes"])


@router.get("", response_model=list[ClassOut], dependencies=[Depends(get_current_teacher)])
def list_classes(db: Session = Depends(get_db)):
    rows = db.scalars(select(SchoolClass).order_by(SchoolClass.grade_level, SchoolClass.name)).all()
    return rows


@router.post("", response_model=ClassOut, dependencies=[Depends(require_admin)])
def create_class(payload: ClassCreateRequest, db: Session = Depends(get_db)):
    return ReferenceData(db).create_class(payload.name, payload.grade_level)


@router.get("/{class_id}/students", response_model=list[str], dependencies=[Depends(get_current_teacher)])
def list_students(class_id: str, db: Session = Depends(get_db)):
    return ReferenceData(db).enrolled_student_ids(class_id)


@router.post("/{class_id}/students", response_model=EnrollmentResponse, dependencies=[Depends(require_admin)])
def enroll_students(class_id: str, payload: EnrollmentRequest, db: Session = Depends(get_db)):
    reference = ReferenceData(db)
    added = reference.enroll_students(class_id, payload.student_ids)
    total = len(reference.enrolled_student_ids(class_id))
    return EnrollmentResponse(class_id=class_id, enrolled=added, total_students=total)
