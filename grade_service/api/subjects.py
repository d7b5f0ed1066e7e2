from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grade_service.api.deps import get_current_teacher
from grade_service.db.session import get_db
from grade_service.schemas.reference import SubjectOut
from grade_service.services.reference import ReferenceData

router = APIRouter(prefix="/subjects", tags=["subjects"], dependencies=[Depends(get_current_teacher)])


@router.get("", response_model=list[SubjectOut])
def list_subjects(db: Session = Depends(get_db)):
    return ReferenceData(db).list_subjects()


@router.get("/{subject_id}", response_model=SubjectOut)
def get_subject(subject_id: str, db: Session = Depends(get_db)):
    return ReferenceData(db).get_subject(subject_id)
