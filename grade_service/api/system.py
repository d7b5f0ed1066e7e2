from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from grade_service.core.config import get_settings
from grade_service.db.session import get_db
from grade_service.models.assessment_type import AssessmentType
from grade_service.models.grade_entry import GradeEntry
from grade_service.models.subject import Subject
from grade_service.services.grading_policy import GradingPolicy

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    settings = get_settings()
    return {"status": "ok", "version": settings.app_version}


@router.get("/system/info")
def system_info(db: Session = Depends(get_db)):
    settings = get_settings()
    policy = GradingPolicy.from_settings(settings)
    return {
        "app_name": settings.app_name,
        "app_env": settings.app_env,
        "app_version": settings.app_version,
        "letter_grades": policy.letters,
        "pass_threshold": str(policy.pass_threshold),
        "subjects": db.scalar(select(func.count()).select_from(Subject)) or 0,
        "assessment_types": db.scalar(select(func.count()).select_from(AssessmentType)) or 0,
        "grade_entries": db.scalar(select(func.count()).select_from(GradeEntry)) or 0,
    }
