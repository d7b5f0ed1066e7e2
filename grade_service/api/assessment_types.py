from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grade_service.api.deps import get_current_teacher, require_admin
from grade_service.db.session import get_db
from grade_service.models.assessment_type import AssessmentCategory
from grade_service.schemas.reference import AssessmentTypeOut, AssessmentTypeRequest
from grade_service.services.reference import ReferenceData

router = APIRouter(prefix="/assessment-types", tags=["assessment-types"])


@router.get("", response_model=list[AssessmentTypeOut], dependencies=[Depends(get_current_teacher)])
def list_assessment_types(db: Session = Depends(get_db)):
    return ReferenceData(db).list_assessment_types()


@router.post("", response_model=AssessmentTypeOut, dependencies=[Depends(require_admin)])
def create_assessment_type(payload: AssessmentTypeRequest, db: Session = Depends(get_db)):
    return ReferenceData(db).create_assessment_type(
        name=payload.name,
        name_localized=payload.name_localized,
        code=payload.code,
        category=AssessmentCategory(payload.category),
        default_weight=payload.default_weight,
        max_score=payload.max_score,
        display_order=payload.display_order,
    )


@router.get("/code/{code}", response_model=AssessmentTypeOut, dependencies=[Depends(get_current_teacher)])
def get_assessment_type_by_code(code: str, db: Session = Depends(get_db)):
    return ReferenceData(db).get_assessment_type_by_code(code)


@router.get(
    "/category/{category}",
    response_model=list[AssessmentTypeOut],
    dependencies=[Depends(get_current_teacher)],
)
def list_by_category(category: AssessmentCategory, db: Session = Depends(get_db)):
    return ReferenceData(db).list_assessment_types(category)


@router.get("/{assessment_type_id}", response_model=AssessmentTypeOut, dependencies=[Depends(get_current_teacher)])
def get_assessment_type(assessment_type_id: str, db: Session = Depends(get_db)):
    return ReferenceData(db).get_assessment_type(assessment_type_id)
