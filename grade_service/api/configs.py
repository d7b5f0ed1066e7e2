from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grade_service.api.deps import CallerIdentity, get_current_teacher, require_admin
from grade_service.db.session import get_db
from grade_service.schemas.configs import GradeConfigOut, GradeConfigRequest
from grade_service.services.config_resolver import ConfigResolver

router = APIRouter(prefix="/configs", tags=["configs"])


@router.get("", response_model=GradeConfigOut)
def resolve_config(
    class_id: str = Query(...),
    subject_id: str = Query(...),
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    config = ConfigResolver(db).resolve(caller.teacher_id, class_id, subject_id, semester, academic_year)
    return GradeConfigOut.model_validate(config)


@router.post("", response_model=GradeConfigOut)
def save_config(
    payload: GradeConfigRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return GradeConfigOut.model_validate(ConfigResolver(db).save_config(caller.teacher_id, payload))


@router.post("/default", response_model=GradeConfigOut, dependencies=[Depends(require_admin)])
def save_default_config(payload: GradeConfigRequest, db: Session = Depends(get_db)):
    return GradeConfigOut.model_validate(ConfigResolver(db).save_default_config(payload))


@router.get("/class/{class_id}", response_model=list[GradeConfigOut])
def list_class_configs(
    class_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    rows = ConfigResolver(db).list_class_configs(caller.teacher_id, class_id, semester, academic_year)
    return [GradeConfigOut.model_validate(row) for row in rows]


@router.delete("/{config_id}")
def delete_config(
    config_id: str,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    ConfigResolver(db).delete_config(caller.teacher_id, config_id)
    return {"ok": True}
