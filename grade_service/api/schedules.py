from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grade_service.api.deps import CallerIdentity, get_current_teacher, require_admin
from grade_service.db.session import get_db
from grade_service.schemas.configs import SemesterScheduleOut, SemesterScheduleRequest
from grade_service.services.schedule_resolver import ScheduleResolver

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.get("", response_model=SemesterScheduleOut)
def resolve_schedule(
    academic_year: str = Query(...),
    semester_exam_code: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    schedule = ScheduleResolver(db).resolve(caller.teacher_id, academic_year, semester_exam_code)
    return SemesterScheduleOut.model_validate(schedule)


@router.get("/academic-years", response_model=list[str])
def available_academic_years(
    db: Session = Depends(get_db),
    _: CallerIdentity = Depends(get_current_teacher),
):
    return ScheduleResolver(db).available_academic_years()


@router.get("/defaults", response_model=list[SemesterScheduleOut])
def list_default_schedules(
    academic_year: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: CallerIdentity = Depends(get_current_teacher),
):
    rows = ScheduleResolver(db).list_default_schedules(academic_year)
    return [SemesterScheduleOut.model_validate(row) for row in rows]


@router.get("/year/{academic_year}", response_model=list[SemesterScheduleOut])
def list_schedules(
    academic_year: str,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    rows = ScheduleResolver(db).list_schedules(caller.teacher_id, academic_year)
    return [SemesterScheduleOut.model_validate(row) for row in rows]


@router.post("", response_model=SemesterScheduleOut)
def save_schedule(
    payload: SemesterScheduleRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    return SemesterScheduleOut.model_validate(ScheduleResolver(db).save_teacher_schedule(caller.teacher_id, payload))


@router.post("/default", response_model=SemesterScheduleOut, dependencies=[Depends(require_admin)])
def save_default_schedule(payload: SemesterScheduleRequest, db: Session = Depends(get_db)):
    return SemesterScheduleOut.model_validate(ScheduleResolver(db).save_default_schedule(payload))


@router.delete("")
def delete_schedule(
    academic_year: str = Query(...),
    semester_exam_code: str = Query(...),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    ScheduleResolver(db).delete_teacher_schedule(caller.teacher_id, academic_year, semester_exam_code)
    return {"ok": True}


@router.delete("/default", dependencies=[Depends(require_admin)])
def delete_default_schedule(
    academic_year: str = Query(...),
    semester_exam_code: str = Query(...),
    db: Session = Depends(get_db),
):
    ScheduleResolver(db).delete_default_schedule(academic_year, semester_exam_code)
    return {"ok": True}
