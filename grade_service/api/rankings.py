from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from grade_service.api.deps import CallerIdentity, get_current_teacher
from grade_service.core.periods import PeriodKey
from grade_service.db.session import get_db
from grade_service.schemas.rankings import RankingSnapshotOut
from grade_service.services.ranking import RankingEngine

router = APIRouter(prefix="/rankings", tags=["rankings"])


def _prior(prior_period: str | None) -> PeriodKey | None:
    return PeriodKey.parse(prior_period) if prior_period else None


@router.get("/class/{class_id}", response_model=RankingSnapshotOut)
def class_subject_ranking(
    class_id: str,
    subject_id: str = Query(...),
    semester: int = Query(...),
    academic_year: str = Query(...),
    prior_period: str | None = Query(default=None, description="Prior period as YYYY-YYYY:S"),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    snapshot = RankingEngine(db).rank(
        class_id, subject_id, semester, academic_year, _prior(prior_period), teacher_id=caller.teacher_id
    )
    return RankingSnapshotOut.model_validate(snapshot)


@router.get("/class/{class_id}/overall", response_model=RankingSnapshotOut)
def class_overall_ranking(
    class_id: str,
    semester: int = Query(...),
    academic_year: str = Query(...),
    prior_period: str | None = Query(default=None, description="Prior period as YYYY-YYYY:S"),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_teacher),
):
    snapshot = RankingEngine(db).rank_overall(
        class_id, semester, academic_year, _prior(prior_period), teacher_id=caller.teacher_id
    )
    return RankingSnapshotOut.model_validate(snapshot)
