from sqlalchemy import JSON, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from grade_service.db.base import Base
from grade_service.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class SemesterSchedule(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Ordered exam slots of a semester; ``teacher_id`` is null for the default schedule.

    ``exam_schedule`` holds ``[{"assessment_code", "title", "display_order"}, ...]``.
    """

    __tablename__ = "semester_schedules"

    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    semester_exam_code: Mapped[str] = mapped_column(String(30), nullable=False)
    exam_schedule: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)


Index(
    "uq_semester_schedules_scope",
    func.coalesce(SemesterSchedule.teacher_id, ""),
    SemesterSchedule.academic_year,
    SemesterSchedule.semester_exam_code,
    unique=True,
)
