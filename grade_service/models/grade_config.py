from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from grade_service.db.base import Base
from grade_service.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class GradeConfig(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Weighting for one class/subject/semester; ``teacher_id`` is null for the institutional default."""

    __tablename__ = "grade_configs"
    __table_args__ = (
        CheckConstraint("semester IN (1, 2)", name="ck_grade_configs_semester"),
        CheckConstraint("monthly_exam_count >= 1 AND monthly_exam_count <= 6", name="ck_grade_configs_monthly_exam_count"),
    )

    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    monthly_exam_count: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    monthly_weight: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    semester_exam_weight: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


# NULL teacher_id rows must collide with each other, so the key uses coalesce.
Index(
    "uq_grade_configs_scope",
    func.coalesce(GradeConfig.teacher_id, ""),
    GradeConfig.class_id,
    GradeConfig.subject_id,
    GradeConfig.semester,
    GradeConfig.academic_year,
    unique=True,
)
