from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grade_service.db.base import Base
from grade_service.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class GradeEntry(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "grade_entries"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "subject_id",
            "assessment_type_id",
            "semester",
            "academic_year",
            name="uq_grade_entries_natural_key",
        ),
        CheckConstraint("score >= 0", name="ck_grade_entries_score_non_negative"),
        CheckConstraint("semester IN (1, 2)", name="ck_grade_entries_semester"),
    )

    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    assessment_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assessment_types.id", ondelete="RESTRICT"), nullable=False
    )
    score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    comments: Mapped[str | None] = mapped_column(String(500), nullable=True)

    assessment_type = relationship("AssessmentType", lazy="joined")

    @property
    def assessment_code(self) -> str:
        return self.assessment_type.code

    @property
    def assessment_name(self) -> str:
        return self.assessment_type.name

    @property
    def assessment_category(self) -> str:
        return self.assessment_type.category

    @property
    def max_score(self) -> Decimal:
        return self.assessment_type.max_score
