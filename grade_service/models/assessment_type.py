from decimal import Decimal
from enum import StrEnum

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from grade_service.db.base import Base
from grade_service.models.common import UUIDPrimaryKeyMixin


class AssessmentCategory(StrEnum):
    MONTHLY_EXAM = "MONTHLY_EXAM"
    SEMESTER_EXAM = "SEMESTER_EXAM"


class AssessmentType(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "assessment_types"
    __table_args__ = (
        CheckConstraint("category IN ('MONTHLY_EXAM', 'SEMESTER_EXAM')", name="ck_assessment_types_category"),
        CheckConstraint("default_weight >= 0 AND default_weight <= 100", name="ck_assessment_types_default_weight"),
        CheckConstraint("max_score >= 1 AND max_score <= 1000", name="ck_assessment_types_max_score"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_localized: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    default_weight: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    max_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("100"))
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
