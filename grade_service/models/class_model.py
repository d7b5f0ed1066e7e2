from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grade_service.db.base import Base
from grade_service.models.common import CreatedAtMixin, UUIDPrimaryKeyMixin


class SchoolClass(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "classes"
    __table_args__ = (CheckConstraint("grade_level >= 1 AND grade_level <= 12", name="ck_classes_grade_level_range"),)

    name: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    grade_level: Mapped[int] = mapped_column(Integer, nullable=False)

    enrollments = relationship("ClassEnrollment", back_populates="school_class", cascade="all, delete-orphan")


class ClassEnrollment(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "class_enrollments"
    __table_args__ = (UniqueConstraint("class_id", "student_id", name="uq_class_enrollments_class_student"),)

    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    school_class = relationship("SchoolClass", back_populates="enrollments")
