"""init schema

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_init_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("name_localized", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("is_core", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("grade_level", sa.Integer(), nullable=False),
        sa.CheckConstraint("grade_level >= 1 AND grade_level <= 12", name="ck_classes_grade_level_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_classes_name", "classes", ["name"], unique=True)

    op.create_table(
        "class_enrollments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("class_id", "student_id", name="uq_class_enrollments_class_student"),
    )
    op.create_index("ix_class_enrollments_class_id", "class_enrollments", ["class_id"], unique=False)
    op.create_index("ix_class_enrollments_student_id", "class_enrollments", ["student_id"], unique=False)

    op.create_table(
        "assessment_types",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("name_localized", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=30), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("default_weight", sa.Numeric(5, 2), nullable=False),
        sa.Column("max_score", sa.Numeric(6, 2), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.CheckConstraint("category IN ('MONTHLY_EXAM', 'SEMESTER_EXAM')", name="ck_assessment_types_category"),
        sa.CheckConstraint("default_weight >= 0 AND default_weight <= 100", name="ck_assessment_types_default_weight"),
        sa.CheckConstraint("max_score >= 1 AND max_score <= 1000", name="ck_assessment_types_max_score"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assessment_types_code", "assessment_types", ["code"], unique=True)
    op.create_index("ix_assessment_types_category", "assessment_types", ["category"], unique=False)

    op.create_table(
        "grade_configs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("monthly_exam_count", sa.Integer(), nullable=False),
        sa.Column("monthly_weight", sa.Numeric(5, 2), nullable=False),
        sa.Column("semester_exam_weight", sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("semester IN (1, 2)", name="ck_grade_configs_semester"),
        sa.CheckConstraint(
            "monthly_exam_count >= 1 AND monthly_exam_count <= 6", name="ck_grade_configs_monthly_exam_count"
        ),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_grade_configs_teacher_id", "grade_configs", ["teacher_id"], unique=False)
    op.create_index("ix_grade_configs_class_id", "grade_configs", ["class_id"], unique=False)
    op.create_index(
        "uq_grade_configs_scope",
        "grade_configs",
        [sa.text("coalesce(teacher_id, '')"), "class_id", "subject_id", "semester", "academic_year"],
        unique=True,
    )

    op.create_table(
        "semester_schedules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("semester_exam_code", sa.String(length=30), nullable=False),
        sa.Column("exam_schedule", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_semester_schedules_teacher_id", "semester_schedules", ["teacher_id"], unique=False)
    op.create_index("ix_semester_schedules_academic_year", "semester_schedules", ["academic_year"], unique=False)
    op.create_index(
        "uq_semester_schedules_scope",
        "semester_schedules",
        [sa.text("coalesce(teacher_id, '')"), "academic_year", "semester_exam_code"],
        unique=True,
    )

    op.create_table(
        "grade_entries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("assessment_type_id", sa.String(length=36), nullable=False),
        sa.Column("score", sa.Numeric(6, 2), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("comments", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("score >= 0", name="ck_grade_entries_score_non_negative"),
        sa.CheckConstraint("semester IN (1, 2)", name="ck_grade_entries_semester"),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["assessment_type_id"], ["assessment_types.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "subject_id",
            "assessment_type_id",
            "semester",
            "academic_year",
            name="uq_grade_entries_natural_key",
        ),
    )
    op.create_index("ix_grade_entries_teacher_id", "grade_entries", ["teacher_id"], unique=False)
    op.create_index("ix_grade_entries_student_id", "grade_entries", ["student_id"], unique=False)
    op.create_index("ix_grade_entries_class_id", "grade_entries", ["class_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_grade_entries_class_id", table_name="grade_entries")
    op.drop_index("ix_grade_entries_student_id", table_name="grade_entries")
    op.drop_index("ix_grade_entries_teacher_id", table_name="grade_entries")
    op.drop_table("grade_entries")

    op.drop_index("uq_semester_schedules_scope", table_name="semester_schedules")
    op.drop_index("ix_semester_schedules_academic_year", table_name="semester_schedules")
    op.drop_index("ix_semester_schedules_teacher_id", table_name="semester_schedules")
    op.drop_table("semester_schedules")

    op.drop_index("uq_grade_configs_scope", table_name="grade_configs")
    op.drop_index("ix_grade_configs_class_id", table_name="grade_configs")
    op.drop_index("ix_grade_configs_teacher_id", table_name="grade_configs")
    op.drop_table("grade_configs")

    op.drop_index("ix_assessment_types_category", table_name="assessment_types")
    op.drop_index("ix_assessment_types_code", table_name="assessment_types")
    op.drop_table("assessment_types")

    op.drop_index("ix_class_enrollments_student_id", table_name="class_enrollments")
    op.drop_index("ix_class_enrollments_class_id", table_name="class_enrollments")
    op.drop_table("class_enrollments")

    op.drop_index("ix_classes_name", table_name="classes")
    op.drop_table("classes")

    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
