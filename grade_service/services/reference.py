import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grade_service.core.errors import ErrorKind, GradeError, not_found
from grade_service.models.assessment_type import AssessmentCategory, AssessmentType
from grade_service.models.class_model import ClassEnrollment, SchoolClass
from grade_service.models.semester_schedule import SemesterSchedule
from grade_service.models.subject import Subject

logger = logging.getLogger(__name__)

# (name, localized name, code, is_core)
STANDARD_SUBJECTS = (
    ("Khmer Language", "ភាសាខ្មែរ", "KHM", True),
    ("Mathematics", "គណិតវិទ្យា", "MATH", True),
    ("Science", "វិទ្យាសាស្ត្រ", "SCI", True),
    ("Physics", "រូបវិទ្យា", "PHY", True),
    ("Chemistry", "គីមីវិទ្យា", "CHEM", True),
    ("Biology", "ជីវវិទ្យា", "BIO", True),
    ("History", "ប្រវត្តិវិទ្យា", "HIST", True),
    ("Geography", "ភូមិវិទ្យា", "GEO", True),
    ("Civics", "កិច្ចការសង្គម", "CIV", True),
    ("English", "ភាសាអង់គ្លេស", "ENG", True),
    ("Physical Education", "អប់រំកាយ", "PE", False),
    ("Art", "សិល្បៈ", "ART", False),
    ("Music", "តន្ត្រី", "MUS", False),
    ("Information Technology", "ព័ត៌មានវិទ្យា", "IT", False),
    ("Morality", "សីលធម៌", "MOR", True),
)

# (name, localized name, code, category, default weight)
STANDARD_ASSESSMENT_TYPES = (
    ("Monthly Exam 1", "ប្រឡងប្រចាំខែ ១", "MONTHLY_1", AssessmentCategory.MONTHLY_EXAM, "12.50"),
    ("Monthly Exam 2", "ប្រឡងប្រចាំខែ ២", "MONTHLY_2", AssessmentCategory.MONTHLY_EXAM, "12.50"),
    ("Monthly Exam 3", "ប្រឡងប្រចាំខែ ៣", "MONTHLY_3", AssessmentCategory.MONTHLY_EXAM, "12.50"),
    ("Monthly Exam 4", "ប្រឡងប្រចាំខែ ៤", "MONTHLY_4", AssessmentCategory.MONTHLY_EXAM, "12.50"),
    ("Semester 1 Exam", "ប្រឡងឆមាស ១", "SEMESTER_1", AssessmentCategory.SEMESTER_EXAM, "50.00"),
    ("Semester 2 Exam", "ប្រឡងឆមាស ២", "SEMESTER_2", AssessmentCategory.SEMESTER_EXAM, "50.00"),
)

# Semester 1 runs November-March, semester 2 April-August.
DEFAULT_SCHEDULE_MONTHS = {
    "SEMESTER_1": ("November", "December", "January", "February", "March"),
    "SEMESTER_2": ("April", "May", "June", "July", "August"),
}
DEFAULT_SCHEDULE_YEARS = ("2024-2025", "2025-2026")


class ReferenceData:
    """Lookups over subjects, classes, enrollment and the assessment catalog."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_subject(self, subject_id: str) -> Subject:
        subject = self.db.get(Subject, subject_id)
        if not subject:
            raise not_found(ErrorKind.SUBJECT_NOT_FOUND, subject_id)
        return subject

    def list_subjects(self) -> list[Subject]:
        return list(self.db.scalars(select(Subject).order_by(Subject.display_order, Subject.code)).all())

    def get_class(self, class_id: str) -> SchoolClass:
        school_class = self.db.get(SchoolClass, class_id)
        if not school_class:
            raise not_found(ErrorKind.CLASS_NOT_FOUND, class_id)
        return school_class

    def enrolled_student_ids(self, class_id: str) -> list[str]:
        self.get_class(class_id)
        stmt = (
            select(ClassEnrollment.student_id)
            .where(ClassEnrollment.class_id == class_id)
            .order_by(ClassEnrollment.student_id)
        )
        return list(self.db.scalars(stmt).all())

    def get_assessment_type(self, assessment_type_id: str) -> AssessmentType:
        assessment_type = self.db.get(AssessmentType, assessment_type_id)
        if not assessment_type:
            raise not_found(ErrorKind.ASSESSMENT_TYPE_NOT_FOUND, assessment_type_id)
        return assessment_type

    def get_assessment_type_by_code(self, code: str) -> AssessmentType:
        assessment_type = self.db.scalar(select(AssessmentType).where(AssessmentType.code == code))
        if not assessment_type:
            raise not_found(ErrorKind.ASSESSMENT_TYPE_NOT_FOUND, code)
        return assessment_type

    def list_assessment_types(self, category: AssessmentCategory | None = None) -> list[AssessmentType]:
        stmt = select(AssessmentType).order_by(AssessmentType.display_order, AssessmentType.code)
        if category is not None:
            stmt = stmt.where(AssessmentType.category == category)
        return list(self.db.scalars(stmt).all())

    def assessment_types_by_code(self) -> dict[str, AssessmentType]:
        return {item.code: item for item in self.list_assessment_types()}

    def create_class(self, name: str, grade_level: int) -> SchoolClass:
        school_class = SchoolClass(name=name, grade_level=grade_level)
        self.db.add(school_class)
        self._commit_reference(f"Class {name} already exists")
        self.db.refresh(school_class)
        logger.info("Created class %s (%s)", school_class.id, name)
        return school_class

    def enroll_students(self, class_id: str, student_ids: list[str]) -> int:
        """Add students to the class roster, skipping ones already enrolled."""
        enrolled = set(self.enrolled_student_ids(class_id))
        added = 0
        for student_id in dict.fromkeys(student_ids):
            if student_id in enrolled:
                continue
            self.db.add(ClassEnrollment(class_id=class_id, student_id=student_id))
            added += 1
        self._commit_reference("Student is already enrolled in this class")
        logger.info("Enrolled %s students in class %s", added, class_id)
        return added

    def create_assessment_type(
        self,
        name: str,
        name_localized: str,
        code: str,
        category: AssessmentCategory,
        default_weight: Decimal,
        max_score: Decimal,
        display_order: int,
    ) -> AssessmentType:
        assessment_type = AssessmentType(
            name=name,
            name_localized=name_localized,
            code=code,
            category=category,
            default_weight=default_weight,
            max_score=max_score,
            display_order=display_order,
        )
        self.db.add(assessment_type)
        self._commit_reference(f"Assessment type {code} already exists")
        self.db.refresh(assessment_type)
        logger.info("Created assessment type %s (%s)", assessment_type.id, code)
        return assessment_type

    def _commit_reference(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise GradeError(ErrorKind.DUPLICATE_REFERENCE, message) from exc


def ensure_reference_data(db: Session) -> int:
    """Insert the standard subjects, assessment catalog and default schedules if missing."""
    inserted = 0

    existing_subjects = set(db.scalars(select(Subject.code)).all())
    for order, (name, name_localized, code, is_core) in enumerate(STANDARD_SUBJECTS, start=1):
        if code in existing_subjects:
            continue
        db.add(Subject(name=name, name_localized=name_localized, code=code, is_core=is_core, display_order=order))
        inserted += 1

    existing_types = set(db.scalars(select(AssessmentType.code)).all())
    for order, (name, name_localized, code, category, weight) in enumerate(STANDARD_ASSESSMENT_TYPES, start=1):
        if code in existing_types:
            continue
        db.add(
            AssessmentType(
                name=name,
                name_localized=name_localized,
                code=code,
                category=category,
                default_weight=Decimal(weight),
                max_score=Decimal("100"),
                display_order=order,
            )
        )
        inserted += 1

    for academic_year in DEFAULT_SCHEDULE_YEARS:
        for semester_exam_code, months in DEFAULT_SCHEDULE_MONTHS.items():
            existing = db.scalar(
                select(SemesterSchedule).where(
                    SemesterSchedule.teacher_id.is_(None),
                    SemesterSchedule.academic_year == academic_year,
                    SemesterSchedule.semester_exam_code == semester_exam_code,
                )
            )
            if existing:
                continue
            codes = ["MONTHLY_1", "MONTHLY_2", "MONTHLY_3", "MONTHLY_4", semester_exam_code]
            db.add(
                SemesterSchedule(
                    teacher_id=None,
                    academic_year=academic_year,
                    semester_exam_code=semester_exam_code,
                    exam_schedule=[
                        {"assessment_code": code, "title": month, "display_order": order}
                        for order, (code, month) in enumerate(zip(codes, months), start=1)
                    ],
                )
            )
            inserted += 1

    db.commit()
    if inserted:
        logger.info("Inserted %s reference data rows", inserted)
    return inserted
