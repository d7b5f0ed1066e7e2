from grade_service.models.assessment_type import AssessmentCategory, AssessmentType
from grade_service.models.class_model import ClassEnrollment, SchoolClass
from grade_service.models.grade_config import GradeConfig
from grade_service.models.grade_entry import GradeEntry
from grade_service.models.semester_schedule import SemesterSchedule
from grade_service.models.subject import Subject

__all__ = [
    "AssessmentCategory",
    "AssessmentType",
    "ClassEnrollment",
    "GradeConfig",
    "GradeEntry",
    "SchoolClass",
    "SemesterSchedule",
    "Subject",
]
