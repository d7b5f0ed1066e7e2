"""Error kinds raised by the grading engine.

Every failure the engine reports is a ``GradeError`` carrying one ``ErrorKind``.
The kind is the machine-readable contract with callers; the message is for logs.
Callers branch on ``error.kind`` (or ``error.category``) instead of catching
exception subclasses.
"""

from enum import StrEnum


class ErrorCategory(StrEnum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"


class ErrorKind(StrEnum):
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    ASSESSMENT_TYPE_NOT_FOUND = "ASSESSMENT_TYPE_NOT_FOUND"
    GRADE_NOT_FOUND = "GRADE_NOT_FOUND"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    SCHEDULE_NOT_FOUND = "SCHEDULE_NOT_FOUND"
    DUPLICATE_GRADE = "DUPLICATE_GRADE"
    DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
    INVALID_CONFIG = "INVALID_CONFIG"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    SCORE_OUT_OF_RANGE = "SCORE_OUT_OF_RANGE"
    INVALID_ACADEMIC_YEAR = "INVALID_ACADEMIC_YEAR"
    INVALID_PERIOD = "INVALID_PERIOD"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.SUBJECT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.CLASS_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.ASSESSMENT_TYPE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.GRADE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.CONFIG_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.SCHEDULE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.DUPLICATE_GRADE: ErrorCategory.CONFLICT,
    ErrorKind.DUPLICATE_REFERENCE: ErrorCategory.CONFLICT,
    ErrorKind.INVALID_CONFIG: ErrorCategory.CONFLICT,
    ErrorKind.UNAUTHORIZED_ACCESS: ErrorCategory.UNAUTHORIZED,
    ErrorKind.SCORE_OUT_OF_RANGE: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_ACADEMIC_YEAR: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_PERIOD: ErrorCategory.VALIDATION,
    ErrorKind.VALIDATION_ERROR: ErrorCategory.VALIDATION,
}


class GradeError(Exception):
    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    def __repr__(self) -> str:
        return f"GradeError({self.kind.value}, {self.message!r})"


def not_found(kind: ErrorKind, identifier: object) -> GradeError:
    return GradeError(kind, f"{kind.value.lower()}: {identifier}")


def duplicate_grade(message: str = "Grade entry already exists for this student/assessment") -> GradeError:
    return GradeError(ErrorKind.DUPLICATE_GRADE, message)


def invalid_config(message: str) -> GradeError:
    return GradeError(ErrorKind.INVALID_CONFIG, message)


def unauthorized(message: str = "Not found or not authorized") -> GradeError:
    return GradeError(ErrorKind.UNAUTHORIZED_ACCESS, message)


def score_out_of_range(message: str) -> GradeError:
    return GradeError(ErrorKind.SCORE_OUT_OF_RANGE, message)
