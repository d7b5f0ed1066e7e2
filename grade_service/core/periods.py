import re
from dataclasses import dataclass

from grade_service.core.errors import ErrorKind, GradeError

_ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})-(\d{4})$")
SEMESTERS = (1, 2)


def validate_academic_year(value: str) -> str:
    match = _ACADEMIC_YEAR_RE.match(value or "")
    if not match or int(match.group(2)) != int(match.group(1)) + 1:
        raise GradeError(ErrorKind.INVALID_ACADEMIC_YEAR, f"Invalid academic year: {value!r}")
    return value


def validate_semester(value: int) -> int:
    if value not in SEMESTERS:
        raise GradeError(ErrorKind.VALIDATION_ERROR, f"Semester must be 1 or 2, got {value}")
    return value


def semester_exam_code(semester: int) -> str:
    return f"SEMESTER_{semester}"


@dataclass(frozen=True)
class PeriodKey:
    """A grading period: one semester of one academic year."""

    academic_year: str
    semester: int

    @classmethod
    def parse(cls, raw: str) -> "PeriodKey":
        # Format: "2024-2025:1"
        year, sep, semester = (raw or "").partition(":")
        if not sep or not semester.isdigit():
            raise GradeError(ErrorKind.INVALID_PERIOD, f"Invalid period key: {raw!r}")
        try:
            return cls.of(year, int(semester))
        except GradeError as exc:
            raise GradeError(ErrorKind.INVALID_PERIOD, f"Invalid period key: {raw!r}") from exc

    @classmethod
    def of(cls, academic_year: str, semester: int) -> "PeriodKey":
        return cls(validate_academic_year(academic_year), validate_semester(semester))

    def __str__(self) -> str:
        return f"{self.academic_year}:{self.semester}"
