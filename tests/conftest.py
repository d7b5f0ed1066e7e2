from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

TEACHER_ID = "teacher-1"
OTHER_TEACHER_ID = "teacher-2"
ADMIN_ID = "admin-1"
ACADEMIC_YEAR = "2024-2025"
STUDENT_IDS = ("student-1", "student-2", "student-3", "student-4")


@dataclass(frozen=True)
class Refs:
    class_id: str
    subjects: dict[str, str]
    assessment_types: dict[str, str]


@pytest.fixture()
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_file.as_posix()}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("SEED_REFERENCE_DATA", "true")

    from grade_service.core.config import clear_settings_cache
    from grade_service.db.base import Base
    from grade_service.db.session import get_engine, get_session_factory, reset_engine
    from grade_service.models import ClassEnrollment, SchoolClass
    from grade_service.services.reference import ensure_reference_data

    clear_settings_cache()
    reset_engine()
    Base.metadata.create_all(bind=get_engine())

    with get_session_factory()() as db:
        ensure_reference_data(db)
        existing = db.scalar(select(SchoolClass).where(SchoolClass.name == "10A"))
        if not existing:
            school_class = SchoolClass(name="10A", grade_level=10)
            db.add(school_class)
            db.flush()
            for student_id in STUDENT_IDS:
                db.add(ClassEnrollment(class_id=school_class.id, student_id=student_id))
        db.commit()

    yield

    Base.metadata.drop_all(bind=get_engine())
    reset_engine()
    clear_settings_cache()


@pytest.fixture()
def db(database):
    from grade_service.db.session import get_session_factory

    with get_session_factory()() as session:
        yield session


@pytest.fixture()
def refs(db) -> Refs:
    from grade_service.models import AssessmentType, SchoolClass, Subject

    school_class = db.scalar(select(SchoolClass).where(SchoolClass.name == "10A"))
    return Refs(
        class_id=school_class.id,
        subjects={row.code: row.id for row in db.scalars(select(Subject)).all()},
        assessment_types={row.code: row.id for row in db.scalars(select(AssessmentType)).all()},
    )


@pytest.fixture()
def app_client(database):
    from grade_service.main import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client


def auth_headers(teacher_id: str = TEACHER_ID, role: str = "teacher") -> dict[str, str]:
    from grade_service.core.security import create_access_token

    token = create_access_token(subject=teacher_id, role=role)
    return {"Authorization": f"Bearer {token}"}


def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN_ID, role="admin")
