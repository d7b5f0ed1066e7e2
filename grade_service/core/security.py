from datetime import UTC, datetime, timedelta

import jwt

from grade_service.core.config import get_settings


def create_access_token(subject: str, role: str = "teacher", expires_minutes: int | None = None) -> str:
    """Issue a token the same way the auth service does.

    Only used by tests and local tooling; production tokens come from the auth service
    and share ``jwt_secret`` with this one.
    """
    settings = get_settings()
    expires_delta = timedelta(minutes=expires_minutes or settings.jwt_expire_minutes)
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
