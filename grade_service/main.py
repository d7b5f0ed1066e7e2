import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grade_service.api.router import api_router
from grade_service.core.config import get_settings
from grade_service.core.errors import ErrorCategory, GradeError
from grade_service.db.session import get_session_factory
from grade_service.services.reference import ensure_reference_data

logger = logging.getLogger(__name__)


def status_for(category: ErrorCategory) -> int:
    match category:
        case ErrorCategory.NOT_FOUND:
            return status.HTTP_404_NOT_FOUND
        case ErrorCategory.CONFLICT:
            return status.HTTP_409_CONFLICT
        case ErrorCategory.UNAUTHORIZED:
            return status.HTTP_403_FORBIDDEN
        case ErrorCategory.VALIDATION:
            return status.HTTP_400_BAD_REQUEST


async def grade_error_handler(request: Request, exc: GradeError) -> JSONResponse:
    logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.kind.value, exc.message)
    return JSONResponse(
        status_code=status_for(exc.category),
        content={"error": exc.kind.value, "category": exc.category.value, "message": exc.message},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.seed_reference_data:
            session_factory = get_session_factory()
            with session_factory() as db:
                ensure_reference_data(db)
        yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GradeError, grade_error_handler)
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()
