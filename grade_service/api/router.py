from fastapi import APIRouter

from grade_service.api import (
    assessment_types,
    calculations,
    classes,
    configs,
    grades,
    rankings,
    schedules,
    subjects,
    system,
)

api_router = APIRouter()
api_router.include_router(system.router)
api_router.include_router(subjects.router)
api_router.include_router(classes.router)
api_router.include_router(assessment_types.router)
api_router.include_router(configs.router)
api_router.include_router(schedules.router)
api_router.include_router(grades.router)
api_router.include_router(calculations.router)
api_router.include_router(rankings.router)
