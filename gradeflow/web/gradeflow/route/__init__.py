"""Route aggregation for the grading web application."""

from fastapi import APIRouter

from . import grade, submission

router = APIRouter()
router.include_router(grade.router)
router.include_router(submission.router)
