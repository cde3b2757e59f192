"""FastAPI entrypoint for the LMS examination service."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from lms_exam.config import get_settings
from lms_exam.database import create_db_and_tables
from lms_exam.errors import ExaminationError
from lms_exam.routers import auth as auth_router_module
from lms_exam.routers import examinations as examinations_router_module
from lms_exam.routers import grading as grading_router_module

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)


@app.exception_handler(ExaminationError)
async def examination_error_handler(request: Request, exc: ExaminationError):
    """Return domain errors as JSON with their status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Session middleware for simple cookie-based authentication
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)

# Routers
app.include_router(auth_router_module.router, prefix="/auth", tags=["auth"])
app.include_router(
    examinations_router_module.router, prefix="/examinations", tags=["examinations"]
)
app.include_router(grading_router_module.router, prefix="/grading", tags=["grading"])


@app.on_event("startup")
def on_startup():
    """Initialize database schema."""
    create_db_and_tables()
    logger.info("Database schema ready")
