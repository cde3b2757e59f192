"""Staff endpoints for reviewing attempts and grading subjective answers."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from lms_exam.database import get_session
from lms_exam.deps import require_grader
from lms_exam.models import User
from lms_exam.services.grading_service import apply_manual_grades
from lms_exam.services.result_service import (
    get_attempt_detail,
    list_attempts_for_staff,
    list_pending_attempts,
)

router = APIRouter()


class GradeIn(BaseModel):
    question_id: int
    score: float = Field(ge=0)
    feedback: Optional[str] = Field(default=None, max_length=5000)


class GradesIn(BaseModel):
    grades: List[GradeIn]


@router.get("/pending")
def api_pending_attempts(
    session: Session = Depends(get_session),
    grader: User = Depends(require_grader),
):
    return list_pending_attempts(session, grader)


@router.get("/attempts")
def api_list_attempts(
    session: Session = Depends(get_session),
    grader: User = Depends(require_grader),
):
    return list_attempts_for_staff(session, grader)


@router.get("/attempts/{attempt_id}")
def api_attempt_detail(
    attempt_id: int,
    session: Session = Depends(get_session),
    grader: User = Depends(require_grader),
):
    return get_attempt_detail(session, attempt_id, grader)


@router.post("/attempts/{attempt_id}")
def api_grade_attempt(
    attempt_id: int,
    payload: GradesIn = Body(...),
    session: Session = Depends(get_session),
    grader: User = Depends(require_grader),
):
    return apply_manual_grades(
        session,
        attempt_id=attempt_id,
        grader=grader,
        grades=[g.model_dump() for g in payload.grades],
    )
