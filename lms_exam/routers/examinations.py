"""Student endpoints: submit an examination and review the result."""

from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from lms_exam.database import get_session
from lms_exam.deps import require_login, require_student
from lms_exam.models import User
from lms_exam.services.attempt_service import submit_attempt
from lms_exam.services.result_service import get_attempt_status, get_results_for_review

router = APIRouter()


class AnswerIn(BaseModel):
    question_id: int
    # Multi-select answers may be sent as a list or comma-separated
    answer: Optional[Union[str, List[str]]] = Field(default=None)


class SubmitIn(BaseModel):
    answers: List[AnswerIn]
    time_spent_seconds: int = Field(default=0, ge=0)


@router.post("/{examination_id}/submit")
def api_submit_examination(
    examination_id: int,
    payload: SubmitIn = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_student),
):
    return submit_attempt(
        session,
        examination_id=examination_id,
        user_id=current_user.id,
        answers=[a.model_dump() for a in payload.answers],
        time_spent_seconds=payload.time_spent_seconds,
    )


@router.get("/{examination_id}/results")
def api_examination_results(
    examination_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    """Current user's own result; null when they have not attempted it."""
    return get_results_for_review(session, examination_id, current_user.id)


@router.get("/{examination_id}/attempt-status")
def api_attempt_status(
    examination_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    return get_attempt_status(session, examination_id, current_user.id)
