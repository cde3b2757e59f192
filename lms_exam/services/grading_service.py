"""
Manual grading of subjective answers and final score merge.

Totals are always recomputed from every answer row of the attempt, so applying
the same grades twice gives the same result as applying them once.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from lms_exam.database import atomic
from lms_exam.errors import NotFoundError, PersistenceError, ValidationError
from lms_exam.models import (
    STATUS_COMPLETED,
    Examination,
    ExaminationAttempt,
    ExaminationAttemptAnswer,
    ExaminationQuestion,
    User,
)
from lms_exam.services.access import ensure_can_grade
from lms_exam.services.scoring import compute_percentage, is_passed
from lms_exam.utils import sanitize_feedback, validate_points

logger = logging.getLogger(__name__)


def get_attempt(session: Session, attempt_id: int) -> ExaminationAttempt:
    attempt = session.get(ExaminationAttempt, attempt_id)
    if not attempt:
        raise NotFoundError("Examination attempt not found")
    return attempt


def _answer_rows(session: Session, attempt_id: int) -> List[ExaminationAttemptAnswer]:
    stmt = select(ExaminationAttemptAnswer).where(
        ExaminationAttemptAnswer.attempt_id == attempt_id
    )
    return list(session.exec(stmt).all())


def _awaits_manual_grading(row: Optional[ExaminationAttemptAnswer]) -> bool:
    # Objective rows carry a True/False verdict from submission time
    return row is not None and row.is_correct is None


def _validated_grades(
    grades: List[dict], questions: dict, rows: dict
) -> List[dict]:
    cleaned = []
    for grade in grades:
        if not isinstance(grade, dict) or grade.get("question_id") is None:
            raise ValidationError("Each grade needs a question_id")
        score = grade.get("score")
        if score is None:
            raise ValidationError(f"Question {grade['question_id']}: score is required")
        # Grades for objective or unknown questions are ignored, not range-checked
        if not _awaits_manual_grading(rows.get(grade["question_id"])):
            continue
        question = questions.get(grade["question_id"])
        if question is not None:
            try:
                validate_points(score, question.points)
            except ValueError as e:
                raise ValidationError(f"Question {question.id}: {e}")
        cleaned.append(grade)
    return cleaned


def apply_manual_grades(
    session: Session,
    attempt_id: int,
    grader: User,
    grades: List[dict],
) -> dict:
    """Store staff scores for subjective answers and finalise the attempt.

    Args:
        session: Database session
        attempt_id: Attempt being graded
        grader: Staff member (or admin) applying the grades
        grades: List of dicts with question_id, score and optional feedback

    Returns:
        Dict with the recomputed totals

    Raises:
        NotFoundError: Attempt does not exist
        PermissionDeniedError: Grader is not assigned to the examination's subject
        ValidationError: A score is missing or outside [0, question points]
        PersistenceError: The write failed and was rolled back
    """
    if grades is None:
        raise ValidationError("grades is required")

    attempt = get_attempt(session, attempt_id)
    examination = session.get(Examination, attempt.examination_id)
    if not examination:
        raise NotFoundError("Examination not found")
    ensure_can_grade(session, grader, examination)

    questions = {
        q.id: q
        for q in session.exec(
            select(ExaminationQuestion).where(
                ExaminationQuestion.examination_id == examination.id
            )
        ).all()
    }
    rows = {row.question_id: row for row in _answer_rows(session, attempt.id)}
    cleaned = _validated_grades(grades, questions, rows)

    now = datetime.utcnow()
    try:
        with atomic(session):
            for grade in cleaned:
                row = rows[grade["question_id"]]
                feedback = grade.get("feedback")
                row.points_awarded = grade["score"]
                row.feedback = sanitize_feedback(feedback) if feedback else None
                row.graded_by = grader.id
                row.graded_at = now
                session.add(row)

            manual_score = sum(
                row.points_awarded or 0
                for row in rows.values()
                if _awaits_manual_grading(row)
            )
            total_score = attempt.auto_graded_score + manual_score
            percentage = compute_percentage(total_score, attempt.max_score)

            attempt.manual_graded_score = manual_score
            attempt.total_score = total_score
            attempt.percentage = percentage
            attempt.is_passed = is_passed(percentage, examination)
            attempt.status = STATUS_COMPLETED
            attempt.graded_by = grader.id
            attempt.graded_at = now
            attempt.updated_at = now
            session.add(attempt)
    except SQLAlchemyError:
        logger.exception("Failed to store manual grades for attempt %s", attempt_id)
        raise PersistenceError()

    logger.info(
        "Manual grades applied to attempt %s by user %s: %s/%s",
        attempt.id,
        grader.id,
        attempt.total_score,
        attempt.max_score,
    )

    return {
        "attempt_id": attempt.id,
        "auto_graded_score": attempt.auto_graded_score,
        "manual_graded_score": attempt.manual_graded_score,
        "total_score": attempt.total_score,
        "max_score": attempt.max_score,
        "percentage": attempt.percentage,
        "is_passed": attempt.is_passed,
        "status": attempt.status,
    }
