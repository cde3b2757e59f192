"""
Examination submission: grade objective answers and store the attempt.

One attempt is allowed per (examination, student). The attempt row and its
answer rows are written in a single transaction.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from lms_exam.database import atomic
from lms_exam.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from lms_exam.models import (
    STATUS_AUTO_GRADED,
    STATUS_COMPLETED,
    Examination,
    ExaminationAttempt,
    ExaminationAttemptAnswer,
    ExaminationQuestion,
)
from lms_exam.services.objective_grader import grade_answer, load_question
from lms_exam.services.scoring import (
    compute_percentage,
    examination_max_score,
    is_passed,
    tally,
)

logger = logging.getLogger(__name__)


def get_active_examination(session: Session, examination_id: int) -> Examination:
    examination = session.get(Examination, examination_id)
    if not examination or not examination.is_active:
        raise NotFoundError("Examination not found")
    return examination


def find_attempt(session: Session, examination_id: int, user_id: int) -> Optional[ExaminationAttempt]:
    stmt = select(ExaminationAttempt).where(
        (ExaminationAttempt.examination_id == examination_id)
        & (ExaminationAttempt.user_id == user_id)
    )
    return session.exec(stmt).first()


def list_questions(session: Session, examination_id: int) -> List[ExaminationQuestion]:
    stmt = (
        select(ExaminationQuestion)
        .where(ExaminationQuestion.examination_id == examination_id)
        .order_by(ExaminationQuestion.order_index, ExaminationQuestion.id)
    )
    return list(session.exec(stmt).all())


def _answer_text(value: Any) -> Optional[str]:
    # Multi-select answers may arrive as a list; store them comma-separated
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _submitted_answers(answers: List[dict]) -> dict:
    submitted = {}
    for answer in answers:
        if not isinstance(answer, dict) or answer.get("question_id") is None:
            raise ValidationError("Each answer needs a question_id")
        # last answer for a question wins
        submitted[answer["question_id"]] = _answer_text(answer.get("answer"))
    return submitted


def submit_attempt(
    session: Session,
    examination_id: int,
    user_id: int,
    answers: List[dict],
    time_spent_seconds: int = 0,
) -> dict:
    """Grade and store a student's answers for an examination.

    Args:
        session: Database session
        examination_id: Examination being answered
        user_id: Student submitting
        answers: List of dicts with question_id and answer
        time_spent_seconds: Elapsed time reported by the client

    Returns:
        Dict with the attempt id, provisional score and grading counts

    Raises:
        NotFoundError: Examination missing or inactive
        ConflictError: Student already has an attempt for this examination
        ValidationError: Malformed answers or an examination without questions
        PersistenceError: The transactional write failed and was rolled back
    """
    if answers is None:
        raise ValidationError("answers is required")
    if time_spent_seconds is None or time_spent_seconds < 0:
        raise ValidationError("time_spent_seconds must be zero or more")

    examination = get_active_examination(session, examination_id)

    if find_attempt(session, examination_id, user_id):
        logger.warning(
            "Rejected second attempt for examination %s by user %s", examination_id, user_id
        )
        raise ConflictError()

    questions = list_questions(session, examination_id)
    if not questions:
        raise ValidationError("Examination has no questions")

    submitted = _submitted_answers(answers)
    known_ids = {q.id for q in questions}
    dropped = [qid for qid in submitted if qid not in known_ids]
    if dropped:
        logger.debug("Ignoring answers for unknown questions %s", dropped)

    graded = [grade_answer(load_question(q), submitted.get(q.id)) for q in questions]
    scores = tally(graded)

    total_score = scores.auto_score
    max_score = examination_max_score(examination)
    percentage = compute_percentage(total_score, max_score)
    passed = is_passed(percentage, examination)
    status = STATUS_COMPLETED if scores.manual_count == 0 else STATUS_AUTO_GRADED

    submitted_at = datetime.utcnow()
    attempt = ExaminationAttempt(
        examination_id=examination_id,
        user_id=user_id,
        started_at=submitted_at - timedelta(seconds=time_spent_seconds),
        submitted_at=submitted_at,
        time_taken=time_spent_seconds,
        auto_graded_score=scores.auto_score,
        auto_graded_max_score=scores.auto_max_score,
        manual_graded_score=0,
        manual_graded_max_score=scores.manual_max_score,
        total_score=total_score,
        max_score=max_score,
        percentage=percentage,
        is_passed=passed,
        status=status,
        answers=[g.as_record() for g in graded],
    )

    try:
        with atomic(session):
            session.add(attempt)
            session.flush()
            for g in graded:
                session.add(
                    ExaminationAttemptAnswer(
                        attempt_id=attempt.id,
                        question_id=g.question_id,
                        answer_text=g.answer_text,
                        is_correct=g.is_correct,
                        points_awarded=g.points_awarded,
                    )
                )
    except IntegrityError:
        # A concurrent submission committed first
        if find_attempt(session, examination_id, user_id):
            logger.warning(
                "Duplicate attempt for examination %s by user %s blocked by constraint",
                examination_id,
                user_id,
            )
            raise ConflictError()
        logger.exception("Failed to store attempt for examination %s", examination_id)
        raise PersistenceError()
    except SQLAlchemyError:
        logger.exception("Failed to store attempt for examination %s", examination_id)
        raise PersistenceError()

    logger.info(
        "Attempt %s submitted for examination %s by user %s: %s/%s (%s)",
        attempt.id,
        examination_id,
        user_id,
        total_score,
        max_score,
        status,
    )

    return {
        "attempt_id": attempt.id,
        "total_score": total_score,
        "max_score": max_score,
        "percentage": percentage,
        "is_passed": passed,
        "status": status,
        "auto_graded_score": scores.auto_score,
        "auto_graded_max_score": scores.auto_max_score,
        "manual_graded_max_score": scores.manual_max_score,
        "auto_graded_question_count": scores.auto_count,
        "manual_grading_required_count": scores.manual_count,
        "message": (
            "Some questions require manual grading."
            if scores.manual_count
            else "Examination submitted and graded successfully."
        ),
    }
