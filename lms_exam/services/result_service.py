"""Read views of attempts: the student's review page and the staff grading lists."""

from typing import Any, List, Optional

from sqlmodel import Session, select

from lms_exam.errors import NotFoundError
from lms_exam.models import (
    STATUS_AUTO_GRADED,
    Examination,
    ExaminationAttempt,
    ExaminationAttemptAnswer,
    ExaminationQuestion,
    User,
)
from lms_exam.services.access import ensure_can_grade, gradable_subject_ids
from lms_exam.services.answer_normalizer import decode_correct_answer
from lms_exam.services.attempt_service import find_attempt
from lms_exam.services.grading_service import get_attempt


def format_correct_answer(correct_answer: Any, options: Any = None) -> str:
    """Human-readable correct answer, decoded the same way the grader decodes it."""
    return decode_correct_answer(correct_answer, options).display


def _summary(attempt: ExaminationAttempt, examination: Optional[Examination]) -> dict:
    return {
        "attempt_id": attempt.id,
        "examination_id": attempt.examination_id,
        "examination_title": examination.title if examination else None,
        "user_id": attempt.user_id,
        "total_score": attempt.total_score,
        "max_score": attempt.max_score,
        "percentage": attempt.percentage,
        "is_passed": attempt.is_passed,
        "status": attempt.status,
        "started_at": attempt.started_at,
        "submitted_at": attempt.submitted_at,
        "time_taken": attempt.time_taken,
    }


def _answer_views(session: Session, attempt: ExaminationAttempt) -> List[dict]:
    stmt = (
        select(ExaminationAttemptAnswer, ExaminationQuestion)
        .join(ExaminationQuestion, ExaminationAttemptAnswer.question_id == ExaminationQuestion.id)
        .where(ExaminationAttemptAnswer.attempt_id == attempt.id)
        .order_by(ExaminationQuestion.order_index, ExaminationQuestion.id)
    )
    rows = session.exec(stmt).all()
    if rows:
        return [
            {
                "question_id": question.id,
                "question_text": question.question_text,
                "question_type": question.question_type,
                "student_answer": answer.answer_text or "",
                "correct_answer": format_correct_answer(question.correct_answer, question.options),
                "is_correct": answer.is_correct,
                "points_awarded": answer.points_awarded,
                "max_points": question.points,
                "feedback": answer.feedback,
            }
            for answer, question in rows
        ]
    return _snapshot_views(session, attempt)


def _snapshot_views(session: Session, attempt: ExaminationAttempt) -> List[dict]:
    # Attempts without answer rows fall back to the submission snapshot
    pairs = []
    for record in attempt.answers or []:
        question = session.get(ExaminationQuestion, record.get("question_id"))
        if question:
            pairs.append((question, record))
    pairs.sort(key=lambda pair: (pair[0].order_index, pair[0].id))
    return [
        {
            "question_id": question.id,
            "question_text": question.question_text,
            "question_type": question.question_type,
            "student_answer": record.get("answer") or "",
            "correct_answer": format_correct_answer(question.correct_answer, question.options),
            "is_correct": record.get("is_correct"),
            "points_awarded": record.get("points_awarded"),
            "max_points": question.points,
            "feedback": None,
        }
        for question, record in pairs
    ]


def get_results_for_review(session: Session, examination_id: int, user_id: int) -> Optional[dict]:
    """Student's own result, with per-question detail when the examination allows it.

    Returns None when the student has no attempt. Scores are always included;
    the answer list is empty when both results and review are disabled.
    """
    attempt = find_attempt(session, examination_id, user_id)
    if not attempt:
        return None

    examination = session.get(Examination, examination_id)
    result = _summary(attempt, examination)

    if examination and not examination.show_results and not examination.allow_review:
        result["answers"] = []
    else:
        result["answers"] = _answer_views(session, attempt)
    return result


def get_attempt_status(session: Session, examination_id: int, user_id: int) -> dict:
    attempt = find_attempt(session, examination_id, user_id)
    if not attempt:
        return {"has_attempt": False, "attempt": None}
    return {
        "has_attempt": True,
        "attempt": {
            "attempt_id": attempt.id,
            "examination_id": attempt.examination_id,
            "user_id": attempt.user_id,
            "total_score": attempt.total_score,
            "percentage": attempt.percentage,
            "is_passed": attempt.is_passed,
            "status": attempt.status,
            "submitted_at": attempt.submitted_at,
        },
    }


def _attempts_for_grader(session: Session, grader: User, status: Optional[str] = None):
    stmt = (
        select(ExaminationAttempt, Examination, User)
        .join(Examination, ExaminationAttempt.examination_id == Examination.id)
        .join(User, ExaminationAttempt.user_id == User.id)
        .where(Examination.is_active == True)  # noqa: E712
        .order_by(ExaminationAttempt.submitted_at.desc(), ExaminationAttempt.id.desc())
    )
    subject_ids = gradable_subject_ids(session, grader)
    if subject_ids is not None:
        stmt = stmt.where(Examination.subject_id.in_(subject_ids))
    if status:
        stmt = stmt.where(ExaminationAttempt.status == status)
    return session.exec(stmt).all()


def _staff_view(attempt: ExaminationAttempt, examination: Examination, student: User) -> dict:
    view = _summary(attempt, examination)
    view.update(
        {
            "student_name": student.name,
            "student_email": student.email,
            "auto_graded_score": attempt.auto_graded_score,
            "manual_graded_score": attempt.manual_graded_score,
            "manual_graded_max_score": attempt.manual_graded_max_score,
        }
    )
    return view


def list_pending_attempts(session: Session, grader: User) -> List[dict]:
    """Attempts still waiting for subjective grading, newest first."""
    return [
        _staff_view(attempt, examination, student)
        for attempt, examination, student in _attempts_for_grader(
            session, grader, status=STATUS_AUTO_GRADED
        )
    ]


def list_attempts_for_staff(session: Session, grader: User) -> List[dict]:
    """Every attempt the grader may see, with unredacted answers."""
    views = []
    for attempt, examination, student in _attempts_for_grader(session, grader):
        view = _staff_view(attempt, examination, student)
        view["answers"] = _answer_views(session, attempt)
        views.append(view)
    return views


def get_attempt_detail(session: Session, attempt_id: int, grader: User) -> dict:
    attempt = get_attempt(session, attempt_id)
    examination = session.get(Examination, attempt.examination_id)
    if not examination:
        raise NotFoundError("Examination not found")
    ensure_can_grade(session, grader, examination)
    student = session.get(User, attempt.user_id)
    if not student:
        raise NotFoundError("Student not found")
    view = _staff_view(attempt, examination, student)
    view["answers"] = _answer_views(session, attempt)
    return view
