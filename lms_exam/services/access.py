"""Which graders may grade which examinations."""

from typing import List, Optional

from sqlmodel import Session, select

from lms_exam.errors import PermissionDeniedError
from lms_exam.models import Examination, SubjectStaffAssignment, User

GRADER_ROLES = ["admin", "hod", "staff"]


def gradable_subject_ids(session: Session, grader: User) -> Optional[List[int]]:
    """Subject ids the grader is assigned to; ``None`` means every subject."""
    if grader.role == "admin":
        return None
    stmt = select(SubjectStaffAssignment.subject_id).where(
        (SubjectStaffAssignment.staff_id == grader.id)
        & (SubjectStaffAssignment.is_active == True)  # noqa: E712
    )
    return list(session.exec(stmt).all())


def ensure_can_grade(session: Session, grader: User, examination: Examination) -> None:
    subject_ids = gradable_subject_ids(session, grader)
    if subject_ids is None:
        return
    if examination.subject_id not in subject_ids:
        raise PermissionDeniedError()
