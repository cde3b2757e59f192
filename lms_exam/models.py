"""SQLModel tables for examinations, attempts and their answer rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

# Attempt statuses
STATUS_AUTO_GRADED = "auto_graded"  # provisional score, subjective questions pending
STATUS_COMPLETED = "completed"

# Question types
SINGLE_CHOICE = "single_choice"
MULTIPLE_CHOICE = "multiple_choice"
TRUE_FALSE = "true_false"
SHORT_ANSWER = "short_answer"
LONG_ANSWER = "long_answer"
SUBJECTIVE = "subjective"

OBJECTIVE_QUESTION_TYPES = (SINGLE_CHOICE, MULTIPLE_CHOICE, TRUE_FALSE)


class User(SQLModel, table=True):
    """Application user (admin / hod / staff / student)."""

    __table_args__ = (UniqueConstraint("email", name="uq_user_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    password_hash: str
    role: str = Field(default="student")
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Subject(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("code", name="uq_subject_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str
    name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class SubjectStaffAssignment(SQLModel, table=True):
    """Staff member allowed to teach and grade a subject."""

    __table_args__ = (
        UniqueConstraint("subject_id", "staff_id", name="uq_subject_staff"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subject.id")
    staff_id: int = Field(foreign_key="user.id")
    is_active: bool = Field(default=True)
    assigned_at: datetime = Field(default_factory=datetime.utcnow)


class Examination(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subject.id")
    title: str
    instructions: Optional[str] = None
    total_points: Optional[int] = None
    # Either may be set; the percentage wins, the absolute score is read as a percentage
    passing_percentage: Optional[float] = None
    passing_score: Optional[int] = None
    duration_minutes: int = Field(default=60)
    show_results: bool = Field(default=True)
    allow_review: bool = Field(default=True)
    is_active: bool = Field(default=True)
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ExaminationQuestion(SQLModel, table=True):
    """A question of an examination.

    ``correct_answer`` is stored as authored: a string (possibly JSON-encoded,
    such as a serialized array), an array, a boolean, or null when the
    ``options`` list carries the ``isCorrect`` flags instead.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    examination_id: int = Field(foreign_key="examination.id", index=True)
    question_text: str
    question_type: str
    order_index: int = Field(default=0)
    points: int = Field(default=1)
    options: Optional[Any] = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    correct_answer: Optional[Any] = Field(
        default=None, sa_column=Column(JSON(none_as_null=True))
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ExaminationAttempt(SQLModel, table=True):
    """A student's single submission for an examination."""

    # One attempt per student per examination
    __table_args__ = (
        UniqueConstraint("examination_id", "user_id", name="uq_attempt_examination_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    examination_id: int = Field(foreign_key="examination.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    submitted_at: Optional[datetime] = None
    time_taken: int = Field(default=0)  # seconds

    auto_graded_score: float = Field(default=0)
    auto_graded_max_score: float = Field(default=0)
    manual_graded_score: float = Field(default=0)
    manual_graded_max_score: float = Field(default=0)
    total_score: float = Field(default=0)
    max_score: float = Field(default=0)
    percentage: float = Field(default=0)
    is_passed: bool = Field(default=False)
    status: str = Field(default=STATUS_AUTO_GRADED)

    graded_by: Optional[int] = Field(default=None, foreign_key="user.id")
    graded_at: Optional[datetime] = None

    # Submission-time snapshot of every answer record
    answers: Optional[Any] = Field(default=None, sa_column=Column(JSON(none_as_null=True)))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ExaminationAttemptAnswer(SQLModel, table=True):
    """Answer to one question within an attempt.

    ``answer_text`` never changes after creation; only the grading fields do.
    """

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    attempt_id: int = Field(foreign_key="examinationattempt.id", index=True)
    question_id: int = Field(foreign_key="examinationquestion.id")
    answer_text: Optional[str] = None
    is_correct: Optional[bool] = None  # None while pending manual grading
    points_awarded: Optional[float] = None
    feedback: Optional[str] = None
    graded_by: Optional[int] = Field(default=None, foreign_key="user.id")
    graded_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
