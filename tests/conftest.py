import os

# Fast hashing and an in-memory database for the whole test session
os.environ.setdefault("LMS_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LMS_DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from lms_exam.auth_utils import hash_password
from lms_exam.database import create_test_engine, get_session, reset_db, set_engine
from lms_exam.main import app
from lms_exam.models import (
    Examination,
    ExaminationQuestion,
    Subject,
    SubjectStaffAssignment,
    User,
)

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

test_engine = create_test_engine()


@pytest.fixture(autouse=True)
def fresh_db():
    """Give every test an empty schema on the shared in-memory engine."""
    set_engine(test_engine)
    reset_db()
    yield test_engine


@pytest.fixture
def session(fresh_db):
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def client(fresh_db):
    """TestClient whose requests use the test engine."""

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# ENTITY HELPERS
# ============================================================================

PASSWORD = "testpass123"


def make_user(session: Session, name: str, role: str = "student", email: str | None = None) -> User:
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_examination(session: Session, subject_id: int, questions: list, **fields) -> Examination:
    """Create an examination and its questions, in the given order."""
    fields.setdefault("title", "Final Examination")
    fields.setdefault("total_points", 100)
    fields.setdefault("passing_percentage", 50)
    examination = Examination(subject_id=subject_id, **fields)
    session.add(examination)
    session.commit()
    session.refresh(examination)

    for index, question in enumerate(questions):
        question.setdefault("question_text", f"Question {index + 1}?")
        question.setdefault("order_index", index)
        session.add(ExaminationQuestion(examination_id=examination.id, **question))
    session.commit()
    return examination


def question_ids(session: Session, examination: Examination) -> list:
    from lms_exam.services.attempt_service import list_questions

    return [q.id for q in list_questions(session, examination.id)]


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


@pytest.fixture
def subject(session):
    subject = Subject(code="CS301", name="Database Systems")
    session.add(subject)
    session.commit()
    session.refresh(subject)
    return subject


@pytest.fixture
def student(session):
    return make_user(session, "Alice Student")


@pytest.fixture
def other_student(session):
    return make_user(session, "Bob Student")


@pytest.fixture
def staff(session, subject):
    """Staff member assigned to the subject."""
    user = make_user(session, "Dr Carol Staff", role="staff")
    session.add(SubjectStaffAssignment(subject_id=subject.id, staff_id=user.id))
    session.commit()
    return user


@pytest.fixture
def unassigned_staff(session):
    return make_user(session, "Dan Unassigned", role="staff")


@pytest.fixture
def admin(session):
    return make_user(session, "Eve Admin", role="admin")


@pytest.fixture
def objective_exam(session, subject):
    """Two objective questions worth 40 and 60 points."""
    return make_examination(
        session,
        subject.id,
        [
            {"question_type": "single_choice", "points": 40, "correct_answer": "Paris"},
            {"question_type": "true_false", "points": 60, "correct_answer": True},
        ],
    )


@pytest.fixture
def mixed_exam(session, subject):
    """One 30-point objective question and one 70-point subjective question."""
    return make_examination(
        session,
        subject.id,
        [
            {"question_type": "single_choice", "points": 30, "correct_answer": "b"},
            {"question_type": "long_answer", "points": 70},
        ],
    )
