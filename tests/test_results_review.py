"""Tests for the student result view and the staff attempt views."""

import pytest
from sqlmodel import select

from conftest import make_examination, question_ids
from lms_exam.errors import PermissionDeniedError
from lms_exam.models import ExaminationAttemptAnswer
from lms_exam.services.attempt_service import submit_attempt
from lms_exam.services.grading_service import apply_manual_grades
from lms_exam.services.result_service import (
    format_correct_answer,
    get_attempt_detail,
    get_attempt_status,
    get_results_for_review,
    list_attempts_for_staff,
    list_pending_attempts,
)


class TestFormatCorrectAnswer:
    def test_string_passes_through(self):
        assert format_correct_answer("Paris") == "Paris"

    def test_boolean(self):
        assert format_correct_answer(True) == "True"
        assert format_correct_answer(False) == "False"

    def test_array_joined(self):
        assert format_correct_answer(["a", "b"]) == "a, b"
        assert format_correct_answer('["x", "y"]') == "x, y"

    def test_json_encoded_string_is_decoded(self):
        assert format_correct_answer('"B"') == "B"
        assert format_correct_answer("true") == "True"
        assert format_correct_answer("42") == "42"

    def test_display_matches_grading_for_encoded_answer(self, session, subject, student):
        exam = make_examination(
            session,
            subject.id,
            [{"question_type": "single_choice", "points": 10, "correct_answer": '"B"'}],
            total_points=10,
        )
        (qid,) = question_ids(session, exam)
        submit_attempt(session, exam.id, student.id, [{"question_id": qid, "answer": "B"}])

        (answer,) = get_results_for_review(session, exam.id, student.id)["answers"]
        assert answer["correct_answer"] == "B"
        assert answer["student_answer"] == "B"
        assert answer["is_correct"] is True
        assert answer["points_awarded"] == 10

    def test_missing_answer_uses_flagged_options(self):
        options = [{"text": "A", "isCorrect": True}, {"text": "B", "isCorrect": False}]
        assert format_correct_answer(None, options) == "A"
        assert format_correct_answer(None) == ""


class TestResultsForReview:
    def test_no_attempt_returns_none(self, session, objective_exam, student):
        assert get_results_for_review(session, objective_exam.id, student.id) is None

    def test_answers_in_question_order_with_display_answers(self, session, subject, student):
        exam = make_examination(
            session,
            subject.id,
            [
                {"question_type": "true_false", "points": 50, "correct_answer": True, "order_index": 2},
                {"question_type": "multiple_choice", "points": 50, "correct_answer": ["a", "b"], "order_index": 1},
            ],
        )
        first, second = question_ids(session, exam)  # ordered by order_index
        submit_attempt(
            session,
            exam.id,
            student.id,
            [{"question_id": first, "answer": "a,b"}, {"question_id": second, "answer": "false"}],
        )

        result = get_results_for_review(session, exam.id, student.id)
        assert result["total_score"] == 50
        assert [a["question_id"] for a in result["answers"]] == [first, second]
        assert result["answers"][0]["correct_answer"] == "a, b"
        assert result["answers"][0]["is_correct"] is True
        assert result["answers"][1]["correct_answer"] == "True"
        assert result["answers"][1]["student_answer"] == "false"
        assert result["answers"][1]["max_points"] == 50

    def test_hidden_when_results_and_review_disabled(self, session, subject, student):
        exam = make_examination(
            session,
            subject.id,
            [{"question_type": "single_choice", "points": 100, "correct_answer": "a"}],
            show_results=False,
            allow_review=False,
        )
        (qid,) = question_ids(session, exam)
        submit_attempt(session, exam.id, student.id, [{"question_id": qid, "answer": "a"}])

        result = get_results_for_review(session, exam.id, student.id)
        assert result["total_score"] == 100
        assert result["percentage"] == pytest.approx(100.0)
        assert result["is_passed"] is True
        assert result["answers"] == []

    def test_shown_when_only_review_allowed(self, session, subject, student):
        exam = make_examination(
            session,
            subject.id,
            [{"question_type": "single_choice", "points": 100, "correct_answer": "a"}],
            show_results=False,
            allow_review=True,
        )
        (qid,) = question_ids(session, exam)
        submit_attempt(session, exam.id, student.id, [{"question_id": qid, "answer": "a"}])
        assert len(get_results_for_review(session, exam.id, student.id)["answers"]) == 1

    def test_feedback_visible_after_grading(self, session, mixed_exam, student, staff):
        _, q70 = question_ids(session, mixed_exam)
        submitted = submit_attempt(
            session, mixed_exam.id, student.id, [{"question_id": q70, "answer": "Essay"}]
        )
        apply_manual_grades(
            session, submitted["attempt_id"], staff, [{"question_id": q70, "score": 50, "feedback": "Well argued"}]
        )

        result = get_results_for_review(session, mixed_exam.id, student.id)
        assert result["status"] == "completed"
        essay = result["answers"][1]
        assert essay["feedback"] == "Well argued"
        assert essay["points_awarded"] == 50

    def test_snapshot_used_when_answer_rows_missing(self, session, objective_exam, student):
        q40, _ = question_ids(session, objective_exam)
        submitted = submit_attempt(
            session, objective_exam.id, student.id, [{"question_id": q40, "answer": "paris"}]
        )
        for row in session.exec(select(ExaminationAttemptAnswer)).all():
            session.delete(row)
        session.commit()

        result = get_results_for_review(session, objective_exam.id, student.id)
        assert result["attempt_id"] == submitted["attempt_id"]
        assert result["answers"][0]["student_answer"] == "paris"
        assert result["answers"][0]["is_correct"] is True


class TestAttemptStatus:
    def test_without_attempt(self, session, objective_exam, student):
        assert get_attempt_status(session, objective_exam.id, student.id) == {
            "has_attempt": False,
            "attempt": None,
        }

    def test_with_attempt(self, session, objective_exam, student):
        submit_attempt(session, objective_exam.id, student.id, [])
        status = get_attempt_status(session, objective_exam.id, student.id)
        assert status["has_attempt"] is True
        assert status["attempt"]["status"] == "completed"
        assert status["attempt"]["total_score"] == 0


class TestStaffViews:
    def test_pending_lists_only_auto_graded_attempts(
        self, session, mixed_exam, objective_exam, student, other_student, staff
    ):
        pending = submit_attempt(session, mixed_exam.id, student.id, [])
        submit_attempt(session, objective_exam.id, other_student.id, [])

        listed = list_pending_attempts(session, staff)
        assert [a["attempt_id"] for a in listed] == [pending["attempt_id"]]
        assert listed[0]["student_name"] == "Alice Student"
        assert listed[0]["manual_graded_max_score"] == 70

    def test_unassigned_staff_sees_nothing(self, session, mixed_exam, student, unassigned_staff):
        submit_attempt(session, mixed_exam.id, student.id, [])
        assert list_pending_attempts(session, unassigned_staff) == []
        assert list_attempts_for_staff(session, unassigned_staff) == []

    def test_admin_sees_every_attempt(self, session, mixed_exam, objective_exam, student, admin):
        submit_attempt(session, mixed_exam.id, student.id, [])
        submit_attempt(session, objective_exam.id, student.id, [])
        attempts = list_attempts_for_staff(session, admin)
        assert len(attempts) == 2
        assert all(len(a["answers"]) == 2 for a in attempts)

    def test_detail_shows_correct_answers(self, session, objective_exam, student, staff):
        submitted = submit_attempt(session, objective_exam.id, student.id, [])
        detail = get_attempt_detail(session, submitted["attempt_id"], staff)
        assert detail["student_email"] == "alice.student@example.com"
        assert [a["correct_answer"] for a in detail["answers"]] == ["Paris", "True"]

    def test_detail_requires_assignment(self, session, objective_exam, student, unassigned_staff):
        submitted = submit_attempt(session, objective_exam.id, student.id, [])
        with pytest.raises(PermissionDeniedError):
            get_attempt_detail(session, submitted["attempt_id"], unassigned_staff)
