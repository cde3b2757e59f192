"""Auto-grading of objective questions against their decoded correct answers."""

import logging
from dataclasses import dataclass
from typing import Optional

from lms_exam.models import MULTIPLE_CHOICE, OBJECTIVE_QUESTION_TYPES, ExaminationQuestion
from lms_exam.services.answer_normalizer import (
    CorrectAnswer,
    decode_correct_answer,
    student_tokens,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradableQuestion:
    """Question with its correct answer decoded once, ready for grading."""

    id: int
    examination_id: int
    question_type: str
    points: float
    correct: CorrectAnswer

    @property
    def auto_gradable(self) -> bool:
        return self.question_type in OBJECTIVE_QUESTION_TYPES and bool(self.correct.tokens)

    @property
    def is_multi_select(self) -> bool:
        return self.question_type == MULTIPLE_CHOICE and len(self.correct.tokens) > 1


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    answer_text: Optional[str]
    is_correct: Optional[bool]
    points_awarded: Optional[float]
    max_points: float
    auto_graded: bool

    def as_record(self) -> dict:
        return {
            "question_id": self.question_id,
            "answer": self.answer_text,
            "is_correct": self.is_correct,
            "points_awarded": self.points_awarded,
        }


def load_question(question: ExaminationQuestion) -> GradableQuestion:
    return GradableQuestion(
        id=question.id,
        examination_id=question.examination_id,
        question_type=question.question_type,
        points=question.points or 0,
        correct=decode_correct_answer(question.correct_answer, question.options),
    )


def is_answer_correct(question: GradableQuestion, answer_text: Optional[str]) -> bool:
    """Compare a student answer with the correct tokens.

    Multi-select needs exact set equality. Every other case compares the
    first student token with the first correct token only.
    """
    given = student_tokens(answer_text)
    expected = question.correct.tokens

    if question.is_multi_select:
        return sorted(given) == sorted(expected)

    first_given = given[0] if given else ""
    return first_given == expected[0]


def grade_answer(question: GradableQuestion, answer_text: Optional[str]) -> GradedAnswer:
    """Grade one answer; non-auto-gradable questions come back ungraded."""
    if not question.auto_gradable:
        if question.question_type in OBJECTIVE_QUESTION_TYPES:
            logger.warning(
                "Question %s of examination %s has no usable correct answer; "
                "routing it to manual grading",
                question.id,
                question.examination_id,
            )
        return GradedAnswer(
            question_id=question.id,
            answer_text=answer_text,
            is_correct=None,
            points_awarded=None,
            max_points=question.points,
            auto_graded=False,
        )

    correct = is_answer_correct(question, answer_text)
    return GradedAnswer(
        question_id=question.id,
        answer_text=answer_text,
        is_correct=correct,
        points_awarded=question.points if correct else 0,
        max_points=question.points,
        auto_graded=True,
    )
