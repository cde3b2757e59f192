"""Score arithmetic shared by submission and manual grading."""

from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable

from lms_exam.config import get_settings
from lms_exam.models import Examination
from lms_exam.services.objective_grader import GradedAnswer


@dataclass(frozen=True)
class ScoreTally:
    auto_score: float = 0
    auto_max_score: float = 0
    manual_max_score: float = 0
    auto_count: int = 0
    manual_count: int = 0

    def add(self, graded: GradedAnswer) -> "ScoreTally":
        if graded.auto_graded:
            return replace(
                self,
                auto_score=self.auto_score + (graded.points_awarded or 0),
                auto_max_score=self.auto_max_score + graded.max_points,
                auto_count=self.auto_count + 1,
            )
        return replace(
            self,
            manual_max_score=self.manual_max_score + graded.max_points,
            manual_count=self.manual_count + 1,
        )


def tally(graded_answers: Iterable[GradedAnswer]) -> ScoreTally:
    return reduce(ScoreTally.add, graded_answers, ScoreTally())


def examination_max_score(examination: Examination) -> float:
    if examination.total_points is None:
        return get_settings().default_total_points
    return examination.total_points


def passing_threshold(examination: Examination) -> float:
    """Passing percentage, falling back to the absolute passing score, then the default."""
    if examination.passing_percentage is not None:
        return examination.passing_percentage
    if examination.passing_score is not None:
        return float(examination.passing_score)
    return get_settings().default_passing_percentage


def compute_percentage(total_score: float, max_score: float) -> float:
    if not max_score:
        return 0.0
    return total_score / max_score * 100


def is_passed(percentage: float, examination: Examination) -> bool:
    return percentage >= passing_threshold(examination)
