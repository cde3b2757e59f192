"""
Canonical forms for correct answers and student answers.

Authored questions store their correct answer in one of several shapes. They are
decoded once into a ``CorrectAnswer`` variant; every variant exposes the same
token set (trimmed, lower-cased strings) that the grader compares against.
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union


def _token(value: Any) -> str:
    return str(value).strip().lower()


def _tokens(values: Iterable[Any]) -> Tuple[str, ...]:
    return tuple(t for t in (_token(v) for v in values) if t)


@dataclass(frozen=True)
class LiteralAnswer:
    """A single correct string."""

    value: str

    @property
    def tokens(self) -> Tuple[str, ...]:
        return _tokens([self.value])

    @property
    def display(self) -> str:
        return self.value


@dataclass(frozen=True)
class SetAnswer:
    """Several correct strings (an array, or a string holding a serialized array)."""

    values: Tuple[str, ...]

    @property
    def tokens(self) -> Tuple[str, ...]:
        return _tokens(self.values)

    @property
    def display(self) -> str:
        return ", ".join(self.values)


@dataclass(frozen=True)
class BooleanAnswer:
    value: bool

    @property
    def tokens(self) -> Tuple[str, ...]:
        return ("true",) if self.value else ("false",)

    @property
    def display(self) -> str:
        return "True" if self.value else "False"


@dataclass(frozen=True)
class DerivedFromOptions:
    """Correct answers taken from the options flagged ``isCorrect``.

    Empty when the question has no usable options either; such a question
    cannot be auto-graded.
    """

    values: Tuple[str, ...] = ()

    @property
    def tokens(self) -> Tuple[str, ...]:
        return _tokens(self.values)

    @property
    def display(self) -> str:
        return ", ".join(self.values)


CorrectAnswer = Union[LiteralAnswer, SetAnswer, BooleanAnswer, DerivedFromOptions]


def _parse_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return None


def parse_options(options: Any) -> list:
    """Return the options as a list, decoding a JSON string if needed."""
    if isinstance(options, str):
        options = _parse_json(options)
    if isinstance(options, (list, tuple)):
        return list(options)
    return []


def _is_correct_option(option: dict) -> bool:
    flag = option.get("isCorrect", option.get("is_correct"))
    return flag is True


def correct_option_values(options: Any) -> Tuple[str, ...]:
    """Display text (or value) of every option flagged correct."""
    values = []
    for option in parse_options(options):
        if isinstance(option, dict) and _is_correct_option(option):
            values.append(str(option.get("text") or option.get("value") or ""))
    return tuple(values)


def decode_correct_answer(correct_answer: Any, options: Any = None) -> CorrectAnswer:
    """Decode a stored correct answer into its ``CorrectAnswer`` variant.

    A string is JSON-decoded first and dispatched on the decoded value when
    that is an array, a string or a boolean; otherwise the authored text is
    kept as a literal. Then: array, string, boolean, and finally the options
    list. Empty arrays and blank strings are not usable and fall through to
    the options.
    """
    if isinstance(correct_answer, str):
        parsed = _parse_json(correct_answer)
        # Numbers and null stay as the authored text
        if isinstance(parsed, (list, str, bool)):
            correct_answer = parsed

    if isinstance(correct_answer, (list, tuple)):
        if _tokens(correct_answer):
            return SetAnswer(tuple(str(v) for v in correct_answer))
    elif isinstance(correct_answer, str):
        if correct_answer.strip():
            return LiteralAnswer(correct_answer)
    elif isinstance(correct_answer, bool):
        return BooleanAnswer(correct_answer)

    return DerivedFromOptions(correct_option_values(options))


def student_tokens(answer: Optional[str]) -> Tuple[str, ...]:
    """Split a raw student answer on commas into canonical tokens."""
    if not answer:
        return ()
    return _tokens(answer.split(","))
