"""
Answer Variants

Every answer is a tagged value aligned with its question's type. Each
shape is its own immutable class, so an answer can never carry fields
that belong to another question type.

    likert              -> LikertAnswer      (int on the 1..5 scale)
    rating              -> RatingAnswer      (int within [min, max])
    text, textarea      -> TextAnswer        (free text)
    multiple_choice,
    dropdown, yes_no    -> ChoiceAnswer      (one of the options)
    checkbox            -> CheckboxAnswer    (tuple of options)
    number              -> NumberAnswer      (int or float within [min, max])
    datetime            -> DateTimeAnswer    (ISO-8601 string)

`value` is None while unanswered (an empty tuple for checkboxes) and
`comment` is None unless the respondent wrote one.
"""

from __future__ import annotations

import math
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from collections.abc import Iterable
from typing import Any, Dict, Optional, Tuple, Type, Union

from formsession.errors import InvalidAnswerError
from formsession.model import Question, QuestionType, TEXT_TYPES

MAX_COMMENT_LENGTH = 500


@dataclass(frozen=True)
class Answer(ABC):
    """
    Base class for all answer shapes.

    Structure only: satisfaction rules live in formsession.validation and
    the wire format lives in formsession.submission.
    """

    value: Any = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class LikertAnswer(Answer):
    value: Optional[int] = None


@dataclass(frozen=True)
class RatingAnswer(Answer):
    value: Optional[int] = None


@dataclass(frozen=True)
class TextAnswer(Answer):
    value: Optional[str] = None


@dataclass(frozen=True)
class ChoiceAnswer(Answer):
    value: Optional[str] = None


@dataclass(frozen=True)
class CheckboxAnswer(Answer):
    value: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NumberAnswer(Answer):
    value: Optional[Union[int, float]] = None


@dataclass(frozen=True)
class DateTimeAnswer(Answer):
    value: Optional[str] = None


ANSWER_TYPES: Dict[QuestionType, Type[Answer]] = {
    QuestionType.LIKERT: LikertAnswer,
    QuestionType.RATING: RatingAnswer,
    QuestionType.TEXT: TextAnswer,
    QuestionType.TEXTAREA: TextAnswer,
    QuestionType.MULTIPLE_CHOICE: ChoiceAnswer,
    QuestionType.DROPDOWN: ChoiceAnswer,
    QuestionType.YES_NO: ChoiceAnswer,
    QuestionType.CHECKBOX: CheckboxAnswer,
    QuestionType.NUMBER: NumberAnswer,
    QuestionType.DATETIME: DateTimeAnswer,
}


def answer_type_for(question: Question) -> Type[Answer]:
    return ANSWER_TYPES[question.type]


def empty_answer(question: Question) -> Answer:
    """Seed an unanswered, correctly-typed answer for a question."""
    return answer_type_for(question)()


def is_compatible(question: Question, answer: Answer) -> bool:
    """True when the answer has the shape required by the question type."""
    return type(answer) is answer_type_for(question)


def _reject(question: Question, reason: str) -> InvalidAnswerError:
    return InvalidAnswerError(f"Question {question.id!r} ({question.type.value}): {reason}")


def _as_number(question: Question, value: Any) -> Union[int, float]:
    if isinstance(value, bool):
        raise _reject(question, f"expected a number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                raise _reject(question, f"expected a number, got {value!r}") from None
    if not isinstance(value, (int, float)) or (isinstance(value, float) and not math.isfinite(value)):
        raise _reject(question, f"expected a number, got {value!r}")
    return value


def _as_scale_point(question: Question, value: Any) -> int:
    number = _as_number(question, value)
    if isinstance(number, float):
        if not number.is_integer():
            raise _reject(question, f"expected a whole number, got {value!r}")
        number = int(number)
    low, high = question.scale_bounds()
    if not low <= number <= high:
        raise _reject(question, f"{number} is outside {low}..{high}")
    return number


def _check_option(question: Question, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise _reject(question, f"expected an option, got {value!r}")
    if question.options and value not in question.options:
        raise _reject(question, f"{value!r} is not one of {list(question.options)}")
    return value


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 date or instant, accepting a trailing 'Z'."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def coerce_value(question: Question, value: Any) -> Any:
    """
    Check and normalise a candidate value for a question.

    None clears the answer. Numeric strings are accepted for numeric
    types, checkbox selections are de-duplicated and kept in option order.

    Raises:
        InvalidAnswerError: If the value cannot belong to this question
    """
    qtype = question.type

    if qtype is QuestionType.CHECKBOX:
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise _reject(question, f"expected a collection of options, got {value!r}")
        chosen = [_check_option(question, v) for v in value]
        if question.options:
            return tuple(o for o in question.options if o in chosen)
        return tuple(dict.fromkeys(chosen))

    if value is None:
        return None

    if qtype in (QuestionType.LIKERT, QuestionType.RATING):
        return _as_scale_point(question, value)

    if qtype in TEXT_TYPES:
        if not isinstance(value, str):
            raise _reject(question, f"expected text, got {value!r}")
        limit = question.features.char_limit
        if limit and len(value) > limit:
            raise _reject(question, f"text exceeds {limit} characters")
        return value

    if qtype in (QuestionType.MULTIPLE_CHOICE, QuestionType.DROPDOWN, QuestionType.YES_NO):
        return _check_option(question, value)

    if qtype is QuestionType.NUMBER:
        number = _as_number(question, value)
        low, high = question.features.min, question.features.max
        if low is not None and number < low:
            raise _reject(question, f"{number} is below the minimum {low}")
        if high is not None and number > high:
            raise _reject(question, f"{number} is above the maximum {high}")
        return number

    if qtype is QuestionType.DATETIME:
        if not isinstance(value, str):
            raise _reject(question, f"expected an ISO-8601 string, got {value!r}")
        try:
            parse_iso_datetime(value)
        except ValueError:
            raise _reject(question, f"{value!r} is not an ISO-8601 date/time") from None
        return value.strip()

    raise TypeError(f"Unsupported question type: {qtype}")


def coerce_comment(question: Question, comment: Optional[str],
                   max_length: int = MAX_COMMENT_LENGTH) -> Optional[str]:
    """
    Check a comment for a question. Empty comments are stored as absent.

    Raises:
        InvalidAnswerError: If comments are not enabled for the question
            or the comment is too long
    """
    if comment is None or comment == "":
        return None
    if not isinstance(comment, str):
        raise _reject(question, f"expected comment text, got {comment!r}")
    if not question.accepts_comment:
        raise _reject(question, "comments are not enabled")
    if len(comment) > max_length:
        raise _reject(question, f"comment exceeds {max_length} characters")
    return comment


def has_value(answer: Answer) -> bool:
    """Presence of a respondent-entered value, independent of question type."""
    value = answer.value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, tuple):
        return len(value) > 0
    return True
