"""
Tests for answer variants and value coercion.
"""

import pytest
from formsession.answers import (
    CheckboxAnswer,
    ChoiceAnswer,
    DateTimeAnswer,
    LikertAnswer,
    NumberAnswer,
    RatingAnswer,
    TextAnswer,
    coerce_comment,
    coerce_value,
    empty_answer,
    has_value,
    is_compatible,
)
from formsession.errors import InvalidAnswerError
from formsession.model import Question, QuestionFeatures, QuestionType


def q(qtype: QuestionType, **features) -> Question:
    return Question(id="q", title="Prompt", type=qtype, features=QuestionFeatures(**features))


@pytest.mark.parametrize("qtype, expected", [
    (QuestionType.LIKERT, LikertAnswer),
    (QuestionType.RATING, RatingAnswer),
    (QuestionType.TEXT, TextAnswer),
    (QuestionType.TEXTAREA, TextAnswer),
    (QuestionType.MULTIPLE_CHOICE, ChoiceAnswer),
    (QuestionType.DROPDOWN, ChoiceAnswer),
    (QuestionType.YES_NO, ChoiceAnswer),
    (QuestionType.CHECKBOX, CheckboxAnswer),
    (QuestionType.NUMBER, NumberAnswer),
    (QuestionType.DATETIME, DateTimeAnswer),
])
def test_empty_answer_shape(qtype, expected):
    answer = empty_answer(q(qtype))
    assert type(answer) is expected
    assert answer.comment is None
    assert not has_value(answer)


def test_every_question_type_has_an_answer_shape():
    for qtype in QuestionType:
        assert is_compatible(q(qtype), empty_answer(q(qtype)))


def test_empty_checkbox_is_empty_tuple():
    assert empty_answer(q(QuestionType.CHECKBOX)).value == ()


class TestScaleValues:

    def test_likert_accepts_scale_points(self):
        assert coerce_value(q(QuestionType.LIKERT), 4) == 4
        assert coerce_value(q(QuestionType.LIKERT), "2") == 2
        assert coerce_value(q(QuestionType.LIKERT), 3.0) == 3

    @pytest.mark.parametrize("bad", [0, 6, 2.5, "x", True])
    def test_likert_rejects(self, bad):
        with pytest.raises(InvalidAnswerError):
            coerce_value(q(QuestionType.LIKERT), bad)

    def test_rating_uses_feature_bounds(self):
        question = q(QuestionType.RATING, min=1, max=10)
        assert coerce_value(question, 10) == 10
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, 11)


class TestChoiceValues:

    def test_option_must_exist(self):
        question = q(QuestionType.MULTIPLE_CHOICE, options=("A", "B"))
        assert coerce_value(question, "B") == "B"
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, "C")

    def test_yes_no(self):
        question = q(QuestionType.YES_NO)
        assert coerce_value(question, "yes") == "yes"
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, "maybe")

    def test_checkbox_keeps_option_order_and_dedupes(self):
        question = q(QuestionType.CHECKBOX, options=("A", "B", "C"))
        assert coerce_value(question, ["C", "A", "C"]) == ("A", "C")
        assert coerce_value(question, None) == ()

    def test_checkbox_rejects_plain_string(self):
        question = q(QuestionType.CHECKBOX, options=("A",))
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, "A")


class TestOtherValues:

    def test_text_char_limit(self):
        question = q(QuestionType.TEXT, char_limit=5)
        assert coerce_value(question, "hello") == "hello"
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, "hello!")

    def test_number_range_and_zero(self):
        question = q(QuestionType.NUMBER, min=0, max=10)
        assert coerce_value(question, 0) == 0
        assert coerce_value(question, "2.5") == 2.5
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, -1)
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, float("nan"))

    def test_datetime_iso(self):
        question = q(QuestionType.DATETIME)
        assert coerce_value(question, "2024-03-01T10:00:00.000Z") == "2024-03-01T10:00:00.000Z"
        assert coerce_value(question, "2024-03-01") == "2024-03-01"
        with pytest.raises(InvalidAnswerError):
            coerce_value(question, "next tuesday")

    def test_none_clears(self):
        assert coerce_value(q(QuestionType.NUMBER), None) is None


class TestComments:

    def test_comment_accepted_when_enabled(self):
        question = q(QuestionType.LIKERT, allow_comment=True)
        assert coerce_comment(question, "fine") == "fine"
        assert coerce_comment(question, "") is None

    def test_comment_rejected_when_disabled(self):
        with pytest.raises(InvalidAnswerError):
            coerce_comment(q(QuestionType.LIKERT), "fine")
        with pytest.raises(InvalidAnswerError):
            coerce_comment(q(QuestionType.CHECKBOX, allow_comment=True), "fine")

    def test_comment_length_limit(self):
        question = q(QuestionType.YES_NO, allow_comment=True)
        assert coerce_comment(question, "x" * 500) == "x" * 500
        with pytest.raises(InvalidAnswerError):
            coerce_comment(question, "x" * 501)


def test_invalid_answer_error_is_value_error():
    with pytest.raises(ValueError):
        coerce_value(q(QuestionType.NUMBER), "abc")
