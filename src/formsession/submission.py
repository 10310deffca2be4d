"""
Submission serializer: AnswerStore to wire payload.

Only answers that hold a value are sent (required or not). Each becomes

    {"question_id": <id>, "value": <value>}

where value is a bare scalar (number, string, selection or list of
selections) unless the respondent left a comment, in which case the
comment folds into the value:

    likert, rating:             {"rating": <int>, "comment": <str>}
    multiple_choice, yes_no:    {"selection": <str>, "comment": <str>}

The folded shape is what the backend expects and must not change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from formsession.answers import Answer
from formsession.model import Form, Question, QuestionType, RespondentInfo
from formsession.validation import is_question_satisfied

if TYPE_CHECKING:
    from formsession.store import AnswerStore

WireAnswer = Dict[str, Any]

# Key under which the value sits when a comment folds into it.
FOLDED_VALUE_KEYS = {
    QuestionType.LIKERT: "rating",
    QuestionType.RATING: "rating",
    QuestionType.MULTIPLE_CHOICE: "selection",
    QuestionType.YES_NO: "selection",
}


def wire_value(question: Question, answer: Answer) -> Any:
    value = answer.value
    if question.type is QuestionType.CHECKBOX:
        value = list(value)
    key = FOLDED_VALUE_KEYS.get(question.type)
    if key is not None and answer.comment:
        return {key: value, "comment": answer.comment}
    return value


def serialize(form: Form, store: "AnswerStore") -> List[WireAnswer]:
    """Wire answers for every question of the form that has a value."""
    payload: List[WireAnswer] = []
    for question in form.questions():
        if question.id not in store:
            continue
        answer = store.get(question.id)
        if not is_question_satisfied(question, answer):
            continue
        payload.append({"question_id": question.id, "value": wire_value(question, answer)})
    return payload


def build_submission(form: Form, respondent: RespondentInfo, store: "AnswerStore") -> Dict[str, Any]:
    """Request body for the submission endpoint."""
    return {
        "respondent_name": respondent.name.strip(),
        "respondent_email": respondent.email.strip(),
        "role": respondent.role,
        "answers": serialize(form, store),
    }
