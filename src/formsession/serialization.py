"""
Serialization helpers for form definitions and answer records.

Form documents follow the shape returned by the form-by-id endpoint:

    {id, title, description?, instructions?, welcome_message?,
     closing_message?, settings: {...},
     sections: [{id, title, description?, position,
                 questions: [{id, title, description?, position,
                              type, features: {...}}]}]}

Parsing is tolerant of missing `features` and of booleans encoded as
1/0, "true"/"false" or true/false. Output is stable and explicit so that
JSON and YAML round-trips are lossless.

Answer records follow the local snapshot shape
(likert_value, text_value, selected_option, selected_options,
number_value, date_value, comment), so snapshots written by the web
client restore unchanged.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from formsession.answers import (
    ANSWER_TYPES,
    Answer,
    CheckboxAnswer,
    ChoiceAnswer,
    DateTimeAnswer,
    LikertAnswer,
    MAX_COMMENT_LENGTH,
    NumberAnswer,
    RatingAnswer,
    TextAnswer,
    coerce_comment,
    coerce_value,
)
from formsession.errors import FormDefinitionError, InvalidAnswerError
from formsession.model import (
    Form,
    FormSettings,
    Question,
    QuestionFeatures,
    QuestionType,
    Section,
)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def to_bool(value: Any, default: bool = False) -> bool:
    """Decode a loosely-encoded boolean (true/false, 1/0, "true"/"false")."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def _to_number(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return None
    return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_number(value)
    return int(number) if number is not None else None


def _as_list(value: Any, name: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise FormDefinitionError(f"{name} must be a list, got {value!r}")
    return value


# =========================================================================
# FORM DEFINITIONS
# =========================================================================


def features_from_dict(d: Optional[Dict[str, Any]]) -> QuestionFeatures:
    d = d or {}
    if not isinstance(d, dict):
        raise FormDefinitionError(f"Question features must be an object, got {d!r}")
    options = d.get("options") or ()
    if not isinstance(options, (list, tuple)):
        raise FormDefinitionError(f"Question options must be a list, got {options!r}")
    return QuestionFeatures(
        required=to_bool(d.get("required")),
        allow_comment=to_bool(d.get("allowComment")),
        options=tuple(str(o) for o in options),
        min=_to_number(d.get("min")),
        max=_to_number(d.get("max")),
        step=_to_number(d.get("step")),
        char_limit=_to_int(d.get("charLimit")),
        rows=_to_int(d.get("rows")),
        placeholder=d.get("placeholder"),
        rating_style=d.get("ratingStyle"),
    )


def features_to_dict(f: QuestionFeatures) -> Dict[str, Any]:
    d: Dict[str, Any] = {"required": f.required, "allowComment": f.allow_comment}
    if f.options:
        d["options"] = list(f.options)
    optional = {
        "min": f.min,
        "max": f.max,
        "step": f.step,
        "charLimit": f.char_limit,
        "rows": f.rows,
        "placeholder": f.placeholder,
        "ratingStyle": f.rating_style,
    }
    d.update({k: v for k, v in optional.items() if v is not None})
    return d


def question_from_dict(d: Dict[str, Any]) -> Question:
    if not isinstance(d, dict):
        raise FormDefinitionError(f"Question must be an object, got {d!r}")
    raw_type = d.get("type") or QuestionType.LIKERT.value
    try:
        qtype = QuestionType(raw_type)
    except ValueError:
        raise FormDefinitionError(f"Unsupported question type {raw_type!r} for question {d.get('id')!r}") from None
    if "id" not in d:
        raise FormDefinitionError(f"Question without id: {d!r}")
    return Question(
        id=str(d["id"]),
        title=d.get("title", ""),
        type=qtype,
        features=features_from_dict(d.get("features")),
        description=d.get("description"),
        position=_to_int(d.get("position")) or 0,
    )


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "title": q.title,
        "description": q.description,
        "position": q.position,
        "type": q.type.value,
        "features": features_to_dict(q.features),
    }


def section_from_dict(d: Dict[str, Any]) -> Section:
    if not isinstance(d, dict):
        raise FormDefinitionError(f"Section must be an object, got {d!r}")
    if "id" not in d:
        raise FormDefinitionError(f"Section without id: {d.get('title')!r}")
    questions = [question_from_dict(q) for q in _as_list(d.get("questions"), "questions")]
    return Section(
        id=str(d["id"]),
        title=d.get("title", ""),
        position=_to_int(d.get("position")) or 0,
        questions=sorted(questions, key=lambda q: q.position),
        description=d.get("description"),
    )


def section_to_dict(s: Section) -> Dict[str, Any]:
    return {
        "id": s.id,
        "title": s.title,
        "description": s.description,
        "position": s.position,
        "questions": [question_to_dict(q) for q in s.questions],
    }


def settings_from_dict(d: Optional[Dict[str, Any]]) -> FormSettings:
    d = d or {}
    if not isinstance(d, dict):
        raise FormDefinitionError(f"Form settings must be an object, got {d!r}")
    return FormSettings(
        allow_anonymous=to_bool(d.get("allowAnonymous"), default=False),
        require_email=to_bool(d.get("requireEmail"), default=True),
        estimated_time=d.get("estimatedTime"),
        confidentiality_notice=d.get("confidentialityNotice"),
        review_period=d.get("reviewPeriod"),
    )


def settings_to_dict(s: FormSettings) -> Dict[str, Any]:
    d: Dict[str, Any] = {"allowAnonymous": s.allow_anonymous, "requireEmail": s.require_email}
    optional = {
        "estimatedTime": s.estimated_time,
        "confidentialityNotice": s.confidentiality_notice,
        "reviewPeriod": s.review_period,
    }
    d.update({k: v for k, v in optional.items() if v is not None})
    return d


def form_from_dict(d: Dict[str, Any]) -> Form:
    """
    Build a Form from a fetched document.

    Raises:
        FormDefinitionError: If the document is not a form
    """
    if not isinstance(d, dict) or "id" not in d:
        raise FormDefinitionError("Form document must be an object with an id")
    sections = [section_from_dict(s) for s in _as_list(d.get("sections"), "sections")]
    form = Form(
        id=str(d["id"]),
        title=d.get("title", ""),
        sections=sorted(sections, key=lambda s: s.position),
        settings=settings_from_dict(d.get("settings")),
        description=d.get("description"),
        instructions=d.get("instructions"),
        welcome_message=d.get("welcome_message"),
        closing_message=d.get("closing_message"),
    )
    seen = set()
    for question in form.questions():
        if question.id in seen:
            raise FormDefinitionError(f"Duplicate question id {question.id!r}")
        seen.add(question.id)
    return form


def form_to_dict(f: Form) -> Dict[str, Any]:
    return {
        "id": f.id,
        "title": f.title,
        "description": f.description,
        "instructions": f.instructions,
        "welcome_message": f.welcome_message,
        "closing_message": f.closing_message,
        "settings": settings_to_dict(f.settings),
        "sections": [section_to_dict(s) for s in f.sections],
    }


def form_to_json(f: Form) -> str:
    return json.dumps(form_to_dict(f), sort_keys=True)


def form_from_json(s: str) -> Form:
    d = json.loads(s)
    return form_from_dict(d)


def form_to_yaml(f: Form) -> str:
    return yaml.safe_dump(form_to_dict(f), sort_keys=False)


def form_from_yaml(s: str) -> Form:
    d = yaml.safe_load(s)
    return form_from_dict(d)


# =========================================================================
# ANSWER RECORDS
# =========================================================================

# Snapshot field holding the value of each answer shape.
RECORD_FIELDS = {
    LikertAnswer: "likert_value",
    RatingAnswer: "number_value",
    TextAnswer: "text_value",
    ChoiceAnswer: "selected_option",
    CheckboxAnswer: "selected_options",
    NumberAnswer: "number_value",
    DateTimeAnswer: "date_value",
}


def answer_to_record(answer: Answer) -> Dict[str, Any]:
    """Only the field pertinent to the answer shape is written."""
    value = answer.value
    if isinstance(answer, CheckboxAnswer):
        value = list(value)
    record: Dict[str, Any] = {RECORD_FIELDS[type(answer)]: value}
    if answer.comment:
        record["comment"] = answer.comment
    return record


def answer_from_record(question: Question, record: Any,
                       max_comment_length: int = MAX_COMMENT_LENGTH) -> Optional[Answer]:
    """
    Decode a snapshot record against the current question.

    Returns None when the record cannot belong to the question (the
    question changed type since the snapshot was written, or the stored
    value is no longer acceptable). Comments are kept only where the
    question still accepts them.
    """
    if not isinstance(record, dict):
        return None
    answer_type = ANSWER_TYPES[question.type]
    field_name = RECORD_FIELDS[answer_type]
    if field_name not in record:
        return None
    raw = record[field_name]
    if answer_type is CheckboxAnswer and raw is not None and not isinstance(raw, list):
        return None
    try:
        value = coerce_value(question, raw)
    except InvalidAnswerError:
        return None
    comment = record.get("comment")
    try:
        comment = coerce_comment(question, comment, max_comment_length) if isinstance(comment, str) else None
    except InvalidAnswerError:
        comment = None
    return answer_type(value=value, comment=comment)
