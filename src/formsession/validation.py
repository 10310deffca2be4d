"""
Validation Engine: required-question satisfaction and completion.

Pure functions with no side effects. They run on every navigation
attempt and on every edit (to clear errors live), so they only inspect
values already held in memory.

ARCHITECTURAL RULE:
    Only questions with `required = True` affect section and form
    completion. Optional questions never block navigation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Optional

from formsession.answers import Answer, is_compatible
from formsession.model import Form, FormSettings, Question, QuestionType, RespondentInfo, Section

if TYPE_CHECKING:
    from formsession.store import AnswerStore


def is_question_satisfied(question: Question, answer: Optional[Answer]) -> bool:
    """
    Decide whether an answer holds a value for its question.

    likert, rating:                 a numeric value is present
    text, textarea:                 trimmed text is non-empty
    multiple_choice, dropdown,
    yes_no:                         a selection is present
    checkbox:                       at least one selection
    number:                         a numeric value is present (0 counts)
    datetime:                       a value is present

    An answer whose shape belongs to another question type is never
    satisfied.
    """
    if answer is None or not is_compatible(question, answer):
        return False

    value = answer.value
    qtype = question.type

    if qtype in (QuestionType.LIKERT, QuestionType.RATING, QuestionType.NUMBER):
        return value is not None
    if qtype in (QuestionType.TEXT, QuestionType.TEXTAREA):
        return value is not None and value.strip() != ""
    if qtype in (QuestionType.MULTIPLE_CHOICE, QuestionType.DROPDOWN, QuestionType.YES_NO):
        return bool(value)
    if qtype is QuestionType.CHECKBOX:
        return len(value) > 0
    if qtype is QuestionType.DATETIME:
        return bool(value)

    raise TypeError(f"Unsupported question type: {qtype}")


def unsatisfied_questions(questions: Iterable[Question], store: "AnswerStore") -> List[str]:
    """Ids of required questions without a satisfying answer, in order."""
    missing = []
    for question in questions:
        if not question.required:
            continue
        answer = store.get(question.id) if question.id in store else None
        if not is_question_satisfied(question, answer):
            missing.append(question.id)
    return missing


def section_errors(section: Section, store: "AnswerStore") -> FrozenSet[str]:
    return frozenset(unsatisfied_questions(section.questions, store))


def is_section_complete(section: Section, store: "AnswerStore") -> bool:
    return not unsatisfied_questions(section.questions, store)


def is_form_complete(form: Form, store: "AnswerStore") -> bool:
    return all(is_section_complete(section, store) for section in form.sections)


def section_completion(form: Form, store: "AnswerStore") -> List[bool]:
    """Completion flag per section, for the position indicator."""
    return [is_section_complete(section, store) for section in form.sections]


@dataclass(frozen=True)
class RespondentCheck:
    """Outcome of the personal-information check."""

    invalid_fields: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def ok(self) -> bool:
        return not self.invalid_fields


def is_valid_email(email: str) -> bool:
    return email.strip() != "" and "@" in email


def validate_respondent(info: RespondentInfo, settings: FormSettings) -> RespondentCheck:
    """
    Check the personal-information page.

    name:   non-empty unless the form allows anonymous responses
    email:  non-empty and containing "@" unless email is not required
    role:   always required
    """
    invalid = set()
    if not settings.allow_anonymous and info.name.strip() == "":
        invalid.add("name")
    if settings.require_email and not is_valid_email(info.email):
        invalid.add("email")
    if info.role.strip() == "":
        invalid.add("role")
    return RespondentCheck(invalid_fields=frozenset(invalid))
