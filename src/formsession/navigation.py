"""
Section Navigator: the state machine deciding which page is shown.

States:
    PersonalInfo        identity fields page (position -1)
    SectionState(i)     section i, 0 <= i < section_count
    Submitted           terminal

Transitions:
    PersonalInfo  -> Section(0)     respondent fields valid AND duplicate
                                    check not DENY (UNKNOWN fails open)
    Section(i)    -> Section(i+1)   required questions of section i answered
    Section(i)    -> Section(i-1)   always (Section(0) -> PersonalInfo)
    Section(last) -> Submitted      last section valid AND every required
                                    question of the form answered
    go_to(p)                        only to positions <= current

ARCHITECTURAL RULE:
    A failed guard leaves the state unchanged and records errors and a
    message. It never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Optional, Union

from formsession.errors import DuplicateSubmissionError, ErrorKind
from formsession.model import Form, RespondentInfo
from formsession.validation import (
    is_section_complete,
    section_errors,
    unsatisfied_questions,
    validate_respondent,
)

if TYPE_CHECKING:
    from formsession.store import AnswerStore


@dataclass(frozen=True)
class PersonalInfo:
    position = -1


@dataclass(frozen=True)
class SectionState:
    index: int

    @property
    def position(self) -> int:
        return self.index


@dataclass(frozen=True)
class Submitted:
    position = None


NavState = Union[PersonalInfo, SectionState, Submitted]

PERSONAL_INFO = PersonalInfo()
SUBMITTED = Submitted()


def state_from_position(position: Optional[int], section_count: int) -> NavState:
    """Map a stored position back to a state; invalid positions start over."""
    if isinstance(position, int) and not isinstance(position, bool) and 0 <= position < section_count:
        return SectionState(position)
    return PERSONAL_INFO


class GuardOutcome(Enum):
    """
    Result of a remote guard such as the duplicate-submission check.

    UNKNOWN means the check could not be made; it is treated as ALLOW.
    """

    ALLOW = "allow"
    DENY = "deny"
    UNKNOWN = "unknown"

    @property
    def permits(self) -> bool:
        return self is not GuardOutcome.DENY


class Messages:
    PERSONAL_INFO = "Please provide your name and valid email"
    SECTION_INCOMPLETE = "Please answer all required questions before proceeding"
    SUBMIT_SECTION_INCOMPLETE = "Please answer all required questions in this section"
    FORM_INCOMPLETE = "Please complete all required questions in previous sections before submitting"


@dataclass(frozen=True)
class NavigationMessage:
    """Section-level banner shown after a failed transition."""

    kind: ErrorKind
    text: str


class SectionNavigator:
    """
    Drives movement between the personal-information page and sections.

    Attributes:
        state:              current NavState
        errors:             ids of required questions flagged on this page
        respondent_errors:  invalid personal-information fields
        message:            banner for the last failed transition, if any
        scroll_to_top:      set whenever a transition should reset scrolling
    """

    def __init__(self, form: Form, state: NavState = PERSONAL_INFO):
        self.form = form
        self.state: NavState = state
        self.errors: FrozenSet[str] = frozenset()
        self.respondent_errors: FrozenSet[str] = frozenset()
        self.message: Optional[NavigationMessage] = None
        self.scroll_to_top = False

    @property
    def position(self) -> Optional[int]:
        return self.state.position

    @property
    def section_count(self) -> int:
        return self.form.section_count

    @property
    def is_last_section(self) -> bool:
        return isinstance(self.state, SectionState) and self.state.index == self.section_count - 1

    def reset(self) -> None:
        self._move(PERSONAL_INFO)

    def _move(self, state: NavState) -> None:
        self.state = state
        self.errors = frozenset()
        self.respondent_errors = frozenset()
        self.message = None
        self.scroll_to_top = True

    def _fail(self, kind: ErrorKind, text: str) -> bool:
        self.message = NavigationMessage(kind, text)
        self.scroll_to_top = False
        return False

    def check_respondent(self, info: RespondentInfo) -> bool:
        """Validate the personal-information page, recording invalid fields."""
        check = validate_respondent(info, self.form.settings)
        self.respondent_errors = check.invalid_fields
        if not check.ok:
            return self._fail(ErrorKind.VALIDATION, Messages.PERSONAL_INFO)
        return True

    def begin(self, info: RespondentInfo, duplicate_check: GuardOutcome = GuardOutcome.UNKNOWN) -> bool:
        """PersonalInfo -> Section(0)."""
        if not isinstance(self.state, PersonalInfo):
            return False
        if not self.check_respondent(info):
            return False
        if not duplicate_check.permits:
            return self._fail(ErrorKind.DUPLICATE, DuplicateSubmissionError.user_message)
        if self.section_count == 0:
            return self._fail(ErrorKind.VALIDATION, Messages.SECTION_INCOMPLETE)
        self._move(SectionState(0))
        return True

    def validate_current(self, store: "AnswerStore") -> bool:
        """Flag the unanswered required questions of the current section."""
        if not isinstance(self.state, SectionState):
            return False
        section = self.form.sections[self.state.index]
        self.errors = section_errors(section, store)
        return not self.errors

    def next(self, store: "AnswerStore") -> bool:
        """Section(i) -> Section(i+1)."""
        if not isinstance(self.state, SectionState) or self.is_last_section:
            return False
        if not self.validate_current(store):
            return self._fail(ErrorKind.VALIDATION, Messages.SECTION_INCOMPLETE)
        self._move(SectionState(self.state.index + 1))
        return True

    def previous(self) -> bool:
        """Move back one page without validation."""
        if not isinstance(self.state, SectionState):
            return False
        if self.state.index == 0:
            self._move(PERSONAL_INFO)
        else:
            self._move(SectionState(self.state.index - 1))
        return True

    def go_to(self, position: int) -> bool:
        """Jump via the position indicator. Forward jumps are ignored."""
        current = self.position
        if current is None or position > current or position < -1:
            return False
        self._move(state_from_position(position, self.section_count))
        return True

    def can_submit(self, store: "AnswerStore") -> bool:
        """
        Guard for Section(last) -> Submitted.

        Re-checks every section, so an earlier section that became
        incomplete (e.g. through a stale restore) blocks submission.
        """
        if not self.is_last_section:
            return False
        if not self.validate_current(store):
            return self._fail(ErrorKind.VALIDATION, Messages.SUBMIT_SECTION_INCOMPLETE)
        missing = unsatisfied_questions(self.form.questions(), store)
        if missing:
            return self._fail(ErrorKind.VALIDATION, Messages.FORM_INCOMPLETE)
        self.message = None
        return True

    def mark_submitted(self) -> None:
        self._move(SUBMITTED)

    def fail_submission(self, text: str) -> None:
        self._fail(ErrorKind.SUBMISSION, text)

    def clear_error(self, question_id: str, store: "AnswerStore") -> None:
        """
        Clear errors live after an edit.

        The question's own error goes once it is satisfied; the banner goes
        once every required question of the current section is answered.
        """
        if question_id in self.errors:
            section = self.form.sections[self.state.index] if isinstance(self.state, SectionState) else None
            if section is not None and question_id not in section_errors(section, store):
                self.errors = self.errors - {question_id}
        if (self.message is not None and self.message.kind is ErrorKind.VALIDATION
                and isinstance(self.state, SectionState)
                and is_section_complete(self.form.sections[self.state.index], store)):
            self.message = None

    def clear_respondent_errors(self, info: RespondentInfo) -> None:
        """Drop personal-info errors for fields that are now valid."""
        if not self.respondent_errors:
            return
        check = validate_respondent(info, self.form.settings)
        self.respondent_errors = self.respondent_errors & check.invalid_fields
        if check.ok and self.message is not None and self.message.kind is ErrorKind.VALIDATION:
            self.message = None

    def progress(self) -> float:
        """Percentage shown in the progress bar."""
        if isinstance(self.state, Submitted):
            return 100.0
        if isinstance(self.state, PersonalInfo):
            return 0.0
        return (self.state.index + 1) / (self.section_count + 1) * 100
