"""
Form session controller: composes the engine for one respondent.

    load()        fetch form -> seed AnswerStore -> overlay fresh snapshot
    edit          update_respondent() / set_answer()   (autosaves)
    navigate      next() / previous() / go_to()        (autosaves)
    submit()      full-form guard -> wire payload -> backend -> clear snapshot

All mutation happens on the caller's event loop, one call at a time. The
only awaited guard (duplicate-submission check) may be superseded while
in flight; its result is then discarded instead of applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from formsession.answers import Answer
from formsession.client import FormService
from formsession.config import Settings, get_settings
from formsession.errors import FetchError, SubmissionError
from formsession.model import Form, RespondentInfo
from formsession.navigation import (
    GuardOutcome,
    PersonalInfo,
    SectionNavigator,
    SectionState,
    Submitted,
    state_from_position,
)
from formsession.persistence import PersistenceManager, SaveIndicator, Session
from formsession.store import AnswerStore
from formsession.submission import build_submission
from formsession.validation import section_completion, validate_respondent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionMarker:
    """One dot of the position indicator."""

    position: int
    title: str
    complete: bool
    current: bool
    reachable: bool


class FormSessionController:
    """
    One respondent filling one form.

    Attributes:
        form:               the fetched Form (None until loaded)
        session:            respondent fields, answers, position
        navigator:          SectionNavigator for the loaded form
        fatal_error:        FetchError that stopped loading, if any
        restored:           the "progress restored" notice is showing
        restore_failed:     a stored snapshot existed but was unreadable
        closing_message:    handed to the success view after submitting
    """

    def __init__(self, form_id: str, service: FormService, persistence: PersistenceManager,
                 indicator: Optional[SaveIndicator] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.form_id = form_id
        self.service = service
        self.persistence = persistence
        self.indicator = indicator or SaveIndicator(settings.save_indicator_ms / 1000)
        self.max_comment_length = settings.max_comment_length

        self.form: Optional[Form] = None
        self.session: Optional[Session] = None
        self.navigator: Optional[SectionNavigator] = None
        self.fatal_error: Optional[FetchError] = None
        self.restored = False
        self.restore_failed = False
        self.checking_submission = False
        self.submitting = False
        self.closing_message: Optional[str] = None
        self._generation = 0

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(self) -> Form:
        """
        Fetch the form and initialize or restore the session.

        Raises:
            FetchError: If the form definition is unavailable
        """
        try:
            form = await self.service.fetch_form(self.form_id)
        except FetchError as exc:
            self.fatal_error = exc
            raise

        store = AnswerStore(form.questions(), max_comment_length=self.max_comment_length)
        respondent = RespondentInfo()
        state = state_from_position(-1, form.section_count)

        snapshot = self.persistence.load(self.form_id)
        self.restore_failed = self.persistence.last_restore_failed
        if snapshot is not None:
            respondent = RespondentInfo(
                name=snapshot.respondent.name,
                email=snapshot.respondent.email,
                role=snapshot.respondent.role,
            )
            restored_ids = store.restore(snapshot.answers)
            state = state_from_position(snapshot.position, form.section_count)
            self.restored = snapshot.has_data()
            logger.info("Restored progress for form %s saved at %s (%d answers)",
                        self.form_id, snapshot.saved_at, len(restored_ids))

        self.form = form
        self.session = Session(respondent=respondent, store=store, position=state.position,
                               saved_at=snapshot.saved_at if snapshot else None)
        self.navigator = SectionNavigator(form, state)
        return form

    def _require_loaded(self) -> None:
        if self.form is None or self.session is None or self.navigator is None:
            raise RuntimeError("Form session is not loaded")

    def dismiss_restore_notice(self) -> None:
        self.restored = False

    def start_fresh(self) -> None:
        """Erase the snapshot and reset the session to an empty state."""
        self._require_loaded()
        self.persistence.clear(self.form_id)
        self.session.store.initialize(self.form.questions())
        self.session.respondent = RespondentInfo()
        self.session.position = -1
        self.session.saved_at = None
        self.navigator.reset()
        self.indicator.reset()
        self.restored = False
        self._generation += 1

    # =========================================================================
    # EDITING
    # =========================================================================

    @property
    def respondent(self) -> RespondentInfo:
        self._require_loaded()
        return self.session.respondent

    @property
    def store(self) -> AnswerStore:
        self._require_loaded()
        return self.session.store

    def update_respondent(self, name: Optional[str] = None, email: Optional[str] = None,
                          role: Optional[str] = None) -> None:
        self._require_loaded()
        info = self.session.respondent
        if name is not None:
            info.name = name
        if email is not None:
            info.email = email
        if role is not None:
            info.role = role
        self.navigator.clear_respondent_errors(info)
        self._autosave()

    def set_answer(self, question_id: str, **changes: Any) -> Answer:
        """
        Update an answer (value and/or comment) and clear its error live.

        Raises:
            KeyError: If the question is not part of the form
            InvalidAnswerError: If the value does not fit the question
        """
        self._require_loaded()
        answer = self.session.store.set(question_id, **changes)
        self.navigator.clear_error(question_id, self.session.store)
        self._autosave()
        return answer

    def _autosave(self) -> None:
        if isinstance(self.navigator.state, Submitted):
            return
        self.session.position = self.navigator.position
        if self.persistence.save(self.form_id, self.session):
            self.indicator.mark_saved()

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    async def next(self) -> bool:
        """Advance one page. On the personal-info page this runs the duplicate check."""
        self._require_loaded()
        if self.checking_submission or self.submitting:
            return False
        navigator = self.navigator
        if isinstance(navigator.state, PersonalInfo):
            moved = await self._begin()
        else:
            moved = navigator.next(self.session.store)
        if moved:
            self._generation += 1
        self._autosave()
        return moved

    async def _begin(self) -> bool:
        info = self.session.respondent
        if not self.navigator.check_respondent(info):
            return False

        generation = self._generation
        email = info.email.strip()
        self.checking_submission = True
        try:
            outcome = await self.service.check_submission(self.form_id, email)
        except Exception as exc:
            logger.warning("Duplicate-submission check failed, proceeding: %s", exc)
            outcome = GuardOutcome.UNKNOWN
        finally:
            self.checking_submission = False

        if (generation != self._generation or not isinstance(self.navigator.state, PersonalInfo)
                or self.session.respondent.email.strip() != email):
            logger.debug("Discarding superseded duplicate-submission check for %s", self.form_id)
            return False
        return self.navigator.begin(self.session.respondent, outcome)

    def previous(self) -> bool:
        self._require_loaded()
        moved = self.navigator.previous()
        if moved:
            self._generation += 1
            self._autosave()
        return moved

    def go_to(self, position: int) -> bool:
        self._require_loaded()
        moved = self.navigator.go_to(position)
        if moved:
            self._generation += 1
            self._autosave()
        return moved

    def position_markers(self) -> List[PositionMarker]:
        """Personal-info page followed by one marker per section."""
        self._require_loaded()
        current = self.navigator.position
        current = self.form.section_count if current is None else current
        markers = [PositionMarker(
            position=-1,
            title="Personal Information",
            complete=validate_respondent(self.session.respondent, self.form.settings).ok,
            current=current == -1,
            reachable=True,
        )]
        for index, complete in enumerate(section_completion(self.form, self.session.store)):
            markers.append(PositionMarker(
                position=index,
                title=self.form.sections[index].title,
                complete=complete,
                current=index == current,
                reachable=index <= current,
            ))
        return markers

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def submit(self) -> bool:
        """
        Submit from the last section.

        On failure the session is left untouched so the respondent can
        retry; the navigator carries the message.
        """
        self._require_loaded()
        if self.submitting:
            return False
        if not isinstance(self.navigator.state, SectionState):
            return False
        if not self.navigator.can_submit(self.session.store):
            return False

        payload = build_submission(self.form, self.session.respondent, self.session.store)
        self.submitting = True
        try:
            await self.service.submit(self.form_id, payload)
        except SubmissionError as exc:
            logger.error("Submit error for form %s: %s", self.form_id, exc.detail or exc)
            self.navigator.fail_submission(str(exc))
            return False
        finally:
            self.submitting = False

        self.persistence.clear(self.form_id)
        self.closing_message = self.form.closing_message
        self.navigator.mark_submitted()
        self.indicator.reset()
        self.restored = False
        self._generation += 1
        logger.info("Form %s submitted with %d answers", self.form_id, len(payload["answers"]))
        return True
