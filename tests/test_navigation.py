"""
Tests for the section navigator state machine.
"""

from formsession.errors import DuplicateSubmissionError, ErrorKind
from formsession.examples import build_example_form
from formsession.model import RespondentInfo
from formsession.navigation import (
    PERSONAL_INFO,
    SUBMITTED,
    GuardOutcome,
    Messages,
    SectionNavigator,
    SectionState,
    state_from_position,
)
from formsession.store import AnswerStore

VALID = RespondentInfo(name="Ann", email="ann@example.org", role="board")


def started():
    form = build_example_form()
    navigator = SectionNavigator(form)
    assert navigator.begin(VALID, GuardOutcome.ALLOW)
    return navigator, AnswerStore(form.questions())


def fill_section(store, index):
    if index == 0:
        store.set("q-vision", value=4)
        store.set("q-overall", value=5)
    elif index == 1:
        store.set("q-focus", value="Programs")
        store.set("q-tenure", value=3)
    else:
        store.set("q-recommend", value="yes")


class TestBegin:

    def test_invalid_respondent_stays(self):
        navigator = SectionNavigator(build_example_form())
        assert not navigator.begin(RespondentInfo(name="Ann", email="bad-email", role="board"))
        assert navigator.state == PERSONAL_INFO
        assert navigator.respondent_errors == frozenset({"email"})
        assert navigator.message.text == Messages.PERSONAL_INFO

    def test_duplicate_denied(self):
        navigator = SectionNavigator(build_example_form())
        assert not navigator.begin(VALID, GuardOutcome.DENY)
        assert navigator.state == PERSONAL_INFO
        assert navigator.message.kind is ErrorKind.DUPLICATE
        assert navigator.message.text == DuplicateSubmissionError.user_message

    def test_unknown_fails_open(self):
        navigator = SectionNavigator(build_example_form())
        assert navigator.begin(VALID, GuardOutcome.UNKNOWN)
        assert navigator.state == SectionState(0)
        assert navigator.scroll_to_top

    def test_clear_respondent_errors(self):
        navigator = SectionNavigator(build_example_form())
        navigator.begin(RespondentInfo())
        navigator.clear_respondent_errors(RespondentInfo(name="Ann"))
        assert navigator.respondent_errors == frozenset({"email", "role"})
        navigator.clear_respondent_errors(VALID)
        assert navigator.respondent_errors == frozenset()
        assert navigator.message is None


class TestSections:

    def test_next_blocked_until_required_answered(self):
        navigator, store = started()
        assert not navigator.next(store)
        assert navigator.state == SectionState(0)
        assert navigator.errors == frozenset({"q-vision", "q-overall"})
        assert navigator.message.text == Messages.SECTION_INCOMPLETE

        fill_section(store, 0)
        assert navigator.next(store)
        assert navigator.state == SectionState(1)
        assert navigator.errors == frozenset()

    def test_errors_clear_live(self):
        navigator, store = started()
        navigator.next(store)
        store.set("q-vision", value=2)
        navigator.clear_error("q-vision", store)
        assert navigator.errors == frozenset({"q-overall"})
        assert navigator.message is not None
        store.set("q-overall", value=2)
        navigator.clear_error("q-overall", store)
        assert navigator.errors == frozenset()
        assert navigator.message is None

    def test_previous_never_validates(self):
        navigator, store = started()
        fill_section(store, 0)
        navigator.next(store)
        assert navigator.previous()
        assert navigator.state == SectionState(0)
        assert navigator.previous()
        assert navigator.state == PERSONAL_INFO
        assert not navigator.previous()

    def test_next_refused_on_last_section(self):
        navigator, store = started()
        for index in range(2):
            fill_section(store, index)
            navigator.next(store)
        assert navigator.is_last_section
        assert not navigator.next(store)

    def test_go_to_only_backwards(self):
        navigator, store = started()
        fill_section(store, 0)
        navigator.next(store)
        assert not navigator.go_to(2)
        assert navigator.go_to(-1)
        assert navigator.state == PERSONAL_INFO

    def test_progress(self):
        navigator, store = started()
        assert navigator.progress() == 25.0
        navigator.reset()
        assert navigator.progress() == 0.0


class TestSubmit:

    def test_submit_requires_current_section(self):
        navigator, store = started()
        fill_section(store, 0)
        navigator.next(store)
        fill_section(store, 1)
        navigator.next(store)
        assert not navigator.can_submit(store)
        assert navigator.errors == frozenset({"q-recommend"})
        assert navigator.message.text == Messages.SUBMIT_SECTION_INCOMPLETE

    def test_submit_rechecks_earlier_sections(self):
        form = build_example_form()
        store = AnswerStore(form.questions())
        navigator = SectionNavigator(form, SectionState(2))
        fill_section(store, 2)
        assert not navigator.can_submit(store)
        assert navigator.message.text == Messages.FORM_INCOMPLETE
        assert navigator.state == SectionState(2)

    def test_submit_and_mark(self):
        navigator, store = started()
        for index in range(3):
            fill_section(store, index)
            navigator.next(store)
        assert navigator.can_submit(store)
        navigator.mark_submitted()
        assert navigator.state == SUBMITTED
        assert navigator.position is None
        assert navigator.progress() == 100.0

    def test_not_on_last_section(self):
        navigator, store = started()
        fill_section(store, 0)
        assert not navigator.can_submit(store)


def test_state_from_position():
    assert state_from_position(1, 3) == SectionState(1)
    assert state_from_position(-1, 3) == PERSONAL_INFO
    assert state_from_position(7, 3) == PERSONAL_INFO
    assert state_from_position(None, 3) == PERSONAL_INFO
