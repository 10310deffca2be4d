"""
Tests for the example form and the offline service.
"""

import pytest
from formsession.config import Settings
from formsession.errors import FetchError
from formsession.examples import StaticFormService, build_example_form
from formsession.model import QuestionType
from formsession.navigation import GuardOutcome


def test_covers_every_question_type():
    form = build_example_form()
    assert {q.type for q in form.questions()} == set(QuestionType)


def test_settings_passed_through():
    form = build_example_form(allow_anonymous=True, require_email=False)
    assert form.settings.allow_anonymous
    assert not form.settings.require_email


@pytest.mark.asyncio
async def test_static_service_records_submissions():
    form = build_example_form()
    service = StaticFormService([form])
    assert await service.fetch_form(form.id) is form
    assert await service.check_submission(form.id, "Ann@Example.org") is GuardOutcome.ALLOW

    await service.submit(form.id, {"respondent_email": "Ann@Example.org", "answers": []})
    assert len(service.submissions) == 1
    assert await service.check_submission(form.id, "ann@example.org") is GuardOutcome.DENY


@pytest.mark.asyncio
async def test_static_service_unknown_form():
    with pytest.raises(FetchError):
        await StaticFormService([]).fetch_form("nope")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("FORMSESSION_API_BASE_URL", "https://forms.example.org")
    monkeypatch.setenv("FORMSESSION_SNAPSHOT_MAX_AGE_HOURS", "12")
    settings = Settings()
    assert settings.api_base_url == "https://forms.example.org"
    assert settings.snapshot_max_age_hours == 12
    assert settings.max_comment_length == 500
