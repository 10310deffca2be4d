"""
Tests for the HTTP client, using httpx.MockTransport in place of the backend.
"""

import httpx
import pytest
from formsession.client import FormsClient
from formsession.config import Settings
from formsession.errors import FetchError, SubmissionError
from formsession.examples import build_example_form
from formsession.navigation import GuardOutcome
from formsession.serialization import form_to_dict

BASE_URL = "http://forms.test"


def make_client(handler) -> FormsClient:
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(transport=transport, base_url=BASE_URL)
    return FormsClient(base_url=BASE_URL, settings=Settings(), client=http)


class TestFetchForm:

    @pytest.mark.asyncio
    async def test_fetch_parses_document(self):
        form = build_example_form(form_id="7")

        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/api/forms/7"
            return httpx.Response(200, json=form_to_dict(form))

        client = make_client(handler)
        assert await client.fetch_form("7") == form

    @pytest.mark.asyncio
    async def test_http_error_is_fatal(self):
        client = make_client(lambda request: httpx.Response(404, json={"error": "Form not found"}))
        with pytest.raises(FetchError) as info:
            await client.fetch_form("7")
        assert str(info.value) == FetchError.user_message
        assert "404" in info.value.detail

    @pytest.mark.asyncio
    async def test_malformed_document_is_fatal(self):
        client = make_client(lambda request: httpx.Response(200, json={"title": "no id"}))
        with pytest.raises(FetchError):
            await client.fetch_form("7")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [
        {"id": "f", "sections": ["oops"]},
        {"id": "f", "sections": {"s": {}}},
        {"id": "f", "sections": [{"id": "s", "questions": ["q"]}]},
        {"id": "f", "sections": [{"id": "s", "questions": [{"id": "q", "features": "x"}]}]},
        {"id": "f", "sections": [{"id": "s", "questions": [{"id": "q", "features": {"options": "A,B"}}]}]},
        {"id": "f", "settings": "open", "sections": []},
    ])
    async def test_structurally_malformed_document_is_fatal(self, document):
        client = make_client(lambda request: httpx.Response(200, json=document))
        with pytest.raises(FetchError):
            await client.fetch_form("f")

    @pytest.mark.asyncio
    async def test_network_error_is_fatal(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(FetchError):
            await make_client(handler).fetch_form("7")


class TestCheckSubmission:

    @pytest.mark.asyncio
    async def test_sends_email(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = request.content
            return httpx.Response(200, json={"has_submitted": False})

        outcome = await make_client(handler).check_submission("7", "ann@example.org")
        assert outcome is GuardOutcome.ALLOW
        assert seen["path"] == "/api/forms/7/check-submission"
        assert b"ann@example.org" in seen["body"]

    @pytest.mark.asyncio
    async def test_already_submitted(self):
        client = make_client(lambda request: httpx.Response(200, json={"has_submitted": True}))
        assert await client.check_submission("7", "a@b") is GuardOutcome.DENY

    @pytest.mark.asyncio
    async def test_truthy_flag_counts_as_submitted(self):
        client = make_client(lambda request: httpx.Response(200, json={"has_submitted": 1}))
        assert await client.check_submission("7", "a@b") is GuardOutcome.DENY

    @pytest.mark.asyncio
    async def test_server_error_is_unknown(self):
        client = make_client(lambda request: httpx.Response(500))
        assert await client.check_submission("7", "a@b") is GuardOutcome.UNKNOWN

    @pytest.mark.asyncio
    async def test_network_error_is_unknown(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        assert await make_client(handler).check_submission("7", "a@b") is GuardOutcome.UNKNOWN


class TestSubmit:

    @pytest.mark.asyncio
    async def test_posts_payload(self):
        received = []

        def handler(request):
            received.append((request.url.path, request.content))
            return httpx.Response(201, json={"id": 1})

        await make_client(handler).submit("7", {"respondent_name": "Ann", "answers": []})
        assert received[0][0] == "/api/forms/7/submit"

    @pytest.mark.asyncio
    async def test_rejection_raises(self):
        client = make_client(lambda request: httpx.Response(400, json={"error": "bad"}))
        with pytest.raises(SubmissionError) as info:
            await client.submit("7", {})
        assert "400" in info.value.detail

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self):
        async with FormsClient(base_url=BASE_URL, settings=Settings()) as client:
            assert client.base_url == BASE_URL
        assert client._client.is_closed
