"""
HTTP client for the form backend.

Three endpoints are used:

    GET  /api/forms/{form_id}                   form definition
    POST /api/forms/{form_id}/check-submission  {email} -> {has_submitted}
    POST /api/forms/{form_id}/submit            submission payload

Failure policy:
    - fetch_form raises FetchError (fatal for the session)
    - check_submission never raises; failures yield GuardOutcome.UNKNOWN
    - submit raises SubmissionError; the caller keeps the session intact
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from formsession.config import Settings, get_settings
from formsession.errors import FetchError, SubmissionError
from formsession.model import Form
from formsession.navigation import GuardOutcome
from formsession.serialization import form_from_dict

logger = logging.getLogger(__name__)


class FormService(Protocol):
    """What the session controller needs from the backend."""

    async def fetch_form(self, form_id: str) -> Form:
        ...

    async def check_submission(self, form_id: str, email: str) -> GuardOutcome:
        ...

    async def submit(self, form_id: str, payload: Dict[str, Any]) -> None:
        ...


class FormsClient:
    """
    httpx-based FormService.

    Use as an async context manager, or pass an existing AsyncClient
    (which the caller then owns).
    """

    def __init__(self, base_url: Optional[str] = None, settings: Optional[Settings] = None,
                 client: Optional[httpx.AsyncClient] = None):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
        )

    async def __aenter__(self) -> "FormsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_form(self, form_id: str) -> Form:
        try:
            response = await self._client.get(f"/api/forms/{form_id}")
            response.raise_for_status()
            return form_from_dict(response.json())
        except httpx.HTTPStatusError as exc:
            logger.error("Form %s could not be loaded: HTTP %s", form_id, exc.response.status_code)
            raise FetchError(detail=str(exc)) from exc
        except (httpx.HTTPError, ValueError) as exc:
            # ValueError covers undecodable JSON and FormDefinitionError
            logger.error("Form %s could not be loaded: %s", form_id, exc)
            raise FetchError(detail=str(exc)) from exc

    async def check_submission(self, form_id: str, email: str) -> GuardOutcome:
        try:
            response = await self._client.post(
                f"/api/forms/{form_id}/check-submission", json={"email": email}
            )
        except httpx.HTTPError as exc:
            logger.warning("Duplicate-submission check failed for form %s: %s", form_id, exc)
            return GuardOutcome.UNKNOWN
        if response.status_code != 200:
            logger.warning("Duplicate-submission check for form %s returned HTTP %s",
                           form_id, response.status_code)
            return GuardOutcome.UNKNOWN
        try:
            data = response.json()
        except ValueError:
            logger.warning("Duplicate-submission check for form %s returned invalid JSON", form_id)
            return GuardOutcome.UNKNOWN
        if isinstance(data, dict) and bool(data.get("has_submitted")):
            return GuardOutcome.DENY
        return GuardOutcome.ALLOW

    async def submit(self, form_id: str, payload: Dict[str, Any]) -> None:
        try:
            response = await self._client.post(f"/api/forms/{form_id}/submit", json=payload)
        except httpx.HTTPError as exc:
            logger.error("Submission for form %s failed: %s", form_id, exc)
            raise SubmissionError(detail=str(exc)) from exc
        if not response.is_success:
            logger.error("Submission for form %s rejected: HTTP %s %s",
                         form_id, response.status_code, response.text)
            raise SubmissionError(detail=f"HTTP {response.status_code}: {response.text}")
