"""
Error taxonomy for form sessions.

Fatal and user-visible failures (fetch, submission) are raised as
exceptions carrying the triggering message in `detail` for diagnostics.
Validation and restore problems are resolved inside their component and
only surface as values (error sets, absent snapshots).
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a message surfaced to the respondent."""

    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    SUBMISSION = "submission"
    FETCH = "fetch"


class FormSessionError(Exception):
    """Base class for all form session errors."""

    user_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.detail = detail


class FetchError(FormSessionError):
    """The form definition could not be loaded. Fatal; no retry loop."""

    user_message = "Failed to load form. Please refresh the page."


class SubmissionError(FormSessionError):
    """The backend rejected the final submission or the network failed."""

    user_message = "Failed to submit form. Please try again."


class DuplicateSubmissionError(FormSessionError):
    """The respondent has already answered this form."""

    user_message = (
        "Our records show you have already submitted a response for this form. "
        "Each person can only submit once. If you believe this is an error, "
        "please contact the form administrator."
    )


class RestoreError(FormSessionError):
    """A stored snapshot could not be decoded."""

    user_message = "Saved progress could not be restored."


class InvalidAnswerError(FormSessionError, ValueError):
    """A value does not fit the question it is assigned to."""

    user_message = "Invalid answer."


class FormDefinitionError(FormSessionError, ValueError):
    """A fetched form document is malformed."""

    user_message = "Invalid form definition."
