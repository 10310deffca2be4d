"""
Example form builder and an offline FormService.

Builds a small executive-director evaluation with one section per
question family, covering every question type. `StaticFormService`
serves it without a backend, recording submissions in memory.
"""
from typing import Any, Dict, List, Optional, Set

from formsession.errors import FetchError, SubmissionError
from formsession.model import Form, FormSettings, Question, QuestionFeatures, QuestionType, Section
from formsession.navigation import GuardOutcome


def build_example_form(form_id: str = "ed-review", allow_anonymous: bool = False,
                       require_email: bool = True) -> Form:
    leadership = Section(
        id="s-leadership",
        title="Part I: Organizational Leadership",
        position=0,
        questions=[
            Question(
                id="q-vision",
                title="The Executive Director communicates a clear vision.",
                type=QuestionType.LIKERT,
                features=QuestionFeatures(required=True, allow_comment=True),
                position=0,
            ),
            Question(
                id="q-overall",
                title="Overall leadership rating",
                type=QuestionType.RATING,
                features=QuestionFeatures(required=True, allow_comment=True, min=1, max=5,
                                          rating_style="stars"),
                position=1,
            ),
            Question(
                id="q-strengths",
                title="Key strengths",
                type=QuestionType.TEXTAREA,
                features=QuestionFeatures(char_limit=1000, rows=4),
                position=2,
            ),
        ],
    )

    operations = Section(
        id="s-operations",
        title="Programming & Operations",
        position=1,
        questions=[
            Question(
                id="q-focus",
                title="Which area needs the most attention?",
                type=QuestionType.MULTIPLE_CHOICE,
                features=QuestionFeatures(required=True, allow_comment=True,
                                          options=("Fundraising", "Programs", "Staffing")),
                position=0,
            ),
            Question(
                id="q-channels",
                title="Which channels do you use to reach the director?",
                type=QuestionType.CHECKBOX,
                features=QuestionFeatures(options=("Email", "Phone", "In person")),
                position=1,
            ),
            Question(
                id="q-tenure",
                title="Years working with the organization",
                type=QuestionType.NUMBER,
                features=QuestionFeatures(required=True, min=0, max=60, step=1),
                position=2,
            ),
            Question(
                id="q-department",
                title="Department",
                type=QuestionType.DROPDOWN,
                features=QuestionFeatures(options=("Finance", "Programs", "Development")),
                position=3,
            ),
        ],
    )

    overall = Section(
        id="s-overall",
        title="Part IV: Overall Performance",
        position=2,
        questions=[
            Question(
                id="q-recommend",
                title="Would you recommend renewing the contract?",
                type=QuestionType.YES_NO,
                features=QuestionFeatures(required=True, allow_comment=True),
                position=0,
            ),
            Question(
                id="q-last-review",
                title="When did you last discuss performance with the director?",
                type=QuestionType.DATETIME,
                position=1,
            ),
            Question(
                id="q-summary",
                title="One-line summary",
                type=QuestionType.TEXT,
                features=QuestionFeatures(char_limit=120, placeholder="Summary"),
                position=2,
            ),
        ],
    )

    return Form(
        id=form_id,
        title="Executive Director Evaluation",
        description="Annual performance review.",
        welcome_message="Thank you for taking part in this review.",
        closing_message="Your responses have been recorded.",
        sections=[leadership, operations, overall],
        settings=FormSettings(
            allow_anonymous=allow_anonymous,
            require_email=require_email,
            estimated_time="10 minutes",
            confidentiality_notice="Responses are aggregated by role.",
        ),
    )


class StaticFormService:
    """FormService serving fixed forms from memory."""

    def __init__(self, forms: List[Form], submitted_emails: Optional[Set[str]] = None):
        self.forms: Dict[str, Form] = {f.id: f for f in forms}
        self.submitted_emails: Set[str] = set(submitted_emails or ())
        self.submissions: List[Dict[str, Any]] = []

    async def fetch_form(self, form_id: str) -> Form:
        try:
            return self.forms[form_id]
        except KeyError:
            raise FetchError(detail=f"No form {form_id}") from None

    async def check_submission(self, form_id: str, email: str) -> GuardOutcome:
        if email.lower() in self.submitted_emails:
            return GuardOutcome.DENY
        return GuardOutcome.ALLOW

    async def submit(self, form_id: str, payload: Dict[str, Any]) -> None:
        if form_id not in self.forms:
            raise SubmissionError(detail=f"No form {form_id}")
        self.submissions.append(payload)
        email = payload.get("respondent_email")
        if email:
            self.submitted_emails.add(email.lower())
