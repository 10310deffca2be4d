"""
Core Form Model Objects

Defines the fundamental data structures of a questionnaire definition.

These are pure data classes representing:
    - Question types (closed set of tags)
    - Question features (type-dependent constraint bag)
    - Questions, Sections and Forms
    - Form settings
    - Respondent identity fields

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about HTTP, storage or rendering
        - Are immutable for the duration of a session
        - Are fully serializable (see formsession.serialization)
        - Represent structure, not behavior
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


Number = Union[int, float]


class QuestionType(Enum):
    """
    Closed set of question type tags.

    Every concern that branches on the type (answer shape, validation,
    wire serialization) does so through an exhaustive mapping keyed by
    this enum, never by comparing raw strings.
    """

    LIKERT = "likert"
    TEXT = "text"
    TEXTAREA = "textarea"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    YES_NO = "yes_no"
    RATING = "rating"
    NUMBER = "number"
    DATETIME = "datetime"


# Types whose feature bag carries a meaningful `options` list.
CHOICE_TYPES = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.CHECKBOX,
    QuestionType.DROPDOWN,
})

# Types that show the inline "Comments (optional)" box when allow_comment is set.
COMMENT_TYPES = frozenset({
    QuestionType.LIKERT,
    QuestionType.RATING,
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.YES_NO,
})

TEXT_TYPES = frozenset({QuestionType.TEXT, QuestionType.TEXTAREA})

RANGE_TYPES = frozenset({QuestionType.NUMBER, QuestionType.RATING})

LIKERT_SCALE: Tuple[Tuple[int, str], ...] = (
    (1, "Strongly Disagree"),
    (2, "Disagree"),
    (3, "Neutral"),
    (4, "Agree"),
    (5, "Strongly Agree"),
)

YES_NO_OPTIONS: Tuple[str, ...] = ("yes", "no")

DEFAULT_RATING_MIN = 1
DEFAULT_RATING_MAX = 5

ROLE_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("staff", "Staff Member"),
    ("board", "Board Member"),
    ("executive", "Executive Director"),
    ("other", "Other"),
)


@dataclass(frozen=True)
class QuestionFeatures:
    """
    Type-dependent constraint bag of a question.

    Which keys are meaningful depends on the question type:
        required / allow_comment:   every type
        options:                    multiple_choice, checkbox, dropdown
        min / max / step:           number, rating
        char_limit / rows / placeholder:  text, textarea
        rating_style:               rating ("stars" or "numbers")

    Keys that do not apply to a type are carried but ignored; the
    analyzer flags them.
    """

    required: bool = False
    allow_comment: bool = False
    options: Tuple[str, ...] = ()
    min: Optional[Number] = None
    max: Optional[Number] = None
    step: Optional[Number] = None
    char_limit: Optional[int] = None
    rows: Optional[int] = None
    placeholder: Optional[str] = None
    rating_style: Optional[str] = None


@dataclass(frozen=True)
class Question:
    """
    A single prompt with a type tag and type-specific constraints.

    Properties:
        id:
            Opaque identifier, unique within its form
        title:
            Prompt shown to the respondent
        type:
            QuestionType tag
        features:
            QuestionFeatures constraint bag
        description:
            Optional help text
        position:
            Ordering within the owning section
    """

    id: str
    title: str
    type: QuestionType
    features: QuestionFeatures = field(default_factory=QuestionFeatures)
    description: Optional[str] = None
    position: int = 0

    @property
    def required(self) -> bool:
        return self.features.required

    @property
    def accepts_comment(self) -> bool:
        """True when the inline comment box applies to this question."""
        return self.features.allow_comment and self.type in COMMENT_TYPES

    @property
    def options(self) -> Tuple[str, ...]:
        if self.type is QuestionType.YES_NO:
            return YES_NO_OPTIONS
        return self.features.options

    def scale_bounds(self) -> Tuple[int, int]:
        """Inclusive integer bounds for likert and rating questions."""
        if self.type is QuestionType.LIKERT:
            return LIKERT_SCALE[0][0], LIKERT_SCALE[-1][0]
        low = self.features.min if self.features.min is not None else DEFAULT_RATING_MIN
        high = self.features.max if self.features.max is not None else DEFAULT_RATING_MAX
        return int(low), int(high)


@dataclass
class Section:
    """
    An ordered group of questions, owned exclusively by its Form.

    `position` defines ordering among the form's sections.
    """

    id: str
    title: str
    position: int = 0
    questions: List[Question] = field(default_factory=list)
    description: Optional[str] = None

    def required_questions(self) -> List[Question]:
        return [q for q in self.questions if q.required]


@dataclass(frozen=True)
class FormSettings:
    """
    Recognized form options.

    allow_anonymous:
        The respondent name may be left empty
    require_email:
        An email containing "@" must be given (default True)
    """

    allow_anonymous: bool = False
    require_email: bool = True
    estimated_time: Optional[str] = None
    confidentiality_notice: Optional[str] = None
    review_period: Optional[str] = None


@dataclass
class Form:
    """
    Root container of a questionnaire definition.

    A Form is fetched once per session and treated as immutable until
    the session ends.

    INVARIANTS:
        - Question ids are unique across all sections
        - Sections are ordered by position
    """

    id: str
    title: str
    sections: List[Section] = field(default_factory=list)
    settings: FormSettings = field(default_factory=FormSettings)
    description: Optional[str] = None
    instructions: Optional[str] = None
    welcome_message: Optional[str] = None
    closing_message: Optional[str] = None

    @property
    def section_count(self) -> int:
        return len(self.sections)

    def questions(self) -> List[Question]:
        """All questions flattened in section order."""
        return [q for section in self.sections for q in section.questions]

    def get_question(self, question_id: str) -> Optional[Question]:
        """
        Retrieve a question by id.

        Returns:
            Question object or None if not found
        """
        for section in self.sections:
            for question in section.questions:
                if question.id == question_id:
                    return question
        return None

    def get_section(self, index: int) -> Optional[Section]:
        """Retrieve a section by its zero-based index in display order."""
        if 0 <= index < len(self.sections):
            return self.sections[index]
        return None

    def estimated_minutes(self) -> int:
        """Rough completion time, half a minute per question."""
        return math.ceil(len(self.questions()) * 30 / 60)

    def estimated_time(self) -> str:
        """Configured estimate, or one derived from the question count."""
        if self.settings.estimated_time:
            return self.settings.estimated_time
        return f"{self.estimated_minutes()} minutes"


@dataclass
class RespondentInfo:
    """Identity fields collected on the personal-information page."""

    name: str = ""
    email: str = ""
    role: str = ""

    def has_data(self) -> bool:
        return bool(self.name.strip() or self.email.strip() or self.role.strip())
