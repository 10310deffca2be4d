"""
Form Analyzer — diagnostics and inventory of form definitions.

This module provides lightweight analysis of Form objects:
    - Question type inventory
    - Required / comment-enabled counts
    - Feature bag checks (options, ranges, features that do not apply)
    - Structural checks (duplicate ids, empty sections)

IMPORTANT: This is read-only. It does NOT modify the form.
It only produces reports.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Set

from formsession.model import (
    CHOICE_TYPES,
    COMMENT_TYPES,
    RANGE_TYPES,
    TEXT_TYPES,
    Form,
    Question,
    QuestionType,
)


@dataclass
class FormReport:
    """Analysis report for a form."""

    form_id: str
    total_sections: int = 0
    total_questions: int = 0
    required_questions: int = 0
    comment_questions: int = 0

    type_counts: Dict[str, int] = field(default_factory=dict)
    duplicate_question_ids: Set[str] = field(default_factory=set)
    empty_sections: List[str] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def ok(self) -> bool:
        return not self.warnings


def _check_features(question: Question, report: FormReport) -> None:
    f = question.features
    qtype = question.type

    if qtype in CHOICE_TYPES and not f.options:
        report.add_warning(f"Question {question.id} ({qtype.value}) has no options")
    if qtype not in CHOICE_TYPES and f.options:
        report.add_warning(f"Question {question.id} ({qtype.value}) defines options that are ignored")

    if f.min is not None and f.max is not None and f.min > f.max:
        report.add_warning(f"Question {question.id} has min {f.min} greater than max {f.max}")
    if qtype not in RANGE_TYPES and (f.min is not None or f.max is not None or f.step is not None):
        report.add_warning(f"Question {question.id} ({qtype.value}) defines a range that is ignored")
    if f.step is not None and f.step <= 0:
        report.add_warning(f"Question {question.id} has a non-positive step {f.step}")

    if qtype not in TEXT_TYPES and (f.char_limit is not None or f.rows is not None):
        report.add_warning(f"Question {question.id} ({qtype.value}) defines text limits that are ignored")
    if f.char_limit is not None and f.char_limit <= 0:
        report.add_warning(f"Question {question.id} has a non-positive character limit")

    if f.rating_style is not None:
        if qtype is not QuestionType.RATING:
            report.add_warning(f"Question {question.id} ({qtype.value}) defines a rating style that is ignored")
        elif f.rating_style not in ("stars", "numbers"):
            report.add_warning(f"Question {question.id} has unknown rating style {f.rating_style!r}")

    if f.allow_comment and qtype not in COMMENT_TYPES:
        report.add_warning(f"Question {question.id} ({qtype.value}) allows comments but shows no comment box")


def analyze_form(form: Form) -> FormReport:
    """
    Perform analysis of a Form.

    Returns a FormReport with counts and warnings.
    """
    report = FormReport(form_id=form.id)
    report.total_sections = form.section_count

    questions = form.questions()
    report.total_questions = len(questions)
    report.required_questions = sum(1 for q in questions if q.required)
    report.comment_questions = sum(1 for q in questions if q.accepts_comment)
    report.type_counts = dict(Counter(q.type.value for q in questions))

    id_counts = Counter(q.id for q in questions)
    report.duplicate_question_ids = {qid for qid, n in id_counts.items() if n > 1}

    for section in form.sections:
        if not section.questions:
            report.empty_sections.append(section.id)

    for question in questions:
        _check_features(question, report)

    if report.duplicate_question_ids:
        report.add_warning(
            f"Duplicate question ids: {', '.join(sorted(report.duplicate_question_ids))}"
        )
    if report.empty_sections:
        report.add_warning(f"Empty sections: {', '.join(report.empty_sections)}")
    if form.section_count == 0:
        report.add_warning("Form has no sections")

    return report
