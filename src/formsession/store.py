"""
AnswerStore: one answer per question of the current form.

Keys are question ids. Every known question always has an answer slot,
seeded empty by `initialize`, so callers only need to look at the
answer's value and never at whether the key exists.

No answer exists independently of its question: `reconcile` drops
answers for questions the form no longer has and seeds the missing ones.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from formsession.answers import (
    Answer,
    MAX_COMMENT_LENGTH,
    coerce_comment,
    coerce_value,
    empty_answer,
    has_value,
    is_compatible,
)
from formsession.errors import InvalidAnswerError
from formsession.model import Form, Question
from formsession.serialization import answer_from_record, answer_to_record
from formsession.submission import serialize

logger = logging.getLogger(__name__)

_MISSING = object()


class AnswerStore:
    """Mapping from question id to a correctly-typed Answer."""

    def __init__(self, questions: Iterable[Question] = (),
                 max_comment_length: int = MAX_COMMENT_LENGTH):
        self.max_comment_length = max_comment_length
        self._questions: Dict[str, Question] = {}
        self._answers: Dict[str, Answer] = {}
        self.initialize(questions)

    def initialize(self, questions: Iterable[Question]) -> None:
        """Discard every answer and seed an empty one per question."""
        self._questions = {q.id: q for q in questions}
        self._answers = {qid: empty_answer(q) for qid, q in self._questions.items()}

    def reconcile(self, questions: Iterable[Question]) -> None:
        """
        Align the store with a (possibly changed) question set.

        Answers for unknown questions are dropped, missing questions are
        seeded empty, and answers whose shape no longer matches the
        question type are reseeded.
        """
        questions = {q.id: q for q in questions}
        answers: Dict[str, Answer] = {}
        for qid, question in questions.items():
            current = self._answers.get(qid)
            if current is not None and is_compatible(question, current):
                answers[qid] = current
            else:
                answers[qid] = empty_answer(question)
        dropped = set(self._answers) - set(questions)
        if dropped:
            logger.debug("Dropping answers for unknown questions: %s", sorted(dropped))
        self._questions = questions
        self._answers = answers

    def question(self, question_id: str) -> Question:
        try:
            return self._questions[question_id]
        except KeyError:
            raise KeyError(f"Unknown question: {question_id}") from None

    def get(self, question_id: str) -> Answer:
        try:
            return self._answers[question_id]
        except KeyError:
            raise KeyError(f"Unknown question: {question_id}") from None

    def set(self, question_id: str, value: Any = _MISSING, comment: Any = _MISSING) -> Answer:
        """
        Update the value and/or comment of one answer.

        Only the given fields are replaced; e.g. setting a comment keeps
        the selected option.

        Raises:
            KeyError: If the question is not part of the form
            InvalidAnswerError: If the value or comment does not fit the question
        """
        question = self.question(question_id)
        changes: Dict[str, Any] = {}
        if value is not _MISSING:
            changes["value"] = coerce_value(question, value)
        if comment is not _MISSING:
            changes["comment"] = coerce_comment(question, comment, self.max_comment_length)
        answer = dataclasses.replace(self._answers[question_id], **changes)
        self._answers[question_id] = answer
        return answer

    def put(self, question_id: str, answer: Answer) -> None:
        """Replace a whole answer after checking its shape and contents."""
        question = self.question(question_id)
        if not is_compatible(question, answer):
            raise InvalidAnswerError(
                f"Question {question_id!r} ({question.type.value}) cannot hold {type(answer).__name__}"
            )
        self._answers[question_id] = type(answer)(
            value=coerce_value(question, answer.value),
            comment=coerce_comment(question, answer.comment, self.max_comment_length),
        )

    def clear(self, question_id: str) -> None:
        self._answers[question_id] = empty_answer(self.question(question_id))

    def has_data(self) -> bool:
        """True once any answer holds a value or a comment."""
        return any(has_value(a) or a.comment for a in self._answers.values())

    def items(self) -> List[Tuple[str, Answer]]:
        return list(self._answers.items())

    def questions(self) -> List[Question]:
        return list(self._questions.values())

    def to_persistable(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Ordered [question_id, answer record] pairs for the local snapshot."""
        return [(qid, answer_to_record(answer)) for qid, answer in self._answers.items()]

    def restore(self, pairs: Iterable[Tuple[Any, Any]]) -> List[str]:
        """
        Overlay persisted [question_id, record] pairs onto the store.

        Each record is decoded against the *current* question. Records for
        unknown questions are ignored; records that do not fit the current
        question type leave that question seeded empty.

        Returns:
            Ids of the answers that were restored
        """
        restored: List[str] = []
        for pair in pairs:
            try:
                raw_id, record = pair
            except (TypeError, ValueError):
                logger.warning("Skipping malformed snapshot entry: %r", pair)
                continue
            qid = str(raw_id)
            question = self._questions.get(qid)
            if question is None:
                continue
            answer = answer_from_record(question, record, self.max_comment_length)
            if answer is None:
                logger.info("Reseeding %s: snapshot record does not fit %s", qid, question.type.value)
                self._answers[qid] = empty_answer(question)
                continue
            self._answers[qid] = answer
            restored.append(qid)
        return restored

    def to_wire_answers(self, form: Form) -> List[Dict[str, Any]]:
        return serialize(form, self)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnswerStore):
            return NotImplemented
        return self._answers == other._answers

    def __repr__(self) -> str:
        return f"AnswerStore({self._answers!r})"
