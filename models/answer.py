"""
Answer ledger - the authoritative question -> answer store for a run.

An id gets at most one answer. ``set`` never overwrites; the only replace
path is ``refine``, which is restricted to the question ids registered as
refinable and is logged and recorded in ``refinements``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from models.errors import UnknownQuestionError
from models.question import Question
from utils.logger import get_logger

logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Answer:
    """
    A single accepted answer.

    Attributes:
        question_id: Id of the answered question
        text: Answer text as extracted
        source: Producing component - a page URL, "pattern", "inference",
            "inference:static" or "web-search:<query>"
        stage: Name of the waterfall stage that produced it
        obtained_at: ISO 8601 UTC timestamp
    """

    question_id: str
    text: str
    source: str
    stage: str = ""
    obtained_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "text": self.text,
            "source": self.source,
            "stage": self.stage,
            "obtained_at": self.obtained_at,
        }


@dataclass(frozen=True)
class Refinement:
    question_id: str
    previous: Answer
    replacement: Answer
    reason: str
    at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "previous": self.previous.to_dict(),
            "replacement": self.replacement.to_dict(),
            "reason": self.reason,
            "at": self.at,
        }


class AnswerLedger:
    """Question id -> Answer mapping with explicit, logged refinement."""

    def __init__(self, questions: list[Question], refinable_ids: set[str] | None = None):
        self._questions = {q.id: q for q in questions}
        self._order = [q.id for q in questions]
        self._answers: dict[str, Answer] = {}
        self._refinable = set(refinable_ids or ())
        self.refinements: list[Refinement] = []

    def _check_known(self, question_id: str) -> None:
        if question_id not in self._questions:
            raise UnknownQuestionError(f"Unknown question id: {question_id}")

    def set(self, answer: Answer) -> bool:
        """
        Record the first answer for a question.

        Returns:
            True if stored, False if the question already had an answer
        """
        self._check_known(answer.question_id)
        existing = self._answers.get(answer.question_id)
        if existing is not None:
            logger.info(
                f"Ignoring answer for {answer.question_id} from {answer.source}: "
                f"already answered by {existing.source}"
            )
            return False
        self._answers[answer.question_id] = answer
        logger.info(
            f"✅ Answer for {answer.question_id}: {answer.text!r}",
            extra={
                "extra_fields": {
                    "question_id": answer.question_id,
                    "source": answer.source,
                    "stage": answer.stage,
                }
            },
        )
        return True

    def can_refine(self, question_id: str) -> bool:
        return question_id in self._refinable

    def refine(self, question_id: str, new_answer: Answer, reason: str) -> bool:
        """
        Replace a provisional answer with a more specific one.

        Only allowed for refinable question ids that already have an answer.
        A replacement identical to the current text is a no-op.

        Returns:
            True if the answer was replaced
        """
        self._check_known(question_id)
        if new_answer.question_id != question_id:
            raise ValueError(
                f"Refinement for {question_id} carries answer for {new_answer.question_id}"
            )
        if not self.can_refine(question_id):
            logger.warning(f"Refine refused for {question_id}: question is not refinable")
            return False
        previous = self._answers.get(question_id)
        if previous is None:
            logger.warning(f"Refine refused for {question_id}: no provisional answer to replace")
            return False
        if previous.text == new_answer.text:
            return False

        self._answers[question_id] = new_answer
        self.refinements.append(
            Refinement(
                question_id=question_id,
                previous=previous,
                replacement=new_answer,
                reason=reason,
            )
        )
        logger.info(
            f"🔁 Refined {question_id}: {previous.text!r} -> {new_answer.text!r} ({reason})",
            extra={
                "extra_fields": {
                    "question_id": question_id,
                    "previous_source": previous.source,
                    "source": new_answer.source,
                    "reason": reason,
                }
            },
        )
        return True

    def get(self, question_id: str) -> Answer | None:
        return self._answers.get(question_id)

    def has(self, question_id: str) -> bool:
        return question_id in self._answers

    def outstanding(self) -> list[Question]:
        """Unanswered questions in question-set order."""
        return [self._questions[qid] for qid in self._order if qid not in self._answers]

    def unanswered_ids(self) -> list[str]:
        return [q.id for q in self.outstanding()]

    def is_complete(self) -> bool:
        return len(self._answers) == len(self._questions)

    def answers(self) -> list[Answer]:
        return [self._answers[qid] for qid in self._order if qid in self._answers]

    def as_report(self) -> dict[str, str]:
        """The ``{question_id: answer_text}`` mapping handed to reporting sinks."""
        return {a.question_id: a.text for a in self.answers()}

    def __len__(self) -> int:
        return len(self._answers)
