"""
Question set loading.

Questions are supplied as a JSON object mapping a stable id to the question
text, e.g. ``{"01": "What is the contact email?"}``. The set is loaded once
per run and never mutated.
"""

from dataclasses import dataclass
from pathlib import Path

from pydantic import RootModel, ValidationError, field_validator

from models.errors import QuestionSetError


@dataclass(frozen=True)
class Question:
    id: str
    text: str


class QuestionFile(RootModel[dict[str, str]]):
    """Validated shape of a questions file."""

    @field_validator("root")
    @classmethod
    def check_entries(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("question set is empty")
        for qid, text in value.items():
            if not qid.strip():
                raise ValueError("question id must not be blank")
            if not text.strip():
                raise ValueError(f"question {qid!r} has no text")
        return value


def parse_questions(payload: str) -> list[Question]:
    """
    Parse a JSON question set.

    Args:
        payload: Raw JSON text

    Returns:
        Questions in file order

    Raises:
        QuestionSetError: If the payload is not a non-empty id -> text object
    """
    try:
        parsed = QuestionFile.model_validate_json(payload)
    except ValidationError as e:
        raise QuestionSetError(f"Invalid question set: {e}") from e
    return [Question(id=qid.strip(), text=text.strip()) for qid, text in parsed.root.items()]


def load_questions(path: str | Path) -> list[Question]:
    """
    Load the question set from a JSON file.

    Raises:
        QuestionSetError: If the file is missing, unreadable or malformed
    """
    questions_path = Path(path)
    if not questions_path.exists():
        raise QuestionSetError(f"Question file not found: {questions_path}")
    try:
        payload = questions_path.read_text(encoding="utf-8")
    except OSError as e:
        raise QuestionSetError(f"Cannot read question file {questions_path}: {e}") from e
    return parse_questions(payload)


def questions_to_dict(questions: list[Question]) -> dict[str, str]:
    return {q.id: q.text for q in questions}


__all__ = ["Question", "QuestionFile", "load_questions", "parse_questions", "questions_to_dict"]
