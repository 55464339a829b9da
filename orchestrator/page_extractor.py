from collections.abc import Sequence

from models.errors import OracleError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.oracle_schemas import parse_answer_line
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_LENGTH = 3

SYSTEM_PROMPT = (
    "You extract specific facts from website content. The content may be in "
    "English or Polish. Answer only with information present in the content."
)

EXTRACT_PROMPT = """Read the content below and answer these questions:

{questions}

RESPONSE FORMAT:
One line per question, in this exact format:
<question id>: <answer found in the content, or NOT_FOUND>

Example:
01: contact@example.com
02: NOT_FOUND

Extract exact values from the content. Do not invent answers."""


class PageAnswerExtractor:
    """Asks the oracle whether one document answers any open question."""

    def __init__(self, oracle: JudgmentOracle, *, max_document_chars: int = 20_000):
        self.oracle = oracle
        self.max_document_chars = max_document_chars

    def extract(
        self,
        text: str,
        questions: Sequence[Question],
        *,
        min_length: int = DEFAULT_MIN_LENGTH,
        label: str = "",
    ) -> dict[str, str]:
        """
        Returns:
            question id -> answer for every question the document answers.
            Empty on oracle failure.
        """
        if not questions or not text.strip():
            return {}

        prompt = EXTRACT_PROMPT.format(questions="\n".join(f"{q.id}: {q.text}" for q in questions))
        document = f"--- {label} ---\n{text[: self.max_document_chars]}" if label else text[: self.max_document_chars]

        try:
            reply = self.oracle.ask(prompt, documents=[document], system=SYSTEM_PROMPT)
        except OracleError as e:
            logger.warning(
                f"Page answer extraction failed: {e}",
                extra={"extra_fields": {"document": label}},
            )
            return {}

        answers = {}
        for question in questions:
            answer = parse_answer_line(reply, question.id, min_length=min_length)
            if answer is not None:
                answers[question.id] = answer
        return answers
