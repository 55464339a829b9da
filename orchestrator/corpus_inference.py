from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from models.corpus import Corpus
from models.errors import OracleError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.oracle_schemas import CANNOT_INFER, parse_inference
from orchestrator.question_classifier import QuestionClassifier
from orchestrator.stage_types import Finding, ParseError
from utils.logger import get_logger

logger = get_logger(__name__)

INFERENCE_SOURCE = "inference"
STATIC_SOURCE = "inference:static"
EXCERPT_CHARS = 8000
MIN_ANSWER_CHARS = 5

INFER_PROMPT = """Based on the collected website content of {site} and general knowledge about companies of this kind, answer the question.

Question {qid}: {question}

Use the content to reason about the most likely answer. If the content and general knowledge do not support an answer, reply exactly {sentinel}.

Reply with the answer only."""


@dataclass
class InferenceOutcome:
    findings: list[Finding] = field(default_factory=list)
    aborted: bool = False


class CorpusInference:
    """Static knowledge lookup, then oracle inference over the corpus head."""

    def __init__(
        self,
        oracle: JudgmentOracle,
        classifier: QuestionClassifier,
        *,
        static_knowledge: Mapping[str, str] | None = None,
        site_name: str = "the website",
    ):
        self.oracle = oracle
        self.classifier = classifier
        self.static_knowledge = dict(static_knowledge or {})
        self.site_name = site_name

    def run(self, questions: Sequence[Question], corpus: Corpus) -> InferenceOutcome:
        outcome = InferenceOutcome()
        excerpt = corpus.excerpt(EXCERPT_CHARS)

        for question in questions:
            qtype = self.classifier.classify(question.text)
            static_answer = self.static_knowledge.get(qtype.value)
            if static_answer:
                logger.info(f"📚 Static answer for {question.id} ({qtype.value})")
                outcome.findings.append(Finding(question.id, static_answer, STATIC_SOURCE))
                continue

            prompt = INFER_PROMPT.format(
                site=self.site_name, qid=question.id, question=question.text, sentinel=CANNOT_INFER
            )
            try:
                reply = self.oracle.ask(prompt, documents=[excerpt] if excerpt else ())
            except OracleError as e:
                logger.warning(f"Corpus inference failed, aborting tier: {e}")
                outcome.aborted = True
                return outcome

            parsed = parse_inference(reply, min_length=MIN_ANSWER_CHARS)
            if isinstance(parsed, ParseError) or parsed.value is None:
                logger.info(f"No inference for {question.id}")
                continue

            outcome.findings.append(Finding(question.id, parsed.value, INFERENCE_SOURCE))
            logger.info(f"🧠 Inferred answer for {question.id}: {parsed.value}")

        return outcome
