"""
Deterministic pattern extraction over the whole corpus.

Runs once crawling is exhausted. Each open question is classified, the
regex battery for its type is run over the corpus, and the ranked literal
matches are put to the oracle for adjudication. Only literal corpus
substrings can become answers here.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from models.corpus import Corpus
from models.errors import OracleError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.oracle_schemas import parse_candidate_choice
from orchestrator.question_classifier import QuestionClassifier
from orchestrator.stage_types import Finding, ParseError, QuestionType
from tools.web.link_extractor import host_of, labeled_links
from utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_TAG = "pattern"
MIN_MATCH_CHARS = 3
MAX_CANDIDATES = 10
EVIDENCE_RADIUS = 120

_EMAIL = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"
_URL = r"https?://[A-Za-z0-9.-]+[A-Za-z0-9.\-_/?=&#%~+]*"
_ISO = r"ISO[\s\-]*\d{4,5}(?:\s*:\s*\d{4})?"

# Structural patterns first, then keyword-anchored ones with a capture group.
PATTERN_BATTERIES: dict[QuestionType, tuple[re.Pattern, ...]] = {
    QuestionType.CONTACT_ADDRESS: (
        re.compile(_EMAIL),
        re.compile(rf"(?:e-?mail|adres\s*mailowy|kontakt|contact|napisz|write)[^@\n]{{0,40}}?({_EMAIL})", re.IGNORECASE),
    ),
    QuestionType.EXTERNAL_RESOURCE_LINK: (
        re.compile(_URL),
        re.compile(
            rf"(?:interfejs|interface|strona|portal|system|platforma|adres|address)[^\n]{{0,40}}?({_URL})",
            re.IGNORECASE,
        ),
        re.compile(rf"(?:dostępny|znajduje się|available|located)[^\n]{{0,40}}?(?:pod|na|at|on)\s*({_URL})", re.IGNORECASE),
    ),
    QuestionType.CERTIFICATION_CODE: (
        re.compile(_ISO, re.IGNORECASE),
        re.compile(
            rf"(?:certyfikat\w*|certific\w*|certified|norm[ay]|standard\w*)[^\n]{{0,60}}?({_ISO})",
            re.IGNORECASE,
        ),
    ),
}

ADJUDICATE_PROMPT = """Question {qid}: {question}

These candidate values were found verbatim in the website content, each with surrounding text:

{candidates}

Which candidate answers the question? Reply with only the candidate number, or the exact candidate text, or NOT_FOUND if none of them answers it."""


@dataclass
class PatternOutcome:
    findings: list[Finding] = field(default_factory=list)
    aborted: bool = False


def _clean(match: str, qtype: QuestionType) -> str:
    value = match.strip()
    if qtype == QuestionType.EXTERNAL_RESOURCE_LINK:
        value = value.rstrip(".,;:)")
    return value


def find_candidates(text: str, qtype: QuestionType) -> list[str]:
    """Unique matches of the type's battery in discovery order, short ones dropped."""
    seen: dict[str, None] = {}
    for pattern in PATTERN_BATTERIES.get(qtype, ()):
        for match in pattern.finditer(text):
            raw = match.group(1) if pattern.groups else match.group(0)
            value = _clean(raw, qtype)
            if len(value) > MIN_MATCH_CHARS:
                seen.setdefault(value, None)
    return list(seen)


def evidence_for(text: str, candidate: str, radius: int = EVIDENCE_RADIUS) -> str:
    index = text.find(candidate)
    if index < 0:
        return ""
    start = max(0, index - radius)
    end = min(len(text), index + len(candidate) + radius)
    return " ".join(text[start:end].split())


class PatternExtractor:
    def __init__(self, oracle: JudgmentOracle, classifier: QuestionClassifier, *, domain: str):
        self.oracle = oracle
        self.classifier = classifier
        self.domain = domain.lower()

    def rank(self, candidates: list[str], qtype: QuestionType, text: str) -> list[str]:
        if qtype != QuestionType.EXTERNAL_RESOURCE_LINK:
            return sorted(candidates, key=len, reverse=True)[:MAX_CANDIDATES]

        labeled = {
            link.url
            for link in labeled_links(text, f"https://{self.domain}/")
            if self.classifier.mentions(QuestionType.EXTERNAL_RESOURCE_LINK, link.label)
        }

        def key(url: str):
            if url in labeled:
                tier = 0
            elif host_of(url) != self.domain:
                tier = 1
            else:
                tier = 2
            return (tier, -len(url))

        return sorted(candidates, key=key)[:MAX_CANDIDATES]

    def run(self, questions: Sequence[Question], corpus: Corpus) -> PatternOutcome:
        outcome = PatternOutcome()
        text = corpus.full_text()
        if not text.strip():
            return outcome

        for question in questions:
            qtype = self.classifier.classify(question.text)
            candidates = self.rank(find_candidates(text, qtype), qtype, text)
            if not candidates:
                logger.info(f"No {qtype.value} patterns in corpus for question {question.id}")
                continue

            listing = "\n".join(
                f"{i}. {candidate}\n   context: {evidence_for(text, candidate)}"
                for i, candidate in enumerate(candidates, start=1)
            )
            prompt = ADJUDICATE_PROMPT.format(qid=question.id, question=question.text, candidates=listing)

            try:
                reply = self.oracle.ask(prompt)
            except OracleError as e:
                logger.warning(f"Pattern adjudication failed, aborting tier: {e}")
                outcome.aborted = True
                return outcome

            choice = parse_candidate_choice(reply, candidates)
            if isinstance(choice, ParseError):
                logger.info(
                    f"Unclear adjudication for {question.id} ({choice.reason}); taking top-ranked match",
                    extra={"extra_fields": {"question_id": question.id, "candidate": candidates[0]}},
                )
                value = candidates[0]
            else:
                value = choice.value

            if value is None:
                logger.info(f"Oracle rejected all {len(candidates)} candidates for {question.id}")
                continue

            outcome.findings.append(Finding(question_id=question.id, text=value, source=SOURCE_TAG))
            logger.info(f"🧩 Pattern answer for {question.id}: {value}")

        return outcome
