"""
Keyword classification of questions into answer types.

The type picks the regex battery for pattern extraction, the query
templates for web search and whether a ledger answer may be refined.
English and Polish keywords ship by default; a site profile can add more.
"""

import re
from collections.abc import Iterable, Mapping

from orchestrator.stage_types import QuestionType

# Checked in this order; the first type with a matching keyword wins.
DEFAULT_TYPE_KEYWORDS: dict[QuestionType, tuple[str, ...]] = {
    QuestionType.CONTACT_ADDRESS: (
        "email",
        "e-mail",
        "mail address",
        "mailowy",
        "adres mail",
        "skrzynk",
    ),
    QuestionType.EXTERNAL_RESOURCE_LINK: (
        "url",
        "link",
        "web address",
        "website",
        "web interface",
        "interface",
        "portal",
        "interfejs",
        "webowy",
        "adres strony",
        "sterowania",
    ),
    QuestionType.CERTIFICATION_CODE: (
        "iso",
        "certificat",
        "certified",
        "certyfikat",
        "norma",
        "normy",
        "jakości",
    ),
}


class QuestionClassifier:
    def __init__(self, extra_keywords: Mapping[str, Iterable[str]] | None = None):
        self._keywords: dict[QuestionType, tuple[str, ...]] = dict(DEFAULT_TYPE_KEYWORDS)
        for type_name, words in (extra_keywords or {}).items():
            qtype = QuestionType(type_name)
            merged = list(self._keywords.get(qtype, ()))
            merged.extend(w.lower() for w in words if w.strip() and w.lower() not in merged)
            self._keywords[qtype] = tuple(merged)

    def keywords_for(self, qtype: QuestionType) -> tuple[str, ...]:
        return self._keywords.get(qtype, ())

    def mentions(self, qtype: QuestionType, text: str) -> bool:
        """True if ``text`` contains a keyword of ``qtype`` at a word start."""
        lowered = text.lower()
        return any(re.search(rf"\b{re.escape(word)}", lowered) for word in self.keywords_for(qtype))

    def classify(self, question_text: str) -> QuestionType:
        for qtype in DEFAULT_TYPE_KEYWORDS:
            if self.mentions(qtype, question_text):
                return qtype
        return QuestionType.GENERAL

    def ids_of_type(self, questions, qtype: QuestionType) -> list[str]:
        return [q.id for q in questions if self.classify(q.text) == qtype]
