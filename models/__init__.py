"""
Models package for questions, answers and run state.
"""

from .answer import Answer, AnswerLedger, Refinement
from .corpus import Corpus, CorpusEntry
from .frontier import FrontierState
from .question import Question, load_questions, parse_questions
from .run_report import RunReport, RunStats, StageRecord

__all__ = [
    "Answer",
    "AnswerLedger",
    "Corpus",
    "CorpusEntry",
    "FrontierState",
    "Question",
    "Refinement",
    "RunReport",
    "RunStats",
    "StageRecord",
    "load_questions",
    "parse_questions",
]
