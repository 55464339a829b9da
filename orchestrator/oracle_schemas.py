"""
Strict parsers for oracle replies.

Each parser returns ``Ok(value)`` or ``ParseError``; nothing here guesses at
alternative reply shapes. The one normalisation applied is removing a single
markdown code fence around a JSON body.
"""

import re
from typing import List

from pydantic import BaseModel, Field, ValidationError

from orchestrator.stage_types import Ok, ParseError, ParseResult

NOT_FOUND = "NOT_FOUND"
CANNOT_INFER = "CANNOT_INFER"


class PrioritizedLinkPayload(BaseModel):
    url: str = Field(..., min_length=1)
    score: int = Field(..., ge=1, le=10)
    reason: str = ""


class PrioritizedLinksPayload(BaseModel):
    prioritized_links: List[PrioritizedLinkPayload]


class SuggestedPathsPayload(BaseModel):
    suggested_paths: List[str]


def _strip_code_fence(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    return cleaned


def parse_prioritized_links(raw: str) -> ParseResult[List[PrioritizedLinkPayload]]:
    try:
        payload = PrioritizedLinksPayload.model_validate_json(_strip_code_fence(raw))
    except ValidationError as e:
        return ParseError(reason=f"prioritized_links: {e.error_count()} validation error(s)", raw=raw)
    return Ok(payload.prioritized_links)


def parse_suggested_paths(raw: str) -> ParseResult[List[str]]:
    try:
        payload = SuggestedPathsPayload.model_validate_json(_strip_code_fence(raw))
    except ValidationError as e:
        return ParseError(reason=f"suggested_paths: {e.error_count()} validation error(s)", raw=raw)
    return Ok([p.strip() for p in payload.suggested_paths if p.strip()])


def parse_answer_line(raw: str, question_id: str, min_length: int = 3) -> str | None:
    """
    Pull the answer for one id out of a ``<id>: <answer>`` line reply.

    Returns:
        The trimmed answer, or None when the line is absent, says NOT_FOUND,
        or is not longer than ``min_length``
    """
    # Horizontal whitespace only: an empty answer line must not borrow the next line
    pattern = re.compile(rf"^[ \t]*{re.escape(question_id)}[ \t]*[:\-][ \t]*(.+?)[ \t]*$", re.MULTILINE)
    match = pattern.search(raw)
    if not match:
        return None
    answer = match.group(1).strip()
    if NOT_FOUND in answer.upper():
        return None
    if len(answer) <= min_length:
        return None
    return answer


def parse_candidate_choice(raw: str, candidates: List[str]) -> ParseResult[str | None]:
    """
    Interpret an adjudication reply over numbered candidates.

    ``NOT_FOUND`` maps to ``Ok(None)``; a 1-based number or the exact text of
    a candidate maps to ``Ok(candidate)``; anything else is a ParseError.
    """
    reply = raw.strip().strip("`\"'").strip()
    if reply.upper() == NOT_FOUND:
        return Ok(None)
    if reply.isdigit():
        index = int(reply) - 1
        if 0 <= index < len(candidates):
            return Ok(candidates[index])
        return ParseError(reason=f"candidate number {reply} out of range", raw=raw)
    if reply in candidates:
        return Ok(reply)
    return ParseError(reason="reply is neither a candidate nor NOT_FOUND", raw=raw)


def parse_inference(raw: str, min_length: int = 5) -> ParseResult[str | None]:
    """``Ok(None)`` for the CANNOT_INFER sentinel or a too-short reply."""
    reply = raw.strip()
    if not reply:
        return ParseError(reason="empty inference reply", raw=raw)
    if CANNOT_INFER in reply.upper():
        return Ok(None)
    if len(reply) <= min_length:
        return Ok(None)
    return Ok(reply)
