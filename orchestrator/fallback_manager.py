from dataclasses import dataclass

from orchestrator.stage_types import STAGE_ORDER, NextAction, Stage, StageDecision


@dataclass(frozen=True)
class FallbackPolicy:
    allow_escalation: bool = True
    # Stages the run should pass over (e.g. WEB_SEARCH when no search key is configured)
    skipped_stages: frozenset[Stage] = frozenset()


def next_stage(stage: Stage) -> Stage | None:
    """The stage after ``stage`` in waterfall order, or None after DONE."""
    index = STAGE_ORDER.index(stage)
    if index + 1 >= len(STAGE_ORDER):
        return None
    return STAGE_ORDER[index + 1]


class FallbackManager:
    def decide(
        self,
        *,
        current_stage: Stage,
        outstanding: int,
        policy: FallbackPolicy,
    ) -> StageDecision:
        if current_stage == Stage.DONE:
            return StageDecision(action=NextAction.STOP, next_stage=Stage.DONE, reason="terminal")

        if outstanding <= 0:
            return StageDecision(action=NextAction.STOP, next_stage=Stage.DONE, reason="all_answered")

        if not policy.allow_escalation:
            return StageDecision(action=NextAction.STOP, next_stage=Stage.DONE, reason="escalation_disabled")

        candidate = next_stage(current_stage)
        while candidate is not None and candidate in policy.skipped_stages:
            candidate = next_stage(candidate)

        if candidate is None or candidate == Stage.DONE:
            return StageDecision(action=NextAction.STOP, next_stage=Stage.DONE, reason="tiers_exhausted")

        return StageDecision(action=NextAction.ESCALATE, next_stage=candidate, reason="unanswered_remain")
