"""Transition evaluation.

Precedence is declaration order: transitions leaving the exact state are
considered first, then wildcard (``"any"``) transitions, each group in the
order it was declared. The first transition whose trigger matches the round
wins. Specificity never reorders candidates, so workflow authors control
precedence by the order they write transitions in.
"""

from __future__ import annotations

from collections.abc import Sequence

from .history import RoundOutcome
from .types import (
    ANY_STATE,
    Always,
    StateTransition,
    TextMatches,
    ToolApproved,
    ToolDenied,
    ToolInvoked,
    Trigger,
)


def candidate_transitions(
    transitions: Sequence[StateTransition], state: str
) -> list[StateTransition]:
    exact = [t for t in transitions if t.from_state == state]
    wildcard = [t for t in transitions if t.from_state == ANY_STATE and state != ANY_STATE]
    return exact + wildcard


def matches(trigger: Trigger, outcome: RoundOutcome) -> bool:
    if isinstance(trigger, Always):
        return True
    if isinstance(trigger, ToolInvoked):
        for record in outcome.executed():
            if record.tool_name != trigger.tool_name:
                continue
            if trigger.arg_predicate is None or trigger.arg_predicate(record.args):
                return True
        return False
    if isinstance(trigger, ToolApproved):
        return outcome.approved(trigger.tool_name)
    if isinstance(trigger, ToolDenied):
        return outcome.denied(trigger.tool_name)
    if isinstance(trigger, TextMatches):
        return trigger.compiled().search(outcome.text) is not None
    raise TypeError(f"Unsupported trigger: {trigger!r}")


def evaluate(
    transitions: Sequence[StateTransition], state: str, outcome: RoundOutcome
) -> StateTransition | None:
    for transition in candidate_transitions(transitions, state):
        if matches(transition.trigger, outcome):
            return transition
    return None
