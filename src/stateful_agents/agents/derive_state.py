"""State derivation by replaying history.

Workflow state is never stored. Starting from the workflow's initial state,
every completed round in history is replayed through the transition evaluator;
the state reached at the end is the current state. The same history always
yields the same context.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .history import Message, first_user_text, iter_rounds
from .transitions import candidate_transitions, evaluate
from .types import StateTransition, StateTransitionRecord, WorkflowContext, WorkflowDefinition


@dataclass(frozen=True, slots=True)
class DerivedState:
    current_state: str
    step_number: int
    is_complete: bool


@dataclass(frozen=True, slots=True)
class _Replay:
    state: DerivedState
    records: tuple[StateTransitionRecord, ...]


def _replay(definition: WorkflowDefinition, history: Sequence[Message]) -> _Replay:
    state = definition.initial_state
    step = 0
    complete = is_workflow_complete(definition, state)
    records: list[StateTransitionRecord] = []

    for outcome in iter_rounds(history):
        step += 1
        winner = evaluate(definition.transitions, state, outcome)
        if winner is not None:
            records.append(
                StateTransitionRecord(
                    from_state=state,
                    to_state=winner.to_state,
                    triggered_by=winner.trigger.describe(),
                    at_step=step,
                )
            )
            state = winner.to_state
        if is_workflow_complete(definition, state):
            complete = True
        if definition.max_steps is not None and step >= definition.max_steps:
            complete = True

    return _Replay(
        state=DerivedState(current_state=state, step_number=step, is_complete=complete),
        records=tuple(records),
    )


def derive_state(definition: WorkflowDefinition, history: Sequence[Message]) -> DerivedState:
    """Replay ``history`` and return where the workflow stands.

    ``step_number`` counts completed rounds whether or not a transition fired.
    ``is_complete`` latches once a terminal state (or ``max_steps``) is reached.
    """
    return _replay(definition, history).state


def build_state_history(
    definition: WorkflowDefinition, history: Sequence[Message]
) -> tuple[StateTransitionRecord, ...]:
    """Ordered transition log for display. Carries no wall-clock data."""
    return _replay(definition, history).records


def is_workflow_complete(definition: WorkflowDefinition, state: str) -> bool:
    config = definition.states.get(state)
    return bool(config and config.terminal)


def get_available_transitions(
    definition: WorkflowDefinition, state: str
) -> list[StateTransition]:
    return candidate_transitions(definition.transitions, state)


def collect_data(history: Sequence[Message]) -> dict[str, Any]:
    """Aggregate ``field_name``/``value`` pairs recorded by executed tools."""
    collected: dict[str, Any] = {}
    for outcome in iter_rounds(history):
        for record in outcome.executed():
            for source in (record.args, record.result):
                if isinstance(source, dict) and source.get("field_name") and "value" in source:
                    collected[str(source["field_name"])] = source["value"]
    return collected


def derive_context(definition: WorkflowDefinition, history: Sequence[Message]) -> WorkflowContext:
    replay = _replay(definition, history)
    results = tuple(r for outcome in iter_rounds(history) for r in outcome.executed())
    return WorkflowContext(
        current_state=replay.state.current_state,
        step_number=replay.state.step_number,
        is_complete=replay.state.is_complete,
        state_history=replay.records,
        initial_prompt=first_user_text(history),
        collected_data=collect_data(history),
        tool_results=results,
    )
