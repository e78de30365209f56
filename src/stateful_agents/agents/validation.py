"""Registration-time checks for workflow definitions.

Authoring mistakes surface once, at process init, rather than mid-conversation.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from .errors import AuthoringError
from .types import (
    ANY_STATE,
    Always,
    TextMatches,
    ToolChoice,
    ToolApproved,
    ToolDenied,
    ToolDefinition,
    ToolInvoked,
    WorkflowDefinition,
)

logger = logging.getLogger(__name__)


def validate_workflow(definition: WorkflowDefinition, tools: Mapping[str, ToolDefinition]) -> None:
    problems: list[str] = []
    states = set(definition.states)

    if definition.initial_state not in states:
        problems.append(f"initial state '{definition.initial_state}' is not declared")

    for key, tool in tools.items():
        if key != tool.name:
            problems.append(f"tool registered as '{key}' is named '{tool.name}'")

    for state_name, config in definition.states.items():
        for tool_name in config.tools:
            if tool_name not in tools:
                problems.append(f"state '{state_name}' uses unknown tool '{tool_name}'")
        if isinstance(config.tool_choice, ToolChoice) and (
            config.tool_choice.tool_name not in config.tools
        ):
            problems.append(
                f"state '{state_name}' forces tool '{config.tool_choice.tool_name}' "
                "which is not active in that state"
            )

    for index, transition in enumerate(definition.transitions):
        label = f"transition #{index} ({transition.from_state} -> {transition.to_state})"
        if transition.from_state != ANY_STATE and transition.from_state not in states:
            problems.append(f"{label}: source state is not declared")
        if transition.to_state not in states:
            problems.append(f"{label}: target state is not declared")

        trigger = transition.trigger
        if isinstance(trigger, ToolInvoked | ToolApproved | ToolDenied):
            tool = tools.get(trigger.tool_name)
            if tool is None:
                problems.append(f"{label}: trigger references unknown tool '{trigger.tool_name}'")
            elif isinstance(trigger, ToolApproved | ToolDenied) and not tool.needs_approval:
                problems.append(
                    f"{label}: '{trigger.tool_name}' does not need approval, "
                    f"so {trigger.describe()} can never fire"
                )
        elif isinstance(trigger, TextMatches):
            try:
                trigger.compiled()
            except re.error as e:
                problems.append(f"{label}: invalid pattern {trigger.pattern!r}: {e}")

    _warn_shadowed_transitions(definition)
    _warn_never_completes(definition)

    if problems:
        raise AuthoringError(definition.id, problems)


def _warn_shadowed_transitions(definition: WorkflowDefinition) -> None:
    seen_always: set[str] = set()
    for transition in definition.transitions:
        if transition.from_state in seen_always:
            logger.warning(
                "Transition is unreachable behind an earlier 'always' transition",
                extra={
                    "workflow": definition.id,
                    "from_state": transition.from_state,
                    "to_state": transition.to_state,
                },
            )
        if isinstance(transition.trigger, Always):
            seen_always.add(transition.from_state)

    # Wildcards are tried after every exact transition, whatever the declaration order.
    exact_always = sorted(s for s in seen_always if s != ANY_STATE)
    if not exact_always:
        return
    for transition in definition.transitions:
        if transition.from_state == ANY_STATE:
            logger.warning(
                "Wildcard transition never fires from states with an 'always' transition",
                extra={
                    "workflow": definition.id,
                    "to_state": transition.to_state,
                    "shadowed_states": exact_always,
                },
            )


def _warn_never_completes(definition: WorkflowDefinition) -> None:
    if not definition.terminal_states and definition.max_steps is None:
        logger.warning(
            "Workflow has no terminal state and no step limit, so it never completes",
            extra={"workflow": definition.id},
        )
