"""Workflow domain types.

A workflow is a static, declarative graph: named states, each with its own
instructions and active tool subset, and a declaration-ordered list of
transitions. Definitions are immutable once built; the current state of a
conversation is never stored on them but derived from history.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel

ANY_STATE = "any"


# =============================================================================
# TRIGGERS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ToolInvoked:
    """Fires when the round executed ``tool_name``.

    ``arg_predicate`` narrows the match to calls whose arguments satisfy it.
    """

    tool_name: str
    arg_predicate: Callable[[Mapping[str, Any]], bool] | None = field(
        default=None, compare=False
    )

    def describe(self) -> str:
        return f"tool:{self.tool_name}"


@dataclass(frozen=True, slots=True)
class ToolApproved:
    tool_name: str

    def describe(self) -> str:
        return f"approved:{self.tool_name}"


@dataclass(frozen=True, slots=True)
class ToolDenied:
    tool_name: str

    def describe(self) -> str:
        return f"denied:{self.tool_name}"


@dataclass(frozen=True, slots=True)
class TextMatches:
    pattern: str
    flags: int = 0

    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.pattern, self.flags)

    def describe(self) -> str:
        return f"text:{self.pattern}"


@dataclass(frozen=True, slots=True)
class Always:
    def describe(self) -> str:
        return "always"


Trigger = ToolInvoked | ToolApproved | ToolDenied | TextMatches | Always


@dataclass(frozen=True, slots=True)
class StateTransition:
    from_state: str
    trigger: Trigger
    to_state: str


# =============================================================================
# STATES AND WORKFLOWS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ToolChoice:
    """Force the model to call one specific tool."""

    tool_name: str


ToolChoiceConfig = Literal["auto", "required", "none"] | ToolChoice


@dataclass(frozen=True, slots=True)
class StateConfig:
    """Per-state configuration.

    ``instructions`` is either a static system prompt or a callable that
    renders one from the current :class:`WorkflowContext`.
    """

    instructions: str | Callable[[WorkflowContext], str]
    tools: tuple[str, ...] = ()
    tool_choice: ToolChoiceConfig = "auto"
    terminal: bool = False
    name: str = ""
    description: str = ""
    model: str | None = None
    hidden: bool = False

    def render_instructions(self, context: WorkflowContext) -> str:
        if callable(self.instructions):
            return self.instructions(context)
        return self.instructions


@dataclass(frozen=True, slots=True)
class WorkflowDefinition:
    id: str
    name: str
    states: Mapping[str, StateConfig]
    initial_state: str
    transitions: tuple[StateTransition, ...] = ()
    description: str = ""
    default_model: str | None = None
    max_steps: int | None = None

    @property
    def terminal_states(self) -> tuple[str, ...]:
        return tuple(name for name, cfg in self.states.items() if cfg.terminal)


# =============================================================================
# CONTEXT
# =============================================================================


@dataclass(frozen=True, slots=True)
class StateTransitionRecord:
    from_state: str
    to_state: str
    triggered_by: str
    at_step: int

    def to_json(self) -> dict[str, object]:
        return {
            "fromState": self.from_state,
            "toState": self.to_state,
            "triggeredBy": self.triggered_by,
            "atStep": self.at_step,
        }


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    """Everything known about a conversation's position in its workflow.

    Built fresh from history on every call and discarded afterwards.
    """

    current_state: str
    step_number: int
    is_complete: bool
    state_history: tuple[StateTransitionRecord, ...] = ()
    initial_prompt: str = ""
    collected_data: Mapping[str, Any] = field(default_factory=dict)
    tool_results: tuple[Any, ...] = ()

    def to_json(self) -> dict[str, object]:
        return {
            "currentState": self.current_state,
            "stateHistory": [r.to_json() for r in self.state_history],
            "stepNumber": self.step_number,
            "isComplete": self.is_complete,
        }


# =============================================================================
# TOOLS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A tool the model may call.

    ``execute`` receives the validated argument mapping. When ``args_model``
    is set, arguments are validated against it first and its JSON schema is
    what the model sees.
    """

    name: str
    description: str
    execute: Callable[[dict[str, Any]], Any]
    args_model: type[BaseModel] | None = None
    needs_approval: bool = False

    def arg_schema(self) -> dict[str, Any]:
        if self.args_model is None:
            return {"type": "object", "properties": {}}
        return self.args_model.model_json_schema()

    def validate_args(self, args: Mapping[str, Any]) -> dict[str, Any]:
        if self.args_model is None:
            return dict(args)
        return self.args_model.model_validate(dict(args)).model_dump()
