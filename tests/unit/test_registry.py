"""Unit tests for the workflow registry and registration-time validation."""

from __future__ import annotations

import logging

import pytest

from stateful_agents.agents.errors import (
    AuthoringError,
    RegistryFrozenError,
    WorkflowNotFoundError,
)
from stateful_agents.agents.registry import (
    WorkflowRegistry,
    default_registry,
    get_available_workflows,
    get_workflow,
    is_valid_workflow,
)
from stateful_agents.agents.types import (
    Always,
    StateConfig,
    StateTransition,
    TextMatches,
    ToolApproved,
    ToolChoice,
    ToolDefinition,
    ToolInvoked,
    WorkflowDefinition,
)


def _noop(_args: dict) -> None:
    return None


TOOLS = {
    "go": ToolDefinition("go", "Advance", _noop),
    "ship": ToolDefinition("ship", "Ship it", _noop, needs_approval=True),
}


def _definition(**overrides: object) -> WorkflowDefinition:
    fields: dict[str, object] = {
        "id": "tiny",
        "name": "Tiny",
        "states": {
            "start": StateConfig(instructions="start", tools=("go",)),
            "done": StateConfig(instructions="done", tools=("ship",), terminal=True),
        },
        "initial_state": "start",
        "transitions": (StateTransition("start", ToolInvoked("go"), "done"),),
    }
    fields.update(overrides)
    return WorkflowDefinition(**fields)  # type: ignore[arg-type]


def test_register_and_lookup() -> None:
    registry = WorkflowRegistry()
    registry.register("tiny", _definition(), TOOLS, label="Tiny")

    entry = registry.get_workflow("tiny")
    assert entry.definition.id == "tiny"
    assert entry.label == "Tiny"
    assert registry.is_valid_workflow("tiny")
    assert not registry.is_valid_workflow("other")
    assert registry.get_available_workflows() == ["tiny"]


def test_unknown_workflow_raises_typed_error() -> None:
    with pytest.raises(WorkflowNotFoundError) as excinfo:
        WorkflowRegistry().get_workflow("ghost")
    assert excinfo.value.workflow_id == "ghost"
    assert isinstance(excinfo.value, LookupError)


def test_frozen_registry_rejects_registration() -> None:
    registry = WorkflowRegistry()
    registry.freeze()

    with pytest.raises(RegistryFrozenError):
        registry.register("tiny", _definition(), TOOLS)


def test_default_registry_is_frozen_and_holds_bundled_workflows() -> None:
    assert default_registry().frozen
    assert get_available_workflows() == ["research", "coaching"]
    assert is_valid_workflow("research")
    assert get_workflow("coaching").definition.initial_state == "goal_capture"


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"initial_state": "nowhere"}, "initial state"),
        (
            {"transitions": (StateTransition("start", ToolInvoked("go"), "limbo"),)},
            "target state is not declared",
        ),
        (
            {"transitions": (StateTransition("ghost", ToolInvoked("go"), "done"),)},
            "source state is not declared",
        ),
        (
            {"transitions": (StateTransition("start", ToolApproved("go"), "done"),)},
            "does not need approval",
        ),
        (
            {"transitions": (StateTransition("start", TextMatches("("), "done"),)},
            "invalid pattern",
        ),
        (
            {"states": {"start": StateConfig(instructions="s", tools=("fly",))}},
            "unknown tool 'fly'",
        ),
        (
            {
                "states": {
                    "start": StateConfig(instructions="s", tools=("go",), tool_choice=ToolChoice("ship")),
                    "done": StateConfig(instructions="d", terminal=True),
                }
            },
            "forces tool 'ship'",
        ),
    ],
)
def test_authoring_errors_fail_at_registration(overrides: dict, fragment: str) -> None:
    with pytest.raises(AuthoringError) as excinfo:
        WorkflowRegistry().register("tiny", _definition(**overrides), TOOLS)
    assert any(fragment in problem for problem in excinfo.value.problems)


def test_wildcard_source_is_allowed() -> None:
    definition = _definition(
        transitions=(StateTransition("any", ToolApproved("ship"), "start"),)
    )

    WorkflowRegistry().register("tiny", definition, TOOLS)


def test_shadowed_transition_only_warns(caplog: pytest.LogCaptureFixture) -> None:
    definition = _definition(
        transitions=(
            StateTransition("start", Always(), "done"),
            StateTransition("start", ToolInvoked("go"), "done"),
        )
    )

    with caplog.at_level(logging.WARNING):
        WorkflowRegistry().register("tiny", definition, TOOLS)

    assert "unreachable" in caplog.text


def test_exact_always_shadows_wildcard_transitions(caplog: pytest.LogCaptureFixture) -> None:
    definition = _definition(
        transitions=(
            StateTransition("any", ToolApproved("ship"), "start"),
            StateTransition("start", Always(), "done"),
        )
    )

    with caplog.at_level(logging.WARNING):
        WorkflowRegistry().register("tiny", definition, TOOLS)

    shadowed = [r for r in caplog.records if "never fires" in r.getMessage()]
    assert len(shadowed) == 1
    assert shadowed[0].shadowed_states == ["start"]


def test_workflow_without_an_end_only_warns(caplog: pytest.LogCaptureFixture) -> None:
    definition = _definition(
        states={
            "start": StateConfig(instructions="start", tools=("go",)),
            "done": StateConfig(instructions="done", tools=("ship",)),
        }
    )

    with caplog.at_level(logging.WARNING):
        WorkflowRegistry().register("tiny", definition, TOOLS)

    assert "never completes" in caplog.text
