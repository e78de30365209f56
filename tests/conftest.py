"""Test configuration and fixtures."""

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from stateful_agents.agents.history import Message, ToolCall, ToolResultRecord
from stateful_agents.agents.registry import WorkflowRegistry
from stateful_agents.agents.types import ToolChoiceConfig, ToolDefinition
from stateful_agents.core.config import AgentConfig, LLMConfig
from stateful_agents.llm.provider import LLMProvider, ModelResponse
from stateful_agents.workflows import register_bundled_workflows


class ScriptedProvider(LLMProvider):
    """Replays canned responses and records every request it receives."""

    def __init__(self, responses: Sequence[ModelResponse | Exception]) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def generate(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoiceConfig = "auto",
        *,
        model: str | None = None,
        resolved: Sequence[ToolResultRecord] = (),
    ) -> ModelResponse:
        self.requests.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "tools": [t.name for t in tools],
                "tool_choice": tool_choice,
                "model": model,
                "resolved": list(resolved),
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _respond(text: str = "", *calls: tuple[str, str, dict[str, Any]]) -> ModelResponse:
    """Build a model response from ``(call_id, tool_name, args)`` triples."""
    return ModelResponse(
        text=text,
        tool_calls=[ToolCall(call_id=c, tool_name=n, args=a) for c, n, a in calls],
    )


@pytest.fixture
def respond() -> Callable[..., ModelResponse]:
    return _respond


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    return lambda *responses: ScriptedProvider(responses)


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(
        provider="openai",
        openai_api_key="test-key",
        openai_model="gpt-4o-mini",
    )


@pytest.fixture
def agent_config(llm_config: LLMConfig) -> AgentConfig:
    """Provide a test agent configuration."""
    return AgentConfig(
        log_level="DEBUG",
        debug=True,
        cancel_poll_seconds=0.01,
        llm=llm_config,
    )


@pytest.fixture
def registry() -> WorkflowRegistry:
    """A private registry holding the bundled workflows."""
    reg = WorkflowRegistry()
    register_bundled_workflows(reg)
    return reg
