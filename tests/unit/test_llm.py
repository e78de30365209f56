"""Unit tests for LLM providers and the OpenAI wire format."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import Mock

import httpx
import openai
import pytest

from stateful_agents.agents.errors import ModelProviderError
from stateful_agents.agents.history import Message, ToolCall, ToolResultRecord
from stateful_agents.agents.types import ToolChoice
from stateful_agents.core.config import LLMConfig
from stateful_agents.llm.factory import LLMFactory
from stateful_agents.llm.openai_format import (
    parse_arguments,
    to_openai_messages,
    tool_choice_param,
    tool_specs,
)
from stateful_agents.llm.openai_provider import OpenAIProvider
from stateful_agents.workflows.research import research_tools


def _completion(content: str | None, *tool_calls: tuple[str, str, str]) -> SimpleNamespace:
    calls = [
        SimpleNamespace(id=i, function=SimpleNamespace(name=n, arguments=a))
        for i, n, a in tool_calls
    ]
    message = SimpleNamespace(content=content, tool_calls=calls or None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _chunk(content: str | None = None, tool_calls: list | None = None) -> SimpleNamespace:
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def test_factory_creates_openai_provider(llm_config: LLMConfig) -> None:
    provider = LLMFactory.create(llm_config)

    assert isinstance(provider, OpenAIProvider)


def test_factory_rejects_unknown_provider(llm_config: LLMConfig) -> None:
    config = llm_config.model_copy(update={"provider": "mystery"})

    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        LLMFactory.create(config)


def test_llama_provider_requires_model_path() -> None:
    with pytest.raises(ValueError, match="model path"):
        LLMFactory.create(LLMConfig(provider="llama"))


def test_openai_provider_requires_key() -> None:
    with pytest.raises(ValueError):
        OpenAIProvider(LLMConfig(openai_api_key=None))


def test_openai_provider_parses_tool_calls(llm_config: LLMConfig) -> None:
    client = Mock()
    client.chat.completions.create.return_value = _completion(
        "Searching",
        ("call_a", "search", '{"query": "tides"}'),
        ("call_b", "take_note", "not json"),
    )
    provider = OpenAIProvider(llm_config, client=client)
    tools = [research_tools["search"], research_tools["take_note"]]

    response = provider.generate(
        "be helpful", [Message(role="user", content="hi")], tools, model="smart"
    )

    assert response.text == "Searching"
    assert [(c.call_id, c.tool_name) for c in response.tool_calls] == [
        ("call_a", "search"),
        ("call_b", "take_note"),
    ]
    assert response.tool_calls[0].args == {"query": "tides"}
    assert response.tool_calls[1].args == {"_raw_arguments": "not json"}

    request = client.chat.completions.create.call_args.kwargs
    assert request["model"] == "gpt-4o"
    assert request["tool_choice"] == "auto"
    assert [t["function"]["name"] for t in request["tools"]] == ["search", "take_note"]
    assert request["messages"][0] == {"role": "system", "content": "be helpful"}


def test_openai_provider_omits_tools_when_none_are_active(llm_config: LLMConfig) -> None:
    client = Mock()
    client.chat.completions.create.return_value = _completion("done")
    provider = OpenAIProvider(llm_config, client=client)

    provider.generate("sys", [], [], "none")

    request = client.chat.completions.create.call_args.kwargs
    assert "tools" not in request
    assert "tool_choice" not in request


def test_openai_api_error_becomes_provider_error(llm_config: LLMConfig) -> None:
    client = Mock()
    client.chat.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    )
    provider = OpenAIProvider(llm_config, client=client)

    with pytest.raises(ModelProviderError):
        provider.generate("sys", [], [])


def test_openai_stream_accumulates_tool_call_fragments(llm_config: LLMConfig) -> None:
    fragment = lambda index, id_, name, args: SimpleNamespace(  # noqa: E731
        index=index, id=id_, function=SimpleNamespace(name=name, arguments=args)
    )
    client = Mock()
    client.chat.completions.create.return_value = iter(
        [
            _chunk("Hel"),
            _chunk("lo"),
            _chunk(tool_calls=[fragment(0, "call_s", "search", '{"que')]),
            _chunk(tool_calls=[fragment(0, None, None, 'ry": "x"}')]),
        ]
    )
    provider = OpenAIProvider(llm_config, client=client)

    chunks = list(provider.stream("sys", [], [research_tools["search"]]))

    assert [c.text_delta for c in chunks[:-1]] == ["Hel", "lo"]
    final = chunks[-1].response
    assert final is not None
    assert final.text == "Hello"
    assert final.tool_calls == [ToolCall(call_id="call_s", tool_name="search", args={"query": "x"})]


def test_tool_specs_use_argument_schema() -> None:
    entry = tool_specs([research_tools["publish"]])[0]

    assert entry["type"] == "function"
    assert entry["function"]["name"] == "publish"
    assert set(entry["function"]["parameters"]["required"]) == {"title", "body"}


def test_tool_choice_param_forces_named_tool() -> None:
    assert tool_choice_param("required") == "required"
    assert tool_choice_param(ToolChoice("publish")) == {
        "type": "function",
        "function": {"name": "publish"},
    }


def test_parse_arguments_handles_empty_and_non_object() -> None:
    assert parse_arguments(None) == {}
    assert parse_arguments("[1, 2]") == {"_raw_arguments": "[1, 2]"}


def test_messages_place_latest_result_after_its_call() -> None:
    history = [
        Message(role="user", content="publish it"),
        Message(
            role="assistant",
            tool_calls=[ToolCall(call_id="p1", tool_name="publish", args={"title": "t"})],
            tool_results=[
                ToolResultRecord(call_id="p1", tool_name="publish", pending_approval=True)
            ],
        ),
    ]

    pending = to_openai_messages("sys", history)
    resolved = to_openai_messages(
        "sys",
        history,
        [ToolResultRecord(call_id="p1", tool_name="publish", result={"published": True})],
    )

    assert [m["role"] for m in pending] == ["system", "user", "assistant", "tool"]
    assert pending[2]["tool_calls"][0]["id"] == "p1"
    assert json.loads(pending[3]["content"]) == {"status": "pending_approval"}
    assert resolved[3]["tool_call_id"] == "p1"
    assert json.loads(resolved[3]["content"]) == {"published": True}
