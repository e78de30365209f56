"""OpenAI LLM provider implementation."""

import logging
from collections.abc import Iterator, Sequence
from typing import Any

import openai
from openai import OpenAI

from stateful_agents.agents.errors import ModelProviderError
from stateful_agents.agents.history import Message, ToolResultRecord
from stateful_agents.agents.types import ToolChoiceConfig, ToolDefinition
from stateful_agents.core.config import LLMConfig
from stateful_agents.llm.openai_format import (
    parse_tool_calls,
    to_openai_messages,
    tool_choice_param,
    tool_specs,
)
from stateful_agents.llm.provider import LLMProvider, ModelResponse, StreamChunk

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider with function tools."""

    def __init__(self, config: LLMConfig, client: OpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Preconfigured client, mainly for tests.

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = client or OpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            timeout=config.request_timeout_seconds,
            max_retries=0,
        )
        self.temperature = config.openai_temperature

        logger.info(f"OpenAI provider initialized with model: {config.openai_model}")

    def _request(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoiceConfig,
        model: str | None,
        resolved: Sequence[ToolResultRecord],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.config.resolve_model(model),
            "messages": to_openai_messages(system_prompt, messages, resolved),
            "temperature": self.temperature,
        }
        if tools:
            request["tools"] = tool_specs(tools)
            request["tool_choice"] = tool_choice_param(tool_choice)
        return request

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
        request = self._request(system_prompt, messages, tools, tool_choice, model, resolved)
        logger.debug(f"Generating chat completion with {len(request['messages'])} messages")

        try:
            response = self.client.chat.completions.create(**request)
        except openai.APIError as e:
            raise ModelProviderError(f"OpenAI request failed: {e}") from e

        message = response.choices[0].message
        calls = parse_tool_calls(
            {
                "id": tc.id,
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            }
            for tc in (message.tool_calls or [])
        )
        text = message.content or ""
        logger.debug(f"Generated {len(text)} characters and {len(calls)} tool calls")
        return ModelResponse(text=text, tool_calls=calls)

    def stream(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        tool_choice: ToolChoiceConfig = "auto",
        *,
        model: str | None = None,
        resolved: Sequence[ToolResultRecord] = (),
    ) -> Iterator[StreamChunk]:
        request = self._request(system_prompt, messages, tools, tool_choice, model, resolved)
        text_parts: list[str] = []
        # Streamed tool calls arrive as fragments keyed by their index.
        partial: dict[int, dict[str, Any]] = {}

        try:
            for chunk in self.client.chat.completions.create(**request, stream=True):
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta.content:
                    text_parts.append(delta.content)
                    yield StreamChunk(text_delta=delta.content)
                for tc in delta.tool_calls or []:
                    slot = partial.setdefault(tc.index, {"id": None, "name": "", "arguments": ""})
                    if tc.id:
                        slot["id"] = tc.id
                    if tc.function is not None:
                        slot["name"] += tc.function.name or ""
                        slot["arguments"] += tc.function.arguments or ""
        except openai.APIError as e:
            raise ModelProviderError(f"OpenAI stream failed: {e}") from e

        calls = parse_tool_calls(
            {"id": slot["id"], "function": {"name": slot["name"], "arguments": slot["arguments"]}}
            for _, slot in sorted(partial.items())
        )
        yield StreamChunk(response=ModelResponse(text="".join(text_parts), tool_calls=calls))
