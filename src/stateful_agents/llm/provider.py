"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from stateful_agents.agents.history import Message, ToolCall, ToolResultRecord
from stateful_agents.agents.types import ToolChoiceConfig, ToolDefinition


@dataclass(frozen=True, slots=True)
class ModelResponse:
    """Final shape of one model call: text plus tool calls in emission order."""

    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """A streamed text delta, or the final response when ``response`` is set."""

    text_delta: str = ""
    response: ModelResponse | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This interface allows pluggable LLM backends (OpenAI, LLaMA, etc.)
    """

    @abstractmethod
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
        """Run one model call.

        Args:
            system_prompt: Instructions for the active workflow state.
            messages: Conversation history, oldest first.
            tools: Tools the model may call in this state.
            tool_choice: Tool-choice policy for this state.
            model: Model shorthand or id; provider default when None.
            resolved: Results that resolved earlier pending calls during this
                round, not yet recorded in ``messages``.

        Returns:
            The model's text and tool calls.

        Raises:
            ModelProviderError: If the upstream call fails.
        """

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
        """Stream one model call. The last chunk always carries the response.

        Providers without native streaming inherit this, which emits the whole
        text as one delta.
        """
        response = self.generate(
            system_prompt, messages, tools, tool_choice, model=model, resolved=resolved
        )
        if response.text:
            yield StreamChunk(text_delta=response.text)
        yield StreamChunk(response=response)
