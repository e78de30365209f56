"""Local LLaMA LLM provider implementation."""

import logging
from collections.abc import Sequence
from typing import Any

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
from stateful_agents.llm.provider import LLMProvider, ModelResponse

logger = logging.getLogger(__name__)


class LLaMAProvider(LLMProvider):
    """Local LLaMA model provider implementation.

    Requires llama-cpp-python to be installed:
        pip install "stateful-agents[llama]"

    Tool calling uses llama-cpp's OpenAI-compatible chat handler, so the model
    is loaded with the ``chatml-function-calling`` chat format.
    """

    def __init__(self, config: LLMConfig) -> None:
        """Initialize the LLaMA provider.

        Args:
            config: LLM configuration.

        Raises:
            ValueError: If model path is not provided.
            ImportError: If llama-cpp-python is not installed.
        """
        if not config.llama_model_path:
            raise ValueError("LLaMA model path is required")

        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ImportError(
                "llama-cpp-python is required for LLaMA provider. "
                'Install it with: pip install "stateful-agents[llama]"'
            ) from e

        self.config = config

        logger.info(f"Loading LLaMA model from: {config.llama_model_path}")

        self.llm = Llama(
            model_path=str(config.llama_model_path),
            n_ctx=config.llama_n_ctx,
            n_threads=config.llama_n_threads,
            chat_format="chatml-function-calling",
            verbose=False,
        )

        logger.info("LLaMA model loaded successfully")

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
        # A local model file serves every state; per-state model overrides are ignored.
        request: dict[str, Any] = {
            "messages": to_openai_messages(system_prompt, messages, resolved),
            "temperature": self.config.openai_temperature,
        }
        if tools:
            request["tools"] = tool_specs(tools)
            request["tool_choice"] = tool_choice_param(tool_choice)

        logger.debug(f"Generating chat completion with {len(request['messages'])} messages")

        try:
            result = self.llm.create_chat_completion(**request)
        except (RuntimeError, ValueError) as e:
            raise ModelProviderError(f"LLaMA completion failed: {e}") from e

        message = result["choices"][0]["message"]
        text = message.get("content") or ""
        calls = parse_tool_calls(message.get("tool_calls"))
        logger.debug(f"Generated {len(text)} characters and {len(calls)} tool calls")
        return ModelResponse(text=text, tool_calls=calls)
