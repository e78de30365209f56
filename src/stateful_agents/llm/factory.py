"""Provider selection from configuration."""

from __future__ import annotations

import logging
from collections.abc import Callable

from stateful_agents.core.config import LLMConfig
from stateful_agents.llm.llama_provider import LLaMAProvider
from stateful_agents.llm.openai_provider import OpenAIProvider
from stateful_agents.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

_PROVIDERS: dict[str, Callable[[LLMConfig], LLMProvider]] = {
    "openai": OpenAIProvider,
    "llama": LLaMAProvider,
}


class LLMFactory:
    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Build the provider named by ``config.provider``.

        Raises:
            ValueError: If the provider is unknown or its settings are incomplete.
        """
        try:
            build = _PROVIDERS[config.provider]
        except KeyError:
            raise ValueError(f"Unsupported LLM provider: {config.provider}") from None

        logger.info(
            "Creating model provider",
            extra={"provider": config.provider, "default_model": config.resolve_model(None)},
        )
        return build(config)
