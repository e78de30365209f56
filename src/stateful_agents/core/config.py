"""Core configuration for the stateful agent runtime."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stateful_agents.logging import configure_logging


class LLMConfig(BaseSettings):
    """Configuration for LLM providers."""

    provider: Literal["openai", "llama"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Model used when a state does not name one",
    )
    openai_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single model request",
    )

    # LLaMA settings
    llama_model_path: Path | None = Field(
        default=None,
        description="Path to LLaMA model file",
    )
    llama_n_ctx: int = Field(
        default=4096,
        gt=0,
        description="Context window size for LLaMA",
    )
    llama_n_threads: int | None = Field(
        default=None,
        description="Number of threads for LLaMA (None = auto)",
    )

    model_aliases: dict[str, str] = Field(
        default_factory=lambda: {"fast": "gpt-4o-mini", "smart": "gpt-4o"},
        description="Workflow model shorthands mapped to provider model ids",
    )

    model_config = SettingsConfigDict(
        env_prefix="STATEFUL_AGENTS_LLM_",
        env_file=".env",
        extra="ignore",
    )

    def resolve_model(self, model: str | None) -> str:
        """Map a state or workflow model shorthand to a provider model id."""
        if not model:
            return self.openai_model
        return self.model_aliases.get(model, model)


class AgentConfig(BaseSettings):
    """Main configuration for the agent runtime."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    default_workflow: str = Field(
        default="research",
        description="Workflow used when none is requested",
    )
    cancel_poll_seconds: float = Field(
        default=0.05,
        gt=0,
        description="How often a waiting model call checks for cancellation",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="STATEFUL_AGENTS_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level, fmt=self.log_format)

        if self.debug:
            logging.getLogger("stateful_agents").setLevel(logging.DEBUG)
