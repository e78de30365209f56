"""Core package initialization."""

from stateful_agents.core.config import AgentConfig, LLMConfig

__all__ = [
    "AgentConfig",
    "LLMConfig",
]
