"""LLM package initialization."""

from stateful_agents.llm.factory import LLMFactory
from stateful_agents.llm.provider import LLMProvider, ModelResponse, StreamChunk

__all__ = [
    "LLMFactory",
    "LLMProvider",
    "ModelResponse",
    "StreamChunk",
]
