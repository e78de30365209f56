"""Stateful Agents.

A finite-state-machine core for multi-turn, tool-calling conversations:
- workflows declared as states, tools and ordered transitions
- current state derived from caller-owned history on every call
- a human approval gate in front of sensitive tools
- configuration loaded from `.env` and structured logging
"""

__version__ = "0.1.0"

from stateful_agents.core.config import AgentConfig

__all__ = ["__version__", "AgentConfig"]
