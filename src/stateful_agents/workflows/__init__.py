"""Bundled workflow definitions."""

from __future__ import annotations

from stateful_agents.agents.registry import WorkflowRegistry
from stateful_agents.workflows.coaching import coaching_tools, coaching_workflow
from stateful_agents.workflows.research import research_tools, research_workflow


def register_bundled_workflows(registry: WorkflowRegistry) -> None:
    registry.register(
        "research",
        research_workflow,
        research_tools,
        label="Research",
        description=(
            "Multi-step research that gathers sources, drafts a write-up and "
            "publishes it once you approve"
        ),
    )
    registry.register(
        "coaching",
        coaching_workflow,
        coaching_tools,
        label="Coaching",
        description=(
            "Fitness coaching that captures goals, assesses fitness level and "
            "creates a personalised training plan"
        ),
    )


__all__ = [
    "coaching_tools",
    "coaching_workflow",
    "register_bundled_workflows",
    "research_tools",
    "research_workflow",
]
