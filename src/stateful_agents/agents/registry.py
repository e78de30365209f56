"""Workflow registry.

Maps workflow ids to their definition and tool set. The process-wide
registry is populated once with the bundled workflows and frozen; tests build
their own :class:`WorkflowRegistry` instances instead of touching it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from .errors import RegistryFrozenError, WorkflowNotFoundError
from .types import ToolDefinition, WorkflowDefinition
from .validation import validate_workflow

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegisteredWorkflow:
    definition: WorkflowDefinition
    tools: Mapping[str, ToolDefinition]
    label: str = ""
    description: str = ""


class WorkflowRegistry:
    def __init__(self) -> None:
        self._workflows: dict[str, RegisteredWorkflow] = {}
        self._frozen = False

    def register(
        self,
        workflow_id: str,
        definition: WorkflowDefinition,
        tools: Mapping[str, ToolDefinition],
        *,
        label: str = "",
        description: str = "",
    ) -> RegisteredWorkflow:
        """Validate and add a workflow.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            AuthoringError: If the definition is inconsistent with itself or its tools.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Registry is frozen; cannot register '{workflow_id}'")

        validate_workflow(definition, tools)
        entry = RegisteredWorkflow(
            definition=definition,
            tools=MappingProxyType(dict(tools)),
            label=label or definition.name,
            description=description or definition.description,
        )
        self._workflows[workflow_id] = entry
        logger.info(
            "Registered workflow",
            extra={"workflow": workflow_id, "states": len(definition.states)},
        )
        return entry

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_workflow(self, workflow_id: str) -> RegisteredWorkflow:
        try:
            return self._workflows[workflow_id]
        except KeyError:
            raise WorkflowNotFoundError(workflow_id) from None

    def is_valid_workflow(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def get_available_workflows(self) -> list[str]:
        return list(self._workflows)


@lru_cache(maxsize=1)
def default_registry() -> WorkflowRegistry:
    """Build the process-wide registry with the bundled workflows, then freeze it."""
    from stateful_agents.workflows import register_bundled_workflows

    registry = WorkflowRegistry()
    register_bundled_workflows(registry)
    registry.freeze()
    return registry


def get_workflow(workflow_id: str) -> RegisteredWorkflow:
    return default_registry().get_workflow(workflow_id)


def is_valid_workflow(workflow_id: str) -> bool:
    return default_registry().is_valid_workflow(workflow_id)


def get_available_workflows() -> list[str]:
    return default_registry().get_available_workflows()
