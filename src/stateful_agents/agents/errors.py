"""Typed failures raised by the stateful agent core.

The surrounding request layer maps these onto protocol-level responses; the
core itself has no transport concept.
"""

from __future__ import annotations


class StatefulAgentError(Exception):
    """Base class for every failure raised by the core."""


class WorkflowNotFoundError(StatefulAgentError, LookupError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Unknown workflow: {workflow_id}")
        self.workflow_id = workflow_id


class ToolNotFoundError(StatefulAgentError, LookupError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class RoundAbortedError(StatefulAgentError):
    """A round stopped before the model answered.

    ``resolutions`` holds approval resolutions that had already executed when
    the round stopped. When there are any, ``messages`` holds the records the
    caller must append to history so those calls are not executed again on
    retry; otherwise it is empty and history stays untouched.
    """

    resolutions: tuple[object, ...] = ()
    messages: tuple[object, ...] = ()


class ModelProviderError(RoundAbortedError, RuntimeError):
    """The upstream model call failed (network, auth, rate limit, timeout)."""


class CanceledError(RoundAbortedError):
    """The caller canceled the round before the model call completed."""


class ToolExecutionError(StatefulAgentError, RuntimeError):
    """A tool's execute callable raised.

    Never escapes a round: the executor converts it into an error result entry.
    """

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class ApprovalRequiredButMissingError(StatefulAgentError, LookupError):
    """An approval decision references a call that is not pending in history."""

    def __init__(self, call_id: str) -> None:
        super().__init__(f"No pending approval for tool call: {call_id}")
        self.call_id = call_id


class AuthoringError(StatefulAgentError, ValueError):
    """A workflow definition is inconsistent. Raised at registration time."""

    def __init__(self, workflow_id: str, problems: list[str]) -> None:
        joined = "; ".join(problems)
        super().__init__(f"Invalid workflow '{workflow_id}': {joined}")
        self.workflow_id = workflow_id
        self.problems = problems


class RegistryFrozenError(StatefulAgentError, RuntimeError):
    pass
