"""Stateful agent orchestration core.

This package provides:
- Declarative workflow definitions (states, triggers, transitions)
- State derivation by replaying caller-owned history
- A tool executor with an approval gate for sensitive tools
- A runtime that drives one model round per call

Workflow state is never stored: it is recomputed from history on every call.
"""

from stateful_agents.agents.derive_state import (
    DerivedState,
    build_state_history,
    derive_context,
    derive_state,
    get_available_transitions,
    is_workflow_complete,
)
from stateful_agents.agents.errors import (
    ApprovalRequiredButMissingError,
    AuthoringError,
    CanceledError,
    ModelProviderError,
    RegistryFrozenError,
    RoundAbortedError,
    StatefulAgentError,
    ToolExecutionError,
    ToolNotFoundError,
    WorkflowNotFoundError,
)
from stateful_agents.agents.history import (
    ApprovalDecision,
    Message,
    RoundOutcome,
    ToolCall,
    ToolResultRecord,
)
from stateful_agents.agents.registry import (
    RegisteredWorkflow,
    WorkflowRegistry,
    get_available_workflows,
    get_workflow,
    is_valid_workflow,
)
from stateful_agents.agents.runtime import (
    AgentResult,
    CancellationToken,
    GenerateParams,
    RoundFinished,
    StatefulAgent,
    TextDelta,
)
from stateful_agents.agents.transitions import evaluate
from stateful_agents.agents.types import (
    ANY_STATE,
    Always,
    StateConfig,
    StateTransition,
    StateTransitionRecord,
    TextMatches,
    ToolApproved,
    ToolChoice,
    ToolDefinition,
    ToolDenied,
    ToolInvoked,
    WorkflowContext,
    WorkflowDefinition,
)

__all__ = [
    "ANY_STATE",
    "AgentResult",
    "Always",
    "ApprovalDecision",
    "ApprovalRequiredButMissingError",
    "AuthoringError",
    "CancellationToken",
    "CanceledError",
    "DerivedState",
    "GenerateParams",
    "Message",
    "ModelProviderError",
    "RegisteredWorkflow",
    "RegistryFrozenError",
    "RoundAbortedError",
    "RoundFinished",
    "RoundOutcome",
    "StateConfig",
    "StateTransition",
    "StateTransitionRecord",
    "StatefulAgent",
    "StatefulAgentError",
    "TextDelta",
    "TextMatches",
    "ToolApproved",
    "ToolCall",
    "ToolChoice",
    "ToolDefinition",
    "ToolDenied",
    "ToolExecutionError",
    "ToolInvoked",
    "ToolNotFoundError",
    "ToolResultRecord",
    "WorkflowContext",
    "WorkflowDefinition",
    "WorkflowNotFoundError",
    "WorkflowRegistry",
    "build_state_history",
    "derive_context",
    "derive_state",
    "evaluate",
    "get_available_transitions",
    "get_available_workflows",
    "get_workflow",
    "is_valid_workflow",
    "is_workflow_complete",
]
