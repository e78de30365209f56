"""Stateful agent runtime.

Each call is one round scoped to the history snapshot the caller supplies:

1. derive the workflow context from history
2. resolve approval decisions for calls left pending by earlier rounds
3. select the active state's instructions, tools, tool choice and model
4. call the model provider (cancelable)
5. execute or suspend the emitted tool calls, in emission order
6. re-derive the context over history extended with this round

Nothing is stored between calls. The caller appends ``AgentResult.messages``
to its own history to persist the round.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

from stateful_agents.core.config import AgentConfig
from stateful_agents.llm.provider import LLMProvider, ModelResponse

from .derive_state import derive_context
from .errors import CanceledError, ModelProviderError, RoundAbortedError
from .history import ApprovalDecision, Message, ToolCall, ToolResultRecord, unrecorded_resolutions
from .registry import RegisteredWorkflow
from .tools import ToolExecutor, collect_pending
from .types import ToolChoiceConfig, ToolDefinition, WorkflowContext, WorkflowDefinition

logger = logging.getLogger(__name__)


class CancellationToken:
    """Caller-owned signal that aborts an in-flight model call."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


@dataclass(slots=True)
class GenerateParams:
    messages: Sequence[Message] = ()
    prompt: str | None = None
    approvals: Sequence[ApprovalDecision] = ()
    cancel: CancellationToken | None = None
    on_state_change: Callable[[str, str, WorkflowContext], None] | None = None
    on_step_finish: Callable[[WorkflowContext], None] | None = None
    on_complete: Callable[[WorkflowContext], None] | None = None


@dataclass(frozen=True, slots=True)
class AgentResult:
    text: str
    tool_calls: list[ToolCall]
    tool_results: list[ToolResultRecord]
    context: WorkflowContext
    is_complete: bool
    messages: list[Message]

    def to_json(self) -> dict[str, object]:
        return {
            "text": self.text,
            "toolCalls": [
                {"callId": c.call_id, "toolName": c.tool_name, "args": c.args}
                for c in self.tool_calls
            ],
            "toolResults": [r.to_json() for r in self.tool_results],
            "context": self.context.to_json(),
            "isComplete": self.is_complete,
        }


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(frozen=True, slots=True)
class RoundFinished:
    result: AgentResult


AgentStreamEvent = TextDelta | RoundFinished


@dataclass(slots=True)
class _Prepared:
    history: list[Message]
    before: WorkflowContext
    resolutions: list[ToolResultRecord]
    executed: list[ToolResultRecord]
    system_prompt: str
    tools: list[ToolDefinition]
    tool_choice: ToolChoiceConfig
    model: str | None


class StatefulAgent:
    """Drives one registered workflow over caller-owned history."""

    def __init__(
        self,
        workflow: RegisteredWorkflow,
        provider: LLMProvider,
        config: AgentConfig | None = None,
    ) -> None:
        self.workflow = workflow
        self.provider = provider
        self.config = config or AgentConfig()
        self._resolver = ToolExecutor(workflow.tools)

    @property
    def definition(self) -> WorkflowDefinition:
        return self.workflow.definition

    def context(self, messages: Sequence[Message]) -> WorkflowContext:
        return derive_context(self.definition, messages)

    def generate(self, params: GenerateParams) -> AgentResult:
        """Run one round and return its result.

        Raises:
            ModelProviderError: If the model call fails.
            CanceledError: If ``params.cancel`` fires before the model answers.
                A token that is already set aborts before any tool runs.
            ApprovalRequiredButMissingError: If a decision names no pending call.
        """
        _check_canceled(params.cancel)
        prepared = self._prepare(params)
        try:
            response = self._call_provider(prepared, params.cancel)
        except (ModelProviderError, CanceledError) as e:
            raise self._aborted(e, prepared, params)
        return self._finish(prepared, response, params)

    def stream(self, params: GenerateParams) -> Iterator[AgentStreamEvent]:
        """Run one round, yielding text deltas and finally the same result as ``generate``."""
        _check_canceled(params.cancel)
        prepared = self._prepare(params)
        response: ModelResponse | None = None
        try:
            chunks = self.provider.stream(
                prepared.system_prompt,
                prepared.history,
                prepared.tools,
                prepared.tool_choice,
                model=prepared.model,
                resolved=prepared.resolutions,
            )
            for chunk in chunks:
                if params.cancel is not None and params.cancel.canceled:
                    raise CanceledError("Round canceled while streaming")
                if chunk.response is not None:
                    response = chunk.response
                elif chunk.text_delta:
                    yield TextDelta(chunk.text_delta)
        except (ModelProviderError, CanceledError) as e:
            raise self._aborted(e, prepared, params)
        except Exception as e:
            error = ModelProviderError(f"Model stream failed: {e}")
            raise self._aborted(error, prepared, params) from e

        if response is None:
            error = ModelProviderError("Model stream ended without a final response")
            raise self._aborted(error, prepared, params)
        yield RoundFinished(self._finish(prepared, response, params))

    # ------------------------------------------------------------------

    def _prepare(self, params: GenerateParams) -> _Prepared:
        history = list(params.messages)
        if params.prompt or params.approvals:
            history.append(
                Message(
                    role="user",
                    content=params.prompt or "",
                    approvals=list(params.approvals),
                )
            )

        before = derive_context(self.definition, history)
        ledger = collect_pending(history)
        executed = self._resolver.resolve(ledger)
        resolutions = [*unrecorded_resolutions(history), *executed]

        state = self.definition.states[before.current_state]
        active = [self.workflow.tools[name] for name in state.tools]
        logger.info(
            "Starting round",
            extra={
                "workflow": self.definition.id,
                "state": before.current_state,
                "step": before.step_number + 1,
                "resolutions": len(resolutions),
            },
        )
        return _Prepared(
            history=history,
            before=before,
            resolutions=resolutions,
            executed=executed,
            system_prompt=state.render_instructions(before),
            tools=active,
            tool_choice=state.tool_choice,
            model=state.model or self.definition.default_model,
        )

    def _call_provider(
        self, prepared: _Prepared, cancel: CancellationToken | None
    ) -> ModelResponse:
        def call() -> ModelResponse:
            return self.provider.generate(
                prepared.system_prompt,
                prepared.history,
                prepared.tools,
                prepared.tool_choice,
                model=prepared.model,
                resolved=prepared.resolutions,
            )

        if cancel is None:
            return _unwrap(call)

        if cancel.canceled:
            raise CanceledError("Round canceled before the model call")

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="model-call")
        try:
            future: Future[ModelResponse] = pool.submit(_unwrap, call)
            while True:
                try:
                    return future.result(timeout=self.config.cancel_poll_seconds)
                except FutureTimeoutError:
                    if cancel.canceled:
                        future.cancel()
                        logger.info(
                            "Model call canceled", extra={"workflow": self.definition.id}
                        )
                        raise CanceledError("Round canceled during the model call") from None
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _aborted(
        self, error: RoundAbortedError, prepared: _Prepared, params: GenerateParams
    ) -> RoundAbortedError:
        """Attach the approvals this round already executed to ``error``.

        The round itself is not recorded. Executed approvals are, as a system
        message the caller appends so a retry does not run them again.
        """
        error.resolutions = tuple(prepared.executed)
        if prepared.executed:
            record = Message(role="system", resolutions=prepared.executed)
            error.messages = (*prepared.history[len(params.messages) :], record)
            logger.warning(
                "Round aborted after executing approved tools",
                extra={
                    "workflow": self.definition.id,
                    "call_ids": [r.call_id for r in prepared.executed],
                },
            )
        return error

    def _finish(
        self, prepared: _Prepared, response: ModelResponse, params: GenerateParams
    ) -> AgentResult:
        state = self.definition.states[prepared.before.current_state]
        calls = [_with_call_id(c) for c in response.tool_calls]
        executor = ToolExecutor({name: self.workflow.tools[name] for name in state.tools})
        round_results = executor.run_round(calls)

        message = Message(
            role="assistant",
            content=response.text,
            tool_calls=calls,
            tool_results=round_results,
            resolutions=prepared.resolutions,
        )
        after = derive_context(self.definition, [*prepared.history, message])

        if after.current_state != prepared.before.current_state:
            logger.info(
                "State transition",
                extra={
                    "workflow": self.definition.id,
                    "from_state": prepared.before.current_state,
                    "to_state": after.current_state,
                    "step": after.step_number,
                },
            )
            if params.on_state_change is not None:
                params.on_state_change(prepared.before.current_state, after.current_state, after)
        if params.on_step_finish is not None:
            params.on_step_finish(after)
        newly_complete = after.is_complete and not prepared.before.is_complete
        if params.on_complete is not None and newly_complete:
            params.on_complete(after)

        new_messages = prepared.history[len(params.messages) :] + [message]
        return AgentResult(
            text=response.text,
            tool_calls=calls,
            tool_results=[*prepared.resolutions, *round_results],
            context=after,
            is_complete=after.is_complete,
            messages=new_messages,
        )


def _check_canceled(cancel: CancellationToken | None) -> None:
    if cancel is not None and cancel.canceled:
        raise CanceledError("Round canceled before it started")


def _unwrap(call: Callable[[], ModelResponse]) -> ModelResponse:
    try:
        return call()
    except ModelProviderError:
        raise
    except Exception as e:
        raise ModelProviderError(f"Model call failed: {e}") from e


def _with_call_id(call: ToolCall) -> ToolCall:
    if call.call_id:
        return call
    return call.model_copy(update={"call_id": f"call_{uuid.uuid4().hex[:12]}"})
