"""Tool execution and the approval gate.

Tools run one at a time in the order the model emitted them. A tool flagged
``needs_approval`` is not executed when called; a pending entry is recorded
instead and the call waits for an approval decision to arrive in a later
user message. Decisions are matched to pending calls by call id.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .errors import ApprovalRequiredButMissingError, ToolExecutionError, ToolNotFoundError
from .history import ApprovalDecision, Message, ToolCall, ToolResultRecord
from .types import ToolDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PendingCall:
    call_id: str
    tool_name: str
    args: dict[str, Any]
    round_index: int
    position: int


@dataclass(slots=True)
class PendingLedger:
    """Unresolved gated calls and the decisions waiting to be applied."""

    pending: dict[str, PendingCall] = field(default_factory=dict)
    decisions: dict[str, ApprovalDecision] = field(default_factory=dict)

    def undecided(self) -> list[PendingCall]:
        return [p for p in self.pending.values() if p.call_id not in self.decisions]


def collect_pending(history: Iterable[Message]) -> PendingLedger:
    """Scan history for pending calls and unconsumed approval decisions.

    A decision is consumed once any message records a resolution for its call:
    normally the next assistant message, or the resolution record left by a
    round that aborted after executing approvals. A decision referencing a
    call that is not pending at that point in history raises
    :class:`ApprovalRequiredButMissingError`.
    """
    ledger = PendingLedger()
    round_index = 0
    for message in history:
        for record in message.resolutions:
            ledger.pending.pop(record.call_id, None)
            ledger.decisions.pop(record.call_id, None)
        if message.role == "assistant":
            for position, record in enumerate(message.tool_results):
                if record.pending_approval:
                    ledger.pending[record.call_id] = PendingCall(
                        call_id=record.call_id,
                        tool_name=record.tool_name,
                        args=dict(record.args),
                        round_index=round_index,
                        position=position,
                    )
            round_index += 1
        for decision in message.approvals:
            if decision.call_id not in ledger.pending:
                raise ApprovalRequiredButMissingError(decision.call_id)
            ledger.decisions[decision.call_id] = decision
    return ledger


class ToolExecutor:
    def __init__(self, tools: Mapping[str, ToolDefinition]) -> None:
        self._tools = dict(tools)

    def get(self, tool_name: str) -> ToolDefinition:
        try:
            return self._tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(tool_name) from None

    def run_round(self, calls: Sequence[ToolCall]) -> list[ToolResultRecord]:
        """Resolve each call in emission order: execute it, or leave it pending."""
        results: list[ToolResultRecord] = []
        for call in calls:
            try:
                tool = self.get(call.tool_name)
            except ToolNotFoundError as e:
                logger.warning("Model called an unavailable tool", extra={"tool": call.tool_name})
                results.append(_error(call.call_id, call.tool_name, call.args, str(e)))
                continue

            if tool.needs_approval:
                logger.info(
                    "Tool call awaiting approval",
                    extra={"tool": call.tool_name, "call_id": call.call_id},
                )
                results.append(
                    ToolResultRecord(
                        call_id=call.call_id,
                        tool_name=call.tool_name,
                        args=call.args,
                        pending_approval=True,
                    )
                )
                continue

            results.append(self._execute(tool, call.call_id, call.args))
        return results

    def resolve(self, ledger: PendingLedger) -> list[ToolResultRecord]:
        """Apply approval decisions in original emission order.

        Within a round, resolution stops at the first pending call that has no
        decision yet; later calls of that round stay pending even if their own
        decision has already arrived.
        """
        resolved: list[ToolResultRecord] = []
        blocked_rounds: set[int] = set()
        ordered = sorted(ledger.pending.values(), key=lambda p: (p.round_index, p.position))
        for call in ordered:
            if call.round_index in blocked_rounds:
                continue
            decision = ledger.decisions.get(call.call_id)
            if decision is None:
                blocked_rounds.add(call.round_index)
                continue

            if not decision.approved:
                logger.info(
                    "Tool call denied",
                    extra={"tool": call.tool_name, "call_id": call.call_id},
                )
                resolved.append(
                    ToolResultRecord(
                        call_id=call.call_id,
                        tool_name=call.tool_name,
                        args=call.args,
                        denied=True,
                        reason=decision.reason or "Denied by user",
                    )
                )
                continue

            logger.info(
                "Tool call approved", extra={"tool": call.tool_name, "call_id": call.call_id}
            )
            try:
                tool = self.get(call.tool_name)
            except ToolNotFoundError as e:
                resolved.append(_error(call.call_id, call.tool_name, call.args, str(e)))
                continue
            resolved.append(self._execute(tool, call.call_id, call.args))
        return resolved

    def _execute(
        self, tool: ToolDefinition, call_id: str, args: dict[str, Any]
    ) -> ToolResultRecord:
        try:
            validated = tool.validate_args(args)
        except ValidationError as e:
            return _error(call_id, tool.name, args, f"Invalid arguments: {e}")

        try:
            result = tool.execute(validated)
        except Exception as e:
            err = ToolExecutionError(tool.name, str(e))
            logger.warning(str(err), exc_info=True, extra={"call_id": call_id})
            return _error(call_id, tool.name, args, str(err))

        logger.debug("Tool executed", extra={"tool": tool.name, "call_id": call_id})
        return ToolResultRecord(
            call_id=call_id, tool_name=tool.name, args=args, result=_jsonable(result)
        )


def _error(call_id: str, tool_name: str, args: dict[str, Any], message: str) -> ToolResultRecord:
    return ToolResultRecord(call_id=call_id, tool_name=tool_name, args=args, error=message)


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value
