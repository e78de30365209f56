"""Caller-owned conversation history records.

History is an append-only log owned by the caller. Every assistant message is
one completed round: the text the model produced, the tool calls it emitted,
one result entry per call (in emission order) and any approval resolutions
for calls left pending by earlier rounds. User messages carry prompts and
approval decisions. A system message with ``resolutions`` records approved
calls that executed in a round which then aborted; it is not a round.

These are pydantic models so the caller can persist them as JSON and load
them back with ``Message.model_validate``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant", "system"]
ResultStatus = Literal["ok", "pending_approval", "denied", "error"]


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolCall(_Record):
    call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultRecord(_Record):
    """Outcome of a single tool call.

    Exactly one shape applies: a real ``result``, ``pending_approval``, a
    ``denied`` decision with ``reason``, or an ``error`` message.
    """

    call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    pending_approval: bool = False
    denied: bool = False
    reason: str | None = None
    error: str | None = None

    @property
    def status(self) -> ResultStatus:
        if self.pending_approval:
            return "pending_approval"
        if self.denied:
            return "denied"
        if self.error is not None:
            return "error"
        return "ok"

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {"toolName": self.tool_name, "args": self.args}
        if self.pending_approval:
            out["pendingApproval"] = True
            out["callId"] = self.call_id
        elif self.denied:
            out["denied"] = True
            out["reason"] = self.reason
        elif self.error is not None:
            out["error"] = self.error
        else:
            out["result"] = self.result
        return out


class ApprovalDecision(_Record):
    call_id: str
    approved: bool
    reason: str | None = None


class Message(_Record):
    role: Role
    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_results: list[ToolResultRecord] = Field(default_factory=list)
    resolutions: list[ToolResultRecord] = Field(default_factory=list)
    approvals: list[ApprovalDecision] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RoundOutcome:
    """What one completed round produced. Transient, derived from a message."""

    text: str
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResultRecord, ...] = ()
    resolutions: tuple[ToolResultRecord, ...] = ()

    @staticmethod
    def from_message(message: Message) -> RoundOutcome:
        return RoundOutcome(
            text=message.content,
            tool_calls=tuple(message.tool_calls),
            tool_results=tuple(message.tool_results),
            resolutions=tuple(message.resolutions),
        )

    def executed(self) -> list[ToolResultRecord]:
        """Calls that ran to completion this round, in emission order.

        Pending, denied and failed calls are excluded. Approved resolutions of
        earlier calls count, since they executed during this round.
        """
        done = [r for r in self.resolutions if r.status == "ok"]
        done.extend(r for r in self.tool_results if r.status == "ok")
        return done

    def approved(self, tool_name: str) -> bool:
        return any(
            r.tool_name == tool_name and not r.denied and not r.pending_approval
            for r in self.resolutions
        )

    def denied(self, tool_name: str) -> bool:
        return any(r.tool_name == tool_name and r.denied for r in self.resolutions)


def iter_rounds(history: Iterable[Message]) -> Iterator[RoundOutcome]:
    for message in history:
        if message.role == "assistant":
            yield RoundOutcome.from_message(message)


def unrecorded_resolutions(history: Sequence[Message]) -> list[ToolResultRecord]:
    """Resolutions left by aborted rounds since the last assistant message.

    These executed already; the next completed round records them as its own
    resolutions so approval and denial triggers still fire.
    """
    carried: list[ToolResultRecord] = []
    for message in reversed(history):
        if message.role == "assistant":
            break
        carried[:0] = message.resolutions
    return carried


def first_user_text(history: Sequence[Message]) -> str:
    for message in history:
        if message.role == "user" and message.content:
            return message.content
    return ""


def load_history(raw: Iterable[dict[str, object]]) -> list[Message]:
    return [Message.model_validate(item) for item in raw]


def dump_history(history: Iterable[Message]) -> list[dict[str, object]]:
    return [m.model_dump(mode="json", by_alias=True, exclude_defaults=True) for m in history]
