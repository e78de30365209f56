"""Conversion between history records and the OpenAI chat wire format.

Shared by every provider that speaks OpenAI-style chat completions.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from stateful_agents.agents.history import Message, ToolCall, ToolResultRecord
from stateful_agents.agents.types import ToolChoice, ToolChoiceConfig, ToolDefinition

logger = logging.getLogger(__name__)


def tool_specs(tools: Iterable[ToolDefinition]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.arg_schema(),
            },
        }
        for tool in tools
    ]


def tool_choice_param(choice: ToolChoiceConfig) -> str | dict[str, Any]:
    if isinstance(choice, ToolChoice):
        return {"type": "function", "function": {"name": choice.tool_name}}
    return choice


def _result_content(record: ToolResultRecord) -> str:
    if record.pending_approval:
        body: object = {"status": "pending_approval"}
    elif record.denied:
        body = {"status": "denied", "reason": record.reason}
    elif record.error is not None:
        body = {"status": "error", "error": record.error}
    else:
        body = record.result
    return json.dumps(body, ensure_ascii=False, default=str)


def to_openai_messages(
    system_prompt: str,
    history: Sequence[Message],
    resolved: Sequence[ToolResultRecord] = (),
) -> list[dict[str, Any]]:
    """Build chat messages, placing each tool result right after its call.

    A call's latest record wins, so a resolved approval replaces the pending
    entry the model saw when the call was first emitted.
    """
    latest: dict[str, ToolResultRecord] = {}
    for message in history:
        for record in [*message.tool_results, *message.resolutions]:
            latest[record.call_id] = record
    for record in resolved:
        latest[record.call_id] = record

    out: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for message in history:
        if message.role == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": message.content or None}
            if message.tool_calls:
                entry["tool_calls"] = [
                    {
                        "id": call.call_id,
                        "type": "function",
                        "function": {"name": call.tool_name, "arguments": json.dumps(call.args)},
                    }
                    for call in message.tool_calls
                ]
            out.append(entry)
            for call in message.tool_calls:
                record = latest.get(call.call_id)
                if record is not None:
                    out.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.call_id,
                            "content": _result_content(record),
                        }
                    )
        elif message.content:
            out.append({"role": message.role, "content": message.content})
    return out


def parse_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Model emitted malformed tool arguments", extra={"raw": raw[:200]})
        return {"_raw_arguments": raw}
    return parsed if isinstance(parsed, dict) else {"_raw_arguments": raw}


def parse_tool_calls(raw_calls: Iterable[Mapping[str, Any]] | None) -> list[ToolCall]:
    """Parse tool calls given as plain dicts (llama-cpp and streamed deltas)."""
    calls: list[ToolCall] = []
    for raw in raw_calls or []:
        function = raw.get("function") or {}
        calls.append(
            ToolCall(
                call_id=raw.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                tool_name=function.get("name", ""),
                args=parse_arguments(function.get("arguments")),
            )
        )
    return calls
