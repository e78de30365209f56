#!/usr/bin/env python3
"""Programmatic research workflow example.

This demonstrates driving the runtime directly instead of through the CLI:

* load settings from `.env`
* run rounds of the research workflow over an in-memory history
* ask on the terminal whenever a tool call waits for approval

The caller owns the history; each round's messages are appended to it.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from stateful_agents.agents import (
    ApprovalDecision,
    GenerateParams,
    Message,
    StatefulAgent,
    get_workflow,
)
from stateful_agents.core.config import AgentConfig
from stateful_agents.llm.factory import LLMFactory


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the research workflow (programmatic example).")
    parser.add_argument("--topic", required=True, help="What to research")
    parser.add_argument("--max-rounds", type=int, default=8, help="Stop after this many rounds")
    return parser.parse_args(argv)


def _ask(call_id: str, tool_name: str, args: dict) -> ApprovalDecision:
    answer = input(f"Approve {tool_name} {args}? [y/N] ").strip().lower()
    if answer == "y":
        return ApprovalDecision(call_id=call_id, approved=True)
    return ApprovalDecision(call_id=call_id, approved=False, reason=input("Reason: ") or None)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    config = AgentConfig()
    config.setup_logging()

    agent = StatefulAgent(get_workflow("research"), LLMFactory.create(config.llm), config)
    history: list[Message] = []
    params = GenerateParams(
        prompt=args.topic,
        on_state_change=lambda old, new, _ctx: print(f"[{old} -> {new}]"),
    )

    for _ in range(args.max_rounds):
        result = agent.generate(params)
        history.extend(result.messages)
        if result.text:
            print(result.text)
        if result.is_complete:
            break

        pending = [r for r in result.tool_results if r.pending_approval]
        decisions = [_ask(r.call_id, r.tool_name, r.args) for r in pending]
        params = GenerateParams(
            messages=list(history),
            prompt=None if decisions else "Continue.",
            approvals=decisions,
            on_state_change=params.on_state_change,
        )

    print(f"Finished in state '{agent.context(history).current_state}'")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
