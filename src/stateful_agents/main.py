"""CLI entrypoint for the stateful agent runtime.

The CLI plays the role of the caller: it owns a JSON history file, appends
each round to it and prints results. The core itself never touches storage.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from stateful_agents import __version__
from stateful_agents.agents.derive_state import derive_context, get_available_transitions
from stateful_agents.agents.errors import StatefulAgentError, WorkflowNotFoundError
from stateful_agents.agents.history import ApprovalDecision, Message, dump_history, load_history
from stateful_agents.agents.registry import default_registry
from stateful_agents.agents.runtime import GenerateParams, StatefulAgent
from stateful_agents.core.config import AgentConfig
from stateful_agents.llm.factory import LLMFactory

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stateful-agents",
        description="Drive workflow-based, tool-calling agent conversations",
    )
    parser.add_argument("--version", action="version", version=f"stateful-agents {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("workflows", help="List registered workflows")

    states = subparsers.add_parser("states", help="List the states of a workflow")
    states.add_argument("--workflow", required=True, help="Workflow id")
    states.add_argument("--all", action="store_true", help="Include hidden internal states")

    transitions = subparsers.add_parser(
        "transitions", help="Show the transitions leaving a workflow state"
    )
    transitions.add_argument("--workflow", required=True, help="Workflow id")
    transitions.add_argument("--state", required=True, help="State name")

    derive = subparsers.add_parser("derive", help="Derive the workflow context from a history file")
    derive.add_argument("--workflow", required=True, help="Workflow id")
    derive.add_argument("--history", type=Path, required=True, help="History JSON file")

    chat = subparsers.add_parser("chat", help="Run one round and append it to a history file")
    chat.add_argument("--workflow", default=None, help="Workflow id (defaults to config)")
    chat.add_argument("--history", type=Path, required=True, help="History JSON file")
    chat.add_argument("--prompt", default=None, help="User message for this round")
    chat.add_argument(
        "--approve", action="append", default=[], metavar="CALL_ID", help="Approve a pending call"
    )
    chat.add_argument(
        "--deny", action="append", default=[], metavar="CALL_ID", help="Deny a pending call"
    )
    chat.add_argument("--reason", default=None, help="Reason recorded with denials")

    return parser


def _read_history(path: Path) -> list[Message]:
    if not path.exists():
        return []
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"History file must hold a JSON list: {path}")
    return load_history(raw)


def _write_history(path: Path, history: list[Message]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(dump_history(history), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _cmd_workflows() -> int:
    registry = default_registry()
    for workflow_id in registry.get_available_workflows():
        entry = registry.get_workflow(workflow_id)
        print(f"{workflow_id}\t{entry.label}\t{entry.description}")
    return 0


def _cmd_states(args: argparse.Namespace) -> int:
    definition = default_registry().get_workflow(args.workflow).definition
    terminal = set(definition.terminal_states)
    _print_json(
        [
            {
                "state": name,
                "name": config.name or name,
                "description": config.description,
                "terminal": name in terminal,
                "initial": name == definition.initial_state,
            }
            for name, config in definition.states.items()
            if args.all or not config.hidden
        ]
    )
    return 0


def _cmd_transitions(args: argparse.Namespace) -> int:
    definition = default_registry().get_workflow(args.workflow).definition
    _print_json(
        [
            {"from": t.from_state, "to": t.to_state, "trigger": t.trigger.describe()}
            for t in get_available_transitions(definition, args.state)
        ]
    )
    return 0


def _cmd_derive(args: argparse.Namespace) -> int:
    definition = default_registry().get_workflow(args.workflow).definition
    context = derive_context(definition, _read_history(args.history))
    _print_json(context.to_json())
    return 0


def _cmd_chat(args: argparse.Namespace, config: AgentConfig) -> int:
    workflow = default_registry().get_workflow(args.workflow or config.default_workflow)
    history = _read_history(args.history)
    approvals = [ApprovalDecision(call_id=c, approved=True) for c in args.approve]
    approvals += [ApprovalDecision(call_id=c, approved=False, reason=args.reason) for c in args.deny]

    agent = StatefulAgent(workflow, LLMFactory.create(config.llm), config)
    result = agent.generate(GenerateParams(messages=history, prompt=args.prompt, approvals=approvals))

    _write_history(args.history, [*history, *result.messages])
    _print_json(result.to_json())
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = AgentConfig()
    except ValidationError as e:
        print(str(e), file=sys.stderr)
        return 2

    config.setup_logging()

    try:
        if args.command == "workflows":
            return _cmd_workflows()
        if args.command == "states":
            return _cmd_states(args)
        if args.command == "transitions":
            return _cmd_transitions(args)
        if args.command == "derive":
            return _cmd_derive(args)
        if args.command == "chat":
            return _cmd_chat(args, config)
    except WorkflowNotFoundError as e:
        logger.error(str(e))
        return 1
    except StatefulAgentError as e:
        logger.error("Round failed", extra={"error": str(e), "kind": type(e).__name__})
        return 1
    except ValueError as e:
        # Missing provider credentials and malformed history files.
        logger.error(str(e))
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
