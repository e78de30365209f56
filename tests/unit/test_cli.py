"""Unit tests for the CLI entrypoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from stateful_agents.agents.history import Message, ToolCall, ToolResultRecord, dump_history
from stateful_agents.llm.provider import ModelResponse
from stateful_agents.main import main


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep CLI logging off stdout and restore the root logger afterwards."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STATEFUL_AGENTS_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("STATEFUL_AGENTS_DEBUG", "false")
    monkeypatch.setenv("STATEFUL_AGENTS_LLM_OPENAI_API_KEY", "test-key")
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_workflows_lists_registered_workflows(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["workflows"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split("\t")[0] for line in lines] == ["research", "coaching"]


def test_transitions_prints_outgoing_edges(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["transitions", "--workflow", "research", "--state", "reviewing"]) == 0

    edges = json.loads(capsys.readouterr().out)
    assert edges == [
        {"from": "reviewing", "to": "complete", "trigger": "approved:publish"},
        {"from": "reviewing", "to": "draft", "trigger": "denied:publish"},
    ]


def test_derive_reads_history_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    history = [
        Message(role="user", content="tides"),
        Message(
            role="assistant",
            tool_calls=[ToolCall(call_id="c1", tool_name="submit_for_review", args={"summary": "s"})],
            tool_results=[
                ToolResultRecord(call_id="c1", tool_name="submit_for_review", result={"ok": True})
            ],
        ),
    ]
    path = tmp_path / "history.json"
    path.write_text(json.dumps(dump_history(history)), encoding="utf-8")

    assert main(["derive", "--workflow", "research", "--history", str(path)]) == 0

    context = json.loads(capsys.readouterr().out)
    assert context["currentState"] == "reviewing"
    assert context["stepNumber"] == 1


def test_unknown_workflow_exits_with_error() -> None:
    assert main(["transitions", "--workflow", "nope", "--state", "x"]) == 1


def test_malformed_history_exits_with_usage_error(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text('{"not": "a list"}', encoding="utf-8")

    assert main(["derive", "--workflow", "research", "--history", str(path)]) == 2


def test_chat_appends_round_to_history(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "history.json"

    with patch("stateful_agents.llm.openai_provider.OpenAIProvider.generate") as generate:
        generate.return_value = ModelResponse(text="Hello there")
        code = main(["chat", "--history", str(path), "--prompt", "hi"])

    assert code == 0
    result = json.loads(capsys.readouterr().out)
    assert result["text"] == "Hello there"
    assert result["context"]["stepNumber"] == 1

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert [m["role"] for m in saved] == ["user", "assistant"]


def test_states_hides_internal_states_unless_asked(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["states", "--workflow", "coaching"]) == 0
    visible = json.loads(capsys.readouterr().out)

    assert "analyst" not in [s["state"] for s in visible]
    assert visible[0] == {
        "state": "goal_capture",
        "name": "Goal Capture",
        "description": "",
        "terminal": False,
        "initial": True,
    }
    assert [s["state"] for s in visible if s["terminal"]] == ["present"]

    assert main(["states", "--workflow", "coaching", "--all"]) == 0
    assert "analyst" in [s["state"] for s in json.loads(capsys.readouterr().out)]
