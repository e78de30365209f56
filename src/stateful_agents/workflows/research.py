"""Research assistant workflow.

States:
- draft: gather sources and notes, then submit the draft for review
- reviewing: decide whether to publish; publishing needs human approval
- complete: the write-up has been published

A denied publish sends the conversation back to drafting.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from stateful_agents.agents.types import (
    StateConfig,
    StateTransition,
    ToolApproved,
    ToolDefinition,
    ToolDenied,
    ToolInvoked,
    WorkflowContext,
    WorkflowDefinition,
)


def _draft_instructions(context: WorkflowContext) -> str:
    notes = context.collected_data
    noted = "\n".join(f"- {k}: {v}" for k, v in notes.items()) or "- nothing yet"
    return f"""You are a research assistant drafting a short write-up.

Research goal: {context.initial_prompt or 'not stated yet'}

Use 'search' to find sources and 'take_note' to record each finding.
Notes so far:
{noted}

When the draft is ready, call 'submit_for_review' with a summary."""


REVIEW_INSTRUCTIONS = """You are a research assistant reviewing a finished draft.

Check the draft for gaps. If it is ready, call 'publish' with a title and the
final body. Publishing is confirmed by the user before it happens."""

COMPLETE_INSTRUCTIONS = """The write-up has been published.

Answer follow-up questions about it. Do not start a new draft."""


research_workflow = WorkflowDefinition(
    id="research",
    name="Research Assistant",
    description="Gathers sources, drafts a write-up and publishes it after approval",
    states={
        "draft": StateConfig(
            name="Drafting",
            description="Search for sources and take notes",
            instructions=_draft_instructions,
            tools=("search", "take_note", "submit_for_review"),
        ),
        "reviewing": StateConfig(
            name="Reviewing",
            description="Review the draft and publish it",
            instructions=REVIEW_INSTRUCTIONS,
            tools=("take_note", "publish"),
        ),
        "complete": StateConfig(
            name="Published",
            description="The write-up is published",
            instructions=COMPLETE_INSTRUCTIONS,
            tools=(),
            tool_choice="none",
            terminal=True,
        ),
    },
    initial_state="draft",
    transitions=(
        StateTransition("draft", ToolInvoked("submit_for_review"), "reviewing"),
        StateTransition("reviewing", ToolApproved("publish"), "complete"),
        StateTransition("reviewing", ToolDenied("publish"), "draft"),
    ),
    max_steps=40,
)


# =============================================================================
# TOOLS
# =============================================================================


class SearchArgs(BaseModel):
    query: str = Field(description="The search query")


class TakeNoteArgs(BaseModel):
    field_name: str = Field(description="Short key for the finding, e.g. 'background'")
    value: str = Field(description="The finding itself")


class SubmitForReviewArgs(BaseModel):
    summary: str = Field(description="Summary of the draft")
    sources: list[str] = Field(default_factory=list, description="Sources used")


class PublishArgs(BaseModel):
    title: str
    body: str
    audience: Literal["internal", "public"] = "internal"


def _search(args: dict[str, Any]) -> dict[str, Any]:
    # Simulated results; swap in a real search client when one is configured.
    query = args["query"]
    return {
        "query": query,
        "results": [
            {
                "title": f"Information about: {query}",
                "snippet": f'Simulated search result for "{query}".',
                "source": "simulated-source.example",
            },
            {
                "title": f"More on: {query}",
                "snippet": f'Additional simulated information about "{query}".',
                "source": "another-source.example",
            },
        ],
    }


def _take_note(args: dict[str, Any]) -> dict[str, Any]:
    return {"field_name": args["field_name"], "value": args["value"]}


def _submit_for_review(args: dict[str, Any]) -> dict[str, Any]:
    return {"submitted": True, "summary": args["summary"], "sources": args["sources"]}


def _publish(args: dict[str, Any]) -> dict[str, Any]:
    return {"published": True, "title": args["title"], "audience": args["audience"]}


research_tools: dict[str, ToolDefinition] = {
    "search": ToolDefinition(
        name="search",
        description="Search for information on a topic",
        execute=_search,
        args_model=SearchArgs,
    ),
    "take_note": ToolDefinition(
        name="take_note",
        description="Record a finding for the draft",
        execute=_take_note,
        args_model=TakeNoteArgs,
    ),
    "submit_for_review": ToolDefinition(
        name="submit_for_review",
        description="Signal that the draft is ready for review",
        execute=_submit_for_review,
        args_model=SubmitForReviewArgs,
    ),
    "publish": ToolDefinition(
        name="publish",
        description="Publish the final write-up",
        execute=_publish,
        args_model=PublishArgs,
        needs_approval=True,
    ),
}
