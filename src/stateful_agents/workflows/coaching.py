"""Fitness coaching workflow.

goal_capture -> analyst -> intake -> safety -> plan -> present, with
present -> plan whenever the athlete asks for a refinement. Instructions for
the later states are rendered from data the tools collected earlier.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

from stateful_agents.agents.types import (
    StateConfig,
    StateTransition,
    ToolDefinition,
    ToolInvoked,
    WorkflowContext,
    WorkflowDefinition,
)

GOAL_INSTRUCTIONS = """You are a friendly running coach. Find out what the user wants to achieve.

Only call 'capture_goal' once the user has explicitly stated a fitness goal.
If they just say hello or ask something general, reply conversationally and
ask what they would like to work toward."""


def _analyst_instructions(context: WorkflowContext) -> str:
    goal = context.collected_data.get("goal", "Not yet captured")
    return f"""You are a sports science analyst.

User's goal: {goal}

Decide the minimum data points needed to build a safe, personalised plan
(age, injury history, recent times, weekly volume, schedule). Call
'analyze_goal' with the required intake fields."""


def _intake_instructions(context: WorkflowContext) -> str:
    schema = context.collected_data.get("intake_schema") or {}
    required = schema.get("required_fields", []) if isinstance(schema, dict) else []
    wanted = "\n".join(f"- {f}" for f in required) or "- no schema yet"
    have = sorted(k for k in context.collected_data if k in required)
    return f"""You are gathering information before writing a training plan.

Collect these data points:
{wanted}

Already collected: {', '.join(have) or 'nothing yet'}

Ask naturally, record each answer with 'collect_data' and call
'intake_complete' once everything is gathered. Do not offer a plan yet."""


def _safety_instructions(context: WorkflowContext) -> str:
    profile = json.dumps(dict(context.collected_data), indent=2, default=str, sort_keys=True)
    return f"""Review the athlete profile and run safety checks.

Profile:
{profile}

Call 'safety_check'. Present any warnings as a caring coach would."""


def _plan_instructions(context: WorkflowContext) -> str:
    safety = context.collected_data.get("safety_result") or {}
    warnings = ", ".join(safety.get("warnings", [])) if isinstance(safety, dict) else ""
    return f"""You are an expert running coach writing a periodised training plan.

Goal: {context.collected_data.get('goal', '')}
Safety warnings: {warnings or 'None'}

Increase weekly volume by no more than 10%, mix easy, tempo, interval and
long runs, and include one or two rest days a week. Call 'generate_plan'."""


PRESENT_INSTRUCTIONS = """Present the training plan.

Summarise its structure, explain key decisions and answer questions. Use
'refine_plan' when the athlete wants changes and 'accept_plan' when they are
happy with it."""


coaching_workflow = WorkflowDefinition(
    id="coaching",
    name="Fitness Coaching",
    description=(
        "Personalised training plan creation through goal capture, analysis, "
        "intake, safety check and plan generation"
    ),
    states={
        "goal_capture": StateConfig(
            name="Goal Capture",
            instructions=GOAL_INSTRUCTIONS,
            tools=("capture_goal",),
        ),
        "analyst": StateConfig(
            name="Analyzing",
            instructions=_analyst_instructions,
            tools=("analyze_goal",),
            tool_choice="required",
            hidden=True,
        ),
        "intake": StateConfig(
            name="Getting to Know You",
            instructions=_intake_instructions,
            tools=("collect_data", "intake_complete"),
        ),
        "safety": StateConfig(
            name="Safety Check",
            instructions=_safety_instructions,
            tools=("safety_check",),
            tool_choice="required",
        ),
        "plan": StateConfig(
            name="Building Your Plan",
            instructions=_plan_instructions,
            tools=("generate_plan",),
            tool_choice="required",
        ),
        "present": StateConfig(
            name="Your Plan",
            instructions=PRESENT_INSTRUCTIONS,
            tools=("refine_plan", "accept_plan"),
            terminal=True,
        ),
    },
    initial_state="goal_capture",
    transitions=(
        StateTransition("goal_capture", ToolInvoked("capture_goal"), "analyst"),
        StateTransition("analyst", ToolInvoked("analyze_goal"), "intake"),
        StateTransition("intake", ToolInvoked("intake_complete"), "safety"),
        StateTransition("safety", ToolInvoked("safety_check"), "plan"),
        StateTransition("plan", ToolInvoked("generate_plan"), "present"),
        StateTransition("present", ToolInvoked("refine_plan"), "plan"),
    ),
    max_steps=60,
)


# =============================================================================
# TOOLS
# =============================================================================


class CaptureGoalArgs(BaseModel):
    goal: str = Field(description="The user's stated fitness goal")
    goal_type: Literal["performance", "endurance", "weight_loss", "general_fitness", "first_race"]
    event: str | None = Field(default=None, description="Specific event, e.g. '1500m'")


class AnalyzeGoalArgs(BaseModel):
    required_fields: list[str] = Field(description="Data points needed before planning")


class CollectDataArgs(BaseModel):
    field_name: str
    value: str


class IntakeCompleteArgs(BaseModel):
    summary: str


class SafetyCheckArgs(BaseModel):
    age: int | None = None
    weekly_runs: int | None = None
    injuries: list[str] = Field(default_factory=list)


class GeneratePlanArgs(BaseModel):
    weeks: int = Field(gt=0, le=52)
    sessions: list[str] = Field(description="One line per session in the first week")


class RefinePlanArgs(BaseModel):
    change: str


def _capture_goal(args: dict[str, Any]) -> dict[str, Any]:
    return {"field_name": "goal", "value": args["goal"], "goal_type": args["goal_type"]}


def _analyze_goal(args: dict[str, Any]) -> dict[str, Any]:
    return {"field_name": "intake_schema", "value": {"required_fields": args["required_fields"]}}


def _collect_data(args: dict[str, Any]) -> dict[str, Any]:
    return {"recorded": args["field_name"]}


def _intake_complete(args: dict[str, Any]) -> dict[str, Any]:
    return {"intake_complete": True, "summary": args["summary"]}


def _safety_check(args: dict[str, Any]) -> dict[str, Any]:
    warnings: list[str] = []
    contraindications: list[str] = []
    if args.get("weekly_runs") is not None and args["weekly_runs"] >= 7:
        warnings.append("Schedule at least one full recovery day per week")
    if args.get("age") is not None and args["age"] >= 50:
        warnings.append("Allow extra recovery between hard sessions")
    for injury in args.get("injuries", []):
        contraindications.append(f"Avoid high-impact work aggravating: {injury}")
    result = {"warnings": warnings, "contraindications": contraindications}
    return {"field_name": "safety_result", "value": result}


def _generate_plan(args: dict[str, Any]) -> dict[str, Any]:
    return {"field_name": "plan", "value": {"weeks": args["weeks"], "sessions": args["sessions"]}}


def _refine_plan(args: dict[str, Any]) -> dict[str, Any]:
    return {"refinement_requested": args["change"]}


def _accept_plan(_args: dict[str, Any]) -> dict[str, Any]:
    return {"accepted": True}


coaching_tools: dict[str, ToolDefinition] = {
    "capture_goal": ToolDefinition(
        "capture_goal", "Capture the user's fitness goal", _capture_goal, CaptureGoalArgs
    ),
    "analyze_goal": ToolDefinition(
        "analyze_goal", "List the intake fields the plan needs", _analyze_goal, AnalyzeGoalArgs
    ),
    "collect_data": ToolDefinition(
        "collect_data", "Record one intake answer", _collect_data, CollectDataArgs
    ),
    "intake_complete": ToolDefinition(
        "intake_complete", "Signal that intake is finished", _intake_complete, IntakeCompleteArgs
    ),
    "safety_check": ToolDefinition(
        "safety_check", "Run safety rules over the profile", _safety_check, SafetyCheckArgs
    ),
    "generate_plan": ToolDefinition(
        "generate_plan", "Write the training plan", _generate_plan, GeneratePlanArgs
    ),
    "refine_plan": ToolDefinition(
        "refine_plan", "Request a change to the plan", _refine_plan, RefinePlanArgs
    ),
    "accept_plan": ToolDefinition("accept_plan", "Accept the training plan", _accept_plan),
}
