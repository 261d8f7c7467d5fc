"""State definitions for the workcation planner."""

from typing import TypedDict, Annotated, List, Optional

from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages
from pydantic import BaseModel, Field

from ..core.state import StateSchema, coalesce, replace_if_nonempty, shallow_merge


class PlanDetails(BaseModel):
    """Plan fields extracted from the free-text draft."""
    accommodations: List[str] = Field(default_factory=list, description="宿泊施設のリスト")
    workspaces: List[str] = Field(default_factory=list, description="ワークスペースのリスト")
    activities: List[str] = Field(default_factory=list, description="観光・アクティビティのリスト")
    transportation: str = Field(default="", description="交通手段の詳細")
    estimated_cost: str = Field(default="", description="概算費用")
    tips: List[str] = Field(default_factory=list, description="ワーケーションのTips")


class WorkcationPlan(PlanDetails):
    location: str
    duration: str
    budget: str


class Reflection(BaseModel):
    """Quality verdict on a drafted plan."""
    satisfactory: bool = Field(description="プランが満足できるものかどうか")
    feedback: Optional[str] = Field(default=None, description="改善が必要な場合のフィードバック")
    improvements: Optional[str] = Field(default=None, description="具体的な改善提案")


class RequiredConditions(TypedDict):
    location: Optional[str]
    duration: Optional[str]
    budget: Optional[str]


class ReflectionResult(TypedDict):
    satisfactory: bool
    feedback: Optional[str]


class WorkcationPlannerState(TypedDict):
    """State definition for the workcation planner."""
    # Primary driver: the conversation history
    messages: Annotated[List[AnyMessage], add_messages]

    # Location, duration and budget gathered from the user
    required_conditions: Annotated[RequiredConditions, shallow_merge]
    conditions_complete: bool

    # Text of the tool results from the latest search round
    tool_results: Annotated[List[str], replace_if_nonempty]

    generated_plan_text: Annotated[Optional[str], coalesce]
    current_plan: Annotated[Optional[WorkcationPlan], coalesce]

    reflection_result: Annotated[Optional[ReflectionResult], coalesce]
    improvement_instructions: Optional[str]
    reflection_count: int

    final_plan: Annotated[Optional[WorkcationPlan], coalesce]


def empty_conditions() -> RequiredConditions:
    return {"location": None, "duration": None, "budget": None}


WORKCATION_PLANNER_SCHEMA = StateSchema.from_typed_dict(
    WorkcationPlannerState,
    defaults={
        "messages": list,
        "required_conditions": empty_conditions,
        "conditions_complete": bool,
        "tool_results": list,
        "generated_plan_text": lambda: None,
        "current_plan": lambda: None,
        "reflection_result": lambda: None,
        "improvement_instructions": lambda: None,
        "reflection_count": int,
        "final_plan": lambda: None,
    },
)
