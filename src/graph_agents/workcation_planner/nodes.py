"""Node definitions for the workcation planner graph."""

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolCall, ToolMessage
from langchain_core.tools import BaseTool

from ..config.configuration import WorkcationPlannerConfiguration
from ..core.errors import EmptyGenerationError, ReflectionParseError, UnknownToolError
from ..core.llm import bind_tools_if_supported, get_text_content, invoke_structured
from .extraction import conditions_complete, extract_conditions
from .prompts import (
    CONDITION_CHECK_SYSTEM_PROMPT,
    CONDITION_STATUS_TEMPLATE,
    CONSOLIDATE_PROMPT,
    CONSOLIDATE_SYSTEM_PROMPT,
    EXTRACTION_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    IMPROVEMENT_SECTION,
    PLAN_GENERATION_PROMPT,
    PLAN_SUMMARY_TEMPLATE,
    PLANNER_SYSTEM_PROMPT,
    REFLECTION_ERROR_FEEDBACK,
    REFLECTION_FALLBACK_SYSTEM_PROMPT,
    REFLECTION_PROMPT,
    REFLECTION_SYSTEM_PROMPT,
    UNKNOWN_CONDITION,
    WELCOME_MESSAGE,
)
from .state import PlanDetails, Reflection, WorkcationPlan, WorkcationPlannerState, empty_conditions


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_plan_summary(plan: WorkcationPlan) -> str:
    """Renders the finished plan as the closing chat message."""
    return PLAN_SUMMARY_TEMPLATE.format(
        location=plan.location,
        duration=plan.duration,
        budget=plan.budget,
        accommodations=_bullets(plan.accommodations),
        workspaces=_bullets(plan.workspaces),
        activities=_bullets(plan.activities),
        transportation=plan.transportation,
        estimated_cost=plan.estimated_cost,
        tips=_bullets(plan.tips),
    )


class WorkcationPlannerNodes:
    """Holds the collaborators every planner node needs."""

    def __init__(
        self,
        model: Any,
        tools: List[BaseTool],
        config: Optional[WorkcationPlannerConfiguration] = None,
    ):
        self.model = model
        self.tools = list(tools)
        self.tools_by_name = {t.name: t for t in self.tools}
        self.config = config or WorkcationPlannerConfiguration()

    async def check_conditions(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """
        Collects location, duration and budget. Greets on the first turn, asks
        for whatever is still missing, and pattern-matches the latest user
        message for the missing values.
        """
        logging.info("--- Running Node: check_conditions ---")
        messages = state["messages"]
        conditions = state["required_conditions"]

        if not messages:
            return {
                "messages": [AIMessage(content=WELCOME_MESSAGE)],
                "required_conditions": empty_conditions(),
            }

        if conditions_complete(conditions):
            logging.info(f"All conditions already known: {conditions}")
            return {"conditions_complete": True}

        status = CONDITION_STATUS_TEMPLATE.format(
            location=conditions.get("location") or UNKNOWN_CONDITION,
            duration=conditions.get("duration") or UNKNOWN_CONDITION,
            budget=conditions.get("budget") or UNKNOWN_CONDITION,
        )
        system_prompt = self.config.condition_check_prompt or CONDITION_CHECK_SYSTEM_PROMPT
        response = await self.model.ainvoke([
            SystemMessage(content=system_prompt),
            *messages,
            HumanMessage(content=status),
        ])

        new_conditions = dict(conditions)
        last_user_message = next((m for m in reversed(messages) if isinstance(m, HumanMessage)), None)
        if last_user_message is not None:
            new_conditions = extract_conditions(get_text_content(last_user_message.content), conditions)
        logging.info(f"Conditions after extraction: {new_conditions}")

        return {
            "messages": [response],
            "required_conditions": new_conditions,
            "conditions_complete": conditions_complete(new_conditions),
        }

    async def generate_plan(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """Asks the tool-bound model to research the trip."""
        logging.info("--- Running Node: generate_plan ---")
        conditions = state["required_conditions"]
        template = self.config.plan_generation_prompt or PLAN_GENERATION_PROMPT
        prompt = template.format(
            location=conditions["location"],
            duration=conditions["duration"],
            budget=conditions["budget"],
        )

        model_with_tools = bind_tools_if_supported(self.model, self.tools)
        response = await model_with_tools.ainvoke([
            SystemMessage(content=PLANNER_SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ])
        tool_calls = getattr(response, "tool_calls", None) or []
        logging.info(f"Plan generation requested {len(tool_calls)} tool call(s): {[tc.get('name') for tc in tool_calls]}")
        # A new plan starts a fresh reflection loop
        return {
            "messages": [response],
            "reflection_count": 0,
            "improvement_instructions": None,
        }

    async def _execute_tool_call(self, tool_call: ToolCall) -> ToolMessage:
        tool_name = tool_call.get("name")
        tool_args = tool_call.get("args", {})
        tool_call_id = tool_call.get("id") or f"error_missing_id_{tool_name}"

        try:
            selected_tool = self.tools_by_name.get(tool_name)
            if selected_tool is None:
                raise UnknownToolError(tool_name)
            logging.info(f"Invoking tool: {tool_name} with args: {tool_args}")
            output = await selected_tool.ainvoke(tool_args)
        except Exception as e:
            logging.error(f"Error executing tool '{tool_name}': {e}", exc_info=True)
            return ToolMessage(
                content=json.dumps({"error": f"Execution failed: {e}"}, ensure_ascii=False),
                name=tool_name,
                tool_call_id=tool_call_id,
                status="error",
            )

        if isinstance(output, ToolMessage):
            return output
        if isinstance(output, str):
            content = output
        else:
            content = json.dumps(output, ensure_ascii=False, default=str)
        logging.info(f"Tool '{tool_name}' executed successfully. Output snippet: {content[:200]}...")
        return ToolMessage(content=content, name=tool_name, tool_call_id=tool_call_id)

    async def run_tools(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """Executes the tool calls of the latest AI message concurrently, keeping call order."""
        logging.info("--- Running Node: tools ---")
        messages = state["messages"]
        last_message = messages[-1] if messages else None

        if not isinstance(last_message, AIMessage) or not last_message.tool_calls:
            logging.warning("Tool executor called, but last message has no tool calls.")
            return {}

        tool_calls = last_message.tool_calls
        logging.info(f"Executing {len(tool_calls)} tool calls: {[tc.get('name') for tc in tool_calls]}")
        tool_messages = await asyncio.gather(*(self._execute_tool_call(tc) for tc in tool_calls))

        return {
            "messages": list(tool_messages),
            "tool_results": [get_text_content(m.content) for m in tool_messages],
        }

    async def consolidate(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """Writes the plan draft from every tool result gathered so far."""
        logging.info("--- Running Node: consolidate ---")
        conditions = state["required_conditions"]
        tool_results = [get_text_content(m.content) for m in state["messages"] if isinstance(m, ToolMessage)]

        prompt = CONSOLIDATE_PROMPT.format(
            location=conditions["location"],
            duration=conditions["duration"],
            budget=conditions["budget"],
            tool_results="\n\n".join(tool_results),
        )
        if state["improvement_instructions"]:
            logging.info("Applying improvement instructions from the previous reflection.")
            prompt += IMPROVEMENT_SECTION.format(improvement_instructions=state["improvement_instructions"])

        response = await self.model.ainvoke([
            SystemMessage(content=CONSOLIDATE_SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ])

        plan_text = get_text_content(response.content)
        if not plan_text.strip():
            logging.error("consolidate: Empty response from model")
            raise EmptyGenerationError("プランの生成に失敗しました。もう一度お試しください。")

        draft = WorkcationPlan(
            location=conditions["location"] or "",
            duration=conditions["duration"] or "",
            budget=conditions["budget"] or "",
        )
        return {
            "messages": [response],
            "tool_results": tool_results,
            "generated_plan_text": plan_text,
            "current_plan": draft,
        }

    async def reflect(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """
        Judges the draft. A verdict that cannot be obtained or parsed counts as
        unsatisfactory so that another improvement pass runs.
        """
        logging.info("--- Running Node: reflect ---")
        plan_text = state["generated_plan_text"]
        if not plan_text:
            raise EmptyGenerationError("評価するプランが見つかりませんでした。")

        conditions = state["required_conditions"]
        prompt = REFLECTION_PROMPT.format(
            plan_text=plan_text,
            location=conditions["location"],
            duration=conditions["duration"],
            budget=conditions["budget"],
        )
        reflection_count = state["reflection_count"] + 1

        try:
            reflection = await invoke_structured(
                self.model,
                [SystemMessage(content=REFLECTION_SYSTEM_PROMPT), HumanMessage(content=prompt)],
                Reflection,
                fallback_messages=[SystemMessage(content=REFLECTION_FALLBACK_SYSTEM_PROMPT), HumanMessage(content=prompt)],
                error_cls=ReflectionParseError,
            )
        except ReflectionParseError as e:
            logging.error(f"Error in reflection: {e}", exc_info=True)
            return {
                "reflection_result": {"satisfactory": False, "feedback": REFLECTION_ERROR_FEEDBACK},
                "reflection_count": reflection_count,
            }

        logging.info(f"Reflection #{reflection_count}: satisfactory={reflection.satisfactory} feedback={reflection.feedback}")
        return {
            "reflection_result": {"satisfactory": reflection.satisfactory, "feedback": reflection.feedback},
            "improvement_instructions": reflection.improvements,
            "reflection_count": reflection_count,
        }

    async def finalize(self, state: WorkcationPlannerState) -> Dict[str, Any]:
        """Extracts the structured plan from the draft and posts the summary."""
        logging.info("--- Running Node: finalize ---")
        conditions = state["required_conditions"]
        prompt = EXTRACTION_PROMPT.format(plan_text=state["generated_plan_text"])

        details = await invoke_structured(
            self.model,
            [SystemMessage(content=EXTRACTION_SYSTEM_PROMPT), HumanMessage(content=prompt)],
            PlanDetails,
        )
        final_plan = WorkcationPlan(
            location=conditions["location"] or "",
            duration=conditions["duration"] or "",
            budget=conditions["budget"] or "",
            **details.model_dump(),
        )

        return {
            "final_plan": final_plan,
            "current_plan": final_plan,
            "messages": [AIMessage(content=format_plan_summary(final_plan))],
        }
