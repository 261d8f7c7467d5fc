"""Step graph for the workcation planner.

    check_conditions --(complete)--> generate_plan -> tools -> consolidate -> reflect
          |                                                      ^            |
          +--(missing)--> END                                    +--improve---+
                                                                  finalize <--+ (satisfactory)

When conditions are missing the run ends and waits for the next user turn.
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional

from langchain_core.tools import BaseTool

from ..config.configuration import WorkcationPlannerConfiguration
from ..core.errors import GraphValidationError
from ..core.graph import END, CompiledStepGraph, StepGraph
from ..core.llm import load_chat_model
from .nodes import WorkcationPlannerNodes
from .state import WORKCATION_PLANNER_SCHEMA, WorkcationPlannerState
from .tools import SearchClient, create_search_client, initialize_tools


class PlannerStep(str, Enum):
    CHECK_CONDITIONS = "check_conditions"
    GENERATE_PLAN = "generate_plan"
    TOOLS = "tools"
    CONSOLIDATE = "consolidate"
    REFLECT = "reflect"
    FINALIZE = "finalize"


def should_continue_checking(state: WorkcationPlannerState) -> str:
    """Routes to plan generation once location, duration and budget are known."""
    if state.get("conditions_complete"):
        logging.info("Conditional Edge: Conditions complete, routing to plan generation.")
        return "generate"
    logging.info("Conditional Edge: Conditions missing, waiting for the next user turn.")
    return END


def create_improvement_router(max_reflections: int) -> Callable[[WorkcationPlannerState], str]:
    def should_improve(state: WorkcationPlannerState) -> str:
        reflection = state.get("reflection_result") or {}
        if reflection.get("satisfactory"):
            logging.info("Conditional Edge: Plan approved, routing to finalize.")
            return "finalize"
        if state.get("reflection_count", 0) >= max_reflections:
            logging.warning(f"Conditional Edge: Reflection limit ({max_reflections}) reached, finalizing anyway.")
            return "finalize"
        logging.info("Conditional Edge: Plan needs improvement, routing back to consolidate.")
        return "improve"

    return should_improve


def create_graph(
    model: Any,
    tools: List[BaseTool],
    config: Optional[WorkcationPlannerConfiguration] = None,
) -> StepGraph:
    """Creates the workcation planner step graph."""
    config = config or WorkcationPlannerConfiguration()
    nodes = WorkcationPlannerNodes(model, tools, config)
    workflow = StepGraph(WORKCATION_PLANNER_SCHEMA, name="WorkcationPlanner")

    # Add nodes
    workflow.add_node(PlannerStep.CHECK_CONDITIONS, nodes.check_conditions)
    workflow.add_node(PlannerStep.GENERATE_PLAN, nodes.generate_plan)
    workflow.add_node(PlannerStep.TOOLS, nodes.run_tools)
    workflow.add_node(PlannerStep.CONSOLIDATE, nodes.consolidate)
    workflow.add_node(PlannerStep.REFLECT, nodes.reflect)
    workflow.add_node(PlannerStep.FINALIZE, nodes.finalize)

    # Define edges
    workflow.set_entry_point(PlannerStep.CHECK_CONDITIONS)
    workflow.add_conditional_edges(
        PlannerStep.CHECK_CONDITIONS,
        should_continue_checking,
        {
            "generate": PlannerStep.GENERATE_PLAN,
            END: END,
        }
    )
    workflow.add_edge(PlannerStep.GENERATE_PLAN, PlannerStep.TOOLS)
    workflow.add_edge(PlannerStep.TOOLS, PlannerStep.CONSOLIDATE)
    workflow.add_edge(PlannerStep.CONSOLIDATE, PlannerStep.REFLECT)
    workflow.add_conditional_edges(
        PlannerStep.REFLECT,
        create_improvement_router(config.max_reflections),
        {
            "improve": PlannerStep.CONSOLIDATE,
            "finalize": PlannerStep.FINALIZE,
        }
    )
    workflow.set_finish_point(PlannerStep.FINALIZE)

    return workflow


def compile_graph(
    model: Any = None,
    config: Optional[WorkcationPlannerConfiguration] = None,
    search: Optional[SearchClient] = None,
) -> CompiledStepGraph:
    """Compiles the planner, creating the configured model and search client when not given."""
    config = config or WorkcationPlannerConfiguration.from_env()
    if model is None:
        model = load_chat_model(config.model, temperature=config.temperature)
    if search is None:
        search = create_search_client(config.max_search_results)

    workflow = create_graph(model, initialize_tools(search), config)
    try:
        app = workflow.compile(max_steps=config.max_steps)
        logging.info("Workcation planner graph compiled successfully.")
        return app
    except GraphValidationError as compile_error:
        logging.error(f"Failed to compile workcation planner graph: {compile_error}", exc_info=True)
        raise
