"""
Workcation planner: gathers trip conditions, researches with web search and
refines the plan until it passes reflection.
"""

from .graph import PlannerStep, compile_graph, create_graph
from .state import WORKCATION_PLANNER_SCHEMA, WorkcationPlan, WorkcationPlannerState

__all__ = ['PlannerStep', 'compile_graph', 'create_graph', 'WORKCATION_PLANNER_SCHEMA', 'WorkcationPlan', 'WorkcationPlannerState']
