"""
Step graphs on LangGraph, the state container and LLM collaborator helpers.
"""

from .errors import (
    GraphError,
    GraphRecursionError,
    GraphValidationError,
    RoutingError,
    SchemaError,
    StepExecutionError,
)
from .graph import END, START, CompiledStepGraph, StepGraph
from .state import UNSET, StateSchema, append, coalesce, replace, replace_if_nonempty, shallow_merge

__all__ = [
    'END',
    'START',
    'UNSET',
    'CompiledStepGraph',
    'GraphError',
    'GraphRecursionError',
    'GraphValidationError',
    'RoutingError',
    'SchemaError',
    'StateSchema',
    'StepExecutionError',
    'StepGraph',
    'append',
    'coalesce',
    'replace',
    'replace_if_nonempty',
    'shallow_merge',
]
