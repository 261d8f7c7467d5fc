"""Step graphs compiled onto ``langgraph.graph.StateGraph``.

Steps are callables ``(state) -> partial update`` (plain or ``async``). Edges
are either unconditional or decided by a predicate evaluated against the
merged state. ``StepGraph`` checks the definition and compiles it into a
LangGraph ``StateGraph``; each step and predicate is wrapped so that failures
name the step, updates to undeclared fields raise ``SchemaError`` and unmapped
router labels raise ``RoutingError``. When a step has both a plain edge and
conditional edges, only the conditional edges are kept.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

from langgraph.errors import GraphRecursionError as LangGraphRecursionError
from langgraph.graph import END, START, StateGraph

from .errors import GraphRecursionError, GraphValidationError, RoutingError, SchemaError, StepExecutionError
from .state import UNSET, StateSchema

DEFAULT_MAX_STEPS = 25

Step = Callable[[Dict[str, Any]], Any]
Predicate = Callable[[Dict[str, Any]], Hashable]


def _node_key(name: Any) -> str:
    """Normalise enum members and plain strings to the same key."""
    value = getattr(name, "value", name)
    if not isinstance(value, str):
        raise GraphValidationError(f"Step names must be strings, got {name!r}")
    return value


class StepGraph:
    """Builder for a graph of named steps over a ``StateSchema``."""

    def __init__(self, state_schema: StateSchema, name: Optional[str] = None):
        self.schema = state_schema
        self.name = name or state_schema.name
        self.nodes: Dict[str, Step] = {}
        self.edges: Dict[str, str] = {}
        self.branches: Dict[str, Tuple[Predicate, Dict[Hashable, str]]] = {}

    def add_node(self, name: Any, action: Step) -> "StepGraph":
        key = _node_key(name)
        if key in (START, END):
            raise GraphValidationError(f"'{key}' is reserved and cannot be used as a step name")
        if key in self.nodes:
            raise GraphValidationError(f"Step '{key}' is already registered")
        if not callable(action):
            raise GraphValidationError(f"Step '{key}' must be callable")
        self.nodes[key] = action
        return self

    def add_edge(self, source: Any, target: Any) -> "StepGraph":
        source_key, target_key = _node_key(source), _node_key(target)
        if source_key == END:
            raise GraphValidationError("END cannot be the source of an edge")
        if source_key in self.edges and self.edges[source_key] != target_key:
            raise GraphValidationError(
                f"Step '{source_key}' already has an edge to '{self.edges[source_key]}'; "
                "use add_conditional_edges to branch"
            )
        self.edges[source_key] = target_key
        return self

    def add_conditional_edges(
        self,
        source: Any,
        predicate: Predicate,
        path_map: Mapping[Any, Any],
    ) -> "StepGraph":
        source_key = _node_key(source)
        if source_key in self.branches:
            raise GraphValidationError(f"Step '{source_key}' already has conditional edges")
        if not path_map:
            raise GraphValidationError(f"Conditional edges from '{source_key}' need at least one target")
        normalised = {getattr(label, "value", label): _node_key(target) for label, target in path_map.items()}
        self.branches[source_key] = (predicate, normalised)
        return self

    def set_entry_point(self, name: Any) -> "StepGraph":
        return self.add_edge(START, name)

    def set_finish_point(self, name: Any) -> "StepGraph":
        return self.add_edge(name, END)

    def validate(self) -> None:
        if START not in self.edges and START not in self.branches:
            raise GraphValidationError(f"Graph '{self.name}' has no entry point")

        targets = list(self.edges.values())
        for _, path_map in self.branches.values():
            targets.extend(path_map.values())
        for target in targets:
            if target != END and target not in self.nodes:
                raise GraphValidationError(f"Edge target '{target}' is not a registered step")

        for source in list(self.edges) + list(self.branches):
            if source != START and source not in self.nodes:
                raise GraphValidationError(f"Edge source '{source}' is not a registered step")

        for name in self.nodes:
            if name not in self.edges and name not in self.branches:
                raise GraphValidationError(f"Step '{name}' has no outgoing edge")

    def _wrap_step(self, name: str, action: Step):
        schema = self.schema
        graph_name = self.name

        async def run_step(state: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            try:
                result = action(state)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logging.error(f"Step '{name}' in graph '{graph_name}' failed: {e}", exc_info=True)
                raise StepExecutionError(name, e) from e

            if result is None:
                return None
            if not isinstance(result, Mapping):
                raise SchemaError(f"Step '{name}' returned {type(result).__name__}, expected a mapping update")
            # LangGraph drops unknown keys silently
            schema.validate_update(result)
            return {key: value for key, value in result.items() if value is not UNSET}

        run_step.__name__ = name
        return run_step

    def _wrap_predicate(self, source: str, predicate: Predicate, path_map: Dict[Hashable, str]):
        def route(state: Dict[str, Any]) -> Hashable:
            label = predicate(state)
            label = getattr(label, "value", label)
            if label not in path_map:
                raise RoutingError(
                    f"Predicate {getattr(predicate, '__name__', predicate)!r} after '{source}' "
                    f"returned {label!r}, expected one of {sorted(map(str, path_map))}"
                )
            return label

        return route

    def compile(self, max_steps: int = DEFAULT_MAX_STEPS) -> "CompiledStepGraph":
        self.validate()
        if max_steps < 1:
            raise GraphValidationError("max_steps must be at least 1")

        workflow = StateGraph(self.schema.state_type)
        for name, action in self.nodes.items():
            workflow.add_node(name, self._wrap_step(name, action))
        for source, target in self.edges.items():
            if source in self.branches:
                continue
            workflow.add_edge(source, target)
        for source, (predicate, path_map) in self.branches.items():
            workflow.add_conditional_edges(source, self._wrap_predicate(source, predicate, path_map), path_map)

        try:
            app = workflow.compile()
        except ValueError as e:
            raise GraphValidationError(f"Graph '{self.name}' failed to compile: {e}") from e
        logging.info(f"Step graph '{self.name}' compiled with {len(self.nodes)} steps.")
        return CompiledStepGraph(app, self.schema, name=self.name, max_steps=max_steps)


class CompiledStepGraph:
    """A compiled LangGraph app with run-from-previous-state support."""

    def __init__(self, app: Any, schema: StateSchema, name: str, max_steps: int = DEFAULT_MAX_STEPS):
        self.app = app
        self.schema = schema
        self.name = name
        self.max_steps = max_steps

    async def ainvoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        previous: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run from START to END and return the final state.

        ``previous`` is the final state of an earlier run to continue from;
        without it the run starts from the schema defaults. ``input`` is merged
        on top through the field reducers.
        """
        state = self.schema.initial()
        if previous is not None:
            state = self.schema.merge(state, previous)
        state = self.schema.merge(state, input)

        try:
            return await self.app.ainvoke(state, config={"recursion_limit": self.max_steps})
        except LangGraphRecursionError as e:
            raise GraphRecursionError(
                f"Graph '{self.name}' exceeded {self.max_steps} steps without reaching END"
            ) from e

    def invoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        previous: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Synchronous wrapper around :meth:`ainvoke`."""
        return asyncio.run(self.ainvoke(input, previous=previous))
