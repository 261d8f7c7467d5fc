"""Step graph for the rock-paper-scissors agent.

One run plays one round:

    validate_input -> generate_ai_hand -> judge_game
        -> generate_agent_response -> update_game_state -> END

Invalid input ends the run right after validation. The driver invokes the
graph again (passing the previous state) for the next round.
"""

import logging
from enum import Enum
from typing import Any, Optional

from ..config.configuration import RockAgentConfiguration
from ..core.errors import GraphValidationError
from ..core.graph import END, CompiledStepGraph, StepGraph
from ..core.llm import load_chat_model
from .nodes import (
    create_ai_hand_node,
    create_response_node,
    create_update_node,
    judge_game,
    validate_input,
)
from .state import ROCK_AGENT_SCHEMA, RockAgentState
from .tools import HandGenerator, random_hand


class RockStep(str, Enum):
    VALIDATE_INPUT = "validate_input"
    GENERATE_AI_HAND = "generate_ai_hand"
    JUDGE_GAME = "judge_game"
    GENERATE_AGENT_RESPONSE = "generate_agent_response"
    UPDATE_GAME_STATE = "update_game_state"


def has_validation_error(state: RockAgentState) -> str:
    """Routes invalid input straight to END."""
    if state.get("validation_error"):
        logging.info("Conditional Edge: Validation failed, routing to END.")
        return "error"
    return "continue"


def is_game_over(state: RockAgentState) -> str:
    if state.get("is_game_over"):
        logging.info("Conditional Edge: Game over, routing to END.")
        return "end"
    return "continue"


def create_graph(
    model: Any,
    config: Optional[RockAgentConfiguration] = None,
    hand_generator: HandGenerator = random_hand,
) -> StepGraph:
    """Creates the rock-paper-scissors step graph."""
    config = config or RockAgentConfiguration()
    workflow = StepGraph(ROCK_AGENT_SCHEMA, name="RockPaperScissors")

    # Add nodes
    workflow.add_node(RockStep.VALIDATE_INPUT, validate_input)
    workflow.add_node(RockStep.GENERATE_AI_HAND, create_ai_hand_node(hand_generator))
    workflow.add_node(RockStep.JUDGE_GAME, judge_game)
    workflow.add_node(RockStep.GENERATE_AGENT_RESPONSE, create_response_node(model, config))
    workflow.add_node(RockStep.UPDATE_GAME_STATE, create_update_node(config))

    # Define edges
    workflow.set_entry_point(RockStep.VALIDATE_INPUT)
    workflow.add_conditional_edges(
        RockStep.VALIDATE_INPUT,
        has_validation_error,
        {
            "error": END,
            "continue": RockStep.GENERATE_AI_HAND,
        }
    )
    workflow.add_edge(RockStep.GENERATE_AI_HAND, RockStep.JUDGE_GAME)
    workflow.add_edge(RockStep.JUDGE_GAME, RockStep.GENERATE_AGENT_RESPONSE)
    workflow.add_edge(RockStep.GENERATE_AGENT_RESPONSE, RockStep.UPDATE_GAME_STATE)

    # One round per run: both outcomes end the run
    workflow.add_conditional_edges(
        RockStep.UPDATE_GAME_STATE,
        is_game_over,
        {
            "end": END,
            "continue": END,
        }
    )

    return workflow


def compile_graph(
    model: Any = None,
    config: Optional[RockAgentConfiguration] = None,
    hand_generator: HandGenerator = random_hand,
) -> CompiledStepGraph:
    """Compiles the rock-paper-scissors graph, loading the configured model if none is given."""
    config = config or RockAgentConfiguration.from_env()
    if model is None:
        model = load_chat_model(config.model, temperature=config.temperature)

    workflow = create_graph(model, config, hand_generator)
    try:
        app = workflow.compile()
        logging.info("Rock-paper-scissors graph compiled successfully.")
        return app
    except GraphValidationError as compile_error:
        logging.error(f"Failed to compile rock-paper-scissors graph: {compile_error}", exc_info=True)
        raise
