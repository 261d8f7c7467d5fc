"""State definitions for the rock-paper-scissors agent."""

from typing import TypedDict, Annotated, List, Optional

from ..core.state import StateSchema, append


class GameRecord(TypedDict):
    """One finished round. Never modified after it is appended."""
    round: int
    user_choice: str
    ai_choice: str
    result: str
    ai_response: str


class RockAgentState(TypedDict):
    """State for one game. Each graph run plays at most one round."""
    # Raw text typed by the player this turn
    user_input: str
    user_choice: Optional[str]
    ai_choice: Optional[str]

    # Outcome of the current round from the agent's perspective
    current_result: Optional[str]
    ai_response: str

    current_round: int
    user_wins: int
    ai_wins: int
    draws: int
    game_history: Annotated[List[GameRecord], append]
    is_game_over: bool

    validation_error: Optional[str]


ROCK_AGENT_SCHEMA = StateSchema.from_typed_dict(
    RockAgentState,
    defaults={
        "user_input": str,
        "user_choice": lambda: None,
        "ai_choice": lambda: None,
        "current_result": lambda: None,
        "ai_response": str,
        "current_round": int,
        "user_wins": int,
        "ai_wins": int,
        "draws": int,
        "game_history": list,
        "is_game_over": bool,
        "validation_error": lambda: None,
    },
)
