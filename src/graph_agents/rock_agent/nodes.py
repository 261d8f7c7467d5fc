"""Node definitions for the rock-paper-scissors graph."""

import logging
from collections import Counter
from typing import Any, Dict, List, NamedTuple, Optional

from ..config.configuration import RockAgentConfiguration
from ..core.errors import CollaboratorError, InputValidationError
from ..core.llm import ainvoke_with_timeout, get_text_content
from .constants import HAND_DISPLAY_NAMES, HAND_KEYS, Hand
from .prompts import (
    AI_RESPONSE_PROMPT,
    CLOSING_LINES,
    DEFAULT_FALLBACK_RESPONSE,
    FALLBACK_RESPONSES,
    GAME_OVER_MESSAGE,
    GAME_SUMMARY_TEMPLATE,
    INVALID_INPUT_MESSAGE,
    RESULT_DESCRIPTIONS,
    WINNER_LABELS,
)
from .state import GameRecord, RockAgentState
from .tools import HandGenerator, judge_hand, parse_hand, random_hand


class RoundScore(NamedTuple):
    """Tallies after the current round is counted."""
    round: int
    user_wins: int
    ai_wins: int
    draws: int
    is_game_over: bool


def score_round(state: RockAgentState, max_rounds: int, win_threshold: int) -> RoundScore:
    """Counts the current result on top of the committed tallies without storing it."""
    result = state["current_result"]
    user_wins = state["user_wins"] + (1 if result == "lose" else 0)
    ai_wins = state["ai_wins"] + (1 if result == "win" else 0)
    draws = state["draws"] + (1 if result == "draw" else 0)
    total_rounds = state["current_round"] + 1
    is_game_over = (
        total_rounds >= max_rounds
        or user_wins >= win_threshold
        or ai_wins >= win_threshold
    )
    return RoundScore(total_rounds, user_wins, ai_wins, draws, is_game_over)


def _round_ready(state: RockAgentState) -> bool:
    return bool(state.get("current_result") and state.get("user_choice") and state.get("ai_choice"))


def validate_input(state: RockAgentState) -> Dict[str, Any]:
    """Accepts only 1, 2 or 3 as the player's hand."""
    logging.info("--- Running Node: validate_input ---")
    if state["is_game_over"]:
        logging.info("Game is already over; refusing another round.")
        return {"validation_error": GAME_OVER_MESSAGE, "user_choice": None}

    try:
        hand = parse_hand(state["user_input"])
    except InputValidationError as e:
        logging.info(f"Invalid hand input: {e}")
        return {"validation_error": INVALID_INPUT_MESSAGE, "user_choice": None}

    return {"validation_error": None, "user_choice": hand.key}


def create_ai_hand_node(hand_generator: HandGenerator = random_hand):
    def generate_ai_hand(state: RockAgentState) -> Dict[str, Any]:
        logging.info("--- Running Node: generate_ai_hand ---")
        return {"ai_choice": hand_generator().key}

    return generate_ai_hand


def judge_game(state: RockAgentState) -> Dict[str, Any]:
    """Judges the round from the agent's perspective."""
    logging.info("--- Running Node: judge_game ---")
    user_choice, ai_choice = state.get("user_choice"), state.get("ai_choice")
    if not user_choice or not ai_choice:
        return {}

    result = judge_hand(Hand.from_key(ai_choice), Hand.from_key(user_choice))
    logging.info(f"Round judged: agent={ai_choice} user={user_choice} -> {result.value}")
    return {"current_result": result.value}


def fallback_response(result: str, ai_choice: str, user_choice: str) -> str:
    template = FALLBACK_RESPONSES.get(result)
    if template is None:
        return DEFAULT_FALLBACK_RESPONSE
    return template.format(
        ai_hand=HAND_DISPLAY_NAMES[ai_choice],
        user_hand=HAND_DISPLAY_NAMES[user_choice],
    )


def most_used_hands(history: List[GameRecord], field: str) -> str:
    """Display names of the most played hand(s), ties joined with commas."""
    counts = Counter({key: 0 for key in HAND_KEYS})
    counts.update(record[field] for record in history)
    top = max(counts.values())
    return ", ".join(HAND_DISPLAY_NAMES[key] for key in HAND_KEYS if counts[key] == top)


def build_game_summary(
    user_wins: int,
    ai_wins: int,
    draws: int,
    total_rounds: int,
    history: List[GameRecord],
    agent_name: str,
) -> str:
    if user_wins > ai_wins:
        winner = "user"
    elif ai_wins > user_wins:
        winner = "ai"
    else:
        winner = "draw"

    return GAME_SUMMARY_TEMPLATE.format(
        winner=WINNER_LABELS[winner].format(agent_name=agent_name),
        user_wins=user_wins,
        ai_wins=ai_wins,
        draws=draws,
        total_rounds=total_rounds,
        user_most_used=most_used_hands(history, "user_choice"),
        ai_most_used=most_used_hands(history, "ai_choice"),
        closing=CLOSING_LINES[winner],
        agent_name=agent_name,
    )


def create_response_node(model: Any, config: Optional[RockAgentConfiguration] = None):
    """Builds the node that asks the model to react to the round.

    The model call is bounded by ``config.response_timeout``; on timeout or any
    invocation error a fixed sentence for the outcome is used instead. When
    this round ends the game, a summary is appended to the reply.
    """
    config = config or RockAgentConfiguration()

    async def generate_agent_response(state: RockAgentState) -> Dict[str, Any]:
        logging.info("--- Running Node: generate_agent_response ---")
        if not _round_ready(state):
            logging.warning("Missing hands or result; skipping response generation.")
            return {}

        result = state["current_result"]
        user_choice, ai_choice = state["user_choice"], state["ai_choice"]
        score = score_round(state, config.max_rounds, config.win_threshold)

        messages = AI_RESPONSE_PROMPT.format_messages(
            agent_name=config.agent_name,
            round=score.round,
            ai_choice=HAND_DISPLAY_NAMES[ai_choice],
            user_choice=HAND_DISPLAY_NAMES[user_choice],
            result=RESULT_DESCRIPTIONS[result],
            ai_wins=score.ai_wins,
            user_wins=score.user_wins,
            draws=score.draws,
        )

        try:
            response = await ainvoke_with_timeout(model, messages, config.response_timeout)
            ai_response = get_text_content(getattr(response, "content", None)).strip() or DEFAULT_FALLBACK_RESPONSE
        except CollaboratorError as e:
            logging.error(f"Error generating agent response, using fallback: {e}", exc_info=True)
            ai_response = fallback_response(result, ai_choice, user_choice)

        if score.is_game_over:
            history = list(state["game_history"]) + [
                GameRecord(
                    round=score.round,
                    user_choice=user_choice,
                    ai_choice=ai_choice,
                    result=result,
                    ai_response="",
                )
            ]
            summary = build_game_summary(
                score.user_wins, score.ai_wins, score.draws, score.round, history, config.agent_name
            )
            ai_response = ai_response + "\n\n" + summary

        return {"ai_response": ai_response}

    return generate_agent_response


def create_update_node(config: Optional[RockAgentConfiguration] = None):
    config = config or RockAgentConfiguration()

    def update_game_state(state: RockAgentState) -> Dict[str, Any]:
        """Commits the round: history, tallies, round counter and game-over flag."""
        logging.info("--- Running Node: update_game_state ---")
        if not _round_ready(state):
            return {}

        score = score_round(state, config.max_rounds, config.win_threshold)
        record = GameRecord(
            round=score.round,
            user_choice=state["user_choice"],
            ai_choice=state["ai_choice"],
            result=state["current_result"],
            ai_response=state["ai_response"],
        )
        if score.is_game_over:
            logging.info(f"Game over after round {score.round}: user {score.user_wins} / agent {score.ai_wins} / draws {score.draws}")

        return {
            "current_round": score.round,
            "user_wins": score.user_wins,
            "ai_wins": score.ai_wins,
            "draws": score.draws,
            "game_history": [record],
            "is_game_over": score.is_game_over,
        }

    return update_game_state

