"""
Interactive command line driver for the agents.
"""

import argparse
import logging
from typing import Any, Dict, Optional

from langchain_core.messages import AIMessage, HumanMessage

from .config.configuration import RockAgentConfiguration, WorkcationPlannerConfiguration
from .config.settings import validate_api_keys
from .core.errors import GraphError
from .core.llm import get_text_content


def _last_ai_text(state: Dict[str, Any]) -> Optional[str]:
    last_ai_message = next((msg for msg in reversed(state.get("messages", [])) if isinstance(msg, AIMessage)), None)
    return get_text_content(last_ai_message.content) if last_ai_message else None


def play_rock_paper_scissors() -> None:
    from .rock_agent import compile_graph

    config = RockAgentConfiguration.from_env()
    app = compile_graph(config=config)

    print("--- じゃんけんゲーム ---")
    print(f"{config.max_rounds}回勝負、または先に{config.win_threshold}勝した方の勝ちです。")
    print("1(グー)、2(パー)、3(チョキ)のいずれかを入力してください。'exit' で終了します。")

    state: Optional[Dict[str, Any]] = None
    while True:
        try:
            user_input = input("\nあなた: ")
        except (KeyboardInterrupt, EOFError):
            print()
            break
        if user_input.lower() in ["exit", "quit"]:
            break

        try:
            state = app.invoke({"user_input": user_input}, previous=state)
        except GraphError as e:
            logging.error(f"Game run failed: {e}", exc_info=True)
            print(f"\nSorry, an unexpected error occurred: {e}")
            continue

        if state["validation_error"]:
            print(f"\n{state['validation_error']}")
            if state["is_game_over"]:
                break
            continue

        print(f"\n{config.agent_name}: {state['ai_response']}")
        print(f"(ラウンド {state['current_round']} / あなた {state['user_wins']}勝 / "
              f"{config.agent_name} {state['ai_wins']}勝 / 引き分け {state['draws']}回)")
        if state["is_game_over"]:
            break

    print("\n--- またね！ ---")


def plan_workcation() -> None:
    from .workcation_planner import compile_graph

    if not validate_api_keys(require_search=True):
        print("\nError: Missing required API keys. Please set GEMINI_API_KEY and TAVILY_API_KEY.")
        return

    config = WorkcationPlannerConfiguration.from_env()
    app = compile_graph(config=config)

    # First run with an empty history produces the welcome message
    state = app.invoke({})
    print(f"\nPlanner: {_last_ai_text(state)}")

    while True:
        try:
            user_input = input("\nあなた: ")
        except (KeyboardInterrupt, EOFError):
            print()
            break
        if user_input.lower() in ["exit", "quit"]:
            break

        print("プランを考えています...")
        try:
            state = app.invoke({"messages": [HumanMessage(content=user_input)]}, previous=state)
        except GraphError as e:
            logging.error(f"Planner run failed: {e}", exc_info=True)
            print(f"\nSorry, an unexpected error occurred: {e}")
            continue

        print(f"\nPlanner: {_last_ai_text(state)}")
        if state["final_plan"] is not None:
            break

    print("\n--- Thank you for using the workcation planner. ---")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="graph-agents", description="Chat with a step-graph agent.")
    parser.add_argument("agent", choices=["rock", "workcation"], help="which agent to run")
    args = parser.parse_args(argv)

    if args.agent == "rock":
        play_rock_paper_scissors()
    else:
        plan_workcation()


if __name__ == "__main__":
    main()
