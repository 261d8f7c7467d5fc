import asyncio
import itertools

import pytest

from fakes import FailingChatModel, HangingChatModel, ScriptedChatModel, StubbornChatModel
from graph_agents.config.configuration import RockAgentConfiguration
from graph_agents.core.errors import InputValidationError
from graph_agents.rock_agent import compile_graph
from graph_agents.rock_agent.constants import Hand, Result
from graph_agents.rock_agent.nodes import build_game_summary, most_used_hands, score_round
from graph_agents.rock_agent.prompts import GAME_OVER_MESSAGE, INVALID_INPUT_MESSAGE
from graph_agents.rock_agent.tools import judge_hand, parse_hand, random_hand


def always(hand):
    return lambda: hand


def make_app(model, hand=Hand.PAPER, **config):
    return compile_graph(model=model, config=RockAgentConfiguration(**config), hand_generator=always(hand))


def play(app, inputs, state=None):
    for user_input in inputs:
        state = app.invoke({"user_input": user_input}, previous=state)
    return state


# --- Rules ---

def test_judge_is_antisymmetric():
    for a, b in itertools.product(Hand, Hand):
        if a == b:
            assert judge_hand(a, b) is Result.DRAW
        else:
            assert (judge_hand(a, b) is Result.WIN) == (judge_hand(b, a) is Result.LOSE)


def test_each_hand_beats_exactly_one_other():
    for hand in Hand:
        wins = [other for other in Hand if judge_hand(hand, other) is Result.WIN]
        assert len(wins) == 1
    assert judge_hand(Hand.ROCK, Hand.SCISSORS) is Result.WIN
    assert judge_hand(Hand.PAPER, Hand.ROCK) is Result.WIN
    assert judge_hand(Hand.SCISSORS, Hand.PAPER) is Result.WIN


@pytest.mark.parametrize("text, expected", [("1", Hand.ROCK), (" 2 ", Hand.PAPER), ("3\n", Hand.SCISSORS)])
def test_parse_hand_accepts_one_to_three(text, expected):
    assert parse_hand(text) is expected


@pytest.mark.parametrize("text, expected", [
    ("1.5", Hand.ROCK),
    ("2abc", Hand.PAPER),
    ("3番", Hand.SCISSORS),
    ("+2", Hand.PAPER),
    (" 03", Hand.SCISSORS),
])
def test_parse_hand_reads_the_leading_number(text, expected):
    assert parse_hand(text) is expected


@pytest.mark.parametrize("text", ["0", "4", "-1", "abc", "", "a1", "グー", "12"])
def test_parse_hand_rejects_everything_else(text):
    with pytest.raises(InputValidationError):
        parse_hand(text)


def test_random_hand_is_a_hand():
    assert random_hand() in set(Hand)


def test_hand_keys_and_display_names():
    assert Hand.from_key("scissors") is Hand.SCISSORS
    assert [hand.display_name for hand in Hand] == ["グー", "パー", "チョキ"]


# --- One round per run ---

def test_round_is_judged_and_committed():
    model = ScriptedChatModel(responses=["The future is going to be wild!"])
    state = make_app(model, hand=Hand.PAPER).invoke({"user_input": "1"})

    assert state["user_choice"] == "rock"
    assert state["ai_choice"] == "paper"
    assert state["current_result"] == "win"
    assert state["ai_response"] == "The future is going to be wild!"
    assert (state["current_round"], state["ai_wins"], state["user_wins"], state["draws"]) == (1, 1, 0, 0)
    assert state["game_history"] == [{
        "round": 1,
        "user_choice": "rock",
        "ai_choice": "paper",
        "result": "win",
        "ai_response": "The future is going to be wild!",
    }]
    assert state["is_game_over"] is False

    prompt = model.calls[0][-1].content
    assert "あなたの手: パー" in prompt
    assert "相手の手: グー" in prompt
    assert "ラウンド: 1" in prompt


@pytest.mark.parametrize("bad_input", ["0", "4", "abc", ""])
def test_invalid_input_ends_the_run_without_a_round(bad_input):
    model = ScriptedChatModel()
    state = make_app(model).invoke({"user_input": bad_input})

    assert state["validation_error"] == INVALID_INPUT_MESSAGE
    assert state["current_round"] == 0
    assert state["game_history"] == []
    assert model.calls == []


def test_invalid_input_keeps_the_previous_score():
    app = make_app(ScriptedChatModel(responses=["一本目", "二本目"]), hand=Hand.SCISSORS)
    state = play(app, ["1", "x"])
    assert state["validation_error"] == INVALID_INPUT_MESSAGE
    assert state["user_wins"] == 1
    assert len(state["game_history"]) == 1

    state = play(app, ["1"], state)
    assert state["validation_error"] is None
    assert state["user_wins"] == 2
    assert [r["round"] for r in state["game_history"]] == [1, 2]


# --- Termination ---

def test_game_ends_when_the_agent_reaches_three_wins():
    app = make_app(ScriptedChatModel(responses=["ok"] * 3), hand=Hand.PAPER)
    state = play(app, ["1", "1"])
    assert state["is_game_over"] is False

    state = play(app, ["1"], state)
    assert state["is_game_over"] is True
    assert state["ai_wins"] == 3
    assert state["current_round"] == 3
    assert "サム・アルトマンの勝利ダー！" in state["ai_response"]
    assert "あなたが最も使った手: グー" in state["ai_response"]
    assert "サム・アルトマンが最も使った手: パー" in state["ai_response"]
    assert state["game_history"][-1]["ai_response"] == state["ai_response"]


def test_game_ends_after_ten_rounds():
    app = make_app(ScriptedChatModel(responses=["draw"] * 10), hand=Hand.ROCK)
    state = play(app, ["1"] * 9)
    assert state["is_game_over"] is False

    state = play(app, ["1"], state)
    assert state["is_game_over"] is True
    assert state["draws"] == 10
    assert state["current_round"] == 10
    assert "引き分けダー！" in state["ai_response"]
    assert "10ラウンド" in state["ai_response"]


def test_finished_game_refuses_more_rounds():
    model = ScriptedChatModel(responses=["ok"] * 3)
    app = make_app(model, hand=Hand.ROCK)
    state = play(app, ["3", "3", "3"])
    assert state["is_game_over"] is True

    after = play(app, ["1"], state)
    assert after["validation_error"] == GAME_OVER_MESSAGE
    assert after["current_round"] == 3
    assert after["game_history"] == state["game_history"]


def test_custom_limits_are_honoured():
    app = make_app(ScriptedChatModel(responses=["ok"]), hand=Hand.ROCK, win_threshold=1)
    state = play(app, ["2"])
    assert state["user_wins"] == 1
    assert state["is_game_over"] is True
    assert "あなたの勝利ダー！" in state["ai_response"]


# --- Collaborator failures ---

def test_timeout_uses_the_fallback_sentence():
    app = make_app(HangingChatModel(), hand=Hand.ROCK, response_timeout=0.05)
    state = app.invoke({"user_input": "3"})
    assert state["current_result"] == "win"
    assert state["ai_response"] == "私のグーがあなたのチョキに勝ちました！"
    assert state["ai_wins"] == 1


@pytest.mark.anyio
async def test_slow_reply_is_not_waited_for_or_cancelled():
    model = StubbornChatModel(delay=0.5, reply="遅れて登場！")
    app = make_app(model, hand=Hand.ROCK, response_timeout=0.05)
    loop = asyncio.get_running_loop()

    started = loop.time()
    state = await app.ainvoke({"user_input": "3"})
    assert loop.time() - started < 0.4
    assert state["ai_response"] == "私のグーがあなたのチョキに勝ちました！"

    await asyncio.sleep(0.6)
    assert model.finished
    assert not model.cancelled


def test_model_error_uses_the_fallback_sentence():
    app = make_app(FailingChatModel(), hand=Hand.SCISSORS)
    state = app.invoke({"user_input": "1"})
    assert state["current_result"] == "lose"
    assert state["ai_response"] == "おめでとう！あなたのグーが私のチョキに勝ちました！"


def test_draw_fallback_sentence():
    app = make_app(FailingChatModel(), hand=Hand.PAPER)
    state = app.invoke({"user_input": "2"})
    assert state["ai_response"] == "おっと、お互いパーで引き分けです！"


# --- Summary helpers ---

def test_most_used_hands_joins_ties():
    history = [
        {"round": 1, "user_choice": "rock", "ai_choice": "paper", "result": "win", "ai_response": ""},
        {"round": 2, "user_choice": "paper", "ai_choice": "paper", "result": "draw", "ai_response": ""},
    ]
    assert most_used_hands(history, "user_choice") == "グー, パー"
    assert most_used_hands(history, "ai_choice") == "パー"


def test_build_game_summary_reports_the_score():
    history = [{"round": 1, "user_choice": "scissors", "ai_choice": "rock", "result": "win", "ai_response": ""}]
    summary = build_game_summary(0, 1, 0, 1, history, "エージェント")
    assert "エージェントの勝利ダー！" in summary
    assert "エージェント: 1勝" in summary
    assert "あなた: 0勝" in summary
    assert "1ラウンド" in summary
    assert "あなたが最も使った手: チョキ" in summary


def test_score_round_counts_the_pending_result():
    state = {"current_result": "lose", "user_wins": 2, "ai_wins": 0, "draws": 1, "current_round": 3}
    score = score_round(state, max_rounds=10, win_threshold=3)
    assert score == (4, 3, 0, 1, True)
