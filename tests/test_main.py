from unittest.mock import patch

import pytest

from fakes import ScriptedChatModel
from graph_agents.__main__ import main
from graph_agents.config.configuration import RockAgentConfiguration
from graph_agents.rock_agent import compile_graph as compile_rock_graph
from graph_agents.rock_agent.constants import Hand


def test_rock_session_plays_until_exit(capsys):
    app = compile_rock_graph(
        model=ScriptedChatModel(responses=["面白い！"]),
        config=RockAgentConfiguration(),
        hand_generator=lambda: Hand.SCISSORS,
    )
    with patch("graph_agents.rock_agent.compile_graph", return_value=app), \
         patch("builtins.input", side_effect=["5", "1", "exit"]):
        main(["rock"])

    out = capsys.readouterr().out
    assert "無効な入力ダー！" in out
    assert "面白い！" in out
    assert "ラウンド 1 / あなた 1勝" in out
    assert "またね！" in out


def test_workcation_session_requires_api_keys(capsys):
    with patch("graph_agents.__main__.validate_api_keys", return_value=False), \
         patch("graph_agents.workcation_planner.compile_graph") as mock_compile:
        main(["workcation"])

    mock_compile.assert_not_called()
    assert "Missing required API keys" in capsys.readouterr().out


def test_unknown_agent_is_rejected():
    with pytest.raises(SystemExit):
        main(["chess"])
