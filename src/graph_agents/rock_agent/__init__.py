"""
Rock-paper-scissors agent: one round per graph run.
"""

from .graph import RockStep, compile_graph, create_graph
from .state import ROCK_AGENT_SCHEMA, GameRecord, RockAgentState

__all__ = ['RockStep', 'compile_graph', 'create_graph', 'ROCK_AGENT_SCHEMA', 'GameRecord', 'RockAgentState']
