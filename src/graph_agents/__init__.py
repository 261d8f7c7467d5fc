"""
Step-graph chat agents: a rock-paper-scissors opponent and a workcation planner.
"""

__version__ = "0.1.0"
