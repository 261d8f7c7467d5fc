"""
Configuration settings and constants for the agents.
"""

from .settings import (
    GEMINI_API_KEY,
    TAVILY_API_KEY,
    DEFAULT_LLM_MODEL,
    DEFAULT_PROVIDER,
    GEMINI_MODEL_CONFIG,
    validate_api_keys
)
from .configuration import (
    RockAgentConfiguration,
    WorkcationPlannerConfiguration,
    ensure_configuration
)

__all__ = [
    'GEMINI_API_KEY',
    'TAVILY_API_KEY',
    'DEFAULT_LLM_MODEL',
    'DEFAULT_PROVIDER',
    'GEMINI_MODEL_CONFIG',
    'validate_api_keys',
    'RockAgentConfiguration',
    'WorkcationPlannerConfiguration',
    'ensure_configuration'
]
