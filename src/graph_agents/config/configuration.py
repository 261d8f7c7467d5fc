"""Explicit per-workflow configuration passed into the graph factories."""

import os
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .settings import (
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_SEARCH_RESULTS,
    DEFAULT_TEMPERATURE,
    DEFAULT_LLM_MODEL,
    ROCK_AGENT_MODEL,
    WORKCATION_MODEL,
)

ConfigT = TypeVar("ConfigT", bound="BaseConfiguration")


class BaseConfiguration(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    model: str
    temperature: float = DEFAULT_TEMPERATURE
    language: str = DEFAULT_LANGUAGE


class RockAgentConfiguration(BaseConfiguration):
    model: str = ROCK_AGENT_MODEL
    response_timeout: float = Field(default=30.0, gt=0)
    max_rounds: int = Field(default=10, ge=1)
    win_threshold: int = Field(default=3, ge=1)
    agent_name: str = "サム・アルトマン"

    @classmethod
    def from_env(cls) -> "RockAgentConfiguration":
        return cls(model=os.environ.get("ROCK_AGENT_MODEL", DEFAULT_LLM_MODEL))


class WorkcationPlannerConfiguration(BaseConfiguration):
    model: str = WORKCATION_MODEL
    max_search_results: int = Field(default=DEFAULT_MAX_SEARCH_RESULTS, ge=1)
    max_reflections: int = Field(default=3, ge=1)
    max_steps: int = Field(default=50, ge=1)
    # None selects the built-in templates in workcation_planner.prompts
    condition_check_prompt: Optional[str] = None
    plan_generation_prompt: Optional[str] = None

    @classmethod
    def from_env(cls) -> "WorkcationPlannerConfiguration":
        return cls(model=os.environ.get("WORKCATION_MODEL", DEFAULT_LLM_MODEL))


def ensure_configuration(
    config_cls: Type[ConfigT],
    configurable: Optional[Mapping[str, Any]] = None,
) -> ConfigT:
    """Overlay a partial mapping on the environment defaults of ``config_cls``."""
    base = config_cls.from_env().model_dump()
    base.update(configurable or {})
    return config_cls.model_validate(base)
