"""Lazily created OpenRouter model and the agents built on it.

Agents are created on first use so that importing this module never
requires the OpenRouter credential.
"""

import logging

from pydantic_ai import Agent
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openrouter import OpenRouterProvider

from src.agents.prompts import RECIPE_SYSTEM_PROMPT, VISION_SYSTEM_PROMPT
from src.core.config import settings
from src.domain.recipe import Recipe, VisionResult


logger = logging.getLogger(__name__)


class _AgentState:
    """Singleton state for the model and agent instances."""

    model: OpenRouterModel | None = None
    recipe_agent: Agent[None, list[Recipe]] | None = None
    vision_agent: Agent[None, VisionResult] | None = None


def _create_model() -> OpenRouterModel:
    """Create the OpenRouter model (called once during initialization)."""
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)

    # Configure provider routing if specified
    model_settings: OpenRouterModelSettings | None = None
    if settings.model_provider:
        model_settings = OpenRouterModelSettings(openrouter_provider={"only": [settings.model_provider]})

    logger.info("ai_model_created", extra={"model_id": settings.model_id})
    return OpenRouterModel(
        model_name=settings.model_id,
        provider=provider,
        settings=model_settings,
    )


def get_model() -> OpenRouterModel:
    """Get or create the shared model instance."""
    if _AgentState.model is None:
        _AgentState.model = _create_model()
    return _AgentState.model


def get_recipe_agent() -> Agent[None, list[Recipe]]:
    """Get or create the agent that returns structured recipes."""
    if _AgentState.recipe_agent is None:
        # Throttling is handled by the recipe service cooldown, not by retries
        _AgentState.recipe_agent = Agent(
            model=get_model(),
            output_type=list[Recipe],
            system_prompt=RECIPE_SYSTEM_PROMPT,
            retries=0,
        )
    return _AgentState.recipe_agent


def get_vision_agent() -> Agent[None, VisionResult]:
    """Get or create the agent that recognizes products in photos."""
    if _AgentState.vision_agent is None:
        _AgentState.vision_agent = Agent(
            model=get_model(),
            output_type=VisionResult,
            system_prompt=VISION_SYSTEM_PROMPT,
            retries=1,
        )
    return _AgentState.vision_agent


def reset_agents() -> None:
    """Drop cached instances so the next call picks up new settings."""
    _AgentState.model = None
    _AgentState.recipe_agent = None
    _AgentState.vision_agent = None
