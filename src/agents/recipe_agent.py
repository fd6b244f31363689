"""Recipe generation through the recipe agent."""

import logging
from collections.abc import Sequence

from pydantic_ai.exceptions import UnexpectedModelBehavior

from src.agents import agent_instance
from src.agents.prompts import build_idea_prompt, build_pantry_prompt
from src.core.logging import span
from src.domain.pantry import PantryItem
from src.domain.recipe import Recipe


logger = logging.getLogger(__name__)


async def _run(prompt: str) -> list[Recipe]:
    agent = agent_instance.get_recipe_agent()
    try:
        result = await agent.run(prompt)
    except UnexpectedModelBehavior as e:
        # Output that does not validate as recipes counts as no recipes
        logger.warning("recipe_output_invalid", extra={"error": str(e)})
        return []
    return list(result.output)


async def generate_recipes_from_pantry(items: Sequence[PantryItem]) -> list[Recipe]:
    """Suggest recipes that use up what is in the pantry.

    Provider errors (throttling, quota, network) propagate to the caller.

    Args:
        items: Current pantry collection

    Returns:
        Suggested recipes; empty for an empty pantry, without calling the model
    """
    if not items:
        return []

    with span("recipe_agent.generate_from_pantry"):
        recipes = await _run(build_pantry_prompt(items))
        logger.info("recipes_generated", extra={"source": "pantry", "count": len(recipes)})
        return recipes


async def generate_recipe_from_idea(idea: str, items: Sequence[PantryItem]) -> list[Recipe]:
    """Generate a recipe for a dish the user has in mind.

    Args:
        idea: Free-text dish idea (e.g. "carbonara")
        items: Current pantry collection, used to split used/missing ingredients

    Returns:
        The recipe (or a few variants for a generic idea); empty for a blank idea
    """
    if not idea.strip():
        return []

    with span("recipe_agent.generate_from_idea"):
        recipes = await _run(build_idea_prompt(idea, items))
        logger.info("recipes_generated", extra={"source": "idea", "count": len(recipes)})
        return recipes
