"""Recipe suggestions for the chef view, with throttling protection."""

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from src.agents import recipe_agent
from src.core.config import settings
from src.core.cooldown import Cooldown
from src.core.errors import ErrorCategory, classify_ai_error
from src.core.logging import span
from src.domain.pantry import PantryItem
from src.domain.recipe import Recipe


logger = logging.getLogger(__name__)

COOLDOWN_MESSAGE = "Troppi tentativi. Riprova tra {seconds} secondi."
BUSY_MESSAGE = "Sto già cercando delle ricette, attendi un momento."
NO_RECIPES_MESSAGE = "Nessuna ricetta trovata. Prova ad aggiungere altri ingredienti."


@dataclass
class RecipeSearchResult:
    """Outcome of a recipe request.

    error carries the message to show when no recipes could be produced;
    cooldown_remaining is non-zero while requests are locked out.
    """

    recipes: list[Recipe] = field(default_factory=list)
    error: str | None = None
    cooldown_remaining: int = 0


class RecipeService:
    """Front of the recipe agent for one user.

    Only one request runs at a time, and a throttling response from the
    model provider locks out further requests for the cooldown period.
    """

    def __init__(self, *, cooldown_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        seconds = settings.recipe_cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        self.cooldown = Cooldown(seconds, clock=clock)
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def suggest_from_pantry(self, items: Sequence[PantryItem]) -> RecipeSearchResult:
        """Suggest recipes using what is in the pantry."""
        if not items:
            return RecipeSearchResult()
        return await self._request("pantry", lambda: recipe_agent.generate_recipes_from_pantry(items))

    async def search_by_idea(self, idea: str, items: Sequence[PantryItem]) -> RecipeSearchResult:
        """Generate a recipe for a dish idea, split into used and missing ingredients."""
        if not idea.strip():
            return RecipeSearchResult()
        return await self._request("idea", lambda: recipe_agent.generate_recipe_from_idea(idea, items))

    async def _request(self, source: str, call: Callable[[], Awaitable[list[Recipe]]]) -> RecipeSearchResult:
        if self.cooldown.active:
            remaining = self.cooldown.remaining_seconds()
            logger.info("recipe_request_in_cooldown", extra={"source": source, "remaining": remaining})
            return RecipeSearchResult(error=COOLDOWN_MESSAGE.format(seconds=remaining), cooldown_remaining=remaining)

        if self._in_flight:
            logger.info("recipe_request_rejected_busy", extra={"source": source})
            return RecipeSearchResult(error=BUSY_MESSAGE)

        self._in_flight = True
        try:
            with span(f"recipe_service.{source}"):
                recipes = await call()
        except Exception as e:
            category, message = classify_ai_error(e, cooldown_seconds=int(self.cooldown.seconds))
            logger.error(
                "recipe_request_failed",
                extra={"source": source, "error": str(e), "error_category": category.value},
            )
            if category is ErrorCategory.THROTTLED:
                self.cooldown.start()
                return RecipeSearchResult(error=message, cooldown_remaining=self.cooldown.remaining_seconds())
            return RecipeSearchResult(error=message)
        finally:
            self._in_flight = False

        if not recipes:
            return RecipeSearchResult(error=NO_RECIPES_MESSAGE)
        return RecipeSearchResult(recipes=recipes)
