"""
Recipe Generation Service
=========================

Drives the generation client and hands its raw text to the recovery pipeline:
- generate_recipes: pantry -> batch of recipes (retry + salvage on truncation)
- generate_recipe_for_query: dish name -> one recipe + what the pantry lacks
- diff_ingredients: recipe ingredients vs pantry, model-assisted with local fallback

Nothing here raises for bad model output; callers get a ParseFailure.
"""

import logging
from typing import Iterable, List, Optional, Union

from aurachef.core.config import Settings, settings as default_settings
from aurachef.schemas.recipe import (
    BatchParseResult,
    ParseFailure,
    QueryRecipeResult,
    ReconcileMode,
    TargetShape,
)
from aurachef.services.ingredient_normalizer import get_canonicalizer
from aurachef.services.llm_client import GenerationParams, LLMClient
from aurachef.services.pantry_reconciler import reconcile_pantry
from aurachef.services.recipe_parser import (
    BatchRetryPolicy,
    parse_recipe_batch_with_retry,
    parse_single_recipe,
    parse_string_array,
)

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "AI Culinary Engine is offline."

CHEF_SYSTEM_PROMPT = "You are AuraChef Master, an expert home chef. Output strictly valid JSON only."
INVENTORY_SYSTEM_PROMPT = "You are a precise kitchen inventory assistant. Output strictly valid JSON only."


# ============================================================================
# PROMPTS
# ============================================================================

def build_batch_prompt(pantry: List[str], attempt: int = 1) -> str:
    """Batch prompt; attempt 2 asks for a fixed, smaller, closed array"""
    count_directive = "length 4-10" if attempt == 1 else "length EXACTLY 6"
    repair_note = ""
    if attempt > 1:
        repair_note = '\nREPAIR: Previous attempt truncated. Provide COMPLETE array with closing "]".'

    return f"""INGREDIENTS: [{', '.join(pantry)}]
TASK: Produce an array ({count_directive}, majority Indian cuisine) of recipe objects.{repair_note}
LANGUAGE: English only.
OUTPUT RULES (CRITICAL):
1. Output MUST be ONLY a raw JSON array. No prose, no comments, no explanations.
2. First character MUST be '[' and last MUST be ']'. NO markdown fences/backticks.
3. Objects MUST have keys: id, title, cuisine, description, cookTime, difficulty, image (HTTPS recipe image URL from images.unsplash.com or cdn.pixabay.com), ingredients, nutritionalInfo, steps.
4. nutritionalInfo must have: Calories, Protein, Carbs, Fat (string values).
5. Use double quotes, no trailing commas, no unquoted keys.
RETURN: Only the JSON array."""


def build_query_prompt(query: str, pantry: List[str]) -> str:
    return f"""Create ONE complete recipe tailored to the user's requested dish and pantry.

REQUESTED_DISH: "{query}"
PANTRY: [{', '.join(pantry)}]
OUTPUT: Return ONLY a JSON object (no array, no prose) with EXACT keys: id (number), title (string), cuisine (string), description (string), cookTime (string), difficulty ("Easy"|"Medium"|"Hard"), image (HTTPS URL from images.unsplash.com or cdn.pixabay.com), ingredients (array 8-16 strings), nutritionalInfo (object with Calories, Protein, Carbs, Fat as strings), steps (array 6-14 strings). Ensure steps are sequential and ingredients reflect the dish. Use English. Strict JSON."""


def build_diff_prompt(ingredients: List[str], pantry: List[str]) -> str:
    ingredient_list = ", ".join(f'"{item}"' for item in ingredients)
    pantry_list = ", ".join(f'"{item}"' for item in pantry)

    return f"""Given a RECIPE_INGREDIENTS array and a PANTRY array, return ONLY the list of ingredients that are required for the recipe but NOT available in the pantry.
Rules:
- Map synonyms and regional terms (e.g., paneer=cottage cheese, capsicum=bell pepper, curd=yogurt).
- Ignore optional words like 'fresh', 'chopped', 'to taste'.
- Canonicalize names for grocery purchase (lowercase, simple names).
- Return ONLY a JSON array of strings (no prose, no objects).
- Max 30 items.

RECIPE_INGREDIENTS: [{ingredient_list}]
PANTRY: [{pantry_list}]
OUTPUT: JSON array of missing items only."""


def _clean_items(items: Optional[Iterable[str]]) -> List[str]:
    return [item.strip() for item in (items or []) if isinstance(item, str) and item.strip()]


# ============================================================================
# SERVICE
# ============================================================================

class RecipeGenerationService:
    """
    Usage:
        service = RecipeGenerationService(LLMClient())
        result = await service.generate_recipes(["paneer", "onion"])
        if isinstance(result, ParseFailure):
            ...
    """

    def __init__(self, client: LLMClient, config: Optional[Settings] = None):
        self.client = client
        self.settings = config or default_settings
        self.policy = BatchRetryPolicy.from_settings(self.settings)

    def _offline_failure(self) -> ParseFailure:
        message = self.client.error or OFFLINE_MESSAGE
        logger.error(f"Request failed because AI Engine is offline. Error: {message}")
        return ParseFailure(message=message, kind="engine_offline")

    def _pantry_or_default(self, pantry: Optional[Iterable[str]]) -> List[str]:
        items = _clean_items(pantry)
        if not items:
            logger.warning("Pantry empty - using fallback sample ingredients")
            return list(self.settings.default_pantry)
        return items

    async def generate_recipes(
        self,
        pantry: Optional[Iterable[str]] = None
    ) -> Union[BatchParseResult, ParseFailure]:
        """
        Generate a batch of recipes from pantry items.

        Returns:
            BatchParseResult (partial=True when salvaged) or ParseFailure
        """
        if not self.client.ready:
            return self._offline_failure()

        ingredients = self._pantry_or_default(pantry)
        logger.info(f"Generating recipes for: [{', '.join(ingredients)}]")

        params = GenerationParams(
            max_tokens=self.settings.batch_max_tokens,
            temperature=self.settings.batch_temperature,
            response_shape=TargetShape.ARRAY,
            system=CHEF_SYSTEM_PROMPT,
        )
        raw = await self.client.complete(build_batch_prompt(ingredients, attempt=1), params)

        async def regenerate() -> str:
            return await self.client.complete(build_batch_prompt(ingredients, attempt=2), params)

        return await parse_recipe_batch_with_retry(raw, regenerate=regenerate, policy=self.policy)

    async def generate_recipe_for_query(
        self,
        query: str,
        pantry: Optional[Iterable[str]] = None
    ) -> Union[QueryRecipeResult, ParseFailure]:
        """
        Generate one recipe for a requested dish and list what the pantry lacks.

        Raises:
            ValueError: query is blank
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Missing recipe query")

        if not self.client.ready:
            return self._offline_failure()

        items = self._pantry_or_default(pantry)
        logger.info(f"Query='{query}' pantry=[{', '.join(items)}]")

        params = GenerationParams(
            max_tokens=self.settings.single_max_tokens,
            temperature=self.settings.single_temperature,
            response_shape=TargetShape.OBJECT,
            system=CHEF_SYSTEM_PROMPT,
        )
        raw = await self.client.complete(build_query_prompt(query, items), params)

        recipe = parse_single_recipe(raw, fallback_title=query, policy=self.policy)
        if isinstance(recipe, ParseFailure):
            return recipe

        missing = reconcile_pantry(recipe.ingredients, items, mode=ReconcileMode.AGENT, config=self.settings)
        return QueryRecipeResult(recipe=recipe, missing=missing)

    async def diff_ingredients(
        self,
        ingredients: Iterable[str],
        pantry: Optional[Iterable[str]] = None
    ) -> List[str]:
        """
        Ingredients to buy: the model's canonical diff, or the local one when
        the model is unavailable or returns nothing usable.

        Raises:
            ValueError: no ingredients given
        """
        required = _clean_items(ingredients)
        if not required:
            raise ValueError("ingredients array required")
        items = _clean_items(pantry)

        local_missing = reconcile_pantry(required, items, mode=ReconcileMode.DIFF, config=self.settings)
        if not self.client.ready:
            logger.warning("AI Engine offline, returning local diff")
            return local_missing

        params = GenerationParams(
            max_tokens=self.settings.diff_max_tokens,
            temperature=self.settings.diff_temperature,
            response_shape=TargetShape.ARRAY,
            system=INVENTORY_SYSTEM_PROMPT,
        )
        raw = await self.client.complete(build_diff_prompt(required, items), params)

        canonicalizer = get_canonicalizer(ReconcileMode.DIFF)
        ai_missing: List[str] = []
        for value in parse_string_array(raw):
            item = canonicalizer.canonical(value)
            if item and item not in ai_missing:
                ai_missing.append(item)
            if len(ai_missing) >= self.settings.diff_missing_cap:
                break

        if not ai_missing:
            logger.info(f"Model diff empty, using local diff ({len(local_missing)} items)")
            return local_missing

        logger.info(f"Smart diff: {len(ai_missing)} missing (local {len(local_missing)})")
        return ai_missing
