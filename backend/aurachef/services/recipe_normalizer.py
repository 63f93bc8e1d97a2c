"""
Recipe Record Normalizer
========================

Fills every RecipeRecord field with a deterministic default when the decoded
element is missing it or has the wrong type. Total: never raises, never drops
an element from the batch.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import urlparse

from aurachef.schemas.recipe import NutritionalInfo, RecipeRecord

logger = logging.getLogger(__name__)


FALLBACK_IMAGE_URL = (
    "https://images.unsplash.com/photo-1600891964599-f61ba0e24092"
    "?auto=format&fit=crop&w=640&q=80"
)
UNSPLASH_PARAMS = "auto=format&fit=crop&w=640&q=80"
UNSPLASH_PATTERN = re.compile(r"^https://images\.unsplash\.com/", re.IGNORECASE)

NUTRITION_ALIASES = (
    "nutritionalInfo",
    "Nutritional Information",
    "Nutritonal Information",  # misspelling seen in generator output
    "nutritional_info",
    "nutrition",
)
NUTRITION_KEYS = ("Calories", "Protein", "Carbs", "Fat")
KNOWN_DIFFICULTIES = {"easy": "Easy", "medium": "Medium", "hard": "Hard"}

DEFAULT_COOK_TIME = "30 minutes"
DEFAULT_DIFFICULTY = "Medium"


def normalize_image_url(url: Any) -> Optional[str]:
    """Return a trusted HTTPS url or None. Unsplash urls get crop/format params."""
    if not isinstance(url, str):
        return None

    candidate = url.strip().strip('"').strip("'")
    if not candidate.lower().startswith("https://") or re.search(r"\s", candidate):
        return None
    if not urlparse(candidate).netloc:
        return None

    if UNSPLASH_PATTERN.match(candidate) and "auto=format" not in candidate:
        separator = "&" if "?" in candidate else "?"
        candidate = f"{candidate}{separator}{UNSPLASH_PARAMS}"
    return candidate


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _clean_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    cleaned = (_clean_text(entry) for entry in value)
    return [entry for entry in cleaned if entry]


def _normalize_nutrition(element: Dict[str, Any]) -> NutritionalInfo:
    raw = None
    for alias in NUTRITION_ALIASES:
        if isinstance(element.get(alias), dict):
            raw = element[alias]
            break
    if raw is None:
        return NutritionalInfo()

    by_lower = {str(key).strip().lower(): value for key, value in raw.items()}
    values = {}
    for key in NUTRITION_KEYS:
        values[key] = _clean_text(by_lower.get(key.lower())) or "N/A"
    return NutritionalInfo(**values)


def _normalize_cook_time(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return f"{value:g} minutes"
    return _clean_text(value) or DEFAULT_COOK_TIME


def _normalize_difficulty(value: Any) -> str:
    text = _clean_text(value)
    if not text:
        return DEFAULT_DIFFICULTY
    return KNOWN_DIFFICULTIES.get(text.lower(), text)


def _pick_id(value: Any, index: int, used_ids: Set[int]) -> int:
    if isinstance(value, bool):
        value = None
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1 and value not in used_ids:
        return value

    candidate = index + 1
    while candidate in used_ids:
        candidate += 1
    return candidate


def normalize_recipe(
    element: Any,
    index: int = 0,
    fallback_title: Optional[str] = None,
    used_ids: Optional[Set[int]] = None
) -> RecipeRecord:
    """
    Build a RecipeRecord from one decoded element.

    Args:
        element: Decoded JSON value (non-dicts produce a fully defaulted record)
        index: Position in the batch, used for the default id
        fallback_title: Title when the element has none (defaults to "Recipe {id}")
        used_ids: Ids already taken in this batch; updated in place
    """
    used_ids = used_ids if used_ids is not None else set()
    data = element if isinstance(element, dict) else {}

    recipe_id = _pick_id(data.get("id"), index, used_ids)
    used_ids.add(recipe_id)

    title = _clean_text(data.get("title")) or (fallback_title or "").strip() or f"Recipe {recipe_id}"

    image = normalize_image_url(data.get("image"))
    if image is None:
        image = FALLBACK_IMAGE_URL

    return RecipeRecord(
        id=recipe_id,
        title=title,
        cuisine=_clean_text(data.get("cuisine")) or "",
        description=_clean_text(data.get("description")) or "",
        cook_time=_normalize_cook_time(data.get("cookTime", data.get("cook_time"))),
        difficulty=_normalize_difficulty(data.get("difficulty")),
        image=image,
        ingredients=_clean_text_list(data.get("ingredients")),
        nutritional_info=_normalize_nutrition(data),
        steps=_clean_text_list(data.get("steps")),
    )


def normalize_recipes(elements: Iterable[Any]) -> List[RecipeRecord]:
    """Normalize a decoded batch; ids stay unique across the batch"""
    elements = list(elements)
    used_ids: Set[int] = set()
    records = [
        normalize_recipe(element, index=index, used_ids=used_ids)
        for index, element in enumerate(elements)
    ]
    defaulted = sum(1 for element in elements if not isinstance(element, dict))
    if defaulted:
        logger.warning(f"{defaulted} non-object elements replaced by default recipes")
    return records
