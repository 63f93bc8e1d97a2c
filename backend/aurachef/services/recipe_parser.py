"""
Recipe Parser - entry points for recovering recipes from raw generator text

Batch path (array, retry-capable):
    raw -> recover_structure -> normalize_recipes
    on truncation: one stricter regeneration, then salvage (>= 2 objects)

Single path (object, one attempt):
    raw -> recover_structure -> normalize_recipe

Exceptions never leave this module; callers get a ParseFailure instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from aurachef.core.config import Settings, settings
from aurachef.core.exceptions import (
    DecodeError,
    EmptyOutputError,
    RecipeRecoveryError,
    StructuralExtractionError,
    UnrecoverableParseError,
)
from aurachef.schemas.recipe import BatchParseResult, ParseFailure, RecipeRecord, TargetShape
from aurachef.services.json_recovery import (
    is_truncation,
    normalize_text,
    recover_structure,
    salvage_partial_objects,
)
from aurachef.services.recipe_normalizer import normalize_recipe, normalize_recipes

logger = logging.getLogger(__name__)

MAX_PREVIEW_CHARS = 250

RegenerateFn = Callable[[], Awaitable[str]]


@dataclass
class BatchRetryPolicy:
    """Per call-site parsing limits"""
    min_salvaged: int = 2
    preview_chars: int = MAX_PREVIEW_CHARS
    empty_min_chars: int = 5

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "BatchRetryPolicy":
        config = config or settings
        return cls(
            min_salvaged=config.min_salvaged_recipes,
            preview_chars=min(config.raw_preview_chars, MAX_PREVIEW_CHARS),
            empty_min_chars=config.empty_output_min_chars,
        )


def raw_preview(raw: Any, limit: int = MAX_PREVIEW_CHARS) -> str:
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
    return text[:min(limit, MAX_PREVIEW_CHARS)]


def _failure(error: RecipeRecoveryError, raw: Any, policy: BatchRetryPolicy) -> ParseFailure:
    if isinstance(error, EmptyOutputError):
        message = "AI returned empty output"
    else:
        message = "AI response parsing failed"

    logger.error(f"--- PARSING FAILED ({error.kind}) --- {error}")
    return ParseFailure(
        message=message,
        kind=error.kind,
        raw_preview=raw_preview(raw, policy.preview_chars),
        detail=str(error)[:300],
    )


def _ensure_not_empty(raw: Any, policy: BatchRetryPolicy) -> None:
    length = len(normalize_text(raw))
    if length < policy.empty_min_chars:
        raise EmptyOutputError(length)


def _reason(error: RecipeRecoveryError) -> str:
    return getattr(error, "reason", None) or str(error)


def _decode_batch(raw: Any) -> List[RecipeRecord]:
    recipes = normalize_recipes(recover_structure(raw, TargetShape.ARRAY))
    logger.info(f"Parsed {len(recipes)} recipes. Raw length={len(normalize_text(raw))}")
    return recipes


def _salvage_or_fail(
    raw: Any,
    error: RecipeRecoveryError,
    policy: BatchRetryPolicy,
    attempts: int
) -> BatchParseResult:
    salvaged = salvage_partial_objects(raw)
    if len(salvaged) >= policy.min_salvaged:
        logger.warning(f"[Salvage Success] Returning {len(salvaged)} partial recipes")
        return BatchParseResult(recipes=normalize_recipes(salvaged), partial=True, attempts=attempts)
    raise UnrecoverableParseError(_reason(error), salvaged=len(salvaged))


# ============================================================================
# BATCH PATH
# ============================================================================

def parse_recipe_batch(
    raw_text: Any,
    policy: Optional[BatchRetryPolicy] = None
) -> Union[BatchParseResult, ParseFailure]:
    """
    Parse a recipe array without a regeneration collaborator.

    A truncated payload goes straight to salvage; everything else that fails
    is reported as a ParseFailure.
    """
    policy = policy or BatchRetryPolicy.from_settings()
    try:
        _ensure_not_empty(raw_text, policy)
        try:
            return BatchParseResult(recipes=_decode_batch(raw_text))
        except DecodeError as e:
            if not is_truncation(e):
                raise UnrecoverableParseError(e.reason) from e
            logger.warning("[Parse Warning] Possible truncated JSON, no retry available. Salvaging ...")
            return _salvage_or_fail(raw_text, e, policy, attempts=1)
    except RecipeRecoveryError as e:
        return _failure(e, raw_text, policy)


async def parse_recipe_batch_with_retry(
    raw_text: Any,
    regenerate: Optional[RegenerateFn] = None,
    policy: Optional[BatchRetryPolicy] = None
) -> Union[BatchParseResult, ParseFailure]:
    """
    Parse a recipe array, allowing one stricter regeneration on truncation.

    Args:
        raw_text: Attempt 1 payload
        regenerate: Awaitable factory returning the attempt 2 payload
        policy: Salvage threshold and preview limits

    Returns:
        BatchParseResult (partial=True when salvaged) or ParseFailure
    """
    policy = policy or BatchRetryPolicy.from_settings()
    last_raw = raw_text
    attempts = 1

    try:
        _ensure_not_empty(raw_text, policy)
        try:
            return BatchParseResult(recipes=_decode_batch(raw_text), attempts=attempts)
        except DecodeError as e:
            if not is_truncation(e):
                raise UnrecoverableParseError(e.reason) from e
            error: RecipeRecoveryError = e

        if regenerate is not None:
            logger.warning("[Parse Warning] Possible truncated JSON. Retrying ...")
            attempts = 2
            try:
                retry_raw = await regenerate()
            except Exception as e:
                logger.error(f"Regeneration request failed: {e}")
                retry_raw = ""

            if len(normalize_text(retry_raw)) >= policy.empty_min_chars:
                last_raw = retry_raw
                try:
                    recipes = _decode_batch(retry_raw)
                    logger.info(f"Parsed {len(recipes)} recipes on retry")
                    return BatchParseResult(recipes=recipes, attempts=attempts)
                except (DecodeError, StructuralExtractionError) as retry_error:
                    logger.error(f"[Retry Parse Failed] {retry_error}. Attempting salvage ...")
                    error = retry_error
            else:
                logger.warning("Retry returned empty output, salvaging first payload")

        return _salvage_or_fail(last_raw, error, policy, attempts)
    except RecipeRecoveryError as e:
        return _failure(e, last_raw, policy)


# ============================================================================
# SINGLE-OBJECT PATH
# ============================================================================

def parse_single_recipe(
    raw_text: Any,
    fallback_title: str,
    policy: Optional[BatchRetryPolicy] = None
) -> Union[RecipeRecord, ParseFailure]:
    """One decode attempt for a single recipe object; no retry"""
    policy = policy or BatchRetryPolicy.from_settings()
    try:
        _ensure_not_empty(raw_text, policy)
        try:
            element = recover_structure(raw_text, TargetShape.OBJECT)
        except DecodeError as e:
            raise UnrecoverableParseError(e.reason) from e
        recipe = normalize_recipe(element, index=0, fallback_title=fallback_title)
        logger.info(f"Parsed recipe '{recipe.title}' with keys {sorted(element.keys())}")
        return recipe
    except RecipeRecoveryError as e:
        return _failure(e, raw_text, policy)


# ============================================================================
# STRING ARRAY PATH (ingredient diff answers)
# ============================================================================

def parse_string_array(raw_text: Any) -> List[str]:
    """Best-effort array of strings; any failure yields []"""
    try:
        values = recover_structure(raw_text, TargetShape.ARRAY)
    except RecipeRecoveryError as e:
        logger.warning(f"Could not parse string array: {e}")
        return []
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]
