"""
JSON Recovery for LLM Output
============================

Turns unreliable generator text into decoded JSON:
1. Normalize punctuation (smart quotes) and whitespace
2. Locate the array/object inside fences, prose and labels
3. Decode strictly, then leniently (JSON5: trailing commas, unquoted keys, single quotes)
4. Salvage complete objects from a truncated array

All functions are pure and operate on in-memory strings.
"""

import json
import logging
import re
from typing import Any, Dict, List, Union

import json5

from aurachef.core.exceptions import DecodeError, StructuralExtractionError
from aurachef.schemas.recipe import TargetShape

logger = logging.getLogger(__name__)


QUOTE_TRANSLATION = str.maketrans({
    "“": '"', "”": '"', "„": '"', "‟": '"',
    "‘": "'", "’": "'", "‚": "'", "‛": "'",
})

FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
ARRAY_PATTERN = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")
ARRAY_START_PATTERN = re.compile(r"\[\s*\{")
LEADING_LABEL_PATTERN = re.compile(r"^(?:json|output:?)\s*", re.IGNORECASE)
TRAILING_COMMA_PATTERN = re.compile(r",\s*([\]}])")
TRUNCATION_SIGNATURE = re.compile(r"end of input|unterminated|unexpected end", re.IGNORECASE)


# ============================================================================
# TEXT NORMALIZER
# ============================================================================

def normalize_text(raw: Any) -> str:
    """Straighten curly quotes and trim. Never fails; None -> ''."""
    if not raw:
        return ""
    return str(raw).translate(QUOTE_TRANSLATION).strip()


# ============================================================================
# STRUCTURAL EXTRACTOR
# ============================================================================

def _clean_slice(candidate: str) -> str:
    candidate = LEADING_LABEL_PATTERN.sub("", candidate.strip())
    return TRAILING_COMMA_PATTERN.sub(r"\1", candidate).strip()


def _is_whole_array(text: str) -> bool:
    return text.startswith("[") and text.endswith("]")


def _search_array(text: str) -> str:
    working = text
    fence = FENCE_PATTERN.search(working)
    if fence and fence.group(1).strip():
        working = fence.group(1).strip()

    match = ARRAY_PATTERN.search(working)
    if match:
        return match.group(0)

    opening = ARRAY_START_PATTERN.search(working)
    start = opening.start() if opening else working.find("[")
    if start == -1:
        raise StructuralExtractionError(TargetShape.ARRAY.value)

    end = working.rfind("]")
    if end < start:
        # opened but never closed: hand the tail to the decoder as a truncated array
        return working[start:]
    return working[start:end + 1]


def _extract_array(text: str) -> str:
    if _is_whole_array(text):
        return text
    return _search_array(text)


def _extract_object(text: str) -> str:
    working = text
    fence = FENCE_PATTERN.search(working)
    if fence and fence.group(1).strip():
        working = fence.group(1).strip()

    start = working.find("{")
    if start == -1:
        raise StructuralExtractionError(TargetShape.OBJECT.value)
    end = working.rfind("}")
    return working[start:end + 1] if end > start else working[start:]


def extract_structure(text: str, shape: TargetShape) -> str:
    """
    Locate the candidate JSON slice for the requested shape.

    Raises:
        StructuralExtractionError: no opening bracket/brace anywhere in the text
    """
    if shape == TargetShape.ARRAY:
        candidate = _extract_array(text)
    else:
        candidate = _extract_object(text)
    return _clean_slice(candidate)


# ============================================================================
# TOLERANT DECODER
# ============================================================================

def _describe_strict_error(error: json.JSONDecodeError) -> str:
    if error.pos >= len(error.doc.rstrip()):
        return f"{error} (unexpected end of input)"
    return str(error)


def decode_tolerant(candidate: str, shape: TargetShape) -> Union[List[Any], Dict[str, Any]]:
    """
    Strict json first, then json5. The result must keep the requested top-level shape.

    Raises:
        DecodeError: both decoders failed or the shape did not match
    """
    expected = list if shape == TargetShape.ARRAY else dict
    shape_mismatch = f"parsed structure is not an {shape.value}"

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        strict_reason = _describe_strict_error(e)
    except RecursionError as e:
        raise DecodeError(f"nesting too deep: {e}") from e
    else:
        if isinstance(value, expected):
            return value
        strict_reason = shape_mismatch

    try:
        value = json5.loads(candidate)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"{strict_reason}; lenient: {e}") from e

    if isinstance(value, expected):
        return value
    raise DecodeError(shape_mismatch)


def is_truncation(error: DecodeError) -> bool:
    """True when the decode failure looks like the text was cut off"""
    return bool(TRUNCATION_SIGNATURE.search(error.reason))


def recover_structure(raw: Any, shape: TargetShape) -> Union[List[Any], Dict[str, Any]]:
    """Normalizer -> Structural Extractor -> Tolerant Decoder"""
    text = normalize_text(raw)

    if shape == TargetShape.ARRAY:
        return _recover_array(text)

    if text.startswith("["):
        # models sometimes wrap the single object in an array
        elements = _recover_array(text)
        if elements and isinstance(elements[0], dict):
            return elements[0]
        raise DecodeError("array did not contain a recipe object")

    return decode_tolerant(extract_structure(text, shape), shape)


def _recover_array(text: str) -> List[Any]:
    candidate = extract_structure(text, TargetShape.ARRAY)
    try:
        return decode_tolerant(candidate, TargetShape.ARRAY)
    except DecodeError:
        if not _is_whole_array(text):
            raise
        # bracketed prose ("[Note] ... [{...}]"): search inside the text instead
        fallback = _clean_slice(_search_array(text))
        if fallback == candidate:
            raise
        logger.debug("Whole-text array failed to decode, retrying with the inner slice")
        return decode_tolerant(fallback, TargetShape.ARRAY)


# ============================================================================
# PARTIAL-OBJECT SALVAGER
# ============================================================================

def salvage_partial_objects(raw: Any) -> List[Dict[str, Any]]:
    """
    Recover every complete top-level object of a truncated array.

    Scans after the first '[' that opens an object ('[{'), tracking
    string/escape state and brace depth.
    Each fragment closed at depth 0 is decoded alone; fragments that do not
    decode are dropped. Never raises.
    """
    text = normalize_text(raw)
    opening = ARRAY_START_PATTERN.search(text)
    start = opening.start() if opening else text.find("[")
    if start == -1:
        return []

    objects = []
    current = []
    depth = 0
    in_string = False
    escape = False

    for ch in text[start + 1:]:
        current.append(ch)
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if ch == "]" and depth == 0 and objects:
            break
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                depth = 0
                current = []
            elif depth == 0:
                fragment = "".join(current).strip().strip(",").strip()
                current = []
                try:
                    value = json5.loads(fragment)
                except (ValueError, RecursionError) as e:
                    logger.debug(f"Discarding unparseable fragment ({len(fragment)} chars): {e}")
                    continue
                if isinstance(value, dict):
                    objects.append(value)

    logger.info(f"Salvaged {len(objects)} complete objects from truncated output")
    return objects
