"""
Pantry Reconciler - which required ingredients are not already in the pantry

An ingredient is covered when its canonical form:
- equals a pantry canonical form, or
- contains a pantry form as a whole word (or the other way round), or
- is within edit distance 2 of a pantry form, when the shorter one has >= 4 chars
"""

import re
import logging
from typing import Iterable, List, Optional, Set, Union

from aurachef.core.config import Settings, settings
from aurachef.schemas.recipe import ReconcileMode
from aurachef.services.ingredient_normalizer import IngredientCanonicalizer, get_canonicalizer

logger = logging.getLogger(__name__)

MAX_EDIT_DISTANCE = 2
MIN_FUZZY_LENGTH = 4


def levenshtein(left: str, right: str) -> int:
    """Edit distance for short canonical tokens"""
    m, n = len(left), len(right)
    if m == 0:
        return n
    if n == 0:
        return m
    prev = list(range(n + 1))
    for i, ca in enumerate(left, 1):
        curr = [i] + [0] * n
        for j, cb in enumerate(right, 1):
            cost = 0 if ca == cb else 1
            curr[j] = min(
                prev[j] + 1,
                curr[j - 1] + 1,
                prev[j - 1] + cost,
            )
        prev = curr
    return prev[n]


def contains_word(needle: str, haystack: str) -> bool:
    """Whole-word containment: 'pea' is in 'green pea' but not in 'peanut'"""
    if not needle or not haystack:
        return False
    return re.search(rf'(?:^|\s){re.escape(needle)}(?:\s|$)', haystack) is not None


class PantryReconciler:
    """
    Set difference between required ingredients and a pantry.

    report_canonical decides what goes in the result: the canonical token
    (diff call site) or the caller's own trimmed phrasing (agent call site).
    """

    def __init__(
        self,
        canonicalizer: IngredientCanonicalizer,
        cap: int,
        report_canonical: bool = False
    ):
        self.canonicalizer = canonicalizer
        self.cap = cap
        self.report_canonical = report_canonical

    def is_covered(self, item: str, pantry_forms: List[str], pantry_set: Set[str]) -> bool:
        if item in pantry_set:
            return True
        for form in pantry_forms:
            if contains_word(form, item) or contains_word(item, form):
                return True
            if min(len(form), len(item)) >= MIN_FUZZY_LENGTH and levenshtein(form, item) <= MAX_EDIT_DISTANCE:
                return True
        return False

    def missing(self, required: Iterable[str], pantry: Optional[Iterable[str]]) -> List[str]:
        pantry_forms = [form for form in self.canonicalizer.canonicalize_all(pantry or []) if form]
        pantry_set = set(pantry_forms)

        missing = []
        seen = set()
        for raw in required or []:
            if not isinstance(raw, str) or not raw.strip():
                continue
            item = self.canonicalizer.canonical(raw)
            if not item or self.is_covered(item, pantry_forms, pantry_set):
                continue

            reported = item if self.report_canonical else raw.strip()
            if reported in seen:
                continue
            seen.add(reported)
            missing.append(reported)
            if len(missing) >= self.cap:
                break

        return missing


def get_reconciler(
    mode: Union[ReconcileMode, str] = ReconcileMode.AGENT,
    config: Optional[Settings] = None
) -> PantryReconciler:
    config = config or settings
    mode = ReconcileMode(mode)
    if mode == ReconcileMode.DIFF:
        return PantryReconciler(get_canonicalizer(mode), cap=config.diff_missing_cap, report_canonical=True)
    return PantryReconciler(get_canonicalizer(mode), cap=config.agent_missing_cap)


def reconcile_pantry(
    required_ingredients: Iterable[str],
    pantry_items: Optional[Iterable[str]],
    mode: Union[ReconcileMode, str] = ReconcileMode.AGENT,
    config: Optional[Settings] = None
) -> List[str]:
    """
    Required ingredients not covered by the pantry.

    Args:
        required_ingredients: Free-form ingredient names from a recipe
        pantry_items: Free-form names the user already has (may be empty)
        mode: "agent" (cap 20, caller phrasing) or "diff" (cap 40, canonical names)
        config: Settings supplying the caps (module settings when omitted)
    """
    missing = get_reconciler(mode, config).missing(required_ingredients, pantry_items)
    logger.info(f"Reconciled pantry ({ReconcileMode(mode).value}): {len(missing)} missing")
    return missing
