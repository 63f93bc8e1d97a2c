"""
Ingredient Canonicalizer
========================

Reduces free-form ingredient phrasing to a canonical token:
lower-case -> punctuation stripped -> qualifiers dropped -> whitespace collapsed
-> synonym table -> singular form -> synonym table again (catches plural synonyms)

Two synonym tables exist on purpose. The agent table backs single-recipe
pantry matching, the diff table backs batch ingredient diffs; they overlap but
merging them would change which items each call site reports as missing.
"""

import re
import logging
from typing import Dict, Iterable, List, Union

from aurachef.schemas.recipe import ReconcileMode

logger = logging.getLogger(__name__)


# ============================================================================
# SYNONYM TABLES
# ============================================================================

AGENT_SYNONYMS = {
    'panner': 'paneer', 'paneer': 'paneer', 'cottage cheese': 'paneer',
    'chilli': 'chili', 'chilies': 'chili', 'chillies': 'chili', 'green chilli': 'chili',
    'tomatoe': 'tomato', 'tamato': 'tomato', 'tomatos': 'tomato',
    'curd': 'yogurt', 'yoghurt': 'yogurt',
    'capsicum': 'bell pepper', 'bell pepper': 'bell pepper',
    'coriander leaves': 'cilantro', 'cilantro': 'cilantro', 'coriander': 'coriander',
    'garam masala': 'garam masala',
}

DIFF_SYNONYMS = {
    'paneer': 'paneer', 'cottage cheese': 'paneer',
    'curd': 'yogurt', 'yoghurt': 'yogurt', 'yogurt': 'yogurt',
    'maida': 'all purpose flour', 'all-purpose flour': 'all purpose flour', 'ap flour': 'all purpose flour',
    'capsicum': 'bell pepper', 'bell pepper': 'bell pepper',
    'coriander leaves': 'cilantro', 'cilantro': 'cilantro',
    'coriander': 'coriander powder', 'dhaniya powder': 'coriander powder', 'dhania powder': 'coriander powder',
    'cumin': 'cumin seed', 'jeera': 'cumin seed',
    'green chilli': 'green chili', 'green chillies': 'green chili', 'green chili': 'green chili',
    'chickpeas': 'chickpea', 'garbanzo beans': 'chickpea',
    'semolina': 'semolina', 'sooji': 'semolina', 'suji': 'semolina', 'rava': 'semolina',
    'eggplant': 'eggplant', 'aubergine': 'eggplant', 'brinjal': 'eggplant',
    'okra': 'okra', 'ladyfinger': 'okra', 'bhindi': 'okra',
    'pigeon peas': 'toor dal', 'toor dal': 'toor dal', 'tuvar dal': 'toor dal', 'arhar dal': 'toor dal',
}

QUALIFIER_PATTERN = re.compile(r'\b(fresh|chopped|sliced|minced|diced|optional|to taste)\b')
PUNCTUATION_PATTERN = re.compile(r'[^\w\s]|_')
SIBILANT_PLURAL_PATTERN = re.compile(r'(ses|xes|zes|ches|shes)$')


def singularize(text: str) -> str:
    """Simple English plural -> singular on the last word"""
    if text.endswith('ies') and len(text) > 4:
        return text[:-3] + 'y'
    if SIBILANT_PLURAL_PATTERN.search(text):
        return text[:-2]
    if text.endswith('s') and not text.endswith(('ss', 'us')) and len(text) > 2:
        return text[:-1]
    return text


class IngredientCanonicalizer:
    """Canonical form of an ingredient name under one synonym table"""

    def __init__(self, synonyms: Dict[str, str]):
        self.synonyms = self._build_synonym_cache(synonyms)

    def _build_synonym_cache(self, synonyms: Dict[str, str]) -> Dict[str, str]:
        # keys go through the same cleaning as lookups ("all-purpose" -> "all purpose")
        cache = {}
        for alias, name in synonyms.items():
            cache[self.clean(alias)] = self.clean(name)
        return cache

    def clean(self, raw: str) -> str:
        text = str(raw or '').lower()
        text = PUNCTUATION_PATTERN.sub(' ', text)
        text = QUALIFIER_PATTERN.sub(' ', text)
        return ' '.join(text.split())

    def canonical(self, raw: str) -> str:
        cleaned = self.clean(raw)
        if not cleaned:
            return ''
        mapped = self.synonyms.get(cleaned, cleaned)
        singular = singularize(mapped)
        return self.synonyms.get(singular, singular)

    def canonicalize_all(self, items: Iterable[str]) -> List[str]:
        return [self.canonical(item) for item in items if isinstance(item, str)]


AGENT_CANONICALIZER = IngredientCanonicalizer(AGENT_SYNONYMS)
DIFF_CANONICALIZER = IngredientCanonicalizer(DIFF_SYNONYMS)


def get_canonicalizer(mode: Union[ReconcileMode, str] = ReconcileMode.AGENT) -> IngredientCanonicalizer:
    if ReconcileMode(mode) == ReconcileMode.DIFF:
        return DIFF_CANONICALIZER
    return AGENT_CANONICALIZER


def canonical(item: str, mode: Union[ReconcileMode, str] = ReconcileMode.AGENT) -> str:
    """Canonical token of one ingredient name"""
    return get_canonicalizer(mode).canonical(item)
