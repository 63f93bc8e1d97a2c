"""
Tests for ingredient_normalizer: cleaning, singularization and the two
synonym tables (agent / diff)
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from aurachef.schemas.recipe import ReconcileMode
from aurachef.services.ingredient_normalizer import (
    AGENT_CANONICALIZER,
    DIFF_CANONICALIZER,
    canonical,
    get_canonicalizer,
    singularize,
)


class TestSingularize:

    @pytest.mark.parametrize("plural, singular", [
        ("onions", "onion"),
        ("berries", "berry"),
        ("radishes", "radish"),
        ("peaches", "peach"),
        ("boxes", "box"),
        ("glasses", "glass"),
        ("asparagus", "asparagus"),
        ("rice", "rice"),
    ])
    def test_rules(self, plural, singular):
        assert singularize(plural) == singular


class TestClean:

    def test_lowercase_punctuation_and_whitespace(self):
        assert AGENT_CANONICALIZER.clean("  Red   Onion, (large) ") == "red onion large"

    def test_qualifiers_are_dropped(self):
        assert AGENT_CANONICALIZER.clean("Fresh Coriander Leaves, chopped") == "coriander leaves"
        assert AGENT_CANONICALIZER.clean("Salt to taste") == "salt"

    def test_only_qualifiers_leaves_nothing(self):
        assert canonical("Optional") == ""
        assert canonical("   ") == ""


class TestAgentTable:

    def test_capsicum_equivalence(self):
        tokens = {canonical("Capsicum"), canonical("capsicums"), canonical("Bell Peppers")}
        assert tokens == {"bell pepper"}

    def test_listed_pairs(self):
        assert canonical("cottage cheese") == canonical("paneer") == "paneer"
        assert canonical("Curd") == canonical("yoghurt") == "yogurt"
        assert canonical("Panner") == "paneer"
        assert canonical("tamato") == "tomato"
        assert canonical("Tomatoes") == "tomato"

    def test_chilli_spellings_share_a_token(self):
        assert canonical("Chillies") == canonical("chilli") == canonical("green chilli") == "chili"


class TestDiffTable:

    def test_listed_pairs(self):
        assert canonical("Cottage Cheese", mode="diff") == "paneer"
        assert canonical("curd", mode="diff") == canonical("yoghurt", mode="diff") == "yogurt"
        assert canonical("capsicum", mode="diff") == canonical("Bell Peppers", mode="diff") == "bell pepper"

    def test_regional_names(self):
        assert canonical("Maida", mode="diff") == canonical("all-purpose flour", mode="diff") == "all purpose flour"
        assert canonical("jeera", mode="diff") == canonical("cumin", mode="diff") == "cumin seed"
        assert canonical("garbanzo beans", mode="diff") == canonical("Chickpeas", mode="diff") == "chickpea"
        assert canonical("bhindi", mode="diff") == "okra"
        assert canonical("arhar dal", mode="diff") == "toor dal"

    def test_tables_differ_on_purpose(self):
        assert canonical("green chilli", mode="agent") == "chili"
        assert canonical("green chilli", mode="diff") == "green chili"
        assert canonical("coriander", mode="agent") == "coriander"
        assert canonical("coriander", mode="diff") == "coriander powder"


def test_get_canonicalizer_by_mode():
    assert get_canonicalizer("diff") is DIFF_CANONICALIZER
    assert get_canonicalizer(ReconcileMode.AGENT) is AGENT_CANONICALIZER
    with pytest.raises(ValueError):
        get_canonicalizer("shopping")
