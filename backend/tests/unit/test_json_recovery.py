"""
Tests for json_recovery: text normalizer, structural extractor,
tolerant decoder and partial-object salvager
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from aurachef.core.exceptions import DecodeError, StructuralExtractionError
from aurachef.schemas.recipe import TargetShape
from aurachef.services.json_recovery import (
    decode_tolerant,
    extract_structure,
    is_truncation,
    normalize_text,
    recover_structure,
    salvage_partial_objects,
)


class TestNormalizeText:

    def test_none_and_empty_yield_empty_string(self):
        assert normalize_text(None) == ""
        assert normalize_text("") == ""
        assert normalize_text("   \n\t ") == ""

    def test_curly_quotes_are_straightened(self):
        assert normalize_text('  {“title”: ‘Tea’}  ') == "{\"title\": 'Tea'}"


class TestExtractStructure:

    def test_whole_array_is_kept(self):
        text = '[{"id":1,"title":"Tea"}]'
        assert extract_structure(text, TargetShape.ARRAY) == text

    def test_fenced_array(self):
        text = '```json\n[{"id":1,"title":"Tea"}]\n```'
        assert extract_structure(text, TargetShape.ARRAY) == '[{"id":1,"title":"Tea"}]'

    def test_prose_around_array(self):
        text = 'Here are your recipes:\n[{"id":1}]\nEnjoy cooking!'
        assert extract_structure(text, TargetShape.ARRAY) == '[{"id":1}]'

    def test_trailing_commas_removed(self):
        assert extract_structure('[{"id":1,"title":"Tea",},]', TargetShape.ARRAY) == '[{"id":1,"title":"Tea"}]'

    def test_string_array_between_brackets(self):
        assert extract_structure('Missing: ["salt", "ghee"]', TargetShape.ARRAY) == '["salt", "ghee"]'

    def test_unclosed_array_returns_tail(self):
        text = 'Output: [{"id":1},{"id":2'
        assert extract_structure(text, TargetShape.ARRAY) == '[{"id":1},{"id":2'

    def test_no_bracket_raises(self):
        with pytest.raises(StructuralExtractionError):
            extract_structure("I could not think of any recipes today.", TargetShape.ARRAY)

    def test_object_label_and_fence_stripped(self):
        text = '```json\njson {"title":"Dal",}\n```'
        assert extract_structure(text, TargetShape.OBJECT) == '{"title":"Dal"}'

    def test_object_after_prose(self):
        text = 'Sure! {"title":"Dal"} Hope you like it.'
        assert extract_structure(text, TargetShape.OBJECT) == '{"title":"Dal"}'

    def test_object_followed_by_prose(self):
        text = '{"title":"Dal"} Hope you like it.'
        assert extract_structure(text, TargetShape.OBJECT) == '{"title":"Dal"}'

    def test_bracketed_prose_before_unclosed_array(self):
        text = 'Recipes [v2] below: [{"id":1},{"id":2'
        assert extract_structure(text, TargetShape.ARRAY) == '[{"id":1},{"id":2'

    def test_object_without_brace_raises(self):
        with pytest.raises(StructuralExtractionError):
            extract_structure("no recipe", TargetShape.OBJECT)


class TestDecodeTolerant:

    def test_strict_json(self):
        assert decode_tolerant('[{"id":1,"title":"Tea"}]', TargetShape.ARRAY) == [{"id": 1, "title": "Tea"}]

    def test_lenient_single_quotes_and_unquoted_keys(self):
        assert decode_tolerant("[{id: 1, title: 'Tea'}]", TargetShape.ARRAY) == [{"id": 1, "title": "Tea"}]

    def test_shape_mismatch_raises(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tolerant('{"id":1}', TargetShape.ARRAY)
        assert "not an array" in exc_info.value.reason

    def test_truncated_input_is_flagged_as_truncation(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tolerant('[{"id":1,"title":"A"},{"id":2,"tit', TargetShape.ARRAY)
        assert is_truncation(exc_info.value)

    def test_deep_nesting_raises_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tolerant("[" * 100000 + "]" * 100000, TargetShape.ARRAY)
        assert not is_truncation(exc_info.value)

    def test_missing_delimiter_is_not_truncation(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tolerant('[{"id": 1, "title": "Tea"} {"id": 2}]', TargetShape.ARRAY)
        assert not is_truncation(exc_info.value)


class TestRecoverStructure:

    def test_idempotent_on_well_formed_array(self):
        assert recover_structure('[{"id":1,"title":"Tea"}]', TargetShape.ARRAY) == [{"id": 1, "title": "Tea"}]

    def test_fenced_decodes_like_unwrapped(self):
        fenced = '```json\n[{"id":1,"title":"Tea"}]\n```'
        plain = '[{"id":1,"title":"Tea"}]'
        assert recover_structure(fenced, TargetShape.ARRAY) == recover_structure(plain, TargetShape.ARRAY)

    def test_trailing_comma_gives_one_element(self):
        assert len(recover_structure('[{"id":1,"title":"Tea"},]', TargetShape.ARRAY)) == 1

    def test_bracketed_note_before_array(self):
        text = '[Note] Here are recipes: [{"id":1,"title":"Tea"},{"id":2,"title":"Dal"}]'
        assert [item["title"] for item in recover_structure(text, TargetShape.ARRAY)] == ["Tea", "Dal"]

    def test_bracketed_note_that_is_not_json_still_fails(self):
        with pytest.raises(DecodeError):
            recover_structure("[Note] nothing to share [today]", TargetShape.ARRAY)

    def test_object_wrapped_in_array_takes_first(self):
        assert recover_structure('[{"title":"Dal"},{"title":"Rice"}]', TargetShape.OBJECT) == {"title": "Dal"}

    def test_object_wrapped_in_empty_array_raises(self):
        with pytest.raises(DecodeError):
            recover_structure('[]', TargetShape.OBJECT)


class TestSalvagePartialObjects:

    def test_truncated_third_object_is_discarded(self, truncated_array_text):
        salvaged = salvage_partial_objects(truncated_array_text)
        assert [item["title"] for item in salvaged] == ["A", "B"]

    def test_braces_and_escaped_quotes_inside_strings(self):
        text = '[{"title":"a } b"},{"title":"say \\"hi\\" {"},{"ti'
        salvaged = salvage_partial_objects(text)
        assert [item["title"] for item in salvaged] == ["a } b", 'say "hi" {']

    def test_nested_objects_count_as_one(self):
        text = '[{"title":"A","nutritionalInfo":{"Calories":"100"}},{"title":"B"'
        salvaged = salvage_partial_objects(text)
        assert len(salvaged) == 1
        assert salvaged[0]["nutritionalInfo"] == {"Calories": "100"}

    def test_unparseable_fragment_is_dropped(self):
        text = '[{"title":"A"},{"title" "broken"},{"title":"C"},{'
        assert [item["title"] for item in salvage_partial_objects(text)] == ["A", "C"]

    def test_bracket_in_leading_prose(self):
        text = 'Recipes [v2] below: [{"id":1,"title":"A"},{"id":2,"title":"B"},{"id":3,"tit'
        assert [item["title"] for item in salvage_partial_objects(text)] == ["A", "B"]

    def test_deeply_nested_fragment_is_dropped(self):
        nested = '{"a":' * 3000 + '1' + '}' * 3000
        text = '[' + nested + ',{"title":"B"},{"ti'
        assert salvage_partial_objects(text)[-1] == {"title": "B"}

    def test_no_bracket_returns_empty(self):
        assert salvage_partial_objects('{"title":"A"}') == []
        assert salvage_partial_objects(None) == []
