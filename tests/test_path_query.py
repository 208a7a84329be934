"""Tests for JSONPath evaluation."""

import pytest

from api_test_runner.exceptions import InvalidJsonError, InvalidPathError, QueryError
from api_test_runner.path_query import evaluate, value_to_string


class TestEvaluate:
    """Tests for evaluate()."""

    def test_single_match_unwrapped(self):
        assert evaluate('{"data": {"id": 5}}', "$.data.id") == 5

    def test_single_string_match(self):
        assert evaluate('{"userId": "42"}', "$.userId") == "42"

    def test_object_match(self):
        assert evaluate('{"data": {"id": 5}}', "$.data") == {"id": 5}

    def test_no_match_is_none(self):
        assert evaluate('{"a": 1}', "$.missing") is None

    def test_literal_null_is_none(self):
        assert evaluate('{"a": null}', "$.a") is None

    def test_multiple_matches_list(self):
        assert evaluate('{"items": [1, 2, 3]}', "$.items[*]") == [1, 2, 3]

    def test_single_element_wildcard_unwrapped(self):
        assert evaluate('{"items": [9]}', "$.items[*]") == 9

    def test_array_index(self):
        assert evaluate('{"items": [{"n": "a"}, {"n": "b"}]}', "$.items[1].n") == "b"

    def test_root(self):
        assert evaluate("[1, 2]", "$") == [1, 2]

    def test_invalid_json(self):
        with pytest.raises(InvalidJsonError) as exc_info:
            evaluate("not json", "$.a")
        assert str(exc_info.value).startswith("Invalid JSON: ")

    def test_empty_body_is_invalid_json(self):
        with pytest.raises(InvalidJsonError):
            evaluate("", "$")

    def test_invalid_path(self):
        with pytest.raises(InvalidPathError) as exc_info:
            evaluate('{"a": 1}', "$[")
        assert str(exc_info.value).startswith("Invalid JSONPath '$[': ")
        assert exc_info.value.path == "$["

    def test_too_deeply_nested_json(self):
        with pytest.raises(InvalidJsonError):
            evaluate("[" * 100000 + "]" * 100000, "$[0]")

    def test_filter_comparing_mismatched_types(self):
        with pytest.raises(InvalidPathError) as exc_info:
            evaluate('{"items": [{"n": 1}]}', "$.items[?(@.n > 'x')]")
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_errors_are_query_errors(self):
        assert issubclass(InvalidJsonError, QueryError)
        assert issubclass(InvalidPathError, QueryError)


class TestValueToString:
    """Tests for value_to_string()."""

    def test_string_passes_through(self):
        assert value_to_string("hello") == "hello"

    def test_none(self):
        assert value_to_string(None) == "null"

    def test_bool(self):
        assert value_to_string(True) == "true"
        assert value_to_string(False) == "false"

    def test_numbers(self):
        assert value_to_string(42) == "42"
        assert value_to_string(1.5) == "1.5"

    def test_compact_object(self):
        assert value_to_string({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_non_ascii_kept(self):
        assert value_to_string(["é"]) == '["é"]'
