"""
Unit tests for the flat form path convention.
"""

import pytest

from api_editor.exceptions import FormPathError
from api_editor.form_paths import (
    array_elem_path,
    attribute_path,
    child_path,
    flatten,
    format_path,
    param_path,
    parse_path,
    unflatten,
)


class TestPathBuilders:
    """Test cases for the path builder helpers."""

    def test_nested_path(self):
        path = attribute_path(child_path(array_elem_path(child_path("bodyJson", 2)), 0), "name")
        assert path == "bodyJson.children[2].arrayElem.children[0].name"

    def test_param_path(self):
        assert param_path("queryParams", 1, "example") == "queryParams[1].example"


class TestParsePath:
    """Test cases for parse_path and format_path."""

    def test_parse_path(self):
        assert parse_path("bodyJson.children[2].name") == ("bodyJson", "children", 2, "name")

    def test_parse_multiple_indexes(self):
        assert parse_path("grid[1][3]") == ("grid", 1, 3)

    @pytest.mark.parametrize("path", ["", "a..b", "a.[0]", "a[x]", "1abc"])
    def test_parse_malformed(self, path):
        with pytest.raises(FormPathError):
            parse_path(path)

    def test_format_path_round_trip(self):
        path = "response.arrayElem.children[0].mock"
        assert format_path(parse_path(path)) == path


class TestUnflatten:
    """Test cases for unflatten."""

    def test_unflatten_nested(self):
        result = unflatten([
            ("name", "Get user"),
            ("bodyJson.type", "OBJECT"),
            ("bodyJson.children[0].name", "id"),
            ("bodyJson.children[0].type", "INT"),
            ("bodyJson.children[1].name", "tags"),
        ])
        assert result == {
            "name": "Get user",
            "bodyJson": {
                "type": "OBJECT",
                "children": [{"name": "id", "type": "INT"}, {"name": "tags"}],
            },
        }

    def test_unflatten_mapping(self):
        assert unflatten({"a.b": 1}) == {"a": {"b": 1}}

    def test_sparse_indexes_are_compacted(self):
        """Gaps in list positions collapse in index order."""
        result = unflatten([("rows[5].name", "b"), ("rows[2].name", "a")])
        assert result == {"rows": [{"name": "a"}, {"name": "b"}]}

    def test_last_value_wins(self):
        assert unflatten([("a", 1), ("a", 2)]) == {"a": 2}

    def test_leaf_then_container_conflict(self):
        with pytest.raises(FormPathError):
            unflatten([("a", "x"), ("a.b", "y")])

    def test_container_then_leaf_conflict(self):
        with pytest.raises(FormPathError):
            unflatten([("a.b", "y"), ("a", "x")])

    def test_list_and_field_conflict(self):
        with pytest.raises(FormPathError) as excinfo:
            unflatten([("a[0]", "x"), ("a.b", "y")])
        assert excinfo.value.path == "a.b"

    def test_empty_input(self):
        assert unflatten([]) == {}


class TestFlatten:
    """Test cases for flatten."""

    def test_flatten_skips_none(self):
        pairs = flatten({"name": "id", "isRequired": None, "children": []}, "bodyJson")
        assert pairs == [("bodyJson.name", "id")]

    def test_flatten_then_unflatten(self):
        form = {"bodyJson": {"type": "ARRAY", "arrayElem": {"type": "STRING"}, "children": [{"name": "x"}]}}
        assert unflatten(flatten(form)) == form

    def test_flatten_list_without_prefix(self):
        with pytest.raises(FormPathError):
            flatten([1, 2])
