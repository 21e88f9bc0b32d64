"""Tests for the path-tracking schema parser."""

from __future__ import annotations

import pytest

from gamecatalog.core.schema_parser import (
    ParseError,
    SchemaParser,
    path_to_string,
    to_bool,
    to_str,
)


@pytest.fixture
def errors() -> list[ParseError]:
    return []


class TestPaths:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ((), ""),
            (("title",), "title"),
            (("games", 3, "title"), "games[3].title"),
            (("a", "b", 0, 1), "a.b[0][1]"),
        ],
    )
    def test_path_to_string(self, path, expected) -> None:
        assert path_to_string(path) == expected

    def test_error_str(self) -> None:
        error = ParseError(("games", 0, "id"), 'Property "id" was not found.')
        assert str(error) == 'Property "id" was not found. (path: "games[0].id")'


class TestProperty:
    def test_missing_required_reports_once(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({"title": "A"}, on_error=errors.append)
        assert parser.property("id").as_str() == ""
        assert len(errors) == 1
        assert errors[0].path_string == "id"
        assert errors[0].message == 'Property "id" was not found.'

    def test_optional_missing_is_silent(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({}, on_error=errors.append)
        assert parser.property("icon", optional=True).as_optional_str() is None
        assert errors == []

    def test_handler_called_with_raw_value(self) -> None:
        seen = []
        SchemaParser({"kill": True}).property("kill", seen.append)
        assert seen == [True]

    def test_children_of_missing_are_not_reported(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({}, on_error=errors.append)
        parser.property("server").property("path").as_str()
        parser.property("start").for_each_element(lambda item, i: None)
        assert [e.path_string for e in errors] == ["server", "start"]

    def test_nested_path(self, errors: list[ParseError]) -> None:
        data = {"games": [{"id": "1", "title": "One"}, {"id": "2"}]}
        parser = SchemaParser(data, on_error=errors.append)
        titles = []
        parser.property("games").for_each_element(
            lambda item, i: titles.append(item.property("title").as_str())
        )
        assert titles == ["One", ""]
        assert [e.path_string for e in errors] == ["games[1].title"]

    def test_errors_collected_on_root(self) -> None:
        parser = SchemaParser({"a": {}})
        parser.property("a").property("b")
        parser.property("c")
        assert [e.path_string for e in parser.errors] == ["a.b", "c"]


class TestShapes:
    def test_for_each_property(self) -> None:
        labels = []
        SchemaParser({"x": 1, "y": 2}).for_each_property(lambda item, label: labels.append((label, item.path)))
        assert labels == [("x", ("x",)), ("y", ("y",))]

    def test_for_each_property_on_array(self, errors: list[ParseError]) -> None:
        SchemaParser({"a": [1]}, on_error=errors.append).property("a").for_each_property(lambda i, l: None)
        assert errors[0].message == "Property is not a non-array object."
        assert errors[0].path_string == "a"

    def test_for_each_element_on_object(self, errors: list[ParseError]) -> None:
        SchemaParser({"a": {}}, on_error=errors.append).property("a").for_each_element(lambda i, n: None)
        assert errors[0].message == "Property is not an array."

    def test_for_each_element_raw(self) -> None:
        values = []
        SchemaParser([3, 4]).for_each_element_raw(lambda value, index: values.append((index, value)))
        assert values == [(0, 3), (1, 4)]


class TestCoercion:
    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), ("true", True), ("FALSE", False), ("1", True), ("0", False), (0, False), ("", False)],
    )
    def test_to_bool(self, value, expected) -> None:
        assert to_bool(value) is expected

    def test_to_bool_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            to_bool("maybe")

    def test_to_str(self) -> None:
        assert to_str(None) == ""
        assert to_str(5) == "5"
        with pytest.raises(TypeError):
            to_str({"a": 1})

    def test_bad_bool_degrades(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({"Hide": "maybe"}, on_error=errors.append)
        assert parser.property("Hide").as_bool() is False
        assert errors[0].path_string == "Hide"

    def test_str_list_skips_bad_items(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({"arguments": ["-a", {"x": 1}, 3]}, on_error=errors.append)
        assert parser.property("arguments").as_str_list() == ["-a", "3"]
        assert [e.path_string for e in errors] == ["arguments[1]"]

    def test_as_int(self, errors: list[ParseError]) -> None:
        parser = SchemaParser({"n": "12", "m": "x"}, on_error=errors.append)
        assert parser.property("n").as_int() == 12
        assert parser.property("m").as_int(default=-1) == -1
        assert len(errors) == 1
