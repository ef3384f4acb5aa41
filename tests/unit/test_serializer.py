import json

import pytest

import json_fixer as jf

U = "\\" + "u"   # start of a \uXXXX escape in serialized text


@pytest.mark.parametrize("value, text", [
    (None, "null"),
    (True, "true"),
    (False, "false"),
    (0, "0"),
    (42, "42"),
    (-7, "-7"),
    (1.5, "1.5"),
    (1e16, "1e+16"),
    (float("inf"), "null"),
    (float("nan"), "null"),
])
def test_scalars(value, text):
    assert jf.serialize(value) == text


@pytest.mark.parametrize("value, text", [
    ('a"b', r'"a\"b"'),
    ("a\\b", r'"a\\b"'),
    ("\b\f\n\r\t", r'"\b\f\n\r\t"'),
    ("\x01", '"' + U + '0001"'),
    ("\x1f", '"' + U + '001f"'),
    ("\x7f", '"\x7f"'),
    ("\xe9\U0001F600", '"\xe9\U0001F600"'),
    ("\ud800", '"' + U + 'd800"'),
])
def test_string_escaping(value, text):
    assert jf.serialize(value) == text


def test_containers_use_canonical_separators():
    value = {"a": 1, "b": [True, False, None], "c": {"d": "e"}}
    assert jf.serialize(value) == '{"a": 1, "b": [true, false, null], "c": {"d": "e"}}'


def test_empty_containers():
    assert jf.serialize([]) == "[]"
    assert jf.serialize({}) == "{}"


def test_insertion_order_is_kept():
    assert jf.serialize({"z": 1, "a": 2}) == '{"z": 1, "a": 2}'


def test_tuple_renders_as_array():
    assert jf.serialize((1, "x")) == '[1, "x"]'


def test_non_string_keys_render_through_str():
    assert jf.serialize({1: "a"}) == '{"1": "a"}'


def test_unexpected_type_is_quoted_and_escaped():
    class Odd:
        def __str__(self):
            return 'x"y'

    assert jf.serialize(Odd()) == r'"x\"y"'


def test_no_newlines_in_compact_output():
    text = jf.serialize({"a": ["line\nbreak", {"b": [1, 2]}]})
    assert "\n" not in text


def test_pretty_layout():
    value = {"a": 1, "b": [1, 2], "c": {}}
    assert jf.serialize_pretty(value) == '{\n  "a": 1,\n  "b": [\n    1,\n    2\n  ],\n  "c": {}\n}'


def test_pretty_indent_width():
    assert jf.serialize_pretty([1], indent=4) == "[\n    1\n]"


def test_pretty_scalars_match_compact():
    for value in (None, True, 3, 2.5, "s"):
        assert jf.serialize_pretty(value) == jf.serialize(value)


@pytest.mark.parametrize("value", [
    {"k": "v", "n": [1, 2.5, -3, None, True], "nested": {"x": {"y": []}}},
    ["\x00\x1f", "quote\"back\\slash", "\xe9中"],
    "\ud83d",
])
def test_output_loads_back_to_the_same_value(value):
    assert json.loads(jf.serialize(value)) == value
    assert json.loads(jf.serialize_pretty(value)) == value
