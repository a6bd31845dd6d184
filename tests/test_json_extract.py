import pytest

from marketing_factory.services.json_extract import (
    extract_first_json_array,
    extract_first_json_object,
    parse_json_array,
    parse_json_object,
)


def test_extract_first_json_object_plain():
    assert extract_first_json_object('{"a": 1}') == {"a": 1}


def test_extract_first_json_object_with_preamble_and_suffix():
    text = 'Sure, here you go:\n\n```json\n{"a": 1, "b": {"c": 2}}\n```\n\nThanks!'
    assert extract_first_json_object(text) == {"a": 1, "b": {"c": 2}}


def test_extract_first_json_object_ignores_braces_in_strings():
    text = 'prefix {"a": "value with } brace", "b": {"c": "{nested} ok"}} suffix'
    assert extract_first_json_object(text) == {"a": "value with } brace", "b": {"c": "{nested} ok"}}


def test_extract_first_json_object_handles_escaped_quotes():
    text = 'Result: {"hook": "She said \\"wait}\\" and left"}'
    assert extract_first_json_object(text) == {"hook": 'She said "wait}" and left'}


def test_extract_first_json_object_raises_when_missing():
    with pytest.raises(ValueError):
        extract_first_json_object("no json here")


def test_extract_first_json_array_with_preamble():
    text = 'Here are the hooks:\n[{"text": "Stop scrolling"}, {"text": "POV: you"}]'
    assert extract_first_json_array(text) == [{"text": "Stop scrolling"}, {"text": "POV: you"}]


def test_parse_json_object_returns_none_for_unusable_text():
    assert parse_json_object("[STUB_OUTPUT]") is None
    assert parse_json_object('{"unterminated": ') is None


def test_parse_json_object_prefers_direct_parse():
    assert parse_json_object('  {"name": "Acme"}  ') == {"name": "Acme"}


def test_parse_json_array_ignores_objects():
    assert parse_json_array('{"a": 1}') is None
    assert parse_json_array("Hooks: [1, 2]") == [1, 2]
