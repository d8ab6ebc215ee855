import pytest

from polyarch.errors import ExtractionError, MalformedJson, NoJsonFound, ParseError
from polyarch.extract import BraceSliceExtractor, extract_json


def test_extracts_object_from_surrounding_prose():
    assert extract_json('blah {"a":1} blah') == {"a": 1}


def test_extracts_from_code_fence():
    text = 'Here you go:\n```json\n{"lat": 1.5, "lng": 2}\n```\nAnything else?'
    assert extract_json(text) == {"lat": 1.5, "lng": 2}


def test_braces_inside_strings_are_left_to_the_parser():
    assert extract_json('{"reply": "use {curly} braces", "n": {"x": 1}}') == {
        "reply": "use {curly} braces",
        "n": {"x": 1},
    }


@pytest.mark.parametrize("text", ["no braces here", "", "} backwards {", "only { open"])
def test_no_json_found(text):
    with pytest.raises(NoJsonFound) as info:
        extract_json(text)
    assert isinstance(info.value, ExtractionError)
    assert info.value.raw == text


def test_malformed_json_keeps_slice_for_diagnostics():
    with pytest.raises(MalformedJson) as info:
        extract_json('prefix {"a": 1,} suffix')
    assert isinstance(info.value, ParseError)
    assert info.value.extracted == '{"a": 1,}'
    assert info.value.raw == 'prefix {"a": 1,} suffix'


def test_two_objects_over_capture_and_fail():
    with pytest.raises(MalformedJson):
        BraceSliceExtractor().extract('{"a": 1} and then {"b": 2}')


@pytest.mark.parametrize(
    "text",
    [
        '{"lat": NaN, "lng": 1}',
        '{"lat": 35.0, "lng": Infinity}',
        '{"opacity": -Infinity}',
    ],
)
def test_non_standard_constants_are_malformed(text):
    with pytest.raises(MalformedJson) as info:
        extract_json(text)
    assert info.value.extracted == text
