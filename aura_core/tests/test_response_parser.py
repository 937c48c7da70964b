import time

import pytest

from aura_core.gateway.response_parser import (
    PARSE_FALLBACK_TEXT,
    find_balanced_object,
    normalize,
)


def test_whole_json_text_field():
    reply = normalize('{"text":"HI"}')
    assert reply.text == "HI"
    assert reply.intent.type == "conversation"


def test_recognized_field_wins_over_surrounding_prose():
    assert normalize('Here you go: {"text":"HI"} thanks').text == "HI"


def test_truncated_json_never_throws():
    reply = normalize('{"text": "HI"')
    assert reply.text
    assert "{" not in reply.text


def test_truncated_json_keeps_preceding_prose():
    assert normalize('Sure thing! {"text": "HI"').text == "Sure thing!"


def test_empty_input_returns_placeholder():
    assert normalize("").text == PARSE_FALLBACK_TEXT
    assert normalize(None).text == PARSE_FALLBACK_TEXT
    assert normalize("```json\n```").text == PARSE_FALLBACK_TEXT


def test_fenced_json_is_unwrapped():
    raw = '```json\n{"text": "IT IS NOON", "intent": {"type": "time", "value": "12:00"}}\n```'
    reply = normalize(raw)
    assert reply.text == "IT IS NOON"
    assert reply.intent.type == "time"
    assert reply.intent.value == "12:00"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"response": "FROM RESPONSE"}', "FROM RESPONSE"),
        ('{"message": "FROM MESSAGE"}', "FROM MESSAGE"),
        ('{"message": "M", "text": "T", "response": "R"}', "T"),
        ('{"text": "", "response": "R"}', "R"),
    ],
)
def test_field_priority(raw, expected):
    assert normalize(raw).text == expected


def test_side_fields_become_intent():
    reply = normalize('{"text": "4", "type": "math", "topic": "2+2"}')
    assert reply.intent.type == "math"
    assert reply.intent.value == "2+2"

    reply = normalize('{"text": "HA", "intent": "joke"}')
    assert reply.intent.type == "joke"


def test_embedded_object_without_recognized_field_uses_preceding_prose():
    reply = normalize('The answer is four. {"confidence": 0.9}')
    assert reply.text == "The answer is four."


def test_object_without_recognized_field_and_no_prose_is_stringified():
    reply = normalize('{"answer": "four"}')
    assert reply.text == '{"answer": "four"}'


def test_unparseable_braces_fall_back_to_prose_before_brace():
    assert normalize("Hello there {not: json} bye").text == "Hello there"


def test_plain_text_passes_through():
    assert normalize("  just words  ").text == "just words"


def test_stray_fences_are_stripped_from_plain_text():
    assert normalize("```\nhello\n```").text == "hello"


def test_braces_inside_strings_do_not_confuse_scanner():
    raw = 'note {"text": "use } and { freely"} end'
    assert normalize(raw).text == "use } and { freely"


def test_find_balanced_object_skips_unbalanced_prefix():
    text = 'a { b {"text": "x"}'
    span = find_balanced_object(text)
    assert span is not None
    assert text[span[0]:span[1]] == '{"text": "x"}'


def test_nested_object_returns_outermost_span():
    text = 'x {"a": {"b": 1}} y'
    start, end = find_balanced_object(text)
    assert text[start:end] == '{"a": {"b": 1}}'


def test_find_balanced_object_none_when_nothing_closes():
    assert find_balanced_object("{ { {") is None
    assert find_balanced_object("no braces } here") is None


@pytest.mark.parametrize(
    "raw",
    [
        "{" * 20000,
        "prefix " + "{ " * 20000,
        '{"text": "' + "{" * 20000,
        "{" * 20000 + '{"text": "deep"}',
    ],
)
def test_large_unbalanced_input_is_linear(raw):
    started = time.monotonic()
    reply = normalize(raw)
    assert time.monotonic() - started < 1.0
    assert reply.text
