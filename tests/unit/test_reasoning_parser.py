# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from orchestrator.reasoning import EMPTY_PARSE, ParsedContent, parse_reasoning


def test_empty_buffer() -> None:
    assert parse_reasoning("") is EMPTY_PARSE


def test_plain_answer_is_stripped() -> None:
    assert parse_reasoning("  Hello there \n") == ParsedContent("", "Hello there", False)


def test_completed_segment_then_answer() -> None:
    assert parse_reasoning("<think>thinking</think>hello") == ParsedContent(
        reasoning="thinking",
        answer="hello",
        reasoning_open=False,
    )


def test_multiple_segments_join_in_order() -> None:
    parsed = parse_reasoning("<think>a</think>x<think>b</think>y")

    assert parsed.reasoning == "a\n\nb"
    assert parsed.answer == "xy"
    assert parsed.reasoning_open is False


def test_unterminated_segment_is_in_progress() -> None:
    assert parse_reasoning("<think>partial") == ParsedContent("partial", "", True)


def test_completed_then_open_segment() -> None:
    parsed = parse_reasoning("<think>a</think>Hi <think>more")

    assert parsed.reasoning == "a\n\nmore"
    assert parsed.answer == "Hi"
    assert parsed.reasoning_open is True


def test_multiline_reasoning() -> None:
    parsed = parse_reasoning("<think>line one\nline two</think>\n\nAnswer")

    assert parsed.reasoning == "line one\nline two"
    assert parsed.answer == "Answer"


def test_stray_closing_tag_is_literal_answer() -> None:
    assert parse_reasoning("hello </think> world").answer == "hello </think> world"


@pytest.mark.parametrize("buffer", ["<thi", "<think", "<think>"])
def test_never_raises_on_partial_tags(buffer: str) -> None:
    parse_reasoning(buffer)


def test_custom_tag() -> None:
    assert parse_reasoning("<r>thinking</r>hello", tag="r") == ParsedContent(
        "thinking", "hello", False
    )
    # Default tag is literal text under a custom tag
    assert parse_reasoning("<think>x</think>", tag="r").answer == "<think>x</think>"


def test_reparsing_growing_buffer_tracks_open_state() -> None:
    chunks = ["<think>pla", "nning</think>", "Sure", ", done"]
    states = []
    buffer = ""
    for chunk in chunks:
        buffer += chunk
        states.append(parse_reasoning(buffer).reasoning_open)

    assert states == [True, False, False, False]
    assert parse_reasoning(buffer) == ParsedContent("planning", "Sure, done", False)
