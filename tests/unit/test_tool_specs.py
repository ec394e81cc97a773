# pylint: disable=missing-module-docstring,missing-function-docstring

from adapters.tools.base import ToolSelection, ToolSpec
from adapters.tools.specs import count_tools, to_provider_tool, to_provider_tools


AVAILABLE = {
    "Calendar": [
        ToolSpec(name="check_calendar", description="Check slots"),
        ToolSpec(name="book_appointment"),
    ],
    "Empty": [],
    "Slack": [ToolSpec(name="channel_get_history", description="History")],
}


def test_to_provider_tool_shape() -> None:
    schema = {"type": "object", "properties": {"date": {"type": "string"}}}
    tool = to_provider_tool("Calendar", ToolSpec("check_calendar", "Check slots", schema))

    assert tool == {
        "type": "function",
        "function": {
            "name": "Calendar_check_calendar",
            "description": "Check slots",
            "parameters": schema,
        },
    }


def test_missing_description_falls_back_to_provider() -> None:
    tool = to_provider_tool("Calendar", ToolSpec("book_appointment"))

    assert tool["function"]["description"] == "Tool from Calendar"
    assert tool["function"]["parameters"] == {"type": "object", "properties": {}}


def test_all_tools_in_catalog_order() -> None:
    names = [t["function"]["name"] for t in to_provider_tools(AVAILABLE)]

    assert names == [
        "Calendar_check_calendar",
        "Calendar_book_appointment",
        "Slack_channel_get_history",
    ]


def test_selection_filters_by_provider_and_tool() -> None:
    selected = [
        ToolSelection(provider="Slack"),
        ToolSelection(provider="Calendar", tool="book_appointment"),
    ]
    names = [t["function"]["name"] for t in to_provider_tools(AVAILABLE, selected)]

    assert names == ["Calendar_book_appointment", "Slack_channel_get_history"]


def test_empty_selection_means_all() -> None:
    assert len(to_provider_tools(AVAILABLE, [])) == 3


def test_count_tools() -> None:
    assert count_tools(AVAILABLE) == 3
    assert count_tools({"Empty": []}) == 0
    assert count_tools({}) == 0
