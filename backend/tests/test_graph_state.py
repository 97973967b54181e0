"""
Unit tests for the turn union and the append-only reducer in
`docchat.core.graph_state`.
"""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from docchat.core.errors import RoutingInvariantError, TurnOrderError
from docchat.core.graph_state import TurnKind, append_turns, turn_key, turn_kind


def test_turn_kind_classifies_closed_union(tool_call):
    assert turn_kind(HumanMessage(content="hi")) is TurnKind.HUMAN
    assert turn_kind(AIMessage(content="hello")) is TurnKind.AI
    assert turn_kind(tool_call("refunds")) is TurnKind.AI
    assert turn_kind(ToolMessage(content="x", tool_call_id="call_1")) is TurnKind.TOOL_RESULT


def test_turn_kind_rejects_other_messages():
    with pytest.raises(RoutingInvariantError):
        turn_kind(SystemMessage(content="system"))


def test_append_turns_concatenates_in_order():
    existing = [HumanMessage(content="a"), AIMessage(content="b")]
    new = [HumanMessage(content="c"), AIMessage(content="d")]

    combined = append_turns(existing, new)

    assert [t.content for t in combined] == ["a", "b", "c", "d"]
    # inputs are left untouched
    assert [t.content for t in existing] == ["a", "b"]


def test_append_turns_keeps_duplicate_ids():
    # add_messages would replace a message with the same id; the reducer must not.
    first = AIMessage(content="first", id="same")
    second = AIMessage(content="second", id="same")

    combined = append_turns([first], [second])

    assert [t.content for t in combined] == ["first", "second"]


def test_append_turns_accepts_matching_tool_result(tool_call):
    history = [HumanMessage(content="refunds?"), tool_call("refund policy", call_id="call_7")]
    result = ToolMessage(content="Refunds are processed within 14 days.", tool_call_id="call_7")

    combined = append_turns(history, [result])

    assert combined[-1] is result


def test_append_turns_rejects_unmatched_tool_result(tool_call):
    history = [HumanMessage(content="refunds?"), tool_call("refund policy", call_id="call_7")]

    with pytest.raises(TurnOrderError):
        append_turns(history, [ToolMessage(content="x", tool_call_id="call_8")])


def test_append_turns_rejects_tool_result_without_ai_turn():
    with pytest.raises(TurnOrderError):
        append_turns([HumanMessage(content="hi")], [ToolMessage(content="x", tool_call_id="call_1")])


def test_tool_result_must_answer_the_immediately_preceding_ai_turn(tool_call):
    history = [
        HumanMessage(content="q1"),
        tool_call("first", call_id="call_1"),
        ToolMessage(content="r1", tool_call_id="call_1"),
        tool_call("second", call_id="call_2"),
    ]

    with pytest.raises(TurnOrderError):
        append_turns(history, [ToolMessage(content="late", tool_call_id="call_1")])


def test_tool_result_cannot_follow_a_human_turn(tool_call):
    history = [tool_call("refund policy", call_id="call_1"), HumanMessage(content="never mind")]

    with pytest.raises(TurnOrderError):
        append_turns(history, [ToolMessage(content="r1", tool_call_id="call_1")])


def test_tool_call_is_answered_at_most_once(tool_call):
    history = [
        tool_call("refund policy", call_id="call_1"),
        ToolMessage(content="r1", tool_call_id="call_1"),
    ]

    with pytest.raises(TurnOrderError):
        append_turns(history, [ToolMessage(content="again", tool_call_id="call_1")])


def test_each_call_of_one_ai_turn_gets_its_own_result():
    ai_turn = AIMessage(
        content="",
        tool_calls=[
            {"name": "retrieve_document_context", "args": {"query": "a"}, "id": "call_a"},
            {"name": "retrieve_document_context", "args": {"query": "b"}, "id": "call_b"},
        ],
    )
    results = [
        ToolMessage(content="ra", tool_call_id="call_a"),
        ToolMessage(content="rb", tool_call_id="call_b"),
    ]

    combined = append_turns([HumanMessage(content="q"), ai_turn], results)

    assert [turn_kind(t) for t in combined[-2:]] == [TurnKind.TOOL_RESULT, TurnKind.TOOL_RESULT]


def test_turn_key_ignores_message_metadata():
    a = AIMessage(content="same", id="one", response_metadata={"model": "x"})
    b = AIMessage(content="same", id="two")

    assert turn_key(a) == turn_key(b)
    assert turn_key(a) != turn_key(HumanMessage(content="same"))
