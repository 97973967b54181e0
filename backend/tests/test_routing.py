"""
Deterministic unit tests for `route_after_agent`.

The router only ever looks at the latest turn, so earlier history must not
change its decision.
"""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from docchat.agents.nodes import Continue, Terminate, route_after_agent
from docchat.core.errors import RoutingInvariantError
from docchat.core.graph_state import ACTION


def _state(*turns):
    return {"thread_id": "t", "turns": list(turns)}


def test_ai_turn_without_tool_calls_terminates():
    assert route_after_agent(_state(HumanMessage(content="Hello"), AIMessage(content="Hi!"))) == Terminate()


def test_ai_turn_with_tool_call_continues_to_action(tool_call):
    route = route_after_agent(_state(HumanMessage(content="refunds?"), tool_call("refund policy")))
    assert route == Continue(ACTION)


@pytest.mark.parametrize(
    "history",
    [
        [],
        [HumanMessage(content="q")],
        [HumanMessage(content="q"), "tool-loop"],
        [HumanMessage(content="q"), AIMessage(content="a"), HumanMessage(content="q2")],
    ],
)
def test_terminal_ai_turn_terminates_regardless_of_history(history, tool_call):
    turns = []
    for item in history:
        if item == "tool-loop":
            turns += [tool_call("x", call_id="c1"), ToolMessage(content="r", tool_call_id="c1")]
        else:
            turns.append(item)
    turns.append(AIMessage(content="final"))

    assert route_after_agent(_state(*turns)) == Terminate()


def test_human_latest_turn_is_invariant_violation():
    with pytest.raises(RoutingInvariantError):
        route_after_agent(_state(HumanMessage(content="q")))


def test_tool_result_latest_turn_is_invariant_violation(tool_call):
    with pytest.raises(RoutingInvariantError):
        route_after_agent(_state(tool_call("x"), ToolMessage(content="r", tool_call_id="call_1")))


def test_empty_history_is_invariant_violation():
    with pytest.raises(RoutingInvariantError):
        route_after_agent(_state())
