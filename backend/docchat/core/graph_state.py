from enum import Enum
from typing import Annotated, TypedDict, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from docchat.core.errors import RoutingInvariantError, TurnOrderError

# Graph nodes
AGENT = "agent"
ACTION = "action"

# Closed set of turn types. Anything else reaching the graph is a contract violation.
Turn = Union[HumanMessage, AIMessage, ToolMessage]


class TurnKind(str, Enum):
    HUMAN = "human"
    AI = "ai"
    TOOL_RESULT = "tool_result"


def turn_kind(turn: BaseMessage) -> TurnKind:
    """Classify a turn, rejecting message types outside the closed union."""
    if isinstance(turn, AIMessage):
        return TurnKind.AI
    if isinstance(turn, ToolMessage):
        return TurnKind.TOOL_RESULT
    if isinstance(turn, HumanMessage):
        return TurnKind.HUMAN
    raise RoutingInvariantError(f"Unsupported turn type: {type(turn).__name__}")


def turn_key(turn: BaseMessage) -> tuple:
    """Identity of a turn for history comparisons, independent of serialization metadata."""
    return (
        turn_kind(turn),
        str(turn.content),
        getattr(turn, "tool_call_id", None),
        tuple(call["id"] for call in getattr(turn, "tool_calls", None) or []),
    )


def _check_tool_result(history: list, result: ToolMessage) -> None:
    # A tool result must follow its AI turn directly, or follow results for
    # other calls of that same turn. Each call is answered at most once.
    answered = set()
    for turn in reversed(history):
        kind = turn_kind(turn)
        if kind is TurnKind.TOOL_RESULT:
            answered.add(turn.tool_call_id)
            continue
        if kind is TurnKind.AI:
            call_ids = {call["id"] for call in turn.tool_calls}
            if result.tool_call_id in call_ids - answered:
                return
        break
    raise TurnOrderError(
        f"Tool result {result.tool_call_id!r} does not answer an open call of the preceding AI turn"
    )


def append_turns(existing: list, new: list) -> list:
    """
    Reducer for the `turns` channel.

    Concatenates the persisted history with the newly emitted turns, preserving
    order and never dropping anything. Unlike langgraph's add_messages it does
    not merge by message id.
    """
    combined = list(existing)
    for turn in new:
        if turn_kind(turn) is TurnKind.TOOL_RESULT:
            _check_tool_result(combined, turn)
        combined.append(turn)
    return combined


class ConversationState(TypedDict):
    """Per-thread state persisted by the checkpointer after every step."""
    thread_id: str
    turns: Annotated[list[Turn], append_turns]  # full turn history (append-only)
