"""
LangGraph node implementations.

Graph topology:

    START → agent → (route_after_agent) → END
              ↑           ↓ tool call pending
              └──────── action

agent:
    - System directive + full turn history → model bound to the retrieval tool
    - Appends one AI turn (final text, or a tool-call request)

route_after_agent:
    - Inspects the latest turn only
    - Continue(action) if it is an AI turn with tool calls, Terminate if not
    - Any other turn kind is a RoutingInvariantError

action:
    - Runs the FIRST tool call of the latest AI turn against the retrieval tool
    - Appends a ToolMessage answering that call id

Nodes are built by factories so the model and tool are injected per graph
instead of being process-wide singletons.
"""

import time
from dataclasses import dataclass
from typing import Callable, Union

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool

from docchat.agents.prompts import SYSTEM_PROMPT
from docchat.core.errors import (
    ModelInvocationError,
    RetrievalError,
    RoutingInvariantError,
)
from docchat.core.graph_state import ACTION, ConversationState, TurnKind, turn_kind
from docchat.core.logging import get_logger

log = get_logger(__name__)

Node = Callable[[ConversationState], dict]


# ── Router result ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Continue:
    node: str


@dataclass(frozen=True)
class Terminate:
    pass


Route = Union[Continue, Terminate]


# ── agent ─────────────────────────────────────────────────────────────────────

def make_agent_node(model: BaseChatModel, tool: BaseTool, system_prompt: str = SYSTEM_PROMPT) -> Node:
    """Build the agent node around `model` with exactly one tool bound."""
    llm = model.bind_tools([tool])

    def agent_node(state: ConversationState) -> dict:
        messages = [SystemMessage(content=system_prompt)] + list(state["turns"])

        started = time.perf_counter()
        try:
            response = llm.invoke(messages)
        except Exception as exc:
            log.error(
                "model_invocation_failed",
                thread_id=state.get("thread_id"),
                error_type=type(exc).__name__,
            )
            raise ModelInvocationError(f"Chat model call failed: {exc}") from exc

        if not isinstance(response, AIMessage):
            raise ModelInvocationError(f"Chat model returned {type(response).__name__}, expected an AI turn")

        if len(response.tool_calls) > 1:
            # Only the first call is executed by the action node.
            log.warning(
                "multiple_tool_calls",
                thread_id=state.get("thread_id"),
                count=len(response.tool_calls),
                executed=response.tool_calls[0]["id"],
            )

        log.debug(
            "agent_response",
            thread_id=state.get("thread_id"),
            has_tool_calls=bool(response.tool_calls),
            content_length=len(response.content) if response.content else 0,
            latency_ms=round((time.perf_counter() - started) * 1000),
        )
        return {"turns": [response]}

    return agent_node


# ── action ────────────────────────────────────────────────────────────────────

def make_tool_node(tool: BaseTool) -> Node:
    """Build the action node executing the pending retrieval call."""

    def tool_node(state: ConversationState) -> dict:
        turns = state["turns"]
        last = turns[-1] if turns else None
        if last is None or turn_kind(last) is not TurnKind.AI or not last.tool_calls:
            raise RoutingInvariantError("Action node reached without a pending tool call")

        call = last.tool_calls[0]
        query = (call.get("args") or {}).get("query")
        if not isinstance(query, str) or not query.strip():
            raise RetrievalError(f"Tool call {call['id']!r} carries no query string")

        log.info(
            "tool_call",
            thread_id=state.get("thread_id"),
            tool_name=call.get("name"),
            tool_call_id=call["id"],
        )
        try:
            output = tool.invoke({"query": query})
        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(f"Retrieval tool failed: {exc}") from exc

        return {"turns": [ToolMessage(content=str(output), tool_call_id=call["id"], name=tool.name)]}

    return tool_node


# ── Router (conditional edge function) ────────────────────────────────────────

def route_after_agent(state: ConversationState) -> Route:
    """
    Inspect the latest turn.
    Returns Continue(ACTION) when the AI turn requests a tool call,
    Terminate when it carries none.
    """
    turns = state.get("turns") or []
    if not turns:
        raise RoutingInvariantError("Cannot route on an empty turn history")

    last = turns[-1]
    kind = turn_kind(last)
    if kind is TurnKind.AI:
        route = Continue(ACTION) if last.tool_calls else Terminate()
        log.debug("route_selected", thread_id=state.get("thread_id"), route=repr(route))
        return route
    if kind in (TurnKind.HUMAN, TurnKind.TOOL_RESULT):
        raise RoutingInvariantError(f"Router expected an AI turn, got a {kind.value} turn")
    raise RoutingInvariantError(f"Unhandled turn kind: {kind!r}")
