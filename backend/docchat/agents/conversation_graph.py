"""
Conversation graph: the agent/retrieval loop with per-thread checkpoints.

    START → agent → (route_after_agent) → END
              ↑              ↓ Continue(action)
              └──────── action

agent:             model with the retrieval tool bound, returns text or a tool call
route_after_agent: Continue(action) or Terminate
action:            runs the first pending tool call, appends the ToolMessage

Execution is pull-based: stream() returns a generator, and the next node only
runs when the consumer asks for the next StepEvent. The checkpointer writes
after every completed step, so a consumer that stops early, or a process that
dies mid-run, leaves the thread at its last completed step.
"""

from typing import Iterator, NamedTuple

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.tools import BaseTool
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import InMemorySaver
from langgraph.graph import END, START, StateGraph

from docchat.agents.nodes import (
    Continue,
    Terminate,
    make_agent_node,
    make_tool_node,
    route_after_agent,
)
from docchat.agents.prompts import SYSTEM_PROMPT
from docchat.core.checkpointer import CheckpointStore, thread_config
from docchat.core.errors import RoutingInvariantError
from docchat.core.graph_state import ACTION, AGENT, ConversationState
from docchat.core.logging import get_logger

log = get_logger(__name__)


class StepEvent(NamedTuple):
    """One completed node step and the turns it appended."""
    node: str
    turns: tuple
    resumed: bool = False  # step belongs to an interrupted earlier execution


def _next_node(state: ConversationState) -> str:
    route = route_after_agent(state)
    if isinstance(route, Continue):
        return route.node
    if isinstance(route, Terminate):
        return END
    raise RoutingInvariantError(f"Unknown route: {route!r}")


def build_conversation_graph(
    model: BaseChatModel,
    tool: BaseTool,
    checkpointer: BaseCheckpointSaver,
    system_prompt: str = SYSTEM_PROMPT,
):
    """Compile the agent/action graph over the given model, tool and checkpointer."""
    workflow = StateGraph(ConversationState)

    # Nodes
    workflow.add_node(AGENT, make_agent_node(model, tool, system_prompt))
    workflow.add_node(ACTION, make_tool_node(tool))

    # Edges
    workflow.add_edge(START, AGENT)
    workflow.add_conditional_edges(AGENT, _next_node, {ACTION: ACTION, END: END})
    workflow.add_edge(ACTION, AGENT)  # loop: tool results → agent reasoning

    return workflow.compile(checkpointer=checkpointer)


class ConversationGraph:
    """
    A compiled conversation graph plus its checkpoint store.

    Model, tool and checkpointer are injected, so graphs with different
    credentials or corpora can live in one process. The compiled graph holds
    no per-thread state of its own; one instance serves any number of threads.
    """

    def __init__(
        self,
        model: BaseChatModel,
        tool: BaseTool,
        checkpointer: BaseCheckpointSaver | None = None,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        max_steps: int = 25,
    ):
        self.checkpointer = checkpointer or InMemorySaver()
        self._graph = build_conversation_graph(model, tool, self.checkpointer, system_prompt)
        self._max_steps = max_steps
        self.checkpoints = CheckpointStore(self._graph)

    def stream(self, question: str, thread_id: str) -> Iterator[StepEvent]:
        """
        Append `question` as a human turn and run the graph from the agent node.

        If the thread's previous execution stopped before reaching the end
        (for example after the action step), it is completed first; those steps
        are yielded with resumed=True.
        """
        if self.checkpoints.pending(thread_id):
            log.info("resuming_interrupted_run", thread_id=thread_id)
            yield from self._run(None, thread_id, resumed=True)

        inputs = {"thread_id": thread_id, "turns": [HumanMessage(content=question)]}
        yield from self._run(inputs, thread_id)

    def resume(self, thread_id: str) -> Iterator[StepEvent]:
        """Finish an interrupted execution from its last persisted step, if any."""
        if not self.checkpoints.pending(thread_id):
            return
        yield from self._run(None, thread_id, resumed=True)

    def _run(self, inputs: dict | None, thread_id: str, resumed: bool = False) -> Iterator[StepEvent]:
        config = thread_config(thread_id, recursion_limit=self._max_steps)
        for chunk in self._graph.stream(inputs, config=config, stream_mode="updates", durability="sync"):
            for node, update in chunk.items():
                turns = tuple((update or {}).get("turns", []))
                log.debug("step_complete", thread_id=thread_id, node=node, turns=len(turns))
                yield StepEvent(node=node, turns=turns, resumed=resumed)
