"""
Checkpoint persistence for conversation threads.

The compiled graph writes a checkpoint after every completed node step, keyed
by thread_id. A step that fails writes nothing, so the persisted turns always
end at the last step that succeeded.

Backends:
  memory   → InMemorySaver (process lifetime)
  postgres → PostgresSaver on a shared psycopg connection pool (survives restarts)
"""

from functools import lru_cache

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import InMemorySaver

from docchat.core.config import Settings, get_settings
from docchat.core.errors import ConfigurationError, TurnOrderError
from docchat.core.graph_state import ACTION, AGENT, ConversationState, TurnKind, turn_key, turn_kind
from docchat.core.logging import get_logger

log = get_logger(__name__)


@lru_cache
def get_connection_pool(database_url: str):
    from psycopg_pool import ConnectionPool

    return ConnectionPool(
        conninfo=database_url,
        max_size=20,
        kwargs={"autocommit": True, "prepare_threshold": 0},
    )


def get_checkpointer(settings: Settings | None = None) -> BaseCheckpointSaver:
    """
    Return the checkpoint saver selected by settings.checkpointer.

    PostgresSaver.setup() is idempotent; it creates the checkpointer tables
    (checkpoints, checkpoint_writes, checkpoint_blobs) if they don't exist yet.
    """
    settings = settings or get_settings()

    if settings.checkpointer == "memory":
        return InMemorySaver()

    if not settings.database_url:
        raise ConfigurationError("CHECKPOINTER=postgres requires DATABASE_URL to be set.")

    from langgraph.checkpoint.postgres import PostgresSaver

    checkpointer = PostgresSaver(get_connection_pool(settings.database_url))
    checkpointer.setup()
    log.info("checkpointer_ready", backend="postgres")
    return checkpointer


def backend_name(checkpointer: BaseCheckpointSaver) -> str:
    """Short backend name of a saver, as reported by /health."""
    return {"InMemorySaver": "memory", "PostgresSaver": "postgres"}.get(
        type(checkpointer).__name__, type(checkpointer).__name__
    )


def thread_config(thread_id: str, **extra) -> dict:
    return {"configurable": {"thread_id": thread_id}, **extra}


class CheckpointStore:
    """
    Read/write access to the persisted ConversationState of each thread.

    Wraps a compiled graph so that snapshots written through put() pass through
    the same append-only reducer as the graph's own per-step writes.
    """

    def __init__(self, graph):
        self._graph = graph

    def get(self, thread_id: str) -> ConversationState:
        """Last persisted state for thread_id, or an empty state for unseen threads."""
        snapshot = self._graph.get_state(thread_config(thread_id))
        values = snapshot.values or {}
        return {"thread_id": thread_id, "turns": list(values.get("turns", []))}

    def pending(self, thread_id: str) -> tuple[str, ...]:
        """Nodes still due to run for thread_id (empty once terminal)."""
        return tuple(self._graph.get_state(thread_config(thread_id)).next)

    def put(self, thread_id: str, state: ConversationState) -> None:
        """
        Overwrite the thread's checkpoint with `state`.

        The new turn sequence must extend the persisted one; only the appended
        suffix is written. Raises TurnOrderError otherwise.
        """
        persisted = self.get(thread_id)["turns"]
        turns = list(state["turns"])
        if [turn_key(t) for t in turns[: len(persisted)]] != [turn_key(t) for t in persisted]:
            raise TurnOrderError(f"Snapshot for thread {thread_id!r} does not extend the persisted turns")

        appended = turns[len(persisted):]
        if not appended:
            return

        # Attribute the write to the node that would have produced the last turn,
        # so the next node due is the one the graph would have picked itself.
        as_node = AGENT if turn_kind(appended[-1]) is TurnKind.AI else ACTION
        self._graph.update_state(
            thread_config(thread_id),
            {"thread_id": thread_id, "turns": appended},
            as_node=as_node,
        )
        log.debug("checkpoint_put", thread_id=thread_id, appended=len(appended), as_node=as_node)
