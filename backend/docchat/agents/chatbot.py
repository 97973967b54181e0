"""
Chatbot: the single entry point shared by the HTTP and interactive front ends.

    question → validate → ConversationGraph.stream → AnswerAggregator → answer
"""

import time

from docchat.agents.aggregator import AnswerAggregator
from docchat.agents.conversation_graph import ConversationGraph
from docchat.agents.tools import build_retrieval_tool
from docchat.core.checkpointer import backend_name, get_checkpointer
from docchat.core.config import Settings, get_settings
from docchat.core.llm import get_chat_model, require_credentials
from docchat.core.logging import get_logger
from docchat.middleware.sanitize import validate_question
from docchat.rag.pipeline import DocumentRetriever, load_index

log = get_logger(__name__)


class Chatbot:
    def __init__(
        self,
        graph: ConversationGraph,
        max_question_length: int = 8_000,
        vector_store: str = "custom",
    ):
        self.graph = graph
        self.max_question_length = max_question_length
        self.vector_store = vector_store

    @property
    def backends(self) -> dict:
        """Backends this instance actually runs on."""
        return {
            "checkpointer": backend_name(self.graph.checkpointer),
            "vector_store": self.vector_store,
        }

    def ask(self, question: str | None, thread_id: str) -> str:
        """
        Answer `question` within the conversation `thread_id`.

        Raises ValidationError before touching the graph if the question is
        blank; errors from the graph propagate once the failed step aborts.
        """
        question = validate_question(question, self.max_question_length)

        started = time.perf_counter()
        aggregator = AnswerAggregator()
        try:
            for event in self.graph.stream(question, thread_id):
                aggregator.feed(event)
        except Exception as exc:
            log.error(
                "chat_failed",
                thread_id=thread_id,
                steps=aggregator.steps,
                error_type=type(exc).__name__,
            )
            raise

        log.info(
            "chat_complete",
            thread_id=thread_id,
            steps=aggregator.steps,
            answer_length=len(aggregator.answer),
            latency_ms=round((time.perf_counter() - started) * 1000),
        )
        return aggregator.answer


def build_chatbot(settings: Settings | None = None) -> Chatbot:
    """
    Wire model, index, tool and checkpointer from settings.

    Raises ConfigurationError when the credential or the vector index is
    missing; callers at process startup turn that into exit code 1.
    """
    settings = settings or get_settings()
    require_credentials(settings)

    log.info("loading_vector_index", backend=settings.vector_store)
    retriever = DocumentRetriever(load_index(settings))
    graph = ConversationGraph(
        model=get_chat_model(settings),
        tool=build_retrieval_tool(retriever),
        checkpointer=get_checkpointer(settings),
        max_steps=settings.max_steps,
    )
    return Chatbot(
        graph,
        max_question_length=settings.max_question_length,
        vector_store=settings.vector_store,
    )
