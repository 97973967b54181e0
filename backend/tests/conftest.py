import logging
import uuid
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage
from llama_index.core import VectorStoreIndex
from llama_index.core.embeddings import MockEmbedding
from llama_index.core.schema import TextNode

from docchat.agents.conversation_graph import ConversationGraph
from docchat.agents.tools import RETRIEVAL_TOOL_NAME, build_retrieval_tool
from docchat.core.logging import configure_logging
from docchat.rag.pipeline import DocumentRetriever


logger = logging.getLogger(__name__)

REFUND_PASSAGE = "Refunds are processed within 14 days."


@pytest.fixture(autouse=True)
def structured_logging():
    """Run every test under the same structlog setup the entry points install."""
    configure_logging()


def build_index(passages: dict) -> VectorStoreIndex:
    """In-memory index over {source: text}; MockEmbedding keeps it offline."""
    nodes = [TextNode(text=text, metadata={"source": source}) for source, text in passages.items()]
    return VectorStoreIndex(nodes=nodes, embed_model=MockEmbedding(embed_dim=8))


@pytest.fixture
def tool_call():
    """Factory for AI turns that request the retrieval tool."""

    def _tool_call(query: str, call_id: str = "call_1", content: str = "") -> AIMessage:
        return AIMessage(
            content=content,
            tool_calls=[{"name": RETRIEVAL_TOOL_NAME, "args": {"query": query}, "id": call_id}],
        )

    return _tool_call


@pytest.fixture
def make_model():
    """
    Factory for a mocked chat model. The bound model (what the agent node
    actually calls) answers with `responses` in order.
    """

    def _make_model(*responses) -> MagicMock:
        model = MagicMock(name="chat_model")
        model.bind_tools.return_value.invoke.side_effect = list(responses)
        return model

    return _make_model


@pytest.fixture
def refund_retriever() -> DocumentRetriever:
    return DocumentRetriever(build_index({"refund-policy.docx": REFUND_PASSAGE}))


@pytest.fixture
def empty_retriever() -> MagicMock:
    retriever = MagicMock(name="retriever")
    retriever.query.return_value = []
    return retriever


@pytest.fixture
def make_graph():
    def _make_graph(model, retriever, checkpointer=None) -> ConversationGraph:
        return ConversationGraph(model=model, tool=build_retrieval_tool(retriever), checkpointer=checkpointer)

    return _make_graph


@pytest.fixture
def thread_id(request) -> str:
    return f"test-{request.node.name}-{uuid.uuid4()}"
