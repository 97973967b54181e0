"""
Agent tool definitions.

A single tool is bound to the model: retrieve_document_context, which runs a
nearest-neighbour query against the document index and returns the top
passages as one text blob. It is built per retriever rather than registered
globally, so several graphs over different corpora can coexist.
"""

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from docchat.core.logging import get_logger
from docchat.rag.pipeline import TOP_K, DocumentRetriever, format_passages

log = get_logger(__name__)

RETRIEVAL_TOOL_NAME = "retrieve_document_context"
RETRIEVAL_TOOL_DESCRIPTION = "Searches and returns relevant document context for a given query."
NO_RESULTS = "No relevant information found in the provided documents."


class RetrievalQuery(BaseModel):
    query: str = Field(description="A concise search query describing what information you need.")


def build_retrieval_tool(retriever: DocumentRetriever, k: int = TOP_K) -> BaseTool:
    """
    Wrap `retriever` as the retrieve_document_context tool.

    RetrievalError from the retriever propagates unchanged; the tool never
    turns a failed query into a result.
    """

    def retrieve_document_context(query: str) -> str:
        passages = retriever.query(query, k)
        log.debug("tool_retrieval", tool_name=RETRIEVAL_TOOL_NAME, passages=len(passages))
        return format_passages(passages) if passages else NO_RESULTS

    return StructuredTool.from_function(
        func=retrieve_document_context,
        name=RETRIEVAL_TOOL_NAME,
        description=RETRIEVAL_TOOL_DESCRIPTION,
        args_schema=RetrievalQuery,
    )
