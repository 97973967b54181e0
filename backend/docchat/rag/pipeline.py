"""
RAG pipeline: loading the pre-built vector index and querying it.

The index is built by the external corpus indexer; this module only reads it.

Backends:
  local    → LlamaIndex storage directory (settings.index_path)
  postgres → pgvector table via PGVectorStore

Retrieval is plain nearest-neighbour search: the top-K passages in similarity
order, each with its source attribution and relevance score.
"""

from pathlib import Path
from urllib.parse import urlparse

from llama_index.core import StorageContext, VectorStoreIndex, load_index_from_storage
from pydantic import BaseModel

from docchat.core.config import Settings, get_settings
from docchat.core.errors import ConfigurationError, RetrievalError
from docchat.core.llm import get_embedding_model
from docchat.core.logging import get_logger

log = get_logger(__name__)

TOP_K = 5
UNKNOWN_SOURCE = "unknown"


class Passage(BaseModel):
    content: str
    source: str = UNKNOWN_SOURCE
    score: float | None = None


def _get_vector_store(settings: Settings):
    from llama_index.vector_stores.postgres import PGVectorStore

    db_url = urlparse(settings.database_url)
    return PGVectorStore.from_params(
        database=db_url.path.lstrip("/"),
        host=db_url.hostname,
        password=db_url.password,
        port=db_url.port or 5432,
        user=db_url.username,
        table_name=settings.vector_table,
        embed_dim=settings.embed_dim,
    )


def load_index(settings: Settings | None = None, embed_model=None) -> VectorStoreIndex:
    """
    Load the pre-built index selected by settings.vector_store.

    Raises ConfigurationError if the local index directory is missing or the
    postgres backend has no DATABASE_URL.
    """
    settings = settings or get_settings()

    if settings.vector_store == "postgres":
        if not settings.database_url:
            raise ConfigurationError("VECTOR_STORE=postgres requires DATABASE_URL to be set.")
        vector_store = _get_vector_store(settings)
        log.info("vector_index_loaded", backend="postgres", table=settings.vector_table)
        return VectorStoreIndex.from_vector_store(
            vector_store, embed_model=embed_model or get_embedding_model(settings)
        )

    index_path = Path(settings.index_path)
    if not index_path.is_dir():
        raise ConfigurationError(
            f"Vector database not found at {index_path}. Run the corpus indexer first."
        )

    storage_context = StorageContext.from_defaults(persist_dir=str(index_path))
    index = load_index_from_storage(storage_context, embed_model=embed_model or get_embedding_model(settings))
    log.info("vector_index_loaded", backend="local", path=str(index_path))
    return index


def _source_of(node) -> str:
    metadata = node.metadata or {}
    return str(metadata.get("source") or metadata.get("file_name") or UNKNOWN_SOURCE)


class DocumentRetriever:
    """Nearest-neighbour search over a loaded VectorStoreIndex."""

    def __init__(self, index: VectorStoreIndex):
        self._index = index

    def query(self, text: str, k: int = TOP_K) -> list[Passage]:
        """
        Return up to k passages most similar to `text`, best first.

        Any backend failure (index unreachable, embedding call failed, ...) is
        raised as RetrievalError.
        """
        try:
            nodes = self._index.as_retriever(similarity_top_k=k).retrieve(text)
        except Exception as exc:
            log.error("retrieval_failed", error_type=type(exc).__name__, error=str(exc))
            raise RetrievalError(f"Vector index query failed: {exc}") from exc

        passages = [
            Passage(content=item.node.get_content(), source=_source_of(item.node), score=item.score)
            for item in nodes[:k]
        ]
        log.debug("retrieval_done", requested=k, returned=len(passages))
        return passages


def format_passages(passages: list[Passage]) -> str:
    """Concatenate passages in rank order into one context blob for the model."""
    blocks = []
    for rank, passage in enumerate(passages, start=1):
        score = f"{passage.score:.3f}" if passage.score is not None else "n/a"
        blocks.append(f"[{rank}] source: {passage.source} (score: {score})\n{passage.content}")
    return "\n\n---\n\n".join(blocks)
