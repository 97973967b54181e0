from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── OpenAI ────────────────────────────────────────────────────────────────
    # base_url is optional: point it at any OpenAI-compatible endpoint
    # (GitHub Models, a LiteLLM proxy, ...) to swap providers.
    openai_api_key: str = ""
    openai_base_url: str | None = None

    # ── Models ────────────────────────────────────────────────────────────────
    chat_model: str = "gpt-4o-mini"
    temperature: float = 0.0
    request_timeout: float = 60.0
    max_retries: int = 2                      # handled by the client, not the graph
    embedding_model: str = "text-embedding-3-small"

    # ── Vector index ──────────────────────────────────────────────────────────
    # local    = index persisted to index_path by the corpus indexer
    # postgres = pgvector table in database_url
    vector_store: Literal["local", "postgres"] = "local"
    index_path: str = "./vectorstore/db_index"
    vector_table: str = "docchat_documents"
    embed_dim: int = 1536

    # ── Checkpointer ──────────────────────────────────────────────────────────
    checkpointer: Literal["memory", "postgres"] = "memory"
    database_url: str = ""

    # ── Graph ─────────────────────────────────────────────────────────────────
    max_steps: int = 25
    max_question_length: int = 8_000
    cli_thread_id: str = "main-conversation"
    api_thread_id: str = "api-conversation"

    # ── App ───────────────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None  # defaults to DEBUG in development, INFO otherwise
    cors_origins: list[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
