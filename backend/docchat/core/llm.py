"""
Model factories for the chat model and the embedding model used by retrieval.

Both talk to the OpenAI API by default. Setting OPENAI_BASE_URL routes them
through any OpenAI-compatible endpoint instead (GitHub Models, a LiteLLM
proxy, ...). Timeouts and retries belong to these clients; the graph never
retries a failed step itself.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from docchat.core.config import Settings, get_settings
from docchat.core.errors import ConfigurationError


def require_credentials(settings: Settings) -> None:
    if not settings.openai_api_key:
        raise ConfigurationError(
            "OPENAI_API_KEY environment variable not set. "
            "Set it in the .env file or in the environment."
        )


def get_chat_model(
    settings: Settings | None = None,
    *,
    model: str | None = None,
    temperature: float | None = None,
) -> BaseChatModel:
    """
    Return a configured chat model.

    Args:
        settings:    Defaults to the process-wide settings.
        model:       Override the model name. Defaults to settings.chat_model.
        temperature: Sampling temperature. Defaults to settings.temperature.
    """
    from langchain_openai import ChatOpenAI

    settings = settings or get_settings()
    require_credentials(settings)

    return ChatOpenAI(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model=model or settings.chat_model,
        temperature=settings.temperature if temperature is None else temperature,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )


def get_embedding_model(settings: Settings | None = None):
    """Embedding model used to embed queries against the pre-built index."""
    from llama_index.embeddings.openai import OpenAIEmbedding

    settings = settings or get_settings()
    require_credentials(settings)

    embed_kwargs: dict = {"model": settings.embedding_model, "api_key": settings.openai_api_key}
    if settings.openai_base_url:
        embed_kwargs["api_base"] = settings.openai_base_url
    return OpenAIEmbedding(**embed_kwargs)
