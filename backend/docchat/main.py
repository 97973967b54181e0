import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

# Must come after load_dotenv so env vars are available
from docchat.agents.chatbot import Chatbot, build_chatbot  # noqa: E402
from docchat.api import chat, health                       # noqa: E402
from docchat.core.config import get_settings               # noqa: E402
from docchat.core.errors import ConfigurationError         # noqa: E402
from docchat.core.logging import configure_logging, get_logger  # noqa: E402

configure_logging()
log = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.chatbot is None:
        app.state.chatbot = build_chatbot()
    log.info("startup", version=VERSION, environment=get_settings().environment)
    yield
    log.info("shutdown")


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning("invalid_request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Question is required."})


def create_app(chatbot: Chatbot | None = None) -> FastAPI:
    """
    Build the FastAPI app. Without an explicit chatbot one is built from
    settings at startup.
    """
    app = FastAPI(
        title="docchat",
        description="Document Q&A chatbot over a closed corpus (LangGraph + LlamaIndex)",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.chatbot = chatbot

    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_request)

    app.include_router(health.router)
    app.include_router(chat.router)
    return app


def serve() -> int:
    """Build the chatbot up front so configuration errors exit with code 1."""
    import uvicorn

    settings = get_settings()
    try:
        chatbot = build_chatbot(settings)
    except ConfigurationError as exc:
        log.error("startup_failed", error=str(exc))
        print(f"Error starting chatbot: {exc}", file=sys.stderr)
        return 1

    log.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(create_app(chatbot), host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    sys.exit(serve())
