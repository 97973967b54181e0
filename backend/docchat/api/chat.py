"""
Chat API endpoint.

POST /chat {"question": "...", "threadId": "..."} → {"answer": "..."}

400 when the question is missing or blank (nothing is executed or persisted),
500 with a generic message on any failure inside the graph.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from docchat.agents.chatbot import Chatbot
from docchat.core.config import get_settings
from docchat.core.errors import ValidationError
from docchat.core.logging import get_logger

log = get_logger(__name__)
router = APIRouter(tags=["chat"])

INTERNAL_ERROR_DETAIL = "Failed to get a response from the chatbot."


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str | None = None
    thread_id: str | None = Field(default=None, alias="threadId")


class ChatResponse(BaseModel):
    answer: str


def get_chatbot(request: Request) -> Chatbot:
    return request.app.state.chatbot


# Sync handler: FastAPI runs it in the threadpool, so the blocking model and
# retrieval calls of one conversation never stall the event loop for others.
@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, chatbot: Chatbot = Depends(get_chatbot)) -> ChatResponse:
    thread_id = req.thread_id or get_settings().api_thread_id
    log.info("chat_request", thread_id=thread_id, question_length=len(req.question or ""))

    try:
        answer = chatbot.ask(req.question, thread_id)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        log.error("chat_request_failed", thread_id=thread_id, error_type=type(exc).__name__)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from exc

    return ChatResponse(answer=answer)
