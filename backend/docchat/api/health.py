from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """Liveness check. Reports the backends the running chatbot uses."""
    return {"status": "ok", **request.app.state.chatbot.backends}
