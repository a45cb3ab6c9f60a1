"""FastAPI endpoints under /api.

Two input channels (chat, command) run every message through the pipe
engine. A resubmitted message is re-dispatched as a plain delivery and never
goes back through the engine. Disconnect, pending-state inspection, settings
and reload complete the host surface.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from chat_pipe.config import ConfigError, load_config
from chat_pipe.engine import PipeEngine
from chat_pipe.models import Channel, Decision

logger = logging.getLogger(__name__)

router = APIRouter()


class MessageBody(BaseModel):
    message: str


def _engine(request: Request) -> PipeEngine:
    return request.app.state.engine


def _deliver(user_id: UUID, channel: Channel, text: str) -> None:
    logger.info("deliver user=%s channel=%s len=%d", user_id, channel, len(text))


def _dispatch(request: Request, user_id: UUID, channel: Channel, message: str) -> Decision:
    decision = _engine(request).handle(user_id, message, channel)
    if decision.action != "suppress":
        _deliver(user_id, channel, decision.text)
    return decision


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.post("/users/{user_id}/chat")
async def chat(user_id: UUID, body: MessageBody, request: Request):
    """Send a chat message through the pipe."""
    return _dispatch(request, user_id, "chat", body.message)


@router.post("/users/{user_id}/command")
async def command(user_id: UUID, body: MessageBody, request: Request):
    """Send a command line through the pipe."""
    return _dispatch(request, user_id, "command", body.message)


@router.delete("/users/{user_id}")
async def disconnect(user_id: UUID, request: Request):
    """Session end: drop whatever the user had pending."""
    _engine(request).on_user_disconnect(user_id)
    return {"ok": True}


@router.get("/users/{user_id}/pending")
async def pending(user_id: UUID, request: Request):
    """Pending text and accepted fragment count for a user."""
    store = _engine(request).store
    return {"text": store.get(user_id), "fragments": store.counter(user_id)}


@router.get("/settings")
async def get_settings(request: Request):
    """Current pipe configuration."""
    return _engine(request).config.model_dump(mode="json")


@router.post("/reload")
async def reload(request: Request):
    """Re-read the config file; pending buffers carry over."""
    try:
        config = load_config(request.app.state.config_path)
    except ConfigError as e:
        raise HTTPException(400, str(e))
    request.app.state.engine = _engine(request).reload(config)
    return config.model_dump(mode="json")
