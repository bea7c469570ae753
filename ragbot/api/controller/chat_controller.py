"""HTTP controller for dashboard chat."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ragbot.chat.chat_orchestrator import (
    FALLBACK_ERROR_MESSAGE,
    RESET_CONFIRMATION,
    InvalidMessageError,
)
from ragbot.clients.completion_client import CompletionError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

DASHBOARD_SESSION_ID = "dashboard"


class ChatRequest(BaseModel):
    """Incoming chat message from the dashboard."""

    message: Optional[str] = None
    session_id: str = DASHBOARD_SESSION_ID


class ResetRequest(BaseModel):
    """Conversation reset request."""

    session_id: str = DASHBOARD_SESSION_ID


@router.post("/chat")
async def chat(body: ChatRequest, request: Request):
    """
    Answer a dashboard message through the same orchestrator as the bot.

    Returns ``{"success", "response", "sources"}`` where ``sources`` are the
    passages cited in the reply.
    """
    orchestrator = request.app.state.container.orchestrator

    try:
        reply = await orchestrator.respond(body.session_id, body.message or "")
    except InvalidMessageError:
        return JSONResponse(status_code=400, content={"error": "Message is required"})
    except CompletionError as e:
        logger.error(f"Dashboard chat failed: {e}")
        return JSONResponse(status_code=503, content={"success": False, "error": FALLBACK_ERROR_MESSAGE})

    return {
        "success": True,
        "response": reply.text,
        "sources": [passage.to_dict() for passage in reply.cited],
    }


@router.post("/chat/reset")
async def reset_chat(request: Request, body: Optional[ResetRequest] = None):
    session_id = body.session_id if body else DASHBOARD_SESSION_ID
    await request.app.state.container.orchestrator.reset(session_id)
    return {"success": True, "message": RESET_CONFIRMATION}
