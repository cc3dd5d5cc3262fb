"""Nickname and presence routes."""
from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.responses import PlainTextResponse

from .auth import get_current_session_id, get_relay
from .errors import NicknameError
from .logging_config import configure_logging
from .relay import Relay

router = APIRouter(tags=["users"])
logger = configure_logging()


@router.post("/set-nickname", response_class=PlainTextResponse)
async def set_nickname(
    nickname: str = Form(default=""),
    relay: Relay = Depends(get_relay),
    session_id: str = Depends(get_current_session_id),
):
    try:
        return relay.set_nickname(session_id, nickname)
    except NicknameError as exc:
        logger.info("NICKNAME_REJECTED session_id=%s reason=%s", session_id, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/join", response_class=PlainTextResponse)
async def join(relay: Relay = Depends(get_relay), session_id: str = Depends(get_current_session_id)):
    relay.join(session_id)
    logger.info("JOIN session_id=%s", session_id)
    return ""


# navigator.sendBeacon always POSTs
@router.api_route("/leave", methods=["GET", "POST"], response_class=PlainTextResponse)
async def leave(relay: Relay = Depends(get_relay), session_id: str = Depends(get_current_session_id)):
    relay.leave(session_id)
    logger.info("LEAVE session_id=%s", session_id)
    return ""
