"""Message submission and live event stream routes."""
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, StreamingResponse

from .auth import get_current_session_id, get_relay, set_session_cookie
from .config import SESSION_COOKIE
from .errors import EmptyMessageError
from .logging_config import configure_logging
from .rate_limit import Decision
from .relay import Relay
from .streaming import iter_frames

router = APIRouter(tags=["messages"])
logger = configure_logging()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/send", response_class=PlainTextResponse)
async def send_message(
    message: str = Form(default=""),
    relay: Relay = Depends(get_relay),
    session_id: str = Depends(get_current_session_id),
):
    try:
        decision = relay.send_message(session_id, message)
    except EmptyMessageError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if decision is Decision.THROTTLE:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Sending messages too quickly")
    return "Message sent"


@router.get("/events")
async def events(request: Request, relay: Relay = Depends(get_relay)):
    session_id, minted = relay.resolve_session(request.cookies.get(SESSION_COOKIE))

    async def stream():
        channel = relay.open_stream(session_id)
        try:
            async for frame in iter_frames(channel, request.is_disconnected):
                yield frame
        except Exception:
            logger.exception("STREAM_FAILED session_id=%s", session_id)
            raise
        finally:
            relay.close_stream(session_id, channel)

    response = StreamingResponse(stream(), media_type="text/event-stream", headers=STREAM_HEADERS)
    if minted:
        set_session_cookie(response, session_id)
    return response
