"""Server-Sent Events framing for live channels."""
import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional

from .broadcaster import Channel
from .config import STREAM_KEEPALIVE_SECONDS
from .schemas import Message

KEEPALIVE_FRAME = ": keepalive\n\n"


def encode_frame(message: Message) -> str:
    return f"data: {message.to_json()}\n\n"


async def iter_frames(
    channel: Channel,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive: float = STREAM_KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames until the channel closes or the client goes away.

    While idle, a comment frame is emitted every ``keepalive`` seconds and
    ``is_disconnected`` is polled.
    """
    while True:
        try:
            message = await asyncio.wait_for(channel.get(), timeout=keepalive)
        except asyncio.TimeoutError:
            if is_disconnected is not None and await is_disconnected():
                return
            yield KEEPALIVE_FRAME
            continue
        if message is None:
            return
        yield encode_frame(message)
