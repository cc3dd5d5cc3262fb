"""Relay core: session resolution, flood control, commands and fan-out.

One :class:`Relay` owns every store of a running server. Route handlers call
into it from the event loop; none of its methods await, so messages from one
sender reach the broadcaster in the order the sender's calls complete.
"""
from typing import Optional, Tuple

from . import config
from .blobs import BlobStore
from .broadcaster import Broadcaster, Channel
from .commands import CommandProcessor
from .errors import EmptyMessageError, ImageTooLargeError
from .logging_config import configure_logging
from .rate_limit import Decision, RateLimiter
from .schemas import Message, MessageKind
from .sessions import SessionStore
from ..shared.utils import escape_html

logger = configure_logging()

THROTTLE_NOTICE = "You are sending messages too quickly!"


class Relay:
    def __init__(
        self,
        sessions: Optional[SessionStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        blobs: Optional[BlobStore] = None,
        broadcaster: Optional[Broadcaster] = None,
        max_image_bytes: int = config.MAX_IMAGE_BYTES,
    ):
        self.sessions = sessions or SessionStore()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.blobs = blobs or BlobStore()
        self.broadcaster = broadcaster or Broadcaster()
        self.commands = CommandProcessor(self.sessions, self.broadcaster)
        self.max_image_bytes = max_image_bytes

    # -- sessions -----------------------------------------------------------

    def resolve_session(self, token: Optional[str]) -> Tuple[str, bool]:
        return self.sessions.resolve_with_status(token)

    # -- messages -----------------------------------------------------------

    def send_message(self, session_id: str, text: str, now: Optional[float] = None) -> Decision:
        if not text:
            raise EmptyMessageError("Message is required")

        decision = self.rate_limiter.admit(session_id, now)
        if decision is Decision.THROTTLE:
            logger.warning("RATE_LIMITED session_id=%s", session_id)
            self.commands.reply(session_id, THROTTLE_NOTICE)
            return decision

        if self.commands.is_command(text):
            self.commands.handle(session_id, text)
            return decision

        author = self.sessions.get_author(session_id)
        self.broadcaster.broadcast(Message.from_author(author, escape_html(text)))
        return decision

    def set_nickname(self, session_id: str, nickname: str) -> str:
        previous = self.sessions.set_nickname(session_id, nickname)
        logger.info("NICKNAME_SET session_id=%s", session_id)
        history = f"previously [{escape_html(previous)}]" if previous else "no previous nicknames"
        self.broadcaster.broadcast(
            Message.app(f"client {session_id} ({history}) changed nickname to [{escape_html(nickname)}]")
        )
        return f"Nickname set to {nickname} for session {session_id}"

    # -- images -------------------------------------------------------------

    def upload_image(self, session_id: str, data: bytes) -> str:
        if len(data) > self.max_image_bytes:
            raise ImageTooLargeError(len(data), self.max_image_bytes)
        blob_id = self.blobs.put(data)
        author = self.sessions.get_author(session_id)
        self.broadcaster.broadcast(Message.from_author(author, blob_id, kind=MessageKind.IMAGE))
        return blob_id

    def get_image(self, blob_id: str) -> Optional[bytes]:
        return self.blobs.get(blob_id)

    # -- presence -----------------------------------------------------------

    def join(self, session_id: str) -> None:
        nickname = escape_html(self.sessions.get_nickname(session_id))
        self.broadcaster.broadcast(Message.app(f"{session_id} ([{nickname}]) has joined the room"))

    def leave(self, session_id: str) -> None:
        nickname = escape_html(self.sessions.get_nickname(session_id))
        self.broadcaster.broadcast(Message.app(f"[{nickname}] ({session_id}) has left the room"))
        # the leaver's open stream ends on the close sentinel
        self.broadcaster.unregister(session_id)

    # -- streams ------------------------------------------------------------

    def open_stream(self, session_id: str) -> Channel:
        return self.broadcaster.register(session_id)

    def close_stream(self, session_id: str, channel: Channel) -> None:
        self.broadcaster.unregister(session_id, channel)

    def shutdown(self) -> None:
        self.broadcaster.close_all()
