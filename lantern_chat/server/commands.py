"""Interpreter for ``;``-prefixed chat commands.

Every reply is a private app message to the issuing session; nothing here
broadcasts.
"""
from typing import Callable, Dict

from .broadcaster import Broadcaster
from .config import COMMAND_PREFIX
from .errors import ColorError
from .logging_config import configure_logging
from .schemas import Message
from .sessions import SessionStore
from ..shared.utils import escape_html

logger = configure_logging()

HELP_TEXT = (
    f"Available commands: {COMMAND_PREFIX}help, {COMMAND_PREFIX}members, "
    f"{COMMAND_PREFIX}whisper <username> <message>, {COMMAND_PREFIX}color <hexcode|colorname>"
)
WHISPER_USAGE = f"Usage: {COMMAND_PREFIX}whisper <username> <message>"
COLOR_USAGE = (
    f"Usage: {COMMAND_PREFIX}color <hexcode|colorname> "
    f"(e.g., {COMMAND_PREFIX}color #ff0000 or {COMMAND_PREFIX}color red)"
)


class CommandProcessor:
    def __init__(self, sessions: SessionStore, broadcaster: Broadcaster, prefix: str = COMMAND_PREFIX):
        self.sessions = sessions
        self.broadcaster = broadcaster
        self.prefix = prefix
        self._handlers: Dict[str, Callable[[str, str], None]] = {
            "help": self._help,
            "members": self._members,
            "whisper": self._whisper,
            "color": self._color,
        }

    def is_command(self, text: str) -> bool:
        return text.startswith(self.prefix)

    def handle(self, session_id: str, raw: str) -> None:
        token = raw.split(" ", 1)[0].lower()
        name = token[len(self.prefix):] if token.startswith(self.prefix) else token
        handler = self._handlers.get(name)
        if handler is None:
            logger.info("COMMAND_UNKNOWN session_id=%s", session_id)
            self.reply(session_id, f"Unknown command: {escape_html(raw)}")
            return
        logger.info("COMMAND session_id=%s name=%s", session_id, name)
        handler(session_id, raw)

    def reply(self, session_id: str, text: str) -> bool:
        return self.broadcaster.unicast(session_id, Message.app(text, private=True))

    def _help(self, session_id: str, raw: str) -> None:
        self.reply(session_id, HELP_TEXT)

    def _members(self, session_id: str, raw: str) -> None:
        members = self.sessions.list_members()
        if not members:
            self.reply(session_id, "No members online")
            return
        listing = " ".join(f"[{escape_html(nickname)}] ({escape_html(member_id)})" for member_id, nickname in members)
        self.reply(session_id, f"Online members {listing}")

    def _whisper(self, session_id: str, raw: str) -> None:
        parts = raw.split(" ", 2)
        if len(parts) < 3 or not parts[1] or not parts[2].strip():
            self.reply(session_id, WHISPER_USAGE)
            return
        target_nickname, text = parts[1], parts[2]
        target_id = self.sessions.find_by_nickname(target_nickname)
        if target_id is None:
            self.reply(session_id, f"User {escape_html(target_nickname)} not found")
            return
        body = "(whisper to @{}) [{}]: {}".format(
            escape_html(target_nickname),
            escape_html(self.sessions.get_nickname(session_id)),
            escape_html(text),
        )
        self.reply(target_id, body)
        if target_id != session_id:
            self.reply(session_id, body)

    def _color(self, session_id: str, raw: str) -> None:
        parts = raw.split(" ")
        if len(parts) != 2 or not parts[1]:
            self.reply(session_id, COLOR_USAGE)
            return
        try:
            color = self.sessions.set_color(session_id, parts[1])
        except ColorError as exc:
            self.reply(session_id, str(exc))
            return
        self.reply(session_id, f"Your nickname color has been changed to {color}")
