"""Session registry: opaque token -> nickname and colour."""
import secrets
import threading
import time
from typing import Dict, List, Optional, Tuple

from .config import DEFAULT_NICKNAME
from .errors import ColorError, NicknameError
from .logging_config import configure_logging
from .models import Session
from .palette import random_palette_color, resolve_color
from .schemas import Author
from ..shared.utils import is_valid_nickname

logger = configure_logging()


def generate_session_id() -> str:
    try:
        return secrets.token_urlsafe(32)
    except (OSError, NotImplementedError):
        logger.warning("ENTROPY_FALLBACK kind=session_id")
        return str(time.time_ns())


class SessionStore:
    """Thread-safe map of session id to :class:`Session`.

    Sessions are created lazily and never removed; they outlive the streams
    that come and go for them.
    """

    def __init__(self, default_nickname: str = DEFAULT_NICKNAME):
        self.default_nickname = default_nickname
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def resolve_with_status(self, token: Optional[str]) -> Tuple[str, bool]:
        """Return ``(session_id, minted)`` for a client-supplied token."""
        with self._lock:
            if token and token in self._sessions:
                return token, False
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()
            self._sessions[session_id] = Session(id=session_id)
        logger.info("SESSION_MINTED session_id=%s", session_id)
        return session_id, True

    def resolve(self, token: Optional[str]) -> str:
        return self.resolve_with_status(token)[0]

    def get_nickname(self, session_id: str) -> str:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.nickname is None:
                return self.default_nickname
            return session.nickname

    def get_color(self, session_id: str) -> Optional[str]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.color if session else None

    def get_author(self, session_id: str) -> Author:
        with self._lock:
            session = self._sessions.get(session_id)
            nickname = session.nickname if session and session.nickname else self.default_nickname
            color = session.color if session else None
        return Author(id=session_id, nickname=nickname, color=color)

    def set_nickname(self, session_id: str, nickname: str) -> Optional[str]:
        """Assign a nickname and return the previous one (None if unset).

        Raises NicknameError for empty names, names with whitespace and names
        already held by another session.
        """
        if not is_valid_nickname(nickname):
            raise NicknameError("Invalid nickname: either empty or contains spaces")
        with self._lock:
            for other in self._sessions.values():
                if other.id != session_id and other.nickname == nickname:
                    raise NicknameError(f"Nickname {nickname} is already taken")
            session = self._sessions.setdefault(session_id, Session(id=session_id))
            previous = session.nickname
            session.nickname = nickname
            if session.color is None:
                session.color = random_palette_color()
        return previous

    def set_color(self, session_id: str, spec: str) -> str:
        color = resolve_color(spec)
        if color is None:
            raise ColorError(
                "Invalid color format. Use hexadecimal format like #ff0000 or predefined names like red"
            )
        with self._lock:
            session = self._sessions.setdefault(session_id, Session(id=session_id))
            session.color = color
        return color

    def list_members(self) -> List[Tuple[str, str]]:
        with self._lock:
            return [(s.id, s.nickname) for s in self._sessions.values() if s.nickname is not None]

    def find_by_nickname(self, nickname: str) -> Optional[str]:
        # dicts keep insertion order, so ties resolve to the oldest session
        with self._lock:
            for session in self._sessions.values():
                if session.nickname == nickname:
                    return session.id
        return None
