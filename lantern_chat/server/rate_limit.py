"""Per-session flood control for submitted messages.

This is a leaky strike counter, not a token bucket. Every message that
arrives less than ``window`` seconds after the previous accepted one adds a
strike; once ``threshold`` strikes are collected the session is throttled and
its last-accepted timestamp is frozen, so it stays throttled until it pauses
for a full window. Bursts are therefore tolerated only up to the threshold,
after which posting hard-stops instead of slowing down.
"""
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .config import RATE_LIMIT_THRESHOLD, RATE_LIMIT_WINDOW_SECONDS


class Decision(str, Enum):
    ALLOW = "allow"
    THROTTLE = "throttle"


@dataclass
class _RateState:
    last_message_at: float
    strikes: int = 0


class RateLimiter:
    def __init__(self, window: float = RATE_LIMIT_WINDOW_SECONDS, threshold: int = RATE_LIMIT_THRESHOLD):
        self.window = window
        self.threshold = threshold
        self._lock = threading.Lock()
        self._states: Dict[str, _RateState] = {}

    def admit(self, session_id: str, now: Optional[float] = None) -> Decision:
        if now is None:
            now = time.monotonic()
        with self._lock:
            state = self._states.get(session_id)
            if state is None:
                self._states[session_id] = _RateState(last_message_at=now)
                return Decision.ALLOW
            if now - state.last_message_at < self.window:
                state.strikes += 1
                if state.strikes >= self.threshold:
                    return Decision.THROTTLE
            else:
                state.strikes = 0
            state.last_message_at = now
            return Decision.ALLOW

    def strikes(self, session_id: str) -> int:
        with self._lock:
            state = self._states.get(session_id)
            return state.strikes if state else 0
