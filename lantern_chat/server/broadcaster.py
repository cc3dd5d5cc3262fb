"""Live delivery channels and best-effort fan-out.

Each connected session owns one :class:`Channel`, a bounded queue drained by
that session's stream task. Delivering a message is a non-blocking enqueue,
so a stalled receiver only ever fills its own queue. When a queue is full the
new message is dropped for that receiver alone and counted on the channel.

Channels and the broadcaster belong to the event loop thread.
"""
import asyncio
import threading
from typing import Dict, List, Optional

from .config import OUTBOUND_QUEUE_SIZE
from .logging_config import configure_logging
from .schemas import Message

logger = configure_logging()

_CLOSED = None


class Channel:
    def __init__(self, session_id: str, maxsize: int = OUTBOUND_QUEUE_SIZE):
        if maxsize < 1:
            raise ValueError("channel queue size must be at least 1")
        self.session_id = session_id
        self.closed = False
        self.dropped = 0
        # one extra slot keeps room for the close sentinel
        self._queue: "asyncio.Queue[Optional[Message]]" = asyncio.Queue(maxsize=maxsize + 1)
        self._capacity = maxsize

    def __repr__(self) -> str:
        return f"Channel(session_id={self.session_id!r}, closed={self.closed}, pending={self.pending})"

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, message: Message) -> bool:
        """Enqueue without waiting; return False if closed or full."""
        if self.closed:
            return False
        if self._queue.qsize() >= self._capacity:
            self.dropped += 1
            logger.warning("DELIVERY_DROPPED session_id=%s dropped=%s", self.session_id, self.dropped)
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        """Discard pending messages and wake the reader with the close sentinel."""
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> Optional[Message]:
        """Next message, or None once the channel has been closed."""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()


class Broadcaster:
    """Registration table of live channels keyed by session id."""

    def __init__(self, queue_size: int = OUTBOUND_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._channels: Dict[str, Channel] = {}

    def register(self, session_id: str) -> Channel:
        channel = Channel(session_id, self.queue_size)
        with self._lock:
            previous = self._channels.get(session_id)
            self._channels[session_id] = channel
        if previous is not None:
            previous.close()
            logger.info("STREAM_REPLACED session_id=%s", session_id)
        logger.info("STREAM_OPENED session_id=%s", session_id)
        return channel

    def unregister(self, session_id: str, channel: Optional[Channel] = None) -> bool:
        """Remove and close the registration for ``session_id``.

        With ``channel`` given, only that exact registration is removed, so the
        teardown of a replaced stream can not unregister its successor.
        Returns False when there was nothing to remove.
        """
        with self._lock:
            current = self._channels.get(session_id)
            if current is None or (channel is not None and current is not channel):
                removed = None
            else:
                removed = self._channels.pop(session_id)
        if channel is not None:
            channel.close()
        if removed is None:
            return False
        removed.close()
        logger.info("STREAM_CLOSED session_id=%s", session_id)
        return True

    def is_registered(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._channels

    def registered_ids(self) -> List[str]:
        with self._lock:
            return list(self._channels)

    def broadcast(self, message: Message) -> int:
        with self._lock:
            channels = list(self._channels.values())
        delivered = sum(1 for channel in channels if channel.offer(message))
        logger.info("MESSAGE_BROADCAST recipients=%s delivered=%s", len(channels), delivered)
        return delivered

    def unicast(self, session_id: str, message: Message) -> bool:
        with self._lock:
            channel = self._channels.get(session_id)
        if channel is None:
            return False
        return channel.offer(message)

    def close_all(self) -> None:
        with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
        for channel in channels:
            channel.close()
