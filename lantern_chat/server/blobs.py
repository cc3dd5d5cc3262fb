"""Ephemeral image storage with periodic eviction."""
import asyncio
import itertools
import secrets
import threading
import time
from typing import Dict, Optional

from .config import IMAGE_SWEEP_INTERVAL_SECONDS, IMAGE_TTL_SECONDS
from .logging_config import configure_logging
from .models import BlobRecord

logger = configure_logging()

_fallback_counter = itertools.count()

# (magic prefix, offset, content type)
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", 0, "image/png"),
    (b"\xff\xd8\xff", 0, "image/jpeg"),
    (b"GIF87a", 0, "image/gif"),
    (b"GIF89a", 0, "image/gif"),
    (b"BM", 0, "image/bmp"),
    (b"\x00\x00\x01\x00", 0, "image/x-icon"),
)


def generate_blob_id() -> str:
    """Return ``<unix-ms>-<8 hex>``; ids sort roughly by upload time."""
    millis = int(time.time() * 1000)
    try:
        suffix = secrets.token_hex(4)
    except (OSError, NotImplementedError):
        logger.warning("ENTROPY_FALLBACK kind=blob_id")
        return f"{time.time_ns()}-{next(_fallback_counter)}"
    return f"{millis}-{suffix}"


def sniff_content_type(data: bytes) -> str:
    for magic, offset, content_type in _SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    head = data[:256].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"
    return "application/octet-stream"


class BlobStore:
    """Maps generated ids to bytes until their TTL passes and a sweep runs.

    Reads do not check expiry; :meth:`sweep` is the only eviction path, so
    the sweep interval bounds how long an expired blob stays readable.
    """

    def __init__(self, ttl: float = IMAGE_TTL_SECONDS):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._records: Dict[str, BlobRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def put(self, data: bytes, now: Optional[float] = None) -> str:
        if now is None:
            now = time.monotonic()
        with self._lock:
            blob_id = generate_blob_id()
            while blob_id in self._records:
                blob_id = generate_blob_id()
            self._records[blob_id] = BlobRecord(data=data, expires_at=now + self.ttl)
        logger.info("IMAGE_STORED blob_id=%s size=%s", blob_id, len(data))
        return blob_id

    def get(self, blob_id: str) -> Optional[bytes]:
        with self._lock:
            record = self._records.get(blob_id)
            return record.data if record else None

    def sweep(self, now: Optional[float] = None) -> int:
        if now is None:
            now = time.monotonic()
        with self._lock:
            expired = [blob_id for blob_id, record in self._records.items() if record.expires_at <= now]
            for blob_id in expired:
                del self._records[blob_id]
        if expired:
            logger.info("IMAGE_SWEEP removed=%s", len(expired))
        return len(expired)

    async def run_sweeper(self, interval: float = IMAGE_SWEEP_INTERVAL_SECONDS) -> None:
        """Sweep every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("IMAGE_SWEEP_FAILED")
