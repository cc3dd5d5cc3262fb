"""In-memory records held by the relay stores."""
import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Session:
    id: str
    nickname: Optional[str] = None
    color: Optional[str] = None
    created_at: float = field(default_factory=time.monotonic)


@dataclass
class BlobRecord:
    data: bytes
    expires_at: float
