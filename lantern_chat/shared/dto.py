"""Shared data transfer objects for stream events."""
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AuthorDTO:
    id: str
    nickname: str
    color: Optional[str] = None


@dataclass
class MessageDTO:
    from_app: bool
    author: Optional[AuthorDTO]
    kind: str
    content: str
    private: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageDTO":
        author = data.get("author")
        return cls(
            from_app=bool(data.get("fromApp", False)),
            author=AuthorDTO(**author) if author else None,
            kind=data.get("kind", "text"),
            content=data.get("content", ""),
            private=bool(data.get("private", False)),
        )

    @classmethod
    def from_json(cls, payload: str) -> "MessageDTO":
        return cls.from_dict(json.loads(payload))
