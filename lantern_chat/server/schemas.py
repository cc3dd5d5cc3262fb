"""Pydantic schemas for messages pushed to connected clients."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessageKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class Author(BaseModel):
    id: str
    nickname: str
    color: Optional[str] = None


class Message(BaseModel):
    """One event on the live stream.

    ``author`` is set for user-originated messages and null for messages the
    relay itself emits (``from_app``). Private messages are always app
    messages without an author.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_app: bool = Field(default=False, alias="fromApp")
    author: Optional[Author] = None
    kind: MessageKind = MessageKind.TEXT
    content: str
    private: bool = False

    @model_validator(mode="after")
    def _private_messages_come_from_the_app(self) -> "Message":
        if self.private and (self.author is not None or not self.from_app):
            raise ValueError("private messages must be anonymous app messages")
        return self

    @classmethod
    def app(cls, content: str, private: bool = False) -> "Message":
        return cls(from_app=True, content=content, private=private)

    @classmethod
    def from_author(cls, author: Author, content: str, kind: MessageKind = MessageKind.TEXT) -> "Message":
        return cls(author=author, kind=kind, content=content)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class HealthOut(BaseModel):
    status: str = Field(..., description="Always 'ok' while the relay is serving")
