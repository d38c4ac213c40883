"""Pydantic models for chat messages and conversations."""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    """Read naive timestamps as UTC so aware and naive values compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A single chat message. Immutable once created."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utc_now)

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Conversation(BaseModel):
    """An append-only conversation.

    Instances are immutable; with_message() returns a new snapshot with the
    message appended and updated_at bumped. updated_at never goes backwards
    and strictly increases on every append.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    title: str = "New Conversation"
    messages: tuple[Message, ...] = Field(default_factory=tuple)
    created_at: datetime = Field(default_factory=_utc_now, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_as_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def model_post_init(self, __context) -> None:
        if self.updated_at is None or self.updated_at < self.created_at:
            object.__setattr__(self, "updated_at", self.created_at)

    def with_message(self, message: Message) -> "Conversation":
        now = _utc_now()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        return self.model_copy(
            update={"messages": self.messages + (message,), "updated_at": now}
        )

    def to_markdown(self) -> str:
        """Render as "**Role**: content" blocks separated by a blank line."""
        return "\n\n".join(
            f"**{msg.role.value.capitalize()}**: {msg.content}" for msg in self.messages
        )
