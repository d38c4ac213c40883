"""Pydantic models for the chat-completion API."""

from pydantic import BaseModel, Field


class ChatContent(BaseModel):
    """One content block of a completion."""

    type: str
    text: str


class ChatResponse(BaseModel):
    """Completion response body: {id, content: [{type, text}]}."""

    id: str
    content: list[ChatContent] = Field(default_factory=list)


class ChatApiMessage(BaseModel):
    """Message as sent on the wire: {role, content}."""

    role: str
    content: str
