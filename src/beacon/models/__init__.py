"""Pydantic models for Beacon."""

from .array import ArrayStatus, IngestRequest, IngestResponse, QueueItem, QueueResponse
from .chat import ChatApiMessage, ChatContent, ChatResponse
from .conversation import Conversation, Message, MessageRole

__all__ = [
    # The Array
    "ArrayStatus",
    "IngestRequest",
    "IngestResponse",
    "QueueItem",
    "QueueResponse",
    # Conversation
    "Conversation",
    "Message",
    "MessageRole",
    # Chat API
    "ChatApiMessage",
    "ChatContent",
    "ChatResponse",
]
